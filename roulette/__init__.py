"""Roulette game server."""
