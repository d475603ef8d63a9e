"""Create initial roulette schema

Revision ID: roulette_001
Revises:
Create Date: 2026-10-19

Creates the core tables:
- players: name-keyed accounts with current funds
- game_rounds: wheel spins, each accepting at most one bet
- bets: settled wagers, one per round
- balance_transactions: append-only funds ledger with per-player sequence
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from roulette.migrations.util import get_money_type, get_timestamp_default, get_uuid_type

# revision identifiers, used by Alembic.
revision: str = 'roulette_001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    uuid = get_uuid_type()
    money = get_money_type()

    op.create_table(
        'players',
        sa.Column('player_id', uuid, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('normalized_name', sa.String(length=100), nullable=False),
        sa.Column('funds', money, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=get_timestamp_default()),
        sa.PrimaryKeyConstraint('player_id'),
        sa.UniqueConstraint('normalized_name', name='uq_players_normalized_name'),
    )

    op.create_table(
        'game_rounds',
        sa.Column('round_id', uuid, nullable=False),
        sa.Column('player_id', uuid, nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('color', sa.String(length=10), nullable=False),
        sa.Column('bet_committed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=get_timestamp_default()),
        sa.ForeignKeyConstraint(['player_id'], ['players.player_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('round_id'),
    )
    op.create_index('ix_game_rounds_player_id', 'game_rounds', ['player_id'], unique=False)
    op.create_index('ix_game_rounds_created_at', 'game_rounds', ['created_at'], unique=False)
    op.create_index('ix_game_rounds_player_created', 'game_rounds', ['player_id', 'created_at'], unique=False)

    op.create_table(
        'bets',
        sa.Column('bet_id', uuid, nullable=False),
        sa.Column('player_id', uuid, nullable=False),
        sa.Column('round_id', uuid, nullable=False),
        sa.Column('bet_type', sa.String(length=30), nullable=False),
        sa.Column('wager', money, nullable=False),
        sa.Column('profit', money, nullable=True),
        sa.Column('result_status', sa.String(length=10), nullable=False),
        sa.Column('color', sa.String(length=10), nullable=True),
        sa.Column('is_even', sa.Boolean(), nullable=True),
        sa.Column('number', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=get_timestamp_default()),
        sa.ForeignKeyConstraint(['player_id'], ['players.player_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['round_id'], ['game_rounds.round_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('bet_id'),
        sa.UniqueConstraint('round_id', name='uq_bets_round_id'),
    )
    op.create_index('ix_bets_player_id', 'bets', ['player_id'], unique=False)

    op.create_table(
        'balance_transactions',
        sa.Column('transaction_id', uuid, nullable=False),
        sa.Column('player_id', uuid, nullable=False),
        sa.Column('bet_id', uuid, nullable=True),
        sa.Column('type', sa.String(length=30), nullable=False),
        sa.Column('amount', money, nullable=False),
        sa.Column('balance_after', money, nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=get_timestamp_default()),
        sa.ForeignKeyConstraint(['player_id'], ['players.player_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['bet_id'], ['bets.bet_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('transaction_id'),
        sa.UniqueConstraint('player_id', 'sequence', name='uq_balance_transactions_player_sequence'),
    )
    op.create_index('ix_balance_transactions_player_id', 'balance_transactions', ['player_id'], unique=False)
    op.create_index('ix_balance_transactions_bet_id', 'balance_transactions', ['bet_id'], unique=False)
    op.create_index('ix_balance_transactions_type', 'balance_transactions', ['type'], unique=False)
    op.create_index('ix_balance_transactions_created_at', 'balance_transactions', ['created_at'], unique=False)
    op.create_index(
        'ix_balance_transactions_player_created', 'balance_transactions', ['player_id', 'created_at'], unique=False
    )


def downgrade() -> None:
    op.drop_table('balance_transactions')
    op.drop_table('bets')
    op.drop_table('game_rounds')
    op.drop_table('players')
