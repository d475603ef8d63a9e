"""Base schemas with common configuration."""
from pydantic import BaseModel, ConfigDict, field_serializer
from datetime import datetime, UTC


def serialize_datetime_utc(dt: datetime) -> str:
    """
    Serialize datetime to ISO 8601 with explicit UTC timezone.

    SQLite stores datetimes as naive strings, so we treat them as UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat().replace('+00:00', 'Z')


class BaseSchema(BaseModel):
    """Base schema with common configuration for all API responses."""

    model_config = ConfigDict(
        from_attributes=True,
    )

    @field_serializer("*", mode="wrap")
    def serialize_datetimes(self, value, handler):
        """Render every datetime field as a UTC 'Z' timestamp."""
        if isinstance(value, datetime):
            return serialize_datetime_utc(value)
        return handler(value)
