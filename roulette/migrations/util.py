"""Utility functions for Alembic migrations."""
import sqlalchemy as sa
from alembic import op


def get_uuid_type():
    """Get the UUID column type matching ``roulette.models.base.get_uuid_column``.

    Native UUID on PostgreSQL, CHAR(32) hex elsewhere.
    """
    return sa.Uuid(as_uuid=True)


def get_money_type():
    """Get the fixed-point currency type (two decimal places)."""
    return sa.Numeric(precision=18, scale=2)


def get_timestamp_default():
    """Get the appropriate server default for timestamp columns.

    Returns:
        Server default compatible with the current database dialect:
        - PostgreSQL: NOW() function
        - SQLite: CURRENT_TIMESTAMP
    """
    bind = op.get_bind()
    dialect_name = bind.dialect.name
    if dialect_name == 'postgresql':
        return sa.text('NOW()')
    else:
        return sa.text('CURRENT_TIMESTAMP')
