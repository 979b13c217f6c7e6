"""Database layer - engine, base classes and column types."""

from ledger_kernel.db.base import Base
from ledger_kernel.db.engine import (
    create_engine_from_settings,
    create_engine_from_url,
    create_session_factory,
    create_tables,
    drop_tables,
    session_scope,
)
from ledger_kernel.db.types import LongText, Money, Name, StatusCode

__all__ = [
    "Base",
    "create_engine_from_url",
    "create_engine_from_settings",
    "create_session_factory",
    "create_tables",
    "drop_tables",
    "session_scope",
    "Money",
    "StatusCode",
    "Name",
    "LongText",
]
