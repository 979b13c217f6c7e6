"""
Configuration Schema (``ledger_config.schema``).

Responsibility
--------------
Frozen dataclass describing every tunable of the ledger kernel: database
connection, pool and timeout bounds, the deposit cap ratio, and the
caller-side retry policy.

Invariants enforced
-------------------
* ``deposit_cap_ratio`` is a ``Decimal`` in (0, 1].  Floats are rejected so
  the cap comparison stays exact.
* Pool sizes, timeouts and retry counts are non-negative; retry attempts are
  at least 1.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal

DEFAULT_DATABASE_URL = "sqlite:///ledger.db"


@dataclass(frozen=True)
class LedgerSettings:
    """Runtime settings for the ledger kernel."""

    database_url: str = DEFAULT_DATABASE_URL
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    lock_timeout_ms: int = 5000
    statement_timeout_ms: int = 30000
    sqlite_busy_timeout_s: float = 15.0
    deposit_cap_ratio: Decimal = Decimal("0.25")
    retry_max_attempts: int = 3
    retry_backoff_s: float = 0.05

    def __post_init__(self) -> None:
        if not self.database_url:
            raise ValueError("database_url must not be empty")
        if not isinstance(self.deposit_cap_ratio, Decimal):
            raise ValueError(
                f"deposit_cap_ratio must be Decimal, not "
                f"{type(self.deposit_cap_ratio).__name__}"
            )
        if not Decimal(0) < self.deposit_cap_ratio <= Decimal(1):
            raise ValueError(
                f"deposit_cap_ratio must be in (0, 1], got {self.deposit_cap_ratio}"
            )
        for name in (
            "pool_size",
            "max_overflow",
            "pool_timeout",
            "pool_recycle",
            "lock_timeout_ms",
            "statement_timeout_ms",
            "sqlite_busy_timeout_s",
            "retry_backoff_s",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.retry_max_attempts < 1:
            raise ValueError(
                f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}"
            )

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))

    def redacted_url(self) -> str:
        """database_url with any password masked, for logs."""
        from sqlalchemy.engine import make_url

        return make_url(self.database_url).render_as_string(hide_password=True)
