"""Services for the ledger kernel (write side)."""

from ledger_kernel.services.account_store import AccountStore, StoreTransaction
from ledger_kernel.services.ledger_engine import LedgerEngine
from ledger_kernel.services.retry_service import RetryPolicy

__all__ = [
    "AccountStore",
    "LedgerEngine",
    "RetryPolicy",
    "StoreTransaction",
]
