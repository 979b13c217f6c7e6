"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Money movement must fail precisely. Callers catch by type and read the
``code`` attribute; they never parse message strings.

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerKernelError (base)
    |
    +-- LedgerRejectedError          business rule said no (result, not fault)
    |
    +-- StoreError
    |   +-- StoreUnavailableError    connection loss, timeout, deadlock
    |   +-- ConcurrencyConflictError optimistic version check failed
    |
    +-- InvariantViolationError      computed state breaks a ledger invariant
    |
    +-- ReportError
        +-- InvalidDateRangeError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                   | When Raised
------------|------------------------|---------------------------------------------
Rejection   | LEDGER_REJECTED        | Validation failed; see ``reason``
------------|------------------------|---------------------------------------------
Store       | STORE_UNAVAILABLE      | Connection lost, lock/statement timeout,
            |                        | deadlock or serialization failure
            | CONCURRENCY_CONFLICT   | Row changed by a concurrent transaction
------------|------------------------|---------------------------------------------
Invariant   | INVARIANT_VIOLATION    | Negative balance or unbalanced transfer
            |                        | computed before commit (fatal)
------------|------------------------|---------------------------------------------
Report      | INVALID_DATE_RANGE     | start date after end date
            | INVALID_REPORT_LIMIT   | non-positive result limit

===============================================================================
HANDLING PATTERNS
===============================================================================

1. LedgerRejectedError never escapes the LedgerEngine; it is raised inside the
   store transaction so the rollback happens, then converted to a REJECTED
   LedgerResult.

2. StoreError subclasses are transient. Nothing was committed, so the caller
   (or RetryPolicy) may re-issue the operation.

3. InvariantViolationError means a validation rule is wrong. It propagates to
   the caller after rollback and is logged at CRITICAL.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ledger_kernel.domain.dtos import Rejection


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# Business rejections


class LedgerRejectedError(LedgerKernelError):
    """An operation failed validation; nothing was mutated."""

    code: str = "LEDGER_REJECTED"

    def __init__(self, rejection: Rejection):
        self.reason = rejection.reason
        self.rejection_message = rejection.message
        self._rejection = rejection
        super().__init__(f"{rejection.reason.value}: {rejection.message}")

    @property
    def rejection(self) -> Rejection:
        return self._rejection


# Store faults


class StoreError(LedgerKernelError):
    """Base exception for transient account store failures."""

    code: str = "STORE_ERROR"


class StoreUnavailableError(StoreError):
    """The store could not complete the transaction (not committed)."""

    code: str = "STORE_UNAVAILABLE"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Account store unavailable: {detail}")


class ConcurrencyConflictError(StoreError):
    """A row was modified by a concurrent transaction (not committed)."""

    code: str = "CONCURRENCY_CONFLICT"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Concurrent modification detected: {detail}")


# Invariant violations


class InvariantViolationError(LedgerKernelError):
    """
    A ledger invariant would be broken by the pending write.

    Only reachable if a validation rule is wrong. The transaction is rolled
    back; nothing is persisted.
    """

    code: str = "INVARIANT_VIOLATION"

    def __init__(self, invariant: str, detail: str):
        self.invariant = invariant
        self.detail = detail
        super().__init__(f"Ledger invariant {invariant} violated: {detail}")


# Reporting


class ReportError(LedgerKernelError):
    """Base exception for reporting query errors."""

    code: str = "REPORT_ERROR"


class InvalidDateRangeError(ReportError):
    """Report date range is inverted."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start: str, end: str):
        self.start = start
        self.end = end
        super().__init__(f"Invalid date range: {start} is after {end}")


class InvalidReportLimitError(ReportError):
    """Report result limit is not a positive integer."""

    code: str = "INVALID_REPORT_LIMIT"

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Report limit must be positive, got {limit}")
