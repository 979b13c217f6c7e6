"""
RetryPolicy -- caller-side re-issue of ledger operations after store faults.

Responsibility:
    Re-runs an operation while it returns a retryable STORE_UNAVAILABLE
    result (connection loss, timeout, deadlock, concurrent-writer conflict).
    The engine itself never retries; a store fault is a final result for
    that call, and this policy is the "outer retry" a caller may opt into.

Invariants enforced:
    MAX_ATTEMPTS_LIMIT -- Safety limit (10) prevents unbounded retry loops.
    Business rejections are returned on first sight and never retried.

Usage:
    policy = RetryPolicy(max_attempts=3, backoff_s=0.05)
    result = policy.run(lambda: engine.pay_job(job_id, payer_id))
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Callable

from ledger_kernel.domain.dtos import LedgerResult
from ledger_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from ledger_config.schema import LedgerSettings

logger = get_logger("services.retry_service")


class RetryPolicy:
    """Bounded linear-backoff retry for retryable ledger results.

    Contract:
        ``run(op)`` calls ``op`` up to ``max_attempts`` times and returns the
        first non-retryable result, or the last result once attempts run out.

    Non-goals:
        - Does NOT catch exceptions; InvariantViolationError and programming
          errors propagate on the first attempt.
    """

    # INVARIANT: Safety limit -- prevents unbounded retry loops
    MAX_ATTEMPTS_LIMIT = 10

    def __init__(
        self,
        max_attempts: int = 3,
        backoff_s: float = 0.05,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not 1 <= max_attempts <= self.MAX_ATTEMPTS_LIMIT:
            raise ValueError(
                f"max_attempts must be between 1 and {self.MAX_ATTEMPTS_LIMIT}, "
                f"got {max_attempts}"
            )
        if backoff_s < 0:
            raise ValueError(f"backoff_s must be >= 0, got {backoff_s}")
        self.max_attempts = max_attempts
        self.backoff_s = backoff_s
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: LedgerSettings) -> RetryPolicy:
        return cls(
            max_attempts=settings.retry_max_attempts,
            backoff_s=settings.retry_backoff_s,
        )

    def run(self, operation: Callable[[], LedgerResult]) -> LedgerResult:
        attempt = 1
        result = operation()
        while result.is_retryable and attempt < self.max_attempts:
            delay = self.backoff_s * attempt
            logger.info(
                "ledger_retry",
                extra={
                    "operation": result.operation.value,
                    "attempt": attempt,
                    "max_attempts": self.max_attempts,
                    "error_code": result.error_code,
                    "delay_s": delay,
                },
            )
            self._sleep(delay)
            attempt += 1
            result = operation()

        if result.is_retryable:
            logger.warning(
                "ledger_retry_exhausted",
                extra={
                    "operation": result.operation.value,
                    "attempts": attempt,
                    "error_code": result.error_code,
                },
            )
        return result
