"""
LedgerEngine -- atomic money movement for the marketplace.

Responsibility:
    Runs PayJob and Deposit as single atomic units: open a store transaction,
    load and lock the involved rows, validate with the pure ledger rules,
    mutate, persist, commit.  Any rejection aborts before a single row
    changes.

Architecture position:
    Kernel > Services -- imperative shell, owns the operation boundary.
    Delegates pure decisions to ``domain.ledger_rules`` and all I/O to the
    injected ``AccountStore``.

Operation flow:
    pay_job(job_id, payer_profile_id)
      1. Load job + contract filtered on the payer as client (NOT_FOUND)
      2. Load client and contractor profiles (ascending id lock order)
      3. check_pay_job: ALREADY_PAID -> CONTRACT_NOT_ACTIVE -> INSUFFICIENT_BALANCE
      4. Debit client, credit contractor, mark job paid, stamp payment_date
      5. Commit

    deposit(source_profile_id, dest_profile_id, amount)
      1. Load both profiles (NOT_FOUND)
      2. Sum unpaid job prices on the source's in-progress contracts
      3. check_deposit: SELF_DEPOSIT -> CLIENTS_ONLY -> INVALID_AMOUNT ->
         DEPOSIT_CAP_EXCEEDED -> INSUFFICIENT_BALANCE
      4. Debit source, credit destination
      5. Commit

Invariants enforced:
    NON_NEGATIVE_BALANCE, CONSERVATION -- verify_transfer() on the computed
        balances before they are written.
    PAY_ONCE -- ALREADY_PAID rule under the job row lock, plus the job
        version counter.
    DESIGNATED_PAYER -- job lookup filtered on the contract's client;
        CLIENTS_ONLY rule for deposits.

Failure modes:
    - REJECTED result: a business rule failed.  Nothing was written.
    - STORE_UNAVAILABLE result: the store failed or a concurrent writer won.
      Nothing was written; re-issuing is safe (see RetryPolicy).
    - InvariantViolationError (raised): computed state breaks an invariant.
      Rolled back and logged at CRITICAL.  Indicates a rule defect.
"""

from __future__ import annotations

import time
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, NoReturn
from uuid import uuid4

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import (
    JobSnapshot,
    LedgerOperation,
    LedgerResult,
    ProfileSnapshot,
)
from ledger_kernel.domain.ledger_rules import (
    DEFAULT_DEPOSIT_CAP_RATIO,
    check_deposit,
    check_pay_job,
    is_storable_id,
    job_not_found,
    profile_not_found,
    verify_transfer,
)
from ledger_kernel.exceptions import (
    InvariantViolationError,
    LedgerRejectedError,
    StoreError,
)
from ledger_kernel.invariants import LedgerInvariant
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.contract import ContractStatus
from ledger_kernel.models.profile import Profile
from ledger_kernel.services.account_store import AccountStore, StoreTransaction

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, sessionmaker

    from ledger_config.schema import LedgerSettings

logger = get_logger("services.ledger_engine")


class LedgerEngine:
    """
    Executes ledger operations against an AccountStore.

    Contract:
        Every public operation returns a ``LedgerResult``; business
        rejections and store faults are results, not exceptions.  Only
        ``InvariantViolationError`` escapes.

    Guarantees:
        - Validating -> {Committed | Aborted}.  No partial or retrying state.
        - Balances are re-read inside every transaction; nothing is cached
          between calls.
        - Safe to share across threads: each call opens its own transaction.

    Non-goals:
        - Does NOT resolve caller identity (the request layer does).
        - Does NOT retry (see RetryPolicy).
        - Does NOT format transport responses.
    """

    def __init__(
        self,
        store: AccountStore,
        clock: Clock | None = None,
        deposit_cap_ratio: Decimal = DEFAULT_DEPOSIT_CAP_RATIO,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._deposit_cap_ratio = deposit_cap_ratio

    @classmethod
    def from_settings(
        cls,
        settings: LedgerSettings,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
    ) -> LedgerEngine:
        return cls(
            AccountStore(session_factory),
            clock=clock,
            deposit_cap_ratio=settings.deposit_cap_ratio,
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def pay_job(self, job_id: int, payer_profile_id: int) -> LedgerResult:
        """
        Pay ``job_id`` from the balance of ``payer_profile_id``.

        The payer must be the client on the job's contract; any other payer
        gets NOT_FOUND, exactly as for a job that does not exist.
        """
        return self._run(
            LedgerOperation.PAY_JOB,
            lambda txn, now: self._pay_job(txn, now, job_id, payer_profile_id),
            actor_id=payer_profile_id,
            job_id=job_id,
            extra={"job_id": job_id},
        )

    def deposit(
        self,
        source_profile_id: int,
        dest_profile_id: int,
        amount: int,
    ) -> LedgerResult:
        """Move ``amount`` minor units from one client to another."""
        return self._run(
            LedgerOperation.DEPOSIT,
            lambda txn, now: self._deposit(
                txn, source_profile_id, dest_profile_id, amount
            ),
            actor_id=source_profile_id,
            extra={"dest_profile_id": dest_profile_id, "amount": str(amount)},
        )

    # ------------------------------------------------------------------
    # Operation bodies (run inside the store transaction)
    # ------------------------------------------------------------------

    def _pay_job(
        self,
        txn: StoreTransaction,
        now: datetime,
        job_id: int,
        payer_profile_id: int,
    ) -> None:
        if not (is_storable_id(job_id) and is_storable_id(payer_profile_id)):
            raise LedgerRejectedError(job_not_found())

        row = txn.get_job_with_contract(job_id, client_id=payer_profile_id)
        if row is None:
            raise LedgerRejectedError(job_not_found())
        job, contract = row

        profiles = txn.get_profiles([payer_profile_id, contract.contractor_id])
        client = profiles.get(payer_profile_id)
        contractor = profiles.get(contract.contractor_id)
        if client is None or contractor is None:
            raise LedgerRejectedError(profile_not_found())

        rejection = check_pay_job(
            JobSnapshot.from_model(job, contract),
            ProfileSnapshot.from_model(client),
        )
        if rejection is not None:
            raise LedgerRejectedError(rejection)

        self._transfer(client, contractor, job.price)
        job.paid = True
        job.payment_date = now

        txn.save_profile(client)
        txn.save_profile(contractor)
        txn.save_job(job)

    def _deposit(
        self,
        txn: StoreTransaction,
        source_profile_id: int,
        dest_profile_id: int,
        amount: int,
    ) -> None:
        if not (is_storable_id(source_profile_id) and is_storable_id(dest_profile_id)):
            raise LedgerRejectedError(profile_not_found())

        profiles = txn.get_profiles([source_profile_id, dest_profile_id])
        source = profiles.get(source_profile_id)
        destination = profiles.get(dest_profile_id)
        if source is None or destination is None:
            raise LedgerRejectedError(profile_not_found())

        # Same transaction as the balance check: no stale cap
        outstanding = txn.sum_unpaid_job_prices(
            source_profile_id, ContractStatus.IN_PROGRESS
        )

        rejection = check_deposit(
            ProfileSnapshot.from_model(source),
            ProfileSnapshot.from_model(destination),
            amount,
            outstanding,
            self._deposit_cap_ratio,
        )
        if rejection is not None:
            raise LedgerRejectedError(rejection)

        self._transfer(source, destination, amount)

        txn.save_profile(source)
        txn.save_profile(destination)

    def _transfer(self, payer: Profile, payee: Profile, amount: int) -> None:
        if payer.id == payee.id:
            self._invariant_violated(
                LedgerInvariant.DESIGNATED_PAYER,
                f"profile {payer.id} on both sides of a transfer",
            )

        payer_after = payer.balance - amount
        payee_after = payee.balance + amount
        violated = verify_transfer(
            payer.balance, payee.balance, payer_after, payee_after
        )
        if violated is not None:
            self._invariant_violated(
                violated,
                f"transfer of {amount} from profile {payer.id} "
                f"(balance {payer.balance}) to profile {payee.id} "
                f"(balance {payee.balance})",
            )

        payer.balance = payer_after
        payee.balance = payee_after

    @staticmethod
    def _invariant_violated(invariant: LedgerInvariant, detail: str) -> NoReturn:
        logger.critical(
            "ledger_invariant_violated",
            extra={"invariant": invariant.value, "detail": detail},
        )
        raise InvariantViolationError(invariant.value, detail)

    # ------------------------------------------------------------------
    # Operation boundary
    # ------------------------------------------------------------------

    def _run(
        self,
        operation: LedgerOperation,
        body: Callable[[StoreTransaction, datetime], None],
        actor_id: int,
        job_id: int | None = None,
        extra: dict[str, Any] | None = None,
    ) -> LedgerResult:
        op = operation.value
        with LogContext.bind(
            correlation_id=str(uuid4()),
            actor_id=str(actor_id),
            operation=op,
            job_id=str(job_id) if job_id is not None else None,
        ):
            logger.info(f"{op}_started", extra=extra or {})
            t0 = time.monotonic()
            now = self._clock.now()

            try:
                with self._store.transaction() as txn:
                    body(txn, now)
            except LedgerRejectedError as exc:
                logger.info(
                    f"{op}_rejected",
                    extra={
                        "reason": exc.reason.value,
                        "duration_ms": _elapsed_ms(t0),
                    },
                )
                return LedgerResult.rejected(operation, exc.rejection)
            except StoreError as exc:
                logger.warning(
                    "store_fault",
                    extra={"error_code": exc.code, "duration_ms": _elapsed_ms(t0)},
                    exc_info=True,
                )
                return LedgerResult.store_unavailable(operation, exc.code, str(exc))

            logger.info(f"{op}_committed", extra={"duration_ms": _elapsed_ms(t0)})
            return LedgerResult.committed(operation, now)


def _elapsed_ms(t0: float) -> float:
    return round((time.monotonic() - t0) * 1000, 2)
