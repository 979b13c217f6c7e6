"""
AccountStore -- transactional access to profiles, contracts and jobs.

Responsibility:
    Owns the transaction boundary for one ledger operation.  Hands the
    LedgerEngine a ``StoreTransaction`` with the row loads, the unpaid-job
    aggregate and the save calls it needs, and guarantees commit-or-rollback
    on every exit path.

Architecture position:
    Kernel > Services -- imperative shell.  The only place that turns
    SQLAlchemy failures into kernel ``StoreError`` types.  Constructed from
    an explicit session factory (dependency injection); there is no global
    session.

Invariants enforced:
    - Atomicity: ``transaction()`` commits only on normal exit of the block.
      Any exception (business rejection included) rolls back first.
    - Row serialization: job and profile loads take row locks
      (SELECT ... FOR UPDATE; a no-op on SQLite).  Profiles are locked in
      ascending id order so opposing transfers cannot deadlock.
    - Lost-update detection: Profile and Job carry SQLAlchemy version
      counters.  A flush against a stale version raises StaleDataError,
      surfaced as ConcurrencyConflictError.
    - No caching: every transaction uses a fresh session and loads rows with
      ``populate_existing``.

Failure modes:
    - ConcurrencyConflictError: version counter mismatch at flush/commit.
    - StoreUnavailableError: OperationalError (connection loss, lock or
      statement timeout, deadlock, serialization failure), InterfaceError,
      or connection pool timeout.
    - InvariantViolationError: a database constraint (non-negative balance,
      positive price) rejected the write.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, Iterator

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from ledger_kernel.exceptions import (
    ConcurrencyConflictError,
    InvariantViolationError,
    StoreUnavailableError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.contract import Contract, ContractStatus
from ledger_kernel.models.job import Job
from ledger_kernel.models.profile import Profile

logger = get_logger("services.account_store")


class StoreTransaction:
    """
    Row access inside one open store transaction.

    Contract:
        Valid only inside the ``AccountStore.transaction()`` block that
        produced it.  Saves flush immediately so that version conflicts and
        constraint violations surface inside the block.

    Non-goals:
        - Does NOT commit or roll back; the owning AccountStore does.
        - Does NOT validate business rules (see domain.ledger_rules).
    """

    def __init__(self, session: Session, lock_rows: bool = True):
        self.session = session
        self._lock_rows = lock_rows

    def get_profile(self, profile_id: int) -> Profile | None:
        """Load one profile under a row lock, or None."""
        return self.get_profiles([profile_id]).get(profile_id)

    def get_profiles(self, profile_ids: Iterable[int]) -> dict[int, Profile]:
        """
        Load profiles by id under row locks, acquired in ascending id order.

        Missing ids are absent from the returned mapping.
        """
        ids = sorted(set(profile_ids))
        stmt = select(Profile).where(Profile.id.in_(ids)).order_by(Profile.id)
        if self._lock_rows:
            stmt = stmt.with_for_update()
        rows = self.session.execute(
            stmt.execution_options(populate_existing=True)
        ).scalars()
        return {profile.id: profile for profile in rows}

    def get_job_with_contract(
        self,
        job_id: int,
        client_id: int,
    ) -> tuple[Job, Contract] | None:
        """
        Load a job and its contract, visible only to the contract's client.

        Returns None both when the job does not exist and when it belongs to
        another client's contract.
        """
        stmt = (
            select(Job, Contract)
            .join(Contract, Job.contract_id == Contract.id)
            .where(Job.id == job_id, Contract.client_id == client_id)
        )
        if self._lock_rows:
            stmt = stmt.with_for_update(of=Job)
        row = self.session.execute(
            stmt.execution_options(populate_existing=True)
        ).first()
        if row is None:
            return None
        return row[0], row[1]

    def sum_unpaid_job_prices(
        self,
        client_id: int,
        contract_status: ContractStatus = ContractStatus.IN_PROGRESS,
    ) -> int:
        """Sum of prices of jobs not yet paid on the client's contracts in a status."""
        stmt = (
            select(func.coalesce(func.sum(Job.price), 0))
            .join(Contract, Job.contract_id == Contract.id)
            .where(
                Contract.client_id == client_id,
                Contract.status == contract_status.value,
                Job.paid.is_not(True),
            )
        )
        return int(self.session.execute(stmt).scalar_one())

    def save_profile(self, profile: Profile) -> None:
        self.session.add(profile)
        self.session.flush()

    def save_job(self, job: Job) -> None:
        self.session.add(job)
        self.session.flush()


class AccountStore:
    """
    Factory of scoped ledger transactions.

    Contract:
        ``with store.transaction() as txn:`` opens a new session, yields a
        StoreTransaction, commits on normal exit, rolls back on any
        exception, and always closes the session.  SQLAlchemy failures are
        re-raised as kernel StoreError / InvariantViolationError types.

    Guarantees:
        - No partial effects: a block that raises leaves every row untouched.
        - Thread-safe: each call uses its own session from the factory.
    """

    def __init__(self, session_factory: sessionmaker[Session], lock_rows: bool = True):
        self._session_factory = session_factory
        self._lock_rows = lock_rows

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        session = self._session_factory()
        try:
            yield StoreTransaction(session, lock_rows=self._lock_rows)
            session.commit()
        except StaleDataError as exc:
            self._rollback(session)
            logger.warning("store_conflict", extra={"detail": str(exc)})
            raise ConcurrencyConflictError(str(exc)) from exc
        except IntegrityError as exc:
            self._rollback(session)
            logger.critical(
                "store_constraint_violated", extra={"detail": str(exc.orig)}
            )
            raise InvariantViolationError("database_constraint", str(exc.orig)) from exc
        except (OperationalError, InterfaceError, PoolTimeoutError) as exc:
            self._rollback(session)
            detail = str(getattr(exc, "orig", None) or exc)
            logger.warning("store_unavailable", extra={"detail": detail})
            raise StoreUnavailableError(detail) from exc
        except BaseException:
            self._rollback(session)
            raise
        finally:
            session.close()

    @staticmethod
    def _rollback(session: Session) -> None:
        # The original failure is what the caller needs; a rollback on a dead
        # connection must not replace it.
        try:
            session.rollback()
        except (OperationalError, InterfaceError):
            logger.warning("transaction_rollback_failed", exc_info=True)
        else:
            logger.debug("transaction_rolled_back")
