"""
Ledger rules -- pure validation for money movement.

Responsibility:
    Decides, from snapshots of the involved records, whether a PayJob or a
    Deposit may proceed.  Returns the first failed rule as a ``Rejection`` or
    ``None`` when the operation may commit.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Called by
    LedgerEngine inside the store transaction, after all rows are loaded and
    before any row is mutated.

Invariants enforced:
    - First-applicable rule wins.  The order is a fixed contract because
      callers key on the specific reason when several rules fail at once:
        PayJob:  already paid -> contract not active -> insufficient balance
        Deposit: self deposit -> clients only -> invalid amount ->
                 cap exceeded -> insufficient balance
    - Deposit cap: amount <= outstanding unpaid job total * cap ratio.  With
      nothing outstanding the cap is zero, so every positive deposit fails.
    - verify_transfer() re-checks NON_NEGATIVE_BALANCE and CONSERVATION on the
      computed post-transfer balances.
"""

from __future__ import annotations

from decimal import Decimal

from ledger_kernel.domain.dtos import (
    ContractStatus,
    JobSnapshot,
    ProfileSnapshot,
    ProfileType,
    Rejection,
    RejectionReason,
)
from ledger_kernel.invariants import LedgerInvariant

DEFAULT_DEPOSIT_CAP_RATIO = Decimal("0.25")

# Primary keys are signed 64-bit on both SQLite and PostgreSQL
MAX_STORABLE_ID = 2**63 - 1

MSG_JOB_NOT_FOUND = "Job not found"
MSG_PROFILE_NOT_FOUND = "Profile not found"
MSG_ALREADY_PAID = "Job is already paid"
MSG_CONTRACT_NOT_ACTIVE = "Contract is not active"
MSG_JOB_BALANCE = "Balance is not enough to pay for the job"
MSG_SELF_DEPOSIT = "User cannot deposit itself"
MSG_CLIENTS_ONLY = "Only clients can send/receive deposit"
MSG_INVALID_AMOUNT = "Deposit amount must be a positive integer"
MSG_DEPOSIT_BALANCE = "Not enough balance"


def job_not_found() -> Rejection:
    return Rejection(RejectionReason.NOT_FOUND, MSG_JOB_NOT_FOUND)


def profile_not_found() -> Rejection:
    return Rejection(RejectionReason.NOT_FOUND, MSG_PROFILE_NOT_FOUND)


def is_storable_id(value: object) -> bool:
    """True if ``value`` fits the key column. Anything else cannot name a row."""
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and -MAX_STORABLE_ID - 1 <= value <= MAX_STORABLE_ID
    )


def check_pay_job(job: JobSnapshot, client: ProfileSnapshot) -> Rejection | None:
    """
    Validate paying ``job`` from ``client``'s balance.

    The caller has already established that ``client`` is the contract's
    client (the job lookup is filtered on it).
    """
    if job.paid:
        return Rejection(RejectionReason.ALREADY_PAID, MSG_ALREADY_PAID)

    if job.contract_status != ContractStatus.IN_PROGRESS:
        return Rejection(RejectionReason.CONTRACT_NOT_ACTIVE, MSG_CONTRACT_NOT_ACTIVE)

    if client.balance < job.price:
        return Rejection(RejectionReason.INSUFFICIENT_BALANCE, MSG_JOB_BALANCE)

    return None


def is_valid_amount(amount: object) -> bool:
    """Deposits move whole minor units; bools are not amounts."""
    return isinstance(amount, int) and not isinstance(amount, bool) and amount > 0


def deposit_cap(outstanding: int | None, cap_ratio: Decimal = DEFAULT_DEPOSIT_CAP_RATIO) -> Decimal:
    """Largest deposit allowed for a client with ``outstanding`` unpaid jobs."""
    return Decimal(outstanding or 0) * cap_ratio


def cap_exceeded_message(cap_ratio: Decimal) -> str:
    percent = format((cap_ratio * 100).normalize(), "f")
    return f"Deposit cannot be above {percent}% of total of jobs to pay"


def check_deposit(
    source: ProfileSnapshot,
    destination: ProfileSnapshot,
    amount: object,
    outstanding: int | None,
    cap_ratio: Decimal = DEFAULT_DEPOSIT_CAP_RATIO,
) -> Rejection | None:
    """
    Validate moving ``amount`` from ``source`` to ``destination``.

    Args:
        source: The depositing client.
        destination: The receiving profile.
        amount: Requested amount in minor units.
        outstanding: Sum of unpaid job prices on the source's in-progress
            contracts, read in the same transaction.  None means no rows.
        cap_ratio: Fraction of ``outstanding`` a single deposit may move.
    """
    if source.id == destination.id:
        return Rejection(RejectionReason.SELF_DEPOSIT, MSG_SELF_DEPOSIT)

    if source.type != ProfileType.CLIENT or destination.type != ProfileType.CLIENT:
        return Rejection(RejectionReason.CLIENTS_ONLY, MSG_CLIENTS_ONLY)

    if not is_valid_amount(amount):
        return Rejection(RejectionReason.INVALID_AMOUNT, MSG_INVALID_AMOUNT)

    if Decimal(amount) > deposit_cap(outstanding, cap_ratio):
        return Rejection(
            RejectionReason.DEPOSIT_CAP_EXCEEDED, cap_exceeded_message(cap_ratio)
        )

    if amount > source.balance:
        return Rejection(RejectionReason.INSUFFICIENT_BALANCE, MSG_DEPOSIT_BALANCE)

    return None


def verify_transfer(
    payer_before: int,
    payee_before: int,
    payer_after: int,
    payee_after: int,
) -> LedgerInvariant | None:
    """Return the first invariant a computed transfer would break, if any."""
    if payer_after < 0 or payee_after < 0:
        return LedgerInvariant.NON_NEGATIVE_BALANCE
    if payer_before + payee_before != payer_after + payee_after:
        return LedgerInvariant.CONSERVATION
    return None
