"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that flow through the ledger:
    record snapshots handed to the validation rules (ProfileSnapshot,
    JobSnapshot), the caller identity (CallerProfile), rejection reasons
    (Rejection) and the operation outcome (LedgerResult).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies.  from_model() class methods exist as boundary
    converters but are only invoked from the service and selector layers.

Invariants enforced:
    Domain logic accepts/returns DTOs, never ORM entities.  Validation rules
    therefore cannot mutate rows, which keeps "validate, then mutate" honest.

Data flow:
    ORM rows -> *Snapshot -> ledger_rules -> Rejection | None -> LedgerResult
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ledger_kernel.models.contract import Contract as ContractModel
    from ledger_kernel.models.job import Job as JobModel
    from ledger_kernel.models.profile import Profile as ProfileModel


class ProfileType(str, Enum):
    """Profile classification (domain mirror of the ORM enum)."""

    CLIENT = "client"
    CONTRACTOR = "contractor"


class ContractStatus(str, Enum):
    """Contract status (domain mirror of the ORM enum)."""

    NEW = "new"
    IN_PROGRESS = "in_progress"
    TERMINATED = "terminated"


class RejectionReason(str, Enum):
    """Stable machine-readable reasons an operation did not commit."""

    NOT_FOUND = "not_found"
    ALREADY_PAID = "already_paid"
    CONTRACT_NOT_ACTIVE = "contract_not_active"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    SELF_DEPOSIT = "self_deposit"
    CLIENTS_ONLY = "clients_only"
    INVALID_AMOUNT = "invalid_amount"
    DEPOSIT_CAP_EXCEEDED = "deposit_cap_exceeded"
    STORE_UNAVAILABLE = "store_unavailable"


class LedgerOperation(str, Enum):
    PAY_JOB = "pay_job"
    DEPOSIT = "deposit"


class LedgerStatus(str, Enum):
    """Terminal state of one ledger operation."""

    COMMITTED = "committed"
    REJECTED = "rejected"
    STORE_UNAVAILABLE = "store_unavailable"


# =============================================================================
# Identity
# =============================================================================


@dataclass(frozen=True)
class CallerProfile:
    """Caller identity as resolved by the request layer."""

    id: int
    type: ProfileType


# =============================================================================
# Snapshots (validation inputs)
# =============================================================================


@dataclass(frozen=True)
class ProfileSnapshot:
    """Balance-relevant view of a Profile row inside a transaction."""

    id: int
    type: ProfileType
    balance: int

    @classmethod
    def from_model(cls, model: ProfileModel) -> ProfileSnapshot:
        return cls(
            id=model.id,
            type=ProfileType(model.type),
            balance=model.balance,
        )


@dataclass(frozen=True)
class JobSnapshot:
    """A Job together with the fields of its Contract that gate payment."""

    id: int
    price: int
    paid: bool
    contract_id: int
    contract_status: ContractStatus
    client_id: int
    contractor_id: int

    @classmethod
    def from_model(cls, job: JobModel, contract: ContractModel) -> JobSnapshot:
        """Create a JobSnapshot from a Job row and its Contract row."""
        return cls(
            id=job.id,
            price=job.price,
            paid=job.is_paid,
            contract_id=contract.id,
            contract_status=ContractStatus(contract.status),
            client_id=contract.client_id,
            contractor_id=contract.contractor_id,
        )


# =============================================================================
# Outcomes
# =============================================================================


@dataclass(frozen=True)
class Rejection:
    """First failed rule: a reason code plus a human-readable message."""

    reason: RejectionReason
    message: str


# Transport mapping for request layers; the kernel itself never uses it.
_HTTP_STATUS_BY_STATUS = {
    LedgerStatus.COMMITTED: 200,
    LedgerStatus.REJECTED: 400,
    LedgerStatus.STORE_UNAVAILABLE: 503,
}


@dataclass(frozen=True)
class LedgerResult:
    """Result of a PayJob or Deposit operation."""

    operation: LedgerOperation
    status: LedgerStatus
    reason: RejectionReason | None = None
    message: str | None = None
    error_code: str | None = None
    committed_at: datetime | None = None

    @classmethod
    def committed(
        cls, operation: LedgerOperation, committed_at: datetime
    ) -> LedgerResult:
        return cls(
            operation=operation,
            status=LedgerStatus.COMMITTED,
            committed_at=committed_at,
        )

    @classmethod
    def rejected(cls, operation: LedgerOperation, rejection: Rejection) -> LedgerResult:
        return cls(
            operation=operation,
            status=LedgerStatus.REJECTED,
            reason=rejection.reason,
            message=rejection.message,
            error_code="LEDGER_REJECTED",
        )

    @classmethod
    def store_unavailable(
        cls, operation: LedgerOperation, error_code: str, message: str
    ) -> LedgerResult:
        return cls(
            operation=operation,
            status=LedgerStatus.STORE_UNAVAILABLE,
            reason=RejectionReason.STORE_UNAVAILABLE,
            message=message,
            error_code=error_code,
        )

    @property
    def is_success(self) -> bool:
        return self.status == LedgerStatus.COMMITTED

    @property
    def is_retryable(self) -> bool:
        """Store faults are not committed, so re-issuing is safe."""
        return self.status == LedgerStatus.STORE_UNAVAILABLE

    @property
    def http_status(self) -> int:
        if self.reason == RejectionReason.NOT_FOUND:
            return 404
        return _HTTP_STATUS_BY_STATUS[self.status]

    def to_dict(self) -> dict[str, str | None]:
        return {
            "operation": self.operation.value,
            "status": self.status.value,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
            "error_code": self.error_code,
        }


# =============================================================================
# Read-side DTOs
# =============================================================================


@dataclass(frozen=True)
class ProfileInfo:
    """Immutable DTO for profile data."""

    id: int
    first_name: str
    last_name: str
    profession: str
    type: ProfileType
    balance: int

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @classmethod
    def from_model(cls, model: ProfileModel) -> ProfileInfo:
        return cls(
            id=model.id,
            first_name=model.first_name,
            last_name=model.last_name,
            profession=model.profession,
            type=ProfileType(model.type),
            balance=model.balance,
        )


@dataclass(frozen=True)
class ContractInfo:
    """Immutable DTO for contract data."""

    id: int
    terms: str
    status: ContractStatus
    client_id: int
    contractor_id: int

    @classmethod
    def from_model(cls, model: ContractModel) -> ContractInfo:
        return cls(
            id=model.id,
            terms=model.terms,
            status=ContractStatus(model.status),
            client_id=model.client_id,
            contractor_id=model.contractor_id,
        )


@dataclass(frozen=True)
class JobInfo:
    """Immutable DTO for job data."""

    id: int
    description: str
    price: int
    paid: bool
    payment_date: datetime | None
    contract_id: int

    @classmethod
    def from_model(cls, model: JobModel) -> JobInfo:
        return cls(
            id=model.id,
            description=model.description,
            price=model.price,
            paid=model.is_paid,
            payment_date=model.payment_date,
            contract_id=model.contract_id,
        )


@dataclass(frozen=True)
class ProfessionEarnings:
    """Best-paid profession report row."""

    profession: str
    total_earnings: int


@dataclass(frozen=True)
class ClientSpend:
    """Top-paying client report row."""

    id: int
    full_name: str
    paid: int
