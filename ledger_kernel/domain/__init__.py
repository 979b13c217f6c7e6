"""Pure domain layer: DTOs, clock and ledger validation rules."""

from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.dtos import (
    CallerProfile,
    ClientSpend,
    ContractInfo,
    ContractStatus,
    JobInfo,
    JobSnapshot,
    LedgerOperation,
    LedgerResult,
    LedgerStatus,
    ProfessionEarnings,
    ProfileInfo,
    ProfileSnapshot,
    ProfileType,
    Rejection,
    RejectionReason,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "CallerProfile",
    "ClientSpend",
    "ContractInfo",
    "ContractStatus",
    "JobInfo",
    "JobSnapshot",
    "LedgerOperation",
    "LedgerResult",
    "LedgerStatus",
    "ProfessionEarnings",
    "ProfileInfo",
    "ProfileSnapshot",
    "ProfileType",
    "Rejection",
    "RejectionReason",
]
