"""Domain models for the ledger kernel."""

from ledger_kernel.models.contract import Contract, ContractStatus
from ledger_kernel.models.job import Job
from ledger_kernel.models.profile import Profile, ProfileType

__all__ = [
    "Profile",
    "ProfileType",
    "Contract",
    "ContractStatus",
    "Job",
]
