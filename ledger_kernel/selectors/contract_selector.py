"""
Module: ledger_kernel.selectors.contract_selector
Responsibility: Read-only contract and job listings scoped to one profile.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - A profile only sees contracts where it is the client or the
      contractor.  Anything else reads as absent.
    - ``paid`` is tri-state in storage (NULL, false, true); unpaid means
      ``IS NOT true``.
"""

from sqlalchemy import or_, select

from ledger_kernel.domain.dtos import ContractInfo, JobInfo
from ledger_kernel.domain.ledger_rules import is_storable_id
from ledger_kernel.models.contract import Contract, ContractStatus
from ledger_kernel.models.job import Job
from ledger_kernel.selectors.base import BaseSelector


def _party_to(profile_id: int):
    return or_(Contract.client_id == profile_id, Contract.contractor_id == profile_id)


class ContractSelector(BaseSelector):
    """Selector for contracts and jobs visible to a profile."""

    def get_contract(self, contract_id: int, profile_id: int) -> ContractInfo | None:
        """The contract, if ``profile_id`` is one of its two parties."""
        if not (is_storable_id(contract_id) and is_storable_id(profile_id)):
            return None
        stmt = select(Contract).where(
            Contract.id == contract_id,
            _party_to(profile_id),
        )
        contract = self.session.execute(stmt).scalar_one_or_none()
        return ContractInfo.from_model(contract) if contract else None

    def list_contracts(self, profile_id: int) -> list[ContractInfo]:
        """Non-terminated contracts of the profile, ordered by id."""
        stmt = (
            select(Contract)
            .where(
                Contract.status != ContractStatus.TERMINATED.value,
                _party_to(profile_id),
            )
            .order_by(Contract.id)
        )
        return [ContractInfo.from_model(c) for c in self.session.execute(stmt).scalars()]

    def list_unpaid_jobs(self, profile_id: int) -> list[JobInfo]:
        """Unpaid jobs on the profile's in-progress contracts, ordered by id."""
        stmt = (
            select(Job)
            .join(Contract, Job.contract_id == Contract.id)
            .where(
                Job.paid.is_not(True),
                Contract.status == ContractStatus.IN_PROGRESS.value,
                _party_to(profile_id),
            )
            .order_by(Job.id)
        )
        return [JobInfo.from_model(j) for j in self.session.execute(stmt).scalars()]
