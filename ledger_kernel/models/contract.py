"""
Module: ledger_kernel.models.contract
Responsibility: ORM persistence for contracts binding one client profile to
    one contractor profile.
Architecture position: Kernel > Models.  May import from db/ and sibling
    models only.

Invariants enforced:
    Read-only to the kernel -- status transitions (new -> in_progress ->
           terminated) happen outside the ledger.  LedgerEngine only reads
           status to gate job payment and the deposit cap.
"""

from enum import Enum

from sqlalchemy import ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import Base
from ledger_kernel.db.types import LongText, StatusCode
from ledger_kernel.models.profile import Profile


class ContractStatus(str, Enum):
    """Contract lifecycle status."""

    NEW = "new"
    IN_PROGRESS = "in_progress"  # the only status under which jobs are paid
    TERMINATED = "terminated"


class Contract(Base):
    """Agreement between a client and a contractor."""

    __tablename__ = "contracts"

    __table_args__ = (
        Index("idx_contract_client_status", "client_id", "status"),
        Index("idx_contract_contractor", "contractor_id"),
    )

    terms: Mapped[str] = mapped_column(LongText, nullable=False, default="")

    status: Mapped[ContractStatus] = mapped_column(
        StatusCode,
        nullable=False,
        default=ContractStatus.NEW,
    )

    client_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
    )

    contractor_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
    )

    client: Mapped[Profile] = relationship(foreign_keys=[client_id])
    contractor: Mapped[Profile] = relationship(foreign_keys=[contractor_id])

    def __repr__(self) -> str:
        return f"<Contract {self.id} {self.status} client={self.client_id}>"
