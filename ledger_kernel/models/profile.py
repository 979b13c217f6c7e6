"""
Module: ledger_kernel.models.profile
Responsibility: ORM persistence for marketplace profiles (clients and
    contractors) and their money balances.
Architecture position: Kernel > Models.  May import from db/ only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    NON_NEGATIVE_BALANCE -- ck_profile_balance_non_negative rejects any
           write that would store a negative balance.
    Sole writer -- balance is written only by LedgerEngine.  Onboarding
           (external) creates the row.
    Lost updates -- version_id is the SQLAlchemy version counter; an UPDATE
           against a stale version matches no row and raises StaleDataError.

Failure modes:
    - IntegrityError on a negative balance (DB check constraint).
    - StaleDataError when a concurrent transaction already updated the row.
"""

from enum import Enum

from sqlalchemy import CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base
from ledger_kernel.db.types import Money, Name, StatusCode


class ProfileType(str, Enum):
    """Classification of marketplace profiles."""

    CLIENT = "client"  # hires and pays for jobs
    CONTRACTOR = "contractor"  # performs jobs and receives payment


class Profile(Base):
    """
    A marketplace participant with a money balance.

    Guarantees:
        - balance >= 0 (ck_profile_balance_non_negative).
        - type is set at onboarding and never changed by the kernel.
        - version_id increments on every UPDATE.
    """

    __tablename__ = "profiles"

    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_profile_balance_non_negative"),
        Index("idx_profile_type", "type"),
    )

    first_name: Mapped[str] = mapped_column(Name, nullable=False)
    last_name: Mapped[str] = mapped_column(Name, nullable=False)
    profession: Mapped[str] = mapped_column(Name, nullable=False)

    type: Mapped[ProfileType] = mapped_column(
        StatusCode,
        nullable=False,
    )

    balance: Mapped[int] = mapped_column(
        Money,
        nullable=False,
        default=0,
    )

    version_id: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Profile {self.id} {self.type} balance={self.balance}>"
