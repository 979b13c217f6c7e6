"""
Module: ledger_kernel.models.job
Responsibility: ORM persistence for billable jobs under a contract and their
    paid/unpaid state.
Architecture position: Kernel > Models.  May import from db/ and sibling
    models only.

Invariants enforced:
    PAY_ONCE -- paid flips from unpaid to true exactly once, written only by
           LedgerEngine together with payment_date.  ``paid`` is nullable:
           NULL and false both mean unpaid, so queries test ``IS NOT true``.
    Lost updates -- version_id is the SQLAlchemy version counter.
    Positive price -- ck_job_price_positive.
"""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import Base
from ledger_kernel.db.types import LongText, Money
from ledger_kernel.models.contract import Contract


class Job(Base):
    """A unit of billable work under a contract."""

    __tablename__ = "jobs"

    __table_args__ = (
        CheckConstraint("price > 0", name="ck_job_price_positive"),
        Index("idx_job_contract", "contract_id"),
        Index("idx_job_payment_date", "payment_date"),
    )

    description: Mapped[str] = mapped_column(LongText, nullable=False, default="")

    price: Mapped[int] = mapped_column(Money, nullable=False)

    paid: Mapped[bool | None] = mapped_column(
        Boolean,
        nullable=True,
        default=False,
    )

    payment_date: Mapped[datetime | None] = mapped_column(nullable=True)

    contract_id: Mapped[int] = mapped_column(
        ForeignKey("contracts.id"),
        nullable=False,
    )

    contract: Mapped[Contract] = relationship()

    version_id: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_paid(self) -> bool:
        return self.paid is True

    def __repr__(self) -> str:
        return f"<Job {self.id} price={self.price} paid={self.paid}>"
