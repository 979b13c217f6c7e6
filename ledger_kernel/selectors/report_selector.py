"""
Module: ledger_kernel.selectors.report_selector
Responsibility: Read-only earnings and spending aggregations over paid jobs.
Architecture position: Kernel > Selectors.  Shares tables with the
    LedgerEngine but never takes locks or writes.

Invariants enforced:
    - Only paid jobs count, bucketed by payment_date.
    - Date ranges are whole days, both ends inclusive, in UTC:
      [start 00:00, end + 1 day 00:00).
    - Results are deterministic: ties are broken by profession / profile id.

Failure modes:
    - InvalidDateRangeError when start is after end.
    - InvalidReportLimitError when limit < 1.
"""

from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import func, select

from ledger_kernel.domain.dtos import ClientSpend, ProfessionEarnings
from ledger_kernel.exceptions import InvalidDateRangeError, InvalidReportLimitError
from ledger_kernel.models.contract import Contract
from ledger_kernel.models.job import Job
from ledger_kernel.models.profile import Profile, ProfileType
from ledger_kernel.selectors.base import BaseSelector

DEFAULT_BEST_CLIENTS_LIMIT = 2


def _window(start: date, end: date) -> tuple[datetime, datetime]:
    if start > end:
        raise InvalidDateRangeError(start.isoformat(), end.isoformat())
    lower = datetime.combine(start, time.min, tzinfo=timezone.utc)
    upper = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return lower, upper


class ReportSelector(BaseSelector):
    """Selector for admin reports."""

    def best_profession(self, start: date, end: date) -> ProfessionEarnings | None:
        """Contractor profession that earned the most in the range, or None."""
        lower, upper = _window(start, end)
        total = func.sum(Job.price)
        stmt = (
            select(Profile.profession, total.label("total_earnings"))
            .join(Contract, Contract.contractor_id == Profile.id)
            .join(Job, Job.contract_id == Contract.id)
            .where(
                Profile.type == ProfileType.CONTRACTOR.value,
                Job.paid.is_(True),
                Job.payment_date >= lower,
                Job.payment_date < upper,
            )
            .group_by(Profile.profession)
            .order_by(total.desc(), Profile.profession)
            .limit(1)
        )
        row = self.session.execute(stmt).first()
        if row is None:
            return None
        return ProfessionEarnings(
            profession=row.profession,
            total_earnings=int(row.total_earnings or 0),
        )

    def best_clients(
        self,
        start: date,
        end: date,
        limit: int = DEFAULT_BEST_CLIENTS_LIMIT,
    ) -> list[ClientSpend]:
        """Clients who paid the most for jobs in the range, highest first."""
        if limit < 1:
            raise InvalidReportLimitError(limit)
        lower, upper = _window(start, end)
        total = func.sum(Job.price)
        stmt = (
            select(
                Profile.id,
                Profile.first_name,
                Profile.last_name,
                total.label("paid"),
            )
            .join(Contract, Contract.client_id == Profile.id)
            .join(Job, Job.contract_id == Contract.id)
            .where(
                Profile.type == ProfileType.CLIENT.value,
                Job.paid.is_(True),
                Job.payment_date >= lower,
                Job.payment_date < upper,
            )
            .group_by(Profile.id, Profile.first_name, Profile.last_name)
            .order_by(total.desc(), Profile.id)
            .limit(limit)
        )
        return [
            ClientSpend(
                id=row.id,
                full_name=f"{row.first_name} {row.last_name}",
                paid=int(row.paid or 0),
            )
            for row in self.session.execute(stmt)
        ]
