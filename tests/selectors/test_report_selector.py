"""
Tests for ReportSelector (best profession, best clients).

Date ranges are whole UTC days, inclusive at both ends.
"""

from datetime import date, datetime, timezone

import pytest

from ledger_kernel.exceptions import InvalidDateRangeError, InvalidReportLimitError
from ledger_kernel.selectors.report_selector import ReportSelector
from tests.factories import make_client, make_contract, make_contractor, make_job


def _at(day: int, hour: int = 12) -> datetime:
    return datetime(2020, 8, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def history(session):
    harry = make_client(session, first_name="Harry", last_name="Potter")
    mr = make_client(session, first_name="Mr", last_name="Robot")
    ash = make_client(session, first_name="Ash", last_name="Kethcum")
    linus = make_contractor(session, profession="Programmer")
    alan = make_contractor(session, first_name="Alan", last_name="Turing", profession="Programmer")
    john = make_contractor(session, first_name="John", last_name="Lenon", profession="Musician")

    h_prog = make_contract(session, harry, linus)
    m_music = make_contract(session, mr, john)
    a_prog = make_contract(session, ash, alan)

    make_job(session, h_prog, price=200, paid=True, payment_date=_at(10))
    make_job(session, h_prog, price=100, paid=True, payment_date=_at(15))
    make_job(session, m_music, price=250, paid=True, payment_date=_at(15))
    make_job(session, a_prog, price=121, paid=True, payment_date=_at(20, hour=23))
    # Unpaid and out-of-range jobs never count
    make_job(session, m_music, price=9999)
    make_job(session, m_music, price=5000, paid=True, payment_date=_at(25))
    session.commit()
    return {"harry": harry, "mr": mr, "ash": ash}


class TestBestProfession:

    def test_highest_earning_profession(self, session, history):
        best = ReportSelector(session).best_profession(date(2020, 8, 1), date(2020, 8, 24))
        assert best.profession == "Programmer"
        assert best.total_earnings == 421

    def test_end_day_is_inclusive(self, session, history):
        best = ReportSelector(session).best_profession(date(2020, 8, 16), date(2020, 8, 20))
        # Paid at 23:00 on the 20th
        assert best.profession == "Programmer"
        assert best.total_earnings == 121

    def test_single_day(self, session, history):
        best = ReportSelector(session).best_profession(date(2020, 8, 15), date(2020, 8, 15))
        assert best.profession == "Musician"
        assert best.total_earnings == 250

    def test_empty_range(self, session, history):
        assert ReportSelector(session).best_profession(date(2021, 1, 1), date(2021, 1, 2)) is None

    def test_inverted_range(self, session):
        with pytest.raises(InvalidDateRangeError):
            ReportSelector(session).best_profession(date(2020, 8, 2), date(2020, 8, 1))


class TestBestClients:

    def test_default_limit_is_two(self, session, history):
        rows = ReportSelector(session).best_clients(date(2020, 8, 1), date(2020, 8, 24))
        assert [(r.full_name, r.paid) for r in rows] == [
            ("Harry Potter", 300),
            ("Mr Robot", 250),
        ]

    def test_custom_limit(self, session, history):
        rows = ReportSelector(session).best_clients(
            date(2020, 8, 1), date(2020, 8, 24), limit=5
        )
        assert [r.id for r in rows] == [
            history["harry"].id,
            history["mr"].id,
            history["ash"].id,
        ]

    def test_ties_broken_by_id(self, session):
        first = make_client(session, first_name="A", last_name="One")
        second = make_client(session, first_name="B", last_name="Two")
        contractor = make_contractor(session)
        for client in (second, first):
            make_job(
                session,
                make_contract(session, client, contractor),
                price=100,
                paid=True,
                payment_date=_at(1),
            )
        session.commit()

        rows = ReportSelector(session).best_clients(date(2020, 8, 1), date(2020, 8, 1))

        assert [r.id for r in rows] == [first.id, second.id]

    @pytest.mark.parametrize("limit", [0, -1])
    def test_invalid_limit(self, session, limit):
        with pytest.raises(InvalidReportLimitError):
            ReportSelector(session).best_clients(date(2020, 8, 1), date(2020, 8, 2), limit)


class TestReportsOverLedgerPayments:
    """Payments stamped by the ledger clock land in the right UTC day."""

    def test_payment_date_follows_clock(self, session, ledger, deterministic_clock):
        harry = make_client(session, balance=500, first_name="Harry", last_name="Potter")
        mr = make_client(session, balance=500, first_name="Mr", last_name="Robot")
        linus = make_contractor(session, profession="Programmer")
        john = make_contractor(
            session, first_name="John", last_name="Lenon", profession="Musician"
        )
        code = make_job(session, make_contract(session, harry, linus), price=100)
        song = make_job(session, make_contract(session, mr, john), price=300)
        session.commit()

        deterministic_clock.set_time(_at(10, hour=23).replace(minute=59, second=59))
        assert ledger.pay_job(code.id, harry.id).is_success
        deterministic_clock.advance(1)
        assert ledger.pay_job(song.id, mr.id).is_success

        session.expire_all()
        selector = ReportSelector(session)
        first_day = selector.best_profession(date(2020, 8, 10), date(2020, 8, 10))
        second_day = selector.best_profession(date(2020, 8, 11), date(2020, 8, 11))
        both = selector.best_clients(date(2020, 8, 10), date(2020, 8, 11))

        assert (first_day.profession, first_day.total_earnings) == ("Programmer", 100)
        assert (second_day.profession, second_day.total_earnings) == ("Musician", 300)
        assert [(r.full_name, r.paid) for r in both] == [
            ("Mr Robot", 300),
            ("Harry Potter", 100),
        ]
