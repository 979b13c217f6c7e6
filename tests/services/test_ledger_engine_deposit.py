"""
Tests for LedgerEngine.deposit.

The cap is 25% of the source client's unpaid jobs on in-progress contracts,
recomputed inside the deposit's own transaction.
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from ledger_kernel.domain.dtos import LedgerOperation, LedgerStatus, RejectionReason
from ledger_kernel.models import ContractStatus, Job, Profile
from ledger_kernel.services.ledger_engine import LedgerEngine
from tests.factories import make_client, make_contract, make_contractor, make_job


@pytest.fixture
def clients(session):
    """Source with 1000 outstanding (cap 250) and a second client."""
    source = make_client(session, balance=500)
    dest = make_client(session, balance=0, first_name="Ash", last_name="Ketchum")
    contractor = make_contractor(session)
    contract = make_contract(session, source, contractor)
    make_job(session, contract, price=600)
    make_job(session, contract, price=400)
    session.commit()
    return source, dest, contractor


def _balances(session, *profiles) -> list[int]:
    session.expire_all()
    return [session.get(Profile, p.id).balance for p in profiles]


class TestDepositSuccess:

    def test_deposit_at_cap(self, ledger, session, clients):
        source, dest, _ = clients

        result = ledger.deposit(source.id, dest.id, 250)

        assert result.status == LedgerStatus.COMMITTED
        assert result.operation == LedgerOperation.DEPOSIT
        assert _balances(session, source, dest) == [250, 250]

    def test_deposit_does_not_touch_jobs(self, ledger, session, clients):
        source, dest, _ = clients

        ledger.deposit(source.id, dest.id, 100)
        second = ledger.deposit(source.id, dest.id, 100)

        # The outstanding total is unchanged by deposits, so the cap still holds
        assert second.is_success
        assert _balances(session, source, dest) == [300, 200]


class TestDepositCap:

    def test_above_cap(self, ledger, session, clients):
        source, dest, _ = clients

        result = ledger.deposit(source.id, dest.id, 260)

        assert result.status == LedgerStatus.REJECTED
        assert result.reason == RejectionReason.DEPOSIT_CAP_EXCEEDED
        assert result.message == "Deposit cannot be above 25% of total of jobs to pay"
        assert _balances(session, source, dest) == [500, 0]

    def test_only_unpaid_in_progress_jobs_count(self, ledger, session):
        source = make_client(session, balance=1000)
        dest = make_client(session)
        contractor = make_contractor(session)
        active = make_contract(session, source, contractor)
        make_job(session, active, price=400)
        make_job(session, active, price=400, paid=None)
        make_job(session, active, price=5000, paid=True)
        ended = make_contract(
            session, source, contractor, status=ContractStatus.TERMINATED
        )
        make_job(session, ended, price=5000)
        fresh = make_contract(session, source, contractor, status=ContractStatus.NEW)
        make_job(session, fresh, price=5000)
        # Outstanding where the source is the contractor does not count
        make_job(session, make_contract(session, dest, contractor), price=5000)
        session.commit()

        assert ledger.deposit(source.id, dest.id, 201).reason == (
            RejectionReason.DEPOSIT_CAP_EXCEEDED
        )
        assert ledger.deposit(source.id, dest.id, 200).is_success

    def test_no_outstanding_jobs(self, ledger, session):
        source = make_client(session, balance=1000)
        dest = make_client(session)
        session.commit()

        result = ledger.deposit(source.id, dest.id, 1)

        assert result.reason == RejectionReason.DEPOSIT_CAP_EXCEEDED

    def test_cap_follows_job_payment(self, ledger, session, clients):
        source, dest, _ = clients
        job = session.execute(select(Job).where(Job.price == 400)).scalar_one()

        assert ledger.pay_job(job.id, source.id).is_success

        # 600 outstanding now: the cap drops to 150
        assert ledger.deposit(source.id, dest.id, 151).reason == (
            RejectionReason.DEPOSIT_CAP_EXCEEDED
        )
        assert ledger.deposit(source.id, dest.id, 100).is_success

    def test_configured_ratio(self, store, deterministic_clock, session, clients):
        source, dest, _ = clients
        engine = LedgerEngine(
            store, clock=deterministic_clock, deposit_cap_ratio=Decimal("0.1")
        )

        result = engine.deposit(source.id, dest.id, 101)

        assert result.reason == RejectionReason.DEPOSIT_CAP_EXCEEDED
        assert result.message == "Deposit cannot be above 10% of total of jobs to pay"
        assert engine.deposit(source.id, dest.id, 100).is_success


class TestDepositRejections:

    def test_self_deposit(self, ledger, session, clients):
        source = clients[0]

        result = ledger.deposit(source.id, source.id, 10)

        assert result.reason == RejectionReason.SELF_DEPOSIT
        assert result.message == "User cannot deposit itself"
        assert _balances(session, source) == [500]

    def test_contractor_destination(self, ledger, session, clients):
        source, _, contractor = clients

        result = ledger.deposit(source.id, contractor.id, 10)

        assert result.reason == RejectionReason.CLIENTS_ONLY
        assert result.message == "Only clients can send/receive deposit"
        assert _balances(session, source, contractor) == [500, 0]

    def test_insufficient_balance(self, ledger, session):
        source = make_client(session, balance=100)
        dest = make_client(session)
        contractor = make_contractor(session)
        make_job(session, make_contract(session, source, contractor), price=4000)
        session.commit()

        result = ledger.deposit(source.id, dest.id, 101)

        assert result.reason == RejectionReason.INSUFFICIENT_BALANCE
        assert result.message == "Not enough balance"
        assert _balances(session, source, dest) == [100, 0]

    @pytest.mark.parametrize("amount", [0, -10])
    def test_non_positive_amount(self, ledger, session, clients, amount):
        source, dest, _ = clients

        result = ledger.deposit(source.id, dest.id, amount)

        assert result.reason == RejectionReason.INVALID_AMOUNT
        assert _balances(session, source, dest) == [500, 0]

    def test_missing_destination(self, ledger, clients):
        source = clients[0]

        result = ledger.deposit(source.id, 999_999, 10)

        assert result.reason == RejectionReason.NOT_FOUND
        assert result.message == "Profile not found"
        assert result.http_status == 404

    def test_missing_source(self, ledger, clients):
        dest = clients[1]

        result = ledger.deposit(999_999, dest.id, 10)

        assert result.reason == RejectionReason.NOT_FOUND

    @pytest.mark.parametrize("bad_id", [2**63, 2**64, -(2**63) - 1])
    def test_id_beyond_key_range_is_not_found(self, ledger, session, clients, bad_id):
        source, dest, _ = clients

        to_unknown = ledger.deposit(source.id, bad_id, 10)
        from_unknown = ledger.deposit(bad_id, dest.id, 10)

        for result in (to_unknown, from_unknown):
            assert result.reason == RejectionReason.NOT_FOUND
            assert result.message == "Profile not found"
        assert _balances(session, source, dest) == [500, 0]


class TestDepositLogging:

    def test_committed_events(self, ledger, clients, captured_logs):
        source, dest, _ = clients

        ledger.deposit(source.id, dest.id, 50)

        logs = captured_logs()
        started = next(r for r in logs if r["message"] == "deposit_started")
        assert started["dest_profile_id"] == dest.id
        assert started["amount"] == "50"
        assert any(r["message"] == "deposit_committed" for r in logs)
