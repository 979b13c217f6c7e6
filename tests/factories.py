"""Row factories for seeding profiles, contracts and jobs in tests.

Factories add and flush; the caller commits once the scenario is built so
the engine's own sessions can see it.
"""

from datetime import datetime, timezone

from sqlalchemy import update

from ledger_kernel.models import Contract, ContractStatus, Job, Profile, ProfileType


def make_profile(
    session,
    type: ProfileType = ProfileType.CLIENT,
    balance: int = 0,
    first_name: str = "Harry",
    last_name: str = "Potter",
    profession: str = "Wizard",
) -> Profile:
    profile = Profile(
        first_name=first_name,
        last_name=last_name,
        profession=profession,
        type=type,
        balance=balance,
    )
    session.add(profile)
    session.flush()
    return profile


def make_client(session, balance: int = 0, **kwargs) -> Profile:
    return make_profile(session, type=ProfileType.CLIENT, balance=balance, **kwargs)


def make_contractor(session, balance: int = 0, **kwargs) -> Profile:
    kwargs.setdefault("first_name", "Linus")
    kwargs.setdefault("last_name", "Torvalds")
    kwargs.setdefault("profession", "Programmer")
    return make_profile(session, type=ProfileType.CONTRACTOR, balance=balance, **kwargs)


def make_contract(
    session,
    client: Profile,
    contractor: Profile,
    status: ContractStatus = ContractStatus.IN_PROGRESS,
    terms: str = "bla bla bla",
) -> Contract:
    contract = Contract(
        terms=terms,
        status=status,
        client_id=client.id,
        contractor_id=contractor.id,
    )
    session.add(contract)
    session.flush()
    return contract


def make_job(
    session,
    contract: Contract,
    price: int,
    paid: bool | None = False,
    payment_date: datetime | None = None,
    description: str = "work",
) -> Job:
    job = Job(
        description=description,
        price=price,
        paid=paid,
        payment_date=payment_date,
        contract_id=contract.id,
    )
    session.add(job)
    session.flush()
    if paid is None:
        # The ORM skips None on insert and applies the column default
        session.execute(update(Job).where(Job.id == job.id).values(paid=None))
        session.refresh(job)
    return job


def as_naive_utc(value: datetime) -> datetime:
    """Normalize a stored timestamp; SQLite returns naive UTC values."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
