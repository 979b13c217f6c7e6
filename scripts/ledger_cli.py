"""Ledger CLI: create the schema, move money and run the admin reports.

Usage:
    python -m scripts.ledger_cli init-db
    python -m scripts.ledger_cli pay-job 2 --as 1
    python -m scripts.ledger_cli deposit 2 50 --as 1
    python -m scripts.ledger_cli best-profession 2020-08-01 2020-08-31
    python -m scripts.ledger_cli best-clients 2020-08-01 2020-08-31 --limit 3
    python -m scripts.ledger_cli unpaid-jobs --as 1

Settings come from ``ledger_config.get_active_settings()`` (LEDGER_CONFIG,
LEDGER_DATABASE_URL).  Output is one JSON document on stdout; logs go to
stderr.

Exit status: 0 success, 1 rejected or bad request, 2 store unavailable.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any, Sequence

from ledger_config import get_active_settings
from ledger_kernel.db import (
    create_engine_from_settings,
    create_session_factory,
    create_tables,
    session_scope,
)
from ledger_kernel.domain.dtos import LedgerResult, LedgerStatus
from ledger_kernel.exceptions import ReportError
from ledger_kernel.logging_config import configure_logging
from ledger_kernel.selectors import ContractSelector, ProfileSelector, ReportSelector
from ledger_kernel.services import LedgerEngine, RetryPolicy

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_STORE_UNAVAILABLE = 2


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _exit_code(result: LedgerResult) -> int:
    if result.status == LedgerStatus.COMMITTED:
        return EXIT_OK
    if result.status == LedgerStatus.STORE_UNAVAILABLE:
        return EXIT_STORE_UNAVAILABLE
    return EXIT_REJECTED


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ledger", description=__doc__.splitlines()[0])
    parser.add_argument("--config", type=Path, help="YAML settings file")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="create the ledger tables")

    pay = sub.add_parser("pay-job", help="pay a job as its client")
    pay.add_argument("job_id", type=int)
    pay.add_argument("--as", dest="profile_id", type=int, required=True)

    dep = sub.add_parser("deposit", help="move balance to another client")
    dep.add_argument("dest_id", type=int)
    dep.add_argument("amount", type=int)
    dep.add_argument("--as", dest="profile_id", type=int, required=True)

    prof = sub.add_parser("best-profession", help="top earning profession")
    prof.add_argument("start", type=date.fromisoformat)
    prof.add_argument("end", type=date.fromisoformat)

    clients = sub.add_parser("best-clients", help="top paying clients")
    clients.add_argument("start", type=date.fromisoformat)
    clients.add_argument("end", type=date.fromisoformat)
    clients.add_argument("--limit", type=int, default=2)

    unpaid = sub.add_parser("unpaid-jobs", help="unpaid jobs on active contracts")
    unpaid.add_argument("--as", dest="profile_id", type=int, required=True)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    settings = get_active_settings(args.config)
    engine = create_engine_from_settings(settings)
    factory = create_session_factory(engine)

    try:
        if args.command == "init-db":
            create_tables(engine)
            _emit({"status": "ok", "database_url": settings.redacted_url()})
            return EXIT_OK

        if args.command in ("pay-job", "deposit", "unpaid-jobs"):
            with session_scope(factory) as session:
                caller = ProfileSelector(session).resolve_caller(args.profile_id)
            if caller is None:
                _emit({"status": "unauthorized", "profile_id": args.profile_id})
                return EXIT_REJECTED

        if args.command == "unpaid-jobs":
            with session_scope(factory) as session:
                jobs = ContractSelector(session).list_unpaid_jobs(caller.id)
            _emit([asdict(job) for job in jobs])
            return EXIT_OK

        if args.command in ("pay-job", "deposit"):
            ledger = LedgerEngine.from_settings(settings, factory)
            retry = RetryPolicy.from_settings(settings)
            if args.command == "pay-job":
                result = retry.run(lambda: ledger.pay_job(args.job_id, caller.id))
            else:
                result = retry.run(
                    lambda: ledger.deposit(caller.id, args.dest_id, args.amount)
                )
            _emit(result.to_dict())
            return _exit_code(result)

        with session_scope(factory) as session:
            reports = ReportSelector(session)
            if args.command == "best-profession":
                best = reports.best_profession(args.start, args.end)
                _emit(asdict(best) if best else None)
            else:
                top = reports.best_clients(args.start, args.end, args.limit)
                _emit([asdict(row) for row in top])
        return EXIT_OK

    except ReportError as exc:
        _emit({"status": "rejected", "error_code": exc.code, "message": str(exc)})
        return EXIT_REJECTED
    finally:
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
