"""auditsys-lite CLI entry point.

Usage: uv run auditsys-lite [command]

Exit status: 0 when the ledger verifies, 1 when verification fails,
2 for configuration errors.
"""
import argparse
import asyncio
import json
import logging
import sqlite3
import sys
from decimal import Decimal
from pathlib import Path

from auditsys_lite.config import LedgerSettings
from auditsys_lite.crypto.tamper import TamperSimulator
from auditsys_lite.crypto.verifier import VerificationResult
from auditsys_lite.domain.errors import ConfigurationError
from auditsys_lite.ledger.discrepancies import DiscrepancyRegistry
from auditsys_lite.ledger.session import LedgerSession
from auditsys_lite.notify.sinks import NotificationInbox
from auditsys_lite.simulation.generator import SaleEventGenerator
from auditsys_lite.simulation.ticker import SaleTicker
from auditsys_lite.store.base import LedgerStoreBase
from auditsys_lite.store.memory_store import InMemoryLedgerStore
from auditsys_lite.store.sqlite_store import SqliteLedgerStore


def _positive_int(text: str) -> int:
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return value


def _add_common_options(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--db", default=None,
        help="SQLite ledger file (default: in-memory, discarded on exit)",
    )
    p.add_argument(
        "--threshold", type=Decimal, default=None,
        help="Transaction anomaly threshold (default: 1000)",
    )
    p.add_argument(
        "--seed", type=int, default=42,
        help="RNG seed for reproducible runs (default: 42)",
    )


def _add_demo_parser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser(
        "demo",
        help="Build a ledger of simulated sales, optionally tamper, then verify.",
    )
    _add_common_options(p)
    p.add_argument(
        "--entries", type=int, default=20,
        help="Number of ticket sales to record (default: 20)",
    )
    p.add_argument(
        "--tamper", action="store_true",
        help="Alter the middle entry's amount without rehashing before verifying.",
    )


def _add_verify_parser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser(
        "verify",
        help="Verify a persisted ledger.",
    )
    p.add_argument("--db", required=True, help="SQLite ledger file")
    p.add_argument(
        "--chunk", type=_positive_int, default=None,
        help="Verify in resumable chunks of N entries.",
    )


def _add_simulate_parser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser(
        "simulate",
        help="Run the timer-driven sale simulation, then verify.",
    )
    _add_common_options(p)
    p.add_argument(
        "--ticks", type=int, default=10,
        help="Number of simulated sales (default: 10)",
    )
    p.add_argument(
        "--interval", type=float, default=None,
        help="Seconds between sales (default: settings, 5.0)",
    )


def _open_store(db: str | None) -> LedgerStoreBase:
    if db is None:
        return InMemoryLedgerStore()
    return SqliteLedgerStore(db)


def _print_result(result: VerificationResult) -> None:
    print(result.to_json())
    print(result.describe())


def _print_notifications(inbox: NotificationInbox) -> None:
    for item in reversed(inbox.items()):
        print(json.dumps(item.notification.to_dict()))


def _run_demo(args: argparse.Namespace, settings: LedgerSettings) -> int:
    inbox = NotificationInbox()
    generator = SaleEventGenerator(seed=args.seed)
    with LedgerSession.from_settings(
        settings, store=_open_store(args.db), sink=inbox
    ) as session:
        for event in generator.events(args.entries):
            session.record(event)
        if args.tamper:
            entry_id = TamperSimulator().tamper(session.store)
            print(f"Tampered with {entry_id}: amount changed, hash not recomputed.")
        result = session.verify()
    _print_notifications(inbox)
    _print_result(result)
    return 0 if result.ok else 1


def _run_verify(args: argparse.Namespace, settings: LedgerSettings) -> int:
    if not Path(args.db).is_file():
        raise ConfigurationError(f"No ledger database at {args.db}")
    try:
        with LedgerSession.from_settings(
            settings, store=SqliteLedgerStore(args.db, read_only=True)
        ) as session:
            result = session.verify(chunk_size=args.chunk)
    except sqlite3.DatabaseError as exc:
        raise ConfigurationError(f"Not a ledger database: {args.db} ({exc})") from exc
    _print_result(result)
    return 0 if result.ok else 1


def _run_simulate(args: argparse.Namespace, settings: LedgerSettings) -> int:
    inbox = NotificationInbox()
    flagged = []

    async def _simulate() -> VerificationResult:
        with LedgerSession.from_settings(
            settings, store=_open_store(args.db), sink=inbox
        ) as session:
            registry = DiscrepancyRegistry(session)
            ticker = SaleTicker(
                session,
                SaleEventGenerator(seed=args.seed),
                interval=settings.simulation_interval,
                discrepancies=registry,
                seed=args.seed,
            )
            await ticker.run(args.ticks)
            flagged.extend(registry.items())
            return session.verify()

    result = asyncio.run(_simulate())
    _print_notifications(inbox)
    for discrepancy in flagged:
        print(json.dumps(discrepancy.to_dict()))
    _print_result(result)
    return 0 if result.ok else 1


_COMMANDS = {
    "demo": _run_demo,
    "verify": _run_verify,
    "simulate": _run_simulate,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="auditsys-lite",
        description="Tamper-evident ticket-sale ledger -- hash-chained, verifiable.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging.",
    )
    subparsers = parser.add_subparsers(dest="command")

    _add_demo_parser(subparsers)
    _add_verify_parser(subparsers)
    _add_simulate_parser(subparsers)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = LedgerSettings.from_env().with_overrides(
            transaction_threshold=getattr(args, "threshold", None),
            simulation_interval=getattr(args, "interval", None),
        )
        return _COMMANDS[args.command](args, settings)
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
