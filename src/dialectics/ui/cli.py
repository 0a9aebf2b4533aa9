# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from dialectics.adapters.records import map_to_dict, pretty_json, record_to_dict
from dialectics.app import (
    get_stored_record,
    list_stored_records,
    reconcile_run_files,
    store_record,
)
from dialectics.config import ConfigurationError, configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile independently produced analysis runs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    reconcile = subparsers.add_parser("reconcile", help="Reconcile two or more run files")
    reconcile.add_argument(
        "run_files",
        nargs="+",
        type=Path,
        metavar="RUN_FILE",
        help="JSON or JSON Lines file holding one or more runs",
    )
    reconcile.add_argument(
        "--answers",
        type=Path,
        help="Scripted oracle answers file (defaults to the HTTP oracle from the environment)",
    )
    reconcile.add_argument(
        "--store",
        action="store_true",
        help="Store the emitted record in the record database",
    )
    reconcile.add_argument(
        "--map",
        action="store_true",
        help="Print the full reconciliation map alongside the record",
    )

    records = subparsers.add_parser("records", help="Inspect stored records")
    records_sub = records.add_subparsers(dest="records_command", required=True)
    records_sub.add_parser("list", help="List stored records")
    show = records_sub.add_parser("show", help="Show one stored record")
    show.add_argument("fingerprint", type=str, help="Record fingerprint (or a unique prefix)")

    return parser.parse_args(list(argv))


def _reconcile(args: argparse.Namespace) -> None:
    result = reconcile_run_files(args.run_files, answers_path=args.answers)
    record = result.record
    if args.store:
        store_record(record)
    if args.map:
        print(
            pretty_json(
                {
                    "record": record_to_dict(record),
                    "map": map_to_dict(result.reconciliation_map),
                }
            )
        )
    else:
        print(pretty_json(record_to_dict(record)))


def _list_records() -> None:
    stored = list_stored_records()
    if not stored:
        log.info("No stored records")
    for item in stored:
        record = item.record
        print(
            f"{item.fingerprint}  {item.stored_at:%Y-%m-%d %H:%M:%S}  "
            f"{record.overall_relationship}  {', '.join(record.input_runs)}"
        )


def _show_record(fingerprint: str) -> None:
    stored = get_stored_record(fingerprint)
    if stored is None:
        matches = [
            item for item in list_stored_records() if item.fingerprint.startswith(fingerprint)
        ]
        if len(matches) != 1:
            raise LookupError(f"No unique stored record matches {fingerprint!r}")
        stored = matches[0]
    print(pretty_json({"fingerprint": stored.fingerprint, "record": record_to_dict(stored.record)}))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        if parsed_args.command == "reconcile":
            _reconcile(parsed_args)
        elif parsed_args.command == "records" and parsed_args.records_command == "list":
            _list_records()
        elif parsed_args.command == "records" and parsed_args.records_command == "show":
            _show_record(parsed_args.fingerprint)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except (ValueError, ConfigurationError):
        log.exception("Invalid input")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during reconciliation")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def entrypoint() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    entrypoint()
