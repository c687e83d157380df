from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from protrecon.app import import_proteins, run_protein_update, write_reports
from protrecon.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from protrecon.domain.model import UpdateProcess

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Reconcile local protein records with UniProtKB"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    update = subparsers.add_parser("update", help="Update stored protein records")
    update.add_argument(
        "--accession",
        dest="accessions",
        action="append",
        help="Only update records claiming this accession (repeatable)",
    )
    update.add_argument(
        "--record",
        dest="record_ids",
        action="append",
        help="Only update this record id (repeatable)",
    )
    update.add_argument(
        "--workers",
        type=int,
        help="Number of units of work processed concurrently (defaults to config)",
    )
    update.add_argument(
        "--report-dir",
        type=Path,
        help="Directory receiving TSV/FASTA reports of the run",
    )

    create = subparsers.add_parser("import", help="Create records for new accessions")
    create.add_argument("accessions", nargs="+", help="UniProtKB accessions to import")
    create.add_argument(
        "--report-dir",
        type=Path,
        help="Directory receiving TSV/FASTA reports of the run",
    )

    report = subparsers.add_parser("report", help="Write reports of a stored update process")
    report.add_argument("process_id", type=str, help="Update process id")
    report.add_argument(
        "--output",
        type=Path,
        required=True,
        help="Directory receiving the reports",
    )

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid process id: {value}") from exc


def _validate(args: argparse.Namespace) -> None:
    if args.command == "update" and args.workers is not None and args.workers < 1:
        raise ValueError("--workers must be at least 1")
    if args.command == "report":
        args.process_id = _parse_uuid(args.process_id)


def _log_summary(process: UpdateProcess) -> None:
    log.info(
        "Update process %s %s: %d events, %d errors",
        process.id,
        process.status,
        len(process.events),
        len(process.errors()),
    )


def main(argv: Sequence[str] | None = None, *, cancel: threading.Event | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
    try:
        if parsed_args.command == "update":
            process = run_protein_update(
                accessions=parsed_args.accessions,
                record_ids=parsed_args.record_ids,
                workers=parsed_args.workers,
                report_dir=parsed_args.report_dir,
                cancel=cancel,
            )
            _log_summary(process)
        elif parsed_args.command == "import":
            process = import_proteins(
                parsed_args.accessions,
                report_dir=parsed_args.report_dir,
                cancel=cancel,
            )
            _log_summary(process)
        elif parsed_args.command == "report":
            written = write_reports(parsed_args.process_id, parsed_args.output)
            log.info("Wrote %d report files to %s", len(written), parsed_args.output)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during update")
        sys.exit(1)


def sigint_handler(cancel: threading.Event) -> Callable[[int, FrameType | None], None]:
    """Request cancellation on the first Ctrl+C; the current unit of work completes."""

    def handle(_signal_received: int, _frame: FrameType | None) -> None:
        if cancel.is_set():
            log.info("Closed by user (Ctrl+C)")
            sys.exit(130)
        log.info("Cancellation requested; finishing the current unit of work")
        cancel.set()

    return handle


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    cancel = threading.Event()
    signal(SIGINT, sigint_handler(cancel))
    main(cancel=cancel)


if __name__ == "__main__":
    run()
