from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from consolidator.app import (
    check_consolidation,
    consolidate_prestage_proposals,
    consolidate_snapshot_file,
)
from consolidator.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Consolidate commission-split proposals")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every consolidation boundary decision",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "run",
        help="Consolidate pre-stage proposals in the configured database",
    )
    subparsers.add_parser(
        "verify",
        help="Check retained/consumed flags and staging copies of the last run",
    )

    snapshot = subparsers.add_parser("file", help="Consolidate a JSON snapshot of proposals")
    snapshot.add_argument(
        "--input",
        type=Path,
        required=True,
        help="JSON list or JSON-lines file of pre-stage proposal rows",
    )
    snapshot.add_argument(
        "--output",
        type=Path,
        help="Where to write the consolidation result as JSON",
    )

    return parser.parse_args(list(argv))


def _validate_args(args: argparse.Namespace) -> None:
    if args.command == "file" and not args.input.is_file():
        raise ValueError(f"Input file does not exist: {args.input}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else None)
    try:
        _validate_args(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "run":
            outcome = consolidate_prestage_proposals()
            log.info(
                "Consolidation finished: retained=%s, consumed=%s, staged=%s",
                outcome.summary.retained,
                outcome.summary.consumed,
                outcome.staged,
            )
        elif parsed_args.command == "verify":
            report = check_consolidation()
            if not report.ok:
                sys.exit(1)
        elif parsed_args.command == "file":
            consolidate_snapshot_file(parsed_args.input, output_path=parsed_args.output)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during consolidation")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
