from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from ldsync.app import (
    create_store,
    export_document,
    import_document,
    load_code_lists,
    validate_document,
)
from ldsync.config import configure_logging
from ldsync.domain.validation import Operation

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from ldsync.domain.validation import ValidationReport

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import and export JSON-LD impact data")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--database-uri",
        type=str,
        help="SQLAlchemy URI of the backing store (defaults to DATABASE_URI or the data dir)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Validate a JSON-LD document")
    validate.add_argument("path", type=Path, help="JSON-LD file to validate")
    validate.add_argument(
        "--operation",
        choices=[operation.value for operation in Operation],
        default=Operation.IMPORT.value,
        help="Strictness to validate with (default: %(default)s)",
    )
    validate.add_argument(
        "--code-lists",
        action="store_true",
        help="Fetch the predefined code lists and check links and options against them",
    )

    import_ = subparsers.add_parser("import", help="Import a JSON-LD document into the store")
    import_.add_argument("path", type=Path, help="JSON-LD file to import")
    import_.add_argument(
        "--code-lists",
        action="store_true",
        help="Fetch the predefined code lists and check links and options against them",
    )

    export = subparsers.add_parser("export", help="Export the store as a JSON-LD document")
    export.add_argument(
        "-o",
        "--output",
        type=Path,
        help="File to write the document to (defaults to stdout)",
    )

    return parser.parse_args(list(argv))


def _read_document(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ValueError(f"Cannot read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path} is not valid JSON: {exc}") from exc


def _log_report(report: ValidationReport) -> None:
    for message in report.errors:
        log.error("%s", message)
    for message in report.warnings:
        log.warning("%s", message)


def _validate(args: argparse.Namespace) -> int:
    document = _read_document(args.path)
    code_lists = load_code_lists() if args.code_lists else None
    report = validate_document(document, args.operation, code_lists=code_lists)
    _log_report(report)
    return 0 if report.ok else 1


def _import(args: argparse.Namespace) -> int:
    document = _read_document(args.path)
    code_lists = load_code_lists() if args.code_lists else None
    result = import_document(
        document,
        store=create_store(database_uri=args.database_uri),
        code_lists=code_lists,
    )
    for message in result.warnings:
        log.warning("%s", message)
    for table, count in result.created.items():
        log.info("%s: %d record(s) imported", table, count)
    return 0


def _export(args: argparse.Namespace) -> int:
    outcome = export_document(store=create_store(database_uri=args.database_uri))
    _log_report(outcome.report)
    payload = json.dumps(outcome.document, indent=2, ensure_ascii=False)
    if args.output is None:
        sys.stdout.write(payload + "\n")
    else:
        args.output.write_text(payload + "\n", encoding="utf-8")
        log.info("Wrote %d node(s) to %s", len(outcome.document), args.output)
    return 0 if outcome.report.ok else 1


_COMMANDS = {"validate": _validate, "import": _import, "export": _export}


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(verbose=parsed_args.verbose)

    try:
        status = _COMMANDS[parsed_args.command](parsed_args)
    except ValueError:
        log.exception("Invalid input")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)
    sys.exit(status)


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
