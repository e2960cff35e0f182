from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .commands import review as cmd_review
from .commands import summary as cmd_summary
from .config import Settings, load_settings
from .core.matching import VerdictStatus
from .pipeline import DedupePipeline
from .store import MatchStore
from .table import RecordTable

LOG_FORMAT = "%(levelname).1s | %(name)s | %(message)s"

C_RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",  # Cyan
    logging.INFO: "\033[37m",  # Light gray
    logging.WARNING: "\033[33m",  # Yellow
    logging.ERROR: "\033[31m",  # Red
    logging.CRITICAL: "\033[35m",  # Magenta
}


class ColorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if not color:
            return message
        return f"{color}{message}{C_RESET}"


class WarningBufferHandler(logging.Handler):
    """Keeps warnings and errors so they can be repeated after the command output."""

    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.records: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(self.format(record))

    def print_summary(self) -> None:
        if not self.records:
            return
        print(f"\n{LEVEL_COLORS[logging.WARNING]}Warnings/errors ({len(self.records)}):{C_RESET}")
        for line in self.records:
            print(f" - {line}")


def configure_logging(level_name: str) -> WarningBufferHandler:
    log_level = getattr(logging, level_name.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)

    color_handler = logging.StreamHandler()
    color_handler.setFormatter(ColorFormatter(LOG_FORMAT))
    root_logger.addHandler(color_handler)

    warn_buffer = WarningBufferHandler()
    warn_buffer.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(warn_buffer)
    return warn_buffer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fuzzy deduplication of cataloged titles and platforms")
    parser.add_argument("--config", type=Path, help="Path to config.yaml")
    parser.add_argument("--log-level", default="INFO", help="Python logging level")

    subparsers = parser.add_subparsers(dest="command", required=True)

    match_parser = subparsers.add_parser("match", help="Find candidate clusters and store them")
    match_parser.add_argument("table", type=Path, help="CSV record table")
    match_parser.add_argument("--field", required=True, help="Configured field name (e.g. title)")

    resolve_parser = subparsers.add_parser("resolve", help="Resolve stored clusters into verdicts")
    resolve_parser.add_argument("--field", required=True, help="Configured field name")

    apply_parser = subparsers.add_parser("apply", help="Rewrite the table with accepted verdicts")
    apply_parser.add_argument("table", type=Path, help="CSV record table")
    apply_parser.add_argument("--field", required=True, help="Configured field name")
    apply_parser.add_argument("--out", type=Path, default=None, help="Output CSV (defaults to the input)")

    run_parser = subparsers.add_parser("run", help="Match, resolve and apply in one pass")
    run_parser.add_argument("table", type=Path, help="CSV record table")
    run_parser.add_argument("--field", required=True, help="Configured field name")
    run_parser.add_argument("--out", type=Path, default=None, help="Output CSV (defaults to the input)")

    review_parser = subparsers.add_parser("review", help="List clusters awaiting manual review")
    review_parser.add_argument("--field", required=True, help="Configured field name")
    review_parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON to stdout")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    warn_buffer = configure_logging(args.log_level)
    logger = logging.getLogger(__name__)

    try:
        settings = load_settings(args.config)
        pipeline = DedupePipeline(settings)
        pipeline.field_settings(args.field)
    except (FileNotFoundError, ValueError, ValidationError) as exc:
        logger.error("%s", exc)
        raise SystemExit(1)

    store = MatchStore(settings.store.path)
    try:
        match args.command:
            case "match":
                table = _load_table(pipeline, settings, args.table, args.field)
                columns = pipeline.field_settings(args.field)
                result = pipeline.match(table.unique_terms(columns.flat))
                store.save_match_sets(args.field, result)
                cmd_summary.run(cmd_summary.match_lines(args.field, result))
            case "resolve":
                stored = store.load_match_sets(args.field)
                if not stored.match_sets:
                    logger.error("No stored match sets for '%s'; run 'match' first", args.field)
                    raise SystemExit(1)
                verdicts = pipeline.resolve(stored)
                store.save_verdicts(args.field, verdicts)
                cmd_summary.run(cmd_summary.verdict_lines(args.field, verdicts))
            case "apply":
                table = _load_table(pipeline, settings, args.table, args.field)
                verdicts = store.list_verdicts(args.field, status=VerdictStatus.ACCEPTED)
                report = pipeline.apply(verdicts, table, args.field)
                table.save_csv(args.out or args.table)
                cmd_summary.run(cmd_summary.rewrite_lines(args.field, report))
            case "run":
                table = _load_table(pipeline, settings, args.table, args.field)
                result = pipeline.run(table, args.field)
                store.save_match_sets(args.field, result.dedupe)
                store.save_verdicts(args.field, result.verdicts)
                table.save_csv(args.out or args.table)
                cmd_summary.run(
                    cmd_summary.match_lines(args.field, result.dedupe)
                    + cmd_summary.verdict_lines(args.field, result.verdicts)
                    + cmd_summary.rewrite_lines(args.field, result.rewrite)
                )
            case "review":
                cmd_review.run(store, field=args.field, json_output=args.json)
            case _:
                parser.error("Unknown command")
    finally:
        store.close()
        warn_buffer.print_summary()


def _load_table(pipeline: DedupePipeline, settings: Settings, path: Path, field: str) -> RecordTable:
    columns = pipeline.field_settings(field)
    try:
        table = RecordTable.load_csv(path, settings.table.composite_columns(), pipeline.codec)
        table.require_columns(columns.clean, columns.flat)
        return table
    except (FileNotFoundError, ValueError) as exc:
        logging.getLogger(__name__).error("%s", exc)
        raise SystemExit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
