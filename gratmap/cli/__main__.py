from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import ConfigError, load_config
from ..db.store import PostgresStore, StoreError, open_cursor
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, setup_logging
from ..models.config_models import AppConfig
from ..models.dashboard import User, UserRole
from ..models.operations import UpdateOutcome
from ..models.record import Record
from ..models.report import GroupBy
from ..services.aggregation import format_money, format_percent, report_to_frame
from ..services.app_state import FiltersChanged, GroupingChanged, RecordsLoaded, current_report, initial_state, reduce, visible_records
from ..services.mapper import load_records, map_rows
from ..services.progress import ProgressTracker
from ..services.submit import Transport, submit_delete, submit_update
from ..services.summary import render_summary_line
from ..sheet.headers import resolve_columns, resolve_header
from ..sheet.parser import Grid
from ..sheet.reader import ReaderError, read_grid
from ..transport.http import HttpEndpointClient, fetch_csv_grid

"""Command-line entry point.

    gratmap inspect SOURCE
    gratmap report SOURCE [SOURCE ...] [--group-by event|unit] [filters] [--output FILE]
    gratmap update SOURCE --id MAP --set "Header=value" [--set ...]
    gratmap delete SOURCE --id MAP

SOURCE is a .csv/.xlsx export, an http(s) export URL, or ``db`` for the
configured PostgreSQL table.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_OPERATION_FAILED = 2

DB_SOURCE = "db"


class CliError(Exception):
    pass


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="gratmap", description="Gratuity map records and reports")
    p.add_argument("--config", type=Path, default=None, help="YAML config (default: config/gratmap.yml)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    inspect = sub.add_parser("inspect", help="Show the located header row and the first records")
    inspect.add_argument("source")

    report = sub.add_parser("report", help="Aggregate records into a financial report")
    report.add_argument("sources", nargs="+")
    report.add_argument("--group-by", choices=["event", "unit"], default="event")
    report.add_argument("--om", default="", help="Unit filter (substring)")
    report.add_argument("--mapa", default="", help="Map identifier filter (substring)")
    report.add_argument("--status", default="", help="Status filter (substring)")
    report.add_argument("--as-unit", default=None, help="Restrict to the records a unit user can see")
    report.add_argument("--output", type=Path, default=None, help="Write the report to .csv or .xlsx")

    update = sub.add_parser("update", help="Send the changed cells of one map")
    update.add_argument("source")
    update.add_argument("--id", required=True, dest="map_id")
    update.add_argument("--set", action="append", default=[], dest="assignments", metavar="HEADER=VALUE")

    delete = sub.add_parser("delete", help="Delete one map")
    delete.add_argument("source")
    delete.add_argument("--id", required=True, dest="map_id")
    return p.parse_args(argv)


def _load_grid(source: str, cfg: AppConfig) -> tuple[Grid, bool]:
    """Grid for ``source`` and whether its rows are addressed by key."""
    if source == DB_SOURCE:
        with open_cursor(cfg.database) as cur:
            return PostgresStore(cur, cfg.database.table).fetch_grid(), True
    if source.startswith(("http://", "https://")):
        grid = fetch_csv_grid(source, timeout=cfg.backend.timeout_seconds)
    else:
        grid = read_grid(Path(source))
    return grid, cfg.backend.kind == "postgres"


def _load_source(source: str, cfg: AppConfig) -> list[Record]:
    grid, key_based = _load_grid(source, cfg)
    return load_records(grid, cfg.layout, key_based=key_based)


@contextmanager
def _open_transport(cfg: AppConfig, error_log: ErrorLogBuffer) -> Iterator[Transport]:
    kind = cfg.backend.kind
    if kind == "http":
        url = os.getenv("GRATMAP_SCRIPT_URL") or cfg.backend.script_url
        if not url:
            raise CliError("backend.kind=http but no script URL (GRATMAP_SCRIPT_URL)")
        yield HttpEndpointClient(url, timeout=cfg.backend.timeout_seconds, error_log=error_log)
    elif kind == "postgres":
        with open_cursor(cfg.database) as cur:
            yield PostgresStore(cur, cfg.database.table, error_log=error_log)
    else:
        raise CliError("no backend configured (backend.kind: none)")


def _find_record(records: list[Record], map_id: str) -> Record:
    for record in records:
        if record.id.strip() == map_id.strip():
            return record
    raise CliError(f"map not found: {map_id}")


def _cmd_inspect(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger) -> int:
    grid, key_based = _load_grid(args.source, cfg)
    header = resolve_header(grid, cfg.layout)
    columns = resolve_columns(header, cfg.layout.fields)
    records = map_rows(grid, header, columns, key_based=key_based)
    logger.info(f"rows={len(grid)} header_row={header.row_index} width={header.width}")
    for column in header.columns:
        logger.debug(f"  [{column.index}] {column.raw_name!r} -> {column.clean_name!r}")
    by_index = {column.index: column for column in header.columns}
    for name, index in columns.items():
        title = by_index[index].clean_name if index is not None else "-"
        logger.info(f"  {name}: {index if index is not None else 'not found'} ({title})")
    logger.info(f"records={len(records)}")
    for record in records[:3]:
        logger.info(f"  {record.to_dict()}")
    return EXIT_SUCCESS


def _cmd_report(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger) -> int:
    records: list[Record] = []
    with ProgressTracker(len(args.sources)) as progress:
        for source in args.sources:
            if source != DB_SOURCE:
                progress.start_file(Path(source))
            loaded = _load_source(source, cfg)
            records.extend(loaded)
            progress.finish_file(records=len(loaded))

    if args.as_unit:
        user = User(name=args.as_unit, role=UserRole.OM, om=args.as_unit)
    else:
        user = User(name="Administrador", role=UserRole.ADMIN)
    state = initial_state(user)
    state = reduce(state, RecordsLoaded(tuple(records)))
    state = reduce(state, FiltersChanged(om=args.om or None, mapa=args.mapa, status=args.status))
    state = reduce(state, GroupingChanged(GroupBy.UNIT if args.group_by == "unit" else GroupBy.EVENT))

    report = current_report(state, cfg.status_rules)
    for row in (*report.rows, report.grand_total):
        base = row.active_total.value
        logger.info(
            f"{row.label}: authorized={row.authorized.count} {format_money(row.authorized.value)} "
            f"({format_percent(row.authorized.value, base)}) "
            f"pending={row.pending.count} {format_money(row.pending.value)} "
            f"({format_percent(row.pending.value, base)}) "
            f"active={row.active_total.count} {format_money(base)} "
            f"canceled={row.canceled.count} {format_money(row.canceled.value)} "
            f"({format_percent(row.canceled.value, base)})"
        )

    if args.output is not None:
        frame = report_to_frame(report)
        if args.output.suffix.lower() == ".xlsx":
            frame.to_excel(args.output, index=False)
        else:
            frame.to_csv(args.output, index=False)
        logger.info(f"report written: {args.output}")

    summary_line = render_summary_line(len(visible_records(state)), report)
    log_summary(summary_line[len("SUMMARY "):])
    return EXIT_SUCCESS


def _parse_assignments(assignments: list[str]) -> dict[str, str]:
    edited: dict[str, str] = {}
    for item in assignments:
        if "=" not in item:
            raise CliError(f"--set expects HEADER=VALUE, got {item!r}")
        header, value = item.split("=", 1)
        edited[header.strip()] = value
    return edited


def _cmd_update(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger, error_log: ErrorLogBuffer) -> int:
    record = _find_record(_load_source(args.source, cfg), args.map_id)
    edited = record.initial_values()
    edited.update(_parse_assignments(args.assignments))
    with _open_transport(cfg, error_log) as transport:
        outcome = submit_update(transport, record, edited, cfg.backend.collection)
    logger.info(f"update {record.id}: {outcome.value}")
    return EXIT_OPERATION_FAILED if outcome is UpdateOutcome.FAILED else EXIT_SUCCESS


def _cmd_delete(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger, error_log: ErrorLogBuffer) -> int:
    record = _find_record(_load_source(args.source, cfg), args.map_id)
    with _open_transport(cfg, error_log) as transport:
        result = submit_delete(transport, record, cfg.backend.collection)
    logger.info(f"delete {record.id}: {'ok' if result.ok else 'failed'}")
    return EXIT_SUCCESS if result.ok else EXIT_OPERATION_FAILED


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # An empty list (tests) must not fall back to sys.argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    load_dotenv(dotenv_path=Path(".env"), override=False)

    if args.debug:
        for h in logger.handlers:
            h.setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    error_log = ErrorLogBuffer(cfg.error_log_dir)
    try:
        if args.command == "inspect":
            return _cmd_inspect(args, cfg, logger)
        if args.command == "report":
            return _cmd_report(args, cfg, logger)
        if args.command == "update":
            return _cmd_update(args, cfg, logger, error_log)
        return _cmd_delete(args, cfg, logger, error_log)
    except (CliError, ReaderError, StoreError) as e:
        logger.error(str(e))
        return EXIT_FATAL
    finally:
        path = error_log.flush()
        if path is not None:
            logger.info(f"failed operations logged to {path}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
