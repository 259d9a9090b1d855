from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from seatroster.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from seatroster.csvio.errors import CsvEngineError
from seatroster.csvio.parser import parse_csv
from seatroster.csvio.schema import BASE_HEADERS, RESTORE_HEADERS, build_header_map
from seatroster.db.admins import MemoryAdminStore, PostgresAdminStore
from seatroster.db.audit import MemoryAuditLog, PostgresAuditLog
from seatroster.db.batch_upsert import BatchPersistenceError
from seatroster.db.connection import db_connection, load_env_file
from seatroster.db.protocols import Actor, AdminStore, AuditLog, RosterStore
from seatroster.db.store import MemoryRosterStore, PostgresRosterStore, ensure_schema
from seatroster.logging.error_log import ErrorLogBuffer
from seatroster.logging.init import log_summary, setup_logging
from seatroster.models.config_models import AppConfig
from seatroster.models.import_summary import ImportMode, ImportSummary
from seatroster.services.exports import (
    backup_filename,
    render_backup,
    render_consolidated_report,
    render_lob_report,
    render_lob_summary,
    render_template,
)
from seatroster.services.importer import import_csv
from seatroster.services.progress import ImportProgress
from seatroster.services.summary import render_summary_line

"""CLI entrypoint.

Subcommands:
- import / restore FILE: load a roster CSV into the users table
- backup / template: write CSV exports
- report {lob,consolidated,summary}: allocation reports
- add-admins EMAIL...: extend the admin allowlist
- inspect FILE: print headers and the first rows of a CSV

Exit codes: 0 success, 1 fatal (config, header, row, I/O, DB connection errors), 2 partial
import (a batch failed after earlier batches were committed).
"""

logger = logging.getLogger("seatroster.cli")

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

DEFAULT_ACTOR_NAME = "seatroster-cli"
DEFAULT_ACTOR_EMAIL = "seatroster-cli@localhost"


@dataclass
class Backend:
    """Collaborators for one CLI run (live PostgreSQL or in-memory mock)."""
    mode: str
    store: RosterStore
    audit: AuditLog
    admins: AdminStore


class BackendUnavailableError(RuntimeError):
    """The database could not be reached and mock mode was not requested."""


def _mock_backend() -> Backend:
    return Backend(mode="mock", store=MemoryRosterStore(), audit=MemoryAuditLog(), admins=MemoryAdminStore())


@contextmanager
def _open_backend(cfg: AppConfig) -> Iterator[Backend]:
    """Yield the live backend, or the mock one when DISABLE_DB_CONNECT=1.

    A failed connection raises BackendUnavailableError; nothing falls back to
    the in-memory store silently.
    """
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
        yield _mock_backend()
        return

    with ExitStack() as stack:
        try:
            cursor: Any = stack.enter_context(db_connection(cfg.database))
        except Exception as db_e:
            raise BackendUnavailableError(f"DB connection failed: {db_e}") from db_e

        ensure_schema(cursor, cfg.tables)
        yield Backend(
            mode="live",
            store=PostgresRosterStore(cursor, cfg.tables),
            audit=PostgresAuditLog(cursor, cfg.tables),
            admins=PostgresAdminStore(cursor, cfg.tables),
        )


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="seatroster", description="Seat allocation roster CSV tool")
    p.add_argument("--config", type=Path, default=None, help=f"Config file (default: {DEFAULT_CONFIG_PATH})")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--actor-name", default=DEFAULT_ACTOR_NAME, help="Name recorded in the change log")
    p.add_argument("--actor-email", default=DEFAULT_ACTOR_EMAIL, help="Email recorded in the change log")

    sub = p.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("import", help="Upsert users from a roster CSV")
    sp.add_argument("file", type=Path)

    sp = sub.add_parser("restore", help="Replace all users with the contents of a backup CSV")
    sp.add_argument("file", type=Path)

    sp = sub.add_parser("backup", help="Export every user in the restore layout")
    sp.add_argument("-o", "--output", type=Path, default=None)

    sp = sub.add_parser("template", help="Write the import template")
    sp.add_argument("-o", "--output", type=Path, default=Path("user_template.csv"))

    sp = sub.add_parser("report", help="Allocation reports")
    sp.add_argument("kind", choices=["lob", "consolidated", "summary"])
    sp.add_argument("--lob", default=None, help="Line of business (required for 'lob')")
    sp.add_argument("-o", "--output", type=Path, default=None)

    sp = sub.add_parser("add-admins", help="Add email addresses to the admin allowlist")
    sp.add_argument("emails", nargs="+")

    sp = sub.add_parser("inspect", help="Print headers and first rows of a CSV, then exit")
    sp.add_argument("file", type=Path)
    sp.add_argument("--rows", type=int, default=3)

    args = p.parse_args(argv)
    if args.command == "report" and args.kind == "lob" and not args.lob:
        p.error("report lob requires --lob")
    return args


def _write_output(path: Path, text: str) -> None:
    if str(path) == "-":
        sys.stdout.write(text + "\n")
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    logger.info("wrote %s", path)


def _emit_summary(summary: ImportSummary) -> None:
    log_summary(render_summary_line(summary))


def _run_import(args: argparse.Namespace, cfg: AppConfig, backend: Backend, actor: Actor,
                error_log: ErrorLogBuffer) -> int:
    mode = ImportMode.RESTORE if args.command == "restore" else ImportMode.IMPORT
    try:
        text = args.file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("cannot read %s: %s", args.file, e)
        return EXIT_FATAL

    with ImportProgress(description=mode.value.capitalize()) as progress:
        try:
            summary = import_csv(
                text,
                backend.store,
                actor,
                mode=mode,
                audit=backend.audit,
                batch_size=cfg.batch_size,
                progress=progress,
                error_log=error_log,
                file_name=args.file.name,
            )
        except CsvEngineError as e:
            logger.error("%s", e)
            return EXIT_FATAL
        except BatchPersistenceError as e:
            if e.summary is not None:
                _emit_summary(e.summary)
                if e.summary.imported > 0:
                    return EXIT_PARTIAL_FAILURE
            return EXIT_FATAL

    logger.info("mode=%s file=%s imported=%d", backend.mode, args.file.name, summary.imported)
    _emit_summary(summary)
    return EXIT_SUCCESS


def _run_report(args: argparse.Namespace, backend: Backend) -> int:
    records = backend.store.list_all()
    if args.kind == "lob":
        text = render_lob_report(records, args.lob)
        default = Path(f"{args.lob}_Allocation_Report.csv")
    elif args.kind == "consolidated":
        text = render_consolidated_report(records, backend.store.load_locks())
        default = Path("consolidated_report.csv")
    else:
        text = render_lob_summary(records, backend.store.load_roles(), backend.store.load_locks())
        default = Path("lob_allocation_summary.csv")
    _write_output(args.output or default, text)
    return EXIT_SUCCESS


def _run_inspect(args: argparse.Namespace) -> int:
    try:
        doc = parse_csv(args.file.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        logger.error("inspect: cannot read %s: %s", args.file, e)
        return EXIT_FATAL
    header_map = build_header_map(doc.headers)
    print(f"FILE: {args.file.name} rows={len(doc.rows)}")
    print(f"  headers={doc.headers}")
    for label, required in (("import", BASE_HEADERS), ("restore", RESTORE_HEADERS)):
        missing = [h for h in required if h not in header_map]
        print(f"  {label}: {'ok' if not missing else 'missing ' + ', '.join(missing)}")
    for values in doc.rows[: max(args.rows, 0)]:
        print("    sample_row=", dict(zip(doc.headers, values)))
    return EXIT_SUCCESS


def _dispatch(args: argparse.Namespace, cfg: AppConfig, backend: Backend, actor: Actor,
              error_log: ErrorLogBuffer) -> int:
    if args.command in ("import", "restore"):
        return _run_import(args, cfg, backend, actor, error_log)
    if args.command == "backup":
        text = render_backup(backend.store.list_all())
        _write_output(args.output or Path(backup_filename()), text)
        return EXIT_SUCCESS
    if args.command == "report":
        return _run_report(args, backend)
    if args.command == "add-admins":
        added = backend.admins.add_admins(args.emails)
        logger.info("admins added/ensured: %d", added)
        if added:
            backend.audit.record(actor, f"Added {added} Admins", {"emails": list(args.emails)})
        return EXIT_SUCCESS
    raise ValueError(f"unknown command: {args.command}")  # pragma: no cover


def main(argv: list[str] | None = None) -> int:
    # argv=[] を sys.argv と区別する (None のときのみシステム引数)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    setup_logging(debug=args.debug)

    # .env を最優先で読み込む (DB 接続パラメータ優先順位保証)
    load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config, required=args.config is not None)
    except ConfigError as e:
        logger.error("config: %s", e)
        return EXIT_FATAL

    # template / inspect never touch the database
    if args.command == "template":
        _write_output(args.output, render_template())
        return EXIT_SUCCESS
    if args.command == "inspect":
        return _run_inspect(args)

    actor = Actor(name=args.actor_name, email=args.actor_email)
    error_log = ErrorLogBuffer(cfg.logs_directory)
    try:
        with _open_backend(cfg) as backend:
            logger.debug("backend mode=%s", backend.mode)
            return _dispatch(args, cfg, backend, actor, error_log)
    except BackendUnavailableError as e:
        logger.error("%s (set DISABLE_DB_CONNECT=1 for mock mode)", e)
        return EXIT_FATAL
    except CsvEngineError as e:
        logger.error("%s", e)
        return EXIT_FATAL
    except Exception as e:
        logger.error("%s failed: %s", args.command, e)
        return EXIT_FATAL
    finally:
        path = error_log.flush()
        if path is not None:
            logger.info("error details written to %s", path)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
