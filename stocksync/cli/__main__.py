from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import ConfigError, SettingsStore
from ..logging.init import log_summary, set_debug, setup_logging
from ..models.errors import LockConflictError
from ..services.manager import StockManager
from ..services.summary import render_summary_line

"""CLI entrypoint.

Every invocation is a short session: load settings, open the stock workbook
(the --file argument or the permanent file), run one command, drain pending
cloud lock releases and flush the error journal.
"""

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CONFLICT = 2


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="stocksync", description="Stock workbook merge & cloud folder sync")
    p.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Settings file (default: $STOCKSYNC_SETTINGS or ~/.config/stocksync/settings.yml)",
    )
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    create_commands = (
        ("create-stock", "Create a blank stock workbook"),
        ("create-purchase", "Create a blank purchase workbook"),
    )
    for name, help_text in create_commands:
        c = sub.add_parser(name, help=help_text)
        c.add_argument("path", type=Path)
        c.add_argument("--rows", type=int, default=15)

    c = sub.add_parser("set-canonical", help="Set the permanent stock workbook")
    c.add_argument("path", type=Path)

    c = sub.add_parser("merge", help="Merge a purchase workbook into the stock workbook")
    c.add_argument("purchase", type=Path)
    c.add_argument("--file", type=Path, default=None, help="Stock workbook (default: permanent file)")

    cloud_commands = (
        ("push", "Upload the stock workbook to the cloud folder"),
        ("check", "Check whether the cloud copy is newer"),
    )
    for name, help_text in cloud_commands:
        c = sub.add_parser(name, help=help_text)
        c.add_argument("--file", type=Path, default=None)

    c = sub.add_parser("pull", help="Replace the local workbook with the cloud copy")
    c.add_argument(
        "--file",
        type=Path,
        default=None,
        help="Local workbook whose name is looked up in the cloud folder",
    )

    c = sub.add_parser("find", help="Find a part by exact name")
    c.add_argument("name")
    c.add_argument("--file", type=Path, default=None)

    c = sub.add_parser("search", help="Search part name, part number and vendor")
    c.add_argument("text")
    c.add_argument("--file", type=Path, default=None)

    c = sub.add_parser("add-item", help="Add stock for one part and save")
    c.add_argument("name")
    c.add_argument("quantity", type=int)
    c.add_argument("--department", default="")
    c.add_argument("--file", type=Path, default=None)

    c = sub.add_parser("configure", help="Change sync settings")
    c.add_argument("--cloud-folder", type=Path, default=None)
    c.add_argument("--user", default=None)
    c.add_argument("--role", choices=["owner", "editor", "viewer"], default=None)
    c.add_argument("--sync", dest="sync_enabled", action="store_true", default=None)
    c.add_argument("--no-sync", dest="sync_enabled", action="store_false")

    sub.add_parser("status", help="Show settings and sync status")
    return p.parse_args(argv)


def _open(manager: StockManager, file: Path | None) -> bool:
    if file is not None:
        return manager.load(file)
    return manager.load_canonical()


def _target(manager: StockManager, file: Path | None) -> bool:
    """Point the session at a file without loading it (for pull / check)."""
    path = file if file is not None else manager.canonical_file
    if path is None:
        print("no file given and no permanent file set")
        return False
    manager.workbook.adopt_path(path.expanduser())
    return True


def _conflict_or_failure(manager: StockManager) -> int:
    if isinstance(manager.last_error, LockConflictError):
        return EXIT_CONFLICT
    return EXIT_FAILURE


def _run(manager: StockManager, args: argparse.Namespace) -> int:
    cmd = args.command

    if cmd in ("create-stock", "create-purchase"):
        if cmd == "create-stock":
            manager.create_canonical(args.rows)
        else:
            manager.create_delta(args.rows)
        return EXIT_SUCCESS if manager.save(args.path) else EXIT_FAILURE

    if cmd == "set-canonical":
        return EXIT_SUCCESS if manager.set_canonical_path(args.path) else EXIT_FAILURE

    if cmd == "merge":
        if not _open(manager, args.file):
            return EXIT_FAILURE
        report = manager.merge(args.purchase)
        if report is None:
            return EXIT_FAILURE
        if manager.canonical_file is None and not manager.save():
            return EXIT_FAILURE
        summary_line = render_summary_line(report, manager.table.row_count)
        log_summary(summary_line[len("SUMMARY "):])
        return EXIT_SUCCESS

    if cmd == "push":
        if not _open(manager, args.file):
            return EXIT_FAILURE
        return EXIT_SUCCESS if manager.push_to_cloud() else _conflict_or_failure(manager)

    if cmd == "pull":
        if not _target(manager, args.file):
            return EXIT_FAILURE
        return EXIT_SUCCESS if manager.pull_from_cloud() else _conflict_or_failure(manager)

    if cmd == "check":
        if not _target(manager, args.file):
            return EXIT_FAILURE
        if manager.check_for_updates():
            print("cloud copy is newer than the local file")
            return EXIT_CONFLICT
        print("local file is up to date")
        return EXIT_SUCCESS

    if cmd == "find":
        if not _open(manager, args.file):
            return EXIT_FAILURE
        row = manager.find_by_name(args.name)
        if row is None:
            return EXIT_FAILURE
        print(f"row={row} " + " | ".join("" if v is None else str(v) for v in manager.table.rows()[row]))
        return EXIT_SUCCESS

    if cmd == "search":
        if not _open(manager, args.file):
            return EXIT_FAILURE
        hits = manager.search_all(args.text)
        for h in hits:
            print(f"row={h.row} part={h.part_name} part_no={h.part_no} stock={h.stock} vendor={h.vendor}")
        print(f"{len(hits)} result(s)")
        return EXIT_SUCCESS

    if cmd == "add-item":
        if not _open(manager, args.file):
            return EXIT_FAILURE
        manager.add_item(args.name, args.department, args.quantity)
        return EXIT_SUCCESS if manager.save() else EXIT_FAILURE

    if cmd == "configure":
        ok = True
        if args.cloud_folder is not None:
            ok = manager.sync.set_cloud_folder(args.cloud_folder) and ok
        if args.user is not None:
            ok = manager.sync.set_current_user(args.user) and ok
        if args.role is not None:
            ok = manager.sync.set_user_role(args.role) and ok
        if args.sync_enabled is not None:
            ok = manager.sync.set_sync_enabled(args.sync_enabled) and ok
        return EXIT_SUCCESS if ok else EXIT_FAILURE

    if cmd == "status":
        s = manager.store.settings
        print(f"user={s.current_user} role={s.user_role}")
        print(f"permanent_file={s.permanent_file or '-'}")
        print(f"cloud_folder={s.cloud_folder or '-'} sync_enabled={s.sync_enabled}")
        print(f"sync_status={manager.sync_state.value} last_sync={s.last_sync_time}")
        return EXIT_SUCCESS

    return EXIT_FAILURE  # pragma: no cover (argparse rejects unknown commands)


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # only read sys.argv when argv is None so tests can pass []
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    load_dotenv(dotenv_path=Path(".env"), override=False)

    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    try:
        store = SettingsStore.load(args.settings)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FAILURE

    manager = StockManager(store)
    try:
        return _run(manager, args)
    finally:
        manager.close()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
