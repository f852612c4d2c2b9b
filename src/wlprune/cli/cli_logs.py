from __future__ import annotations

import argparse
import logging
from collections import Counter

from wlprune.cli.common import (
    dispatch_subparser_help,
    find_run,
    format_mtime,
    list_run_files,
    print_table,
    print_tail,
    resolve_log_dir,
)
from wlprune.cli.render import RENDER
from wlprune.env import get_logging_env

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_logs_parser(subparsers: argparse._SubParsersAction) -> None:
    logs = subparsers.add_parser("logs", help="Browse run log files")
    lsub = logs.add_subparsers(dest="logs_cmd", required=True)

    help_p = lsub.add_parser("help", help="Show help for logs")
    help_p.add_argument("path", nargs="*", help="Subcommand path (e.g. list, show)")
    help_p.set_defaults(action="help", _help_parser=logs)

    list_p = lsub.add_parser("list", help="List log files, newest first")
    list_p.add_argument("--command", dest="log_command", help="Only logs/<command>/")
    list_p.add_argument("--dir", help="Explicit log directory")
    list_p.set_defaults(action="list")

    show_p = lsub.add_parser("show", help="Print the end of one log file")
    show_p.add_argument("name", help="Run id, filename stem or latest")
    show_p.add_argument("--command", dest="log_command", help="Only logs/<command>/")
    show_p.add_argument("--dir", help="Explicit log directory")
    show_p.add_argument("--tail", type=int, default=120, help="Lines from end (0 = all)")
    show_p.add_argument(
        "--level",
        type=str.upper,
        choices=LEVELS,
        default=None,
        help="Only records at or above this level",
    )
    show_p.set_defaults(action="show")


def _list(runs) -> int:
    if not runs:
        RENDER.print("No log files found")
        return 0

    print_table(
        ["file", "time", "size"],
        [[r.path.name, format_mtime(r.mtime), f"{r.size} bytes"] for r in runs],
    )

    # Retention applies per command directory when a run starts.
    keep = get_logging_env().log_retention
    for command, n in sorted(Counter(r.command for r in runs).items()):
        RENDER.print(f"{command}: {n} file(s), retention keeps {keep}", markup=False)
    return 0


def handle_logs(args: argparse.Namespace) -> int:
    if args.action == "help":
        return dispatch_subparser_help(
            args._help_parser, list(getattr(args, "path", []) or [])
        )

    log_dir = resolve_log_dir(
        command=getattr(args, "log_command", None),
        explicit=getattr(args, "dir", None),
    )
    runs = list_run_files(log_dir)

    if args.action == "list":
        return _list(runs)

    if args.action == "show":
        run = find_run(runs, args.name)
        if run is None:
            RENDER.print(f"Log not found: {args.name}", markup=False)
            return 1
        min_level = logging.getLevelName(args.level) if args.level else None
        print_tail(run.path, int(args.tail), min_level)
        return 0

    raise SystemExit(f"Unknown logs action: {args.action}")
