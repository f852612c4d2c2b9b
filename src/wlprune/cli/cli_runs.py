from __future__ import annotations

import argparse

from wlprune.cli.common import (
    RunFile,
    dispatch_subparser_help,
    find_run,
    format_mtime,
    infer_run_status,
    list_run_files,
    print_table,
    print_tail,
    resolve_log_dir,
)
from wlprune.cli.render import RENDER


def build_runs_parser(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("runs", help="Inspect past runs (log-driven)")
    sp = p.add_subparsers(dest="runs_cmd", required=True)

    help_p = sp.add_parser("help", help="Show help for runs")
    help_p.add_argument("path", nargs="*", help="Subcommand path")
    help_p.set_defaults(_help_parser=p)

    for name, text in (("list", "List runs"), ("latest", "Show latest run")):
        q = sp.add_parser(name, help=text)
        q.add_argument("--command", dest="log_command", help="Only logs/<command>/")
        q.add_argument("--dir", help="Explicit log directory")

    show_p = sp.add_parser("show", help="Show a specific run")
    show_p.add_argument("run_id", help="Run id, filename stem or latest")
    show_p.add_argument("--command", dest="log_command", help="Only logs/<command>/")
    show_p.add_argument("--dir", help="Explicit log directory")
    show_p.add_argument("--tail", type=int, default=40, help="Lines to show from end")


def _describe(run: RunFile) -> None:
    RENDER.print(f"Run:     {run.run_id}", markup=False)
    RENDER.print(f"Command: {run.command}", markup=False)
    RENDER.print(f"Path:    {run.path}", markup=False)
    RENDER.print(f"Time:    {format_mtime(run.mtime)}", markup=False)
    RENDER.print(f"Size:    {run.size} bytes", markup=False)
    RENDER.print(f"State:   {infer_run_status(run.path)}", markup=False)


def handle_runs(args: argparse.Namespace) -> int:
    if args.runs_cmd == "help":
        return dispatch_subparser_help(
            args._help_parser, list(getattr(args, "path", []) or [])
        )

    log_dir = resolve_log_dir(
        command=getattr(args, "log_command", None),
        explicit=getattr(args, "dir", None),
    )
    runs = list_run_files(log_dir)

    if args.runs_cmd == "list":
        rows = [
            [
                r.run_id,
                r.command,
                infer_run_status(r.path),
                format_mtime(r.mtime),
                f"{r.size} bytes",
            ]
            for r in runs
        ]
        print_table(["run_id", "command", "state", "time", "size"], rows)
        return 0

    if args.runs_cmd == "latest":
        if not runs:
            RENDER.print("No runs found")
            return 1
        _describe(runs[0])
        return 0

    if args.runs_cmd == "show":
        match = find_run(runs, args.run_id)
        if not match:
            RENDER.print(f"Run not found: {args.run_id}", markup=False)
            return 1

        _describe(match)
        RENDER.print()
        print_tail(match.path, args.tail)
        return 0

    return 1
