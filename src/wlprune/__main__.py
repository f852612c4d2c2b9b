#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys

from wlprune.bootstrap import enter_command, load_base_env
from wlprune.env import ConfigError

# Commands that touch the playlist get a full log file and banner.
_RUN_COMMANDS = ("prune", "export", "auth")


def _dispatch_help(argv: list[str]) -> int:
    # Support:
    #   wlprune help
    #   wlprune help prune
    argv = [a for a in argv if a != "help"]
    try:
        build_parser().parse_args(argv + ["--help"])
    except SystemExit:
        pass
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="wlprune",
        description="Remove the oldest-added videos from YouTube Watch Later.",
    )

    sub = p.add_subparsers(dest="command", required=True)

    help_cmd = sub.add_parser("help", help="Show help")
    help_cmd.add_argument("path", nargs="*", help="Command path to show help for")

    # Keep imports inside builder to avoid early side effects.
    from wlprune.cli.cli_auth import build_auth_parser
    from wlprune.cli.cli_env import build_env_parser
    from wlprune.cli.cli_export import build_export_parser
    from wlprune.cli.cli_logs import build_logs_parser
    from wlprune.cli.cli_prune import build_prune_parser
    from wlprune.cli.cli_runs import build_runs_parser

    build_prune_parser(sub)
    build_export_parser(sub)
    build_auth_parser(sub)
    build_env_parser(sub)
    build_runs_parser(sub)
    build_logs_parser(sub)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    # config/.env (optional) and the run id, before anything reads the env
    load_base_env()

    if not argv or argv[0] == "help":
        return _dispatch_help(argv[1:] if argv else [])

    parser = build_parser()
    args = parser.parse_args(argv)

    # Stamp run context before logging so the log file lands in logs/<command>/
    ctx = enter_command(
        args.command,
        playlist_id=getattr(args, "playlist_id", None),
        verbose=bool(getattr(args, "verbose", False)),
        quiet=bool(getattr(args, "quiet", False)),
    )

    if args.command in _RUN_COMMANDS:
        from wlprune.logger import get_logger, init_logging

        init_logging(module=args.command)
        log = get_logger("wlprune")
        log.info("wlprune starting")
        log.info(f"Command: {ctx.command} (run {ctx.run_id})")
        log.debug(f"Log file stem: {ctx.log_stem}")

    try:
        return _dispatch(args)
    except ConfigError as e:
        from wlprune.logger import get_logger

        log = get_logger("wlprune")
        log.error(f"Configuration error: {e}")
        if args.command in _RUN_COMMANDS:
            log.info("RUN_STATUS=failed")
        return 20


def _dispatch(args: argparse.Namespace) -> int:
    if args.command == "prune":
        from wlprune.cli.cli_prune import handle_prune

        return handle_prune(args)

    if args.command == "export":
        from wlprune.cli.cli_export import handle_export

        return handle_export(args)

    if args.command == "auth":
        from wlprune.cli.cli_auth import handle_auth

        return handle_auth(args)

    if args.command == "env":
        from wlprune.cli.cli_env import handle_env

        return handle_env(args)

    if args.command == "runs":
        from wlprune.cli.cli_runs import handle_runs

        return handle_runs(args)

    if args.command == "logs":
        from wlprune.cli.cli_logs import handle_logs

        return handle_logs(args)

    raise RuntimeError(f"Unknown command: {args.command}")


if __name__ == "__main__":
    raise SystemExit(main())
