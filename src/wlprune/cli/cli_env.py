from __future__ import annotations

import argparse
import json
import os
from pathlib import Path

from rich.text import Text

from wlprune import config
from wlprune.cli.common import dispatch_subparser_help
from wlprune.cli.render import RENDER
from wlprune.env import get_env

# Environment variable -> (PruneSettings field, (default, min, max))
_TUNABLE_VARS = {
    "WLPRUNE_SCAN_PAGE_THROTTLE_MS": ("scan_page_throttle_ms", config.SCAN_PAGE_THROTTLE_MS),
    "WLPRUNE_DELETE_THROTTLE_MS": ("delete_throttle_ms", config.DELETE_THROTTLE_MS),
    "WLPRUNE_SORT_VERIFY_MAX_ATTEMPTS": (
        "sort_verify_max_attempts",
        config.SORT_VERIFY_MAX_ATTEMPTS,
    ),
    "WLPRUNE_SORT_VERIFY_POLL_MS": ("sort_verify_poll_ms", config.SORT_VERIFY_POLL_MS),
    "WLPRUNE_BATCH_DELETE_COUNT": ("batch_delete_count", config.BATCH_DELETE_COUNT),
}


def build_env_parser(subparsers: argparse._SubParsersAction) -> None:
    env = subparsers.add_parser("env", help="Environment utilities")
    sub = env.add_subparsers(dest="env_cmd", required=True)

    help_p = sub.add_parser("help", help="Show help for env")
    help_p.add_argument("path", nargs="*", help="Subcommand path")
    help_p.set_defaults(action="help", _help_parser=env)

    dump_p = sub.add_parser("dump", help="Show resolved runtime environment")
    dump_p.add_argument("--json", action="store_true", help="Print as JSON")
    dump_p.set_defaults(action="dump")

    check_p = sub.add_parser(
        "check", help="Report missing session config and clamped tunables"
    )
    check_p.set_defaults(action="check")


def handle_env(args: argparse.Namespace) -> int:
    if args.action == "help":
        return dispatch_subparser_help(
            args._help_parser, list(getattr(args, "path", []) or [])
        )

    if args.action == "dump":
        return handle_env_dump(as_json=bool(getattr(args, "json", False)))

    if args.action == "check":
        return handle_env_check()

    raise RuntimeError(f"Unknown env action: {args.action}")


def handle_env_dump(as_json: bool = False) -> int:
    # Secrets are reported as set/missing only; see Environment.as_dict().
    data = get_env().as_dict()

    if as_json:
        RENDER.print_json(json.dumps(data))
        return 0

    RENDER.print("\n[bold]Runtime Environment[/bold]")
    RENDER.print("─" * 50)

    for section, values in data.items():
        RENDER.print(f"\n[bold cyan]{section}[/bold cyan]")
        for key, value in values.items():
            RENDER.print(f"  {key:<24} = {value}", markup=False)

    RENDER.print()
    return 0


def collect_env_problems() -> list[str]:
    env = get_env()
    problems: list[str] = []

    if not env.cookie and not env.cookie_file:
        problems.append("No session cookie: set WLPRUNE_COOKIE or WLPRUNE_COOKIE_FILE.")
    elif not env.cookie and not Path(env.cookie_file).expanduser().exists():
        problems.append(f"WLPRUNE_COOKIE_FILE does not exist: {env.cookie_file}")

    for var, (field_name, (_, lo, hi)) in _TUNABLE_VARS.items():
        raw = os.environ.get(var)
        if raw is None or raw.strip() == "":
            continue
        effective = getattr(env.settings, field_name)
        if raw.strip() != str(effective):
            problems.append(
                f"{var}={raw!r} is outside [{lo}, {hi}] or not an integer; "
                f"using {effective}."
            )

    return problems


def handle_env_check() -> int:
    problems = collect_env_problems()
    if not problems:
        RENDER.print(Text("Environment OK", style="green"))
        return 0

    for p in problems:
        RENDER.print(Text(f"- {p}", style="yellow"))
    return 1
