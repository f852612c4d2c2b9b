from __future__ import annotations

import argparse

from rich.text import Text

from wlprune.cli.common import add_output_flags, add_playlist_flag, build_service
from wlprune.cli.render import RENDER
from wlprune.env import get_env


def build_auth_parser(subparsers: argparse._SubParsersAction) -> None:
    auth = subparsers.add_parser("auth", help="Session cookie utilities")
    sub = auth.add_subparsers(dest="auth_cmd", required=True)

    check_p = sub.add_parser(
        "check", help="Verify the session cookie can read the playlist"
    )
    check_p.add_argument(
        "--provider",
        default="youtube",
        help="Auth provider to check (default: youtube)",
    )
    add_playlist_flag(check_p)
    add_output_flags(check_p)


def handle_auth(args: argparse.Namespace) -> int:
    from wlprune.auth import AuthHealthStatus
    from wlprune.auth.health import check
    from wlprune.logger import get_logger

    logger = get_logger("wlprune.auth")
    env = get_env()

    try:
        service = build_service(env, args.provider)
    except ValueError as e:
        RENDER.print(Text(str(e), style="red"))
        return 20

    result = check(service, env.playlist_id, args.provider)
    logger.info(f"session.check.result={result.status.value}")

    if result.status == AuthHealthStatus.OK:
        if not env.quiet:
            msg = Text("Session OK", style="green")
            if env.verbose:
                msg.append(f" (playlist {env.playlist_id} readable)", style="dim")
            RENDER.print(msg)
        return 0

    if result.status == AuthHealthStatus.AUTH_INVALID:
        if not env.quiet:
            RENDER.print(Text(f"Session INVALID: {result.message}", style="red"))
        return 12

    if not env.quiet:
        RENDER.print(Text(f"Session check failed: {result.message}", style="red"))
    return 20
