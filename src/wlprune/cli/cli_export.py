from __future__ import annotations

import argparse

from wlprune.branding import WLPRUNE_HEADER
from wlprune.cli.cli_prune import add_settings_flags, settings_overrides
from wlprune.cli.common import (
    add_output_flags,
    add_playlist_flag,
    build_service,
    install_stop_signal,
)
from wlprune.env import get_env, out_dir
from wlprune.errors import AlreadyRunningError


def build_export_parser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser(
        "export", help="Save a JSON snapshot of the playlist (no changes)"
    )
    p.add_argument(
        "--include-raw",
        action="store_true",
        help="Embed raw renderer JSON for each entry",
    )
    add_playlist_flag(p)
    add_settings_flags(p)
    add_output_flags(p)


def handle_export(args: argparse.Namespace) -> int:
    from wlprune.logger import get_logger
    from wlprune.pipeline.run_state import RunHandle
    from wlprune.runner import run_export, summarize

    log = get_logger("wlprune")
    env = get_env()
    settings = env.settings.merged(settings_overrides(args))

    log.info(WLPRUNE_HEADER(f"Export {env.playlist_id}"))

    handle = RunHandle()
    install_stop_signal(handle)

    try:
        outcome = run_export(
            build_service(env),
            settings,
            handle=handle,
            out_dir=out_dir(),
            playlist_id=env.playlist_id,
            include_raw=args.include_raw,
            logger=log,
        )
    except AlreadyRunningError as e:
        log.error(str(e))
        log.info("RUN_STATUS=failed")
        return 20
    except KeyboardInterrupt:
        log.error("Aborted by second interrupt; in-flight request state is unknown.")
        log.info("RUN_STATUS=failed")
        return 20

    status, code = summarize(outcome)
    log.info(f"RUN_STATUS={status}")
    return code
