from __future__ import annotations

import argparse

from wlprune.branding import WLPRUNE_BANNER, WLPRUNE_HEADER
from wlprune.cli.common import (
    add_output_flags,
    add_playlist_flag,
    build_service,
    install_stop_signal,
    positive_int,
)
from wlprune.env import get_env, out_dir
from wlprune.errors import AlreadyRunningError


# ------------------------------------------------------------
# Parser
# ------------------------------------------------------------


def add_settings_flags(p: argparse.ArgumentParser) -> None:
    g = p.add_argument_group("tunables (clamped to their allowed ranges)")
    g.add_argument("--scan-delay-ms", dest="scan_page_throttle_ms", type=int)
    g.add_argument("--delete-delay-ms", dest="delete_throttle_ms", type=int)
    g.add_argument("--sort-attempts", dest="sort_verify_max_attempts", type=int)
    g.add_argument("--sort-poll-ms", dest="sort_verify_poll_ms", type=int)
    g.add_argument("--batch-size", dest="batch_delete_count", type=int)


def build_prune_parser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser(
        "prune", help="Remove the N oldest-added videos from the playlist"
    )
    p.add_argument("count", type=positive_int, help="How many videos to remove")
    p.add_argument(
        "--dry-run", action="store_true", help="Scan and select, but delete nothing"
    )
    p.add_argument(
        "--export-before",
        action="store_true",
        help="Save a full playlist snapshot before deleting",
    )
    p.add_argument(
        "--include-raw",
        action="store_true",
        help="Embed raw renderer JSON in the pre-delete snapshot",
    )
    p.add_argument(
        "--save-deleted",
        action="store_true",
        help="Save an audit file of the removed videos",
    )
    add_playlist_flag(p)
    add_settings_flags(p)
    add_output_flags(p)


def settings_overrides(args: argparse.Namespace) -> dict:
    return {
        k: getattr(args, k, None)
        for k in (
            "scan_page_throttle_ms",
            "delete_throttle_ms",
            "sort_verify_max_attempts",
            "sort_verify_poll_ms",
            "batch_delete_count",
        )
    }


# ------------------------------------------------------------
# Handler
# ------------------------------------------------------------


def handle_prune(args: argparse.Namespace) -> int:
    from wlprune.logger import get_logger
    from wlprune.pipeline.run_state import RunHandle
    from wlprune.runner import PruneRequest, run_prune, summarize

    log = get_logger("wlprune")
    env = get_env()
    settings = env.settings.merged(settings_overrides(args))

    log.info(WLPRUNE_BANNER)
    log.info(WLPRUNE_HEADER(f"Prune {args.count} oldest from {env.playlist_id}"))

    handle = RunHandle()
    install_stop_signal(handle)

    request = PruneRequest(
        count=args.count,
        dry_run=args.dry_run,
        export_before=args.export_before,
        include_raw=args.include_raw,
        save_deleted=args.save_deleted,
    )

    try:
        outcome = run_prune(
            build_service(env),
            request,
            settings,
            handle=handle,
            out_dir=out_dir(),
            playlist_id=env.playlist_id,
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
    counts = outcome.state.counts
    log.info("")
    log.info("Run summary:")
    log.info(f"  - requested:  {counts.requested}")
    log.info(f"  - selected:   {counts.selected}")
    log.info(f"  - deleted:    {counts.deleted}")
    log.info(f"  - reconciled: {counts.reconciled}")
    log.info(f"  - pages:      {counts.pages_fetched}")
    for path in outcome.exports:
        log.info(f"  - saved:      {path}")
    log.info(f"  - runtime:    {outcome.state.runtime_seconds}s")
    log.info("")
    log.info(f"RUN_STATUS={status}")
    return code
