from __future__ import annotations

import argparse
import logging
import signal
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from rich.table import Table

from wlprune.cli.render import RENDER
from wlprune.env import Environment, logs_dir


# ----------------------------
# Help dispatch (subparser-local)
# ----------------------------


def dispatch_subparser_help(
    parser: argparse.ArgumentParser, path: list[str] | None
) -> int:
    """
    Implements consistent `X help [subcmd ...]` behavior for a subtree parser.
    """
    if not path:
        parser.print_help()
        return 0

    try:
        parser.parse_args(path + ["--help"])
    except SystemExit:
        pass
    return 0


# ----------------------------
# Shared run options
# ----------------------------


def add_output_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument("--verbose", action="store_true", help="Verbose console output")
    p.add_argument("--quiet", action="store_true", help="Suppress console output")


def add_playlist_flag(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--playlist-id",
        dest="playlist_id",
        default=None,
        help="Playlist to operate on (default: WL, the Watch Later list)",
    )


def positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value}")
    if n < 1:
        raise argparse.ArgumentTypeError("N must be a positive number")
    return n


def build_service(env: Environment, provider: str = "youtube"):
    """InnertubeClient wired from the resolved environment."""
    from wlprune.auth.registry import get_provider
    from wlprune.providers.youtube import InnertubeClient, build_client_context

    return InnertubeClient(
        get_provider(provider, env),
        build_client_context(
            client_version=env.client_version,
            hl=env.hl,
            gl=env.gl,
            visitor_data=env.visitor_data,
        ),
        api_key=env.api_key,
        browse_params=env.browse_params,
        timeout=env.request_timeout,
        max_retries=env.max_retries,
        backoff_base_sec=env.backoff_base_sec,
    )


def install_stop_signal(handle) -> None:
    """
    First Ctrl-C requests a cooperative stop; a second one aborts hard.
    """

    def _on_sigint(signum, frame):
        if handle.stop_requested:
            signal.signal(signal.SIGINT, signal.default_int_handler)
            raise KeyboardInterrupt
        handle.request_stop()

    signal.signal(signal.SIGINT, _on_sigint)


# ----------------------------
# Logs / runs filesystem helpers
# ----------------------------


def resolve_log_dir(*, command: str | None, explicit: str | None) -> Path:
    if explicit:
        return Path(explicit).expanduser().resolve()

    base = logs_dir()
    return (base / command).resolve() if command else base


def iter_log_files(log_dir: Path) -> Iterable[Path]:
    if not log_dir.exists():
        return []
    return (p for p in log_dir.rglob("*.log") if p.is_file())


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def filter_min_level(lines: list[str], min_level: int) -> list[str]:
    """
    Keep records at or above min_level. Continuation lines (tracebacks) follow
    the record they belong to.
    """
    out: list[str] = []
    keep = False
    for line in lines:
        parts = line.split(" | ", 2)
        if len(parts) >= 2 and parts[1].startswith("[") and parts[1].endswith("]"):
            level = logging.getLevelName(parts[1][1:-1])
            keep = isinstance(level, int) and level >= min_level
        if keep:
            out.append(line)
    return out


def print_tail(path: Path, lines: int, min_level: Optional[int] = None) -> None:
    try:
        data = read_text(path).splitlines()
    except OSError as e:
        RENDER.print(f"[error reading log] {e}", markup=False)
        return

    if min_level is not None:
        data = filter_min_level(data, min_level)
    tail = data[-lines:] if lines > 0 else data
    for line in tail:
        RENDER.print(line, markup=False)


# ----------------------------
# Run status inference (log-driven)
# ----------------------------

RUN_STATUSES = ("completed", "stopped", "auth_invalid", "failed")


def infer_run_status(path: Path) -> str:
    """
    RUN_STATUS=<value> is authoritative; the last one in the file wins.
    """
    try:
        text = read_text(path)
    except OSError:
        return "unknown"

    status = "unknown"
    for line in text.splitlines():
        _, sep, tail = line.partition("RUN_STATUS=")
        if sep:
            value = tail.strip().split()[0] if tail.strip() else ""
            if value in RUN_STATUSES:
                status = value
    return status


@dataclass(frozen=True)
class RunFile:
    run_id: str
    command: str
    path: Path
    mtime: float
    size: int


def list_run_files(log_dir: Path) -> list[RunFile]:
    items: list[RunFile] = []
    for p in iter_log_files(log_dir):
        try:
            st = p.stat()
        except OSError:
            continue
        items.append(
            RunFile(
                run_id=p.stem,
                command=p.parent.name,
                path=p,
                mtime=st.st_mtime,
                size=st.st_size,
            )
        )

    items.sort(key=lambda r: r.mtime, reverse=True)
    return items


def find_run(runs: list[RunFile], key: str) -> Optional[RunFile]:
    """
    Match a run by file stem, file name or bare run id; "latest" is the newest.
    """
    if key == "latest":
        return runs[0] if runs else None
    for r in runs:
        if key in (r.run_id, r.path.name, r.run_id[len(r.command) + 1 :]):
            return r
    return None


def format_mtime(ts: float) -> str:
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M:%S")


# ----------------------------
# CLI output helpers
# ----------------------------


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    if not rows:
        RENDER.print("(no results)")
        return

    table = Table(title=title, show_edge=False, header_style="bold")
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*(str(c) for c in row))
    RENDER.print(table)
