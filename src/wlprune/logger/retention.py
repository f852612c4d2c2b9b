from __future__ import annotations

from pathlib import Path
from typing import List, Optional


def enforce_retention(
    log_dir: Path, keep: int, *, protect: Optional[Path] = None
) -> List[Path]:
    """
    Keep the newest `keep` run logs in one command directory.

    Run ids are timestamps, so names sort chronologically; mtime breaks ties.
    `protect` (the log about to be written) is never removed. Returns the
    paths that were deleted.
    """
    if keep <= 0 or not log_dir.exists():
        return []

    logs = sorted(
        (p for p in log_dir.glob("*.log") if p != protect),
        key=lambda p: (p.name, p.stat().st_mtime),
        reverse=True,
    )
    if protect is not None:
        keep -= 1

    removed: List[Path] = []
    for old in logs[max(keep, 0) :]:
        try:
            old.unlink()
        except OSError:
            continue
        removed.append(old)
    return removed
