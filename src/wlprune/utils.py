"""
utils.py

Path, text and file helpers.

This module provides:
- Playlist id validation for filesystem use
- Whitespace-normalized text helpers used by extraction and matching
- Timestamp helpers
- Atomic JSON writes
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

_WS_RE = re.compile(r"\s+")
_DIGITS_RE = re.compile(r"[^\d]")

# ============================================================
# Validation
# ============================================================


def validate_playlist_id(playlist_id: str) -> None:
    """
    Validate playlist ID format to prevent path traversal.

    Args:
        playlist_id: YouTube playlist ID (e.g. "WL")

    Raises:
        ValueError: If playlist_id contains invalid characters
    """
    if not re.match(r"^[A-Za-z0-9_-]+$", playlist_id or ""):
        raise ValueError(
            f"Invalid playlist_id: {playlist_id}. "
            f"Must contain only alphanumeric characters, hyphens, and underscores."
        )


# ============================================================
# Text
# ============================================================


def safe_text(value: Any) -> str:
    """Collapse whitespace runs and strip. None becomes ''."""
    if value is None:
        return ""
    return _WS_RE.sub(" ", str(value)).strip()


def extract_integer_from_text(text: Any) -> Optional[int]:
    """
    Pull every digit out of a display string and read them as one integer.

    "1,234 videos" -> 1234, "No videos" -> None
    """
    digits = _DIGITS_RE.sub("", str(text or ""))
    if not digits:
        return None
    return int(digits)


# ============================================================
# Time
# ============================================================


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def file_stamp(iso_timestamp: Optional[str] = None) -> str:
    """Filesystem-safe variant of an ISO timestamp."""
    return re.sub(r"[:.]", "-", iso_timestamp or utc_now_iso())


# ============================================================
# File I/O Helpers
# ============================================================


def write_json(path: Path, data: Any, atomic: bool = True) -> None:
    """
    Write data to a JSON file.

    Args:
        path: Path to JSON file
        data: Data to serialize
        atomic: If True, write to temp file first then rename

    Raises:
        TypeError: If data is not JSON serializable
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    if atomic:
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp_path.replace(path)
    else:
        with path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)


def read_json(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"JSON file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        return json.load(f)
