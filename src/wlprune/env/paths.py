from __future__ import annotations

import os
from pathlib import Path

# ---------------------------------------------------------------------
# Project root
# ---------------------------------------------------------------------

# This file lives in src/wlprune/env/, so project root is four levels up
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent


# ---------------------------------------------------------------------
# Base directories (override-friendly)
# ---------------------------------------------------------------------


def _resolve_dir(env_var: str, default: Path) -> Path:
    """
    Resolve a directory path from an environment variable or default.
    Ensures the directory exists.
    """
    raw = os.environ.get(env_var)
    path = Path(raw).expanduser().resolve() if raw else default
    path.mkdir(parents=True, exist_ok=True)
    return path


def logs_dir() -> Path:
    return _resolve_dir("WLPRUNE_LOGS_DIR", PROJECT_ROOT / "logs")


def out_dir() -> Path:
    """Exports (playlist snapshots, deletion audits)."""
    return _resolve_dir("WLPRUNE_OUT_DIR", PROJECT_ROOT / "out")


# ---------------------------------------------------------------------
# Log layout helpers
# ---------------------------------------------------------------------


def module_logs_dir(module: str) -> Path:
    """
    Base log directory for a CLI command (e.g. prune, export).
    """
    path = logs_dir() / module
    path.mkdir(parents=True, exist_ok=True)
    return path
