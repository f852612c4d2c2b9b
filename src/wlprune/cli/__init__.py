"""
wlprune CLI package.

Each module exposes:
- build_*_parser(subparsers)
- handle_*(args) -> int

No side effects at package import time.
"""
from __future__ import annotations

__all__ = [
    "cli_prune",
    "cli_export",
    "cli_env",
    "cli_runs",
    "cli_logs",
    "cli_auth",
]
