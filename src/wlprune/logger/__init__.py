from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from wlprune.env import current_run_id, get_logging_env, module_logs_dir
from .console import build_console_handler
from .file import build_file_handler, repoint_file_handler
from .retention import enforce_retention
from . import state as _state


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _level_to_int(level: str | int) -> int:
    if isinstance(level, int):
        return level
    lvl = logging.getLevelName(str(level).upper())
    return lvl if isinstance(lvl, int) else logging.INFO


def _target_logfile(module: Optional[str]) -> Path:
    command = module or os.environ.get("WLPRUNE_COMMAND") or "bootstrap"
    return module_logs_dir(command) / f"{command}-{current_run_id()}.log"


def _squelch_noisy_loggers() -> None:
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


def init_logging(module: Optional[str] = None) -> None:
    """
    Initialize logging for the entire process.

    - Handlers are attached ONLY to the root logger.
    - Named loggers inherit via propagation.
    - Safe to call multiple times; file handler is repointed, not stacked.
    """
    env = get_logging_env()
    _squelch_noisy_loggers()

    root = logging.getLogger()
    logfile = _target_logfile(module)

    logfile.parent.mkdir(parents=True, exist_ok=True)
    pruned = enforce_retention(
        logfile.parent, int(env.log_retention), protect=logfile
    )

    # Base level from env, but verbose forces DEBUG everywhere.
    root_level = logging.DEBUG if env.verbose else _level_to_int(env.log_level)

    current = _state.STATE
    if current.initialized and current.log_file == logfile:
        root.setLevel(root_level)
        return

    existing_file: logging.FileHandler | None = None
    for h in list(root.handlers):
        if isinstance(h, logging.FileHandler):
            existing_file = h
            break

    root.handlers.clear()
    root.setLevel(root_level)

    if existing_file is not None:
        repoint_file_handler(existing_file, logfile)
        root.addHandler(existing_file)
    else:
        root.addHandler(build_file_handler(logfile))

    if not env.quiet:
        root.addHandler(build_console_handler(root_level))

    current.initialized = True
    current.command = logfile.parent.name
    current.run_id = current_run_id()
    current.log_file = logfile

    if pruned:
        get_logger(__name__).debug(
            f"Log retention removed {len(pruned)} old log file(s) from {logfile.parent}"
        )
