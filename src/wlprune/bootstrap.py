"""Start-up wiring for the wlprune CLI.

load_base_env() runs before argparse. It folds config/.env into os.environ
(variables already set win) and fixes the run id for the process.

enter_command() runs after parsing and before init_logging(). It stamps the
command and its output flags into os.environ, which is where logging and
get_env() read them from, and returns the CommandContext for the run.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from wlprune.env import PROJECT_ROOT, _load_dotenv, current_run_id, reset_env_caches

DEFAULT_ENV_FILE = PROJECT_ROOT / "config" / ".env"


@dataclass(frozen=True)
class CommandContext:
    command: str
    run_id: str
    playlist_id: Optional[str] = None

    @property
    def log_stem(self) -> str:
        return f"{self.command}-{self.run_id}"


def load_base_env(env_file: Optional[Path] = None) -> str:
    """Load the dotenv file (optional) and return the process run id."""
    _load_dotenv(env_file or DEFAULT_ENV_FILE)
    reset_env_caches()
    return current_run_id()


def enter_command(
    command: str,
    *,
    playlist_id: Optional[str] = None,
    verbose: bool = False,
    quiet: bool = False,
) -> CommandContext:
    os.environ["WLPRUNE_COMMAND"] = command
    if playlist_id:
        os.environ["WLPRUNE_PLAYLIST_ID"] = playlist_id

    # Flags only switch output on; WLPRUNE_VERBOSE / WLPRUNE_QUIET from .env stand otherwise.
    if verbose:
        os.environ["WLPRUNE_VERBOSE"] = "1"
    if quiet:
        os.environ["WLPRUNE_QUIET"] = "1"

    reset_env_caches()
    return CommandContext(
        command=command, run_id=current_run_id(), playlist_id=playlist_id
    )
