"""Process-wide record of where the current run is logging."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class LoggingState:
    initialized: bool = False
    command: Optional[str] = None
    run_id: Optional[str] = None
    log_file: Optional[Path] = None

    @property
    def log_dir(self) -> Optional[Path]:
        return self.log_file.parent if self.log_file else None


STATE = LoggingState()


def reset() -> None:
    global STATE
    STATE = LoggingState()
