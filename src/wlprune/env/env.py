from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from wlprune import config
from wlprune.env.settings import PruneSettings
from wlprune.utils import validate_playlist_id

# ------------------------------------------------------------
# Minimal dotenv loader (read-only helper, bootstrap owns usage)
# ------------------------------------------------------------


def _load_dotenv(path: Path) -> None:
    """
    Minimal dotenv loader.
    - Silent
    - Never overrides existing os.environ
    """
    if not path.exists():
        return

    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        k, v = line.split("=", 1)
        k = k.strip()
        v = v.strip()

        # strip inline comments
        if " #" in v:
            v = v.split(" #", 1)[0].rstrip()
        elif "\t#" in v:
            v = v.split("\t#", 1)[0].rstrip()

        # strip quotes
        if len(v) >= 2 and v[0] == v[-1] and v[0] in ("'", '"'):
            v = v[1:-1]

        if k and k not in os.environ:
            os.environ[k] = v


# ------------------------------------------------------------
# Errors / helpers
# ------------------------------------------------------------


class ConfigError(RuntimeError):
    pass


# ------------------------------------------------------------
# Run id
# ------------------------------------------------------------

RUN_ID_FORMAT = "%Y-%m-%d_%H-%M-%S"


def current_run_id() -> str:
    """
    WLPRUNE_RUN_ID, seeded from the local clock the first time it is asked for.

    The log filename and RunMetadata.run_id both come from here, so a
    process has exactly one run id.
    """
    run_id = os.environ.get("WLPRUNE_RUN_ID")
    if not run_id:
        run_id = datetime.now().strftime(RUN_ID_FORMAT)
        os.environ["WLPRUNE_RUN_ID"] = run_id
    return run_id


def _as_bool(v: str) -> bool:
    return v.strip().lower() in {"1", "true", "yes", "on"}


def _as_int(v: str, default: int) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def _as_float(v: str, default: float) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return default


# ------------------------------------------------------------
# Logging environment (SAFE ANYWHERE)
# ------------------------------------------------------------


@dataclass(frozen=True)
class LoggingEnvironment:
    log_level: str
    log_retention: int
    verbose: bool
    quiet: bool


def get_logging_env() -> LoggingEnvironment:
    return LoggingEnvironment(
        log_level=os.environ.get("LOG_LEVEL", config.DEFAULT_LOG_LEVEL),
        log_retention=_as_int(
            os.environ.get("LOG_RETENTION", str(config.DEFAULT_LOG_RETENTION)),
            config.DEFAULT_LOG_RETENTION,
        ),
        verbose=_as_bool(os.environ.get("WLPRUNE_VERBOSE", "0")),
        quiet=_as_bool(os.environ.get("WLPRUNE_QUIET", "0")),
    )


# ------------------------------------------------------------
# Full runtime environment
# ------------------------------------------------------------


def _settings_from_environ() -> PruneSettings:
    return PruneSettings.sanitize(
        {
            "scanPageThrottleMs": os.environ.get("WLPRUNE_SCAN_PAGE_THROTTLE_MS"),
            "deleteThrottleMs": os.environ.get("WLPRUNE_DELETE_THROTTLE_MS"),
            "sortVerifyMaxAttempts": os.environ.get("WLPRUNE_SORT_VERIFY_MAX_ATTEMPTS"),
            "sortVerifyPollMs": os.environ.get("WLPRUNE_SORT_VERIFY_POLL_MS"),
            "batchDeleteCount": os.environ.get("WLPRUNE_BATCH_DELETE_COUNT"),
        }
    )


class Environment:
    def __init__(self):
        # Logging snapshot (immutable)
        self._logging = get_logging_env()

        # ---- SESSION ----
        self.cookie = os.environ.get("WLPRUNE_COOKIE", "")
        self.cookie_file = os.environ.get("WLPRUNE_COOKIE_FILE", "")
        self.api_key = os.environ.get("WLPRUNE_API_KEY", "")

        # ---- CLIENT CONTEXT ----
        self.client_version = os.environ.get(
            "WLPRUNE_CLIENT_VERSION", config.DEFAULT_CLIENT_VERSION
        )
        self.hl = os.environ.get("WLPRUNE_HL", config.DEFAULT_HL)
        self.gl = os.environ.get("WLPRUNE_GL", config.DEFAULT_GL)
        self.visitor_data = os.environ.get("WLPRUNE_VISITOR_DATA", "")
        self.browse_params = os.environ.get("WLPRUNE_BROWSE_PARAMS", "")
        self.playlist_id = os.environ.get(
            "WLPRUNE_PLAYLIST_ID", config.DEFAULT_PLAYLIST_ID
        )
        try:
            validate_playlist_id(self.playlist_id)
        except ValueError as e:
            raise ConfigError(str(e)) from e

        # ---- TRANSPORT ----
        self.request_timeout = _as_int(
            os.environ.get("WLPRUNE_REQUEST_TIMEOUT", ""),
            config.DEFAULT_REQUEST_TIMEOUT_SEC,
        )
        self.max_retries = max(
            1,
            _as_int(
                os.environ.get("WLPRUNE_MAX_RETRIES", ""), config.DEFAULT_MAX_RETRIES
            ),
        )
        self.backoff_base_sec = _as_float(
            os.environ.get("WLPRUNE_BACKOFF_BASE_SEC", ""),
            config.DEFAULT_BACKOFF_BASE_SEC,
        )

        # ---- RUN CONTEXT ----
        self.command = os.environ.get("WLPRUNE_COMMAND", "bootstrap")

        # ---- PRUNE TUNABLES ----
        self.settings = _settings_from_environ()

    def as_dict(self) -> dict:
        return {
            "Logging": {
                "log_level": self.log_level,
                "log_retention": self.log_retention,
                "verbose": self.verbose,
                "quiet": self.quiet,
            },
            "Session": {
                "cookie": "set" if self.cookie else "missing",
                "cookie_file": self.cookie_file or "-",
                "api_key": "set" if self.api_key else "-",
            },
            "Client": {
                "client_version": self.client_version,
                "hl": self.hl,
                "gl": self.gl,
                "visitor_data": "set" if self.visitor_data else "-",
                "browse_params": self.browse_params or "-",
                "playlist_id": self.playlist_id,
            },
            "Transport": {
                "request_timeout": self.request_timeout,
                "max_retries": self.max_retries,
                "backoff_base_sec": self.backoff_base_sec,
            },
            "Settings": self.settings.as_dict(),
        }

    # ---- logging passthrough ----
    @property
    def log_level(self) -> str:
        return self._logging.log_level

    @property
    def log_retention(self) -> int:
        return self._logging.log_retention

    @property
    def verbose(self) -> bool:
        return self._logging.verbose

    @property
    def quiet(self) -> bool:
        return self._logging.quiet


_ENV: Optional[Environment] = None


def reset_env_caches() -> None:
    """Invalidate cached views of environment variables."""
    global _ENV
    _ENV = None


def get_env() -> Environment:
    global _ENV
    if _ENV is None:
        _ENV = Environment()
    return _ENV
