from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

from wlprune import config


def clamp_int(value: Any, fallback: int, lo: int, hi: int) -> int:
    """
    Coerce value to an int inside [lo, hi].

    Non-numeric and non-finite input falls back; fractional input is floored.
    """
    if isinstance(value, bool) or value is None:
        return fallback
    try:
        n = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(n):
        return fallback
    i = math.floor(n)
    if i < lo:
        return lo
    if i > hi:
        return hi
    return i


def _clamp(value: Any, bounds: tuple[int, int, int]) -> int:
    default, lo, hi = bounds
    return clamp_int(value, default, lo, hi)


# camelCase name -> (snake_case field, range bounds)
_FIELDS: Dict[str, tuple[str, tuple[int, int, int]]] = {
    "scanPageThrottleMs": ("scan_page_throttle_ms", config.SCAN_PAGE_THROTTLE_MS),
    "deleteThrottleMs": ("delete_throttle_ms", config.DELETE_THROTTLE_MS),
    "sortVerifyMaxAttempts": (
        "sort_verify_max_attempts",
        config.SORT_VERIFY_MAX_ATTEMPTS,
    ),
    "sortVerifyPollMs": ("sort_verify_poll_ms", config.SORT_VERIFY_POLL_MS),
    "batchDeleteCount": ("batch_delete_count", config.BATCH_DELETE_COUNT),
}


@dataclass(frozen=True)
class PruneSettings:
    """
    Tunables consumed by the scan, sort and delete stages.

    Always build through sanitize() (or defaults()) so every field is in range.
    """

    scan_page_throttle_ms: int = config.SCAN_PAGE_THROTTLE_MS[0]
    delete_throttle_ms: int = config.DELETE_THROTTLE_MS[0]
    sort_verify_max_attempts: int = config.SORT_VERIFY_MAX_ATTEMPTS[0]
    sort_verify_poll_ms: int = config.SORT_VERIFY_POLL_MS[0]
    batch_delete_count: int = config.BATCH_DELETE_COUNT[0]

    @classmethod
    def defaults(cls) -> "PruneSettings":
        return cls()

    @classmethod
    def sanitize(cls, raw: Optional[Mapping[str, Any]]) -> "PruneSettings":
        """Accepts camelCase or snake_case keys; unknown keys are ignored."""
        raw = raw or {}
        values: Dict[str, int] = {}
        for camel, (snake, bounds) in _FIELDS.items():
            value = raw.get(camel, raw.get(snake))
            values[snake] = _clamp(value, bounds)
        return cls(**values)

    def merged(self, overrides: Mapping[str, Any]) -> "PruneSettings":
        """Apply non-None overrides (snake_case) and re-sanitize."""
        current = asdict(self)
        for k, v in overrides.items():
            if v is not None and k in current:
                current[k] = v
        return PruneSettings.sanitize(current)

    def as_dict(self) -> Dict[str, int]:
        return {camel: getattr(self, snake) for camel, (snake, _) in _FIELDS.items()}
