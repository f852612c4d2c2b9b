"""
config.py

Central constants for wlprune.

This file intentionally contains ONLY:
- Constants
- Tunables and their ranges
- Endpoint paths
- Wire-level markers

It must NOT contain:
- Business logic
- API calls
- Reading environment variables

Runtime configuration (env vars, CLI overrides) belongs in:
- env/
- __main__.py (CLI bootstrap)
- runner.py (orchestration)
"""

from __future__ import annotations

import re

# ============================================================
# INNERTUBE ENDPOINTS
# ============================================================

ORIGIN = "https://www.youtube.com"
API_BASE = f"{ORIGIN}/youtubei/v1"
BROWSE_PATH = "browse"
EDIT_PLAYLIST_PATH = "browse/edit_playlist"

DEFAULT_PLAYLIST_ID = "WL"
DEFAULT_CLIENT_NAME = "WEB"
DEFAULT_CLIENT_NAME_HEADER = "1"
DEFAULT_CLIENT_VERSION = "2.20260101.00.00"
DEFAULT_HL = "en"
DEFAULT_GL = "US"

# Edit params observed on Watch Later edit_playlist calls
EDIT_PARAMS = "CAFAAQ%3D%3D"

# ============================================================
# PLAYLIST EDIT ACTIONS / STATUS
# ============================================================

ACTION_REMOVE_VIDEO = "ACTION_REMOVE_VIDEO"
ACTION_SET_PLAYLIST_VIDEO_ORDER = "ACTION_SET_PLAYLIST_VIDEO_ORDER"
STATUS_SUCCEEDED = "STATUS_SUCCEEDED"

# "Date added (oldest)" in the sort menu
OLDEST_FIRST_SORT_ORDER = 2

# ============================================================
# TRANSIENT FAILURE MARKERS
# ============================================================

TRANSIENT_STATUS_CODES = frozenset({409})
TRANSIENT_BODY_RE = re.compile(r"ABORTED|something went wrong", re.IGNORECASE)

# Read-side retryable statuses (browse only)
RETRYABLE_READ_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

# ============================================================
# REQUEST DEFAULTS (env may override)
# ============================================================

DEFAULT_REQUEST_TIMEOUT_SEC = 30
DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_BASE_SEC = 1.0
ERROR_BODY_PREVIEW_CHARS = 400

# ============================================================
# PRUNE SETTINGS: (default, min, max)
# ============================================================

SCAN_PAGE_THROTTLE_MS = (50, 0, 10_000)
DELETE_THROTTLE_MS = (50, 0, 10_000)
SORT_VERIFY_MAX_ATTEMPTS = (6, 1, 30)
SORT_VERIFY_POLL_MS = (350, 0, 10_000)
BATCH_DELETE_COUNT = (1, 1, 50)

# A single page at or above this size with no usable continuation is suspicious
SINGLE_PAGE_WARNING_THRESHOLD = 100

# ============================================================
# EXPORTS
# ============================================================

EXPORT_SCHEMA_VERSION = "1.7.0"
SNAPSHOT_FILENAME_PREFIX = "watch-later-backup"
PRE_DELETE_SNAPSHOT_PREFIX = "watch-later-backup-pre-delete"
DELETED_FILENAME_PREFIX = "watch-later-deleted"
ORDERING_SEMANTICS = (
    "Entries are exported in the current playlist order from head to tail at "
    "export time. Delete mode separately forces oldest-first before removal."
)

# ============================================================
# LOGGING
# ============================================================

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_RETENTION = 30
