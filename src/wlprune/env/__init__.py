from wlprune.env.env import (
    Environment,
    get_env,
    reset_env_caches,
    get_logging_env,
    ConfigError,
    current_run_id,
    _load_dotenv,
)
from wlprune.env.paths import PROJECT_ROOT, logs_dir, module_logs_dir, out_dir
from wlprune.env.settings import PruneSettings, clamp_int

__all__ = [
    "Environment",
    "get_env",
    "reset_env_caches",
    "get_logging_env",
    "ConfigError",
    "current_run_id",
    "PROJECT_ROOT",
    "PruneSettings",
    "clamp_int",
    "logs_dir",
    "module_logs_dir",
    "out_dir",
    "_load_dotenv",
]
