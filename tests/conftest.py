import logging
import os

import pytest


def _ours(handler: logging.Handler) -> bool:
    # pytest installs its own capture handlers on the root logger
    return not type(handler).__module__.startswith("_pytest")


@pytest.fixture(autouse=True)
def clean_env_and_logging(tmp_path, monkeypatch):
    """
    Ensure tests don't leak env, logger state, or cached env views.
    """
    for k in list(os.environ):
        if k.startswith("WLPRUNE_"):
            monkeypatch.delenv(k, raising=False)
    for k in ("LOG_LEVEL", "LOG_RETENTION"):
        monkeypatch.delenv(k, raising=False)

    # Keep logs and exports out of the project tree
    monkeypatch.setenv("WLPRUNE_LOGS_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("WLPRUNE_OUT_DIR", str(tmp_path / "out"))

    from wlprune.env import reset_env_caches

    reset_env_caches()

    # Reset logger global state
    import wlprune.logger.state as log_state

    log_state.reset()

    root = logging.getLogger()
    for h in [h for h in root.handlers if _ours(h)]:
        root.removeHandler(h)

    yield

    reset_env_caches()
    for h in [h for h in root.handlers if _ours(h)]:
        root.removeHandler(h)
        h.close()


@pytest.fixture
def no_sleep():
    calls = []

    def _sleep(seconds):
        calls.append(seconds)

    _sleep.calls = calls
    return _sleep


@pytest.fixture
def handle():
    from wlprune.pipeline.run_state import RunHandle

    return RunHandle()
