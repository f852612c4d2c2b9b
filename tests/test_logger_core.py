import logging


def test_logger_creates_command_log(tmp_path, monkeypatch):
    monkeypatch.setenv("WLPRUNE_LOGS_DIR", str(tmp_path))
    monkeypatch.setenv("WLPRUNE_COMMAND", "prune")
    monkeypatch.setenv("WLPRUNE_RUN_ID", "2026-01-01_00-00-00")
    monkeypatch.setenv("WLPRUNE_QUIET", "1")

    from wlprune.logger import get_logger, init_logging

    init_logging()
    get_logger("wlprune.test").info("RUN_STATUS=completed")

    logs = list(tmp_path.rglob("*.log"))
    assert [p.name for p in logs] == ["prune-2026-01-01_00-00-00.log"]
    assert "prune" in logs[0].parts

    for h in logging.getLogger().handlers:
        h.flush()
    text = logs[0].read_text(encoding="utf-8")
    assert "| [INFO] | wlprune.test | RUN_STATUS=completed" in text


def test_init_logging_is_idempotent(tmp_path, monkeypatch):
    monkeypatch.setenv("WLPRUNE_LOGS_DIR", str(tmp_path))
    monkeypatch.setenv("WLPRUNE_QUIET", "1")

    from wlprune.logger import init_logging

    init_logging(module="export")
    init_logging(module="export")

    files = [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]
    assert len(files) == 1


def test_quiet_skips_console_handler(tmp_path, monkeypatch):
    monkeypatch.setenv("WLPRUNE_LOGS_DIR", str(tmp_path))
    monkeypatch.setenv("WLPRUNE_QUIET", "1")

    from rich.logging import RichHandler

    from wlprune.logger import init_logging

    init_logging(module="auth")
    assert not any(isinstance(h, RichHandler) for h in logging.getLogger().handlers)


def test_retention_keeps_newest_run_ids(tmp_path):
    from wlprune.logger.retention import enforce_retention

    for day in range(1, 6):
        (tmp_path / f"prune-2026-01-0{day}_00-00-00.log").write_text("x")

    removed = enforce_retention(tmp_path, keep=2)

    assert len(removed) == 3
    assert sorted(p.name for p in tmp_path.glob("*.log")) == [
        "prune-2026-01-04_00-00-00.log",
        "prune-2026-01-05_00-00-00.log",
    ]


def test_retention_never_removes_current_log(tmp_path):
    from wlprune.logger.retention import enforce_retention

    current = tmp_path / "prune-2026-01-01_00-00-00.log"
    current.write_text("x")
    (tmp_path / "prune-2026-01-02_00-00-00.log").write_text("x")
    (tmp_path / "prune-2026-01-03_00-00-00.log").write_text("x")

    enforce_retention(tmp_path, keep=2, protect=current)

    assert current.exists()
    assert len(list(tmp_path.glob("*.log"))) == 2


def test_file_log_redacts_session_secrets(tmp_path, monkeypatch):
    monkeypatch.setenv("WLPRUNE_QUIET", "1")
    monkeypatch.setenv("WLPRUNE_RUN_ID", "r1")

    from wlprune.logger import get_logger, init_logging

    init_logging(module="auth")
    get_logger("wlprune.test").info(
        "headers: SAPISIDHASH 1700000000_abcdef0123 cookie SAPISID=topsecret; PREF=x"
    )

    text = (tmp_path / "logs" / "auth" / "auth-r1.log").read_text(encoding="utf-8")
    assert "topsecret" not in text
    assert "abcdef0123" not in text
    assert "PREF=x" in text
