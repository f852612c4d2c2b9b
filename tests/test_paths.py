from wlprune.env import logs_dir, module_logs_dir, out_dir


def test_paths_respect_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("WLPRUNE_LOGS_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("WLPRUNE_OUT_DIR", str(tmp_path / "out"))

    assert logs_dir() == (tmp_path / "logs").resolve()
    assert out_dir().exists()


def test_module_logs_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("WLPRUNE_LOGS_DIR", str(tmp_path))

    mod = module_logs_dir("prune")
    assert mod.exists()
    assert mod.parent == tmp_path.resolve()
