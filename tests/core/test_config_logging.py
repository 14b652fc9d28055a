from __future__ import annotations

import logging
from pathlib import Path

import pytest
import structlog

from matsim_exporter.core import config
from matsim_exporter.core import logging as log_mod


@pytest.fixture
def fresh_settings():
    config.load_settings.cache_clear()
    yield
    config.load_settings.cache_clear()


def test_settings_from_environment(monkeypatch, tmp_path: Path, fresh_settings) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MATSIM_EXPORTER_OUTPUT_DIR", str(tmp_path / "exports"))
    monkeypatch.setenv("MATSIM_EXPORTER_LOG_FORMAT", "json")
    s = config.load_settings()
    assert s.output_dir == tmp_path / "exports"
    assert s.log_format == "json"
    assert s.log_level == "INFO"
    assert config.load_settings() is s


def test_settings_defaults(monkeypatch, tmp_path: Path, fresh_settings) -> None:
    monkeypatch.chdir(tmp_path)
    for key in ("OUTPUT_DIR", "LOG_LEVEL", "LOG_FORMAT"):
        monkeypatch.delenv(f"MATSIM_EXPORTER_{key}", raising=False)
    s = config.load_settings()
    assert s.output_dir == Path("output")
    assert s.log_format == "console"


def test_configure_logging_runs_once(monkeypatch) -> None:
    calls: list[dict] = []
    monkeypatch.setattr(log_mod, "_CONFIGURED", False)
    monkeypatch.setattr(log_mod.structlog, "configure", lambda **kw: calls.append(kw))

    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    pyproj_level = logging.getLogger("pyproj").level
    try:
        log_mod.configure_logging(level="debug", fmt="json")
        log_mod.configure_logging(level="info", fmt="console")

        assert len(calls) == 1
        assert isinstance(calls[0]["processors"][-1], structlog.processors.JSONRenderer)
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert logging.getLogger("pyproj").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
        logging.getLogger("pyproj").setLevel(pyproj_level)


def test_bind_adds_context_vars() -> None:
    log_mod.bind(run_id="abc")
    try:
        assert structlog.contextvars.get_contextvars()["run_id"] == "abc"
    finally:
        log_mod.clear_bindings()
    assert "run_id" not in structlog.contextvars.get_contextvars()
