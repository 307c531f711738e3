"""Tests for settings loading and logging setup."""

import structlog
from structlog.testing import capture_logs

from depgraph.core.config import Settings
from depgraph.core.logging import configure_logging


def test_defaults(monkeypatch):
    monkeypatch.delenv("DEPGRAPH_MAX_CHAIN_DEPTH", raising=False)
    settings = Settings(_env_file=None)
    assert settings.max_chain_depth == 100
    assert settings.log_format == "json"
    assert settings.database_url.startswith("postgresql+asyncpg://")


def test_env_override(monkeypatch):
    monkeypatch.setenv("DEPGRAPH_MAX_CHAIN_DEPTH", "25")
    monkeypatch.setenv("DEPGRAPH_DATABASE_URL", "sqlite+aiosqlite:///./dev.db")
    settings = Settings(_env_file=None)
    assert settings.max_chain_depth == 25
    assert settings.database_url == "sqlite+aiosqlite:///./dev.db"


def test_configure_logging_filters_by_level():
    configure_logging("warning", "text")
    try:
        with capture_logs() as logs:
            log = structlog.get_logger()
            log.info("dependency.hidden")
            log.warning("dependency.shown", task_id="abc")
        assert [e["event"] for e in logs] == ["dependency.shown"]
        assert logs[0]["task_id"] == "abc"
    finally:
        configure_logging("info", "json")
