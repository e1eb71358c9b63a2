"""Tests for settings, workspace wiring and logging setup."""

import logging

import pytest

from cashbook.config import load_settings
from cashbook.logging_config import configure_logging, reset_logging
from cashbook.remote.base import DisconnectedRemoteStore
from cashbook.remote.rest import RestRemoteStore
from cashbook.sync.connectivity import SocketConnectivity
from cashbook.workspace import create_workspace


def test_defaults_live_under_home(isolated_home):
    settings = load_settings()
    assert settings.home == isolated_home
    assert settings.database_path == str(isolated_home / "cashbook.db")
    assert settings.session_path == isolated_home / "session.json"
    assert settings.remote_url is None
    assert settings.force_offline is False
    assert settings.max_retries == 5


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("CASHBOOK_DB_PATH", str(tmp_path / "shop.db"))
    monkeypatch.setenv("CASHBOOK_REMOTE_URL", "https://api.example.com")
    monkeypatch.setenv("CASHBOOK_OFFLINE", "yes")
    monkeypatch.setenv("CASHBOOK_MAX_RETRIES", "2")

    settings = load_settings()

    assert settings.database_path == str(tmp_path / "shop.db")
    assert settings.remote_url == "https://api.example.com"
    assert settings.force_offline is True
    assert settings.max_retries == 2


def test_invalid_numeric_setting(monkeypatch):
    monkeypatch.setenv("CASHBOOK_TIMEOUT", "soon")
    with pytest.raises(ValueError, match="Invalid numeric setting"):
        load_settings()


def test_with_overrides_ignores_none():
    settings = load_settings().with_overrides(database_path=None, force_offline=True)
    assert settings.force_offline is True
    assert settings.database_path.endswith("cashbook.db")


def test_workspace_without_server_is_offline(tmp_path):
    settings = load_settings().with_overrides(database_path=str(tmp_path / "c.db"))
    workspace = create_workspace(settings)
    try:
        assert isinstance(workspace.remote, DisconnectedRemoteStore)
        assert workspace.is_online() is False
        assert workspace.owner_id is None
    finally:
        workspace.close()


def test_workspace_with_server(tmp_path):
    settings = load_settings().with_overrides(
        database_path=str(tmp_path / "c.db"), remote_url="https://api.example.com"
    )
    workspace = create_workspace(settings)
    try:
        assert isinstance(workspace.remote, RestRemoteStore)
        assert isinstance(workspace.connectivity, SocketConnectivity)
        assert workspace.auth is not None
    finally:
        workspace.close()


def test_configure_logging_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "cashbook.log"
    logger = configure_logging(log_file=log_file)
    try:
        logging.getLogger("cashbook.sync").info("queued")
        for handler in logger.handlers:
            handler.flush()
        assert "queued" in log_file.read_text(encoding="utf-8")
    finally:
        reset_logging()
    assert logging.getLogger("cashbook").handlers == []


def test_configure_logging_replaces_handlers(tmp_path):
    configure_logging()
    logger = configure_logging(verbose=True)
    try:
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
    finally:
        reset_logging()
