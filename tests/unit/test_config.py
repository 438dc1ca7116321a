"""Tests for configuration module."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from repack_catalog.config import (
    IGDBConfig,
    LoggingConfig,
    RetryConfig,
    ServerConfig,
    SourceConfig,
    StoreConfig,
    SyncConfig,
)


class TestIGDBConfig:
    """Tests for IGDB configuration."""

    def test_default_values(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            config = IGDBConfig()

        assert config.token_url == "https://id.twitch.tv/oauth2/token"
        assert config.api_url == "https://api.igdb.com/v4/games"
        assert config.search_limit == 3
        assert config.token_safety_margin_seconds == 60
        assert config.has_credentials is False

    def test_credentials_from_environment(self) -> None:
        env = {"IGDB_CLIENT_ID": "abc", "IGDB_CLIENT_SECRET": "secret_123"}
        with patch.dict(os.environ, env, clear=True):
            config = IGDBConfig()

        assert config.has_credentials is True
        assert config.client_id is not None
        assert config.client_id.get_secret_value() == "abc"
        # SecretStr should not expose value in repr
        assert "secret_123" not in repr(config.client_secret)

    def test_blank_credentials_disable_enrichment(self) -> None:
        env = {"IGDB_CLIENT_ID": "abc", "IGDB_CLIENT_SECRET": "  "}
        with patch.dict(os.environ, env, clear=True):
            config = IGDBConfig()

        assert config.has_credentials is False


class TestSyncConfig:
    """Tests for sync configuration."""

    def test_default_values(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            config = SyncConfig()

        assert config.update_pages == 5
        assert config.page_pause_every == 10
        assert config.enrichment_pause_every == 4
        assert config.rebuild_mode == "full"

    def test_legacy_update_pages_variable(self) -> None:
        with patch.dict(os.environ, {"UPDATE_PAGES": "8"}, clear=True):
            config = SyncConfig()

        assert config.update_pages == 8

    def test_update_pages_must_be_positive(self) -> None:
        with patch.dict(os.environ, {"SYNC_UPDATE_PAGES": "0"}, clear=True), pytest.raises(
            ValueError
        ):
            SyncConfig()


class TestServerConfig:
    """Tests for server configuration."""

    def test_port_default(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            assert ServerConfig().port == 4000

    def test_bare_port_variable(self) -> None:
        with patch.dict(os.environ, {"PORT": "8080"}, clear=True):
            assert ServerConfig().port == 8080


def test_other_defaults() -> None:
    with patch.dict(os.environ, {}, clear=True):
        assert SourceConfig().fallback_page_count == 127
        assert SourceConfig().page_param == "lcp_page0"
        assert StoreConfig().path == Path("data/db.json")
        assert RetryConfig().max_attempts == 3
        assert LoggingConfig().format == "json"
