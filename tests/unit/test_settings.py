"""Tests for configuration settings."""
import pytest
from pydantic import ValidationError

from knotwork.config.settings import Settings, get_settings, reset_settings


class TestSettings:
    """Test Settings configuration."""

    def test_settings_default_values(self, monkeypatch):
        """Test default values are set correctly."""
        monkeypatch.delenv("KNOTWORK_MAX_NODE_VISITS", raising=False)

        settings = Settings()

        # Note: env is set to 'test' in conftest.py
        assert settings.env in ("development", "test")
        assert settings.max_node_visits == 10_000
        assert settings.http_timeout_s == 30.0
        assert settings.server_port == 3000
        assert settings.server_path == "/webhook"
        assert settings.server_method == "GET"

    def test_settings_from_environment(self, monkeypatch):
        monkeypatch.setenv("KNOTWORK_MAX_NODE_VISITS", "50")
        monkeypatch.setenv("KNOTWORK_HTTP_TIMEOUT_S", "2.5")
        monkeypatch.setenv("KNOTWORK_FLOW_SEARCH_DIRS", '["flows", "more"]')

        settings = Settings()

        assert settings.max_node_visits == 50
        assert settings.http_timeout_s == 2.5
        assert settings.flow_search_dirs == ["flows", "more"]

    def test_log_format_is_normalized(self, monkeypatch):
        monkeypatch.setenv("KNOTWORK_LOG_FORMAT", "JSON")

        assert Settings().log_format == "json"

    @pytest.mark.parametrize("field,value", [
        ("max_node_visits", 0),
        ("http_timeout_s", -1),
        ("log_format", "xml"),
    ])
    def test_invalid_values_rejected(self, field, value):
        with pytest.raises(ValidationError):
            Settings(**{field: value})


class TestGetSettings:

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_reset_settings_reloads(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("KNOTWORK_SERVER_PORT", "8123")

        reset_settings()
        second = get_settings()

        assert second is not first
        assert second.server_port == 8123
