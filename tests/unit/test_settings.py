# =============================================================================
# tests/unit/test_settings.py
# Unit Tests for settings loading
# =============================================================================

from pathlib import Path

import pytest

from haccp_core.config import Settings, load_settings
from haccp_core.config.settings import DEFAULT_LOCAL_DB, DEFAULT_REQUEST_TIMEOUT
from haccp_core.domain.constants import RESTAURANT_NAME
from haccp_core.errors import ConfigurationError


class TestLoadSettings:

    def test_from_secrets(self):
        settings = load_settings(
            secrets={
                "supabase": {"url": "https://demo.supabase.co", "key": "anon"},
                "openai": {"api_key": "sk-1", "model": "gpt-4o"},
                "app": {"restaurant_name": "Chez Test", "request_timeout": 4, "allow_local_only": True},
            },
            env={},
        )

        assert settings.remote_configured
        assert settings.assistant_configured
        assert settings.openai_model == "gpt-4o"
        assert settings.restaurant_name == "Chez Test"
        assert settings.request_timeout == 4.0
        assert settings.allow_local_only

    def test_environment_fallback(self):
        settings = load_settings(secrets={}, env={
            "SUPABASE_URL": "https://env.supabase.co",
            "SUPABASE_ANON_KEY": "env-key",
            "HACCP_LOCAL_DB": "/tmp/haccp-test.db",
            "HACCP_ALLOW_LOCAL_ONLY": "yes",
        })

        assert settings.supabase_url == "https://env.supabase.co"
        assert settings.local_db_path == Path("/tmp/haccp-test.db")
        assert settings.allow_local_only

    def test_secrets_win_over_environment(self):
        settings = load_settings(
            secrets={"app": {"restaurant_name": "Secrets"}},
            env={"HACCP_RESTAURANT_NAME": "Env"},
        )
        assert settings.restaurant_name == "Secrets"

    def test_defaults(self):
        settings = load_settings(secrets={}, env={})

        assert settings == Settings()
        assert not settings.remote_configured
        assert settings.restaurant_name == RESTAURANT_NAME
        assert settings.local_db_path == DEFAULT_LOCAL_DB
        assert settings.request_timeout == DEFAULT_REQUEST_TIMEOUT
        assert not settings.allow_local_only

    @pytest.mark.parametrize("timeout", ["soon", "0", -1])
    def test_invalid_timeout(self, timeout):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(secrets={"app": {"request_timeout": timeout}}, env={})
        assert exc_info.value.details["config_key"] == "app.request_timeout"
        assert not exc_info.value.recoverable

    def test_half_configured_remote(self):
        settings = load_settings(secrets={"supabase": {"url": "https://demo.supabase.co"}}, env={})
        assert not settings.remote_configured

    def test_log_level_and_directory(self):
        settings = load_settings(secrets={}, env={"HACCP_LOG_LEVEL": "debug", "HACCP_LOCAL_DB": "/srv/haccp/haccp.db"})

        assert settings.log_level == "DEBUG"
        assert settings.log_dir == Path("/srv/haccp/logs")
