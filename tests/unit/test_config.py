"""Unit tests for configuration settings."""

from pathlib import Path

import pytest


class TestSettings:
    """Tests for Settings and environment loading."""

    def test_defaults(self):
        """Default settings target the public Bitwarden server."""
        from vault_bridge.config.settings import Settings

        settings = Settings()

        assert settings.tool.binary == "bw"
        assert settings.tool.server == "https://bitwarden.com"
        assert settings.tool.timeout == 120
        assert settings.tool_env() == {}

    def test_from_env(self, monkeypatch, tmp_path):
        """Environment variables override defaults."""
        from vault_bridge.config.settings import Settings

        monkeypatch.setenv("BW_BINARY", "/opt/bw")
        monkeypatch.setenv("BW_SERVER", "https://vault.example.com")
        monkeypatch.setenv("BW_TIMEOUT", "30")
        monkeypatch.setenv("BITWARDENCLI_APPDATA_DIR", str(tmp_path))
        monkeypatch.setenv("BW_EMAIL", "me@example.com")
        monkeypatch.setenv("BW_PASSWORD", "pw")
        monkeypatch.setenv("BW_CLIENTID", "user.abc")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = Settings.from_env()

        assert settings.tool.binary == "/opt/bw"
        assert settings.tool.server == "https://vault.example.com"
        assert settings.tool.timeout == 30.0
        assert settings.tool.appdata_dir == Path(tmp_path)
        assert settings.credentials.email == "me@example.com"
        assert settings.credentials.master_password == "pw"
        assert settings.log_level == "DEBUG"
        assert settings.tool_env() == {"BITWARDENCLI_APPDATA_DIR": str(tmp_path)}

        session = settings.to_session()
        assert session.binary == "/opt/bw"
        assert session.server == "https://vault.example.com"
        assert session.expected_user_id == "abc"

    def test_invalid_timeout(self, monkeypatch):
        """A non-numeric timeout is a configuration error."""
        from vault_bridge.config.settings import Settings
        from vault_bridge.vault.exceptions import VaultConfigError

        monkeypatch.setenv("BW_TIMEOUT", "soon")

        with pytest.raises(VaultConfigError):
            Settings.from_env()

    def test_password_hidden_from_repr(self):
        """Secrets are not shown in repr."""
        from vault_bridge.config.settings import CredentialsConfig

        assert "hunter2" not in repr(CredentialsConfig(master_password="hunter2"))

    def test_global_settings(self):
        """configure() replaces the global settings."""
        from vault_bridge.config.settings import Settings, configure, get_settings

        custom = Settings(log_level="WARNING")
        configure(custom)
        try:
            assert get_settings() is custom
        finally:
            configure(None)
