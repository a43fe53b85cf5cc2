"""Configuration settings for vault-bridge."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..vault.exceptions import VaultConfigError
from ..vault.session import DEFAULT_SERVER, VaultSession


@dataclass
class ToolConfig:
    """Configuration for the vault command line tool."""

    binary: str = "bw"
    server: str = DEFAULT_SERVER
    timeout: float = 120  # Seconds per invocation, 0 = no limit
    appdata_dir: Optional[Path] = None  # Isolates the tool from the host login


@dataclass
class CredentialsConfig:
    """Identity and secrets used to log in and unlock."""

    email: str = ""
    master_password: str = field(default="", repr=False)
    session_key: str = field(default="", repr=False)
    user_id: str = ""
    client_id: str = ""
    client_secret: str = field(default="", repr=False)


@dataclass
class Settings:
    """Main settings container."""

    tool: ToolConfig = field(default_factory=ToolConfig)
    credentials: CredentialsConfig = field(default_factory=CredentialsConfig)

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Create settings from environment variables.

        Environment variables:
            BW_BINARY, BW_SERVER, BW_TIMEOUT, BITWARDENCLI_APPDATA_DIR
            BW_EMAIL, BW_PASSWORD, BW_SESSION, BW_USER_ID, BW_CLIENTID, BW_CLIENTSECRET
            LOG_LEVEL, VAULT_BRIDGE_LOG_FILE
        """
        settings = cls()

        if binary := os.getenv("BW_BINARY"):
            settings.tool.binary = binary

        if server := os.getenv("BW_SERVER"):
            settings.tool.server = server

        if timeout := os.getenv("BW_TIMEOUT"):
            try:
                settings.tool.timeout = float(timeout)
            except ValueError as e:
                raise VaultConfigError(f"BW_TIMEOUT must be a number, got {timeout!r}") from e

        if appdata_dir := os.getenv("BITWARDENCLI_APPDATA_DIR"):
            settings.tool.appdata_dir = Path(appdata_dir)

        credentials = settings.credentials
        credentials.email = os.getenv("BW_EMAIL", "")
        credentials.master_password = os.getenv("BW_PASSWORD", "")
        credentials.session_key = os.getenv("BW_SESSION", "")
        credentials.user_id = os.getenv("BW_USER_ID", "")
        credentials.client_id = os.getenv("BW_CLIENTID", "")
        credentials.client_secret = os.getenv("BW_CLIENTSECRET", "")

        if log_level := os.getenv("LOG_LEVEL"):
            settings.log_level = log_level

        if log_file := os.getenv("VAULT_BRIDGE_LOG_FILE"):
            settings.log_file = Path(log_file)

        return settings

    def to_session(self) -> VaultSession:
        """Build a VaultSession from these settings."""
        credentials = self.credentials
        return VaultSession(
            email=credentials.email,
            master_password=credentials.master_password,
            session_key=credentials.session_key,
            server=self.tool.server,
            user_id=credentials.user_id,
            client_id=credentials.client_id,
            client_secret=credentials.client_secret,
            binary=self.tool.binary,
        )

    def tool_env(self) -> dict[str, str]:
        """Environment overrides for the tool's child processes."""
        env = {}
        if self.tool.appdata_dir:
            env["BITWARDENCLI_APPDATA_DIR"] = str(self.tool.appdata_dir)
        return env


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def configure(settings: Optional[Settings]) -> None:
    """Set the global settings instance (None reloads from the environment)."""
    global _settings
    _settings = settings
