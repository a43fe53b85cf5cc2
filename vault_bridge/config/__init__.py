"""Configuration for vault-bridge."""

from .settings import (
    CredentialsConfig,
    Settings,
    ToolConfig,
    configure,
    get_settings,
)

__all__ = [
    "CredentialsConfig",
    "Settings",
    "ToolConfig",
    "configure",
    "get_settings",
]
