"""Vault client construction: tool discovery, unlock and initial sync."""

from typing import TYPE_CHECKING, Optional

from ..utils.logging import get_logger
from .items import ItemCatalog
from .runner import ProcessRunner
from .session import SessionManager, VaultSession

if TYPE_CHECKING:
    from ..config.settings import Settings

logger = get_logger(__name__)


def find_tool(binary: str, runner: ProcessRunner) -> str:
    """
    Check that the vault tool can be executed.

    Returns:
        The tool's version string

    Raises:
        ToolNotFoundError: If the tool is missing or fails to report a version
    """
    return SessionManager(VaultSession(binary=binary), runner).version()


class VaultClient:
    """
    Unlocked vault session with access to its items.

    Usage:
        client = VaultClient.connect(VaultSession(email=..., master_password=...))
        items = client.catalog.list_items()
    """

    def __init__(self, manager: SessionManager, catalog: Optional[ItemCatalog] = None):
        self.manager = manager
        self.catalog = catalog or ItemCatalog(manager)

    @classmethod
    def connect(
        cls,
        session: VaultSession,
        runner: Optional[ProcessRunner] = None,
        sync: bool = True,
    ) -> "VaultClient":
        """
        Discover the tool, unlock the vault and optionally sync.

        Raises:
            ToolNotFoundError: If the tool cannot be executed
            VaultError: If login, unlock or sync fails
        """
        client = cls(SessionManager(session, runner))
        version = client.manager.version()
        logger.debug("Found %s %s", session.binary, version)

        client.manager.ensure_unlocked()
        if sync:
            client.manager.sync()
        return client

    @classmethod
    def from_settings(cls, settings: "Settings", sync: bool = True) -> "VaultClient":
        """Connect using the given settings."""
        runner = ProcessRunner(timeout=settings.tool.timeout, env=settings.tool_env())
        return cls.connect(settings.to_session(), runner=runner, sync=sync)
