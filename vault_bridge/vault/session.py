"""Session lifecycle management for the vault command line tool.

Keeps the tool in one of three authentication states (logged out,
logged in and locked, logged in and unlocked). Every ``ensure_*`` call
queries the tool's live status before acting, so repeated calls are safe
and nothing is trusted from a previous call.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Sequence

from ..utils.logging import get_logger
from .exceptions import (
    IdentityMismatchError,
    ProcessError,
    ToolNotFoundError,
    UnexpectedOutputError,
    VaultConfigError,
)
from .response import decode, decode_data_on_success
from .runner import ProcessRunner
from .transform import Descriptor, parse_descriptor

logger = get_logger(__name__)

DEFAULT_SERVER = "https://bitwarden.com"
CLIENT_ID_PREFIX = "user."

STATUS_CONVERSION = parse_descriptor({
    "data": {
        "template": {
            "serverUrl": "server_url",
            "lastSync": "last_sync",
            "userEmail": "user_email",
            "userId": "user_id",
        },
    },
})


class SessionState(str, Enum):
    """Authentication state of the vault tool."""

    LOGGED_OUT = "logged_out"
    LOCKED = "locked"
    UNLOCKED = "unlocked"


@dataclass
class VaultSession:
    """Identity and secrets for one vault session."""

    email: str = ""
    master_password: str = field(default="", repr=False)
    session_key: str = field(default="", repr=False)
    server: str = DEFAULT_SERVER
    user_id: str = ""
    client_id: str = ""
    client_secret: str = field(default="", repr=False)
    binary: str = "bw"

    @property
    def expected_user_id(self) -> str:
        """User id implied by ``client_id`` (empty if no client id is set)."""
        if not self.client_id:
            return ""
        return self.client_id.removeprefix(CLIENT_ID_PREFIX)


@dataclass
class VaultStatus:
    """Live status reported by the vault tool."""

    server_url: str = ""
    last_sync: Optional[str] = None
    user_email: str = ""
    user_id: str = ""
    status: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VaultStatus":
        """Create from a status ``template`` with snake_case keys."""
        return cls(
            server_url=data.get("server_url") or "",
            last_sync=data.get("last_sync"),
            user_email=data.get("user_email") or "",
            user_id=data.get("user_id") or "",
            status=data.get("status") or "",
        )


class SessionManager:
    """
    Thread-safe owner of a vault session.

    Holds the session key and two locks: one for auth transitions
    (login, logout, lock, unlock) and one for data operations (sync,
    listing), so a long sync never blocks a lock or unlock.

    Usage:
        manager = SessionManager(VaultSession(email=..., master_password=...))
        manager.ensure_unlocked()
        data = manager.query(["list", "items"], "list items")
    """

    def __init__(self, session: VaultSession, runner: Optional[ProcessRunner] = None):
        self.session = session
        self.runner = runner or ProcessRunner()
        self._auth_lock = threading.RLock()
        self._data_lock = threading.RLock()

    # Commands

    def _command(self, *args: str, with_session: bool = False) -> list[str]:
        command = [self.session.binary, *args, "--response"]
        if with_session and self.session.session_key:
            command.extend(["--session", self.session.session_key])
        return command

    def _require_password(self, action: str) -> str:
        if not self.session.master_password:
            raise VaultConfigError(f"cannot {action}: no master password configured")
        return self.session.master_password

    def _run_check(self, args: Sequence[str], friendly_name: str) -> bool:
        output = self.runner.run(args, friendly_name, acceptable_exit_code=1)
        return decode(output, command=friendly_name).success

    def _session_key_from(self, data: Any, friendly_name: str) -> str:
        if not isinstance(data, dict) or not data.get("raw"):
            raise UnexpectedOutputError(friendly_name, data)
        return data["raw"]

    def is_logged_in(self) -> bool:
        """Ask the tool whether it is logged in."""
        return self._run_check(self._command("login", "--check"), "login --check")

    def is_unlocked(self) -> bool:
        """Ask the tool whether the vault is unlocked for our session key."""
        return self._run_check(
            self._command("unlock", "--check", with_session=True), "unlock --check"
        )

    def status(self) -> VaultStatus:
        """Query the tool's live status."""
        output = self.runner.run(self._command("status", with_session=True), "status")
        data = decode_data_on_success(output, "status", STATUS_CONVERSION)
        template = data.get("template") if isinstance(data, dict) else None
        if not isinstance(template, dict):
            raise UnexpectedOutputError("status", data)
        return VaultStatus.from_dict(template)

    def state(self) -> SessionState:
        """Determine the current authentication state from live status."""
        if not self.is_logged_in():
            return SessionState.LOGGED_OUT
        if self.is_unlocked():
            return SessionState.UNLOCKED
        return SessionState.LOCKED

    def version(self) -> str:
        """
        Return the tool's version string.

        Raises:
            ToolNotFoundError: If the tool is missing or fails to report a version
        """
        binary = self.session.binary
        try:
            output = self.runner.run([binary, "--version"], "check version")
        except ToolNotFoundError:
            raise
        except ProcessError as e:
            raise ToolNotFoundError(binary, e.output) from e
        return output.strip()

    def _login(self) -> None:
        self.ensure_logged_out()
        if not self.session.email:
            raise VaultConfigError("cannot login: no email configured")
        password = self._require_password("login")
        with self._auth_lock:
            logger.info("Logging in to %s as %s", self.session.server, self.session.email)
            output = self.runner.run_with_secret(
                self._command("login", self.session.email), "login", password
            )
            data = decode_data_on_success(output, "login")
            self.session.session_key = self._session_key_from(data, "login")

    def _logout(self) -> None:
        with self._auth_lock:
            logger.info("Logging out")
            output = self.runner.run(self._command("logout"), "logout", acceptable_exit_code=1)
            decode(output, command="logout")
            self.session.session_key = ""

    def _unlock(self) -> None:
        password = self._require_password("unlock")
        with self._auth_lock:
            logger.info("Unlocking vault")
            output = self.runner.run_with_secret(self._command("unlock"), "unlock", password)
            data = decode_data_on_success(output, "unlock")
            self.session.session_key = self._session_key_from(data, "unlock")

    def _lock(self) -> None:
        with self._auth_lock:
            logger.info("Locking vault")
            output = self.runner.run(self._command("lock"), "lock", acceptable_exit_code=1)
            decode_data_on_success(output, "lock")
            self.session.session_key = ""

    # Identity

    def check_correct_user(self) -> None:
        """
        Validate the tool's live identity against the configured one.

        The server URL is always compared. Email, client id and user id are
        compared when configured, and back-filled from the live status when
        not.

        Raises:
            IdentityMismatchError: On the first field that disagrees
        """
        with self._auth_lock:
            status = self.status()
            session = self.session

            if status.server_url != session.server:
                raise IdentityMismatchError("server_url", status.server_url, session.server)
            if session.email and status.user_email != session.email:
                raise IdentityMismatchError("email", status.user_email, session.email)
            if session.client_id and status.user_id != session.expected_user_id:
                raise IdentityMismatchError("client_id", status.user_id, session.client_id)
            if session.user_id and status.user_id != session.user_id:
                raise IdentityMismatchError("user_id", status.user_id, session.user_id)

            if not session.email:
                session.email = status.user_email
            if not session.client_id:
                session.client_id = f"{CLIENT_ID_PREFIX}{status.user_id}"
            if not session.user_id:
                session.user_id = status.user_id

    # Ensure operations

    def ensure_logged_in_as_correct_user(self) -> None:
        """
        Make sure the tool is logged in as the configured identity.

        A session for another account on the same server is logged out and
        replaced. A different server, or a mismatch right after logging in,
        is fatal.

        Raises:
            IdentityMismatchError: If the identity cannot be reconciled
        """
        if self.is_logged_in():
            try:
                self.check_correct_user()
                return
            except IdentityMismatchError as e:
                if e.field == "server_url":
                    raise
                logger.warning("Tool is logged in as another account (%s); logging out", e.field)
                self.ensure_logged_out()

        self._login()
        self.check_correct_user()

    def ensure_logged_out(self) -> None:
        """Log the tool out if it is logged in."""
        if not self.is_logged_in():
            return
        self._logout()

    def ensure_unlocked(self) -> None:
        """Log in as the configured identity and unlock if locked."""
        self.ensure_logged_in_as_correct_user()
        with self._auth_lock:
            if self.is_unlocked():
                return
            self._unlock()

    def ensure_locked(self) -> None:
        """Log in as the configured identity and lock if unlocked."""
        self.ensure_logged_in_as_correct_user()
        with self._auth_lock:
            if not self.is_unlocked():
                return
            self._lock()

    # Data operations

    def sync(self) -> None:
        """Pull the latest vault data from the server."""
        self.ensure_unlocked()
        with self._data_lock:
            logger.info("Syncing vault")
            password = self._require_password("sync")
            output = self.runner.run_with_secret(
                self._command("sync", with_session=True), "sync", password
            )
            decode_data_on_success(output, "sync")

    def query(
        self,
        args: Sequence[str],
        friendly_name: str,
        descriptor: Optional[Descriptor] = None,
    ) -> Any:
        """
        Run a data command with the session key and return its ``data``.

        The caller is responsible for ensuring the vault is unlocked.

        Args:
            args: Tool arguments without the binary (e.g. ["list", "items"])
            friendly_name: Short name used in errors and logs
            descriptor: Conversion descriptor rooted at the envelope
        """
        with self._data_lock:
            password = self._require_password(friendly_name)
            output = self.runner.run_with_secret(
                self._command(*args, with_session=True), friendly_name, password
            )
            return decode_data_on_success(output, friendly_name, descriptor)
