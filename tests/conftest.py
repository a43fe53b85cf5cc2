"""Shared pytest fixtures for vault-bridge tests."""

import copy
import json
from typing import Any, Optional, Sequence

import pytest

from vault_bridge.vault.runner import ProcessRunner, isolate_json

SERVER = "https://vault.example.com"
EMAIL = "me@example.com"
USER_ID = "5b1c3a2e-0000-4000-8000-000000000001"
PASSWORD = "correct horse battery staple"


def envelope(success: bool, data: Any = None, message: str = "") -> str:
    """Render a tool response the way ``--response`` does."""
    response: dict[str, Any] = {"success": success}
    if message:
        response["message"] = message
    if data is not None:
        response["data"] = data
    return json.dumps(response)


class FakeBitwarden(ProcessRunner):
    """
    Stateful stand-in for the bw command line tool.

    Records the friendly name of every invocation in ``calls``. Entries in
    ``responses`` replace the simulated output for a friendly name.
    """

    def __init__(self, password: str = PASSWORD, server_url: str = SERVER):
        super().__init__()
        self.password = password
        self.server_url = server_url
        self.accounts: dict[str, str] = {EMAIL: USER_ID}
        self.logged_in = False
        self.unlocked = False
        self.email = ""
        self.user_id = ""
        self.session_key = ""
        self.items: list[dict[str, Any]] = []
        self.responses: dict[str, str] = {}
        self.calls: list[str] = []
        self.secrets: list[str] = []
        self._keys_issued = 0

    def log_in_as(self, email: str, unlocked: bool = False) -> None:
        """Put the fake into a logged in state before the test runs."""
        self.logged_in = True
        self.email = email
        self.user_id = self.accounts.get(email, "someone-else")
        if unlocked:
            self.unlocked = True
            self.session_key = self._issue_key()

    def _issue_key(self) -> str:
        self._keys_issued += 1
        return f"session-key-{self._keys_issued}"

    @staticmethod
    def _session_arg(args: Sequence[str]) -> Optional[str]:
        args = list(args)
        if "--session" in args:
            return args[args.index("--session") + 1]
        return None

    def run(self, args: Sequence[str], friendly_name: str, acceptable_exit_code: int = 0) -> str:
        self.calls.append(friendly_name)
        if friendly_name in self.responses:
            return self.responses[friendly_name]
        return self._simulate(list(args), friendly_name, None)

    def run_with_secret(self, args: Sequence[str], friendly_name: str, secret: str) -> str:
        self.calls.append(friendly_name)
        self.secrets.append(secret)
        output = self.responses.get(friendly_name)
        if output is None:
            output = self._simulate(list(args), friendly_name, secret)
        return isolate_json(output)

    def _simulate(self, args: list[str], friendly_name: str, secret: Optional[str]) -> str:
        if friendly_name == "check version":
            return "2024.6.0\n"

        if friendly_name == "login --check":
            if self.logged_in:
                return envelope(True, {"object": "message", "title": "You are logged in!"})
            return envelope(False, message="You are not logged in.")

        if friendly_name == "unlock --check":
            if self.unlocked and self._session_arg(args) == self.session_key:
                return envelope(True, {"object": "message", "title": "Vault is unlocked!"})
            return envelope(False, message="Vault is locked.")

        if friendly_name == "status":
            state = "unlocked" if self.unlocked else "locked" if self.logged_in else "unauthenticated"
            template = {
                "serverUrl": self.server_url,
                "lastSync": "2024-06-01T12:00:00.000Z",
                "userEmail": self.email if self.logged_in else None,
                "userId": self.user_id if self.logged_in else None,
                "status": state,
            }
            return envelope(True, {"object": "template", "template": template})

        if friendly_name == "login":
            if self.logged_in:
                return envelope(False, message=f"You are already logged in as {self.email}.")
            if secret != self.password:
                return envelope(False, message="Username or password is incorrect. Try again.")
            self.log_in_as(args[2], unlocked=True)
            return "? Master password: [hidden]\n" + envelope(True, {
                "noColor": False,
                "object": "message",
                "title": "You are logged in!",
                "raw": self.session_key,
            })

        if friendly_name == "unlock":
            if secret != self.password:
                return envelope(False, message="Invalid master password.")
            self.unlocked = True
            self.session_key = self._issue_key()
            return "? Master password: [hidden]\n" + envelope(True, {
                "noColor": False,
                "object": "message",
                "title": "Your vault is now unlocked!",
                "raw": self.session_key,
            })

        if friendly_name == "lock":
            self.unlocked = False
            self.session_key = ""
            return envelope(True, {"object": "message", "title": "Your vault is locked."})

        if friendly_name == "logout":
            if not self.logged_in:
                return envelope(False, message="You are not logged in.")
            self.logged_in = False
            self.unlocked = False
            self.session_key = ""
            return envelope(True, {"object": "message", "title": "You have logged out."})

        if friendly_name == "sync":
            return envelope(True, {"object": "message", "title": "Syncing complete."})

        if friendly_name == "list items":
            if not self.unlocked:
                return envelope(False, message="Vault is locked.")
            return envelope(True, {"object": "list", "data": copy.deepcopy(self.items)})

        raise AssertionError(f"unexpected command: {friendly_name} {args}")


@pytest.fixture
def fake_bw() -> FakeBitwarden:
    """A logged out fake vault tool."""
    return FakeBitwarden()


@pytest.fixture
def vault_session():
    """A session configured for the fake tool's account."""
    from vault_bridge.vault.session import VaultSession

    return VaultSession(email=EMAIL, master_password=PASSWORD, server=SERVER)


@pytest.fixture
def manager(vault_session, fake_bw):
    """A SessionManager driving the fake tool."""
    from vault_bridge.vault.session import SessionManager

    return SessionManager(vault_session, fake_bw)


@pytest.fixture
def sample_items() -> list[dict[str, Any]]:
    """Raw items as printed by ``bw list items``."""
    return [
        {
            "object": "item",
            "id": "item-login",
            "organizationId": None,
            "folderId": "folder-1",
            "type": 1,
            "name": "Example login",
            "notes": None,
            "favorite": False,
            "login": {
                "uris": [{"match": None, "uri": "https://example.com"}],
                "username": "me",
                "password": "hunter2",
                "totp": None,
                "passwordRevisionDate": "2024-01-01T00:00:00.000Z",
            },
            "collectionIds": [],
            "revisionDate": "2024-05-01T00:00:00.000Z",
        },
        {
            "object": "item",
            "id": "item-card",
            "organizationId": "org-1",
            "folderId": None,
            "type": 3,
            "name": "Visa",
            "card": {
                "cardholderName": "Jo Doe",
                "brand": "Visa",
                "number": "4111111111111111",
                "expMonth": "12",
                "expYear": "2030",
                "code": "123",
            },
            "collectionIds": ["col-1"],
            "revisionDate": "2024-05-02T00:00:00.000Z",
        },
        {
            "object": "item",
            "id": "item-identity",
            "organizationId": None,
            "folderId": None,
            "type": 4,
            "name": "Passport",
            "identity": {
                "title": "Mx",
                "firstName": "Jo",
                "middleName": None,
                "lastName": "Doe",
                "postalCode": "12345",
                "passportNumber": "P123",
                "licenseNumber": "L456",
            },
            "collectionIds": [],
            "revisionDate": "2024-05-03T00:00:00.000Z",
        },
        {
            "object": "item",
            "id": "item-note",
            "organizationId": None,
            "folderId": None,
            "type": 2,
            "name": "Note",
            "notes": "secret text",
            "secureNote": {"type": 0},
            "collectionIds": [],
            "revisionDate": "2024-05-04T00:00:00.000Z",
        },
    ]
