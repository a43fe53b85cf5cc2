"""Vault item listing in the snake_case vocabulary expected by callers."""

from typing import Any

from ..utils.logging import get_logger
from .exceptions import UnexpectedOutputError
from .session import SessionManager
from .transform import enclose, parse_descriptor

logger = get_logger(__name__)

# Rooted at the envelope: {"success": ..., "data": {"object": "list", "data": [...]}}
LIST_ITEMS_CONVERSION = parse_descriptor({
    "data": {
        "data": [
            {
                "organizationId": "organization_id",
                "folderId": "folder_id",
                "card": {
                    "cardholderName": "cardholder_name",
                    "expMonth": "exp_month",
                    "expYear": "exp_year",
                },
                "identity": {
                    "firstName": "first_name",
                    "middleName": "middle_name",
                    "lastName": "last_name",
                    "postalCode": "postal_code",
                    "passportNumber": "passport_number",
                    "licenseNumber": "license_number",
                },
                "login": {
                    "passwordRevisionDate": "password_revision_date",
                },
                "secureNote": "secure_note",
                "collectionIds": "collection_ids",
                "revisionDate": "revision_date",
            },
        ],
    },
})

# Category blocks become one-element lists for hosts that model them as
# repeatable blocks.
ITEM_ENCLOSURE = parse_descriptor(
    {
        "items": [
            {
                "card": "",
                "identity": "",
                "login": "",
                "secure_note": "",
            },
        ],
    },
    enclose=True,
)


class ItemCatalog:
    """Lists vault items through an unlocked session."""

    def __init__(self, manager: SessionManager):
        self.manager = manager

    def list_items(self) -> list[dict[str, Any]]:
        """
        Fetch all items, with keys renamed to snake_case.

        Items are fetched fresh on every call.

        Raises:
            EnvelopeFailureError: If the tool reports a failure
            UnexpectedOutputError: If the listing is not a list
        """
        self.manager.ensure_unlocked()
        data = self.manager.query(["list", "items"], "list items", LIST_ITEMS_CONVERSION)

        items = data.get("data") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise UnexpectedOutputError("list items", data)

        logger.debug("Listed %d items", len(items))
        return items

    def read_items(self) -> list[dict[str, Any]]:
        """Fetch all items with category blocks enclosed in lists."""
        enclosure = {"items": self.list_items()}
        enclose(enclosure, ITEM_ENCLOSURE)
        return enclosure["items"]
