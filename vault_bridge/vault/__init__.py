"""Vault session and item access for vault-bridge.

Keeps the Bitwarden command line tool logged in and unlocked as the
configured identity, and lists vault items in a snake_case vocabulary.

Usage:
    from vault_bridge.vault import VaultClient, VaultSession

    client = VaultClient.connect(VaultSession(email=email, master_password=password))
    for item in client.catalog.list_items():
        print(item["name"], item.get("folder_id"))
"""

# Exceptions
from .exceptions import (
    DescriptorError,
    EnvelopeFailureError,
    IdentityMismatchError,
    MalformedOutputError,
    ProcessError,
    SecretDeliveryError,
    StructuralMismatchError,
    ToolNotFoundError,
    UnexpectedOutputError,
    VaultConfigError,
    VaultError,
)

# Transforms
from .transform import (
    ConversionNode,
    Descend,
    DescendEach,
    Enclose,
    Rename,
    enclose,
    parse_descriptor,
    transform_keys,
)

# Process execution and decoding
from .runner import ProcessRunner, isolate_json
from .response import Envelope, decode, decode_data_on_success

# Session management
from .session import (
    SessionManager,
    SessionState,
    VaultSession,
    VaultStatus,
)

# Items
from .items import ITEM_ENCLOSURE, LIST_ITEMS_CONVERSION, ItemCatalog
from .client import VaultClient, find_tool

__all__ = [
    # Exceptions
    "VaultError",
    "VaultConfigError",
    "ProcessError",
    "ToolNotFoundError",
    "SecretDeliveryError",
    "MalformedOutputError",
    "UnexpectedOutputError",
    "DescriptorError",
    "StructuralMismatchError",
    "IdentityMismatchError",
    "EnvelopeFailureError",
    # Transforms
    "ConversionNode",
    "Rename",
    "Enclose",
    "Descend",
    "DescendEach",
    "parse_descriptor",
    "transform_keys",
    "enclose",
    # Process execution
    "ProcessRunner",
    "isolate_json",
    "Envelope",
    "decode",
    "decode_data_on_success",
    # Session
    "SessionManager",
    "SessionState",
    "VaultSession",
    "VaultStatus",
    # Items
    "ItemCatalog",
    "LIST_ITEMS_CONVERSION",
    "ITEM_ENCLOSURE",
    "VaultClient",
    "find_tool",
]
