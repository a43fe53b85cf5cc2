"""Decoding of the JSON envelope returned by ``--response`` commands."""

import json
from dataclasses import dataclass, field
from typing import Any, Optional

from ..utils.logging import get_logger
from .exceptions import EnvelopeFailureError, MalformedOutputError
from .transform import Descriptor, transform_keys

logger = get_logger(__name__)


@dataclass
class Envelope:
    """
    Response wrapper produced by the vault tool.

    On failure ``message`` is populated, on success ``data``.
    """

    success: bool = False
    message: str = ""
    data: Any = field(default_factory=dict)

    @classmethod
    def from_dict(cls, document: dict[str, Any]) -> "Envelope":
        """Create from a decoded response document."""
        data = document.get("data")
        return cls(
            success=bool(document.get("success", False)),
            message=document.get("message") or "",
            data=data if data is not None else {},
        )

    @property
    def is_consistent(self) -> bool:
        """True when ``success`` agrees with which field carries the payload."""
        if self.success:
            return not self.message
        return bool(self.message) and not self.data


def decode(raw: str, descriptor: Optional[Descriptor] = None, command: str = "") -> Envelope:
    """
    Parse tool output into an Envelope.

    Keys are renamed with ``descriptor`` across the whole document before
    the envelope fields are read.

    Args:
        raw: JSON text produced by the tool
        descriptor: Optional conversion descriptor rooted at the envelope
        command: Friendly command name for error messages

    Returns:
        Decoded Envelope

    Raises:
        MalformedOutputError: If the text is not a JSON object
        StructuralMismatchError: If the descriptor does not fit the document
    """
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedOutputError(
            f"cannot unmarshal response from {command or 'tool'}: invalid json:\n{raw}",
            raw=raw,
            processed=raw,
        ) from e

    if not isinstance(document, dict):
        raise MalformedOutputError(
            f"response from {command or 'tool'} is not a JSON object:\n{raw}",
            raw=raw,
            processed=raw,
        )

    transform_keys(document, descriptor)
    envelope = Envelope.from_dict(document)

    if not envelope.is_consistent:
        logger.warning("Inconsistent envelope from %s (success=%s)", command or "tool", envelope.success)

    return envelope


def decode_data_on_success(
    raw: str,
    command: str,
    descriptor: Optional[Descriptor] = None,
) -> Any:
    """
    Decode tool output and return its ``data`` if the tool succeeded.

    Raises:
        EnvelopeFailureError: If the envelope reports ``success: false``
    """
    envelope = decode(raw, descriptor, command)
    if not envelope.success:
        raise EnvelopeFailureError(command, envelope.message)
    return envelope.data
