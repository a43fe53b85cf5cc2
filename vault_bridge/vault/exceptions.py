"""Vault exceptions for vault-bridge."""

from typing import Any, Optional


class VaultError(Exception):
    """Base exception for vault operations."""

    pass


class VaultConfigError(VaultError):
    """Raised when a setting needed for an operation is missing or invalid."""

    pass


class ProcessError(VaultError):
    """Raised when the vault tool exits with an unexpected code."""

    def __init__(
        self,
        command: str,
        output: str = "",
        exit_code: Optional[int] = None,
        message: str = "",
    ):
        self.command = command
        self.output = output
        self.exit_code = exit_code
        if not message:
            message = f"cannot {command}: {output}\nexit code: {exit_code}"
        super().__init__(message)


class ToolNotFoundError(ProcessError):
    """Raised when the vault tool binary cannot be located."""

    def __init__(self, binary: str, output: str = ""):
        self.binary = binary
        super().__init__(
            command="--version",
            output=output,
            message=f"{binary} (Bitwarden CLI) not found",
        )


class SecretDeliveryError(VaultError):
    """Raised when the master password cannot be written to the tool."""

    def __init__(
        self,
        command: str,
        reason: str = "",
        output: str = "",
        exit_code: Optional[int] = None,
    ):
        self.command = command
        self.reason = reason
        self.output = output
        self.exit_code = exit_code
        message = f"cannot deliver password to {command}"
        if reason:
            message = f"{message}: {reason}"
        if exit_code is not None:
            message = f"{message}\n{output}\nexit code: {exit_code}"
        super().__init__(message)


class MalformedOutputError(VaultError):
    """Raised when tool output is not the JSON document we expect."""

    def __init__(self, message: str, raw: str = "", processed: str = ""):
        self.raw = raw
        self.processed = processed
        super().__init__(message)


class UnexpectedOutputError(VaultError):
    """Raised when a well-formed response carries data of the wrong shape."""

    def __init__(self, command: str, data: Any):
        self.command = command
        self.data = data
        super().__init__(f"unexpected {command} output:\n{data!r}")


class DescriptorError(VaultError):
    """Raised when a conversion descriptor is malformed."""

    pass


class StructuralMismatchError(VaultError):
    """Raised when a conversion descriptor does not match the document."""

    def __init__(self, message: str, descriptor: Any = None, document: Any = None):
        self.descriptor = descriptor
        self.document = document
        super().__init__(f"{message}:\n{descriptor!r}\n\n{document!r}")


class IdentityMismatchError(VaultError):
    """Raised when the tool is logged in as someone other than configured."""

    def __init__(self, field: str, live: str, configured: str):
        self.field = field
        self.live = live
        self.configured = configured
        super().__init__(f"mismatching {field}: tool has {live!r}, configured {configured!r}")


class EnvelopeFailureError(VaultError):
    """Raised when the tool reports an unsuccessful response."""

    def __init__(self, command: str, message: str):
        self.command = command
        self.message = message
        super().__init__(f"unsuccessful {command}: {message}")
