"""vault-bridge - Bitwarden CLI session management and item access."""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
