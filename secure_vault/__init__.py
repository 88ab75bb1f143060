"""Secure Vault - Encrypted local store for short text notes."""

__version__ = "0.1.0"

from .vault import Note, VaultSession, VaultState

__all__ = [
    "__version__",
    "Note",
    "VaultSession",
    "VaultState",
]
