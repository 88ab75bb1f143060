"""Encrypted local vault for short text notes.

A single master password, never stored, protects every note. Keys are
derived with PBKDF2-HMAC-SHA256 and the note collection is sealed with
AES-256-CBC + HMAC-SHA256 (Encrypt-then-MAC).

Usage:
    from secure_vault.vault import IdleTimer, JsonFileStore, VaultSession

    session = VaultSession(JsonFileStore(path), idle_timer=IdleTimer())
    if session.is_initialized:
        session.unlock(password)
    else:
        session.initialize(password)

    session.add_note("Wi-Fi", "hunter2")
    session.lock()
"""

# Exceptions
from .exceptions import (
    AuthenticationFailedError,
    InvalidPasswordError,
    NoteNotFoundError,
    PasswordMismatchError,
    StoreError,
    VaultAlreadyExistsError,
    VaultBusyError,
    VaultCorruptedError,
    VaultError,
    VaultLockedError,
    VaultNotFoundError,
    WeakPasswordError,
)

# Configuration
from .config import (
    VaultConfig,
    get_vault_config,
    set_vault_config,
)

# Cryptography
from .crypto import (
    AuthenticatedCipher,
    DerivedKeySet,
    EncryptedRecord,
    KeyDerivation,
)

# Models and storage
from .models import Note, dump_notes, generate_note_id, load_notes
from .store import (
    SALT_KEY,
    VAULT_DATA_KEY,
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
)

# Password policy
from .passwords import (
    password_strength,
    strength_label,
    validate_new_password,
)

# Session
from .idle import IdleTimer
from .session import VaultSession, VaultState

__all__ = [
    # Exceptions
    "VaultError",
    "WeakPasswordError",
    "PasswordMismatchError",
    "VaultNotFoundError",
    "AuthenticationFailedError",
    "InvalidPasswordError",
    "VaultCorruptedError",
    "VaultAlreadyExistsError",
    "VaultLockedError",
    "NoteNotFoundError",
    "VaultBusyError",
    "StoreError",
    # Configuration
    "VaultConfig",
    "get_vault_config",
    "set_vault_config",
    # Cryptography
    "KeyDerivation",
    "DerivedKeySet",
    "EncryptedRecord",
    "AuthenticatedCipher",
    # Models and storage
    "Note",
    "generate_note_id",
    "dump_notes",
    "load_notes",
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "SALT_KEY",
    "VAULT_DATA_KEY",
    # Password policy
    "validate_new_password",
    "password_strength",
    "strength_label",
    # Session
    "IdleTimer",
    "VaultSession",
    "VaultState",
]
