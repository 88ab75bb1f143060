"""Vault exceptions for the Secure Vault note store."""


class VaultError(Exception):
    """Base exception for vault operations."""

    pass


class WeakPasswordError(VaultError):
    """Raised when a new master password is below the minimum length."""

    def __init__(self, min_length: int = 12):
        super().__init__(f"Password must be at least {min_length} characters long.")


class PasswordMismatchError(VaultError):
    """Raised when the password confirmation does not match."""

    def __init__(self, message: str = "Passwords do not match."):
        super().__init__(message)


class VaultNotFoundError(VaultError):
    """Raised when the salt or the encrypted record is missing."""

    def __init__(self, message: str = "Vault not found or corrupt."):
        super().__init__(message)


class AuthenticationFailedError(VaultError):
    """Raised when a record does not authenticate under the supplied keys.

    Wrong password and tampered data are indistinguishable on purpose.
    """

    def __init__(self, message: str = "Invalid password. Please try again."):
        super().__init__(message)


# Kept for callers that think in terms of passwords rather than tags
InvalidPasswordError = AuthenticationFailedError


class VaultCorruptedError(VaultError):
    """Raised when authenticated plaintext cannot be parsed into notes."""

    def __init__(self, message: str = "Failed to parse vault data. It might be corrupt."):
        super().__init__(message)


class VaultAlreadyExistsError(VaultError):
    """Raised when initialize is attempted on an existing vault."""

    def __init__(self, message: str = "Vault is already initialized."):
        super().__init__(message)


class VaultLockedError(VaultError):
    """Raised when note data is accessed while the vault is not unlocked."""

    def __init__(self, message: str = "Vault is locked. Unlock with password first."):
        super().__init__(message)


class NoteNotFoundError(VaultError):
    """Raised when a note id does not exist in the unlocked collection."""

    def __init__(self, note_id: str = ""):
        message = f"Note not found: {note_id}" if note_id else "Note not found."
        super().__init__(message)


class VaultBusyError(VaultError):
    """Raised when a transition is requested while another is in flight."""

    def __init__(self, message: str = "Another vault operation is in progress."):
        super().__init__(message)


class StoreError(VaultError):
    """Raised when the persisted store cannot be read or written."""

    def __init__(self, message: str = "Failed to access vault storage."):
        super().__init__(message)
