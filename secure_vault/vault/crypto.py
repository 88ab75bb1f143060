"""Core cryptographic primitives for the note vault.

Uses the cryptography library for:
- PBKDF2-HMAC-SHA256 key derivation (500,000 iterations, 512-bit output)
- AES-256-CBC with PKCS#7 padding for confidentiality
- HMAC-SHA256 over iv || ciphertext for integrity (Encrypt-then-MAC)

Persisted record format: ``<iv-hex>:<authTag-hex>:<ciphertext-hex>``.
"""

import os
import re
from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..utils.logging import get_logger
from .exceptions import AuthenticationFailedError

logger = get_logger(__name__)

# Key derivation parameters
PBKDF2_ITERATIONS = 500_000
SALT_SIZE = 16  # 128 bits
KEY_SIZE = 32  # 256 bits per derived key

# Cipher parameters
IV_SIZE = 16  # 128 bits, AES block size
TAG_SIZE = 32  # HMAC-SHA256 output
BLOCK_SIZE_BITS = 128

RECORD_SEPARATOR = ":"
_HEX_FIELD = re.compile(r"[0-9a-fA-F]+")


@dataclass
class DerivedKeySet:
    """Encryption and authentication keys for one unlocked session.

    Keys are held in bytearrays so ``wipe()`` can zero them in place.
    """

    encryption_key: bytearray
    authentication_key: bytearray

    def __post_init__(self) -> None:
        # Adopt bytearrays as-is so wipe() zeroes the caller's buffers
        if not isinstance(self.encryption_key, bytearray):
            self.encryption_key = bytearray(self.encryption_key)
        if not isinstance(self.authentication_key, bytearray):
            self.authentication_key = bytearray(self.authentication_key)

    def __repr__(self) -> str:
        return "DerivedKeySet(<redacted>)"

    @property
    def wiped(self) -> bool:
        """True once the key material has been zeroed."""
        return not any(self.encryption_key) and not any(self.authentication_key)

    def wipe(self) -> None:
        """Zero both keys in place.

        Python may still hold copies made by the runtime or the crypto
        backend; this clears the buffers the session owns.
        """
        for buf in (self.encryption_key, self.authentication_key):
            for i in range(len(buf)):
                buf[i] = 0


class KeyDerivation:
    """Derives the session key pair from the master password using PBKDF2."""

    @staticmethod
    def generate_salt(size: int = SALT_SIZE) -> bytes:
        """Generate cryptographically secure random salt."""
        return os.urandom(size)

    @staticmethod
    def derive(
        password: str,
        salt: bytes,
        iterations: int = PBKDF2_ITERATIONS,
    ) -> DerivedKeySet:
        """
        Derive encryption and authentication keys from a password.

        PBKDF2-HMAC-SHA256 produces 512 bits; the first 256 become the AES
        key and the remaining 256 the HMAC key. Deterministic for a given
        (password, salt, iterations).

        Args:
            password: Master password (any string, including empty)
            salt: Random per-vault salt
            iterations: PBKDF2 iteration count

        Returns:
            DerivedKeySet
        """
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_SIZE * 2,
            salt=salt,
            iterations=iterations,
        )
        material = bytearray(kdf.derive(password.encode("utf-8")))
        keys = DerivedKeySet(
            encryption_key=material[:KEY_SIZE],
            authentication_key=material[KEY_SIZE:],
        )
        for i in range(len(material)):
            material[i] = 0
        return keys


@dataclass(frozen=True)
class EncryptedRecord:
    """Sealed note collection: random IV, HMAC tag and AES-CBC ciphertext."""

    iv: bytes
    auth_tag: bytes
    ciphertext: bytes

    def to_string(self) -> str:
        """Serialize as ``iv:authTag:ciphertext`` in lowercase hex."""
        return RECORD_SEPARATOR.join(
            (self.iv.hex(), self.auth_tag.hex(), self.ciphertext.hex())
        )

    @classmethod
    def from_string(cls, data: str) -> "EncryptedRecord":
        """
        Parse a persisted record.

        Anything other than exactly three hex fields of the expected sizes
        is rejected with the same generic failure as a bad tag.

        Raises:
            AuthenticationFailedError: If the record is malformed
        """
        parts = data.split(RECORD_SEPARATOR)
        if len(parts) != 3:
            logger.debug("Rejected record: wrong field count")
            raise AuthenticationFailedError()

        if not all(_HEX_FIELD.fullmatch(part) and len(part) % 2 == 0 for part in parts):
            logger.debug("Rejected record: non-hex field")
            raise AuthenticationFailedError()

        iv, auth_tag, ciphertext = (bytes.fromhex(part) for part in parts)

        if (
            len(iv) != IV_SIZE
            or len(auth_tag) != TAG_SIZE
            or not ciphertext
            or len(ciphertext) % IV_SIZE
        ):
            logger.debug("Rejected record: bad field length")
            raise AuthenticationFailedError()

        return cls(iv=iv, auth_tag=auth_tag, ciphertext=ciphertext)


class AuthenticatedCipher:
    """
    AES-256-CBC + HMAC-SHA256 in Encrypt-then-MAC composition.

    The tag covers ``iv || ciphertext`` and is always checked before any
    decryption is attempted.
    """

    @staticmethod
    def _compute_tag(keys: DerivedKeySet, iv: bytes, ciphertext: bytes) -> hmac.HMAC:
        h = hmac.HMAC(keys.authentication_key, hashes.SHA256())
        h.update(iv)
        h.update(ciphertext)
        return h

    @staticmethod
    def seal(plaintext: bytes, keys: DerivedKeySet) -> EncryptedRecord:
        """
        Encrypt and authenticate a payload.

        Args:
            plaintext: Data to protect
            keys: Session key pair

        Returns:
            EncryptedRecord with a fresh random IV
        """
        iv = os.urandom(IV_SIZE)

        padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
        padded = padder.update(plaintext) + padder.finalize()

        encryptor = Cipher(algorithms.AES(keys.encryption_key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        auth_tag = AuthenticatedCipher._compute_tag(keys, iv, ciphertext).finalize()
        return EncryptedRecord(iv=iv, auth_tag=auth_tag, ciphertext=ciphertext)

    @staticmethod
    def open(record: EncryptedRecord, keys: DerivedKeySet) -> bytes:
        """
        Verify and decrypt a record.

        Args:
            record: Sealed record
            keys: Session key pair

        Returns:
            Decrypted plaintext

        Raises:
            AuthenticationFailedError: On any tag mismatch or bad padding
        """
        try:
            # HMAC.verify compares in constant time
            AuthenticatedCipher._compute_tag(keys, record.iv, record.ciphertext).verify(
                record.auth_tag
            )
        except InvalidSignature:
            raise AuthenticationFailedError() from None

        decryptor = Cipher(algorithms.AES(keys.encryption_key), modes.CBC(record.iv)).decryptor()
        padded = decryptor.update(record.ciphertext) + decryptor.finalize()

        unpadder = padding.PKCS7(BLOCK_SIZE_BITS).unpadder()
        try:
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError:
            raise AuthenticationFailedError() from None

    @staticmethod
    def seal_text(text: str, keys: DerivedKeySet) -> str:
        """Seal a UTF-8 string and return the persisted record string."""
        return AuthenticatedCipher.seal(text.encode("utf-8"), keys).to_string()

    @staticmethod
    def open_text(data: str, keys: DerivedKeySet) -> bytes:
        """Parse a persisted record string and open it."""
        return AuthenticatedCipher.open(EncryptedRecord.from_string(data), keys)
