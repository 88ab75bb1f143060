"""Vault configuration for the Secure Vault note store."""

import os
from dataclasses import dataclass, field
from pathlib import Path


def _default_store_path() -> Path:
    return Path.home() / ".secure_vault" / "vault.json"


@dataclass
class VaultConfig:
    """Configuration for vault key derivation, policy and storage."""

    # Key derivation. The iteration count is not stored with the vault,
    # so changing it makes existing vaults fail to unlock.
    pbkdf2_iterations: int = 500_000
    salt_size: int = 16  # 128 bits

    # Password policy
    min_password_length: int = 12

    # Session management
    idle_timeout_seconds: float = 15 * 60  # 0 = never auto-lock

    # Persistence
    store_path: Path = field(default_factory=_default_store_path)

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """
        Load configuration from environment variables.

        Environment variables:
            SECURE_VAULT_ITERATIONS: PBKDF2 iteration count (default: 500000)
            SECURE_VAULT_IDLE_TIMEOUT: Idle seconds before auto-lock (default: 900)
            SECURE_VAULT_STORE: Path of the vault file
        """
        config = cls()

        if iterations := os.getenv("SECURE_VAULT_ITERATIONS"):
            config.pbkdf2_iterations = int(iterations)

        if timeout := os.getenv("SECURE_VAULT_IDLE_TIMEOUT"):
            config.idle_timeout_seconds = float(timeout)

        if store := os.getenv("SECURE_VAULT_STORE"):
            config.store_path = Path(store).expanduser()

        return config


# Global configuration instance
_config: VaultConfig | None = None


def get_vault_config() -> VaultConfig:
    """Get the global vault configuration."""
    global _config
    if _config is None:
        _config = VaultConfig.from_env()
    return _config


def set_vault_config(config: VaultConfig | None) -> None:
    """Set the global vault configuration (None reloads from env on next get)."""
    global _config
    _config = config
