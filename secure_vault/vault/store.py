"""Persisted store for the vault's two records.

The vault core needs only get/set/has semantics over string keys. It reads
and writes exactly two records: the hex salt and the sealed note collection.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from ..utils.logging import get_logger
from .exceptions import StoreError

logger = get_logger(__name__)

SALT_KEY = "salt"
VAULT_DATA_KEY = "vaultData"


class KeyValueStore:
    """Minimal durable key/value surface used by the vault session."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def has(self, key: str) -> bool:
        return self.get(key) is not None


class MemoryStore(KeyValueStore):
    """In-process store, for tests and embedding."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self.write_count = 0

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self.write_count += 1

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Copy of the stored records."""
        return dict(self._data)


class JsonFileStore(KeyValueStore):
    """
    Store backed by a single JSON object on disk.

    Every write rewrites the whole file atomically (temp file in the same
    directory, then ``os.replace``), so a crash never leaves a half-written
    vault behind.

    File format:
        {"salt": "<hex>", "vaultData": "<iv>:<tag>:<ciphertext>"}
    """

    def __init__(self, path: Path):
        """
        Initialize store.

        Args:
            path: Location of the JSON file (created on first write)
        """
        self.path = Path(path).expanduser()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Failed to read vault file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Vault file {self.path} is not a JSON object")
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
        except OSError as e:
            Path(temp_path).unlink(missing_ok=True)
            raise StoreError(f"Failed to write vault file {self.path}: {e}") from e
        logger.debug(f"Wrote vault file {self.path}")

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)

    @property
    def exists(self) -> bool:
        """Whether the vault file is present on disk."""
        return self.path.exists()
