"""Shared pytest fixtures for Secure Vault tests."""

from pathlib import Path

import pytest

from secure_vault.vault import (
    KeyDerivation,
    MemoryStore,
    VaultConfig,
    VaultSession,
    set_vault_config,
)

# Low iteration count keeps tests fast; production default is 500,000
TEST_ITERATIONS = 1_000
PASSWORD = "CorrectHorseBattery9"


class FakeTimer:
    """Stand-in for threading.Timer that only fires when told to."""

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        """Simulate the countdown expiring."""
        self.function(*self.args, **self.kwargs)


class FakeTimerFactory:
    """Records every FakeTimer it builds."""

    def __init__(self):
        self.timers: list[FakeTimer] = []

    def __call__(self, interval, function, args=None, kwargs=None):
        timer = FakeTimer(interval, function, args=args, kwargs=kwargs)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]


@pytest.fixture
def fast_config(tmp_path: Path) -> VaultConfig:
    """Vault configuration with a cheap KDF and a temp store path."""
    return VaultConfig(
        pbkdf2_iterations=TEST_ITERATIONS,
        idle_timeout_seconds=60,
        store_path=tmp_path / "vault.json",
    )


@pytest.fixture
def memory_store() -> MemoryStore:
    """Empty in-memory store."""
    return MemoryStore()


@pytest.fixture
def session(memory_store: MemoryStore, fast_config: VaultConfig) -> VaultSession:
    """Fresh session over an empty store."""
    return VaultSession(memory_store, config=fast_config)


@pytest.fixture
def unlocked_session(session: VaultSession) -> VaultSession:
    """Session that has just been initialized with PASSWORD."""
    session.initialize(PASSWORD)
    return session


@pytest.fixture
def keys():
    """A derived key pair for cipher tests."""
    return KeyDerivation.derive(PASSWORD, b"\x01" * 16, TEST_ITERATIONS)


@pytest.fixture
def timer_factory() -> FakeTimerFactory:
    """Factory producing manually fired timers."""
    return FakeTimerFactory()


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch):
    """Point the CLI at a temp vault file with a cheap KDF."""
    store_path = tmp_path / "vault.json"
    monkeypatch.setenv("SECURE_VAULT_STORE", str(store_path))
    monkeypatch.setenv("SECURE_VAULT_ITERATIONS", str(TEST_ITERATIONS))
    monkeypatch.delenv("SECURE_VAULT_PASSWORD", raising=False)
    monkeypatch.delenv("SECURE_VAULT_IDLE_TIMEOUT", raising=False)
    set_vault_config(None)
    yield store_path
    set_vault_config(None)
