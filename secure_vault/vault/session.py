"""Vault session state machine.

Owns the derived keys and the plaintext note collection for the lifetime
of one unlocked session:

    Uninitialized --initialize--> Unlocked <--unlock/lock--> Locked

Every note mutation re-seals the whole collection and overwrites the single
persisted record before returning. Successful authenticated decryption is the
only password check; no password hash is ever stored.
"""

import threading
from contextlib import contextmanager
from enum import Enum
from functools import partial
from typing import Iterator, Optional

from ..utils.logging import get_logger
from .config import VaultConfig, get_vault_config
from .crypto import AuthenticatedCipher, DerivedKeySet, KeyDerivation
from .exceptions import (
    AuthenticationFailedError,
    NoteNotFoundError,
    StoreError,
    VaultAlreadyExistsError,
    VaultBusyError,
    VaultCorruptedError,
    VaultError,
    VaultLockedError,
    VaultNotFoundError,
    WeakPasswordError,
)
from .idle import IdleTimer
from .models import Clock, Note, dump_notes, load_notes, utc_now
from .passwords import check_password_length
from .store import SALT_KEY, VAULT_DATA_KEY, KeyValueStore

logger = get_logger(__name__)


class VaultState(Enum):
    """Lifecycle state of a vault session."""

    UNINITIALIZED = "uninitialized"  # No salt persisted yet
    LOCKED = "locked"  # Salt exists, no keys in memory
    UNLOCKED = "unlocked"  # Keys and plaintext notes in memory


class VaultSession:
    """
    Session over one persisted vault.

    Usage:
        session = VaultSession(JsonFileStore(path), idle_timer=IdleTimer())
        if not session.is_initialized:
            session.initialize(password)
        else:
            session.unlock(password)

        note = session.add_note("Bank", "PIN 1234")
        session.lock()

    User-facing failures raise a VaultError subclass and also leave the
    message in ``last_error``. Transitions run one at a time: a second
    ``initialize``/``unlock``/mutation while one is in flight raises
    VaultBusyError, while ``lock`` waits for the running transition.
    """

    def __init__(
        self,
        store: KeyValueStore,
        config: Optional[VaultConfig] = None,
        idle_timer: Optional[IdleTimer] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize a session and detect whether the vault exists.

        Args:
            store: Persisted store holding the salt and vault records
            config: Vault configuration (uses global if not provided)
            idle_timer: Optional timer that locks the session when idle
            clock: Source of note timestamps (defaults to UTC now)
        """
        self.store = store
        self.config = config or get_vault_config()
        self.idle_timer = idle_timer
        self._clock = clock or utc_now
        self._transition_lock = threading.Lock()
        self._keys: Optional[DerivedKeySet] = None
        self._notes: list[Note] = []
        self._last_error: Optional[str] = None
        self._unlock_epoch = 0
        self._state = VaultState.LOCKED if store.has(SALT_KEY) else VaultState.UNINITIALIZED

    # ------------------------------------------------------------------
    # Observations
    # ------------------------------------------------------------------

    @property
    def state(self) -> VaultState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_initialized(self) -> bool:
        """True once a salt has been persisted."""
        return self._state is not VaultState.UNINITIALIZED

    @property
    def is_locked(self) -> bool:
        """True unless the session is unlocked."""
        return self._state is not VaultState.UNLOCKED

    @property
    def keys_loaded(self) -> bool:
        """Whether derived keys are currently held in memory."""
        return self._keys is not None

    @property
    def notes(self) -> tuple[Note, ...]:
        """Snapshot of the note collection (empty while locked)."""
        return tuple(self._notes)

    @property
    def last_error(self) -> Optional[str]:
        """Message of the most recent user-facing failure, if any."""
        return self._last_error

    def sorted_notes(self) -> list[Note]:
        """Notes ordered by most recently updated first."""
        return sorted(self._notes, key=lambda n: n.updated_at, reverse=True)

    def get_note(self, note_id: str) -> Note:
        """
        Look up a note by id.

        Raises:
            VaultLockedError: If the vault is not unlocked
            NoteNotFoundError: If no note has this id
        """
        self._require_unlocked()
        for note in self._notes:
            if note.id == note_id:
                return note
        raise NoteNotFoundError(note_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _transition(self, blocking: bool = False) -> Iterator[None]:
        if not self._transition_lock.acquire(blocking=blocking):
            raise VaultBusyError()
        try:
            yield
        finally:
            self._transition_lock.release()

    def _fail(self, error: VaultError) -> VaultError:
        self._last_error = str(error)
        logger.warning(f"Vault operation failed: {type(error).__name__}")
        return error

    def _require_unlocked(self) -> DerivedKeySet:
        if self._state is not VaultState.UNLOCKED or self._keys is None:
            raise VaultLockedError()
        return self._keys

    def _derive(self, password: str, salt: bytes) -> DerivedKeySet:
        return KeyDerivation.derive(password, salt, self.config.pbkdf2_iterations)

    def _enter_unlocked(self, keys: DerivedKeySet, notes: list[Note]) -> None:
        self._keys = keys
        self._notes = notes
        self._unlock_epoch += 1
        self._state = VaultState.UNLOCKED
        self._last_error = None
        if self.idle_timer is not None and self.config.idle_timeout_seconds > 0:
            on_idle = partial(self._idle_lock, self._unlock_epoch)
            self.idle_timer.start(on_idle, self.config.idle_timeout_seconds)

    def _save(self, notes: list[Note]) -> None:
        keys = self._require_unlocked()
        record = AuthenticatedCipher.seal_text(dump_notes(notes), keys)
        self.store.set(VAULT_DATA_KEY, record)
        self._notes = notes
        logger.debug(f"Saved vault with {len(notes)} notes")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def initialize(self, password: str) -> None:
        """
        Create a new vault protected by ``password`` and unlock it.

        Generates a salt, derives keys, persists the sealed empty collection
        and then the salt. The password confirmation check belongs to the
        caller (see ``passwords.validate_new_password``).

        Raises:
            VaultAlreadyExistsError: If a vault already exists
            WeakPasswordError: If the password is below the minimum length
            StoreError: If the records cannot be written
        """
        with self._transition():
            self._last_error = None
            if self._state is not VaultState.UNINITIALIZED:
                raise self._fail(VaultAlreadyExistsError())

            try:
                check_password_length(password, self.config.min_password_length)
            except WeakPasswordError as e:
                raise self._fail(e)

            salt = KeyDerivation.generate_salt(self.config.salt_size)
            keys = self._derive(password, salt)
            try:
                # Record first: a crash before the salt lands leaves the
                # vault uninitialized rather than unopenable.
                self.store.set(VAULT_DATA_KEY, AuthenticatedCipher.seal_text(dump_notes([]), keys))
                self.store.set(SALT_KEY, salt.hex())
            except StoreError as e:
                keys.wipe()
                raise self._fail(e)

            self._enter_unlocked(keys, [])
            logger.info("Vault initialized")

    def unlock(self, password: str) -> None:
        """
        Unlock the vault with ``password``.

        Raises:
            VaultNotFoundError: If the salt or vault record is missing
            AuthenticationFailedError: If the password is wrong or the
                record was tampered with
            VaultCorruptedError: If authenticated data is not a note list
            VaultError: If the vault is already unlocked
        """
        with self._transition():
            self._last_error = None
            if self._state is VaultState.UNLOCKED:
                raise VaultError("Vault is already unlocked.")

            salt_hex = self.store.get(SALT_KEY)
            data = self.store.get(VAULT_DATA_KEY)
            if not salt_hex or not data:
                raise self._fail(VaultNotFoundError())
            try:
                salt = bytes.fromhex(salt_hex)
            except ValueError:
                raise self._fail(VaultNotFoundError()) from None

            keys = self._derive(password, salt)
            unlocked = False
            try:
                plaintext = AuthenticatedCipher.open_text(data, keys)
                notes = load_notes(plaintext)
                self._enter_unlocked(keys, notes)
                unlocked = True
            except (AuthenticationFailedError, VaultCorruptedError) as e:
                raise self._fail(e)
            finally:
                if not unlocked:
                    keys.wipe()

            logger.info(f"Vault unlocked ({len(notes)} notes)")

    def lock(self) -> None:
        """
        Discard keys and plaintext notes and return to Locked.

        Safe to call at any time and any number of times; waits for an
        in-flight transition to finish rather than interleaving with it.
        """
        with self._transition(blocking=True):
            self._discard()

    def _idle_lock(self, epoch: int) -> None:
        # An expiry that raced a lock/unlock cycle belongs to an earlier
        # unlocked period and must not lock the current one.
        with self._transition(blocking=True):
            if epoch != self._unlock_epoch or self._state is not VaultState.UNLOCKED:
                logger.debug("Ignoring stale idle expiry")
                return
            self._discard()

    def _discard(self) -> None:
        # Caller holds the transition lock
        if self.idle_timer is not None:
            self.idle_timer.stop()

        self._last_error = None
        if self._keys is not None:
            self._keys.wipe()
            self._keys = None
        self._notes = []

        if self._state is VaultState.UNLOCKED:
            self._state = VaultState.LOCKED
            logger.info("Vault locked")

    def record_activity(self) -> None:
        """Signal user activity, resetting the idle countdown."""
        if self.idle_timer is not None:
            self.idle_timer.activity()

    # ------------------------------------------------------------------
    # Note mutations
    # ------------------------------------------------------------------

    def add_note(self, title: str, content: str) -> Note:
        """
        Create a note and persist the collection.

        Returns:
            The new Note

        Raises:
            VaultLockedError: If the vault is not unlocked
        """
        with self._transition():
            self._require_unlocked()
            note = Note.create(title, content, now=self._clock())
            self._save(self._notes + [note])
            self.record_activity()
            return note

    def update_note(self, note: Note) -> Note:
        """
        Replace the title and content of an existing note.

        ``id`` and ``created_at`` are kept from the stored note and
        ``updated_at`` advances.

        Returns:
            The stored, updated Note

        Raises:
            VaultLockedError: If the vault is not unlocked
            NoteNotFoundError: If no note has ``note.id``
        """
        with self._transition():
            self._require_unlocked()
            for index, existing in enumerate(self._notes):
                if existing.id == note.id:
                    break
            else:
                raise NoteNotFoundError(note.id)

            updated = existing.revised(title=note.title, content=note.content, now=self._clock())
            notes = list(self._notes)
            notes[index] = updated
            self._save(notes)
            self.record_activity()
            return updated

    def delete_note(self, note_id: str) -> None:
        """
        Remove a note and persist the collection.

        Raises:
            VaultLockedError: If the vault is not unlocked
            NoteNotFoundError: If no note has this id
        """
        with self._transition():
            self._require_unlocked()
            remaining = [n for n in self._notes if n.id != note_id]
            if len(remaining) == len(self._notes):
                raise NoteNotFoundError(note_id)
            self._save(remaining)
            self.record_activity()
