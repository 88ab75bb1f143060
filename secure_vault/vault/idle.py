"""Inactivity timer that locks the vault after a span of no user input.

Only the policy lives here. Whatever front end detects input calls
``activity()``; the timer calls back once the countdown runs out.
"""

import threading
import time
from typing import Callable, Optional

from ..utils.logging import get_logger

logger = get_logger(__name__)

TimerFactory = Callable[..., threading.Timer]


class IdleTimer:
    """
    Resettable one-shot countdown.

    ``start`` arms the countdown, ``activity`` resets it to full, and when
    it expires ``on_idle`` runs exactly once and the timer goes inactive
    until started again. Each arming bumps a generation counter, so a
    callback from a superseded countdown does nothing.

    Usage:
        timer = IdleTimer()
        timer.start(session.lock, 900)
        ...
        timer.activity()  # on every key press
    """

    def __init__(
        self,
        timer_factory: TimerFactory = threading.Timer,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the idle timer.

        Args:
            timer_factory: Builds the underlying countdown; called like
                ``threading.Timer(interval, function, args=...)``
            clock: Monotonic clock used for ``time_remaining``
        """
        self._timer_factory = timer_factory
        self._clock = clock
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._deadline: Optional[float] = None
        self._on_idle: Optional[Callable[[], None]] = None
        self._timeout = 0.0
        self._enabled = True

    def _cancel(self) -> None:
        # Caller holds self._lock
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._deadline = None

    def _arm(self) -> None:
        # Caller holds self._lock
        self._cancel()
        generation = self._generation
        timer = self._timer_factory(self._timeout, self._fire, args=(generation,))
        timer.daemon = True
        self._timer = timer
        self._deadline = self._clock() + self._timeout
        timer.start()

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._timer is None:
                return
            self._timer = None
            self._deadline = None
            callback = self._on_idle

        logger.info(f"Idle for {self._timeout:g}s, firing idle callback")
        if callback is not None:
            callback()

    def start(self, on_idle: Callable[[], None], timeout_seconds: float) -> None:
        """
        Begin (or restart) the countdown.

        Args:
            on_idle: Called once when the countdown expires
            timeout_seconds: Inactivity span, must be positive

        Raises:
            ValueError: If timeout_seconds is not positive
        """
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

        with self._lock:
            self._on_idle = on_idle
            self._timeout = float(timeout_seconds)
            if self._enabled:
                self._arm()
            else:
                self._cancel()

    def activity(self) -> None:
        """Reset a running countdown to full. No-op when inactive."""
        with self._lock:
            if self._timer is not None:
                self._arm()

    def stop(self) -> None:
        """Cancel any pending countdown and forget the callback."""
        with self._lock:
            self._cancel()
            self._on_idle = None

    @property
    def enabled(self) -> bool:
        """Live toggle: disabling cancels, enabling restarts from full."""
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        with self._lock:
            self._enabled = bool(value)
            if not self._enabled:
                self._cancel()
            elif self._on_idle is not None:
                self._arm()

    @property
    def active(self) -> bool:
        """True while a countdown is pending."""
        with self._lock:
            return self._timer is not None

    @property
    def timeout_seconds(self) -> float:
        """Span of the current (or last) countdown."""
        return self._timeout

    def time_remaining(self) -> Optional[float]:
        """Seconds left before the callback fires, or None when inactive."""
        with self._lock:
            if self._deadline is None:
                return None
            return max(self._deadline - self._clock(), 0.0)
