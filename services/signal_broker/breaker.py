# services/signal_broker/breaker.py
"""Availability breaker for the shared store."""

import asyncio
import time
from typing import Any, Dict, Optional

from .models import BREAK_DURATION, BreakerState


class AvailabilityBreaker:
    """Tracks whether the shared store is currently considered reachable.

    - Starts UNAVAILABLE; the store adapter marks it AVAILABLE after a
      successful connect, which also arms recovery.
    - Any caught store failure calls trip(): the flag flips immediately and,
      while armed, a one-shot timer restores it after break_duration.
    - Recovery is optimistic: nothing checks the store before flipping back.
    - Trips during a pending cooldown do not extend it.
    - close() disarms: the flag stays UNAVAILABLE until the next connect.

    One instance is shared by every component of a node. The flag is read
    and written without locks; a stale "available" read costs one wasted
    call at most.
    """

    def __init__(self, break_duration: float = BREAK_DURATION, logger: Any = None):
        self.break_duration = break_duration
        self.logger = logger

        self._state = BreakerState.UNAVAILABLE
        self._recovery: Optional[asyncio.TimerHandle] = None
        # set by a successful connect, cleared on close
        self._armed = False

        self.trip_count = 0
        self.last_tripped_at: Optional[float] = None
        self.last_reason: Optional[str] = None

    @property
    def state(self) -> BreakerState:
        return self._state

    @property
    def is_available(self) -> bool:
        return self._state == BreakerState.AVAILABLE

    @property
    def recovery_pending(self) -> bool:
        return self._recovery is not None

    @property
    def armed(self) -> bool:
        return self._armed

    def mark_available(self) -> None:
        """Set AVAILABLE now and arm recovery, dropping any pending timer."""
        self._cancel_recovery()
        self._armed = True
        self._state = BreakerState.AVAILABLE

    def trip(self, reason: Optional[str] = None) -> None:
        """Record a store failure. Must be called from the event loop."""
        self.trip_count += 1
        self.last_reason = reason
        self._state = BreakerState.UNAVAILABLE

        if self._recovery is not None or not self._armed:
            return

        self.last_tripped_at = time.monotonic()
        loop = asyncio.get_running_loop()
        self._recovery = loop.call_later(self.break_duration, self._recover)

        if self.logger:
            self.logger.warn(
                f"store marked unavailable for {self.break_duration}s"
                + (f" ({reason})" if reason else ""),
                emoji="🔌",
            )

    def close(self) -> None:
        """Disarm and go UNAVAILABLE; a pending recovery is cancelled."""
        self._cancel_recovery()
        self._armed = False
        self._state = BreakerState.UNAVAILABLE

    def _recover(self) -> None:
        self._recovery = None
        if not self._armed:
            return
        self._state = BreakerState.AVAILABLE
        if self.logger:
            self.logger.ok("store marked available again", emoji="🔁")

    def _cancel_recovery(self) -> None:
        if self._recovery is not None:
            self._recovery.cancel()
            self._recovery = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self._state.value,
            "armed": self._armed,
            "recovery_pending": self.recovery_pending,
            "trip_count": self.trip_count,
            "last_reason": self.last_reason,
        }
