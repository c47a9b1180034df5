"""Request status machine and lock-protected transitions."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

LOGGER = logging.getLogger(__name__)


class RequestStatus(str, Enum):
    """Lifecycle of the single outstanding assistant request."""

    IDLE = "IDLE"
    PENDING = "PENDING"


class StateManager:
    """Hold the request status and act as a mutex of cardinality one.

    ``try_acquire`` is an atomic IDLE -> PENDING compare-and-set, so two
    submit coroutines racing on the same loop cannot both win.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._state = RequestStatus.IDLE

    @property
    def current(self) -> RequestStatus:
        """Return the last committed status without waiting on the lock."""
        return self._state

    async def get_state(self) -> RequestStatus:
        async with self._lock:
            return self._state

    async def transition_if(
        self,
        expected_state: RequestStatus,
        new_state: RequestStatus,
    ) -> bool:
        """Transition only when current state matches expected state."""
        async with self._lock:
            if self._state != expected_state:
                return False
            self._state = new_state
        LOGGER.info(
            "state.transition",
            extra={
                "event": "state.transition",
                "from_state": expected_state.value,
                "to_state": new_state.value,
            },
        )
        return True

    async def try_acquire(self) -> bool:
        """Claim the single in-flight slot; False when a request is outstanding."""
        return await self.transition_if(RequestStatus.IDLE, RequestStatus.PENDING)

    async def release(self) -> None:
        """Return to IDLE after the outstanding request resolved."""
        released = await self.transition_if(RequestStatus.PENDING, RequestStatus.IDLE)
        if not released:
            LOGGER.warning(
                "state.release.unbalanced",
                extra={"event": "state.release.unbalanced", "state": self._state.value},
            )
