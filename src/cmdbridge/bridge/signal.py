"""One-shot completion event shared by the activities of a session."""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class CompletionSignal:
    """Set once when the child's output has been drained.

    Any number of coroutines may wait on it, before or after it fires.
    Signalling again is a no-op, so every exit path of the output side
    may call ``signal()`` without coordinating with the others.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def is_set(self) -> bool:
        return self._event.is_set()

    def signal(self) -> bool:
        """Fire the signal. Returns True only for the call that fired it."""
        if self._event.is_set():
            return False
        self._event.set()
        logger.debug("Output completion signalled")
        return True

    async def wait(self, timeout: float | None = None) -> bool:
        """Wait for the signal; False if ``timeout`` elapsed first."""
        if timeout is None:
            await self._event.wait()
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return self._event.is_set()
        return True
