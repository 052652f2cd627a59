"""Abstract base class for the message transport a session runs over.

The base class owns the bookkeeping every transport needs: read and
write deadlines, the inbound size limit, and the pong hook that keeps
the read deadline alive. Concrete transports only move raw frames,
which keeps the pumps independent of the WebSocket library and lets
tests run them over an in-memory transport.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Coroutine

logger = logging.getLogger(__name__)

CLOSE_NORMAL_CLOSURE = 1000

INTERNAL_ERROR_MESSAGE = "Internal server error."


class TransportError(Exception):
    """Raised when the transport cannot read or write."""


class DeadlineExceeded(TransportError):
    """Raised when a read or write does not finish before its deadline."""


class MessageTooBig(TransportError):
    """Raised when the peer sends a message above the read limit."""


class Transport(ABC):
    """One full-duplex message connection to a remote peer.

    Deadlines are given in seconds from now and apply to every later
    call until changed, mirroring socket deadlines rather than
    per-call timeouts. ``None`` means no deadline.

    Example usage::

        transport.set_read_limit(8192)
        transport.set_read_deadline(60.0)
        transport.set_pong_handler(lambda: transport.set_read_deadline(60.0))
        message = await transport.read_message()
    """

    def __init__(self) -> None:
        self._read_limit: int | None = None
        self._read_deadline: float | None = None
        self._write_deadline: float | None = None
        self._pong_handler: Callable[[], None] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def set_read_limit(self, limit: int | None) -> None:
        self._read_limit = limit

    def set_read_deadline(self, timeout: float | None) -> None:
        self._check_open()
        self._read_deadline = None if timeout is None else time.monotonic() + timeout

    def set_write_deadline(self, timeout: float | None) -> None:
        self._check_open()
        self._write_deadline = None if timeout is None else time.monotonic() + timeout

    def set_pong_handler(self, handler: Callable[[], None] | None) -> None:
        self._pong_handler = handler

    async def read_message(self) -> str | bytes:
        """Read the next message from the peer.

        Returns ``str`` for text frames and ``bytes`` for binary frames.

        Raises:
            DeadlineExceeded: If the read deadline passes first.
            MessageTooBig: If the message exceeds the read limit.
            TransportError: If the connection is closed or broken.
        """
        while True:
            self._check_open()
            remaining = self._remaining(self._read_deadline)
            if remaining is not None and remaining <= 0:
                raise DeadlineExceeded("read deadline exceeded")
            try:
                message = await asyncio.wait_for(self._recv(), timeout=remaining)
            except asyncio.TimeoutError:
                # A pong may have pushed the deadline out while we waited.
                continue
            break

        if self._read_limit is not None:
            size = len(message.encode()) if isinstance(message, str) else len(message)
            if size > self._read_limit:
                raise MessageTooBig(
                    f"message of {size} bytes exceeds read limit of {self._read_limit}"
                )
        return message

    async def write_text(self, data: str) -> None:
        """Send one text frame, bounded by the write deadline."""
        await self._bounded_write(self._send_text(data), self._write_deadline)

    async def write_close(self, code: int = CLOSE_NORMAL_CLOSURE, reason: str = "") -> None:
        """Send a close frame, bounded by the write deadline."""
        await self._bounded_write(self._send_close(code, reason), self._write_deadline)

    async def write_ping(self, timeout: float) -> None:
        """Send a ping control frame with its own deadline."""
        await self._bounded_write(self._send_ping(), time.monotonic() + timeout)

    async def linger(self, timeout: float) -> None:
        """Wait until the connection has fully closed, at most ``timeout`` seconds."""
        try:
            await asyncio.wait_for(self._wait_closed(), timeout=timeout)
        except asyncio.TimeoutError:
            pass

    def close(self) -> None:
        """Drop the connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._abort()
        logger.debug("Transport closed")

    def _pong_received(self) -> None:
        """Called by subclasses whenever a pong arrives."""
        if self._pong_handler is None:
            return
        try:
            self._pong_handler()
        except TransportError as e:
            logger.debug("Pong handler failed: %s", e)

    async def _bounded_write(
        self, write: Coroutine[Any, Any, None], deadline: float | None
    ) -> None:
        try:
            self._check_open()
            remaining = self._remaining(deadline)
            if remaining is not None and remaining <= 0:
                raise DeadlineExceeded("write deadline exceeded")
            await asyncio.wait_for(write, timeout=remaining)
        except asyncio.TimeoutError as e:
            raise DeadlineExceeded("write deadline exceeded") from e
        finally:
            # Never leave the coroutine un-awaited when we bail out early.
            write.close()

    def _check_open(self) -> None:
        if self._closed:
            raise TransportError("use of closed connection")

    @staticmethod
    def _remaining(deadline: float | None) -> float | None:
        if deadline is None:
            return None
        return deadline - time.monotonic()

    @abstractmethod
    async def _recv(self) -> str | bytes:
        """Receive one message. Must be safe to cancel."""
        ...

    @abstractmethod
    async def _send_text(self, data: str) -> None:
        ...

    @abstractmethod
    async def _send_ping(self) -> None:
        """Send a ping and arrange for ``_pong_received`` on the answer."""
        ...

    @abstractmethod
    async def _send_close(self, code: int, reason: str) -> None:
        ...

    @abstractmethod
    async def _wait_closed(self) -> None:
        ...

    @abstractmethod
    def _abort(self) -> None:
        """Tear the connection down immediately; pending reads must fail."""
        ...


async def internal_error(
    transport: Transport, msg: str, err: BaseException, timeout: float | None = None
) -> None:
    """Log a setup failure and tell the peer, best effort."""
    logger.error("%s %s", msg, err)
    try:
        transport.set_write_deadline(timeout)
        await transport.write_text(INTERNAL_ERROR_MESSAGE)
    except TransportError as e:
        logger.debug("Could not report internal error to peer: %s", e)
