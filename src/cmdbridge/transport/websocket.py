"""WebSocket transport backed by the ``websockets`` asyncio server."""

from __future__ import annotations

import logging
from typing import Callable

from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosed

from cmdbridge.transport.base import Transport, TransportError

logger = logging.getLogger(__name__)


class PongAwareConnection(ServerConnection):
    """Server connection that reports every pong frame it receives.

    The library only resolves the waiters of its own pings; a peer may
    also send unsolicited pongs as a one-way heartbeat. ``on_pong`` is
    called for both. Pass this class as ``create_connection`` to
    ``serve()``.
    """

    on_pong: Callable[[], None] | None = None

    def acknowledge_pings(self, data: bytes) -> None:
        super().acknowledge_pings(data)
        if self.on_pong is not None:
            self.on_pong()


class WebSocketTransport(Transport):
    """Adapts a ``websockets`` server connection to the Transport interface.

    The server must be started with ``ping_interval=None`` so that the
    library does not send pings of its own; keepalive is driven from
    the session instead.
    """

    def __init__(self, connection: PongAwareConnection) -> None:
        super().__init__()
        self._ws = connection
        connection.on_pong = self._pong_received

    @property
    def remote_address(self) -> object:
        return self._ws.remote_address

    async def _recv(self) -> str | bytes:
        try:
            return await self._ws.recv()
        except ConnectionClosed as e:
            raise TransportError(f"failed to read message: {e}") from e

    async def _send_text(self, data: str) -> None:
        try:
            await self._ws.send(data)
        except ConnectionClosed as e:
            raise TransportError(f"failed to write message: {e}") from e

    async def _send_ping(self) -> None:
        try:
            await self._ws.ping()
        except ConnectionClosed as e:
            raise TransportError(f"failed to write control: {e}") from e

    async def _send_close(self, code: int, reason: str) -> None:
        await self._ws.close(code, reason)

    async def _wait_closed(self) -> None:
        await self._ws.wait_closed()

    def _abort(self) -> None:
        self._ws.on_pong = None
        self._ws.transport.abort()
