"""WebSocket endpoint that bridges each connection to a new child process.

    GET /    -> static home page (a minimal browser console)
    GET /ws  -> WebSocket upgrade; one child process per connection
    other    -> 404 Not found

The library's own keepalive is switched off: pings come from each
session's keepalive driver so that pong handling and the read deadline
stay under the session's control.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from importlib import resources
from pathlib import Path
from urllib.parse import urlsplit

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.http11 import Request, Response

from cmdbridge.bridge.session import SessionCoordinator
from cmdbridge.config.settings import BridgeConfig, ServerConfig
from cmdbridge.domain.models import CommandSpec
from cmdbridge.transport.base import internal_error
from cmdbridge.transport.websocket import PongAwareConnection, WebSocketTransport

logger = logging.getLogger(__name__)


def load_home_page(path: str | None = None) -> str:
    """Read the page served at '/', the bundled one unless ``path`` is given."""
    if path is not None:
        return Path(path).read_text(encoding="utf-8")
    return (
        resources.files("cmdbridge.endpoint")
        .joinpath("static/home.html")
        .read_text(encoding="utf-8")
    )


class BridgeServer:
    """Accepts WebSocket connections and runs one session per connection.

    Args:
        command: The program every session spawns.
        server_config: Listen address, upgrade path and home page.
        bridge_config: Protocol limits shared by all sessions.
    """

    def __init__(
        self,
        command: CommandSpec,
        server_config: ServerConfig | None = None,
        bridge_config: BridgeConfig | None = None,
    ) -> None:
        self._command = command
        self._server_config = server_config or ServerConfig()
        self._bridge_config = bridge_config or BridgeConfig()
        self._home_page = load_home_page(self._server_config.home_page).replace(
            "__WS_PATH__", self._server_config.ws_path
        )
        self._active_sessions = 0

    @property
    def active_sessions(self) -> int:
        return self._active_sessions

    def process_request(self, connection: ServerConnection, request: Request) -> Response | None:
        path = urlsplit(request.path).path
        if path == self._server_config.ws_path:
            return None
        if path != "/":
            return connection.respond(HTTPStatus.NOT_FOUND, "Not found\n")
        response = connection.respond(HTTPStatus.OK, self._home_page)
        del response.headers["Content-Type"]
        response.headers["Content-Type"] = "text/html; charset=utf-8"
        return response

    async def handle(self, connection: PongAwareConnection) -> None:
        transport = WebSocketTransport(connection)
        self._active_sessions += 1
        logger.info(
            "Accepted connection from %s (%d active)",
            transport.remote_address,
            self._active_sessions,
        )
        try:
            result = await SessionCoordinator(
                transport, self._command, self._bridge_config
            ).run()
        except Exception as e:
            await internal_error(transport, "session:", e, self._bridge_config.write_wait)
            transport.close()
            return
        finally:
            self._active_sessions -= 1
        logger.debug("Session summary: %s", result.model_dump())

    async def start(self) -> Server:
        """Start listening and return the running server."""
        server = await serve(
            self.handle,
            self._server_config.host,
            self._server_config.port,
            process_request=self.process_request,
            create_connection=PongAwareConnection,
            max_size=self._bridge_config.max_message_size,
            ping_interval=None,
            ping_timeout=None,
            close_timeout=self._bridge_config.write_wait,
        )
        logger.info(
            "Bridging %s on ws://%s:%d%s",
            self._command.display,
            self._server_config.host,
            self._server_config.port,
            self._server_config.ws_path,
        )
        return server

    async def serve_forever(self) -> None:
        """Serve until cancelled."""
        server = await self.start()
        async with server:
            await server.serve_forever()
