"""Tests for WebSocketTransport's wiring to the library connection."""

from __future__ import annotations

from unittest.mock import MagicMock

from cmdbridge.transport.websocket import PongAwareConnection, WebSocketTransport


def _connection() -> MagicMock:
    connection = MagicMock(spec=PongAwareConnection)
    connection.transport = MagicMock()
    return connection


class TestWebSocketTransport:
    def test_every_pong_reaches_the_pong_handler(self) -> None:
        connection = _connection()
        transport = WebSocketTransport(connection)
        handler = MagicMock()
        transport.set_pong_handler(handler)

        connection.on_pong()
        connection.on_pong()

        assert handler.call_count == 2

    def test_pong_refreshes_read_deadline(self) -> None:
        connection = _connection()
        transport = WebSocketTransport(connection)
        transport.set_read_deadline(0.0)
        expired = transport._read_deadline
        transport.set_pong_handler(lambda: transport.set_read_deadline(60.0))

        connection.on_pong()

        assert transport._read_deadline > expired

    def test_close_unhooks_pongs_and_aborts(self) -> None:
        connection = _connection()
        transport = WebSocketTransport(connection)

        transport.close()

        assert connection.on_pong is None
        connection.transport.abort.assert_called_once_with()
