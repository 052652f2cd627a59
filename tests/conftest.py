"""Shared test fixtures for the cmdbridge test suite.

Provides an in-memory transport that records every frame the bridge
sends, fast protocol timings, and command specs for real child
processes (``cat``, ``sh``).
"""

from __future__ import annotations

import asyncio
from typing import Callable

import pytest

from cmdbridge.config.settings import BridgeConfig
from cmdbridge.domain.models import CommandSpec
from cmdbridge.transport.base import Transport, TransportError


class FakeTransport(Transport):
    """A Transport whose peer is the test.

    Queue messages with ``feed()``; everything the bridge writes lands
    in ``sent``, ``close_frames`` and ``pings``. With ``auto_pong`` the
    peer answers every ping on the next loop iteration.
    """

    def __init__(self, auto_pong: bool = True) -> None:
        super().__init__()
        self.auto_pong = auto_pong
        self.sent: list[str] = []
        self.close_frames: list[tuple[int, str]] = []
        self.pings = 0
        self.fail_writes = False
        self.write_delay = 0.0
        self._inbound: asyncio.Queue[str | bytes | Exception] = asyncio.Queue()
        self._closed_event = asyncio.Event()

    def feed(self, message: str | bytes) -> None:
        self._inbound.put_nowait(message)

    def peer_close(self) -> None:
        self._inbound.put_nowait(TransportError("connection closed by peer"))
        self._closed_event.set()

    async def _recv(self) -> str | bytes:
        item = await self._inbound.get()
        if isinstance(item, Exception):
            # Keep failing for any later reader, like a dead socket.
            self._inbound.put_nowait(item)
            raise item
        return item

    async def _send_text(self, data: str) -> None:
        if self.write_delay:
            await asyncio.sleep(self.write_delay)
        if self.fail_writes:
            raise TransportError("failed to write message: broken pipe")
        self.sent.append(data)

    async def _send_ping(self) -> None:
        if self.fail_writes:
            raise TransportError("failed to write control: broken pipe")
        self.pings += 1
        if self.auto_pong:
            asyncio.get_running_loop().call_soon(self._pong_received)

    async def _send_close(self, code: int, reason: str) -> None:
        if self.fail_writes:
            raise TransportError("failed to write close: broken pipe")
        self.close_frames.append((code, reason))
        self._closed_event.set()

    async def _wait_closed(self) -> None:
        await self._closed_event.wait()

    def _abort(self) -> None:
        self._inbound.put_nowait(TransportError("use of closed connection"))
        self._closed_event.set()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def silent_transport() -> FakeTransport:
    """A transport whose peer never answers pings."""
    return FakeTransport(auto_pong=False)


@pytest.fixture
def fast_config() -> BridgeConfig:
    """Protocol timings shrunk so shutdown paths finish in well under a second."""
    return BridgeConfig(
        write_wait=1.0,
        pong_wait=0.5,
        ping_period=0.1,
        kill_grace_period=0.3,
        close_grace_period=0.2,
    )


@pytest.fixture
def cat_command() -> CommandSpec:
    return CommandSpec.resolve(["cat"])


@pytest.fixture
def sh_command() -> Callable[[str], CommandSpec]:
    """Factory for CommandSpecs that run a script under sh."""

    def _make(script: str) -> CommandSpec:
        return CommandSpec.resolve(["sh", "-c", script])

    return _make
