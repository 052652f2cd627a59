"""Keepalive driver: periodic pings until the output side completes."""

from __future__ import annotations

import logging

from cmdbridge.bridge.signal import CompletionSignal
from cmdbridge.config.settings import BridgeConfig
from cmdbridge.transport.base import Transport, TransportError

logger = logging.getLogger(__name__)


class KeepaliveDriver:
    """Pings the peer every ``keepalive_period`` seconds.

    The pongs that come back refresh the read deadline installed by
    the input pump. A ping that cannot be written ends the driver but
    leaves the transport alone; the pumps notice the broken connection
    on their own.
    """

    def __init__(
        self,
        transport: Transport,
        completion: CompletionSignal,
        config: BridgeConfig,
    ) -> None:
        self._transport = transport
        self._completion = completion
        self._period = config.keepalive_period
        self._write_wait = config.write_wait
        self.pings_sent = 0

    async def run(self) -> None:
        while not await self._completion.wait(timeout=self._period):
            try:
                await self._transport.write_ping(self._write_wait)
            except TransportError as e:
                logger.info("Keepalive stopped: %s", e)
                return
            self.pings_sent += 1
            logger.debug("Ping %d sent", self.pings_sent)
