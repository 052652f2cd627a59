"""Input pump: peer -> child stdin."""

from __future__ import annotations

import logging

from cmdbridge.config.settings import BridgeConfig
from cmdbridge.process.handle import ProcessError, ProcessHandle
from cmdbridge.transport.base import Transport, TransportError

logger = logging.getLogger(__name__)


class InputPump:
    """Writes every message from the peer to stdin as one line.

    The read deadline starts at ``pong_wait`` and only moves when a
    pong arrives, so a peer that stops answering pings is dropped even
    if it keeps sending messages. The pump returns on the first read or
    write failure and closes the transport on the way out.
    """

    def __init__(
        self,
        transport: Transport,
        process: ProcessHandle,
        config: BridgeConfig,
    ) -> None:
        self._transport = transport
        self._process = process
        self._config = config
        self.messages_received = 0

    async def run(self) -> None:
        transport = self._transport
        try:
            transport.set_read_limit(self._config.max_message_size)
            transport.set_read_deadline(self._config.pong_wait)
            transport.set_pong_handler(self._on_pong)

            while True:
                message = await transport.read_message()
                data = message.encode() if isinstance(message, str) else message
                await self._process.write_stdin(data + b"\n")
                self.messages_received += 1
                logger.debug("Forwarded %d bytes to stdin", len(data) + 1)
        except (TransportError, ProcessError) as e:
            logger.info("Input pump stopped: %s", e)
        finally:
            transport.set_pong_handler(None)
            transport.close()

    def _on_pong(self) -> None:
        self._transport.set_read_deadline(self._config.pong_wait)
