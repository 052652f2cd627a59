"""Output pump: child stdout/stderr -> peer."""

from __future__ import annotations

import logging

from cmdbridge.bridge.signal import CompletionSignal
from cmdbridge.config.settings import BridgeConfig
from cmdbridge.process.handle import ProcessError, ProcessHandle
from cmdbridge.transport.base import CLOSE_NORMAL_CLOSURE, Transport, TransportError

logger = logging.getLogger(__name__)


class OutputPump:
    """Forwards each line the child prints as one text frame.

    On end-of-stream the pump signals completion, sends a normal
    close frame and lingers until the close handshake has had a chance
    to finish. A failed write stops the pump at once. Whatever the
    reason, the transport is closed when the pump returns.
    """

    def __init__(
        self,
        transport: Transport,
        process: ProcessHandle,
        completion: CompletionSignal,
        config: BridgeConfig,
    ) -> None:
        self._transport = transport
        self._process = process
        self._completion = completion
        self._config = config
        self.lines_sent = 0

    async def run(self) -> None:
        try:
            await self._pump()
        except TransportError as e:
            logger.info("Output pump stopped: %s", e)
        except ProcessError as e:
            logger.warning("Output pump failed to scan: %s", e)
            self._completion.signal()
            await self._send_close()
        else:
            self._completion.signal()
            await self._send_close()
            await self._transport.linger(self._config.close_grace_period)
        finally:
            self._transport.close()

    async def _pump(self) -> None:
        while True:
            line = await self._process.read_line()
            if not line:
                logger.debug("Output reached end of stream after %d lines", self.lines_sent)
                return
            text = _strip_newline(line).decode("utf-8", errors="replace")
            self._transport.set_write_deadline(self._config.write_wait)
            await self._transport.write_text(text)
            self.lines_sent += 1

    async def _send_close(self) -> None:
        try:
            self._transport.set_write_deadline(self._config.write_wait)
            await self._transport.write_close(CLOSE_NORMAL_CLOSURE, "")
        except TransportError as e:
            logger.info("Could not send close frame: %s", e)


def _strip_newline(line: bytes) -> bytes:
    if line.endswith(b"\n"):
        line = line[:-1]
        if line.endswith(b"\r"):
            line = line[:-1]
    return line
