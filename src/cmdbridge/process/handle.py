"""Child process wired to a session through two pipes.

The child gets the read end of the stdin pipe as fd 0 and the write
end of the output pipe as both fd 1 and fd 2, so stdout and stderr
interleave exactly as the child wrote them. The parent keeps the other
two ends as asyncio streams.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal

from cmdbridge.config.settings import OUTPUT_LINE_LIMIT
from cmdbridge.domain.models import CommandSpec
from cmdbridge.process.pipes import PipePair

logger = logging.getLogger(__name__)


class ProcessError(Exception):
    """Raised when the child cannot be started or its pipes fail."""


class ProcessHandle:
    """A spawned child process and the parent's ends of its pipes.

    Usage::

        stdin_pipe, output_pipe = PipePair(), PipePair()
        proc = await ProcessHandle.spawn(command, stdin_pipe, output_pipe)
        await proc.write_stdin(b"hello\\n")
        line = await proc.read_line()
        await proc.close_stdin()
        await proc.wait()
        proc.close()
    """

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        stdin: asyncio.StreamWriter,
        output: asyncio.StreamReader,
        output_transport: asyncio.ReadTransport,
        line_limit: int,
    ) -> None:
        self._process = process
        self._stdin = stdin
        self._output = output
        self._output_transport = output_transport
        self._line_limit = line_limit

    @classmethod
    async def spawn(
        cls,
        command: CommandSpec,
        stdin_pipe: PipePair,
        output_pipe: PipePair,
        line_limit: int = OUTPUT_LINE_LIMIT,
    ) -> ProcessHandle:
        """Start ``command`` with its standard streams bound to the pipes.

        The child's ends (stdin read, output write) are closed in the
        parent whether or not the spawn succeeds; otherwise the output
        pipe would never report end-of-stream after the child exits.

        Raises:
            ProcessError: If the process or its streams cannot be set up.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                *command.argv,
                executable=command.path,
                stdin=stdin_pipe.read_fd,
                stdout=output_pipe.write_fd,
                stderr=output_pipe.write_fd,
            )
        except OSError as e:
            raise ProcessError(f"Cannot start {command.path}: {e}") from e
        finally:
            stdin_pipe.close_read()
            output_pipe.close_write()

        loop = asyncio.get_running_loop()
        output_transport: asyncio.ReadTransport | None = None
        try:
            reader = asyncio.StreamReader(limit=line_limit)
            output_transport, _ = await loop.connect_read_pipe(
                lambda: asyncio.StreamReaderProtocol(reader),
                os.fdopen(output_pipe.detach_read(), "rb", buffering=0),
            )
            stdin_transport, stdin_protocol = await loop.connect_write_pipe(
                asyncio.streams.FlowControlMixin,
                os.fdopen(stdin_pipe.detach_write(), "wb", buffering=0),
            )
        except OSError as e:
            if output_transport is not None:
                output_transport.close()
            process.kill()
            await process.wait()
            raise ProcessError(f"Cannot attach pipes to {command.path}: {e}") from e

        writer = asyncio.StreamWriter(stdin_transport, stdin_protocol, None, loop)
        logger.info("Started %s (pid=%d)", command.display, process.pid)
        return cls(process, writer, reader, output_transport, line_limit)

    @property
    def pid(self) -> int:
        return self._process.pid

    async def read_line(self) -> bytes:
        """Read one line of output, including its newline.

        Returns the trailing partial line at end-of-stream, and ``b""``
        once the stream is exhausted.

        Raises:
            ProcessError: If a line is longer than the line limit.
        """
        try:
            return await self._output.readline()
        except ValueError as e:
            raise ProcessError(f"output line exceeds {self._line_limit} bytes") from e
        except OSError as e:
            raise ProcessError(f"Failed to read output: {e}") from e

    async def write_stdin(self, data: bytes) -> None:
        """Write ``data`` to the child's stdin and wait for it to drain."""
        if self._stdin.is_closing():
            raise ProcessError("stdin is closed")
        try:
            self._stdin.write(data)
            await self._stdin.drain()
        except OSError as e:
            raise ProcessError(f"Failed to write to stdin: {e}") from e

    async def close_stdin(self) -> None:
        """Close the parent's end of stdin so the child reads EOF."""
        if self._stdin.is_closing():
            return
        self._stdin.close()
        # Let the transport flush what is buffered and release the fd.
        await asyncio.sleep(0)
        logger.debug("Closed stdin of pid %d", self.pid)

    def interrupt(self) -> None:
        """Send SIGINT. Raises ProcessLookupError if the child is gone."""
        self._process.send_signal(signal.SIGINT)

    def kill(self) -> None:
        """Send SIGKILL. Raises ProcessLookupError if the child is gone."""
        self._process.kill()

    async def wait(self) -> int:
        """Wait for the child to exit and return its exit status."""
        try:
            return await self._process.wait()
        except (ChildProcessError, OSError) as e:
            raise ProcessError(f"Failed to wait for pid {self.pid}: {e}") from e

    def close(self) -> None:
        """Release the parent's pipe ends. Safe to call more than once."""
        if not self._stdin.is_closing():
            self._stdin.close()
        self._output_transport.close()
