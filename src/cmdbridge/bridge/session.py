"""Session coordinator: owns one connection, one child, and their shutdown.

Lifecycle of a session::

    pipes -> spawn -> [output pump, keepalive] in tasks
                   -> input pump inline
                   -> close stdin -> SIGINT -> wait for output (grace)
                   -> SIGKILL if needed -> reap -> release everything

Every failure along the way is logged and turns into "proceed to
cleanup". The tasks are joined before any resource is released, so
cleanup never races a pump that is still running.
"""

from __future__ import annotations

import asyncio
import logging

from cmdbridge.bridge.input import InputPump
from cmdbridge.bridge.keepalive import KeepaliveDriver
from cmdbridge.bridge.output import OutputPump
from cmdbridge.bridge.signal import CompletionSignal
from cmdbridge.config.settings import BridgeConfig
from cmdbridge.domain.models import CommandSpec, SessionResult
from cmdbridge.process.handle import ProcessError, ProcessHandle
from cmdbridge.process.pipes import PipeError, PipePair
from cmdbridge.transport.base import Transport, internal_error

logger = logging.getLogger(__name__)


class SessionCoordinator:
    """Bridges one transport to one freshly spawned child process."""

    def __init__(
        self,
        transport: Transport,
        command: CommandSpec,
        config: BridgeConfig,
    ) -> None:
        self._transport = transport
        self._command = command
        self._config = config
        self._completion = CompletionSignal()
        self._result = SessionResult(command=command.path)
        self._output: OutputPump | None = None

    @property
    def completion(self) -> CompletionSignal:
        return self._completion

    async def run(self) -> SessionResult:
        """Run the session to the end and report what happened.

        Never raises for I/O failures; only cancellation propagates.
        """
        pipes: list[PipePair] = []
        tasks: list[asyncio.Task[None]] = []
        process: ProcessHandle | None = None

        try:
            try:
                stdin_pipe = PipePair()
                pipes.append(stdin_pipe)
                output_pipe = PipePair()
                pipes.append(output_pipe)
            except PipeError as e:
                await internal_error(self._transport, "pipe:", e, self._config.write_wait)
                return self._result

            try:
                process = await ProcessHandle.spawn(
                    self._command,
                    stdin_pipe,
                    output_pipe,
                    line_limit=self._config.output_line_limit,
                )
            except ProcessError as e:
                await internal_error(self._transport, "start:", e, self._config.write_wait)
                return self._result

            self._result.started = True
            self._result.pid = process.pid

            self._output = OutputPump(self._transport, process, self._completion, self._config)
            keepalive = KeepaliveDriver(self._transport, self._completion, self._config)
            input_pump = InputPump(self._transport, process, self._config)

            output_task = asyncio.create_task(self._output.run(), name=f"output-{process.pid}")
            # However the output side ends, waiters must be released.
            output_task.add_done_callback(lambda _task: self._completion.signal())
            tasks.append(output_task)
            tasks.append(asyncio.create_task(keepalive.run(), name=f"keepalive-{process.pid}"))

            await input_pump.run()
            self._result.messages_in = input_pump.messages_received

            await self._shutdown(process)

        except asyncio.CancelledError:
            logger.info("Session for %s cancelled", self._command.display)
            if process is not None:
                self._kill(process)
            for task in tasks:
                task.cancel()
            raise

        finally:
            await self._join(tasks)
            if self._output is not None:
                self._result.lines_out = self._output.lines_sent
            if process is not None:
                process.close()
            for pipe in pipes:
                pipe.close()
            self._transport.close()

        logger.info(
            "Session for %s ended (pid=%s, exit=%s, killed=%s)",
            self._command.display,
            self._result.pid,
            self._result.returncode,
            self._result.killed,
        )
        return self._result

    async def _shutdown(self, process: ProcessHandle) -> None:
        # Some commands will exit when stdin is closed.
        await process.close_stdin()

        # Other commands need a nudge.
        self._interrupt(process)

        grace = self._config.kill_grace_period
        if not await self._completion.wait(timeout=grace):
            logger.info("Output of pid %d still open after %.1fs", process.pid, grace)
            self._kill(process)
            await self._completion.wait()

        self._result.returncode = await self._reap(process)

    async def _reap(self, process: ProcessHandle) -> int | None:
        try:
            try:
                return await asyncio.wait_for(
                    process.wait(), timeout=self._config.kill_grace_period
                )
            except asyncio.TimeoutError:
                # Output finished early (e.g. the peer went away) but the
                # child ignored both EOF and SIGINT.
                logger.info("Pid %d still running after output closed", process.pid)
                self._kill(process)
                return await process.wait()
        except ProcessError as e:
            logger.warning("wait: %s", e)
            return None

    def _interrupt(self, process: ProcessHandle) -> None:
        try:
            process.interrupt()
        except ProcessLookupError as e:
            logger.warning("inter: %s", e)
            return
        self._result.interrupted = True

    def _kill(self, process: ProcessHandle) -> None:
        if self._result.killed:
            return
        try:
            process.kill()
        except ProcessLookupError as e:
            logger.warning("kill: %s", e)
            return
        self._result.killed = True
        logger.info("Killed pid %d", process.pid)

    async def _join(self, tasks: list[asyncio.Task[None]]) -> None:
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for task, result in zip(tasks, results):
            if isinstance(result, Exception):
                logger.error("Task %s failed", task.get_name(), exc_info=result)
