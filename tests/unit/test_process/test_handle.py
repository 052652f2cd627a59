"""Tests for ProcessHandle against real child processes."""

from __future__ import annotations

import asyncio

import pytest

from cmdbridge.domain.models import CommandSpec
from cmdbridge.process.handle import ProcessError, ProcessHandle
from cmdbridge.process.pipes import PipeError, PipePair


async def _spawn(command: CommandSpec, line_limit: int = 64 * 1024) -> ProcessHandle:
    return await ProcessHandle.spawn(command, PipePair(), PipePair(), line_limit=line_limit)


class TestSpawn:
    @pytest.mark.asyncio
    async def test_child_ends_closed_in_parent(self, cat_command) -> None:
        stdin_pipe, output_pipe = PipePair(), PipePair()
        proc = await ProcessHandle.spawn(cat_command, stdin_pipe, output_pipe)
        try:
            with pytest.raises(PipeError):
                _ = stdin_pipe.read_fd
            with pytest.raises(PipeError):
                _ = output_pipe.write_fd
            # The parent's ends now belong to the asyncio streams.
            with pytest.raises(PipeError):
                _ = stdin_pipe.write_fd
            with pytest.raises(PipeError):
                _ = output_pipe.read_fd
        finally:
            proc.kill()
            await proc.wait()
            proc.close()

    @pytest.mark.asyncio
    async def test_missing_executable(self) -> None:
        stdin_pipe, output_pipe = PipePair(), PipePair()
        command = CommandSpec(path="/nonexistent/cmdbridge-test", argv=("nope",))
        with pytest.raises(ProcessError, match="Cannot start"):
            await ProcessHandle.spawn(command, stdin_pipe, output_pipe)
        with pytest.raises(PipeError):
            _ = stdin_pipe.read_fd
        with pytest.raises(PipeError):
            _ = output_pipe.write_fd
        stdin_pipe.close()
        output_pipe.close()

    @pytest.mark.asyncio
    async def test_argv_zero_is_passed_through(self, sh_command) -> None:
        proc = await _spawn(sh_command('echo "$0"'))
        assert await proc.read_line() == b"sh\n"
        assert await proc.wait() == 0
        proc.close()


class TestStreams:
    @pytest.mark.asyncio
    async def test_stdin_round_trip_through_cat(self, cat_command) -> None:
        proc = await _spawn(cat_command)
        await proc.write_stdin(b"hello\n")
        assert await asyncio.wait_for(proc.read_line(), timeout=5.0) == b"hello\n"

        await proc.close_stdin()
        assert await asyncio.wait_for(proc.read_line(), timeout=5.0) == b""
        assert await asyncio.wait_for(proc.wait(), timeout=5.0) == 0
        proc.close()

    @pytest.mark.asyncio
    async def test_stdout_and_stderr_share_one_stream(self, sh_command) -> None:
        proc = await _spawn(sh_command("echo out1; echo err1 >&2; echo out2; echo err2 >&2"))
        lines = []
        while line := await asyncio.wait_for(proc.read_line(), timeout=5.0):
            lines.append(line)
        assert lines == [b"out1\n", b"err1\n", b"out2\n", b"err2\n"]
        await proc.wait()
        proc.close()

    @pytest.mark.asyncio
    async def test_trailing_data_without_newline(self, sh_command) -> None:
        proc = await _spawn(sh_command("printf 'a\\nb'"))
        assert await proc.read_line() == b"a\n"
        assert await proc.read_line() == b"b"
        assert await proc.read_line() == b""
        await proc.wait()
        proc.close()

    @pytest.mark.asyncio
    async def test_line_over_limit_raises(self, sh_command) -> None:
        proc = await _spawn(sh_command("printf '%0100d\\n' 0"), line_limit=16)
        with pytest.raises(ProcessError, match="exceeds 16 bytes"):
            await asyncio.wait_for(proc.read_line(), timeout=5.0)
        await proc.wait()
        proc.close()

    @pytest.mark.asyncio
    async def test_write_after_child_exit_raises(self, sh_command) -> None:
        proc = await _spawn(sh_command("exit 0"))
        await proc.wait()
        with pytest.raises(ProcessError):
            for _ in range(3):
                await proc.write_stdin(b"anyone there?\n")
        proc.close()

    @pytest.mark.asyncio
    async def test_close_stdin_is_idempotent(self, cat_command) -> None:
        proc = await _spawn(cat_command)
        await proc.close_stdin()
        await proc.close_stdin()
        with pytest.raises(ProcessError, match="stdin is closed"):
            await proc.write_stdin(b"late\n")
        await asyncio.wait_for(proc.wait(), timeout=5.0)
        proc.close()
        proc.close()


class TestSignals:
    @pytest.mark.asyncio
    async def test_interrupt(self, sh_command) -> None:
        proc = await _spawn(sh_command("echo ready; exec sleep 30"))
        assert await proc.read_line() == b"ready\n"
        proc.interrupt()
        assert await asyncio.wait_for(proc.wait(), timeout=5.0) == -2
        proc.close()

    @pytest.mark.asyncio
    async def test_kill(self, sh_command) -> None:
        proc = await _spawn(sh_command("trap '' INT; echo ready; exec sleep 30"))
        assert await proc.read_line() == b"ready\n"
        proc.kill()
        assert await asyncio.wait_for(proc.wait(), timeout=5.0) == -9
        assert await proc.read_line() == b""
        proc.close()
