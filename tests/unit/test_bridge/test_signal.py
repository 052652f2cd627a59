"""Tests for the one-shot CompletionSignal."""

from __future__ import annotations

import asyncio

import pytest

from cmdbridge.bridge.signal import CompletionSignal


class TestCompletionSignal:
    def test_starts_unset(self) -> None:
        assert not CompletionSignal().is_set

    def test_signal_fires_once(self) -> None:
        completion = CompletionSignal()
        assert completion.signal() is True
        assert completion.signal() is False
        assert completion.is_set

    @pytest.mark.asyncio
    async def test_wait_after_signal_returns_immediately(self) -> None:
        completion = CompletionSignal()
        completion.signal()
        assert await completion.wait(timeout=0.01) is True
        assert await completion.wait() is True

    @pytest.mark.asyncio
    async def test_wait_times_out(self) -> None:
        assert await CompletionSignal().wait(timeout=0.02) is False

    @pytest.mark.asyncio
    async def test_releases_every_waiter(self) -> None:
        completion = CompletionSignal()
        waiters = [asyncio.create_task(completion.wait()) for _ in range(3)]
        timed = asyncio.create_task(completion.wait(timeout=5.0))
        await asyncio.sleep(0)
        assert not any(w.done() for w in waiters)

        completion.signal()
        results = await asyncio.wait_for(asyncio.gather(*waiters, timed), timeout=1.0)
        assert results == [True, True, True, True]
