"""Tests for PollLoop scheduling and fetch-failure policies."""

from __future__ import annotations

import asyncio

import pytest

from restartwatch.errors import FetchError
from restartwatch.ledger.detector import DeltaDetector
from restartwatch.models.config import FetchFailurePolicy
from restartwatch.notifications.manager import NotificationDispatcher
from restartwatch.poller import PollLoop

from .conftest import C1, C2, FailingNotifier, RecordingNotifier, ScriptedProvider, fetch_failure, snap


class TestFetchFailurePolicy:
    async def test_skip_policy_logs_and_continues(self, recorder: RecordingNotifier) -> None:
        provider = ScriptedProvider([[snap(C1, 0)], fetch_failure(), [snap(C1, 1)]])
        loop = PollLoop(provider, DeltaDetector(), NotificationDispatcher([recorder]))

        await loop.run_once()
        skipped = await loop.run_once()
        assert isinstance(skipped.fetch_error, FetchError)
        assert skipped.events == []
        assert loop.last_error is not None

        resumed = await loop.run_once()
        assert len(resumed.events) == 1
        assert loop.last_error is None
        assert loop.cycles == 3

    async def test_fatal_policy_raises(self, recorder: RecordingNotifier) -> None:
        provider = ScriptedProvider([fetch_failure()])
        loop = PollLoop(
            provider,
            DeltaDetector(),
            NotificationDispatcher([recorder]),
            fetch_failure_policy=FetchFailurePolicy.FATAL,
        )
        with pytest.raises(FetchError):
            await loop.run_once()

    async def test_fatal_policy_ends_run(self, recorder: RecordingNotifier) -> None:
        provider = ScriptedProvider([[snap(C1, 0)], fetch_failure()])
        loop = PollLoop(
            provider,
            DeltaDetector(),
            NotificationDispatcher([recorder]),
            interval_seconds=0.01,
            fetch_failure_policy="fatal",  # type: ignore[arg-type]
        )
        with pytest.raises(FetchError):
            await asyncio.wait_for(loop.run(), timeout=2.0)
        assert provider.fetches == 2


class TestRun:
    async def test_run_repeats_until_stopped(self, poll_loop: PollLoop, provider: ScriptedProvider) -> None:
        task = asyncio.create_task(poll_loop.run())
        for _ in range(100):
            if provider.fetches >= 3:
                break
            await asyncio.sleep(0.01)
        poll_loop.stop()
        await asyncio.wait_for(task, timeout=2.0)
        assert provider.fetches >= 3

    async def test_stop_interrupts_interval_wait(self, provider: ScriptedProvider, recorder: RecordingNotifier) -> None:
        loop = PollLoop(provider, DeltaDetector(), NotificationDispatcher([recorder]), interval_seconds=3600)
        task = asyncio.create_task(loop.run())
        await asyncio.sleep(0.05)
        loop.stop()
        await asyncio.wait_for(task, timeout=2.0)
        assert provider.fetches == 1

    async def test_failing_notifier_does_not_crash_run(self) -> None:
        provider = ScriptedProvider([[snap(C1, 0)], [snap(C1, 1, "OOMKilled")]])
        failing = FailingNotifier()
        loop = PollLoop(provider, DeltaDetector(), NotificationDispatcher([failing]), interval_seconds=0.01)
        task = asyncio.create_task(loop.run())
        for _ in range(100):
            if provider.fetches >= 3:
                break
            await asyncio.sleep(0.01)
        loop.stop()
        await asyncio.wait_for(task, timeout=2.0)
        assert failing.attempts == 1


class TestPrune:
    async def test_prune_missing_forgets_vanished_containers(self, recorder: RecordingNotifier) -> None:
        provider = ScriptedProvider([[snap(C1, 0), snap(C2, 0)], [snap(C1, 0)]])
        loop = PollLoop(provider, DeltaDetector(), NotificationDispatcher([recorder]), prune_missing=True)
        await loop.run_once()
        await loop.run_once()
        assert loop.detector.ledger.as_dict() == {C1: 0}

    async def test_default_keeps_vanished_containers(self, poll_loop: PollLoop, provider: ScriptedProvider) -> None:
        provider.add([snap(C1, 0), snap(C2, 0)])
        provider.add([snap(C1, 0)])
        await poll_loop.run_once()
        await poll_loop.run_once()
        assert len(poll_loop.detector.ledger) == 2
