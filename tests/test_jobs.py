"""
Tests for the background job runner.
"""

from __future__ import annotations

import asyncio

import pytest

from monitoring.jobs import JobScheduler, ScheduledJob


@pytest.fixture
async def jobs():
    scheduler = JobScheduler(tick_interval=0.01)
    yield scheduler
    await scheduler.stop()


class Counter:
    def __init__(self, fail=False, delay=0.0):
        self.calls = 0
        self.fail = fail
        self.delay = delay

    async def __call__(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("job exploded")
        return self.calls


class TestRegistration:
    @pytest.mark.parametrize("interval", [0, -1])
    def test_non_positive_interval_is_rejected(self, interval):
        with pytest.raises(ValueError):
            JobScheduler().register_job("bad", interval, Counter())

    def test_enable_and_disable(self):
        scheduler = JobScheduler()
        scheduler.register_job("cleanup", 60, Counter())

        assert scheduler.disable_job("cleanup") is True
        assert scheduler.get_job("cleanup").enabled is False
        assert scheduler.enable_job("cleanup") is True
        assert scheduler.disable_job("unknown") is False


class TestExecution:
    async def test_job_runs_immediately_by_default(self, jobs):
        counter = Counter()
        jobs.register_job("cleanup", 60, counter)

        await jobs.start()
        await asyncio.sleep(0.05)

        assert counter.calls == 1
        job = jobs.get_job("cleanup")
        assert job.run_count == 1
        assert job.last_result == 1
        assert job.last_run is not None

    async def test_delayed_job_waits_one_interval(self, jobs):
        counter = Counter()
        jobs.register_job("cleanup", 60, counter, run_immediately=False)

        await jobs.start()
        await asyncio.sleep(0.05)

        assert counter.calls == 0

    async def test_disabled_job_does_not_run(self, jobs):
        counter = Counter()
        jobs.register_job("cleanup", 60, counter, enabled=False)

        await jobs.start()
        await asyncio.sleep(0.05)

        assert counter.calls == 0

    async def test_failure_is_counted_and_loop_survives(self, jobs):
        failing = Counter(fail=True)
        healthy = Counter()
        jobs.register_job("failing", 0.02, failing)
        jobs.register_job("healthy", 0.02, healthy)

        await jobs.start()
        await asyncio.sleep(0.1)

        assert jobs.get_job("failing").error_count >= 2
        assert jobs.get_job("failing").run_count == 0
        assert healthy.calls >= 2
        assert jobs.is_running

    async def test_job_never_overlaps_itself(self, jobs):
        slow = Counter(delay=0.1)
        jobs.register_job("slow", 0.02, slow)

        await jobs.start()
        await asyncio.sleep(0.08)

        assert slow.calls == 1
        assert jobs.get_job("slow").running is True

    async def test_stop_cancels_running_job(self, jobs):
        slow = Counter(delay=10)
        jobs.register_job("slow", 60, slow)

        await jobs.start()
        await asyncio.sleep(0.03)
        await jobs.stop()

        assert not jobs.is_running
        assert jobs.get_job("slow").running is False

    async def test_run_job_now(self, jobs):
        counter = Counter()
        jobs.register_job("cleanup", 60, counter, run_immediately=False)

        assert await jobs.run_job_now("cleanup") is True
        assert await jobs.run_job_now("missing") is False
        assert counter.calls == 1

        [stats] = jobs.get_job_stats()
        assert stats["name"] == "cleanup"
        assert stats["run_count"] == 1

    def test_stats_timestamps_are_naive_utc(self):
        # 2024-01-01T00:00:00Z
        job = ScheduledJob(name="cleanup", interval_seconds=60, coroutine_factory=Counter(), next_run=1704067200.0)
        job.last_run = 1704067200.0 - 60

        stats = job.to_dict()

        assert stats["next_run"] == "2024-01-01T00:00:00"
        assert stats["last_run"] == "2023-12-31T23:59:00"
