"""
============================================================================
DEVICE MONITOR - BACKGROUND JOBS
============================================================================
Runner for the engine's low-frequency housekeeping work, today the
monitoring log retention sweep.

A single loop task polls the registered jobs every ``tick_interval``
seconds. A job whose ``next_run`` has passed is started in its own task
and its next run is booked one interval later. While a run is still in
flight, further due runs of the same job are dropped.

Version: 1.0.0
License: MIT
============================================================================
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Set

from utils.logger import get_logger


logger = get_logger("JobScheduler")


@dataclass
class ScheduledJob:
    """
    Bookkeeping for one periodic job.

    ``coroutine_factory`` is called with no arguments on every run; its
    return value is kept in ``last_result``. Times are epoch seconds.
    """
    name: str
    interval_seconds: float
    coroutine_factory: Callable[[], Awaitable[Any]]
    enabled: bool = True
    next_run: float = field(default_factory=time.time)
    last_run: Optional[float] = None
    last_result: Any = None
    run_count: int = 0
    error_count: int = 0
    running: bool = False

    def is_due(self, now: float) -> bool:
        return self.enabled and now >= self.next_run

    def to_dict(self) -> Dict[str, Any]:
        def _iso(ts: Optional[float]) -> Optional[str]:
            if not ts:
                return None
            return datetime.fromtimestamp(ts, timezone.utc).replace(tzinfo=None).isoformat()

        return {
            "name": self.name,
            "interval_seconds": self.interval_seconds,
            "enabled": self.enabled,
            "running": self.running,
            "run_count": self.run_count,
            "error_count": self.error_count,
            "last_result": self.last_result,
            "last_run": _iso(self.last_run),
            "next_run": _iso(self.next_run),
        }


class JobScheduler:
    """
    Polls registered jobs and runs the due ones.

        jobs = JobScheduler(tick_interval=2.0)
        jobs.register_job("log_retention", 86400, cleanup, run_immediately=False)
        await jobs.start()
        ...
        await jobs.stop()
    """

    def __init__(self, tick_interval: float = 2.0):
        self._tick_interval = tick_interval
        self._jobs: Dict[str, ScheduledJob] = {}
        self._job_tasks: Set[asyncio.Task] = set()
        self._loop_task: Optional[asyncio.Task] = None
        self._running = False

    # ------------------------------------------------------------------
    # REGISTRY
    # ------------------------------------------------------------------

    def register_job(
        self,
        name: str,
        interval_seconds: float,
        coroutine_factory: Callable[[], Awaitable[Any]],
        enabled: bool = True,
        run_immediately: bool = True,
    ) -> ScheduledJob:
        """
        Add (or replace) a job.

        Parameters
        ----------
        name : str
            Unique key, also used in log lines.
        interval_seconds : float
            Period between two runs; must be positive.
        coroutine_factory : Callable
            Async callable without arguments.
        enabled : bool
            Disabled jobs stay registered but are never started by the loop.
        run_immediately : bool
            First run on the next poll instead of one period from now.

        Raises
        ------
        ValueError
            If ``interval_seconds`` is not positive.
        """
        if interval_seconds <= 0:
            raise ValueError(f"Job '{name}' needs a positive interval, got {interval_seconds}")
        if name in self._jobs:
            logger.warning(f"Replacing job '{name}'")

        now = time.time()
        job = ScheduledJob(
            name=name,
            interval_seconds=interval_seconds,
            coroutine_factory=coroutine_factory,
            enabled=enabled,
            next_run=now if run_immediately else now + interval_seconds,
        )
        self._jobs[name] = job
        logger.debug(f"Job '{name}' registered, every {interval_seconds}s")
        return job

    def get_job(self, name: str) -> Optional[ScheduledJob]:
        return self._jobs.get(name)

    def _set_enabled(self, name: str, enabled: bool) -> bool:
        job = self._jobs.get(name)
        if job is None:
            return False
        job.enabled = enabled
        return True

    def enable_job(self, name: str) -> bool:
        return self._set_enabled(name, True)

    def disable_job(self, name: str) -> bool:
        return self._set_enabled(name, False)

    # ------------------------------------------------------------------
    # LIFECYCLE
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            logger.warning("JobScheduler is already running")
            return
        self._running = True
        self._loop_task = asyncio.create_task(self._poll_loop(), name="job-scheduler")
        logger.info(f"✓ JobScheduler started ({len(self._jobs)} jobs)")

    async def stop(self) -> None:
        """Stop polling and cancel runs still in flight."""
        self._running = False

        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        pending = list(self._job_tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._job_tasks.clear()

        logger.info("✓ JobScheduler stopped")

    # ------------------------------------------------------------------
    # POLLING
    # ------------------------------------------------------------------

    def _due_jobs(self, now: float) -> Iterator[ScheduledJob]:
        for job in self._jobs.values():
            if not job.is_due(now):
                continue
            job.next_run = now + job.interval_seconds
            if job.running:
                logger.warning(f"Job '{job.name}' is still running, dropping this run")
                continue
            yield job

    async def _poll_loop(self) -> None:
        while self._running:
            for job in self._due_jobs(time.time()):
                self._spawn(job)
            await asyncio.sleep(self._tick_interval)

    def _spawn(self, job: ScheduledJob) -> asyncio.Task:
        job.running = True
        task = asyncio.create_task(self._execute_job(job), name=f"job:{job.name}")
        self._job_tasks.add(task)
        task.add_done_callback(self._job_tasks.discard)
        return task

    async def _execute_job(self, job: ScheduledJob) -> None:
        job.running = True
        started = time.perf_counter()
        try:
            job.last_result = await job.coroutine_factory()
        except Exception as e:
            job.error_count += 1
            logger.opt(exception=e).error(
                f"Job '{job.name}' failed after {time.perf_counter() - started:.2f}s: {e}"
            )
        else:
            job.run_count += 1
            job.last_run = time.time()
            logger.debug(
                f"Job '{job.name}' run #{job.run_count} took {time.perf_counter() - started:.2f}s"
            )
        finally:
            job.running = False

    async def run_job_now(self, name: str) -> bool:
        """
        Run a job in the caller's task and wait for it.

        Returns False if the job is unknown or a run is already in flight.
        """
        job = self._jobs.get(name)
        if job is None or job.running:
            return False
        await self._execute_job(job)
        return True

    def get_job_stats(self) -> List[Dict[str, Any]]:
        return [job.to_dict() for job in self._jobs.values()]
