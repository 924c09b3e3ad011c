"""
============================================================================
DEVICE MONITOR - MONITORING SCHEDULER
============================================================================
One recurring timer per active device. Every tick probes the device,
stores the outcome, detects a status transition and raises an alert.

Lifecycle
---------
1.  ``await scheduler.start()`` schedules every active device and starts
    the background job runner that hosts the log retention job.
2.  ``schedule_device()`` / ``unschedule_device()`` keep the timers in
    line with device edits and deletions.
3.  ``await scheduler.stop()`` cancels every timer. Ticks already running
    are left to finish on their own.

Tick order
----------
look up device → probe → update device → save log → compare with the
previous status → dispatch alert → remember new status.

Each tick runs as its own task, so a slow device never holds up another.
A tick that fires while the previous tick of the same device is still
running is skipped.

Version: 1.0.0
License: MIT
============================================================================
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, Optional, Set, Tuple

from config.settings import Settings, get_settings
from database.models import AlertChannel, AlertType, Device, DeviceStatus, MonitoringLog
from exceptions import InvalidIntervalError, InvalidTimeoutError, ValidationException
from monitoring.alerts import AlertDispatcher
from monitoring.jobs import JobScheduler
from monitoring.probe import HealthProbe
from monitoring.state import InMemoryStatusTracker, StatusTracker
from utils.helpers import TimeHelper
from utils.logger import get_logger


logger = get_logger("MonitoringScheduler")

RETENTION_JOB = "log_retention"


class MonitoringScheduler:
    """
    Per-device check scheduler and transition detector.

    All state lives on one event loop; no locks are needed.
    """

    def __init__(
        self,
        device_repository: Any,
        log_repository: Any,
        probe: HealthProbe,
        dispatcher: AlertDispatcher,
        settings: Optional[Settings] = None,
        status_tracker: Optional[StatusTracker] = None,
        job_scheduler: Optional[JobScheduler] = None,
    ):
        """
        Parameters
        ----------
        device_repository
            Store exposing ``find_all_active()``, ``find_by_id()``, ``update()``.
        log_repository
            Store exposing ``save()`` and ``delete_older_than()``.
        probe : HealthProbe
            Runs a single check.
        dispatcher : AlertDispatcher
            Raises alerts on transitions.
        settings : Settings | None
            Retention window and alert recipients.
        status_tracker : StatusTracker | None
            Previous status per device; in-memory by default.
        job_scheduler : JobScheduler | None
            Runner for the retention job.
        """
        self.settings = settings or get_settings()
        self.device_repository = device_repository
        self.log_repository = log_repository
        self.probe = probe
        self.dispatcher = dispatcher
        self.status_tracker = status_tracker or InMemoryStatusTracker()
        self.jobs = job_scheduler or JobScheduler(
            tick_interval=self.settings.monitoring.job_tick_interval
        )

        self._timers: Dict[str, asyncio.Task] = {}
        self._in_flight: Dict[str, asyncio.Task] = {}
        self._running = False

        self._stats: Dict[str, int] = {
            "checks_run": 0,
            "check_errors": 0,
            "ticks_skipped": 0,
            "alerts_dispatched": 0,
        }

        self.jobs.register_job(
            RETENTION_JOB,
            interval_seconds=self.settings.monitoring.retention_job_interval,
            coroutine_factory=self.cleanup_old_logs,
            run_immediately=False,
        )

    # ------------------------------------------------------------------
    # LIFECYCLE
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def scheduled_device_ids(self) -> Set[str]:
        return set(self._timers)

    async def start(self) -> None:
        """Schedule every active device and start the job runner."""
        if self._running:
            logger.warning("MonitoringScheduler is already running")
            return

        self._running = True
        devices = await self.device_repository.find_all_active()

        for device in devices:
            try:
                self.schedule_device(device)
            except ValidationException as e:
                logger.error(f"Device {device.id} not scheduled: {e}")

        await self.jobs.start()
        logger.info(f"✓ MonitoringScheduler started with {len(self._timers)} devices")

    async def stop(self) -> None:
        """Cancel every timer and stop the job runner. Running ticks are not awaited."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._in_flight.clear()

        await self.jobs.stop()
        self._running = False
        logger.info("✓ MonitoringScheduler stopped")

    # ------------------------------------------------------------------
    # SCHEDULING
    # ------------------------------------------------------------------

    def schedule_device(self, device: Device) -> bool:
        """
        (Re)install the recurring timer of a device.

        Any existing timer for the device is cancelled first. Inactive
        devices are left unscheduled. The first tick fires immediately.

        Returns
        -------
        bool
            True if a timer is now installed.

        Raises
        ------
        InvalidIntervalError
            If the check interval is not positive.
        InvalidTimeoutError
            If the timeout is not positive.
        """
        self.unschedule_device(device.id)

        if not device.is_active:
            logger.debug(f"Device {device.id} is inactive, not scheduling")
            return False

        if device.check_interval is None or device.check_interval <= 0:
            raise InvalidIntervalError(interval=device.check_interval).with_details(device_id=device.id)
        if device.timeout is None or device.timeout <= 0:
            raise InvalidTimeoutError(timeout=device.timeout).with_details(device_id=device.id)

        self._timers[device.id] = asyncio.create_task(
            self._timer_loop(device), name=f"device-timer:{device.id}"
        )
        logger.info(
            f"Scheduled device {device.name} ({device.id}) every "
            f"{TimeHelper.seconds_to_human_readable(device.check_interval)}"
        )
        return True

    def unschedule_device(self, device_id: str) -> bool:
        """
        Cancel the timer of a device. A running tick is not interrupted.

        Returns
        -------
        bool
            True if a timer was removed.
        """
        timer = self._timers.pop(device_id, None)
        if timer is None:
            return False

        timer.cancel()
        logger.info(f"Unscheduled device {device_id}")
        return True

    async def _timer_loop(self, device: Device) -> None:
        """Fire ticks at a fixed rate, skipping instants that were missed."""
        loop = asyncio.get_running_loop()
        interval = float(device.check_interval)
        next_fire = loop.time()

        while True:
            self._fire(device)

            next_fire += interval
            now = loop.time()
            if next_fire < now:
                missed = int((now - next_fire) // interval) + 1
                next_fire += missed * interval
            await asyncio.sleep(next_fire - now)

    def _fire(self, device: Device) -> None:
        running = self._in_flight.get(device.id)
        if running is not None and not running.done():
            self._stats["ticks_skipped"] += 1
            logger.warning(f"Check of device {device.id} still running, skipping tick")
            return

        task = asyncio.create_task(self._run_tick(device), name=f"device-tick:{device.id}")
        self._in_flight[device.id] = task
        task.add_done_callback(lambda t, device_id=device.id: self._clear_in_flight(device_id, t))

    def _clear_in_flight(self, device_id: str, task: asyncio.Task) -> None:
        if self._in_flight.get(device_id) is task:
            del self._in_flight[device_id]

    async def _run_tick(self, device: Device) -> None:
        try:
            await self.check_device(device)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._stats["check_errors"] += 1
            logger.error(f"Check of device {device.id} failed: {e}")

    # ------------------------------------------------------------------
    # SINGLE TICK
    # ------------------------------------------------------------------

    async def check_device(self, device: Device) -> Optional[MonitoringLog]:
        """
        Run one tick for ``device`` (the object captured at scheduling time).

        Returns
        -------
        MonitoringLog | None
            The saved log, or None when the device is gone or inactive.
        """
        stored = await self.device_repository.find_by_id(device.id)
        if stored is None or not stored.is_active:
            logger.debug(f"Device {device.id} missing or inactive, skipping check")
            return None

        result = await self.probe.check(device)
        self._stats["checks_run"] += 1

        stored.update_status(result.status, result.response_time)
        await self.device_repository.update(stored)

        log = MonitoringLog(
            device_id=device.id,
            status=result.status,
            response_time=result.response_time,
            error_message=result.error_message,
        )
        await self.log_repository.save(log)

        previous = await self.status_tracker.get(device.id)
        try:
            kind = self.alert_kind_for_transition(previous, result.status)
            if kind is not None:
                logger.warning(
                    f"Device {stored.name} ({device.id}) changed "
                    f"{previous.value} → {result.status.value}"
                )
                await self._raise_alert(stored, kind)
        finally:
            await self.status_tracker.set(device.id, result.status)

        return log

    @staticmethod
    def alert_kind_for_transition(
        previous: Optional[DeviceStatus],
        current: DeviceStatus,
    ) -> Optional[AlertType]:
        """
        Alert kind for a status change, or None when nothing should fire.

        No previous status means the first check since start, which is
        never a transition.
        """
        if previous is None or previous == current:
            return None
        if current == DeviceStatus.OFFLINE:
            return AlertType.DOWN
        if current == DeviceStatus.ONLINE and previous == DeviceStatus.OFFLINE:
            return AlertType.UP
        if current == DeviceStatus.WARNING:
            return AlertType.WARNING
        return None

    def _recipients(self) -> Optional[Tuple[AlertChannel, Optional[str], Optional[str]]]:
        email = self.settings.alerts.email
        phone = self.settings.alerts.phone

        if email and phone:
            return AlertChannel.BOTH, email, phone
        if email:
            return AlertChannel.EMAIL, email, None
        if phone:
            return AlertChannel.SMS, None, phone
        return None

    async def _raise_alert(self, device: Device, kind: AlertType) -> None:
        recipients = self._recipients()
        if recipients is None:
            logger.warning("No alert recipient configured (ALERT_EMAIL / ALERT_PHONE), skipping alert")
            return

        channel, email, phone = recipients
        await self.dispatcher.dispatch(
            device_id=device.id,
            device_name=device.name,
            alert_type=kind,
            channel=channel,
            recipient_email=email,
            recipient_phone=phone,
        )
        self._stats["alerts_dispatched"] += 1

    # ------------------------------------------------------------------
    # RETENTION
    # ------------------------------------------------------------------

    async def cleanup_old_logs(self, now: Optional[datetime] = None) -> int:
        """
        Delete logs strictly older than the retention window.

        Parameters
        ----------
        now : datetime | None
            Reference instant (naive UTC); defaults to the current time.

        Returns
        -------
        int
            Number of deleted logs.
        """
        days = self.settings.monitoring.log_retention_days
        cutoff = TimeHelper.days_ago(days, now)

        deleted = await self.log_repository.delete_older_than(cutoff)
        logger.info(f"🧹 Log retention removed {deleted} logs older than {days} days")
        return deleted

    # ------------------------------------------------------------------
    # DIAGNOSTICS
    # ------------------------------------------------------------------

    def get_stats(self) -> Dict[str, Any]:
        return {
            "running": self._running,
            "scheduled_devices": len(self._timers),
            "in_flight_checks": sum(1 for t in self._in_flight.values() if not t.done()),
            **self._stats,
            "jobs": self.jobs.get_job_stats(),
        }

