"""Pytest configuration and shared fixtures for the device monitor tests."""

from __future__ import annotations

import asyncio
from datetime import datetime
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from config.settings import (
    AlertSettings,
    DatabaseSettings,
    LoggingSettings,
    MonitoringSettings,
    OmbalaSettings,
    ResendSettings,
    Settings,
    VonageSettings,
)
from database.manager import DatabaseManager
from database.models import Alert, Device, DeviceStatus, MonitoringLog
from database.repositories import AlertRepository, DeviceRepository, MonitoringLogRepository
from exceptions import DatabaseQueryError
from monitoring.alerts import AlertDispatcher
from monitoring.probe import CheckResult
from monitoring.scheduler import MonitoringScheduler

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


def make_settings(
    email: Optional[str] = "ops@example.com",
    phone: Optional[str] = "+244923456789",
    **monitoring: Any,
) -> Settings:
    """Settings isolated from the process environment and any .env file."""
    monitoring.setdefault("job_tick_interval", 0.01)
    return Settings(
        _env_file=None,
        database=DatabaseSettings(_env_file=None, dsn=MEMORY_URL),
        monitoring=MonitoringSettings(_env_file=None, **monitoring),
        alerts=AlertSettings(_env_file=None, email=email, phone=phone),
        resend=ResendSettings(_env_file=None),
        ombala=OmbalaSettings(_env_file=None),
        vonage=VonageSettings(_env_file=None),
        logging=LoggingSettings(_env_file=None, console_enabled=False),
    )


def make_device(**overrides: Any) -> Device:
    values: Dict[str, Any] = {
        "name": "Edge-01",
        "host": "edge-01.example.com",
        "check_protocol": "http",
        "check_interval": 60,
        "timeout": 1000,
    }
    values.update(overrides)
    return Device(**values)


# =============================================================================
# Test doubles
# =============================================================================


class ScriptedProbe:
    """Returns queued statuses in order, then ONLINE."""

    def __init__(self, statuses: Optional[List[DeviceStatus]] = None, delay: float = 0.0):
        self.statuses = list(statuses or [])
        self.delay = delay
        self.calls: List[str] = []

    async def check(self, device: Device) -> CheckResult:
        self.calls.append(device.id)
        if self.delay:
            await asyncio.sleep(self.delay)
        status = self.statuses.pop(0) if self.statuses else DeviceStatus.ONLINE
        error = None if status == DeviceStatus.ONLINE else f"scripted {status.value}"
        return CheckResult(status, 12, error)


class RecordingNotifier:
    """Notifier double recording every send."""

    def __init__(self, email_ok: bool = True, sms_ok: bool = True, raise_on: Optional[str] = None):
        self.email_ok = email_ok
        self.sms_ok = sms_ok
        self.raise_on = raise_on
        self.emails: List[tuple] = []
        self.sms: List[tuple] = []

    async def send_email(self, to: str, subject: str, body: str) -> bool:
        self.emails.append((to, subject, body))
        if self.raise_on == "email":
            raise RuntimeError("email transport exploded")
        return self.email_ok

    async def send_sms(self, to: str, body: str) -> bool:
        self.sms.append((to, body))
        if self.raise_on == "sms":
            raise RuntimeError("sms transport exploded")
        return self.sms_ok


class InMemoryDeviceRepository:
    def __init__(self, devices: Any = ()):
        self.devices: Dict[str, Device] = {d.id: d for d in devices}
        self.fail_update = False
        self.updates = 0

    async def find_all_active(self) -> List[Device]:
        return [d for d in self.devices.values() if d.is_active]

    async def find_by_id(self, device_id: str) -> Optional[Device]:
        return self.devices.get(device_id)

    async def update(self, device: Device) -> Device:
        if self.fail_update:
            raise DatabaseQueryError("database unavailable", operation="update")
        self.updates += 1
        self.devices[device.id] = device
        return device


class InMemoryLogRepository:
    def __init__(self) -> None:
        self.logs: List[MonitoringLog] = []

    async def save(self, log: MonitoringLog) -> MonitoringLog:
        self.logs.append(log)
        return log

    async def delete_older_than(self, date: datetime) -> int:
        kept = [log for log in self.logs if log.checked_at >= date]
        removed = len(self.logs) - len(kept)
        self.logs = kept
        return removed


class InMemoryAlertRepository:
    def __init__(self, fail_save: bool = False, fail_update: bool = False):
        self.alerts: Dict[str, Alert] = {}
        self.fail_save = fail_save
        self.fail_update = fail_update
        self.saved_statuses: List[str] = []

    async def save(self, alert: Alert) -> Alert:
        if self.fail_save:
            raise DatabaseQueryError("database unavailable", operation="insert")
        self.saved_statuses.append(alert.status.value)
        self.alerts[alert.id] = alert
        return alert

    async def update(self, alert: Alert) -> Alert:
        if self.fail_update:
            raise DatabaseQueryError("database unavailable", operation="update")
        self.alerts[alert.id] = alert
        return alert


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
async def db_manager(settings: Settings):
    manager = DatabaseManager(settings, url=MEMORY_URL)
    await manager.initialize()
    yield manager
    await manager.close()


@pytest.fixture
def device_repository(db_manager: DatabaseManager) -> DeviceRepository:
    return DeviceRepository(db_manager)


@pytest.fixture
def log_repository(db_manager: DatabaseManager) -> MonitoringLogRepository:
    return MonitoringLogRepository(db_manager)


@pytest.fixture
def alert_repository(db_manager: DatabaseManager) -> AlertRepository:
    return AlertRepository(db_manager)


@pytest.fixture
async def scheduler_rig():
    """Factory building a MonitoringScheduler on in-memory doubles."""
    created: List[MonitoringScheduler] = []

    def _build(
        devices: Any = (),
        statuses: Optional[List[DeviceStatus]] = None,
        delay: float = 0.0,
        settings: Optional[Settings] = None,
        notifier: Optional[RecordingNotifier] = None,
    ) -> SimpleNamespace:
        settings = settings or make_settings()
        notifier = notifier or RecordingNotifier()
        rig = SimpleNamespace(
            settings=settings,
            probe=ScriptedProbe(statuses, delay=delay),
            devices=InMemoryDeviceRepository(devices),
            logs=InMemoryLogRepository(),
            alerts=InMemoryAlertRepository(),
            notifier=notifier,
        )
        rig.dispatcher = AlertDispatcher(rig.alerts, notifier, settings=settings)
        rig.scheduler = MonitoringScheduler(
            device_repository=rig.devices,
            log_repository=rig.logs,
            probe=rig.probe,
            dispatcher=rig.dispatcher,
            settings=settings,
        )
        created.append(rig.scheduler)
        return rig

    yield _build

    for scheduler in created:
        await scheduler.stop()
