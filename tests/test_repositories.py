"""
Repository tests against an in-memory SQLite database.
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from database.manager import DatabaseManager
from database.models import DeviceStatus, MonitoringLog
from tests.conftest import make_device

pytestmark = pytest.mark.integration


def make_log(device_id: str, status=DeviceStatus.ONLINE, response_time=None, checked_at=None) -> MonitoringLog:
    kwargs = {"device_id": device_id, "status": status, "response_time": response_time}
    if checked_at is not None:
        kwargs["checked_at"] = checked_at
    return MonitoringLog(**kwargs)


# =============================================================================
# DatabaseManager
# =============================================================================


class TestDatabaseManager:
    async def test_connection_check(self, db_manager):
        assert db_manager.is_initialized
        assert await db_manager.check_connection() is True

    def test_password_is_masked(self):
        masked = DatabaseManager._mask_password("postgresql+asyncpg://monitor:s3cret@db:5432/devices")
        assert masked == "postgresql+asyncpg://monitor:****@db:5432/devices"

    async def test_close_resets_state(self, settings):
        manager = DatabaseManager(settings, url="sqlite+aiosqlite:///:memory:")
        await manager.initialize()
        await manager.close()

        assert not manager.is_initialized
        assert manager.engine is None


# =============================================================================
# Devices
# =============================================================================


class TestDeviceRepository:
    async def test_save_and_find(self, device_repository):
        device = make_device(port=8080, user_id="u-1")
        await device_repository.save(device)

        stored = await device_repository.find_by_id(device.id)

        assert stored.name == "Edge-01"
        assert stored.port == 8080
        assert stored.status == DeviceStatus.UNKNOWN
        assert stored.check_protocol == "http"
        assert [d.id for d in await device_repository.find_by_user_id("u-1")] == [device.id]

    async def test_find_all_active_excludes_inactive(self, device_repository):
        active = make_device(name="active")
        paused = make_device(name="paused", is_active=False)
        await device_repository.save(active)
        await device_repository.save(paused)

        assert [d.id for d in await device_repository.find_all_active()] == [active.id]
        assert len(await device_repository.find_all()) == 2

    async def test_update_persists_status(self, device_repository):
        device = make_device()
        await device_repository.save(device)

        stored = await device_repository.find_by_id(device.id)
        stored.update_status(DeviceStatus.OFFLINE, 321)
        await device_repository.update(stored)

        reloaded = await device_repository.find_by_id(device.id)
        assert reloaded.status == DeviceStatus.OFFLINE
        assert reloaded.last_response_time == 321
        assert reloaded.last_check is not None

    async def test_delete(self, device_repository):
        device = make_device()
        await device_repository.save(device)

        assert await device_repository.delete(device.id) is True
        assert await device_repository.delete(device.id) is False
        assert await device_repository.find_by_id(device.id) is None

    async def test_missing_device_is_none(self, device_repository):
        assert await device_repository.find_by_id("does-not-exist") is None


# =============================================================================
# Monitoring logs
# =============================================================================


class TestMonitoringLogRepository:
    async def test_saved_log_is_listed_once(self, log_repository):
        log = await log_repository.save(make_log("dev-1", response_time=40))

        logs = await log_repository.find_by_device_id("dev-1")

        assert [l.id for l in logs] == [log.id]
        assert logs[0].status == DeviceStatus.ONLINE

    async def test_logs_are_newest_first_and_limited(self, log_repository):
        base = datetime(2024, 1, 1)
        for minute in range(5):
            await log_repository.save(make_log("dev-1", checked_at=base + timedelta(minutes=minute)))

        logs = await log_repository.find_by_device_id("dev-1", limit=3)

        assert [l.checked_at.minute for l in logs] == [4, 3, 2]

    async def test_date_range_is_inclusive(self, log_repository):
        base = datetime(2024, 1, 1)
        for day in range(5):
            await log_repository.save(make_log("dev-1", checked_at=base + timedelta(days=day)))

        logs = await log_repository.find_by_date_range(
            "dev-1", base + timedelta(days=1), base + timedelta(days=3)
        )

        assert sorted(l.checked_at.day for l in logs) == [2, 3, 4]

    async def test_delete_older_than_is_strict(self, log_repository):
        now = datetime(2024, 6, 1, 12, 0, 0)
        cutoff = now - timedelta(days=30)
        for age in (10, 29, 30, 31, 45):
            await log_repository.save(make_log("dev-1", checked_at=now - timedelta(days=age)))

        deleted = await log_repository.delete_older_than(cutoff)

        assert deleted == 2
        remaining = await log_repository.find_by_device_id("dev-1")
        assert sorted((now - l.checked_at).days for l in remaining) == [10, 29, 30]

    async def test_delete_older_than_future_date_removes_everything(self, log_repository):
        now = datetime(2024, 6, 1, 12, 0, 0)
        for hours in (0, 1, 48, 24 * 40):
            await log_repository.save(make_log("dev-1", checked_at=now - timedelta(hours=hours)))

        deleted = await log_repository.delete_older_than(now + timedelta(days=1))

        assert deleted == 4
        assert await log_repository.find_by_device_id("dev-1") == []

    async def test_stats(self, log_repository):
        for status, response_time in (
            (DeviceStatus.ONLINE, 100),
            (DeviceStatus.ONLINE, 200),
            (DeviceStatus.ONLINE, 301),
            (DeviceStatus.OFFLINE, None),
        ):
            await log_repository.save(make_log("dev-1", status=status, response_time=response_time))

        stats = await log_repository.get_stats_by_device_id("dev-1")

        assert stats == {
            "total_checks": 4,
            "online_count": 3,
            "offline_count": 1,
            "avg_response_time": 200,
            "uptime": 75.0,
        }

    async def test_stats_without_logs(self, log_repository):
        stats = await log_repository.get_stats_by_device_id("nothing")

        assert stats["total_checks"] == 0
        assert stats["avg_response_time"] == 0
        assert stats["uptime"] == 100.0
