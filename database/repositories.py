"""
============================================================================
DEVICE MONITOR - REPOSITORIES
============================================================================
Device, monitoring-log and alert stores on top of DatabaseManager.

Read helpers log and return None or an empty list on failure so a
scheduler tick can skip. Write helpers log and re-raise.

Version: 1.0.0
License: MIT
============================================================================
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import case, delete, func, select

from config.constants import Defaults
from database.manager import DatabaseManager
from database.models import Alert, AlertStatus, Device, DeviceStatus, MonitoringLog
from exceptions import DatabaseException
from utils.logger import get_logger


# ============================================================================
# DATABASE REPOSITORY BASE CLASS
# ============================================================================

class BaseRepository:
    """
    Base repository class for database operations.
    Provides common CRUD operations.
    """

    model_class = None

    def __init__(self, db_manager: DatabaseManager):
        """
        Initialize repository.

        Args:
            db_manager: DatabaseManager instance
        """
        self.db = db_manager
        self.logger = get_logger(self.__class__.__name__)

    async def find_by_id(self, record_id: str):
        """
        Get record by ID.

        Args:
            record_id: Record ID

        Returns:
            Model instance or None
        """
        try:
            async with self.db.session() as session:
                return await session.get(self.model_class, record_id)
        except DatabaseException as e:
            self.logger.error(f"Error getting {self.model_class.__name__} by ID {record_id}: {e}")
            return None

    async def _fetch_all(self, query) -> List[Any]:
        try:
            async with self.db.session() as session:
                result = await session.execute(query)
                return list(result.scalars().all())
        except DatabaseException as e:
            self.logger.error(f"Error listing {self.model_class.__name__}: {e}")
            return []

    async def save(self, model_instance):
        """
        Insert a new record.

        Args:
            model_instance: Model instance to create

        Returns:
            Created model instance
        """
        try:
            async with self.db.session() as session:
                session.add(model_instance)
                await session.flush()
                await session.refresh(model_instance)
            return model_instance
        except DatabaseException as e:
            self.logger.error(f"Error creating {model_instance.__class__.__name__}: {e}")
            raise

    async def update(self, model_instance):
        """
        Persist changes to an existing record.

        Args:
            model_instance: Detached or transient instance carrying the new state

        Returns:
            The same instance
        """
        try:
            async with self.db.session() as session:
                await session.merge(model_instance)
            return model_instance
        except DatabaseException as e:
            self.logger.error(f"Error updating {model_instance.__class__.__name__}: {e}")
            raise


# ============================================================================
# DEVICE REPOSITORY
# ============================================================================

class DeviceRepository(BaseRepository):
    """Device store."""

    model_class = Device

    async def find_all(self) -> List[Device]:
        return await self._fetch_all(select(Device).order_by(Device.created_at))

    async def find_all_active(self) -> List[Device]:
        """
        Get every device that should be monitored.

        Returns:
            Active devices, oldest first
        """
        return await self._fetch_all(
            select(Device).where(Device.is_active.is_(True)).order_by(Device.created_at)
        )

    async def find_by_user_id(self, user_id: str) -> List[Device]:
        return await self._fetch_all(
            select(Device).where(Device.user_id == user_id).order_by(Device.created_at)
        )

    async def delete(self, device_id: str) -> bool:
        """
        Delete a device.

        Returns:
            True if a row was removed
        """
        try:
            async with self.db.session() as session:
                result = await session.execute(
                    delete(Device)
                    .where(Device.id == device_id)
                    .execution_options(synchronize_session=False)
                )
                return result.rowcount > 0
        except DatabaseException as e:
            self.logger.error(f"Error deleting device {device_id}: {e}")
            raise


# ============================================================================
# MONITORING LOG REPOSITORY
# ============================================================================

class MonitoringLogRepository(BaseRepository):
    """Append-only store of check results."""

    model_class = MonitoringLog

    async def find_by_device_id(
        self,
        device_id: str,
        limit: int = Defaults.LOG_PAGE_SIZE
    ) -> List[MonitoringLog]:
        """Latest logs of a device, newest first."""
        return await self._fetch_all(
            select(MonitoringLog)
            .where(MonitoringLog.device_id == device_id)
            .order_by(MonitoringLog.checked_at.desc())
            .limit(limit)
        )

    async def find_by_date_range(
        self,
        device_id: str,
        start: datetime,
        end: datetime
    ) -> List[MonitoringLog]:
        """Logs of a device checked within ``[start, end]``, newest first."""
        return await self._fetch_all(
            select(MonitoringLog)
            .where(
                MonitoringLog.device_id == device_id,
                MonitoringLog.checked_at >= start,
                MonitoringLog.checked_at <= end,
            )
            .order_by(MonitoringLog.checked_at.desc())
        )

    async def delete_older_than(self, date: datetime) -> int:
        """
        Delete logs checked strictly before ``date``.

        Args:
            date: Cutoff instant (naive UTC); logs exactly at it are kept

        Returns:
            Number of deleted logs
        """
        try:
            async with self.db.session() as session:
                result = await session.execute(
                    delete(MonitoringLog)
                    .where(MonitoringLog.checked_at < date)
                    .execution_options(synchronize_session=False)
                )
                return result.rowcount or 0
        except DatabaseException as e:
            self.logger.error(f"Error deleting logs older than {date.isoformat()}: {e}")
            raise

    async def get_stats_by_device_id(self, device_id: str) -> Dict[str, Any]:
        """
        Aggregate check statistics for a device.

        Returns:
            Dictionary with total_checks, online_count, offline_count,
            avg_response_time (ms) and uptime (percent)
        """
        query = select(
            func.count(MonitoringLog.id),
            func.sum(case((MonitoringLog.status == DeviceStatus.ONLINE, 1), else_=0)),
            func.sum(case((MonitoringLog.status == DeviceStatus.OFFLINE, 1), else_=0)),
            func.avg(MonitoringLog.response_time),
        ).where(MonitoringLog.device_id == device_id)

        try:
            async with self.db.session() as session:
                total, online, offline, avg_response = (await session.execute(query)).one()
        except DatabaseException as e:
            self.logger.error(f"Error computing stats for device {device_id}: {e}")
            total, online, offline, avg_response = 0, 0, 0, None

        total = total or 0
        online = int(online or 0)
        uptime = round(online / total * 100, 2) if total > 0 else 100.0

        return {
            "total_checks": total,
            "online_count": online,
            "offline_count": int(offline or 0),
            "avg_response_time": round(float(avg_response)) if avg_response is not None else 0,
            "uptime": uptime,
        }


# ============================================================================
# ALERT REPOSITORY
# ============================================================================

class AlertRepository(BaseRepository):
    """Alert store."""

    model_class = Alert

    async def find_by_device_id(self, device_id: str) -> List[Alert]:
        return await self._fetch_all(
            select(Alert)
            .where(Alert.device_id == device_id)
            .order_by(Alert.created_at.desc())
        )

    async def find_pending(self) -> List[Alert]:
        return await self._fetch_all(
            select(Alert)
            .where(Alert.status == AlertStatus.PENDING)
            .order_by(Alert.created_at)
        )

    async def find_recent(self, limit: int = Defaults.RECENT_ALERTS) -> List[Alert]:
        return await self._fetch_all(
            select(Alert).order_by(Alert.created_at.desc()).limit(limit)
        )
