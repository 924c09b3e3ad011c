"""
Status Tracker

Last observed status per device, used only to detect transitions.
The in-memory tracker starts empty, so the first check after a start
never counts as a transition.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional

from database.models import DeviceStatus


class StatusTracker(ABC):
    """Keyed store of the previous status of each device."""

    @abstractmethod
    async def get(self, device_id: str) -> Optional[DeviceStatus]:
        ...

    @abstractmethod
    async def set(self, device_id: str, status: DeviceStatus) -> None:
        ...

    @abstractmethod
    async def forget(self, device_id: str) -> None:
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...


class InMemoryStatusTracker(StatusTracker):
    """Process-local tracker. Safe without locks on a single event loop."""

    def __init__(self) -> None:
        self._statuses: Dict[str, DeviceStatus] = {}

    async def get(self, device_id: str) -> Optional[DeviceStatus]:
        return self._statuses.get(device_id)

    async def set(self, device_id: str, status: DeviceStatus) -> None:
        self._statuses[device_id] = DeviceStatus(status)

    async def forget(self, device_id: str) -> None:
        self._statuses.pop(device_id, None)

    async def clear(self) -> None:
        self._statuses.clear()

    def __len__(self) -> int:
        return len(self._statuses)

    def snapshot(self) -> Dict[str, str]:
        return {device_id: status.value for device_id, status in self._statuses.items()}
