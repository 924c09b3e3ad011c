"""
Database errors.

``DatabaseManager.session()`` converts every SQLAlchemy error into a
``DatabaseQueryError``; engine creation failures become
``DatabaseConnectionError``. Repository reads swallow both and return
an empty result, writes let them through.
"""

from __future__ import annotations

from typing import Any, Optional

from exceptions.base import DeviceMonitorException


class DatabaseException(DeviceMonitorException):
    """Parent of all storage failures."""

    default_error_code = 2000
    default_recoverable = False


class DatabaseConnectionError(DatabaseException):
    """The engine could not be created or the server could not be reached."""

    default_error_code = 2001

    def __init__(
        self,
        message: str = "Unable to connect to database",
        url: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)
        # url is expected to be masked already
        self._note(url=url)


class DatabaseQueryError(DatabaseException):
    """A statement or commit failed. The next tick may succeed."""

    default_error_code = 2002
    default_recoverable = True

    def __init__(
        self,
        message: str = "Database query failed",
        operation: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)
        self._note(operation=operation)
