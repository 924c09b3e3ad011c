"""
============================================================================
DEVICE MONITOR - HELPERS UTILITY
============================================================================
Small time and string helpers shared by the probe, the scheduler and
the notification transports.

Version: 1.0.0
License: MIT
============================================================================
"""

import re
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional


_NON_DIGITS = re.compile(r"\D")

_UNITS = (("d", 86400), ("h", 3600), ("m", 60))


class TimeHelper:
    """
    Clock helpers. Stored timestamps are naive datetimes in UTC.
    """

    @staticmethod
    def get_utc_now() -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)

    @staticmethod
    def days_ago(days: int, now: Optional[datetime] = None) -> datetime:
        """
        The instant ``days`` whole days before ``now``.

        Args:
            days: Window length in days
            now: Reference instant, naive UTC (defaults to the current time)
        """
        return (now or TimeHelper.get_utc_now()) - timedelta(days=days)

    @staticmethod
    def elapsed_ms(started: float) -> int:
        """Whole milliseconds since a ``time.perf_counter()`` reading."""
        return int(round((time.perf_counter() - started) * 1000))

    @staticmethod
    def seconds_to_human_readable(seconds: float) -> str:
        """
        Render a duration for log lines: ``250ms``, ``45s``, ``2h 30m 15s``.
        """
        if seconds < 0:
            return "0s"
        if seconds < 1:
            return f"{int(seconds * 1000)}ms"

        remainder = int(seconds)
        parts = []
        for suffix, size in _UNITS:
            count, remainder = divmod(remainder, size)
            if count:
                parts.append(f"{count}{suffix}")
        if remainder or not parts:
            parts.append(f"{remainder}s")
        return " ".join(parts)


class StringHelper:
    """String helpers."""

    @staticmethod
    def truncate(text: str, max_length: int = 100, suffix: str = "...") -> str:
        """Cut ``text`` so that, suffix included, it fits in ``max_length``."""
        if len(text) <= max_length:
            return text
        return text[:max_length - len(suffix)] + suffix

    @staticmethod
    def digits_only(text: str) -> str:
        return _NON_DIGITS.sub("", text)

    @staticmethod
    def new_id() -> str:
        """Random UUID4 in its 36-character string form, used as primary key."""
        return str(uuid.uuid4())
