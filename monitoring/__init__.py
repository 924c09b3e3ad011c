"""
Monitoring Package for Device Monitor

Health probe, per-device monitoring scheduler, alert dispatcher and the
background job runner.
"""

from monitoring.probe import (
    HealthProbe,
    BaseChecker,
    PingChecker,
    HTTPChecker,
    TCPChecker,
    DNSChecker,
    CheckResult,
    CheckProtocol,
)
from monitoring.state import StatusTracker, InMemoryStatusTracker
from monitoring.jobs import JobScheduler, ScheduledJob
from monitoring.alerts import AlertDispatcher
from monitoring.scheduler import MonitoringScheduler

__all__ = [
    "HealthProbe",
    "BaseChecker",
    "PingChecker",
    "HTTPChecker",
    "TCPChecker",
    "DNSChecker",
    "CheckResult",
    "CheckProtocol",
    "StatusTracker",
    "InMemoryStatusTracker",
    "JobScheduler",
    "ScheduledJob",
    "AlertDispatcher",
    "MonitoringScheduler",
]
