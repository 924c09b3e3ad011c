"""
============================================================================
DEVICE MONITOR - HEALTH PROBE
============================================================================
One reachability check for one device, using the device's protocol.

Protocols
---------
• ping  – platform ``ping`` binary, one echo request
• http  – single GET, no redirects, no retries
• https – same as http over TLS
• tcp   – raw connect to host:port
• dns   – A/AAAA resolution through dnspython's async resolver

The probe is total: every failure, expected or not, comes back as a
``CheckResult`` whose status is online, offline or warning. Latency is
wall-clock milliseconds since the check started, failures included.

Version: 1.0.0
License: MIT
============================================================================
"""

import asyncio
import ipaddress
import math
import sys
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

import dns.asyncresolver
import dns.exception
import dns.resolver
import httpx

from config.constants import Defaults, Limits
from config.settings import MonitoringSettings, get_settings
from database.models import CheckProtocol, Device, DeviceStatus
from utils.helpers import StringHelper, TimeHelper
from utils.logger import get_logger


logger = get_logger("HealthProbe")


PING_FAILED = "Ping failed - host unreachable"
REQUEST_TIMEOUT = "Request timeout"
CONNECTION_TIMEOUT = "Connection timeout"


# ============================================================================
# CHECK RESULT
# ============================================================================

class CheckResult:
    """
    Outcome of a single check: status, latency in milliseconds and an
    optional error description.
    """
    __slots__ = ("status", "response_time", "error_message")

    def __init__(
        self,
        status: DeviceStatus,
        response_time: Optional[int] = None,
        error_message: Optional[str] = None,
    ):
        self.status = DeviceStatus(status)
        self.response_time = response_time
        self.error_message = (
            StringHelper.truncate(error_message, Limits.ERROR_MESSAGE_MAX_LENGTH)
            if error_message else None
        )

    @property
    def is_online(self) -> bool:
        return self.status == DeviceStatus.ONLINE

    def to_dict(self) -> Dict[str, Any]:
        return {slot: getattr(self, slot) for slot in self.__slots__}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CheckResult):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f"CheckResult(status={self.status.value}, "
            f"response_time={self.response_time}, error_message={self.error_message!r})"
        )


def _error_text(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


# ============================================================================
# CHECKERS
# ============================================================================

class BaseChecker(ABC):
    """One protocol's check. ``started`` is the probe's perf_counter() reading."""

    def __init__(self, settings: MonitoringSettings):
        self.settings = settings

    @abstractmethod
    async def check(self, device: Device, started: float) -> CheckResult:
        ...

    @staticmethod
    def _result(status: DeviceStatus, started: float, error: Optional[str] = None) -> CheckResult:
        return CheckResult(status, TimeHelper.elapsed_ms(started), error)

    @staticmethod
    def _timeout_seconds(device: Device) -> float:
        timeout = device.timeout or Defaults.CHECK_TIMEOUT_MS
        return max(timeout, 1) / 1000.0


class PingChecker(BaseChecker):
    """
    Runs the system ``ping`` binary for one echo request.

    Exit status 0 means reachable. Any other outcome, including a missing
    binary or the process outliving the timeout, is reported as unreachable.
    """

    @staticmethod
    def build_command(host: str, timeout_ms: int) -> List[str]:
        if sys.platform.startswith("win"):
            return ["ping", "-n", "1", "-w", str(timeout_ms), host]
        seconds = max(1, math.ceil(timeout_ms / 1000))
        return ["ping", "-c", "1", "-W", str(seconds), host]

    async def check(self, device: Device, started: float) -> CheckResult:
        host = (device.host or "").strip()
        # Hosts starting with '-' would be parsed as options.
        if not host or host.startswith("-"):
            return self._result(DeviceStatus.OFFLINE, started, PING_FAILED)

        timeout = self._timeout_seconds(device)
        command = self.build_command(host, int(timeout * 1000))

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            logger.warning(f"[PING] Cannot run ping for {host}: {e}")
            return self._result(DeviceStatus.OFFLINE, started, PING_FAILED)

        try:
            returncode = await asyncio.wait_for(
                process.wait(), timeout=timeout + self.settings.ping_grace_seconds
            )
        except asyncio.TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()
            logger.debug(f"[PING] {host} → no exit after {timeout}s")
            return self._result(DeviceStatus.OFFLINE, started, PING_FAILED)

        if returncode == 0:
            return self._result(DeviceStatus.ONLINE, started)

        return self._result(DeviceStatus.OFFLINE, started, PING_FAILED)


class HTTPChecker(BaseChecker):
    """
    Single GET against ``scheme://host:port``.

    Status policy: 2xx–3xx online, 4xx warning, everything else offline.
    Redirects are not followed.
    """

    def __init__(
        self,
        settings: MonitoringSettings,
        scheme: str = "http",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(settings)
        self.scheme = scheme
        self.default_port = Defaults.HTTPS_PORT if scheme == "https" else Defaults.HTTP_PORT
        self._transport = transport

    def build_url(self, device: Device) -> str:
        host = device.host.strip()
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return f"{self.scheme}://{host}:{device.port or self.default_port}"

    @staticmethod
    def classify(status_code: int) -> CheckResult:
        """Map an HTTP status code to a device status (latency filled in later)."""
        if 200 <= status_code < 400:
            return CheckResult(DeviceStatus.ONLINE)
        if 400 <= status_code < 500:
            return CheckResult(DeviceStatus.WARNING, error_message=f"HTTP {status_code}")
        return CheckResult(DeviceStatus.OFFLINE, error_message=f"HTTP {status_code}")

    async def check(self, device: Device, started: float) -> CheckResult:
        url = self.build_url(device)
        timeout = self._timeout_seconds(device)

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(timeout),
                follow_redirects=False,
                verify=self.settings.verify_ssl,
                transport=self._transport,
            ) as client:
                response = await client.get(url, headers={"User-Agent": self.settings.user_agent})

        except httpx.TimeoutException:
            logger.debug(f"[HTTP] {url} → timed out after {timeout}s")
            return self._result(DeviceStatus.OFFLINE, started, REQUEST_TIMEOUT)
        except httpx.HTTPError as e:
            logger.debug(f"[HTTP] {url} → {e}")
            return self._result(DeviceStatus.OFFLINE, started, _error_text(e))

        outcome = self.classify(response.status_code)
        logger.debug(f"[HTTP] {url} → {response.status_code}")
        return self._result(outcome.status, started, outcome.error_message)


class TCPChecker(BaseChecker):
    """
    Opens a TCP connection to host:port (default 80) and closes it.
    """

    async def check(self, device: Device, started: float) -> CheckResult:
        host = device.host.strip()
        port = device.port or Defaults.TCP_PORT
        timeout = self._timeout_seconds(device)

        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=timeout
            )
        except asyncio.TimeoutError:
            logger.debug(f"[TCP] {host}:{port} → timed out after {timeout}s")
            return self._result(DeviceStatus.OFFLINE, started, CONNECTION_TIMEOUT)
        except OSError as e:
            logger.debug(f"[TCP] {host}:{port} → {e}")
            return self._result(DeviceStatus.OFFLINE, started, _error_text(e))

        result = self._result(DeviceStatus.ONLINE, started)

        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass  # peer reset on close

        return result


class DNSChecker(BaseChecker):
    """
    Resolves the device host to A/AAAA records.

    IP literals are reachable by definition and skip the resolver. A name
    the DNS servers do not know is retried through the system resolver
    (``getaddrinfo``), so entries from the hosts file count as resolvable.
    """

    def __init__(
        self,
        settings: MonitoringSettings,
        resolver_factory: Callable[[], Any] = dns.asyncresolver.Resolver,
    ):
        super().__init__(settings)
        self._resolver_factory = resolver_factory

    async def check(self, device: Device, started: float) -> CheckResult:
        host = device.host.strip()

        try:
            ipaddress.ip_address(host)
            return self._result(DeviceStatus.ONLINE, started)
        except ValueError:
            pass

        timeout = self._timeout_seconds(device)
        try:
            resolver = self._resolver_factory()
            resolver.lifetime = timeout
            await resolver.resolve_name(host)
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer) as e:
            logger.debug(f"[DNS] {host} → {e}, trying system resolver")
            if not await self._system_lookup(host, timeout):
                return self._result(DeviceStatus.OFFLINE, started, f"DNS lookup failed: {_error_text(e)}")
        except dns.exception.DNSException as e:
            logger.debug(f"[DNS] {host} → {e}")
            return self._result(DeviceStatus.OFFLINE, started, f"DNS lookup failed: {_error_text(e)}")

        return self._result(DeviceStatus.ONLINE, started)

    @staticmethod
    async def _system_lookup(host: str, timeout: float) -> bool:
        loop = asyncio.get_running_loop()
        try:
            addresses = await asyncio.wait_for(loop.getaddrinfo(host, None), timeout)
        except (OSError, asyncio.TimeoutError) as e:
            logger.debug(f"[DNS] system resolver: {host} → {e!r}")
            return False
        return bool(addresses)


# ============================================================================
# HEALTH PROBE
# ============================================================================

class HealthProbe:
    """
    Selects the checker for a device's protocol and runs it.

    ``check()`` never raises.
    """

    def __init__(
        self,
        settings: Optional[MonitoringSettings] = None,
        checkers: Optional[Dict[CheckProtocol, BaseChecker]] = None,
    ):
        self.settings = settings or get_settings().monitoring

        self.checkers: Dict[CheckProtocol, BaseChecker] = {
            CheckProtocol.PING: PingChecker(self.settings),
            CheckProtocol.HTTP: HTTPChecker(self.settings, scheme="http"),
            CheckProtocol.HTTPS: HTTPChecker(self.settings, scheme="https"),
            CheckProtocol.TCP: TCPChecker(self.settings),
            CheckProtocol.DNS: DNSChecker(self.settings),
        }
        if checkers:
            self.checkers.update(checkers)

    @staticmethod
    def resolve_protocol(value: Any) -> Optional[CheckProtocol]:
        if isinstance(value, CheckProtocol):
            return value
        try:
            return CheckProtocol(str(value).strip().lower())
        except ValueError:
            return None

    async def check(self, device: Device) -> CheckResult:
        """
        Run one check against ``device``.

        Args:
            device: Device to check

        Returns:
            CheckResult with status online, offline or warning
        """
        started = time.perf_counter()

        protocol = self.resolve_protocol(device.check_protocol)
        if protocol is None:
            logger.warning(f"Unknown check protocol '{device.check_protocol}' for device {device.id}")
            return CheckResult(
                DeviceStatus.OFFLINE,
                TimeHelper.elapsed_ms(started),
                f"Unknown check protocol: {device.check_protocol}",
            )

        try:
            result = await self.checkers[protocol].check(device, started)
        except Exception as e:
            logger.error(f"[{protocol.value.upper()}] Unexpected error checking device {device.id}: {e}")
            return CheckResult(DeviceStatus.OFFLINE, TimeHelper.elapsed_ms(started), _error_text(e))

        logger.debug(
            f"Device {device.id} ({protocol.value}://{device.host}) → "
            f"{result.status.value} in {result.response_time}ms"
        )
        return result
