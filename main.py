"""
============================================================================
DEVICE MONITOR - MAIN APPLICATION
============================================================================
Wires every layer of the monitoring service together:

    • Settings (pydantic-settings) and loguru logging
    • DatabaseManager + device / log / alert repositories
    • AlertNotifier with the configured email and SMS transports
    • HealthProbe, AlertDispatcher and MonitoringScheduler

Startup Order
-------------
1.  Load settings & configure logging
2.  Initialize DatabaseManager (create tables if needed)
3.  Build notifier and dispatcher
4.  Build probe and scheduler, then start the scheduler

Shutdown Order (reverse)
-------------------------
On SIGINT or SIGTERM:
    stop scheduler → close DB → exit

Version: 1.0.0
License: MIT
============================================================================
"""

import asyncio
import signal
import sys
from typing import Optional

from config.settings import Settings, get_settings
from database.manager import DatabaseManager
from database.repositories import AlertRepository, DeviceRepository, MonitoringLogRepository
from exceptions import DeviceMonitorException, InitializationError
from monitoring.alerts import AlertDispatcher
from monitoring.probe import HealthProbe
from monitoring.scheduler import MonitoringScheduler
from notifications.notifier import AlertNotifier
from utils.logger import get_logger, setup_logging


logger = get_logger("Main")


# ============================================================================
# APPLICATION CLASS
# ============================================================================

class DeviceMonitorApplication:
    """
    Top-level application orchestrator.

    Owns every subsystem and is the single place that knows the startup /
    shutdown order.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

        # --- subsystems (populated during startup) ---
        self.db_manager: Optional[DatabaseManager] = None
        self.device_repository: Optional[DeviceRepository] = None
        self.log_repository: Optional[MonitoringLogRepository] = None
        self.alert_repository: Optional[AlertRepository] = None
        self.notifier: Optional[AlertNotifier] = None
        self.dispatcher: Optional[AlertDispatcher] = None
        self.scheduler: Optional[MonitoringScheduler] = None

        self._stop_event = asyncio.Event()
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    # ==================================================================
    # PHASE 1: DATABASE
    # ==================================================================

    async def _init_database(self) -> bool:
        """Initialize the database manager and verify connectivity."""
        logger.info("── Phase 1: Database ─────────────────────────────")
        try:
            self.db_manager = DatabaseManager(self.settings)
            await self.db_manager.initialize()
        except DeviceMonitorException as e:
            logger.error(f"  ✗ Database init failed: {e.log_format()}")
            return False

        if not await self.db_manager.check_connection():
            logger.error("  ✗ Database connection check failed")
            return False

        self.device_repository = DeviceRepository(self.db_manager)
        self.log_repository = MonitoringLogRepository(self.db_manager)
        self.alert_repository = AlertRepository(self.db_manager)

        logger.info(f"  ✓ Connected to {self.settings.database.type.value}")
        return True

    # ==================================================================
    # PHASE 2: NOTIFICATIONS
    # ==================================================================

    def _init_notifications(self) -> None:
        logger.info("── Phase 2: Notifications ────────────────────────")
        self.notifier = AlertNotifier.from_settings(self.settings)
        self.dispatcher = AlertDispatcher(
            alert_repository=self.alert_repository,
            notifier=self.notifier,
            settings=self.settings,
        )

        if not (self.settings.alerts.email or self.settings.alerts.phone):
            logger.warning("  ⚠ No ALERT_EMAIL / ALERT_PHONE configured, alerts will be skipped")

        logger.info(
            f"  ✓ Email available: {self.notifier.email_available}, "
            f"SMS available: {self.notifier.sms_available}"
        )

    # ==================================================================
    # PHASE 3: MONITORING
    # ==================================================================

    def _init_monitoring(self) -> None:
        logger.info("── Phase 3: Monitoring ───────────────────────────")
        if self.device_repository is None or self.dispatcher is None:
            raise InitializationError(
                "Database and notifications must be initialized before monitoring",
                component="MonitoringScheduler",
            )

        self.scheduler = MonitoringScheduler(
            device_repository=self.device_repository,
            log_repository=self.log_repository,
            probe=HealthProbe(self.settings.monitoring),
            dispatcher=self.dispatcher,
            settings=self.settings,
        )
        logger.info("  ✓ HealthProbe and MonitoringScheduler created")

    # ==================================================================
    # FULL STARTUP SEQUENCE
    # ==================================================================

    async def startup(self) -> bool:
        """
        Execute the complete startup sequence.
        Returns False (and logs errors) if any critical phase fails.
        """
        logger.info("=" * 74)
        logger.info(f"  STARTING {self.settings.app_name} v{self.settings.app_version} …")
        logger.info("=" * 74)

        if not await self._init_database():
            return False

        self._init_notifications()
        self._init_monitoring()

        await self.scheduler.start()
        self._is_running = True

        logger.info("=" * 74)
        logger.info("  ✓ ALL SYSTEMS OPERATIONAL")
        logger.info("=" * 74)
        return True

    # ==================================================================
    # SHUTDOWN SEQUENCE
    # ==================================================================

    async def shutdown(self) -> None:
        """
        Graceful shutdown in reverse order.
        A failure in one subsystem doesn't prevent the others from cleaning up.
        """
        logger.info("  SHUTTING DOWN …")
        self._is_running = False

        if self.scheduler:
            try:
                await self.scheduler.stop()
            except DeviceMonitorException as e:
                logger.error(f"  ✗ Scheduler stop error: {e}")

        if self.db_manager:
            await self.db_manager.close()

        logger.info("  ✓ SHUTDOWN COMPLETE")

    # ==================================================================
    # RUN
    # ==================================================================

    def request_stop(self) -> None:
        self._stop_event.set()

    async def run(self) -> None:
        """Block until a stop is requested."""
        await self._stop_event.wait()


# ============================================================================
# SIGNAL HANDLER SETUP
# ============================================================================

def _install_signal_handlers(app: DeviceMonitorApplication) -> None:
    """
    Install SIGTERM / SIGINT handlers so that the service shuts down
    gracefully even when killed by the OS.
    """
    loop = asyncio.get_running_loop()

    def _handle_signal(sig: signal.Signals) -> None:
        logger.info(f"  ⚡ {sig.name} received, shutting down…")
        app.request_stop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _handle_signal, sig)
        except (NotImplementedError, RuntimeError):
            # Not supported on Windows; KeyboardInterrupt still applies
            pass


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

async def main() -> int:
    """
    Start the application and run it until a stop signal arrives.
    """
    settings = get_settings()
    setup_logging(settings)

    app = DeviceMonitorApplication(settings)
    _install_signal_handlers(app)

    if not await app.startup():
        logger.error("  ✗ Startup failed, exiting")
        await app.shutdown()
        return 1

    try:
        await app.run()
    finally:
        await app.shutdown()

    return 0


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        pass


# ============================================================================
# SCRIPT ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    run()
