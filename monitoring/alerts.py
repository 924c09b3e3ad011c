"""
============================================================================
DEVICE MONITOR - ALERT DISPATCHER
============================================================================
Builds an alert for a status transition, persists it, delivers it and
records the delivery outcome.

Two-phase persistence
---------------------
1.  The alert is saved as ``pending`` before any delivery is attempted,
    so the event exists even if delivery crashes.
2.  After delivery the alert becomes ``sent`` (any channel succeeded) or
    ``failed`` (nothing succeeded, nothing attempted, or an exception),
    and that outcome is written as a separate update.

Only a failure of the initial save reaches the caller.

Version: 1.0.0
License: MIT
============================================================================
"""

from typing import Any, Dict, Optional

from config.constants import MessageTemplates
from config.settings import Settings, get_settings
from database.models import Alert, AlertChannel, AlertStatus, AlertType
from notifications.notifier import AlertNotifier
from utils.logger import get_logger


logger = get_logger("AlertDispatcher")


class AlertDispatcher:
    """
    Drives one alert through ``pending → sent | failed``.
    """

    def __init__(
        self,
        alert_repository: Any,
        notifier: AlertNotifier,
        settings: Optional[Settings] = None,
    ):
        """
        Parameters
        ----------
        alert_repository
            Store exposing async ``save(alert)`` and ``update(alert)``.
        notifier : AlertNotifier
            Email / SMS delivery.
        settings : Settings | None
            Used for the email subject prefix.
        """
        self.settings = settings or get_settings()
        self.alert_repository = alert_repository
        self.notifier = notifier

        self._stats: Dict[str, int] = {"dispatched": 0, "sent": 0, "failed": 0}

    def build_subject(self, device_name: str) -> str:
        return MessageTemplates.EMAIL_SUBJECT.format(
            prefix=self.settings.alerts.subject_prefix,
            device_name=device_name,
        )

    async def dispatch(
        self,
        device_id: str,
        device_name: str,
        alert_type: AlertType,
        channel: AlertChannel,
        recipient_email: Optional[str] = None,
        recipient_phone: Optional[str] = None,
    ) -> Alert:
        """
        Create, persist, deliver and finalize one alert.

        Parameters
        ----------
        device_id : str
            Device the alert is about.
        device_name : str
            Display name rendered into the message.
        alert_type : AlertType
            Kind of transition.
        channel : AlertChannel
            email, sms or both.
        recipient_email, recipient_phone : str | None
            Recipients; a channel without its recipient is not attempted.

        Returns
        -------
        Alert
            The alert in its final state.
        """
        alert = Alert.create(
            device_id=device_id,
            device_name=device_name,
            alert_type=alert_type,
            channel=channel,
            recipient_email=recipient_email,
            recipient_phone=recipient_phone,
        )
        await self.alert_repository.save(alert)
        self._stats["dispatched"] += 1

        channel = AlertChannel(channel)
        attempted = []
        try:
            delivered = False

            if channel in (AlertChannel.EMAIL, AlertChannel.BOTH) and recipient_email:
                attempted.append("email")
                email_ok = await self.notifier.send_email(
                    recipient_email, self.build_subject(device_name), alert.message
                )
                delivered = delivered or email_ok

            if channel in (AlertChannel.SMS, AlertChannel.BOTH) and recipient_phone:
                attempted.append("sms")
                sms_ok = await self.notifier.send_sms(recipient_phone, alert.message)
                delivered = delivered or sms_ok

            if delivered:
                alert.mark_as_sent()
            else:
                alert.mark_as_failed()

        except Exception as e:
            logger.error(f"Delivery of alert {alert.id} raised: {e}")
            if alert.is_pending:
                alert.mark_as_failed()

        if not attempted:
            logger.warning(
                f"Alert {alert.id} for device {device_id} had no recipient for channel {channel.value}"
            )

        try:
            await self.alert_repository.update(alert)
        except Exception as e:
            logger.error(f"Failed to record outcome of alert {alert.id}: {e}")

        if alert.status == AlertStatus.SENT:
            self._stats["sent"] += 1
            logger.info(
                f"Alert {alert.id} ({AlertType(alert.alert_type).value}) sent for "
                f"device {device_name} via {', '.join(attempted)}"
            )
        else:
            self._stats["failed"] += 1
            logger.warning(
                f"Alert {alert.id} ({AlertType(alert.alert_type).value}) failed for device {device_name}"
            )

        return alert

    def get_stats(self) -> Dict[str, Any]:
        return dict(self._stats)
