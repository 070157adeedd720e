"""Best-effort operator alerts.

Alerts are fire-and-forget: ``Notifier.send_plain_text`` catches every
delivery error, logs it and returns False. A data pipeline that reached the
alerting step must not be aborted by the alerting channel.
"""

import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from typing import Optional

from .config import Settings, SmtpSettings

logger = logging.getLogger(__name__)

ERROR_MESSAGE_PREFIX = "There was an error, please check the logs for further information:\n"


class Notifier(ABC):
    """Narrow alerting port: a subject and a plain-text body."""

    def send_plain_text(self, subject: str, body: str) -> bool:
        """Deliver an alert; never raises.

        Returns:
            True if the channel accepted the message.
        """
        try:
            self._deliver(subject, body)
            return True
        except Exception:
            logger.exception(f"Failed to send alert '{subject}'")
            return False

    @abstractmethod
    def _deliver(self, subject: str, body: str) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Used when no mail channel is configured."""

    def _deliver(self, subject: str, body: str) -> None:
        logger.warning(f"ALERT: {subject}\n{body}")


class MailNotifier(Notifier):
    def __init__(self, config: SmtpSettings):
        self.config = config

    def _build_message(self, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.config.sender
        message["To"] = ", ".join(self.config.recipients)
        message.set_content(body)
        return message

    def _deliver(self, subject: str, body: str) -> None:
        if not self.config.recipients:
            logger.warning(f"No alert recipients configured, dropping '{subject}'")
            return
        message = self._build_message(subject, body)
        with smtplib.SMTP(self.config.host, self.config.port) as client:
            if self.config.use_tls:
                client.starttls()
            if self.config.username and self.config.password:
                client.login(self.config.username, self.config.password)
            client.send_message(message, to_addrs=self.config.recipients)
        logger.info(f"Alert '{subject}' sent to {len(self.config.recipients)} recipients")


def get_notifier(settings: Optional[Settings] = None) -> Notifier:
    """Pick the mail channel when SMTP is configured, logging otherwise."""
    if settings is not None and settings.smtp is not None:
        return MailNotifier(settings.smtp)
    return LoggingNotifier()
