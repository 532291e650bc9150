"""Email notifications for migration events."""

import asyncio
import smtplib
from email.message import EmailMessage

import structlog
from pydantic import BaseModel

from ..core.config_loader import NotificationSettings
from ..core.exceptions import ConfigurationError, NotificationError

DEFAULT_SUBJECT = "HarborCLI Notification"
DEFAULT_MESSAGE = "Test notification from HarborCLI."
SMTP_TIMEOUT = 30


class NotificationResult(BaseModel):
    """Delivery outcome."""

    recipient: str
    subject: str
    success: bool
    error: str | None = None


def setup_instructions() -> str:
    """Shell exports an operator needs before notifications work."""
    return (
        "Set SMTP credentials in your environment or .env file:\n"
        "  export SMTP_HOST=smtp.example.com\n"
        "  export SMTP_PORT=587\n"
        "  export SMTP_USER=you@example.com\n"
        "  export SMTP_PASS=<app password>"
    )


class SmtpNotifier:
    """Sends plain-text mail through the configured SMTP relay."""

    def __init__(self, settings: NotificationSettings):
        self.settings = settings
        self.logger = structlog.get_logger().bind(component="notifier")

    def _build_message(self, recipient: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.settings.sender or self.settings.username or ""
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(body)
        return message

    def _deliver(self, message: EmailMessage) -> None:
        settings = self.settings
        with smtplib.SMTP(settings.host or "", settings.port, timeout=SMTP_TIMEOUT) as smtp:
            if settings.use_tls:
                smtp.starttls()
            if settings.username and settings.password:
                smtp.login(settings.username, settings.password.get_secret_value())
            smtp.send_message(message)

    async def send(self, recipient: str, subject: str, body: str) -> NotificationResult:
        """Send one message.

        Raises:
            ConfigurationError: If SMTP host or credentials are missing
            NotificationError: If the relay rejects or cannot be reached
        """
        if not self.settings.configured:
            raise ConfigurationError("Missing SMTP credentials", hint=setup_instructions())
        if not recipient or "@" not in recipient:
            raise ConfigurationError(
                f"Invalid recipient address: '{recipient}'", hint="Pass --to you@example.com."
            )

        message = self._build_message(recipient, subject, body)
        self.logger.info("Sending notification", recipient=recipient, host=self.settings.host)

        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            self.logger.error("Notification failed", recipient=recipient, error=str(e))
            raise NotificationError(
                f"Error sending email: {e}",
                hint="Verify SMTP host, port and credentials (Gmail needs an app password).",
            ) from e

        self.logger.info("Notification sent", recipient=recipient)
        return NotificationResult(recipient=recipient, subject=subject, success=True)
