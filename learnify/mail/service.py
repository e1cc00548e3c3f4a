"""Transactional email delivery over SMTP."""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from learnify.core.config import EmailConfig

LOGGER = logging.getLogger(__name__)

ACTIVATION_SUBJECT = "Activate your account"

_ACTIVATION_TEXT = (
    "Hello {name},\n\n"
    "Thank you for registering with Learnify. Use the code below to activate "
    "your account:\n\n"
    "    {code}\n\n"
    "The code expires in {minutes} minutes.\n"
)

_ACTIVATION_HTML = (
    "<p>Hello {name},</p>"
    "<p>Thank you for registering with Learnify. Use the code below to "
    "activate your account:</p>"
    "<h2>{code}</h2>"
    "<p>The code expires in {minutes} minutes.</p>"
)


class EmailDeliveryError(RuntimeError):
    """Raised when an email could not be handed to the SMTP server."""


def redact_email(email: str) -> str:
    """Redact an email address for logging."""
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class EmailService:
    """SMTP sender that only logs when no SMTP host is configured."""

    def __init__(self, config: EmailConfig) -> None:
        self._config = config
        self._from_email = config.from_email or config.smtp_user

    @property
    def is_configured(self) -> bool:
        return bool(self._config.smtp_host and self._from_email)

    def send_activation_email(
        self, to_email: str, *, name: str, code: str, expires_in_seconds: int
    ) -> None:
        """Send the activation code for a pending registration."""
        minutes = max(1, expires_in_seconds // 60)
        self.send(
            to_email,
            ACTIVATION_SUBJECT,
            html_body=_ACTIVATION_HTML.format(name=name, code=code, minutes=minutes),
            text_body=_ACTIVATION_TEXT.format(name=name, code=code, minutes=minutes),
        )

    def send(self, to_email: str, subject: str, *, html_body: str, text_body: str) -> None:
        """Send a multipart email, raising ``EmailDeliveryError`` on SMTP failure."""
        if not self.is_configured:
            LOGGER.info("email_dev_mode: to=%s subject=%s", redact_email(to_email), subject)
            return

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self._config.from_name} <{self._from_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        context = ssl.create_default_context()
        try:
            if self._config.smtp_use_tls:
                with smtplib.SMTP(
                    self._config.smtp_host, self._config.smtp_port, timeout=30
                ) as server:
                    server.starttls(context=context)
                    self._login(server)
                    server.sendmail(self._from_email, to_email, msg.as_string())
            else:
                with smtplib.SMTP_SSL(
                    self._config.smtp_host,
                    self._config.smtp_port,
                    context=context,
                    timeout=30,
                ) as server:
                    self._login(server)
                    server.sendmail(self._from_email, to_email, msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            LOGGER.error(
                "email_send_failed: to=%s error=%s", redact_email(to_email), exc
            )
            raise EmailDeliveryError(str(exc)) from exc

        LOGGER.info("email_sent: to=%s subject=%s", redact_email(to_email), subject)

    def _login(self, server: smtplib.SMTP) -> None:
        if self._config.smtp_user and self._config.smtp_password:
            server.login(self._config.smtp_user, self._config.smtp_password)
