"""SMTP delivery through fastapi-mail.

In test mode (always on in development and test environments) messages are
logged instead of sent, so local runs never need an SMTP server.
"""

from typing import List, Optional

import structlog
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from cardvault.core.config.settings import Settings
from cardvault.core.exceptions import EmailDeliveryError
from cardvault.domain.interfaces.services import IEmailSender
from cardvault.domain.value_objects.email import mask_email

logger = structlog.get_logger(__name__)


class SmtpEmailSender(IEmailSender):
    """Sends multipart (HTML + plain text) email.

    Attributes:
        test_mode (bool): Log instead of sending.
        outbox (list): Messages captured in test mode, newest last.
    """

    def __init__(self, settings: Settings):
        self.test_mode = settings.EMAIL_TEST_MODE
        self.outbox: List[MessageSchema] = []
        self._fastmail: Optional[FastMail] = None
        if self.test_mode:
            logger.info("Email sender in test mode - emails will be logged")
            return

        smtp_password = settings.EMAIL_SMTP_PASSWORD
        config = ConnectionConfig(
            MAIL_USERNAME=settings.EMAIL_SMTP_USERNAME or "",
            MAIL_PASSWORD=smtp_password.get_secret_value() if smtp_password else "",
            MAIL_FROM=settings.EMAIL_FROM_EMAIL,
            MAIL_FROM_NAME=settings.EMAIL_FROM_NAME,
            MAIL_PORT=settings.EMAIL_SMTP_PORT,
            MAIL_SERVER=settings.EMAIL_SMTP_HOST,
            MAIL_STARTTLS=settings.EMAIL_SMTP_USE_TLS,
            MAIL_SSL_TLS=settings.EMAIL_SMTP_USE_SSL,
            USE_CREDENTIALS=bool(settings.EMAIL_SMTP_USERNAME and smtp_password),
            VALIDATE_CERTS=True,
        )
        self._fastmail = FastMail(config)
        logger.info("SMTP email sender configured", host=settings.EMAIL_SMTP_HOST)

    async def send_email(self, to: str, subject: str, html_body: str, text_body: str) -> None:
        message = MessageSchema(
            subject=subject,
            recipients=[to],
            body=html_body,
            alternative_body=text_body,
            subtype=MessageType.html,
        )
        if self._fastmail is None:
            self.outbox.append(message)
            logger.info("Email logged (test mode)", to=mask_email(to), subject=subject)
            return
        try:
            await self._fastmail.send_message(message)
        except Exception as e:
            logger.error("Email delivery failed", to=mask_email(to), error=str(e))
            raise EmailDeliveryError() from e
        logger.info("Email sent", to=mask_email(to), subject=subject)
