from .account_email_service import AccountEmailService
from .smtp_sender import SmtpEmailSender

__all__ = ["AccountEmailService", "SmtpEmailSender"]
