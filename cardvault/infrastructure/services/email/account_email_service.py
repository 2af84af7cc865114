"""Renders and sends the emails carrying password-reset and verification links.

Templates are Jinja2 files named ``<name>.html`` and ``<name>.txt``; the HTML
variant is autoescaped. The token travels as the ``token`` query parameter of
a link under ``APP_BASE_URL``.
"""

from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlencode

import structlog
from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from cardvault.core.exceptions import EmailDeliveryError
from cardvault.domain.interfaces.services import IAccountEmailService, IEmailSender
from cardvault.domain.value_objects.email import mask_email

logger = structlog.get_logger(__name__)

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parents[3] / "templates" / "email"

VERIFY_EMAIL_PATH = "/api/v1/auth/verify-email"
RESET_PASSWORD_PATH = "/api/v1/auth/reset-password"


class AccountEmailService(IAccountEmailService):
    """Builds link emails from templates and hands them to an ``IEmailSender``."""

    def __init__(
        self,
        sender: IEmailSender,
        app_base_url: str,
        app_name: str,
        password_reset_ttl: timedelta,
        email_verification_ttl: timedelta,
        templates_dir: Optional[str] = None,
    ):
        self._sender = sender
        self._app_base_url = app_base_url.rstrip("/")
        self._app_name = app_name
        self._password_reset_ttl = password_reset_ttl
        self._email_verification_ttl = email_verification_ttl
        template_path = Path(templates_dir) if templates_dir else DEFAULT_TEMPLATES_DIR
        self._jinja_env = Environment(
            loader=FileSystemLoader(str(template_path)),
            autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=False),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def build_link(self, path: str, token: str) -> str:
        return f"{self._app_base_url}{path}?{urlencode({'token': token})}"

    async def send_verification_email(self, email: str, token: str) -> None:
        context = {
            "verification_url": self.build_link(VERIFY_EMAIL_PATH, token),
            "expires_hours": int(self._email_verification_ttl.total_seconds() // 3600),
        }
        html_body, text_body = self._render("verify_email", context)
        await self._sender.send_email(email, f"Verify your {self._app_name} email address", html_body, text_body)
        logger.debug("Verification email dispatched", to=mask_email(email))

    async def send_password_reset_email(self, email: str, token: str) -> None:
        context = {
            "reset_url": self.build_link(RESET_PASSWORD_PATH, token),
            "expires_minutes": int(self._password_reset_ttl.total_seconds() // 60),
        }
        html_body, text_body = self._render("password_reset", context)
        await self._sender.send_email(email, f"Reset your {self._app_name} password", html_body, text_body)
        logger.debug("Password reset email dispatched", to=mask_email(email))

    def _render(self, name: str, context: Dict[str, Any]) -> Tuple[str, str]:
        context = {"app_name": self._app_name, **context}
        try:
            html_body = self._jinja_env.get_template(f"{name}.html").render(**context)
            text_body = self._jinja_env.get_template(f"{name}.txt").render(**context)
        except TemplateError as e:
            logger.error("Email template rendering failed", template=name, error=str(e))
            raise EmailDeliveryError(f"Template {name} could not be rendered") from e
        return html_body, text_body
