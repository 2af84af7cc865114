from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlparse

import pytest

from cardvault.core.exceptions import EmailDeliveryError
from cardvault.domain.interfaces.services import IEmailSender
from cardvault.infrastructure.services.email import AccountEmailService, SmtpEmailSender

TOKEN = "eyJhbGciOiJIUzI1NiJ9.eyJzdWIiOiIxIn0.sig+/="


@pytest.fixture
def sender():
    return AsyncMock(spec=IEmailSender)


@pytest.fixture
def service(sender):
    return AccountEmailService(
        sender=sender,
        app_base_url="https://cards.example.com/",
        app_name="cardvault",
        password_reset_ttl=timedelta(minutes=60),
        email_verification_ttl=timedelta(hours=24),
    )


def _token_from(body: str, path: str) -> str:
    start = body.index("https://cards.example.com" + path)
    url = body[start:].split()[0]
    return parse_qs(urlparse(url).query)["token"][0]


@pytest.mark.asyncio
async def test_verification_email_embeds_token_link(service, sender):
    # Act
    await service.send_verification_email("a@example.com", TOKEN)

    # Assert
    to, subject, html_body, text_body = sender.send_email.await_args.args
    assert to == "a@example.com"
    assert "Verify" in subject
    assert _token_from(text_body, "/api/v1/auth/verify-email") == TOKEN
    assert "24 hours" in text_body
    assert "token=" in html_body


@pytest.mark.asyncio
async def test_reset_email_embeds_token_link(service, sender):
    await service.send_password_reset_email("a@example.com", TOKEN)

    _, subject, _, text_body = sender.send_email.await_args.args
    assert "Reset" in subject
    assert _token_from(text_body, "/api/v1/auth/reset-password") == TOKEN
    assert "60 minutes" in text_body


def test_build_link_url_encodes_token(service):
    link = service.build_link("/x", "a+b/c=")

    assert link == "https://cards.example.com/x?token=a%2Bb%2Fc%3D"


@pytest.mark.asyncio
async def test_missing_template_is_a_delivery_error(sender, tmp_path):
    service = AccountEmailService(
        sender=sender,
        app_base_url="https://cards.example.com",
        app_name="cardvault",
        password_reset_ttl=timedelta(minutes=60),
        email_verification_ttl=timedelta(hours=24),
        templates_dir=str(tmp_path),
    )

    with pytest.raises(EmailDeliveryError):
        await service.send_verification_email("a@example.com", TOKEN)
    sender.send_email.assert_not_awaited()


@pytest.mark.asyncio
async def test_smtp_sender_in_test_mode_captures_messages():
    sender = SmtpEmailSender(MagicMock(EMAIL_TEST_MODE=True))

    await sender.send_email("a@example.com", "Hello", "<p>hi</p>", "hi")

    assert len(sender.outbox) == 1
    assert sender.outbox[0].subject == "Hello"


@pytest.mark.asyncio
async def test_smtp_sender_wraps_transport_errors(mocker):
    mocker.patch("cardvault.infrastructure.services.email.smtp_sender.ConnectionConfig")
    fastmail_cls = mocker.patch("cardvault.infrastructure.services.email.smtp_sender.FastMail")
    fastmail_cls.return_value.send_message = AsyncMock(side_effect=OSError("refused"))
    sender = SmtpEmailSender(MagicMock(EMAIL_TEST_MODE=False))

    with pytest.raises(EmailDeliveryError):
        await sender.send_email("a@example.com", "Hello", "<p>hi</p>", "hi")
