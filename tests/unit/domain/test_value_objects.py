from datetime import datetime, timedelta, timezone

import pytest

from cardvault.core.exceptions import InvalidEmailError
from cardvault.domain.value_objects.auth_config import AuthConfig
from cardvault.domain.value_objects.device_session import DeviceSession, describe_device
from cardvault.domain.value_objects.email import Email, mask_email
from cardvault.domain.value_objects.password import HashedPassword, Password, PasswordPolicy
from cardvault.domain.value_objects.token import (
    TokenClaims,
    TokenType,
    generate_token_id,
    mask_token_id,
)


class TestEmail:
    def test_normalizes_case_and_whitespace(self):
        assert Email("  John.Doe@Example.COM ").value == "john.doe@example.com"

    @pytest.mark.parametrize("raw", ["", "   ", "plainaddress", "a@b", "@example.com", "a b@example.com"])
    def test_rejects_malformed_addresses(self, raw):
        with pytest.raises(InvalidEmailError):
            Email(raw)

    def test_rejects_overlong_address(self):
        with pytest.raises(InvalidEmailError):
            Email("a" * 250 + "@example.com")

    def test_parts_and_masking(self):
        email = Email("user@example.com")

        assert email.local_part == "user"
        assert email.domain == "example.com"
        assert email.mask_for_logging() == "us**@e*********m"
        assert str(email) == "user@example.com"

    def test_mask_email_tolerates_invalid_input(self):
        assert mask_email("not-an-email") == "no***"


class TestPasswordPolicy:
    def test_accepts_letters_and_digits(self):
        assert PasswordPolicy().violations("pass1234") == []

    def test_too_short(self):
        assert PasswordPolicy().violations("pass1") == ["Password must be at least 8 characters long"]

    def test_no_digit(self):
        assert PasswordPolicy().violations("password") == ["Password must contain at least one digit"]

    def test_collects_every_violation(self):
        violations = PasswordPolicy().violations("1234")

        assert "Password must be at least 8 characters long" in violations
        assert "Password must contain at least one letter" in violations
        assert len(violations) == 2

    def test_rules_follow_configuration(self):
        policy = PasswordPolicy(min_length=4, require_digit=False)

        assert policy.violations("word") == []

    def test_plain_password_is_never_rendered(self):
        password = Password("pass1234")

        assert "pass1234" not in repr(password)
        assert str(password) == "********"

    def test_hashed_password_cannot_be_empty(self):
        with pytest.raises(ValueError):
            HashedPassword("")


class TestTokenClaims:
    def test_payload_round_trip_keeps_every_claim(self):
        issued = datetime(2025, 1, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
        claims = TokenClaims(
            subject=7,
            token_type=TokenType.REFRESH,
            issued_at=issued,
            expires_at=issued + timedelta(days=7),
            issuer="cardvault",
            token_id="abc",
        )

        restored = TokenClaims.from_payload(claims.to_payload())

        assert restored.subject == 7
        assert restored.token_type is TokenType.REFRESH
        assert abs((restored.issued_at - issued).total_seconds()) < 1e-5
        assert restored.expires_at == issued.replace(microsecond=0) + timedelta(days=7)

    def test_missing_claims_are_rejected(self):
        with pytest.raises(ValueError, match="jti"):
            TokenClaims.from_payload({"sub": "1", "type": "access", "iat": 1, "exp": 2, "iss": "x"})

    def test_unknown_type_is_rejected(self):
        with pytest.raises(ValueError):
            TokenClaims.from_payload(
                {"sub": "1", "type": "admin", "iat": 1, "exp": 2, "iss": "x", "jti": "j"}
            )

    def test_remaining_seconds_never_negative(self):
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        claims = TokenClaims(1, TokenType.ACCESS, past, past + timedelta(minutes=1), "x", "j")

        assert claims.remaining_seconds() == 0

    def test_token_ids_are_unique_and_url_safe(self):
        ids = {generate_token_id() for _ in range(50)}

        assert len(ids) == 50
        assert all(len(i) == 43 and "=" not in i for i in ids)
        assert mask_token_id("abcdefgh") == "abcd****"

    def test_session_claim_round_trip(self):
        now = datetime.now(timezone.utc)
        claims = TokenClaims(1, TokenType.ACCESS, now, now + timedelta(minutes=1), "x", "j", session_id="s1")

        assert claims.to_payload()["sid"] == "s1"
        assert TokenClaims.from_payload(claims.to_payload()).session_id == "s1"


class TestAuthConfig:
    def test_short_secret_is_rejected(self):
        with pytest.raises(ValueError):
            AuthConfig(jwt_secret_key="too-short")

    def test_ttl_for_each_type(self, auth_config):
        assert auth_config.ttl_for(TokenType.ACCESS) == timedelta(minutes=15)
        assert auth_config.ttl_for(TokenType.REFRESH) == timedelta(days=7)
        assert auth_config.ttl_for(TokenType.PASSWORD_RESET) == timedelta(minutes=60)
        assert auth_config.ttl_for(TokenType.EMAIL_VERIFY) == timedelta(hours=24)


class TestDeviceSession:
    def test_start_describes_device(self):
        session = DeviceSession.start(4, ip_address="10.0.0.1", user_agent="  curl/8.5  ")

        assert session.account_id == 4
        assert session.device_info == "curl/8.5"
        assert session.created_at == session.last_activity
        assert len(session.session_id) == 64

    @pytest.mark.parametrize("user_agent", [None, "", "   "])
    def test_missing_user_agent_is_unknown(self, user_agent):
        assert describe_device(user_agent) == "Unknown"

    def test_device_info_is_capped(self):
        assert len(describe_device("x" * 1000)) == 255

    def test_json_round_trip(self):
        session = DeviceSession.start(4, user_agent="Safari").touched()

        assert DeviceSession.from_json(session.to_json()) == session

    @pytest.mark.parametrize("raw", ["{not json", "[]", '{"session_id": "s"}'])
    def test_unreadable_json_is_rejected(self, raw):
        with pytest.raises(ValueError):
            DeviceSession.from_json(raw)
