import pytest

from cardvault.core.exceptions import InvalidEmailError, InvalidPasswordError
from cardvault.domain.value_objects.password import Password


def test_validate_email_normalizes(credential_validator):
    assert credential_validator.validate_email(" A@B.com ").value == "a@b.com"


def test_validate_email_rejects_non_string(credential_validator):
    with pytest.raises(InvalidEmailError):
        credential_validator.validate_email(None)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("pass1", "Password must be at least 8 characters long"),
        ("password", "Password must contain at least one digit"),
        ("12345678", "Password must contain at least one letter"),
    ],
)
def test_validate_password_rejects_weak_passwords(credential_validator, raw, expected):
    with pytest.raises(InvalidPasswordError) as exc_info:
        credential_validator.validate_password(raw)

    assert expected in exc_info.value.violations


def test_validate_password_aggregates_violations(credential_validator):
    with pytest.raises(InvalidPasswordError) as exc_info:
        credential_validator.validate_password("abc")

    assert len(exc_info.value.violations) == 2
    assert exc_info.value.message == exc_info.value.violations[0]


def test_validate_password_accepts_policy_compliant_password(credential_validator):
    assert credential_validator.validate_password("pass1234") == Password("pass1234")


def test_hash_and_verify(credential_validator):
    # Arrange
    hashed = credential_validator.hash_password(Password("pass1234"))

    # Act / Assert
    assert hashed.value != "pass1234"
    assert hashed.value.startswith("$2b$04$")
    assert credential_validator.verify_password(hashed.value, "pass1234")
    assert not credential_validator.verify_password(hashed.value, "pass12345")


def test_hashes_are_salted(credential_validator):
    first = credential_validator.hash_password(Password("pass1234"))
    second = credential_validator.hash_password(Password("pass1234"))

    assert first != second


@pytest.mark.parametrize("stored", ["", "not-a-hash", "$2b$04$short"])
def test_verify_with_malformed_hash_returns_false(credential_validator, stored):
    assert credential_validator.verify_password(stored, "pass1234") is False


def test_burn_verification_never_raises(credential_validator):
    credential_validator.burn_verification("anything")
    credential_validator.burn_verification(None)
