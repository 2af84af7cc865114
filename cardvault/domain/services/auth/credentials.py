"""Credential validation and password hashing.

Bcrypt hashing through passlib's ``CryptContext``; the work factor comes from
the :class:`AuthConfig` handed in at construction time.
"""

from passlib.context import CryptContext
from structlog import get_logger

from cardvault.core.exceptions import InvalidPasswordError
from cardvault.domain.value_objects.auth_config import AuthConfig
from cardvault.domain.value_objects.email import Email
from cardvault.domain.value_objects.password import HashedPassword, Password, PasswordPolicy

logger = get_logger(__name__)


class CredentialValidator:
    """Validates and normalizes email/password input and owns password hashing.

    Attributes:
        policy (PasswordPolicy): Rules every new password must satisfy.
    """

    def __init__(self, config: AuthConfig):
        self.policy: PasswordPolicy = config.password_policy
        self._pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=config.bcrypt_rounds,
        )
        # Compared against when no account matches a login, so that unknown
        # emails cost the same bcrypt round as wrong passwords.
        self._dummy_hash = self._pwd_context.hash("cardvault-timing-equalizer-0")

    def validate_email(self, raw: str) -> Email:
        """Normalizes ``raw`` and checks it against the address grammar.

        Raises:
            InvalidEmailError: If the address is empty, too long or malformed.
        """
        return Email(raw if isinstance(raw, str) else "")

    def validate_password(self, raw: str) -> Password:
        """Checks ``raw`` against the configured policy.

        Raises:
            InvalidPasswordError: With every violated rule in ``violations``.
        """
        if not isinstance(raw, str):
            raise InvalidPasswordError(violations=["Password must be a string"])
        violations = self.policy.violations(raw)
        if violations:
            logger.debug("Password rejected by policy", violation_count=len(violations))
            raise InvalidPasswordError(message=violations[0], violations=violations)
        return Password(raw)

    def hash_password(self, password: Password) -> HashedPassword:
        """Hashes a validated password with a fresh salt."""
        return HashedPassword(self._pwd_context.hash(password.value))

    def verify_password(self, hashed_password: str, plain: str) -> bool:
        """Constant-time comparison of ``plain`` against a stored hash.

        Returns False for malformed or unknown hash formats instead of raising,
        so callers cannot distinguish a corrupt record from a wrong password.
        """
        if not hashed_password or not isinstance(plain, str):
            return False
        try:
            return self._pwd_context.verify(plain, hashed_password)
        except (ValueError, TypeError):
            logger.warning("Stored password hash could not be parsed")
            return False

    def burn_verification(self, plain: str) -> None:
        """Runs one verification against a dummy hash and discards the result."""
        self.verify_password(self._dummy_hash, plain if isinstance(plain, str) else "")
