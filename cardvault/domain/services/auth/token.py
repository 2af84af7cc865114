from datetime import datetime, timezone
from typing import Optional

import jwt
from jwt import decode as jwt_decode, encode as jwt_encode
from structlog import get_logger

from cardvault.core.exceptions import (
    ExpiredTokenError,
    MalformedTokenError,
    SignatureInvalidError,
    WrongTokenTypeError,
)
from cardvault.domain.value_objects.auth_config import AuthConfig
from cardvault.domain.value_objects.token import (
    TokenClaims,
    TokenPair,
    TokenType,
    generate_token_id,
    mask_token_id,
)

logger = get_logger(__name__)


class TokenService:
    """Issues and verifies the signed tokens of every purpose the service uses.

    Tokens are JWTs signed with a shared secret (HS256 by default). Every token
    carries ``sub``, ``type``, ``iat``, ``exp``, ``iss`` and a random ``jti``
    (plus ``sid`` for tokens bound to a device session);
    the ``type`` claim is checked on every verification so a token issued for
    one purpose is refused for any other.

    The service is pure: it never touches the session store. Revocation and
    rotation bookkeeping live in :class:`SessionService`.

    Attributes:
        config (AuthConfig): Signing key, algorithm, issuer and lifetimes.
    """

    def __init__(self, config: AuthConfig):
        self.config = config

    def issue(
        self,
        account_id: int,
        token_type: TokenType,
        now: Optional[datetime] = None,
        session_id: Optional[str] = None,
    ) -> tuple[str, TokenClaims]:
        """Create a signed token for ``account_id``.

        Args:
            account_id (int): Subject of the token.
            token_type (TokenType): Purpose bound into the ``type`` claim.
            now (datetime, optional): Issue time, defaults to the current UTC time.
            session_id (str, optional): Device session bound into the ``sid`` claim.

        Returns:
            tuple[str, TokenClaims]: The encoded token and the claims it carries.
        """
        issued_at = now or datetime.now(timezone.utc)
        claims = TokenClaims(
            subject=account_id,
            token_type=token_type,
            issued_at=issued_at,
            expires_at=issued_at + self.config.ttl_for(token_type),
            issuer=self.config.jwt_issuer,
            token_id=generate_token_id(),
            session_id=session_id,
        )
        token = jwt_encode(
            claims.to_payload(), self.config.jwt_secret_key, algorithm=self.config.jwt_algorithm
        )
        logger.debug(
            "Token issued",
            account_id=account_id,
            token_type=token_type.value,
            jti=claims.masked_id(),
        )
        return token, claims

    def issue_pair(
        self, account_id: int, session_id: Optional[str] = None
    ) -> tuple[TokenPair, TokenClaims, TokenClaims]:
        """Create an access/refresh pair sharing one issue time and device session.

        Returns:
            tuple: The ``TokenPair`` plus the access and refresh claims, which the
            caller needs for session bookkeeping.
        """
        now = datetime.now(timezone.utc)
        access_token, access_claims = self.issue(account_id, TokenType.ACCESS, now, session_id)
        refresh_token, refresh_claims = self.issue(account_id, TokenType.REFRESH, now, session_id)
        pair = TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=int(self.config.access_token_ttl.total_seconds()),
            refresh_expires_in=int(self.config.refresh_token_ttl.total_seconds()),
        )
        return pair, access_claims, refresh_claims

    def verify(self, raw: str, expected_type: TokenType) -> TokenClaims:
        """Verify ``raw`` and return its claims.

        Signature, expiry, issuer, claim shape and the ``type`` claim are all
        checked. Each failure raises a distinct subclass of
        ``TokenVerificationError`` so callers and logs can tell them apart.

        Raises:
            MalformedTokenError: Not a JWT, missing claims, unknown type or wrong issuer.
            ExpiredTokenError: ``exp`` is in the past.
            SignatureInvalidError: The signature does not match the key.
            WrongTokenTypeError: Valid token issued for another purpose.
        """
        if not raw or not isinstance(raw, str):
            raise MalformedTokenError("Token is empty")
        try:
            payload = jwt_decode(
                raw,
                self.config.jwt_secret_key,
                algorithms=[self.config.jwt_algorithm],
                issuer=self.config.jwt_issuer,
                options={"require": list(TokenClaims.REQUIRED_CLAIMS)},
            )
        except jwt.ExpiredSignatureError as e:
            raise ExpiredTokenError() from e
        except jwt.InvalidSignatureError as e:
            raise SignatureInvalidError() from e
        except jwt.PyJWTError as e:
            raise MalformedTokenError(f"Token could not be decoded: {e}") from e

        try:
            claims = TokenClaims.from_payload(payload)
        except (ValueError, TypeError) as e:
            raise MalformedTokenError(f"Token claims are invalid: {e}") from e

        if claims.token_type is not expected_type:
            logger.warning(
                "Token presented for the wrong purpose",
                expected=expected_type.value,
                actual=claims.token_type.value,
                jti=mask_token_id(claims.token_id),
            )
            raise WrongTokenTypeError()
        return claims
