"""Authentication Orchestrator.

Coordinates the credential validator, the token service, the session service
and the transaction manager into the account lifecycle operations exposed by
the API: registration, login, refresh-token rotation, logout, password reset,
password change, email verification and device session management.

Conceptually every token pair moves through
``Issued -> {Redeemed(once) -> Issued(new pair)} | Revoked``. A refresh token
is *live* while its session entry exists, and is refused once rotated away or
revoked, whatever its signature says. Every pair also names the device session
its login started; ending that session retires the pair.
"""

from dataclasses import dataclass
from functools import partial
from typing import List, Optional

import structlog

from cardvault.core.exceptions import (
    EmailAlreadyExistsError,
    InfrastructureError,
    InvalidCredentialsError,
    InvalidEmailError,
    InvalidTokenError,
    SessionNotFoundError,
    TokenVerificationError,
)
from cardvault.domain.entities.account import Account
from cardvault.domain.events.account_events import (
    AccountLoggedInEvent,
    AccountRegisteredEvent,
    BaseDomainEvent,
    EmailVerifiedEvent,
    PasswordChangedEvent,
)
from cardvault.domain.interfaces.repositories import IAccountRepository, IDefaultResourceProvisioner
from cardvault.domain.interfaces.services import (
    IAccountEmailService,
    IEventPublisher,
    ITransactionManager,
)
from cardvault.domain.services.auth.credentials import CredentialValidator
from cardvault.domain.services.auth.session import SessionService
from cardvault.domain.services.auth.token import TokenService
from cardvault.domain.value_objects.auth_config import AuthConfig
from cardvault.domain.value_objects.device_session import DeviceSession
from cardvault.domain.value_objects.email import mask_email
from cardvault.domain.value_objects.token import TokenClaims, TokenPair, TokenType, mask_token_id

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login."""

    tokens: TokenPair
    account: Account


class AuthService:
    """Domain service orchestrating the account credential and token lifecycle.

    Every collaborator is passed in explicitly; the service holds no global
    state and can be built once per process or per request.

    Error surface:
    - Validation problems raise ``InvalidEmailError`` / ``InvalidPasswordError``.
    - Login and password checks raise ``InvalidCredentialsError`` whatever the
      underlying reason.
    - Every token problem raises ``InvalidTokenError``.
    - A device session that is missing or not owned raises
      ``SessionNotFoundError``.
    - Store failures propagate as ``InfrastructureError`` subclasses, except in
      logout, the two "send me an email" operations and the revocation that
      follows a committed password change, which never fail the caller.
    """

    def __init__(
        self,
        config: AuthConfig,
        account_repository: IAccountRepository,
        resource_provisioner: IDefaultResourceProvisioner,
        event_publisher: IEventPublisher,
        transaction_manager: ITransactionManager,
        session_service: SessionService,
        account_email_service: IAccountEmailService,
        token_service: Optional[TokenService] = None,
        credential_validator: Optional[CredentialValidator] = None,
    ):
        self._config = config
        self._accounts = account_repository
        self._provisioner = resource_provisioner
        self._events = event_publisher
        self._transactions = transaction_manager
        self._sessions = session_service
        self._account_emails = account_email_service
        self._tokens = token_service or TokenService(config)
        self._credentials = credential_validator or CredentialValidator(config)

    # ------------------------------------------------------------------
    # Registration and login
    # ------------------------------------------------------------------

    async def register(self, email: str, password: str) -> Account:
        """Create an account together with its default deck.

        The account row, the default deck and the registration event are one
        atomic unit: the event is only delivered once the transaction has
        committed, and nothing is written if any step fails.

        Raises:
            InvalidEmailError: The email is malformed.
            InvalidPasswordError: The password breaks the policy.
            EmailAlreadyExistsError: The email is already registered.
            TransactionFailureError: The primary store refused the writes.
        """
        valid_email = self._credentials.validate_email(email)
        valid_password = self._credentials.validate_password(password)

        if await self._accounts.exists_by_email(valid_email.value):
            logger.warning(
                "Registration failed - email already exists",
                email=valid_email.mask_for_logging(),
            )
            raise EmailAlreadyExistsError()

        async def create_account() -> Account:
            hashed_password = self._credentials.hash_password(valid_password)
            account = await self._accounts.save(
                Account(email=valid_email.value, hashed_password=hashed_password.value)
            )
            deck_id = await self._provisioner.create_default_resource(account.id)
            self._after_commit_publish(
                AccountRegisteredEvent.create(account.id, account.email, default_deck_id=deck_id)
            )
            if self._config.send_verification_on_register:
                self._transactions.after_commit(partial(self._send_verification_email, account))
            return account

        account = await self._transactions.run_in_transaction(create_account)
        logger.info(
            "Account registered",
            account_id=account.id,
            email=valid_email.mask_for_logging(),
        )
        return account

    async def login(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> LoginResult:
        """Exchange credentials for a fresh token pair.

        The login time is committed first; only then is a device session
        recorded for the client and the refresh session stored, so a failed
        commit leaves no live session behind.

        Raises:
            InvalidCredentialsError: For a malformed or unknown email, a
                deactivated account or a wrong password alike.
        """
        try:
            valid_email = self._credentials.validate_email(email)
        except InvalidEmailError:
            self._credentials.burn_verification(password)
            logger.info("Login failed", reason="malformed_email", email=mask_email(email))
            raise InvalidCredentialsError()

        account = await self._accounts.find_by_email(valid_email.value)
        if account is None or not account.is_active:
            self._credentials.burn_verification(password)
            logger.info("Login failed", reason="unknown_or_inactive", email=valid_email.mask_for_logging())
            raise InvalidCredentialsError()

        if not self._credentials.verify_password(account.hashed_password, password):
            logger.info("Login failed", reason="wrong_password", account_id=account.id)
            raise InvalidCredentialsError()

        previous_login_at = account.last_login_at

        async def record_login() -> Account:
            account.record_login()
            saved = await self._accounts.save(account)
            self._after_commit_publish(
                AccountLoggedInEvent.create(
                    saved.id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    previous_login_at=previous_login_at,
                )
            )
            return saved

        saved = await self._transactions.run_in_transaction(record_login)

        # Nothing is written to the session store before the login is committed
        device = await self._sessions.start_device_session(saved.id, ip_address=ip_address, user_agent=user_agent)
        pair, _, refresh_claims = self._tokens.issue_pair(saved.id, device.session_id)
        try:
            await self._sessions.store_refresh_session(pair.refresh_token, refresh_claims)
        except InfrastructureError:
            await self._end_device_session_quietly(saved.id, device.session_id)
            raise

        logger.info("Login succeeded", account_id=saved.id, jti=refresh_claims.masked_id())
        return LoginResult(tokens=pair, account=saved)

    # ------------------------------------------------------------------
    # Token lifecycle
    # ------------------------------------------------------------------

    async def refresh_token(self, raw_refresh_token: str) -> TokenPair:
        """Redeem a refresh token for a new pair, consuming it.

        The new pair stays bound to the device session of the old one, whose
        last activity moves to now.

        Raises:
            InvalidTokenError: The token is malformed, expired, of another
                type, revoked, already rotated, its device session was ended,
                or its account is gone.
        """
        claims = self._verify(raw_refresh_token, TokenType.REFRESH)

        if await self._sessions.is_revoked_by_watermark(claims):
            logger.info("Refresh refused - account tokens revoked", account_id=claims.subject)
            raise InvalidTokenError()

        if not await self._sessions.is_refresh_session_live(raw_refresh_token):
            logger.warning(
                "Refresh refused - session not live",
                account_id=claims.subject,
                jti=claims.masked_id(),
            )
            raise InvalidTokenError()

        if not await self._sessions.is_device_session_live(claims):
            await self._sessions.revoke_refresh_session(raw_refresh_token)
            logger.info("Refresh refused - device session ended", account_id=claims.subject)
            raise InvalidTokenError()

        account = await self._accounts.find_by_id(claims.subject)
        if account is None or not account.is_active:
            await self._sessions.revoke_refresh_session(raw_refresh_token)
            logger.warning("Refresh refused - account inactive", account_id=claims.subject)
            raise InvalidTokenError()

        pair, _, new_refresh_claims = self._tokens.issue_pair(account.id, claims.session_id)
        if not await self._sessions.rotate(raw_refresh_token, pair.refresh_token, new_refresh_claims):
            raise InvalidTokenError()

        if claims.session_id is not None:
            try:
                await self._sessions.touch_device_session(claims.session_id)
            except InfrastructureError as e:
                logger.warning("Device session activity not updated", account_id=account.id, error=e.code)

        logger.info(
            "Tokens rotated",
            account_id=account.id,
            old_jti=claims.masked_id(),
            new_jti=new_refresh_claims.masked_id(),
        )
        return pair

    async def logout(self, access_token: Optional[str], refresh_token: Optional[str]) -> None:
        """Revoke the given tokens as far as possible. Never raises.

        The refresh session is deleted, the device session named by either
        token is ended, and the access token, when it still verifies, is
        blacklisted for the rest of its lifetime. Session store failures are
        logged and otherwise ignored.
        """
        devices = set()
        if refresh_token:
            try:
                existed = await self._sessions.revoke_refresh_session(refresh_token)
                logger.debug("Refresh session revoked on logout", existed=existed)
            except Exception as e:
                logger.warning("Refresh session revocation failed on logout", error=str(e))
            refresh_claims = self._verify_quietly(refresh_token, TokenType.REFRESH)
            if refresh_claims is not None and refresh_claims.session_id is not None:
                devices.add((refresh_claims.subject, refresh_claims.session_id))

        claims = self._verify_quietly(access_token, TokenType.ACCESS) if access_token else None
        if claims is not None and claims.session_id is not None:
            devices.add((claims.subject, claims.session_id))

        for account_id, session_id in devices:
            await self._end_device_session_quietly(account_id, session_id)

        if claims is None:
            return
        try:
            await self._sessions.blacklist_access_token(claims.token_id, claims.remaining_seconds())
        except Exception as e:
            logger.warning(
                "Access token blacklisting failed on logout",
                account_id=claims.subject,
                error=str(e),
            )
            return
        logger.info("Logout completed", account_id=claims.subject)

    async def authenticate(self, access_token: str) -> Account:
        """Resolve a bearer access token to its active account.

        Raises:
            InvalidTokenError: The token fails verification, was blacklisted,
                predates a revoke-all, belongs to an ended device session, or
                its account is gone.
        """
        claims = self._verify(access_token, TokenType.ACCESS)
        if await self._sessions.is_access_token_blacklisted(claims.token_id):
            logger.info("Blacklisted access token presented", account_id=claims.subject)
            raise InvalidTokenError()
        if await self._sessions.is_revoked_by_watermark(claims):
            logger.info("Revoked access token presented", account_id=claims.subject)
            raise InvalidTokenError()
        if not await self._sessions.is_device_session_live(claims):
            logger.info("Access token of an ended device session presented", account_id=claims.subject)
            raise InvalidTokenError()

        account = await self._accounts.find_by_id(claims.subject)
        if account is None or not account.is_active:
            raise InvalidTokenError()
        return account

    def current_session_id(self, access_token: Optional[str]) -> Optional[str]:
        """The device session an access token belongs to, if it verifies and names one."""
        claims = self._verify_quietly(access_token, TokenType.ACCESS) if access_token else None
        return claims.session_id if claims is not None else None

    # ------------------------------------------------------------------
    # Device sessions
    # ------------------------------------------------------------------

    async def list_sessions(self, account_id: int) -> List[DeviceSession]:
        """The account's signed-in devices, most recently active first."""
        return await self._sessions.list_device_sessions(account_id)

    async def get_session(self, account_id: int, session_id: str) -> DeviceSession:
        """One device session of ``account_id``.

        Raises:
            SessionNotFoundError: The session does not exist or belongs to
                another account.
        """
        session = await self._sessions.get_device_session(session_id)
        if session is None or session.account_id != account_id:
            raise SessionNotFoundError()
        return session

    async def revoke_session(self, account_id: int, session_id: str) -> None:
        """Sign one device out; its access and refresh tokens stop working.

        Raises:
            SessionNotFoundError: The session does not exist or belongs to
                another account.
        """
        await self.get_session(account_id, session_id)
        await self._sessions.end_device_session(account_id, session_id)
        logger.info("Device session revoked", account_id=account_id, session_id=mask_token_id(session_id))

    async def revoke_all_sessions(self, account_id: int) -> int:
        """Sign every device of the account out, including the calling one.

        Returns:
            int: How many device sessions were ended.
        """
        return await self._sessions.end_all_device_sessions(account_id)

    # ------------------------------------------------------------------
    # Password reset and change
    # ------------------------------------------------------------------

    async def request_password_reset(self, email: str) -> None:
        """Email a reset link if ``email`` belongs to an active account.

        Always returns normally, whether or not the account exists, so the
        response cannot be used to enumerate accounts.
        """
        try:
            valid_email = self._credentials.validate_email(email)
        except InvalidEmailError:
            logger.info("Password reset requested for malformed email", email=mask_email(email))
            return

        try:
            account = await self._accounts.find_by_email(valid_email.value)
            if account is None or not account.is_active:
                logger.info(
                    "Password reset requested for unknown account",
                    email=valid_email.mask_for_logging(),
                )
                return
            token, claims = self._tokens.issue(account.id, TokenType.PASSWORD_RESET)
            await self._account_emails.send_password_reset_email(account.email, token)
        except InfrastructureError as e:
            logger.error(
                "Password reset email could not be sent",
                email=valid_email.mask_for_logging(),
                error=e.code,
            )
            return
        logger.info("Password reset email sent", account_id=account.id, jti=claims.masked_id())

    async def reset_password(self, token: str, new_password: str) -> None:
        """Set a new password using an emailed reset token.

        A reset token works once. On success every token issued to the account
        before the reset is revoked.

        Raises:
            InvalidTokenError: The token fails verification, was already used
                or its account is gone.
            InvalidPasswordError: The new password breaks the policy.
        """
        claims = self._verify(token, TokenType.PASSWORD_RESET)
        if await self._sessions.is_revoked_by_watermark(claims):
            raise InvalidTokenError()

        password = self._credentials.validate_password(new_password)

        account = await self._accounts.find_by_id(claims.subject)
        if account is None or not account.is_active:
            raise InvalidTokenError()

        if not await self._sessions.consume_single_use(claims):
            raise InvalidTokenError()

        await self._replace_password(account, self._credentials.hash_password(password).value, "reset")
        logger.info("Password reset completed", account_id=account.id)

    async def change_password(self, account_id: int, current_password: str, new_password: str) -> None:
        """Replace the password of an authenticated account.

        Raises:
            InvalidCredentialsError: ``current_password`` is wrong.
            InvalidPasswordError: ``new_password`` breaks the policy.
        """
        account = await self._accounts.find_by_id(account_id)
        if account is None or not account.is_active:
            raise InvalidCredentialsError()
        if not self._credentials.verify_password(account.hashed_password, current_password):
            logger.info("Password change refused - wrong current password", account_id=account_id)
            raise InvalidCredentialsError()

        password = self._credentials.validate_password(new_password)
        await self._replace_password(account, self._credentials.hash_password(password).value, "change")
        logger.info("Password changed", account_id=account.id)

    # ------------------------------------------------------------------
    # Email verification
    # ------------------------------------------------------------------

    async def resend_verification_email(self, email: str) -> None:
        """Email a new verification link if the account is still unverified.

        Always returns normally, like :meth:`request_password_reset`.
        """
        try:
            valid_email = self._credentials.validate_email(email)
        except InvalidEmailError:
            return

        try:
            account = await self._accounts.find_by_email(valid_email.value)
        except InfrastructureError as e:
            logger.error("Verification resend lookup failed", error=e.code)
            return
        if account is None or not account.is_active or account.email_verified:
            logger.info(
                "Verification email not resent",
                email=valid_email.mask_for_logging(),
            )
            return
        await self._send_verification_email(account)

    async def verify_email(self, token: str) -> None:
        """Mark the account's email verified using an emailed token.

        Raises:
            InvalidTokenError: The token fails verification, was already used
                or its account is gone.
        """
        claims = self._verify(token, TokenType.EMAIL_VERIFY)

        account = await self._accounts.find_by_id(claims.subject)
        if account is None or not account.is_active:
            raise InvalidTokenError()

        if not await self._sessions.consume_single_use(claims):
            raise InvalidTokenError()

        if account.email_verified:
            logger.info("Email already verified", account_id=account.id)
            return

        async def mark_verified() -> Account:
            account.mark_email_verified()
            saved = await self._accounts.save(account)
            self._after_commit_publish(EmailVerifiedEvent.create(saved.id, saved.email))
            return saved

        await self._transactions.run_in_transaction(mark_verified)
        logger.info("Email verified", account_id=account.id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _verify(self, raw: str, expected_type: TokenType) -> TokenClaims:
        try:
            return self._tokens.verify(raw, expected_type)
        except TokenVerificationError as e:
            logger.info("Token rejected", reason=e.code, expected_type=expected_type.value)
            raise InvalidTokenError() from e

    def _verify_quietly(self, raw: str, expected_type: TokenType) -> Optional[TokenClaims]:
        try:
            return self._tokens.verify(raw, expected_type)
        except TokenVerificationError as e:
            logger.debug("Token ignored", reason=e.code, expected_type=expected_type.value)
            return None

    async def _end_device_session_quietly(self, account_id: int, session_id: str) -> None:
        try:
            await self._sessions.end_device_session(account_id, session_id)
        except InfrastructureError as e:
            logger.warning(
                "Device session could not be ended",
                account_id=account_id,
                session_id=mask_token_id(session_id),
                error=e.code,
            )

    async def _replace_password(self, account: Account, hashed_password: str, method: str) -> None:
        """Stores the new hash, then revokes every earlier token of the account.

        A session store failure during the revocation is logged, not raised.
        """

        async def update() -> Account:
            account.change_password_hash(hashed_password)
            saved = await self._accounts.save(account)
            self._after_commit_publish(PasswordChangedEvent.create(saved.id, method))
            return saved

        await self._transactions.run_in_transaction(update)
        try:
            await self._sessions.revoke_all_for_account(account.id)
        except InfrastructureError as e:
            logger.error(
                "Token revocation after password change failed",
                account_id=account.id,
                method=method,
                error=e.code,
            )

    def _after_commit_publish(self, event: BaseDomainEvent) -> None:
        self._transactions.after_commit(partial(self._events.publish, event))

    async def _send_verification_email(self, account: Account) -> None:
        token, claims = self._tokens.issue(account.id, TokenType.EMAIL_VERIFY)
        try:
            await self._account_emails.send_verification_email(account.email, token)
        except InfrastructureError as e:
            logger.error("Verification email could not be sent", account_id=account.id, error=e.code)
            return
        logger.info("Verification email sent", account_id=account.id, jti=claims.masked_id())
