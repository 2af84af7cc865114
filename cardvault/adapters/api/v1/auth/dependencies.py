"""FastAPI dependencies resolving the bearer access token."""

from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from cardvault.core.exceptions import InvalidTokenError
from cardvault.domain.entities.account import Account
from cardvault.infrastructure.dependency_injection.auth_dependencies import AuthServiceDep

bearer_scheme = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> Optional[str]:
    """The raw bearer token, or ``None`` when the header is absent."""
    return credentials.credentials if credentials else None


async def get_current_account(
    token: Annotated[Optional[str], Depends(get_bearer_token)],
    auth_service: AuthServiceDep,
) -> Account:
    """Resolve the request's access token to an active account.

    Raises:
        InvalidTokenError: Missing, invalid or revoked token (401).
    """
    if not token:
        raise InvalidTokenError()
    return await auth_service.authenticate(token)


BearerToken = Annotated[Optional[str], Depends(get_bearer_token)]
CurrentAccount = Annotated[Account, Depends(get_current_account)]
