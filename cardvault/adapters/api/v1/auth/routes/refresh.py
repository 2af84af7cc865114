"""Refresh-token rotation endpoint."""

from fastapi import APIRouter

from cardvault.adapters.api.v1.auth.schemas import RefreshRequest, TokenPairOut
from cardvault.infrastructure.dependency_injection.auth_dependencies import AuthServiceDep

router = APIRouter()


@router.post(
    "",
    response_model=TokenPairOut,
    summary="Rotate a refresh token",
    responses={401: {"description": "Invalid, expired, revoked or already used refresh token"}},
)
async def refresh_tokens(payload: RefreshRequest, auth_service: AuthServiceDep) -> TokenPairOut:
    """Redeem the refresh token for a new pair. Each refresh token works once."""
    pair = await auth_service.refresh_token(payload.refresh_token)
    return TokenPairOut.from_domain(pair)
