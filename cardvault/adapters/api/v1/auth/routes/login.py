"""Login endpoint."""

from fastapi import APIRouter, Request

from cardvault.adapters.api.v1.auth.schemas import AccountOut, AuthResponse, LoginRequest, TokenPairOut
from cardvault.infrastructure.dependency_injection.auth_dependencies import AuthServiceDep

router = APIRouter()


@router.post(
    "",
    response_model=AuthResponse,
    summary="Exchange email and password for a token pair",
    responses={401: {"description": "Invalid email or password"}},
)
async def login(request: Request, payload: LoginRequest, auth_service: AuthServiceDep) -> AuthResponse:
    result = await auth_service.login(
        payload.email,
        payload.password,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("User-Agent"),
    )
    return AuthResponse(
        account=AccountOut.model_validate(result.account),
        tokens=TokenPairOut.from_domain(result.tokens),
    )
