"""Registration endpoint."""

from fastapi import APIRouter, status

from cardvault.adapters.api.v1.auth.schemas import AccountOut, RegisterRequest
from cardvault.infrastructure.dependency_injection.auth_dependencies import AuthServiceDep

router = APIRouter()


@router.post(
    "",
    response_model=AccountOut,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    responses={
        400: {"description": "Invalid email, password policy violation or password mismatch"},
        409: {"description": "Email already registered"},
    },
)
async def register_account(payload: RegisterRequest, auth_service: AuthServiceDep) -> AccountOut:
    """Create an account and its default deck.

    A verification link is emailed once the account is committed.
    """
    payload.ensure_passwords_match()
    account = await auth_service.register(payload.email, payload.password)
    return AccountOut.model_validate(account)
