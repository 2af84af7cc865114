"""Authenticated password change."""

from fastapi import APIRouter

from cardvault.adapters.api.v1.auth.dependencies import CurrentAccount
from cardvault.adapters.api.v1.auth.schemas import ChangePasswordRequest, MessageResponse
from cardvault.infrastructure.dependency_injection.auth_dependencies import AuthServiceDep

router = APIRouter()


@router.post(
    "",
    response_model=MessageResponse,
    summary="Change the password of the current account",
    responses={
        400: {"description": "Password policy violation or password mismatch"},
        401: {"description": "Missing or invalid token, or wrong current password"},
    },
)
async def change_password(
    payload: ChangePasswordRequest,
    account: CurrentAccount,
    auth_service: AuthServiceDep,
) -> MessageResponse:
    """Every token issued before the change stops working, including the one used here."""
    payload.ensure_passwords_match()
    await auth_service.change_password(account.id, payload.current_password, payload.new_password)
    return MessageResponse(message="Password has been changed")
