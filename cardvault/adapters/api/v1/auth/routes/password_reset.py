"""Password-reset endpoints."""

from fastapi import APIRouter

from cardvault.adapters.api.v1.auth.schemas import ForgotPasswordRequest, MessageResponse, ResetPasswordRequest
from cardvault.infrastructure.dependency_injection.auth_dependencies import AuthServiceDep

router = APIRouter()


@router.post("/request", response_model=MessageResponse, summary="Request a password-reset email")
async def request_password_reset(payload: ForgotPasswordRequest, auth_service: AuthServiceDep) -> MessageResponse:
    """Same answer whether or not the email is registered."""
    await auth_service.request_password_reset(payload.email)
    return MessageResponse(message="If the address is registered, a reset link has been sent")


@router.post(
    "/confirm",
    response_model=MessageResponse,
    summary="Set a new password with a reset token",
    responses={
        400: {"description": "Password policy violation or password mismatch"},
        401: {"description": "Invalid, expired or already used token"},
    },
)
async def confirm_password_reset(payload: ResetPasswordRequest, auth_service: AuthServiceDep) -> MessageResponse:
    payload.ensure_passwords_match()
    await auth_service.reset_password(payload.token, payload.new_password)
    return MessageResponse(message="Password has been reset")
