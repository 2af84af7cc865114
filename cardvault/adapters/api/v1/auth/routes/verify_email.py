"""Email-verification endpoints."""

from fastapi import APIRouter

from cardvault.adapters.api.v1.auth.schemas import MessageResponse, ResendVerificationRequest, VerifyEmailRequest
from cardvault.infrastructure.dependency_injection.auth_dependencies import AuthServiceDep

router = APIRouter()


@router.post(
    "",
    response_model=MessageResponse,
    summary="Verify an email address",
    responses={401: {"description": "Invalid, expired or already used token"}},
)
async def verify_email(payload: VerifyEmailRequest, auth_service: AuthServiceDep) -> MessageResponse:
    await auth_service.verify_email(payload.token)
    return MessageResponse(message="Email address verified")


@router.post("/resend", response_model=MessageResponse, summary="Resend the verification email")
async def resend_verification_email(
    payload: ResendVerificationRequest, auth_service: AuthServiceDep
) -> MessageResponse:
    """Same answer whether or not the email is registered or already verified."""
    await auth_service.resend_verification_email(payload.email)
    return MessageResponse(message="If the address needs verification, a new link has been sent")
