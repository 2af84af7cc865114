"""Authentication router package: registration, login, token, device session and email-link endpoints."""

from fastapi import APIRouter

from .routes import change_password as change_password_route
from .routes import login as login_route
from .routes import logout as logout_route
from .routes import me as me_route
from .routes import password_reset as password_reset_route
from .routes import refresh as refresh_route
from .routes import register as register_route
from .routes import sessions as sessions_route
from .routes import verify_email as verify_email_route

router = APIRouter(prefix="/auth", tags=["auth"])

router.include_router(register_route.router, prefix="/register")
router.include_router(login_route.router, prefix="/login")
router.include_router(refresh_route.router, prefix="/refresh")
router.include_router(logout_route.router, prefix="/logout")
router.include_router(password_reset_route.router, prefix="/password-reset")
router.include_router(verify_email_route.router, prefix="/verify-email")
router.include_router(change_password_route.router, prefix="/change-password")
router.include_router(me_route.router, prefix="/me")
router.include_router(sessions_route.router, prefix="/sessions")

__all__ = ["router"]
