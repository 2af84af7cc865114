"""Subpackage aggregating individual auth route modules."""

__all__ = [
    "change_password",
    "login",
    "logout",
    "me",
    "password_reset",
    "refresh",
    "register",
    "sessions",
    "verify_email",
]
