"""Re-export factory functions for generating fake test data."""

from .account import create_fake_account, fake_email, fake_password

__all__ = ["create_fake_account", "fake_email", "fake_password"]
