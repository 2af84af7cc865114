from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, text
from sqlmodel import Column, Field, Index, SQLModel, String


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(SQLModel, table=True):
    """Represents an Account entity and acts as an Aggregate Root.

    An account is the identity behind every token the service issues. It is
    created by registration and afterwards only mutated: a login stamps
    ``last_login_at``, verification flips ``email_verified``, a password reset
    or change replaces ``hashed_password``. Accounts are never hard-deleted;
    ``deleted_at`` marks a soft delete and makes the account inactive.

    Attributes:
        id: The unique identifier for the account (primary key).
        email: A unique, lowercase email address used to log in.
        hashed_password: The one-way bcrypt hash. Never empty once persisted.
        email_verified: Whether the owner proved control of ``email``.
        created_at: When the account was registered.
        updated_at: When the account was last modified.
        last_login_at: When the last successful login happened.
        deleted_at: Soft-delete marker; inactive when set.
    """

    __tablename__ = "accounts"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(
        sa_column=Column(String(254), unique=True, index=True, nullable=False),
        description="Unique, lowercase email address for login and notifications.",
    )
    hashed_password: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Bcrypt hash of the account password.",
    )
    email_verified: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False),
    )
    last_login_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    deleted_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )

    __table_args__ = (
        Index("ix_accounts_email_lower", text("lower(email)"), unique=True),
        {"extend_existing": True},
    )

    @property
    def is_active(self) -> bool:
        """Soft-deleted accounts cannot log in or use their tokens."""
        return self.deleted_at is None

    def record_login(self) -> None:
        now = utcnow()
        self.last_login_at = now
        self.updated_at = now

    def mark_email_verified(self) -> None:
        self.email_verified = True
        self.updated_at = utcnow()

    def change_password_hash(self, hashed_password: str) -> None:
        """Replaces the stored hash.

        Raises:
            ValueError: If ``hashed_password`` is empty.
        """
        if not hashed_password:
            raise ValueError("Password hash cannot be empty")
        self.hashed_password = hashed_password
        self.updated_at = utcnow()

    def soft_delete(self) -> None:
        now = utcnow()
        self.deleted_at = now
        self.updated_at = now
