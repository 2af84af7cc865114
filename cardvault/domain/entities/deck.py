from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, text
from sqlmodel import Column, Field, SQLModel

from .account import utcnow


class Deck(SQLModel, table=True):
    """The slice of the deck table the account service writes.

    Registration provisions exactly one default deck per account; every other
    deck operation belongs to the content service.
    """

    __tablename__ = "decks"

    id: Optional[int] = Field(default=None, primary_key=True)
    account_id: int = Field(
        sa_column=Column(Integer, ForeignKey("accounts.id"), index=True, nullable=False)
    )
    name: str = Field(max_length=255)
    is_default: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False),
    )
