# oauth_broker/models/user.py
from sqlmodel import SQLModel, Field, Column
from typing import Optional
from datetime import datetime, timezone
from sqlalchemy import DateTime, String


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """Identity anchor for the opaque user ids handed to us by callers."""

    __tablename__ = "users"

    id: str = Field(sa_column=Column(String, primary_key=True))
    email: Optional[str] = Field(default=None)
    created_at: datetime = Field(
        default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False)
    )
