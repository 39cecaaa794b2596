# oauth_broker/models/social_account.py
from sqlmodel import SQLModel, Field, Column
from typing import Optional
from datetime import datetime, timezone
import uuid
from sqlalchemy import DateTime, String, JSON, UniqueConstraint


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SocialAccount(SQLModel, table=True):
    __tablename__ = "social_accounts"
    # one row per (user, platform); later connects overwrite it in place
    __table_args__ = (UniqueConstraint("user_id", "platform", name="uq_social_accounts_user_platform"),)

    id: Optional[uuid.UUID] = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: str = Field(index=True)  # not a foreign key; callers may use any opaque id
    platform: str = Field(sa_column=Column(String, nullable=False, index=True))
    platform_user_id: Optional[str] = Field(sa_column=Column(String), default=None)
    access_token: str
    refresh_token: Optional[str] = None
    meta: Optional[dict] = Field(sa_column=Column(JSON), default=None)
    expires_at: Optional[int] = None  # epoch seconds
    created_at: datetime = Field(
        default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False)
    )
