# oauth_broker/schemas/credentials_schema.py
from pydantic import BaseModel
from typing import Any, Dict, Optional


class PlatformCredentials(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    platform_user_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    expires_at: Optional[int] = None  # epoch seconds


class UserCredentials(BaseModel):
    userId: str
    tokens: Dict[str, PlatformCredentials]
