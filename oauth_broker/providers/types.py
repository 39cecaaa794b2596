# oauth_broker/providers/types.py
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Platform(str, Enum):
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
    YOUTUBE = "youtube"
    X = "x"
    PINTEREST = "pinterest"
    LINKEDIN = "linkedin"


@dataclass(frozen=True)
class CredentialRecord:
    """Normalized, not-yet-persisted credentials for one (user, platform) pair."""

    user_id: str
    platform: Platform
    access_token: str
    platform_user_id: Optional[str] = None
    refresh_token: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    expires_at: Optional[int] = None


def compute_expires_at(expires_in: Any, now: float) -> Optional[int]:
    """
    Turn a provider's relative `expires_in` (seconds) into absolute epoch seconds.
    A missing or empty duration means no expiry is tracked.
    """
    if expires_in is None or expires_in == "":
        return None
    return int(now) + int(expires_in)
