# oauth_broker/providers/youtube.py
from typing import Dict, List

from oauth_broker.providers.base import OAuthProvider
from oauth_broker.providers.types import CredentialRecord, Platform

TOKEN_URL = "https://oauth2.googleapis.com/token"
CHANNELS_URL = "https://www.googleapis.com/youtube/v3/channels"


class YouTubeProvider(OAuthProvider):
    name = "youtube"
    display_name = "YouTube"
    authorize_url = "https://accounts.google.com/o/oauth2/v2/auth"
    scopes = (
        "https://www.googleapis.com/auth/youtube.upload",
        "https://www.googleapis.com/auth/youtube.readonly",
        "openid",
        "email",
        "profile",
    )

    def authorization_params(self) -> Dict[str, str]:
        # offline + consent so Google hands out a refresh token on every connect
        return {"response_type": "code", "access_type": "offline", "prompt": "consent"}

    async def _exchange(self, code: str, user_id: str) -> List[CredentialRecord]:
        token_data = await self.client.post_form(
            TOKEN_URL,
            data={
                "code": code,
                "client_id": self.credentials.client_id,
                "client_secret": self.credentials.client_secret,
                "redirect_uri": self.credentials.redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        access_token = self._require(token_data, "access_token", "token")
        expires_at = self._expires_at(token_data)

        channels = await self.client.get(
            CHANNELS_URL,
            headers=self._bearer(access_token),
            params={"part": "snippet,contentDetails", "mine": "true"},
        )
        items = self._list(channels, "items", "channel lookup")
        channel = self._object(items[0], "channel lookup") if items else {}

        return [
            CredentialRecord(
                user_id=user_id,
                platform=Platform.YOUTUBE,
                platform_user_id=channel.get("id"),
                access_token=access_token,
                refresh_token=token_data.get("refresh_token"),
                metadata={"snippet": channel.get("snippet")},
                expires_at=expires_at,
            )
        ]
