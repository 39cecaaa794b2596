# oauth_broker/providers/linkedin.py
from typing import Dict, List

from oauth_broker.providers.base import OAuthProvider
from oauth_broker.providers.types import CredentialRecord, Platform

TOKEN_URL = "https://www.linkedin.com/oauth/v2/accessToken"
PROFILE_URL = "https://api.linkedin.com/v2/me"


class LinkedInProvider(OAuthProvider):
    name = "linkedin"
    display_name = "LinkedIn"
    authorize_url = "https://www.linkedin.com/oauth/v2/authorization"
    scopes = ("w_member_social", "r_liteprofile")

    def authorization_params(self) -> Dict[str, str]:
        return {"response_type": "code"}

    async def _exchange(self, code: str, user_id: str) -> List[CredentialRecord]:
        token_data = await self.client.post_form(
            TOKEN_URL,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.credentials.redirect_uri,
                "client_id": self.credentials.client_id,
                "client_secret": self.credentials.client_secret,
            },
        )
        access_token = self._require(token_data, "access_token", "token")
        expires_at = self._expires_at(token_data)

        profile = self._object(
            await self.client.get(PROFILE_URL, headers=self._bearer(access_token)), "profile lookup"
        )

        # refresh tokens are only issued to approved partner apps; not modelled
        return [
            CredentialRecord(
                user_id=user_id,
                platform=Platform.LINKEDIN,
                platform_user_id=profile.get("id"),
                access_token=access_token,
                metadata=profile,
                expires_at=expires_at,
            )
        ]
