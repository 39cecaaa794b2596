# oauth_broker/providers/pinterest.py
from typing import Dict, List

from oauth_broker.providers.base import OAuthProvider
from oauth_broker.providers.types import CredentialRecord, Platform

TOKEN_URL = "https://api.pinterest.com/v5/oauth/token"
USER_ACCOUNT_URL = "https://api.pinterest.com/v5/user_account"


class PinterestProvider(OAuthProvider):
    name = "pinterest"
    display_name = "Pinterest"
    authorize_url = "https://www.pinterest.com/oauth/"
    scope_separator = ","
    scopes = ("pins:write", "boards:read")

    def authorization_params(self) -> Dict[str, str]:
        return {"response_type": "code"}

    async def _exchange(self, code: str, user_id: str) -> List[CredentialRecord]:
        token_data = await self.client.post_json(
            TOKEN_URL,
            json={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.credentials.redirect_uri,
                "client_id": self.credentials.client_id,
                "client_secret": self.credentials.client_secret,
            },
        )
        access_token = self._require(token_data, "access_token", "token")
        expires_at = self._expires_at(token_data)

        account = self._object(
            await self.client.get(USER_ACCOUNT_URL, headers=self._bearer(access_token)), "user account lookup"
        )

        return [
            CredentialRecord(
                user_id=user_id,
                platform=Platform.PINTEREST,
                platform_user_id=account.get("id"),
                access_token=access_token,
                refresh_token=token_data.get("refresh_token"),
                metadata=account,
                expires_at=expires_at,
            )
        ]
