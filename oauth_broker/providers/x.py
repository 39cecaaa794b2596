# oauth_broker/providers/x.py
"""
X (Twitter) OAuth 2.0 adapter.

WARNING: the PKCE pair is a fixed `plain` challenge/verifier ("challenge"), so
PKCE offers no protection here. It is kept for compatibility with existing app
registrations; a random per-flow verifier needs server-side storage keyed by state.
"""
from typing import Dict, List

import httpx

from oauth_broker.providers.base import OAuthProvider
from oauth_broker.providers.types import CredentialRecord, Platform

TOKEN_URL = "https://api.twitter.com/2/oauth2/token"
ME_URL = "https://api.twitter.com/2/users/me"
FIXED_CODE_VERIFIER = "challenge"


class XProvider(OAuthProvider):
    name = "x"
    display_name = "X"
    authorize_url = "https://twitter.com/i/oauth2/authorize"
    scopes = ("tweet.read", "tweet.write", "users.read", "offline.access")

    def authorization_params(self) -> Dict[str, str]:
        return {
            "response_type": "code",
            "code_challenge": FIXED_CODE_VERIFIER,
            "code_challenge_method": "plain",
        }

    async def _exchange(self, code: str, user_id: str) -> List[CredentialRecord]:
        token_data = await self.client.post_form(
            TOKEN_URL,
            data={
                "client_id": self.credentials.client_id,
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.credentials.redirect_uri,
                "code_verifier": FIXED_CODE_VERIFIER,
            },
            auth=httpx.BasicAuth(self.credentials.client_id, self.credentials.client_secret),
        )
        access_token = self._require(token_data, "access_token", "token")
        expires_at = self._expires_at(token_data)

        me = await self.client.get(ME_URL, headers=self._bearer(access_token))
        user = self._object(self._object(me, "user lookup").get("data"), "user lookup")

        return [
            CredentialRecord(
                user_id=user_id,
                platform=Platform.X,
                platform_user_id=user.get("id"),
                access_token=access_token,
                refresh_token=token_data.get("refresh_token"),
                expires_at=expires_at,
            )
        ]
