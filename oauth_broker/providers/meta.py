# oauth_broker/providers/meta.py
"""
Meta (Facebook + Instagram) adapter.

The exchange is a strictly ordered chain, each call depending on the previous one:

1. code -> short-lived user token
2. short-lived -> long-lived user token (this is where the expiry comes from)
3. list the pages the user manages
4. first page -> page token, then the Instagram account linked to that page

Depending on what the user owns this yields one facebook record (no pages, or a
page without Instagram) or a facebook record plus an instagram record sharing
the page token.
"""
import html
from typing import List, Optional, Sequence

import structlog

from oauth_broker.providers.base import OAuthProvider
from oauth_broker.providers.types import CredentialRecord, Platform

logger = structlog.get_logger(__name__)

GRAPH_URL = "https://graph.facebook.com/v17.0"
NO_PAGES_NOTE = "no-pages"


class MetaProvider(OAuthProvider):
    name = "meta"
    display_name = "Facebook"
    authorize_url = "https://www.facebook.com/v17.0/dialog/oauth"
    scope_separator = ","
    scopes = (
        "pages_show_list",
        "instagram_basic",
        "instagram_content_publish",
        "pages_read_engagement",
        "pages_manage_posts",
    )

    async def _exchange(self, code: str, user_id: str) -> List[CredentialRecord]:
        short = await self.client.get(
            f"{GRAPH_URL}/oauth/access_token",
            params={
                "client_id": self.credentials.client_id,
                "redirect_uri": self.credentials.redirect_uri,
                "client_secret": self.credentials.client_secret,
                "code": code,
            },
        )
        short_token = self._require(short, "access_token", "code exchange")

        long_lived = await self.client.get(
            f"{GRAPH_URL}/oauth/access_token",
            params={
                "grant_type": "fb_exchange_token",
                "client_id": self.credentials.client_id,
                "client_secret": self.credentials.client_secret,
                "fb_exchange_token": short_token,
            },
        )
        long_token = self._require(long_lived, "access_token", "long-lived exchange")
        expires_at = self._expires_at(long_lived)

        accounts = await self.client.get(f"{GRAPH_URL}/me/accounts", params={"access_token": long_token})
        pages = self._list(accounts, "data", "page listing")
        if not pages:
            logger.info("meta_no_pages", user_id=user_id)
            return [
                CredentialRecord(
                    user_id=user_id,
                    platform=Platform.FACEBOOK,
                    platform_user_id=None,
                    access_token=long_token,
                    metadata={"note": NO_PAGES_NOTE},
                    expires_at=expires_at,
                )
            ]

        page = pages[0]
        page_id = self._require(page, "id", "page listing")
        page_token = page.get("access_token") or await self._fetch_page_token(page_id, long_token)
        instagram_id = await self._linked_instagram_id(page_id, page_token)

        records = [
            CredentialRecord(
                user_id=user_id,
                platform=Platform.FACEBOOK,
                platform_user_id=page_id,
                access_token=page_token,
                metadata={"page_name": page.get("name")},
            )
        ]
        if instagram_id:
            records.append(
                CredentialRecord(
                    user_id=user_id,
                    platform=Platform.INSTAGRAM,
                    platform_user_id=instagram_id,
                    access_token=page_token,
                    metadata={"linked_page": page_id},
                )
            )
        return records

    async def _fetch_page_token(self, page_id: str, user_token: str) -> str:
        data = await self.client.get(
            f"{GRAPH_URL}/{page_id}", params={"fields": "access_token", "access_token": user_token}
        )
        return self._require(data, "access_token", "page token lookup")

    async def _linked_instagram_id(self, page_id: str, page_token: str) -> Optional[str]:
        data = await self.client.get(
            f"{GRAPH_URL}/{page_id}",
            params={
                "fields": "connected_instagram_account,instagram_business_account",
                "access_token": page_token,
            },
        )
        data = self._object(data, "instagram lookup")
        account = data.get("connected_instagram_account") or data.get("instagram_business_account")
        if isinstance(account, dict) and account.get("id"):
            return str(account["id"])
        return None

    def acknowledgment(self, user_id: str, records: Sequence[CredentialRecord]) -> str:
        if len(records) == 1 and (records[0].metadata or {}).get("note") == NO_PAGES_NOTE:
            return "<h3>Connected to Facebook but no pages found.</h3>"
        instagram = next((r for r in records if r.platform == Platform.INSTAGRAM), None)
        instagram_id = instagram.platform_user_id if instagram else "none"
        return (
            "<h3>Connected successfully!</h3>"
            f"<p>User: {html.escape(user_id)}. Instagram ID: {html.escape(instagram_id)}.</p>"
        )
