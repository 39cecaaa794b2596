# oauth_broker/providers/base.py
"""Provider adapter contract shared by every OAuth platform."""
import html
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import httpx
import structlog

from oauth_broker.config import ProviderCredentials
from oauth_broker.infrastructure.provider_client import ProviderClient
from oauth_broker.providers.errors import (
    MissingUserId,
    NoAuthorizationCode,
    ProviderExchangeError,
    ProviderNotConfigured,
)
from oauth_broker.providers.state import StateCodec
from oauth_broker.providers.types import CredentialRecord, compute_expires_at

logger = structlog.get_logger(__name__)


class OAuthProvider(ABC):
    name: str
    display_name: str
    authorize_url: str
    scopes: Sequence[str]
    scope_separator: str = " "

    def __init__(
        self,
        credentials: ProviderCredentials,
        client: ProviderClient,
        state_codec: StateCodec,
        clock: Callable[[], float] = time.time,
    ):
        self.credentials = credentials
        self.client = client
        self.state_codec = state_codec
        self.clock = clock

    def ensure_configured(self) -> None:
        if not self.credentials.configured:
            raise ProviderNotConfigured(self.display_name)

    def authorization_params(self) -> Dict[str, str]:
        """Provider-specific query parameters besides client id, redirect, scope and state."""
        return {}

    def build_authorization_url(self, user_id: Optional[str]) -> str:
        if not user_id:
            raise MissingUserId()
        self.ensure_configured()

        params = {
            "client_id": self.credentials.client_id,
            "redirect_uri": self.credentials.redirect_uri,
            "scope": self.scope_separator.join(self.scopes),
            "state": self.state_codec.encode(user_id),
        }
        params.update(self.authorization_params())
        return str(httpx.URL(self.authorize_url).copy_merge_params(params))

    async def exchange(self, code: Optional[str], user_id: str) -> List[CredentialRecord]:
        """
        Run the provider's code-for-token sequence and return the normalized records.
        Most providers return exactly one record; Meta may return up to two.
        """
        if not code:
            raise NoAuthorizationCode()
        self.ensure_configured()
        records = await self._exchange(code, user_id)
        logger.info("oauth_exchange_completed", provider=self.name, user_id=user_id, records=len(records))
        return records

    @abstractmethod
    async def _exchange(self, code: str, user_id: str) -> List[CredentialRecord]:
        raise NotImplementedError

    def acknowledgment(self, user_id: str, records: Sequence[CredentialRecord]) -> str:
        identities = ", ".join(
            html.escape(str(r.platform_user_id)) for r in records if r.platform_user_id
        )
        body = f"<h3>{html.escape(self.display_name)} connected!</h3>"
        if identities:
            body += f"<p>Account: {identities}</p>"
        return body

    # --- helpers shared by the adapters ---
    def _expires_at(self, token_data: Mapping[str, Any]) -> Optional[int]:
        try:
            return compute_expires_at(token_data.get("expires_in"), self.clock())
        except (TypeError, ValueError) as e:
            raise ProviderExchangeError(
                f"{self.display_name} returned an invalid expires_in", payload=dict(token_data)
            ) from e

    def _require(self, data: Any, field: str, step: str) -> Any:
        value = data.get(field) if isinstance(data, dict) else None
        if not value:
            raise ProviderExchangeError(
                f"{self.display_name} {step} response has no {field}", payload=data
            )
        return value

    def _object(self, data: Any, step: str) -> Dict[str, Any]:
        """An empty body counts as an empty object; any other non-object is malformed."""
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ProviderExchangeError(
                f"{self.display_name} {step} response is not an object", payload=data
            )
        return data

    def _list(self, data: Any, field: str, step: str) -> List[Any]:
        value = self._object(data, step).get(field)
        if value is None:
            return []
        if not isinstance(value, list):
            raise ProviderExchangeError(
                f"{self.display_name} {step} response has a malformed {field}", payload=data
            )
        return value

    @staticmethod
    def _bearer(access_token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}
