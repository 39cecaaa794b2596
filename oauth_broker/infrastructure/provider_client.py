# oauth_broker/infrastructure/provider_client.py
import httpx
from typing import Any, Optional

from oauth_broker.providers.errors import ProviderExchangeError


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class ProviderClient:
    """
    Thin JSON-over-HTTP client for provider APIs.

    Every failure (timeout, connection error, non-2xx status, non-JSON body) is
    raised as ProviderExchangeError so adapters have a single error to care about.
    """

    def __init__(self, timeout: float = 30, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    async def get(self, url, headers=None, params=None) -> Any:
        return await self._request("GET", url, headers=headers, params=params)

    async def post_form(self, url, data, headers=None, auth=None) -> Any:
        return await self._request("POST", url, headers=headers, data=data, auth=auth)

    async def post_json(self, url, json, headers=None) -> Any:
        return await self._request("POST", url, headers=headers, json=json)

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                r = await client.request(method, url, **kwargs)
                r.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise ProviderExchangeError(
                    f"{method} {url} failed with status {e.response.status_code}",
                    status_code=e.response.status_code,
                    payload=_error_body(e.response),
                ) from e
            except httpx.HTTPError as e:
                raise ProviderExchangeError(f"{method} {url} transport error: {e!r}") from e

        try:
            return r.json()
        except ValueError as e:
            raise ProviderExchangeError(
                f"{method} {url} returned a non-JSON body", status_code=r.status_code, payload=r.text
            ) from e
