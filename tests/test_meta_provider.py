import httpx
import pytest

from conftest import make_settings
from oauth_broker.infrastructure.provider_client import ProviderClient
from oauth_broker.providers.errors import NoAuthorizationCode, ProviderExchangeError
from oauth_broker.providers.meta import GRAPH_URL, MetaProvider
from oauth_broker.providers.state import StateCodec
from oauth_broker.providers.types import Platform

NOW = 1_700_000_000


def _token_route(request: httpx.Request) -> httpx.Response:
    params = request.url.params
    if params.get("grant_type") == "fb_exchange_token":
        assert params["fb_exchange_token"] == "short-token"
        return httpx.Response(200, json={"access_token": "long-token", "expires_in": 5184000})
    assert params["code"] == "the-code"
    assert params["client_secret"] == "meta-secret"
    return httpx.Response(200, json={"access_token": "short-token"})


@pytest.fixture
def meta(provider_api):
    settings = make_settings("sqlite+aiosqlite://")
    client = ProviderClient(transport=provider_api.transport)
    provider_api.add("GET", f"{GRAPH_URL}/oauth/access_token", _token_route)
    return MetaProvider(settings.provider_credentials("meta"), client, StateCodec(), clock=lambda: NOW)


def test_authorization_url_carries_scopes_and_state(meta):
    url = httpx.URL(meta.build_authorization_url("user-1"))
    assert url.host == "www.facebook.com"
    assert url.path == "/v17.0/dialog/oauth"
    assert url.params["client_id"] == "meta-app"
    assert url.params["redirect_uri"] == "https://broker.test/auth/meta/callback"
    assert url.params["scope"].split(",") == list(MetaProvider.scopes)
    assert StateCodec().decode(url.params["state"]) == "user-1"


@pytest.mark.asyncio
async def test_zero_pages_yields_single_facebook_record(meta, provider_api):
    provider_api.add("GET", f"{GRAPH_URL}/me/accounts", {"data": []})

    records = await meta.exchange("the-code", "user-1")

    assert len(records) == 1
    record = records[0]
    assert record.platform == Platform.FACEBOOK
    assert record.access_token == "long-token"
    assert record.metadata == {"note": "no-pages"}
    assert record.expires_at == NOW + 5184000
    assert record.refresh_token is None
    assert "no pages" in meta.acknowledgment("user-1", records)


@pytest.mark.asyncio
async def test_linked_instagram_yields_facebook_and_instagram_records(meta, provider_api):
    provider_api.add(
        "GET",
        f"{GRAPH_URL}/me/accounts",
        {"data": [{"id": "PAGE1", "name": "My Page", "access_token": "page-token"}, {"id": "PAGE2"}]},
    )
    provider_api.add(
        "GET", f"{GRAPH_URL}/PAGE1", {"id": "PAGE1", "connected_instagram_account": {"id": "IG123"}}
    )

    records = await meta.exchange("the-code", "user-1")

    assert [r.platform for r in records] == [Platform.FACEBOOK, Platform.INSTAGRAM]
    facebook, instagram = records
    assert facebook.platform_user_id == "PAGE1"
    assert facebook.metadata == {"page_name": "My Page"}
    assert instagram.platform_user_id == "IG123"
    assert instagram.metadata == {"linked_page": "PAGE1"}
    assert facebook.access_token == instagram.access_token == "page-token"
    assert facebook.expires_at is None and instagram.expires_at is None

    page_lookup = provider_api.find("GET", f"{GRAPH_URL}/PAGE1")[0]
    assert page_lookup.url.params["access_token"] == "page-token"
    assert "IG123" in meta.acknowledgment("user-1", records)


@pytest.mark.asyncio
async def test_page_without_instagram_yields_only_facebook(meta, provider_api):
    provider_api.add("GET", f"{GRAPH_URL}/me/accounts", {"data": [{"id": "PAGE1", "name": "P", "access_token": "pt"}]})
    provider_api.add("GET", f"{GRAPH_URL}/PAGE1", {"id": "PAGE1"})

    records = await meta.exchange("the-code", "user-1")

    assert len(records) == 1
    assert records[0].platform == Platform.FACEBOOK
    assert records[0].platform_user_id == "PAGE1"


@pytest.mark.asyncio
async def test_page_token_fetched_when_listing_omits_it(meta, provider_api):
    provider_api.add("GET", f"{GRAPH_URL}/me/accounts", {"data": [{"id": "PAGE1", "name": "P"}]})

    def page_route(request: httpx.Request) -> httpx.Response:
        if request.url.params["fields"] == "access_token":
            assert request.url.params["access_token"] == "long-token"
            return httpx.Response(200, json={"id": "PAGE1", "access_token": "fetched-page-token"})
        return httpx.Response(200, json={"id": "PAGE1", "instagram_business_account": {"id": "IG9"}})

    provider_api.add("GET", f"{GRAPH_URL}/PAGE1", page_route)

    records = await meta.exchange("the-code", "user-1")

    assert [r.access_token for r in records] == ["fetched-page-token", "fetched-page-token"]
    assert records[1].platform_user_id == "IG9"


@pytest.mark.asyncio
async def test_provider_error_payload_is_kept(meta, provider_api):
    error = {"error": {"message": "Invalid verification code format.", "code": 100}}
    provider_api.add("GET", f"{GRAPH_URL}/oauth/access_token", (400, error))

    with pytest.raises(ProviderExchangeError) as exc_info:
        await meta.exchange("bad-code", "user-1")

    assert exc_info.value.status_code == 400
    assert exc_info.value.payload == error


@pytest.mark.asyncio
async def test_missing_code_is_rejected_before_any_call(meta, provider_api):
    with pytest.raises(NoAuthorizationCode):
        await meta.exchange(None, "user-1")
    assert provider_api.requests == []


@pytest.mark.asyncio
async def test_page_listing_with_object_data_is_an_exchange_error(meta, provider_api):
    listing = {"data": {"id": "PAGE1"}}
    provider_api.add("GET", f"{GRAPH_URL}/me/accounts", listing)

    with pytest.raises(ProviderExchangeError) as exc_info:
        await meta.exchange("the-code", "user-1")

    assert exc_info.value.payload == listing


@pytest.mark.asyncio
async def test_instagram_lookup_array_body_is_an_exchange_error(meta, provider_api):
    provider_api.add(
        "GET", f"{GRAPH_URL}/me/accounts", {"data": [{"id": "PAGE1", "access_token": "page-token"}]}
    )
    provider_api.add("GET", f"{GRAPH_URL}/PAGE1", [{"id": "IG123"}])

    with pytest.raises(ProviderExchangeError):
        await meta.exchange("the-code", "user-1")
