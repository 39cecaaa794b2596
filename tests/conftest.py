import json
from typing import Any, Callable, Dict, List, Tuple, Union

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from oauth_broker.config import Settings
from oauth_broker.infrastructure.database import build_engine, build_session_maker, init_db
from oauth_broker.main import create_app

SERVICE_TOKEN = "svc-test-token"


def _without_query(url: httpx.URL) -> str:
    return f"{url.scheme}://{url.host}{url.path}"


Handler = Union[Dict[str, Any], Tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


class FakeProviderAPI:
    """
    Stand-in for the provider APIs. Routes are keyed by (method, url without query)
    and each entry is a JSON body, a (status, body) pair, or a callable.
    Every request is recorded for assertions.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Handler] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, url: str, response: Handler) -> None:
        self.routes[(method.upper(), url)] = response

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, _without_query(request.url))
        route = self.routes.get(key)
        if route is None:
            return httpx.Response(404, json={"error": f"no fake route for {key}"})
        if callable(route):
            return route(request)
        if isinstance(route, tuple):
            status, body = route
            return httpx.Response(status, json=body)
        return httpx.Response(200, json=route)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def find(self, method: str, url: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and _without_query(r.url) == url]


def form_body(request: httpx.Request) -> Dict[str, str]:
    return dict(httpx.QueryParams(request.content.decode()))


def json_body(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content)


def make_settings(database_url: str, **overrides) -> Settings:
    values = dict(
        DATABASE_URL=database_url,
        SERVICE_TOKEN=SERVICE_TOKEN,
        META_APP_ID="meta-app",
        META_APP_SECRET="meta-secret",
        META_REDIRECT="https://broker.test/auth/meta/callback",
        YOUTUBE_CLIENT_ID="yt-client",
        YOUTUBE_CLIENT_SECRET="yt-secret",
        YOUTUBE_REDIRECT="https://broker.test/auth/youtube/callback",
        X_CLIENT_ID="x-client",
        X_CLIENT_SECRET="x-secret",
        X_REDIRECT="https://broker.test/auth/x/callback",
        PINTEREST_CLIENT_ID="pin-client",
        PINTEREST_CLIENT_SECRET="pin-secret",
        PINTEREST_REDIRECT="https://broker.test/auth/pinterest/callback",
        LINKEDIN_CLIENT_ID="li-client",
        LINKEDIN_CLIENT_SECRET="li-secret",
        LINKEDIN_REDIRECT="https://broker.test/auth/linkedin/callback",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def provider_api():
    return FakeProviderAPI()


@pytest.fixture
def settings(tmp_path):
    return make_settings(f"sqlite+aiosqlite:///{tmp_path / 'oauth.db'}")


@pytest_asyncio.fixture
async def app(settings, provider_api):
    application = create_app(settings, http_transport=provider_api.transport)
    await init_db(application.state.engine)
    yield application
    await application.state.engine.dispose()


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def session(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'repo.db'}")
    await init_db(engine)
    session_maker = build_session_maker(engine)
    async with session_maker() as s:
        yield s
    await engine.dispose()
