import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from conftest import SERVICE_TOKEN, make_settings
from oauth_broker.infrastructure.credentials_repo import CredentialsRepository
from oauth_broker.infrastructure.database import init_db
from oauth_broker.main import create_app
from oauth_broker.providers.types import CredentialRecord, Platform


async def _seed(app, *records):
    async with app.state.session_maker() as session:
        repo = CredentialsRepository(session)
        for record in records:
            await repo.upsert(record)


def _auth(token=SERVICE_TOKEN):
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def seeded(app):
    await _seed(
        app,
        CredentialRecord(
            user_id="user-1",
            platform=Platform.FACEBOOK,
            platform_user_id="PAGE1",
            access_token="page-token",
            metadata={"page_name": "My Page"},
        ),
        CredentialRecord(
            user_id="user-1",
            platform=Platform.YOUTUBE,
            platform_user_id="UC1",
            access_token="yt-access",
            refresh_token="yt-refresh",
            metadata={"snippet": {"title": "Chan"}},
            expires_at=1_700_003_600,
        ),
    )
    return app


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "headers",
    [{}, _auth("wrong-token"), {"Authorization": SERVICE_TOKEN}, {"Authorization": f"Basic {SERVICE_TOKEN}"}],
)
async def test_missing_or_wrong_secret_is_unauthorized(seeded, client, headers):
    resp = await client.get("/v1/users/user-1/credentials", headers=headers)

    assert resp.status_code == 401
    assert "tokens" not in resp.json()
    assert "page-token" not in resp.text
    assert "yt-access" not in resp.text


@pytest.mark.asyncio
async def test_returns_only_connected_platforms(seeded, client):
    resp = await client.get("/v1/users/user-1/credentials", headers=_auth())

    assert resp.status_code == 200
    body = resp.json()
    assert body["userId"] == "user-1"
    assert set(body["tokens"]) == {"facebook", "youtube"}
    assert body["tokens"]["youtube"] == {
        "access_token": "yt-access",
        "refresh_token": "yt-refresh",
        "platform_user_id": "UC1",
        "metadata": {"snippet": {"title": "Chan"}},
        "expires_at": 1_700_003_600,
    }
    assert body["tokens"]["facebook"]["refresh_token"] is None
    assert body["tokens"]["facebook"]["metadata"] == {"page_name": "My Page"}


@pytest.mark.asyncio
async def test_user_without_records_gets_empty_mapping(client):
    resp = await client.get("/v1/users/nobody/credentials", headers=_auth())

    assert resp.status_code == 200
    assert resp.json() == {"userId": "nobody", "tokens": {}}


@pytest.mark.asyncio
async def test_unset_service_token_rejects_everyone(tmp_path):
    app = create_app(make_settings(f"sqlite+aiosqlite:///{tmp_path / 'x.db'}", SERVICE_TOKEN=""))
    await init_db(app.state.engine)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        resp = await ac.get("/v1/users/user-1/credentials", headers={"Authorization": "Bearer "})
    await app.state.engine.dispose()

    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_delete_removes_single_platform(seeded, client):
    resp = await client.delete("/v1/users/user-1/credentials/youtube", headers=_auth())
    assert resp.status_code == 204

    body = (await client.get("/v1/users/user-1/credentials", headers=_auth())).json()
    assert set(body["tokens"]) == {"facebook"}


@pytest.mark.asyncio
async def test_delete_requires_secret_and_known_platform(seeded, client):
    assert (await client.delete("/v1/users/user-1/credentials/youtube")).status_code == 401
    assert (await client.delete("/v1/users/user-1/credentials/myspace", headers=_auth())).status_code == 404
