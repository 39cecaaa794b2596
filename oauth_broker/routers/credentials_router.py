# oauth_broker/routers/credentials_router.py
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from oauth_broker.dependencies.auth import require_service_token
from oauth_broker.dependencies.db import get_session_dep
from oauth_broker.infrastructure.credentials_repo import CredentialsRepository
from oauth_broker.providers.types import Platform
from oauth_broker.schemas.credentials_schema import PlatformCredentials, UserCredentials

router = APIRouter(prefix="/v1/users", tags=["credentials"], dependencies=[Depends(require_service_token)])


@router.get("/{user_id}/credentials", response_model=UserCredentials)
async def get_user_credentials(user_id: str, session: AsyncSession = Depends(get_session_dep)):
    """All stored credentials for a user, keyed by platform. Platforms never connected are absent."""
    repo = CredentialsRepository(session)
    accounts = await repo.list_by_user(user_id)
    tokens = {
        a.platform: PlatformCredentials(
            access_token=a.access_token,
            refresh_token=a.refresh_token,
            platform_user_id=a.platform_user_id,
            metadata=a.meta,
            expires_at=a.expires_at,
        )
        for a in accounts
    }
    return UserCredentials(userId=user_id, tokens=tokens)


@router.delete("/{user_id}/credentials/{platform}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user_credentials(user_id: str, platform: str, session: AsyncSession = Depends(get_session_dep)):
    try:
        platform_key = Platform(platform)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown platform: {platform}")
    await CredentialsRepository(session).delete(user_id, platform_key)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
