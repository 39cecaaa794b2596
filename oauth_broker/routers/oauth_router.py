# oauth_broker/routers/oauth_router.py
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlmodel.ext.asyncio.session import AsyncSession

from oauth_broker.dependencies.db import get_session_dep
from oauth_broker.dependencies.providers import get_provider, get_state_codec
from oauth_broker.infrastructure.credentials_repo import CredentialsRepository, PersistenceError
from oauth_broker.providers.base import OAuthProvider
from oauth_broker.providers.errors import InputValidationError, ProviderExchangeError, ProviderNotConfigured
from oauth_broker.providers.state import StateCodec, resolve_user_id
from oauth_broker.services.connect_service import ConnectService

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/auth", tags=["oauth"])


@router.get("/{provider}/start")
async def oauth_start(user_id: Optional[str] = None, adapter: OAuthProvider = Depends(get_provider)):
    try:
        url = adapter.build_authorization_url(user_id)
    except InputValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ProviderNotConfigured as e:
        logger.error("oauth_provider_not_configured", provider=adapter.name)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    logger.info("oauth_start", provider=adapter.name, user_id=user_id)
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


@router.get("/{provider}/callback", response_class=HTMLResponse)
async def oauth_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    error_description: Optional[str] = None,
    adapter: OAuthProvider = Depends(get_provider),
    codec: StateCodec = Depends(get_state_codec),
    session: AsyncSession = Depends(get_session_dep),
):
    user_id = resolve_user_id(codec, state)
    if not code:
        # consent denied or a bare hit on the callback; nothing to store
        logger.info(
            "oauth_callback_without_code",
            provider=adapter.name,
            user_id=user_id,
            error=error,
            error_description=error_description,
        )
        return HTMLResponse("No code provided")

    svc = ConnectService(adapter, CredentialsRepository(session))
    failure_page = HTMLResponse(
        f"Error during {adapter.display_name} OAuth", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    try:
        records = await svc.complete(code, user_id)
    except ProviderExchangeError as e:
        logger.error(
            "oauth_exchange_failed",
            provider=adapter.name,
            user_id=user_id,
            error=str(e),
            provider_status=e.status_code,
            provider_payload=e.payload,
        )
        return failure_page
    except PersistenceError as e:
        logger.error("oauth_persist_failed", provider=adapter.name, user_id=user_id, error=str(e))
        return failure_page
    except Exception as e:
        logger.exception("oauth_callback_unexpected_error", provider=adapter.name, user_id=user_id, error=str(e))
        return failure_page

    return HTMLResponse(adapter.acknowledgment(user_id, records))
