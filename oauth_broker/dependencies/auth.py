# oauth_broker/dependencies/auth.py
import secrets
from typing import Optional

import structlog
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

logger = structlog.get_logger(__name__)

service_token_scheme = HTTPBearer(auto_error=False)


async def require_service_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(service_token_scheme),
) -> None:
    """
    Gate for the credentials API: the caller must present the shared SERVICE_TOKEN
    as a bearer token. An unset SERVICE_TOKEN rejects everyone.
    """
    expected = request.app.state.settings.SERVICE_TOKEN
    presented = credentials.credentials if credentials else None
    if not expected or not presented or not secrets.compare_digest(presented.encode(), expected.encode()):
        logger.warning("credentials_unauthorized", token_present=bool(presented))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
