# oauth_broker/dependencies/providers.py
from fastapi import HTTPException, Request, status

from oauth_broker.providers.base import OAuthProvider
from oauth_broker.providers.state import StateCodec


def get_provider(provider: str, request: Request) -> OAuthProvider:
    adapter = request.app.state.providers.get(provider)
    if adapter is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown provider: {provider}")
    return adapter


def get_state_codec(request: Request) -> StateCodec:
    return request.app.state.state_codec
