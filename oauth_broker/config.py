# oauth_broker/config.py
"""
Application configuration using Pydantic Settings.

Settings are read once when the app is built and handed to the providers,
the state codec and the credentials guard. Nothing below the app factory
reads the process environment.
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


PROVIDER_ENV_KEYS = {
    "meta": ("META_APP_ID", "META_APP_SECRET", "META_REDIRECT"),
    "youtube": ("YOUTUBE_CLIENT_ID", "YOUTUBE_CLIENT_SECRET", "YOUTUBE_REDIRECT"),
    "x": ("X_CLIENT_ID", "X_CLIENT_SECRET", "X_REDIRECT"),
    "pinterest": ("PINTEREST_CLIENT_ID", "PINTEREST_CLIENT_SECRET", "PINTEREST_REDIRECT"),
    "linkedin": ("LINKEDIN_CLIENT_ID", "LINKEDIN_CLIENT_SECRET", "LINKEDIN_REDIRECT"),
}


@dataclass(frozen=True)
class ProviderCredentials:
    client_id: str
    client_secret: str
    redirect_uri: str

    @property
    def configured(self) -> bool:
        return all([self.client_id, self.client_secret, self.redirect_uri])


class Settings(BaseSettings):
    """Service settings loaded from environment variables (or .env)."""

    PORT: int = 4000
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    # Meta (Facebook / Instagram)
    META_APP_ID: str = ""
    META_APP_SECRET: str = ""
    META_REDIRECT: str = ""

    # YouTube (Google)
    YOUTUBE_CLIENT_ID: str = ""
    YOUTUBE_CLIENT_SECRET: str = ""
    YOUTUBE_REDIRECT: str = ""

    # X (Twitter)
    X_CLIENT_ID: str = ""
    X_CLIENT_SECRET: str = ""
    X_REDIRECT: str = ""

    # Pinterest
    PINTEREST_CLIENT_ID: str = ""
    PINTEREST_CLIENT_SECRET: str = ""
    PINTEREST_REDIRECT: str = ""

    # LinkedIn
    LINKEDIN_CLIENT_ID: str = ""
    LINKEDIN_CLIENT_SECRET: str = ""
    LINKEDIN_REDIRECT: str = ""

    # shared secret for the downstream credentials consumer
    SERVICE_TOKEN: str = ""

    DATABASE_URL: str = "sqlite+aiosqlite:///./data/oauth.db"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # empty keeps the plain (unsigned) state format
    STATE_SIGNING_KEY: str = ""
    STATE_TTL_SECONDS: int = 600

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, frozen=True)

    def provider_credentials(self, provider: str) -> ProviderCredentials:
        client_id, client_secret, redirect = PROVIDER_ENV_KEYS[provider]
        return ProviderCredentials(
            client_id=getattr(self, client_id),
            client_secret=getattr(self, client_secret),
            redirect_uri=getattr(self, redirect),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
