# oauth_broker/providers/registry.py
from typing import Dict

from oauth_broker.config import Settings
from oauth_broker.infrastructure.provider_client import ProviderClient
from oauth_broker.providers.base import OAuthProvider
from oauth_broker.providers.linkedin import LinkedInProvider
from oauth_broker.providers.meta import MetaProvider
from oauth_broker.providers.pinterest import PinterestProvider
from oauth_broker.providers.state import StateCodec
from oauth_broker.providers.x import XProvider
from oauth_broker.providers.youtube import YouTubeProvider

PROVIDER_CLASSES = (MetaProvider, YouTubeProvider, XProvider, PinterestProvider, LinkedInProvider)


def build_providers(settings: Settings, client: ProviderClient, state_codec: StateCodec) -> Dict[str, OAuthProvider]:
    """Instantiate every adapter with its own credentials, keyed by the name used in the URL."""
    return {
        cls.name: cls(settings.provider_credentials(cls.name), client, state_codec)
        for cls in PROVIDER_CLASSES
    }
