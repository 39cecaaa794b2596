# oauth_broker/services/connect_service.py
from typing import List, Optional

import structlog

from oauth_broker.infrastructure.credentials_repo import CredentialsRepository
from oauth_broker.providers.base import OAuthProvider
from oauth_broker.providers.types import CredentialRecord

logger = structlog.get_logger(__name__)


class ConnectService:
    """Completes a provider callback: exchange the code, then store every resulting record."""

    def __init__(self, provider: OAuthProvider, repo: CredentialsRepository):
        self.provider = provider
        self.repo = repo

    async def complete(self, code: Optional[str], user_id: str) -> List[CredentialRecord]:
        records = await self.provider.exchange(code, user_id)
        for record in records:
            await self.repo.upsert(record)
        logger.info(
            "oauth_connected",
            provider=self.provider.name,
            user_id=user_id,
            platforms=[r.platform.value for r in records],
        )
        return records
