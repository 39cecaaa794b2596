# oauth_broker/infrastructure/credentials_repo.py
from typing import List, Optional, Union
import uuid
from datetime import datetime, timezone

import structlog
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from oauth_broker.models.social_account import SocialAccount
from oauth_broker.models.user import User
from oauth_broker.providers.types import CredentialRecord, Platform

logger = structlog.get_logger(__name__)

# columns replaced by a later connect; id, user_id, platform and created_at survive
MUTABLE_COLUMNS = ("platform_user_id", "access_token", "refresh_token", "meta", "expires_at", "updated_at")


class PersistenceError(Exception):
    pass


def _platform_value(platform: Union[Platform, str]) -> str:
    return Platform(platform).value


class CredentialsRepository:
    """
    Repository for the SocialAccount entity.
    All methods are async and expect an AsyncSession to be injected from the outside.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert
        if dialect == "sqlite":
            return sqlite_insert
        raise PersistenceError(f"upsert is not supported on the {dialect} dialect")

    async def upsert(self, record: CredentialRecord) -> SocialAccount:
        """
        Insert the record, or replace every mutable column of the existing row for
        (user_id, platform). The conflict is resolved by the database in one statement.
        """
        platform = _platform_value(record.platform)
        now = datetime.now(timezone.utc)
        insert = self._insert()

        anchor = insert(User).values(id=record.user_id, created_at=now).on_conflict_do_nothing(
            index_elements=["id"]
        )
        stmt = insert(SocialAccount).values(
            id=uuid.uuid4(),
            user_id=record.user_id,
            platform=platform,
            platform_user_id=record.platform_user_id,
            access_token=record.access_token,
            refresh_token=record.refresh_token,
            meta=record.metadata,
            expires_at=record.expires_at,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "platform"],
            set_={column: stmt.excluded[column] for column in MUTABLE_COLUMNS},
        )

        try:
            await self.session.execute(anchor)
            await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("credentials_upsert_failed", user_id=record.user_id, platform=platform)
            raise PersistenceError(f"could not store {platform} credentials") from e

        logger.info(
            "credentials_upserted",
            user_id=record.user_id,
            platform=platform,
            platform_user_id=record.platform_user_id,
        )
        return await self.get(record.user_id, platform)

    async def get(self, user_id: str, platform: Union[Platform, str]) -> Optional[SocialAccount]:
        q = (
            select(SocialAccount)
            .where(SocialAccount.user_id == user_id, SocialAccount.platform == _platform_value(platform))
            .execution_options(populate_existing=True)
        )
        res = await self._run(q)
        return res.scalar_one_or_none()

    async def list_by_user(self, user_id: str) -> List[SocialAccount]:
        q = (
            select(SocialAccount)
            .where(SocialAccount.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        res = await self._run(q)
        return list(res.scalars().all())

    async def delete(self, user_id: str, platform: Union[Platform, str]) -> bool:
        """Delete the row if present. Returns whether anything was removed."""
        q = delete(SocialAccount).where(
            SocialAccount.user_id == user_id, SocialAccount.platform == _platform_value(platform)
        )
        try:
            res = await self.session.execute(q)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("credentials_delete_failed", user_id=user_id, platform=str(platform))
            raise PersistenceError("could not delete credentials") from e
        removed = res.rowcount > 0
        logger.info("credentials_deleted", user_id=user_id, platform=_platform_value(platform), removed=removed)
        return removed

    async def _run(self, q):
        try:
            return await self.session.execute(q)
        except SQLAlchemyError as e:
            logger.exception("credentials_query_failed")
            raise PersistenceError("could not read credentials") from e
