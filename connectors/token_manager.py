"""
Token store — save / get / list the OAuth credential of each store.

This is the single interface the routes and the exchange handler use to
read or write the ``tokens`` table.  Writes are one native upsert
statement, so two concurrent saves for the same store never interleave:
the last one wins.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from connectors.encryption import TokenCipher
from connectors.errors import StorageError
from database.models import StoreToken
from database.session import build_session_factory
from utils.schemas import StoredToken, TokenGrant

logger = logging.getLogger(__name__)

_MUTABLE_COLUMNS = ("access_token", "refresh_token", "scope", "token_type", "created_at")


class TokenStore:
    """Credential persistence over one engine / connection pool."""

    def __init__(self, engine: AsyncEngine, cipher: Optional[TokenCipher] = None) -> None:
        self._engine = engine
        self._session_factory = build_session_factory(engine)
        self._cipher = cipher or TokenCipher()

    def _insert(self):
        dialect = self._engine.dialect.name
        if dialect == "postgresql":
            return pg_insert
        if dialect == "sqlite":
            return sqlite_insert
        raise StorageError(f"Unsupported database dialect: {dialect}")

    def _to_schema(self, row: StoreToken) -> StoredToken:
        created_at = row.created_at
        # SQLite hands back naive values; they were written as UTC
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return StoredToken(
            store_id=row.store_id,
            access_token=self._cipher.decrypt(row.access_token),
            refresh_token=self._cipher.decrypt(row.refresh_token),
            scope=row.scope,
            token_type=row.token_type,
            created_at=created_at.astimezone(timezone.utc),
        )

    async def save(self, store_id: int, grant: TokenGrant) -> StoredToken:
        """
        Insert the credential for *store_id* or replace every field of the
        existing one, resetting ``created_at`` to now.

        Raises
        ------
        StorageError
            Connection failure or constraint violation (e.g. no access token).
        """
        now = datetime.now(timezone.utc)
        stmt = self._insert()(StoreToken).values(
            store_id=store_id,
            access_token=self._cipher.encrypt(grant.access_token),
            refresh_token=self._cipher.encrypt(grant.refresh_token),
            scope=grant.scope,
            token_type=grant.token_type,
            created_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[StoreToken.store_id],
            set_={name: stmt.excluded[name] for name in _MUTABLE_COLUMNS},
        )
        try:
            async with self._session_factory() as session:
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as exc:
            logger.error("save token failed for store %s: %s", store_id, exc)
            raise StorageError(f"Could not save token for store {store_id}") from exc

        logger.info("Saved token for store %s", store_id)
        return StoredToken(
            store_id=store_id,
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
            scope=grant.scope,
            token_type=grant.token_type,
            created_at=now,
        )

    async def get(self, store_id: int) -> Optional[StoredToken]:
        """Return the credential for *store_id*, or ``None`` if never saved."""
        try:
            async with self._session_factory() as session:
                row = await session.get(StoreToken, store_id)
        except SQLAlchemyError as exc:
            logger.error("get token failed for store %s: %s", store_id, exc)
            raise StorageError(f"Could not read token for store {store_id}") from exc
        return self._to_schema(row) if row is not None else None

    async def list(self) -> List[StoredToken]:
        """All credentials, newest write first."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(StoreToken).order_by(StoreToken.created_at.desc())
                )
                rows = result.scalars().all()
        except SQLAlchemyError as exc:
            logger.error("list tokens failed: %s", exc)
            raise StorageError("Could not list tokens") from exc
        return [self._to_schema(row) for row in rows]

    async def find_duplicates(self) -> List[Tuple[int, int]]:
        """``(store_id, count)`` for every store with more than one row."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(StoreToken.store_id, func.count())
                    .group_by(StoreToken.store_id)
                    .having(func.count() > 1)
                )
                return [(store_id, count) for store_id, count in result.all()]
        except SQLAlchemyError as exc:
            logger.error("duplicate check failed: %s", exc)
            raise StorageError("Could not check for duplicate tokens") from exc
