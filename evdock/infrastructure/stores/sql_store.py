"""SQLAlchemy implementation of KeyValueStore."""

from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import delete, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from evdock.core.metrics import track_storage_latency
from evdock.domain.exceptions import ConcurrentModificationException, StorageException
from evdock.domain.interfaces import KeyValueStore, StoredItem
from evdock.infrastructure.database.models import KeyValueModel

logger = structlog.get_logger(__name__)


class SqlKeyValueStore(KeyValueStore):
    """
    Key-value store backed by the ``kv_store`` table.

    Versioned writes are conditional UPDATEs (or conflict-ignoring
    INSERTs for new keys); a write that touches no row means another
    writer got there first.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_item(self, key: str) -> Optional[StoredItem]:
        stmt = select(KeyValueModel.value, KeyValueModel.version).where(
            KeyValueModel.key == key
        )
        try:
            with track_storage_latency("read"):
                result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("storage_read_failed", key=key, error=str(e))
            raise StorageException(f"Failed to read {key}") from e

        row = result.one_or_none()
        if row is None:
            return None

        return StoredItem(value=row.value, version=row.version)

    async def set_item(
        self,
        key: str,
        value: str,
        expected_version: int | None = None,
    ) -> int:
        try:
            with track_storage_latency("write"):
                if expected_version is None:
                    return await self._upsert(key, value)
                if expected_version == 0:
                    return await self._insert_new(key, value)
                return await self._compare_and_swap(key, value, expected_version)
        except SQLAlchemyError as e:
            logger.error("storage_write_failed", key=key, error=str(e))
            raise StorageException(f"Failed to write {key}") from e

    async def remove_item(self, key: str) -> None:
        try:
            with track_storage_latency("remove"):
                await self._session.execute(
                    delete(KeyValueModel).where(KeyValueModel.key == key)
                )
                await self._session.flush()
        except SQLAlchemyError as e:
            logger.error("storage_remove_failed", key=key, error=str(e))
            raise StorageException(f"Failed to remove {key}") from e

    async def _upsert(self, key: str, value: str) -> int:
        current = await self.get_item(key)
        if current is None:
            return await self._insert_new(key, value)
        return await self._compare_and_swap(key, value, current.version)

    async def _insert_new(self, key: str, value: str) -> int:
        values = {
            "key": key,
            "value": value,
            "version": 1,
            "updated_at": datetime.now(timezone.utc),
        }
        table = KeyValueModel.__table__
        dialect = self._session.get_bind().dialect.name

        if dialect == "postgresql":
            stmt = postgresql.insert(table).values(**values).on_conflict_do_nothing(
                index_elements=[table.c.key]
            )
        elif dialect == "sqlite":
            stmt = sqlite.insert(table).values(**values).on_conflict_do_nothing(
                index_elements=[table.c.key]
            )
        else:
            stmt = insert(table).values(**values)

        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise ConcurrentModificationException(key)

        await self._session.flush()
        return 1

    async def _compare_and_swap(self, key: str, value: str, expected_version: int) -> int:
        new_version = expected_version + 1
        stmt = (
            update(KeyValueModel)
            .where(KeyValueModel.key == key)
            .where(KeyValueModel.version == expected_version)
            .values(
                value=value,
                version=new_version,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )

        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise ConcurrentModificationException(key)

        await self._session.flush()
        return new_version
