"""
Persistence gateway - upsert / delete / insert / select against named tables.

Every call runs in its own session and commits on its own, so the gateway
offers per-statement atomicity and nothing more. Callers order their writes
(parents before children, deletes before inserts) instead of relying on
multi-statement transactions.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Union

from sqlalchemy import Table, delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models.database import Base

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class PersistenceError(Exception):
    """A gateway operation failed against a collection"""

    def __init__(self, collection: str, cause: Union[BaseException, str]):
        self.collection = collection
        self.cause = cause
        super().__init__(f"{collection}: {cause}")


class PersistenceGateway(Protocol):
    async def upsert(
        self,
        collection: str,
        records: Union[Record, Sequence[Record]],
        conflict_keys: Sequence[str],
        update_existing: bool = True,
    ) -> int: ...

    async def delete_where(self, collection: str, filters: Mapping[str, Any]) -> int: ...

    async def insert_many(self, collection: str, records: Sequence[Record]) -> int: ...

    async def select_where(
        self,
        collection: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        exclude_nulls: Sequence[str] = (),
    ) -> List[Record]: ...


def _as_list(records: Union[Record, Sequence[Record]]) -> List[Record]:
    if isinstance(records, Mapping):
        return [dict(records)]
    return [dict(r) for r in records]


def _collapse(records: Iterable[Record], conflict_keys: Sequence[str]) -> List[Record]:
    # ON CONFLICT cannot touch the same row twice in one statement
    collapsed: Dict[tuple, Record] = {}
    for record in records:
        collapsed[tuple(record.get(k) for k in conflict_keys)] = record
    return list(collapsed.values())


class SqlAlchemyGateway:
    """PersistenceGateway backed by the ORM tables registered on Base"""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    def _table(self, collection: str) -> Table:
        table = Base.metadata.tables.get(collection)
        if table is None:
            raise PersistenceError(collection, "unknown collection")
        return table

    def _column(self, table: Table, collection: str, name: str):
        if name not in table.c:
            raise PersistenceError(collection, f"unknown column '{name}'")
        return table.c[name]

    @staticmethod
    def _dialect_insert(session: AsyncSession, collection: str):
        dialect_name = session.bind.dialect.name
        if dialect_name == "postgresql":
            from sqlalchemy.dialects.postgresql import insert as dialect_insert
        elif dialect_name == "sqlite":
            from sqlalchemy.dialects.sqlite import insert as dialect_insert
        else:
            raise PersistenceError(collection, f"upsert unsupported on dialect '{dialect_name}'")
        return dialect_insert

    async def upsert(self, collection, records, conflict_keys, update_existing=True) -> int:
        rows = _collapse(_as_list(records), conflict_keys)
        if not rows:
            return 0
        table = self._table(collection)

        # Rows with different column sets cannot share one VALUES clause
        groups: Dict[tuple, List[Record]] = {}
        for row in rows:
            groups.setdefault(tuple(sorted(row)), []).append(row)

        try:
            async with self.session_factory() as session:
                dialect_insert = self._dialect_insert(session, collection)
                for columns, group in groups.items():
                    stmt = dialect_insert(table).values(group)
                    update_cols = {
                        col: stmt.excluded[col] for col in columns if col not in conflict_keys
                    }
                    if update_existing and update_cols:
                        stmt = stmt.on_conflict_do_update(
                            index_elements=list(conflict_keys), set_=update_cols
                        )
                    else:
                        stmt = stmt.on_conflict_do_nothing(index_elements=list(conflict_keys))
                    await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(collection, e) from e

        logger.debug(f"Upserted {len(rows)} row(s) into {collection}")
        return len(rows)

    async def delete_where(self, collection, filters) -> int:
        table = self._table(collection)
        stmt = delete(table)
        for field, value in filters.items():
            stmt = stmt.where(self._column(table, collection, field) == value)

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(collection, e) from e

        logger.debug(f"Deleted {result.rowcount} row(s) from {collection} where {dict(filters)}")
        return result.rowcount

    async def insert_many(self, collection, records) -> int:
        rows = _as_list(records)
        if not rows:
            return 0
        table = self._table(collection)

        try:
            async with self.session_factory() as session:
                await session.execute(insert(table), rows)
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(collection, e) from e

        logger.debug(f"Inserted {len(rows)} row(s) into {collection}")
        return len(rows)

    async def select_where(
        self,
        collection,
        filters=None,
        order_by=None,
        descending=False,
        limit=None,
        exclude_nulls=(),
    ) -> List[Record]:
        table = self._table(collection)
        stmt = select(table)
        for field, value in (filters or {}).items():
            stmt = stmt.where(self._column(table, collection, field) == value)
        for field in exclude_nulls:
            stmt = stmt.where(self._column(table, collection, field).is_not(None))
        if order_by:
            column = self._column(table, collection, order_by)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            raise PersistenceError(collection, e) from e
