from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Dict, List, Mapping, Optional

import pytest

from models.gateway import PersistenceError


class FakeGateway:
    """In-memory PersistenceGateway with per-operation failure injection"""

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.calls: List[tuple[str, str]] = []
        self._failures: List[tuple[str, str, Callable[[Any], bool], Exception]] = []

    def fail(
        self,
        op: str,
        collection: str,
        when: Optional[Callable[[Any], bool]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self._failures.append(
            (op, collection, when or (lambda _: True), error or PersistenceError(collection, "boom"))
        )

    def _check(self, op: str, collection: str, argument: Any) -> None:
        self.calls.append((op, collection))
        for f_op, f_collection, when, error in self._failures:
            if f_op == op and f_collection == collection and when(argument):
                raise error

    def rows(self, collection: str, **filters: Any) -> List[Dict[str, Any]]:
        return [
            row for row in self.tables[collection]
            if all(row.get(k) == v for k, v in filters.items())
        ]

    def get(self, collection: str, row_id: str) -> Optional[Dict[str, Any]]:
        matches = self.rows(collection, id=row_id)
        return matches[0] if matches else None

    async def upsert(self, collection, records, conflict_keys, update_existing=True) -> int:
        rows = [dict(records)] if isinstance(records, Mapping) else [dict(r) for r in records]
        self._check("upsert", collection, rows)
        for record in rows:
            key = tuple(record.get(k) for k in conflict_keys)
            existing = next(
                (r for r in self.tables[collection] if tuple(r.get(k) for k in conflict_keys) == key),
                None,
            )
            if existing is None:
                self.tables[collection].append(record)
            elif update_existing:
                existing.update(record)
        return len(rows)

    async def delete_where(self, collection, filters) -> int:
        self._check("delete", collection, dict(filters))
        before = len(self.tables[collection])
        self.tables[collection] = [
            row for row in self.tables[collection]
            if not all(row.get(k) == v for k, v in filters.items())
        ]
        return before - len(self.tables[collection])

    async def insert_many(self, collection, records) -> int:
        rows = [dict(r) for r in records]
        self._check("insert", collection, rows)
        self.tables[collection].extend(rows)
        return len(rows)

    async def select_where(
        self,
        collection,
        filters=None,
        order_by=None,
        descending=False,
        limit=None,
        exclude_nulls=(),
    ) -> List[Dict[str, Any]]:
        self._check("select", collection, dict(filters or {}))
        rows = self.rows(collection, **(filters or {}))
        rows = [r for r in rows if all(r.get(f) is not None for f in exclude_nulls)]
        if order_by:
            rows = sorted(rows, key=lambda r: r.get(order_by), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return [dict(r) for r in rows]


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()
