from __future__ import annotations

import itertools
import threading
from datetime import datetime
from typing import Callable, Generic, Iterable, Protocol, TypeVar

from erp_backend.workflow.models import (
    ApproveHistoryGatewayEntity,
    AuditFields,
    EndNodeEntity,
    StartNodeEntity,
)

E = TypeVar("E", bound=AuditFields)


class BaseMapper(Protocol[E]):
    """Generic CRUD over one entity table. Write methods return affected rows."""

    def insert(self, entity: E) -> int:
        ...

    def select_by_id(self, entity_id: int) -> E | None:
        ...

    def select_batch_ids(self, ids: Iterable[int]) -> list[E]:
        ...

    def select_list(self, predicate: Callable[[E], bool] | None = None) -> list[E]:
        ...

    def select_count(self, predicate: Callable[[E], bool] | None = None) -> int:
        ...

    def update_by_id(self, entity: E) -> int:
        ...

    def delete_by_id(self, entity_id: int) -> int:
        ...


class MemoryMapper(Generic[E]):
    """In-process table; rows are copied in and out so callers never share state."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._rows: dict[int, E] = {}
        self._ids = itertools.count(1)
        self._clock = clock
        self._lock = threading.Lock()

    def insert(self, entity: E) -> int:
        with self._lock:
            if entity.id is None:
                entity.id = next(self._ids)
                while entity.id in self._rows:
                    entity.id = next(self._ids)
            elif entity.id in self._rows:
                return 0
            now = self._clock()
            entity.create_time = entity.create_time or now
            entity.update_time = entity.update_time or now
            entity.version_num = entity.version_num or 1
            self._rows[entity.id] = entity.model_copy(deep=True)
        return 1

    def select_by_id(self, entity_id: int) -> E | None:
        with self._lock:
            row = self._rows.get(entity_id)
            if row is None:
                return None
            return row.model_copy(deep=True)

    def select_batch_ids(self, ids: Iterable[int]) -> list[E]:
        with self._lock:
            rows = [self._rows.get(i) for i in ids]
            return [row.model_copy(deep=True) for row in rows if row is not None]

    def select_list(self, predicate: Callable[[E], bool] | None = None) -> list[E]:
        return [row.model_copy(deep=True) for row in self._snapshot() if predicate is None or predicate(row)]

    def select_count(self, predicate: Callable[[E], bool] | None = None) -> int:
        return sum(1 for row in self._snapshot() if predicate is None or predicate(row))

    def _snapshot(self) -> list[E]:
        with self._lock:
            return sorted(self._rows.values(), key=lambda row: row.id)

    def update_by_id(self, entity: E) -> int:
        """Update the non-null fields of ``entity``.

        When ``entity.version_num`` is set it must match the stored version,
        otherwise nothing is updated. On success the version is bumped on
        both the row and ``entity``.
        """
        if entity.id is None:
            return 0
        with self._lock:
            stored = self._rows.get(entity.id)
            if stored is None:
                return 0
            if entity.version_num is not None and entity.version_num != stored.version_num:
                return 0
            changes = entity.model_dump(exclude_none=True, exclude={"id", "create_time", "create_by"})
            changes["version_num"] = (stored.version_num or 0) + 1
            changes["update_time"] = self._clock()
            self._rows[entity.id] = stored.model_copy(update=changes, deep=True)
            entity.version_num = changes["version_num"]
            entity.update_time = changes["update_time"]
        return 1

    def delete_by_id(self, entity_id: int) -> int:
        with self._lock:
            return 1 if self._rows.pop(entity_id, None) is not None else 0


class StartNodeMapper(MemoryMapper[StartNodeEntity]):
    pass


class EndNodeMapper(MemoryMapper[EndNodeEntity]):
    pass


class ApproveHistoryGatewayMapper(MemoryMapper[ApproveHistoryGatewayEntity]):
    pass
