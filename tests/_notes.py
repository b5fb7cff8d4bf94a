from __future__ import annotations

import copy
import itertools
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from storecheck import (
    DuplicateKeyError,
    NotFoundError,
    NullFieldError,
    OperationConfig,
    OversizedFieldError,
    column,
    computed,
)
from storecheck.testbed import AuditClock


@dataclass
class Note:
    id: Optional[int] = column(default=None, identifier=True)
    title: Optional[str] = column(default=None, nullable=False, unique=True, max_size=32)
    body: Optional[str] = column(default=None, max_size=256)
    tags: Optional[list[str]] = None
    pinned: bool = column(default=False, nullable=False)
    create_time: Optional[datetime] = None
    modify_time: Optional[datetime] = None
    delete_time: Optional[datetime] = None

    @computed
    def headline(self) -> str:
        return (self.title or "").upper()


class MemoryNoteStore:
    """
    Dict-backed store honouring the full data-lifecycle contract.

    Records are copied in and out so callers never share state with the store.
    """

    storecheck_operations = {
        "update": OperationConfig(unmodified=("id", "create_time", "delete_time")),
        "update_body": OperationConfig(modified=("body", "modify_time")),
    }

    def __init__(self, clock: Optional[AuditClock] = None) -> None:
        self.clock = clock or AuditClock()
        self._rows: dict[int, Note] = {}
        self._ids = itertools.count(1)

    def add(self, note: Note) -> datetime:
        self._validate(note)
        now = self.clock.now()
        note.id = next(self._ids)
        note.create_time = now
        note.modify_time = None
        note.delete_time = None
        self._rows[note.id] = copy.deepcopy(note)
        return now

    def get(self, id_: int) -> Note:
        return copy.deepcopy(self._locate(id_))

    def get_by_title(self, title: str) -> Note:
        return copy.deepcopy(self._locate_title(title))

    def get_by_title_or_null(self, title: str) -> Optional[Note]:
        try:
            return self.get_by_title(title)
        except NotFoundError:
            return None

    def get_body(self, id_: int) -> Optional[str]:
        return self._locate(id_).body

    def exist(self, id_: int) -> bool:
        return id_ in self._rows

    def exist_by_title(self, title: str) -> bool:
        return any(row.title == title for row in self._rows.values())

    def exist_non_deleted(self, id_: int) -> bool:
        row = self._rows.get(id_)
        return row is not None and row.delete_time is None

    def count(self) -> int:
        return len(self._rows)

    def update(self, note: Note) -> datetime:
        row = self._locate(note.id, live=True)
        self._validate(note, exclude_id=row.id)
        now = self.clock.now()
        row.title = note.title
        row.body = note.body
        row.tags = copy.deepcopy(note.tags)
        row.pinned = note.pinned
        row.modify_time = now
        note.modify_time = now
        return now

    def update_body(self, id_: int, body: Optional[str]) -> datetime:
        row = self._locate(id_, live=True)
        if body is not None and len(body) > 256:
            raise OversizedFieldError("body")
        now = self.clock.now()
        row.body = body
        row.modify_time = now
        return now

    def delete(self, id_: int) -> datetime:
        row = self._locate(id_, live=True)
        row.delete_time = self.clock.now()
        return row.delete_time

    def delete_by_title(self, title: str) -> datetime:
        row = self._locate_title(title, live=True)
        row.delete_time = self.clock.now()
        return row.delete_time

    def restore(self, id_: int) -> None:
        self._locate(id_, live=False).delete_time = None

    def purge(self, id_: int) -> None:
        del self._rows[self._locate(id_, live=False).id]

    def purge_all(self) -> int:
        deleted = [id_ for id_, row in self._rows.items() if row.delete_time is not None]
        for id_ in deleted:
            del self._rows[id_]
        return len(deleted)

    def erase(self, id_: int) -> None:
        del self._rows[self._locate(id_).id]

    def clear(self) -> int:
        count = len(self._rows)
        self._rows.clear()
        return count

    def _matches(self, row: Note, live: Optional[bool]) -> bool:
        return live is None or (row.delete_time is None) is live

    def _locate(self, id_: Any, live: Optional[bool] = None) -> Note:
        row = self._rows.get(id_)
        if row is None or not self._matches(row, live):
            raise NotFoundError("note", "id", id_)
        return row

    def _locate_title(self, title: Any, live: Optional[bool] = None) -> Note:
        for row in self._rows.values():
            if row.title == title and self._matches(row, live):
                return row
        raise NotFoundError("note", "title", title)

    def _validate(self, note: Note, exclude_id: Optional[int] = None) -> None:
        if note.title is None:
            raise NullFieldError("title")
        if len(note.title) > 32:
            raise OversizedFieldError("title")
        if note.body is not None and len(note.body) > 256:
            raise OversizedFieldError("body")
        for row in self._rows.values():
            if row.title == note.title and row.id != exclude_id:
                raise DuplicateKeyError("title", note.title)


@dataclass
class Notebook:
    id: Optional[int] = column(default=None, identifier=True)
    title: Optional[str] = column(default=None, nullable=False, max_size=32)
    create_time: Optional[datetime] = None
    modify_time: Optional[datetime] = None
    delete_time: Optional[datetime] = None


@dataclass
class Page:
    id: Optional[int] = column(default=None, identifier=True)
    notebook: Optional[Notebook] = column(default=None, nullable=False, references=Notebook)
    text: Optional[str] = column(default=None, max_size=64)
    create_time: Optional[datetime] = None
    modify_time: Optional[datetime] = None
    delete_time: Optional[datetime] = None


class MemoryRecordStore:
    """Soft-delete store without validation, for record types keyed by ``id``."""

    entity = ""

    def __init__(self) -> None:
        self.clock = AuditClock()
        self._rows: dict[int, Any] = {}
        self._ids = itertools.count(1)

    def add(self, record: Any) -> datetime:
        now = self.clock.now()
        record.id = next(self._ids)
        record.create_time = now
        record.modify_time = None
        record.delete_time = None
        self._rows[record.id] = copy.deepcopy(record)
        return now

    def get(self, id_: int) -> Any:
        return copy.deepcopy(self._locate(id_))

    def exist(self, id_: int) -> bool:
        return id_ in self._rows

    def delete(self, id_: int) -> datetime:
        row = self._locate(id_, live=True)
        row.delete_time = self.clock.now()
        return row.delete_time

    def restore(self, id_: int) -> None:
        self._locate(id_, live=False).delete_time = None

    def clear(self) -> int:
        count = len(self._rows)
        self._rows.clear()
        return count

    def _locate(self, id_: Any, live: Optional[bool] = None) -> Any:
        row = self._rows.get(id_)
        if row is None or (live is not None and (row.delete_time is None) is not live):
            raise NotFoundError(self.entity, "id", id_)
        return row


class MemoryNotebookStore(MemoryRecordStore):
    entity = "notebook"


class MemoryPageStore(MemoryRecordStore):
    entity = "page"
