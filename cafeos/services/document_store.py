import copy
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Any, Protocol

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, sessionmaker

from cafeos.models.document import Document

logger = logging.getLogger("cafeos.store")

Record = dict[str, Any]
OnChange = Callable[[Record | None], None]
Unsubscribe = Callable[[], None]


@dataclass(frozen=True)
class VersionedRecord:
    data: Record
    version: int


class DocumentStore(Protocol):
    """
    Records addressed by (collection, key). Every write bumps the record's
    version; `*_if_version` writes only succeed while the caller's version is
    still current.
    """

    def read_all(self, collection: str) -> dict[str, Record]:
        ...

    def read_one(self, collection: str, key: str) -> Record | None:
        ...

    def read_versioned(self, collection: str, key: str) -> VersionedRecord | None:
        ...

    def write_one(self, collection: str, key: str, record: Record) -> None:
        ...

    def patch_one(self, collection: str, key: str, fields: Record) -> None:
        ...

    def patch_if_version(self, collection: str, key: str, expected_version: int, fields: Record) -> bool:
        ...

    def write_if_version(self, collection: str, key: str, expected_version: int, record: Record) -> bool:
        ...

    def delete_one(self, collection: str, key: str) -> None:
        ...

    def subscribe(self, collection: str, key: str, on_change: OnChange) -> Unsubscribe:
        ...


def _drop_none(fields: Record) -> Record:
    return {name: value for name, value in fields.items() if value is not None}


class _Subscribers:
    def __init__(self):
        self._lock = Lock()
        self._callbacks: dict[tuple[str, str], list[OnChange]] = {}

    def add(self, collection: str, key: str, on_change: OnChange) -> Unsubscribe:
        slot = (collection, key)
        with self._lock:
            self._callbacks.setdefault(slot, []).append(on_change)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._callbacks.get(slot, [])
                if on_change in callbacks:
                    callbacks.remove(on_change)
                if not callbacks:
                    self._callbacks.pop(slot, None)

        return unsubscribe

    def notify(self, collection: str, key: str, record: Record | None) -> None:
        with self._lock:
            callbacks = list(self._callbacks.get((collection, key), []))
        for callback in callbacks:
            try:
                callback(copy.deepcopy(record))
            except Exception as exc:
                # A broken listener must not fail the write that triggered it.
                logger.error(
                    json.dumps(
                        {
                            "event": "subscriber_failed",
                            "collection": collection,
                            "key": key,
                            "error": str(exc),
                        }
                    )
                )


class InMemoryDocumentStore:
    """Process-local store used by tests and single-terminal setups."""

    def __init__(self):
        self._lock = Lock()
        self._collections: dict[str, dict[str, VersionedRecord]] = {}
        self._subscribers = _Subscribers()

    def read_all(self, collection: str) -> dict[str, Record]:
        with self._lock:
            rows = self._collections.get(collection, {})
            return {key: copy.deepcopy(row.data) for key, row in rows.items()}

    def read_one(self, collection: str, key: str) -> Record | None:
        current = self.read_versioned(collection, key)
        return current.data if current else None

    def read_versioned(self, collection: str, key: str) -> VersionedRecord | None:
        with self._lock:
            row = self._collections.get(collection, {}).get(key)
            if row is None:
                return None
            return VersionedRecord(data=copy.deepcopy(row.data), version=row.version)

    def _put(self, collection: str, key: str, data: Record, current: VersionedRecord | None) -> Record:
        version = current.version + 1 if current else 1
        stored = copy.deepcopy(data)
        self._collections.setdefault(collection, {})[key] = VersionedRecord(data=stored, version=version)
        return stored

    def write_one(self, collection: str, key: str, record: Record) -> None:
        with self._lock:
            current = self._collections.get(collection, {}).get(key)
            stored = self._put(collection, key, _drop_none(record), current)
        self._subscribers.notify(collection, key, stored)

    def patch_one(self, collection: str, key: str, fields: Record) -> None:
        with self._lock:
            current = self._collections.get(collection, {}).get(key)
            base = current.data if current else {}
            stored = self._put(collection, key, {**base, **_drop_none(fields)}, current)
        self._subscribers.notify(collection, key, stored)

    def patch_if_version(self, collection: str, key: str, expected_version: int, fields: Record) -> bool:
        with self._lock:
            current = self._collections.get(collection, {}).get(key)
            if current is None or current.version != expected_version:
                return False
            stored = self._put(collection, key, {**current.data, **_drop_none(fields)}, current)
        self._subscribers.notify(collection, key, stored)
        return True

    def write_if_version(self, collection: str, key: str, expected_version: int, record: Record) -> bool:
        with self._lock:
            current = self._collections.get(collection, {}).get(key)
            if current is None or current.version != expected_version:
                return False
            stored = self._put(collection, key, _drop_none(record), current)
        self._subscribers.notify(collection, key, stored)
        return True

    def delete_one(self, collection: str, key: str) -> None:
        with self._lock:
            self._collections.get(collection, {}).pop(key, None)
        self._subscribers.notify(collection, key, None)

    def subscribe(self, collection: str, key: str, on_change: OnChange) -> Unsubscribe:
        unsubscribe = self._subscribers.add(collection, key, on_change)
        on_change(self.read_one(collection, key))
        return unsubscribe


class SqlDocumentStore:
    """
    Store backed by the `documents` table. Each call runs in its own short
    session and commits before returning.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory
        self._subscribers = _Subscribers()

    def read_all(self, collection: str) -> dict[str, Record]:
        with self._session_factory() as db:
            rows = db.execute(
                select(Document.key, Document.data)
                .where(Document.collection == collection)
                .order_by(Document.created_at.asc(), Document.key.asc())
            ).all()
        return {key: dict(data) for key, data in rows}

    def read_one(self, collection: str, key: str) -> Record | None:
        current = self.read_versioned(collection, key)
        return current.data if current else None

    def read_versioned(self, collection: str, key: str) -> VersionedRecord | None:
        with self._session_factory() as db:
            row = db.execute(
                select(Document.data, Document.version).where(
                    Document.collection == collection,
                    Document.key == key,
                )
            ).first()
        if row is None:
            return None
        data, version = row
        return VersionedRecord(data=dict(data), version=int(version))

    def write_one(self, collection: str, key: str, record: Record) -> None:
        stored = _drop_none(record)
        with self._session_factory() as db:
            doc = db.get(Document, (collection, key))
            if doc is None:
                db.add(Document(collection=collection, key=key, data=stored, version=1))
            else:
                doc.data = stored
                doc.version = doc.version + 1
            db.commit()
        self._subscribers.notify(collection, key, stored)

    def patch_one(self, collection: str, key: str, fields: Record) -> None:
        with self._session_factory() as db:
            doc = db.get(Document, (collection, key))
            if doc is None:
                stored = _drop_none(fields)
                db.add(Document(collection=collection, key=key, data=stored, version=1))
            else:
                stored = {**doc.data, **_drop_none(fields)}
                doc.data = stored
                doc.version = doc.version + 1
            db.commit()
        self._subscribers.notify(collection, key, stored)

    def _swap(self, db: Session, collection: str, key: str, expected_version: int, stored: Record) -> bool:
        result = db.execute(
            update(Document)
            .where(
                Document.collection == collection,
                Document.key == key,
                Document.version == expected_version,
            )
            .values(data=stored, version=expected_version + 1)
        )
        db.commit()
        return result.rowcount == 1

    def patch_if_version(self, collection: str, key: str, expected_version: int, fields: Record) -> bool:
        with self._session_factory() as db:
            row = db.execute(
                select(Document.data).where(
                    Document.collection == collection,
                    Document.key == key,
                    Document.version == expected_version,
                )
            ).first()
            if row is None:
                return False
            stored = {**dict(row[0]), **_drop_none(fields)}
            swapped = self._swap(db, collection, key, expected_version, stored)
        if swapped:
            self._subscribers.notify(collection, key, stored)
        return swapped

    def write_if_version(self, collection: str, key: str, expected_version: int, record: Record) -> bool:
        stored = _drop_none(record)
        with self._session_factory() as db:
            swapped = self._swap(db, collection, key, expected_version, stored)
        if swapped:
            self._subscribers.notify(collection, key, stored)
        return swapped

    def delete_one(self, collection: str, key: str) -> None:
        with self._session_factory() as db:
            db.execute(
                delete(Document).where(
                    Document.collection == collection,
                    Document.key == key,
                )
            )
            db.commit()
        self._subscribers.notify(collection, key, None)

    def subscribe(self, collection: str, key: str, on_change: OnChange) -> Unsubscribe:
        unsubscribe = self._subscribers.add(collection, key, on_change)
        on_change(self.read_one(collection, key))
        return unsubscribe
