"""
Backend selection and the two collection backends behind every repository.

`RemoteCollection` talks to the document store (plus object storage for inline
images); `LocalCollection` keeps each collection as one JSON array in the local
key-value store. Both expose the same record-level operations so repositories
are written once.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
import time
from typing import Callable, Iterable, Optional, Protocol

import firebase_admin
from firebase_admin import credentials, firestore

from clubsite.config import Settings
from clubsite.document_store import DocumentStore, FirestoreDocumentStore
from clubsite.errors import NotFoundError
from clubsite.kv_store import KeyValueStore
from clubsite.storage import StorageClient, is_data_uri, upload_inline_data

logger = logging.getLogger(__name__)


def initialize_firestore(settings: Settings):
    """Initialize the default firebase app (once) and return a Firestore client."""
    try:
        app = firebase_admin.get_app()
    except ValueError:
        if settings.firebase_credentials_path:
            cred = credentials.Certificate(settings.firebase_credentials_path)
        else:
            cred = credentials.ApplicationDefault()
        app = firebase_admin.initialize_app(
            cred, {"projectId": settings.firebase_project_id}
        )
    return firestore.client(app)


class BackendSelector:
    """
    Answers whether the remote document store is usable.

    The initializer runs once, at construction. A missing initializer means
    the remote backend is not configured; an initializer that raises leaves
    the selector inactive so callers always have the local fallback.
    """

    def __init__(self, initializer: Optional[Callable[[], DocumentStore]] = None):
        self._store: Optional[DocumentStore] = None
        self.inactive_reason: Optional[str] = None
        if initializer is None:
            self.inactive_reason = "remote backend not configured"
        else:
            try:
                self._store = initializer()
            except Exception as e:
                self.inactive_reason = f"remote initialization failed: {e}"
                logger.warning("Remote backend unavailable: %s", e)
        if self._store is None:
            logger.info("Using local fallback store (%s)", self.inactive_reason)
        else:
            logger.info("Using remote document store")

    @classmethod
    def from_settings(cls, settings: Settings) -> "BackendSelector":
        if not settings.remote_configured:
            return cls(None)
        return cls(lambda: FirestoreDocumentStore(initialize_firestore(settings)))

    def is_remote_active(self) -> bool:
        return self._store is not None

    @property
    def document_store(self) -> Optional[DocumentStore]:
        return self._store


class CollectionBackend(Protocol):
    """Record-level operations over one collection; records carry their `id`."""

    def list_records(self) -> list[dict]:
        ...

    def get_record(self, record_id: str) -> Optional[dict]:
        ...

    def insert_record(self, data: dict, record_id: Optional[str] = None) -> dict:
        ...

    def replace_record(self, record_id: str, data: dict) -> dict:
        ...

    def update_record(self, record_id: str, fields: dict) -> None:
        ...

    def delete_record(self, record_id: str) -> None:
        ...

    def add_to_set(self, record_id: str, field: str, value: str) -> None:
        ...

    def remove_from_set(self, record_id: str, field: str, value: str) -> None:
        ...

    def toggle_flag(self, record_id: str, field: str, default: bool) -> bool:
        ...


class RemoteCollection:
    def __init__(
        self,
        store: DocumentStore,
        collection: str,
        storage: Optional[StorageClient] = None,
        binary_fields: Iterable[str] = (),
        seed: Optional[list[dict]] = None,
    ):
        self.store = store
        self.collection = collection
        self.storage = storage
        self.binary_fields = tuple(binary_fields)
        self.seed = seed or []
        self._seeded = not self.seed

    def _with_uploads(self, data: dict) -> dict:
        data = dict(data)
        data.pop("id", None)
        for field in self.binary_fields:
            value = data.get(field)
            if not is_data_uri(value):
                continue
            if self.storage is None:
                logger.warning(
                    "No object storage configured; storing inline %s.%s",
                    self.collection,
                    field,
                )
                continue
            data[field] = upload_inline_data(self.storage, self.collection, value)
        return data

    def _ensure_seeded(self) -> None:
        """Write the seed records once if the collection is empty."""
        if self._seeded:
            return
        if not self.store.list_documents(self.collection):
            logger.info(
                "Seeding empty collection '%s' with %d defaults",
                self.collection,
                len(self.seed),
            )
            for record in self.seed:
                body = {k: v for k, v in record.items() if k != "id"}
                self.store.set_document(self.collection, record["id"], body)
        self._seeded = True

    def list_records(self) -> list[dict]:
        self._ensure_seeded()
        return self.store.list_documents(self.collection)

    def get_record(self, record_id: str) -> Optional[dict]:
        self._ensure_seeded()
        return self.store.get_document(self.collection, record_id)

    def insert_record(self, data: dict, record_id: Optional[str] = None) -> dict:
        self._ensure_seeded()
        body = self._with_uploads(data)
        if record_id:
            self.store.set_document(self.collection, record_id, body)
        else:
            record_id = self.store.add_document(self.collection, body)
        return {**body, "id": record_id}

    def replace_record(self, record_id: str, data: dict) -> dict:
        self._ensure_seeded()
        if self.store.get_document(self.collection, record_id) is None:
            raise NotFoundError(self.collection, record_id)
        body = self._with_uploads(data)
        self.store.set_document(self.collection, record_id, body)
        return {**body, "id": record_id}

    def update_record(self, record_id: str, fields: dict) -> None:
        self._ensure_seeded()
        self.store.update_document(
            self.collection, record_id, self._with_uploads(fields)
        )

    def delete_record(self, record_id: str) -> None:
        self.store.delete_document(self.collection, record_id)

    def add_to_set(self, record_id: str, field: str, value: str) -> None:
        self.store.array_union(self.collection, record_id, field, [value])

    def remove_from_set(self, record_id: str, field: str, value: str) -> None:
        self.store.array_remove(self.collection, record_id, field, [value])

    def toggle_flag(self, record_id: str, field: str, default: bool) -> bool:
        self._ensure_seeded()
        return self.store.toggle_field(self.collection, record_id, field, default)


class LocalCollection:
    """
    One collection stored as a JSON array under `key`.

    A missing key reads as the seed list; unreadable contents read as an empty
    collection. Every read-modify-write holds the collection lock.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        id_prefix: str = "",
        seed: Optional[list[dict]] = None,
        prepend: bool = False,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.key = key
        self.id_prefix = id_prefix
        self.seed = seed or []
        self.prepend = prepend
        self.clock = clock
        self._lock = threading.RLock()

    def _load(self) -> list[dict]:
        raw = self.store.get(self.key)
        if raw is None:
            return copy.deepcopy(self.seed)
        try:
            records = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Malformed local data under '%s'; treating as empty", self.key)
            return []
        if not isinstance(records, list) or not all(
            isinstance(r, dict) and "id" in r for r in records
        ):
            logger.warning("Unexpected local data shape under '%s'; treating as empty", self.key)
            return []
        return records

    def _save(self, records: list[dict]) -> None:
        self.store.set(self.key, json.dumps(records))

    def _new_id(self, records: list[dict]) -> str:
        taken = {str(r["id"]) for r in records}
        stamp = int(self.clock() * 1000)
        while f"{self.id_prefix}{stamp}" in taken:
            stamp += 1
        return f"{self.id_prefix}{stamp}"

    @staticmethod
    def _index(records: list[dict], record_id: str) -> int:
        for i, record in enumerate(records):
            if record["id"] == record_id:
                return i
        return -1

    def _require(self, records: list[dict], record_id: str) -> int:
        index = self._index(records, record_id)
        if index < 0:
            raise NotFoundError(self.key, record_id)
        return index

    def list_records(self) -> list[dict]:
        with self._lock:
            return self._load()

    def get_record(self, record_id: str) -> Optional[dict]:
        with self._lock:
            records = self._load()
            index = self._index(records, record_id)
            return records[index] if index >= 0 else None

    def insert_record(self, data: dict, record_id: Optional[str] = None) -> dict:
        with self._lock:
            records = self._load()
            body = {k: v for k, v in data.items() if k != "id"}
            if record_id:
                records = [r for r in records if r["id"] != record_id]
            record = {"id": record_id or self._new_id(records), **body}
            if self.prepend:
                records.insert(0, record)
            else:
                records.append(record)
            self._save(records)
            return copy.deepcopy(record)

    def replace_record(self, record_id: str, data: dict) -> dict:
        with self._lock:
            records = self._load()
            index = self._require(records, record_id)
            body = {k: v for k, v in data.items() if k != "id"}
            records[index] = {"id": record_id, **body}
            self._save(records)
            return copy.deepcopy(records[index])

    def update_record(self, record_id: str, fields: dict) -> None:
        with self._lock:
            records = self._load()
            index = self._require(records, record_id)
            records[index].update({k: v for k, v in fields.items() if k != "id"})
            self._save(records)

    def delete_record(self, record_id: str) -> None:
        with self._lock:
            records = self._load()
            self._save([r for r in records if r["id"] != record_id])

    def add_to_set(self, record_id: str, field: str, value: str) -> None:
        with self._lock:
            records = self._load()
            record = records[self._require(records, record_id)]
            values = list(record.get(field) or [])
            if value not in values:
                values.append(value)
            record[field] = values
            self._save(records)

    def remove_from_set(self, record_id: str, field: str, value: str) -> None:
        with self._lock:
            records = self._load()
            record = records[self._require(records, record_id)]
            record[field] = [v for v in (record.get(field) or []) if v != value]
            self._save(records)

    def toggle_flag(self, record_id: str, field: str, default: bool) -> bool:
        with self._lock:
            records = self._load()
            record = records[self._require(records, record_id)]
            record[field] = not record.get(field, default)
            self._save(records)
            return record[field]
