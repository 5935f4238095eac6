"""
Remote document store abstraction: Firestore and an in-memory test double.

Documents are plain dicts; ids are assigned by the store on `add_document`.
"""

from __future__ import annotations

import copy
import threading
import uuid
from contextlib import contextmanager
from typing import Dict, Iterable, Optional, Protocol

from firebase_admin import firestore
from google.api_core import exceptions

from clubsite.errors import NotFoundError, RemoteOperationError


class DocumentStore(Protocol):
    """Interface for collection-based document access."""

    def list_documents(self, collection: str) -> list[dict]:
        ...

    def get_document(self, collection: str, doc_id: str) -> Optional[dict]:
        ...

    def add_document(self, collection: str, data: dict) -> str:
        ...

    def set_document(self, collection: str, doc_id: str, data: dict) -> None:
        ...

    def update_document(self, collection: str, doc_id: str, fields: dict) -> None:
        ...

    def delete_document(self, collection: str, doc_id: str) -> None:
        ...

    def array_union(
        self, collection: str, doc_id: str, field: str, values: Iterable[str]
    ) -> None:
        ...

    def array_remove(
        self, collection: str, doc_id: str, field: str, values: Iterable[str]
    ) -> None:
        ...

    def toggle_field(
        self, collection: str, doc_id: str, field: str, default: bool
    ) -> bool:
        ...


class InMemoryDocumentStore:
    """Simple in-memory document store for development and tests."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, dict]] = {}
        self._lock = threading.Lock()

    def _docs(self, collection: str) -> Dict[str, dict]:
        return self.collections.setdefault(collection, {})

    def _existing(self, collection: str, doc_id: str) -> dict:
        doc = self._docs(collection).get(doc_id)
        if doc is None:
            raise NotFoundError(collection, doc_id)
        return doc

    def list_documents(self, collection: str) -> list[dict]:
        return [
            {**copy.deepcopy(doc), "id": doc_id}
            for doc_id, doc in self._docs(collection).items()
        ]

    def get_document(self, collection: str, doc_id: str) -> Optional[dict]:
        doc = self._docs(collection).get(doc_id)
        if doc is None:
            return None
        return {**copy.deepcopy(doc), "id": doc_id}

    def add_document(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex
        self._docs(collection)[doc_id] = copy.deepcopy(data)
        return doc_id

    def set_document(self, collection: str, doc_id: str, data: dict) -> None:
        self._docs(collection)[doc_id] = copy.deepcopy(data)

    def update_document(self, collection: str, doc_id: str, fields: dict) -> None:
        self._existing(collection, doc_id).update(copy.deepcopy(fields))

    def delete_document(self, collection: str, doc_id: str) -> None:
        self._docs(collection).pop(doc_id, None)

    def array_union(
        self, collection: str, doc_id: str, field: str, values: Iterable[str]
    ) -> None:
        with self._lock:
            doc = self._existing(collection, doc_id)
            current = list(doc.get(field) or [])
            for value in values:
                if value not in current:
                    current.append(value)
            doc[field] = current

    def array_remove(
        self, collection: str, doc_id: str, field: str, values: Iterable[str]
    ) -> None:
        with self._lock:
            doc = self._existing(collection, doc_id)
            removed = set(values)
            doc[field] = [v for v in (doc.get(field) or []) if v not in removed]

    def toggle_field(
        self, collection: str, doc_id: str, field: str, default: bool
    ) -> bool:
        with self._lock:
            doc = self._existing(collection, doc_id)
            value = not doc.get(field, default)
            doc[field] = value
            return value

    def reset(self) -> None:
        self.collections.clear()


@contextmanager
def _translate_errors(collection: str, doc_id: Optional[str] = None):
    try:
        yield
    except exceptions.NotFound as e:
        if doc_id is None:
            raise RemoteOperationError(str(e)) from e
        raise NotFoundError(collection, doc_id) from e
    except exceptions.GoogleAPICallError as e:
        raise RemoteOperationError(
            f"Document store request on '{collection}' failed: {e.message}"
        ) from e


class FirestoreDocumentStore:
    """Firestore-backed implementation using the firebase_admin client."""

    def __init__(self, client):
        self.client = client

    def _ref(self, collection: str, doc_id: str):
        return self.client.collection(collection).document(doc_id)

    def list_documents(self, collection: str) -> list[dict]:
        with _translate_errors(collection):
            return [
                {**(snapshot.to_dict() or {}), "id": snapshot.id}
                for snapshot in self.client.collection(collection).stream()
            ]

    def get_document(self, collection: str, doc_id: str) -> Optional[dict]:
        with _translate_errors(collection):
            snapshot = self._ref(collection, doc_id).get()
            if not snapshot.exists:
                return None
            return {**(snapshot.to_dict() or {}), "id": snapshot.id}

    def add_document(self, collection: str, data: dict) -> str:
        with _translate_errors(collection):
            _, ref = self.client.collection(collection).add(data)
            return ref.id

    def set_document(self, collection: str, doc_id: str, data: dict) -> None:
        with _translate_errors(collection, doc_id):
            self._ref(collection, doc_id).set(data)

    def update_document(self, collection: str, doc_id: str, fields: dict) -> None:
        with _translate_errors(collection, doc_id):
            self._ref(collection, doc_id).update(fields)

    def delete_document(self, collection: str, doc_id: str) -> None:
        # Firestore deletes of missing documents succeed.
        with _translate_errors(collection):
            self._ref(collection, doc_id).delete()

    def array_union(
        self, collection: str, doc_id: str, field: str, values: Iterable[str]
    ) -> None:
        with _translate_errors(collection, doc_id):
            self._ref(collection, doc_id).update(
                {field: firestore.ArrayUnion(list(values))}
            )

    def array_remove(
        self, collection: str, doc_id: str, field: str, values: Iterable[str]
    ) -> None:
        with _translate_errors(collection, doc_id):
            self._ref(collection, doc_id).update(
                {field: firestore.ArrayRemove(list(values))}
            )

    def toggle_field(
        self, collection: str, doc_id: str, field: str, default: bool
    ) -> bool:
        ref = self._ref(collection, doc_id)

        @firestore.transactional
        def flip_in_transaction(transaction) -> bool:
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError(collection, doc_id)
            value = not (snapshot.to_dict() or {}).get(field, default)
            transaction.update(ref, {field: value})
            return value

        with _translate_errors(collection, doc_id):
            return flip_in_transaction(self.client.transaction())
