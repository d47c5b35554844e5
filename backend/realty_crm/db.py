"""
Document store access.

The CRM keeps every entity in a Firestore-style document database. Callers
work against the DocumentStore interface, which returns plain dicts with the
document id under "id". Two backends are available:

- FirestoreStore: google-cloud-firestore AsyncClient (production)
- MemoryStore: in-process collections with the same query semantics (dev/testing)

Set STORE_BACKEND=memory to run without Google Cloud credentials.
"""

import copy
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .config import get_settings
from .logging_config import get_logger

logger = get_logger(__name__)

# Collection names
CONTACTS = "contacts"
LISTINGS = "listings"
ACTIVITIES = "activities"
CONTACT_LISTS = "contactLists"
TASKS = "tasks"
AI_ACTIONS = "ai_actions"
AI_LIST_ACTIONS = "ai_list_actions"
PROSPECT_SEARCHES = "prospectSearches"
CONVERSATIONS = "conversations"

SUPPORTED_OPERATORS = ("==", "!=", "in")
MAX_IN_VALUES = 10

Filter = Tuple[str, str, Any]


class StoreError(Exception):
    """Raised when the persistence layer fails or rejects an operation."""

    def __init__(self, message: str, operation: str = None, collection: str = None):
        super().__init__(message)
        self.operation = operation
        self.collection = collection


class DocumentNotFound(StoreError):
    pass


def _validate_filters(filters: Iterable[Filter]) -> List[Filter]:
    checked = []
    for field, op, value in filters:
        if op not in SUPPORTED_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {op}")
        if op == "in":
            values = list(value)
            if not values or len(values) > MAX_IN_VALUES:
                raise ValueError(f"'in' filter takes between 1 and {MAX_IN_VALUES} values")
            value = values
        checked.append((field, op, value))
    return checked


class DocumentStore(ABC):
    """Abstract base for document stores."""

    backend_name = "abstract"

    @abstractmethod
    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Create a document with a generated id and return the id."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Overwrite the given fields. Raises DocumentNotFound for unknown ids."""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        pass

    @abstractmethod
    async def delete_field(self, collection: str, doc_id: str, field: str) -> None:
        pass

    @abstractmethod
    async def array_union(self, collection: str, doc_id: str, field: str, values: List[Any]) -> None:
        """Atomically append values to an array field, skipping ones already present."""

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        pass

    async def all(self, collection: str) -> List[Dict[str, Any]]:
        return await self.query(collection)

    async def ping(self) -> bool:
        await self.query(CONTACTS, limit=1)
        return True


class FirestoreStore(DocumentStore):
    """Firestore implementation on the async client."""

    backend_name = "firestore"

    def __init__(self, project: Optional[str] = None, client=None):
        from google.cloud import firestore
        from google.cloud.firestore import FieldFilter
        from google.api_core import exceptions as gcp_exceptions

        self._firestore = firestore
        self._field_filter = FieldFilter
        self._gcp_exceptions = gcp_exceptions
        self.client = client or firestore.AsyncClient(project=project)
        logger.info(
            "Firestore client initialised",
            extra={"action": "store_init", "extra_data": {"backend": "firestore", "project": project}},
        )

    def _wrap(self, exc: Exception, operation: str, collection: str) -> StoreError:
        logger.error(
            f"Firestore {operation} failed on {collection}: {exc}",
            extra={"action": "store_error", "extra_data": {"operation": operation, "collection": collection}},
            exc_info=True,
        )
        if isinstance(exc, self._gcp_exceptions.NotFound):
            return DocumentNotFound(str(exc), operation, collection)
        return StoreError(str(exc), operation, collection)

    @staticmethod
    def _to_dict(snapshot) -> Dict[str, Any]:
        data = snapshot.to_dict() or {}
        data["id"] = snapshot.id
        return data

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        try:
            _, doc_ref = await self.client.collection(collection).add(data)
            return doc_ref.id
        except self._gcp_exceptions.GoogleAPICallError as e:
            raise self._wrap(e, "add", collection) from e

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            snapshot = await self.client.collection(collection).document(doc_id).get()
        except self._gcp_exceptions.GoogleAPICallError as e:
            raise self._wrap(e, "get", collection) from e
        if not snapshot.exists:
            return None
        return self._to_dict(snapshot)

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        try:
            await self.client.collection(collection).document(doc_id).set(data)
        except self._gcp_exceptions.GoogleAPICallError as e:
            raise self._wrap(e, "set", collection) from e

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        try:
            await self.client.collection(collection).document(doc_id).update(fields)
        except self._gcp_exceptions.GoogleAPICallError as e:
            raise self._wrap(e, "update", collection) from e

    async def delete(self, collection: str, doc_id: str) -> None:
        try:
            await self.client.collection(collection).document(doc_id).delete()
        except self._gcp_exceptions.GoogleAPICallError as e:
            raise self._wrap(e, "delete", collection) from e

    async def delete_field(self, collection: str, doc_id: str, field: str) -> None:
        await self.update(collection, doc_id, {field: self._firestore.DELETE_FIELD})

    async def array_union(self, collection: str, doc_id: str, field: str, values: List[Any]) -> None:
        await self.update(collection, doc_id, {field: self._firestore.ArrayUnion(list(values))})

    async def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        query = self.client.collection(collection)
        for field, op, value in _validate_filters(filters):
            query = query.where(filter=self._field_filter(field, op, value))
        if order_by:
            direction = self._firestore.Query.DESCENDING if descending else self._firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        try:
            return [self._to_dict(doc) async for doc in query.stream()]
        except self._gcp_exceptions.GoogleAPICallError as e:
            raise self._wrap(e, "query", collection) from e


_MISSING = object()


def _matches(doc: Dict[str, Any], field: str, op: str, value: Any) -> bool:
    current = doc.get(field, _MISSING)
    if op == "==":
        return current is not _MISSING and current == value
    if op == "!=":
        # Firestore never returns documents that lack the field for '!='
        return current is not _MISSING and current is not None and current != value
    if op == "in":
        return current is not _MISSING and current in value
    return False


class MemoryStore(DocumentStore):
    """In-process store for local development and tests."""

    backend_name = "memory"

    def __init__(self, seed: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for collection, docs in (seed or {}).items():
            for doc_id, data in docs.items():
                self._bucket(collection)[doc_id] = copy.deepcopy(data)

    def _bucket(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    def _require(self, collection: str, doc_id: str) -> Dict[str, Any]:
        doc = self._bucket(collection).get(doc_id)
        if doc is None:
            raise DocumentNotFound(f"No document to update: {collection}/{doc_id}", "update", collection)
        return doc

    @staticmethod
    def _snapshot(doc_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        snapshot = copy.deepcopy(data)
        snapshot["id"] = doc_id
        return snapshot

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex[:20]
        self._bucket(collection)[doc_id] = copy.deepcopy(data)
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        data = self._bucket(collection).get(doc_id)
        if data is None:
            return None
        return self._snapshot(doc_id, data)

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self._bucket(collection)[doc_id] = copy.deepcopy(data)

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        self._require(collection, doc_id).update(copy.deepcopy(fields))

    async def delete(self, collection: str, doc_id: str) -> None:
        self._bucket(collection).pop(doc_id, None)

    async def delete_field(self, collection: str, doc_id: str, field: str) -> None:
        self._require(collection, doc_id).pop(field, None)

    async def array_union(self, collection: str, doc_id: str, field: str, values: List[Any]) -> None:
        doc = self._require(collection, doc_id)
        current = list(doc.get(field) or [])
        for value in values:
            if value not in current:
                current.append(value)
        doc[field] = current

    async def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        checked = _validate_filters(filters)
        results = [
            self._snapshot(doc_id, data)
            for doc_id, data in self._bucket(collection).items()
            if all(_matches(data, field, op, value) for field, op, value in checked)
        ]
        if order_by:
            # Firestore drops documents without the ordering field
            results = [doc for doc in results if doc.get(order_by) is not None]
            results.sort(key=lambda doc: doc[order_by], reverse=descending)
        results = results[offset:]
        if limit is not None:
            results = results[:limit]
        return results


_store: Optional[DocumentStore] = None


def get_store() -> DocumentStore:
    """Return the process-wide store for the configured backend."""
    global _store
    if _store is None:
        settings = get_settings()
        if settings.store_backend == "firestore":
            _store = FirestoreStore(project=settings.google_cloud_project)
        elif settings.store_backend == "memory":
            logger.warning("Using in-memory store; data is lost on restart")
            _store = MemoryStore()
        else:
            raise ValueError(f"Unknown STORE_BACKEND: {settings.store_backend}")
    return _store
