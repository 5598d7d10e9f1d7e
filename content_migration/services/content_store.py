"""
Content Store contract

The conversion pipeline talks to its backing store only through this
interface. Concrete stores implement the raw reads and writes; the base class
applies the content platform's insert semantics so every store behaves the
same way:

- inserting a content version creates its content document and stamps
  ``contentDocumentId`` on the version
- inserting a content note creates a content document with the note's key and
  a first content version, and stamps ``latestPublishedVersionId`` on the note
- content notes reject fields outside CONTENT_NOTE_INSERT_FIELDS

Reads by id make no ordering promise. Inserts return keys aligned with the
input list.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional

from content_migration.config.constants.arangodb import (
    CONTENT_NOTE_INSERT_FIELDS,
    CollectionNames,
)
from content_migration.exceptions.migration_exceptions import StoreOperationError
from content_migration.models.legacy import encode_body
from content_migration.utils.time_conversion import get_epoch_timestamp_in_ms


def new_key() -> str:
    return uuid.uuid4().hex


class ContentStore(ABC):
    """Bulk CRUD over typed collections"""

    async def insert(self, collection: str, documents: List[Dict[str, Any]]) -> List[str]:
        """
        Create documents in one atomic call.

        Args:
            collection: Target collection name
            documents: Documents to create; a missing ``_key`` is generated

        Returns:
            List[str]: Keys of the created documents, in input order
        """
        if not documents:
            return []
        writes = self._expand_insert(collection, documents)
        await self._insert_documents(writes)
        return [doc["_key"] for doc in writes[collection]]

    def _expand_insert(
        self, collection: str, documents: List[Dict[str, Any]]
    ) -> Dict[str, List[Dict[str, Any]]]:
        timestamp = get_epoch_timestamp_in_ms()
        primary: List[Dict[str, Any]] = []
        writes: Dict[str, List[Dict[str, Any]]] = {collection: primary}

        if collection == CollectionNames.CONTENT_NOTES.value:
            rejected = {
                field
                for doc in documents
                for field in doc
                if field not in CONTENT_NOTE_INSERT_FIELDS
            }
            if rejected:
                raise StoreOperationError(
                    f"Content notes do not accept fields: {sorted(rejected)}",
                    operation="insert",
                    collection=collection,
                )

        for document in documents:
            doc = {**document, "_key": document.get("_key") or new_key()}
            doc.setdefault("createdAtTimestamp", timestamp)

            if collection == CollectionNames.CONTENT_VERSIONS.value:
                content_document = self._content_document(new_key(), doc, timestamp)
                doc["contentDocumentId"] = content_document["_key"]
                doc["isLatest"] = True
                writes.setdefault(CollectionNames.CONTENT_DOCUMENTS.value, []).append(
                    content_document
                )

            elif collection == CollectionNames.CONTENT_NOTES.value:
                version = {
                    "_key": new_key(),
                    "title": doc.get("title", ""),
                    "versionData": encode_body(doc.get("content", "").encode("utf-8")),
                    "ownerId": doc.get("ownerId"),
                    "contentDocumentId": doc["_key"],
                    "isLatest": True,
                    "createdAtTimestamp": timestamp,
                }
                doc["latestPublishedVersionId"] = version["_key"]
                writes.setdefault(CollectionNames.CONTENT_DOCUMENTS.value, []).append(
                    self._content_document(doc["_key"], version, timestamp)
                )
                writes.setdefault(CollectionNames.CONTENT_VERSIONS.value, []).append(version)

            primary.append(doc)

        return writes

    @staticmethod
    def _content_document(key: str, version: Dict[str, Any], timestamp: int) -> Dict[str, Any]:
        return {
            "_key": key,
            "title": version.get("title", ""),
            "ownerId": version.get("ownerId"),
            "latestPublishedVersionId": version["_key"],
            "createdAtTimestamp": timestamp,
        }

    @abstractmethod
    async def _insert_documents(self, writes: Dict[str, List[Dict[str, Any]]]) -> None:
        """Write every document of every collection atomically"""

    @abstractmethod
    async def get_by_ids(
        self,
        collection: str,
        ids: List[str],
        fields: Optional[List[str]] = None,
    ) -> List[Dict[str, Any]]:
        """Read documents by key; order is not guaranteed"""

    @abstractmethod
    async def update(self, collection: str, documents: List[Dict[str, Any]]) -> None:
        """Merge each document into the stored document with the same ``_key``"""

    @abstractmethod
    async def delete(self, collection: str, ids: List[str]) -> None:
        """Delete documents by key"""

    @abstractmethod
    def scan(self, collection: str) -> AsyncIterator[Dict[str, Any]]:
        """Iterate every document in a collection"""
