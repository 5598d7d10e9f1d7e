import hashlib
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from content_migration.models.legacy import encode_body
from content_migration.utils.time_conversion import get_epoch_timestamp_in_ms


def conversion_key(source_collection: str, source_key: str) -> str:
    """Key of everything derived from one legacy record, unique across legacy collections"""
    return f"{source_collection}-{source_key}"


class ShareType(str, Enum):
    VIEW = "V"
    COLLABORATE = "C"


class Visibility(str, Enum):
    ALL_USERS = "AllUsers"
    INTERNAL_USERS = "InternalUsers"


class ContentVersionDraft(BaseModel):
    """Content version ready to insert; carries provenance inline"""

    title: str
    path_on_client: str
    version_data: bytes = b""
    description: Optional[str] = None
    owner_id: Optional[str] = None
    original_record_id: Optional[str] = None
    original_record_parent_id: Optional[str] = None
    original_record_owner_id: Optional[str] = None

    def to_arango_document(self) -> Dict[str, Any]:
        doc = {
            "title": self.title,
            "pathOnClient": self.path_on_client,
            "versionData": encode_body(self.version_data),
            "description": self.description,
            "ownerId": self.owner_id,
            "originalRecordId": self.original_record_id,
            "originalRecordParentId": self.original_record_parent_id,
            "originalRecordOwnerId": self.original_record_owner_id,
        }
        return {field: value for field, value in doc.items() if value is not None}


class ContentNoteDraft(BaseModel):
    """Content note ready to insert. Notes accept no custom fields on create."""

    title: str
    content: str = ""
    owner_id: Optional[str] = None

    def to_arango_document(self) -> Dict[str, Any]:
        doc = {"title": self.title, "content": self.content}
        if self.owner_id is not None:
            doc["ownerId"] = self.owner_id
        return doc


class ContentVersion(BaseModel):
    key: str
    title: str = ""
    content_document_id: Optional[str] = None
    original_record_id: Optional[str] = None
    original_record_parent_id: Optional[str] = None
    original_record_owner_id: Optional[str] = None

    @classmethod
    def from_arango_document(cls, data: Dict[str, Any]) -> "ContentVersion":
        return cls(
            key=data["_key"],
            title=data.get("title", ""),
            content_document_id=data.get("contentDocumentId"),
            original_record_id=data.get("originalRecordId"),
            original_record_parent_id=data.get("originalRecordParentId"),
            original_record_owner_id=data.get("originalRecordOwnerId"),
        )


class ContentDocumentLink(BaseModel):
    """Sharing grant giving an entity visibility of a content document"""

    content_document_id: str
    linked_entity_id: str
    share_type: ShareType
    visibility: Visibility = Field(default=Visibility.ALL_USERS)

    @property
    def link_key(self) -> str:
        # One link per document and entity; entity ids may hold characters _key rejects
        identity = f"{self.content_document_id}|{self.linked_entity_id}"
        return hashlib.sha256(identity.encode("utf-8")).hexdigest()

    def to_arango_document(self) -> Dict[str, Any]:
        timestamp = get_epoch_timestamp_in_ms()
        return {
            "_key": self.link_key,
            "contentDocumentId": self.content_document_id,
            "linkedEntityId": self.linked_entity_id,
            "shareType": self.share_type.value,
            "visibility": self.visibility.value,
            "createdAtTimestamp": timestamp,
            "updatedAtTimestamp": timestamp,
        }


class ConversionLedgerEntry(BaseModel):
    """Marks a legacy record as converted; keyed by its collection and key"""

    source_key: str
    source_collection: str
    content_version_id: str
    content_document_id: str
    job_id: Optional[str] = None

    @property
    def ledger_key(self) -> str:
        return conversion_key(self.source_collection, self.source_key)

    def to_arango_document(self) -> Dict[str, Any]:
        return {
            "_key": self.ledger_key,
            "sourceKey": self.source_key,
            "sourceCollection": self.source_collection,
            "contentVersionId": self.content_version_id,
            "contentDocumentId": self.content_document_id,
            "jobId": self.job_id,
            "convertedAtTimestamp": get_epoch_timestamp_in_ms(),
        }
