import base64
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


def encode_body(body: bytes) -> str:
    return base64.b64encode(body).decode("ascii")


def decode_body(value: Optional[str]) -> bytes:
    if not value:
        return b""
    return base64.b64decode(value)


class LegacyRecord(BaseModel):
    """Fields shared by every legacy record kind"""

    key: str = Field(..., description="Store-assigned identifier of the legacy record")
    owner_id: str = Field(..., description="Actor holding implicit ownership of the record")
    parent_id: str = Field(..., description="Entity the record belongs to")


class LegacyAttachment(LegacyRecord):
    name: str
    body: bytes = b""
    description: Optional[str] = None

    @classmethod
    def from_arango_document(cls, data: Dict[str, Any]) -> "LegacyAttachment":
        return cls(
            key=data["_key"],
            owner_id=data.get("ownerId", ""),
            parent_id=data.get("parentId", ""),
            name=data.get("name", ""),
            body=decode_body(data.get("body")),
            description=data.get("description"),
        )

    def to_arango_document(self) -> Dict[str, Any]:
        doc = {
            "_key": self.key,
            "ownerId": self.owner_id,
            "parentId": self.parent_id,
            "name": self.name,
            "body": encode_body(self.body),
        }
        if self.description is not None:
            doc["description"] = self.description
        return doc


class LegacyNote(LegacyRecord):
    title: str
    body: Optional[str] = None

    @classmethod
    def from_arango_document(cls, data: Dict[str, Any]) -> "LegacyNote":
        return cls(
            key=data["_key"],
            owner_id=data.get("ownerId", ""),
            parent_id=data.get("parentId", ""),
            title=data.get("title", ""),
            body=data.get("body"),
        )

    def to_arango_document(self) -> Dict[str, Any]:
        return {
            "_key": self.key,
            "ownerId": self.owner_id,
            "parentId": self.parent_id,
            "title": self.title,
            "body": self.body,
        }
