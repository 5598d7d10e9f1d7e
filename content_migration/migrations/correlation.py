"""
Correlation of created content back to the legacy records it came from.

The store returns the keys of a bulk insert aligned with the input list, but
reads by id come back in any order. Each strategy turns those inputs into a
CorrelationTracker keyed by content version id, with the content document id
needed for sharing:

- PositionalCorrelationStrategy: the created keys are content version keys,
  one re-read attaches the document ids.
- IndirectCorrelationStrategy: the created keys are content note keys. The
  notes are re-read for their latest published version id, which gives an
  intermediate version id -> source mapping; a second re-read of those
  versions resolves the document ids.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence

from content_migration.config.constants.arangodb import CollectionNames
from content_migration.exceptions.migration_exceptions import CorrelationMismatchError
from content_migration.models.legacy import LegacyRecord
from content_migration.services.content_store import ContentStore


@dataclass
class CorrelatedRecord:
    source: LegacyRecord
    content_version_id: str
    content_document_id: Optional[str] = None


class CorrelationTracker:
    """Association between each source of one chunk and its created content"""

    def __init__(self, by_created_id: Dict[str, LegacyRecord]) -> None:
        self.by_created_id = by_created_id
        self.by_latest_version_id: Dict[str, LegacyRecord] = {}
        self._resolved: Dict[str, CorrelatedRecord] = {}

    def resolve(self, content_version_id: str, source: LegacyRecord, content_document_id: str) -> None:
        self._resolved[content_version_id] = CorrelatedRecord(
            source=source,
            content_version_id=content_version_id,
            content_document_id=content_document_id,
        )

    @property
    def resolved(self) -> Dict[str, CorrelatedRecord]:
        return dict(self._resolved)

    def source_for(self, content_version_id: str) -> LegacyRecord:
        return self._resolved[content_version_id].source

    def __iter__(self) -> Iterator[CorrelatedRecord]:
        return iter(self._resolved.values())

    def __len__(self) -> int:
        return len(self._resolved)


def index_rows(
    rows: List[Dict[str, Any]],
    expected_keys: Sequence[str],
    required_field: str,
    stage: str,
) -> Dict[str, Any]:
    """
    Match re-read rows to expected keys by id membership.

    Returns:
        Dict[str, Any]: expected key -> value of ``required_field``

    Raises:
        CorrelationMismatchError: row count differs, a row is unknown or
            duplicated, or a row lacks ``required_field``
    """
    if len(rows) != len(expected_keys):
        raise CorrelationMismatchError(
            f"{stage}: expected {len(expected_keys)} record(s), store returned {len(rows)}",
            expected=len(expected_keys),
            actual=len(rows),
        )

    expected = set(expected_keys)
    indexed: Dict[str, Any] = {}
    for row in rows:
        key = row.get("_key")
        if key not in expected or key in indexed:
            raise CorrelationMismatchError(
                f"{stage}: unexpected record {key}", record_id=key
            )
        value = row.get(required_field)
        if not value:
            raise CorrelationMismatchError(
                f"{stage}: record {key} has no {required_field}", record_id=key
            )
        indexed[key] = value
    return indexed


class CorrelationStrategy(ABC):
    """How created records are tied back to sources for one target kind"""

    @staticmethod
    def check_created(sources: List[LegacyRecord], created_ids: List[str]) -> None:
        """Reject a create call that did not return exactly one distinct key per source"""
        if len(created_ids) != len(sources):
            raise CorrelationMismatchError(
                f"Created {len(created_ids)} record(s) for {len(sources)} source(s)",
                expected=len(sources),
                actual=len(created_ids),
            )
        if len(set(created_ids)) != len(created_ids):
            raise CorrelationMismatchError("Store returned duplicate keys for created records")

    def correlate(self, sources: List[LegacyRecord], created_ids: List[str]) -> CorrelationTracker:
        """Pair each source with the key of its created record."""
        self.check_created(sources, created_ids)
        return CorrelationTracker(dict(zip(created_ids, sources)))

    @abstractmethod
    async def resolve(self, store: ContentStore, tracker: CorrelationTracker) -> None:
        """Re-read the store and resolve every pending pair to a content document"""


class PositionalCorrelationStrategy(CorrelationStrategy):
    """Created keys are content version keys, in input order"""

    async def resolve(self, store: ContentStore, tracker: CorrelationTracker) -> None:
        version_ids = list(tracker.by_created_id.keys())
        rows = await store.get_by_ids(
            CollectionNames.CONTENT_VERSIONS.value, version_ids, ["contentDocumentId"]
        )
        document_ids = index_rows(rows, version_ids, "contentDocumentId", "content version re-read")
        for version_id, source in tracker.by_created_id.items():
            tracker.resolve(version_id, source, document_ids[version_id])


class IndirectCorrelationStrategy(CorrelationStrategy):
    """Created keys are content note keys; versions are reached through the notes"""

    async def resolve_latest_versions(self, store: ContentStore, tracker: CorrelationTracker) -> None:
        note_ids = list(tracker.by_created_id.keys())
        rows = await store.get_by_ids(
            CollectionNames.CONTENT_NOTES.value, note_ids, ["latestPublishedVersionId"]
        )
        latest_versions = index_rows(rows, note_ids, "latestPublishedVersionId", "content note re-read")
        if len(set(latest_versions.values())) != len(latest_versions):
            raise CorrelationMismatchError("Content notes share a latest published version")
        tracker.by_latest_version_id = {
            version_id: tracker.by_created_id[note_id]
            for note_id, version_id in latest_versions.items()
        }

    async def resolve_documents(self, store: ContentStore, tracker: CorrelationTracker) -> None:
        version_ids = list(tracker.by_latest_version_id.keys())
        rows = await store.get_by_ids(
            CollectionNames.CONTENT_VERSIONS.value, version_ids, ["contentDocumentId"]
        )
        document_ids = index_rows(rows, version_ids, "contentDocumentId", "content version re-read")
        for version_id, source in tracker.by_latest_version_id.items():
            tracker.resolve(version_id, source, document_ids[version_id])

    async def resolve(self, store: ContentStore, tracker: CorrelationTracker) -> None:
        await self.resolve_latest_versions(store, tracker)
        await self.resolve_documents(store, tracker)
