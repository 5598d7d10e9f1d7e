"""
Chunk Orchestrator

Converts one chunk of legacy records into content. Each step depends on the
previous one and every store call covers the whole chunk:

1. Skip sources the conversion ledger already records as converted
2. Look up targets left behind by an earlier interrupted run
3. Draft and bulk-create a content object for every source without one
4. Correlate targets with their sources
5. Re-read the store for content document ids
6. Derive and bulk-create the sharing grants not yet present
7. Bulk-update content versions with provenance (when not set on create)
8. Record the conversions in the ledger
9. Bulk-delete the sources, when enabled

Any failure stops the chunk at that step; sources are only deleted after
every other artifact is written. Targets and grants have keys derived from
their source, so a re-run of a failed chunk picks up what the failed run
already wrote instead of writing it twice.
"""

from dataclasses import dataclass
from logging import Logger
from typing import Any, Callable, Dict, List, Optional, Set, Type

from pydantic import BaseModel

from content_migration.config.constants.arangodb import CollectionNames
from content_migration.exceptions.migration_exceptions import ContentMigrationError
from content_migration.migrations.content_transformer import (
    draft_content_note,
    draft_content_version,
)
from content_migration.migrations.correlation import (
    CorrelationStrategy,
    CorrelationTracker,
    IndirectCorrelationStrategy,
    PositionalCorrelationStrategy,
)
from content_migration.migrations.sharing import derive_sharing_grants
from content_migration.models.content import (
    ContentDocumentLink,
    ConversionLedgerEntry,
    Visibility,
    conversion_key,
)
from content_migration.models.legacy import LegacyAttachment, LegacyNote, LegacyRecord
from content_migration.services.content_store import ContentStore


@dataclass(frozen=True)
class ConversionProfile:
    """Capabilities that distinguish one legacy record kind's conversion"""

    name: str
    source_collection: str
    target_collection: str
    record_type: Type[LegacyRecord]
    draft: Callable[[Any], BaseModel]
    supports_inline_provenance: bool
    supports_post_create_update: bool
    correlation_strategy: CorrelationStrategy

    def __post_init__(self) -> None:
        if not (self.supports_inline_provenance or self.supports_post_create_update):
            raise ValueError(f"Profile {self.name} has no way to record provenance")


ATTACHMENT_PROFILE = ConversionProfile(
    name="attachments",
    source_collection=CollectionNames.LEGACY_ATTACHMENTS.value,
    target_collection=CollectionNames.CONTENT_VERSIONS.value,
    record_type=LegacyAttachment,
    draft=draft_content_version,
    supports_inline_provenance=True,
    supports_post_create_update=False,
    correlation_strategy=PositionalCorrelationStrategy(),
)

NOTE_PROFILE = ConversionProfile(
    name="notes",
    source_collection=CollectionNames.LEGACY_NOTES.value,
    target_collection=CollectionNames.CONTENT_NOTES.value,
    record_type=LegacyNote,
    draft=draft_content_note,
    supports_inline_provenance=False,
    supports_post_create_update=True,
    correlation_strategy=IndirectCorrelationStrategy(),
)


class ChunkResult(BaseModel):
    converted: int = 0
    skipped: int = 0
    resumed: int = 0
    grants_created: int = 0
    provenance_updated: int = 0
    deleted: int = 0


def provenance_update(content_version_id: str, source: LegacyRecord) -> Dict[str, Any]:
    return {
        "_key": content_version_id,
        "originalRecordId": source.key,
        "originalRecordParentId": source.parent_id,
        "originalRecordOwnerId": source.owner_id,
    }


class ChunkOrchestrator:
    """Runs the conversion steps for one chunk against the store"""

    def __init__(
        self,
        store: ContentStore,
        profile: ConversionProfile,
        logger: Logger,
        delete_sources: bool = False,
        visibility: Visibility = Visibility.ALL_USERS,
    ) -> None:
        self.store = store
        self.profile = profile
        self.logger = logger
        self.delete_sources = delete_sources
        self.visibility = visibility

    def _conversion_keys(self, sources: List[LegacyRecord]) -> Dict[str, str]:
        return {
            source.key: conversion_key(self.profile.source_collection, source.key)
            for source in sources
        }

    async def _find_converted(self, sources: List[LegacyRecord]) -> Set[str]:
        keys = self._conversion_keys(sources)
        rows = await self.store.get_by_ids(
            CollectionNames.CONVERSION_LEDGER.value, list(keys.values()), ["_key"]
        )
        ledgered = {row["_key"] for row in rows}
        return {source_key for source_key, key in keys.items() if key in ledgered}

    async def _find_existing_targets(self, target_keys: Dict[str, str]) -> Set[str]:
        rows = await self.store.get_by_ids(
            self.profile.target_collection, list(target_keys.values()), ["_key"]
        )
        existing = {row["_key"] for row in rows}
        return {source_key for source_key, key in target_keys.items() if key in existing}

    async def _create_targets(self, sources: List[LegacyRecord], target_keys: Dict[str, str]) -> List[str]:
        drafts = [
            {**self.profile.draft(source).to_arango_document(), "_key": target_keys[source.key]}
            for source in sources
        ]
        return await self.store.insert(self.profile.target_collection, drafts)

    async def _build_tracker(self, sources: List[LegacyRecord], created_ids: List[str]) -> CorrelationTracker:
        strategy = self.profile.correlation_strategy
        tracker = strategy.correlate(sources, created_ids)
        await strategy.resolve(self.store, tracker)
        return tracker

    async def _create_grants(self, tracker: CorrelationTracker, acting_user_id: Optional[str]) -> int:
        grants: Dict[str, ContentDocumentLink] = {}
        for pair in tracker:
            for grant in derive_sharing_grants(
                pair.content_document_id, pair.source, acting_user_id, self.visibility
            ):
                grants.setdefault(grant.link_key, grant)
        if not grants:
            return 0

        links = CollectionNames.CONTENT_DOCUMENT_LINKS.value
        existing = {
            row["_key"] for row in await self.store.get_by_ids(links, list(grants), ["_key"])
        }
        missing = [grant for key, grant in grants.items() if key not in existing]
        if missing:
            await self.store.insert(links, [grant.to_arango_document() for grant in missing])
        return len(missing)

    async def _update_provenance(self, tracker: CorrelationTracker) -> int:
        updates = [
            provenance_update(pair.content_version_id, pair.source) for pair in tracker
        ]
        await self.store.update(CollectionNames.CONTENT_VERSIONS.value, updates)
        return len(updates)

    async def _record_conversions(self, tracker: CorrelationTracker, job_id: Optional[str]) -> None:
        entries = [
            ConversionLedgerEntry(
                source_key=pair.source.key,
                source_collection=self.profile.source_collection,
                content_version_id=pair.content_version_id,
                content_document_id=pair.content_document_id,
                job_id=job_id,
            ).to_arango_document()
            for pair in tracker
        ]
        await self.store.insert(CollectionNames.CONVERSION_LEDGER.value, entries)

    async def convert_chunk(
        self,
        sources: List[LegacyRecord],
        acting_user_id: Optional[str],
        job_id: Optional[str] = None,
    ) -> ChunkResult:
        """
        Convert one chunk of legacy records.

        Args:
            sources: Legacy records of this profile's kind
            acting_user_id: Identity performing the migration
            job_id: Identifier recorded in the conversion ledger

        Returns:
            ChunkResult: Counts for the chunk

        Raises:
            StoreOperationError: A store call was rejected
            CorrelationMismatchError: Created records could not be matched to sources
        """
        result = ChunkResult()
        if not sources:
            return result

        try:
            converted_before = await self._find_converted(sources)
            pending = [source for source in sources if source.key not in converted_before]
            result.skipped = len(sources) - len(pending)
            if result.skipped:
                self.logger.info(
                    "⏭️ %d %s already converted, skipping", result.skipped, self.profile.name
                )

            if pending:
                target_keys = self._conversion_keys(pending)
                resumed = await self._find_existing_targets(target_keys)
                to_create = [source for source in pending if source.key not in resumed]
                result.resumed = len(resumed)
                if resumed:
                    self.logger.info(
                        "🔄 Resuming %d %s created by an earlier run", len(resumed), self.profile.name
                    )

                if to_create:
                    created_ids = await self._create_targets(to_create, target_keys)
                    self.profile.correlation_strategy.check_created(to_create, created_ids)
                    target_keys.update(zip((source.key for source in to_create), created_ids))
                    self.logger.debug("Created %d %s", len(created_ids), self.profile.target_collection)

                tracker = await self._build_tracker(
                    pending, [target_keys[source.key] for source in pending]
                )
                result.grants_created = await self._create_grants(tracker, acting_user_id)

                if self.profile.supports_post_create_update:
                    result.provenance_updated = await self._update_provenance(tracker)

                await self._record_conversions(tracker, job_id)
                result.converted = len(tracker)

            if self.delete_sources:
                # Sources go only after every other artifact of the chunk is written
                await self.store.delete(
                    self.profile.source_collection, [source.key for source in sources]
                )
                result.deleted = len(sources)

            self.logger.info(
                "✅ Chunk of %d %s done: %d converted, %d resumed, %d grants, %d deleted",
                len(sources),
                self.profile.name,
                result.converted,
                result.resumed,
                result.grants_created,
                result.deleted,
            )
            return result

        except ContentMigrationError as e:
            self.logger.error(
                "❌ Chunk of %d %s failed: %s", len(sources), self.profile.name, e.message
            )
            raise
