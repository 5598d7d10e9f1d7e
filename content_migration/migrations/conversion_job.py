"""
Legacy Content Conversion Job

Batch job that converts every record of one legacy kind, a bounded chunk at a
time. The job follows the open / process / close lifecycle of a batch runner:

- open: cursor over all source records, unfiltered
- process: convert one chunk through the ChunkOrchestrator
- close: completion logging

run_batch_job is a sequential runner for that lifecycle: one chunk in flight,
stop at the first failed chunk.
"""

import traceback
import uuid
from dataclasses import dataclass, field
from logging import Logger
from typing import AsyncIterator, Dict, List, Optional

from content_migration.config.constants.service import DEFAULT_CHUNK_SIZE
from content_migration.exceptions.migration_exceptions import ContentMigrationError
from content_migration.migrations.chunk_orchestrator import (
    ATTACHMENT_PROFILE,
    NOTE_PROFILE,
    ChunkOrchestrator,
    ChunkResult,
    ConversionProfile,
)
from content_migration.models.content import Visibility
from content_migration.models.legacy import LegacyRecord
from content_migration.services.content_store import ContentStore


@dataclass
class BatchContext:
    acting_user_id: Optional[str]
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex)


class ContentConversionBatchJob:
    """Converts one legacy record kind; holds no state between chunks"""

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
        self.orchestrator = ChunkOrchestrator(
            store, profile, logger, delete_sources=delete_sources, visibility=visibility
        )

    async def _iterate_sources(self) -> AsyncIterator[LegacyRecord]:
        documents = self.store.scan(self.profile.source_collection)
        try:
            async for document in documents:
                yield self.profile.record_type.from_arango_document(document)
        finally:
            await documents.aclose()

    async def open(self, context: BatchContext) -> AsyncIterator[LegacyRecord]:
        self.logger.info(
            "🚀 Starting %s conversion job %s (delete_sources=%s)",
            self.profile.name,
            context.job_id,
            self.delete_sources,
        )
        if context.acting_user_id is None:
            self.logger.warning(
                "⚠️ No acting user configured for %s job %s; every owner gets a Collaborate grant",
                self.profile.name,
                context.job_id,
            )
        return self._iterate_sources()

    async def process(self, context: BatchContext, chunk: List[LegacyRecord]) -> ChunkResult:
        return await self.orchestrator.convert_chunk(
            chunk, context.acting_user_id, job_id=context.job_id
        )

    async def close(self, context: BatchContext) -> None:
        self.logger.info("🏁 Finished %s conversion job %s", self.profile.name, context.job_id)


async def _chunks(records: AsyncIterator[LegacyRecord], chunk_size: int) -> AsyncIterator[List[LegacyRecord]]:
    chunk: List[LegacyRecord] = []
    async for record in records:
        chunk.append(record)
        if len(chunk) >= chunk_size:
            yield chunk
            chunk = []
    if chunk:
        yield chunk


async def run_batch_job(
    job: ContentConversionBatchJob,
    context: BatchContext,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Dict:
    """
    Drive a conversion job over all of its source records.

    Args:
        job: Conversion job to run
        context: Job id and acting identity
        chunk_size: Number of source records per chunk

    Returns:
        Dict: success flag and totals; failed_chunk and message on failure
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")

    totals = ChunkResult()
    chunk_number = 0
    cursor = None
    try:
        cursor = await job.open(context)
        async for chunk in _chunks(cursor, chunk_size):
            chunk_number += 1
            job.logger.info(
                "Processing chunk %d (%d record(s))...", chunk_number, len(chunk)
            )
            result = await job.process(context, chunk)
            totals.converted += result.converted
            totals.skipped += result.skipped
            totals.resumed += result.resumed
            totals.grants_created += result.grants_created
            totals.provenance_updated += result.provenance_updated
            totals.deleted += result.deleted

        job.logger.info("=" * 70)
        job.logger.info("%s conversion summary", job.profile.name.capitalize())
        job.logger.info("Chunks processed: %d", chunk_number)
        job.logger.info("Records converted: %d", totals.converted)
        job.logger.info("Already converted: %d", totals.skipped)
        job.logger.info("Resumed from an earlier run: %d", totals.resumed)
        job.logger.info("Sharing grants created: %d", totals.grants_created)
        job.logger.info("Source records deleted: %d", totals.deleted)
        job.logger.info("=" * 70)

        return {"success": True, "chunks": chunk_number, **totals.model_dump()}

    except ContentMigrationError as e:
        job.logger.error(
            "❌ %s conversion failed in chunk %d: %s",
            job.profile.name,
            chunk_number,
            e.message,
            exc_info=True,
        )
        return {
            "success": False,
            "chunks": chunk_number,
            "failed_chunk": chunk_number,
            "message": e.message,
            **totals.model_dump(),
        }
    except Exception as e:
        job.logger.error("❌ %s conversion failed: %s", job.profile.name, str(e))
        job.logger.error("Traceback: %s", traceback.format_exc())
        return {
            "success": False,
            "chunks": chunk_number,
            "failed_chunk": chunk_number,
            "message": str(e),
            **totals.model_dump(),
        }
    finally:
        if cursor is not None:
            await cursor.aclose()
        await job.close(context)


async def _run_conversion(
    profile: ConversionProfile,
    store: ContentStore,
    logger: Logger,
    acting_user_id: Optional[str],
    delete_sources: bool,
    chunk_size: int,
    visibility: Visibility,
) -> Dict:
    job = ContentConversionBatchJob(
        store, profile, logger, delete_sources=delete_sources, visibility=visibility
    )
    return await run_batch_job(job, BatchContext(acting_user_id=acting_user_id), chunk_size)


async def run_attachment_conversion(
    store: ContentStore,
    logger: Logger,
    acting_user_id: Optional[str],
    delete_sources: bool = False,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    visibility: Visibility = Visibility.ALL_USERS,
) -> Dict:
    """
    Convert every legacy attachment into a content version.

    Example:
        >>> result = await run_attachment_conversion(store, logger, "user-1", delete_sources=True)
    """
    return await _run_conversion(
        ATTACHMENT_PROFILE, store, logger, acting_user_id, delete_sources, chunk_size, visibility
    )


async def run_note_conversion(
    store: ContentStore,
    logger: Logger,
    acting_user_id: Optional[str],
    delete_sources: bool = False,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    visibility: Visibility = Visibility.ALL_USERS,
) -> Dict:
    """Convert every legacy note into a content note."""
    return await _run_conversion(
        NOTE_PROFILE, store, logger, acting_user_id, delete_sources, chunk_size, visibility
    )
