import asyncio
import sys
from typing import Dict

from content_migration.containers.container import ContentMigrationContainer
from content_migration.migrations.conversion_job import BatchContext, run_batch_job


async def run_conversions(container: ContentMigrationContainer) -> Dict[str, Dict]:
    """Connect the store and convert attachments, then notes."""
    logger = container.logger()
    settings = container.settings()

    store = container.content_store()
    connect = getattr(store, "connect", None)
    if connect is not None and not await connect():
        raise ConnectionError("Unable to connect to the content store")

    results: Dict[str, Dict] = {}
    for name, job_provider in (
        ("attachments", container.attachment_conversion_job),
        ("notes", container.note_conversion_job),
    ):
        context = BatchContext(acting_user_id=settings.acting_user_id)
        results[name] = await run_batch_job(job_provider(), context, settings.chunk_size)
        if not results[name]["success"]:
            logger.error("Stopping after failed %s conversion", name)
            break
    return results


def conversion_succeeded(results: Dict[str, Dict]) -> bool:
    return bool(results) and all(result["success"] for result in results.values())


def main() -> None:
    container = ContentMigrationContainer.init("content_migration")
    results = asyncio.run(run_conversions(container))
    if not conversion_succeeded(results):
        sys.exit(1)


if __name__ == "__main__":
    main()
