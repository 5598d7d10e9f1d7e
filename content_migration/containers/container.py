from typing import Type, TypeVar

from arango import ArangoClient  # type: ignore
from dependency_injector import containers, providers  # type: ignore

from content_migration.config.migration_settings import load_settings
from content_migration.migrations.chunk_orchestrator import ATTACHMENT_PROFILE, NOTE_PROFILE
from content_migration.migrations.conversion_job import ContentConversionBatchJob
from content_migration.services.arango_content_store import ArangoContentStore
from content_migration.utils.logger import create_logger

T = TypeVar("T", bound="ContentMigrationContainer")


class ContentMigrationContainer(containers.DeclarativeContainer):
    """Providers for the legacy content conversion jobs"""

    logger = providers.Singleton(create_logger, "content_migration")

    settings = providers.Singleton(load_settings)

    arango_client = providers.Singleton(
        ArangoClient,
        hosts=providers.Callable(lambda settings: settings.arango.url, settings),
    )

    content_store = providers.Singleton(
        ArangoContentStore,
        arango_client=arango_client,
        settings=providers.Callable(lambda settings: settings.arango, settings),
        logger=logger,
    )

    attachment_conversion_job = providers.Factory(
        ContentConversionBatchJob,
        store=content_store,
        profile=providers.Object(ATTACHMENT_PROFILE),
        logger=logger,
        delete_sources=providers.Callable(lambda settings: settings.delete_sources, settings),
        visibility=providers.Callable(lambda settings: settings.visibility, settings),
    )

    note_conversion_job = providers.Factory(
        ContentConversionBatchJob,
        store=content_store,
        profile=providers.Object(NOTE_PROFILE),
        logger=logger,
        delete_sources=providers.Callable(lambda settings: settings.delete_sources, settings),
        visibility=providers.Callable(lambda settings: settings.visibility, settings),
    )

    @classmethod
    def init(cls: Type[T], service_name: str) -> T:
        """Initialize the container with the given service name."""
        container = cls()
        container.logger().info(f"🚀 Initializing {cls.__name__} for {service_name}")
        return container
