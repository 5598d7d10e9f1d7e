"""
Tests for settings loading and dependency wiring.
"""
import os
from types import SimpleNamespace

import pytest
from dependency_injector import providers # type: ignore
from pydantic import ValidationError

from content_migration.config.constants.arangodb import CollectionNames
from content_migration.config.constants.service import DEFAULT_CHUNK_SIZE
from content_migration.config.migration_settings import (
    ArangoSettings,
    MigrationSettings,
    load_settings,
)
from content_migration.containers.container import ContentMigrationContainer
from content_migration import conversion_main
from content_migration.conversion_main import conversion_succeeded, run_conversions
from content_migration.migrations.chunk_orchestrator import ATTACHMENT_PROFILE, NOTE_PROFILE
from content_migration.models.content import Visibility


class TestSettings:

    def test_defaults(self):
        for name in (
            "CONTENT_MIGRATION_DELETE_SOURCES",
            "CONTENT_MIGRATION_CHUNK_SIZE",
            "CONTENT_MIGRATION_ACTING_USER_ID",
            "CONTENT_MIGRATION_VISIBILITY",
        ):
            os.environ.pop(name, None)

        settings = load_settings()

        assert settings.delete_sources is False
        assert settings.chunk_size == DEFAULT_CHUNK_SIZE == 200
        assert settings.acting_user_id is None
        assert settings.visibility == Visibility.ALL_USERS

    def test_reads_environment(self):
        os.environ["CONTENT_MIGRATION_DELETE_SOURCES"] = "true"
        os.environ["CONTENT_MIGRATION_CHUNK_SIZE"] = "50"
        os.environ["CONTENT_MIGRATION_ACTING_USER_ID"] = "user-42"
        os.environ["CONTENT_MIGRATION_VISIBILITY"] = "InternalUsers"
        os.environ["ARANGO_URL"] = "http://arango:8529/"

        settings = load_settings()

        assert settings.delete_sources is True
        assert settings.chunk_size == 50
        assert settings.acting_user_id == "user-42"
        assert settings.visibility == Visibility.INTERNAL_USERS
        assert settings.arango.url == "http://arango:8529"

    def test_chunk_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            MigrationSettings(chunk_size=0)


class TestContainer:

    def _container(self, store, logger, **settings):
        container = ContentMigrationContainer()
        container.content_store.override(providers.Object(store))
        container.logger.override(providers.Object(logger))
        container.settings.override(
            providers.Object(MigrationSettings(arango=ArangoSettings(), **settings))
        )
        return container

    def test_jobs_are_wired_per_profile(self, store, logger):
        container = self._container(store, logger, delete_sources=True)

        attachment_job = container.attachment_conversion_job()
        note_job = container.note_conversion_job()

        assert attachment_job.profile is ATTACHMENT_PROFILE
        assert note_job.profile is NOTE_PROFILE
        assert attachment_job.store is store
        assert attachment_job.delete_sources is True
        assert attachment_job.orchestrator.delete_sources is True

    @pytest.mark.asyncio
    async def test_run_conversions_converts_both_kinds(self, store, records, logger, acting_user_id):
        records.seed_attachments(store, 3)
        records.seed_notes(store, 2)
        container = self._container(
            store, logger, delete_sources=True, chunk_size=2, acting_user_id=acting_user_id
        )

        results = await run_conversions(container)

        assert results["attachments"]["converted"] == 3
        assert results["notes"]["converted"] == 2
        assert store.documents(CollectionNames.LEGACY_ATTACHMENTS.value) == []
        assert store.documents(CollectionNames.LEGACY_NOTES.value) == []

    @pytest.mark.asyncio
    async def test_run_conversions_stops_after_failed_attachments(self, store, records, logger, acting_user_id):
        records.seed_attachments(store, 3)
        records.seed_notes(store, 2)
        store.dropped_keys[CollectionNames.CONTENT_VERSIONS.value] = 1
        container = self._container(store, logger, acting_user_id=acting_user_id)

        results = await run_conversions(container)

        assert results["attachments"]["success"] is False
        assert "notes" not in results
        assert conversion_succeeded(results) is False
        assert len(store.documents(CollectionNames.LEGACY_NOTES.value)) == 2

    def test_main_exits_nonzero_on_failure(self, store, records, logger, monkeypatch):
        records.seed_attachments(store, 2)
        store.fail("insert", CollectionNames.CONTENT_VERSIONS.value)
        container = self._container(store, logger)
        monkeypatch.setattr(
            conversion_main, "ContentMigrationContainer", SimpleNamespace(init=lambda name: container)
        )

        with pytest.raises(SystemExit) as exc_info:
            conversion_main.main()

        assert exc_info.value.code == 1

    def test_main_returns_normally_on_success(self, store, records, logger, monkeypatch):
        records.seed_notes(store, 2)
        container = self._container(store, logger)
        monkeypatch.setattr(
            conversion_main, "ContentMigrationContainer", SimpleNamespace(init=lambda name: container)
        )

        conversion_main.main()

        assert store.documents(CollectionNames.CONTENT_NOTES.value) != []
