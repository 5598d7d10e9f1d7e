import asyncio
from logging import Logger
from typing import Any, AsyncIterator, Dict, List, Optional

from arango import ArangoClient  # type: ignore
from arango.database import StandardDatabase, TransactionDatabase  # type: ignore
from arango.exceptions import ArangoError  # type: ignore

from content_migration.config.constants.arangodb import CollectionNames
from content_migration.config.migration_settings import ArangoSettings
from content_migration.exceptions.migration_exceptions import StoreOperationError
from content_migration.services.content_store import ContentStore

SCAN_BATCH_SIZE = 1000


class ArangoContentStore(ContentStore):
    """ContentStore backed by ArangoDB; every bulk call runs in its own transaction"""

    def __init__(
        self,
        arango_client: ArangoClient,
        settings: ArangoSettings,
        logger: Logger,
    ) -> None:
        self.client = arango_client
        self.settings = settings
        self.logger = logger
        self.db: Optional[StandardDatabase] = None

    async def connect(self) -> bool:
        """Open the database and make sure every collection exists"""
        try:
            self.logger.info("🚀 Connecting to ArangoDB at %s", self.settings.url)
            self.db = await asyncio.to_thread(
                self.client.db,
                self.settings.db_name,
                username=self.settings.username,
                password=self.settings.password,
                verify=True,
            )
            for collection in CollectionNames:
                if not await asyncio.to_thread(self.db.has_collection, collection.value):
                    await asyncio.to_thread(self.db.create_collection, collection.value)
                    self.logger.info("📦 Created collection %s", collection.value)
            self.logger.info("✅ Connected to ArangoDB database '%s'", self.settings.db_name)
            return True
        except ArangoError as e:
            self.logger.error("❌ Failed to connect to ArangoDB: %s", str(e))
            self.db = None
            return False

    def _database(self) -> StandardDatabase:
        if self.db is None:
            raise StoreOperationError("ArangoDB is not connected", operation="connect")
        return self.db

    async def _abort(self, operation: str, collections: List[str], transaction: TransactionDatabase) -> None:
        try:
            await asyncio.to_thread(transaction.abort_transaction)
            self.logger.warning("%s on %s rolled back", operation, collections)
        except ArangoError as rollback_error:
            self.logger.error("Rollback of %s failed: %s", operation, rollback_error)

    async def _run_in_transaction(self, operation: str, collections: List[str], work) -> None:
        db = self._database()
        transaction: Optional[TransactionDatabase] = None
        try:
            transaction = await asyncio.to_thread(db.begin_transaction, write=collections)
            await asyncio.to_thread(work, transaction)
            await asyncio.to_thread(transaction.commit_transaction)
        except ArangoError as e:
            if transaction is not None:
                await self._abort(operation, collections, transaction)
            raise StoreOperationError(
                f"{operation} failed: {str(e)}",
                operation=operation,
                collection=collections[0],
            ) from e
        except BaseException:
            # Rejected documents, cancellation and anything else raised by the work
            if transaction is not None:
                await self._abort(operation, collections, transaction)
            raise

    @staticmethod
    def _raise_on_errors(operation: str, collection: str, results: Any) -> None:
        # Bulk document calls report per-document failures inline instead of raising
        if not isinstance(results, list):
            return
        errors = [str(result) for result in results if isinstance(result, Exception)]
        if errors:
            raise StoreOperationError(
                f"{operation} rejected {len(errors)} document(s) in {collection}",
                operation=operation,
                collection=collection,
                details={"errors": errors[:10]},
            )

    async def _insert_documents(self, writes: Dict[str, List[Dict[str, Any]]]) -> None:
        def work(transaction: TransactionDatabase) -> None:
            for collection, documents in writes.items():
                results = transaction.collection(collection).insert_many(documents)
                self._raise_on_errors("insert", collection, results)

        await self._run_in_transaction("insert", list(writes.keys()), work)
        self.logger.debug(
            "Inserted %s",
            ", ".join(f"{len(docs)} into {name}" for name, docs in writes.items()),
        )

    async def get_by_ids(
        self,
        collection: str,
        ids: List[str],
        fields: Optional[List[str]] = None,
    ) -> List[Dict[str, Any]]:
        if not ids:
            return []
        if fields:
            query = """
            FOR doc IN @@collection
                FILTER doc._key IN @keys
                RETURN KEEP(doc, @fields)
            """
            bind_vars = {"@collection": collection, "keys": ids, "fields": ["_key", *fields]}
        else:
            query = """
            FOR doc IN @@collection
                FILTER doc._key IN @keys
                RETURN doc
            """
            bind_vars = {"@collection": collection, "keys": ids}

        try:
            cursor = await asyncio.to_thread(
                self._database().aql.execute, query, bind_vars=bind_vars
            )
            return await asyncio.to_thread(list, cursor)
        except ArangoError as e:
            raise StoreOperationError(
                f"read failed: {str(e)}", operation="read", collection=collection
            ) from e

    async def update(self, collection: str, documents: List[Dict[str, Any]]) -> None:
        if not documents:
            return

        def work(transaction: TransactionDatabase) -> None:
            results = transaction.collection(collection).update_many(
                documents, merge=True, keep_none=False
            )
            self._raise_on_errors("update", collection, results)

        await self._run_in_transaction("update", [collection], work)

    async def delete(self, collection: str, ids: List[str]) -> None:
        if not ids:
            return

        def work(transaction: TransactionDatabase) -> None:
            results = transaction.collection(collection).delete_many(
                [{"_key": key} for key in ids]
            )
            self._raise_on_errors("delete", collection, results)

        await self._run_in_transaction("delete", [collection], work)

    async def scan(self, collection: str) -> AsyncIterator[Dict[str, Any]]:
        query = "FOR doc IN @@collection RETURN doc"
        try:
            cursor = await asyncio.to_thread(
                self._database().aql.execute,
                query,
                bind_vars={"@collection": collection},
                batch_size=SCAN_BATCH_SIZE,
            )
            try:
                while True:
                    batch = cursor.batch()
                    while batch:
                        yield batch.popleft()
                    if not cursor.has_more():
                        break
                    await asyncio.to_thread(cursor.fetch)
            finally:
                await asyncio.to_thread(cursor.close, ignore_missing=True)
        except ArangoError as e:
            raise StoreOperationError(
                f"scan failed: {str(e)}", operation="scan", collection=collection
            ) from e
