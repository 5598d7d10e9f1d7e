from typing import Optional


class ContentMigrationError(Exception):
    """Base exception for legacy content conversion errors"""

    def __init__(self, message: str, record_id: str = None, details: dict = None) -> None:
        self.message = message
        self.record_id = record_id
        self.details = details or {}
        super().__init__(self.message)


class StoreOperationError(ContentMigrationError):
    """Raised when the store rejects a bulk create, read, update or delete"""

    def __init__(
        self,
        message: str = "Store operation failed",
        operation: Optional[str] = None,
        collection: Optional[str] = None,
        details: dict = None,
    ) -> None:
        super().__init__(message, details=details)
        self.operation = operation
        self.collection = collection


class CorrelationMismatchError(ContentMigrationError):
    """Raised when created or re-read records cannot be matched one-to-one to their sources"""

    def __init__(
        self,
        message: str = "Created records do not correlate with their sources",
        expected: Optional[int] = None,
        actual: Optional[int] = None,
        record_id: str = None,
        details: dict = None,
    ) -> None:
        super().__init__(message, record_id, details)
        self.expected = expected
        self.actual = actual
