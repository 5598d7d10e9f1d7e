from enum import Enum


class CollectionNames(Enum):
    # Legacy sources
    LEGACY_ATTACHMENTS = "legacyAttachments"
    LEGACY_NOTES = "legacyNotes"

    # Content objects
    CONTENT_DOCUMENTS = "contentDocuments"
    CONTENT_VERSIONS = "contentVersions"
    CONTENT_NOTES = "contentNotes"
    CONTENT_DOCUMENT_LINKS = "contentDocumentLinks"

    CONVERSION_LEDGER = "conversionLedger"


# Fields a content note accepts on insert; anything else is rejected by the store
CONTENT_NOTE_INSERT_FIELDS = frozenset({"_key", "title", "content", "ownerId"})
