import html

from content_migration.models.content import ContentNoteDraft, ContentVersionDraft
from content_migration.models.legacy import LegacyAttachment, LegacyNote


def draft_content_version(attachment: LegacyAttachment) -> ContentVersionDraft:
    """Map an attachment to a content version draft with inline provenance."""
    return ContentVersionDraft(
        title=attachment.name,
        path_on_client=f"/{attachment.name}",
        version_data=attachment.body,
        description=attachment.description,
        owner_id=attachment.owner_id,
        original_record_id=attachment.key,
        original_record_parent_id=attachment.parent_id,
        original_record_owner_id=attachment.owner_id,
    )


def escape_note_body(body: str | None) -> str:
    """Note content is stored as HTML: escape markup, keep line breaks as <br>."""
    if not body:
        return ""
    escaped = html.escape(body, quote=True)
    return escaped.replace("\r\n", "<br>").replace("\r", "<br>").replace("\n", "<br>")


def draft_content_note(note: LegacyNote) -> ContentNoteDraft:
    # Provenance is attached after insert; notes reject custom fields on create
    return ContentNoteDraft(
        title=note.title,
        content=escape_note_body(note.body),
        owner_id=note.owner_id,
    )
