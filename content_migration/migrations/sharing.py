from typing import List, Optional

from content_migration.models.content import ContentDocumentLink, ShareType, Visibility
from content_migration.models.legacy import LegacyRecord


def derive_sharing_grants(
    content_document_id: str,
    source: LegacyRecord,
    acting_user_id: Optional[str],
    visibility: Visibility = Visibility.ALL_USERS,
) -> List[ContentDocumentLink]:
    """
    Compute the sharing grants for a converted document.

    The parent entity always gets view access. The original owner gets
    collaborate access unless they are the identity running the conversion,
    who already owns the new document and cannot be granted it twice.

    Args:
        content_document_id: Document the grants apply to
        source: Legacy record the document was converted from
        acting_user_id: Identity performing the migration
        visibility: Audience the links are visible to

    Returns:
        List[ContentDocumentLink]: One or two grants
    """
    grants = [
        ContentDocumentLink(
            content_document_id=content_document_id,
            linked_entity_id=source.parent_id,
            share_type=ShareType.VIEW,
            visibility=visibility,
        )
    ]
    if source.owner_id != acting_user_id:
        grants.append(
            ContentDocumentLink(
                content_document_id=content_document_id,
                linked_entity_id=source.owner_id,
                share_type=ShareType.COLLABORATE,
                visibility=visibility,
            )
        )
    return grants
