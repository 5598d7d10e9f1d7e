"""
Tests for sharing grant derivation.
"""
from content_migration.migrations.sharing import derive_sharing_grants
from content_migration.models.content import ShareType, Visibility


class TestDeriveSharingGrants:

    def test_owner_other_than_acting_user_gets_collaborate(self, records, acting_user_id):
        attachment = records.attachment(owner_id="user-owner", parent_id="account-1")

        grants = derive_sharing_grants("doc-1", attachment, acting_user_id)

        assert [(g.linked_entity_id, g.share_type) for g in grants] == [
            ("account-1", ShareType.VIEW),
            ("user-owner", ShareType.COLLABORATE),
        ]
        assert all(g.content_document_id == "doc-1" for g in grants)

    def test_owner_equal_to_acting_user_only_gets_parent_view(self, records, acting_user_id):
        note = records.note(owner_id=acting_user_id, parent_id="account-2")

        grants = derive_sharing_grants("doc-2", note, acting_user_id)

        assert len(grants) == 1
        assert grants[0].linked_entity_id == "account-2"
        assert grants[0].share_type == ShareType.VIEW

    def test_visibility_is_applied_to_every_grant(self, records):
        attachment = records.attachment()

        grants = derive_sharing_grants("doc-3", attachment, None, Visibility.INTERNAL_USERS)

        assert len(grants) == 2
        assert {g.visibility for g in grants} == {Visibility.INTERNAL_USERS}

    def test_is_deterministic(self, records, acting_user_id):
        attachment = records.attachment()

        first = derive_sharing_grants("doc-4", attachment, acting_user_id)
        second = derive_sharing_grants("doc-4", attachment, acting_user_id)

        assert first == second

    def test_grant_document_shape(self, records):
        attachment = records.attachment(parent_id="account-9")

        document = derive_sharing_grants("doc-5", attachment, None)[0].to_arango_document()

        assert document["contentDocumentId"] == "doc-5"
        assert document["linkedEntityId"] == "account-9"
        assert document["shareType"] == "V"
        assert document["visibility"] == "AllUsers"
        assert isinstance(document["createdAtTimestamp"], int)

    def test_grant_key_identifies_document_and_entity(self, records, acting_user_id):
        attachment = records.attachment(parent_id="account-9", owner_id="user-owner")

        first = derive_sharing_grants("doc-6", attachment, acting_user_id)
        again = derive_sharing_grants("doc-6", attachment, acting_user_id)
        other_document = derive_sharing_grants("doc-7", attachment, acting_user_id)

        assert [g.link_key for g in first] == [g.link_key for g in again]
        assert first[0].link_key != first[1].link_key
        assert first[0].link_key != other_document[0].link_key
        assert first[0].to_arango_document()["_key"] == first[0].link_key
