"""
Tests for the contact command handlers.
"""
from realty_crm.db import AI_ACTIONS, CONTACTS, MemoryStore, StoreError
from realty_crm.services.commands.contacts import ContactCommands, canonical_contact_field
from realty_crm.services.errors import CONTACT_SUGGESTION
from realty_crm.services.intents import (
    AddNoteData,
    CreateContactData,
    DeleteContactData,
    FilterContactsData,
    ListContactsData,
    SearchContactData,
    UpdateContactData,
)
from conftest import SEED, run


class UntouchableStore(MemoryStore):
    """Fails the test through the handler boundary if any store call is made."""

    async def query(self, *args, **kwargs):
        raise AssertionError("store was queried")

    async def get(self, *args, **kwargs):
        raise AssertionError("store was read")


class BrokenWriteStore(MemoryStore):

    async def update(self, collection, doc_id, fields):
        raise StoreError("deadline exceeded", "update", collection)


class TestUpdateContact:

    def test_sets_only_the_named_field(self, store):
        before = run(store.get(CONTACTS, "c1"))
        result = run(ContactCommands(store).update_contact(
            UpdateContactData(contactIdentifier="John Smith", field="email", value="john@new.com"),
            "update John Smith email to john@new.com",
        ))
        after = run(store.get(CONTACTS, "c1"))

        assert result["success"] is True
        assert result["message"] == '✅ Updated email for John Smith to "john@new.com"'
        assert after["email"] == "john@new.com"
        assert {k: v for k, v in after.items() if k != "email"} == {k: v for k, v in before.items() if k != "email"}

    def test_field_name_is_canonicalised(self, store):
        result = run(ContactCommands(store).update_contact(
            UpdateContactData(contactIdentifier="Bob", field="Business Sector", value="steel"), "cmd",
        ))
        assert result["field"] == "businessSector"
        assert run(store.get(CONTACTS, "c3"))["businessSector"] == "steel"

    def test_writes_audit_entry(self, store):
        run(ContactCommands(store).update_contact(
            UpdateContactData(contactIdentifier="Bob", field="phone", value="412-555-0199"), "set Bob's phone",
        ))
        entries = run(store.all(AI_ACTIONS))
        assert len(entries) == 1
        assert entries[0]["action"] == "update"
        assert entries[0]["contactId"] == "c3"
        assert entries[0]["command"] == "set Bob's phone"
        assert entries[0]["success"] is True

    def test_missing_identifier_fails_before_store_access(self):
        result = run(ContactCommands(UntouchableStore()).update_contact(
            UpdateContactData(field="email", value="a@b.com"), "cmd",
        ))
        assert result["success"] is False
        assert result["errorType"] == "validation_failure"
        assert result["field"] == "contactIdentifier"

    def test_invalid_field_fails_before_store_access(self):
        result = run(ContactCommands(UntouchableStore()).update_contact(
            UpdateContactData(contactIdentifier="Bob", field="shoeSize", value="10"), "cmd",
        ))
        assert result["errorType"] == "validation_failure"
        assert result["field"] == "field"
        assert "firstName" in result["details"]

    def test_unknown_contact(self, store):
        result = run(ContactCommands(store).update_contact(
            UpdateContactData(contactIdentifier="Nobody Here", field="email", value="a@b.com"), "cmd",
        ))
        assert result["success"] is False
        assert result["errorType"] == "entity_not_found"
        assert result["error"] == 'Contact not found: "Nobody Here"'
        assert result["suggestion"] == CONTACT_SUGGESTION

    def test_store_failure_is_generic(self):
        store = BrokenWriteStore(seed=SEED)
        result = run(ContactCommands(store).update_contact(
            UpdateContactData(contactIdentifier="Bob", field="phone", value="1"), "cmd",
        ))
        assert result["success"] is False
        assert result["errorType"] == "store_write_failure"
        assert result["details"] == "Database operation failed"
        assert "deadline" not in result["error"]


class TestAddNote:

    def test_appends_on_new_line(self, store):
        run(ContactCommands(store).add_note(AddNoteData(contactIdentifier="Jane", value="Prefers texts"), "cmd"))
        assert run(store.get(CONTACTS, "c2"))["notes"] == "Met at open house\nPrefers texts"

    def test_first_note_has_no_leading_newline(self, store):
        result = run(ContactCommands(store).add_note(
            AddNoteData(contactIdentifier="john@old.com", value="Prefers email"), "cmd",
        ))
        assert result["success"] is True
        assert run(store.get(CONTACTS, "c1"))["notes"] == "Prefers email"

    def test_note_text_is_stored_verbatim(self, store):
        run(ContactCommands(store).add_note(AddNoteData(contactIdentifier="Jane", value="  call after 5 "), "cmd"))
        assert run(store.get(CONTACTS, "c2"))["notes"] == "Met at open house\n  call after 5 "

    def test_blank_existing_notes_are_replaced(self, store):
        run(store.update(CONTACTS, "c3", {"notes": "   "}))
        run(ContactCommands(store).add_note(AddNoteData(contactIdentifier="Bob Jones", value="Wants a tour"), "cmd"))
        assert run(store.get(CONTACTS, "c3"))["notes"] == "Wants a tour"

    def test_missing_note(self, store):
        result = run(ContactCommands(store).add_note(AddNoteData(contactIdentifier="Bob", value=" "), "cmd"))
        assert result["field"] == "value"


class TestCreateAndDeleteContact:

    def test_create_from_identifier(self, empty_store):
        result = run(ContactCommands(empty_store).create_contact(
            CreateContactData(contactIdentifier="Mary Ann Lee", email="mary@lee.com", company="Lee Dental"), "cmd",
        ))
        contact = run(empty_store.get(CONTACTS, result["contactId"]))
        assert contact["firstName"] == "Mary"
        assert contact["lastName"] == "Ann Lee"
        assert contact["linkedin"] == ""
        assert result["message"] == "✅ Created contact Mary Ann Lee"

    def test_duplicate_email_rejected(self, store):
        result = run(ContactCommands(store).create_contact(
            CreateContactData(firstName="Johnny", email="john@old.com"), "cmd",
        ))
        assert result["errorType"] == "validation_failure"
        assert result["field"] == "email"
        assert result["contactId"] == "c1"
        assert len(run(store.all(CONTACTS))) == 3

    def test_needs_some_identity(self, empty_store):
        result = run(ContactCommands(empty_store).create_contact(CreateContactData(phone="555"), "cmd"))
        assert result["success"] is False
        assert run(empty_store.all(CONTACTS)) == []

    def test_delete_single_field(self, store):
        result = run(ContactCommands(store).delete_contact(
            DeleteContactData(contactIdentifier="John Smith", field="linkedin"), "cmd",
        ))
        assert result["action"] == "delete_contact_field"
        contact = run(store.get(CONTACTS, "c1"))
        assert "linkedin" not in contact
        assert contact["email"] == "john@old.com"

    def test_delete_whole_contact(self, store):
        run(ContactCommands(store).delete_contact(DeleteContactData(contactIdentifier="Bob"), "cmd"))
        assert run(store.get(CONTACTS, "c3")) is None


class TestSearchListFilter:

    def test_search(self, store):
        result = run(ContactCommands(store).search_contacts(SearchContactData(query="steel"), "cmd"))
        assert result["count"] == 1
        assert result["contacts"][0]["name"] == "Bob Jones"

    def test_search_without_matches(self, store):
        result = run(ContactCommands(store).search_contacts(SearchContactData(query="zebra"), "cmd"))
        assert result["success"] is False
        assert result["suggestion"] == CONTACT_SUGGESTION

    def test_list_sorted_by_last_name(self, store):
        result = run(ContactCommands(store).list_contacts(ListContactsData(), "cmd"))
        assert [c["name"] for c in result["contacts"]] == ["Jane Doe", "Bob Jones", "John Smith"]
        assert result["count"] == 3

    def test_filter_infers_address(self, store):
        result = run(ContactCommands(store).filter_contacts(FilterContactsData(filterCriteria="Shadyside"), "cmd"))
        assert result["filterField"] == "address"
        assert [c["id"] for c in result["contacts"]] == ["c1"]

    def test_filter_without_matches_still_succeeds(self, store):
        result = run(ContactCommands(store).filter_contacts(
            FilterContactsData(filterCriteria="dental", filterField="businessSector"), "cmd",
        ))
        assert result["success"] is True
        assert result["count"] == 0


class TestCanonicalField:

    def test_variants(self):
        assert canonical_contact_field("first name") == "firstName"
        assert canonical_contact_field("LINKEDIN") == "linkedin"
        assert canonical_contact_field("business_sector") == "businessSector"
        assert canonical_contact_field("zip") is None
