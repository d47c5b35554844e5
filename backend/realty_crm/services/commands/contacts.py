"""
Contact commands: update, note, create, delete, search, list and filter.
"""

from typing import Any, Dict, Optional

from ...db import CONTACTS
from ...logging_config import get_logger, log_action
from ...models import CONTACT_FIELDS
from ..criteria import (
    ContactCriteria,
    filter_contacts_by_field,
    infer_filter_field,
    query_contacts,
    summarize_contact,
)
from ..errors import CONTACT_SUGGESTION, EntityNotFound, ValidationFailure
from ..intents import (
    AddNoteData,
    CreateContactData,
    DeleteContactData,
    FilterContactsData,
    ListContactsData,
    SearchContactData,
    UpdateContactData,
)
from ..resolver import contact_display_name
from .base import CommandGroup, command_handler, ok, utcnow

logger = get_logger(__name__)

_FIELD_LOOKUP = {name.lower(): name for name in CONTACT_FIELDS}


def canonical_contact_field(name: str) -> Optional[str]:
    """Map "first name", "FirstName" or "first_name" to firstName."""
    key = name.strip().replace(" ", "").replace("_", "").lower()
    return _FIELD_LOOKUP.get(key)


def require_contact_field(name: str) -> str:
    field = canonical_contact_field(name)
    if field is None:
        raise ValidationFailure(
            f'Invalid field: "{name}".',
            field="field",
            details=f"Valid fields: {', '.join(CONTACT_FIELDS)}",
        )
    return field


class ContactCommands(CommandGroup):

    @command_handler("Failed to update contact. Please try again.")
    async def update_contact(self, data: UpdateContactData, command: str) -> Dict[str, Any]:
        identifier = data.require("contactIdentifier", "Please specify which contact to update.")
        field_name = data.require("field", "Please specify which field to update.")
        value = data.require("value", "Please specify the new value.")
        field = require_contact_field(field_name)

        contact = await self.require_contact(identifier)
        name = contact_display_name(contact)
        await self.store.update(CONTACTS, contact["id"], {field: value})

        log_action(logger, "info", "contact_updated", f"Updated {field} for {name}",
                   contact_id=contact["id"], field=field)
        await self.audit.record_contact_action(command, "update", contact["id"], name, field=field, value=value)
        return ok(
            f'✅ Updated {field} for {name} to "{value}"',
            action="update_contact",
            contactId=contact["id"],
            field=field,
            value=value,
        )

    @command_handler("Failed to add note. Please try again.")
    async def add_note(self, data: AddNoteData, command: str) -> Dict[str, Any]:
        identifier = data.require("contactIdentifier", "Please specify which contact to add the note to.")
        note = data.require("value", "Please specify the note to add.")

        contact = await self.require_contact(identifier)
        name = contact_display_name(contact)
        existing = contact.get("notes")
        notes = f"{existing}\n{note}" if isinstance(existing, str) and existing.strip() else note
        await self.store.update(CONTACTS, contact["id"], {"notes": notes})

        log_action(logger, "info", "note_added", f"Added note to {name}", contact_id=contact["id"])
        await self.audit.record_contact_action(command, "add_note", contact["id"], name, field="notes", value=note)
        return ok(f'✅ Added note to {name}: "{note}"', action="add_note", contactId=contact["id"])

    @command_handler("Failed to create contact. Please try again.")
    async def create_contact(self, data: CreateContactData, command: str) -> Dict[str, Any]:
        fields = {name: (getattr(data, name) or "").strip() for name in CONTACT_FIELDS}

        # Fill name/email from the identifier when the model only gave that
        identifier = (data.contactIdentifier or "").strip()
        if identifier:
            if "@" in identifier:
                fields["email"] = fields["email"] or identifier
            elif not fields["firstName"]:
                first_name, *rest = identifier.split()
                fields["firstName"] = first_name
                fields["lastName"] = fields["lastName"] or " ".join(rest)

        if not (fields["firstName"] or fields["lastName"] or fields["email"] or fields["company"]):
            raise ValidationFailure(
                "Please provide at least a name, email or company for the new contact.",
                field="contactIdentifier",
            )

        if fields["email"]:
            existing = await self.store.query(CONTACTS, [("email", "==", fields["email"])], limit=1)
            if existing:
                raise ValidationFailure(
                    f'A contact with email {fields["email"]} already exists.',
                    field="email",
                    details="Duplicate email address",
                    contactId=existing[0]["id"],
                )

        contact_id = await self.store.add(CONTACTS, {**fields, "createdAt": utcnow()})
        name = contact_display_name({**fields, "id": contact_id})

        log_action(logger, "info", "contact_created", f"Created contact {name}", contact_id=contact_id)
        await self.audit.record_contact_action(command, "create", contact_id, name)
        return ok(
            f"✅ Created contact {name}",
            action="create_contact",
            contactId=contact_id,
            contact={**fields, "id": contact_id},
        )

    @command_handler("Failed to delete contact. Please try again.")
    async def delete_contact(self, data: DeleteContactData, command: str) -> Dict[str, Any]:
        identifier = data.require("contactIdentifier", "Please specify which contact to delete.")
        field = require_contact_field(data.field) if data.field and data.field.strip() else None

        contact = await self.require_contact(identifier)
        name = contact_display_name(contact)

        if field:
            await self.store.delete_field(CONTACTS, contact["id"], field)
            log_action(logger, "info", "contact_field_deleted", f"Deleted {field} from {name}",
                       contact_id=contact["id"], field=field)
            await self.audit.record_contact_action(command, "delete_field", contact["id"], name, field=field)
            return ok(f"✅ Deleted {field} from {name}", action="delete_contact_field",
                      contactId=contact["id"], field=field)

        await self.store.delete(CONTACTS, contact["id"])
        log_action(logger, "info", "contact_deleted", f"Deleted contact {name}", contact_id=contact["id"])
        await self.audit.record_contact_action(command, "delete", contact["id"], name)
        return ok(f"✅ Deleted contact {name}", action="delete_contact", contactId=contact["id"])

    @command_handler("Failed to search contacts. Please try again.")
    async def search_contacts(self, data: SearchContactData, command: str) -> Dict[str, Any]:
        term = data.query if data.query and data.query.strip() else data.contactIdentifier
        if not term or not term.strip():
            raise ValidationFailure("Please specify what to search for.", field="query")
        term = term.strip()

        contacts = await query_contacts(self.store, ContactCriteria(searchTerms=term))
        if not contacts:
            raise EntityNotFound("Contact", term, CONTACT_SUGGESTION)
        summaries = [summarize_contact(c) for c in contacts]
        return ok(
            f'Found {len(summaries)} contact{"s" if len(summaries) != 1 else ""} matching "{term}"',
            action="search_contacts",
            contacts=summaries,
            count=len(summaries),
        )

    @command_handler("Failed to list contacts. Please try again.")
    async def list_contacts(self, data: ListContactsData, command: str) -> Dict[str, Any]:
        contacts = await self.store.all(CONTACTS)
        contacts.sort(key=lambda c: ((c.get("lastName") or "").lower(), (c.get("firstName") or "").lower()))
        summaries = [summarize_contact(c) for c in contacts]
        message = f"You have {len(summaries)} contacts" if summaries else "You don't have any contacts yet"
        return ok(message, action="list_contacts", contacts=summaries, count=len(summaries))

    @command_handler("Failed to filter contacts. Please try again.")
    async def filter_contacts(self, data: FilterContactsData, command: str) -> Dict[str, Any]:
        criteria = data.require("filterCriteria", "Please specify what to filter contacts by.").strip()
        field = canonical_contact_field(data.filterField) if data.filterField else None
        if field is None:
            field = infer_filter_field(criteria)

        contacts = await filter_contacts_by_field(self.store, field, criteria)
        summaries = [summarize_contact(c) for c in contacts]
        log_action(logger, "info", "contacts_filtered", f"Filtered contacts by {field}",
                   filter_field=field, matched=len(summaries))
        if summaries:
            message = f'Found {len(summaries)} contacts with {field} matching "{criteria}"'
        else:
            message = f'No contacts found with {field} matching "{criteria}"'
        return ok(
            message,
            action="filter_contacts",
            filterField=field,
            filterCriteria=criteria,
            contacts=summaries,
            count=len(summaries),
        )
