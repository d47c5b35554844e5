"""
Contact list commands.

Lists are snapshots: contactIds is computed once from a criteria query when
the list is created and never recomputed.
"""

from typing import Any, Dict, List, Optional

from ...db import CONTACT_LISTS, StoreError
from ...logging_config import get_logger, log_action
from ..criteria import ContactCriteria, query_contacts, simplify_list_criteria, summarize_contact
from ..errors import CommandError, ValidationFailure
from ..intents import AttachListData, CreateListAndAttachData, CreateListData
from ..llm import LLMClient
from ..prompts import list_analysis_prompt
from ..resolver import listing_display_name
from ..workflow import Workflow
from .base import CommandGroup, command_handler, ok, utcnow

logger = get_logger(__name__)

NO_MATCH_SUGGESTION = "Try broader criteria, such as a business sector or a company name."
DEFAULT_LIST_NAME = "AI Generated List"


def _no_matches(criteria: Dict[str, Any]) -> CommandError:
    return CommandError(
        "No contacts found matching your criteria.",
        details="No contacts match the specified criteria",
        suggestion=NO_MATCH_SUGGESTION,
        criteria=criteria,
    )


class ListCommands(CommandGroup):

    def __init__(self, store, audit=None, llm: Optional[LLMClient] = None):
        super().__init__(store, audit)
        self.llm = llm

    async def _save_list(self, name: str, contacts: List[Dict[str, Any]], description: str,
                         criteria: Dict[str, Any]) -> str:
        return await self.store.add(CONTACT_LISTS, {
            "name": name,
            "contactIds": [c["id"] for c in contacts],
            "createdAt": utcnow(),
            "createdBy": "AI",
            "description": description,
            "criteria": criteria,
        })

    async def _build_list(self, list_name: str, list_criteria: str) -> Dict[str, Any]:
        search_term = simplify_list_criteria(list_criteria)
        criteria = {"searchTerms": search_term}
        log_action(logger, "info", "list_criteria_simplified", f"Simplified list criteria to {search_term!r}",
                   list_criteria=list_criteria, search_term=search_term)
        contacts = await query_contacts(self.store, ContactCriteria(searchTerms=search_term))
        if not contacts:
            raise _no_matches(criteria)
        list_id = await self._save_list(
            list_name, contacts, f"AI-generated list: {list_criteria}", criteria,
        )
        log_action(logger, "info", "list_created", f"Created list {list_name}",
                   list_id=list_id, contact_count=len(contacts))
        return {"id": list_id, "contacts": contacts}

    @command_handler("Failed to create list. Please try again.")
    async def create_list(self, data: CreateListData, command: str) -> Dict[str, Any]:
        list_name = data.require("listName", "Please specify a name for the list.").strip()
        list_criteria = data.require("listCriteria", "Please specify what kind of list you want to create.")

        built = await self._build_list(list_name, list_criteria)
        list_id, contacts = built["id"], built["contacts"]
        await self.audit.record_list_action(command, "create_list", list_id=list_id, list_name=list_name,
                                            contactCount=len(contacts))
        return ok(
            f'Created list "{list_name}" with {len(contacts)} contacts',
            action="create_list",
            listId=list_id,
            listName=list_name,
            contactCount=len(contacts),
        )

    @command_handler("Failed to create and attach list. Please try again.")
    async def create_list_and_attach(self, data: CreateListAndAttachData, command: str) -> Dict[str, Any]:
        list_name = data.require("listName", "Please specify a name for the list.").strip()
        list_criteria = data.require("listCriteria", "Please specify what kind of list you want to create.")
        listing_ref = data.listing_ref
        if not listing_ref or not listing_ref.strip():
            data.require("listingIdentifier", "Please specify which listing to attach the list to.")

        workflow = Workflow("list_creation_and_attachment", ("create_list", "resolve_listing", "attach_list"))
        built = await workflow.run("create_list", self._build_list, list_name, list_criteria)
        list_id, contacts = built["id"], built["contacts"]
        try:
            listing = await workflow.run("resolve_listing", self.require_listing, listing_ref)
            await workflow.run("attach_list", self.attach_to_listing, listing, "contactListIds", list_id)
        except (CommandError, StoreError) as e:
            await self.audit.record_list_action(command, "create_list", list_id=list_id, list_name=list_name,
                                                contactCount=len(contacts), attached=False, success=False)
            raise workflow.partial_failure(
                e,
                f'Created list "{list_name}" with {len(contacts)} contacts, but could not attach it to a listing.',
                details=str(e),
                listId=list_id,
                listName=list_name,
                contactCount=len(contacts),
            )

        listing_name = listing_display_name(listing)
        await self.audit.record_list_action(
            command, "create_and_attach_list", list_id=list_id, list_name=list_name,
            listing_id=listing["id"], listing_name=listing_name, contactCount=len(contacts),
        )
        return ok(
            f'✅ Created list "{list_name}" with {len(contacts)} contacts and attached it to "{listing_name}"',
            action="create_and_attach_list",
            listId=list_id,
            listName=list_name,
            contactCount=len(contacts),
            listingId=listing["id"],
            listingName=listing_name,
            steps=workflow.report(),
        )

    @command_handler("Failed to attach list to listing. Please try again.")
    async def attach_list_to_listing(self, data: AttachListData, command: str) -> Dict[str, Any]:
        list_ref = data.list_ref
        if not list_ref or not list_ref.strip():
            data.require("listIdentifier", "Please specify which list to attach.")
        listing_ref = data.listing_ref
        if not listing_ref or not listing_ref.strip():
            data.require("listingIdentifier", "Please specify which listing to attach the list to.")

        contact_list = await self.require_contact_list(list_ref)
        listing = await self.require_listing(listing_ref)
        list_name = contact_list.get("name", "")
        listing_name = listing_display_name(listing)

        attached = await self.attach_to_listing(listing, "contactListIds", contact_list["id"])
        if not attached:
            raise CommandError(
                f'List "{list_name}" is already attached to listing "{listing_name}".',
                details="List already attached",
                listId=contact_list["id"],
                listingId=listing["id"],
            )

        log_action(logger, "info", "list_attached", f"Attached list {list_name} to {listing_name}",
                   list_id=contact_list["id"], listing_id=listing["id"])
        await self.audit.record_list_action(
            command, "attach_list", list_id=contact_list["id"], list_name=list_name,
            listing_id=listing["id"], listing_name=listing_name,
        )
        return ok(
            f'✅ Attached list "{list_name}" to listing "{listing_name}"',
            action="attach_list",
            listId=contact_list["id"],
            listName=list_name,
            listingId=listing["id"],
            listingName=listing_name,
        )

    @command_handler("Failed to create list. Please try again.")
    async def create_list_from_description(self, description: str) -> Dict[str, Any]:
        """Build a list from a free-text description using every criteria field."""
        if not description or not description.strip():
            raise ValidationFailure("Please describe the list you want to create.", field="description")
        if self.llm is None:
            raise CommandError("List analysis is not available.", details="No language model configured")

        analysis = await self.llm.complete_json(list_analysis_prompt(description), max_tokens=500)

        raw_criteria = analysis.get("criteria")
        criteria = ContactCriteria.model_validate(raw_criteria if isinstance(raw_criteria, dict) else {})
        if criteria.is_empty():
            criteria = ContactCriteria(searchTerms=simplify_list_criteria(description))
        list_name = analysis.get("listName") if isinstance(analysis.get("listName"), str) else None
        list_name = (list_name or "").strip() or DEFAULT_LIST_NAME
        list_description = analysis.get("description") if isinstance(analysis.get("description"), str) else None
        criteria_dict = criteria.model_dump(exclude_none=True)

        contacts = await query_contacts(self.store, criteria)
        if not contacts:
            raise _no_matches(criteria_dict)
        list_id = await self._save_list(
            list_name, contacts, list_description or f"AI-generated list: {description}", criteria_dict,
        )

        log_action(logger, "info", "list_created", f"Created list {list_name}",
                   list_id=list_id, contact_count=len(contacts))
        await self.audit.record_list_action(description, "create_list", list_id=list_id, list_name=list_name,
                                            contactCount=len(contacts), criteria=criteria_dict)
        return ok(
            f'Created list "{list_name}" with {len(contacts)} contacts',
            action="create_list",
            listId=list_id,
            listName=list_name,
            contactCount=len(contacts),
            contacts=[summarize_contact(c) for c in contacts],
        )
