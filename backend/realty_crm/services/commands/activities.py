"""
Activity commands, including the combined "log an activity about a
listing" command.
"""

from typing import Any, Dict, Optional

from ...db import ACTIVITIES, StoreError
from ...logging_config import get_logger, log_action
from ...models import COMMAND_ACTIVITY_TYPES
from ..errors import CommandError
from ..intents import ActivityWithListingData, CreateActivityData
from ..resolver import contact_display_name, listing_display_name
from ..workflow import Workflow
from .base import CommandGroup, command_handler, ok, require_choice, utcnow

logger = get_logger(__name__)


class ActivityCommands(CommandGroup):

    async def _create_activity(self, contact: Dict[str, Any], activity_type: str,
                               description: Optional[str]) -> str:
        name = contact_display_name(contact)
        return await self.store.add(ACTIVITIES, {
            "contactId": contact["id"],
            "type": activity_type,
            "description": (description or "").strip() or f"Activity with {name}",
            "date": utcnow(),
            "createdAt": utcnow(),
        })

    @command_handler("Failed to log activity. Please try again.")
    async def create_activity(self, data: CreateActivityData, command: str) -> Dict[str, Any]:
        identifier = data.require("contactIdentifier", "Please specify which contact the activity was with.")
        activity_type = require_choice(
            data.require("activityType", "Please specify the type of activity."),
            COMMAND_ACTIVITY_TYPES, "activityType", f'Invalid activity type: "{data.activityType}".',
        )

        contact = await self.require_contact(identifier)
        name = contact_display_name(contact)
        activity_id = await self._create_activity(contact, activity_type, data.activityDescription)

        log_action(logger, "info", "activity_created", f"Logged {activity_type} activity for {name}",
                   activity_id=activity_id, contact_id=contact["id"])
        await self.audit.record_contact_action(
            command, "create_activity", contact["id"], name, activityId=activity_id, activityType=activity_type,
        )
        return ok(
            f"✅ Logged {activity_type} activity for {name}",
            action="create_activity",
            activityId=activity_id,
            contactId=contact["id"],
        )

    async def _attach_activity(self, activity_id: str, listing: Dict[str, Any]) -> bool:
        listing_name = listing_display_name(listing)
        await self.store.update(ACTIVITIES, activity_id, {
            "listingId": listing["id"],
            "listingName": listing_name,
        })
        return await self.attach_to_listing(listing, "activityIds", activity_id)

    @command_handler("Failed to log activity for the listing. Please try again.")
    async def create_activity_for_listing(self, data: ActivityWithListingData, command: str) -> Dict[str, Any]:
        contact_ref = data.contact_ref
        listing_ref = data.listing_ref
        if not contact_ref or not contact_ref.strip():
            data.require("contactIdentifier", "Please specify which contact the activity was with.")
        activity_type = require_choice(
            data.require("activityType", "Please specify the type of activity."),
            COMMAND_ACTIVITY_TYPES, "activityType", f'Invalid activity type: "{data.activityType}".',
        )
        if not listing_ref or not listing_ref.strip():
            data.require("listingIdentifier", "Please specify which listing the activity was about.")

        contact = await self.require_contact(contact_ref)
        name = contact_display_name(contact)

        workflow = Workflow("activity_listing_attachment", ("create_activity", "resolve_listing", "attach_to_listing"))
        activity_id = await workflow.run(
            "create_activity", self._create_activity, contact, activity_type, data.activityDescription,
        )
        try:
            listing = await workflow.run("resolve_listing", self.require_listing, listing_ref)
            await workflow.run("attach_to_listing", self._attach_activity, activity_id, listing)
        except (CommandError, StoreError) as e:
            await self.audit.record_contact_action(
                command, "create_activity_for_listing", contact["id"], name,
                activityId=activity_id, activityType=activity_type, attached=False, success=False,
            )
            raise workflow.partial_failure(
                e,
                f"Logged {activity_type} activity for {name}, but could not attach it to a listing.",
                details=str(e),
                activityId=activity_id,
                contactId=contact["id"],
            )

        listing_name = listing_display_name(listing)
        log_action(logger, "info", "activity_attached",
                   f"Logged {activity_type} activity for {name} on {listing_name}",
                   activity_id=activity_id, contact_id=contact["id"], listing_id=listing["id"])
        await self.audit.record_contact_action(
            command, "create_activity_for_listing", contact["id"], name,
            activityId=activity_id, activityType=activity_type,
            listingId=listing["id"], listingName=listing_name,
        )
        return ok(
            f'✅ Logged {activity_type} activity for {name} and attached it to "{listing_name}"',
            action="create_activity_for_listing",
            activityId=activity_id,
            contactId=contact["id"],
            listingId=listing["id"],
            listingName=listing_name,
            steps=workflow.report(),
        )
