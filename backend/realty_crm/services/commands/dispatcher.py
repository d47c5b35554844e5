"""
Route a classified command to its handler.
"""

from typing import Any, Awaitable, Callable, Dict, Optional

from ...db import DocumentStore
from ...logging_config import get_logger, intent_var, log_action
from ..assistant import Assistant
from ..audit import AuditLog
from ..errors import UnknownIntent
from ..intents import ClassifiedCommand, ExtractedData, IntentType
from ..llm import LLMClient
from ..prospecting import BusinessProspector
from .activities import ActivityCommands
from .contacts import ContactCommands
from .lists import ListCommands
from .prospects import ProspectCommands
from .tasks import TaskCommands

logger = get_logger(__name__)

Handler = Callable[[ExtractedData, str], Awaitable[Dict[str, Any]]]


class CommandDispatcher:
    """
    Executes classified commands against the store.

    One handler per intent; every handler returns the uniform result dict.
    """

    def __init__(
        self,
        store: DocumentStore,
        llm: Optional[LLMClient] = None,
        prospector: Optional[BusinessProspector] = None,
        assistant: Optional[Assistant] = None,
    ):
        self.store = store
        audit = AuditLog(store)
        if assistant is None and llm is not None:
            assistant = Assistant(llm)
        self.contacts = ContactCommands(store, audit)
        self.activities = ActivityCommands(store, audit)
        self.lists = ListCommands(store, audit, llm=llm)
        self.prospects = ProspectCommands(store, audit, prospector=prospector, assistant=assistant)
        self.tasks = TaskCommands(store, audit)

        self._handlers: Dict[IntentType, Handler] = {
            IntentType.UPDATE_CONTACT: self.contacts.update_contact,
            IntentType.ADD_NOTE: self.contacts.add_note,
            IntentType.CREATE_CONTACT: self.contacts.create_contact,
            IntentType.DELETE_CONTACT: self.contacts.delete_contact,
            IntentType.SEARCH_CONTACT: self.contacts.search_contacts,
            IntentType.LIST_CONTACTS: self.contacts.list_contacts,
            IntentType.FILTER_CONTACTS: self.contacts.filter_contacts,
            IntentType.CREATE_ACTIVITY: self.activities.create_activity,
            IntentType.COMBINED_ACTIVITY_CREATION_AND_LISTING_ATTACHMENT: self.activities.create_activity_for_listing,
            IntentType.CREATE_LIST: self.lists.create_list,
            IntentType.COMBINED_LIST_CREATION_AND_ATTACHMENT: self.lists.create_list_and_attach,
            IntentType.ATTACH_LIST_TO_LISTING: self.lists.attach_list_to_listing,
            IntentType.PROSPECT_BUSINESSES: self.prospects.prospect_businesses,
            IntentType.GENERAL_QUERY: self.prospects.general_query,
            IntentType.CREATE_TASK: self.tasks.create_task,
        }

    def handler_for(self, intent: IntentType) -> Handler:
        handler = self._handlers.get(intent)
        if handler is None:
            raise UnknownIntent(intent)
        return handler

    async def dispatch(self, classified: ClassifiedCommand) -> Dict[str, Any]:
        handler = self.handler_for(classified.intent)
        token = intent_var.set(classified.intent.value)
        try:
            result = await handler(classified.data, classified.raw_text)
        finally:
            intent_var.reset(token)
        log_action(
            logger, "info" if result.get("success") else "warning", "command_executed",
            f"{classified.intent.value} {'succeeded' if result.get('success') else 'failed'}",
            intent=classified.intent.value, success=bool(result.get("success")),
            error_type=result.get("errorType"),
        )
        return result
