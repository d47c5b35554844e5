"""
Business prospecting and general assistant commands.
"""

from typing import Any, Dict, Optional

from ...logging_config import get_logger
from ..assistant import Assistant
from ..errors import CommandError
from ..intents import GeneralQueryData, ProspectBusinessesData
from ..prospecting import BusinessProspector
from .base import CommandGroup, command_handler, ok

logger = get_logger(__name__)


class ProspectCommands(CommandGroup):

    def __init__(self, store, audit=None, prospector: Optional[BusinessProspector] = None,
                 assistant: Optional[Assistant] = None):
        super().__init__(store, audit)
        self.prospector = prospector or BusinessProspector()
        self.assistant = assistant

    @command_handler("Failed to search for businesses. Please try again.")
    async def prospect_businesses(self, data: ProspectBusinessesData, command: str) -> Dict[str, Any]:
        category = data.require("businessCategory", "Please specify what kind of businesses to find.").strip()
        location = data.require("location", "Please specify where to search for businesses.").strip()

        search_location, terms, businesses = await self.prospector.search(category, location)
        search_id = await self.prospector.archive(
            self.store, command, category, location, search_location, terms, businesses,
        )
        await self.audit.record_prospect_action(command, search_id, category, location, len(businesses))
        return ok(
            f"Found {len(businesses)} {category} businesses near {search_location['formattedAddress']}",
            action="prospect_businesses",
            searchId=search_id,
            businessesFound=len(businesses),
            data={
                "businessCategory": category,
                "searchLocation": search_location,
                "searchTerms": terms,
                "businesses": businesses,
            },
        )

    @command_handler("Failed to answer your question. Please try again.")
    async def general_query(self, data: GeneralQueryData, command: str) -> Dict[str, Any]:
        if self.assistant is None:
            raise CommandError("The assistant is not available.", details="No language model configured")
        reply = await self.assistant.answer(command)
        return ok(reply, action="general_query", isChatResponse=True)
