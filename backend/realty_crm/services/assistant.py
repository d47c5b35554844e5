"""
CRM assistant replies for /chat and GENERAL_QUERY commands.
"""

from datetime import datetime, timezone
from typing import Optional

from ..db import CONVERSATIONS, DocumentStore, StoreError
from ..logging_config import get_logger
from .llm import LLMClient
from .prompts import ASSISTANT_SYSTEM_PROMPT, NON_CRM_REPLY
from .vocabulary import CRM_KEYWORDS, CRM_PATTERNS

logger = get_logger(__name__)


def is_crm_query(message: str) -> bool:
    """Keyword/pattern gate keeping the assistant on CRM topics."""
    lowered = message.lower()
    if any(keyword in lowered for keyword in CRM_KEYWORDS):
        return True
    return any(pattern.search(message) for pattern in CRM_PATTERNS)


class Assistant:
    def __init__(self, llm: LLMClient, model: Optional[str] = None):
        self.llm = llm
        self.model = model

    async def answer(self, message: str) -> str:
        return await self.llm.complete(
            message,
            system=ASSISTANT_SYSTEM_PROMPT,
            temperature=0.7,
            max_tokens=1000,
            model=self.model,
        )

    async def chat(self, message: str, store: Optional[DocumentStore] = None) -> str:
        """Reply to a chat message and archive the exchange."""
        if not is_crm_query(message):
            reply = NON_CRM_REPLY
        else:
            reply = await self.answer(message)

        if store is not None:
            try:
                await store.add(CONVERSATIONS, {
                    "message": message,
                    "reply": reply,
                    "timestamp": datetime.now(timezone.utc),
                })
            except StoreError as e:
                logger.error(
                    f"Failed to archive conversation: {e}",
                    extra={"action": "conversation_archive_failed", "extra_data": {}},
                )
        return reply
