"""
Append-only audit trail of executed commands.

List actions go to `ai_list_actions`; every other command is recorded in
`ai_actions`. Entries are never read back by the application. A
failed audit write is logged and does not fail the command it describes.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..db import AI_ACTIONS, AI_LIST_ACTIONS, DocumentStore, StoreError
from ..logging_config import get_logger

logger = get_logger(__name__)


class AuditLog:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def _append(self, collection: str, entry: Dict[str, Any]) -> Optional[str]:
        entry = {key: value for key, value in entry.items() if value is not None}
        entry.setdefault("timestamp", datetime.now(timezone.utc))
        entry.setdefault("success", True)
        try:
            return await self.store.add(collection, entry)
        except StoreError as e:
            logger.error(
                f"Failed to write audit entry: {e}",
                extra={
                    "action": "audit_write_failed",
                    "extra_data": {"collection": collection, "audit_action": entry.get("action")},
                },
            )
            return None

    async def record_contact_action(
        self,
        command: str,
        action: str,
        contact_id: str,
        contact_name: str,
        field: Optional[str] = None,
        value: Optional[str] = None,
        **extra: Any,
    ) -> Optional[str]:
        return await self._append(AI_ACTIONS, {
            "command": command,
            "action": action,
            "contactId": contact_id,
            "contactName": contact_name,
            "field": field,
            "value": value,
            **extra,
        })

    async def record_list_action(
        self,
        command: str,
        action: str,
        list_id: Optional[str] = None,
        list_name: Optional[str] = None,
        listing_id: Optional[str] = None,
        listing_name: Optional[str] = None,
        **extra: Any,
    ) -> Optional[str]:
        return await self._append(AI_LIST_ACTIONS, {
            "command": command,
            "action": action,
            "listId": list_id,
            "listName": list_name,
            "listingId": listing_id,
            "listingName": listing_name,
            **extra,
        })

    async def record_task_action(
        self,
        command: str,
        task_id: str,
        target_type: str,
        target_id: str,
        target_name: str,
    ) -> Optional[str]:
        return await self._append(AI_ACTIONS, {
            "command": command,
            "action": "create_task",
            "taskId": task_id,
            "targetType": target_type,
            "targetId": target_id,
            "targetName": target_name,
        })

    async def record_prospect_action(
        self,
        command: str,
        search_id: str,
        business_category: str,
        location: str,
        businesses_found: int,
    ) -> Optional[str]:
        return await self._append(AI_ACTIONS, {
            "command": command,
            "action": "prospect_businesses",
            "searchId": search_id,
            "businessCategory": business_category,
            "location": location,
            "businessesFound": businesses_found,
        })
