"""
Shared plumbing for command handlers.

Every handler returns the uniform result dict: the command_handler decorator
converts CommandError, StoreError and anything unexpected into
{"success": False, ...}. OpenAI HTTP errors and unreadable model replies
are re-raised so the route can answer with their status code.
"""

import functools
from datetime import datetime, timezone
from typing import Any, Dict

from ...db import LISTINGS, DocumentStore, StoreError
from ...logging_config import get_logger, log_action
from ..audit import AuditLog
from ..errors import (
    CONTACT_LIST_SUGGESTION,
    CONTACT_SUGGESTION,
    LISTING_SUGGESTION,
    ClassificationError,
    CommandError,
    EntityNotFound,
    ExternalServiceFailure,
    ValidationFailure,
)
from ..resolver import find_contact, find_contact_list, find_listing

logger = get_logger(__name__)

STORE_FAILURE_DETAILS = "Database operation failed"


def ok(message: str, **fields: Any) -> Dict[str, Any]:
    return {"success": True, "message": message, **fields}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def command_handler(failure_message: str):
    """Wrap a handler so its failures become result dicts."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs) -> Dict[str, Any]:
            try:
                return await func(self, *args, **kwargs)
            except ClassificationError:
                raise
            except CommandError as e:
                if isinstance(e, ExternalServiceFailure) and e.passes_through:
                    raise
                log_action(logger, "info", "command_failed", e.message,
                           handler=func.__name__, error_type=e.error_type)
                return e.to_result()
            except StoreError as e:
                logger.error(
                    f"{func.__name__}: store operation failed: {e}",
                    extra={
                        "action": "store_write_failure",
                        "extra_data": {"handler": func.__name__, "operation": e.operation, "collection": e.collection},
                    },
                    exc_info=True,
                )
                return {
                    "success": False,
                    "error": failure_message,
                    "details": STORE_FAILURE_DETAILS,
                    "errorType": "store_write_failure",
                }
            except Exception as e:
                logger.error(
                    f"{func.__name__}: unexpected error: {e}",
                    extra={"action": "command_error", "extra_data": {"handler": func.__name__}},
                    exc_info=True,
                )
                return {
                    "success": False,
                    "error": failure_message,
                    "details": "Unexpected error while executing the command",
                    "errorType": "unexpected_error",
                }

        return wrapper

    return decorator


class CommandGroup:
    """Base for a family of handlers sharing the store and audit log."""

    def __init__(self, store: DocumentStore, audit: AuditLog = None):
        self.store = store
        self.audit = audit or AuditLog(store)

    async def require_contact(self, identifier: str) -> Dict[str, Any]:
        contact = await find_contact(self.store, identifier)
        if contact is None:
            raise EntityNotFound("Contact", identifier.strip(), CONTACT_SUGGESTION)
        return contact

    async def require_listing(self, identifier: str) -> Dict[str, Any]:
        listing = await find_listing(self.store, identifier)
        if listing is None:
            raise EntityNotFound("Listing", identifier.strip(), LISTING_SUGGESTION)
        return listing

    async def require_contact_list(self, identifier: str) -> Dict[str, Any]:
        contact_list = await find_contact_list(self.store, identifier)
        if contact_list is None:
            raise EntityNotFound("Contact list", identifier.strip(), CONTACT_LIST_SUGGESTION)
        return contact_list

    async def attach_to_listing(self, listing: Dict[str, Any], field: str, value: str) -> bool:
        """
        Append value to one of the listing's id arrays.

        Returns False when the value is already present. The write itself is
        an atomic array union, so concurrent attachers cannot drop each
        other's ids.
        """
        if value in (listing.get(field) or []):
            return False
        await self.store.array_union(LISTINGS, listing["id"], field, [value])
        return True


def require_choice(value: str, choices, field: str, message: str) -> str:
    normalized = value.strip().lower()
    if normalized not in choices:
        raise ValidationFailure(message, field=field, details=f"Valid values: {', '.join(choices)}")
    return normalized
