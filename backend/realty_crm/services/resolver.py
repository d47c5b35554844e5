"""
Entity resolution: map a free-text reference to one stored document.

Contacts are resolved with exact-match store queries in tiers:
  1. contains "@"  -> email
  2. contains a space -> firstName = first token, lastName = the rest
  3. otherwise -> company, then firstName

Listings and contact lists have no reliable key, so every document is
loaded and compared with a case-insensitive substring test in both
directions. Every resolver returns the first match in store iteration
order, or None.
"""

from typing import Any, Dict, Optional

from ..db import CONTACTS, CONTACT_LISTS, LISTINGS, DocumentStore
from ..logging_config import get_logger

logger = get_logger(__name__)

LISTING_MATCH_FIELDS = ("streetAddress", "address", "name", "title")
LISTING_DISPLAY_FIELDS = ("name", "address", "streetAddress", "title")


def _first(results):
    return results[0] if results else None


async def find_contact(store: DocumentStore, identifier: str) -> Optional[Dict[str, Any]]:
    ident = (identifier or "").strip()
    if not ident:
        return None

    if "@" in ident:
        contact = _first(await store.query(CONTACTS, [("email", "==", ident)], limit=1))
        tier = "email"
    elif " " in ident:
        first_name, *rest = ident.split()
        last_name = " ".join(rest)
        contact = _first(await store.query(
            CONTACTS,
            [("firstName", "==", first_name), ("lastName", "==", last_name)],
            limit=1,
        ))
        tier = "full_name"
    else:
        contact = _first(await store.query(CONTACTS, [("company", "==", ident)], limit=1))
        tier = "company"
        if contact is None:
            contact = _first(await store.query(CONTACTS, [("firstName", "==", ident)], limit=1))
            tier = "first_name"

    logger.debug(
        f"Contact lookup for {ident!r}: {'found' if contact else 'not found'}",
        extra={"action": "contact_lookup", "extra_data": {"tier": tier, "found": contact is not None}},
    )
    return contact


def _substring_match(candidate: Any, needle: str) -> bool:
    if not isinstance(candidate, str) or not candidate.strip():
        return False
    value = candidate.strip().lower()
    return needle in value or value in needle


async def find_listing(store: DocumentStore, identifier: str) -> Optional[Dict[str, Any]]:
    needle = (identifier or "").strip().lower()
    if not needle:
        return None
    for listing in await store.all(LISTINGS):
        for field in LISTING_MATCH_FIELDS:
            if _substring_match(listing.get(field), needle):
                return listing
    return None


async def find_contact_list(store: DocumentStore, identifier: str) -> Optional[Dict[str, Any]]:
    needle = (identifier or "").strip().lower()
    if not needle:
        return None
    for contact_list in await store.all(CONTACT_LISTS):
        if _substring_match(contact_list.get("name"), needle):
            return contact_list
    return None


def listing_display_name(listing: Dict[str, Any]) -> str:
    """Human label for a listing; never blank."""
    for field in LISTING_DISPLAY_FIELDS:
        value = listing.get(field)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return f"Listing {str(listing.get('id', ''))[-6:]}"


def contact_display_name(contact: Dict[str, Any]) -> str:
    name = " ".join(
        part.strip() for part in (contact.get("firstName"), contact.get("lastName"))
        if isinstance(part, str) and part.strip()
    )
    return name or contact.get("company") or contact.get("email") or f"Contact {contact.get('id', '')}"
