"""
Criteria query engine for contacts.

Exact-match criteria are pushed down to the store as native filters;
free-text search terms are applied afterwards as a case-insensitive
substring scan, since the store has no full-text index.
"""

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ..db import CONTACTS, DocumentStore, Filter
from ..logging_config import get_logger
from ..models import CONTACT_FIELDS, ContactSummary
from .resolver import contact_display_name
from .vocabulary import (
    BUSINESS_SECTOR_KEYWORDS,
    CRITERIA_STOPWORDS,
    LIST_PRIORITY_TERMS,
    LOCATION_KEYWORDS,
)

logger = get_logger(__name__)

SEARCH_FIELDS = ("firstName", "lastName", "email", "company", "businessSector", "notes")
DEFAULT_FILTER_FIELD = "company"

_QUOTED_RE = re.compile(r'["“]([^"”]+)["”]')
_WORD_RE = re.compile(r"[a-z0-9][a-z0-9&.\-]*")


class ContactCriteria(BaseModel):
    model_config = ConfigDict(extra="ignore")

    businessSector: Optional[str] = None
    company: Optional[str] = None
    hasLinkedIn: Optional[str] = None
    hasNotes: Optional[str] = None
    searchTerms: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, str):
            value = value.strip()
            if not value or value.lower() in ("null", "none"):
                return None
        return value

    def is_empty(self) -> bool:
        return not any(self.model_dump().values())


def _presence_filter(field: str, flag: Optional[str]) -> Optional[Filter]:
    if flag is None:
        return None
    flag = flag.lower()
    if flag == "true":
        return (field, "!=", "")
    if flag == "false":
        return (field, "==", "")
    return None


def matches_search_terms(contact: Dict[str, Any], terms: str) -> bool:
    needle = terms.lower()
    return any(
        isinstance(contact.get(field), str) and needle in contact[field].lower()
        for field in SEARCH_FIELDS
    )


async def query_contacts(store: DocumentStore, criteria: ContactCriteria) -> List[Dict[str, Any]]:
    """Return the contacts satisfying every criterion."""
    filters: List[Filter] = []
    if criteria.businessSector:
        filters.append(("businessSector", "==", criteria.businessSector))
    if criteria.company:
        filters.append(("company", "==", criteria.company))
    for field, flag in (("linkedin", criteria.hasLinkedIn), ("notes", criteria.hasNotes)):
        presence = _presence_filter(field, flag)
        if presence:
            filters.append(presence)

    contacts = await store.query(CONTACTS, filters)
    if criteria.searchTerms:
        contacts = [c for c in contacts if matches_search_terms(c, criteria.searchTerms)]

    logger.info(
        f"Criteria query matched {len(contacts)} contacts",
        extra={
            "action": "criteria_query",
            "extra_data": {"criteria": criteria.model_dump(exclude_none=True), "matched": len(contacts)},
        },
    )
    return contacts


def simplify_list_criteria(list_criteria: str) -> str:
    """
    Reduce a verbose list description to one substring search term.

    Order: the priority terms (investor, tech, finance), then the first
    business-sector keyword present, then a quoted phrase, then the last
    word that is not a stopword. Falls back to the stripped input.
    """
    text = list_criteria.strip()
    lowered = text.lower()
    for term in LIST_PRIORITY_TERMS:
        if term in lowered:
            return term
    for keyword in BUSINESS_SECTOR_KEYWORDS:
        if keyword in lowered:
            return keyword
    quoted = _QUOTED_RE.search(text)
    if quoted and quoted.group(1).strip():
        return quoted.group(1).strip()
    words = [w for w in _WORD_RE.findall(lowered) if w not in CRITERIA_STOPWORDS]
    if words:
        return words[-1]
    return text


def infer_filter_field(filter_criteria: str) -> str:
    term = filter_criteria.lower()
    if any(keyword in term for keyword in BUSINESS_SECTOR_KEYWORDS):
        return "businessSector"
    if any(keyword in term for keyword in LOCATION_KEYWORDS):
        return "address"
    return DEFAULT_FILTER_FIELD


async def filter_contacts_by_field(store: DocumentStore, field: str, filter_criteria: str) -> List[Dict[str, Any]]:
    """Full scan: contacts whose `field` contains the criteria, case-insensitively."""
    if field not in CONTACT_FIELDS:
        raise ValueError(f"Unknown contact field: {field}")
    needle = filter_criteria.strip().lower()
    return [
        contact for contact in await store.all(CONTACTS)
        if isinstance(contact.get(field), str) and needle in contact[field].lower()
    ]


def summarize_contact(contact: Dict[str, Any]) -> Dict[str, Any]:
    return ContactSummary(
        id=contact["id"],
        name=contact_display_name(contact),
        email=contact.get("email") or None,
        company=contact.get("company") or None,
        phone=contact.get("phone") or None,
        businessSector=contact.get("businessSector") or None,
        address=contact.get("address") or None,
    ).model_dump()
