"""
Fixed keyword vocabularies used for heuristic inference.

Kept as immutable data so the heuristics that read them (list criteria
simplification, filter-field inference, the chat topic gate, prospect
search expansion) can be tested and extended without touching code.
Tuples are used where the first match wins; frozensets where only
membership matters.
"""

import re
from types import MappingProxyType

# Recognised ahead of the sector keywords when simplifying list criteria
LIST_PRIORITY_TERMS = ("investor", "tech", "finance")

BUSINESS_SECTOR_KEYWORDS = (
    "financial", "finance", "banking", "insurance", "real estate", "healthcare",
    "medical", "dental", "legal", "law", "technology", "tech", "software",
    "consulting", "retail", "restaurant", "food", "automotive", "auto",
    "construction", "manufacturing", "education", "school", "university",
    "government", "nonprofit", "charity", "marketing", "advertising", "media",
    "entertainment", "investor",
)

LOCATION_KEYWORDS = (
    "pittsburgh", "mt. lebanon", "bethel park", "bridgeville", "south hills",
    "north hills", "east end", "west end", "downtown", "oakland", "shadyside",
    "squirrel hill", "lawrenceville", "strip district", "south side",
    "north side", "east liberty", "bloomfield", "garfield",
)

# Words that never make a useful substring filter on their own
CRITERIA_STOPWORDS = frozenset({
    "a", "all", "an", "and", "any", "are", "at", "by", "companies", "company",
    "contact", "contacts", "every", "for", "from", "in", "include", "including",
    "is", "list", "lists", "of", "on", "or", "people", "the", "their", "them",
    "to", "who", "with", "work", "works", "working",
})

CRM_KEYWORDS = frozenset({
    # Contact management
    "contact", "contacts", "person", "people", "client", "customer", "lead",
    "update", "edit", "change", "modify", "set", "add", "delete", "remove",
    "name", "email", "phone", "company", "address", "business", "sector",
    "linkedin", "notes", "note",
    # Activity logging
    "activity", "activities", "log", "logged", "call", "meeting", "showing",
    "appointment", "discussed", "discussion", "talked", "spoke",
    # Lists, listings and tasks
    "list", "lists", "create", "make", "build", "generate", "show", "display",
    "find", "search", "filter", "criteria", "group", "category", "listing",
    "listings", "property", "task", "tasks", "prospect",
    # The system itself
    "crm", "system", "help", "assist", "how to", "what can", "guide",
    "manage", "organize", "track", "record", "database",
    # Common phrasing
    "how do i", "can you help", "i need to", "i want to", "please help",
    "show me", "tell me about", "explain", "what is", "where is",
})

CRM_PATTERNS = (
    re.compile(r"\b(update|edit|change|modify|set)\s+\w+", re.IGNORECASE),
    re.compile(r"\b(add|create|make|build|generate)\s+\w+", re.IGNORECASE),
    re.compile(r"\b(log|record|track)\s+\w+", re.IGNORECASE),
    re.compile(r"\b(find|search|show|display)\s+\w+", re.IGNORECASE),
    re.compile(r"\b(contact|person|client|customer)\s+\w+", re.IGNORECASE),
    re.compile(r"\b(activity|call|email|meeting|showing)\s+\w+", re.IGNORECASE),
    re.compile(r"\b(list|group|category)\s+\w+", re.IGNORECASE),
    re.compile(r"\?\s*$"),
    re.compile(r"\b(how|what|where|when|why|can|could|would|should)\b", re.IGNORECASE),
)

# Business category -> Places search terms
PROSPECT_SEARCH_TERMS = MappingProxyType({
    "financial services": ("financial advisor", "bank", "accounting firm", "insurance agency", "investment firm"),
    "restaurants": ("restaurant", "cafe", "bar", "bakery"),
    "tech": ("software company", "it services", "technology company", "web design"),
    "healthcare": ("doctor", "dentist", "medical clinic", "physical therapy", "pharmacy"),
    "manufacturing": ("manufacturer", "factory", "machine shop", "industrial supplier"),
    "retail": ("store", "boutique", "shop", "shopping center"),
    "construction": ("general contractor", "construction company", "roofing contractor", "electrician", "plumber"),
    "real estate": ("real estate agency", "property management", "real estate developer"),
    "legal": ("law firm", "attorney", "lawyer"),
    "accounting": ("accounting firm", "cpa", "tax preparation", "bookkeeping"),
    "insurance": ("insurance agency", "insurance broker"),
    "banking": ("bank", "credit union"),
    "consulting": ("consulting firm", "business consultant", "management consulting"),
    "marketing": ("marketing agency", "advertising agency", "digital marketing"),
    "advertising": ("advertising agency", "marketing agency", "media company"),
})
