"""
Command handlers for classified CRM commands.

Modules:
- base: result helpers, the handler error boundary, shared entity lookups
- contacts: update, note, create, delete, search, list and filter contacts
- activities: activity logging, with or without a listing attachment
- lists: contact list creation and attachment to listings
- prospects: business prospecting and general assistant questions
- tasks: task creation for a contact or a listing
- dispatcher: intent -> handler routing
"""

from .dispatcher import CommandDispatcher

__all__ = ["CommandDispatcher"]
