"""
Activities REST endpoints.

- POST /activities - log an activity for a contact, optionally on a listing
- GET /activities - newest first, filter by type, limit/offset paging
- GET /activities/contact/{contact_id} - one contact's activities
- PUT /activities/{activity_id} - partial update
- DELETE /activities/{activity_id}
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from ..db import ACTIVITIES, CONTACTS, LISTINGS, DocumentStore, StoreError, get_store
from ..logging_config import get_logger, log_action
from ..models import ACTIVITY_TYPES, ActivityCreate, ActivityUpdate
from ..services.errors import ApiError
from ..services.resolver import listing_display_name

logger = get_logger(__name__)
router = APIRouter(prefix="/activities")


def _validate_type(activity_type: str) -> str:
    if activity_type not in ACTIVITY_TYPES:
        raise ApiError(400, f"Invalid activity type. Must be one of: {', '.join(ACTIVITY_TYPES)}")
    return activity_type


def _parse_date(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ApiError(400, f'Invalid date: "{value}". Use ISO 8601 format.')
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@router.post("")
async def create_activity(payload: ActivityCreate, store: DocumentStore = Depends(get_store)) -> Dict[str, Any]:
    if not payload.contactId.strip() or not payload.type.strip() or not payload.description.strip():
        raise ApiError(400, "Missing required fields: contactId, type, and description are required")
    activity_type = _validate_type(payload.type)
    date = _parse_date(payload.date)

    try:
        contact = await store.get(CONTACTS, payload.contactId)
        if contact is None:
            raise ApiError(404, "Contact not found")

        now = datetime.now(timezone.utc)
        activity: Dict[str, Any] = {
            "contactId": payload.contactId,
            "type": activity_type,
            "description": payload.description,
            "date": date,
            "duration": payload.duration,
            "notes": payload.notes or "",
            "createdAt": now,
            "updatedAt": now,
        }

        listing = None
        if payload.listingId:
            listing = await store.get(LISTINGS, payload.listingId)
            if listing is None:
                raise ApiError(404, "Listing not found")
            activity["listingId"] = listing["id"]
            activity["listingName"] = listing_display_name(listing)

        activity_id = await store.add(ACTIVITIES, activity)
        if listing is not None:
            await store.array_union(LISTINGS, listing["id"], "activityIds", [activity_id])
    except StoreError as e:
        raise ApiError(500, "Failed to create activity", details=str(e))

    log_action(logger, "info", "activity_created", "Activity created",
               activity_id=activity_id, contact_id=payload.contactId, listing_id=payload.listingId)
    return {"success": True, "activityId": activity_id, "message": "Activity created successfully"}


@router.get("")
async def list_activities(
    type: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    filters = []
    if type:
        filters.append(("type", "==", _validate_type(type)))
    try:
        activities = await store.query(
            ACTIVITIES, filters, order_by="date", descending=True, limit=limit, offset=offset,
        )
    except StoreError as e:
        raise ApiError(500, "Failed to fetch activities", details=str(e))
    return {"success": True, "activities": activities, "count": len(activities)}


@router.get("/contact/{contact_id}")
async def list_contact_activities(contact_id: str, store: DocumentStore = Depends(get_store)) -> Dict[str, Any]:
    try:
        if await store.get(CONTACTS, contact_id) is None:
            raise ApiError(404, "Contact not found")
        activities = await store.query(
            ACTIVITIES, [("contactId", "==", contact_id)], order_by="date", descending=True,
        )
    except StoreError as e:
        raise ApiError(500, "Failed to fetch activities", details=str(e))
    return {"success": True, "activities": activities}


@router.put("/{activity_id}")
async def update_activity(
    activity_id: str,
    payload: ActivityUpdate,
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    updates = payload.model_dump(exclude_unset=True)
    if "type" in updates:
        _validate_type(updates["type"])
    if "date" in updates:
        updates["date"] = _parse_date(updates["date"])
    if not updates:
        raise ApiError(400, "No fields to update")
    updates["updatedAt"] = datetime.now(timezone.utc)

    try:
        if await store.get(ACTIVITIES, activity_id) is None:
            raise ApiError(404, "Activity not found")
        await store.update(ACTIVITIES, activity_id, updates)
    except StoreError as e:
        raise ApiError(500, "Failed to update activity", details=str(e))

    log_action(logger, "info", "activity_updated", "Activity updated",
               activity_id=activity_id, fields=sorted(updates))
    return {"success": True, "message": "Activity updated successfully"}


@router.delete("/{activity_id}")
async def delete_activity(activity_id: str, store: DocumentStore = Depends(get_store)) -> Dict[str, Any]:
    try:
        if await store.get(ACTIVITIES, activity_id) is None:
            raise ApiError(404, "Activity not found")
        await store.delete(ACTIVITIES, activity_id)
    except StoreError as e:
        raise ApiError(500, "Failed to delete activity", details=str(e))

    log_action(logger, "info", "activity_deleted", "Activity deleted", activity_id=activity_id)
    return {"success": True, "message": "Activity deleted successfully"}
