from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..db import CONTACT_LISTS, LISTINGS, DocumentStore, StoreError, get_store
from ..logging_config import get_logger, log_action
from ..models import AddContactListToListingRequest
from ..services.audit import AuditLog
from ..services.errors import ApiError
from ..services.resolver import listing_display_name

logger = get_logger(__name__)
router = APIRouter()


@router.get("/listings")
async def list_listings(store: DocumentStore = Depends(get_store)) -> Dict[str, Any]:
    try:
        listings = await store.all(LISTINGS)
    except StoreError as e:
        raise ApiError(500, "Failed to fetch listings", details=str(e))
    for listing in listings:
        listing["displayName"] = listing_display_name(listing)
    return {"success": True, "listings": listings}


@router.post("/add-contact-list-to-listing")
async def add_contact_list_to_listing(
    payload: AddContactListToListingRequest,
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    """Attach a contact list to a listing by id, bypassing the classifier."""
    if not payload.listingId.strip() or not payload.contactListId.strip():
        raise ApiError(400, "Missing required fields: listingId and contactListId")

    try:
        listing = await store.get(LISTINGS, payload.listingId)
        if listing is None:
            raise ApiError(404, "Listing not found")
        contact_list = await store.get(CONTACT_LISTS, payload.contactListId)
        if contact_list is None:
            raise ApiError(404, "Contact list not found")

        current_ids = list(listing.get("contactListIds") or [])
        if payload.contactListId in current_ids:
            raise ApiError(400, "Contact list is already associated with this listing")

        await store.array_union(LISTINGS, payload.listingId, "contactListIds", [payload.contactListId])
    except StoreError as e:
        raise ApiError(500, "Failed to add contact list to listing", details=str(e))

    list_name = contact_list.get("name", "")
    listing_name = listing_display_name(listing)
    log_action(logger, "info", "list_attached", f"Attached list {list_name} to {listing_name}",
               list_id=payload.contactListId, listing_id=payload.listingId)
    await AuditLog(store).record_list_action(
        None, "add_contact_list_to_listing",
        list_id=payload.contactListId, list_name=list_name,
        listing_id=payload.listingId, listing_name=listing_name,
    )
    return {
        "success": True,
        "message": f'Contact list "{list_name}" has been added to the listing',
        "listingId": payload.listingId,
        "contactListId": payload.contactListId,
        "updatedContactListIds": current_ids + [payload.contactListId],
    }
