"""
Business prospecting on the Google Maps Platform.

Flow: geocode the location, run one nearby search per expanded search
term (sequentially, with a pause between calls), fetch place details for
each new business, and deduplicate by place_id. The googlemaps client is
synchronous, so every call runs in a worker thread.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import googlemaps
from googlemaps import exceptions as gmaps_exceptions

from ..db import PROSPECT_SEARCHES, DocumentStore
from ..logging_config import get_logger, log_action
from ..models import BusinessResult
from .errors import ExternalServiceFailure
from .vocabulary import PROSPECT_SEARCH_TERMS

logger = get_logger(__name__)

DETAIL_FIELDS = ["formatted_phone_number", "website", "formatted_address"]
MAPS_ERRORS = (gmaps_exceptions.ApiError, gmaps_exceptions.TransportError, gmaps_exceptions.Timeout)


def expand_search_terms(business_category: str) -> List[str]:
    """Search terms for a category; unknown categories search for themselves."""
    category = business_category.strip().lower()
    terms = PROSPECT_SEARCH_TERMS.get(category)
    if terms is None:
        for known, known_terms in PROSPECT_SEARCH_TERMS.items():
            if known in category or category in known:
                terms = known_terms
                break
    return list(terms) if terms else [category]


class BusinessProspector:
    """Find businesses of a category around a location."""

    def __init__(
        self,
        client: Optional[Any] = None,
        api_key: Optional[str] = None,
        radius_meters: int = 5000,
        request_delay: float = 0.5,
        retention_days: int = 30,
    ):
        if client is None and api_key:
            client = googlemaps.Client(key=api_key)
        if client is None:
            logger.warning("GOOGLE_MAPS_API_KEY not set - business prospecting is disabled")
        self.client = client
        self.radius_meters = radius_meters
        self.request_delay = request_delay
        self.retention_days = retention_days

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def _call(self, method: str, *args, **kwargs):
        try:
            return await asyncio.to_thread(getattr(self.client, method), *args, **kwargs)
        except MAPS_ERRORS as e:
            logger.error(
                f"Google Maps {method} failed: {e}",
                extra={"action": "maps_error", "extra_data": {"method": method}},
            )
            raise ExternalServiceFailure(
                "Business search service failed. Please try again later.",
                service="google_maps",
                details=str(e),
            ) from e

    async def geocode(self, location: str) -> Optional[Dict[str, Any]]:
        results = await self._call("geocode", location)
        if not results:
            return None
        first = results[0]
        coords = first["geometry"]["location"]
        return {
            "lat": coords["lat"],
            "lng": coords["lng"],
            "formattedAddress": first.get("formatted_address", location),
        }

    async def _details(self, place_id: str) -> Dict[str, Any]:
        response = await self._call("place", place_id, fields=DETAIL_FIELDS)
        return response.get("result", {}) if response else {}

    async def search(self, business_category: str, location: str) -> Tuple[Dict[str, Any], List[str], List[Dict[str, Any]]]:
        """Return (search location, search terms, deduplicated businesses)."""
        if not self.enabled:
            raise ExternalServiceFailure(
                "Business prospecting is not configured.",
                service="google_maps",
                details="GOOGLE_MAPS_API_KEY not set",
            )

        search_location = await self.geocode(location)
        if search_location is None:
            raise ExternalServiceFailure(
                f'Could not find location "{location}".',
                service="google_maps",
                details="Geocoding returned no results",
            )

        terms = expand_search_terms(business_category)
        businesses: Dict[str, Dict[str, Any]] = {}
        for index, term in enumerate(terms):
            if index and self.request_delay:
                await asyncio.sleep(self.request_delay)
            response = await self._call(
                "places_nearby",
                location=(search_location["lat"], search_location["lng"]),
                radius=self.radius_meters,
                keyword=term,
            )
            for place in (response or {}).get("results", []):
                place_id = place.get("place_id")
                if not place_id or place_id in businesses:
                    continue
                details = await self._details(place_id)
                coords = place.get("geometry", {}).get("location")
                businesses[place_id] = BusinessResult(
                    place_id=place_id,
                    name=place.get("name", ""),
                    address=details.get("formatted_address") or place.get("vicinity"),
                    rating=place.get("rating"),
                    phone=details.get("formatted_phone_number"),
                    website=details.get("website"),
                    coordinates={"lat": coords["lat"], "lng": coords["lng"]} if coords else None,
                    search_term=term,
                    types=place.get("types", []),
                ).model_dump()

        log_action(logger, "info", "prospect_search_completed",
                   f"Found {len(businesses)} businesses for {business_category} in {location}",
                   business_category=business_category, location=location,
                   search_terms=terms, businesses_found=len(businesses))
        return search_location, terms, list(businesses.values())

    async def archive(
        self,
        store: DocumentStore,
        command: str,
        business_category: str,
        location: str,
        search_location: Dict[str, Any],
        terms: List[str],
        businesses: List[Dict[str, Any]],
    ) -> str:
        now = datetime.now(timezone.utc)
        return await store.add(PROSPECT_SEARCHES, {
            "command": command,
            "businessCategory": business_category,
            "location": location,
            "searchLocation": search_location,
            "searchTerms": terms,
            "businesses": businesses,
            "businessesFound": len(businesses),
            "timestamp": now,
            "expiresAt": now + timedelta(days=self.retention_days),
        })
