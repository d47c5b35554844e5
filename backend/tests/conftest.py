"""
Shared fixtures: an in-memory store seeded with a small CRM, a scripted
stand-in for the OpenAI client and a stand-in for the googlemaps client.
"""
import asyncio
import json

import pytest

from realty_crm.db import CONTACT_LISTS, CONTACTS, LISTINGS, MemoryStore
from realty_crm.services.llm import parse_json_object


def run(coro):
    return asyncio.run(coro)


def contact(first, last, email, company="", sector="", notes="", linkedin="", address="", phone=""):
    return {
        "firstName": first,
        "lastName": last,
        "email": email,
        "phone": phone,
        "company": company,
        "address": address,
        "businessSector": sector,
        "linkedin": linkedin,
        "notes": notes,
    }


SEED = {
    CONTACTS: {
        "c1": contact("John", "Smith", "john@old.com", company="Acme Realty", sector="technology",
                      linkedin="https://linkedin.com/in/jsmith", address="12 Walnut St, Shadyside",
                      phone="412-555-0101"),
        "c2": contact("Jane", "Doe", "jane@x.com ", company="Doe Capital", sector="finance",
                      notes="Met at open house", address="Squirrel Hill"),
        "c3": contact("Bob", "Jones", "bob@steel.com", company="Steel Works", sector="manufacturing",
                      address="Bethel Park"),
    },
    LISTINGS: {
        "listing000420": {"streetAddress": "420 Main Street", "price": 450000},
        "listing000777": {"name": "Oakmont Estate", "streetAddress": "77 Hulton Rd"},
    },
    CONTACT_LISTS: {
        "cl1": {"name": "Tech Companies", "contactIds": ["c1"], "createdBy": "AI"},
    },
}


class FakeLLM:
    """Replays scripted replies; dict replies are sent as JSON text, exceptions are raised."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def complete(self, prompt, **kwargs):
        self.calls.append({"prompt": prompt, **kwargs})
        if not self.replies:
            raise AssertionError("FakeLLM has no scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply if isinstance(reply, str) else json.dumps(reply)

    async def complete_json(self, prompt, **kwargs):
        content = await self.complete(prompt, json_mode=True, **kwargs)
        return parse_json_object(content)


def classification(intent, confidence=0.9, user_message=None, **extracted):
    reply = {"intent": intent, "confidence": confidence, "extractedData": extracted}
    if user_message:
        reply["userMessage"] = user_message
    return reply


PITTSBURGH = [{
    "formatted_address": "Pittsburgh, PA, USA",
    "geometry": {"location": {"lat": 40.4406, "lng": -79.9959}},
}]


def place(place_id, name, rating=4.5):
    return {
        "place_id": place_id,
        "name": name,
        "vicinity": f"{name} vicinity",
        "rating": rating,
        "geometry": {"location": {"lat": 40.44, "lng": -79.99}},
        "types": ["finance", "establishment"],
    }


class FakeMapsClient:
    """Synchronous stand-in for googlemaps.Client."""

    def __init__(self, geocode_results=None, places=None, error=None):
        self.geocode_results = PITTSBURGH if geocode_results is None else geocode_results
        self.places = places if places is not None else [place("p1", "Steel City Bank"), place("p2", "Three Rivers CPA")]
        self.error = error
        self.keywords = []
        self.detail_requests = []

    def geocode(self, address):
        if self.error:
            raise self.error
        return self.geocode_results

    def places_nearby(self, location=None, radius=None, keyword=None):
        self.keywords.append(keyword)
        return {"results": self.places}

    def place(self, place_id, fields=None):
        self.detail_requests.append(place_id)
        return {"result": {
            "formatted_address": f"{place_id} Grant St, Pittsburgh, PA",
            "formatted_phone_number": "(412) 555-0000",
            "website": f"https://{place_id}.example.com",
        }}


@pytest.fixture
def store():
    return MemoryStore(seed=SEED)


@pytest.fixture
def empty_store():
    return MemoryStore()
