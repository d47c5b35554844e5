"""
Tests for contact list creation and attachment to listings.
"""
import pytest

from realty_crm.db import AI_LIST_ACTIONS, CONTACT_LISTS, LISTINGS
from realty_crm.services.commands.lists import ListCommands
from realty_crm.services.errors import ClassificationParseFailure, ExternalServiceFailure
from realty_crm.services.intents import AttachListData, CreateListAndAttachData, CreateListData
from conftest import FakeLLM, run


class TestCreateList:

    def test_creates_snapshot_list(self, store):
        result = run(ListCommands(store).create_list(
            CreateListData(listName="Tech People", listCriteria="technology companies"), "cmd",
        ))
        assert result["success"] is True
        assert result["message"] == 'Created list "Tech People" with 1 contacts'

        saved = run(store.get(CONTACT_LISTS, result["listId"]))
        assert saved["contactIds"] == ["c1"]
        assert saved["createdBy"] == "AI"
        assert saved["criteria"] == {"searchTerms": "tech"}
        assert saved["description"] == "AI-generated list: technology companies"

    def test_no_matches_creates_nothing(self, store):
        result = run(ListCommands(store).create_list(
            CreateListData(listName="Dentists", listCriteria="dental offices"), "cmd",
        ))
        assert result["success"] is False
        assert result["suggestion"]
        assert [doc["id"] for doc in run(store.all(CONTACT_LISTS))] == ["cl1"]

    def test_missing_name(self, store):
        result = run(ListCommands(store).create_list(CreateListData(listCriteria="tech"), "cmd"))
        assert result["errorType"] == "validation_failure"
        assert result["field"] == "listName"


class TestAttachList:

    def test_attach_only_once(self, store):
        commands = ListCommands(store)
        data = AttachListData(listIdentifier="Tech Companies", listingIdentifier="420 Main Street")

        first = run(commands.attach_list_to_listing(data, "attach the Tech Companies list to 420 Main Street"))
        second = run(commands.attach_list_to_listing(data, "attach the Tech Companies list to 420 Main Street"))

        assert first["success"] is True
        assert second["success"] is False
        assert second["error"] == 'List "Tech Companies" is already attached to listing "420 Main Street".'
        assert run(store.get(LISTINGS, "listing000420"))["contactListIds"] == ["cl1"]

    def test_list_name_used_when_identifier_missing(self, store):
        result = run(ListCommands(store).attach_list_to_listing(
            AttachListData(listName="tech companies", listingName="Oakmont"), "cmd",
        ))
        assert result["listingName"] == "Oakmont Estate"

    def test_unknown_list(self, store):
        result = run(ListCommands(store).attach_list_to_listing(
            AttachListData(listIdentifier="Golfers", listingIdentifier="420 Main"), "cmd",
        ))
        assert result["errorType"] == "entity_not_found"
        assert "contactListIds" not in run(store.get(LISTINGS, "listing000420"))


class TestCreateListAndAttach:

    def test_creates_and_attaches(self, store):
        result = run(ListCommands(store).create_list_and_attach(
            CreateListAndAttachData(listName="Finance", listCriteria="finance people", listingIdentifier="Oakmont"),
            "cmd",
        ))
        assert result["success"] is True
        assert [step["status"] for step in result["steps"]] == ["completed"] * 3
        assert run(store.get(LISTINGS, "listing000777"))["contactListIds"] == [result["listId"]]

    def test_unknown_listing_keeps_the_list(self, store):
        result = run(ListCommands(store).create_list_and_attach(
            CreateListAndAttachData(listName="Finance", listCriteria="finance people", listingIdentifier="9 Elm"),
            "cmd",
        ))
        assert result["success"] is False
        assert result["errorType"] == "partial_workflow_failure"
        assert result["completedSteps"] == ["create_list"]
        assert [s["status"] for s in result["steps"]] == ["completed", "failed", "not_attempted"]
        assert run(store.get(CONTACT_LISTS, result["listId"]))["contactIds"] == ["c2"]

        audit = run(store.all(AI_LIST_ACTIONS))
        assert audit[0]["attached"] is False
        assert audit[0]["success"] is False

    def test_no_matches_is_not_partial(self, store):
        result = run(ListCommands(store).create_list_and_attach(
            CreateListAndAttachData(listName="Vets", listCriteria="veterinarians", listingIdentifier="Oakmont"),
            "cmd",
        ))
        assert result["success"] is False
        assert result["errorType"] == "command_error"


class TestCreateListFromDescription:

    def test_uses_full_criteria(self, store):
        llm = FakeLLM({
            "listName": "LinkedIn Contacts",
            "criteria": {"hasLinkedIn": "true", "company": None},
            "description": "Contacts with LinkedIn profiles",
        })
        result = run(ListCommands(store, llm=llm).create_list_from_description("contacts with linkedin"))
        assert result["listName"] == "LinkedIn Contacts"
        assert result["contactCount"] == 1
        assert result["contacts"][0]["id"] == "c1"
        assert run(store.get(CONTACT_LISTS, result["listId"]))["criteria"] == {"hasLinkedIn": "true"}

    def test_empty_criteria_falls_back_to_search_terms(self, store):
        llm = FakeLLM({"listName": "", "criteria": {}})
        result = run(ListCommands(store, llm=llm).create_list_from_description("people at Steel Works"))
        assert result["listName"] == "AI Generated List"
        assert result["contacts"][0]["id"] == "c3"

    def test_unparseable_analysis_is_raised(self, store):
        with pytest.raises(ClassificationParseFailure):
            run(ListCommands(store, llm=FakeLLM("not json")).create_list_from_description("tech people"))
        assert [doc["id"] for doc in run(store.all(CONTACT_LISTS))] == ["cl1"]

    def test_openai_status_error_is_raised(self, store):
        llm = FakeLLM(ExternalServiceFailure("OpenAI request failed", service="openai", status_code=401))
        with pytest.raises(ExternalServiceFailure):
            run(ListCommands(store, llm=llm).create_list_from_description("tech people"))

    def test_connection_failure_is_a_result(self, store):
        llm = FakeLLM(ExternalServiceFailure("OpenAI service unavailable", service="openai"))
        result = run(ListCommands(store, llm=llm).create_list_from_description("tech people"))
        assert result["success"] is False
        assert result["errorType"] == "external_service_failure"
