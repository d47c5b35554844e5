"""
Tests for intent routing and the CRM assistant.
"""
import pytest

from realty_crm.db import CONVERSATIONS, CONTACTS
from realty_crm.services.assistant import Assistant, is_crm_query
from realty_crm.services.classifier import IntentClassifier
from realty_crm.services.commands import CommandDispatcher
from realty_crm.services.errors import ExternalServiceFailure
from realty_crm.services.intents import ClassifiedCommand, GeneralQueryData, IntentType
from realty_crm.services.prompts import NON_CRM_REPLY
from conftest import FakeLLM, classification, run


class TestDispatcher:

    def test_every_intent_has_a_handler(self, store):
        dispatcher = CommandDispatcher(store)
        for intent in IntentType:
            assert callable(dispatcher.handler_for(intent))

    def test_update_contact_end_to_end(self, store):
        llm = FakeLLM(classification(
            "UPDATE_CONTACT", 0.8, contactIdentifier="John Smith", field="email", value="john@new.com",
        ))
        command = "update John Smith email to john@new.com"
        classified = run(IntentClassifier(llm).classify(command))
        result = run(CommandDispatcher(store, llm=llm).dispatch(classified))

        assert result["success"] is True
        assert result["message"] == '✅ Updated email for John Smith to "john@new.com"'
        assert run(store.get(CONTACTS, "c1"))["email"] == "john@new.com"

    def test_general_query_is_a_chat_response(self, store):
        llm = FakeLLM("Say 'add note to <contact>: <text>' to add a note.")
        classified = ClassifiedCommand(IntentType.GENERAL_QUERY, 0.6, GeneralQueryData(), raw_text="how do I add notes?")
        result = run(CommandDispatcher(store, llm=llm).dispatch(classified))

        assert result["success"] is True
        assert result["isChatResponse"] is True
        assert result["message"].startswith("Say")
        assert llm.calls[0]["prompt"] == "how do I add notes?"

    def test_general_query_openai_status_error_is_raised(self, store):
        llm = FakeLLM(ExternalServiceFailure("OpenAI request failed", service="openai", status_code=429))
        classified = ClassifiedCommand(IntentType.GENERAL_QUERY, 0.6, GeneralQueryData(), raw_text="how do I add notes?")
        with pytest.raises(ExternalServiceFailure) as exc:
            run(CommandDispatcher(store, llm=llm).dispatch(classified))
        assert exc.value.status_code == 429

    def test_general_query_connection_failure_is_a_result(self, store):
        llm = FakeLLM(ExternalServiceFailure("OpenAI service unavailable", service="openai"))
        classified = ClassifiedCommand(IntentType.GENERAL_QUERY, 0.6, GeneralQueryData(), raw_text="how do I add notes?")
        result = run(CommandDispatcher(store, llm=llm).dispatch(classified))
        assert result["errorType"] == "external_service_failure"

    def test_general_query_without_llm(self, store):
        classified = ClassifiedCommand(IntentType.GENERAL_QUERY, 0.6, GeneralQueryData(), raw_text="hi")
        result = run(CommandDispatcher(store).dispatch(classified))
        assert result["success"] is False


class TestAssistant:

    def test_crm_gate(self):
        assert is_crm_query("How do I add a contact?")
        assert is_crm_query("update John's phone")
        assert not is_crm_query("tell a joke")

    def test_non_crm_message_skips_the_model(self, empty_store):
        llm = FakeLLM()
        reply = run(Assistant(llm).chat("tell a joke", store=empty_store))
        assert reply == NON_CRM_REPLY
        assert llm.calls == []
        assert run(empty_store.all(CONVERSATIONS))[0]["reply"] == NON_CRM_REPLY

    def test_crm_message_is_answered(self, empty_store):
        llm = FakeLLM("Open the contact and click Edit.")
        reply = run(Assistant(llm, model="gpt-4o").chat("how do I edit a contact?", store=empty_store))
        assert reply == "Open the contact and click Edit."
        assert llm.calls[0]["model"] == "gpt-4o"
        assert llm.calls[0]["temperature"] == 0.7
