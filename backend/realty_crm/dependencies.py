"""
FastAPI dependencies wiring the services to the configured backends.

Tests replace these through app.dependency_overrides.
"""

from fastapi import Depends

from .config import Settings, get_settings
from .db import DocumentStore, get_store
from .services.assistant import Assistant
from .services.classifier import IntentClassifier, TaskIntentClassifier
from .services.commands import CommandDispatcher
from .services.errors import ApiError
from .services.llm import LLMClient
from .services.prospecting import BusinessProspector

_llm_client = None
_prospector = None


def get_llm_client(settings: Settings = Depends(get_settings)) -> LLMClient:
    global _llm_client
    if not settings.openai_configured:
        raise ApiError(500, "OpenAI API key not configured. Please set OPENAI_API_KEY in your .env file.")
    if _llm_client is None:
        _llm_client = LLMClient(api_key=settings.openai_api_key, model=settings.intent_model)
    return _llm_client


def get_prospector(settings: Settings = Depends(get_settings)) -> BusinessProspector:
    global _prospector
    if _prospector is None:
        _prospector = BusinessProspector(
            api_key=settings.google_maps_api_key,
            radius_meters=settings.prospect_radius_meters,
            request_delay=settings.prospect_request_delay,
            retention_days=settings.prospect_retention_days,
        )
    return _prospector


def get_assistant(
    llm: LLMClient = Depends(get_llm_client),
    settings: Settings = Depends(get_settings),
) -> Assistant:
    return Assistant(llm, model=settings.chat_model)


def get_intent_classifier(llm: LLMClient = Depends(get_llm_client)) -> IntentClassifier:
    return IntentClassifier(llm)


def get_task_classifier(llm: LLMClient = Depends(get_llm_client)) -> TaskIntentClassifier:
    return TaskIntentClassifier(llm)


def get_dispatcher(
    store: DocumentStore = Depends(get_store),
    llm: LLMClient = Depends(get_llm_client),
    prospector: BusinessProspector = Depends(get_prospector),
    assistant: Assistant = Depends(get_assistant),
) -> CommandDispatcher:
    return CommandDispatcher(store, llm=llm, prospector=prospector, assistant=assistant)
