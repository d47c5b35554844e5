"""
Natural-language command endpoints.

- POST /ai-contact-action - classify a command and execute it
- POST /ai-create-task - classify a task command and create the task
- POST /ai-create-list - build a contact list from a description
- POST /chat - CRM assistant chat

Classification problems and OpenAI HTTP errors map to HTTP status codes
here. Any other handler outcome is returned with HTTP 200, successful or not.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from ..config import Settings, get_settings
from ..db import DocumentStore, get_store
from ..dependencies import (
    get_assistant,
    get_dispatcher,
    get_intent_classifier,
    get_task_classifier,
)
from ..logging_config import get_logger
from ..services.assistant import Assistant
from ..services.classifier import IntentClassifier, TaskIntentClassifier
from ..services.commands import CommandDispatcher
from ..services.errors import (
    ApiError,
    ClassificationParseFailure,
    ExternalServiceFailure,
    LowConfidenceClassification,
    UnknownIntent,
)

logger = get_logger(__name__)
router = APIRouter()

LOW_CONFIDENCE_SUGGESTION = (
    "Try phrasing it like: \"update John Smith's email to john@new.com\" "
    "or \"add note to jane@example.com: prefers texts\"."
)


async def read_text_field(request: Request, name: str) -> str:
    """Return a required non-empty string field from the JSON body, or 400."""
    try:
        body = await request.json()
    except ValueError:
        body = None
    value = body.get(name) if isinstance(body, dict) else None
    if not isinstance(value, str) or not value.strip():
        raise ApiError(400, f'Invalid input. Please provide a "{name}" field with a string value.')
    return value.strip()


def external_failure(exc: ExternalServiceFailure, settings: Settings) -> ApiError:
    """Pass OpenAI auth, rate-limit and bad-request errors through."""
    if exc.status_code == 401:
        return ApiError(401, "Invalid OpenAI API key")
    if exc.status_code == 429:
        return ApiError(429, "Rate limit exceeded. Please try again later.")
    if exc.status_code == 400:
        return ApiError(400, "Invalid request to OpenAI API")
    return ApiError(
        500,
        "An error occurred while processing your request",
        details=None if settings.is_production else exc.details or str(exc),
    )


async def classify_or_raise(classifier, command: str, settings: Settings):
    try:
        return await classifier.classify(command)
    except ClassificationParseFailure as e:
        logger.warning(
            f"Could not parse classification: {e}",
            extra={"action": "classification_parse_failure", "extra_data": {"command_length": len(command)}},
        )
        raise ApiError(
            500,
            "Failed to understand your request. Please try rephrasing.",
            details="Intent analysis parsing failed",
        )
    except LowConfidenceClassification as e:
        raise ApiError(
            400,
            "I'm not sure what you'd like me to do. Please be more specific.",
            details="Low confidence in intent analysis",
            suggestion=e.user_message or LOW_CONFIDENCE_SUGGESTION,
            debug={"intent": e.intent, "confidence": e.confidence, "threshold": e.threshold},
        )
    except UnknownIntent:
        raise ApiError(
            400,
            "Unknown action type. Please try rephrasing your request.",
            details="Invalid intent type",
        )
    except ExternalServiceFailure as e:
        raise external_failure(e, settings)


@router.post("/ai-contact-action")
async def ai_contact_action(
    request: Request,
    classifier: IntentClassifier = Depends(get_intent_classifier),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    command = await read_text_field(request, "command")
    classified = await classify_or_raise(classifier, command, settings)
    try:
        return await dispatcher.dispatch(classified)
    except ExternalServiceFailure as e:
        raise external_failure(e, settings)


@router.post("/ai-create-task")
async def ai_create_task(
    request: Request,
    classifier: TaskIntentClassifier = Depends(get_task_classifier),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    command = await read_text_field(request, "command")
    classified = await classify_or_raise(classifier, command, settings)
    return await dispatcher.dispatch(classified)


@router.post("/ai-create-list")
async def ai_create_list(
    request: Request,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    description = await read_text_field(request, "description")
    try:
        return await dispatcher.lists.create_list_from_description(description)
    except ClassificationParseFailure:
        raise ApiError(
            500,
            "Failed to understand your request. Please try rephrasing.",
            details="List analysis parsing failed",
        )
    except ExternalServiceFailure as e:
        raise external_failure(e, settings)


@router.post("/chat")
async def chat(
    request: Request,
    assistant: Assistant = Depends(get_assistant),
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> Dict[str, str]:
    message = await read_text_field(request, "message")
    try:
        reply = await assistant.chat(message, store=store)
    except ExternalServiceFailure as e:
        raise external_failure(e, settings)
    return {"reply": reply}
