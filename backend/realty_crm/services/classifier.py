"""
LLM-backed intent classifiers.

Two classifiers share the same validation path:
- IntentClassifier: contact/list/listing/prospecting commands
- TaskIntentClassifier: task creation commands, with dates resolved
  against the server's current date

Model output is untrusted. A reply that is not a JSON object of the
expected shape raises ClassificationParseFailure; a confidence below the
intent's threshold raises LowConfidenceClassification. Neither touches the
store.
"""

import re
from datetime import date, timedelta
from typing import Any, Callable, Dict, FrozenSet, Optional

from pydantic import ValidationError

from ..logging_config import get_logger
from .errors import ClassificationParseFailure, LowConfidenceClassification, UnknownIntent
from .intents import (
    ClassifiedCommand,
    IntentType,
    PAYLOAD_MODELS,
    TASK_CONFIDENCE_THRESHOLD,
    confidence_threshold,
)
from .llm import LLMClient
from .prompts import contact_action_prompt, task_prompt

logger = get_logger(__name__)

CONTACT_ACTION_INTENTS: FrozenSet[IntentType] = frozenset(
    intent for intent in IntentType if intent is not IntentType.CREATE_TASK
)
TASK_INTENTS: FrozenSet[IntentType] = frozenset({IntentType.CREATE_TASK})


def build_classified_command(
    raw: Dict[str, Any],
    command: str,
    allowed: FrozenSet[IntentType],
    threshold_for: Callable[[IntentType], float],
) -> ClassifiedCommand:
    """Validate a parsed model reply into a ClassifiedCommand."""
    tag = raw.get("intent")
    if not isinstance(tag, str) or not tag.strip():
        raise ClassificationParseFailure("Model reply has no intent")
    try:
        intent = IntentType(tag.strip().upper())
    except ValueError:
        raise UnknownIntent(tag)

    raw_confidence = raw.get("confidence")
    if isinstance(raw_confidence, bool):
        raise ClassificationParseFailure(f"Invalid confidence: {raw_confidence!r}")
    try:
        confidence = float(raw_confidence)
    except (TypeError, ValueError):
        raise ClassificationParseFailure(f"Invalid confidence: {raw_confidence!r}")
    if not 0.0 <= confidence <= 1.0:
        raise ClassificationParseFailure(f"Confidence out of range: {confidence}")

    user_message = raw.get("userMessage") if isinstance(raw.get("userMessage"), str) else None

    threshold = threshold_for(intent)
    if confidence < threshold:
        logger.info(
            f"Low confidence classification: {intent.value} {confidence} < {threshold}",
            extra={
                "action": "classification_rejected",
                "extra_data": {"intent": intent.value, "confidence": confidence, "threshold": threshold},
            },
        )
        raise LowConfidenceClassification(intent.value, confidence, threshold, user_message)

    if intent not in allowed:
        raise UnknownIntent(intent.value)

    extracted = raw.get("extractedData")
    if extracted is None:
        extracted = {}
    if not isinstance(extracted, dict):
        raise ClassificationParseFailure("extractedData is not an object")
    try:
        data = PAYLOAD_MODELS[intent].model_validate(extracted)
    except ValidationError as e:
        raise ClassificationParseFailure(f"extractedData does not fit {intent.value}: {e}") from e

    return ClassifiedCommand(
        intent=intent,
        confidence=confidence,
        data=data,
        raw_text=command,
        user_message=user_message,
    )


class IntentClassifier:
    """Classify free-text CRM commands into one of the contact-action intents."""

    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def classify(self, command: str) -> ClassifiedCommand:
        raw = await self.llm.complete_json(contact_action_prompt(command), max_tokens=800)
        classified = build_classified_command(raw, command, CONTACT_ACTION_INTENTS, confidence_threshold)
        logger.info(
            f"Classified command as {classified.intent.value}",
            extra={
                "action": "command_classified",
                "extra_data": {"intent": classified.intent.value, "confidence": classified.confidence},
            },
        )
        return classified


_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_IN_DAYS_RE = re.compile(r"^in (\d+) days?$")
_WEEKDAY_RE = re.compile(r"^(?:(next|this|on)\s+)?(monday|tuesday|wednesday|thursday|friday|saturday|sunday)$")
_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def is_iso_date(value: Optional[str]) -> bool:
    if not value or not _ISO_DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def normalize_due_date(value: Optional[str], today: date) -> Optional[str]:
    """
    Resolve relative date words the model left unresolved.

    Returns the ISO date when the expression is recognised, otherwise the
    value unchanged so validation can reject it.
    """
    if not value:
        return value
    text = value.strip().lower()
    if is_iso_date(text[:10]) and (len(text) == 10 or text[10] in "t "):
        return text[:10]
    if text == "today":
        return today.isoformat()
    if text == "tomorrow":
        return (today + timedelta(days=1)).isoformat()
    if text == "day after tomorrow":
        return (today + timedelta(days=2)).isoformat()
    match = _IN_DAYS_RE.match(text)
    if match:
        return (today + timedelta(days=int(match.group(1)))).isoformat()
    match = _WEEKDAY_RE.match(text)
    if match:
        days_ahead = (_WEEKDAYS.index(match.group(2)) - today.weekday()) % 7 or 7
        return (today + timedelta(days=days_ahead)).isoformat()
    return value


class TaskIntentClassifier:
    """Classify task-creation commands, resolving due dates against today."""

    def __init__(self, llm: LLMClient, today: Callable[[], date] = date.today):
        self.llm = llm
        self.today = today

    async def classify(self, command: str) -> ClassifiedCommand:
        today = self.today()
        raw = await self.llm.complete_json(task_prompt(command, today), max_tokens=500)
        classified = build_classified_command(
            raw, command, TASK_INTENTS, lambda _intent: TASK_CONFIDENCE_THRESHOLD
        )
        classified.data.dueDate = normalize_due_date(classified.data.dueDate, today)
        logger.info(
            "Classified task command",
            extra={
                "action": "task_classified",
                "extra_data": {"confidence": classified.confidence, "due_date": classified.data.dueDate},
            },
        )
        return classified
