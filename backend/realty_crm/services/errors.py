"""
Command error taxonomy.

Every failure a command can run into is a CommandError subclass that knows
how to render itself as the uniform result dict returned to clients:
{"success": False, "error": ..., "details": ..., "errorType": ...}.
"""

from typing import Any, Dict, Optional

CONTACT_SUGGESTION = "Try using the contact's email address, full name, or company name."
LISTING_SUGGESTION = "Try using the listing's street address, name, or title."
CONTACT_LIST_SUGGESTION = "Check the list name on the Lists page and try again."


class CommandError(Exception):
    """Base class for failures surfaced to the user as success:false results."""

    error_type = "command_error"

    def __init__(self, message: str, details: Optional[str] = None,
                 suggestion: Optional[str] = None, **extra: Any):
        super().__init__(message)
        self.message = message
        self.details = details
        self.suggestion = suggestion
        self.extra = extra

    def to_result(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "success": False,
            "error": self.message,
            "errorType": self.error_type,
        }
        if self.details:
            result["details"] = self.details
        if self.suggestion:
            result["suggestion"] = self.suggestion
        result.update(self.extra)
        return result


class ValidationFailure(CommandError):
    """A required extracted field is missing or holds an invalid value."""

    error_type = "validation_failure"

    def __init__(self, message: str, field: str, details: Optional[str] = None, **extra: Any):
        super().__init__(message, details=details or f"Missing or invalid field: {field}", field=field, **extra)
        self.field = field


class EntityNotFound(CommandError):
    error_type = "entity_not_found"

    def __init__(self, kind: str, identifier: str, suggestion: str, **extra: Any):
        super().__init__(
            f'{kind} not found: "{identifier}"',
            details=f"No {kind.lower()} matches the identifier provided",
            suggestion=suggestion,
            **extra,
        )
        self.kind = kind
        self.identifier = identifier


class PartialWorkflowFailure(CommandError):
    """An earlier step of a combined command succeeded and was kept."""

    error_type = "partial_workflow_failure"


class ExternalServiceFailure(CommandError):
    error_type = "external_service_failure"

    def __init__(self, message: str, service: str, status_code: Optional[int] = None,
                 details: Optional[str] = None):
        super().__init__(message, details=details)
        self.service = service
        self.status_code = status_code

    @property
    def passes_through(self) -> bool:
        """OpenAI HTTP errors are reported to the client with their own status."""
        return self.service == "openai" and self.status_code is not None


class ClassificationError(Exception):
    """A model reply could not be turned into a command. Reported by the routes, never as a result."""


class ClassificationParseFailure(ClassificationError):
    pass


class LowConfidenceClassification(ClassificationError):
    def __init__(self, intent: str, confidence: float, threshold: float, user_message: Optional[str] = None):
        super().__init__(f"Confidence {confidence} below {threshold} for {intent}")
        self.intent = intent
        self.confidence = confidence
        self.threshold = threshold
        self.user_message = user_message


class UnknownIntent(ClassificationError):
    def __init__(self, intent: Any):
        super().__init__(f"Unknown intent: {intent}")
        self.intent = intent


class ApiError(Exception):
    """An HTTP error response with a JSON body, raised from routes and dependencies."""

    def __init__(self, status_code: int, error: str, **body: Any):
        super().__init__(error)
        self.status_code = status_code
        self.body = {"error": error, **{k: v for k, v in body.items() if v is not None}}
