"""
Intent catalogue and the typed payloads extracted for each intent.

The classifier returns an untyped "extractedData" map. It is validated into
the payload model registered for the intent right after parsing, so nothing
past the classifier ever touches the raw map.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, field_validator

from .errors import ValidationFailure


class IntentType(str, Enum):
    """Commands the contact-action classifier can recognise"""
    UPDATE_CONTACT = "UPDATE_CONTACT"
    ADD_NOTE = "ADD_NOTE"
    CREATE_ACTIVITY = "CREATE_ACTIVITY"
    CREATE_CONTACT = "CREATE_CONTACT"
    DELETE_CONTACT = "DELETE_CONTACT"
    SEARCH_CONTACT = "SEARCH_CONTACT"
    LIST_CONTACTS = "LIST_CONTACTS"
    CREATE_LIST = "CREATE_LIST"
    ATTACH_LIST_TO_LISTING = "ATTACH_LIST_TO_LISTING"
    COMBINED_LIST_CREATION_AND_ATTACHMENT = "COMBINED_LIST_CREATION_AND_ATTACHMENT"
    COMBINED_ACTIVITY_CREATION_AND_LISTING_ATTACHMENT = "COMBINED_ACTIVITY_CREATION_AND_LISTING_ATTACHMENT"
    PROSPECT_BUSINESSES = "PROSPECT_BUSINESSES"
    FILTER_CONTACTS = "FILTER_CONTACTS"
    GENERAL_QUERY = "GENERAL_QUERY"

    # Task classifier only
    CREATE_TASK = "CREATE_TASK"


# Commands phrased in looser language get a lower bar
DEFAULT_CONFIDENCE_THRESHOLD = 0.3
CONFIDENCE_THRESHOLDS = {
    IntentType.UPDATE_CONTACT: 0.2,
    IntentType.ADD_NOTE: 0.2,
}
TASK_CONFIDENCE_THRESHOLD = 0.3


def confidence_threshold(intent: IntentType) -> float:
    return CONFIDENCE_THRESHOLDS.get(intent, DEFAULT_CONFIDENCE_THRESHOLD)


def _present(value: Optional[str]) -> bool:
    return value is not None and value.strip() != ""


class ExtractedData(BaseModel):
    """Base for per-intent payloads: every value is an optional string."""

    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_scalar(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        raise ValueError("extracted values must be scalars")

    def require(self, name: str, message: str) -> str:
        """Return a required field or raise ValidationFailure naming it."""
        value = getattr(self, name)
        if not _present(value):
            raise ValidationFailure(message, field=name)
        return value


class UpdateContactData(ExtractedData):
    contactIdentifier: Optional[str] = None
    field: Optional[str] = None
    value: Optional[str] = None


class AddNoteData(ExtractedData):
    contactIdentifier: Optional[str] = None
    value: Optional[str] = None


class CreateActivityData(ExtractedData):
    contactIdentifier: Optional[str] = None
    activityType: Optional[str] = None
    activityDescription: Optional[str] = None


class CreateContactData(ExtractedData):
    contactIdentifier: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    address: Optional[str] = None
    businessSector: Optional[str] = None
    linkedin: Optional[str] = None
    notes: Optional[str] = None


class DeleteContactData(ExtractedData):
    contactIdentifier: Optional[str] = None
    field: Optional[str] = None


class SearchContactData(ExtractedData):
    query: Optional[str] = None
    contactIdentifier: Optional[str] = None


class ListContactsData(ExtractedData):
    pass


class CreateListData(ExtractedData):
    listName: Optional[str] = None
    listCriteria: Optional[str] = None


class AttachListData(ExtractedData):
    listIdentifier: Optional[str] = None
    listName: Optional[str] = None
    listingIdentifier: Optional[str] = None
    listingName: Optional[str] = None

    @property
    def list_ref(self) -> Optional[str]:
        return self.listIdentifier if _present(self.listIdentifier) else self.listName

    @property
    def listing_ref(self) -> Optional[str]:
        return self.listingIdentifier if _present(self.listingIdentifier) else self.listingName


class CreateListAndAttachData(ExtractedData):
    listName: Optional[str] = None
    listCriteria: Optional[str] = None
    listingIdentifier: Optional[str] = None
    listingName: Optional[str] = None

    @property
    def listing_ref(self) -> Optional[str]:
        return self.listingIdentifier if _present(self.listingIdentifier) else self.listingName


class ActivityWithListingData(ExtractedData):
    contactIdentifier: Optional[str] = None
    contactName: Optional[str] = None
    activityType: Optional[str] = None
    activityDescription: Optional[str] = None
    listingIdentifier: Optional[str] = None
    listingName: Optional[str] = None

    @property
    def contact_ref(self) -> Optional[str]:
        return self.contactIdentifier if _present(self.contactIdentifier) else self.contactName

    @property
    def listing_ref(self) -> Optional[str]:
        return self.listingIdentifier if _present(self.listingIdentifier) else self.listingName


class ProspectBusinessesData(ExtractedData):
    businessCategory: Optional[str] = None
    location: Optional[str] = None


class FilterContactsData(ExtractedData):
    filterCriteria: Optional[str] = None
    filterField: Optional[str] = None


class GeneralQueryData(ExtractedData):
    query: Optional[str] = None


class CreateTaskData(ExtractedData):
    taskType: Optional[str] = None
    contactIdentifier: Optional[str] = None
    listingIdentifier: Optional[str] = None
    taskTitle: Optional[str] = None
    taskDescription: Optional[str] = None
    dueDate: Optional[str] = None
    priority: Optional[str] = None
    prospectId: Optional[str] = None
    prospectBusinessId: Optional[str] = None


PAYLOAD_MODELS: Dict[IntentType, Type[ExtractedData]] = {
    IntentType.UPDATE_CONTACT: UpdateContactData,
    IntentType.ADD_NOTE: AddNoteData,
    IntentType.CREATE_ACTIVITY: CreateActivityData,
    IntentType.CREATE_CONTACT: CreateContactData,
    IntentType.DELETE_CONTACT: DeleteContactData,
    IntentType.SEARCH_CONTACT: SearchContactData,
    IntentType.LIST_CONTACTS: ListContactsData,
    IntentType.CREATE_LIST: CreateListData,
    IntentType.ATTACH_LIST_TO_LISTING: AttachListData,
    IntentType.COMBINED_LIST_CREATION_AND_ATTACHMENT: CreateListAndAttachData,
    IntentType.COMBINED_ACTIVITY_CREATION_AND_LISTING_ATTACHMENT: ActivityWithListingData,
    IntentType.PROSPECT_BUSINESSES: ProspectBusinessesData,
    IntentType.FILTER_CONTACTS: FilterContactsData,
    IntentType.GENERAL_QUERY: GeneralQueryData,
    IntentType.CREATE_TASK: CreateTaskData,
}


@dataclass
class ClassifiedCommand:
    """A validated classification of one free-text command"""
    intent: IntentType
    confidence: float
    data: ExtractedData
    raw_text: str = ""
    user_message: Optional[str] = None
