from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field


# Contact fields a command may read or write
CONTACT_FIELDS = (
    "firstName",
    "lastName",
    "email",
    "phone",
    "company",
    "address",
    "businessSector",
    "linkedin",
    "notes",
)


class ActivityType(str, Enum):
    CALL = "call"
    EMAIL = "email"
    MEETING = "meeting"
    TEXT = "text"
    NOTE = "note"
    SHOWING = "showing"
    FOLLOW_UP = "follow_up"
    OTHER = "other"


# "note" is only accepted through the activities REST endpoints
COMMAND_ACTIVITY_TYPES = tuple(t.value for t in ActivityType if t is not ActivityType.NOTE)
ACTIVITY_TYPES = tuple(t.value for t in ActivityType)


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class AddContactListToListingRequest(BaseModel):
    listingId: str
    contactListId: str


class ActivityCreate(BaseModel):
    contactId: str
    type: str
    description: str
    date: Optional[str] = None
    duration: Optional[int] = None
    notes: Optional[str] = None
    listingId: Optional[str] = None


class ActivityUpdate(BaseModel):
    type: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    duration: Optional[int] = None
    notes: Optional[str] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    dueDate: Optional[str] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None


class ContactSummary(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None
    businessSector: Optional[str] = None
    address: Optional[str] = None


class BusinessResult(BaseModel):
    """One deduplicated hit from a prospecting search."""
    place_id: str
    name: str
    address: Optional[str] = None
    rating: Optional[float] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    coordinates: Optional[dict] = None
    search_term: str
    types: List[str] = Field(default_factory=list)
