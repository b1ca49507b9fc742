"""
Client-side copies of the records owned by the backend.

None of these are authoritative: they are rebuilt from fresh query results
after every mutation.
"""

from datetime import datetime
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, NaiveDatetime, field_validator, model_validator

# Row ids come back as UUID strings (or ints on serial tables); compare them as text.
RowId = Annotated[str, BeforeValidator(lambda value: value if value is None else str(value))]

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"
VALID_ROLES = [ROLE_USER, ROLE_ADMIN, ROLE_SUPER_ADMIN]
ADMIN_ROLES = [ROLE_ADMIN, ROLE_SUPER_ADMIN]

STATUS_REGISTERED = "registered"


class AuthUser(BaseModel):
    """Snapshot of the authenticated identity held by the auth context."""

    model_config = ConfigDict(frozen=True)

    id: RowId
    email: Optional[str] = None

    @classmethod
    def from_user(cls, user: Any) -> Optional["AuthUser"]:
        """Build from a supabase `User` object (or None)."""
        if user is None:
            return None
        return cls(id=user.id, email=getattr(user, "email", None))


class Profile(BaseModel):
    id: RowId
    role: str = ROLE_USER
    email: Optional[str] = None
    full_name: Optional[str] = None


class Event(BaseModel):
    id: RowId
    title: str
    description: Optional[str] = None
    event_type: Optional[str] = None
    start_date: datetime
    end_date: Optional[datetime] = None
    location: Optional[str] = None
    max_participants: Optional[int] = None
    community_id: Optional[RowId] = None
    created_by: Optional[RowId] = None


class ParticipantProfile(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None


class EventParticipant(BaseModel):
    id: RowId
    event_id: RowId
    user_id: RowId
    registration_status: str = STATUS_REGISTERED
    registered_at: Optional[datetime] = None
    profiles: ParticipantProfile = Field(default_factory=ParticipantProfile)

    @field_validator("profiles", mode="before")
    @classmethod
    def _empty_join(cls, value: Any) -> Any:
        # The join is null when the profile row is missing.
        return value or {}

    @property
    def display_name(self) -> str:
        return self.profiles.full_name or self.profiles.email or ""


class EventForm(BaseModel):
    """
    Values of the admin "Create Event" form.

    Every field is required; an empty string counts as missing. Dates come
    from datetime-local inputs and carry no timezone.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    event_type: str = Field(min_length=1)
    start_date: NaiveDatetime
    end_date: NaiveDatetime
    location: str = Field(min_length=1)
    max_participants: int = Field(ge=1)

    @model_validator(mode="after")
    def _check_dates(self) -> "EventForm":
        if self.start_date >= self.end_date:
            raise ValueError("start_date must be before end_date")
        return self


def empty_event_form() -> dict:
    """Raw form values shown when the form is first opened or reset."""
    return {
        "title": "",
        "description": "",
        "event_type": "",
        "start_date": "",
        "end_date": "",
        "location": "",
        "max_participants": 0,
    }
