from datetime import datetime, timezone
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, field_validator

Role = Literal["admin", "student"]
ClubRegistrationStatus = Literal["pending", "approved", "rejected"]


def _not_empty(value: str) -> str:
    cleaned = value.strip() if isinstance(value, str) else ""
    if not cleaned:
        raise ValueError("must not be empty")
    return cleaned


def _as_utc(value: datetime) -> datetime:
    # columns hold naive UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UTCDateTime = Annotated[datetime, AfterValidator(_as_utc)]


class UserOut(BaseModel):
    id: str
    email: str
    name: str
    student_id: Optional[str] = None
    role: Role
    created_at: UTCDateTime


class UserRecord(UserOut):
    password_hash: str


class SignupRequest(BaseModel):
    name: str
    email: str
    password: str

    @field_validator("name", "email")
    @classmethod
    def must_not_be_empty(cls, value: str):
        return _not_empty(value)

    @field_validator("password")
    @classmethod
    def password_not_blank(cls, value: str):
        # kept verbatim, login compares the raw string
        if not value.strip():
            raise ValueError("must not be empty")
        return value


class LoginRequest(BaseModel):
    email: str
    password: str


class SessionOut(BaseModel):
    token: str
    user: UserOut


class ClubOut(BaseModel):
    id: str
    name: str
    description: str
    created_at: UTCDateTime


class ClubWithStatus(ClubOut):
    membership_status: Optional[ClubRegistrationStatus] = None
    registration_id: Optional[str] = None


class EventCreate(BaseModel):
    name: str
    organizing_club_id: str
    venue: str
    date: str
    time: str
    created_by: Optional[str] = None

    @field_validator("name", "organizing_club_id", "venue")
    @classmethod
    def must_not_be_empty(cls, value: str):
        return _not_empty(value)

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: str):
        return datetime.strptime(value.strip(), "%Y-%m-%d").strftime("%Y-%m-%d")

    @field_validator("time")
    @classmethod
    def validate_time(cls, value: str):
        return datetime.strptime(value.strip(), "%H:%M").strftime("%H:%M")


class EventOut(BaseModel):
    id: str
    name: str
    organizing_club_id: str
    venue: str
    date: str
    time: str
    created_by: str
    created_at: UTCDateTime


class EventSummary(EventOut):
    club_name: Optional[str] = None
    registration_count: int = 0
    is_registered: Optional[bool] = None


class EventRegistrationOut(BaseModel):
    id: str
    user_id: str
    event_id: str
    registered_at: UTCDateTime
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_student_id: Optional[str] = None


class ClubRegistrationOut(BaseModel):
    id: str
    user_id: str
    club_id: str
    status: ClubRegistrationStatus
    requested_at: UTCDateTime
    approved_at: Optional[UTCDateTime] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_student_id: Optional[str] = None


class Notification(BaseModel):
    id: str
    type: Literal["club_registration", "event_registration", "club_status", "upcoming_event"]
    title: str
    message: str
    timestamp: UTCDateTime


class AdminDashboard(BaseModel):
    total_events: int
    total_event_registrations: int
    pending_approvals: int
    active_clubs: int
    recent_events: list[EventSummary]
    pending_requests: list[ClubRegistrationOut]


class StudentDashboard(BaseModel):
    upcoming_events: list[EventSummary]
    my_events: list[EventSummary]
