from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, Optional

from ..schemas import (
    ClubOut,
    ClubRegistrationOut,
    EventCreate,
    EventOut,
    EventRegistrationOut,
    UserRecord,
)


class Store(ABC):
    """Table-level access shared by the database and the fallback dataset.

    Implementations only read and write rows. Reference checks and workflow
    rules live in the services that call them.
    """

    configured: bool = False

    # identities

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[UserRecord]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[UserRecord]: ...

    @abstractmethod
    def add_user(
        self,
        *,
        email: str,
        name: str,
        password_hash: str,
        role: str = "student",
        student_id: Optional[str] = None,
    ) -> UserRecord: ...

    @abstractmethod
    def users_by_ids(self, user_ids: Iterable[str]) -> dict[str, UserRecord]: ...

    # clubs and events

    @abstractmethod
    def list_clubs(self) -> list[ClubOut]: ...

    @abstractmethod
    def get_club(self, club_id: str) -> Optional[ClubOut]: ...

    @abstractmethod
    def list_events(self) -> list[EventOut]: ...

    @abstractmethod
    def get_event(self, event_id: str) -> Optional[EventOut]: ...

    @abstractmethod
    def add_event(self, payload: EventCreate) -> EventOut: ...

    # registrations

    @abstractmethod
    def list_event_registrations(self) -> list[EventRegistrationOut]: ...

    @abstractmethod
    def add_event_registration(self, user_id: str, event_id: str) -> EventRegistrationOut: ...

    @abstractmethod
    def list_club_registrations(self) -> list[ClubRegistrationOut]: ...

    @abstractmethod
    def get_club_registration(self, registration_id: str) -> Optional[ClubRegistrationOut]: ...

    @abstractmethod
    def add_club_registration(self, user_id: str, club_id: str) -> ClubRegistrationOut: ...

    @abstractmethod
    def update_club_registration(
        self, registration_id: str, status: str, approved_at: Optional[datetime]
    ) -> ClubRegistrationOut: ...

    def close(self) -> None:
        return None
