import threading
from datetime import datetime
from typing import Iterable, Optional

from loguru import logger

from .. import seed
from ..errors import NotFoundError
from ..models import new_id, utcnow
from ..schemas import (
    ClubOut,
    ClubRegistrationOut,
    EventCreate,
    EventOut,
    EventRegistrationOut,
    UserRecord,
)
from ..storage import FileStorage
from .base import Store

USERS_KEY = "clubhub.users"


class InMemoryStore(Store):
    """Fallback dataset held in process memory.

    The identity table can be persisted to a JSON file so accounts created
    through signup survive a restart; every other collection resets to the
    seed on each start.
    """

    configured = False

    def __init__(self, state_path: Optional[str] = None):
        self._lock = threading.Lock()
        self._storage = FileStorage(state_path) if state_path else None
        self._clubs = [ClubOut(created_at=seed.SEED_CREATED_AT, **club) for club in seed.CLUBS]
        self._events = [EventOut(created_at=seed.SEED_CREATED_AT, **event) for event in seed.EVENTS]
        self._event_registrations: list[EventRegistrationOut] = []
        self._club_registrations: list[ClubRegistrationOut] = []
        self._users = self._load_users()

    def _load_users(self) -> list[UserRecord]:
        if self._storage is not None:
            stored = self._storage.get(USERS_KEY)
            if stored:
                return [UserRecord.model_validate(row) for row in stored]
        password_hash = seed.demo_password_hash()
        users = [
            UserRecord(password_hash=password_hash, created_at=seed.SEED_CREATED_AT, **row)
            for row in [seed.ADMIN, *seed.STUDENTS]
        ]
        if self._storage is not None:
            self._storage.set(USERS_KEY, [user.model_dump(mode="json") for user in users])
            logger.info("Seeded local identity table at {}", self._storage.path)
        return users

    def _joined(self, row, user_id: str):
        user = next((u for u in self._users if u.id == user_id), None)
        if not user:
            return row
        return row.model_copy(
            update={"user_name": user.name, "user_email": user.email, "user_student_id": user.student_id}
        )

    # identities

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        return next((u for u in self._users if u.id == user_id), None)

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        return next((u for u in self._users if u.email == email), None)

    def add_user(
        self,
        *,
        email: str,
        name: str,
        password_hash: str,
        role: str = "student",
        student_id: Optional[str] = None,
    ) -> UserRecord:
        user = UserRecord(
            id=new_id(),
            email=email,
            name=name,
            student_id=student_id,
            role=role,
            password_hash=password_hash,
            created_at=utcnow(),
        )
        with self._lock:
            self._users = [*self._users, user]
            if self._storage is not None:
                self._storage.set(USERS_KEY, [u.model_dump(mode="json") for u in self._users])
        return user

    def users_by_ids(self, user_ids: Iterable[str]) -> dict[str, UserRecord]:
        wanted = set(user_ids)
        return {u.id: u for u in self._users if u.id in wanted}

    # clubs and events

    def list_clubs(self) -> list[ClubOut]:
        return list(self._clubs)

    def get_club(self, club_id: str) -> Optional[ClubOut]:
        return next((c for c in self._clubs if c.id == club_id), None)

    def list_events(self) -> list[EventOut]:
        return list(self._events)

    def get_event(self, event_id: str) -> Optional[EventOut]:
        return next((e for e in self._events if e.id == event_id), None)

    def add_event(self, payload: EventCreate) -> EventOut:
        event = EventOut(id=new_id(), created_at=utcnow(), **payload.model_dump())
        with self._lock:
            self._events = [*self._events, event]
        return event

    # registrations

    def list_event_registrations(self) -> list[EventRegistrationOut]:
        return [self._joined(r, r.user_id) for r in self._event_registrations]

    def add_event_registration(self, user_id: str, event_id: str) -> EventRegistrationOut:
        registration = EventRegistrationOut(
            id=new_id(), user_id=user_id, event_id=event_id, registered_at=utcnow()
        )
        with self._lock:
            self._event_registrations = [*self._event_registrations, registration]
        return self._joined(registration, user_id)

    def list_club_registrations(self) -> list[ClubRegistrationOut]:
        return [self._joined(r, r.user_id) for r in self._club_registrations]

    def get_club_registration(self, registration_id: str) -> Optional[ClubRegistrationOut]:
        found = next((r for r in self._club_registrations if r.id == registration_id), None)
        return self._joined(found, found.user_id) if found else None

    def add_club_registration(self, user_id: str, club_id: str) -> ClubRegistrationOut:
        registration = ClubRegistrationOut(
            id=new_id(), user_id=user_id, club_id=club_id, status="pending", requested_at=utcnow()
        )
        with self._lock:
            self._club_registrations = [*self._club_registrations, registration]
        return self._joined(registration, user_id)

    def update_club_registration(
        self, registration_id: str, status: str, approved_at: Optional[datetime]
    ) -> ClubRegistrationOut:
        with self._lock:
            current = next((r for r in self._club_registrations if r.id == registration_id), None)
            if current is None:
                raise NotFoundError("Club registration not found")
            updated = ClubRegistrationOut.model_validate(
                {**current.model_dump(), "status": status, "approved_at": approved_at}
            )
            self._club_registrations = [
                updated if r.id == registration_id else r for r in self._club_registrations
            ]
        return self._joined(updated, updated.user_id)
