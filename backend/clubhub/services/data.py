import threading
from typing import Optional

from loguru import logger

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import utcnow
from ..schemas import (
    ClubOut,
    ClubRegistrationOut,
    EventCreate,
    EventOut,
    EventRegistrationOut,
)
from ..stores.base import Store


class DataStore:
    """Cached collections of clubs, events and registrations.

    Reads come from the local copies, which `refresh` replaces wholesale.
    Writes go to the store first and are applied locally only after the store
    accepts them, so a failed write leaves the copies untouched.

    With ``strict`` set, duplicate registrations and status transitions out of
    anything but ``pending`` raise ConflictError; otherwise they are allowed.
    Each check runs under the same lock as the write it guards, so two
    concurrent requests cannot both pass it.
    """

    def __init__(self, store: Store, strict: bool = False):
        self.store = store
        self.strict = strict
        self._lock = threading.Lock()
        # serialises check-then-write sequences
        self._write_lock = threading.Lock()
        self.clubs: list[ClubOut] = []
        self.events: list[EventOut] = []
        self.event_registrations: list[EventRegistrationOut] = []
        self.club_registrations: list[ClubRegistrationOut] = []

    @property
    def configured(self) -> bool:
        return self.store.configured

    def initialize(self) -> None:
        self.refresh()
        logger.info(
            "Loaded {} clubs, {} events ({})",
            len(self.clubs),
            len(self.events),
            "database" if self.configured else "fallback mode",
        )

    def dispose(self) -> None:
        with self._lock:
            self.clubs = []
            self.events = []
            self.event_registrations = []
            self.club_registrations = []
        self.store.close()

    def refresh(self) -> None:
        clubs = self.store.list_clubs()
        events = self.store.list_events()
        event_registrations = self.store.list_event_registrations()
        club_registrations = self.store.list_club_registrations()
        with self._lock:
            self.clubs = clubs
            self.events = events
            self.event_registrations = event_registrations
            self.club_registrations = club_registrations

    def get_club(self, club_id: str) -> Optional[ClubOut]:
        return next((club for club in self.clubs if club.id == club_id), None)

    def get_event(self, event_id: str) -> Optional[EventOut]:
        return next((event for event in self.events if event.id == event_id), None)

    def get_club_registration(self, registration_id: str) -> Optional[ClubRegistrationOut]:
        return next((reg for reg in self.club_registrations if reg.id == registration_id), None)

    def _require_user(self, user_id: str) -> None:
        if not self.store.get_user(user_id):
            raise NotFoundError("User not found")

    def create_event(self, payload: EventCreate) -> EventOut:
        if not payload.created_by:
            raise ValidationError("created_by is required")
        if not self.store.get_club(payload.organizing_club_id):
            raise NotFoundError("Organizing club not found")
        event = self.store.add_event(payload)
        with self._lock:
            self.events = [*self.events, event]
        logger.info("Event '{}' created for club {}", event.name, event.organizing_club_id)
        return event

    def register_for_event(self, user_id: str, event_id: str) -> EventRegistrationOut:
        self._require_user(user_id)
        if not self.store.get_event(event_id):
            raise NotFoundError("Event not found")
        with self._write_lock:
            if self.strict and any(
                reg.user_id == user_id and reg.event_id == event_id for reg in self.event_registrations
            ):
                raise ConflictError("Already registered for this event")
            registration = self.store.add_event_registration(user_id, event_id)
            with self._lock:
                self.event_registrations = [*self.event_registrations, registration]
        logger.info("User {} registered for event {}", user_id, event_id)
        return registration

    def register_for_club(self, user_id: str, club_id: str) -> ClubRegistrationOut:
        self._require_user(user_id)
        if not self.store.get_club(club_id):
            raise NotFoundError("Club not found")
        with self._write_lock:
            if self.strict and any(
                reg.user_id == user_id and reg.club_id == club_id and reg.status != "rejected"
                for reg in self.club_registrations
            ):
                raise ConflictError("A membership request for this club already exists")
            registration = self.store.add_club_registration(user_id, club_id)
            with self._lock:
                self.club_registrations = [*self.club_registrations, registration]
        logger.info("User {} requested to join club {}", user_id, club_id)
        return registration

    def _transition(self, registration_id: str, status: str) -> ClubRegistrationOut:
        with self._write_lock:
            existing = self.store.get_club_registration(registration_id)
            if not existing:
                raise NotFoundError("Club registration not found")
            if self.strict and existing.status != "pending":
                raise ConflictError(f"Club registration is already {existing.status}")
            approved_at = utcnow() if status == "approved" else None
            updated = self.store.update_club_registration(registration_id, status, approved_at)
            with self._lock:
                if any(reg.id == registration_id for reg in self.club_registrations):
                    self.club_registrations = [
                        updated if reg.id == registration_id else reg for reg in self.club_registrations
                    ]
                else:
                    self.club_registrations = [*self.club_registrations, updated]
        logger.info("Club registration {} {} -> {}", registration_id, existing.status, status)
        return updated

    def approve_club_registration(self, registration_id: str) -> ClubRegistrationOut:
        return self._transition(registration_id, "approved")

    def reject_club_registration(self, registration_id: str) -> ClubRegistrationOut:
        return self._transition(registration_id, "rejected")
