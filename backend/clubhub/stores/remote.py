from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, Iterator, Optional

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .. import seed
from ..db import Base, session_scope
from ..errors import BackendError, NotFoundError
from ..models import Club, ClubRegistration, Event, EventRegistration, User
from ..schemas import (
    ClubOut,
    ClubRegistrationOut,
    EventCreate,
    EventOut,
    EventRegistrationOut,
    UserRecord,
)
from .base import Store


def _user_record(user: User) -> UserRecord:
    return UserRecord.model_validate(user, from_attributes=True)


def _event_registration(row, name, email, student_id) -> EventRegistrationOut:
    return EventRegistrationOut(
        id=row.id,
        user_id=row.user_id,
        event_id=row.event_id,
        registered_at=row.registered_at,
        user_name=name,
        user_email=email,
        user_student_id=student_id,
    )


def _club_registration(row, name, email, student_id) -> ClubRegistrationOut:
    return ClubRegistrationOut(
        id=row.id,
        user_id=row.user_id,
        club_id=row.club_id,
        status=row.status,
        requested_at=row.requested_at,
        approved_at=row.approved_at,
        user_name=name,
        user_email=email,
        user_student_id=student_id,
    )


class RemoteStore(Store):
    """Relational store reached through SQLAlchemy.

    Any database failure surfaces as BackendError after the session rolls
    back, so callers never see a half-applied write. Schema creation and
    seeding run before the first call and are retried until they succeed
    once, so a database that comes up late is picked up without a restart.
    """

    configured = True

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory
        self._prepared = False

    @contextmanager
    def _scope(self, action: str) -> Iterator[Session]:
        try:
            with session_scope(self._session_factory) as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("Database call failed while trying to {}: {}", action, exc)
            raise BackendError(f"Database unavailable while trying to {action}") from exc

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        self.prepare()
        with self._scope(action) as session:
            yield session

    def prepare(self) -> None:
        if self._prepared:
            return
        self.create_schema()
        self.seed()
        self._prepared = True

    def create_schema(self) -> None:
        with self._scope("create schema") as session:
            Base.metadata.create_all(session.get_bind())

    def seed(self) -> None:
        with self._scope("seed demo data") as session:
            if not session.execute(select(func.count(Club.id))).scalar():
                for club in seed.CLUBS:
                    session.add(Club(name=club["name"], description=club["description"]))
                logger.info("Seeded {} clubs", len(seed.CLUBS))
            admin = session.execute(
                select(User).where(User.email == seed.ADMIN["email"])
            ).scalar_one_or_none()
            if not admin:
                session.add(
                    User(
                        email=seed.ADMIN["email"],
                        name=seed.ADMIN["name"],
                        role="admin",
                        password_hash=seed.demo_password_hash(),
                    )
                )
                logger.info("Seeded admin account {}", seed.ADMIN["email"])

    def close(self) -> None:
        bind = self._session_factory.kw.get("bind")
        if bind is not None:
            bind.dispose()

    # identities

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self._session("load user") as session:
            user = session.get(User, user_id)
            return _user_record(user) if user else None

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self._session("look up user") as session:
            user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
            return _user_record(user) if user else None

    def add_user(
        self,
        *,
        email: str,
        name: str,
        password_hash: str,
        role: str = "student",
        student_id: Optional[str] = None,
    ) -> UserRecord:
        with self._session("create user") as session:
            user = User(
                email=email,
                name=name,
                password_hash=password_hash,
                role=role,
                student_id=student_id,
            )
            session.add(user)
            session.flush()
            session.refresh(user)
            return _user_record(user)

    def users_by_ids(self, user_ids: Iterable[str]) -> dict[str, UserRecord]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        with self._session("load users") as session:
            users = session.execute(select(User).where(User.id.in_(ids))).scalars().all()
            return {user.id: _user_record(user) for user in users}

    # clubs and events

    def list_clubs(self) -> list[ClubOut]:
        with self._session("load clubs") as session:
            clubs = session.execute(select(Club).order_by(Club.created_at.asc(), Club.name.asc())).scalars().all()
            return [ClubOut.model_validate(club, from_attributes=True) for club in clubs]

    def get_club(self, club_id: str) -> Optional[ClubOut]:
        with self._session("load club") as session:
            club = session.get(Club, club_id)
            return ClubOut.model_validate(club, from_attributes=True) if club else None

    def list_events(self) -> list[EventOut]:
        with self._session("load events") as session:
            events = (
                session.execute(select(Event).order_by(Event.date.asc(), Event.time.asc(), Event.created_at.asc()))
                .scalars()
                .all()
            )
            return [EventOut.model_validate(event, from_attributes=True) for event in events]

    def get_event(self, event_id: str) -> Optional[EventOut]:
        with self._session("load event") as session:
            event = session.get(Event, event_id)
            return EventOut.model_validate(event, from_attributes=True) if event else None

    def add_event(self, payload: EventCreate) -> EventOut:
        with self._session("create event") as session:
            event = Event(**payload.model_dump())
            session.add(event)
            session.flush()
            session.refresh(event)
            return EventOut.model_validate(event, from_attributes=True)

    # registrations

    def list_event_registrations(self) -> list[EventRegistrationOut]:
        with self._session("load event registrations") as session:
            rows = session.execute(
                select(EventRegistration, User.name, User.email, User.student_id)
                .outerjoin(User, User.id == EventRegistration.user_id)
                .order_by(EventRegistration.registered_at.asc())
            ).all()
            return [_event_registration(*row) for row in rows]

    def add_event_registration(self, user_id: str, event_id: str) -> EventRegistrationOut:
        with self._session("register for event") as session:
            registration = EventRegistration(user_id=user_id, event_id=event_id)
            session.add(registration)
            session.flush()
            session.refresh(registration)
            user = session.get(User, user_id)
            return _event_registration(
                registration,
                user.name if user else None,
                user.email if user else None,
                user.student_id if user else None,
            )

    def list_club_registrations(self) -> list[ClubRegistrationOut]:
        with self._session("load club registrations") as session:
            rows = session.execute(
                select(ClubRegistration, User.name, User.email, User.student_id)
                .outerjoin(User, User.id == ClubRegistration.user_id)
                .order_by(ClubRegistration.requested_at.asc())
            ).all()
            return [_club_registration(*row) for row in rows]

    def _club_registration_out(self, session: Session, registration: ClubRegistration) -> ClubRegistrationOut:
        user = session.get(User, registration.user_id)
        return _club_registration(
            registration,
            user.name if user else None,
            user.email if user else None,
            user.student_id if user else None,
        )

    def get_club_registration(self, registration_id: str) -> Optional[ClubRegistrationOut]:
        with self._session("load club registration") as session:
            registration = session.get(ClubRegistration, registration_id)
            return self._club_registration_out(session, registration) if registration else None

    def add_club_registration(self, user_id: str, club_id: str) -> ClubRegistrationOut:
        with self._session("register for club") as session:
            registration = ClubRegistration(user_id=user_id, club_id=club_id, status="pending")
            session.add(registration)
            session.flush()
            session.refresh(registration)
            return self._club_registration_out(session, registration)

    def update_club_registration(
        self, registration_id: str, status: str, approved_at: Optional[datetime]
    ) -> ClubRegistrationOut:
        with self._session("update club registration") as session:
            registration = session.get(ClubRegistration, registration_id)
            if not registration:
                raise NotFoundError("Club registration not found")
            registration.status = status
            registration.approved_at = approved_at
            session.flush()
            session.refresh(registration)
            return self._club_registration_out(session, registration)
