import threading
import time
from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError

from clubhub import seed
from clubhub.auth_utils import generate_student_id, hash_password, verify_password
from clubhub.db import build_engine, make_session_factory
from clubhub.errors import AuthenticationError, BackendError, ConflictError, NotFoundError, ValidationError
from clubhub.export import export_filename, registrants, render_csv
from clubhub.schemas import EventCreate
from clubhub.services.auth import AuthService
from clubhub.services.data import DataStore
from clubhub.services.session import SESSION_KEY, SessionStore
from clubhub.storage import FileStorage, MemoryStorage
from clubhub.stores.memory import InMemoryStore
from clubhub.stores.remote import RemoteStore
from clubhub.tokens import decode_session, encode_session
from clubhub.views import admin_dashboard, club_status, notifications, student_dashboard, upcoming_events

SECRET = "unit-test-secret-key-for-signing-tokens"
ADMIN_ID = seed.ADMIN["id"]
STUDENT_ID = "2"


@pytest.fixture()
def store():
    return InMemoryStore()


@pytest.fixture()
def data(store):
    data = DataStore(store)
    data.initialize()
    return data


@pytest.fixture()
def auth(store):
    return AuthService(store, SECRET, timedelta(minutes=30))


def hack_night(created_by: str = ADMIN_ID, club_id: str = "1") -> EventCreate:
    return EventCreate(
        name="Hack Night",
        organizing_club_id=club_id,
        venue="Lab",
        date="2025-01-10",
        time="18:00",
        created_by=created_by,
    )


# credentials and tokens


def test_password_hash_is_salted_and_verifiable():
    first = hash_password("password123")
    second = hash_password("password123")
    assert first != second
    assert verify_password("password123", first)
    assert not verify_password("password124", first)
    assert not verify_password("password123", "not-a-hash")


def test_generate_student_id_shape():
    student_id = generate_student_id()
    assert student_id.startswith("STU")
    assert len(student_id) == 12
    assert student_id[3:9].isdigit()
    assert student_id[9:].isalnum() and student_id[9:].upper() == student_id[9:]


def test_session_token_round_trip_and_expiry():
    token = encode_session("abc", "student", SECRET, timedelta(minutes=5))
    payload = decode_session(token, SECRET)
    assert payload["sub"] == "abc"
    assert payload["role"] == "student"

    with pytest.raises(AuthenticationError):
        decode_session(token, "another-secret-key-for-signing-tokens")

    expired = encode_session("abc", "student", SECRET, timedelta(seconds=-10))
    with pytest.raises(AuthenticationError):
        decode_session(expired, SECRET)


# auth service


def test_login_with_seeded_accounts(auth):
    admin = auth.login("admin@college.edu", seed.DEMO_PASSWORD)
    assert admin.user.role == "admin"
    student = auth.login("  Student@College.edu ", seed.DEMO_PASSWORD)
    assert student.user.id == STUDENT_ID
    assert auth.authenticate(student.token).email == "student@college.edu"

    with pytest.raises(AuthenticationError):
        auth.login("admin@college.edu", "wrong")
    with pytest.raises(AuthenticationError):
        auth.login("ghost@college.edu", seed.DEMO_PASSWORD)


def test_signup_rejects_duplicate_email_without_writing(auth, store):
    before = len(store._users)
    with pytest.raises(ValidationError):
        auth.signup("Second John", "STUDENT@college.edu", "whatever")
    assert len(store._users) == before


def test_signup_then_login(auth):
    created = auth.signup("New Kid", "newkid@college.edu", "hunter22")
    assert created.user.role == "student"
    assert created.user.student_id

    logged_in = auth.login("newkid@college.edu", "hunter22")
    assert logged_in.user.id == created.user.id


# session store


def test_session_store_login_persists_and_restores(auth):
    storage = MemoryStorage()
    session = SessionStore(auth, storage)
    assert session.loading is True
    assert session.initialize() is None
    assert session.loading is False

    user = session.login("student@college.edu", seed.DEMO_PASSWORD)
    assert session.current == user
    assert storage.get(SESSION_KEY) == session.token

    restored = SessionStore(auth, storage)
    assert restored.initialize() == user

    restored.logout()
    assert restored.current is None
    assert storage.get(SESSION_KEY) is None


def test_session_store_discards_tampered_token(auth):
    storage = MemoryStorage({SESSION_KEY: "forged.token.value"})
    session = SessionStore(auth, storage)
    assert session.initialize() is None
    assert storage.get(SESSION_KEY) is None


def test_session_store_signup_is_auto_login(auth):
    session = SessionStore(auth, MemoryStorage())
    session.initialize()
    user = session.signup("Auto", "auto@college.edu", "pw12345")
    assert session.current == user
    assert session.is_admin is False


def test_session_store_defaults_to_process_memory(auth):
    session = SessionStore(auth)
    assert isinstance(session.storage, MemoryStorage)
    session.initialize()
    session.login("student@college.edu", seed.DEMO_PASSWORD)
    assert session.storage.get(SESSION_KEY) == session.token


def test_file_storage_survives_new_instance(tmp_path):
    path = str(tmp_path / "state.json")
    FileStorage(path).set("key", {"a": 1})
    assert FileStorage(path).get("key") == {"a": 1}
    FileStorage(path).remove("key")
    assert FileStorage(path).get("key") is None


def test_memory_store_persists_identity_table(tmp_path):
    path = str(tmp_path / "users.json")
    first = InMemoryStore(state_path=path)
    AuthService(first, SECRET, timedelta(minutes=5)).signup("Kept", "kept@college.edu", "pw")

    second = InMemoryStore(state_path=path)
    assert second.get_user_by_email("kept@college.edu") is not None
    assert second.get_user_by_email("admin@college.edu") is not None


# domain data store


def test_fallback_dataset_loaded(data):
    assert [club.name for club in data.clubs] == [
        "CCC",
        "IELTS",
        "EPRC",
        "IEF",
        "Cultural and Music Club",
    ]
    assert len(data.events) == 2
    assert data.configured is False


def test_refresh_twice_yields_identical_collections(data):
    data.register_for_club(STUDENT_ID, "1")
    data.refresh()
    first = (data.clubs, data.events, data.event_registrations, data.club_registrations)
    data.refresh()
    assert (data.clubs, data.events, data.event_registrations, data.club_registrations) == first


def test_club_registration_lifecycle(data):
    registration = data.register_for_club(STUDENT_ID, "1")
    matches = [r for r in data.club_registrations if r.user_id == STUDENT_ID and r.club_id == "1"]
    assert len(matches) == 1
    assert matches[0].status == "pending"

    approved = data.approve_club_registration(registration.id)
    assert approved.status == "approved"
    assert approved.approved_at is not None
    assert data.get_club_registration(registration.id).status == "approved"

    other = data.register_for_club(STUDENT_ID, "2")
    rejected = data.reject_club_registration(other.id)
    assert rejected.status == "rejected"
    assert rejected.approved_at is None


def test_permissive_mode_allows_repeat_transitions_and_duplicates(data):
    registration = data.register_for_club(STUDENT_ID, "1")
    data.approve_club_registration(registration.id)
    overwritten = data.reject_club_registration(registration.id)
    assert overwritten.status == "rejected"
    assert overwritten.approved_at is None

    data.register_for_event(STUDENT_ID, "1")
    data.register_for_event(STUDENT_ID, "1")
    assert sum(1 for r in data.event_registrations if r.event_id == "1") == 2


def test_strict_mode_guards_duplicates_and_transitions(store):
    data = DataStore(store, strict=True)
    data.initialize()

    data.register_for_event(STUDENT_ID, "1")
    with pytest.raises(ConflictError):
        data.register_for_event(STUDENT_ID, "1")

    registration = data.register_for_club(STUDENT_ID, "1")
    with pytest.raises(ConflictError):
        data.register_for_club(STUDENT_ID, "1")

    data.reject_club_registration(registration.id)
    with pytest.raises(ConflictError):
        data.approve_club_registration(registration.id)

    reapplied = data.register_for_club(STUDENT_ID, "1")
    assert reapplied.id != registration.id
    assert reapplied.status == "pending"


class SlowRegistrations(InMemoryStore):
    def add_event_registration(self, user_id, event_id):
        time.sleep(0.05)
        return super().add_event_registration(user_id, event_id)


def test_strict_mode_holds_under_concurrent_registrations():
    data = DataStore(SlowRegistrations(), strict=True)
    data.initialize()
    conflicts = []

    def attempt():
        try:
            data.register_for_event(STUDENT_ID, "1")
        except ConflictError as exc:
            conflicts.append(exc)

    threads = [threading.Thread(target=attempt) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(conflicts) == 1
    assert len(data.store.list_event_registrations()) == 1
    assert len(data.event_registrations) == 1


def test_event_date_and_time_are_zero_padded(data):
    payload = EventCreate(
        name="Early Bird",
        organizing_club_id="1",
        venue="Quad",
        date="2025-1-5",
        time="9:05",
        created_by=ADMIN_ID,
    )
    assert (payload.date, payload.time) == ("2025-01-05", "09:05")

    late = data.create_event(hack_night())
    early = data.create_event(payload)
    assert early.date < late.date
    with pytest.raises(PydanticValidationError):
        EventCreate(**{**payload.model_dump(), "time": "25:00"})


def test_memory_store_timestamps_are_utc(data):
    registration = data.register_for_club(STUDENT_ID, "1")
    approved = data.approve_club_registration(registration.id)
    for value in (approved.requested_at, approved.approved_at, data.events[0].created_at):
        assert value.utcoffset() == timedelta(0)


def test_writes_check_references(data):
    with pytest.raises(NotFoundError):
        data.register_for_club(STUDENT_ID, "99")
    with pytest.raises(NotFoundError):
        data.register_for_event("nobody", "1")
    with pytest.raises(NotFoundError):
        data.create_event(hack_night(club_id="99"))
    with pytest.raises(NotFoundError):
        data.approve_club_registration("missing")


class FailingWrites(InMemoryStore):
    def add_club_registration(self, user_id, club_id):
        raise BackendError("Database unavailable while trying to register for club")

    def add_event(self, payload):
        raise BackendError("Database unavailable while trying to create event")


def test_failed_write_leaves_local_state_unchanged():
    data = DataStore(FailingWrites())
    data.initialize()
    before = (list(data.events), list(data.club_registrations))

    with pytest.raises(BackendError):
        data.register_for_club(STUDENT_ID, "1")
    with pytest.raises(BackendError):
        data.create_event(hack_night())

    assert (data.events, data.club_registrations) == before


def test_unreachable_database_raises_retryable_error(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path}/missing/dir/clubs.db")
    data = DataStore(RemoteStore(make_session_factory(engine)))
    with pytest.raises(BackendError) as excinfo:
        data.refresh()
    assert excinfo.value.retryable is True
    assert data.clubs == []


# views and export


def test_event_scenario_count_and_export(data, store):
    event = data.create_event(hack_night())
    data.register_for_event(STUDENT_ID, event.id)

    dashboard = admin_dashboard(data)
    summary = next(item for item in dashboard.recent_events if item.id == event.id)
    assert summary.registration_count == 1
    assert dashboard.total_event_registrations == 1

    rows = registrants(data, store, event.id)
    assert len(rows) == 1
    assert (rows[0].student_id, rows[0].name, rows[0].email) == ("STU001", "John Doe", "student@college.edu")

    text = render_csv(rows)
    lines = text.strip().split("\n")
    assert lines[0] == "Student ID,Student Name,Email,Registration Date,Registration Time"
    assert lines[1].startswith("STU001,John Doe,student@college.edu,")


def test_export_filename_sanitized():
    assert export_filename("UI/UX Design Competition") == "UI_UX_Design_Competition_registrations.csv"


def test_export_requires_registrations(data, store):
    with pytest.raises(NotFoundError):
        registrants(data, store, "1")


def test_student_notifications_and_upcoming(data, store):
    now = datetime(2025, 1, 9, 12, 0)
    soon = data.create_event(hack_night())
    data.create_event(
        EventCreate(
            name="Far Away",
            organizing_club_id="2",
            venue="Hall",
            date="2025-03-01",
            time="10:00",
            created_by=ADMIN_ID,
        )
    )
    registration = data.register_for_club(STUDENT_ID, "1")
    data.approve_club_registration(registration.id)

    student = store.get_user(STUDENT_ID)
    notes = notifications(data, student, now)
    messages = [note.message for note in notes]
    assert "Your registration for CCC has been approved!" in messages
    assert "Hack Night by CCC is happening soon!" in messages
    assert not any("Far Away" in message for message in messages)
    assert notes == sorted(notes, key=lambda note: note.timestamp, reverse=True)

    assert [event.name for event in upcoming_events(data, now)] == ["Hack Night", "Far Away"]
    assert club_status(data, STUDENT_ID, "1").status == "approved"
    assert club_status(data, STUDENT_ID, "3") is None

    dashboard = student_dashboard(data, student, now)
    assert [event.id for event in dashboard.upcoming_events][0] == soon.id
    assert dashboard.my_events == []


def test_admin_notifications_list_pending_and_event_registrations(data, store):
    data.register_for_club(STUDENT_ID, "3")
    data.register_for_event(STUDENT_ID, "1")
    admin = store.get_user(ADMIN_ID)
    notes = notifications(data, admin, datetime(2024, 2, 1))
    kinds = sorted(note.type for note in notes)
    assert kinds == ["club_registration", "event_registration"]
    assert any(note.message == "Student John Doe wants to join EPRC" for note in notes)
