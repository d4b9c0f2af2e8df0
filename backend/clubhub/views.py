from datetime import datetime, timedelta
from typing import Optional

from .schemas import (
    AdminDashboard,
    ClubRegistrationOut,
    ClubWithStatus,
    EventOut,
    EventSummary,
    Notification,
    StudentDashboard,
    UserOut,
)
from .services.data import DataStore

UPCOMING_WINDOW = timedelta(days=3)
DASHBOARD_LIMIT = 5


def event_start(event: EventOut) -> datetime:
    return datetime.strptime(f"{event.date} {event.time}", "%Y-%m-%d %H:%M")


def registration_count(data: DataStore, event_id: str) -> int:
    return sum(1 for reg in data.event_registrations if reg.event_id == event_id)


def serialize_event(data: DataStore, event: EventOut, user_id: Optional[str] = None) -> EventSummary:
    club = data.get_club(event.organizing_club_id)
    is_registered = None
    if user_id:
        is_registered = any(
            reg.user_id == user_id and reg.event_id == event.id for reg in data.event_registrations
        )
    return EventSummary(
        **event.model_dump(),
        club_name=club.name if club else None,
        registration_count=registration_count(data, event.id),
        is_registered=is_registered,
    )


def upcoming_events(data: DataStore, now: datetime) -> list[EventOut]:
    """Events dated today or later, soonest first."""
    today = now.date()
    upcoming = [event for event in data.events if event_start(event).date() >= today]
    return sorted(upcoming, key=event_start)


def club_status(data: DataStore, user_id: str, club_id: str) -> Optional[ClubRegistrationOut]:
    matches = [
        reg for reg in data.club_registrations if reg.user_id == user_id and reg.club_id == club_id
    ]
    if not matches:
        return None
    return max(matches, key=lambda reg: reg.requested_at)


def clubs_for_user(data: DataStore, user_id: str) -> list[ClubWithStatus]:
    results = []
    for club in data.clubs:
        status = club_status(data, user_id, club.id)
        results.append(
            ClubWithStatus(
                **club.model_dump(),
                membership_status=status.status if status else None,
                registration_id=status.id if status else None,
            )
        )
    return results


def pending_club_registrations(data: DataStore) -> list[ClubRegistrationOut]:
    pending = [reg for reg in data.club_registrations if reg.status == "pending"]
    return sorted(pending, key=lambda reg: reg.requested_at)


def admin_dashboard(data: DataStore) -> AdminDashboard:
    pending = pending_club_registrations(data)
    recent = sorted(data.events, key=lambda event: event.created_at, reverse=True)[:DASHBOARD_LIMIT]
    return AdminDashboard(
        total_events=len(data.events),
        total_event_registrations=len(data.event_registrations),
        pending_approvals=len(pending),
        active_clubs=len(data.clubs),
        recent_events=[serialize_event(data, event) for event in recent],
        pending_requests=pending[:DASHBOARD_LIMIT],
    )


def student_dashboard(data: DataStore, user: UserOut, now: datetime) -> StudentDashboard:
    upcoming = [serialize_event(data, event, user.id) for event in upcoming_events(data, now)]
    registered_ids = {reg.event_id for reg in data.event_registrations if reg.user_id == user.id}
    mine = [
        serialize_event(data, event, user.id)
        for event in sorted(data.events, key=event_start)
        if event.id in registered_ids
    ]
    return StudentDashboard(upcoming_events=upcoming, my_events=mine)


def _club_name(data: DataStore, club_id: str) -> str:
    club = data.get_club(club_id)
    return club.name if club else "Unknown Club"


def _admin_notifications(data: DataStore) -> list[Notification]:
    notifications = []
    for reg in pending_club_registrations(data):
        notifications.append(
            Notification(
                id=f"club-{reg.id}",
                type="club_registration",
                title="New Club Registration",
                message=f"Student {reg.user_name or reg.user_id} wants to join {_club_name(data, reg.club_id)}",
                timestamp=reg.requested_at,
            )
        )
    for reg in data.event_registrations:
        event = data.get_event(reg.event_id)
        notifications.append(
            Notification(
                id=f"event-{reg.id}",
                type="event_registration",
                title="New Event Registration",
                message=(
                    f"Student {reg.user_name or reg.user_id} registered for "
                    f"{event.name if event else 'Unknown Event'}"
                ),
                timestamp=reg.registered_at,
            )
        )
    return notifications


def _student_notifications(data: DataStore, user: UserOut, now: datetime) -> list[Notification]:
    notifications = []
    for reg in data.club_registrations:
        if reg.user_id != user.id:
            continue
        club_name = _club_name(data, reg.club_id)
        if reg.status == "approved":
            message = f"Your registration for {club_name} has been approved!"
        elif reg.status == "rejected":
            message = f"Your registration for {club_name} was rejected."
        else:
            message = f"Your registration for {club_name} is pending approval."
        notifications.append(
            Notification(
                id=f"user-club-{reg.id}",
                type="club_status",
                title="Club Registration Update",
                message=message,
                timestamp=reg.approved_at or reg.requested_at,
            )
        )

    horizon = now + UPCOMING_WINDOW
    for event in data.events:
        if not now <= event_start(event) <= horizon:
            continue
        notifications.append(
            Notification(
                id=f"upcoming-{event.id}",
                type="upcoming_event",
                title="Upcoming Event",
                message=f"{event.name} by {_club_name(data, event.organizing_club_id)} is happening soon!",
                timestamp=event.created_at,
            )
        )
    return notifications


def notifications(data: DataStore, user: UserOut, now: datetime) -> list[Notification]:
    if user.role == "admin":
        items = _admin_notifications(data)
    else:
        items = _student_notifications(data, user, now)
    return sorted(items, key=lambda item: item.timestamp, reverse=True)
