from fastapi import APIRouter, Depends, HTTPException, Response

from ..deps import get_data, get_user, require_admin
from ..export import export_filename, registrants, render_csv
from ..models import utcnow
from ..schemas import EventCreate, EventRegistrationOut, EventSummary, UserOut
from ..services.data import DataStore
from ..views import serialize_event, upcoming_events

router = APIRouter()


@router.get("/api/events", response_model=list[EventSummary])
def list_events(
    upcoming: bool = False,
    club_id: str | None = None,
    data: DataStore = Depends(get_data),
    user: UserOut = Depends(get_user),
):
    events = upcoming_events(data, utcnow()) if upcoming else list(data.events)
    if club_id:
        events = [event for event in events if event.organizing_club_id == club_id]
    return [serialize_event(data, event, user.id) for event in events]


@router.post("/api/events", response_model=EventSummary)
def create_event(
    payload: EventCreate,
    data: DataStore = Depends(get_data),
    user: UserOut = Depends(require_admin),
):
    payload.created_by = user.id
    event = data.create_event(payload)
    return serialize_event(data, event)


@router.post("/api/events/{event_id}/register", response_model=EventRegistrationOut)
def register_for_event(
    event_id: str,
    data: DataStore = Depends(get_data),
    user: UserOut = Depends(get_user),
):
    return data.register_for_event(user.id, event_id)


@router.get("/api/events/{event_id}/registrations.csv")
def export_registrations(
    event_id: str,
    data: DataStore = Depends(get_data),
    user: UserOut = Depends(require_admin),
):
    event = data.get_event(event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    rows = registrants(data, data.store, event_id)
    return Response(
        content=render_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={export_filename(event.name)}"},
    )
