from typing import Literal

from fastapi import APIRouter, Depends

from ..deps import get_data, require_admin
from ..schemas import AdminDashboard, ClubRegistrationOut, UserOut
from ..services.data import DataStore
from ..views import admin_dashboard

router = APIRouter()


@router.get("/api/admin/dashboard", response_model=AdminDashboard)
def dashboard(
    data: DataStore = Depends(get_data),
    user: UserOut = Depends(require_admin),
):
    return admin_dashboard(data)


@router.get("/api/admin/club-registrations", response_model=list[ClubRegistrationOut])
def list_club_registrations(
    status: Literal["pending", "approved", "rejected"] | None = None,
    club_id: str | None = None,
    data: DataStore = Depends(get_data),
    user: UserOut = Depends(require_admin),
):
    registrations = data.club_registrations
    if status:
        registrations = [reg for reg in registrations if reg.status == status]
    if club_id:
        registrations = [reg for reg in registrations if reg.club_id == club_id]
    return sorted(registrations, key=lambda reg: reg.requested_at, reverse=True)


@router.post("/api/admin/club-registrations/{registration_id}/approve", response_model=ClubRegistrationOut)
def approve_club_registration(
    registration_id: str,
    data: DataStore = Depends(get_data),
    user: UserOut = Depends(require_admin),
):
    return data.approve_club_registration(registration_id)


@router.post("/api/admin/club-registrations/{registration_id}/reject", response_model=ClubRegistrationOut)
def reject_club_registration(
    registration_id: str,
    data: DataStore = Depends(get_data),
    user: UserOut = Depends(require_admin),
):
    return data.reject_club_registration(registration_id)


@router.post("/api/refresh")
def refresh(
    data: DataStore = Depends(get_data),
    user: UserOut = Depends(require_admin),
):
    data.refresh()
    return {
        "status": "ok",
        "clubs": len(data.clubs),
        "events": len(data.events),
        "event_registrations": len(data.event_registrations),
        "club_registrations": len(data.club_registrations),
    }
