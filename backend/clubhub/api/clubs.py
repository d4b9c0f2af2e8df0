from fastapi import APIRouter, Depends

from ..deps import ensure_student, get_data, get_user
from ..schemas import ClubRegistrationOut, ClubWithStatus, UserOut
from ..services.data import DataStore
from ..views import clubs_for_user

router = APIRouter()


@router.get("/api/clubs", response_model=list[ClubWithStatus])
def list_clubs(
    data: DataStore = Depends(get_data),
    user: UserOut = Depends(get_user),
):
    return clubs_for_user(data, user.id)


@router.post("/api/clubs/{club_id}/register", response_model=ClubRegistrationOut)
def register_for_club(
    club_id: str,
    data: DataStore = Depends(get_data),
    user: UserOut = Depends(get_user),
):
    ensure_student(user)
    return data.register_for_club(user.id, club_id)
