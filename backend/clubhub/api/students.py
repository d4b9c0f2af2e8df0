from fastapi import APIRouter, Depends

from ..deps import get_data, get_user
from ..models import utcnow
from ..schemas import Notification, StudentDashboard, UserOut
from ..services.data import DataStore
from ..views import notifications, student_dashboard

router = APIRouter()


@router.get("/api/students/dashboard", response_model=StudentDashboard)
def dashboard(
    data: DataStore = Depends(get_data),
    user: UserOut = Depends(get_user),
):
    return student_dashboard(data, user, utcnow())


@router.get("/api/notifications", response_model=list[Notification])
def list_notifications(
    data: DataStore = Depends(get_data),
    user: UserOut = Depends(get_user),
):
    return notifications(data, user, utcnow())
