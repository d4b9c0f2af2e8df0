from fastapi import APIRouter, Depends

from ..deps import get_auth, get_user
from ..schemas import LoginRequest, SessionOut, SignupRequest, UserOut
from ..services.auth import AuthService

router = APIRouter()


@router.post("/api/auth/signup", response_model=SessionOut)
def signup(payload: SignupRequest, auth: AuthService = Depends(get_auth)):
    session = auth.signup(payload.name, payload.email, payload.password)
    return SessionOut(token=session.token, user=session.user)


@router.post("/api/auth/login", response_model=SessionOut)
def login(payload: LoginRequest, auth: AuthService = Depends(get_auth)):
    session = auth.login(payload.email, payload.password)
    return SessionOut(token=session.token, user=session.user)


@router.get("/api/auth/me", response_model=UserOut)
def me(user: UserOut = Depends(get_user)):
    return user
