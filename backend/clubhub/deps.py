from fastapi import Depends, Header, HTTPException, Request

from .errors import AuthenticationError
from .schemas import UserOut
from .services.auth import AuthService
from .services.data import DataStore


def get_data(request: Request) -> DataStore:
    return request.app.state.data


def get_auth(request: Request) -> AuthService:
    return request.app.state.auth


def get_user(
    authorization: str | None = Header(default=None),
    auth: AuthService = Depends(get_auth),
) -> UserOut:
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header missing")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="Bearer token required")
    try:
        return auth.authenticate(token.strip())
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=exc.message) from exc


def ensure_admin(user: UserOut) -> None:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")


def ensure_student(user: UserOut) -> None:
    if user.role != "student":
        raise HTTPException(status_code=403, detail="Only students can request club membership")


def require_admin(user: UserOut = Depends(get_user)) -> UserOut:
    """Dependency form of `ensure_admin`."""

    ensure_admin(user)
    return user
