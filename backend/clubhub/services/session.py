from typing import Optional, Protocol

from loguru import logger

from ..errors import AuthenticationError
from ..schemas import UserOut
from ..storage import MemoryStorage
from .auth import AuthService, Session

SESSION_KEY = "clubhub.session"


class KeyValueStorage(Protocol):
    def get(self, key: str): ...

    def set(self, key: str, value) -> None: ...

    def remove(self, key: str) -> None: ...


class SessionStore:
    """The signed-in identity of one client, kept across restarts.

    Only the session token is persisted; `initialize` re-validates it rather
    than trusting a stored identity. This is the client half of the auth
    flow: embedding clients and scripts drive it directly, while the HTTP
    routes stay stateless and read the bearer token per request.
    """

    def __init__(self, auth: AuthService, storage: Optional[KeyValueStorage] = None):
        self.auth = auth
        self.storage = storage if storage is not None else MemoryStorage()
        self.current: Optional[UserOut] = None
        self.token: Optional[str] = None
        self.loading = True

    @property
    def is_admin(self) -> bool:
        return self.current is not None and self.current.role == "admin"

    def initialize(self) -> Optional[UserOut]:
        try:
            stored = self.storage.get(SESSION_KEY)
            if stored:
                try:
                    self.current = self.auth.authenticate(stored)
                    self.token = stored
                except AuthenticationError as exc:
                    logger.info("Discarding stored session: {}", exc.message)
                    self.storage.remove(SESSION_KEY)
        finally:
            self.loading = False
        return self.current

    def _establish(self, session: Session) -> UserOut:
        self.current = session.user
        self.token = session.token
        self.storage.set(SESSION_KEY, session.token)
        return session.user

    def login(self, email: str, password: str) -> UserOut:
        return self._establish(self.auth.login(email, password))

    def signup(self, name: str, email: str, password: str) -> UserOut:
        return self._establish(self.auth.signup(name, email, password))

    def logout(self) -> None:
        self.current = None
        self.token = None
        self.storage.remove(SESSION_KEY)

    def dispose(self) -> None:
        self.current = None
        self.token = None
