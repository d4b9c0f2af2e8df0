from dataclasses import dataclass
from datetime import timedelta

from loguru import logger

from ..auth_utils import generate_student_id, hash_password, verify_password
from ..errors import AuthenticationError, ValidationError
from ..schemas import UserOut, UserRecord
from ..stores.base import Store
from ..tokens import decode_session, encode_session


@dataclass
class Session:
    user: UserOut
    token: str


def public_user(user: UserRecord) -> UserOut:
    return UserOut.model_validate(user.model_dump(exclude={"password_hash"}))


class AuthService:
    """Credential checks and token issue against the identity table."""

    def __init__(self, store: Store, secret_key: str, session_ttl: timedelta):
        self.store = store
        self.secret_key = secret_key
        self.session_ttl = session_ttl

    def _issue(self, user: UserRecord) -> Session:
        token = encode_session(user.id, user.role, self.secret_key, self.session_ttl)
        return Session(user=public_user(user), token=token)

    def login(self, email: str, password: str) -> Session:
        normalized = email.strip().lower()
        user = self.store.get_user_by_email(normalized)
        if not user or not verify_password(password, user.password_hash):
            logger.warning("Failed login for {}", normalized)
            raise AuthenticationError("Invalid email or password")
        logger.info("User {} logged in as {}", user.email, user.role)
        return self._issue(user)

    def signup(self, name: str, email: str, password: str) -> Session:
        name = name.strip()
        normalized = email.strip().lower()
        if not name or not normalized or not password:
            raise ValidationError("Name, email and password are required")
        if self.store.get_user_by_email(normalized):
            logger.warning("Signup rejected, {} already registered", normalized)
            raise ValidationError("Email already registered")

        user = self.store.add_user(
            email=normalized,
            name=name,
            password_hash=hash_password(password),
            role="student",
            student_id=generate_student_id(),
        )
        logger.info("Registered student {} ({})", user.email, user.student_id)
        return self._issue(user)

    def authenticate(self, token: str) -> UserOut:
        payload = decode_session(token, self.secret_key)
        user = self.store.get_user(str(payload["sub"]))
        if not user:
            raise AuthenticationError("User not found")
        return public_user(user)
