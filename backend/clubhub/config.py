import os
import secrets
from dataclasses import dataclass, field
from functools import lru_cache

from dotenv import load_dotenv

# Load .env at repo root
load_dotenv(dotenv_path=os.path.join(os.path.dirname(os.path.dirname(__file__)), "..", ".env"))


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    database_url: str | None = None
    database_key: str | None = None
    secret_key: str = field(default_factory=lambda: secrets.token_urlsafe(32))
    session_ttl_minutes: int = 720
    strict_registrations: bool = False
    local_state_path: str | None = None
    cors_origin: str = "http://localhost:3000"
    log_level: str = "INFO"

    @property
    def database_configured(self) -> bool:
        return bool(self.database_url)

    @classmethod
    def from_env(cls) -> "Settings":
        settings = cls(
            database_url=os.getenv("DATABASE_URL") or None,
            database_key=os.getenv("DATABASE_KEY") or None,
            session_ttl_minutes=int(os.getenv("SESSION_TTL_MINUTES", "720")),
            strict_registrations=_env_bool("STRICT_REGISTRATIONS"),
            local_state_path=os.getenv("LOCAL_STATE_PATH") or None,
            cors_origin=os.getenv("CORS_ORIGIN", "http://localhost:3000"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
        secret = os.getenv("SECRET_KEY")
        if secret:
            settings.secret_key = secret
        return settings


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
