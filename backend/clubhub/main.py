from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .api import admin, auth, clubs, events, students
from .config import Settings, get_settings
from .db import build_engine, make_session_factory
from .errors import BackendError, ClubHubError
from .logging_setup import configure_logging
from .services.auth import AuthService
from .services.data import DataStore
from .stores.base import Store
from .stores.memory import InMemoryStore
from .stores.remote import RemoteStore


def build_store(settings: Settings) -> Store:
    """Pick the backing store once, from configuration."""
    if settings.database_configured:
        engine = build_engine(settings.database_url, settings.database_key)
        store = RemoteStore(make_session_factory(engine))
        logger.info("Database configured, using {}", engine.url.render_as_string(hide_password=True))
        return store
    logger.warning("DATABASE_URL not set, running in fallback mode with demo data")
    return InMemoryStore(state_path=settings.local_state_path)


async def handle_clubhub_error(request: Request, exc: ClubHubError):
    headers = {"Retry-After": "5"} if exc.retryable else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


def create_app(settings: Optional[Settings] = None, store: Optional[Store] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    store = store or build_store(settings)

    app = FastAPI(title="Campus Club Hub (FastAPI)")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ClubHubError, handle_clubhub_error)

    app.state.settings = settings
    app.state.store = store
    app.state.auth = AuthService(store, settings.secret_key, timedelta(minutes=settings.session_ttl_minutes))
    app.state.data = DataStore(store, strict=settings.strict_registrations)

    @app.on_event("startup")
    def startup() -> None:
        if isinstance(store, RemoteStore):
            try:
                store.prepare()
            except BackendError:
                logger.error("Could not prepare database schema; the next request retries it")
                return
        try:
            app.state.data.initialize()
        except BackendError:
            logger.error("Initial load failed; collections stay empty until /api/refresh succeeds")

    @app.on_event("shutdown")
    def shutdown() -> None:
        app.state.data.dispose()

    for module in (auth, clubs, events, admin, students):
        app.include_router(module.router)

    return app


app = create_app()
