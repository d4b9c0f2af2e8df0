from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    pass


def build_engine(database_url: str, access_key: str | None = None) -> Engine:
    url = make_url(database_url)
    if access_key:
        url = url.set(password=access_key)
    # For SQLite in FastAPI, allow cross-thread access
    if url.get_backend_name() == "sqlite":
        return create_engine(url, echo=False, pool_pre_ping=True, connect_args={"check_same_thread": False})
    return create_engine(url, echo=False, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Iterator[Session]:
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
