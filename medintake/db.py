# medintake/db.py
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

from medintake.config import get_settings


def make_engine(database_url: str) -> Engine:
    kwargs = {}
    if database_url.startswith("sqlite"):
        # Sessions are touched from the event loop thread and from FastAPI's
        # threadpool.
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool

    return create_engine(
        database_url,
        echo=False,  # set True if you want to see SQL queries
        future=True,
        **kwargs,
    )


def make_sessionmaker(bind: Engine) -> sessionmaker:
    return sessionmaker(
        bind=bind,
        autoflush=False,
        autocommit=False,
        future=True,
    )


settings = get_settings()

engine = make_engine(settings.database_url)
SessionLocal = make_sessionmaker(engine)


class Base(DeclarativeBase):
    """
    Base class for ORM models.
    """
    pass
