"""SQLAlchemy engine and session setup."""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from cabanabook.config import get_database_url


class Base(DeclarativeBase):
    pass


engine = create_engine(
    get_database_url(),
    echo=False,
    connect_args={"check_same_thread": False},  # SQLite needs this for multi-thread
)

SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


def get_session() -> Session:
    """Create a new database session."""
    return SessionLocal()


def init_db() -> None:
    """Create all tables. Import models first so they register with Base."""
    import cabanabook.models.cabana  # noqa: F401
    import cabanabook.models.mail  # noqa: F401
    import cabanabook.models.reservation  # noqa: F401
    import cabanabook.models.season  # noqa: F401

    Base.metadata.create_all(bind=engine)
