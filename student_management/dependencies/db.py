"""Database engine and request-scoped session management."""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from student_management.core.config import settings
from student_management.db.base import Base


def _build_engine(database_url: str):
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(
            database_url,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_TIMEOUT_SECONDS,
            pool_pre_ping=True,
        )

    connect_args = {"check_same_thread": False, "timeout": settings.DB_TIMEOUT_SECONDS}
    if url.database in (None, "", ":memory:"):
        # an in-memory database only exists on its one connection
        sqlite_engine = create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
    else:
        sqlite_engine = create_engine(database_url, connect_args=connect_args)

    @event.listens_for(sqlite_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return sqlite_engine


engine = _build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    Base.metadata.create_all(bind=engine)


def get_db():
    """Dependency for getting a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
