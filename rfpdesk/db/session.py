from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rfpdesk.core.config import settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine; SQLite URLs get FK enforcement (and a shared pool in memory)."""
    url = make_url(database_url)
    backend = url.get_backend_name()
    kwargs = {"echo": echo}
    connect_args = {}

    if backend.startswith("postgresql"):
        connect_args["options"] = "-c timezone=utc"
        kwargs["pool_pre_ping"] = True
    elif backend == "sqlite":
        connect_args["check_same_thread"] = False
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool

    new_engine = create_engine(database_url, connect_args=connect_args, **kwargs)
    if backend == "sqlite":
        event.listen(new_engine, "connect", _enable_sqlite_foreign_keys)
    return new_engine


engine = build_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine | None = None) -> None:
    """Create all tables (development and tests; production uses Alembic)."""
    from rfpdesk.db.base import Base
    import rfpdesk.db.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
