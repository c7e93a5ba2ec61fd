from __future__ import annotations

from typing import Iterator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import settings


class Base(DeclarativeBase):
    pass


def _connect_args(url: str) -> dict:
    # FastAPI serves sync endpoints from a threadpool
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def enable_sqlite_transactions(engine: Engine) -> Engine:
    """Let SQLAlchemy emit BEGIN itself on SQLite.

    pysqlite only opens a transaction before DML, so two SELECTs in one session
    transaction would otherwise each see the latest commit.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, _record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


engine = create_engine(settings.DATABASE_URL, connect_args=_connect_args(settings.DATABASE_URL), pool_pre_ping=True)
if engine.dialect.name == "sqlite":
    enable_sqlite_transactions(engine)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    from .models import records  # noqa: F401  registers the tables

    Base.metadata.create_all(bind=engine)
