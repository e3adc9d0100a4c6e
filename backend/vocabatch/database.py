from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from vocabatch.config import settings


class Base(DeclarativeBase):
    pass


def is_sqlite(database_url: str) -> bool:
    return make_url(database_url).get_backend_name() == "sqlite"


def make_engine(database_url: str, busy_timeout_ms: int = 5000, **kwargs) -> Engine:
    """Engine for the word store. SQLite gets WAL and a busy timeout, since
    generation runs write from worker threads while the API reads."""
    sqlite = is_sqlite(database_url)
    if sqlite:
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = create_engine(database_url, echo=False, **kwargs)

    if sqlite:
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragmas(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def init_db(bind: Engine | None = None) -> None:
    Base.metadata.create_all(bind=bind or engine)


engine = make_engine(settings.database_url, settings.sqlite_busy_timeout_ms)
SessionLocal = sessionmaker(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
