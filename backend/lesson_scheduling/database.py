# backend/lesson_scheduling/database.py
from datetime import datetime
import logging
from typing import Any, Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from .core.config import settings

logger = logging.getLogger(__name__)


def create_engine_from_settings(url: Optional[str] = None, **overrides: Any) -> Engine:
    """Create an engine for the scheduling store.

    SQLite URLs get a thread-tolerant connection; server databases get a
    pre-pinged connection pool.
    """
    database_url = url or settings.database_url
    if make_url(database_url).get_backend_name() == "sqlite":
        options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    else:
        options = {
            "pool_size": 20,  # Number of persistent connections
            "max_overflow": 10,  # Maximum overflow connections
            "pool_timeout": 30,  # Timeout for getting connection
            "pool_recycle": 3600,  # Recycle connections after 1 hour
            "pool_pre_ping": True,  # Test connections before using
        }
    options.update(overrides)
    created = create_engine(database_url, echo=settings.database_echo, future=True, **options)
    if created.dialect.name == "sqlite":
        enable_sqlite_savepoints(created)
    return created


def enable_sqlite_savepoints(target: Engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT works on pysqlite.

    Generation and settings creation rely on nested transactions.
    """

    @event.listens_for(target, "connect")
    def _disable_pysqlite_transactions(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(target, "begin")
    def _emit_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


engine: Engine = create_engine_from_settings()


# Log pool events for monitoring
@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    connection_record.info["connect_time"] = datetime.now()
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind: Optional[Engine] = None) -> None:
    """Create all scheduling tables on the given engine."""
    from . import models  # noqa: F401

    Base.metadata.create_all(bind or engine)
