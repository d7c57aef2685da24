"""Database engine and session management."""

from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bedflow.config.settings import DatabaseSettings, settings


def build_engine(db_settings: Optional[DatabaseSettings] = None, url: Optional[str] = None) -> Engine:
    """
    Create a SQLAlchemy engine.

    SQLite URLs (used for local runs and tests) get a single shared
    connection; server databases get a pre-pinged pool.
    """
    cfg = db_settings or settings.database
    url = url or cfg.DATABASE_URL

    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            echo=cfg.DB_ECHO,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        _enable_sqlite_savepoints(engine)
        return engine

    return create_engine(
        url,
        pool_pre_ping=True,
        echo=cfg.DB_ECHO,
        pool_size=cfg.DB_POOL_SIZE,
        max_overflow=cfg.DB_MAX_OVERFLOW,
        pool_recycle=cfg.DB_POOL_RECYCLE,
    )


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT works on pysqlite."""

    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def get_session_factory() -> sessionmaker:
    """Lazily build the process-wide session factory."""
    global _engine, _session_factory
    if _session_factory is None:
        _engine = build_engine()
        _session_factory = build_session_factory(_engine)
    return _session_factory


def get_db() -> Generator[Session, None, None]:
    """
    Yield a database session and close it afterwards.

    Intended as a request-scoped dependency for the calling API layer.
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Engine) -> None:
    """Create all tables (development and tests; production uses migrations)."""
    import bedflow.models  # noqa: F401  registers tables
    from bedflow.models.base import Base

    Base.metadata.create_all(bind=engine)
