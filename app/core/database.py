"""
Database engine and session management.

SQLite is the default store; PostgreSQL is used when configured. The schema is
owned by Alembic and brought to ``head`` on startup.
"""
import os

from sqlalchemy import event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from app.core.config import settings, PROJECT_ROOT
from app.core.logging_config import LogCategory, _sanitize_data, get_logger

logger = get_logger(LogCategory.DB)

database_url = settings.effective_database_url
database_type = settings.database_type


def _sqlite_engine(url_string: str) -> Engine:
    url = make_url(url_string)
    in_memory = url.database in (None, "", ":memory:")
    if not in_memory:
        os.makedirs(os.path.dirname(os.path.abspath(url.database)), exist_ok=True)

    sqlite_engine = create_engine(
        url_string,
        echo=False,
        connect_args={"check_same_thread": False},
        # One shared connection, otherwise every checkout sees an empty database
        poolclass=StaticPool if in_memory else None,
    )

    @event.listens_for(sqlite_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        if not in_memory:
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA temp_store=MEMORY")
        cursor.close()

    logger.info(f"Configured SQLite engine ({'in-memory' if in_memory else url.database})")
    return sqlite_engine


def _postgres_engine(url_string: str) -> Engine:
    postgres_engine = create_engine(
        url_string,
        echo=False,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )
    logger.info("Configured PostgreSQL engine with connection pooling")
    return postgres_engine


logger.info(f"Using {database_type} database: {_sanitize_data(database_url)}")
engine = _sqlite_engine(database_url) if database_type == "sqlite" else _postgres_engine(database_url)


def _skip_db_init() -> bool:
    return os.getenv("SKIP_DB_INIT", "false").lower() in ("true", "1", "yes")


def run_migrations(revision: str = "head") -> None:
    """Upgrade the configured database with Alembic."""
    from alembic import command
    from alembic.config import Config

    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url)
    alembic_cfg.attributes["configure_logger"] = False
    command.upgrade(alembic_cfg, revision)


def create_db_and_tables():
    """
    Bring the schema up to date. When migrations cannot run (e.g. the Alembic
    scripts are not shipped) the tables are created from the models instead.
    """
    if _skip_db_init():
        logger.info("Skipping database initialization (SKIP_DB_INIT is set)")
        return

    import app.models  # noqa: F401

    try:
        logger.info("Running database migrations...")
        run_migrations()
        logger.info("Database migrations completed successfully")
    except Exception as exc:
        logger.error(f"Migrations failed: {exc}")
        logger.info("Falling back to SQLModel create_all...")
        SQLModel.metadata.create_all(engine)
        logger.info("Database tables created (fallback)")


def get_session():
    """Request-scoped session dependency."""
    with Session(engine) as session:
        yield session


def get_session_context() -> Session:
    """
    Session for CLI commands and other non-request code.

    Example:
        with get_session_context() as session:
            ...
    """
    return Session(engine)


def init_db():
    logger.info("Initializing database...")
    create_db_and_tables()
    logger.info("Database initialization completed")
