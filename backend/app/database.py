import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import DATABASE_URL

logger = logging.getLogger(__name__)

# Hosted dashboards hand out short schemes that SQLAlchemy needs spelled out.
_SCHEME_ALIASES = {
    "postgres://": "postgresql://",
    "mysql://": "mysql+pymysql://",
}


def normalize_database_url(url: str) -> str:
    url = (url or "").strip()
    for alias, scheme in _SCHEME_ALIASES.items():
        if url.startswith(alias):
            return scheme + url[len(alias):]
    return url


def _engine_options(url: str) -> dict:
    options = {"pool_pre_ping": True}
    if url.startswith("sqlite"):
        # Requests are served from a thread pool; the busy timeout softens
        # "database is locked" under concurrent registrations and approvals.
        options["connect_args"] = {"check_same_thread": False, "timeout": 30}
    return options


def _set_sqlite_pragmas(dbapi_connection, connection_record):  # noqa: ANN001
    try:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL;")
        cursor.execute("PRAGMA foreign_keys=ON;")
        cursor.execute("PRAGMA busy_timeout=30000;")
        cursor.close()
    except Exception as e:
        logger.warning("Failed to set SQLite pragmas: %s", e)


_db_url = normalize_database_url(DATABASE_URL)
engine = create_engine(_db_url, **_engine_options(_db_url))

if engine.dialect.name == "sqlite":
    event.listen(engine, "connect", _set_sqlite_pragmas)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """One session per request; workflow services commit or roll back themselves."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create missing tables and seed the achievement categories."""
    # Models must be imported so their tables are registered on Base.metadata.
    from . import models  # noqa: F401
    from .services.achievements import seed_default_categories

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        added = seed_default_categories(db)
    finally:
        db.close()
    logger.info("Database ready at %s (%d categories seeded)", engine.url.render_as_string(hide_password=True), added)
