import os
import sys
from pathlib import Path

# Both must be in place before anything imports backend.app.config.
os.environ["DISABLE_DOTENV"] = "1"
os.environ.setdefault("SECRET_KEY", "portal-test-secret")

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402


@pytest.fixture(scope="session")
def sqlite_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    return f"sqlite+pysqlite:///{tmp_path_factory.mktemp('portal') / 'portal.sqlite3'}"


@pytest.fixture()
def app(sqlite_url: str) -> FastAPI:
    """
    Portal routers on a fresh schema in a throwaway SQLite file.

    Only the router wiring is borrowed from `backend.app.main`; its module-level
    app has a startup hook that would run init_db against the developer database.
    """
    from backend.app import database
    from backend.app import models  # noqa: F401
    from backend.app.main import include_portal
    from backend.app.services.achievements import seed_default_categories

    test_engine = create_engine(sqlite_url, connect_args={"check_same_thread": False})
    database.engine = test_engine
    database.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

    database.Base.metadata.drop_all(bind=test_engine)
    database.Base.metadata.create_all(bind=test_engine)
    with database.SessionLocal() as seed_session:
        seed_default_categories(seed_session)

    return include_portal(FastAPI())


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    # Unhandled errors come back as the 500 JSON envelope instead of being re-raised.
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def db_session(app: FastAPI):
    """Separate session on the test database, for arranging rows and checking writes."""
    from backend.app import database

    with database.SessionLocal() as session:
        yield session
