import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from .api import achievements as achievements_api
from .api import applications as applications_api
from .api import bootstrap as bootstrap_api
from .api import events as events_api
from .api import job as job_api
from .api import mentees as mentees_api
from .api import portfolio as portfolio_api
from .api import profiles as profiles_api
from .config import EXPOSE_ERROR_DETAILS, FRONTEND_ORIGINS
from .database import engine, init_db
from .utils.error_handlers import get_error_message, register_exception_handlers

logger = logging.getLogger(__name__)

PORTAL_ROUTERS = (
    bootstrap_api.router,
    profiles_api.router,
    profiles_api.admin_router,
    achievements_api.router,
    events_api.faculty_router,
    events_api.router,
    job_api.router,
    applications_api.router,
    portfolio_api.router,
    mentees_api.router,
)

LOCAL_FRONTENDS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def include_portal(app: FastAPI) -> FastAPI:
    """Mount every portal router and the JSON error envelope on `app`."""
    for router in PORTAL_ROUTERS:
        app.include_router(router)
    register_exception_handlers(app)
    return app


app = include_portal(FastAPI(title="Campus Portal API"))

app.add_middleware(
    CORSMiddleware,
    allow_origins=[*LOCAL_FRONTENDS, *FRONTEND_ORIGINS],
    # Any local dev port (Next.js falls back to 3001, 3002, ... when 3000 is taken).
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def prepare_database() -> None:
    # A broken database must not stop the process; /db/health reports it instead.
    app.state.db_init_error = None
    try:
        init_db()
    except Exception as e:
        logger.exception("Database initialisation failed: %s", e)
        app.state.db_init_error = str(e)


@app.get("/health")
def health():
    return {"status": "ok", "service": "Campus Portal API"}


@app.get("/db/health")
def db_health():
    """Liveness of the relational store. Driver text only leaves the process when EXPOSE_ERROR_DETAILS is on."""
    failure = getattr(app.state, "db_init_error", None)
    if failure is None:
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return {"status": "ok"}
        except Exception as e:
            logger.error("DB health check failed: %s", e)
            failure = str(e)

    detail = f"Database unavailable: {failure}" if EXPOSE_ERROR_DETAILS else get_error_message("database_error")
    raise HTTPException(status_code=503, detail=detail)
