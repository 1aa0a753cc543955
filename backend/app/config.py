import os
from pathlib import Path
from dotenv import load_dotenv

# backend/.env wins over the shell so edits apply on the next reload.
# Tests set DISABLE_DOTENV=1 so a developer's .env can't redirect them to a real database.
if os.getenv("DISABLE_DOTENV") != "1":
    load_dotenv(override=True)


def _env_flag(name: str, default: str = "0") -> bool:
    return (os.getenv(name, default) or default).strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    return int(raw) if raw else default


# Database
# Without DATABASE_URL the portal runs on a SQLite file next to the backend package,
# resolved to an absolute path so the working directory doesn't matter.
_dev_sqlite_path = (Path(__file__).resolve().parent.parent / "dev.db").as_posix()
DATABASE_URL = (os.getenv("DATABASE_URL") or "").strip() or f"sqlite:///{_dev_sqlite_path}"

# Session tokens
# Issued by the identity provider and signed with the shared project secret.
# The fallback only exists so a local server boots without any .env.
SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret_change_me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
# Hosted identity providers stamp "authenticated" here; leave empty to skip the check.
JWT_AUDIENCE = (os.getenv("JWT_AUDIENCE") or "").strip() or None

# Pagination for list endpoints (jobs, applications)
DEFAULT_PAGE_SIZE = _env_int("DEFAULT_PAGE_SIZE", 10)
MAX_PAGE_SIZE = _env_int("MAX_PAGE_SIZE", 100)

# Include raw database error text in error responses. Never enable in production.
EXPOSE_ERROR_DETAILS = _env_flag("EXPOSE_ERROR_DETAILS")

# Extra CORS origins (comma-separated) on top of the local dev frontends.
FRONTEND_ORIGINS = [
    origin.strip()
    for origin in os.getenv("FRONTEND_ORIGINS", "").split(",")
    if origin.strip()
]
