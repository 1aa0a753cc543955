"""ASGI entrypoint for running the portal API from the repo root.

    uvicorn app.main:app --reload

The application itself lives in `backend/app/main.py`.
"""

from backend.app.main import app

__all__ = ["app"]
