#!/usr/bin/env python3
"""
Create/upgrade the portal schema.

Run after pulling model changes. `create_all()` creates missing tables but does
not touch existing ones, so the uniqueness guarantees the workflows rely on are
added here explicitly for databases created before they existed.
"""

import sys
from pathlib import Path

from sqlalchemy import inspect, text

# Add repo root to path so `backend.app` resolves when run as a script.
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from backend.app.database import Base, engine, init_db  # noqa: E402

# name -> (table, columns)
REQUIRED_UNIQUE_INDEXES = {
    "uq_job_applications_student_job": ("job_applications", ("student_id", "job_id")),
    "uq_event_participants_event_student": ("event_participants", ("event_id", "student_id")),
    "uq_mentees_mentor_student": ("mentees", ("mentor_id", "student_id")),
}


def _ensure_unique_index(inspector, name: str, table: str, columns: tuple[str, ...]) -> bool:
    existing_index_names = {i.get("name") for i in inspector.get_indexes(table) if i.get("name")}
    existing_unique_names = {u.get("name") for u in inspector.get_unique_constraints(table) if u.get("name")}
    if name in existing_index_names or name in existing_unique_names:
        print(f"✓ Unique index already exists: {name}")
        return True

    # If duplicates already exist this fails; clean them up and re-run.
    try:
        with engine.begin() as conn:
            conn.execute(text(f"CREATE UNIQUE INDEX {name} ON {table} ({', '.join(columns)})"))
        print(f"✓ Added unique index: {name}")
        return True
    except Exception as e:
        print(f"✗ Could not add unique index {name}: {e}")
        return False


def migrate() -> bool:
    print("Initializing database with all models...")
    init_db()
    print("✓ Database initialized successfully")

    missing = [t for t in ("profiles", "achievements", "events", "job_postings") if t not in Base.metadata.tables]
    if missing:
        print(f"✗ Tables not registered: {', '.join(missing)}")
        return False

    inspector = inspect(engine)
    ok = True
    for name, (table, columns) in REQUIRED_UNIQUE_INDEXES.items():
        ok = _ensure_unique_index(inspector, name, table, columns) and ok
    return ok


if __name__ == "__main__":
    success = migrate()
    sys.exit(0 if success else 1)
