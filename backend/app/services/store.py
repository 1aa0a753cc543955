"""
Small query helpers shared by the workflow services.

`upsert` maps to `INSERT ... ON CONFLICT` on Postgres and SQLite so repeated
calls are idempotent at the store level; other dialects fall back to
select-then-write inside the caller's transaction.
"""
import json
from datetime import datetime
from typing import Any, Iterable

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from ..utils.dates import isoformat, utcnow

_ON_CONFLICT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert(
    db: Session,
    model,
    values: dict[str, Any],
    *,
    conflict_key: str,
    update_fields: Iterable[str] | None = None,
):
    """
    Insert `values` or, when a row with the same `conflict_key` exists, update
    `update_fields` on it (all non-key fields by default; an empty list means
    "leave the existing row alone"). Returns the resulting ORM row.
    Does not commit.
    """
    key_value = values[conflict_key]
    fields = [
        f for f in (values if update_fields is None else update_fields)
        if f != conflict_key and f in values
    ]
    touch = bool(fields) and "updated_at" in model.__table__.c

    dialect = db.get_bind().dialect.name
    insert_fn = _ON_CONFLICT_INSERTS.get(dialect)
    if insert_fn is not None:
        stmt = insert_fn(model.__table__).values(**values)
        if fields:
            set_ = {f: stmt.excluded[f] for f in fields}
            if touch:
                set_["updated_at"] = utcnow()
            stmt = stmt.on_conflict_do_update(index_elements=[conflict_key], set_=set_)
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=[conflict_key])
        db.execute(stmt)
    else:
        existing = db.query(model).filter(getattr(model, conflict_key) == key_value).first()
        if existing is None:
            db.add(model(**values))
        else:
            for f in fields:
                setattr(existing, f, values[f])
        db.flush()

    # populate_existing: the ORM identity map may still hold a pre-upsert copy.
    return (
        db.query(model)
        .filter(getattr(model, conflict_key) == key_value)
        .populate_existing()
        .one()
    )


def dump_json_list(values: list | None) -> str | None:
    return json.dumps(list(values), ensure_ascii=False) if values is not None else None


def load_json_list(raw: str | None) -> list:
    if not raw:
        return []
    try:
        data = json.loads(raw)
        return data if isinstance(data, list) else []
    except Exception:
        return []


def page_bounds(page: int, limit: int) -> tuple[int, int]:
    """(offset, limit) for a 1-based page number."""
    return (page - 1) * limit, limit


def pagination_block(total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": (total + limit - 1) // limit if limit else 0,
    }


def row_to_dict(row, *, json_fields: Iterable[str] = ()) -> dict:
    """Plain-column snapshot of an ORM row; datetimes as ISO strings, JSON text decoded."""
    json_fields = set(json_fields)
    payload: dict[str, Any] = {}
    for column in row.__table__.columns:
        value = getattr(row, column.key)
        if column.key in json_fields:
            value = load_json_list(value)
        elif isinstance(value, datetime):
            value = isoformat(value)
        payload[column.key] = value
    return payload
