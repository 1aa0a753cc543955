from datetime import date, datetime, time, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes even for timezone=True columns; treat those as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_datetime(value, field_name: str = "date") -> datetime:
    """
    Accept ISO datetimes ("2024-01-01T10:00:00Z"), plain dates ("2024-01-01"),
    or datetime/date objects. Result is always timezone-aware UTC.
    """
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    raw = (value or "").strip() if isinstance(value, str) else ""
    if not raw:
        raise ValueError(f"{field_name} is required")
    try:
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"{field_name} must be an ISO date or datetime")
    return as_utc(dt)


def isoformat(dt: datetime | None) -> str | None:
    dt = as_utc(dt)
    return dt.isoformat() if dt else None
