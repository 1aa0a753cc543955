"""
Event lifecycle: organizers (faculty, institution admins) create events and move
them between upcoming / ongoing / completed / cancelled; students register.

Status changes are manual only. An event whose end date has passed keeps its
status until the organizer changes it; reads expose that as `is_overdue`.
"""
import logging
from datetime import datetime

from sqlalchemy import DateTime, func, insert, literal, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..models import Event, EventParticipation, Profile, StudentProfile
from ..utils.dates import as_utc, isoformat, parse_datetime, utcnow
from ..utils.dependencies import Caller
from ..utils.error_handlers import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
    get_error_message,
    handle_database_error,
)
from ..utils.validation import validate_choice, validate_integer_field, validate_string_field

logger = logging.getLogger(__name__)

EVENT_STATUSES = ("upcoming", "ongoing", "completed", "cancelled")
ACTIVE_STATUSES = ("upcoming", "ongoing")


def is_overdue(event: Event, now: datetime | None = None) -> bool:
    end = as_utc(event.end_date)
    return bool(end) and event.status in ACTIVE_STATUSES and end < (now or utcnow())


def _participant_to_public(participation: EventParticipation) -> dict:
    student = participation.student
    profile = student.profile if student else None
    return {
        "student_id": participation.student_id,
        "profile_id": student.profile_id if student else None,
        "full_name": profile.full_name if profile else None,
        "email": profile.email if profile else None,
        "registered_at": isoformat(participation.created_at),
    }


def event_to_public(event: Event, *, include_participants: bool = False, now: datetime | None = None) -> dict:
    now = now or utcnow()
    payload = {
        "id": event.id,
        "organizer_id": event.organizer_id,
        "title": event.title,
        "description": event.description,
        "type": event.type,
        "start_date": isoformat(event.start_date),
        "end_date": isoformat(event.end_date),
        "location": event.location,
        "max_participants": event.max_participants,
        "credits": event.credits,
        "registration_deadline": isoformat(event.registration_deadline),
        "status": event.status,
        "is_overdue": is_overdue(event, now),
        "participant_count": len(event.participants),
        "created_at": isoformat(event.created_at),
        "updated_at": isoformat(event.updated_at),
    }
    if include_participants:
        payload["participants"] = [_participant_to_public(p) for p in event.participants]
    return payload


def validate_event_window(
    registration_deadline: datetime,
    start_date: datetime,
    end_date: datetime,
    now: datetime | None = None,
) -> None:
    now = now or utcnow()
    if registration_deadline < now:
        raise ValidationError("Registration deadline cannot be in the past")
    if start_date < registration_deadline:
        raise ValidationError("Registration deadline must be on or before the event start date")
    if end_date < start_date:
        raise ValidationError("End date must be on or after the start date")


def _parse_event_date(value, field_name: str) -> datetime:
    try:
        return parse_datetime(value, field_name)
    except ValueError as e:
        raise ValidationError(str(e))


def _event_query(db: Session):
    return db.query(Event).options(
        joinedload(Event.participants).joinedload(EventParticipation.student).joinedload(StudentProfile.profile)
    )


def create_event(db: Session, caller: Caller, payload: dict) -> dict:
    title = validate_string_field(payload.get("title"), "Title", min_length=3, max_length=255)
    description = validate_string_field(payload.get("description"), "Description", max_length=5000, required=False)
    event_type = validate_string_field(payload.get("type"), "Type", max_length=50)
    location = validate_string_field(payload.get("location"), "Location", max_length=255, required=False)
    max_participants = validate_integer_field(payload.get("max_participants"), "max_participants", min_value=1)
    credits = validate_integer_field(payload.get("credits"), "credits", min_value=0, required=False) or 0

    registration_deadline = _parse_event_date(payload.get("registration_deadline"), "registration_deadline")
    start_date = _parse_event_date(payload.get("start_date"), "start_date")
    end_date = _parse_event_date(payload.get("end_date"), "end_date")
    validate_event_window(registration_deadline, start_date, end_date)

    if db.get(Profile, caller.caller_id) is None:
        raise NotFoundError(get_error_message("profile_not_found"))

    event = Event(
        organizer_id=caller.caller_id,
        title=title,
        description=description,
        type=event_type,
        start_date=start_date,
        end_date=end_date,
        location=location,
        max_participants=max_participants,
        credits=credits,
        registration_deadline=registration_deadline,
        status="upcoming",
    )
    try:
        db.add(event)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "creating event")

    logger.info("Event %s created by %s", event.id, caller.caller_id)
    return event_to_public(_event_query(db).filter(Event.id == event.id).one(), include_participants=True)


def update_status(db: Session, caller: Caller, event_id: int, new_status) -> dict:
    """Any status may move to any other; only the organizer may move it."""
    event_id = validate_integer_field(event_id, "event_id", min_value=1)
    new_status = validate_choice(new_status, "status", EVENT_STATUSES)

    try:
        updated = (
            db.query(Event)
            .filter(Event.id == event_id, Event.organizer_id == caller.caller_id)
            .update({"status": new_status, "updated_at": utcnow()}, synchronize_session=False)
        )
        if updated == 0:
            db.rollback()
            if db.query(Event.id).filter(Event.id == event_id).first() is None:
                raise NotFoundError(get_error_message("event_not_found"))
            raise ForbiddenError(get_error_message("not_event_organizer"))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "updating event status")

    logger.info("Event %s moved to %s by %s", event_id, new_status, caller.caller_id)
    event = _event_query(db).filter(Event.id == event_id).populate_existing().one()
    return event_to_public(event, include_participants=True)


def list_organizer_events(db: Session, caller: Caller, *, status=None) -> list[dict]:
    query = _event_query(db).filter(Event.organizer_id == caller.caller_id)
    if status:
        query = query.filter(Event.status == validate_choice(status, "status", EVENT_STATUSES))
    events = query.order_by(Event.start_date.desc(), Event.id.desc()).all()
    now = utcnow()
    return [event_to_public(e, include_participants=True, now=now) for e in events]


def list_open_events(db: Session, caller: Caller) -> list[dict]:
    """Upcoming events, soonest first, each flagged with the caller's registration."""
    student = db.query(StudentProfile).filter(StudentProfile.profile_id == caller.caller_id).first()
    events = (
        _event_query(db)
        .filter(Event.status == "upcoming")
        .order_by(Event.start_date.asc(), Event.id.asc())
        .all()
    )
    now = utcnow()
    result = []
    for event in events:
        payload = event_to_public(event, now=now)
        payload["registration_open"] = (
            as_utc(event.registration_deadline) >= now and len(event.participants) < event.max_participants
        )
        payload["registered"] = student is not None and any(p.student_id == student.id for p in event.participants)
        result.append(payload)
    return result


def register(db: Session, caller: Caller, event_id: int) -> dict:
    student = db.query(StudentProfile).filter(StudentProfile.profile_id == caller.caller_id).first()
    if student is None:
        raise NotFoundError(get_error_message("student_profile_not_found"))

    event = db.get(Event, event_id)
    if event is None:
        raise NotFoundError(get_error_message("event_not_found"))
    if event.status != "upcoming":
        raise ValidationError(get_error_message("event_not_open"))
    now = utcnow()
    if as_utc(event.registration_deadline) < now:
        raise ValidationError(get_error_message("registration_closed"))

    already = (
        db.query(EventParticipation.id)
        .filter(EventParticipation.event_id == event.id, EventParticipation.student_id == student.id)
        .first()
    )
    if already is not None:
        raise ConflictError(get_error_message("already_registered"))

    # Capacity check and insert in one statement: no row is written once the event is full.
    taken = (
        select(func.count(EventParticipation.id))
        .where(EventParticipation.event_id == event.id)
        .scalar_subquery()
    )
    source = select(Event.id, literal(student.id), literal(now, DateTime(timezone=True))).where(
        Event.id == event.id, taken < Event.max_participants
    )
    stmt = insert(EventParticipation.__table__).from_select(["event_id", "student_id", "created_at"], source)
    try:
        inserted = db.execute(stmt).rowcount
        if not inserted:
            db.rollback()
            raise ConflictError(get_error_message("event_full"))
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(get_error_message("already_registered"))
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "registering for event")

    logger.info("Student %s registered for event %s", student.id, event.id)
    event = _event_query(db).filter(Event.id == event.id).populate_existing().one()
    payload = event_to_public(event, now=now)
    payload["registered"] = True
    return payload
