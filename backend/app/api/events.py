from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import events as event_service
from ..utils.dependencies import Caller, get_current_caller
from ..utils.roles import role_required
from ..utils.validation import MAX_DB_INT

faculty_router = APIRouter(prefix="/faculty/events", tags=["Events"])
router = APIRouter(prefix="/events", tags=["Events"])


class EventCreate(BaseModel):
    title: str | None = None
    description: str | None = None
    type: str | None = None  # workshop | seminar | hackathon | ...
    start_date: str | None = None  # ISO datetime string
    end_date: str | None = None  # ISO datetime string
    location: str | None = None
    max_participants: int | None = Field(default=None, strict=True)
    credits: int | None = Field(default=None, strict=True)
    registration_deadline: str | None = None  # ISO datetime string


class EventStatusUpdate(BaseModel):
    event_id: int | None = Field(default=None, strict=True)
    status: str | None = None  # upcoming | ongoing | completed | cancelled


@faculty_router.get("")
def list_my_events(
    status: str | None = None,
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("event:organize")),
):
    return event_service.list_organizer_events(db, caller, status=status)


@faculty_router.post("", status_code=status.HTTP_201_CREATED)
def create_event(
    body: EventCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("event:organize")),
):
    return event_service.create_event(db, caller, body.model_dump())


@faculty_router.patch("")
def update_event_status(
    body: EventStatusUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("event:organize")),
):
    return event_service.update_status(db, caller, body.event_id, body.status)


@router.get("")
def list_open_events(db: Session = Depends(get_db), caller: Caller = Depends(get_current_caller)):
    return {"events": event_service.list_open_events(db, caller)}


@router.post("/{event_id}/register", status_code=status.HTTP_201_CREATED)
def register_for_event(
    event_id: int = Path(ge=1, le=MAX_DB_INT),
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("event:register")),
):
    return {"success": True, "event": event_service.register(db, caller, event_id)}
