from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import mentees as mentee_service
from ..utils.dependencies import Caller
from ..utils.roles import role_required

router = APIRouter(prefix="/faculty/mentees", tags=["Mentees"])


class MenteeCreate(BaseModel):
    student_id: int | None = Field(default=None, strict=True)  # student profile id
    notes: str | None = None


@router.get("")
def list_mentees(
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("mentee:manage")),
):
    return {"mentees": mentee_service.list_mentees(db, caller)}


@router.post("", status_code=status.HTTP_201_CREATED)
def add_mentee(
    body: MenteeCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("mentee:manage")),
):
    return mentee_service.add_mentee(db, caller, body.student_id, notes=body.notes)
