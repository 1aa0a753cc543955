from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import jobs as job_service
from ..utils.dependencies import Caller, get_current_caller
from ..utils.roles import role_required
from ..utils.validation import MAX_DB_INT

router = APIRouter(prefix="/applications", tags=["Applications"])


class ApplicationCreate(BaseModel):
    job_id: int | None = Field(default=None, strict=True)
    cover_letter: str | None = None
    resume_url: str | None = None


class ApplicationStatusUpdate(BaseModel):
    status: str | None = None  # pending | approved | rejected | interviewing


@router.post("", status_code=status.HTTP_201_CREATED)
def apply_to_job(
    body: ApplicationCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("job:apply")),
):
    return job_service.apply(
        db, caller, body.job_id, cover_letter=body.cover_letter, resume_url=body.resume_url
    )


@router.get("")
def list_my_applications(
    status: str | None = None,
    page: str | None = None,
    limit: str | None = None,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    return job_service.list_applications(db, caller, status=status, page=page, limit=limit)


@router.patch("/{application_id}")
def update_application_status(
    body: ApplicationStatusUpdate,
    application_id: int = Path(ge=1, le=MAX_DB_INT),
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("application:review")),
):
    return job_service.update_application_status(db, caller, application_id, body.status)
