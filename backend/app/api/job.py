from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import jobs as job_service
from ..utils.dependencies import Caller, get_current_caller
from ..utils.roles import role_required
from ..utils.validation import MAX_DB_INT

router = APIRouter(prefix="/jobs", tags=["Jobs"])


class JobCreate(BaseModel):
    title: str | None = None
    description: str | None = None
    type: str | None = None  # full-time | part-time | internship | contract
    category: str | None = None
    location: str | None = None
    salary_min: int | None = Field(default=None, strict=True)
    salary_max: int | None = Field(default=None, strict=True)
    requirements: list[str] | None = None
    responsibilities: list[str] | None = None
    deadline: str | None = None  # ISO datetime string


class JobStatusUpdate(BaseModel):
    status: str | None = None  # active | closed


@router.post("", status_code=status.HTTP_201_CREATED)
def create_job(
    body: JobCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("job:post")),
):
    # The company always comes from the caller's recruiter profile (403 without one).
    return job_service.post_job(db, caller, body.model_dump())


@router.get("")
def list_jobs(
    type: str | None = None,
    category: str | None = None,
    location: str | None = None,
    page: str | None = None,
    limit: str | None = None,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    return job_service.list_jobs(
        db, caller, type=type, category=category, location=location, page=page, limit=limit
    )


@router.patch("/{job_id}")
def update_job_status(
    body: JobStatusUpdate,
    job_id: int = Path(ge=1, le=MAX_DB_INT),
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("job:post")),
):
    return job_service.set_job_status(db, caller, job_id, body.status)


@router.get("/{job_id}/applications")
def list_job_applicants(
    job_id: int = Path(ge=1, le=MAX_DB_INT),
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("application:review")),
):
    return {"applications": job_service.list_job_applicants(db, caller, job_id)}
