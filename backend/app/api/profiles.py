from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import profiles as profile_service
from ..utils.dependencies import Caller, get_current_caller
from ..utils.roles import role_required
from ..utils.validation import MAX_DB_INT

router = APIRouter(prefix="/profile", tags=["Profile"])
admin_router = APIRouter(prefix="/admin", tags=["Admin"])


class ProfileUpdate(BaseModel):
    full_name: str | None = None


class StudentProfileUpdate(BaseModel):
    roll_number: str | None = None
    batch: str | None = None
    course: str | None = None
    current_year: int | None = Field(default=None, strict=True)
    current_semester: int | None = Field(default=None, strict=True)
    skills: list[str] | None = None


class FacultyProfileUpdate(BaseModel):
    designation: str | None = None
    specialization: str | None = None


class ApprovalPowerUpdate(BaseModel):
    can_approve_achievements: bool
    max_credit_value: int | None = Field(default=None, strict=True)  # null = no ceiling


@router.put("")
def update_profile(
    body: ProfileUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    return profile_service.update_profile(db, caller, full_name=body.full_name)


@router.put("/student")
def update_student_profile(
    body: StudentProfileUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("profile:student")),
):
    # Only fields the client actually sent are touched.
    return profile_service.update_student_profile(db, caller, body.model_dump(exclude_unset=True))


@router.put("/faculty")
def update_faculty_profile(
    body: FacultyProfileUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("profile:faculty")),
):
    return profile_service.update_faculty_profile(db, caller, body.model_dump(exclude_unset=True))


@admin_router.get("/faculty")
def list_faculty(
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("faculty:manage")),
):
    return {"faculty": profile_service.list_faculty(db)}


@admin_router.put("/faculty/{faculty_id}/approval-power")
def set_approval_power(
    body: ApprovalPowerUpdate,
    faculty_id: int = Path(ge=1, le=MAX_DB_INT),
    db: Session = Depends(get_db),
    caller: Caller = Depends(role_required("faculty:manage")),
):
    return profile_service.set_approval_power(
        db,
        caller,
        faculty_id,
        can_approve_achievements=body.can_approve_achievements,
        max_credit_value=body.max_credit_value,
    )
