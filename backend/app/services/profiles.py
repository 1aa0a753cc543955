"""Profile edits after bootstrap. These update existing rows and never create them."""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import FacultyProfile, Profile, StudentProfile
from ..utils.dependencies import Caller
from ..utils.error_handlers import NotFoundError, get_error_message, handle_database_error
from ..utils.validation import validate_integer_field, validate_string_field, validate_string_list
from .bootstrap import get_profile
from .store import dump_json_list, row_to_dict

logger = logging.getLogger(__name__)

STUDENT_TEXT_FIELDS = {"roll_number": 64, "batch": 32, "course": 120}


def _commit(db: Session, operation: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, operation)


def update_profile(db: Session, caller: Caller, *, full_name) -> dict:
    profile = db.get(Profile, caller.caller_id)
    if profile is None:
        raise NotFoundError(get_error_message("profile_not_found"))
    profile.full_name = validate_string_field(full_name, "Full name", max_length=255)
    _commit(db, "updating profile")
    return get_profile(db, caller)


def _own_student_profile(db: Session, caller: Caller) -> StudentProfile:
    student = db.query(StudentProfile).filter(StudentProfile.profile_id == caller.caller_id).first()
    if student is None:
        raise NotFoundError(get_error_message("student_profile_not_found"))
    return student


def update_student_profile(db: Session, caller: Caller, changes: dict) -> dict:
    student = _own_student_profile(db, caller)

    for field, max_length in STUDENT_TEXT_FIELDS.items():
        if field in changes:
            setattr(student, field, validate_string_field(changes[field], field, max_length=max_length, required=False))
    if "current_year" in changes:
        student.current_year = validate_integer_field(changes["current_year"], "current_year", 1, 8, required=False)
    if "current_semester" in changes:
        student.current_semester = validate_integer_field(
            changes["current_semester"], "current_semester", 1, 16, required=False
        )
    if "skills" in changes:
        student.skills = dump_json_list(validate_string_list(changes["skills"], "skills"))

    student.is_profile_complete = all(getattr(student, f) for f in STUDENT_TEXT_FIELDS)
    _commit(db, "updating student profile")
    db.refresh(student)
    return row_to_dict(student, json_fields=("skills",))


def update_faculty_profile(db: Session, caller: Caller, changes: dict) -> dict:
    faculty = db.query(FacultyProfile).filter(FacultyProfile.profile_id == caller.caller_id).first()
    if faculty is None:
        raise NotFoundError(get_error_message("faculty_profile_not_found"))

    if "designation" in changes:
        faculty.designation = validate_string_field(changes["designation"], "designation", max_length=120, required=False)
    if "specialization" in changes:
        faculty.specialization = validate_string_field(
            changes["specialization"], "specialization", max_length=255, required=False
        )
    _commit(db, "updating faculty profile")
    db.refresh(faculty)
    payload = row_to_dict(faculty)
    payload["approval_power"] = faculty.approval_power
    return payload


def list_faculty(db: Session) -> list[dict]:
    rows = (
        db.query(FacultyProfile, Profile)
        .join(Profile, Profile.id == FacultyProfile.profile_id)
        .order_by(Profile.full_name.asc(), FacultyProfile.id.asc())
        .all()
    )
    return [
        {
            "id": faculty.id,
            "profile_id": profile.id,
            "full_name": profile.full_name,
            "email": profile.email,
            "designation": faculty.designation,
            "approval_power": faculty.approval_power,
        }
        for faculty, profile in rows
    ]


def set_approval_power(
    db: Session,
    caller: Caller,
    faculty_id: int,
    *,
    can_approve_achievements: bool,
    max_credit_value=None,
) -> dict:
    """Institution admins grant or revoke a faculty member's approval power."""
    faculty = db.get(FacultyProfile, faculty_id)
    if faculty is None:
        raise NotFoundError(get_error_message("faculty_profile_not_found"))

    faculty.can_approve_achievements = bool(can_approve_achievements)
    faculty.max_credit_value = validate_integer_field(max_credit_value, "max_credit_value", min_value=0, required=False)
    _commit(db, "updating approval power")
    db.refresh(faculty)
    logger.info(
        "Approval power for faculty %s set by %s: %s",
        faculty.id, caller.caller_id, faculty.approval_power,
    )
    return {"id": faculty.id, "profile_id": faculty.profile_id, "approval_power": faculty.approval_power}
