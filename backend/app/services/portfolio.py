"""
Student portfolio: the profile, its approved achievements and the free-form
block (about, interests, projects) the student maintains. Skills stay on the
student profile so the profile editor and the portfolio never disagree.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..models import Achievement, StudentPortfolio, StudentProfile
from ..utils.dependencies import Caller
from ..utils.error_handlers import NotFoundError, ValidationError, get_error_message, handle_database_error
from ..utils.validation import validate_string_field, validate_string_list
from .achievements import achievement_to_public
from .store import dump_json_list, row_to_dict, upsert

logger = logging.getLogger(__name__)

PORTFOLIO_FIELDS = ("about", "interests", "projects")
MAX_PROJECTS = 20


def _student_for(db: Session, caller: Caller) -> StudentProfile:
    student = (
        db.query(StudentProfile)
        .options(joinedload(StudentProfile.profile))
        .filter(StudentProfile.profile_id == caller.caller_id)
        .first()
    )
    if student is None:
        raise NotFoundError(get_error_message("student_profile_not_found"))
    return student


def portfolio_to_public(portfolio: StudentPortfolio | None) -> dict:
    if portfolio is None:
        return {"about": None, "interests": [], "projects": [], "updated_at": None}
    payload = row_to_dict(portfolio, json_fields=("interests", "projects"))
    return {key: payload[key] for key in ("about", "interests", "projects", "updated_at")}


def _validate_projects(projects) -> list[dict]:
    if projects is None:
        return []
    if not isinstance(projects, list):
        raise ValidationError("projects must be a list")
    if len(projects) > MAX_PROJECTS:
        raise ValidationError(f"projects must not have more than {MAX_PROJECTS} entries")

    cleaned = []
    for project in projects:
        if not isinstance(project, dict):
            raise ValidationError("Each project must be an object")
        cleaned.append({
            "title": validate_string_field(project.get("title"), "Project title", max_length=255),
            "description": validate_string_field(
                project.get("description"), "Project description", max_length=2000, required=False
            ),
            "url": validate_string_field(
                project.get("url"), "Project url", max_length=500, required=False, pattern=r"^https?://"
            ),
        })
    return cleaned


def get_portfolio(db: Session, caller: Caller) -> dict:
    student = _student_for(db, caller)
    portfolio = db.query(StudentPortfolio).filter(StudentPortfolio.student_id == student.id).first()
    achievements = (
        db.query(Achievement)
        .options(joinedload(Achievement.category), joinedload(Achievement.student).joinedload(StudentProfile.profile))
        .filter(Achievement.student_id == student.id, Achievement.status == "approved")
        .order_by(Achievement.date_achieved.desc(), Achievement.id.desc())
        .all()
    )

    profile = row_to_dict(student, json_fields=("skills",))
    profile["full_name"] = student.profile.full_name if student.profile else None
    profile["email"] = student.profile.email if student.profile else None
    return {
        "profile": profile,
        "portfolio": portfolio_to_public(portfolio),
        "achievements": [achievement_to_public(a) for a in achievements],
    }


def update_portfolio(db: Session, caller: Caller, changes: dict) -> dict:
    """Upsert the portfolio block; fields missing from `changes` keep their stored value."""
    student = _student_for(db, caller)

    values = {"student_id": student.id}
    if "about" in changes:
        values["about"] = validate_string_field(changes["about"], "about", max_length=2000, required=False)
    if "interests" in changes:
        values["interests"] = dump_json_list(validate_string_list(changes["interests"], "interests"))
    if "projects" in changes:
        values["projects"] = dump_json_list(_validate_projects(changes["projects"]))
    skills = validate_string_list(changes["skills"], "skills") if "skills" in changes else None

    try:
        upsert(
            db,
            StudentPortfolio,
            values,
            conflict_key="student_id",
            update_fields=[f for f in PORTFOLIO_FIELDS if f in values],
        )
        if skills is not None:
            student.skills = dump_json_list(skills)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "updating portfolio")

    logger.info("Portfolio for student %s updated (%s)", student.id, ", ".join(sorted(changes)) or "no fields")
    return get_portfolio(db, caller)
