"""
First-login bootstrap: materialise the caller's profile rows and pick their dashboard.

The Profile upsert is the only step whose failure aborts the call. The
role-specific row is best effort: when it fails the user still lands on a
dashboard and downstream reads see `role_data = None` ("profile incomplete").
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import FacultyProfile, Institution, Profile, RecruiterProfile, StudentProfile
from ..utils.dependencies import Caller
from ..utils.error_handlers import DatabaseError, NotFoundError, ValidationError, get_error_message
from ..utils.roles import Role, redirect_url_for
from .store import row_to_dict, upsert

logger = logging.getLogger(__name__)

# role -> (model, conflict column, {column: user_metadata key})
ROLE_ROWS = {
    Role.STUDENT: (StudentProfile, "profile_id", {"roll_number": "roll_number"}),
    Role.FACULTY: (FacultyProfile, "profile_id", {"designation": "designation"}),
    Role.RECRUITER: (RecruiterProfile, "profile_id", {"company_name": "company_name", "designation": "designation"}),
    Role.INSTITUTION_ADMIN: (Institution, "owner_id", {"name": "institution_name", "code": "institution_code"}),
}

ROLE_ROW_JSON_FIELDS = {Role.STUDENT: ("skills",)}


def _display_name(caller: Caller) -> str | None:
    if caller.full_name:
        return caller.full_name
    return caller.email.split("@", 1)[0] if caller.email else None


def _upsert_role_row(db: Session, caller: Caller, role: Role):
    model, conflict_key, metadata_fields = ROLE_ROWS[role]
    values = {conflict_key: caller.caller_id}
    for column, meta_key in metadata_fields.items():
        value = caller.metadata.get(meta_key)
        if isinstance(value, str) and value.strip():
            values[column] = value.strip()
    # Only metadata-supplied attributes are refreshed; anything edited later is left alone.
    return upsert(db, model, values, conflict_key=conflict_key, update_fields=[k for k in values if k != conflict_key])


def bootstrap(db: Session, caller: Caller) -> dict:
    role = caller.role
    if role is None:
        raise ValidationError(get_error_message("unsupported_role"), details={"role": caller.raw_role})

    profile_values = {"id": caller.caller_id, "email": caller.email, "role": role.value}
    update_fields = ["email", "role"]
    if caller.full_name:
        update_fields.append("full_name")
    profile_values["full_name"] = _display_name(caller)

    try:
        upsert(db, Profile, profile_values, conflict_key="id", update_fields=update_fields)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Profile upsert failed for %s: %s", caller.caller_id, e)
        raise DatabaseError(get_error_message("bootstrap_failed"))

    try:
        _upsert_role_row(db, caller, role)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Role-specific row for %s (%s) was not created: %s", caller.caller_id, role.value, e)

    return {
        "success": True,
        "redirect_url": redirect_url_for(role),
        "profile_id": caller.caller_id,
        "role": role.value,
    }


def load_role_row(db: Session, profile_id: str, role: Role | None):
    """Read-only lookup of the role-specific row; never creates one."""
    if role is None:
        return None
    model, conflict_key, _ = ROLE_ROWS[role]
    return db.query(model).filter(getattr(model, conflict_key) == profile_id).first()


def profile_to_public(profile: Profile) -> dict:
    return row_to_dict(profile)


def get_profile(db: Session, caller: Caller) -> dict:
    profile = db.get(Profile, caller.caller_id)
    if profile is None:
        raise NotFoundError(get_error_message("profile_not_found"))

    role = Role.parse(profile.role)
    role_row = load_role_row(db, profile.id, role)
    role_data = None
    if role_row is not None:
        role_data = row_to_dict(role_row, json_fields=ROLE_ROW_JSON_FIELDS.get(role, ()))
        if role is Role.FACULTY:
            role_data["approval_power"] = role_row.approval_power

    return {"profile": profile_to_public(profile), "role_data": role_data}
