"""
Achievement lifecycle.

    pending --(faculty approves, credits)--> approved
    pending --(faculty rejects, reason)----> rejected

Both outcomes are terminal. A decision is applied with an extra
`status = 'pending'` predicate, so a second decision on the same row updates
nothing and is reported as a conflict instead of overwriting the first one.
Approval bumps the student's aggregates with an atomic column expression in
the same transaction as the status change.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..models import Achievement, AchievementCategory, FacultyProfile, StudentProfile
from ..utils.dates import isoformat, parse_datetime, utcnow
from ..utils.dependencies import Caller
from ..utils.error_handlers import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
    get_error_message,
    handle_database_error,
)
from ..utils.roles import Role, can
from ..utils.validation import (
    MAX_DB_INT,
    validate_choice,
    validate_integer_field,
    validate_string_field,
    validate_string_list,
)
from .store import dump_json_list, load_json_list

logger = logging.getLogger(__name__)

ACHIEVEMENT_STATUSES = ("pending", "approved", "rejected")
DECISIONS = ("approved", "rejected")

# Used when the category table is empty; also what init_db seeds.
DEFAULT_CATEGORIES = [
    {
        "id": "tech",
        "name": "Technical",
        "description": "Programming, certifications, technical skills",
        "icon": "code",
        "credit_multiplier": 1.0,
    },
    {
        "id": "academic",
        "name": "Academic",
        "description": "Research papers, academic honors, scholarships",
        "icon": "graduationCap",
        "credit_multiplier": 1.2,
    },
    {
        "id": "competition",
        "name": "Competition",
        "description": "Hackathons, contests, competitive programming",
        "icon": "trophy",
        "credit_multiplier": 1.5,
    },
    {
        "id": "leadership",
        "name": "Leadership",
        "description": "Team leadership, organizing events, mentoring",
        "icon": "users",
        "credit_multiplier": 1.3,
    },
    {
        "id": "creative",
        "name": "Creative",
        "description": "Creative works, cultural activities, artistic achievements",
        "icon": "palette",
        "credit_multiplier": 1.1,
    },
]


def seed_default_categories(db: Session) -> int:
    existing = {row[0] for row in db.query(AchievementCategory.id).all()}
    added = 0
    for category in DEFAULT_CATEGORIES:
        if category["id"] in existing:
            continue
        db.add(AchievementCategory(**category))
        added += 1
    if added:
        db.commit()
        logger.info("Seeded %d achievement categories", added)
    return added


def category_to_public(category: AchievementCategory) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "icon": category.icon,
        "credit_multiplier": category.credit_multiplier,
    }


def list_categories(db: Session) -> list[dict]:
    categories = db.query(AchievementCategory).order_by(AchievementCategory.name.asc()).all()
    if not categories:
        return [dict(c) for c in DEFAULT_CATEGORIES]
    return [category_to_public(c) for c in categories]


def achievement_to_public(achievement: Achievement) -> dict:
    student = achievement.student
    profile = student.profile if student else None
    category = achievement.category
    return {
        "id": achievement.id,
        "student_id": achievement.student_id,
        "category_id": achievement.category_id,
        "title": achievement.title,
        "description": achievement.description,
        "date_achieved": isoformat(achievement.date_achieved),
        "skill_tags": load_json_list(achievement.skill_tags),
        "is_public": bool(achievement.is_public),
        "status": achievement.status,
        "credits": achievement.credits or 0,
        "rejection_reason": achievement.rejection_reason,
        "approved_by": achievement.approved_by,
        "approved_at": isoformat(achievement.approved_at),
        "created_at": isoformat(achievement.created_at),
        "updated_at": isoformat(achievement.updated_at),
        "student": {
            "id": student.id,
            "profile_id": student.profile_id,
            "full_name": profile.full_name if profile else None,
            "email": profile.email if profile else None,
        } if student else None,
        "category": {"id": category.id, "name": category.name} if category else None,
    }


def _own_student_profile(db: Session, caller: Caller) -> StudentProfile | None:
    return db.query(StudentProfile).filter(StudentProfile.profile_id == caller.caller_id).first()


def _achievement_query(db: Session):
    return db.query(Achievement).options(
        joinedload(Achievement.student).joinedload(StudentProfile.profile),
        joinedload(Achievement.category),
    )


def submit(
    db: Session,
    caller: Caller,
    *,
    category_id,
    title,
    date_achieved,
    description=None,
    skill_tags=None,
    is_public=None,
) -> dict:
    """A student submits an achievement for themselves; it always starts pending with 0 credits."""
    if not all(isinstance(v, str) and v.strip() for v in (category_id, title, date_achieved)):
        raise ValidationError(get_error_message("achievement_missing_fields"))

    title = validate_string_field(title, "Title", max_length=255)
    description = validate_string_field(description, "Description", max_length=5000, required=False) or ""
    tags = validate_string_list(skill_tags, "Skill tags")
    try:
        achieved_on = parse_datetime(date_achieved, "dateAchieved")
    except ValueError as e:
        raise ValidationError(str(e))

    student = _own_student_profile(db, caller)
    if student is None:
        raise NotFoundError(get_error_message("student_profile_not_found"))

    category = db.get(AchievementCategory, category_id.strip())
    if category is None:
        raise ValidationError(get_error_message("unknown_category"), details={"categoryId": category_id})

    achievement = Achievement(
        student_id=student.id,
        category_id=category.id,
        title=title,
        description=description,
        date_achieved=achieved_on,
        skill_tags=dump_json_list(tags),
        is_public=is_public is not False,
        status="pending",
        credits=0,
    )
    try:
        db.add(achievement)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "creating achievement")

    logger.info("Achievement %s submitted by student %s", achievement.id, student.id)
    return achievement_to_public(_achievement_query(db).filter(Achievement.id == achievement.id).one())


def _validate_decision(decision, credits, rejection_reason) -> tuple[str, int, str | None]:
    # (a) decision literal
    if decision not in DECISIONS:
        raise ValidationError(get_error_message("invalid_decision"))

    # (b) approval needs a non-negative number of credits
    if decision == "approved":
        if isinstance(credits, bool) or not isinstance(credits, (int, float)) or credits < 0:
            raise ValidationError(get_error_message("credits_required"))
        if credits > MAX_DB_INT:
            raise ValidationError(f"Credits must not exceed {MAX_DB_INT}")
        if isinstance(credits, float) and not credits.is_integer():
            raise ValidationError("Credits must be a whole number")
        return decision, int(credits), None

    # (c) rejection needs a reason
    reason = rejection_reason.strip() if isinstance(rejection_reason, str) else ""
    if not reason:
        raise ValidationError(get_error_message("rejection_reason_required"))
    return decision, 0, reason


def decide(
    db: Session,
    caller: Caller,
    achievement_id: int,
    *,
    decision,
    credits=None,
    rejection_reason=None,
) -> dict:
    decision, credits, reason = _validate_decision(decision, credits, rejection_reason)

    if not can(caller.role, "achievement:decide"):
        raise ForbiddenError(get_error_message("no_approval_power"))

    faculty = db.query(FacultyProfile).filter(FacultyProfile.profile_id == caller.caller_id).first()
    if faculty is None:
        raise NotFoundError(get_error_message("faculty_profile_not_found"))
    if not faculty.can_approve_achievements:
        raise ForbiddenError(get_error_message("no_approval_power"))
    ceiling = faculty.max_credit_value
    if decision == "approved" and ceiling is not None and credits > ceiling:
        raise ForbiddenError(f"You can only approve up to {ceiling} credits")

    now = utcnow()
    values = {"status": decision, "updated_at": now}
    if decision == "approved":
        values.update(credits=credits, approved_by=caller.caller_id, approved_at=now, rejection_reason=None)
    else:
        values.update(credits=0, approved_by=None, approved_at=None, rejection_reason=reason)

    try:
        updated = (
            db.query(Achievement)
            .filter(Achievement.id == achievement_id, Achievement.status == "pending")
            .update(values, synchronize_session=False)
        )
        if updated == 0:
            db.rollback()
            if db.query(Achievement.id).filter(Achievement.id == achievement_id).first() is None:
                raise NotFoundError(get_error_message("achievement_not_found"))
            raise ConflictError(get_error_message("achievement_already_decided"))

        if decision == "approved":
            student_id = db.query(Achievement.student_id).filter(Achievement.id == achievement_id).scalar()
            db.query(StudentProfile).filter(StudentProfile.id == student_id).update(
                {
                    StudentProfile.total_credits: StudentProfile.total_credits + credits,
                    StudentProfile.achievement_count: StudentProfile.achievement_count + 1,
                },
                synchronize_session=False,
            )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "deciding achievement")

    logger.info("Achievement %s %s by %s (credits=%s)", achievement_id, decision, caller.caller_id, credits)
    achievement = (
        _achievement_query(db)
        .filter(Achievement.id == achievement_id)
        .populate_existing()
        .one()
    )
    return {
        "success": True,
        "achievement": achievement_to_public(achievement),
        "message": f"Achievement {decision} successfully",
    }


def list_achievements(db: Session, caller: Caller, *, status=None, student_id=None) -> list[dict]:
    """
    Scoping:
      - explicit student_id: that student's achievements (public ones only, unless
        the caller is that student or reviews achievements)
      - students: always their own
      - faculty / institution admins: everything
      - anyone else: public achievements only
    """
    query = _achievement_query(db)
    if status:
        query = query.filter(Achievement.status == validate_choice(status, "status", ACHIEVEMENT_STATUSES))

    role = caller.role
    reviewer = role in (Role.FACULTY, Role.INSTITUTION_ADMIN)
    if student_id is not None and student_id != "":
        student_id = validate_integer_field(student_id, "student_id", min_value=1)
        query = query.filter(Achievement.student_id == student_id)
        own = _own_student_profile(db, caller) if role is Role.STUDENT else None
        if not reviewer and not (own is not None and own.id == student_id):
            query = query.filter(Achievement.is_public.is_(True))
    elif role is Role.STUDENT:
        own = _own_student_profile(db, caller)
        if own is None:
            return []
        query = query.filter(Achievement.student_id == own.id)
    elif not reviewer:
        query = query.filter(Achievement.is_public.is_(True))

    rows = query.order_by(Achievement.created_at.desc(), Achievement.id.desc()).all()
    return [achievement_to_public(a) for a in rows]


def get_achievement(db: Session, caller: Caller, achievement_id: int) -> dict:
    achievement = _achievement_query(db).filter(Achievement.id == achievement_id).first()
    if achievement is None:
        raise NotFoundError(get_error_message("achievement_not_found"))

    if caller.role not in (Role.FACULTY, Role.INSTITUTION_ADMIN) and not achievement.is_public:
        own = _own_student_profile(db, caller)
        if own is None or own.id != achievement.student_id:
            raise NotFoundError(get_error_message("achievement_not_found"))
    return achievement_to_public(achievement)
