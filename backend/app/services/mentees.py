"""Faculty mentorship: a faculty member keeps a list of students they mentor."""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..models import Achievement, FacultyProfile, Mentee, StudentProfile
from ..utils.dates import isoformat
from ..utils.dependencies import Caller
from ..utils.error_handlers import ConflictError, NotFoundError, get_error_message, handle_database_error
from ..utils.validation import validate_integer_field, validate_string_field

logger = logging.getLogger(__name__)


def _faculty_for(db: Session, caller: Caller) -> FacultyProfile:
    faculty = db.query(FacultyProfile).filter(FacultyProfile.profile_id == caller.caller_id).first()
    if faculty is None:
        raise NotFoundError(get_error_message("faculty_profile_not_found"))
    return faculty


def mentee_to_public(mentee: Mentee, achievements: list[Achievement]) -> dict:
    student = mentee.student
    profile = student.profile if student else None
    return {
        "id": mentee.id,
        "mentor_id": mentee.mentor_id,
        "student_id": mentee.student_id,
        "notes": mentee.notes,
        "status": mentee.status,
        "created_at": isoformat(mentee.created_at),
        "student": {
            "id": student.id,
            "profile_id": student.profile_id,
            "full_name": profile.full_name if profile else None,
            "email": profile.email if profile else None,
            "roll_number": student.roll_number,
            "batch": student.batch,
            "course": student.course,
            "current_year": student.current_year,
            "current_semester": student.current_semester,
        } if student else None,
        "achievements": [
            {
                "id": a.id,
                "title": a.title,
                "description": a.description,
                "status": a.status,
                "created_at": isoformat(a.created_at),
            }
            for a in achievements
        ],
    }


def _mentee_query(db: Session):
    return db.query(Mentee).options(joinedload(Mentee.student).joinedload(StudentProfile.profile))


def list_mentees(db: Session, caller: Caller) -> list[dict]:
    """The caller's mentees, newest first, each with all of the student's achievements."""
    faculty = _faculty_for(db, caller)
    mentees = (
        _mentee_query(db)
        .filter(Mentee.mentor_id == faculty.id)
        .order_by(Mentee.created_at.desc(), Mentee.id.desc())
        .all()
    )

    by_student: dict[int, list[Achievement]] = {m.student_id: [] for m in mentees}
    if by_student:
        rows = (
            db.query(Achievement)
            .filter(Achievement.student_id.in_(list(by_student)))
            .order_by(Achievement.created_at.desc(), Achievement.id.desc())
            .all()
        )
        for achievement in rows:
            by_student[achievement.student_id].append(achievement)

    return [mentee_to_public(m, by_student[m.student_id]) for m in mentees]


def add_mentee(db: Session, caller: Caller, student_id, *, notes=None) -> dict:
    faculty = _faculty_for(db, caller)
    student_id = validate_integer_field(student_id, "student_id", min_value=1)
    notes = validate_string_field(notes, "notes", max_length=2000, required=False)

    if db.get(StudentProfile, student_id) is None:
        raise NotFoundError(get_error_message("student_profile_not_found"))
    already = (
        db.query(Mentee.id)
        .filter(Mentee.mentor_id == faculty.id, Mentee.student_id == student_id)
        .first()
    )
    if already is not None:
        raise ConflictError(get_error_message("mentee_exists"))

    mentee = Mentee(mentor_id=faculty.id, student_id=student_id, notes=notes, status="active")
    try:
        db.add(mentee)
        db.commit()
    except IntegrityError:
        # A concurrent add landed between the check and the insert.
        db.rollback()
        raise ConflictError(get_error_message("mentee_exists"))
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "adding mentee")

    logger.info("Faculty %s now mentors student %s", faculty.id, student_id)
    mentee = _mentee_query(db).filter(Mentee.id == mentee.id).one()
    achievements = (
        db.query(Achievement)
        .filter(Achievement.student_id == student_id)
        .order_by(Achievement.created_at.desc(), Achievement.id.desc())
        .all()
    )
    return mentee_to_public(mentee, achievements)
