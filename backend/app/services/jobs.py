"""
Job postings and applications.

Recruiters post jobs under the company attached to their recruiter profile.
Students apply at most once per job: the pre-check gives a friendly error and
the `uq_job_applications_student_job` constraint closes the concurrent
double-submit case.
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..models import Company, JobApplication, JobPosting, RecruiterProfile, StudentProfile
from ..utils.dates import as_utc, isoformat, parse_datetime, utcnow
from ..utils.dependencies import Caller
from ..utils.error_handlers import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
    get_error_message,
    handle_database_error,
)
from ..utils.validation import (
    validate_choice,
    validate_integer_field,
    validate_pagination,
    validate_string_field,
    validate_string_list,
)
from .store import dump_json_list, load_json_list, page_bounds, pagination_block

logger = logging.getLogger(__name__)

JOB_STATUSES = ("active", "closed")
JOB_TYPES = ("full-time", "part-time", "internship", "contract")
APPLICATION_STATUSES = ("pending", "approved", "rejected", "interviewing")


def _company_summary(company: Company | None) -> dict | None:
    if company is None:
        return None
    return {"id": company.id, "name": company.name, "logo_url": company.logo_url, "industry": company.industry}


def job_to_public(job: JobPosting) -> dict:
    return {
        "id": job.id,
        "title": job.title,
        "description": job.description,
        "type": job.type,
        "category": job.category,
        "location": job.location,
        "salary_min": job.salary_min,
        "salary_max": job.salary_max,
        "requirements": load_json_list(job.requirements),
        "responsibilities": load_json_list(job.responsibilities),
        "deadline": isoformat(job.deadline),
        "status": job.status,
        "company_id": job.company_id,
        "company": _company_summary(job.company),
        "posted_by": job.posted_by,
        "created_at": isoformat(job.created_at),
    }


def _application_summary(application: JobApplication) -> dict:
    return {
        "id": application.id,
        "status": application.status,
        "created_at": isoformat(application.created_at),
    }


def application_to_public(application: JobApplication, *, include_job: bool = True) -> dict:
    payload = {
        "id": application.id,
        "job_id": application.job_id,
        "student_id": application.student_id,
        "cover_letter": application.cover_letter,
        "resume_url": application.resume_url,
        "status": application.status,
        "created_at": isoformat(application.created_at),
        "updated_at": isoformat(application.updated_at),
    }
    job = application.job
    if include_job and job is not None:
        payload["job"] = {
            "title": job.title,
            "type": job.type,
            "location": job.location,
            "company": _company_summary(job.company),
        }
    return payload


def _own_student_profile(db: Session, caller: Caller) -> StudentProfile | None:
    return db.query(StudentProfile).filter(StudentProfile.profile_id == caller.caller_id).first()


def _own_recruiter_profile(db: Session, caller: Caller) -> RecruiterProfile:
    recruiter = db.query(RecruiterProfile).filter(RecruiterProfile.profile_id == caller.caller_id).first()
    if recruiter is None:
        raise ForbiddenError(get_error_message("recruiter_profile_not_found"))
    return recruiter


def _ensure_company(db: Session, recruiter: RecruiterProfile) -> Company:
    """The recruiter's company; linked from `company_name` the first time they post."""
    if recruiter.company_id is not None:
        return recruiter.company

    name = (recruiter.company_name or "").strip()
    if not name:
        raise ValidationError("Add your company name to your recruiter profile before posting jobs")
    company = db.query(Company).filter(Company.name == name).first()
    if company is None:
        company = Company(name=name)
        db.add(company)
        db.flush()
    recruiter.company_id = company.id
    return company


def post_job(db: Session, caller: Caller, payload: dict) -> dict:
    recruiter = _own_recruiter_profile(db, caller)

    title = validate_string_field(payload.get("title"), "Title", min_length=2, max_length=150)
    description = validate_string_field(payload.get("description"), "Description", max_length=10000, required=False)
    job_type = validate_choice(payload.get("type"), "type", JOB_TYPES, default="full-time")
    category = validate_string_field(payload.get("category"), "Category", max_length=100, required=False)
    location = validate_string_field(payload.get("location"), "Location", max_length=100, required=False)
    salary_min = validate_integer_field(payload.get("salary_min"), "salary_min", min_value=0, required=False)
    salary_max = validate_integer_field(payload.get("salary_max"), "salary_max", min_value=0, required=False)
    if salary_min is not None and salary_max is not None and salary_min > salary_max:
        raise ValidationError("salary_min must not exceed salary_max")
    requirements = validate_string_list(payload.get("requirements"), "requirements", max_length=500)
    responsibilities = validate_string_list(payload.get("responsibilities"), "responsibilities", max_length=500)

    deadline = None
    if payload.get("deadline"):
        try:
            deadline = parse_datetime(payload["deadline"], "deadline")
        except ValueError as e:
            raise ValidationError(str(e))
        if deadline < utcnow():
            raise ValidationError("Application deadline cannot be in the past")

    try:
        company = _ensure_company(db, recruiter)
        job = JobPosting(
            company_id=company.id,
            posted_by=caller.caller_id,
            title=title,
            description=description,
            type=job_type,
            category=category,
            location=location,
            salary_min=salary_min,
            salary_max=salary_max,
            requirements=dump_json_list(requirements),
            responsibilities=dump_json_list(responsibilities),
            deadline=deadline,
            status="active",
        )
        db.add(job)
        db.commit()
        db.refresh(job)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "creating job")

    logger.info("Job %s posted by %s for company %s", job.id, caller.caller_id, job.company_id)
    return job_to_public(job)


def set_job_status(db: Session, caller: Caller, job_id: int, status) -> dict:
    status = validate_choice(status, "status", JOB_STATUSES)
    job = _owned_job(db, caller, job_id)
    job.status = status
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "updating job status")
    db.refresh(job)
    return job_to_public(job)


def list_jobs(
    db: Session,
    caller: Caller,
    *,
    type=None,
    category=None,
    location=None,
    page=None,
    limit=None,
) -> dict:
    """Active jobs, newest first, each annotated with the caller's own application (if any)."""
    page, limit = validate_pagination(page, limit)

    query = db.query(JobPosting).filter(JobPosting.status == "active")
    if type and type != "all":
        query = query.filter(JobPosting.type == type)
    if category:
        query = query.filter(JobPosting.category == category)
    if location:
        query = query.filter(JobPosting.location == location)

    total = query.count()
    offset, limit = page_bounds(page, limit)
    jobs = (
        query.options(joinedload(JobPosting.company))
        .order_by(JobPosting.created_at.desc(), JobPosting.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )

    mine: dict[int, JobApplication] = {}
    student = _own_student_profile(db, caller)
    if student is not None and jobs:
        rows = (
            db.query(JobApplication)
            .filter(JobApplication.student_id == student.id, JobApplication.job_id.in_([j.id for j in jobs]))
            .all()
        )
        mine = {a.job_id: a for a in rows}

    items = []
    for job in jobs:
        payload = job_to_public(job)
        application = mine.get(job.id)
        payload["has_applied"] = application is not None
        payload["applications"] = [_application_summary(application)] if application else []
        items.append(payload)

    return {"jobs": items, "pagination": pagination_block(total, page, limit)}


def apply(db: Session, caller: Caller, job_id, *, cover_letter=None, resume_url=None) -> dict:
    job_id = validate_integer_field(job_id, "job_id", min_value=1)
    cover_letter = validate_string_field(cover_letter, "Cover letter", max_length=10000, required=False)
    resume_url = validate_string_field(resume_url, "Resume URL", max_length=500, required=False)

    student = _own_student_profile(db, caller)
    if student is None:
        raise NotFoundError(get_error_message("student_profile_not_found"))

    job = db.get(JobPosting, job_id)
    if job is None:
        raise NotFoundError(get_error_message("job_not_found"))
    deadline = as_utc(job.deadline)
    if job.status != "active" or (deadline is not None and deadline < utcnow()):
        raise ValidationError(get_error_message("job_closed"))

    existing = (
        db.query(JobApplication.id)
        .filter(JobApplication.student_id == student.id, JobApplication.job_id == job.id)
        .first()
    )
    if existing is not None:
        raise ConflictError(get_error_message("already_applied"), status_code=400)

    application = JobApplication(
        student_id=student.id,
        job_id=job.id,
        cover_letter=cover_letter,
        resume_url=resume_url,
        status="pending",
    )
    try:
        db.add(application)
        db.commit()
    except IntegrityError:
        # Lost the race against a concurrent submit for the same (student, job).
        db.rollback()
        raise ConflictError(get_error_message("already_applied"), status_code=400)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "creating application")

    logger.info("Student %s applied to job %s", student.id, job.id)
    db.refresh(application)
    return application_to_public(application)


def list_applications(db: Session, caller: Caller, *, status=None, page=None, limit=None) -> dict:
    page, limit = validate_pagination(page, limit)
    student = _own_student_profile(db, caller)
    if student is None:
        return {"applications": [], "pagination": pagination_block(0, page, limit)}

    query = db.query(JobApplication).filter(JobApplication.student_id == student.id)
    if status:
        query = query.filter(JobApplication.status == validate_choice(status, "status", APPLICATION_STATUSES))

    total = query.count()
    offset, limit = page_bounds(page, limit)
    rows = (
        query.options(joinedload(JobApplication.job).joinedload(JobPosting.company))
        .order_by(JobApplication.created_at.desc(), JobApplication.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return {
        "applications": [application_to_public(a) for a in rows],
        "pagination": pagination_block(total, page, limit),
    }


def _owned_job(db: Session, caller: Caller, job_id: int) -> JobPosting:
    job = db.get(JobPosting, job_id)
    if job is None:
        raise NotFoundError(get_error_message("job_not_found"))
    if job.posted_by != caller.caller_id:
        raise ForbiddenError(get_error_message("forbidden"))
    return job


def list_job_applicants(db: Session, caller: Caller, job_id: int) -> list[dict]:
    job = _owned_job(db, caller, job_id)
    rows = (
        db.query(JobApplication)
        .options(joinedload(JobApplication.student).joinedload(StudentProfile.profile))
        .filter(JobApplication.job_id == job.id)
        .order_by(JobApplication.created_at.desc(), JobApplication.id.desc())
        .all()
    )
    result = []
    for application in rows:
        payload = application_to_public(application, include_job=False)
        profile = application.student.profile if application.student else None
        payload["student"] = {
            "id": application.student_id,
            "full_name": profile.full_name if profile else None,
            "email": profile.email if profile else None,
        }
        result.append(payload)
    return result


def update_application_status(db: Session, caller: Caller, application_id: int, status) -> dict:
    status = validate_choice(status, "status", APPLICATION_STATUSES)
    application = db.get(JobApplication, application_id)
    if application is None:
        raise NotFoundError(get_error_message("application_not_found"))
    _owned_job(db, caller, application.job_id)

    application.status = status
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "updating application")
    db.refresh(application)
    logger.info("Application %s moved to %s by %s", application.id, status, caller.caller_id)
    return application_to_public(application)
