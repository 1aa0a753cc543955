from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from backend.app.models import JobApplication, JobPosting, StudentProfile
from backend.app.utils.jwt import create_session_token


def _auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _login(client, user_id: str, role: str, **metadata) -> dict:
    token = create_session_token(user_id, email=f"{user_id}@example.com", role=role, **metadata)
    headers = _auth_headers(token)
    r = client.post("/bootstrap", headers=headers)
    assert r.status_code == 200, r.text
    return headers


def _recruiter(client, user_id: str = "rec-jobs") -> dict:
    return _login(client, user_id, "recruiter", company_name="Acme Corp", designation="Talent Lead")


def _post_job(client, headers: dict, **overrides):
    body = {
        "title": "Backend Engineer",
        "description": "Build REST APIs with Python",
        "type": "full-time",
        "category": "engineering",
        "location": "Bengaluru",
        "salary_min": 600000,
        "salary_max": 1200000,
        "requirements": ["Python", "SQL"],
        "responsibilities": ["Own services"],
    }
    body.update(overrides)
    return client.post("/jobs", json=body, headers=headers)


def test_post_job_and_filter_by_type(client):
    recruiter = _recruiter(client)
    student = _login(client, "stu-jobs", "student")

    r = _post_job(client, recruiter)
    assert r.status_code == 201, r.text
    job = r.json()
    assert job["status"] == "active"
    assert job["salary_min"] == 600000
    assert job["salary_max"] == 1200000
    assert job["company"]["name"] == "Acme Corp"
    assert job["posted_by"] == "rec-jobs"

    unfiltered = client.get("/jobs", headers=student)
    assert unfiltered.status_code == 200, unfiltered.text
    assert job["id"] in {j["id"] for j in unfiltered.json()["jobs"]}

    full_time = client.get("/jobs", params={"type": "full-time"}, headers=student)
    assert full_time.status_code == 200, full_time.text
    assert job["id"] in {j["id"] for j in full_time.json()["jobs"]}

    internships = client.get("/jobs", params={"type": "internship"}, headers=student)
    assert job["id"] not in {j["id"] for j in internships.json()["jobs"]}

    everything = client.get("/jobs", params={"type": "all"}, headers=student)
    assert job["id"] in {j["id"] for j in everything.json()["jobs"]}


def test_post_job_defaults_and_validation(client):
    recruiter = _recruiter(client)

    r = _post_job(client, recruiter, type=None)
    assert r.status_code == 201, r.text
    assert r.json()["type"] == "full-time"

    assert _post_job(client, recruiter, salary_min=900000, salary_max=100).status_code == 400
    assert _post_job(client, recruiter, type="gig").status_code == 400
    assert _post_job(client, recruiter, title="").status_code == 400
    past = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    assert _post_job(client, recruiter, deadline=past).status_code == 400


def test_only_recruiters_with_company_post_jobs(client):
    student = _login(client, "stu-nopost", "student")
    assert _post_job(client, student).status_code == 403

    no_company = _login(client, "rec-nocompany", "recruiter")
    r = _post_job(client, no_company)
    assert r.status_code == 400, r.text


def test_recruiters_share_company_by_name(client, db_session):
    first = _recruiter(client, "rec-one")
    second = _recruiter(client, "rec-two")

    a = _post_job(client, first).json()
    b = _post_job(client, second).json()
    assert a["company_id"] == b["company_id"]


def test_apply_once_per_job(client, db_session):
    recruiter = _recruiter(client)
    student = _login(client, "stu-apply", "student")
    job_id = _post_job(client, recruiter).json()["id"]

    r = client.post("/applications", json={"job_id": job_id, "cover_letter": "Hi"}, headers=student)
    assert r.status_code == 201, r.text
    assert r.json()["status"] == "pending"
    assert r.json()["job"]["title"] == "Backend Engineer"

    r = client.post("/applications", json={"job_id": job_id}, headers=student)
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "Already applied to this job"

    assert db_session.query(JobApplication).filter(JobApplication.job_id == job_id).count() == 1


def test_duplicate_application_rejected_by_store(client, db_session):
    recruiter = _recruiter(client)
    _login(client, "stu-race", "student")
    job_id = _post_job(client, recruiter).json()["id"]
    student_id = db_session.query(StudentProfile.id).filter(StudentProfile.profile_id == "stu-race").scalar()

    db_session.add(JobApplication(student_id=student_id, job_id=job_id, status="pending"))
    db_session.commit()

    db_session.add(JobApplication(student_id=student_id, job_id=job_id, status="pending"))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_apply_error_cases(client, db_session):
    recruiter = _recruiter(client)
    student = _login(client, "stu-errs", "student")
    job_id = _post_job(client, recruiter).json()["id"]

    assert client.post("/applications", json={"job_id": 999999}, headers=student).status_code == 404
    assert client.post("/applications", json={}, headers=student).status_code == 400

    r = client.patch(f"/jobs/{job_id}", json={"status": "closed"}, headers=recruiter)
    assert r.status_code == 200, r.text
    assert client.post("/applications", json={"job_id": job_id}, headers=student).status_code == 400

    # Role allows it, but there is no student row yet.
    token = create_session_token("stu-unbooted", email="stu-unbooted@example.com", role="student")
    r = client.post("/applications", json={"job_id": job_id}, headers=_auth_headers(token))
    assert r.status_code == 404, r.text

    assert client.post("/applications", json={"job_id": job_id}, headers=recruiter).status_code == 403


def test_closed_jobs_leave_the_listing(client):
    recruiter = _recruiter(client)
    student = _login(client, "stu-closed-list", "student")
    job_id = _post_job(client, recruiter).json()["id"]

    client.patch(f"/jobs/{job_id}", json={"status": "closed"}, headers=recruiter)
    assert job_id not in {j["id"] for j in client.get("/jobs", headers=student).json()["jobs"]}

    other = _recruiter(client, "rec-intruder")
    assert client.patch(f"/jobs/{job_id}", json={"status": "active"}, headers=other).status_code == 403


def test_listing_marks_applied_jobs(client):
    recruiter = _recruiter(client)
    student = _login(client, "stu-mark", "student")
    applied_id = _post_job(client, recruiter, title="Data Engineer").json()["id"]
    other_id = _post_job(client, recruiter, title="Platform Engineer").json()["id"]
    client.post("/applications", json={"job_id": applied_id}, headers=student)

    jobs = {j["id"]: j for j in client.get("/jobs", headers=student).json()["jobs"]}
    assert jobs[applied_id]["has_applied"] is True
    assert jobs[applied_id]["applications"][0]["status"] == "pending"
    assert jobs[other_id]["has_applied"] is False
    assert jobs[other_id]["applications"] == []


def test_job_listing_pagination(client):
    recruiter = _recruiter(client)
    student = _login(client, "stu-pages", "student")
    for i in range(5):
        _post_job(client, recruiter, title=f"Role {i}", type="internship")

    r = client.get("/jobs", params={"type": "internship", "page": 2, "limit": 2}, headers=student)
    assert r.status_code == 200, r.text
    data = r.json()
    assert [j["title"] for j in data["jobs"]] == ["Role 2", "Role 1"]
    assert data["pagination"] == {"total": 5, "page": 2, "limit": 2, "totalPages": 3}

    assert client.get("/jobs", params={"limit": 0}, headers=student).status_code == 400
    assert client.get("/jobs", params={"page": "x"}, headers=student).status_code == 400


def test_student_lists_own_applications(client):
    recruiter = _recruiter(client)
    student = _login(client, "stu-mine", "student")
    other = _login(client, "stu-notmine", "student")

    job_ids = [_post_job(client, recruiter, title=f"Job {i}").json()["id"] for i in range(3)]
    for job_id in job_ids:
        client.post("/applications", json={"job_id": job_id}, headers=student)
    client.post("/applications", json={"job_id": job_ids[0]}, headers=other)

    r = client.get("/applications", params={"limit": 2}, headers=student)
    assert r.status_code == 200, r.text
    data = r.json()
    assert len(data["applications"]) == 2
    assert data["pagination"]["total"] == 3
    assert data["pagination"]["totalPages"] == 2
    assert data["applications"][0]["job"]["company"]["name"] == "Acme Corp"

    # Non-students simply have nothing to list.
    empty = client.get("/applications", headers=recruiter).json()
    assert empty["applications"] == []
    assert empty["pagination"]["total"] == 0


def test_recruiter_reviews_applications(client, db_session):
    recruiter = _recruiter(client)
    student = _login(client, "stu-review", "student", full_name="Meera")
    job_id = _post_job(client, recruiter).json()["id"]
    application_id = client.post("/applications", json={"job_id": job_id}, headers=student).json()["id"]

    r = client.get(f"/jobs/{job_id}/applications", headers=recruiter)
    assert r.status_code == 200, r.text
    applicants = r.json()["applications"]
    assert [a["student"]["full_name"] for a in applicants] == ["Meera"]

    r = client.patch(f"/applications/{application_id}", json={"status": "interviewing"}, headers=recruiter)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "interviewing"

    assert client.patch(f"/applications/{application_id}", json={"status": "hired"}, headers=recruiter).status_code == 400
    assert client.patch(f"/applications/{application_id}", json={"status": "approved"}, headers=student).status_code == 403

    other = _recruiter(client, "rec-other-review")
    assert client.get(f"/jobs/{job_id}/applications", headers=other).status_code == 403
    assert client.patch(f"/applications/{application_id}", json={"status": "approved"}, headers=other).status_code == 403

    db_session.expire_all()
    assert db_session.get(JobApplication, application_id).status == "interviewing"
    assert db_session.get(JobPosting, job_id).status == "active"


def test_post_job_rejects_out_of_range_salary(client, db_session):
    recruiter = _recruiter(client)

    assert _post_job(client, recruiter, salary_min=10**20, salary_max=10**21).status_code == 400
    assert _post_job(client, recruiter, salary_max=10**20).status_code == 400
    assert db_session.query(JobPosting).count() == 0


def test_job_status_failure_returns_envelope_and_keeps_status(client, db_session, monkeypatch):
    from sqlalchemy.exc import SQLAlchemyError
    from sqlalchemy.orm import Session

    recruiter = _recruiter(client)
    job_id = _post_job(client, recruiter).json()["id"]

    def _fail_commit(self):
        raise SQLAlchemyError("disk full")

    with monkeypatch.context() as patched:
        patched.setattr(Session, "commit", _fail_commit)
        r = client.patch(f"/jobs/{job_id}", json={"status": "closed"}, headers=recruiter)
        assert r.status_code == 500, r.text
        assert r.json()["success"] is False

    db_session.expire_all()
    assert db_session.get(JobPosting, job_id).status == "active"
