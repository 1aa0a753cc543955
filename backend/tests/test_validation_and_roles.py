"""
Validation, role table and error mapping tests.
Pure unit tests: no database, no HTTP.
"""
import os
from datetime import date, datetime, timezone

os.environ.setdefault("DISABLE_DOTENV", "1")

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from backend.app.utils.dates import as_utc, isoformat, parse_datetime
from backend.app.utils.dependencies import Caller, caller_from_claims
from backend.app.utils.error_handlers import (
    ConflictError,
    DatabaseError,
    ValidationError,
    get_error_message,
    handle_database_error,
)
from backend.app.utils.roles import DASHBOARD_PATHS, ROLE_PERMISSIONS, Role, can, redirect_url_for
from backend.app.utils.validation import (
    MAX_DB_INT,
    validate_choice,
    validate_integer_field,
    validate_pagination,
    validate_string_field,
    validate_string_list,
)


class TestStringValidation:
    def test_valid_string(self):
        assert validate_string_field("  hello  ", "Field") == "hello"

    def test_required_string_missing(self):
        with pytest.raises(ValidationError) as exc:
            validate_string_field(None, "Title")
        assert exc.value.status_code == 400
        assert "Title is required" in exc.value.message

    def test_blank_string(self):
        with pytest.raises(ValidationError):
            validate_string_field("   ", "Title")
        assert validate_string_field("   ", "Title", required=False) is None

    def test_length_bounds(self):
        with pytest.raises(ValidationError) as exc:
            validate_string_field("ab", "Title", min_length=3)
        assert "at least 3" in exc.value.message
        with pytest.raises(ValidationError) as exc:
            validate_string_field("a" * 11, "Title", max_length=10)
        assert "must not exceed 10" in exc.value.message

    def test_non_string(self):
        with pytest.raises(ValidationError):
            validate_string_field(42, "Title")


class TestIntegerValidation:
    def test_valid_integer(self):
        assert validate_integer_field(5, "Count") == 5
        assert validate_integer_field("10", "Count") == 10

    def test_rejects_bool(self):
        with pytest.raises(ValidationError):
            validate_integer_field(True, "Count")

    def test_bounds(self):
        with pytest.raises(ValidationError) as exc:
            validate_integer_field(0, "max_participants", min_value=1)
        assert "at least 1" in exc.value.message
        with pytest.raises(ValidationError):
            validate_integer_field(101, "limit", max_value=100)

    def test_out_of_store_range(self):
        assert validate_integer_field(MAX_DB_INT, "salary_max") == MAX_DB_INT
        with pytest.raises(ValidationError) as exc:
            validate_integer_field(MAX_DB_INT + 1, "salary_max", min_value=0)
        assert "out of range" in exc.value.message
        with pytest.raises(ValidationError):
            validate_integer_field(-(10**20), "credits")

    def test_optional(self):
        assert validate_integer_field(None, "Count", required=False) is None


class TestChoiceAndListValidation:
    def test_choice_normalises_case(self):
        assert validate_choice(" Approved ", "status", ("approved", "rejected")) == "approved"

    def test_choice_default(self):
        assert validate_choice(None, "type", ("full-time", "internship"), default="full-time") == "full-time"

    def test_choice_rejects_unknown(self):
        with pytest.raises(ValidationError) as exc:
            validate_choice("archived", "status", ("pending", "approved"))
        assert "pending, approved" in exc.value.message

    def test_string_list_dedupes(self):
        assert validate_string_list(["AWS", " aws ", "", "Cloud"], "Skill tags") == ["AWS", "Cloud"]
        assert validate_string_list(None, "Skill tags") == []

    def test_string_list_rejects_non_list(self):
        with pytest.raises(ValidationError):
            validate_string_list("AWS, Cloud", "Skill tags")

    def test_pagination_defaults(self):
        assert validate_pagination(None, None) == (1, 10)
        assert validate_pagination("3", "25") == (3, 25)
        with pytest.raises(ValidationError):
            validate_pagination(0, 10)


class TestRoles:
    def test_parse(self):
        assert Role.parse("student") is Role.STUDENT
        assert Role.parse("INSTITUTION_ADMIN") is Role.INSTITUTION_ADMIN
        assert Role.parse(None) is Role.STUDENT
        assert Role.parse("") is Role.STUDENT
        assert Role.parse("candidate") is None

    def test_every_role_has_dashboard_and_permissions(self):
        assert set(DASHBOARD_PATHS) == set(Role)
        assert set(ROLE_PERMISSIONS) == set(Role)

    def test_redirect_mapping(self):
        assert redirect_url_for(Role.STUDENT) == "/dashboard/student"
        assert redirect_url_for(Role.RECRUITER) == "/dashboard/recruiter"
        assert redirect_url_for(Role.FACULTY) == "/dashboard/faculty"
        assert redirect_url_for(Role.INSTITUTION_ADMIN) == "/dashboard/admin"
        assert redirect_url_for(None) == "/dashboard"

    def test_permissions(self):
        assert can(Role.STUDENT, "achievement:submit")
        assert not can(Role.STUDENT, "achievement:decide")
        assert can(Role.FACULTY, "achievement:decide")
        assert can(Role.FACULTY, "event:organize")
        assert can(Role.INSTITUTION_ADMIN, "event:organize")
        assert can(Role.RECRUITER, "job:post")
        assert not can(Role.FACULTY, "job:post")
        assert not can(None, "job:apply")
        assert can(Role.STUDENT, "portfolio:edit")
        assert can(Role.FACULTY, "mentee:manage")
        assert not can(Role.STUDENT, "mentee:manage")
        assert not can(Role.RECRUITER, "portfolio:edit")

    def test_caller_from_claims(self):
        caller = caller_from_claims(
            {"sub": "abc", "email": "a@example.com", "user_metadata": {"role": "recruiter", "name": "Ann"}}
        )
        assert caller.caller_id == "abc"
        assert caller.role is Role.RECRUITER
        assert caller.full_name == "Ann"
        assert Caller(caller_id="x").role is Role.STUDENT


class TestDates:
    def test_parse_plain_date(self):
        assert parse_datetime("2024-05-01") == datetime(2024, 5, 1, tzinfo=timezone.utc)

    def test_parse_zulu(self):
        assert parse_datetime("2024-05-01T10:30:00Z") == datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc)

    def test_parse_date_object(self):
        assert parse_datetime(date(2024, 5, 1)) == datetime(2024, 5, 1, tzinfo=timezone.utc)

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            parse_datetime("soon", "start_date")
        with pytest.raises(ValueError):
            parse_datetime(None, "start_date")

    def test_naive_is_utc(self):
        naive = datetime(2024, 1, 1, 12, 0)
        assert as_utc(naive).tzinfo is timezone.utc
        assert isoformat(naive) == "2024-01-01T12:00:00+00:00"
        assert isoformat(None) is None


class TestErrorHandlers:
    def test_get_error_message(self):
        assert get_error_message("already_applied") == "Already applied to this job"
        assert "Something went wrong" in get_error_message("no_such_key")

    def test_unique_violation_maps_to_conflict(self):
        error = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: job_applications.student_id"))
        mapped = handle_database_error(error, "creating application")
        assert isinstance(mapped, ConflictError)
        assert mapped.status_code == 409

    def test_foreign_key_violation_maps_to_validation(self):
        error = IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))
        mapped = handle_database_error(error, "creating event")
        assert isinstance(mapped, ValidationError)
        assert mapped.status_code == 400

    def test_other_errors_hide_driver_text(self):
        error = OperationalError("SELECT", {}, Exception("could not connect to server"))
        mapped = handle_database_error(error, "listing jobs")
        assert isinstance(mapped, DatabaseError)
        assert mapped.status_code == 500
        assert "could not connect" not in mapped.message
