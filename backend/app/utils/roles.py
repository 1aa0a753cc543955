from enum import Enum

from fastapi import Depends

from .dependencies import Caller, get_current_caller
from .error_handlers import ForbiddenError


class Role(str, Enum):
    STUDENT = "student"
    FACULTY = "faculty"
    RECRUITER = "recruiter"
    INSTITUTION_ADMIN = "institution_admin"

    @classmethod
    def parse(cls, raw) -> "Role | None":
        """Missing role defaults to student; anything unrecognised is None."""
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return cls.STUDENT
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return None


DASHBOARD_PATHS = {
    Role.STUDENT: "/dashboard/student",
    Role.RECRUITER: "/dashboard/recruiter",
    Role.FACULTY: "/dashboard/faculty",
    Role.INSTITUTION_ADMIN: "/dashboard/admin",
}


def redirect_url_for(role: Role | None) -> str:
    return DASHBOARD_PATHS.get(role, "/dashboard") if role is not None else "/dashboard"


# Operation names used by role_required(); each role lists everything it may call.
ROLE_PERMISSIONS: dict[Role, frozenset[str]] = {
    Role.STUDENT: frozenset({
        "achievement:submit",
        "event:register",
        "job:apply",
        "application:list",
        "profile:student",
        "portfolio:edit",
    }),
    Role.FACULTY: frozenset({
        "achievement:decide",
        "event:organize",
        "profile:faculty",
        "mentee:manage",
    }),
    Role.RECRUITER: frozenset({
        "job:post",
        "application:review",
    }),
    Role.INSTITUTION_ADMIN: frozenset({
        "event:organize",
        "faculty:manage",
    }),
}


def can(role: Role | None, operation: str) -> bool:
    return role is not None and operation in ROLE_PERMISSIONS[role]


def role_required(operation: str):
    def check_role(caller: Caller = Depends(get_current_caller)) -> Caller:
        if not can(caller.role, operation):
            raise ForbiddenError(f"Your role does not allow {operation.replace(':', ' ')}")
        return caller
    return check_role
