"""
Centralized error handling and user-friendly error messages.
"""
import logging

from fastapi.responses import JSONResponse

from ..config import EXPOSE_ERROR_DETAILS

logger = logging.getLogger(__name__)


class AppError(Exception):
    """
    An expected failure with a client-safe message. The exception handlers turn
    it into `{"success": false, "error": message}` with `status_code`.
    """
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, status_code: int | None = None, details: dict | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid input"


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Unauthorized access"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Access forbidden"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(AppError):
    """The row exists but its current state rules the operation out (already decided, already applied)."""
    status_code = 409
    default_message = "Conflict"


class DatabaseError(AppError):
    default_message = "Database operation failed"


# User-friendly error messages
ERROR_MESSAGES = {
    # Authentication
    "unauthenticated": "User not authenticated",
    "session_expired": "Your session has expired. Please sign in again.",
    "invalid_token": "Invalid or expired session token",

    # Profiles
    "profile_not_found": "User profile not found. Please complete sign-in first.",
    "student_profile_not_found": "Student profile not found",
    "faculty_profile_not_found": "Faculty profile not found",
    "recruiter_profile_not_found": "Only recruiters can post jobs",
    "bootstrap_failed": "Failed to bootstrap user profile",
    "unsupported_role": "Unsupported role in user metadata",

    # Achievements
    "achievement_not_found": "Achievement not found",
    "achievement_missing_fields": "Missing required fields: categoryId, title, dateAchieved",
    "achievement_already_decided": "Achievement has already been reviewed",
    "invalid_decision": 'Invalid status. Must be "approved" or "rejected"',
    "credits_required": "Valid credits are required for approval",
    "rejection_reason_required": "Rejection reason is required",
    "no_approval_power": "You do not have permission to approve achievements",
    "unknown_category": "Unknown achievement category",

    # Events
    "event_not_found": "Event not found",
    "not_event_organizer": "Only the event organizer can update this event",
    "event_not_open": "This event is not open for registration",
    "event_full": "This event has reached its participant limit",
    "registration_closed": "Registration deadline has passed",
    "already_registered": "You are already registered for this event",

    # Jobs
    "job_not_found": "Job posting not found or has been removed.",
    "job_closed": "This job posting is no longer accepting applications.",
    "already_applied": "Already applied to this job",
    "application_not_found": "Application not found. It may have been withdrawn.",

    # Mentorship
    "mentee_exists": "This student is already your mentee",

    # General
    "unauthorized": "Please sign in to access this feature.",
    "forbidden": "You don't have permission to access this resource.",
    "not_found": "The requested resource was not found.",
    "server_error": "Something went wrong on our end. Please try again later.",
    "database_error": "Database connection issue. Please try again later.",
    "validation_error": "Please check your input and try again.",
}


def get_error_message(error_key: str, default: str | None = None) -> str:
    """Get a user-friendly error message."""
    return ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])


def handle_database_error(error: Exception, operation: str = "") -> AppError:
    """Map a store failure to an AppError; the raw driver text only reaches the log."""
    logger.error(f"Database error during {operation}: {error}")

    error_str = str(error).lower()
    details = {"operation": operation, "cause": str(error)} if EXPOSE_ERROR_DETAILS else None

    if "duplicate" in error_str or "unique" in error_str:
        return ConflictError("This record already exists. Please check your input.", details=details)

    if "foreign key" in error_str:
        return ValidationError("Invalid reference. The related record may have been deleted.", details=details)

    if "connection" in error_str or "operational" in error_str:
        return DatabaseError(get_error_message("database_error"), details=details)

    return DatabaseError(get_error_message("server_error"), details=details)


def create_error_response(
    status_code: int,
    message: str,
    details: dict | None = None
) -> JSONResponse:
    """Create a standardized error response."""
    content = {
        "success": False,
        "error": message,
    }

    if details:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content
    )


def register_exception_handlers(app) -> None:
    """Every failure leaves the API as `{"success": false, "error": "..."}`."""
    from fastapi import HTTPException, Request
    from fastapi.exceptions import RequestValidationError
    from sqlalchemy.exc import OperationalError, SQLAlchemyError

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return create_error_response(exc.status_code, exc.message, exc.details or None)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTPException with user-friendly messages."""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": exc.detail,
                "status_code": exc.status_code,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else get_error_message("validation_error")
        return create_error_response(400, message)

    @app.exception_handler(OperationalError)
    async def sqlalchemy_operational_error_handler(request: Request, exc: OperationalError):
        """Handle database operational errors."""
        logger.exception("Database OperationalError: %s", exc)
        return create_error_response(503, get_error_message("database_error"))

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
        """Handle general database errors."""
        logger.exception("Database SQLAlchemyError: %s", exc)
        return create_error_response(500, get_error_message("database_error"))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors globally."""
        logger.exception("Unhandled exception: %s", exc)
        return create_error_response(500, get_error_message("server_error"))
