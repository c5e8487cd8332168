"""
Centralized error handling and user-friendly error messages.
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error."""
    def __init__(self, message: str, status_code: int = 500, details: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing required input."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)


class NotFoundError(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Resource not found", details: dict | None = None):
        super().__init__(message, status_code=404, details=details)


class AuthorizationError(AppError):
    """Session absent or role/ownership mismatch."""
    def __init__(self, message: str = "Unauthorized access", status_code: int = 401, details: dict | None = None):
        super().__init__(message, status_code=status_code, details=details)


class UnauthorizedError(AuthorizationError):
    def __init__(self, message: str = "Unauthorized access", details: dict | None = None):
        super().__init__(message, status_code=401, details=details)


class ForbiddenError(AuthorizationError):
    def __init__(self, message: str = "Access forbidden", details: dict | None = None):
        super().__init__(message, status_code=403, details=details)


class UpstreamError(AppError):
    """A storage, extraction or model collaborator failed."""
    def __init__(self, message: str = "Upstream service failed", details: dict | None = None):
        super().__init__(message, status_code=502, details=details)


class UploadError(UpstreamError):
    """Signed upload URL could not be issued."""


class ExtractionError(UpstreamError):
    """Resume text could not be extracted."""


class ConfigurationError(AppError):
    """Required environment configuration is missing."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=500, details=details)


# User-friendly error messages
ERROR_MESSAGES = {
    # Authentication
    "invalid_credentials": "Invalid credentials",
    "email_exists": "An account with this email already exists. Please login instead.",
    "weak_password": "Password must be at least 6 characters long.",
    "session_expired": "Your session has expired. Please login again.",

    # Uploads / extraction
    "invalid_file_type": "A file type is required to request an upload URL.",
    "upload_failed": "Could not prepare the file upload. Please try again.",
    "extraction_failed": "Could not read the resume file. Please make sure it is a valid document.",

    # AI services
    "ai_unavailable": "AI assistance is temporarily unavailable. Please try again in a few moments.",

    # Forms
    "form_not_found": "Job form not found",
    "invalid_form_data": "Missing required fields",

    # Applications
    "application_not_found": "Application not found",
    "missing_application_fields": "Missing required fields",

    # General
    "unauthorized": "Unauthorized",
    "forbidden": "Forbidden: Admins only",
    "not_owner": "You can only modify your own forms",
    "not_application_owner": "You can only access applications on your own forms",
    "not_found": "The requested resource was not found.",
    "server_error": "Internal server error",
    "database_error": "Database connection issue. Please try again later.",
    "validation_error": "Please check your input and try again.",
}


def get_error_message(error_key: str, default: str | None = None) -> str:
    """Get a user-friendly error message."""
    return ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])


def handle_database_error(error: Exception, operation: str = "") -> AppError:
    """Map a database failure to an AppError with a user-friendly message."""
    logger.error("Database error during %s: %s", operation, error)

    error_str = str(error).lower()

    if "duplicate" in error_str or "unique" in error_str:
        return AppError("This record already exists. Please check your input.", status_code=409)

    if "foreign key" in error_str:
        return ValidationError("Invalid reference. The related record may have been deleted.")

    if "connection" in error_str or "operational" in error_str:
        return AppError(get_error_message("database_error"), status_code=503)

    return AppError(get_error_message("server_error"), status_code=500)


def create_error_response(
    status_code: int,
    message: str,
    details: dict | None = None
) -> JSONResponse:
    """Create a standardized error response."""
    content = {
        "success": False,
        "error": message,
        "status_code": status_code,
    }

    if details:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
        return create_error_response(exc.status_code, exc.message, exc.details)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return create_error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{loc}: {first.get('msg')}" if loc else get_error_message("validation_error")
        return create_error_response(400, message)

    @app.exception_handler(OperationalError)
    async def sqlalchemy_operational_error_handler(request: Request, exc: OperationalError):
        logger.exception("Database OperationalError: %s", exc)
        return create_error_response(503, get_error_message("database_error"))

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database SQLAlchemyError: %s", exc)
        return create_error_response(500, get_error_message("database_error"))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return create_error_response(500, get_error_message("server_error"))
