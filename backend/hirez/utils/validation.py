"""
Validation utilities for input validation and error handling.
"""
import re
from typing import Any

from .error_handlers import ValidationError

APPLICATION_STATUSES = ("pending", "reviewed", "shortlisted", "rejected")
ROLES = ("admin", "owner")


def validate_email(email: str) -> str:
    """Validate email format."""
    if not email or not isinstance(email, str):
        raise ValidationError("Email is required")

    email = email.strip().lower()
    if len(email) > 255:
        raise ValidationError("Email too long (max 255 characters)")

    # Basic email regex
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    if not re.match(pattern, email):
        raise ValidationError("Invalid email format")

    return email


def validate_password(password: str) -> None:
    """Validate password strength."""
    if not password or not isinstance(password, str):
        raise ValidationError("Password is required")

    if len(password) < 6:
        raise ValidationError("Password must be at least 6 characters")

    if len(password) > 128:
        raise ValidationError("Password too long (max 128 characters)")


def validate_string_field(
    value: Any,
    field_name: str,
    min_length: int = 1,
    max_length: int = 1000,
    required: bool = True,
    pattern: str | None = None,
) -> str | None:
    """Validate a string field with common rules."""
    if value is None:
        if required:
            raise ValidationError(f"{field_name} is required")
        return None

    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")

    value = value.strip()

    if required and not value:
        raise ValidationError(f"{field_name} cannot be empty")

    if not required and not value:
        return None

    if len(value) < min_length:
        raise ValidationError(f"{field_name} must be at least {min_length} characters")

    if len(value) > max_length:
        raise ValidationError(f"{field_name} must not exceed {max_length} characters")

    if pattern and not re.match(pattern, value):
        raise ValidationError(f"{field_name} format is invalid")

    return value


def validate_integer_field(
    value: Any,
    field_name: str,
    min_value: int | None = None,
    max_value: int | None = None,
    required: bool = True,
) -> int | None:
    """Validate an integer field."""
    if value is None:
        if required:
            raise ValidationError(f"{field_name} is required")
        return None

    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a valid integer")

    if not isinstance(value, int):
        try:
            value = int(value)
        except (ValueError, TypeError):
            raise ValidationError(f"{field_name} must be a valid integer")

    if min_value is not None and value < min_value:
        raise ValidationError(f"{field_name} must be at least {min_value}")

    if max_value is not None and value > max_value:
        raise ValidationError(f"{field_name} must not exceed {max_value}")

    return value


def validate_role(role: str | None) -> str:
    """Validate account role; signups default to admin."""
    if role is None:
        return "admin"
    if not isinstance(role, str):
        raise ValidationError("Role must be a string")

    role = role.strip().lower() or "admin"
    if role not in ROLES:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(ROLES)}")

    return role


def validate_application_status(status: Any) -> str:
    """Validate an application lifecycle status."""
    if not status or not isinstance(status, str):
        raise ValidationError("Status is required")

    status = status.strip().lower()
    if status not in APPLICATION_STATUSES:
        raise ValidationError(
            f"Invalid status. Must be one of: {', '.join(APPLICATION_STATUSES)}"
        )

    return status
