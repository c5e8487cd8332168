import pytest

from backend.hirez.utils.error_handlers import ValidationError
from backend.hirez.utils.validation import (
    validate_application_status,
    validate_email,
    validate_integer_field,
    validate_password,
    validate_role,
    validate_string_field,
)


def test_validate_email():
    assert validate_email("  Ada@Example.COM ") == "ada@example.com"
    for bad in ("", "not-an-email", "a@b", None):
        with pytest.raises(ValidationError):
            validate_email(bad)


def test_validate_password_bounds():
    validate_password("secret")
    with pytest.raises(ValidationError):
        validate_password("12345")
    with pytest.raises(ValidationError):
        validate_password("x" * 129)


def test_validate_string_field_optional():
    assert validate_string_field("  ", "Notes", required=False) is None
    assert validate_string_field(" ok ", "Notes") == "ok"
    with pytest.raises(ValidationError):
        validate_string_field(None, "Title")
    with pytest.raises(ValidationError):
        validate_string_field("x" * 11, "Title", max_length=10)


def test_validate_integer_field():
    assert validate_integer_field("7", "Form ID", min_value=1) == 7
    for bad in (True, "abc", 0):
        with pytest.raises(ValidationError):
            validate_integer_field(bad, "Form ID", min_value=1)


def test_validate_role_defaults_to_admin():
    assert validate_role(None) == "admin"
    assert validate_role(" Owner ") == "owner"
    with pytest.raises(ValidationError):
        validate_role("recruiter")


@pytest.mark.parametrize("status", ["pending", "reviewed", "shortlisted", "rejected", " Shortlisted "])
def test_valid_statuses(status):
    assert validate_application_status(status) == status.strip().lower()


@pytest.mark.parametrize("status", ["hired", "", None, 1, "interview"])
def test_invalid_statuses(status):
    with pytest.raises(ValidationError):
        validate_application_status(status)
