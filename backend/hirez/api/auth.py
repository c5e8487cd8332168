import json
import logging

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import Settings
from ..database import get_db
from ..models.user import User
from ..services.emailer import Mailer
from ..utils.dependencies import SESSION_COOKIE, get_current_user, get_mailer, get_settings
from ..utils.error_handlers import (
    UnauthorizedError,
    ValidationError,
    get_error_message,
    handle_database_error,
)
from ..utils.jwt import ACCESS_TOKEN_EXPIRE_MINUTES, create_access_token
from ..utils.security import hash_password, verify_password
from ..utils.validation import validate_email, validate_password, validate_role, validate_string_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

COOKIE_MAX_AGE_S = ACCESS_TOKEN_EXPIRE_MINUTES * 60


class SignupRequest(BaseModel):
    email: str
    password: str
    role: str | None = None  # admin (default) / owner
    first_name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None
    company_name: str | None = None
    company_website: str | None = None
    industry: str | None = None
    company_size: str | None = None
    job_title: str | None = None
    department: str | None = None
    recruitment_challenges: list[str] | None = None
    accept_terms: bool = False


class LoginRequest(BaseModel):
    email: str
    password: str


def _public_user(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "name": user.name,
        "company_name": user.company_name,
    }


def _optional(value: str | None, field_name: str, max_length: int) -> str | None:
    return validate_string_field(value, field_name, min_length=1, max_length=max_length, required=False)


@router.post("/signup", status_code=201)
def signup(payload: SignupRequest, db: Session = Depends(get_db)):
    email = validate_email(payload.email)
    validate_password(payload.password)
    role = validate_role(payload.role)

    first_name = _optional(payload.first_name, "First name", 100)
    last_name = _optional(payload.last_name, "Last name", 100)

    try:
        existing = db.query(User).filter(User.email == email).first()
    except SQLAlchemyError as e:
        raise handle_database_error(e, "checking existing user")
    if existing:
        raise ValidationError(get_error_message("email_exists"))

    user = User(
        email=email,
        password=hash_password(payload.password),
        role=role,
        first_name=first_name,
        last_name=last_name,
        # Kept for display; only set when both parts are known.
        name=f"{first_name} {last_name}" if first_name and last_name else None,
        phone_number=_optional(payload.phone_number, "Phone number", 50),
        company_name=_optional(payload.company_name, "Company name", 255),
        company_website=_optional(payload.company_website, "Company website", 255),
        industry=_optional(payload.industry, "Industry", 120),
        company_size=_optional(payload.company_size, "Company size", 50),
        job_title=_optional(payload.job_title, "Job title", 150),
        department=_optional(payload.department, "Department", 150),
        recruitment_challenges=json.dumps(payload.recruitment_challenges) if payload.recruitment_challenges else None,
        accepted_terms=bool(payload.accept_terms),
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "creating user")

    logger.info("Account created: %s", user.email)
    return {"message": "User created successfully", "user_id": user.id, "user": _public_user(user)}


@router.post("/login")
def login(
    payload: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    email = validate_email(payload.email)
    if not payload.password:
        raise ValidationError("Password is required")

    try:
        user = db.query(User).filter(User.email == email).first()
    except SQLAlchemyError as e:
        raise handle_database_error(e, "login")

    if not user or not verify_password(payload.password, user.password):
        logger.info("Failed login for %s", email)
        raise UnauthorizedError(get_error_message("invalid_credentials"))

    token = create_access_token({"sub": str(user.id), "role": user.role}, secret=settings.jwt_secret)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        max_age=COOKIE_MAX_AGE_S,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
        path="/",
    )

    logger.info("Login successful: %s", user.email)
    return {
        "user": _public_user(user),
        "access_token": token,
        "token_type": "bearer",
    }


@router.post("/logout")
def logout(response: Response, settings: Settings = Depends(get_settings)):
    response.delete_cookie(
        key=SESSION_COOKIE,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )
    return {"message": "Logged out successfully"}


@router.get("/me")
def me(db: Session = Depends(get_db), user=Depends(get_current_user)):
    account = db.query(User).filter(User.id == int(user["sub"])).first()
    if not account:
        raise UnauthorizedError(get_error_message("session_expired"))
    return {"user": _public_user(account)}


@router.post("/welcome-email")
def welcome_email(
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    user=Depends(get_current_user),
):
    """Send the welcome message to the signed-in account. The signup page calls this after the first login."""
    account = db.query(User).filter(User.id == int(user["sub"])).first()
    if not account:
        raise UnauthorizedError(get_error_message("session_expired"))

    mailer.send_welcome_email(to_email=account.email, name=account.name or account.first_name)
    return {"success": True, "sent": True}
