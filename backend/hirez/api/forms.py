import json
import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.application import Application
from ..models.form import Form
from ..schemas.fields import FIXED_FIELDS, FormField
from ..utils.dependencies import get_current_user, get_optional_user
from ..utils.error_handlers import (
    ForbiddenError,
    NotFoundError,
    ValidationError,
    get_error_message,
)
from ..utils.roles import AUTHOR_ROLES, author_only
from ..utils.validation import validate_integer_field, validate_string_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/forms", tags=["Forms"])

HIRING_DOMAINS = {"tech", "sales", "non-tech"}


class FormCreate(BaseModel):
    title: str | None = None
    job_description: str | None = None
    fields: list[dict[str, Any]] | None = None
    hiring_domain: str | None = None


class ActiveFlagUpdate(BaseModel):
    active: bool


class JobDescriptionUpdate(BaseModel):
    job_description: str | None = None


def _iso(value) -> str | None:
    return value.isoformat() if isinstance(value, datetime) else value


def _load_fields(form: Form) -> list[dict]:
    try:
        data = json.loads(form.fields_json or "[]")
    except json.JSONDecodeError:
        logger.warning("Form %s has unreadable fields_json", form.id)
        return []
    return data if isinstance(data, list) else []


def _form_to_public(form: Form, *, applications_count: int | None = None) -> dict:
    out = {
        "id": form.id,
        "title": form.title,
        "job_description": form.job_description,
        "fields": _load_fields(form),
        "hiring_domain": form.hiring_domain,
        "active": bool(form.active),
        "user_id": form.user_id,
        "created_at": _iso(form.created_at),
        "updated_at": _iso(form.updated_at),
    }
    if applications_count is not None:
        out["applications_count"] = int(applications_count)
    return out


def normalize_fields(raw_fields: list[dict[str, Any]] | None) -> list[FormField]:
    """
    Validate field definitions and prepend any fixed field the author left out.
    Field ids must be unique within the form.
    """
    if not raw_fields:
        raise ValidationError(get_error_message("invalid_form_data"))

    fields: list[FormField] = []
    for i, raw in enumerate(raw_fields):
        try:
            fields.append(FormField.model_validate(raw))
        except SchemaError as e:
            first = e.errors()[0] if e.errors() else {}
            raise ValidationError(f"Field {i + 1} is invalid: {first.get('msg', 'bad shape')}")

    present = {f.id for f in fields}
    missing_fixed = [f.model_copy() for f in FIXED_FIELDS if f.id not in present]
    fields = missing_fixed + fields

    seen: set[str] = set()
    for f in fields:
        if f.id in seen:
            raise ValidationError(f"Duplicate field id: {f.id}")
        seen.add(f.id)
    return fields


def _get_form(db: Session, form_id: Any) -> Form:
    fid = validate_integer_field(form_id, "Form ID", min_value=1)
    form = db.query(Form).filter(Form.id == fid).first()
    if not form:
        raise NotFoundError(get_error_message("form_not_found"))
    return form


def _owned_form(db: Session, form_id: Any, user: dict) -> Form:
    form = _get_form(db, form_id)
    if form.user_id != int(user.get("sub")):
        raise ForbiddenError(get_error_message("not_owner"))
    return form


def _application_counts(db: Session, form_ids: list[int]) -> dict[int, int]:
    if not form_ids:
        return {}
    rows = (
        db.query(Application.form_id, func.count(Application.id))
        .filter(Application.form_id.in_(form_ids))
        .group_by(Application.form_id)
        .all()
    )
    return {int(fid): int(n) for fid, n in rows}


@router.post("", status_code=201)
def create_form(
    payload: FormCreate,
    db: Session = Depends(get_db),
    user=Depends(author_only),
):
    title = validate_string_field(payload.title, "Title", min_length=1, max_length=150)
    job_description = validate_string_field(
        payload.job_description, "Job description", min_length=1, max_length=50000
    )
    fields = normalize_fields(payload.fields)

    hiring_domain = (payload.hiring_domain or "").strip().lower() or None
    if hiring_domain and hiring_domain not in HIRING_DOMAINS:
        raise ValidationError(f"Invalid hiring domain. Must be one of: {', '.join(sorted(HIRING_DOMAINS))}")

    form = Form(
        user_id=int(user.get("sub")),
        title=title,
        job_description=job_description,
        fields_json=json.dumps([f.model_dump(mode="json") for f in fields], ensure_ascii=False),
        hiring_domain=hiring_domain,
        active=True,
    )
    try:
        db.add(form)
        db.commit()
        db.refresh(form)
    except Exception:
        db.rollback()
        raise

    logger.info("Form created id=%s by user=%s", form.id, form.user_id)
    return _form_to_public(form, applications_count=0)


@router.get("")
def list_forms(
    db: Session = Depends(get_db),
    user=Depends(get_optional_user),
):
    q = db.query(Form)
    if user and str(user.get("role") or "").lower() in AUTHOR_ROLES:
        q = q.filter(Form.user_id == int(user.get("sub")))
    else:
        # Candidates and anonymous visitors only see open positions.
        q = q.filter(Form.active.is_(True))

    forms = q.order_by(Form.created_at.desc(), Form.id.desc()).all()
    counts = _application_counts(db, [f.id for f in forms])
    return [_form_to_public(f, applications_count=counts.get(f.id, 0)) for f in forms]


@router.get("/{form_id}")
def get_form(form_id: int, db: Session = Depends(get_db)):
    return _form_to_public(_get_form(db, form_id))


@router.patch("/{form_id}/active-flag")
def set_active_flag(
    form_id: int,
    payload: ActiveFlagUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    form = _owned_form(db, form_id, user)
    form.active = bool(payload.active)
    db.commit()
    db.refresh(form)
    logger.info("Form %s active=%s", form.id, form.active)
    return _form_to_public(form)


@router.patch("/{form_id}/job-description")
def update_job_description(
    form_id: int,
    payload: JobDescriptionUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    job_description = validate_string_field(
        payload.job_description, "Job description", min_length=1, max_length=50000
    )
    form = _owned_form(db, form_id, user)
    form.job_description = job_description
    db.commit()
    db.refresh(form)
    return _form_to_public(form)
