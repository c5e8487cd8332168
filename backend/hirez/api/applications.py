import json
import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..config import AISettings, Settings
from ..database import Database, get_database, get_db
from ..models.application import Application
from ..models.form import Form
from ..services.applications import (
    analyze_application,
    candidate_contact,
    get_application,
    load_responses,
    set_status,
    submit_application,
)
from ..services.emailer import Mailer
from ..services.resume_text import ResumeTextExtractor
from ..utils.dependencies import get_current_user, get_extractor, get_mailer, get_settings
from ..utils.error_handlers import ForbiddenError, ValidationError, get_error_message

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])


class ApplicationCreate(BaseModel):
    form_id: Any = Field(default=None, alias="formId")
    responses: Any = None
    resume_url: Any = Field(default=None, alias="resumeUrl")

    model_config = {"populate_by_name": True}


class StatusUpdate(BaseModel):
    status: Any = None


class NotifyRequest(BaseModel):
    calendar_link: str | None = None


def _json_list(raw: str | None) -> list:
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return []
    return data if isinstance(data, list) else []


def _iso(value) -> str | None:
    return value.isoformat() if isinstance(value, datetime) else value


def _application_to_public(a: Application) -> dict:
    name, email = candidate_contact(a)
    return {
        "id": a.id,
        "form_id": a.form_id,
        "form_title": a.form.title if a.form else None,
        "responses": load_responses(a),
        "resume_url": a.resume_url,
        "status": a.status,
        "candidate": {"name": name, "email": email},
        "match_score": a.match_score,
        "strengths": _json_list(a.strengths_json),
        "weaknesses": _json_list(a.weaknesses_json),
        "match_reasoning": a.match_reasoning,
        "analyzed_at": _iso(a.analyzed_at),
        "created_at": _iso(a.created_at),
        "updated_at": _iso(a.updated_at),
    }


def _owned_application(db: Session, application_id: int, user: dict) -> Application:
    application = get_application(db, application_id)
    if application.form is None or application.form.user_id != int(user.get("sub")):
        raise ForbiddenError(get_error_message("not_application_owner"))
    return application


async def _run_analysis_task(
    *,
    database: Database,
    application_id: int,
    extractor: ResumeTextExtractor,
    ai: AISettings,
) -> None:
    db = database.session()
    try:
        application = db.query(Application).filter(Application.id == application_id).first()
        if not application:
            return
        await analyze_application(db, application, extractor=extractor, ai=ai)
    except Exception as e:
        # Background step: the submission already succeeded, so only log.
        logger.exception("Analysis of application %s failed: %s", application_id, e)
    finally:
        db.close()


@router.post("", status_code=201)
def create_application(
    payload: ApplicationCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
    extractor: ResumeTextExtractor = Depends(get_extractor),
):
    application = submit_application(
        db,
        form_id=payload.form_id,
        responses=payload.responses,
        resume_location=payload.resume_url,
    )
    if settings.auto_analyze:
        background_tasks.add_task(
            _run_analysis_task,
            database=database,
            application_id=application.id,
            extractor=extractor,
            ai=settings.ai,
        )
    return _application_to_public(application)


@router.get("")
def list_applications(
    form_id: int | None = Query(default=None, alias="formId"),
    sort: str = Query(default="recent", description="recent | score"),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    q = db.query(Application).join(Form, Application.form_id == Form.id).filter(
        Form.user_id == int(user.get("sub"))
    )
    if form_id is not None:
        q = q.filter(Application.form_id == form_id)

    sort_norm = (sort or "recent").strip().lower()
    if sort_norm == "score":
        q = q.order_by(func.coalesce(Application.match_score, -1).desc(), Application.created_at.desc())
    elif sort_norm == "recent":
        q = q.order_by(Application.created_at.desc(), Application.id.desc())
    else:
        raise ValidationError("Invalid sort. Must be one of: recent, score")

    return [_application_to_public(a) for a in q.all()]


@router.get("/{application_id}")
def get_application_details(
    application_id: int,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return _application_to_public(_owned_application(db, application_id, user))


@router.patch("/{application_id}/status")
def update_status(
    application_id: int,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    _owned_application(db, application_id, user)
    application = set_status(db, application_id=application_id, new_status=payload.status)
    return _application_to_public(application)


@router.post("/{application_id}/analyze")
async def analyze(
    application_id: int,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    extractor: ResumeTextExtractor = Depends(get_extractor),
    user=Depends(get_current_user),
):
    application = _owned_application(db, application_id, user)
    application = await analyze_application(db, application, extractor=extractor, ai=settings.ai)
    return _application_to_public(application)


@router.post("/{application_id}/notify")
def notify(
    application_id: int,
    payload: NotifyRequest | None = None,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    user=Depends(get_current_user),
):
    application = _owned_application(db, application_id, user)
    name, email = candidate_contact(application)
    if not email:
        raise ValidationError("Application has no candidate email address")

    applied_on = application.created_at.strftime("%B %d, %Y") if isinstance(application.created_at, datetime) else None
    sent = mailer.send_status_email(
        to_email=email,
        name=name or "Candidate",
        status=application.status,
        job_title=application.form.title if application.form else None,
        application_date=applied_on,
        calendar_link=payload.calendar_link if payload else None,
    )
    return {"success": True, "sent": sent, "status": application.status}


@router.post("/{application_id}/confirm")
def confirm(
    application_id: int,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """Send the candidate their submission confirmation. Called by the apply page after intake."""
    application = get_application(db, application_id)
    name, email = candidate_contact(application)
    if not email:
        raise ValidationError("Application has no candidate email address")

    mailer.send_submitted_email(
        to_email=email,
        name=name,
        job_title=application.form.title if application.form else None,
    )
    return {"success": True, "sent": True}
