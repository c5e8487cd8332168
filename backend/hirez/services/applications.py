import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from ..config import AISettings
from ..models.application import Application
from ..models.form import Form
from ..schemas.match import MatchResult
from ..utils.error_handlers import NotFoundError, ValidationError, get_error_message
from ..utils.validation import validate_application_status, validate_integer_field
from .resume_matcher import score_resume
from .resume_text import ResumeTextExtractor

logger = logging.getLogger(__name__)

# Keys that may hold the candidate's contact details: fixed field ids first, then labels.
_NAME_KEYS = ("fixed-name", "Full Name", "name", "fullName")
_EMAIL_KEYS = ("fixed-email", "Email Address", "email", "Email")


def _first_value(responses: Mapping[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = responses.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def candidate_contact(application: Application) -> tuple[str | None, str | None]:
    """(name, email) pulled from the submitted responses."""
    responses = load_responses(application)
    return _first_value(responses, _NAME_KEYS), _first_value(responses, _EMAIL_KEYS)


def load_responses(application: Application) -> dict[str, Any]:
    try:
        data = json.loads(application.responses_json or "{}")
    except json.JSONDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def get_application(db: Session, application_id: Any) -> Application:
    app_id = validate_integer_field(application_id, "Application ID", min_value=1)
    application = db.query(Application).filter(Application.id == app_id).first()
    if not application:
        raise NotFoundError(get_error_message("application_not_found"))
    return application


def submit_application(
    db: Session,
    *,
    form_id: Any,
    responses: Any,
    resume_location: Any,
) -> Application:
    """
    Persist a candidate's submission as a new `pending` application.

    Every call creates a new row; repeated submissions are not detected.
    """
    if not form_id or responses is None or not resume_location:
        raise ValidationError(get_error_message("missing_application_fields"))
    if not isinstance(responses, Mapping):
        raise ValidationError("Responses must be an object keyed by field")
    if not isinstance(resume_location, str):
        raise ValidationError("Resume URL must be a string")

    fid = validate_integer_field(form_id, "Form ID", min_value=1)
    form = db.query(Form).filter(Form.id == fid).first()
    if not form:
        raise NotFoundError(get_error_message("form_not_found"))

    application = Application(
        form_id=form.id,
        responses_json=json.dumps(dict(responses), ensure_ascii=False),
        resume_url=resume_location.strip(),
        status="pending",
    )
    try:
        db.add(application)
        db.commit()
        db.refresh(application)
    except Exception:
        db.rollback()
        raise

    logger.info("Application %s created for form %s", application.id, form.id)
    return application


def set_status(db: Session, *, application_id: Any, new_status: Any) -> Application:
    """
    Move an application to any of the four statuses.

    The status is validated before the row is loaded, so a bad value never mutates
    anything. There is no transition guard and no concurrency check: last write wins.
    """
    status = validate_application_status(new_status)
    application = get_application(db, application_id)

    previous = application.status
    application.status = status
    try:
        db.commit()
        db.refresh(application)
    except Exception:
        db.rollback()
        raise

    logger.info("Application %s status %s -> %s", application.id, previous, status)
    return application


def apply_match_result(db: Session, application: Application, *, resume_text: str, result: MatchResult) -> Application:
    application.parsed_resume_text = resume_text
    application.match_score = float(result.match_score)
    application.strengths_json = json.dumps(result.strengths, ensure_ascii=False)
    application.weaknesses_json = json.dumps(result.weaknesses, ensure_ascii=False)
    application.match_reasoning = result.reasoning
    application.analyzed_at = datetime.now(timezone.utc)
    try:
        db.commit()
        db.refresh(application)
    except Exception:
        db.rollback()
        raise
    return application


async def analyze_application(
    db: Session,
    application: Application,
    *,
    extractor: ResumeTextExtractor,
    ai: AISettings,
) -> Application:
    """
    Extract the resume text, score it against the form's job description and store
    the result on the application.

    Extraction failures propagate (ExtractionError); the match step never fails.
    """
    form = application.form
    if form is None:
        raise NotFoundError(get_error_message("form_not_found"))

    resume_text = await extractor.extract_text(application.resume_url)
    result = await score_resume(resume_text=resume_text, job_description=form.job_description or "", ai=ai)
    apply_match_result(db, application, resume_text=resume_text, result=result)

    logger.info("Application %s analyzed: score=%s", application.id, application.match_score)
    return application
