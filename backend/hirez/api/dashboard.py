from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.application import Application
from ..models.form import Form
from ..utils.dependencies import get_current_user

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats")
def dashboard_stats(db: Session = Depends(get_db), user=Depends(get_current_user)):
    """Totals across the caller's own forms."""
    user_id = int(user.get("sub"))

    total_forms = db.query(func.count(Form.id)).filter(Form.user_id == user_id).scalar() or 0
    active_forms = (
        db.query(func.count(Form.id)).filter(Form.user_id == user_id, Form.active.is_(True)).scalar() or 0
    )

    by_status = dict(
        db.query(Application.status, func.count(Application.id))
        .join(Form, Application.form_id == Form.id)
        .filter(Form.user_id == user_id)
        .group_by(Application.status)
        .all()
    )

    return {
        "total_forms": int(total_forms),
        "active_forms": int(active_forms),
        "total_applications": int(sum(by_status.values())),
        "pending_reviews": int(by_status.get("pending", 0)),
        "shortlisted": int(by_status.get("shortlisted", 0)),
        "rejected": int(by_status.get("rejected", 0)),
    }
