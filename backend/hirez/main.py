import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session

from .api import ai as ai_api
from .api import applications as applications_api
from .api import auth as auth_api
from .api import dashboard as dashboard_api
from .api import forms as forms_api
from .api import uploads as uploads_api
from .config import Settings
from .database import Database, get_db
from .services.emailer import Mailer
from .services.resume_text import ResumeTextExtractor
from .services.storage import StorageGateway
from .utils.error_handlers import register_exception_handlers

logger = logging.getLogger(__name__)

_default_origins = ["http://localhost:5173", "http://127.0.0.1:5173", "http://localhost:3000"]


def create_app(
    settings: Settings | None = None,
    *,
    storage: StorageGateway | None = None,
    extractor: ResumeTextExtractor | None = None,
    mailer: Mailer | None = None,
) -> FastAPI:
    """
    Build the HTTP application.

    Every client object is constructed here once and parked on `app.state`; routers
    reach them through the dependencies in `utils.dependencies`. Missing object storage
    credentials raise ConfigurationError, so a misconfigured process never starts.
    A missing model key only switches the AI features to their fallbacks.

    Run with: uvicorn backend.hirez.main:create_app --factory
    """
    settings = settings or Settings.from_env()
    logging.getLogger("backend.hirez").setLevel(settings.log_level or "INFO")

    database = Database(settings.database_url)
    database.create_all()

    app = FastAPI(title="HirezApp API")
    app.state.settings = settings
    app.state.database = database
    app.state.storage = storage or StorageGateway(settings.storage)
    app.state.extractor = extractor or ResumeTextExtractor(
        endpoint=settings.resume_extraction_url,
        bucket=settings.storage.bucket,
    )
    app.state.mailer = mailer or Mailer(settings.mail)

    if not settings.ai.enabled:
        logger.warning("OPENROUTER_API_KEY is not set; AI features will use fallbacks")
    if not settings.mail.configured:
        logger.warning("SMTP is not configured; status emails will fail to send")

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[*_default_origins, *settings.frontend_origins],
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_api.router)
    app.include_router(forms_api.router)
    app.include_router(applications_api.router)
    app.include_router(ai_api.router)
    app.include_router(uploads_api.router)
    app.include_router(dashboard_api.router)

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "Backend running", "service": "HirezApp API"}

    @app.get("/db/health")
    def db_health(db: Session = Depends(get_db)):
        db.execute(text("SELECT 1"))
        return {"status": "ok", "dialect": database.engine.dialect.name}

    @app.on_event("shutdown")
    def on_shutdown() -> None:
        database.dispose()

    logger.info("HirezApp API ready (db=%s)", database.engine.dialect.name)
    return app
