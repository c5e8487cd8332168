import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Override=True so changes in backend/.env take effect on process reload (and not get
# stuck on old environment variables).
#
# For automated tests (SQLite), we need to prevent backend/.env from overriding the
# test DATABASE_URL. Set DISABLE_DOTENV=1 to skip loading .env.
if os.getenv("DISABLE_DOTENV") != "1":
    load_dotenv(override=True)

# Default to a local SQLite DB for dev so the backend can start out-of-the-box.
# Use an absolute path so it works regardless of current working directory.
_default_sqlite_path = (Path(__file__).resolve().parent.parent / "dev.db").as_posix()

_TRUTHY = {"1", "true", "yes", "y", "on"}


def _env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_bool(name: str, default: str = "0") -> bool:
    return (os.getenv(name, default) or default).strip().lower() in _TRUTHY


def _env_float(name: str) -> float | None:
    raw = _env_str(name)
    if not raw:
        return None
    return float(raw)


@dataclass(frozen=True)
class StorageSettings:
    region: str = ""
    bucket: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    # Signed upload URLs stay valid for an hour.
    upload_url_expires_s: int = 3600

    @property
    def configured(self) -> bool:
        return bool(self.region and self.bucket and self.access_key_id and self.secret_access_key)


@dataclass(frozen=True)
class AISettings:
    api_key: str = ""
    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "google/gemini-2.0-flash-001"
    # None means "no timeout": hosted model calls may block until the remote answers.
    timeout_s: float | None = None
    log_payloads: bool = False
    match_provider: str = "openrouter"  # openrouter | legacy
    legacy_match_url: str = ""
    legacy_timeout_s: float = 20.0

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class MailSettings:
    host: str = ""
    port: int = 465
    user: str = ""
    password: str = ""
    mail_from: str = ""
    use_ssl: bool = True

    @property
    def configured(self) -> bool:
        return bool(self.host and self.user and self.password and self.mail_from)


@dataclass(frozen=True)
class Settings:
    """
    Process-wide configuration, built once by the app factory and handed to every
    component that needs it (database, storage gateway, extractor, AI services, mailer).
    """

    database_url: str = f"sqlite:///{_default_sqlite_path}"
    jwt_secret: str = "dev_secret_change_me"
    cookie_secure: bool = False
    auto_analyze: bool = True
    resume_extraction_url: str = ""
    frontend_origins: tuple[str, ...] = ()
    log_level: str = "INFO"
    storage: StorageSettings = field(default_factory=StorageSettings)
    ai: AISettings = field(default_factory=AISettings)
    mail: MailSettings = field(default_factory=MailSettings)

    @classmethod
    def from_env(cls) -> "Settings":
        raw_database_url = _env_str("DATABASE_URL")
        origins = tuple(o.strip() for o in _env_str("FRONTEND_ORIGINS").split(",") if o.strip())
        return cls(
            database_url=raw_database_url or f"sqlite:///{_default_sqlite_path}",
            # NOTE: keep a default for local dev so the server can boot even if JWT_SECRET isn't set.
            jwt_secret=_env_str("JWT_SECRET") or _env_str("SECRET_KEY", "dev_secret_change_me"),
            cookie_secure=_env_bool("COOKIE_SECURE", "0"),
            auto_analyze=_env_bool("AUTO_ANALYZE", "1"),
            resume_extraction_url=_env_str("RESUME_EXTRACTION_URL"),
            frontend_origins=origins,
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
            storage=StorageSettings(
                region=_env_str("AWS_REGION"),
                bucket=_env_str("AWS_BUCKET_NAME"),
                access_key_id=_env_str("AWS_ACCESS_KEY_ID"),
                secret_access_key=_env_str("AWS_SECRET_ACCESS_KEY"),
            ),
            ai=AISettings(
                api_key=_env_str("OPENROUTER_API_KEY"),
                base_url=_env_str("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"),
                model=_env_str("OPENROUTER_MODEL", "google/gemini-2.0-flash-001"),
                timeout_s=_env_float("AI_TIMEOUT_S"),
                log_payloads=_env_bool("AI_LOG_PAYLOADS", "0"),
                match_provider=_env_str("MATCH_PROVIDER", "openrouter").lower(),
                legacy_match_url=_env_str("LEGACY_MATCH_URL"),
            ),
            mail=MailSettings(
                host=_env_str("SMTP_HOST"),
                port=int(_env_str("SMTP_PORT", "465")),
                user=_env_str("SMTP_USER"),
                password=_env_str("SMTP_PASSWORD"),
                mail_from=_env_str("SMTP_FROM") or _env_str("SMTP_USER"),
                use_ssl=_env_bool("SMTP_SSL", "1"),
            ),
        )
