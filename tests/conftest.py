import os
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

# Keep a developer's backend/.env (real AWS/OpenRouter/SMTP keys) out of the test run.
os.environ["DISABLE_DOTENV"] = "1"


class FakeExtractor:
    """Stands in for the hosted text-extraction endpoint."""

    def __init__(self, text: str = "Python developer. FastAPI, SQL, AWS. 4 years building APIs."):
        self.text = text
        self.calls: list[str] = []

    async def extract_text(self, resume_location: str) -> str:
        self.calls.append(resume_location)
        return self.text


class FakeMailer:
    """Records outgoing emails instead of talking to SMTP."""

    def __init__(self):
        self.sent: list[dict] = []

    def send_status_email(self, *, to_email, name, status, job_title=None, application_date=None, calendar_link=None):
        from backend.hirez.services.emailer import STATUS_TEMPLATES

        if status not in STATUS_TEMPLATES:
            return False
        self.sent.append(
            {
                "to_email": to_email,
                "name": name,
                "status": status,
                "job_title": job_title,
                "calendar_link": calendar_link,
            }
        )
        return True

    def send_submitted_email(self, *, to_email, name, job_title):
        self.sent.append({"to_email": to_email, "name": name, "status": "submitted", "job_title": job_title})

    def send_welcome_email(self, *, to_email, name=None):
        self.sent.append({"to_email": to_email, "name": name, "status": "welcome"})


@pytest.fixture()
def settings(tmp_path: Path):
    from backend.hirez.config import AISettings, MailSettings, Settings, StorageSettings

    return Settings(
        database_url=f"sqlite+pysqlite:///{tmp_path / 'test.sqlite3'}",
        jwt_secret="test-secret",
        auto_analyze=False,
        resume_extraction_url="http://extractor.test/parse",
        storage=StorageSettings(
            region="us-east-1",
            bucket="hirez-test",
            access_key_id="AKIATESTKEY",
            secret_access_key="test-secret-key",
        ),
        # No model key: AI features run their fallbacks.
        ai=AISettings(api_key=""),
        mail=MailSettings(),
    )


@pytest.fixture()
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture()
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture()
def app(settings, extractor, mailer) -> FastAPI:
    """FastAPI app wired to a temporary SQLite DB with fake extractor and mailer."""
    from backend.hirez.main import create_app

    fastapi_app = create_app(settings, extractor=extractor, mailer=mailer)
    yield fastapi_app
    fastapi_app.state.database.drop_all()
    fastapi_app.state.database.dispose()


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db_session(app: FastAPI):
    """Direct SQLAlchemy session bound to the same temporary SQLite DB used by the test app."""
    db = app.state.database.session()
    try:
        yield db
    finally:
        db.close()


def signup(client, *, email: str, password: str = "Testpass123!", role: str | None = None, **extra):
    body = {"email": email, "password": password, **extra}
    if role is not None:
        body["role"] = role
    return client.post("/auth/signup", json=body)


def login_token(client, *, email: str, password: str = "Testpass123!") -> str:
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def author_token(client) -> str:
    r = signup(client, email="author@example.com", first_name="Grace", last_name="Hopper", company_name="Hirez")
    assert r.status_code == 201, r.text
    return login_token(client, email="author@example.com")


@pytest.fixture()
def form(client, author_token) -> dict:
    r = client.post(
        "/forms",
        headers=auth_headers(author_token),
        json={
            "title": "Backend Engineer",
            "job_description": "We need a Python engineer with FastAPI and SQL experience.",
            "hiring_domain": "tech",
            "fields": [
                {"id": "ai-skills0001", "type": "textarea", "label": "Technical Skills", "required": True},
            ],
        },
    )
    assert r.status_code == 201, r.text
    return r.json()
