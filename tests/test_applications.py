import dataclasses

import pytest
from fastapi.testclient import TestClient


RESUME_URL = "https://hirez-test.s3.us-east-1.amazonaws.com/3f2a-1700000000000.pdf"


def _auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _apply(client, form_id, *, responses=None, resume_url=RESUME_URL):
    return client.post(
        "/applications",
        json={
            "formId": form_id,
            "responses": responses if responses is not None else {"fixed-name": "Ada", "fixed-email": "ada@example.com"},
            "resumeUrl": resume_url,
        },
    )


def test_submit_application_direct_is_pending(db_session, form):
    from backend.hirez.services.applications import load_responses, submit_application

    app = submit_application(
        db_session,
        form_id=form["id"],
        responses={"Full Name": "Ada"},
        resume_location="https://bucket/x.pdf",
    )
    assert app.status == "pending"
    assert app.match_score is None
    assert app.resume_url == "https://bucket/x.pdf"
    assert load_responses(app) == {"Full Name": "Ada"}


def test_submit_application_has_no_dedup(db_session, form):
    from backend.hirez.services.applications import submit_application

    first = submit_application(db_session, form_id=form["id"], responses={"a": "1"}, resume_location=RESUME_URL)
    second = submit_application(db_session, form_id=form["id"], responses={"a": "1"}, resume_location=RESUME_URL)
    assert first.id != second.id
    assert first.status == second.status == "pending"


def test_submit_application_validation(db_session, form):
    from backend.hirez.services.applications import submit_application
    from backend.hirez.utils.error_handlers import NotFoundError, ValidationError

    with pytest.raises(ValidationError):
        submit_application(db_session, form_id=None, responses={"a": "1"}, resume_location=RESUME_URL)
    with pytest.raises(ValidationError):
        submit_application(db_session, form_id=form["id"], responses=None, resume_location=RESUME_URL)
    with pytest.raises(ValidationError):
        submit_application(db_session, form_id=form["id"], responses={"a": "1"}, resume_location="")
    with pytest.raises(ValidationError):
        submit_application(db_session, form_id=form["id"], responses=["not", "a", "map"], resume_location=RESUME_URL)
    with pytest.raises(NotFoundError):
        submit_application(db_session, form_id=4242, responses={"a": "1"}, resume_location=RESUME_URL)


def test_apply_endpoint(client, form):
    r = _apply(client, form["id"])
    assert r.status_code == 201, r.text
    data = r.json()
    assert data["status"] == "pending"
    assert data["candidate"] == {"name": "Ada", "email": "ada@example.com"}
    assert data["match_score"] is None
    assert data["form_title"] == "Backend Engineer"

    missing = client.post("/applications", json={"formId": form["id"], "responses": {"a": "1"}})
    assert missing.status_code == 400, missing.text
    assert missing.json()["error"] == "Missing required fields"

    unknown = _apply(client, 9999)
    assert unknown.status_code == 404, unknown.text
    assert unknown.json()["error"] == "Job form not found"


def test_list_and_get_applications(client, author_token, form):
    first = _apply(client, form["id"]).json()
    second = _apply(client, form["id"], responses={"fixed-name": "Linus", "fixed-email": "linus@example.com"}).json()

    r = client.get("/applications", headers=_auth_headers(author_token), params={"formId": form["id"]})
    assert r.status_code == 200, r.text
    assert {a["id"] for a in r.json()} == {first["id"], second["id"]}

    one = client.get(f"/applications/{first['id']}", headers=_auth_headers(author_token))
    assert one.status_code == 200, one.text
    assert one.json()["responses"]["fixed-name"] == "Ada"

    bad_sort = client.get("/applications", headers=_auth_headers(author_token), params={"sort": "name"})
    assert bad_sort.status_code == 400, bad_sort.text

    client.cookies.clear()
    assert client.get("/applications").status_code == 401


def test_status_transitions_are_unguarded(client, author_token, form):
    app_id = _apply(client, form["id"]).json()["id"]
    headers = _auth_headers(author_token)

    for status in ("reviewed", "shortlisted", "pending", "REJECTED"):
        r = client.patch(f"/applications/{app_id}/status", headers=headers, json={"status": status})
        assert r.status_code == 200, r.text
        assert r.json()["status"] == status.lower()


def test_invalid_status_does_not_mutate(db_session, form):
    from backend.hirez.models.application import Application
    from backend.hirez.services.applications import set_status, submit_application
    from backend.hirez.utils.error_handlers import ValidationError

    app = submit_application(db_session, form_id=form["id"], responses={"a": "1"}, resume_location=RESUME_URL)
    set_status(db_session, application_id=app.id, new_status="shortlisted")

    for bad in ("hired", "", None, 3):
        with pytest.raises(ValidationError):
            set_status(db_session, application_id=app.id, new_status=bad)

    db_session.expire_all()
    assert db_session.get(Application, app.id).status == "shortlisted"


def test_status_update_unknown_application(client, author_token):
    r = client.patch("/applications/777/status", headers=_auth_headers(author_token), json={"status": "reviewed"})
    assert r.status_code == 404, r.text
    assert r.json()["error"] == "Application not found"


def test_notify_uses_current_status(client, author_token, form, mailer):
    app_id = _apply(client, form["id"]).json()["id"]
    headers = _auth_headers(author_token)

    # pending has no template: nothing is sent.
    r = client.post(f"/applications/{app_id}/notify", headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["sent"] is False
    assert mailer.sent == []

    client.patch(f"/applications/{app_id}/status", headers=headers, json={"status": "shortlisted"})
    r2 = client.post(
        f"/applications/{app_id}/notify",
        headers=headers,
        json={"calendar_link": "https://cal.example.com/grace"},
    )
    assert r2.status_code == 200, r2.text
    assert r2.json() == {"success": True, "sent": True, "status": "shortlisted"}
    assert mailer.sent == [
        {
            "to_email": "ada@example.com",
            "name": "Ada",
            "status": "shortlisted",
            "job_title": "Backend Engineer",
            "calendar_link": "https://cal.example.com/grace",
        }
    ]


def test_notify_without_candidate_email(client, author_token, form):
    app_id = _apply(client, form["id"], responses={"fixed-name": "No Mail"}).json()["id"]
    r = client.post(f"/applications/{app_id}/notify", headers=_auth_headers(author_token))
    assert r.status_code == 400, r.text


def test_analyze_stores_match_result(client, author_token, form, extractor, monkeypatch):
    import backend.hirez.services.applications as applications_service
    from backend.hirez.schemas.match import MatchResult

    seen = {}

    async def fake_score_resume(*, resume_text, job_description, ai):
        seen["resume_text"] = resume_text
        seen["job_description"] = job_description
        return MatchResult(match_score=82, strengths=["FastAPI"], weaknesses=["No Kubernetes"], reasoning="Solid fit.")

    monkeypatch.setattr(applications_service, "score_resume", fake_score_resume)

    app_id = _apply(client, form["id"]).json()["id"]
    r = client.post(f"/applications/{app_id}/analyze", headers=_auth_headers(author_token))
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["match_score"] == 82
    assert data["strengths"] == ["FastAPI"]
    assert data["weaknesses"] == ["No Kubernetes"]
    assert data["match_reasoning"] == "Solid fit."
    assert data["analyzed_at"]

    assert extractor.calls == [RESUME_URL]
    assert seen["resume_text"] == extractor.text
    assert "FastAPI" in seen["job_description"]


def test_analyze_without_model_key_stores_sentinel(client, author_token, form):
    app_id = _apply(client, form["id"]).json()["id"]
    r = client.post(f"/applications/{app_id}/analyze", headers=_auth_headers(author_token))
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["match_score"] == 0
    assert data["strengths"] == [] and data["weaknesses"] == []
    assert data["match_reasoning"] == "Analysis failed"


def test_analyze_extraction_failure_is_upstream_error(client, author_token, form, extractor):
    from backend.hirez.utils.error_handlers import ExtractionError

    async def broken(resume_location):
        raise ExtractionError("Resume Parsing API failed with status: 500")

    extractor.extract_text = broken
    app_id = _apply(client, form["id"]).json()["id"]
    r = client.post(f"/applications/{app_id}/analyze", headers=_auth_headers(author_token))
    assert r.status_code == 502, r.text


def test_auto_analyze_runs_after_submission(settings, extractor, mailer, author_token, form, monkeypatch):
    import backend.hirez.services.applications as applications_service
    from backend.hirez.main import create_app
    from backend.hirez.schemas.match import MatchResult

    async def fake_score_resume(**kwargs):
        return MatchResult(match_score=64, strengths=[], weaknesses=[], reasoning="ok")

    monkeypatch.setattr(applications_service, "score_resume", fake_score_resume)

    auto_app = create_app(dataclasses.replace(settings, auto_analyze=True), extractor=extractor, mailer=mailer)
    with TestClient(auto_app) as auto_client:
        created = _apply(auto_client, form["id"])
        assert created.status_code == 201, created.text
        # Background tasks finish before TestClient hands back the response.
        detail = auto_client.get(f"/applications/{created.json()['id']}", headers=_auth_headers(author_token))
    assert detail.json()["match_score"] == 64
    auto_app.state.database.dispose()


def test_sort_by_score(client, author_token, form, db_session):
    from backend.hirez.schemas.match import MatchResult
    from backend.hirez.services.applications import apply_match_result, get_application

    low = _apply(client, form["id"]).json()["id"]
    high = _apply(client, form["id"]).json()["id"]
    unscored = _apply(client, form["id"]).json()["id"]

    apply_match_result(db_session, get_application(db_session, low), resume_text="x", result=MatchResult(match_score=30))
    apply_match_result(db_session, get_application(db_session, high), resume_text="y", result=MatchResult(match_score=90))

    r = client.get("/applications", headers=_auth_headers(author_token), params={"sort": "score"})
    assert [a["id"] for a in r.json()] == [high, low, unscored]


def test_confirm_sends_submission_email(client, form, mailer):
    app_id = _apply(client, form["id"]).json()["id"]
    # Intake alone never emails the candidate.
    assert mailer.sent == []

    client.cookies.clear()
    r = client.post(f"/applications/{app_id}/confirm")
    assert r.status_code == 200, r.text
    assert r.json() == {"success": True, "sent": True}
    assert mailer.sent == [
        {"to_email": "ada@example.com", "name": "Ada", "status": "submitted", "job_title": "Backend Engineer"}
    ]

    no_mail = _apply(client, form["id"], responses={"fixed-name": "No Mail"}).json()["id"]
    assert client.post(f"/applications/{no_mail}/confirm").status_code == 400
    assert client.post("/applications/9999/confirm").status_code == 404


def test_other_owner_cannot_touch_application(client, form, mailer):
    app_id = _apply(client, form["id"]).json()["id"]

    client.post("/auth/signup", json={"email": "rival@example.com", "password": "Testpass123!", "role": "owner"})
    rival = client.post("/auth/login", json={"email": "rival@example.com", "password": "Testpass123!"}).json()
    headers = _auth_headers(rival["access_token"])

    assert client.get(f"/applications/{app_id}", headers=headers).status_code == 403
    assert client.post(f"/applications/{app_id}/analyze", headers=headers).status_code == 403
    assert client.post(f"/applications/{app_id}/notify", headers=headers).status_code == 403
    r = client.patch(f"/applications/{app_id}/status", headers=headers, json={"status": "rejected"})
    assert r.status_code == 403, r.text
    assert mailer.sent == []

    from backend.hirez.models.application import Application

    db = client.app.state.database.session()
    try:
        assert db.get(Application, app_id).status == "pending"
    finally:
        db.close()
