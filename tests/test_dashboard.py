def _auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_dashboard_stats_scoped_to_caller(client, author_token, form):
    headers = _auth_headers(author_token)
    ids = []
    for i in range(3):
        r = client.post(
            "/applications",
            json={
                "formId": form["id"],
                "responses": {"fixed-name": f"C{i}"},
                "resumeUrl": f"https://hirez-test.s3.us-east-1.amazonaws.com/c{i}.pdf",
            },
        )
        ids.append(r.json()["id"])
    client.patch(f"/applications/{ids[0]}/status", headers=headers, json={"status": "shortlisted"})
    client.patch(f"/applications/{ids[1]}/status", headers=headers, json={"status": "rejected"})
    client.patch(f"/forms/{form['id']}/active-flag", headers=headers, json={"active": False})

    r = client.get("/dashboard/stats", headers=headers)
    assert r.status_code == 200, r.text
    assert r.json() == {
        "total_forms": 1,
        "active_forms": 0,
        "total_applications": 3,
        "pending_reviews": 1,
        "shortlisted": 1,
        "rejected": 1,
    }

    client.post("/auth/signup", json={"email": "empty@example.com", "password": "Testpass123!"})
    token = client.post("/auth/login", json={"email": "empty@example.com", "password": "Testpass123!"}).json()[
        "access_token"
    ]
    empty = client.get("/dashboard/stats", headers=_auth_headers(token)).json()
    assert empty["total_forms"] == 0 and empty["total_applications"] == 0


def test_dashboard_requires_session(client):
    assert client.get("/dashboard/stats").status_code == 401
