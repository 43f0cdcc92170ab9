from app.services import storage
from app.services.auth import create_user


def _create(client, headers, **fields):
    payload = {"first_name": "Dana", "last_name": "Levi", "email": "dana@example.com", "mobile": "0521234567"}
    payload.update(fields)
    response = client.post("/api/candidates", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_health_does_not_require_auth(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_login_returns_token(client, db):
    create_user(db, username="recruiter", password="pa55", role="user")

    response = client.post("/api/auth/login", json={"username": "recruiter", "password": "pa55"})
    assert response.status_code == 200
    token = response.json()["token"]

    me = client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["username"] == "recruiter"

    bad = client.post("/api/auth/login", json={"username": "recruiter", "password": "nope"})
    assert bad.status_code == 401


def test_requires_token(client):
    assert client.get("/api/candidates").status_code == 401
    assert client.get("/api/candidates", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_create_and_list(client, admin_headers):
    created = _create(client, admin_headers)
    assert created["candidate_number"] == 100
    assert created["source"] == "manual"

    response = client.get("/api/candidates", params={"search": "levi"}, headers=admin_headers)

    body = response.json()
    assert body["total"] == 1
    assert body["candidates"][0]["id"] == created["id"]


def test_duplicate_email_is_rejected(client, admin_headers):
    _create(client, admin_headers)

    response = client.post(
        "/api/candidates",
        json={"first_name": "Other", "email": "DANA@example.com"},
        headers=admin_headers,
    )

    assert response.status_code == 409


def test_candidates_without_email_are_not_duplicates(client, admin_headers):
    _create(client, admin_headers, email=None, mobile=None)
    _create(client, admin_headers, email="", mobile=None)


def test_check_duplicate(client, admin_headers):
    created = _create(client, admin_headers)

    found = client.get("/api/candidates/check-duplicate", params={"mobile": "0521234567"}, headers=admin_headers)
    assert found.json()["exists"] is True
    assert found.json()["candidates"][0]["id"] == created["id"]

    missing = client.get("/api/candidates/check-duplicate", params={"email": "x@y.com"}, headers=admin_headers)
    assert missing.json()["exists"] is False


def test_status_change_is_logged(client, admin_headers):
    created = _create(client, admin_headers)

    response = client.put(f"/api/candidates/{created['id']}", json={"status": "hired"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "hired"
    assert response.json()["first_name"] == "Dana"

    events = client.get(f"/api/candidates/{created['id']}/events", headers=admin_headers).json()
    types = [e["event_type"] for e in events]
    assert "status_change" in types
    change = next(e for e in events if e["event_type"] == "status_change")
    assert change["metadata"] == {"oldStatus": "active", "newStatus": "hired"}


def test_add_note_event(client, admin_headers):
    created = _create(client, admin_headers)

    response = client.post(
        f"/api/candidates/{created['id']}/events",
        json={"description": "Called, will send portfolio"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    assert response.json()["event_type"] == "note"


def test_missing_candidate_is_404(client, admin_headers):
    assert client.get("/api/candidates/nope", headers=admin_headers).status_code == 404


def test_delete_candidate(client, admin_headers):
    created = _create(client, admin_headers)

    assert client.delete(f"/api/candidates/{created['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/candidates/{created['id']}", headers=admin_headers).status_code == 404


def test_upload_cv_extracts_text(client, admin_headers, upload_dir):
    created = _create(client, admin_headers)

    response = client.post(
        f"/api/candidates/{created['id']}/cv",
        files={"file": ("cv_dana.txt", b"Python Django PostgreSQL", "text/plain")},
        headers=admin_headers,
    )

    assert response.status_code == 200, response.text
    stored = response.json()["cv_path"]
    assert (upload_dir / stored).exists()

    search = client.get("/api/candidates/search", params={"keywords": "django"}, headers=admin_headers)
    assert search.json()["results_count"] == 1


def test_upload_rejects_non_cv_files(client, admin_headers):
    created = _create(client, admin_headers)

    response = client.post(
        f"/api/candidates/{created['id']}/cv",
        files={"file": ("data.xlsx", b"xls", "application/vnd.ms-excel")},
        headers=admin_headers,
    )

    assert response.status_code == 400


def test_search_by_cv_keywords(client, admin_headers, db):
    storage.create_candidate(db, first_name="A", last_name="One", cv_content="Senior Python developer, Django, AWS")
    storage.create_candidate(db, first_name="B", last_name="Two", cv_content="Java developer, Spring")
    storage.create_candidate(db, first_name="C", last_name="Three", cv_content="Accountant")

    response = client.get("/api/candidates/search", params={"keywords": "python, developer"}, headers=admin_headers)

    body = response.json()
    assert body["keywords"] == ["python", "developer"]
    assert body["results_count"] == 2
    first = body["results"][0]
    assert first["first_name"] == "A"
    assert first["matched_keywords"] == ["python", "developer"]
    assert "Python" in first["cv_preview"]
