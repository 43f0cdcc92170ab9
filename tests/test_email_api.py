import smtplib

import pytest

from app.api.deps import clear_pipeline, set_pipeline
from app.api.emails import get_email_sender
from app.main import app
from app.models.api import IngestionResult
from app.services import email_sender
from app.services import storage
from app.services.email_fetcher import EmailFetcher
from app.services.email_sender import EmailSender


class _RecordingSender:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send(self, recipients, subject, body, attachments=None):
        if self.error:
            raise self.error
        self.sent.append({"recipients": recipients, "subject": subject, "body": body, "attachments": attachments})


@pytest.fixture
def sender():
    recording = _RecordingSender()
    app.dependency_overrides[get_email_sender] = lambda: recording
    return recording


@pytest.fixture
def candidate(db, upload_dir):
    (upload_dir / "1700000000000_cv_dana.pdf").write_bytes(b"%PDF")
    return storage.create_candidate(
        db,
        first_name="Dana",
        last_name="Levi",
        email="dana@example.com",
        profession="QA Engineer",
        cv_path="1700000000000_cv_dana.pdf",
    )


def _event_types(client, headers, candidate_id):
    events = client.get(f"/api/candidates/{candidate_id}/events", headers=headers).json()
    return [e["event_type"] for e in events]


def test_send_candidate_profile_with_cv(client, admin_headers, sender, candidate, upload_dir):
    response = client.post(
        "/api/emails/send-candidate-profile",
        json={"candidate_id": candidate.id, "to_email": "hr@client.com", "notes": "Available now"},
        headers=admin_headers,
    )

    assert response.status_code == 200, response.text
    assert response.json() == {"success": True, "recipients": ["hr@client.com"]}
    message = sender.sent[0]
    assert "Dana Levi" in message["subject"]
    assert "QA Engineer" in message["body"]
    assert message["attachments"] == [upload_dir / "1700000000000_cv_dana.pdf"]
    assert "email_sent" in _event_types(client, admin_headers, candidate.id)


def test_interview_invitation_goes_to_candidate(client, admin_headers, sender, candidate, db):
    job = storage.create_job(db, title="QA Engineer", job_code="1234")

    response = client.post(
        "/api/emails/send-interview-invitation",
        json={"candidate_id": candidate.id, "job_id": job.id, "interview_date": "2026-11-02T10:30:00", "location": "Tel Aviv"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    message = sender.sent[0]
    assert message["recipients"] == ["dana@example.com"]
    assert "02/11/2026 10:30" in message["body"]
    assert "Tel Aviv" in message["body"]


def test_shortlist_logs_event_per_candidate(client, admin_headers, sender, candidate, db):
    other = storage.create_candidate(db, first_name="Noa", last_name="Cohen")

    response = client.post(
        "/api/emails/send-candidate-shortlist",
        json={"candidate_ids": [candidate.id, other.id], "to_email": "hr@client.com"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert "Noa Cohen" in sender.sent[0]["body"]
    assert "email_sent" in _event_types(client, admin_headers, candidate.id)
    assert "email_sent" in _event_types(client, admin_headers, other.id)


def test_smtp_failure_is_502(client, admin_headers, candidate):
    app.dependency_overrides[get_email_sender] = lambda: _RecordingSender(smtplib.SMTPException("relay denied"))

    response = client.post(
        "/api/emails/send-candidate-profile",
        json={"candidate_id": candidate.id, "to_email": "hr@client.com"},
        headers=admin_headers,
    )

    assert response.status_code == 502
    assert "email_sent" not in _event_types(client, admin_headers, candidate.id)


def test_unconfigured_smtp_is_503(client, admin_headers, candidate):
    unconfigured = EmailSender()
    unconfigured.smtp_server = ""
    app.dependency_overrides[get_email_sender] = lambda: unconfigured

    response = client.post(
        "/api/emails/send-candidate-profile",
        json={"candidate_id": candidate.id, "to_email": "hr@client.com"},
        headers=admin_headers,
    )

    assert response.status_code == 503


def test_smtp_sender_uses_starttls(monkeypatch, tmp_path):
    calls = []

    class FakeSMTP:
        def __init__(self, host, port, timeout=None):
            calls.append(("connect", host, port))

        def __enter__(self):
            return self

        def __exit__(self, *args):
            return False

        def starttls(self):
            calls.append(("starttls",))

        def login(self, user, password):
            calls.append(("login", user))

        def send_message(self, message):
            calls.append(("send", message["To"], len(list(message.iter_attachments()))))

    monkeypatch.setattr(email_sender.smtplib, "SMTP", FakeSMTP)
    cv = tmp_path / "cv.pdf"
    cv.write_bytes(b"%PDF")

    EmailSender("smtp.agency.co.il", 587, False, "office@agency.co.il", "pw").send(
        ["a@x.com", "b@x.com"], "Subject", "Body", attachments=[cv]
    )

    assert calls == [
        ("connect", "smtp.agency.co.il", 587),
        ("starttls",),
        ("login", "office@agency.co.il"),
        ("send", "a@x.com, b@x.com", 1),
    ]


class _FakePipeline:
    def __init__(self, results):
        self.results = results

    def run_cycle(self):
        return self.results


def test_check_incoming_runs_one_cycle(client, admin_headers):
    set_pipeline(_FakePipeline([IngestionResult(candidate_id="c1", candidate_number=100, full_name="John Doe", cv_file="1_cv.pdf")]))
    try:
        response = client.post("/api/emails/check-incoming", headers=admin_headers)
    finally:
        clear_pipeline()

    body = response.json()
    assert body["started"] is True
    assert body["processed_count"] == 1
    assert body["results"][0]["full_name"] == "John Doe"


def test_check_incoming_reports_running_cycle(client, admin_headers):
    set_pipeline(_FakePipeline(None))
    try:
        response = client.post("/api/emails/check-incoming", headers=admin_headers)
    finally:
        clear_pipeline()

    assert response.json() == {"started": False, "processed_count": 0, "results": []}


def test_check_incoming_is_admin_only(client, headers_for):
    set_pipeline(_FakePipeline([]))
    try:
        response = client.post("/api/emails/check-incoming", headers=headers_for("user"))
    finally:
        clear_pipeline()

    assert response.status_code == 403


def test_test_imap_uses_stored_settings(client, admin_headers, db, monkeypatch):
    seen = {}

    def fake_test_connection(self):
        seen["host"] = self.imap_server
        return True

    monkeypatch.setattr(EmailFetcher, "test_connection", fake_test_connection)
    storage.set_setting(db, "INCOMING_EMAIL_HOST", "mail.agency.co.il")

    response = client.post("/api/emails/test-imap", headers=admin_headers)

    assert response.json() == {"success": True}
    assert seen["host"] == "mail.agency.co.il"


def test_imap_settings_round_trip(client, admin_headers, monkeypatch):
    seen = {}

    def fake_test_connection(self):
        seen.update(host=self.imap_server, port=self.imap_port, secure=self.secure, password=self.email_password)
        return True

    monkeypatch.setattr(EmailFetcher, "test_connection", fake_test_connection)

    response = client.put(
        "/api/emails/settings",
        json={"host": "imap.agency.co.il", "port": 143, "secure": False, "user": "cv@agency.co.il", "password": "pw"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    assert response.json()["password"] == "********"

    current = client.get("/api/emails/settings", headers=admin_headers).json()
    assert current == {
        "host": "imap.agency.co.il",
        "port": 143,
        "secure": False,
        "user": "cv@agency.co.il",
        "password": "********",
    }

    client.post("/api/emails/test-imap", headers=admin_headers)
    assert seen == {"host": "imap.agency.co.il", "port": 143, "secure": False, "password": "pw"}


def test_imap_settings_update_requires_settings_permission(client, headers_for):
    response = client.put("/api/emails/settings", json={"host": "x"}, headers=headers_for("restricted_admin"))

    assert response.status_code == 403
