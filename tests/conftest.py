import os
import tempfile

# Окружение до импорта app: конфиг читается при импорте
_TMP = tempfile.mkdtemp(prefix="recruitment-tests-")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_TMP, "uploads"))
os.environ.setdefault("LOG_DIR", os.path.join(_TMP, "logs"))
os.environ["ENABLE_EMAIL_WATCHER"] = "false"

from email.message import EmailMessage  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.db.models import Base  # noqa: E402
from app.db.session import get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.services import attachments, text_extractor  # noqa: E402
from app.services.auth import create_user  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    directory = tmp_path / "uploads"
    directory.mkdir()
    monkeypatch.setattr(attachments, "UPLOAD_DIR", directory)
    monkeypatch.setattr(text_extractor, "UPLOAD_DIR", directory)
    return directory


@pytest.fixture
def client(session_factory, upload_dir):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def headers_for(db):
    """Фабрика заголовков авторизации для роли."""
    users = {}

    def make(role: str = "super_admin"):
        if role not in users:
            users[role] = create_user(db, username=f"{role}_tester", password="secret", role=role)
        return {"Authorization": f"Bearer {users[role].api_token}"}

    return make


@pytest.fixture
def admin_headers(headers_for):
    return headers_for("super_admin")


def build_email(subject="", sender="Recruiter <jobs@agency.co.il>", attachments_=()):
    """Сырые байты письма с вложениями (filename, content_type, payload)."""
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = sender
    message["To"] = "cv@agency.co.il"
    message.set_content("Please see attached.")
    for filename, content_type, payload in attachments_:
        maintype, subtype = content_type.split("/", 1)
        message.add_attachment(payload, maintype=maintype, subtype=subtype, filename=filename)
    return message.as_bytes()


@pytest.fixture
def make_email():
    return build_email


@pytest.fixture
def raw_utf8_email():
    """Письмо с темой в сыром UTF-8 без RFC 2047, как шлют некоторые клиенты на иврите."""
    return (
        b"From: Dana <dana@example.co.il>\r\n"
        b"To: cv@agency.co.il\r\n"
        b"Subject: " + "קורות חיים 1234".encode("utf-8") + b"\r\n"
        b"MIME-Version: 1.0\r\n"
        b'Content-Type: multipart/mixed; boundary="XYZ"\r\n'
        b"\r\n"
        b"--XYZ\r\n"
        b"Content-Type: text/plain; charset=utf-8\r\n"
        b"\r\n"
        b"See attached\r\n"
        b"--XYZ\r\n"
        b"Content-Type: application/pdf\r\n"
        b'Content-Disposition: attachment; filename="cv.pdf"\r\n'
        b"Content-Transfer-Encoding: base64\r\n"
        b"\r\n"
        b"JVBERi0xLjQ=\r\n"
        b"--XYZ--\r\n"
    )
