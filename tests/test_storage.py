from concurrent.futures import ThreadPoolExecutor

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.db.models import Base, utcnow
from app.db.session import build_engine
from app.services import storage
from app.services.search import build_preview, parse_keywords


def test_candidate_numbers_start_at_100_and_increase(db):
    first = storage.create_candidate(db, first_name="A")
    second = storage.create_candidate(db, first_name="B")

    assert (first.candidate_number, second.candidate_number) == (100, 101)


def test_events_are_listed_newest_first(db):
    candidate = storage.create_candidate(db, first_name="A")
    storage.add_candidate_event(db, candidate.id, "note", "first")
    storage.add_candidate_event(db, candidate.id, "note", "second", metadata={"k": "v"})

    events = storage.list_candidate_events(db, candidate.id)

    assert len(events) == 2
    assert {e.description for e in events} == {"first", "second"}


def test_job_lookup_is_exact(db):
    storage.create_job(db, title="QA", job_code="1234")

    assert storage.get_job_by_code(db, "1234").title == "QA"
    assert storage.get_job_by_code(db, "12345") is None
    assert storage.get_job_by_code(db, "123") is None


def test_imap_settings_prefer_database(db, monkeypatch):
    monkeypatch.setattr(storage.config, "INCOMING_EMAIL_HOST", "env.example.com")
    monkeypatch.setattr(storage.config, "INCOMING_EMAIL_USER", "env@example.com")
    storage.set_setting(db, "INCOMING_EMAIL_HOST", "db.example.com")
    storage.set_setting(db, "INCOMING_EMAIL_PORT", "143")
    storage.set_setting(db, "INCOMING_EMAIL_SECURE", "false")

    settings = storage.load_imap_settings(db)

    assert settings["host"] == "db.example.com"
    assert settings["port"] == 143
    assert settings["secure"] is False
    assert settings["user"] == "env@example.com"


def test_set_setting_updates_existing(db):
    storage.set_setting(db, "INCOMING_EMAIL_HOST", "a")
    storage.set_setting(db, "INCOMING_EMAIL_HOST", "b")

    assert storage.get_setting(db, "INCOMING_EMAIL_HOST") == "b"


def test_parse_keywords():
    assert parse_keywords("Python, django  python,SQL") == ["python", "django", "sql"]
    assert parse_keywords(" , ") == []


def test_build_preview_marks_truncation():
    text = "x" * 200 + " Django developer " + "y" * 200

    preview = build_preview(text, "django", radius=10)

    assert preview.startswith("...")
    assert preview.endswith("...")
    assert "Django" in preview


def test_concurrent_creates_get_distinct_numbers(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'numbers.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False)

    def create(i):
        with factory() as session:
            return storage.create_candidate(session, first_name=f"C{i}").candidate_number

    with ThreadPoolExecutor(max_workers=8) as pool:
        numbers = list(pool.map(create, range(16)))

    engine.dispose()
    assert sorted(numbers) == list(range(100, 116))


def test_taken_number_is_recomputed_once(db, monkeypatch):
    storage.create_candidate(db, first_name="A")
    real_next = storage.next_candidate_number
    calls = []

    def stale_next(session):
        calls.append(1)
        return 100 if len(calls) == 1 else real_next(session)

    monkeypatch.setattr(storage, "next_candidate_number", stale_next)

    second = storage.create_candidate(db, first_name="B")

    assert second.candidate_number == 101
    assert len(calls) == 2


def test_save_imap_settings_keeps_password_when_blank(db):
    storage.save_imap_settings(db, {"host": "mail.agency.co.il", "port": 143, "secure": False, "password": "pw"})

    settings = storage.save_imap_settings(db, {"host": None, "password": ""})

    assert settings["host"] == "mail.agency.co.il"
    assert settings["port"] == 143
    assert settings["secure"] is False
    assert settings["password"] == "pw"


def test_build_engine_creates_parent_of_sqlite_file(tmp_path):
    target = tmp_path / "nested" / "recruitment.db"

    build_engine(f"sqlite:///{target}").dispose()

    assert target.parent.is_dir()
    assert not (tmp_path / "data").exists()


def test_setting_timestamps_are_naive_utc(db):
    setting = storage.set_setting(db, "INCOMING_EMAIL_HOST", "a")
    setting = storage.set_setting(db, "INCOMING_EMAIL_HOST", "b")

    assert setting.updated_at.tzinfo is None
    assert abs((utcnow() - setting.updated_at).total_seconds()) < 60
