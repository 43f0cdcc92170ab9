import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Текущее время UTC без tzinfo (колонки DateTime хранят naive UTC)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(String, primary_key=True, default=_uuid)
    candidate_number = Column(Integer, unique=True)
    first_name = Column(String, nullable=False, default="")
    last_name = Column(String, nullable=False, default="")
    email = Column(String, index=True)  # уникальность только для непустых (проверяется в API)
    mobile = Column(String)
    phone = Column(String)
    city = Column(String)
    profession = Column(String)
    experience = Column(Integer)
    notes = Column(Text)

    cv_path = Column(String)  # имя файла в UPLOAD_DIR
    cv_content = Column(Text)  # извлечённый текст для поиска

    status = Column(String, default="active")
    recruitment_source = Column(String)
    source = Column(String, default="manual")  # manual, email
    rating = Column(Integer)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    events = relationship("CandidateEvent", back_populates="candidate", cascade="all, delete-orphan")
    applications = relationship("JobApplication", back_populates="candidate", cascade="all, delete-orphan")


class CandidateEvent(Base):
    """Журнал событий кандидата - только добавление."""
    __tablename__ = "candidate_events"

    id = Column(String, primary_key=True, default=_uuid)
    candidate_id = Column(String, ForeignKey("candidates.id"), nullable=False, index=True)
    event_type = Column(String, nullable=False)  # candidate_created, status_change, email_sent, ...
    description = Column(Text, nullable=False)
    event_metadata = Column("metadata", JSON)
    created_by = Column(String, ForeignKey("users.id"))
    created_at = Column(DateTime, default=utcnow)

    candidate = relationship("Candidate", back_populates="events")


class Client(Base):
    __tablename__ = "clients"

    id = Column(String, primary_key=True, default=_uuid)
    client_number = Column(Integer, unique=True)
    company_name = Column(String, nullable=False)
    contact_name = Column(String)
    email = Column(String)
    phone = Column(String)
    address = Column(Text)
    website = Column(String)
    industry = Column(String)
    notes = Column(Text)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    jobs = relationship("Job", back_populates="client")


class Job(Base):
    __tablename__ = "jobs"

    id = Column(String, primary_key=True, default=_uuid)
    job_code = Column(String(7), unique=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    requirements = Column(Text)
    location = Column(String)
    salary_range = Column(String)
    job_type = Column(String)  # full-time, part-time, contract
    is_remote = Column(Boolean, default=False)
    status = Column(String, default="active")  # active, paused, closed
    priority = Column(String, default="medium")
    positions = Column(Integer, default=1)
    is_urgent = Column(Boolean, default=False)
    client_id = Column(String, ForeignKey("clients.id"))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    client = relationship("Client", back_populates="jobs")
    applications = relationship("JobApplication", back_populates="job", cascade="all, delete-orphan")


class JobApplication(Base):
    __tablename__ = "job_applications"

    id = Column(String, primary_key=True, default=_uuid)
    candidate_id = Column(String, ForeignKey("candidates.id"), nullable=False, index=True)
    job_id = Column(String, ForeignKey("jobs.id"), nullable=False, index=True)
    status = Column(String, default="submitted")
    applied_at = Column(DateTime, default=utcnow)
    interview_date = Column(DateTime)
    notes = Column(Text)
    client_feedback = Column(Text)
    reviewer_feedback = Column(Text)
    rejection_reason = Column(String)
    sent_to_client = Column(Boolean, default=False)

    candidate = relationship("Candidate", back_populates="applications")
    job = relationship("Job", back_populates="applications")


class SystemSetting(Base):
    __tablename__ = "system_settings"

    id = Column(String, primary_key=True, default=_uuid)
    key = Column(String, unique=True, nullable=False)
    value = Column(Text, nullable=False)
    description = Column(Text)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=_uuid)
    username = Column(String, unique=True, nullable=False)
    email = Column(String, unique=True)
    first_name = Column(String)
    last_name = Column(String)
    password_hash = Column(String)
    role = Column(String, nullable=False, default="user")
    api_token = Column(String, unique=True, index=True)
    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
