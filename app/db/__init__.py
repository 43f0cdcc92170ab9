"""
Слой хранения: ORM модели и сессии SQLAlchemy.
"""

from app.db.models import (
    Base,
    Candidate,
    CandidateEvent,
    Client,
    Job,
    JobApplication,
    SystemSetting,
    User,
)
from app.db.session import SessionLocal, engine, get_db, init_db

__all__ = [
    "Base",
    "Candidate",
    "CandidateEvent",
    "Client",
    "Job",
    "JobApplication",
    "SystemSetting",
    "User",
    "SessionLocal",
    "engine",
    "get_db",
    "init_db",
]
