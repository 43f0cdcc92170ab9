import logging
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from app.core.config import DATABASE_URL
from app.db.models import Base

logger = logging.getLogger(__name__)


def build_engine(url: str = DATABASE_URL, **kwargs):
    """Создаёт engine; для SQLite отключает проверку потока (watcher работает в отдельном потоке)."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        database = make_url(url).database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, pool_pre_ping=True, **kwargs)


engine = build_engine()

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(bind=None):
    """Создаёт таблицы, если их нет."""
    Base.metadata.create_all(bind=bind or engine)
    logger.info("✅ Схема БД готова")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
