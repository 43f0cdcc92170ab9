"""
Операции с БД: кандидаты, события, клиенты, вакансии, подачи, системные настройки.

Каждая функция записи делает свой commit: пайплайн писем не объединяет
создание кандидата, события и подачи в одну транзакцию.
"""

import logging
import random
import threading
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import config
from app.db.models import (
    Candidate,
    CandidateEvent,
    Client,
    Job,
    JobApplication,
    SystemSetting,
    utcnow,
)

logger = logging.getLogger(__name__)

FIRST_NUMBER = 100
JOB_CODE_LENGTH = 7

IMAP_SETTING_KEYS = {
    "host": "INCOMING_EMAIL_HOST",
    "port": "INCOMING_EMAIL_PORT",
    "secure": "INCOMING_EMAIL_SECURE",
    "user": "INCOMING_EMAIL_USER",
    "password": "INCOMING_EMAIL_PASS",
}

# Выбор номера max+1 и вставка выполняются под одной блокировкой
_numbering_lock = threading.Lock()


# ==================== CANDIDATES ====================

def _insert_numbered(db: Session, model, number_field: str, next_number, fields: Dict[str, Any]):
    obj = model(**{number_field: next_number(db)}, **fields)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def next_candidate_number(db: Session) -> int:
    last = db.scalar(select(func.max(Candidate.candidate_number)))
    return (last or FIRST_NUMBER - 1) + 1


def create_candidate(db: Session, **fields) -> Candidate:
    """
    Создаёт кандидата с очередным номером.

    Внутри процесса номера выдаются под блокировкой. Если номер всё же занят
    (watcher запущен отдельным процессом), номер пересчитывается и вставка
    повторяется один раз.
    """
    with _numbering_lock:
        try:
            candidate = _insert_numbered(db, Candidate, "candidate_number", next_candidate_number, fields)
        except IntegrityError:
            db.rollback()
            logger.warning("⚠️ Номер кандидата уже занят, повторная попытка")
            candidate = _insert_numbered(db, Candidate, "candidate_number", next_candidate_number, fields)
    logger.info(f"👤 Создан кандидат №{candidate.candidate_number}")
    return candidate


def get_candidate(db: Session, candidate_id: str) -> Optional[Candidate]:
    return db.get(Candidate, candidate_id)


def list_candidates(
    db: Session,
    limit: int = 50,
    offset: int = 0,
    search: Optional[str] = None,
    status: Optional[str] = None,
) -> Tuple[int, List[Candidate]]:
    """
    Список кандидатов с поиском по имени, контактам, профессии и тексту CV.

    Returns:
        (общее количество, страница кандидатов)
    """
    stmt = select(Candidate)
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                Candidate.first_name.ilike(pattern),
                Candidate.last_name.ilike(pattern),
                Candidate.email.ilike(pattern),
                Candidate.mobile.ilike(pattern),
                Candidate.profession.ilike(pattern),
                Candidate.cv_content.ilike(pattern),
            )
        )
    if status:
        stmt = stmt.where(Candidate.status == status)

    total = db.scalar(select(func.count()).select_from(stmt.subquery()))
    rows = db.scalars(
        stmt.order_by(Candidate.created_at.desc()).limit(limit).offset(offset)
    ).all()
    return total or 0, list(rows)


def find_candidates_by_contact(
    db: Session,
    email: Optional[str] = None,
    mobile: Optional[str] = None,
    exclude_id: Optional[str] = None,
) -> List[Candidate]:
    """Кандидаты с тем же непустым email или мобильным."""
    conditions = []
    if email and email.strip():
        conditions.append(func.lower(Candidate.email) == email.strip().lower())
    if mobile and mobile.strip():
        conditions.append(Candidate.mobile == mobile.strip())
    if not conditions:
        return []

    stmt = select(Candidate).where(or_(*conditions))
    if exclude_id:
        stmt = stmt.where(Candidate.id != exclude_id)
    return list(db.scalars(stmt).all())


def update_candidate(db: Session, candidate: Candidate, changes: Dict[str, Any]) -> Candidate:
    for key, value in changes.items():
        setattr(candidate, key, value)
    db.commit()
    db.refresh(candidate)
    return candidate


def delete_candidate(db: Session, candidate: Candidate) -> None:
    db.delete(candidate)
    db.commit()


# ==================== EVENTS ====================

def add_candidate_event(
    db: Session,
    candidate_id: str,
    event_type: str,
    description: str,
    metadata: Optional[Dict[str, Any]] = None,
    created_by: Optional[str] = None,
) -> CandidateEvent:
    """Добавляет запись в журнал событий кандидата (записи не изменяются и не удаляются)."""
    event = CandidateEvent(
        candidate_id=candidate_id,
        event_type=event_type,
        description=description,
        event_metadata=metadata,
        created_by=created_by,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def list_candidate_events(db: Session, candidate_id: str) -> List[CandidateEvent]:
    stmt = (
        select(CandidateEvent)
        .where(CandidateEvent.candidate_id == candidate_id)
        .order_by(CandidateEvent.created_at.desc())
    )
    return list(db.scalars(stmt).all())


# ==================== CLIENTS ====================

def next_client_number(db: Session) -> int:
    last = db.scalar(select(func.max(Client.client_number)))
    return (last or FIRST_NUMBER - 1) + 1


def create_client(db: Session, **fields) -> Client:
    with _numbering_lock:
        return _insert_numbered(db, Client, "client_number", next_client_number, fields)


def list_clients(db: Session, active_only: bool = False) -> List[Client]:
    stmt = select(Client).order_by(Client.company_name)
    if active_only:
        stmt = stmt.where(Client.is_active.is_(True))
    return list(db.scalars(stmt).all())


# ==================== JOBS ====================

def generate_job_code(db: Session) -> str:
    """Случайный свободный 7-значный код вакансии."""
    while True:
        code = str(random.randint(10 ** (JOB_CODE_LENGTH - 1), 10 ** JOB_CODE_LENGTH - 1))
        if get_job_by_code(db, code) is None:
            return code


def get_job_by_code(db: Session, job_code: str) -> Optional[Job]:
    """Точное совпадение по job_code."""
    return db.scalars(select(Job).where(Job.job_code == job_code)).first()


def create_job(db: Session, **fields) -> Job:
    if not fields.get("job_code"):
        fields["job_code"] = generate_job_code(db)
    job = Job(**fields)
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def list_jobs(db: Session, status: Optional[str] = None, client_id: Optional[str] = None) -> List[Job]:
    stmt = select(Job).order_by(Job.is_urgent.desc(), Job.created_at.desc())
    if status:
        stmt = stmt.where(Job.status == status)
    if client_id:
        stmt = stmt.where(Job.client_id == client_id)
    return list(db.scalars(stmt).all())


# ==================== JOB APPLICATIONS ====================

def create_job_application(
    db: Session,
    candidate_id: str,
    job_id: str,
    status: str = "submitted",
    notes: Optional[str] = None,
) -> JobApplication:
    application = JobApplication(
        candidate_id=candidate_id,
        job_id=job_id,
        status=status,
        notes=notes,
    )
    db.add(application)
    db.commit()
    db.refresh(application)
    return application


def list_job_applications(
    db: Session,
    job_id: Optional[str] = None,
    candidate_id: Optional[str] = None,
    status: Optional[str] = None,
) -> List[JobApplication]:
    stmt = select(JobApplication).order_by(JobApplication.applied_at.desc())
    if job_id:
        stmt = stmt.where(JobApplication.job_id == job_id)
    if candidate_id:
        stmt = stmt.where(JobApplication.candidate_id == candidate_id)
    if status:
        stmt = stmt.where(JobApplication.status == status)
    return list(db.scalars(stmt).all())


# ==================== SYSTEM SETTINGS ====================

def get_setting(db: Session, key: str) -> Optional[str]:
    setting = db.scalars(select(SystemSetting).where(SystemSetting.key == key)).first()
    return setting.value if setting else None


def set_setting(db: Session, key: str, value: str, description: Optional[str] = None) -> SystemSetting:
    setting = db.scalars(select(SystemSetting).where(SystemSetting.key == key)).first()
    if setting is None:
        setting = SystemSetting(key=key, value=value, description=description)
        db.add(setting)
    else:
        setting.value = value
        setting.updated_at = utcnow()
        if description is not None:
            setting.description = description
    db.commit()
    db.refresh(setting)
    return setting


def load_imap_settings(db: Session) -> Dict[str, Any]:
    """
    Параметры IMAP: сначала таблица system_settings, затем переменные окружения.

    Returns:
        Словарь с ключами host, port, secure, user, password
    """
    def pick(key: str, fallback):
        value = get_setting(db, IMAP_SETTING_KEYS[key])
        return value if value not in (None, "") else fallback

    return {
        "host": pick("host", config.INCOMING_EMAIL_HOST),
        "port": int(pick("port", config.INCOMING_EMAIL_PORT)),
        "secure": str(pick("secure", config.INCOMING_EMAIL_SECURE)).lower() == "true",
        "user": pick("user", config.INCOMING_EMAIL_USER),
        "password": pick("password", config.INCOMING_EMAIL_PASS),
    }


def save_imap_settings(db: Session, changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Записывает переданные параметры IMAP в system_settings.

    Args:
        changes: Подмножество ключей host, port, secure, user, password;
            None пропускается, пустой пароль не затирает сохранённый

    Returns:
        Итоговые настройки, как их видит load_imap_settings
    """
    for key, value in changes.items():
        if value is None or key not in IMAP_SETTING_KEYS:
            continue
        if key == "password" and value == "":
            continue
        if key == "secure":
            value = "true" if value else "false"
        set_setting(db, IMAP_SETTING_KEYS[key], str(value), description=f"Incoming email {key}")
    logger.info(f"⚙️ Настройки IMAP обновлены: {sorted(k for k, v in changes.items() if v is not None)}")
    return load_imap_settings(db)
