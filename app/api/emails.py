"""
FastAPI эндпоинты почты: ручной цикл приёма CV, проверка IMAP, отправка писем.
"""

import smtplib
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_pipeline, require_permission
from app.db.models import Candidate, Job, User
from app.db.session import get_db
from app.models.api import (
    CheckIncomingResponse,
    ConnectionTestResponse,
    IncomingEmailSettings,
    IncomingEmailSettingsUpdate,
    SendCandidateProfileRequest,
    SendEmailResponse,
    SendInterviewInvitationRequest,
    SendShortlistRequest,
)
from app.services import storage
from app.services.cv_pipeline import CVPipeline
from app.services.email_fetcher import EmailFetcher
from app.services.email_sender import (
    EmailSender,
    candidate_cv_attachment,
    compose_candidate_profile,
    compose_interview_invitation,
    compose_shortlist,
)

router = APIRouter(prefix="/api/emails", tags=["Email"])


def get_email_sender() -> EmailSender:
    """Dependency для EmailSender"""
    return EmailSender()


def _candidate_or_404(db: Session, candidate_id: str) -> Candidate:
    candidate = storage.get_candidate(db, candidate_id)
    if candidate is None:
        raise HTTPException(status_code=404, detail=f"Кандидат {candidate_id} не найден")
    return candidate


def _job_or_404(db: Session, job_id: Optional[str]) -> Optional[Job]:
    if not job_id:
        return None
    job = db.get(Job, job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Вакансия не найдена")
    return job


def _send(sender: EmailSender, recipients: List[str], subject: str, body: str, attachments: Optional[List[Path]] = None):
    try:
        sender.send(recipients, subject, body, attachments=attachments)
    except ValueError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except (smtplib.SMTPException, OSError) as e:
        raise HTTPException(status_code=502, detail=f"Ошибка отправки письма: {str(e)}")


def _log_sent(db: Session, candidates: List[Candidate], user: User, kind: str, subject: str, recipients: List[str]):
    for candidate in candidates:
        storage.add_candidate_event(
            db,
            candidate_id=candidate.id,
            event_type="email_sent",
            description=f"Email sent ({kind}): {subject}",
            metadata={"emailType": kind, "recipients": recipients, "subject": subject},
            created_by=user.id,
        )


@router.post("/check-incoming", response_model=CheckIncomingResponse)
def check_incoming(
    pipeline: CVPipeline = Depends(get_pipeline),
    user: User = Depends(require_permission("email", "read")),
):
    """
    Один цикл приёма CV из входящей почты.

    Если плановый цикл уже выполняется, новый не запускается (`started=false`).
    """
    results = pipeline.run_cycle()
    if results is None:
        return CheckIncomingResponse(started=False)
    return CheckIncomingResponse(started=True, processed_count=len(results), results=results)


def _masked(settings: dict) -> IncomingEmailSettings:
    return IncomingEmailSettings(
        host=settings["host"],
        port=settings["port"],
        secure=settings["secure"],
        user=settings["user"],
        password="********" if settings["password"] else "",
    )


@router.get("/settings", response_model=IncomingEmailSettings)
def get_incoming_settings(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("settings", "read")),
):
    """Действующие настройки входящей почты (system_settings поверх .env), пароль скрыт"""
    return _masked(storage.load_imap_settings(db))


@router.put("/settings", response_model=IncomingEmailSettings)
def update_incoming_settings(
    payload: IncomingEmailSettingsUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("settings", "update")),
):
    """
    Сохранение настроек входящей почты в system_settings

    Следующий цикл приёма и /test-imap используют новые значения.
    Пустой пароль не затирает сохранённый.
    """
    return _masked(storage.save_imap_settings(db, payload.model_dump(exclude_unset=True)))


@router.post("/test-imap", response_model=ConnectionTestResponse)
def test_imap(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("settings", "read")),
):
    """Проверка подключения к входящей почте с текущими настройками"""
    fetcher = EmailFetcher.from_settings(storage.load_imap_settings(db))
    return ConnectionTestResponse(success=fetcher.test_connection())


@router.post("/send-candidate-profile", response_model=SendEmailResponse)
def send_candidate_profile(
    request: SendCandidateProfileRequest,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
    user: User = Depends(require_permission("email", "send")),
):
    """Профиль кандидата клиенту (по умолчанию с файлом CV)"""
    candidate = _candidate_or_404(db, request.candidate_id)
    subject, body = compose_candidate_profile(candidate, subject=request.subject, notes=request.notes)
    attachments = candidate_cv_attachment(candidate) if request.attach_cv else []

    recipients = [request.to_email]
    _send(sender, recipients, subject, body, attachments)
    _log_sent(db, [candidate], user, "candidate_profile", subject, recipients)
    return SendEmailResponse(success=True, recipients=recipients)


@router.post("/send-interview-invitation", response_model=SendEmailResponse)
def send_interview_invitation(
    request: SendInterviewInvitationRequest,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
    user: User = Depends(require_permission("email", "send")),
):
    """Приглашение на интервью на email кандидата"""
    candidate = _candidate_or_404(db, request.candidate_id)
    if not candidate.email:
        raise HTTPException(status_code=400, detail="У кандидата нет email")
    job = _job_or_404(db, request.job_id)

    subject, body = compose_interview_invitation(
        candidate, request.interview_date, job=job, location=request.location, notes=request.notes
    )
    recipients = [candidate.email]
    _send(sender, recipients, subject, body)
    _log_sent(db, [candidate], user, "interview_invitation", subject, recipients)
    return SendEmailResponse(success=True, recipients=recipients)


@router.post("/send-candidate-shortlist", response_model=SendEmailResponse)
def send_candidate_shortlist(
    request: SendShortlistRequest,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
    user: User = Depends(require_permission("email", "send")),
):
    """Шортлист из нескольких кандидатов клиенту"""
    candidates = [_candidate_or_404(db, candidate_id) for candidate_id in request.candidate_ids]
    job = _job_or_404(db, request.job_id)

    subject, body = compose_shortlist(candidates, job=job, notes=request.notes)
    recipients = [request.to_email]
    _send(sender, recipients, subject, body)
    _log_sent(db, candidates, user, "shortlist", subject, recipients)
    return SendEmailResponse(success=True, recipients=recipients)
