"""
Сервис для отправки писем через SMTP (cPanel): профиль кандидата, приглашение на интервью, шортлист.

Тексты писем на английском - они уходят клиентам и кандидатам.
"""

import logging
import mimetypes
import smtplib
from datetime import datetime
from email.message import EmailMessage
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from app.core import config
from app.db.models import Candidate, Job
from app.services.text_extractor import resolve_cv_path

logger = logging.getLogger(__name__)


class EmailSender:
    """
    Отправка писем через SMTP.
    Порт 465 или secure=True - SMTP_SSL, иначе обычный SMTP со STARTTLS.
    """

    def __init__(
        self,
        smtp_server: Optional[str] = None,
        smtp_port: Optional[int] = None,
        secure: Optional[bool] = None,
        email_address: Optional[str] = None,
        email_password: Optional[str] = None,
        timeout: int = 30,
    ):
        self.smtp_server = smtp_server or config.CPANEL_SMTP_HOST
        self.smtp_port = smtp_port or config.CPANEL_SMTP_PORT
        self.secure = config.CPANEL_SMTP_SECURE if secure is None else secure
        self.email_address = email_address or config.CPANEL_EMAIL_USER
        self.email_password = email_password or config.CPANEL_EMAIL_PASS
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.smtp_server and self.email_address and self.email_password)

    def send(
        self,
        recipients: Sequence[str],
        subject: str,
        body: str,
        attachments: Optional[List[Path]] = None,
    ) -> None:
        """
        Отправляет письмо.

        Raises:
            ValueError: SMTP не настроен
            smtplib.SMTPException, OSError: ошибка отправки
        """
        if not self.configured:
            raise ValueError("SMTP не настроен: укажите CPANEL_SMTP_HOST, CPANEL_EMAIL_USER и CPANEL_EMAIL_PASS")

        message = EmailMessage()
        message["From"] = self.email_address
        message["To"] = ", ".join(recipients)
        message["Subject"] = subject
        message.set_content(body)

        for path in attachments or []:
            content_type, _ = mimetypes.guess_type(path.name)
            maintype, subtype = (content_type or "application/octet-stream").split("/", 1)
            message.add_attachment(
                path.read_bytes(), maintype=maintype, subtype=subtype, filename=path.name
            )

        logger.info(f"📤 Подключение к SMTP {self.smtp_server}:{self.smtp_port}...")
        try:
            if self.secure or self.smtp_port == 465:
                with smtplib.SMTP_SSL(self.smtp_server, self.smtp_port, timeout=self.timeout) as server:
                    server.login(self.email_address, self.email_password)
                    server.send_message(message)
            else:
                with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=self.timeout) as server:
                    server.starttls()
                    server.login(self.email_address, self.email_password)
                    server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ Ошибка отправки письма «{subject}»: {e}")
            raise

        logger.info(f"✅ Письмо «{subject}» отправлено: {', '.join(recipients)}")


# ==================== ШАБЛОНЫ ====================

def _candidate_name(candidate: Candidate) -> str:
    name = f"{candidate.first_name or ''} {candidate.last_name or ''}".strip()
    return name or f"Candidate #{candidate.candidate_number}"


def _candidate_summary(candidate: Candidate) -> str:
    lines = [f"Name: {_candidate_name(candidate)}"]
    if candidate.profession:
        lines.append(f"Profession: {candidate.profession}")
    if candidate.city:
        lines.append(f"City: {candidate.city}")
    if candidate.experience is not None:
        lines.append(f"Experience: {candidate.experience} years")
    if candidate.mobile:
        lines.append(f"Mobile: {candidate.mobile}")
    if candidate.email:
        lines.append(f"Email: {candidate.email}")
    return "\n".join(lines)


def compose_candidate_profile(candidate: Candidate, subject: Optional[str] = None, notes: Optional[str] = None) -> Tuple[str, str]:
    subject = subject or f"Candidate profile: {_candidate_name(candidate)}"
    body = "Hello,\n\nPlease find the candidate details below.\n\n" + _candidate_summary(candidate)
    if notes:
        body += f"\n\nNotes:\n{notes}"
    return subject, body + "\n"


def compose_interview_invitation(
    candidate: Candidate,
    interview_date: datetime,
    job: Optional[Job] = None,
    location: Optional[str] = None,
    notes: Optional[str] = None,
) -> Tuple[str, str]:
    position = f" for the position of {job.title}" if job else ""
    subject = f"Interview invitation{': ' + job.title if job else ''}"
    body = (
        f"Dear {_candidate_name(candidate)},\n\n"
        f"We would like to invite you to an interview{position}.\n\n"
        f"Date: {interview_date.strftime('%d/%m/%Y %H:%M')}\n"
    )
    if location:
        body += f"Location: {location}\n"
    if notes:
        body += f"\n{notes}\n"
    return subject, body


def compose_shortlist(candidates: List[Candidate], job: Optional[Job] = None, notes: Optional[str] = None) -> Tuple[str, str]:
    subject = f"Candidate shortlist{': ' + job.title if job else ''} ({len(candidates)})"
    blocks = [f"{i}. " + _candidate_summary(c).replace("\n", "\n   ") for i, c in enumerate(candidates, 1)]
    body = "Hello,\n\nPlease find the shortlisted candidates below.\n\n" + "\n\n".join(blocks)
    if notes:
        body += f"\n\nNotes:\n{notes}"
    return subject, body + "\n"


def candidate_cv_attachment(candidate: Candidate) -> List[Path]:
    """Файл CV кандидата, если он есть на диске."""
    if not candidate.cv_path:
        return []
    path = resolve_cv_path(candidate.cv_path)
    if not path.exists():
        logger.warning(f"⚠️ Файл CV не найден: {path}")
        return []
    return [path]
