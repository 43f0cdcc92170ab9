"""
CVPipeline - автоматический пайплайн обработки резюме из входящей почты.

Полный цикл:
    IMAP (UNSEEN, последние N) → MIME → вложения-CV → диск → текст → поля → кандидат + событие
    → (код вакансии в теме) подача на вакансию

Использование:
    pipeline = CVPipeline()
    pipeline.process_message(raw_bytes)        # Одно письмо
    pipeline.run_cycle()                       # Один цикл проверки почты
    pipeline.run_email_watcher(interval=300)   # Мониторинг почты

Проверки дубликатов нет: повторная обработка того же письма создаст второго кандидата.
Запись кандидата, события и подачи идут отдельными commit - при сбое посередине
остаётся частичное состояние.
"""

import logging
import re
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Union

from sqlalchemy.orm import Session

from app.core.config import EMAIL_CHECK_INTERVAL, UPLOAD_DIR
from app.db.session import SessionLocal
from app.models.api import IngestionResult
from app.models.cv import EmailAttachment, InboundEmail
from app.services import storage
from app.services.attachments import is_cv_attachment, parse_email, save_attachment
from app.services.cv_field_parser import parse_cv_fields
from app.services.email_fetcher import EmailFetcher
from app.services.text_extractor import extract_text

logger = logging.getLogger(__name__)

JOB_CODE_PATTERN = re.compile(r"(\d{4,})")
NO_DOMAIN_SOURCE = "incoming-email-no-domain"

# Один цикл почты на процесс: ручной запуск пропускается, если идёт плановый
_cycle_lock = threading.Lock()


class CVPipeline:
    """
    Пайплайн приёма CV из почты до записи кандидата в БД.

    Этапы:
        1. Получение писем (EmailFetcher)
        2. Разбор MIME и отбор вложений, похожих на CV
        3. Сохранение файла в папку загрузок
        4. Извлечение текста (pdftotext / DOCX / OCR)
        5. Эвристический разбор полей
        6. Создание кандидата и события candidate_created
        7. Подача на вакансию, если в теме есть код вакансии
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        upload_dir: Union[str, Path, None] = None,
        fetcher_factory: Optional[Callable[[Session], EmailFetcher]] = None,
    ):
        """
        Args:
            session_factory: Фабрика сессий SQLAlchemy
            upload_dir: Папка для сохранения CV (по умолчанию UPLOAD_DIR)
            fetcher_factory: Фабрика EmailFetcher (по умолчанию - из системных настроек)
        """
        self.session_factory = session_factory
        self.upload_dir = Path(upload_dir) if upload_dir else UPLOAD_DIR
        self.fetcher_factory = fetcher_factory or self._default_fetcher

        self.stats = {
            "cycles": 0,
            "messages": 0,
            "processed": 0,
            "failed": 0,
            "skipped": 0,
        }

    @staticmethod
    def _default_fetcher(db: Session) -> EmailFetcher:
        return EmailFetcher.from_settings(storage.load_imap_settings(db))

    # ==================== ОДНО ПИСЬМО ====================

    def process_message(self, raw_email: bytes) -> List[IngestionResult]:
        """
        Обрабатывает одно письмо: каждое вложение-CV превращается в кандидата.

        Args:
            raw_email: Полные байты письма

        Returns:
            Список созданных кандидатов (пустой, если CV нет)
        """
        self.stats["messages"] += 1
        try:
            inbound = parse_email(raw_email)
        except Exception:
            logger.exception("❌ Ошибка разбора письма")
            self.stats["failed"] += 1
            return []

        logger.info(f"📧 Письмо: «{inbound.subject or 'без темы'}» от {inbound.sender or 'неизвестно'}")

        if not inbound.attachments:
            logger.info(f"⚠️ В письме нет вложений: «{inbound.subject or 'без темы'}» от {inbound.sender}")
            self.stats["skipped"] += 1
            return []

        results = []
        with self.session_factory() as db:
            for attachment in inbound.attachments:
                if not is_cv_attachment(attachment.filename, attachment.content_type):
                    logger.info(f"   ⏭️ Вложение не похоже на CV: {attachment.filename or '(без имени)'}")
                    continue
                if not attachment.payload:
                    logger.warning(f"   ⚠️ Пустое вложение: {attachment.filename}")
                    continue

                try:
                    results.append(self._process_attachment(db, inbound, attachment))
                    self.stats["processed"] += 1
                except Exception:
                    logger.exception(f"   ❌ Ошибка обработки вложения {attachment.filename}")
                    db.rollback()
                    self.stats["failed"] += 1

        return results

    def _process_attachment(
        self,
        db: Session,
        inbound: InboundEmail,
        attachment: EmailAttachment,
    ) -> IngestionResult:
        logger.info(f"💼 Обработка CV: {attachment.filename}")

        # 1. Файл на диск
        stored_name = save_attachment(attachment, self.upload_dir)

        # 2. Текст и поля
        cv_text = extract_text(self.upload_dir / stored_name)
        if cv_text:
            fields = parse_cv_fields(cv_text)
        else:
            logger.warning("   ⚠️ Не удалось извлечь текст из CV, поля останутся пустыми")
            fields = parse_cv_fields("")

        # 3. Кандидат - из данных CV, а не отправителя
        sender_email = inbound.sender_email
        sender_domain = sender_email.split("@")[1] if sender_email else None
        subject = inbound.subject or "(no subject)"

        notes = f'Candidate added automatically from inbound email. Subject: "{subject}"'
        if sender_email:
            notes += f"\nSent from: {sender_email}"

        candidate = storage.create_candidate(
            db,
            first_name=fields.first_name,
            last_name=fields.last_name,
            email=fields.email,
            mobile=fields.mobile or "",
            phone=fields.phone or "",
            city="",
            profession=fields.profession or "",
            status="active",
            recruitment_source=sender_domain or NO_DOMAIN_SOURCE,
            source="email",
            notes=notes,
            cv_path=stored_name,
            cv_content=cv_text,
        )

        # 4. Событие создания
        storage.add_candidate_event(
            db,
            candidate_id=candidate.id,
            event_type="candidate_created",
            description=(
                f"Candidate created automatically from inbound email. "
                f"Candidate #{candidate.candidate_number}"
                + (f", sender: {sender_email}" if sender_email else ", no sender address")
            ),
            metadata={
                "source": "email_import",
                "emailSubject": subject,
                "emailSender": inbound.sender,
                "cvFileName": stored_name,
                "senderEmail": sender_email or "unknown",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

        # 5. Подача по коду вакансии из темы
        application_id = None
        job_code_match = JOB_CODE_PATTERN.search(inbound.subject or "")
        if job_code_match:
            job_code = job_code_match.group(1)
            job = storage.get_job_by_code(db, job_code)
            if job:
                application = storage.create_job_application(
                    db,
                    candidate_id=candidate.id,
                    job_id=job.id,
                    status="submitted",
                    notes=f"Applied automatically by email for job code {job_code}",
                )
                application_id = application.id
                logger.info(f"🎯 Создана подача на вакансию: {job.title} ({job_code})")
            else:
                logger.info(f"⚠️ Вакансия с кодом {job_code} не найдена")

        logger.info(
            f"👤 Новый кандидат №{candidate.candidate_number}"
            + (f" ({fields.full_name})" if fields.full_name else "")
        )

        return IngestionResult(
            candidate_id=candidate.id,
            candidate_number=candidate.candidate_number,
            full_name=fields.full_name,
            email=fields.email,
            cv_file=stored_name,
            job_application_id=application_id,
        )

    # ==================== ЦИКЛ ПОЧТЫ ====================

    def process_from_email(self, folder: str = "INBOX") -> List[IngestionResult]:
        """
        Забирает новые письма и обрабатывает их по одному.

        Returns:
            Список созданных кандидатов за цикл
        """
        with self.session_factory() as db:
            fetcher = self.fetcher_factory(db)

        raw_messages = fetcher.fetch_new_messages(folder=folder)
        if not raw_messages:
            return []

        results = []
        for raw_email in raw_messages:
            results.extend(self.process_message(raw_email))

        logger.info(f"📬 Цикл завершён: писем {len(raw_messages)}, новых кандидатов {len(results)}")
        return results

    def run_cycle(self, folder: str = "INBOX") -> Optional[List[IngestionResult]]:
        """
        Один цикл проверки почты. Циклы не пересекаются.

        Returns:
            Результаты цикла или None, если другой цикл ещё выполняется
        """
        if not _cycle_lock.acquire(blocking=False):
            logger.warning("⚠️ Предыдущий цикл проверки почты ещё выполняется, пропускаем")
            return None

        try:
            self.stats["cycles"] += 1
            return self.process_from_email(folder=folder)
        except Exception:
            logger.exception("❌ Ошибка цикла проверки почты")
            return []
        finally:
            _cycle_lock.release()

    def run_email_watcher(
        self,
        interval: int = EMAIL_CHECK_INTERVAL,
        stop_event: Optional[threading.Event] = None,
        folder: str = "INBOX",
    ):
        """
        Непрерывный мониторинг почты: сразу один цикл, затем каждые interval секунд.

        Args:
            interval: Интервал проверки в секундах (по умолчанию 5 минут)
            stop_event: Событие остановки (для фонового потока и сигналов)
            folder: Папка почты
        """
        stop_event = stop_event or threading.Event()
        logger.info(f"🚀 Мониторинг почты запущен: интервал {interval} сек, папка {folder}")

        while not stop_event.is_set():
            results = self.run_cycle(folder=folder)
            if results:
                logger.info(f"✅ Обработано {len(results)} новых резюме")
            stop_event.wait(interval)

        logger.info("🛑 Мониторинг почты остановлен")
        self.log_stats()

    def log_stats(self):
        """Выводит статистику в лог"""
        logger.info(
            "📊 Статистика пайплайна: циклов %d, писем %d, обработано %d, пропущено %d, ошибок %d",
            self.stats["cycles"],
            self.stats["messages"],
            self.stats["processed"],
            self.stats["skipped"],
            self.stats["failed"],
        )
