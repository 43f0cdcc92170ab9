"""
Главный модуль приложения - FastAPI сервер кадрового агентства.

Запуск:
    uvicorn app.main:app --reload --port 8000

Документация API:
    http://localhost:8000/docs
"""

import logging
import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app import __version__
from app.api import applications, candidates, clients, emails, jobs, reports
from app.api.deps import clear_pipeline, set_pipeline
from app.api.routes import router
from app.core.config import EMAIL_CHECK_INTERVAL, ENABLE_EMAIL_WATCHER, UPLOAD_DIR
from app.core.logging_config import configure_logging
from app.db.session import init_db
from app.services.cv_pipeline import CVPipeline

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Инициализация и очистка ресурсов при запуске/остановке приложения"""
    configure_logging()
    logger.info("🚀 Запуск API сервера...")

    init_db()

    pipeline = CVPipeline()
    set_pipeline(pipeline)

    stop_event = threading.Event()
    watcher = None
    if ENABLE_EMAIL_WATCHER:
        watcher = threading.Thread(
            target=pipeline.run_email_watcher,
            kwargs={"interval": EMAIL_CHECK_INTERVAL, "stop_event": stop_event},
            name="email-watcher",
            daemon=True,
        )
        watcher.start()
        logger.info(f"📬 Мониторинг почты включён (каждые {EMAIL_CHECK_INTERVAL} сек)")
    else:
        logger.info("📭 Мониторинг почты выключен (ENABLE_EMAIL_WATCHER=false)")

    logger.info("✅ API готов к работе!")

    yield

    # Очистка при остановке
    logger.info("👋 Остановка API сервера...")
    stop_event.set()
    if watcher is not None:
        watcher.join(timeout=5)
    clear_pipeline()


app = FastAPI(
    title="Recruitment API",
    description="""
    API кадрового агентства.

    ## Возможности

    * **Кандидаты** - CRUD, журнал событий, загрузка CV, поиск по тексту CV
    * **Клиенты и вакансии** - коды вакансий, подачи кандидатов
    * **Почта** - автоматический приём CV из входящих писем, отправка профилей и приглашений
    * **Отчёты** - источники кандидатов, статусы подач, дашборд

    ## Использование

    1. Получите токен через `POST /api/auth/login`
    2. Передавайте его в заголовке `Authorization: Bearer <token>`
    """,
    version=__version__,
    lifespan=lifespan,
)

# Подключаем роуты
app.include_router(router)
app.include_router(candidates.router)
app.include_router(clients.router)
app.include_router(jobs.router)
app.include_router(applications.router)
app.include_router(reports.router)
app.include_router(emails.router)

UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(UPLOAD_DIR)), name="uploads")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
