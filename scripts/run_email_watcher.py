#!/usr/bin/env python3
"""
Email Watcher - непрерывный мониторинг почты и создание кандидатов из CV.

Запускается отдельным процессом (или в Docker контейнере), если API работает
без встроенного мониторинга (ENABLE_EMAIL_WATCHER=false).
Интервал настраивается через переменную окружения EMAIL_CHECK_INTERVAL (секунды).
"""

import logging
import os
import signal
import sys
import threading

# Добавляем корень проекта в path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.config import EMAIL_CHECK_INTERVAL
from app.core.logging_config import configure_logging
from app.db.session import init_db
from app.services.cv_pipeline import CVPipeline

logger = logging.getLogger("email_watcher")

# Событие для graceful shutdown
stop_event = threading.Event()


def signal_handler(signum, frame):
    """Обработчик сигналов для корректного завершения"""
    logger.info(f"Получен сигнал {signum}. Останавливаем...")
    stop_event.set()


def main():
    """Основной цикл мониторинга почты"""
    configure_logging()

    # Регистрируем обработчики сигналов
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    print(f"""
╔═══════════════════════════════════════════════════════════════╗
║         EMAIL WATCHER - МОНИТОРИНГ ПОЧТЫ                      ║
╠═══════════════════════════════════════════════════════════════╣
║  Интервал проверки: {EMAIL_CHECK_INTERVAL:>4} секунд                            ║
║  Для остановки: Ctrl+C или docker-compose stop               ║
╚═══════════════════════════════════════════════════════════════╝
    """)

    init_db()
    CVPipeline().run_email_watcher(interval=EMAIL_CHECK_INTERVAL, stop_event=stop_event)


if __name__ == "__main__":
    main()
