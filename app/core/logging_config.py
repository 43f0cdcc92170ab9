"""
Настройка логирования: консоль + файл с ротацией.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from app.core.config import LOG_DIR, LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def configure_logging(level: Optional[str] = None, log_dir: Optional[Path] = None) -> None:
    """
    Настраивает корневой логгер один раз за процесс.

    Args:
        level: Уровень логирования (по умолчанию LOG_LEVEL из .env)
        log_dir: Папка для файла логов (по умолчанию LOG_DIR из .env)
    """
    global _configured
    if _configured:
        return

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel((level or LOG_LEVEL).upper())

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_dir = Path(log_dir or LOG_DIR)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / "recruitment.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    except OSError as e:
        root_logger.warning(f"⚠️ Файловый лог недоступен ({log_dir}): {e}")

    _configured = True
