"""
Core модуль - конфигурация, логирование и права доступа.
"""

from app.core.config import (
    DATABASE_URL,
    UPLOAD_DIR,
    EMAIL_CHECK_INTERVAL,
    EMAIL_FETCH_LIMIT,
    IMAP_TIMEOUT,
)
from app.core.logging_config import configure_logging
from app.core.permissions import ROLES, has_permission

__all__ = [
    "DATABASE_URL",
    "UPLOAD_DIR",
    "EMAIL_CHECK_INTERVAL",
    "EMAIL_FETCH_LIMIT",
    "IMAP_TIMEOUT",
    "configure_logging",
    "ROLES",
    "has_permission",
]
