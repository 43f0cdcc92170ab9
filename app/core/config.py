"""
Центральная конфигурация приложения.
Все переменные окружения загружаются из .env и доступны через этот модуль.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = Path(__file__).parent.parent.parent

# ==================== DATABASE ====================
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{PROJECT_ROOT / 'data' / 'recruitment.db'}")

# ==================== FILES ====================
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", str(PROJECT_ROOT / "uploads")))

# ==================== INCOMING EMAIL (IMAP) ====================
INCOMING_EMAIL_HOST = os.getenv("INCOMING_EMAIL_HOST", "")
INCOMING_EMAIL_PORT = int(os.getenv("INCOMING_EMAIL_PORT", "993"))
INCOMING_EMAIL_SECURE = os.getenv("INCOMING_EMAIL_SECURE", "true").lower() == "true"
INCOMING_EMAIL_USER = os.getenv("INCOMING_EMAIL_USER", "")
INCOMING_EMAIL_PASS = os.getenv("INCOMING_EMAIL_PASS", "")

EMAIL_CHECK_INTERVAL = int(os.getenv("EMAIL_CHECK_INTERVAL", "300"))
EMAIL_FETCH_LIMIT = int(os.getenv("EMAIL_FETCH_LIMIT", "10"))
IMAP_TIMEOUT = int(os.getenv("IMAP_TIMEOUT", "30"))
ENABLE_EMAIL_WATCHER = os.getenv("ENABLE_EMAIL_WATCHER", "false").lower() == "true"

# ==================== OUTGOING EMAIL (SMTP) ====================
CPANEL_SMTP_HOST = os.getenv("CPANEL_SMTP_HOST", "")
CPANEL_SMTP_PORT = int(os.getenv("CPANEL_SMTP_PORT", "587"))
CPANEL_SMTP_SECURE = os.getenv("CPANEL_SMTP_SECURE", "false").lower() == "true"
CPANEL_EMAIL_USER = os.getenv("CPANEL_EMAIL_USER", "")
CPANEL_EMAIL_PASS = os.getenv("CPANEL_EMAIL_PASS", "")

# ==================== TEXT EXTRACTION ====================
EXTRACTION_TIMEOUT = int(os.getenv("EXTRACTION_TIMEOUT", "60"))
OCR_LANG = os.getenv("OCR_LANG", "heb+eng")
PDFTOTEXT_BIN = os.getenv("PDFTOTEXT_BIN", "pdftotext")

# ==================== LOGGING ====================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = Path(os.getenv("LOG_DIR", str(PROJECT_ROOT / "logs")))
