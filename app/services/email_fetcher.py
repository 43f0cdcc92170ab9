"""
Сервис для получения новых писем из почтового ящика по IMAP.

Берутся только непрочитанные (UNSEEN) письма, не больше последних N за цикл.
Полное тело (RFC822) забирается без PEEK, поэтому сервер сам помечает письмо
прочитанным. Ошибки соединения логируются, цикл просто завершается пустым списком.
"""

import imaplib
import logging
import threading
from typing import Any, Dict, List, Optional

from app.core import config

logger = logging.getLogger(__name__)


class EmailFetcher:
    """
    Класс для получения писем из почтового ящика (cPanel, Gmail и др.)
    Подключение защищено сторожевым таймером: если цикл не уложился в timeout,
    соединение принудительно закрывается.
    """

    def __init__(
        self,
        email_address: Optional[str] = None,
        email_password: Optional[str] = None,
        imap_server: Optional[str] = None,
        imap_port: Optional[int] = None,
        secure: Optional[bool] = None,
        timeout: Optional[int] = None,
        fetch_limit: Optional[int] = None,
    ):
        """
        Инициализация Email Fetcher.

        Args:
            email_address: Логин ящика (или INCOMING_EMAIL_USER в .env)
            email_password: Пароль (или INCOMING_EMAIL_PASS в .env)
            imap_server: IMAP сервер (или INCOMING_EMAIL_HOST в .env)
            imap_port: IMAP порт (по умолчанию 993)
            secure: Использовать SSL
            timeout: Сторожевой таймер на весь цикл, секунды
            fetch_limit: Сколько последних непрочитанных писем забирать
        """
        self.email_address = email_address or config.INCOMING_EMAIL_USER
        self.email_password = email_password or config.INCOMING_EMAIL_PASS
        self.imap_server = imap_server or config.INCOMING_EMAIL_HOST
        self.imap_port = imap_port or config.INCOMING_EMAIL_PORT
        self.secure = config.INCOMING_EMAIL_SECURE if secure is None else secure
        self.timeout = timeout or config.IMAP_TIMEOUT
        self.fetch_limit = fetch_limit or config.EMAIL_FETCH_LIMIT

        self.connection: Optional[imaplib.IMAP4] = None
        self.timed_out = False

    @classmethod
    def from_settings(cls, settings: Dict[str, Any], **kwargs) -> "EmailFetcher":
        """Создание из словаря storage.load_imap_settings()."""
        return cls(
            email_address=settings.get("user"),
            email_password=settings.get("password"),
            imap_server=settings.get("host"),
            imap_port=settings.get("port"),
            secure=settings.get("secure"),
            **kwargs,
        )

    def connect(self) -> bool:
        """Подключение к почтовому серверу."""
        if not self.email_address or not self.email_password or not self.imap_server:
            raise ValueError(
                "Не указаны INCOMING_EMAIL_HOST, INCOMING_EMAIL_USER и INCOMING_EMAIL_PASS. "
                "Добавьте их в .env файл или в системные настройки."
            )

        try:
            imap_class = imaplib.IMAP4_SSL if self.secure else imaplib.IMAP4
            self.connection = imap_class(self.imap_server, self.imap_port, timeout=self.timeout)
            self.connection.login(self.email_address, self.email_password)
            logger.info(f"✓ Подключено к {self.imap_server}:{self.imap_port}")
            return True
        except (imaplib.IMAP4.error, OSError) as e:
            logger.error(f"✗ Ошибка подключения к {self.imap_server}: {e}")
            self.connection = None
            return False

    def disconnect(self):
        """Отключение от почтового сервера."""
        if self.connection:
            try:
                self.connection.logout()
            except (imaplib.IMAP4.error, OSError):
                pass
            self.connection = None

    def test_connection(self) -> bool:
        """Проверка логина без чтения писем."""
        try:
            connected = self.connect()
        except ValueError as e:
            logger.warning(f"⚠️ {e}")
            return False
        self.disconnect()
        return connected

    def _force_close(self):
        """Срабатывание сторожевого таймера."""
        self.timed_out = True
        logger.error(f"⏱️ Timeout {self.timeout} сек - соединение IMAP закрывается принудительно")
        if self.connection:
            try:
                self.connection.shutdown()
            except OSError:
                pass

    @staticmethod
    def _raw_from_fetch(msg_data) -> Optional[bytes]:
        for item in msg_data or []:
            if isinstance(item, tuple) and len(item) >= 2:
                return item[1]
        return None

    def fetch_new_messages(self, folder: str = "INBOX") -> List[bytes]:
        """
        Получение последних непрочитанных писем.

        Args:
            folder: Папка почты

        Returns:
            Список сырых писем (bytes), пустой при любой ошибке соединения
        """
        self.timed_out = False
        watchdog = threading.Timer(self.timeout, self._force_close)
        watchdog.daemon = True
        watchdog.start()

        messages: List[bytes] = []
        try:
            if not self.connection and not self.connect():
                return []

            status, _ = self.connection.select(folder, readonly=False)
            if status != "OK":
                logger.error(f"✗ Не удалось открыть папку: {folder}")
                return []

            status, data = self.connection.search(None, "UNSEEN")
            if status != "OK":
                logger.error("✗ Ошибка поиска писем")
                return []

            email_ids = data[0].split() if data and data[0] else []
            if not email_ids:
                logger.info("📭 Новых писем нет")
                return []

            selected = email_ids[-self.fetch_limit:]
            logger.info(f"📬 Найдено непрочитанных писем: {len(email_ids)}, обрабатываем {len(selected)}")

            for email_id in selected:
                try:
                    status, msg_data = self.connection.fetch(email_id, "(RFC822)")
                except imaplib.IMAP4.abort:
                    raise
                except imaplib.IMAP4.error as e:
                    logger.error(f"  ✗ Ошибка получения письма {email_id!r}: {e}")
                    continue

                raw_email = self._raw_from_fetch(msg_data) if status == "OK" else None
                if raw_email:
                    messages.append(raw_email)

        except ValueError as e:
            logger.warning(f"⚠️ {e}")
        except (imaplib.IMAP4.error, OSError) as e:
            logger.error(f"✗ Ошибка IMAP: {e}")
        finally:
            watchdog.cancel()
            self.disconnect()

        return messages

    def __enter__(self):
        """Context manager вход."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager выход."""
        self.disconnect()
