"""
Разбор MIME писем, классификация вложений и сохранение CV на диск.
"""

import email
import logging
import mimetypes
import re
import time
from email.header import Header, decode_header
from email.message import Message
from email.utils import parseaddr
from pathlib import Path
from typing import List, Optional, Union

from app.core.config import UPLOAD_DIR
from app.models.cv import EmailAttachment, InboundEmail

logger = logging.getLogger(__name__)

# Ключевые слова в имени файла (קורות = "קורות חיים", резюме на иврите)
CV_KEYWORDS = ("cv", "resume", "קורות")

CV_EXTENSIONS = (".pdf", ".doc", ".docx", ".jpg", ".jpeg", ".png", ".tiff", ".bmp")

UNSAFE_FILENAME_CHARS = re.compile(r'[/\\:*?"<>|]')


def _decode_bytes(part: bytes, encoding: Optional[str]) -> str:
    # unknown-8bit: сырые 8-битные заголовки без RFC 2047, обычно UTF-8
    if not encoding or encoding.lower() == "unknown-8bit":
        encoding = "utf-8"
    try:
        return part.decode(encoding, errors="replace")
    except LookupError:
        return part.decode("utf-8", errors="replace")


def decode_header_value(value: Union[str, Header, None]) -> str:
    """Декодирование заголовка письма (RFC 2047 и сырой 8-bit)."""
    if not value:
        return ""

    decoded_parts = []
    for part, encoding in decode_header(value):
        if isinstance(part, bytes):
            decoded_parts.append(_decode_bytes(part, encoding))
        else:
            decoded_parts.append(part)
    return "".join(decoded_parts)


def is_cv_attachment(filename: str, content_type: str = "") -> bool:
    """
    Похоже ли вложение на CV.

    True, если имя содержит ключевое слово, либо расширение из списка,
    либо тип содержимого image/*.
    """
    name = (filename or "").lower()
    if any(keyword in name for keyword in CV_KEYWORDS):
        return True
    if name.endswith(CV_EXTENSIONS):
        return True
    return (content_type or "").lower().startswith("image/")


def sanitize_filename(filename: str) -> str:
    """Заменяет только небезопасные для ФС символы; иврит и юникод сохраняются."""
    return UNSAFE_FILENAME_CHARS.sub("_", filename)


def extract_sender_email(from_header: str) -> Optional[str]:
    """Адрес отправителя из заголовка From, None если его нет."""
    _, address = parseaddr(from_header or "")
    if address and "@" in address:
        return address.strip()
    return None


def parse_email(raw_email: bytes) -> InboundEmail:
    """
    Разбирает письмо целиком (после полного получения байтов).

    Args:
        raw_email: Сырые байты RFC822

    Returns:
        InboundEmail с темой, отправителем и вложениями
    """
    msg = email.message_from_bytes(raw_email)

    subject = decode_header_value(msg.get("Subject", ""))
    sender = decode_header_value(msg.get("From", ""))

    attachments: List[EmailAttachment] = []
    for part in msg.walk():
        if part.is_multipart():
            continue
        attachment = _to_attachment(part)
        if attachment is not None:
            attachments.append(attachment)

    return InboundEmail(
        subject=subject,
        sender=sender,
        sender_email=extract_sender_email(sender),
        attachments=attachments,
    )


def _to_attachment(part: Message) -> Optional[EmailAttachment]:
    content_disposition = str(part.get("Content-Disposition", ""))
    filename = part.get_filename()

    if "attachment" not in content_disposition.lower() and not filename:
        return None

    payload = part.get_payload(decode=True) or b""
    return EmailAttachment(
        filename=decode_header_value(filename) if filename else "",
        content_type=part.get_content_type(),
        payload=payload,
    )


def save_attachment(
    attachment: EmailAttachment,
    upload_dir: Union[str, Path, None] = None,
) -> str:
    """
    Сохраняет вложение как <epoch-ms>_<имя> в папку загрузок.

    Returns:
        Имя сохранённого файла (относительно upload_dir)
    """
    target_dir = Path(upload_dir) if upload_dir else UPLOAD_DIR
    target_dir.mkdir(parents=True, exist_ok=True)

    timestamp = int(time.time() * 1000)
    filename = attachment.filename or "attachment" + (mimetypes.guess_extension(attachment.content_type) or "")
    stored_name = f"{timestamp}_{sanitize_filename(filename)}"
    (target_dir / stored_name).write_bytes(attachment.payload)

    logger.info(f"💾 CV сохранён: {stored_name}")
    return stored_name
