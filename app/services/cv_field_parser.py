"""
Эвристический разбор текста CV регулярными выражениями.

Для каждого поля паттерны проверяются по порядку, побеждает первое совпадение.
Оценки уверенности нет: если ничего не нашлось, поле остаётся пустым.
Известная неточность: запасной паттерн имени берёт первую строку из двух слов,
поэтому заголовок раздела ("Curriculum Vitae") может стать именем.
"""

import logging
import re
from typing import Optional, Tuple

from app.models.cv import ExtractedCVFields

logger = logging.getLogger(__name__)

PROFESSION_MAX_LENGTH = 100

_EMAIL = r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"
_WORD = r"[א-תa-zA-Z]+"

EMAIL_PATTERNS = [
    re.compile(rf"\b({_EMAIL})\b"),
    re.compile(rf"(?:אימייל|דוא\"ל|דואל|מייל|e-mail|email|mail)[:\s-]*({_EMAIL})", re.IGNORECASE),
    re.compile(r"<([^<>\s]+@[^<>\s]+)>"),
]

MOBILE_PATTERNS = [
    re.compile(r"(?<!\d)(05\d)[-\s]?(\d{3})[-\s]?(\d{4})(?!\d)"),
    re.compile(r"(?:טלפון נייד|נייד|mobile|cell(?:ular)?)[:\s.]*(\+?[\d][\d\-\s]{8,15}\d)", re.IGNORECASE),
]

LANDLINE_PATTERNS = [
    re.compile(r"(?<!\d)(0[23489])[-\s]?(\d{3})[-\s]?(\d{4})(?!\d)"),
]

NAME_PATTERNS = [
    re.compile(rf"(?<![א-תa-zA-Z])(?:שם מלא|full name|שם|name)[\s:]+({_WORD})\s+({_WORD})", re.IGNORECASE),
    re.compile(rf"^[ \t]*({_WORD})[ \t]+({_WORD})", re.MULTILINE),
]

PROFESSION_PATTERNS = [
    re.compile(r"(?:תפקיד|משרה|מקצוע|profession|position|title)[\s:]+([^\n]+)", re.IGNORECASE),
    re.compile(r"(?:מפתח|מהנדס|מתכנת|מנהל|developer|engineer|programmer|manager)[ \t]+([^\n]+)", re.IGNORECASE),
]


def _digits(value: str) -> str:
    return re.sub(r"\D", "", value)


def _normalize_israeli_number(value: str) -> str:
    """+972 / 972 -> ведущий 0, разделители удаляются."""
    digits = _digits(value)
    if digits.startswith("972"):
        digits = "0" + digits[3:]
    return digits


def extract_email(text: str) -> Optional[str]:
    for pattern in EMAIL_PATTERNS:
        for match in pattern.finditer(text):
            candidate = match.group(1).strip()
            if "@" in candidate and "." in candidate and len(candidate) > 5:
                return candidate.lower()
    return None


def extract_mobile(text: str) -> Optional[str]:
    for pattern in MOBILE_PATTERNS:
        for match in pattern.finditer(text):
            number = _normalize_israeli_number("".join(match.groups()))
            if len(number) == 10 and number.startswith("05"):
                return number
    return None


def extract_landline(text: str) -> Optional[str]:
    for pattern in LANDLINE_PATTERNS:
        match = pattern.search(text)
        if match:
            return "".join(match.groups())
    return None


def extract_name(text: str) -> Tuple[str, str]:
    for pattern in NAME_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1) and match.group(2):
            return match.group(1).strip(), match.group(2).strip()
    return "", ""


def extract_profession(text: str) -> Optional[str]:
    for pattern in PROFESSION_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()[:PROFESSION_MAX_LENGTH].strip()
    return None


def parse_cv_fields(text: str) -> ExtractedCVFields:
    """
    Извлекает контактные данные и профессию из текста CV.

    Args:
        text: Текст, полученный из PDF/DOCX/OCR

    Returns:
        ExtractedCVFields; ненайденные поля пустые
    """
    if not text:
        return ExtractedCVFields()

    first_name, last_name = extract_name(text)
    fields = ExtractedCVFields(
        first_name=first_name,
        last_name=last_name,
        email=extract_email(text),
        mobile=extract_mobile(text),
        phone=extract_landline(text),
        profession=extract_profession(text),
    )

    logger.info(
        f"✅ Данные из CV: имя={fields.full_name or 'не найдено'}, "
        f"email={fields.email or 'не найден'}, мобильный={fields.mobile or 'не найден'}, "
        f"профессия={fields.profession or 'не найдена'}"
    )
    return fields
