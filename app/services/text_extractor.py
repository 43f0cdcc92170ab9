"""
Извлечение текста из файлов CV: PDF (pdftotext), DOC/DOCX (python-docx), изображения (Tesseract OCR).

Любая ошибка логируется и превращается в пустую строку - создание кандидата не должно падать
из-за нечитаемого файла.
"""

import logging
import subprocess
from pathlib import Path
from typing import Union

import pytesseract
from docx import Document
from PIL import Image

from app.core.config import EXTRACTION_TIMEOUT, OCR_LANG, PDFTOTEXT_BIN, UPLOAD_DIR

logger = logging.getLogger(__name__)

PDF_EXTENSIONS = {".pdf"}
WORD_EXTENSIONS = {".doc", ".docx"}
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".tiff", ".bmp"}
TEXT_EXTENSIONS = {".txt"}


def resolve_cv_path(cv_path: Union[str, Path]) -> Path:
    """Относительные пути считаются от папки загрузок."""
    path = Path(cv_path)
    return path if path.is_absolute() else UPLOAD_DIR / path


def extract_text(cv_path: Union[str, Path], timeout: int = EXTRACTION_TIMEOUT) -> str:
    """
    Извлекает текст из файла CV, выбирая метод по расширению.

    Args:
        cv_path: Путь к файлу (абсолютный или имя в UPLOAD_DIR)
        timeout: Ограничение времени для pdftotext и OCR, секунды

    Returns:
        Извлечённый текст или "" при ошибке/неподдерживаемом формате
    """
    file_path = resolve_cv_path(cv_path)

    if not file_path.exists():
        logger.warning(f"📄 Файл не найден: {file_path}")
        return ""

    ext = file_path.suffix.lower()
    try:
        if ext in PDF_EXTENSIONS:
            text = extract_pdf_text(file_path, timeout)
        elif ext in WORD_EXTENSIONS:
            text = extract_docx_text(file_path)
        elif ext in IMAGE_EXTENSIONS:
            text = extract_image_text(file_path, timeout)
        elif ext in TEXT_EXTENSIONS:
            text = file_path.read_text(encoding="utf-8", errors="ignore")
        else:
            logger.warning(f"⚠️ Неподдерживаемый формат: {ext} ({file_path.name})")
            return ""
    except Exception:
        logger.exception(f"❌ Ошибка извлечения текста из {file_path.name}")
        return ""

    text = (text or "").strip()
    logger.info(f"📄 Извлечено {len(text)} символов из {file_path.name}")
    return text


def extract_pdf_text(file_path: Path, timeout: int = EXTRACTION_TIMEOUT) -> str:
    """Текст PDF через внешний pdftotext (вывод в stdout)."""
    logger.info(f"📄 pdftotext: {file_path.name}")
    result = subprocess.run(
        [PDFTOTEXT_BIN, "-layout", "-enc", "UTF-8", str(file_path), "-"],
        capture_output=True,
        timeout=timeout,
        check=True,
    )
    return result.stdout.decode("utf-8", errors="ignore")


def extract_docx_text(file_path: Path) -> str:
    """Текст DOCX: абзацы и ячейки таблиц (CV часто свёрстаны таблицами)."""
    logger.info(f"📄 DOCX: {file_path.name}")
    document = Document(str(file_path))

    lines = [paragraph.text for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                lines.append(" ".join(cells))

    return "\n".join(line for line in lines if line.strip())


def extract_image_text(file_path: Path, timeout: int = EXTRACTION_TIMEOUT) -> str:
    """OCR изображения (иврит + английский)."""
    logger.info(f"🖼️ OCR ({OCR_LANG}): {file_path.name}")
    with Image.open(file_path) as image:
        return pytesseract.image_to_string(image, lang=OCR_LANG, timeout=timeout)
