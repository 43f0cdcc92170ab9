import subprocess

import pytest
from docx import Document
from PIL import Image

from app.services import text_extractor
from app.services.text_extractor import extract_text


def test_docx_paragraphs_and_tables(tmp_path):
    document = Document()
    document.add_paragraph("Dana Levi")
    document.add_paragraph("Email: dana@example.com")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Mobile"
    table.rows[0].cells[1].text = "052-123-4567"
    path = tmp_path / "cv_dana.docx"
    document.save(str(path))

    text = extract_text(path)

    assert "Dana Levi" in text
    assert "dana@example.com" in text
    assert "Mobile 052-123-4567" in text


def test_pdf_uses_pdftotext(tmp_path, monkeypatch):
    path = tmp_path / "cv.pdf"
    path.write_bytes(b"%PDF-1.4")
    calls = {}

    def fake_run(args, capture_output, timeout, check):
        calls["args"] = args
        calls["timeout"] = timeout
        return subprocess.CompletedProcess(args, 0, stdout="John Smith\n".encode("utf-8"), stderr=b"")

    monkeypatch.setattr(text_extractor.subprocess, "run", fake_run)

    assert extract_text(path, timeout=5) == "John Smith"
    assert calls["args"][-2:] == [str(path), "-"]
    assert calls["timeout"] == 5


def test_pdf_timeout_returns_empty(tmp_path, monkeypatch):
    path = tmp_path / "cv.pdf"
    path.write_bytes(b"%PDF-1.4")

    def fake_run(args, **kwargs):
        raise subprocess.TimeoutExpired(args, kwargs["timeout"])

    monkeypatch.setattr(text_extractor.subprocess, "run", fake_run)

    assert extract_text(path) == ""


def test_image_uses_ocr_with_hebrew_and_english(tmp_path, monkeypatch):
    path = tmp_path / "scan.png"
    Image.new("RGB", (10, 10), "white").save(path)
    calls = {}

    def fake_ocr(image, lang, timeout):
        calls["lang"] = lang
        return "ישראל ישראלי\n"

    monkeypatch.setattr(text_extractor.pytesseract, "image_to_string", fake_ocr)

    assert extract_text(path) == "ישראל ישראלי"
    assert calls["lang"] == "heb+eng"


def test_ocr_failure_returns_empty(tmp_path, monkeypatch):
    path = tmp_path / "scan.jpg"
    Image.new("RGB", (10, 10), "white").save(path)

    def broken_ocr(*args, **kwargs):
        raise RuntimeError("tesseract is not installed")

    monkeypatch.setattr(text_extractor.pytesseract, "image_to_string", broken_ocr)

    assert extract_text(path) == ""


@pytest.mark.parametrize("name", ["missing.pdf", "archive.zip"])
def test_missing_or_unsupported_returns_empty(tmp_path, name):
    if name.endswith(".zip"):
        (tmp_path / name).write_bytes(b"PK")
    assert extract_text(tmp_path / name) == ""


def test_relative_path_resolves_against_upload_dir(upload_dir):
    (upload_dir / "123_cv.txt").write_text("Plain CV text", encoding="utf-8")
    assert extract_text("123_cv.txt") == "Plain CV text"
