"""
Сервисы приложения.
"""

from app.services.cv_pipeline import CVPipeline
from app.services.email_fetcher import EmailFetcher
from app.services.email_sender import EmailSender
from app.services.cv_field_parser import parse_cv_fields
from app.services.text_extractor import extract_text
from app.services.search import search_candidates_by_keywords

__all__ = [
    "CVPipeline",
    "EmailFetcher",
    "EmailSender",
    "parse_cv_fields",
    "extract_text",
    "search_candidates_by_keywords",
]
