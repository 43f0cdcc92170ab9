"""
Сервис для поиска кандидатов по ключевым словам в тексте CV.

Кандидат попадает в выдачу, если в cv_content встречается хотя бы одно ключевое слово
(без учёта регистра). Порядок - по BM25 оценке, затем по числу совпавших слов.
"""

import logging
import re
from typing import List, Optional

from rank_bm25 import BM25Okapi
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models import Candidate
from app.models.api import CVSearchResult

logger = logging.getLogger(__name__)

PREVIEW_RADIUS = 80


def tokenize(text: str) -> List[str]:
    """Простой токенизатор для BM25"""
    text = text.lower()
    tokens = re.findall(r'\b\w+\b', text)
    return tokens


def parse_keywords(raw: str) -> List[str]:
    """'python, django  sql' -> ['python', 'django', 'sql'] без повторов."""
    keywords = []
    for word in re.split(r"[,\s]+", raw or ""):
        word = word.strip().lower()
        if word and word not in keywords:
            keywords.append(word)
    return keywords


def build_preview(text: str, keyword: str, radius: int = PREVIEW_RADIUS) -> str:
    """Фрагмент текста вокруг первого вхождения ключевого слова."""
    position = text.lower().find(keyword)
    if position < 0:
        return text[: radius * 2].strip()

    start = max(0, position - radius)
    end = min(len(text), position + len(keyword) + radius)
    preview = " ".join(text[start:end].split())
    if start > 0:
        preview = "..." + preview
    if end < len(text):
        preview = preview + "..."
    return preview


def search_candidates_by_keywords(
    db: Session,
    keywords: List[str],
    top_k: Optional[int] = 50,
) -> List[CVSearchResult]:
    """
    Поиск кандидатов по тексту CV

    Args:
        db: Сессия БД
        keywords: Ключевые слова (уже нормализованные parse_keywords)
        top_k: Максимум результатов (None - без ограничения)

    Returns:
        Список кандидатов с оценками, совпавшими словами и фрагментом CV
    """
    if not keywords:
        return []

    candidates = db.scalars(
        select(Candidate).where(Candidate.cv_content.is_not(None), Candidate.cv_content != "")
    ).all()

    matched = []
    for candidate in candidates:
        content = candidate.cv_content.lower()
        found = [k for k in keywords if k in content]
        if found:
            matched.append((candidate, found))

    if not matched:
        logger.info(f"🔍 По словам {keywords} ничего не найдено")
        return []

    # BM25 по всем CV, чтобы IDF отражал всю базу
    bm25 = BM25Okapi([tokenize(c.cv_content) for c in candidates])
    query_tokens = [t for k in keywords for t in tokenize(k)]
    index_by_id = {c.id: i for i, c in enumerate(candidates)}
    scores = bm25.get_scores(query_tokens) if query_tokens else [0.0] * len(candidates)

    results = [
        CVSearchResult(
            candidate_id=candidate.id,
            candidate_number=candidate.candidate_number,
            first_name=candidate.first_name or "",
            last_name=candidate.last_name or "",
            city=candidate.city,
            mobile=candidate.mobile,
            email=candidate.email,
            score=float(scores[index_by_id[candidate.id]]),
            matched_keywords=found,
            cv_preview=build_preview(candidate.cv_content, found[0]),
        )
        for candidate, found in matched
    ]
    results.sort(key=lambda r: (r.score, len(r.matched_keywords)), reverse=True)

    logger.info(f"🔍 Поиск по CV {keywords}: найдено {len(results)}")
    return results[:top_k] if top_k else results
