"""
FastAPI эндпоинты для кандидатов: CRUD, дубликаты, поиск по CV, события, загрузка CV.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from app.api.deps import require_permission
from app.db.models import Candidate, User
from app.db.session import get_db
from app.models.api import (
    CandidateCreate,
    CandidateEventCreate,
    CandidateEventResponse,
    CandidateListResponse,
    CandidateResponse,
    CandidateUpdate,
    CVSearchResponse,
    DuplicateCheckResponse,
)
from app.models.cv import EmailAttachment
from app.services import storage
from app.services.attachments import is_cv_attachment, save_attachment
from app.services.search import parse_keywords, search_candidates_by_keywords
from app.services.text_extractor import extract_text

router = APIRouter(prefix="/api/candidates", tags=["Candidates"])


def get_candidate_or_404(db: Session, candidate_id: str) -> Candidate:
    candidate = storage.get_candidate(db, candidate_id)
    if candidate is None:
        raise HTTPException(status_code=404, detail="Кандидат не найден")
    return candidate


def _ensure_unique_email(db: Session, email: Optional[str], exclude_id: Optional[str] = None):
    if email and storage.find_candidates_by_contact(db, email=email, exclude_id=exclude_id):
        raise HTTPException(status_code=409, detail=f"Кандидат с email {email} уже существует")


@router.get("", response_model=CandidateListResponse)
def list_candidates(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    search: Optional[str] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("candidates", "read")),
):
    """Список кандидатов (новые сверху) с поиском по имени, контактам, профессии и тексту CV"""
    total, candidates = storage.list_candidates(db, limit=limit, offset=offset, search=search, status=status)
    return CandidateListResponse(
        total=total,
        candidates=[CandidateResponse.model_validate(c) for c in candidates],
    )


@router.post("", response_model=CandidateResponse, status_code=201)
def create_candidate(
    payload: CandidateCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("candidates", "create")),
):
    """Создание кандидата вручную"""
    data = payload.model_dump()
    data["email"] = (data.get("email") or "").strip().lower() or None
    _ensure_unique_email(db, data["email"])

    candidate = storage.create_candidate(db, source="manual", **data)
    storage.add_candidate_event(
        db,
        candidate_id=candidate.id,
        event_type="candidate_created",
        description=f"Candidate #{candidate.candidate_number} created manually",
        metadata={"source": "manual"},
        created_by=user.id,
    )
    return candidate


@router.get("/check-duplicate", response_model=DuplicateCheckResponse)
def check_duplicate(
    email: Optional[str] = None,
    mobile: Optional[str] = None,
    exclude_id: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("candidates", "read")),
):
    """Есть ли кандидат с тем же email или мобильным"""
    matches = storage.find_candidates_by_contact(db, email=email, mobile=mobile, exclude_id=exclude_id)
    return DuplicateCheckResponse(
        exists=bool(matches),
        candidates=[CandidateResponse.model_validate(c) for c in matches],
    )


@router.get("/search", response_model=CVSearchResponse)
def search_by_cv(
    keywords: str = Query(..., min_length=1, description="Ключевые слова через запятую или пробел"),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("candidates", "read")),
):
    """
    Поиск кандидатов по ключевым словам в тексте CV

    - **keywords**: например `python, django` или `מפתח java`
    - Кандидат попадает в выдачу при совпадении хотя бы одного слова
    - Порядок по BM25 оценке
    """
    words = parse_keywords(keywords)
    if not words:
        raise HTTPException(status_code=400, detail="Не указаны ключевые слова")

    results = search_candidates_by_keywords(db, words, top_k=limit)
    return CVSearchResponse(keywords=words, results_count=len(results), results=results)


@router.get("/{candidate_id}", response_model=CandidateResponse)
def get_candidate(
    candidate_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("candidates", "read")),
):
    return get_candidate_or_404(db, candidate_id)


@router.put("/{candidate_id}", response_model=CandidateResponse)
def update_candidate(
    candidate_id: str,
    payload: CandidateUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("candidates", "update")),
):
    """Частичное обновление; смена статуса пишется в журнал событий"""
    candidate = get_candidate_or_404(db, candidate_id)
    changes = payload.model_dump(exclude_unset=True)

    if "email" in changes:
        changes["email"] = (changes["email"] or "").strip().lower() or None
        _ensure_unique_email(db, changes["email"], exclude_id=candidate.id)

    old_status = candidate.status
    candidate = storage.update_candidate(db, candidate, changes)

    if "status" in changes and changes["status"] != old_status:
        storage.add_candidate_event(
            db,
            candidate_id=candidate.id,
            event_type="status_change",
            description=f"Status changed from {old_status} to {candidate.status}",
            metadata={"oldStatus": old_status, "newStatus": candidate.status},
            created_by=user.id,
        )
    return candidate


@router.delete("/{candidate_id}", status_code=204)
def delete_candidate(
    candidate_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("candidates", "delete")),
):
    storage.delete_candidate(db, get_candidate_or_404(db, candidate_id))


@router.get("/{candidate_id}/events", response_model=List[CandidateEventResponse])
def list_events(
    candidate_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("candidates", "read")),
):
    """Журнал событий кандидата (новые сверху)"""
    get_candidate_or_404(db, candidate_id)
    return storage.list_candidate_events(db, candidate_id)


@router.post("/{candidate_id}/events", response_model=CandidateEventResponse, status_code=201)
def add_event(
    candidate_id: str,
    payload: CandidateEventCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("candidates", "update")),
):
    """Добавление заметки или другого события вручную"""
    get_candidate_or_404(db, candidate_id)
    return storage.add_candidate_event(
        db,
        candidate_id=candidate_id,
        event_type=payload.event_type,
        description=payload.description,
        metadata=payload.metadata,
        created_by=user.id,
    )


@router.post("/{candidate_id}/cv", response_model=CandidateResponse)
def upload_cv(
    candidate_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("candidates", "update")),
):
    """Загрузка файла CV: сохранение, извлечение текста для поиска, событие cv_uploaded"""
    candidate = get_candidate_or_404(db, candidate_id)

    filename = file.filename or ""
    content_type = file.content_type or ""
    if not is_cv_attachment(filename, content_type):
        raise HTTPException(status_code=400, detail=f"Неподдерживаемый тип файла: {filename}")

    payload = file.file.read()
    if not payload:
        raise HTTPException(status_code=400, detail="Пустой файл")

    stored_name = save_attachment(EmailAttachment(filename=filename, content_type=content_type, payload=payload))
    cv_text = extract_text(stored_name)

    candidate = storage.update_candidate(db, candidate, {"cv_path": stored_name, "cv_content": cv_text})
    storage.add_candidate_event(
        db,
        candidate_id=candidate.id,
        event_type="cv_uploaded",
        description=f"CV uploaded: {filename}",
        metadata={"cvFileName": stored_name, "textLength": len(cv_text)},
        created_by=user.id,
    )
    return candidate
