"""
FastAPI эндпоинты для вакансий. Код вакансии уникален и генерируется, если не передан.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import require_permission
from app.db.models import Client, Job, User
from app.db.session import get_db
from app.models.api import JobBase, JobResponse, JobUpdate
from app.services import storage

router = APIRouter(prefix="/api/jobs", tags=["Jobs"])


def get_job_or_404(db: Session, job_id: str) -> Job:
    job = db.get(Job, job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Вакансия не найдена")
    return job


def _check_job_code(db: Session, job_code: Optional[str], exclude_id: Optional[str] = None):
    if not job_code:
        return
    existing = storage.get_job_by_code(db, job_code)
    if existing is not None and existing.id != exclude_id:
        raise HTTPException(status_code=409, detail=f"Код вакансии {job_code} уже используется")


def _check_client(db: Session, client_id: Optional[str]):
    if client_id and db.get(Client, client_id) is None:
        raise HTTPException(status_code=404, detail="Клиент не найден")


@router.get("", response_model=List[JobResponse])
def list_jobs(
    status: Optional[str] = None,
    client_id: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("jobs", "read")),
):
    """Вакансии: срочные сверху, затем новые"""
    return storage.list_jobs(db, status=status, client_id=client_id)


@router.post("", response_model=JobResponse, status_code=201)
def create_job(
    payload: JobBase,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("jobs", "create")),
):
    _check_job_code(db, payload.job_code)
    _check_client(db, payload.client_id)
    return storage.create_job(db, **payload.model_dump())


@router.get("/{job_id}", response_model=JobResponse)
def get_job(
    job_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("jobs", "read")),
):
    return get_job_or_404(db, job_id)


@router.put("/{job_id}", response_model=JobResponse)
def update_job(
    job_id: str,
    payload: JobUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("jobs", "update")),
):
    job = get_job_or_404(db, job_id)
    changes = payload.model_dump(exclude_unset=True)
    _check_job_code(db, changes.get("job_code"), exclude_id=job.id)
    _check_client(db, changes.get("client_id"))

    for key, value in changes.items():
        setattr(job, key, value)
    db.commit()
    db.refresh(job)
    return job


@router.delete("/{job_id}", status_code=204)
def delete_job(
    job_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("jobs", "delete")),
):
    db.delete(get_job_or_404(db, job_id))
    db.commit()
