"""
FastAPI эндпоинты для подач кандидатов на вакансии.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import require_permission
from app.db.models import Job, JobApplication, User
from app.db.session import get_db
from app.models.api import JobApplicationCreate, JobApplicationResponse, JobApplicationUpdate
from app.services import storage

router = APIRouter(prefix="/api/job-applications", tags=["Job Applications"])


def get_application_or_404(db: Session, application_id: str) -> JobApplication:
    application = db.get(JobApplication, application_id)
    if application is None:
        raise HTTPException(status_code=404, detail="Подача не найдена")
    return application


@router.get("", response_model=List[JobApplicationResponse])
def list_applications(
    job_id: Optional[str] = None,
    candidate_id: Optional[str] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("applications", "read")),
):
    return storage.list_job_applications(db, job_id=job_id, candidate_id=candidate_id, status=status)


@router.post("", response_model=JobApplicationResponse, status_code=201)
def create_application(
    payload: JobApplicationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("applications", "create")),
):
    """Подача кандидата на вакансию; пишется событие application_created"""
    if storage.get_candidate(db, payload.candidate_id) is None:
        raise HTTPException(status_code=404, detail="Кандидат не найден")
    job = db.get(Job, payload.job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Вакансия не найдена")

    application = storage.create_job_application(
        db,
        candidate_id=payload.candidate_id,
        job_id=payload.job_id,
        status=payload.status,
        notes=payload.notes,
    )
    storage.add_candidate_event(
        db,
        candidate_id=payload.candidate_id,
        event_type="application_created",
        description=f"Applied to job {job.title} ({job.job_code})",
        metadata={"jobId": job.id, "jobCode": job.job_code, "applicationId": application.id},
        created_by=user.id,
    )
    return application


@router.put("/{application_id}", response_model=JobApplicationResponse)
def update_application(
    application_id: str,
    payload: JobApplicationUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("applications", "update")),
):
    application = get_application_or_404(db, application_id)
    old_status = application.status
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(application, key, value)
    db.commit()
    db.refresh(application)

    if application.status != old_status:
        storage.add_candidate_event(
            db,
            candidate_id=application.candidate_id,
            event_type="application_status_change",
            description=f"Application status changed from {old_status} to {application.status}",
            metadata={"applicationId": application.id, "oldStatus": old_status, "newStatus": application.status},
            created_by=user.id,
        )
    return application


@router.delete("/{application_id}", status_code=204)
def delete_application(
    application_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("applications", "delete")),
):
    db.delete(get_application_or_404(db, application_id))
    db.commit()
