"""
Отчёты для дашборда: агрегаты по кандидатам, подачам и вакансиям.
"""

from datetime import timedelta
from typing import List

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.db.models import Candidate, Client, Job, JobApplication, utcnow
from app.models.api import CountItem, DashboardStats, JobSummaryItem


def _count(db: Session, stmt) -> int:
    return db.scalar(stmt) or 0


def candidates_by_source(db: Session) -> List[CountItem]:
    """Количество кандидатов по источнику найма (для писем - домен отправителя)."""
    label = func.coalesce(Candidate.recruitment_source, "unknown")
    rows = db.execute(
        select(label, func.count(Candidate.id)).group_by(label).order_by(func.count(Candidate.id).desc())
    ).all()
    return [CountItem(label=row[0], count=row[1]) for row in rows]


def applications_by_status(db: Session) -> List[CountItem]:
    rows = db.execute(
        select(JobApplication.status, func.count(JobApplication.id))
        .group_by(JobApplication.status)
        .order_by(func.count(JobApplication.id).desc())
    ).all()
    return [CountItem(label=row[0] or "unknown", count=row[1]) for row in rows]


def jobs_summary(db: Session) -> List[JobSummaryItem]:
    """Вакансии с количеством подач."""
    rows = db.execute(
        select(Job, func.count(JobApplication.id))
        .outerjoin(JobApplication, JobApplication.job_id == Job.id)
        .group_by(Job.id)
        .order_by(Job.created_at.desc())
    ).all()
    return [
        JobSummaryItem(
            job_id=job.id,
            job_code=job.job_code,
            title=job.title,
            status=job.status,
            applications=applications,
        )
        for job, applications in rows
    ]


def dashboard_stats(db: Session) -> DashboardStats:
    week_ago = utcnow() - timedelta(days=7)
    return DashboardStats(
        total_candidates=_count(db, select(func.count(Candidate.id))),
        candidates_from_email=_count(db, select(func.count(Candidate.id)).where(Candidate.source == "email")),
        active_jobs=_count(db, select(func.count(Job.id)).where(Job.status == "active")),
        total_clients=_count(db, select(func.count(Client.id))),
        total_applications=_count(db, select(func.count(JobApplication.id))),
        new_candidates_this_week=_count(
            db, select(func.count(Candidate.id)).where(Candidate.created_at >= week_ago)
        ),
    )
