"""
FastAPI эндпоинты отчётов и статистики дашборда.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import require_permission
from app.db.models import User
from app.db.session import get_db
from app.models.api import CountItem, DashboardStats, JobSummaryItem
from app.services import reports

router = APIRouter(tags=["Reports"])


@router.get("/api/reports/candidates-by-source", response_model=List[CountItem])
def candidates_by_source(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("reports", "read")),
):
    return reports.candidates_by_source(db)


@router.get("/api/reports/applications-by-status", response_model=List[CountItem])
def applications_by_status(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("reports", "read")),
):
    return reports.applications_by_status(db)


@router.get("/api/reports/jobs-summary", response_model=List[JobSummaryItem])
def jobs_summary(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("reports", "read")),
):
    return reports.jobs_summary(db)


@router.get("/api/dashboard/stats", response_model=DashboardStats)
def dashboard_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("reports", "read")),
):
    return reports.dashboard_stats(db)
