"""
Pydantic модели для приложения.
"""

from app.models.cv import ExtractedCVFields, EmailAttachment, InboundEmail
from app.models.api import (
    HealthResponse,
    APIInfoResponse,
    CandidateCreate,
    CandidateUpdate,
    CandidateResponse,
    CandidateEventResponse,
    CVSearchResponse,
    ClientResponse,
    JobResponse,
    JobApplicationResponse,
    IngestionResult,
)

__all__ = [
    # CV модели
    "ExtractedCVFields",
    "EmailAttachment",
    "InboundEmail",
    # API модели
    "HealthResponse",
    "APIInfoResponse",
    "CandidateCreate",
    "CandidateUpdate",
    "CandidateResponse",
    "CandidateEventResponse",
    "CVSearchResponse",
    "ClientResponse",
    "JobResponse",
    "JobApplicationResponse",
    "IngestionResult",
]
