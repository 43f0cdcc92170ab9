"""
Pydantic модели для API запросов и ответов.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


# ==================== INFO / AUTH ====================

class HealthResponse(BaseModel):
    """Ответ проверки здоровья"""
    status: str
    database: str
    candidates_count: int
    email_watcher: bool = False


class APIInfoResponse(BaseModel):
    """Информация об API"""
    name: str
    version: str
    description: str
    endpoints: dict


class LoginRequest(BaseModel):
    username: str
    password: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str


class LoginResponse(BaseModel):
    token: str
    user: UserResponse


# ==================== CANDIDATES ====================

class CandidateBase(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    mobile: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    profession: Optional[str] = None
    experience: Optional[int] = Field(default=None, ge=0, description="Опыт в годах")
    notes: Optional[str] = None
    status: str = "active"
    recruitment_source: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)


class CandidateCreate(CandidateBase):
    """Создание кандидата вручную"""


class CandidateUpdate(BaseModel):
    """Частичное обновление - передаются только изменяемые поля"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    profession: Optional[str] = None
    experience: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
    status: Optional[str] = None
    recruitment_source: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)


class CandidateResponse(CandidateBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    candidate_number: Optional[int] = None
    source: Optional[str] = None
    cv_path: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CandidateListResponse(BaseModel):
    total: int
    candidates: List[CandidateResponse]


class CandidateEventCreate(BaseModel):
    event_type: str = Field(default="note", min_length=1)
    description: str = Field(..., min_length=1)
    metadata: Optional[Dict[str, Any]] = None


class CandidateEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    candidate_id: str
    event_type: str
    description: str
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="event_metadata")
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


class DuplicateCheckResponse(BaseModel):
    exists: bool
    candidates: List[CandidateResponse] = Field(default_factory=list)


class CVSearchResult(BaseModel):
    """Результат поиска по тексту CV"""
    candidate_id: str
    candidate_number: Optional[int] = None
    first_name: str
    last_name: str
    city: Optional[str] = None
    mobile: Optional[str] = None
    email: Optional[str] = None
    score: float = Field(description="BM25 оценка")
    matched_keywords: List[str] = Field(default_factory=list)
    cv_preview: str = Field(default="", description="Фрагмент текста вокруг первого совпадения")


class CVSearchResponse(BaseModel):
    keywords: List[str]
    results_count: int
    results: List[CVSearchResult]


# ==================== CLIENTS ====================

class ClientBase(BaseModel):
    company_name: str = Field(..., min_length=1)
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    industry: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True


class ClientUpdate(BaseModel):
    company_name: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    industry: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class ClientResponse(ClientBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    client_number: Optional[int] = None
    created_at: Optional[datetime] = None


# ==================== JOBS ====================

class JobBase(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    job_code: Optional[str] = Field(default=None, max_length=7, description="Код вакансии (генерируется, если пуст)")
    requirements: Optional[str] = None
    location: Optional[str] = None
    salary_range: Optional[str] = None
    job_type: Optional[str] = None
    is_remote: bool = False
    status: str = Field(default="active", pattern="^(active|paused|closed)$")
    priority: str = "medium"
    positions: int = Field(default=1, ge=1)
    is_urgent: bool = False
    client_id: Optional[str] = None


class JobUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    job_code: Optional[str] = Field(default=None, max_length=7)
    requirements: Optional[str] = None
    location: Optional[str] = None
    salary_range: Optional[str] = None
    job_type: Optional[str] = None
    is_remote: Optional[bool] = None
    status: Optional[str] = Field(default=None, pattern="^(active|paused|closed)$")
    priority: Optional[str] = None
    positions: Optional[int] = Field(default=None, ge=1)
    is_urgent: Optional[bool] = None
    client_id: Optional[str] = None


class JobResponse(JobBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: Optional[datetime] = None


# ==================== JOB APPLICATIONS ====================

APPLICATION_STATUS_PATTERN = "^(submitted|reviewed|interview|interview_scheduled|rejected|accepted)$"


class JobApplicationCreate(BaseModel):
    candidate_id: str
    job_id: str
    status: str = Field(default="submitted", pattern=APPLICATION_STATUS_PATTERN)
    notes: Optional[str] = None


class JobApplicationUpdate(BaseModel):
    status: Optional[str] = Field(default=None, pattern=APPLICATION_STATUS_PATTERN)
    notes: Optional[str] = None
    interview_date: Optional[datetime] = None
    client_feedback: Optional[str] = None
    reviewer_feedback: Optional[str] = None
    rejection_reason: Optional[str] = None
    sent_to_client: Optional[bool] = None


class JobApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    candidate_id: str
    job_id: str
    status: str
    applied_at: Optional[datetime] = None
    interview_date: Optional[datetime] = None
    notes: Optional[str] = None
    client_feedback: Optional[str] = None
    reviewer_feedback: Optional[str] = None
    rejection_reason: Optional[str] = None
    sent_to_client: bool = False


# ==================== REPORTS ====================

class CountItem(BaseModel):
    label: str
    count: int


class JobSummaryItem(BaseModel):
    job_id: str
    job_code: Optional[str] = None
    title: str
    status: str
    applications: int


class DashboardStats(BaseModel):
    total_candidates: int
    candidates_from_email: int
    active_jobs: int
    total_clients: int
    total_applications: int
    new_candidates_this_week: int


# ==================== EMAIL ====================

class IngestionResult(BaseModel):
    """Результат обработки одного CV из письма"""
    candidate_id: str
    candidate_number: Optional[int] = None
    full_name: str = ""
    email: Optional[str] = None
    cv_file: str
    job_application_id: Optional[str] = None


class CheckIncomingResponse(BaseModel):
    started: bool = Field(description="False, если цикл уже выполняется")
    processed_count: int = 0
    results: List[IngestionResult] = Field(default_factory=list)


class ConnectionTestResponse(BaseModel):
    success: bool


class IncomingEmailSettings(BaseModel):
    """Текущие настройки IMAP (пароль не возвращается)"""
    host: Optional[str] = None
    port: int
    secure: bool
    user: Optional[str] = None
    password: str = Field(default="", description="\"********\", если пароль задан")


class IncomingEmailSettingsUpdate(BaseModel):
    """Изменяются только переданные поля"""
    host: Optional[str] = None
    port: Optional[int] = Field(default=None, ge=1, le=65535)
    secure: Optional[bool] = None
    user: Optional[str] = None
    password: Optional[str] = None


class SendCandidateProfileRequest(BaseModel):
    candidate_id: str
    to_email: str
    subject: Optional[str] = None
    notes: Optional[str] = None
    attach_cv: bool = True


class SendInterviewInvitationRequest(BaseModel):
    candidate_id: str
    job_id: Optional[str] = None
    interview_date: datetime
    location: Optional[str] = None
    notes: Optional[str] = None


class SendShortlistRequest(BaseModel):
    candidate_ids: List[str] = Field(..., min_length=1)
    to_email: str
    job_id: Optional[str] = None
    notes: Optional[str] = None


class SendEmailResponse(BaseModel):
    success: bool
    recipients: List[str]
