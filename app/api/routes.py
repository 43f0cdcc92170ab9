"""
FastAPI эндпоинты: информация об API, проверка здоровья, авторизация.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import __version__
from app.api.deps import get_current_user
from app.core import config
from app.db.models import Candidate, User
from app.db.session import get_db
from app.models.api import (
    APIInfoResponse,
    HealthResponse,
    LoginRequest,
    LoginResponse,
    UserResponse,
)
from app.services.auth import authenticate

router = APIRouter()


@router.get("/", response_model=APIInfoResponse, tags=["Info"])
async def root():
    """Информация об API"""
    return APIInfoResponse(
        name="Recruitment API",
        version=__version__,
        description="API кадрового агентства: кандидаты, клиенты, вакансии и приём CV из почты",
        endpoints={
            "POST /api/auth/login": "Вход, выдаёт токен",
            "GET /api/candidates": "Список кандидатов",
            "GET /api/candidates/search": "Поиск по тексту CV",
            "GET /api/jobs": "Вакансии",
            "GET /api/job-applications": "Подачи на вакансии",
            "GET /api/dashboard/stats": "Статистика",
            "POST /api/emails/check-incoming": "Проверить входящую почту",
            "GET /health": "Проверка работоспособности сервиса",
            "GET /": "Информация об API",
        },
    )


@router.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check(db: Session = Depends(get_db)):
    """Проверка работоспособности сервиса"""
    try:
        count = db.scalar(select(func.count(Candidate.id))) or 0
    except SQLAlchemyError as e:
        raise HTTPException(status_code=503, detail=f"Ошибка подключения к БД: {str(e)}")

    return HealthResponse(
        status="healthy",
        database="connected",
        candidates_count=count,
        email_watcher=config.ENABLE_EMAIL_WATCHER,
    )


@router.post("/api/auth/login", response_model=LoginResponse, tags=["Auth"])
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Вход по логину и паролю, возвращает Bearer токен"""
    user = authenticate(db, request.username, request.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Неверное имя пользователя или пароль")
    return LoginResponse(token=user.api_token, user=UserResponse.model_validate(user))


@router.get("/api/auth/user", response_model=UserResponse, tags=["Auth"])
def current_user(user: User = Depends(get_current_user)):
    """Текущий пользователь"""
    return user
