"""
Общие зависимости FastAPI: БД, текущий пользователь, проверка прав, пайплайн почты.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app.core.permissions import has_permission
from app.db.models import User
from app.db.session import get_db
from app.services.auth import get_user_by_token
from app.services.cv_pipeline import CVPipeline

# Глобальный пайплайн (инициализируется в lifespan)
_pipeline: Optional[CVPipeline] = None


def get_pipeline() -> CVPipeline:
    """Dependency для получения CVPipeline"""
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="CVPipeline не инициализирован")
    return _pipeline


def set_pipeline(pipeline: CVPipeline):
    """Установка глобального CVPipeline"""
    global _pipeline
    _pipeline = pipeline


def clear_pipeline():
    """Очистка глобального CVPipeline"""
    global _pipeline
    _pipeline = None


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    """Пользователь по заголовку Authorization: Bearer <token>"""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(
            status_code=401,
            detail="Требуется авторизация",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = get_user_by_token(db, authorization[7:].strip())
    if user is None:
        raise HTTPException(
            status_code=401,
            detail="Неверный или отозванный токен",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_permission(resource: str, action: str):
    """Dependency factory: пропускает только роли с правом (resource, action)."""

    def checker(user: User = Depends(get_current_user)) -> User:
        if not has_permission(user.role, resource, action):
            raise HTTPException(
                status_code=403,
                detail=f"Роль {user.role} не имеет права {action} для {resource}",
            )
        return user

    return checker
