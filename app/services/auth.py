"""
Пользователи и токены доступа к API.

Пароль хранится как pbkdf2_sha256$<итерации>$<соль>$<хеш>, токен - случайная строка в users.api_token.
"""

import hashlib
import hmac
import logging
import secrets
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.permissions import ROLES
from app.db.models import User, utcnow

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 260000


def hash_password(password: str, salt: Optional[str] = None, iterations: int = PBKDF2_ITERATIONS) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"pbkdf2_sha256${iterations}${salt}${digest.hex()}"


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    try:
        algorithm, iterations, salt, expected = (password_hash or "").split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    candidate = hash_password(password, salt=salt, iterations=int(iterations))
    return hmac.compare_digest(candidate.split("$")[3], expected)


def create_user(
    db: Session,
    username: str,
    password: str,
    role: str = "user",
    email: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
) -> User:
    """Создаёт пользователя с новым API токеном."""
    if role not in ROLES:
        raise ValueError(f"Неизвестная роль: {role}. Доступны: {', '.join(ROLES)}")

    user = User(
        username=username,
        email=email,
        first_name=first_name,
        last_name=last_name,
        password_hash=hash_password(password),
        role=role,
        api_token=secrets.token_urlsafe(32),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"👤 Создан пользователь {username} ({role})")
    return user


def authenticate(db: Session, username: str, password: str) -> Optional[User]:
    """Проверяет логин и пароль; при успехе обновляет last_login."""
    user = db.scalars(select(User).where(User.username == username)).first()
    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        logger.warning(f"⚠️ Неудачный вход: {username}")
        return None

    if not user.api_token:
        user.api_token = secrets.token_urlsafe(32)
    user.last_login = utcnow()
    db.commit()
    db.refresh(user)
    return user


def get_user_by_token(db: Session, token: str) -> Optional[User]:
    if not token:
        return None
    user = db.scalars(select(User).where(User.api_token == token)).first()
    if user is None or not user.is_active:
        return None
    return user
