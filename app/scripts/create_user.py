#!/usr/bin/env python3
"""
Создание пользователя API (например, первого super_admin).

Использование:
    python -m app.scripts.create_user admin 'secret' --role super_admin --email admin@example.com
"""

import argparse

from app.core.logging_config import configure_logging
from app.core.permissions import ROLES
from app.db.session import SessionLocal, init_db
from app.services.auth import create_user


def main():
    parser = argparse.ArgumentParser(description="Создание пользователя API")
    parser.add_argument("username")
    parser.add_argument("password")
    parser.add_argument("--role", default="user", choices=ROLES)
    parser.add_argument("--email")
    parser.add_argument("--first-name")
    parser.add_argument("--last-name")
    args = parser.parse_args()

    configure_logging()
    init_db()

    with SessionLocal() as db:
        user = create_user(
            db,
            username=args.username,
            password=args.password,
            role=args.role,
            email=args.email,
            first_name=args.first_name,
            last_name=args.last_name,
        )
        print(f"✅ Пользователь {user.username} ({user.role}) создан")
        print(f"   Токен: {user.api_token}")


if __name__ == "__main__":
    main()
