"""
Статическая таблица прав доступа по ролям.

Ресурсы: candidates, clients, jobs, applications, reports, email, settings, users.
Действия: read, create, update, delete, send.
"""

from typing import Dict, FrozenSet, Tuple

ALL_RESOURCES = ("candidates", "clients", "jobs", "applications", "reports", "email", "settings", "users")
ALL_ACTIONS = ("read", "create", "update", "delete", "send")


def _grant(resources, actions) -> FrozenSet[Tuple[str, str]]:
    return frozenset((r, a) for r in resources for a in actions)


ROLE_PERMISSIONS: Dict[str, FrozenSet[Tuple[str, str]]] = {
    # Главный админ - всё разрешено
    "super_admin": _grant(ALL_RESOURCES, ALL_ACTIONS),
    # Админ - всё, кроме управления пользователями
    "admin": _grant([r for r in ALL_RESOURCES if r != "users"], ALL_ACTIONS),
    # Ограниченный админ - без настроек и пользователей
    "restricted_admin": _grant(
        [r for r in ALL_RESOURCES if r not in ("settings", "users")], ALL_ACTIONS
    ),
    # Обычный рекрутер
    "user": _grant(["candidates", "clients", "jobs", "applications"], ["read", "create", "update"])
    | _grant(["email"], ["send"]),
    # Только просмотр вакансий
    "job_viewer": _grant(["jobs"], ["read"]),
    # Внешний рекрутер - вакансии и подача кандидатов
    "external_recruiter": _grant(["jobs"], ["read"]) | _grant(["applications"], ["create"]),
}

ROLES = tuple(ROLE_PERMISSIONS.keys())


def has_permission(role: str, resource: str, action: str) -> bool:
    """Проверяет, разрешено ли роли действие над ресурсом."""
    return (resource, action) in ROLE_PERMISSIONS.get(role, frozenset())
