import pytest

from app.core.permissions import ROLES, has_permission
from app.services.auth import hash_password, verify_password


def test_super_admin_can_do_everything():
    assert has_permission("super_admin", "users", "delete")
    assert has_permission("super_admin", "settings", "update")


def test_admin_cannot_manage_users():
    assert has_permission("admin", "settings", "update")
    assert not has_permission("admin", "users", "create")


def test_restricted_admin_has_no_settings():
    assert has_permission("restricted_admin", "reports", "read")
    assert not has_permission("restricted_admin", "settings", "read")


def test_job_viewer_reads_jobs_only():
    assert has_permission("job_viewer", "jobs", "read")
    assert not has_permission("job_viewer", "jobs", "update")
    assert not has_permission("job_viewer", "candidates", "read")


def test_external_recruiter():
    assert has_permission("external_recruiter", "applications", "create")
    assert not has_permission("external_recruiter", "applications", "read")


def test_unknown_role_has_nothing():
    assert not has_permission("intern", "jobs", "read")
    assert "intern" not in ROLES


def test_password_hashing():
    hashed = hash_password("secret")

    assert hashed.startswith("pbkdf2_sha256$")
    assert verify_password("secret", hashed)
    assert not verify_password("other", hashed)
    assert not verify_password("secret", None)


@pytest.mark.parametrize(
    "role,method,path,expected",
    [
        ("job_viewer", "get", "/api/jobs", 200),
        ("job_viewer", "get", "/api/candidates", 403),
        ("user", "get", "/api/candidates", 200),
        ("user", "delete", "/api/candidates/any", 403),
        ("user", "get", "/api/dashboard/stats", 403),
        ("restricted_admin", "get", "/api/dashboard/stats", 200),
        ("external_recruiter", "get", "/api/clients", 403),
    ],
)
def test_routes_are_role_gated(client, headers_for, role, method, path, expected):
    response = getattr(client, method)(path, headers=headers_for(role))
    assert response.status_code == expected
