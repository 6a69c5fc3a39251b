"""Shared fixtures: a fresh SQLite database per test, seeded principals and an API client.

Invariants:
    - Every test runs against its own database file under tmp_path
    - Tokens are minted directly with issue_token; no login round trip needed
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from httpx import ASGITransport, AsyncClient

from academy_api.app.core import db
from academy_api.app.core.config import settings
from academy_api.app.core.security import Principal, hash_password, issue_token
from academy_api.app.main import app

DEFAULT_PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    """Point the app at an empty database file and migrate it."""
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "academy.db"))
    monkeypatch.setattr(settings, "recheck_principal_status", False)
    db.init_db()
    yield settings.database_url


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def make_staff():
    """Insert a staff user and return its Principal."""

    def _make(role="admin", username=None, password=DEFAULT_PASSWORD, status="active"):
        user_id = db.new_id()
        username = username or f"{role}-{user_id[:8]}"
        with db.get_cursor() as cursor:
            cursor.execute(
                "INSERT INTO users (id, username, password_hash, role, status) VALUES (?, ?, ?, ?, ?)",
                (user_id, username, hash_password(password), role, status),
            )
        return Principal(id=user_id, name=username, role=role, kind="staff")

    return _make


@pytest.fixture
def make_student():
    """Insert a student and return its id."""

    def _make(
        full_name="Student",
        status="active",
        monthly_fee=None,
        belt=None,
        belt_degree=None,
        username=None,
        password=None,
    ):
        student_id = db.new_id()
        with db.get_cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO students (id, full_name, status, monthly_fee, belt, belt_degree, username, password_hash)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    student_id,
                    full_name,
                    status,
                    monthly_fee,
                    belt,
                    belt_degree,
                    username,
                    hash_password(password) if password else None,
                ),
            )
        return student_id

    return _make


@pytest.fixture
def make_class():
    """Insert a class and return its id."""

    def _make(name="Fundamentals", max_students=2, status="active"):
        class_id = db.new_id()
        with db.get_cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO classes (id, name, day_of_week, start_time, end_time, max_students, status)
                VALUES (?, ?, 1, '19:00', '20:30', ?, ?)
                """,
                (class_id, name, max_students, status),
            )
        return class_id

    return _make


@pytest.fixture
def auth_headers(make_staff, make_student):
    """Build an Authorization header for a fresh principal with ``role``."""

    def _headers(role="admin"):
        if role == "student":
            student_id = make_student(full_name="Logged In Student")
            principal = Principal(id=student_id, name="Logged In Student", role="student", kind="student")
        else:
            principal = make_staff(role)
        return {"Authorization": f"Bearer {issue_token(principal)}"}

    return _headers


def fetch_one(sql, params=()):
    with db.get_cursor() as cursor:
        row = cursor.execute(sql, params).fetchone()
    return dict(row) if row else None
