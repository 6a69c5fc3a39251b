"""
Business logic for authentication.

Staff accounts live in ``users``; students with credentials log in
against ``students``.  Only active accounts may log in.  Tokens are
stateless, so logout has no server-side effect.
"""

import logging
from typing import Optional

from academy_api.app.core.db import get_connection
from academy_api.app.core.errors import AuthenticationError, NotFoundError
from academy_api.app.core.security import Principal, issue_token, verify_password
from academy_api.app.schemas.auth import TokenResponse
from academy_api.app.schemas.student import StudentRead

_STAFF_PUBLIC_COLUMNS = "id, username, email, role, teacher_id, status, created_at"


def _staff_principal(row) -> Principal:
    return Principal(
        id=row["id"],
        name=row["username"],
        role=row["role"],
        kind="staff",
        teacher_id=row["teacher_id"],
    )


def _student_principal(row) -> Principal:
    return Principal(id=row["id"], name=row["full_name"], role="student", kind="student")


class AuthService:
    """Service resolving credentials into session tokens."""

    @classmethod
    async def login_staff(cls, username: str, password: str) -> TokenResponse:
        logger = logging.getLogger(__name__)
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT * FROM users WHERE username = ? AND status = 'active'", (username,)
            ).fetchone()
        finally:
            conn.close()
        if not row or not verify_password(password, row["password_hash"]):
            logger.warning("Failed staff login for %s", username)
            raise AuthenticationError("Invalid credentials")
        logger.info("Staff user %s logged in", username)
        user = {k: row[k] for k in _STAFF_PUBLIC_COLUMNS.split(", ")}
        return TokenResponse(token=issue_token(_staff_principal(row)), user=user)

    @classmethod
    async def login_student(cls, username: str, password: str) -> TokenResponse:
        logger = logging.getLogger(__name__)
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT * FROM students WHERE username = ? AND status = 'active'", (username,)
            ).fetchone()
        finally:
            conn.close()
        if not row or not verify_password(password, row["password_hash"]):
            logger.warning("Failed student login for %s", username)
            raise AuthenticationError("Invalid credentials")
        logger.info("Student %s logged in", username)
        student = StudentRead.model_validate(dict(row)).model_dump(mode="json")
        return TokenResponse(token=issue_token(_student_principal(row)), user=student)

    @classmethod
    async def profile(cls, principal: Principal) -> dict:
        """Return the stored record behind ``principal`` without password material."""
        conn = get_connection()
        try:
            if principal.is_student:
                row = conn.execute("SELECT * FROM students WHERE id = ?", (principal.id,)).fetchone()
                if not row:
                    raise NotFoundError("Student not found")
                return StudentRead.model_validate(dict(row)).model_dump(mode="json")
            row = conn.execute(
                f"SELECT {_STAFF_PUBLIC_COLUMNS} FROM users WHERE id = ?", (principal.id,)
            ).fetchone()
            if not row:
                raise NotFoundError("User not found")
            profile = dict(row)
            if row["teacher_id"]:
                teacher = conn.execute(
                    "SELECT full_name, belt, belt_degree FROM teachers WHERE id = ?", (row["teacher_id"],)
                ).fetchone()
                profile["teacher"] = dict(teacher) if teacher else None
            return profile
        finally:
            conn.close()

    @classmethod
    async def refresh(cls, principal: Principal, expires_delta: Optional[int] = None) -> str:
        """Issue a new token carrying the same identity claims."""
        return issue_token(principal, expires_delta)
