"""
Business logic for student records.

Only registration and deactivation live here; belt changes go through
``BeltService`` so the promotion history stays authoritative.
"""

import logging
import sqlite3

from academy_api.app.core.db import new_id, transaction
from academy_api.app.core.errors import ConflictError, NotFoundError, ValidationError
from academy_api.app.core.security import hash_password
from academy_api.app.core.validation import ensure_identifier
from academy_api.app.schemas.student import StudentCreate, StudentRead


class StudentService:
    """Service for registering and deactivating students."""

    @classmethod
    async def create_student(cls, data: StudentCreate) -> StudentRead:
        logger = logging.getLogger(__name__)
        if (data.username is None) != (data.password is None):
            raise ValidationError("username and password must be provided together")
        if data.belt_degree is not None and not data.belt:
            raise ValidationError("belt_degree requires belt")
        student_id = new_id()
        password_hash = hash_password(data.password) if data.password else None
        try:
            with transaction() as cursor:
                cursor.execute(
                    """
                    INSERT INTO students (
                        id, full_name, birth_date, email, phone, belt, belt_degree,
                        monthly_fee, username, password_hash
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        student_id,
                        data.full_name,
                        data.birth_date.isoformat() if data.birth_date else None,
                        data.email,
                        data.phone,
                        data.belt,
                        data.belt_degree if data.belt else None,
                        data.monthly_fee,
                        data.username,
                        password_hash,
                    ),
                )
                row = cursor.execute("SELECT * FROM students WHERE id = ?", (student_id,)).fetchone()
        except sqlite3.IntegrityError as exc:
            if "UNIQUE" in str(exc) and data.username:
                raise ConflictError(f"Username {data.username} is already taken") from exc
            raise ConflictError("Student conflicts with existing data") from exc
        logger.info("Registered student %s (%s)", data.full_name, student_id)
        return StudentRead.model_validate(dict(row))

    @classmethod
    async def deactivate_student(cls, student_id: str) -> StudentRead:
        """Mark a student inactive.  History (promotions, payments) is kept."""
        logger = logging.getLogger(__name__)
        student_id = ensure_identifier(student_id, "student_id")
        with transaction() as cursor:
            row = cursor.execute("SELECT id FROM students WHERE id = ?", (student_id,)).fetchone()
            if not row:
                raise NotFoundError("Student not found")
            cursor.execute(
                "UPDATE students SET status = 'inactive', updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (student_id,),
            )
            cursor.execute(
                "UPDATE student_classes SET status = 'inactive', updated_at = CURRENT_TIMESTAMP "
                "WHERE student_id = ? AND status = 'active'",
                (student_id,),
            )
            updated = cursor.execute("SELECT * FROM students WHERE id = ?", (student_id,)).fetchone()
        logger.info("Student %s deactivated", student_id)
        return StudentRead.model_validate(dict(updated))
