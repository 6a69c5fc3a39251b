"""
Business logic for class enrollment.

Enrolling checks, in order: the class exists and is active, the class
has fewer active enrollments than ``max_students``, the student exists
and is active, and no enrollment row (active or not) already links the
pair.  All checks and the insert share one write-locked transaction;
the unique index on ``(student_id, class_id)`` turns a duplicate that
bypassed the checks into a ``ConflictError`` as well.

Unenrolling is a soft close: the row is kept with status ``inactive``.
"""

import logging
import sqlite3
from typing import Optional

from academy_api.app.core.db import get_connection, new_id, transaction
from academy_api.app.core.errors import (
    CapacityExceededError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
)
from academy_api.app.core.validation import ensure_identifier
from academy_api.app.schemas.enrollment import ClassRoster, EnrollmentRead, RosterEntry


def _active_count(cursor: sqlite3.Cursor, class_id: str) -> int:
    row = cursor.execute(
        "SELECT COUNT(*) AS total FROM student_classes WHERE class_id = ? AND status = 'active'",
        (class_id,),
    ).fetchone()
    return row["total"]


def _existing_enrollment(cursor: sqlite3.Cursor, student_id: str, class_id: str) -> Optional[sqlite3.Row]:
    return cursor.execute(
        "SELECT status FROM student_classes WHERE student_id = ? AND class_id = ?",
        (student_id, class_id),
    ).fetchone()


class EnrollmentService:
    """Service enforcing class capacity and enrollment uniqueness."""

    @classmethod
    async def enroll(cls, class_id: str, student_id: str) -> EnrollmentRead:
        """Enroll a student in a class.

        Raises
        ------
        NotFoundError
            Class or student missing.
        InvalidStateError
            Class or student inactive.
        CapacityExceededError
            The class already has ``max_students`` active enrollments.
        ConflictError
            The student has (or had) an enrollment in this class.
        """
        logger = logging.getLogger(__name__)
        class_id = ensure_identifier(class_id, "class_id")
        student_id = ensure_identifier(student_id, "student_id")
        enrollment_id = new_id()
        try:
            with transaction() as cursor:
                klass = cursor.execute(
                    "SELECT id, status, max_students FROM classes WHERE id = ?", (class_id,)
                ).fetchone()
                if not klass:
                    raise NotFoundError("Class not found")
                if klass["status"] != "active":
                    raise InvalidStateError("Class is not active")
                if _active_count(cursor, class_id) >= klass["max_students"]:
                    raise CapacityExceededError(
                        f"Class is at full capacity ({klass['max_students']} students)"
                    )

                student = cursor.execute("SELECT id, status FROM students WHERE id = ?", (student_id,)).fetchone()
                if not student:
                    raise NotFoundError("Student not found")
                if student["status"] != "active":
                    raise InvalidStateError("Student is not active")

                existing = _existing_enrollment(cursor, student_id, class_id)
                if existing:
                    if existing["status"] == "active":
                        raise ConflictError("Student is already enrolled in this class")
                    raise ConflictError("Student has a previous enrollment in this class")

                cursor.execute(
                    "INSERT INTO student_classes (id, student_id, class_id, status) VALUES (?, ?, ?, 'active')",
                    (enrollment_id, student_id, class_id),
                )
                row = cursor.execute("SELECT * FROM student_classes WHERE id = ?", (enrollment_id,)).fetchone()
        except sqlite3.IntegrityError as exc:
            raise ConflictError("Student is already enrolled in this class") from exc
        logger.info("Student %s enrolled in class %s", student_id, class_id)
        return EnrollmentRead.model_validate(dict(row))

    @classmethod
    async def unenroll(cls, class_id: str, student_id: str) -> EnrollmentRead:
        """Close the active enrollment of a student in a class."""
        logger = logging.getLogger(__name__)
        class_id = ensure_identifier(class_id, "class_id")
        student_id = ensure_identifier(student_id, "student_id")
        with transaction() as cursor:
            row = cursor.execute(
                "SELECT id FROM student_classes WHERE student_id = ? AND class_id = ? AND status = 'active'",
                (student_id, class_id),
            ).fetchone()
            if not row:
                raise NotFoundError("Active enrollment not found")
            cursor.execute(
                "UPDATE student_classes SET status = 'inactive', updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (row["id"],),
            )
            updated = cursor.execute("SELECT * FROM student_classes WHERE id = ?", (row["id"],)).fetchone()
        logger.info("Student %s unenrolled from class %s", student_id, class_id)
        return EnrollmentRead.model_validate(dict(updated))

    @classmethod
    async def roster(cls, class_id: str) -> ClassRoster:
        """List the students actively enrolled in a class."""
        class_id = ensure_identifier(class_id, "class_id")
        conn = get_connection()
        try:
            cursor = conn.cursor()
            klass = cursor.execute(
                "SELECT id, name, max_students FROM classes WHERE id = ?", (class_id,)
            ).fetchone()
            if not klass:
                raise NotFoundError("Class not found")
            rows = cursor.execute(
                """
                SELECT sc.id AS enrollment_id, s.id AS student_id, s.full_name, s.belt,
                       s.belt_degree, sc.enrollment_date
                FROM student_classes sc
                JOIN students s ON s.id = sc.student_id
                WHERE sc.class_id = ? AND sc.status = 'active'
                ORDER BY s.full_name
                """,
                (class_id,),
            ).fetchall()
            students = [RosterEntry.model_validate(dict(r)) for r in rows]
            return ClassRoster(
                class_id=klass["id"],
                name=klass["name"],
                max_students=klass["max_students"],
                active_count=len(students),
                students=students,
            )
        finally:
            conn.close()
