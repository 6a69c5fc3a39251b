"""
Business logic for belt promotions.

A student's ``belt``/``belt_degree`` columns are a materialized view of
the promotion history: they always equal the ``new_belt``/``new_degree``
of the most recent promotion (latest ``promotion_date``, ties broken by
insertion order), or are both NULL when the student has no promotions.
Every write to ``belt_promotions`` re-derives that view inside the same
transaction through :func:`_recompute_current_belt`.
"""

import logging
import sqlite3
from datetime import date
from typing import Optional

from academy_api.app.core.db import get_connection, new_id, transaction
from academy_api.app.core.errors import InvalidStateError, NotFoundError, ValidationError
from academy_api.app.core.security import Principal
from academy_api.app.core.validation import ensure_identifier
from academy_api.app.schemas.belt import (
    BeltHistory,
    BeltPromotionCreate,
    BeltPromotionRead,
    BeltPromotionUpdate,
    PromotionResult,
)
from academy_api.app.schemas.student import StudentRead

# Columns a client may change through ``update``.  The first four are
# NOT NULL in the schema.
_UPDATABLE = ("new_belt", "new_degree", "promotion_type", "promotion_date", "notes", "certificate_url")
_REQUIRED = {"new_belt", "new_degree", "promotion_type", "promotion_date"}

_LATEST_SQL = (
    "SELECT id, new_belt, new_degree FROM belt_promotions "
    "WHERE student_id = ? ORDER BY promotion_date DESC, rowid DESC LIMIT 1"
)


def _fetch_student(cursor: sqlite3.Cursor, student_id: str) -> sqlite3.Row:
    row = cursor.execute("SELECT * FROM students WHERE id = ?", (student_id,)).fetchone()
    if not row:
        raise NotFoundError("Student not found")
    return row


def _fetch_promotion(cursor: sqlite3.Cursor, promotion_id: str) -> sqlite3.Row:
    row = cursor.execute("SELECT * FROM belt_promotions WHERE id = ?", (promotion_id,)).fetchone()
    if not row:
        raise NotFoundError("Promotion not found")
    return row


def _latest_promotion(cursor: sqlite3.Cursor, student_id: str) -> Optional[sqlite3.Row]:
    return cursor.execute(_LATEST_SQL, (student_id,)).fetchone()


def _recompute_current_belt(cursor: sqlite3.Cursor, student_id: str) -> sqlite3.Row:
    """Set the student's belt from their most recent promotion and return the student."""
    latest = _latest_promotion(cursor, student_id)
    belt, degree = (latest["new_belt"], latest["new_degree"]) if latest else (None, None)
    cursor.execute(
        "UPDATE students SET belt = ?, belt_degree = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
        (belt, degree, student_id),
    )
    return _fetch_student(cursor, student_id)


class BeltService:
    """Service for recording and reconciling belt promotions."""

    @classmethod
    async def promote(cls, data: BeltPromotionCreate, promoted_by: Principal) -> PromotionResult:
        """Promote an active student.

        Within one transaction: snapshot the student's current belt as the
        "previous" values, insert the promotion and move the student to
        the new belt.  A back-dated promotion that is older than the
        student's latest one is recorded as history without changing the
        current belt.

        Raises
        ------
        NotFoundError
            The student does not exist.
        InvalidStateError
            The student is not active.
        """
        logger = logging.getLogger(__name__)
        student_id = ensure_identifier(data.student_id, "student_id")
        promotion_date = data.promotion_date or date.today()
        promotion_id = new_id()
        with transaction() as cursor:
            student = _fetch_student(cursor, student_id)
            if student["status"] != "active":
                raise InvalidStateError("Student must be active to be promoted")
            cursor.execute(
                """
                INSERT INTO belt_promotions (
                    id, student_id, promoted_by, previous_belt, previous_degree,
                    new_belt, new_degree, promotion_date, promotion_type, notes, certificate_url
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    promotion_id,
                    student_id,
                    promoted_by.id,
                    student["belt"],
                    student["belt_degree"],
                    data.new_belt,
                    data.new_degree,
                    promotion_date.isoformat(),
                    data.promotion_type,
                    data.notes,
                    data.certificate_url,
                ),
            )
            updated = _recompute_current_belt(cursor, student_id)
            promotion = _fetch_promotion(cursor, promotion_id)
        logger.info(
            "Student %s promoted to %s %s by %s",
            student_id,
            data.new_belt,
            data.new_degree,
            promoted_by.id,
        )
        return PromotionResult(
            promotion=BeltPromotionRead.model_validate(dict(promotion)),
            student=StudentRead.model_validate(dict(updated)),
        )

    @classmethod
    async def update(cls, promotion_id: str, changes: BeltPromotionUpdate) -> PromotionResult:
        """Edit a promotion and keep the student's current belt consistent.

        The student is re-synced only when the edited record determines
        the current belt, either before or after the edit (an edit can
        move a promotion's date so that another record becomes the most
        recent).  Editing older history leaves the student untouched.
        """
        logger = logging.getLogger(__name__)
        promotion_id = ensure_identifier(promotion_id, "promotion_id")
        fields = changes.model_dump(exclude_unset=True)
        nulls = sorted(k for k in _REQUIRED if k in fields and fields[k] is None)
        if nulls:
            raise ValidationError(
                "Required promotion fields cannot be null",
                details=[{"field": k, "message": "may not be null"} for k in nulls],
            )
        with transaction() as cursor:
            current = _fetch_promotion(cursor, promotion_id)
            student_id = current["student_id"]
            latest_before = _latest_promotion(cursor, student_id)
            was_latest = latest_before is not None and latest_before["id"] == promotion_id

            assignments = []
            params: list = []
            for column in _UPDATABLE:
                if column in fields:
                    value = fields[column]
                    if isinstance(value, date):
                        value = value.isoformat()
                    assignments.append(f"{column} = ?")
                    params.append(value)
            if assignments:
                assignments.append("updated_at = CURRENT_TIMESTAMP")
                cursor.execute(
                    f"UPDATE belt_promotions SET {', '.join(assignments)} WHERE id = ?",
                    (*params, promotion_id),
                )

            latest_after = _latest_promotion(cursor, student_id)
            is_latest = latest_after is not None and latest_after["id"] == promotion_id
            if was_latest or is_latest:
                student = _recompute_current_belt(cursor, student_id)
            else:
                student = _fetch_student(cursor, student_id)
            promotion = _fetch_promotion(cursor, promotion_id)
        logger.info("Promotion %s updated (fields: %s)", promotion_id, ", ".join(sorted(fields)) or "none")
        return PromotionResult(
            promotion=BeltPromotionRead.model_validate(dict(promotion)),
            student=StudentRead.model_validate(dict(student)),
        )

    @classmethod
    async def delete(cls, promotion_id: str) -> StudentRead:
        """Delete a promotion and fall back to the next most recent one.

        Returns the student's updated projection.  With no promotions
        left the student is reset to "no belt".
        """
        logger = logging.getLogger(__name__)
        promotion_id = ensure_identifier(promotion_id, "promotion_id")
        with transaction() as cursor:
            promotion = _fetch_promotion(cursor, promotion_id)
            student_id = promotion["student_id"]
            cursor.execute("DELETE FROM belt_promotions WHERE id = ?", (promotion_id,))
            student = _recompute_current_belt(cursor, student_id)
        logger.info("Promotion %s deleted; student %s now at %s", promotion_id, student_id, student["belt"])
        return StudentRead.model_validate(dict(student))

    @classmethod
    async def get_promotion(cls, promotion_id: str) -> BeltPromotionRead:
        promotion_id = ensure_identifier(promotion_id, "promotion_id")
        conn = get_connection()
        try:
            row = _fetch_promotion(conn.cursor(), promotion_id)
            return BeltPromotionRead.model_validate(dict(row))
        finally:
            conn.close()

    @classmethod
    async def student_history(cls, student_id: str) -> BeltHistory:
        """Return a student with their promotions, most recent first."""
        student_id = ensure_identifier(student_id, "student_id")
        conn = get_connection()
        try:
            cursor = conn.cursor()
            student = _fetch_student(cursor, student_id)
            rows = cursor.execute(
                "SELECT * FROM belt_promotions WHERE student_id = ? "
                "ORDER BY promotion_date DESC, rowid DESC",
                (student_id,),
            ).fetchall()
            return BeltHistory(
                student=StudentRead.model_validate(dict(student)),
                promotions=[BeltPromotionRead.model_validate(dict(r)) for r in rows],
            )
        finally:
            conn.close()
