"""
Business logic for classes.
"""

import logging

from academy_api.app.core.config import settings
from academy_api.app.core.db import new_id, transaction
from academy_api.app.core.errors import NotFoundError
from academy_api.app.core.validation import ensure_identifier
from academy_api.app.schemas.training_class import ClassCreate, ClassRead


class ClassService:
    """Service for creating classes on the weekly schedule."""

    @classmethod
    async def create_class(cls, data: ClassCreate) -> ClassRead:
        logger = logging.getLogger(__name__)
        class_id = new_id()
        teacher_id = ensure_identifier(data.teacher_id, "teacher_id") if data.teacher_id else None
        with transaction() as cursor:
            if teacher_id and not cursor.execute(
                "SELECT 1 FROM teachers WHERE id = ?", (teacher_id,)
            ).fetchone():
                raise NotFoundError("Teacher not found")
            cursor.execute(
                """
                INSERT INTO classes (
                    id, name, description, teacher_id, day_of_week, start_time, end_time,
                    max_students, belt_requirement, age_group
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    class_id,
                    data.name,
                    data.description,
                    teacher_id,
                    data.day_of_week,
                    data.start_time,
                    data.end_time,
                    data.max_students or settings.default_class_capacity,
                    data.belt_requirement,
                    data.age_group,
                ),
            )
            row = cursor.execute("SELECT * FROM classes WHERE id = ?", (class_id,)).fetchone()
        logger.info("Created class %s (%s)", data.name, class_id)
        return ClassRead.model_validate(dict(row))
