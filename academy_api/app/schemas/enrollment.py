"""
Pydantic models for class enrollments.
"""

from datetime import date
from typing import Literal

from pydantic import BaseModel


class EnrollmentCreate(BaseModel):
    student_id: str


class EnrollmentRead(BaseModel):
    id: str
    student_id: str
    class_id: str
    enrollment_date: date
    status: Literal["active", "inactive"]

    model_config = {
        "from_attributes": True,
    }


class RosterEntry(BaseModel):
    enrollment_id: str
    student_id: str
    full_name: str
    belt: str | None = None
    belt_degree: int | None = None
    enrollment_date: date


class ClassRoster(BaseModel):
    class_id: str
    name: str
    max_students: int
    active_count: int
    students: list[RosterEntry]
