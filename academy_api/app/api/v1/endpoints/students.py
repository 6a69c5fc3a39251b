"""
Student endpoints: registration, deactivation and belt history.
"""

from academy_api.app.api.responses import ok
from academy_api.app.schemas.student import StudentCreate
from academy_api.app.services.belt_service import BeltService
from academy_api.app.services.student_service import StudentService


async def create_student(student: StudentCreate) -> dict:
    created = await StudentService.create_student(student)
    return ok(created, "Student registered")


async def deactivate_student(student_id: str) -> dict:
    """Deactivate a student.  Records are kept for history and billing."""
    student = await StudentService.deactivate_student(student_id)
    return ok(student, "Student deactivated")


async def belt_history(student_id: str) -> dict:
    return ok(await BeltService.student_history(student_id))
