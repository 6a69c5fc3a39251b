"""
Class endpoints: creation, roster and enrollment.

Staff enroll any student through ``/classes/{class_id}/enroll``; a
logged-in student uses the ``/student/classes/...`` variants, which
always act on the caller's own record.
"""

from fastapi import Depends

from academy_api.app.api.responses import ok
from academy_api.app.core.security import Principal, get_current_principal
from academy_api.app.schemas.enrollment import EnrollmentCreate
from academy_api.app.schemas.training_class import ClassCreate
from academy_api.app.services.class_service import ClassService
from academy_api.app.services.enrollment_service import EnrollmentService


async def create_class(klass: ClassCreate) -> dict:
    return ok(await ClassService.create_class(klass), "Class created")


async def class_roster(class_id: str) -> dict:
    return ok(await EnrollmentService.roster(class_id))


async def enroll_student(class_id: str, enrollment: EnrollmentCreate) -> dict:
    created = await EnrollmentService.enroll(class_id, enrollment.student_id)
    return ok(created, "Student enrolled")


async def unenroll_student(class_id: str, student_id: str) -> dict:
    closed = await EnrollmentService.unenroll(class_id, student_id)
    return ok(closed, "Student unenrolled")


async def enroll_self(class_id: str, principal: Principal = Depends(get_current_principal)) -> dict:
    created = await EnrollmentService.enroll(class_id, principal.id)
    return ok(created, "Enrolled in class")


async def unenroll_self(class_id: str, principal: Principal = Depends(get_current_principal)) -> dict:
    closed = await EnrollmentService.unenroll(class_id, principal.id)
    return ok(closed, "Unenrolled from class")
