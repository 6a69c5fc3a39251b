"""StudentService: registration conflicts and validation."""

import pytest

from academy_api.app.core.errors import ConflictError, ValidationError
from academy_api.app.schemas.student import StudentCreate
from academy_api.app.services.student_service import StudentService


async def test_taken_username_names_the_username(make_student):
    make_student(username="royce", password="secret123")

    with pytest.raises(ConflictError, match="Username royce is already taken"):
        await StudentService.create_student(
            StudentCreate(full_name="Royce Gracie", username="royce", password="secret123")
        )


async def test_check_constraint_failure_is_not_reported_as_a_username_clash():
    # model_construct skips pydantic validation so the row reaches the CHECK constraint.
    data = StudentCreate.model_construct(
        full_name="Royce Gracie",
        birth_date=None,
        email=None,
        phone=None,
        belt="black",
        belt_degree=11,
        monthly_fee=None,
        username="royce",
        password="secret123",
    )

    with pytest.raises(ConflictError) as excinfo:
        await StudentService.create_student(data)

    assert "Username" not in excinfo.value.message


async def test_credentials_come_in_pairs():
    with pytest.raises(ValidationError):
        await StudentService.create_student(StudentCreate(full_name="Royce Gracie", username="royce"))


async def test_degree_requires_belt():
    with pytest.raises(ValidationError):
        await StudentService.create_student(StudentCreate(full_name="Royce Gracie", belt_degree=2))
