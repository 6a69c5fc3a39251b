"""
Pydantic models for students.

A student may optionally receive login credentials, which turns the
record into a student principal able to enroll itself in classes.
"""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field

StudentStatus = Literal["active", "inactive", "suspended"]


class StudentCreate(BaseModel):
    full_name: str = Field(..., min_length=2, examples=["Helio Gracie"])
    birth_date: Optional[date] = Field(None, examples=["2001-05-14"])
    email: Optional[str] = None
    phone: Optional[str] = Field(None, pattern=r"^\d{10,11}$")
    belt: Optional[str] = Field(None, description="Starting belt, if already ranked")
    belt_degree: Optional[int] = Field(None, ge=0, le=10)
    monthly_fee: Optional[float] = Field(None, ge=0, examples=[150.0])
    username: Optional[str] = Field(None, min_length=3)
    password: Optional[str] = Field(None, min_length=6)


class StudentRead(BaseModel):
    id: str
    full_name: str
    birth_date: Optional[date] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    belt: Optional[str] = None
    belt_degree: Optional[int] = None
    monthly_fee: Optional[float] = None
    enrollment_date: Optional[date] = None
    status: StudentStatus
    username: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }
