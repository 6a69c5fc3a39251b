"""
Pydantic models for classes (training sessions on the weekly schedule).
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


class ClassCreate(BaseModel):
    name: str = Field(..., min_length=2, examples=["Fundamentals"])
    description: Optional[str] = None
    teacher_id: Optional[str] = None
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday … 6 = Saturday")
    start_time: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$", examples=["19:00"])
    end_time: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$", examples=["20:30"])
    max_students: Optional[int] = Field(None, gt=0, description="Capacity; defaults to the configured value")
    belt_requirement: Optional[str] = None
    age_group: Optional[str] = None

    @model_validator(mode="after")
    def _check_times(self) -> "ClassCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be later than start_time")
        return self


class ClassRead(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    teacher_id: Optional[str] = None
    day_of_week: int
    start_time: str
    end_time: str
    max_students: int
    belt_requirement: Optional[str] = None
    age_group: Optional[str] = None
    status: Literal["active", "inactive"]

    model_config = {
        "from_attributes": True,
    }
