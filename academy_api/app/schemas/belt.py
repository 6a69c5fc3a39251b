"""
Pydantic models for belt promotions.

A promotion is a historical record; the student's current belt is
derived from the most recent one.
"""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .student import StudentRead

PromotionType = Literal["regular", "skip_degree", "honorary", "correction"]


class BeltPromotionCreate(BaseModel):
    student_id: str
    new_belt: str = Field(..., min_length=1, examples=["blue"])
    new_degree: int = Field(..., ge=0, le=10, examples=[0])
    promotion_type: PromotionType = "regular"
    promotion_date: Optional[date] = Field(None, description="Defaults to today")
    notes: Optional[str] = None
    certificate_url: Optional[str] = Field(None, pattern=r"^https?://")


class BeltPromotionUpdate(BaseModel):
    """Mutable fields of a promotion.  Omitted fields are left as they are."""

    new_belt: Optional[str] = Field(None, min_length=1)
    new_degree: Optional[int] = Field(None, ge=0, le=10)
    promotion_type: Optional[PromotionType] = None
    promotion_date: Optional[date] = None
    notes: Optional[str] = None
    certificate_url: Optional[str] = Field(None, pattern=r"^https?://")


class BeltPromotionRead(BaseModel):
    id: str
    student_id: str
    promoted_by: Optional[str] = None
    previous_belt: Optional[str] = None
    previous_degree: Optional[int] = None
    new_belt: str
    new_degree: int
    promotion_date: date
    promotion_type: PromotionType
    notes: Optional[str] = None
    certificate_url: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }


class PromotionResult(BaseModel):
    promotion: BeltPromotionRead
    student: StudentRead


class BeltHistory(BaseModel):
    student: StudentRead
    promotions: list[BeltPromotionRead]
