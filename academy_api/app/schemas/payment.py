"""
Pydantic models for billing records.

``reference_month`` is the calendar month a payment represents and is
stored as the first day of that month.
"""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field

PaymentStatus = Literal["pending", "paid", "overdue", "cancelled"]
PaymentMethod = Literal["cash", "card", "pix", "bank_transfer"]


class MonthlyBillingRequest(BaseModel):
    reference_month: Optional[str] = Field(
        None,
        pattern=r"^\d{4}-(0[1-9]|1[0-2])$",
        examples=["2025-03"],
        description="Month to bill (YYYY-MM); defaults to the current month",
    )
    due_day: Optional[int] = Field(None, ge=1, le=31, description="Day of month the payment is due")


class BillingLine(BaseModel):
    student_id: str
    student_name: str
    amount: float


class MonthlyBillingResult(BaseModel):
    generated: int
    reference_month: date
    due_date: date
    total_amount: float
    payments: list[BillingLine]


class MarkPaidRequest(BaseModel):
    payment_method: PaymentMethod = "cash"
    payment_date: Optional[date] = Field(None, description="Defaults to today")


class PaymentRead(BaseModel):
    id: str
    student_id: str
    amount: float
    due_date: date
    payment_date: Optional[date] = None
    payment_method: Optional[PaymentMethod] = None
    status: PaymentStatus
    reference_month: date
    discount: float = 0
    late_fee: float = 0
    notes: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }
