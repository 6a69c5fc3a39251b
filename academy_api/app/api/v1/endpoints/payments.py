"""
Payment endpoints: monthly billing generation and settlement.
"""

from typing import Optional

from academy_api.app.api.responses import ok
from academy_api.app.schemas.payment import MarkPaidRequest, MonthlyBillingRequest
from academy_api.app.services.billing_service import BillingService


async def generate_monthly(billing: Optional[MonthlyBillingRequest] = None) -> dict:
    """Bill every active, fee-paying student not yet billed for the month.

    Safe to call repeatedly: students already billed for the month are
    skipped, so a second call for the same month generates nothing.
    """
    billing = billing or MonthlyBillingRequest()
    result = await BillingService.generate_monthly(billing.reference_month, billing.due_day)
    month = result.reference_month.strftime("%Y-%m")
    if result.generated == 0:
        message = f"No payments generated: every active student with a monthly fee is already billed for {month}"
    else:
        message = f"{result.generated} payments generated for {month}"
    return ok(result, message)


async def mark_paid(payment_id: str, settlement: Optional[MarkPaidRequest] = None) -> dict:
    payment = await BillingService.mark_paid(payment_id, settlement or MarkPaidRequest())
    return ok(payment, "Payment marked as paid")
