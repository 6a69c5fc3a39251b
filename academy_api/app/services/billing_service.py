"""
Business logic for monthly billing.

``generate_monthly`` bills every active student with a positive
``monthly_fee`` exactly once per reference month.  The check for an
existing payment and the bulk insert run in one write-locked
transaction, and the unique index on ``(student_id, reference_month)``
rejects any duplicate that would still slip through.  Calling it twice
for the same month therefore creates payments only the first time.
"""

import calendar
import logging
import sqlite3
from datetime import date
from typing import Optional

from academy_api.app.core.config import settings
from academy_api.app.core.db import new_id, transaction
from academy_api.app.core.errors import ConflictError, InvalidStateError, NotFoundError
from academy_api.app.core.validation import ensure_identifier, parse_reference_month
from academy_api.app.schemas.payment import (
    BillingLine,
    MarkPaidRequest,
    MonthlyBillingResult,
    PaymentRead,
)


def due_date_for(month_start: date, due_day: int) -> date:
    """Due date inside ``month_start``'s month, clamped to its last day."""
    last_day = calendar.monthrange(month_start.year, month_start.month)[1]
    return month_start.replace(day=min(due_day, last_day))


def _unbilled_students(cursor: sqlite3.Cursor, month_start: date, month_end: date) -> list[sqlite3.Row]:
    """Active students with a positive fee and no payment inside the month."""
    return cursor.execute(
        """
        SELECT s.id, s.full_name, s.monthly_fee
        FROM students s
        WHERE s.status = 'active'
          AND s.monthly_fee IS NOT NULL
          AND s.monthly_fee > 0
          AND NOT EXISTS (
              SELECT 1 FROM payments p
              WHERE p.student_id = s.id
                AND p.reference_month BETWEEN ? AND ?
          )
        ORDER BY s.full_name
        """,
        (month_start.isoformat(), month_end.isoformat()),
    ).fetchall()


class BillingService:
    """Service for generating and settling monthly billing records."""

    @classmethod
    async def generate_monthly(
        cls,
        reference_month: Optional[str] = None,
        due_day: Optional[int] = None,
    ) -> MonthlyBillingResult:
        """Create one pending payment per unbilled, fee-paying active student.

        Parameters
        ----------
        reference_month : Optional[str]
            ``YYYY-MM``.  Defaults to the current month.
        due_day : Optional[int]
            Day of month the payments fall due.  Defaults to
            ``settings.billing_due_day``; values past the end of the month
            are clamped to its last day.
        """
        logger = logging.getLogger(__name__)
        if reference_month:
            month_start = parse_reference_month(reference_month)
        else:
            month_start = date.today().replace(day=1)
        month_end = due_date_for(month_start, 31)
        due_date = due_date_for(month_start, due_day or settings.billing_due_day)

        try:
            with transaction() as cursor:
                candidates = _unbilled_students(cursor, month_start, month_end)
                if candidates:
                    cursor.executemany(
                        """
                        INSERT INTO payments (id, student_id, amount, due_date, status, reference_month)
                        VALUES (?, ?, ?, ?, 'pending', ?)
                        """,
                        [
                            (new_id(), row["id"], row["monthly_fee"], due_date.isoformat(), month_start.isoformat())
                            for row in candidates
                        ],
                    )
        except sqlite3.IntegrityError as exc:
            raise ConflictError("Billing for this month already exists for one or more students") from exc

        lines = [
            BillingLine(student_id=row["id"], student_name=row["full_name"], amount=row["monthly_fee"])
            for row in candidates
        ]
        total = round(sum(line.amount for line in lines), 2)
        logger.info(
            "Generated %d payments for %s (total %.2f)",
            len(lines),
            month_start.strftime("%Y-%m"),
            total,
        )
        return MonthlyBillingResult(
            generated=len(lines),
            reference_month=month_start,
            due_date=due_date,
            total_amount=total,
            payments=lines,
        )

    @classmethod
    async def mark_paid(cls, payment_id: str, data: MarkPaidRequest) -> PaymentRead:
        """Settle a pending or overdue payment."""
        logger = logging.getLogger(__name__)
        payment_id = ensure_identifier(payment_id, "payment_id")
        paid_on = data.payment_date or date.today()
        with transaction() as cursor:
            row = cursor.execute("SELECT status FROM payments WHERE id = ?", (payment_id,)).fetchone()
            if not row:
                raise NotFoundError("Payment not found")
            if row["status"] not in ("pending", "overdue"):
                raise InvalidStateError(f"Payment is {row['status']} and cannot be marked as paid")
            cursor.execute(
                """
                UPDATE payments
                SET status = 'paid', payment_date = ?, payment_method = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (paid_on.isoformat(), data.payment_method, payment_id),
            )
            updated = cursor.execute("SELECT * FROM payments WHERE id = ?", (payment_id,)).fetchone()
        logger.info("Payment %s marked as paid via %s", payment_id, data.payment_method)
        return PaymentRead.model_validate(dict(updated))
