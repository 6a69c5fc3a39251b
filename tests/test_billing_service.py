"""BillingService: monthly generation is idempotent and settlement is one-way."""

import asyncio
import sqlite3
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import date

import pytest

from academy_api.app.core import db
from academy_api.app.core.config import settings
from academy_api.app.core.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from academy_api.app.schemas.payment import MarkPaidRequest
from academy_api.app.services import billing_service
from academy_api.app.services.billing_service import BillingService, due_date_for

from conftest import fetch_one


def _insert_payment(student_id, reference_month, status="pending", amount=150.0):
    payment_id = db.new_id()
    with db.get_cursor() as cursor:
        cursor.execute(
            """
            INSERT INTO payments (id, student_id, amount, due_date, status, reference_month)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (payment_id, student_id, amount, reference_month, status, reference_month),
        )
    return payment_id


def _payment_count(reference_month):
    return fetch_one("SELECT COUNT(*) AS n FROM payments WHERE reference_month = ?", (reference_month,))["n"]


@pytest.mark.parametrize(
    "month_start,due_day,expected",
    [
        (date(2025, 3, 1), 10, date(2025, 3, 10)),
        (date(2025, 2, 1), 31, date(2025, 2, 28)),
        (date(2024, 2, 1), 30, date(2024, 2, 29)),
        (date(2025, 4, 1), 31, date(2025, 4, 30)),
    ],
)
def test_due_date_is_clamped_to_month_end(month_start, due_day, expected):
    assert due_date_for(month_start, due_day) == expected


class TestGenerateMonthly:
    async def test_only_unbilled_fee_paying_active_students_are_billed(self, make_student):
        alice = make_student("Alice", monthly_fee=150.0)
        bruno = make_student("Bruno", monthly_fee=180.0)
        carla = make_student("Carla", monthly_fee=150.0)
        make_student("Dora", monthly_fee=150.0, status="inactive")
        make_student("Enzo", monthly_fee=0)
        make_student("Fabi")
        _insert_payment(carla, "2025-03-01")

        result = await BillingService.generate_monthly("2025-03", 10)

        assert result.generated == 2
        assert {line.student_id for line in result.payments} == {alice, bruno}
        assert result.total_amount == 330.0
        assert result.reference_month == date(2025, 3, 1)
        assert result.due_date == date(2025, 3, 10)
        row = fetch_one("SELECT * FROM payments WHERE student_id = ?", (alice,))
        assert row["status"] == "pending"
        assert row["due_date"] == "2025-03-10"
        assert row["amount"] == 150.0
        assert _payment_count("2025-03-01") == 3

    async def test_second_run_for_same_month_generates_nothing(self, make_student):
        make_student("Alice", monthly_fee=150.0)
        make_student("Bruno", monthly_fee=180.0)

        first = await BillingService.generate_monthly("2025-03")
        second = await BillingService.generate_monthly("2025-03")

        assert first.generated == 2
        assert second.generated == 0
        assert second.payments == []
        assert second.total_amount == 0
        assert _payment_count("2025-03-01") == 2

    async def test_each_month_is_billed_independently(self, make_student):
        make_student("Alice", monthly_fee=150.0)

        await BillingService.generate_monthly("2025-03")
        april = await BillingService.generate_monthly("2025-04")

        assert april.generated == 1

    async def test_due_day_defaults_to_configured_day(self, make_student, monkeypatch):
        monkeypatch.setattr(settings, "billing_due_day", 5)
        make_student("Alice", monthly_fee=150.0)

        result = await BillingService.generate_monthly("2025-03")

        assert result.due_date == date(2025, 3, 5)

    async def test_reference_month_defaults_to_current_month(self, make_student):
        make_student("Alice", monthly_fee=150.0)

        result = await BillingService.generate_monthly()

        assert result.reference_month == date.today().replace(day=1)

    @pytest.mark.parametrize("month", ["2025-13", "2025-00", "0000-03", "03-2025", "2025/03", "march"])
    async def test_malformed_reference_month(self, month):
        with pytest.raises(ValidationError):
            await BillingService.generate_monthly(month)


def test_unique_index_rejects_second_payment_for_same_month(make_student):
    student_id = make_student("Alice", monthly_fee=150.0)
    _insert_payment(student_id, "2025-03-01")

    with pytest.raises(sqlite3.IntegrityError):
        _insert_payment(student_id, "2025-03-01")


async def test_duplicate_slipping_past_the_unbilled_query_is_a_conflict(make_student, monkeypatch):
    ana = make_student("Ana", monthly_fee=150.0)
    zeca = make_student("Zeca", monthly_fee=150.0)
    _insert_payment(zeca, "2025-03-01")

    def every_fee_paying_student(cursor, month_start, month_end):
        return cursor.execute(
            "SELECT id, full_name, monthly_fee FROM students WHERE monthly_fee > 0 ORDER BY full_name"
        ).fetchall()

    monkeypatch.setattr(billing_service, "_unbilled_students", every_fee_paying_student)

    with pytest.raises(ConflictError):
        await BillingService.generate_monthly("2025-03")

    assert fetch_one("SELECT id FROM payments WHERE student_id = ?", (ana,)) is None
    assert _payment_count("2025-03-01") == 1


def test_concurrent_runs_bill_each_student_once(make_student):
    for name in ("Ana", "Beto", "Caio", "Duda"):
        make_student(name, monthly_fee=120.0)

    def run():
        return asyncio.run(BillingService.generate_monthly("2025-03"))

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = [f.result() for f in [pool.submit(run), pool.submit(run)]]

    assert sorted(r.generated for r in results) == [0, 4]
    assert _payment_count("2025-03-01") == 4


class TestMarkPaid:
    async def test_pending_payment_is_settled(self, make_student):
        payment_id = _insert_payment(make_student("Alice"), "2025-03-01")

        payment = await BillingService.mark_paid(
            payment_id, MarkPaidRequest(payment_method="pix", payment_date=date(2025, 3, 8))
        )

        assert payment.status == "paid"
        assert payment.payment_method == "pix"
        assert payment.payment_date == date(2025, 3, 8)

    async def test_overdue_payment_can_be_settled(self, make_student):
        payment_id = _insert_payment(make_student("Alice"), "2025-03-01", status="overdue")

        payment = await BillingService.mark_paid(payment_id, MarkPaidRequest())

        assert payment.status == "paid"
        assert payment.payment_date == date.today()

    @pytest.mark.parametrize("status", ["paid", "cancelled"])
    async def test_settled_or_cancelled_payment_is_rejected(self, make_student, status):
        payment_id = _insert_payment(make_student("Alice"), "2025-03-01", status=status)

        with pytest.raises(InvalidStateError):
            await BillingService.mark_paid(payment_id, MarkPaidRequest())

    async def test_unknown_payment(self):
        with pytest.raises(NotFoundError):
            await BillingService.mark_paid(str(uuid.uuid4()), MarkPaidRequest())
