"""BeltService: the student's current belt always mirrors the latest promotion."""

import uuid
from datetime import date

import pytest

from academy_api.app.core.errors import InvalidStateError, NotFoundError, ValidationError
from academy_api.app.schemas.belt import BeltPromotionCreate, BeltPromotionUpdate
from academy_api.app.services import belt_service
from academy_api.app.services.belt_service import BeltService

from conftest import fetch_one


@pytest.fixture
def teacher(make_staff):
    return make_staff("teacher")


def _current_belt(student_id):
    row = fetch_one("SELECT belt, belt_degree FROM students WHERE id = ?", (student_id,))
    return row["belt"], row["belt_degree"]


async def _promote(student_id, teacher, belt, degree, on):
    data = BeltPromotionCreate(student_id=student_id, new_belt=belt, new_degree=degree, promotion_date=on)
    return await BeltService.promote(data, teacher)


class TestPromote:
    async def test_promotion_moves_student_and_snapshots_previous_belt(self, make_student, teacher):
        student_id = make_student(belt="white", belt_degree=2)

        result = await _promote(student_id, teacher, "blue", 0, date(2024, 1, 10))

        assert result.promotion.previous_belt == "white"
        assert result.promotion.previous_degree == 2
        assert result.promotion.promoted_by == teacher.id
        assert (result.student.belt, result.student.belt_degree) == ("blue", 0)
        assert _current_belt(student_id) == ("blue", 0)

    async def test_promotion_date_defaults_to_today(self, make_student, teacher):
        student_id = make_student()
        data = BeltPromotionCreate(student_id=student_id, new_belt="white", new_degree=1)

        result = await BeltService.promote(data, teacher)

        assert result.promotion.promotion_date == date.today()

    async def test_backdated_promotion_is_history_only(self, make_student, teacher):
        student_id = make_student()
        await _promote(student_id, teacher, "purple", 0, date(2024, 6, 1))

        result = await _promote(student_id, teacher, "blue", 3, date(2023, 12, 1))

        assert result.promotion.new_belt == "blue"
        assert _current_belt(student_id) == ("purple", 0)

    async def test_inactive_student_cannot_be_promoted(self, make_student, teacher):
        student_id = make_student(status="inactive", belt="white", belt_degree=0)

        with pytest.raises(InvalidStateError):
            await _promote(student_id, teacher, "blue", 0, date(2024, 1, 10))

        assert fetch_one("SELECT id FROM belt_promotions WHERE student_id = ?", (student_id,)) is None
        assert _current_belt(student_id) == ("white", 0)

    async def test_unknown_student(self, teacher):
        with pytest.raises(NotFoundError):
            await _promote(str(uuid.uuid4()), teacher, "blue", 0, date(2024, 1, 10))

    async def test_malformed_student_id(self, teacher):
        with pytest.raises(ValidationError):
            await _promote("42", teacher, "blue", 0, date(2024, 1, 10))

    async def test_failure_after_insert_rolls_back(self, make_student, teacher, monkeypatch):
        student_id = make_student(belt="white", belt_degree=0)

        def explode(cursor, sid):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(belt_service, "_recompute_current_belt", explode)
        with pytest.raises(RuntimeError):
            await _promote(student_id, teacher, "blue", 0, date(2024, 1, 10))

        assert fetch_one("SELECT id FROM belt_promotions WHERE student_id = ?", (student_id,)) is None
        assert _current_belt(student_id) == ("white", 0)


class TestDelete:
    async def test_deleting_newest_falls_back_then_resets(self, make_student, teacher):
        student_id = make_student(belt="white", belt_degree=0)
        p1 = await _promote(student_id, teacher, "blue", 0, date(2024, 1, 15))
        p2 = await _promote(student_id, teacher, "purple", 0, date(2024, 6, 15))
        assert _current_belt(student_id) == ("purple", 0)

        student = await BeltService.delete(p2.promotion.id)
        assert (student.belt, student.belt_degree) == ("blue", 0)

        student = await BeltService.delete(p1.promotion.id)
        assert (student.belt, student.belt_degree) == (None, None)
        assert _current_belt(student_id) == (None, None)

    async def test_deleting_older_promotion_keeps_current_belt(self, make_student, teacher):
        student_id = make_student()
        p1 = await _promote(student_id, teacher, "blue", 0, date(2024, 1, 15))
        await _promote(student_id, teacher, "purple", 0, date(2024, 6, 15))

        student = await BeltService.delete(p1.promotion.id)

        assert student.belt == "purple"

    async def test_same_day_promotions_resolve_by_insertion_order(self, make_student, teacher):
        student_id = make_student()
        await _promote(student_id, teacher, "blue", 0, date(2024, 3, 1))
        second = await _promote(student_id, teacher, "blue", 1, date(2024, 3, 1))
        assert _current_belt(student_id) == ("blue", 1)

        await BeltService.delete(second.promotion.id)

        assert _current_belt(student_id) == ("blue", 0)

    async def test_unknown_promotion(self):
        with pytest.raises(NotFoundError):
            await BeltService.delete(str(uuid.uuid4()))


class TestUpdate:
    async def test_editing_latest_resyncs_student(self, make_student, teacher):
        student_id = make_student()
        await _promote(student_id, teacher, "blue", 0, date(2024, 1, 15))
        p2 = await _promote(student_id, teacher, "purple", 0, date(2024, 6, 15))

        result = await BeltService.update(p2.promotion.id, BeltPromotionUpdate(new_degree=2))

        assert result.promotion.new_degree == 2
        assert (result.student.belt, result.student.belt_degree) == ("purple", 2)

    async def test_editing_history_leaves_student_alone(self, make_student, teacher):
        student_id = make_student()
        p1 = await _promote(student_id, teacher, "blue", 0, date(2024, 1, 15))
        await _promote(student_id, teacher, "purple", 0, date(2024, 6, 15))

        result = await BeltService.update(p1.promotion.id, BeltPromotionUpdate(notes="Competition win"))

        assert result.promotion.notes == "Competition win"
        assert result.student.belt == "purple"

    async def test_moving_latest_into_the_past_promotes_the_other_record(self, make_student, teacher):
        student_id = make_student()
        await _promote(student_id, teacher, "blue", 0, date(2024, 1, 15))
        p2 = await _promote(student_id, teacher, "purple", 0, date(2024, 6, 15))

        result = await BeltService.update(p2.promotion.id, BeltPromotionUpdate(promotion_date=date(2023, 6, 15)))

        assert result.student.belt == "blue"

    async def test_moving_history_forward_makes_it_current(self, make_student, teacher):
        student_id = make_student()
        p1 = await _promote(student_id, teacher, "blue", 0, date(2024, 1, 15))
        await _promote(student_id, teacher, "purple", 0, date(2024, 6, 15))

        result = await BeltService.update(p1.promotion.id, BeltPromotionUpdate(promotion_date=date(2024, 12, 1)))

        assert result.student.belt == "blue"

    async def test_required_fields_cannot_be_nulled(self, make_student, teacher):
        student_id = make_student()
        p1 = await _promote(student_id, teacher, "blue", 0, date(2024, 1, 15))

        with pytest.raises(ValidationError) as excinfo:
            await BeltService.update(p1.promotion.id, BeltPromotionUpdate(new_belt=None))

        assert excinfo.value.details == [{"field": "new_belt", "message": "may not be null"}]

    async def test_unknown_promotion(self):
        with pytest.raises(NotFoundError):
            await BeltService.update(str(uuid.uuid4()), BeltPromotionUpdate(notes="x"))


async def test_history_is_most_recent_first(make_student, teacher):
    student_id = make_student()
    await _promote(student_id, teacher, "blue", 0, date(2024, 1, 15))
    await _promote(student_id, teacher, "purple", 0, date(2024, 6, 15))

    history = await BeltService.student_history(student_id)

    assert [p.new_belt for p in history.promotions] == ["purple", "blue"]
    assert history.student.belt == "purple"
