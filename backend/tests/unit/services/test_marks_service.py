"""
Marks recorder: range validation, class rules, ownership, scoped reads
"""
import pytest
import pytest_asyncio
from sqlalchemy import select, func

from app.core.exceptions import (
    ValidationError,
    ScoreOutOfRangeError,
    AuthorizationError,
    ResourceNotFoundError,
)
from app.models.marks_management import Mark
from app.schemas.marks import MarkCreate
from app.services.marks_service import marks_service, validate_score


def mark_payload(campus, student, score, total_marks=None, **overrides):
    data = {
        "student_id": student.student_id,
        "subject_id": campus.math_id,
        "score": score,
        "total_marks": total_marks,
        "exam_type": "midterm",
        "year": 2025,
    }
    data.update(overrides)
    return MarkCreate(**data)


async def mark_count(db):
    return await db.scalar(select(func.count(Mark.id)))


class TestValidateScore:

    def test_accepts_bounds(self):
        validate_score(0, 100)
        validate_score(100, 100)
        validate_score(12.5, 20)

    def test_score_above_total(self):
        with pytest.raises(ScoreOutOfRangeError):
            validate_score(85, 80)

    def test_negative_score(self):
        with pytest.raises(ScoreOutOfRangeError) as exc_info:
            validate_score(-1, 100)
        assert exc_info.value.message == "Score cannot be negative."

    @pytest.mark.parametrize("total", [0, -10])
    def test_total_must_be_positive(self, total):
        with pytest.raises(ValidationError) as exc_info:
            validate_score(0, total)
        assert exc_info.value.field == "total_marks"

    @pytest.mark.parametrize("score", ["85", None, True])
    def test_non_numeric_score(self, score):
        with pytest.raises(ValidationError):
            validate_score(score, 100)

    @pytest.mark.parametrize("score, total", [
        (float("inf"), float("inf")),
        (float("nan"), 100),
        (50, float("nan")),
        (float("-inf"), 100),
    ])
    def test_non_finite_values_rejected(self, score, total):
        with pytest.raises(ValidationError):
            validate_score(score, total)


class TestCreateMark:

    @pytest.mark.asyncio
    async def test_class_mark_defaults_total_to_100(self, db_session, campus):
        mark = await marks_service.create(
            db_session, campus.teacher.actor, mark_payload(campus, campus.s1, 72), class_id=campus.class_id
        )

        assert mark.total_marks == 100
        assert mark.teacher_id == campus.teacher.teacher_id
        assert mark.class_id == campus.class_id
        assert marks_service.to_dict(mark)["percentage"] == 72.0

    @pytest.mark.asyncio
    async def test_score_above_total_writes_nothing(self, db_session, campus):
        with pytest.raises(ValidationError):
            await marks_service.create(
                db_session, campus.teacher.actor, mark_payload(campus, campus.s1, 85, total_marks=80),
                class_id=campus.class_id,
            )

        assert await mark_count(db_session) == 0

    @pytest.mark.asyncio
    async def test_subject_must_match_class(self, db_session, campus):
        payload = mark_payload(campus, campus.s1, 50, subject_id=campus.physics_id)

        with pytest.raises(ValidationError) as exc_info:
            await marks_service.create(db_session, campus.teacher.actor, payload, class_id=campus.class_id)

        assert exc_info.value.message == "Subject does not match class."

    @pytest.mark.asyncio
    async def test_pending_student_rejected(self, db_session, campus):
        with pytest.raises(AuthorizationError) as exc_info:
            await marks_service.create(
                db_session, campus.teacher.actor, mark_payload(campus, campus.s4, 50), class_id=campus.class_id
            )

        assert exc_info.value.message == "Student is not approved for this class."
        assert await mark_count(db_session) == 0

    @pytest.mark.asyncio
    async def test_other_teachers_class_rejected(self, db_session, campus):
        with pytest.raises(AuthorizationError):
            await marks_service.create(
                db_session, campus.other_teacher.actor, mark_payload(campus, campus.s1, 50),
                class_id=campus.class_id,
            )

    @pytest.mark.asyncio
    async def test_class_id_in_payload_is_honoured(self, db_session, campus):
        payload = mark_payload(campus, campus.s4, 50, class_id=campus.class_id)

        with pytest.raises(AuthorizationError):
            await marks_service.create(db_session, campus.teacher.actor, payload)

    @pytest.mark.asyncio
    async def test_classless_mark_requires_existing_subject(self, db_session, campus):
        payload = mark_payload(campus, campus.s1, 50, subject_id="missing-subject")

        with pytest.raises(ResourceNotFoundError):
            await marks_service.create(db_session, campus.teacher.actor, payload)

    @pytest.mark.asyncio
    async def test_only_teachers_record(self, db_session, campus):
        with pytest.raises(AuthorizationError):
            await marks_service.create(
                db_session, campus.hod.actor, mark_payload(campus, campus.s1, 50), class_id=campus.class_id
            )


class TestUpdateMark:

    @pytest.mark.asyncio
    async def test_checked_against_stored_total(self, db_session, campus):
        mark = await marks_service.create(
            db_session, campus.teacher.actor, mark_payload(campus, campus.s1, 30, total_marks=50),
            class_id=campus.class_id,
        )

        with pytest.raises(ScoreOutOfRangeError):
            await marks_service.update(db_session, campus.teacher.actor, mark.id, 60)

        updated = await marks_service.update(db_session, campus.teacher.actor, mark.id, 45)
        assert updated.found
        assert updated.row.score == 45
        assert updated.row.total_marks == 50

    @pytest.mark.asyncio
    async def test_new_total_replaces_stored_total(self, db_session, campus):
        mark = await marks_service.create(
            db_session, campus.teacher.actor, mark_payload(campus, campus.s1, 30, total_marks=50),
            class_id=campus.class_id,
        )

        updated = await marks_service.update(db_session, campus.teacher.actor, mark.id, 60, total_marks=80)

        assert updated.row.total_marks == 80

    @pytest.mark.asyncio
    async def test_non_owner_sees_nothing(self, db_session, campus):
        mark = await marks_service.create(
            db_session, campus.teacher.actor, mark_payload(campus, campus.s1, 30),
            class_id=campus.class_id,
        )

        for actor in (campus.other_teacher.actor, campus.hod.actor, campus.s1.actor):
            outcome = await marks_service.update(db_session, actor, mark.id, 10)
            assert not outcome.found

        with pytest.raises(ResourceNotFoundError):
            outcome.unwrap("Mark")

    @pytest.mark.asyncio
    async def test_missing_mark(self, db_session, campus):
        outcome = await marks_service.update(db_session, campus.teacher.actor, "no-such-mark", 10)
        assert not outcome.found


class TestMarkReads:

    @pytest_asyncio.fixture
    async def recorded(self, db_session, campus):
        for student, score in ((campus.s1, 80), (campus.s2, 40)):
            await marks_service.create(
                db_session, campus.teacher.actor, mark_payload(campus, student, score),
                class_id=campus.class_id,
            )
        return campus

    @pytest.mark.asyncio
    async def test_scope_per_role(self, db_session, recorded):
        campus = recorded

        assert len(await marks_service.list_marks(db_session, campus.admin.actor)) == 2
        assert len(await marks_service.list_marks(db_session, campus.teacher.actor)) == 2
        assert len(await marks_service.list_marks(db_session, campus.hod.actor)) == 2
        assert await marks_service.list_marks(db_session, campus.other_teacher.actor) == []
        assert await marks_service.list_marks(db_session, campus.other_hod.actor) == []

        own = await marks_service.list_marks(db_session, campus.s1.actor)
        assert [m["student_id"] for m in own] == [campus.s1.student_id]

    @pytest.mark.asyncio
    async def test_get_outside_scope_is_not_found(self, db_session, recorded):
        campus = recorded
        mark_id = (await marks_service.list_mine(db_session, campus.s2.actor))[0]["id"]

        with pytest.raises(ResourceNotFoundError):
            await marks_service.get(db_session, campus.s1.actor, mark_id)

        fetched = await marks_service.get(db_session, campus.hod.actor, mark_id)
        assert fetched["subject_name"] == "Math"

    @pytest.mark.asyncio
    async def test_class_listing_in_roll_order(self, db_session, recorded):
        campus = recorded

        listed = await marks_service.list_for_class(db_session, campus.teacher.actor, campus.class_id)

        assert [m["roll_no"] for m in listed] == ["R001", "R002"]

    @pytest.mark.asyncio
    async def test_subject_difficulty_lowest_average_first(self, db_session, recorded):
        campus = recorded
        await marks_service.create(
            db_session, campus.other_teacher.actor,
            mark_payload(campus, campus.s3, 20, subject_id=campus.physics_id),
        )

        hardest = await marks_service.subject_difficulty(db_session, campus.admin.actor)

        assert [s["subject_name"] for s in hardest] == ["Physics", "Math"]
        assert hardest[1]["avg_score"] == 60.0
        assert hardest[1]["mark_count"] == 2
