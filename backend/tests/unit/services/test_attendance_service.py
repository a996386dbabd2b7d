"""
Attendance recorder: calendar rule, approval rule, atomic upsert, aggregates
"""
import pytest
from datetime import date
from sqlalchemy import select, func

from app.core.exceptions import ValidationError, AuthorizationError
from app.models.attendance import Attendance, AttendanceStatus
from app.schemas.attendance import AttendanceRecordIn
from app.services.attendance_service import attendance_service

MONDAY = date(2025, 6, 2)
TUESDAY = date(2025, 6, 3)
SUNDAY = date(2025, 6, 1)


def records(*pairs):
    return [AttendanceRecordIn(student_id=s, status=status) for s, status in pairs]


async def attendance_count(db, **filters):
    query = select(func.count(Attendance.id))
    for column, value in filters.items():
        query = query.where(getattr(Attendance, column) == value)
    return await db.scalar(query)


class TestRecordBatch:

    @pytest.mark.asyncio
    async def test_owner_records_session(self, db_session, campus):
        saved = await attendance_service.record_batch(
            db_session, campus.teacher.actor, campus.class_id, MONDAY,
            records((campus.s1.student_id, "present"), (campus.s2.student_id, "absent")),
        )

        assert saved == 2
        assert await attendance_count(db_session, class_id=campus.class_id, date=MONDAY) == 2

    @pytest.mark.asyncio
    async def test_sunday_rejected_and_nothing_written(self, db_session, campus):
        with pytest.raises(ValidationError):
            await attendance_service.record_batch(
                db_session, campus.teacher.actor, campus.class_id, SUNDAY,
                records((campus.s1.student_id, "present")),
            )

        assert await attendance_count(db_session, date=SUNDAY) == 0

    @pytest.mark.asyncio
    async def test_one_unapproved_student_rejects_whole_batch(self, db_session, campus):
        with pytest.raises(AuthorizationError):
            await attendance_service.record_batch(
                db_session, campus.teacher.actor, campus.class_id, MONDAY,
                records(
                    (campus.s1.student_id, "present"),
                    (campus.s4.student_id, "present"),  # still pending
                ),
            )

        assert await attendance_count(db_session, class_id=campus.class_id) == 0

    @pytest.mark.asyncio
    async def test_non_owner_forbidden(self, db_session, campus):
        with pytest.raises(AuthorizationError):
            await attendance_service.record_batch(
                db_session, campus.other_teacher.actor, campus.class_id, MONDAY,
                records((campus.s1.student_id, "present")),
            )

    @pytest.mark.asyncio
    async def test_hod_cannot_record(self, db_session, campus):
        with pytest.raises(AuthorizationError):
            await attendance_service.record_batch(
                db_session, campus.hod.actor, campus.class_id, MONDAY,
                records((campus.s1.student_id, "present")),
            )

    @pytest.mark.asyncio
    async def test_empty_batch_is_validation_error(self, db_session, campus):
        with pytest.raises(ValidationError):
            await attendance_service.record_batch(
                db_session, campus.teacher.actor, campus.class_id, MONDAY, []
            )

    @pytest.mark.asyncio
    async def test_duplicate_student_in_batch(self, db_session, campus):
        with pytest.raises(ValidationError):
            await attendance_service.record_batch(
                db_session, campus.teacher.actor, campus.class_id, MONDAY,
                records((campus.s1.student_id, "present"), (campus.s1.student_id, "absent")),
            )

    @pytest.mark.asyncio
    async def test_resubmission_overwrites(self, db_session, campus):
        for status in ("present", "absent"):
            await attendance_service.record_batch(
                db_session, campus.teacher.actor, campus.class_id, MONDAY,
                records((campus.s1.student_id, status)),
            )

        rows = (await db_session.execute(
            select(Attendance.status).where(
                Attendance.class_id == campus.class_id,
                Attendance.student_id == campus.s1.student_id,
                Attendance.date == MONDAY,
            )
        )).scalars().all()
        assert rows == [AttendanceStatus.ABSENT.value]


class TestRecordSingle:

    @pytest.mark.asyncio
    async def test_single_record(self, db_session, campus):
        record = await attendance_service.record_single(
            db_session, campus.teacher.actor, campus.class_id, campus.s2.student_id, MONDAY,
            AttendanceStatus.PRESENT,
        )

        assert record["status"] == "present"
        assert record["date"] == "2025-06-02"

    @pytest.mark.asyncio
    async def test_single_record_sunday_blocked(self, db_session, campus):
        with pytest.raises(ValidationError):
            await attendance_service.record_single(
                db_session, campus.teacher.actor, campus.class_id, campus.s2.student_id, SUNDAY,
                AttendanceStatus.PRESENT,
            )


class TestReads:

    async def _seed(self, db, campus):
        await attendance_service.record_batch(
            db, campus.teacher.actor, campus.class_id, MONDAY,
            records(
                (campus.s1.student_id, "present"),
                (campus.s2.student_id, "present"),
                (campus.s3.student_id, "absent"),
            ),
        )
        await attendance_service.record_batch(
            db, campus.teacher.actor, campus.class_id, TUESDAY,
            records(
                (campus.s1.student_id, "absent"),
                (campus.s2.student_id, "present"),
                (campus.s3.student_id, "absent"),
            ),
        )

    @pytest.mark.asyncio
    async def test_list_by_date_ordered_by_name(self, db_session, campus):
        await self._seed(db_session, campus)

        rows = await attendance_service.list_by_date(db_session, campus.teacher.actor, campus.class_id, MONDAY)

        assert [r["student_name"] for r in rows] == ["Asha", "Bala", "Chitra"]

    @pytest.mark.asyncio
    async def test_summary_rates_and_order(self, db_session, campus):
        await self._seed(db_session, campus)

        summary = await attendance_service.summary(db_session, campus.hod.actor, campus.class_id)

        assert [r["roll_no"] for r in summary] == ["R001", "R002", "R003"]
        assert [r["rate"] for r in summary] == [50.0, 100.0, 0.0]
        assert summary[0]["present_count"] == 1
        assert summary[0]["absent_count"] == 1
        assert summary[0]["total_sessions"] == 2

    @pytest.mark.asyncio
    async def test_summary_without_sessions(self, db_session, campus):
        summary = await attendance_service.summary(db_session, campus.teacher.actor, campus.class_id)

        assert all(r["rate"] == 0.0 and r["total_sessions"] == 0 for r in summary)

    @pytest.mark.asyncio
    async def test_summary_forbidden_outside_department(self, db_session, campus):
        with pytest.raises(AuthorizationError):
            await attendance_service.summary(db_session, campus.other_hod.actor, campus.class_id)

    @pytest.mark.asyncio
    async def test_top_breaks_ties_by_roll_number(self, db_session, campus):
        await attendance_service.record_batch(
            db_session, campus.teacher.actor, campus.class_id, MONDAY,
            records(
                (campus.s3.student_id, "present"),
                (campus.s1.student_id, "present"),
                (campus.s2.student_id, "absent"),
            ),
        )

        top = await attendance_service.top(db_session, campus.teacher.actor, campus.class_id)

        assert [r["roll_no"] for r in top] == ["R001", "R003", "R002"]

    @pytest.mark.asyncio
    async def test_student_history(self, db_session, campus):
        await self._seed(db_session, campus)

        mine = await attendance_service.list_mine(db_session, campus.s1.actor)
        in_class = await attendance_service.list_mine_for_class(db_session, campus.s1.actor, campus.class_id)
        ranged = await attendance_service.list_mine(db_session, campus.s1.actor, date_from=TUESDAY)

        assert [r["date"] for r in mine] == ["2025-06-03", "2025-06-02"]
        assert [r["status"] for r in in_class] == ["absent", "present"]
        assert [r["date"] for r in ranged] == ["2025-06-03"]

    @pytest.mark.asyncio
    async def test_student_outside_class_forbidden(self, db_session, campus):
        with pytest.raises(AuthorizationError):
            await attendance_service.list_mine_for_class(db_session, campus.s4.actor, campus.class_id)

    @pytest.mark.asyncio
    async def test_inverted_range_rejected(self, db_session, campus):
        with pytest.raises(ValidationError):
            await attendance_service.list_mine(db_session, campus.s1.actor, date_from=TUESDAY, date_to=MONDAY)
