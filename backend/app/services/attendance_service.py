"""
Attendance Service - records and reads per-session presence

Recording rules:
- only the class teacher records attendance for the class
- never on a Sunday
- every student in a submission must hold an approved enrollment;
  one unapproved student rejects the whole submission
- one row per (class, student, date); re-submitting overwrites the status

Every check runs before the first write, and a submission is written as one
INSERT ... ON CONFLICT DO UPDATE inside a single transaction.
"""

from datetime import date, datetime
from typing import List, Dict, Any, Optional, Sequence

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import SundayAttendanceError, ValidationError
from app.core.logging_config import get_logger
from app.core.types import generate_uuid
from app.models.attendance import Attendance, AttendanceStatus
from app.models.college_management import (
    ClassEnrollment,
    CourseClass,
    EnrollmentStatus,
    Student,
    Subject,
)
from app.schemas.attendance import AttendanceRecordIn
from app.services.identity_service import Actor
from app.services.scope_service import (
    approved_class_ids,
    ensure_class_in_scope,
    ensure_owned_class,
    ensure_students_approved,
)
from app.utils.metrics import attendance_rate, is_sunday

logger = get_logger("attendance")


def _upsert_statement(dialect_name: str, rows: List[Dict[str, Any]]):
    """INSERT ... ON CONFLICT (class_id, student_id, date) DO UPDATE for the session's dialect"""
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"Attendance upsert is not supported on {dialect_name}")

    stmt = insert(Attendance).values(rows)
    return stmt.on_conflict_do_update(
        index_elements=["class_id", "student_id", "date"],
        set_={
            "status": stmt.excluded.status,
            "recorded_at": stmt.excluded.recorded_at,
        },
    )


class AttendanceService:
    """Attendance recorder and attendance reads"""

    # ==================== Recording ====================

    async def record_batch(
        self,
        db: AsyncSession,
        actor: Actor,
        class_id: str,
        session_date: date,
        records: Sequence[AttendanceRecordIn],
    ) -> int:
        """
        Record a whole class session.

        Returns:
            Number of records written

        Raises:
            ValidationError: no records, duplicate student, or a Sunday
            AuthorizationError: caller does not teach the class, or a student
                is not approved for it
        """
        if not class_id or session_date is None or not records:
            raise ValidationError("Missing required fields.")

        if is_sunday(session_date):
            raise SundayAttendanceError(session_date)

        student_ids = [str(r.student_id) for r in records]
        if len(set(student_ids)) != len(student_ids):
            raise ValidationError("Each student may appear only once per session.", field="records")

        for record in records:
            try:
                AttendanceStatus(record.status)
            except ValueError:
                raise ValidationError("Invalid attendance record.", field="status")

        await ensure_owned_class(db, actor, class_id)
        await ensure_students_approved(db, class_id, student_ids)

        recorded_at = datetime.utcnow()
        rows = [
            {
                "id": generate_uuid(),
                "class_id": class_id,
                "student_id": str(record.student_id),
                "date": session_date,
                "status": AttendanceStatus(record.status).value,
                "recorded_at": recorded_at,
            }
            for record in records
        ]

        try:
            await db.execute(_upsert_statement(db.get_bind().dialect.name, rows))
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.log_db_write("upsert", "attendance", len(rows), class_id=class_id, date=str(session_date))
        return len(rows)

    async def record_single(
        self,
        db: AsyncSession,
        actor: Actor,
        class_id: str,
        student_id: str,
        session_date: date,
        status: AttendanceStatus,
    ) -> Dict[str, Any]:
        """Record one student for one session; same rules as a batch"""
        record = AttendanceRecordIn(student_id=student_id, status=status)
        await self.record_batch(db, actor, class_id, session_date, [record])

        result = await db.execute(
            select(Attendance)
            .where(
                Attendance.class_id == class_id,
                Attendance.student_id == student_id,
                Attendance.date == session_date,
            )
            .execution_options(populate_existing=True)
        )
        return self._to_dict(result.scalar_one())

    # ==================== Reads ====================

    async def list_by_date(
        self, db: AsyncSession, actor: Actor, class_id: str, session_date: date
    ) -> List[Dict[str, Any]]:
        """One session of a class, by student name"""
        await ensure_owned_class(db, actor, class_id)

        result = await db.execute(
            select(
                Attendance.student_id,
                Attendance.status,
                Student.name.label("student_name"),
                Student.roll_no,
            )
            .join(Student, Student.id == Attendance.student_id)
            .where(Attendance.class_id == class_id, Attendance.date == session_date)
            .order_by(Student.name.asc())
        )
        return [
            {
                "student_id": row.student_id,
                "student_name": row.student_name,
                "roll_no": row.roll_no,
                "status": row.status,
            }
            for row in result.all()
        ]

    async def list_for_student(
        self, db: AsyncSession, actor: Actor, class_id: str, student_id: str
    ) -> List[Dict[str, Any]]:
        """One student's history in a class the caller teaches, newest first"""
        await ensure_owned_class(db, actor, class_id)
        await ensure_students_approved(db, class_id, [student_id])

        result = await db.execute(
            select(Attendance.date, Attendance.status)
            .where(Attendance.class_id == class_id, Attendance.student_id == student_id)
            .order_by(Attendance.date.desc())
        )
        return [{"date": row.date.isoformat(), "status": row.status} for row in result.all()]

    async def list_mine_for_class(
        self, db: AsyncSession, actor: Actor, class_id: str
    ) -> List[Dict[str, Any]]:
        """A student's own history in one approved class, newest first"""
        await ensure_class_in_scope(db, actor, class_id)

        result = await db.execute(
            select(Attendance.date, Attendance.status)
            .where(Attendance.class_id == class_id, Attendance.student_id == actor.student_id)
            .order_by(Attendance.date.desc())
        )
        return [{"date": row.date.isoformat(), "status": row.status} for row in result.all()]

    async def list_mine(
        self,
        db: AsyncSession,
        actor: Actor,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """A student's history across approved classes, optionally date-ranged"""
        if date_from and date_to and date_from > date_to:
            raise ValidationError("'from' must not be after 'to'.", field="from")

        query = (
            select(
                Attendance.class_id,
                Attendance.date,
                Attendance.status,
                CourseClass.name.label("class_name"),
                Subject.name.label("subject_name"),
            )
            .join(CourseClass, CourseClass.id == Attendance.class_id)
            .join(Subject, Subject.id == CourseClass.subject_id)
            .where(
                Attendance.student_id == actor.student_id,
                Attendance.class_id.in_(approved_class_ids(actor.student_id)),
            )
        )
        if date_from:
            query = query.where(Attendance.date >= date_from)
        if date_to:
            query = query.where(Attendance.date <= date_to)

        result = await db.execute(query.order_by(Attendance.date.desc(), CourseClass.name.asc()))
        return [
            {
                "class_id": row.class_id,
                "class_name": row.class_name,
                "subject_name": row.subject_name,
                "date": row.date.isoformat(),
                "status": row.status,
            }
            for row in result.all()
        ]

    # ==================== Aggregates ====================

    async def _student_counts(self, db: AsyncSession, class_id: str) -> List[Dict[str, Any]]:
        """Present/absent counts for every approved student of the class, by roll number"""
        counts = (
            select(
                Attendance.student_id.label("student_id"),
                func.count(Attendance.id).label("total"),
                func.sum(
                    case((Attendance.status == AttendanceStatus.PRESENT.value, 1), else_=0)
                ).label("present"),
            )
            .where(Attendance.class_id == class_id)
            .group_by(Attendance.student_id)
            .subquery()
        )

        result = await db.execute(
            select(
                Student.id,
                Student.name,
                Student.roll_no,
                counts.c.total,
                counts.c.present,
            )
            .join(ClassEnrollment, ClassEnrollment.student_id == Student.id)
            .outerjoin(counts, counts.c.student_id == Student.id)
            .where(
                ClassEnrollment.class_id == class_id,
                ClassEnrollment.status == EnrollmentStatus.APPROVED.value,
            )
            .order_by(Student.roll_no.asc())
        )

        rows = []
        for row in result.all():
            total = int(row.total or 0)
            present = int(row.present or 0)
            rows.append({
                "student_id": row.id,
                "student_name": row.name,
                "roll_no": row.roll_no,
                "present_count": present,
                "absent_count": total - present,
                "total_sessions": total,
                "rate": attendance_rate(present, total),
            })
        return rows

    async def summary(self, db: AsyncSession, actor: Actor, class_id: str) -> List[Dict[str, Any]]:
        """Per-student attendance for a class, ordered by roll number"""
        await ensure_class_in_scope(db, actor, class_id)
        return await self._student_counts(db, class_id)

    async def top(
        self, db: AsyncSession, actor: Actor, class_id: str, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Best attendance first; equal rates fall back to roll number"""
        await ensure_owned_class(db, actor, class_id)
        limit = settings.TOP_ATTENDANCE_LIMIT if limit is None else limit

        rows = await self._student_counts(db, class_id)
        rows.sort(key=lambda r: (-r["rate"], r["roll_no"]))
        return rows[:limit]

    @staticmethod
    def _to_dict(attendance: Attendance) -> Dict[str, Any]:
        return {
            "id": attendance.id,
            "class_id": attendance.class_id,
            "student_id": attendance.student_id,
            "date": attendance.date.isoformat(),
            "status": attendance.status,
        }


# Singleton instance
attendance_service = AttendanceService()
