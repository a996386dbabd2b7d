"""
Performance Service - derived views over marks and attendance

Read-only. The marks and attendance queries behind one view are separate
round-trips and are not a snapshot; a write landing in between may show up
in one half only.

Formulas:
- score %      = 100 * sum(score) / sum(total_marks), 1 decimal
- attendance % = 100 * present / sessions; whole number on student views,
                 1 decimal on class views
Every percentage is clamped to [0, 100]; an empty denominator gives 0.
"""

from collections import defaultdict
from typing import List, Dict, Any, Iterable, Tuple

from sqlalchemy import select, func, case, distinct
from sqlalchemy.orm import aliased
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging_config import get_logger
from app.models.attendance import Attendance, AttendanceStatus
from app.models.college_management import (
    ClassEnrollment,
    CourseClass,
    EnrollmentStatus,
    Student,
    Subject,
)
from app.models.marks_management import Mark
from app.services.identity_service import Actor
from app.services.scope_service import (
    department_class_ids,
    ensure_class_in_scope,
)
from app.utils.metrics import (
    attendance_percent,
    attendance_rate,
    average,
    exam_type_sort_key,
    score_percentage,
)

logger = get_logger("performance")

# Display-only: flags a row on the class view, never blocks anything
AT_RISK_SCORE_BELOW = 20.0
AT_RISK_ATTENDANCE_BELOW = 30.0

_APPROVED = EnrollmentStatus.APPROVED.value
_PRESENT_AS_ONE = case((Attendance.status == AttendanceStatus.PRESENT.value, 1), else_=0)


def is_at_risk(avg_score: float, attendance_pct: float) -> bool:
    return avg_score < AT_RISK_SCORE_BELOW or attendance_pct < AT_RISK_ATTENDANCE_BELOW


def rank_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Score % descending, roll number ascending; rank is the 1-based position"""
    ordered = sorted(rows, key=lambda r: (-r["avg_score"], r["roll_no"]))
    for position, row in enumerate(ordered, start=1):
        row["rank"] = position
    return ordered


class PerformanceService:
    """Student, class and department performance views"""

    # ==================== Student views ====================

    async def my_performance(self, db: AsyncSession, actor: Actor) -> Dict[str, Any]:
        student_id = actor.student_id

        marks = (await db.execute(
            select(
                func.count(distinct(Mark.subject_id)).label("subject_count"),
                func.sum(Mark.score).label("score_sum"),
                func.sum(Mark.total_marks).label("total_sum"),
            ).where(Mark.student_id == student_id)
        )).one()
        avg_score = score_percentage(marks.score_sum, marks.total_sum)

        attendance = (await db.execute(
            select(
                func.count(Attendance.id).label("total"),
                func.sum(_PRESENT_AS_ONE).label("present"),
            ).where(Attendance.student_id == student_id)
        )).one()

        rank, total_students = await self._rank_among_peers(db, student_id, avg_score)

        return {
            "avg_score": avg_score,
            "attendance_pct": attendance_percent(attendance.present, attendance.total),
            "subject_count": int(marks.subject_count or 0),
            "rank": rank,
            "total_students": total_students,
            "subjects": await self._subject_breakdown(db, student_id),
        }

    async def _rank_among_peers(
        self, db: AsyncSession, student_id: str, own_score: float
    ) -> Tuple[int, int]:
        """
        Peers share at least one approved class with the student (the
        student included). Only peers with a mark are ranked.
        """
        mine = aliased(ClassEnrollment)
        theirs = aliased(ClassEnrollment)
        peer_ids = (
            select(theirs.student_id)
            .join(mine, mine.class_id == theirs.class_id)
            .where(
                mine.student_id == student_id,
                mine.status == _APPROVED,
                theirs.status == _APPROVED,
            )
        )

        result = await db.execute(
            select(
                Mark.student_id,
                func.sum(Mark.score).label("score_sum"),
                func.sum(Mark.total_marks).label("total_sum"),
            )
            .where(Mark.student_id.in_(peer_ids))
            .group_by(Mark.student_id)
        )
        peer_scores = [score_percentage(row.score_sum, row.total_sum) for row in result.all()]

        better = sum(1 for score in peer_scores if score > own_score)
        return better + 1, len(peer_scores)

    async def _subject_breakdown(self, db: AsyncSession, student_id: str) -> List[Dict[str, Any]]:
        """Score % per subject joined with attendance % through class -> subject"""
        marks = await db.execute(
            select(
                Subject.id,
                Subject.name,
                func.sum(Mark.score).label("score_sum"),
                func.sum(Mark.total_marks).label("total_sum"),
            )
            .join(Mark, Mark.subject_id == Subject.id)
            .where(Mark.student_id == student_id)
            .group_by(Subject.id, Subject.name)
            .order_by(Subject.name.asc())
        )

        attendance = await db.execute(
            select(
                CourseClass.subject_id,
                func.count(Attendance.id).label("total"),
                func.sum(_PRESENT_AS_ONE).label("present"),
            )
            .join(CourseClass, CourseClass.id == Attendance.class_id)
            .where(Attendance.student_id == student_id)
            .group_by(CourseClass.subject_id)
        )
        attendance_by_subject = {
            row.subject_id: attendance_percent(row.present, row.total)
            for row in attendance.all()
        }

        return [
            {
                "subject_id": row.id,
                "name": row.name,
                "avg_score": score_percentage(row.score_sum, row.total_sum),
                "attendance_pct": attendance_by_subject.get(row.id, 0),
            }
            for row in marks.all()
        ]

    async def my_trend(self, db: AsyncSession, actor: Actor) -> List[Dict[str, Any]]:
        """Score % per exam type, internal -> midterm -> final -> others"""
        result = await db.execute(
            select(
                Mark.exam_type,
                func.sum(Mark.score).label("score_sum"),
                func.sum(Mark.total_marks).label("total_sum"),
            )
            .where(Mark.student_id == actor.student_id)
            .group_by(Mark.exam_type)
        )
        trend = [
            {
                "exam_type": row.exam_type,
                "avg_score": score_percentage(row.score_sum, row.total_sum),
            }
            for row in result.all()
        ]
        trend.sort(key=lambda point: exam_type_sort_key(point["exam_type"]))
        return trend

    # ==================== Class and department views ====================

    async def _class_rows(
        self, db: AsyncSession, class_ids: Iterable[str]
    ) -> Dict[str, List[Dict[str, Any]]]:
        """Unranked per-student rows for each class, from three grouped queries"""
        class_ids = list(class_ids)
        rows_by_class: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        if not class_ids:
            return rows_by_class

        roster = await db.execute(
            select(
                ClassEnrollment.class_id,
                Student.id,
                Student.name,
                Student.roll_no,
            )
            .join(Student, Student.id == ClassEnrollment.student_id)
            .where(
                ClassEnrollment.class_id.in_(class_ids),
                ClassEnrollment.status == _APPROVED,
            )
        )

        marks = await db.execute(
            select(
                Mark.class_id,
                Mark.student_id,
                func.sum(Mark.score).label("score_sum"),
                func.sum(Mark.total_marks).label("total_sum"),
            )
            .where(Mark.class_id.in_(class_ids))
            .group_by(Mark.class_id, Mark.student_id)
        )
        score_by_pair = {
            (row.class_id, row.student_id): score_percentage(row.score_sum, row.total_sum)
            for row in marks.all()
        }

        attendance = await db.execute(
            select(
                Attendance.class_id,
                Attendance.student_id,
                func.count(Attendance.id).label("total"),
                func.sum(_PRESENT_AS_ONE).label("present"),
            )
            .where(Attendance.class_id.in_(class_ids))
            .group_by(Attendance.class_id, Attendance.student_id)
        )
        attendance_by_pair = {
            (row.class_id, row.student_id): attendance_rate(row.present, row.total)
            for row in attendance.all()
        }

        for row in roster.all():
            key = (row.class_id, row.id)
            avg_score = score_by_pair.get(key, 0.0)
            attendance_pct = attendance_by_pair.get(key, 0.0)
            rows_by_class[row.class_id].append({
                "student_id": row.id,
                "name": row.name,
                "roll_no": row.roll_no,
                "avg_score": avg_score,
                "attendance_pct": attendance_pct,
                "at_risk": is_at_risk(avg_score, attendance_pct),
            })
        return rows_by_class

    async def class_performance(self, db: AsyncSession, actor: Actor, class_id: str) -> Dict[str, Any]:
        """Ranked approved students of a class (class teacher or department HOD)"""
        course_class = await ensure_class_in_scope(db, actor, class_id)
        rows_by_class = await self._class_rows(db, [class_id])

        return {
            "class_id": course_class.id,
            "class_name": course_class.name,
            "year": course_class.year,
            "students": rank_rows(rows_by_class.get(class_id, [])),
        }

    async def department_performance(self, db: AsyncSession, actor: Actor) -> List[Dict[str, Any]]:
        """Per-class roll-up for the HOD's department, year desc then name"""
        result = await db.execute(
            select(CourseClass.id, CourseClass.name, CourseClass.year)
            .where(CourseClass.id.in_(department_class_ids(actor.department_id)))
            .order_by(CourseClass.year.desc(), CourseClass.name.asc())
        )
        classes = result.all()
        rows_by_class = await self._class_rows(db, [c.id for c in classes])

        rollup = []
        for course_class in classes:
            rows = rows_by_class.get(course_class.id, [])
            rollup.append({
                "class_id": course_class.id,
                "class_name": course_class.name,
                "year": course_class.year,
                "student_count": len(rows),
                "avg_score": average([r["avg_score"] for r in rows]),
                "avg_attendance": average([r["attendance_pct"] for r in rows]),
            })
        return rollup


# Singleton instance
performance_service = PerformanceService()
