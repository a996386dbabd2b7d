"""
Marks Service - exam scores

Every stored mark satisfies total_marks > 0 and 0 <= score <= total_marks.
A mark recorded against a class must use the class's subject and a student
with an approved enrollment in that class.
"""

import math
from datetime import datetime
from typing import List, Dict, Any, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    ValidationError,
    ScoreOutOfRangeError,
    ResourceNotFoundError,
    AuthorizationError,
)
from app.core.logging_config import get_logger
from app.models.college_management import Student, Subject, Teacher
from app.models.marks_management import Mark, DEFAULT_TOTAL_MARKS
from app.models.user import UserRole
from app.schemas.marks import MarkCreate
from app.services.identity_service import Actor
from app.services.scope_service import (
    Scoped,
    ensure_class_in_scope,
    ensure_owned_class,
    ensure_students_approved,
    mark_scope,
    owned_mark,
)
from app.utils.metrics import round_half_up, score_percentage

logger = get_logger("marks")


def validate_score(score: Any, total_marks: Any) -> None:
    """
    Raises:
        ValidationError: non-numeric values (including inf and NaN), total_marks <= 0, or score
            outside 0..total_marks
    """
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ValidationError("Score must be a number.", field="score")
    if isinstance(total_marks, bool) or not isinstance(total_marks, (int, float)):
        raise ValidationError("Total marks must be a number.", field="total_marks")
    if not math.isfinite(score):
        raise ValidationError("Score must be a finite number.", field="score")
    if not math.isfinite(total_marks):
        raise ValidationError("Total marks must be a finite number.", field="total_marks")
    if total_marks <= 0:
        raise ValidationError("Total marks must be greater than zero.", field="total_marks")
    if score < 0:
        raise ScoreOutOfRangeError("Score cannot be negative.")
    if score > total_marks:
        raise ScoreOutOfRangeError()


class MarksService:
    """Marks recorder and marks reads"""

    async def create(
        self,
        db: AsyncSession,
        actor: Actor,
        data: MarkCreate,
        class_id: Optional[str] = None,
    ) -> Mark:
        """
        Record a mark. ``class_id`` (argument or payload) makes it class-scoped.

        Raises:
            ValidationError: bad score/total, or subject differs from the class's
            AuthorizationError: not the class teacher, or student not approved
            ResourceNotFoundError: student or subject missing (non-class marks)
        """
        if actor.role != UserRole.TEACHER:
            raise AuthorizationError()

        total_marks = DEFAULT_TOTAL_MARKS if data.total_marks is None else data.total_marks
        validate_score(data.score, total_marks)

        class_id = class_id or data.class_id
        if class_id:
            course_class = await ensure_owned_class(db, actor, class_id)
            if str(course_class.subject_id) != str(data.subject_id):
                raise ValidationError("Subject does not match class.", field="subject_id")
            await ensure_students_approved(
                db, class_id, [data.student_id], message="Student is not approved for this class."
            )
        else:
            if await db.get(Student, data.student_id) is None:
                raise ResourceNotFoundError("Student")
            if await db.get(Subject, data.subject_id) is None:
                raise ResourceNotFoundError("Subject")

        mark = Mark(
            student_id=data.student_id,
            subject_id=data.subject_id,
            teacher_id=actor.teacher_id,
            class_id=class_id,
            score=float(data.score),
            total_marks=float(total_marks),
            exam_type=data.exam_type,
            year=data.year,
        )
        db.add(mark)
        await db.commit()
        await db.refresh(mark)

        logger.log_db_write("insert", "marks", 1, class_id=class_id)
        return mark

    async def update(
        self,
        db: AsyncSession,
        actor: Actor,
        mark_id: str,
        score: Any,
        total_marks: Optional[Any] = None,
    ) -> Scoped[Mark]:
        """
        Change a mark's score (and optionally its total).

        The new score is checked against the new total when one is given and
        against the stored total otherwise. A mark the caller does not own
        comes back empty, exactly like a missing one.
        """
        result = await db.execute(
            select(Mark).where(Mark.id == mark_id, owned_mark(actor))
        )
        mark = result.scalar_one_or_none()
        if mark is None:
            return Scoped()

        new_total = mark.total_marks if total_marks is None else total_marks
        validate_score(score, new_total)

        mark.score = float(score)
        mark.total_marks = float(new_total)
        mark.updated_at = datetime.utcnow()
        await db.commit()
        await db.refresh(mark)

        logger.log_db_write("update", "marks", 1, mark_id=mark_id)
        return Scoped(mark)

    # ==================== Reads ====================

    def _listing_query(self):
        return (
            select(
                Mark,
                Subject.name.label("subject_name"),
                Student.name.label("student_name"),
                Student.roll_no,
                Teacher.name.label("teacher_name"),
            )
            .join(Subject, Subject.id == Mark.subject_id)
            .join(Student, Student.id == Mark.student_id)
            .join(Teacher, Teacher.id == Mark.teacher_id)
        )

    def _row_to_dict(self, row) -> Dict[str, Any]:
        mark = row[0]
        return {
            **self.to_dict(mark),
            "subject_name": row.subject_name,
            "student_name": row.student_name,
            "roll_no": row.roll_no,
            "teacher_name": row.teacher_name,
        }

    async def list_marks(self, db: AsyncSession, actor: Actor) -> List[Dict[str, Any]]:
        """Admin: all marks. HOD: department. Teacher: own. Student: own."""
        result = await db.execute(
            self._listing_query()
            .where(mark_scope(actor))
            .order_by(Mark.year.desc(), Mark.created_at.desc())
        )
        return [self._row_to_dict(row) for row in result.all()]

    async def list_mine(self, db: AsyncSession, actor: Actor) -> List[Dict[str, Any]]:
        result = await db.execute(
            self._listing_query()
            .where(Mark.student_id == actor.student_id)
            .order_by(Mark.year.desc(), Subject.name.asc())
        )
        return [self._row_to_dict(row) for row in result.all()]

    async def get(self, db: AsyncSession, actor: Actor, mark_id: str) -> Dict[str, Any]:
        """
        Raises:
            ResourceNotFoundError: absent or outside the caller's scope
        """
        result = await db.execute(
            self._listing_query().where(Mark.id == mark_id, mark_scope(actor))
        )
        row = result.first()
        if row is None:
            raise ResourceNotFoundError("Mark")
        return self._row_to_dict(row)

    async def list_for_class(self, db: AsyncSession, actor: Actor, class_id: str) -> List[Dict[str, Any]]:
        """Class roster marks for the class teacher or the department HOD"""
        await ensure_class_in_scope(db, actor, class_id)
        result = await db.execute(
            self._listing_query()
            .where(Mark.class_id == class_id)
            .order_by(Student.roll_no.asc(), Mark.created_at.asc())
        )
        return [self._row_to_dict(row) for row in result.all()]

    async def list_mine_for_class(self, db: AsyncSession, actor: Actor, class_id: str) -> List[Dict[str, Any]]:
        await ensure_class_in_scope(db, actor, class_id)
        result = await db.execute(
            self._listing_query()
            .where(Mark.class_id == class_id, Mark.student_id == actor.student_id)
            .order_by(Mark.created_at.asc())
        )
        return [self._row_to_dict(row) for row in result.all()]

    async def subject_difficulty(
        self, db: AsyncSession, actor: Actor, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Hardest subjects first: lowest average score, then name"""
        limit = settings.HARDEST_SUBJECTS_LIMIT if limit is None else limit
        avg_score = func.avg(Mark.score)

        result = await db.execute(
            select(
                Subject.id,
                Subject.name,
                avg_score.label("avg_score"),
                func.sum(Mark.score).label("score_sum"),
                func.sum(Mark.total_marks).label("total_sum"),
                func.count(Mark.id).label("mark_count"),
            )
            .join(Mark, Mark.subject_id == Subject.id)
            .where(mark_scope(actor))
            .group_by(Subject.id, Subject.name)
            .order_by(avg_score.asc(), Subject.name.asc())
            .limit(limit)
        )
        return [
            {
                "subject_id": row.id,
                "subject_name": row.name,
                "avg_score": round_half_up(row.avg_score or 0, 1),
                "avg_percentage": score_percentage(row.score_sum, row.total_sum),
                "mark_count": row.mark_count,
            }
            for row in result.all()
        ]

    @staticmethod
    def to_dict(mark: Mark) -> Dict[str, Any]:
        return {
            "id": mark.id,
            "student_id": mark.student_id,
            "subject_id": mark.subject_id,
            "teacher_id": mark.teacher_id,
            "class_id": mark.class_id,
            "score": mark.score,
            "total_marks": mark.total_marks,
            "exam_type": mark.exam_type,
            "year": mark.year,
            "percentage": score_percentage(mark.score, mark.total_marks),
        }


# Singleton instance
marks_service = MarksService()
