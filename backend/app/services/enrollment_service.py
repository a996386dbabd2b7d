"""
Enrollment Service - the class enrollment workflow

    none -> pending -> approved | rejected
    rejected -> (new row) pending

At most one pending/approved row exists per (class, student). The pre-check
gives a clean CONFLICT; the partial unique index catches the race between
two concurrent requests.

Approve/reject are single conditional UPDATEs: a row that is absent, out of
the caller's scope or no longer pending all come back as zero rows affected,
and the caller only ever sees NOT_FOUND.
"""

from datetime import datetime
from typing import List, Dict, Any, Optional

from sqlalchemy import select, update, false
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DuplicateEnrollmentError, ResourceNotFoundError
from app.core.logging_config import get_logger
from app.models.college_management import (
    ClassEnrollment,
    CourseClass,
    EnrollmentStatus,
    Student,
    Subject,
    Teacher,
    ACTIVE_ENROLLMENT_STATUSES,
)
from app.models.user import UserRole
from app.services.identity_service import Actor
from app.services.scope_service import Scoped, class_ids_in_scope, enrollment_scope

logger = get_logger("enrollments")


def enrollment_to_dict(enrollment: ClassEnrollment) -> Dict[str, Any]:
    return {
        "id": enrollment.id,
        "class_id": enrollment.class_id,
        "student_id": enrollment.student_id,
        "status": enrollment.status,
        "requested_at": enrollment.requested_at.isoformat() if enrollment.requested_at else None,
        "decided_at": enrollment.decided_at.isoformat() if enrollment.decided_at else None,
    }


class EnrollmentService:
    """Request, approve, reject and list class enrollments"""

    async def get_active(
        self, db: AsyncSession, class_id: str, student_id: str
    ) -> Optional[ClassEnrollment]:
        result = await db.execute(
            select(ClassEnrollment).where(
                ClassEnrollment.class_id == class_id,
                ClassEnrollment.student_id == student_id,
                ClassEnrollment.status.in_(ACTIVE_ENROLLMENT_STATUSES),
            )
        )
        return result.scalar_one_or_none()

    async def request(self, db: AsyncSession, actor: Actor, class_id: str) -> ClassEnrollment:
        """
        Student asks to join a class.

        Raises:
            ResourceNotFoundError: class does not exist
            DuplicateEnrollmentError: a pending or approved row already exists
        """
        course_class = await db.get(CourseClass, class_id)
        if course_class is None:
            raise ResourceNotFoundError("Class")

        if await self.get_active(db, class_id, actor.student_id):
            raise DuplicateEnrollmentError()

        enrollment = ClassEnrollment(
            class_id=class_id,
            student_id=actor.student_id,
            status=EnrollmentStatus.PENDING.value,
            requested_at=datetime.utcnow(),
        )
        db.add(enrollment)
        try:
            await db.commit()
        except IntegrityError:
            # Lost the race against a concurrent request for the same pair
            await db.rollback()
            raise DuplicateEnrollmentError()

        await db.refresh(enrollment)
        logger.log_db_write("insert", "class_enrollments", 1, class_id=class_id)
        return enrollment

    async def approve(self, db: AsyncSession, actor: Actor, enrollment_id: str) -> Scoped[ClassEnrollment]:
        return await self._decide(db, actor, enrollment_id, EnrollmentStatus.APPROVED)

    async def reject(self, db: AsyncSession, actor: Actor, enrollment_id: str) -> Scoped[ClassEnrollment]:
        return await self._decide(db, actor, enrollment_id, EnrollmentStatus.REJECTED)

    async def _decide(
        self,
        db: AsyncSession,
        actor: Actor,
        enrollment_id: str,
        new_status: EnrollmentStatus,
    ) -> Scoped[ClassEnrollment]:
        if actor.role in (UserRole.TEACHER, UserRole.HOD):
            in_scope = ClassEnrollment.class_id.in_(class_ids_in_scope(actor))
        else:
            in_scope = false()

        result = await db.execute(
            update(ClassEnrollment)
            .where(
                ClassEnrollment.id == enrollment_id,
                ClassEnrollment.status == EnrollmentStatus.PENDING.value,
                in_scope,
            )
            .values(
                status=new_status.value,
                decided_at=datetime.utcnow(),
                decided_by=actor.account_id,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return Scoped()

        await db.commit()
        logger.log_db_write(
            "update", "class_enrollments", result.rowcount, new_status=new_status.value
        )

        refreshed = await db.execute(
            select(ClassEnrollment)
            .where(ClassEnrollment.id == enrollment_id)
            .execution_options(populate_existing=True)
        )
        return Scoped(refreshed.scalar_one())

    # ==================== Listings ====================

    async def list_requests(self, db: AsyncSession, actor: Actor) -> List[Dict[str, Any]]:
        """Pending requests in the caller's scope, newest first"""
        result = await db.execute(
            select(
                ClassEnrollment.id,
                ClassEnrollment.class_id,
                ClassEnrollment.requested_at,
                CourseClass.name.label("class_name"),
                CourseClass.year,
                Student.id.label("student_id"),
                Student.name.label("student_name"),
                Student.roll_no,
            )
            .join(CourseClass, CourseClass.id == ClassEnrollment.class_id)
            .join(Student, Student.id == ClassEnrollment.student_id)
            .where(
                ClassEnrollment.status == EnrollmentStatus.PENDING.value,
                enrollment_scope(actor),
            )
            .order_by(ClassEnrollment.requested_at.desc())
        )
        return [
            {
                "id": row.id,
                "class_id": row.class_id,
                "class_name": row.class_name,
                "year": row.year,
                "student_id": row.student_id,
                "student_name": row.student_name,
                "roll_no": row.roll_no,
                "requested_at": row.requested_at.isoformat() if row.requested_at else None,
            }
            for row in result.all()
        ]

    async def list_approved(self, db: AsyncSession, actor: Actor) -> List[Dict[str, Any]]:
        """Approved enrollments in a teacher's or HOD's scope with roster details"""
        result = await db.execute(
            select(
                ClassEnrollment.id,
                ClassEnrollment.class_id,
                CourseClass.name.label("class_name"),
                CourseClass.year,
                Student.id.label("student_id"),
                Student.name.label("student_name"),
                Student.roll_no,
            )
            .join(CourseClass, CourseClass.id == ClassEnrollment.class_id)
            .join(Student, Student.id == ClassEnrollment.student_id)
            .where(
                ClassEnrollment.status == EnrollmentStatus.APPROVED.value,
                enrollment_scope(actor),
            )
            .order_by(CourseClass.name.asc(), Student.roll_no.asc())
        )
        return [
            {
                "id": row.id,
                "class_id": row.class_id,
                "class_name": row.class_name,
                "year": row.year,
                "student_id": row.student_id,
                "student_name": row.student_name,
                "roll_no": row.roll_no,
            }
            for row in result.all()
        ]

    async def list_mine(
        self,
        db: AsyncSession,
        actor: Actor,
        status: EnrollmentStatus = EnrollmentStatus.APPROVED,
    ) -> List[Dict[str, Any]]:
        """A student's own enrollments in one state, with subject and teacher names"""
        result = await db.execute(
            select(
                ClassEnrollment.id,
                ClassEnrollment.status,
                ClassEnrollment.requested_at,
                CourseClass.id.label("class_id"),
                CourseClass.name.label("class_name"),
                CourseClass.year,
                Subject.name.label("subject_name"),
                Teacher.name.label("teacher_name"),
            )
            .join(CourseClass, CourseClass.id == ClassEnrollment.class_id)
            .join(Subject, Subject.id == CourseClass.subject_id)
            .join(Teacher, Teacher.id == CourseClass.teacher_id)
            .where(
                ClassEnrollment.student_id == actor.student_id,
                ClassEnrollment.status == status.value,
            )
            .order_by(CourseClass.year.desc(), CourseClass.name.asc())
        )
        return [
            {
                "id": row.id,
                "class_id": row.class_id,
                "class_name": row.class_name,
                "year": row.year,
                "subject_name": row.subject_name,
                "teacher_name": row.teacher_name,
                "status": row.status,
                "requested_at": row.requested_at.isoformat() if row.requested_at else None,
            }
            for row in result.all()
        ]


# Singleton instance
enrollment_service = EnrollmentService()
