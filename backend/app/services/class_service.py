"""
Class Service - classes, rosters and department overview
"""

from typing import List, Dict, Any

from sqlalchemy import select, func, distinct
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ResourceNotFoundError
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
from app.schemas.college import ClassCreate
from app.services.identity_service import Actor
from app.services.scope_service import department_class_ids, ensure_class_in_scope

logger = get_logger("classes")


class ClassService:
    """Create classes and list them per role"""

    def _listing_query(self):
        return (
            select(
                CourseClass.id,
                CourseClass.name,
                CourseClass.year,
                CourseClass.subject_id,
                Subject.name.label("subject_name"),
                Teacher.id.label("teacher_id"),
                Teacher.name.label("teacher_name"),
            )
            .join(Subject, Subject.id == CourseClass.subject_id)
            .join(Teacher, Teacher.id == CourseClass.teacher_id)
        )

    @staticmethod
    def _row_to_dict(row) -> Dict[str, Any]:
        return {
            "id": row.id,
            "name": row.name,
            "year": row.year,
            "subject_id": row.subject_id,
            "subject_name": row.subject_name,
            "teacher_id": row.teacher_id,
            "teacher_name": row.teacher_name,
        }

    async def create_class(self, db: AsyncSession, actor: Actor, data: ClassCreate) -> CourseClass:
        """The caller becomes the class teacher"""
        if await db.get(Subject, data.subject_id) is None:
            raise ResourceNotFoundError("Subject")

        course_class = CourseClass(
            name=data.name,
            subject_id=data.subject_id,
            teacher_id=actor.teacher_id,
            year=data.year,
        )
        db.add(course_class)
        await db.commit()
        await db.refresh(course_class)

        logger.log_db_write("insert", "classes", 1, teacher_id=actor.teacher_id)
        return course_class

    async def list_mine(self, db: AsyncSession, actor: Actor) -> List[Dict[str, Any]]:
        result = await db.execute(
            self._listing_query()
            .where(CourseClass.teacher_id == actor.teacher_id)
            .order_by(CourseClass.year.desc(), CourseClass.name.asc())
        )
        return [self._row_to_dict(row) for row in result.all()]

    async def list_available(self, db: AsyncSession, actor: Actor) -> List[Dict[str, Any]]:
        """Classes the student has no pending or approved enrollment in"""
        active = select(ClassEnrollment.class_id).where(
            ClassEnrollment.student_id == actor.student_id,
            ClassEnrollment.status.in_(ACTIVE_ENROLLMENT_STATUSES),
        )
        result = await db.execute(
            self._listing_query()
            .where(CourseClass.id.not_in(active))
            .order_by(CourseClass.year.desc(), CourseClass.name.asc())
        )
        return [self._row_to_dict(row) for row in result.all()]

    async def list_department(self, db: AsyncSession, actor: Actor) -> List[Dict[str, Any]]:
        result = await db.execute(
            self._listing_query()
            .where(CourseClass.id.in_(department_class_ids(actor.department_id)))
            .order_by(CourseClass.year.desc(), CourseClass.name.asc())
        )
        return [self._row_to_dict(row) for row in result.all()]

    async def list_roster(self, db: AsyncSession, actor: Actor, class_id: str) -> List[Dict[str, Any]]:
        """Approved students of a class, by name"""
        await ensure_class_in_scope(db, actor, class_id)

        result = await db.execute(
            select(Student.id, Student.name, Student.roll_no, Student.year)
            .join(ClassEnrollment, ClassEnrollment.student_id == Student.id)
            .where(
                ClassEnrollment.class_id == class_id,
                ClassEnrollment.status == EnrollmentStatus.APPROVED.value,
            )
            .order_by(Student.name.asc())
        )
        return [
            {"id": row.id, "name": row.name, "roll_no": row.roll_no, "year": row.year}
            for row in result.all()
        ]

    async def department_stats(self, db: AsyncSession, actor: Actor) -> Dict[str, int]:
        """Headline counts for the HOD dashboard"""
        department_classes = department_class_ids(actor.department_id)

        total_classes = await db.scalar(
            select(func.count(CourseClass.id)).where(CourseClass.id.in_(department_classes))
        )
        total_teachers = await db.scalar(
            select(func.count(Teacher.id)).where(Teacher.department_id == actor.department_id)
        )
        total_students = await db.scalar(
            select(func.count(distinct(ClassEnrollment.student_id))).where(
                ClassEnrollment.class_id.in_(department_classes),
                ClassEnrollment.status == EnrollmentStatus.APPROVED.value,
            )
        )
        pending_requests = await db.scalar(
            select(func.count(ClassEnrollment.id)).where(
                ClassEnrollment.class_id.in_(department_classes),
                ClassEnrollment.status == EnrollmentStatus.PENDING.value,
            )
        )

        return {
            "total_classes": total_classes or 0,
            "total_teachers": total_teachers or 0,
            "total_students": total_students or 0,
            "pending_requests": pending_requests or 0,
        }

    @staticmethod
    def to_dict(course_class: CourseClass) -> Dict[str, Any]:
        return {
            "id": course_class.id,
            "name": course_class.name,
            "subject_id": course_class.subject_id,
            "teacher_id": course_class.teacher_id,
            "year": course_class.year,
        }


# Singleton instance
class_service = ClassService()
