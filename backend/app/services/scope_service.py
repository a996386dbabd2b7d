"""
Scope Service - which rows a caller may read or write

Every predicate takes the resolved Actor and returns a SQLAlchemy filter that
can be dropped into any query's WHERE clause:

- teacher: classes the caller teaches
- hod:     classes taught by a teacher of the caller's department
- student: own rows, reached through approved enrollments
- admin:   unrestricted reads

Write paths never narrow a request to the allowed subset; the ``ensure_*``
helpers reject the whole operation with FORBIDDEN instead.
"""

from dataclasses import dataclass
from typing import Generic, Iterable, Optional, Set, TypeVar

from sqlalchemy import select, and_, or_, true, false, Select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from app.core.exceptions import AuthorizationError, ResourceNotFoundError
from app.models.user import UserRole
from app.models.college_management import (
    CourseClass,
    ClassEnrollment,
    EnrollmentStatus,
    Student,
    Teacher,
    Announcement,
)
from app.models.attendance import Attendance
from app.models.marks_management import Mark
from app.services.identity_service import Actor

T = TypeVar("T")


@dataclass(frozen=True)
class Scoped(Generic[T]):
    """
    Result of a scope-guarded lookup or conditional update.

    ``row`` is None when the target is absent, outside the caller's scope or
    no longer in the required state; the three cases are deliberately
    indistinguishable.
    """
    row: Optional[T] = None

    @property
    def found(self) -> bool:
        return self.row is not None

    def unwrap(self, resource_type: str) -> T:
        if self.row is None:
            raise ResourceNotFoundError(resource_type)
        return self.row


# ==================== Class-id subqueries ====================

def department_teacher_ids(department_id: str) -> Select:
    return select(Teacher.id).where(Teacher.department_id == department_id)


def owned_class_ids(teacher_id: str) -> Select:
    return select(CourseClass.id).where(CourseClass.teacher_id == teacher_id)


def department_class_ids(department_id: str) -> Select:
    return (
        select(CourseClass.id)
        .join(Teacher, Teacher.id == CourseClass.teacher_id)
        .where(Teacher.department_id == department_id)
    )


def approved_class_ids(student_id: str) -> Select:
    return select(ClassEnrollment.class_id).where(
        ClassEnrollment.student_id == student_id,
        ClassEnrollment.status == EnrollmentStatus.APPROVED.value,
    )


def approved_student_ids(class_ids: Select) -> Select:
    return select(ClassEnrollment.student_id).where(
        ClassEnrollment.class_id.in_(class_ids),
        ClassEnrollment.status == EnrollmentStatus.APPROVED.value,
    )


def class_ids_in_scope(actor: Actor) -> Optional[Select]:
    """Class ids the actor may touch; None means unrestricted (admin)"""
    if actor.role == UserRole.TEACHER:
        return owned_class_ids(actor.teacher_id)
    if actor.role == UserRole.HOD:
        return department_class_ids(actor.department_id)
    if actor.role == UserRole.STUDENT:
        return approved_class_ids(actor.student_id)
    return None


# ==================== Per-entity predicates ====================

def class_scope(actor: Actor) -> ColumnElement:
    class_ids = class_ids_in_scope(actor)
    if class_ids is None:
        return true()
    return CourseClass.id.in_(class_ids)


def enrollment_scope(actor: Actor) -> ColumnElement:
    if actor.role == UserRole.STUDENT:
        return ClassEnrollment.student_id == actor.student_id
    class_ids = class_ids_in_scope(actor)
    if class_ids is None:
        return true()
    return ClassEnrollment.class_id.in_(class_ids)


def attendance_scope(actor: Actor) -> ColumnElement:
    if actor.role == UserRole.STUDENT:
        return and_(
            Attendance.student_id == actor.student_id,
            Attendance.class_id.in_(approved_class_ids(actor.student_id)),
        )
    class_ids = class_ids_in_scope(actor)
    if class_ids is None:
        return true()
    return Attendance.class_id.in_(class_ids)


def mark_scope(actor: Actor) -> ColumnElement:
    """
    Marks may or may not carry a class, so teachers and HODs reach them both
    through the recording teacher and through the mark's class.
    """
    if actor.role == UserRole.TEACHER:
        return or_(
            Mark.teacher_id == actor.teacher_id,
            Mark.class_id.in_(owned_class_ids(actor.teacher_id)),
        )
    if actor.role == UserRole.HOD:
        return or_(
            Mark.teacher_id.in_(department_teacher_ids(actor.department_id)),
            Mark.class_id.in_(department_class_ids(actor.department_id)),
        )
    if actor.role == UserRole.STUDENT:
        return Mark.student_id == actor.student_id
    return true()


def student_scope(actor: Actor) -> ColumnElement:
    if actor.role == UserRole.TEACHER:
        return Student.id.in_(approved_student_ids(owned_class_ids(actor.teacher_id)))
    if actor.role == UserRole.HOD:
        department_classes = department_class_ids(actor.department_id)
        return or_(
            Student.id.in_(approved_student_ids(department_classes)),
            Student.class_id.in_(department_classes),
        )
    if actor.role == UserRole.STUDENT:
        return Student.id == actor.student_id
    return true()


def announcement_scope(actor: Actor) -> ColumnElement:
    class_ids = class_ids_in_scope(actor)
    if class_ids is None:
        return true()
    return Announcement.class_id.in_(class_ids)


def owned_mark(actor: Actor) -> ColumnElement:
    """Marks the actor may change: recorded by them, or in a class they teach"""
    if actor.role != UserRole.TEACHER:
        return false()
    return or_(
        Mark.teacher_id == actor.teacher_id,
        Mark.class_id.in_(owned_class_ids(actor.teacher_id)),
    )


# ==================== Guards ====================

def _class_denied_message(actor: Actor) -> str:
    if actor.role == UserRole.TEACHER:
        return "Class not found for teacher."
    if actor.role == UserRole.HOD:
        return "Class not found for department."
    if actor.role == UserRole.STUDENT:
        return "Not approved for this class."
    return "Forbidden"


async def ensure_class_in_scope(db: AsyncSession, actor: Actor, class_id: str) -> CourseClass:
    """
    Load a class the actor may read.

    Raises:
        AuthorizationError: class absent or outside the actor's scope
    """
    result = await db.execute(
        select(CourseClass).where(CourseClass.id == class_id, class_scope(actor))
    )
    course_class = result.scalar_one_or_none()
    if course_class is None:
        raise AuthorizationError(_class_denied_message(actor))
    return course_class


async def ensure_owned_class(db: AsyncSession, actor: Actor, class_id: str) -> CourseClass:
    """
    Load a class the actor teaches; only the owning teacher may write to it.

    Raises:
        AuthorizationError: caller is not the class teacher
    """
    if actor.role != UserRole.TEACHER:
        raise AuthorizationError("Class not found for teacher.")

    result = await db.execute(
        select(CourseClass).where(
            CourseClass.id == class_id,
            CourseClass.teacher_id == actor.teacher_id,
        )
    )
    course_class = result.scalar_one_or_none()
    if course_class is None:
        raise AuthorizationError("Class not found for teacher.")
    return course_class


async def ensure_students_approved(
    db: AsyncSession,
    class_id: str,
    student_ids: Iterable[str],
    message: str = "Student not approved for class.",
) -> None:
    """
    Every student must hold an approved enrollment in the class.

    Raises:
        AuthorizationError: at least one student is not approved
    """
    wanted: Set[str] = {str(s) for s in student_ids}
    if not wanted:
        return

    result = await db.execute(
        select(ClassEnrollment.student_id).where(
            ClassEnrollment.class_id == class_id,
            ClassEnrollment.student_id.in_(wanted),
            ClassEnrollment.status == EnrollmentStatus.APPROVED.value,
        )
    )
    approved = {str(s) for s in result.scalars().all()}
    if wanted - approved:
        raise AuthorizationError(message)
