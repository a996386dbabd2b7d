"""
Identity Service - maps an authenticated account to its role profile

An account with role teacher/hod/student must have a matching profile row.
A missing row is a data-integrity problem and is reported to the caller as
FORBIDDEN, never as a server error. Lookups are not cached between requests.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ProfileNotFoundError
from app.core.logging_config import get_logger
from app.models.user import UserRole
from app.models.college_management import Teacher, Student

logger = get_logger("identity")


@dataclass(frozen=True)
class Actor:
    """The caller of a request, with the profile ids its role needs"""
    account_id: str
    role: UserRole
    teacher_id: Optional[str] = None
    student_id: Optional[str] = None
    department_id: Optional[str] = None

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER

    @property
    def is_hod(self) -> bool:
        return self.role == UserRole.HOD

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class IdentityService:
    """Resolves account ids to teacher, student and department ids"""

    async def get_teacher_id(self, db: AsyncSession, account_id: str) -> Optional[str]:
        result = await db.execute(select(Teacher.id).where(Teacher.user_id == account_id))
        return result.scalar_one_or_none()

    async def get_student_id(self, db: AsyncSession, account_id: str) -> Optional[str]:
        result = await db.execute(select(Student.id).where(Student.user_id == account_id))
        return result.scalar_one_or_none()

    async def get_department_id(self, db: AsyncSession, account_id: str) -> Optional[str]:
        result = await db.execute(select(Teacher.department_id).where(Teacher.user_id == account_id))
        return result.scalar_one_or_none()

    async def resolve_actor(self, db: AsyncSession, account_id: str, role: UserRole) -> Actor:
        """
        Build the Actor for a request with a single profile lookup.

        Raises:
            ProfileNotFoundError: the role's profile row (or the HOD's
                department) is missing
        """
        if role in (UserRole.TEACHER, UserRole.HOD):
            result = await db.execute(
                select(Teacher.id, Teacher.department_id).where(Teacher.user_id == account_id)
            )
            row = result.first()
            if row is None:
                logger.warning(f"Account {account_id} has role {role.value} but no teacher profile")
                raise ProfileNotFoundError("HOD" if role == UserRole.HOD else "Teacher")

            teacher_id, department_id = row
            if role == UserRole.HOD and not department_id:
                logger.warning(f"HOD account {account_id} has no department")
                raise ProfileNotFoundError("HOD")

            return Actor(
                account_id=account_id,
                role=role,
                teacher_id=teacher_id,
                department_id=department_id,
            )

        if role == UserRole.STUDENT:
            student_id = await self.get_student_id(db, account_id)
            if student_id is None:
                logger.warning(f"Account {account_id} has role student but no student profile")
                raise ProfileNotFoundError("Student")
            return Actor(account_id=account_id, role=role, student_id=student_id)

        return Actor(account_id=account_id, role=role)


# Singleton instance
identity_service = IdentityService()
