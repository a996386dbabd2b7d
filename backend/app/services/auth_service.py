"""
Auth Service - login and account registration

Registration writes the account and its profile in one transaction; either
both rows exist afterwards or neither does.
"""

from datetime import datetime
from typing import Dict, Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    InvalidCredentialsError,
    EmailInUseError,
    RollNumberInUseError,
    ResourceNotFoundError,
)
from app.core.logging_config import logger
from app.core.security import verify_password, get_password_hash, issue_session_token
from app.models.user import User, UserRole
from app.models.college_management import Department, CourseClass, Student, Teacher
from app.schemas.auth import TeacherRegister, StudentRegister


def account_to_dict(user: User) -> Dict[str, Any]:
    return {"id": user.id, "email": user.email, "role": user.role.value}


class AuthService:

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def login(self, db: AsyncSession, email: str, password: str) -> Dict[str, Any]:
        """
        Returns:
            {"token": ..., "user": {"id", "email", "role"}}

        Raises:
            InvalidCredentialsError: unknown email or wrong password
        """
        user = await self.get_by_email(db, email)
        if user is None or not verify_password(password, user.hashed_password):
            logger.log_auth_event(event="login", success=False, user_email=email, reason="Invalid credentials")
            raise InvalidCredentialsError()

        user.last_login = datetime.utcnow()
        await db.commit()

        logger.log_auth_event(event="login", success=True, user_email=user.email)
        return {
            "token": issue_session_token(user.id, user.role.value, user.email),
            "user": account_to_dict(user),
        }

    async def get_account(self, db: AsyncSession, account_id: str) -> User:
        user = await db.get(User, account_id)
        if user is None:
            raise ResourceNotFoundError("User")
        return user

    async def register_teacher(self, db: AsyncSession, data: TeacherRegister) -> Dict[str, Any]:
        if data.department_id and await db.get(Department, data.department_id) is None:
            raise ResourceNotFoundError("Department")

        if await self.get_by_email(db, data.email):
            raise EmailInUseError()

        user = User(
            email=data.email.lower(),
            hashed_password=get_password_hash(data.password),
            role=UserRole.TEACHER,
        )
        db.add(user)
        try:
            await db.flush()
            teacher = Teacher(user_id=user.id, name=data.name, department_id=data.department_id)
            db.add(teacher)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise EmailInUseError()

        logger.log_auth_event(event="register", success=True, user_email=user.email, role=user.role.value)
        return {
            "user": account_to_dict(user),
            "teacher": {"id": teacher.id, "name": teacher.name, "department_id": teacher.department_id},
        }

    async def register_student(self, db: AsyncSession, data: StudentRegister) -> Dict[str, Any]:
        if data.class_id and await db.get(CourseClass, data.class_id) is None:
            raise ResourceNotFoundError("Class")

        if await self.get_by_email(db, data.email):
            raise EmailInUseError()

        existing_roll = await db.execute(select(Student.id).where(Student.roll_no == data.roll_no))
        if existing_roll.scalar_one_or_none():
            raise RollNumberInUseError()

        user = User(
            email=data.email.lower(),
            hashed_password=get_password_hash(data.password),
            role=UserRole.STUDENT,
        )
        db.add(user)
        try:
            await db.flush()
            student = Student(
                user_id=user.id,
                roll_no=data.roll_no,
                name=data.name,
                year=data.year,
                class_id=data.class_id,
            )
            db.add(student)
            await db.commit()
        except IntegrityError:
            # Concurrent registration took the email or roll number first
            await db.rollback()
            raise EmailInUseError()

        logger.log_auth_event(event="register", success=True, user_email=user.email, role="student")
        return {
            "user": account_to_dict(user),
            "student": {"id": student.id, "name": student.name, "roll_no": student.roll_no, "year": student.year},
        }


# Singleton instance
auth_service = AuthService()
