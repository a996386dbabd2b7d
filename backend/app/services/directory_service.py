"""
Directory Service - reference data and profile lookups

Departments, subjects, student and teacher profiles.
"""

from typing import List, Dict, Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ResourceNotFoundError, ConflictError
from app.core.logging_config import get_logger
from app.models.user import User
from app.models.college_management import Department, Subject, Student, Teacher
from app.schemas.college import DepartmentCreate, SubjectCreate
from app.services.identity_service import Actor
from app.services.scope_service import student_scope

logger = get_logger("directory")


def student_to_dict(student: Student) -> Dict[str, Any]:
    return {
        "id": student.id,
        "name": student.name,
        "roll_no": student.roll_no,
        "year": student.year,
        "class_id": student.class_id,
    }


class DirectoryService:

    # ==================== Departments ====================

    async def create_department(self, db: AsyncSession, data: DepartmentCreate) -> Dict[str, Any]:
        department = Department(name=data.name, code=data.code)
        db.add(department)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("Department already exists.")
        await db.refresh(department)

        logger.log_db_write("insert", "departments", 1)
        return {"id": department.id, "name": department.name, "code": department.code}

    async def list_departments(self, db: AsyncSession) -> List[Dict[str, Any]]:
        result = await db.execute(select(Department).order_by(Department.name.asc()))
        return [
            {"id": d.id, "name": d.name, "code": d.code}
            for d in result.scalars().all()
        ]

    # ==================== Subjects ====================

    async def create_subject(self, db: AsyncSession, data: SubjectCreate) -> Dict[str, Any]:
        subject = Subject(name=data.name)
        db.add(subject)
        await db.commit()
        await db.refresh(subject)

        logger.log_db_write("insert", "subjects", 1)
        return {"id": subject.id, "name": subject.name}

    async def list_subjects(self, db: AsyncSession) -> List[Dict[str, Any]]:
        result = await db.execute(select(Subject).order_by(Subject.name.asc()))
        return [{"id": s.id, "name": s.name} for s in result.scalars().all()]

    async def get_subject(self, db: AsyncSession, subject_id: str) -> Dict[str, Any]:
        subject = await db.get(Subject, subject_id)
        if subject is None:
            raise ResourceNotFoundError("Subject")
        return {"id": subject.id, "name": subject.name}

    # ==================== Profiles ====================

    async def list_students(self, db: AsyncSession, actor: Actor) -> List[Dict[str, Any]]:
        """Students visible to the caller, by name"""
        result = await db.execute(
            select(Student).where(student_scope(actor)).order_by(Student.name.asc(), Student.roll_no.asc())
        )
        return [student_to_dict(s) for s in result.scalars().all()]

    async def get_student(self, db: AsyncSession, actor: Actor, student_id: str) -> Dict[str, Any]:
        """
        Raises:
            ResourceNotFoundError: absent or outside the caller's scope
        """
        result = await db.execute(
            select(Student).where(Student.id == student_id, student_scope(actor))
        )
        student = result.scalar_one_or_none()
        if student is None:
            raise ResourceNotFoundError("Student")
        return student_to_dict(student)

    async def my_student_profile(self, db: AsyncSession, actor: Actor) -> Dict[str, Any]:
        result = await db.execute(
            select(Student, User.email)
            .join(User, User.id == Student.user_id)
            .where(Student.id == actor.student_id)
        )
        student, email = result.one()
        return {**student_to_dict(student), "email": email}

    async def my_teacher_profile(self, db: AsyncSession, actor: Actor) -> Dict[str, Any]:
        result = await db.execute(
            select(Teacher, User.email, Department.name.label("department_name"))
            .join(User, User.id == Teacher.user_id)
            .outerjoin(Department, Department.id == Teacher.department_id)
            .where(Teacher.id == actor.teacher_id)
        )
        teacher, email, department_name = result.one()
        return {
            "id": teacher.id,
            "name": teacher.name,
            "email": email,
            "department_id": teacher.department_id,
            "department_name": department_name,
        }


# Singleton instance
directory_service = DirectoryService()
