"""
College Management Models
- Departments, subjects, teacher and student profiles
- Classes and the enrollment workflow
- Class announcements
"""

from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey, Index, CheckConstraint, text
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class EnrollmentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# A (class, student) pair may hold at most one row in these states
ACTIVE_ENROLLMENT_STATUSES = (EnrollmentStatus.PENDING.value, EnrollmentStatus.APPROVED.value)


class Department(Base):
    """Department model"""
    __tablename__ = "departments"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), unique=True, nullable=False)  # e.g., Computer Science and Engineering
    code = Column(String(20), nullable=True)   # e.g., CSE
    created_at = Column(DateTime, default=datetime.utcnow)

    teachers = relationship("Teacher", back_populates="department")

    def __repr__(self):
        return f"<Department {self.code or self.name}>"


class Subject(Base):
    """Named discipline taught in classes and graded in marks"""
    __tablename__ = "subjects"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<Subject {self.name}>"


class Teacher(Base):
    """Teacher profile. An HOD is a teacher whose account role is hod."""
    __tablename__ = "teachers"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id"), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    department_id = Column(GUID, ForeignKey("departments.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    department = relationship("Department", back_populates="teachers")
    classes = relationship("CourseClass", back_populates="teacher")

    def __repr__(self):
        return f"<Teacher {self.name}>"


class Student(Base):
    """Student profile"""
    __tablename__ = "students"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id"), unique=True, nullable=True)
    roll_no = Column(String(50), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    year = Column(Integer, nullable=False)  # year of study
    class_id = Column(GUID, ForeignKey("classes.id"), nullable=True)  # home class
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<Student {self.roll_no}>"


class CourseClass(Base):
    """A class taught by exactly one teacher for one subject"""
    __tablename__ = "classes"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    subject_id = Column(GUID, ForeignKey("subjects.id"), nullable=False)
    teacher_id = Column(GUID, ForeignKey("teachers.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    teacher = relationship("Teacher", back_populates="classes")
    subject = relationship("Subject")

    def __repr__(self):
        return f"<CourseClass {self.name} Year-{self.year}>"


class ClassEnrollment(Base):
    """
    A student's request to join a class.

    pending -> approved | rejected. Rejected rows are kept as history and a new
    pending row may follow; the partial unique index keeps at most one
    pending/approved row per (class, student).
    """
    __tablename__ = "class_enrollments"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    class_id = Column(GUID, ForeignKey("classes.id"), nullable=False)
    student_id = Column(GUID, ForeignKey("students.id"), nullable=False)
    status = Column(String(20), nullable=False, default=EnrollmentStatus.PENDING.value)

    requested_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    decided_at = Column(DateTime, nullable=True)
    decided_by = Column(GUID, nullable=True)  # account that approved/rejected

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_class_enrollments_status",
        ),
        Index(
            "uq_class_enrollments_active",
            "class_id",
            "student_id",
            unique=True,
            postgresql_where=text("status IN ('pending', 'approved')"),
            sqlite_where=text("status IN ('pending', 'approved')"),
        ),
        Index("ix_class_enrollments_student_status", "student_id", "status"),
    )

    def __repr__(self):
        return f"<ClassEnrollment {self.class_id}:{self.student_id} {self.status}>"


class Announcement(Base):
    """Class-scoped announcement written by the class teacher"""
    __tablename__ = "announcements"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    class_id = Column(GUID, ForeignKey("classes.id"), nullable=False, index=True)
    teacher_id = Column(GUID, ForeignKey("teachers.id"), nullable=False)
    title = Column(String(500), nullable=False)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<Announcement {self.title}>"
