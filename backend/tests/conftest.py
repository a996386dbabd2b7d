"""
College Management API - Test Configuration and Fixtures
"""
import os
from types import SimpleNamespace
from typing import AsyncGenerator, Dict

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'

from app.main import app
from app.core.database import Base, get_db
from app.core.security import get_password_hash, issue_session_token
from app.models.user import User, UserRole
from app.models.college_management import (
    Department,
    Subject,
    Teacher,
    Student,
    CourseClass,
    ClassEnrollment,
    EnrollmentStatus,
)
from app.services.identity_service import Actor

fake = Faker()

PASSWORD = 'testpassword123'

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


# ==================== Builders ====================

async def make_account(db: AsyncSession, role: UserRole, email: str = None) -> User:
    user = User(
        email=email or fake.unique.email(),
        hashed_password=get_password_hash(PASSWORD),
        role=role,
    )
    db.add(user)
    await db.flush()
    return user


async def make_teacher(db: AsyncSession, department_id: str, role: UserRole = UserRole.TEACHER) -> SimpleNamespace:
    user = await make_account(db, role)
    teacher = Teacher(user_id=user.id, name=fake.name(), department_id=department_id)
    db.add(teacher)
    await db.flush()
    return SimpleNamespace(
        account_id=user.id,
        email=user.email,
        teacher_id=teacher.id,
        actor=Actor(account_id=user.id, role=role, teacher_id=teacher.id, department_id=department_id),
        headers=headers_for(user.id, role, user.email),
    )


async def make_student(db: AsyncSession, roll_no: str, name: str = None) -> SimpleNamespace:
    user = await make_account(db, UserRole.STUDENT)
    student = Student(user_id=user.id, roll_no=roll_no, name=name or fake.name(), year=2)
    db.add(student)
    await db.flush()
    return SimpleNamespace(
        account_id=user.id,
        email=user.email,
        student_id=student.id,
        roll_no=roll_no,
        actor=Actor(account_id=user.id, role=UserRole.STUDENT, student_id=student.id),
        headers=headers_for(user.id, UserRole.STUDENT, user.email),
    )


async def enroll(db: AsyncSession, class_id: str, student_id: str, status: EnrollmentStatus) -> str:
    enrollment = ClassEnrollment(class_id=class_id, student_id=student_id, status=status.value)
    db.add(enrollment)
    await db.flush()
    return enrollment.id


def headers_for(account_id: str, role: UserRole, email: str = None) -> Dict[str, str]:
    token = issue_session_token(account_id, role.value, email)
    return {'Authorization': f'Bearer {token}'}


@pytest_asyncio.fixture
async def campus(db_session: AsyncSession) -> SimpleNamespace:
    """
    Two departments, each with a teacher and an HOD.

    Class ``math`` (CSE teacher) has students s1..s3 approved and s4 pending;
    class ``physics`` belongs to the ECE teacher and has no students.
    Everything is returned as plain ids so tests never touch expired ORM state.
    """
    db = db_session

    cse = Department(name='Computer Science', code='CSE')
    ece = Department(name='Electronics', code='ECE')
    db.add_all([cse, ece])
    await db.flush()

    teacher = await make_teacher(db, cse.id)
    hod = await make_teacher(db, cse.id, role=UserRole.HOD)
    other_teacher = await make_teacher(db, ece.id)
    other_hod = await make_teacher(db, ece.id, role=UserRole.HOD)

    admin_user = await make_account(db, UserRole.ADMIN)
    admin = SimpleNamespace(
        account_id=admin_user.id,
        actor=Actor(account_id=admin_user.id, role=UserRole.ADMIN),
        headers=headers_for(admin_user.id, UserRole.ADMIN, admin_user.email),
    )

    math = Subject(name='Math')
    physics = Subject(name='Physics')
    db.add_all([math, physics])
    await db.flush()

    math_class = CourseClass(name='CSE-A', subject_id=math.id, teacher_id=teacher.teacher_id, year=2)
    physics_class = CourseClass(name='ECE-A', subject_id=physics.id, teacher_id=other_teacher.teacher_id, year=1)
    db.add_all([math_class, physics_class])
    await db.flush()

    s1 = await make_student(db, 'R001', name='Asha')
    s2 = await make_student(db, 'R002', name='Bala')
    s3 = await make_student(db, 'R003', name='Chitra')
    s4 = await make_student(db, 'R004', name='Dev')

    for s in (s1, s2, s3):
        s.enrollment_id = await enroll(db, math_class.id, s.student_id, EnrollmentStatus.APPROVED)
    s4.enrollment_id = await enroll(db, math_class.id, s4.student_id, EnrollmentStatus.PENDING)

    await db.commit()

    return SimpleNamespace(
        cse_id=cse.id,
        ece_id=ece.id,
        math_id=math.id,
        physics_id=physics.id,
        class_id=math_class.id,
        other_class_id=physics_class.id,
        teacher=teacher,
        hod=hod,
        other_teacher=other_teacher,
        other_hod=other_hod,
        admin=admin,
        s1=s1,
        s2=s2,
        s3=s3,
        s4=s4,
    )
