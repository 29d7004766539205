"""
Project Portal - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['SMTP_USER'] = ''
os.environ['SMTP_PASSWORD'] = ''

from portal.main import app
from portal.core.database import Base, get_db
from portal.core.security import get_password_hash, create_access_token
from portal.models.user import User, UserRole, Student, Teacher

fake = Faker()

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)

TEST_PASSWORD = 'testpassword123'


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh schema per test; this session is for fixtures and assertions only"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Test client; each request gets its own session, as in production"""
    async def override_get_db():
        async with TestSessionLocal() as session:
            try:
                yield session
                if session.new or session.dirty or session.deleted:
                    await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def mock_email():
    """Replace the SMTP collaborator for every test"""
    with patch(
        'portal.services.project_workflow.email_service.send_project_notification_email',
        new_callable=AsyncMock,
        return_value=True,
    ) as mocked:
        yield mocked


async def make_student(db_session: AsyncSession, **overrides) -> Student:
    user = User(
        email=f'{fake.unique.user_name()}@college.edu',
        username=overrides.pop('username', fake.user_name()),
        hashed_password=get_password_hash(TEST_PASSWORD),
        role=UserRole.STUDENT,
        department='Computer Science',
    )
    student = Student(user=user, year=overrides.pop('year', 3), roll_number=fake.bothify('10##0###'), skills=[])
    db_session.add(student)
    await db_session.commit()
    return student


async def make_teacher(db_session: AsyncSession, **overrides) -> Teacher:
    user = User(
        email=f'{fake.unique.user_name()}@college.edu',
        username=overrides.pop('username', fake.user_name()),
        hashed_password=get_password_hash(TEST_PASSWORD),
        role=UserRole.TEACHER,
        department='Computer Science',
    )
    teacher = Teacher(user=user, designation=overrides.pop('designation', 'Assistant Professor'), skills=[])
    db_session.add(teacher)
    await db_session.commit()
    return teacher


def headers_for(user: User) -> dict:
    token = create_access_token({
        'sub': str(user.id),
        'email': user.email,
        'role': user.role.value
    })
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
async def student(db_session: AsyncSession) -> Student:
    """Student who leads projects in most tests"""
    return await make_student(db_session)


@pytest.fixture
async def other_student(db_session: AsyncSession) -> Student:
    return await make_student(db_session)


@pytest.fixture
async def teacher(db_session: AsyncSession) -> Teacher:
    """Teacher who mentors projects in most tests"""
    return await make_teacher(db_session)


@pytest.fixture
async def other_teacher(db_session: AsyncSession) -> Teacher:
    return await make_teacher(db_session)


@pytest.fixture
def student_headers(student: Student) -> dict:
    return headers_for(student.user)


@pytest.fixture
def other_student_headers(other_student: Student) -> dict:
    return headers_for(other_student.user)


@pytest.fixture
def teacher_headers(teacher: Teacher) -> dict:
    return headers_for(teacher.user)


@pytest.fixture
def other_teacher_headers(other_teacher: Teacher) -> dict:
    return headers_for(other_teacher.user)


@pytest.fixture
def project_payload() -> dict:
    return {
        'title': 'Smart Irrigation System',
        'description': 'Soil moisture sensing with automated valve control',
        'type': 'CAPSTONE',
        'githubLink': 'https://github.com/example/irrigation',
    }


@pytest.fixture
async def pending_project(client: AsyncClient, student_headers, teacher, project_payload) -> dict:
    """Student-created project waiting on the teacher"""
    response = await client.post(
        '/api/v1/projects',
        json={**project_payload, 'mentorId': teacher.id},
        headers=student_headers,
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
async def approved_project(client: AsyncClient, teacher_headers, student, project_payload) -> dict:
    """Teacher-created project led by the student"""
    response = await client.post(
        '/api/v1/projects',
        json={**project_payload, 'teamLeadId': student.id},
        headers=teacher_headers,
    )
    assert response.status_code == 200, response.text
    return response.json()
