import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import bursary.domain  # noqa: F401
from bursary.adapter.database import create_ledger_engine
from bursary.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from bursary.depends import get_session
from bursary.domain.base import utcnow
from bursary.domain.student import Student


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """File-backed SQLite database, so separate sessions see each other's commits"""
    test_db_url = f"sqlite+aiosqlite:///{tmp_path / 'ledger_test.db'}"

    engine = create_ledger_engine(test_db_url)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def uow(db_session):
    return SqlAlchemyUnitOfWork(db_session, max_attempts=3, retry_backoff_seconds=0)


@pytest_asyncio.fixture
async def students(db_session):
    """Three active grade-7 students, one grade-8 student and one withdrawn student"""
    rows = [
        Student(id="stu-ada", full_name="Ada Obi", level_id="grade-7"),
        Student(id="stu-ben", full_name="Ben Eze", level_id="grade-7"),
        Student(id="stu-chi", full_name="Chi Nwosu", level_id="grade-7"),
        Student(id="stu-dan", full_name="Dan Okoro", level_id="grade-8"),
        Student(id="stu-eve", full_name="Eve Ude", level_id="grade-7", deleted_at=utcnow()),
    ]
    db_session.add_all(rows)
    await db_session.commit()
    return {student.id: student for student in rows}


@pytest_asyncio.fixture
async def client(db_session):
    """Create test client with database session override"""
    from bursary.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    # Override the session dependency to use test session
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    # Use ASGITransport for httpx AsyncClient
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
