"""SQLAlchemy Student Repository Implementation

Read-only access to payers for invoice creation and cohort resolution.
"""

from typing import Optional, List
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from bursary.app.repositories.student_repository import StudentRepository
from bursary.domain.student import Student


class SqlAlchemyStudentRepository(StudentRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active_by_id(self, student_id: str) -> Optional[Student]:
        statement = (
            select(Student)
            .where(Student.id == student_id)
            .where(Student.deleted_at.is_(None))
        )
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_active_ids(self) -> List[str]:
        statement = (
            select(Student.id)
            .where(Student.deleted_at.is_(None))
            .order_by(Student.full_name, Student.id)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def get_active_ids_by_level(self, level_id: str) -> List[str]:
        statement = (
            select(Student.id)
            .where(Student.level_id == level_id)
            .where(Student.deleted_at.is_(None))
            .order_by(Student.full_name, Student.id)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())
