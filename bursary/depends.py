from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from bursary.adapter.database import create_ledger_engine
from bursary.adapter.services.unit_of_work import SqlAlchemyUnitOfWork

engine = create_ledger_engine(ApplicationConfig.DB_URI)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


def build_unit_of_work(session: AsyncSession) -> SqlAlchemyUnitOfWork:
    return SqlAlchemyUnitOfWork(
        session,
        max_attempts=ApplicationConfig.TRANSACTION_MAX_ATTEMPTS,
        retry_backoff_seconds=ApplicationConfig.TRANSACTION_RETRY_BACKOFF_SECONDS,
    )


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield build_unit_of_work(session)
