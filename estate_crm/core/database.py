"""
Database configuration and session management.
"""
from typing import AsyncGenerator

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, async_sessionmaker, create_async_engine

from estate_crm.core.base import Base
from estate_crm.core.config import settings

# Import models to register them with Base.metadata
from estate_crm.models.user import Role, User
from estate_crm.models.contact import Contact
from estate_crm.models.property import Property
from estate_crm.models.lead import Lead, LeadStatus, LeadSource, LeadStatusName, DEFAULT_LEAD_SOURCES
from estate_crm.models.deal import Deal, DealStage, DEFAULT_DEAL_STAGES
from estate_crm.models.task import Task

# SQLite doesn't support pool_size/max_overflow, so we conditionally add them
engine_args = {
    "echo": settings.DEBUG,
}

if "sqlite" not in settings.DATABASE_URL:
    engine_args.update({
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
    })

engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    **engine_args,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a request-scoped database session.
    Commits when the request succeeds, rolls back otherwise.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Dependency for components that open their own short-lived sessions."""
    return AsyncSessionLocal


async def seed_lookups(session: AsyncSession) -> None:
    """Insert roles, lead statuses, lead sources and deal stages that are not there yet."""
    role_names = (settings.SALES_AGENT_ROLE_NAME, settings.RECEPTION_ROLE_NAME)
    existing_roles = set((await session.execute(select(Role.role_name))).scalars().all())
    session.add_all(Role(role_name=name) for name in role_names if name not in existing_roles)

    existing_statuses = set((await session.execute(select(LeadStatus.name))).scalars().all())
    session.add_all(
        LeadStatus(name=status.value)
        for status in LeadStatusName
        if status.value not in existing_statuses
    )

    existing_sources = set((await session.execute(select(LeadSource.name))).scalars().all())
    session.add_all(
        LeadSource(name=name) for name in DEFAULT_LEAD_SOURCES if name not in existing_sources
    )

    existing_stages = set((await session.execute(select(DealStage.name))).scalars().all())
    session.add_all(
        DealStage(name=name) for name in DEFAULT_DEAL_STAGES if name not in existing_stages
    )
    await session.flush()


async def init_db(db_engine: AsyncEngine = engine) -> None:
    """Create tables and seed lookup data."""
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with session_factory() as session:
        await seed_lookups(session)
        await session.commit()
