import os

# Point settings at sqlite before anything from the app is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from decimal import Decimal
from types import SimpleNamespace
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from main import app
from estate_crm.core.base import Base
from estate_crm.core.database import get_db, get_session_factory, seed_lookups
from estate_crm.core.deps import get_role_config
from estate_crm.core.roles import Claims, RoleConfig, resolve_role_config
from estate_crm.core.security import create_access_token, get_password_hash
from estate_crm.models.contact import Contact
from estate_crm.models.deal import DealStage
from estate_crm.models.lead import Lead, LeadSource, LeadStatus, LeadStatusName, is_open_status
from estate_crm.models.property import Property, PropertyStatus
from estate_crm.models.user import User
from estate_crm.repositories.contact_repo import ContactRepository
from estate_crm.repositories.deal_repo import DealRepository
from estate_crm.repositories.lead_repo import LeadRepository
from estate_crm.repositories.property_repo import PropertyRepository
from estate_crm.repositories.user_repo import UserRepository
from estate_crm.services.availability import PropertyAvailabilityIndex
from estate_crm.services.deal_service import DealLifecycleValidator, DealService
from estate_crm.services.lead_service import LeadLifecycleValidator, LeadService
from estate_crm.services.permissions import PermissionGuard

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "correct-horse-battery"

# bcrypt is slow on purpose; hash once per run
PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest.fixture
async def engine():
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        await seed_lookups(session)
        await session.commit()
        yield session


@pytest.fixture
async def role_config(db_session) -> RoleConfig:
    return await resolve_role_config(db_session)


@pytest.fixture
async def users(db_session, role_config):
    reception = User(
        username="reception", email="reception@example.com",
        password_hash=PASSWORD_HASH, role_id=role_config.reception_id,
    )
    agent = User(
        username="agent.one", email="agent.one@example.com",
        password_hash=PASSWORD_HASH, role_id=role_config.sales_agent_id,
    )
    other_agent = User(
        username="agent.two", email="agent.two@example.com",
        password_hash=PASSWORD_HASH, role_id=role_config.sales_agent_id,
    )
    db_session.add_all([reception, agent, other_agent])
    await db_session.commit()
    return SimpleNamespace(reception=reception, agent=agent, other_agent=other_agent)


@pytest.fixture
async def lookups(db_session):
    statuses = {
        name: status_id
        for status_id, name in (await db_session.execute(select(LeadStatus.id, LeadStatus.name))).all()
    }
    source_id = (
        await db_session.execute(select(LeadSource.id).where(LeadSource.name == "Walk-in"))
    ).scalar_one()
    stages = {
        name: stage_id
        for stage_id, name in (await db_session.execute(select(DealStage.id, DealStage.name))).all()
    }
    return SimpleNamespace(statuses=statuses, source_id=source_id, stages=stages)


@pytest.fixture
def reception_claims(users, role_config) -> Claims:
    return Claims(user_id=users.reception.id, role_id=role_config.reception_id)


@pytest.fixture
def agent_claims(users, role_config) -> Claims:
    return Claims(user_id=users.agent.id, role_id=role_config.sales_agent_id)


@pytest.fixture
def other_agent_claims(users, role_config) -> Claims:
    return Claims(user_id=users.other_agent.id, role_id=role_config.sales_agent_id)


# ──────────────────────────────────────────────
# Builders
# ──────────────────────────────────────────────

def build_lead_service(session: AsyncSession, roles: RoleConfig) -> LeadService:
    guard = PermissionGuard(roles)
    lead_repo = LeadRepository(session)
    validator = LeadLifecycleValidator(
        guard,
        lead_repo,
        ContactRepository(session),
        PropertyRepository(session),
        UserRepository(session),
        PropertyAvailabilityIndex(lead_repo, DealRepository(session)),
    )
    return LeadService(lead_repo, validator, guard, roles)


def build_deal_service(session: AsyncSession, roles: RoleConfig) -> DealService:
    lead_repo = LeadRepository(session)
    return DealService(
        DealRepository(session),
        lead_repo,
        PropertyRepository(session),
        DealLifecycleValidator(lead_repo),
        PermissionGuard(roles),
        roles,
    )


async def make_contact(session: AsyncSession, first_name: str = "Maya", created_by: int | None = None) -> Contact:
    contact = Contact(first_name=first_name, last_name="Stone", primary_phone="+15550100", created_by=created_by)
    session.add(contact)
    await session.flush()
    return contact


async def make_property(session: AsyncSession, name: str = "Harbour View 12A", price: str = "450000") -> Property:
    prop = Property(name=name, price=Decimal(price), status=PropertyStatus.AVAILABLE)
    session.add(prop)
    await session.flush()
    return prop


async def make_lead(
    session: AsyncSession,
    lookups,
    contact_id: int,
    assigned_to_id: int,
    property_id: int | None = None,
    status: LeadStatusName = LeadStatusName.NEW,
) -> Lead:
    lead = Lead(
        contact_id=contact_id,
        property_id=property_id,
        source_id=lookups.source_id,
        status_id=lookups.statuses[status.value],
        assigned_to_id=assigned_to_id,
        is_open=is_open_status(status.value),
    )
    session.add(lead)
    await session.flush()
    return lead


def auth_headers(claims: Claims) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(claims.user_id, claims.role_id)}"}


# ──────────────────────────────────────────────
# HTTP client
# ──────────────────────────────────────────────

@pytest.fixture
async def client(session_factory, role_config, users) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_role_config] = lambda: role_config

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
