"""
FastAPI dependencies for dependency injection.
"""
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from estate_crm.core.database import get_db, get_session_factory
from estate_crm.core.roles import Claims, RoleConfig
from estate_crm.core.security import get_current_claims
from estate_crm.repositories.contact_repo import ContactRepository
from estate_crm.repositories.deal_repo import DealRepository
from estate_crm.repositories.lead_repo import LeadRepository
from estate_crm.repositories.property_repo import PropertyRepository
from estate_crm.repositories.task_repo import TaskRepository
from estate_crm.repositories.user_repo import UserRepository
from estate_crm.services.availability import PropertyAvailabilityIndex
from estate_crm.services.contact_service import ContactService
from estate_crm.services.deal_service import DealLifecycleValidator, DealService
from estate_crm.services.lead_service import LeadLifecycleValidator, LeadService
from estate_crm.services.permissions import PermissionGuard
from estate_crm.services.property_service import PropertyService
from estate_crm.services.report_service import ReportAggregator
from estate_crm.services.task_service import TaskService
from estate_crm.services.user_service import UserService


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentActor = Annotated[Claims, Depends(get_current_claims)]


def get_role_config(request: Request) -> RoleConfig:
    """Role ids resolved once at start-up."""
    return request.app.state.roles


Roles = Annotated[RoleConfig, Depends(get_role_config)]


def get_guard(roles: Roles) -> PermissionGuard:
    return PermissionGuard(roles)


Guard = Annotated[PermissionGuard, Depends(get_guard)]


async def get_lead_repo(db: DbSession) -> LeadRepository:
    """Get LeadRepository instance."""
    return LeadRepository(db)


async def get_deal_repo(db: DbSession) -> DealRepository:
    """Get DealRepository instance."""
    return DealRepository(db)


async def get_contact_repo(db: DbSession) -> ContactRepository:
    return ContactRepository(db)


async def get_property_repo(db: DbSession) -> PropertyRepository:
    return PropertyRepository(db)


async def get_task_repo(db: DbSession) -> TaskRepository:
    return TaskRepository(db)


async def get_user_repo(db: DbSession) -> UserRepository:
    """Get UserRepository instance."""
    return UserRepository(db)


async def get_lead_service(
    guard: Guard,
    roles: Roles,
    lead_repo: Annotated[LeadRepository, Depends(get_lead_repo)],
    deal_repo: Annotated[DealRepository, Depends(get_deal_repo)],
    contact_repo: Annotated[ContactRepository, Depends(get_contact_repo)],
    property_repo: Annotated[PropertyRepository, Depends(get_property_repo)],
    user_repo: Annotated[UserRepository, Depends(get_user_repo)],
) -> LeadService:
    """Get LeadService instance."""
    validator = LeadLifecycleValidator(
        guard,
        lead_repo,
        contact_repo,
        property_repo,
        user_repo,
        PropertyAvailabilityIndex(lead_repo, deal_repo),
    )
    return LeadService(lead_repo, validator, guard, roles)


async def get_deal_service(
    guard: Guard,
    roles: Roles,
    deal_repo: Annotated[DealRepository, Depends(get_deal_repo)],
    lead_repo: Annotated[LeadRepository, Depends(get_lead_repo)],
    property_repo: Annotated[PropertyRepository, Depends(get_property_repo)],
) -> DealService:
    """Get DealService instance."""
    return DealService(deal_repo, lead_repo, property_repo, DealLifecycleValidator(lead_repo), guard, roles)


async def get_contact_service(
    guard: Guard,
    roles: Roles,
    contact_repo: Annotated[ContactRepository, Depends(get_contact_repo)],
) -> ContactService:
    return ContactService(contact_repo, guard, roles)


async def get_property_service(
    guard: Guard,
    property_repo: Annotated[PropertyRepository, Depends(get_property_repo)],
    deal_repo: Annotated[DealRepository, Depends(get_deal_repo)],
) -> PropertyService:
    return PropertyService(property_repo, deal_repo, guard)


async def get_task_service(
    guard: Guard,
    roles: Roles,
    task_repo: Annotated[TaskRepository, Depends(get_task_repo)],
    user_repo: Annotated[UserRepository, Depends(get_user_repo)],
) -> TaskService:
    return TaskService(task_repo, user_repo, guard, roles)


async def get_user_service(
    guard: Guard,
    roles: Roles,
    user_repo: Annotated[UserRepository, Depends(get_user_repo)],
) -> UserService:
    return UserService(user_repo, guard, roles)


async def get_report_aggregator(
    db: DbSession,
    guard: Guard,
    roles: Roles,
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> ReportAggregator:
    """Get ReportAggregator instance. Per-agent queries use their own sessions."""
    return ReportAggregator(db, session_factory, guard, roles)
