"""
Role configuration and the authenticated actor.

Role ids live in the ``roles`` lookup table and are resolved exactly once at
start-up into an immutable RoleConfig, which is then passed to every
component that has to tell Reception from Sales Agent.
"""
import enum
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.core.config import settings
from estate_crm.core.logging import get_logger
from estate_crm.repositories.user_repo import UserRepository

logger = get_logger(__name__)


class UserRole(str, enum.Enum):
    RECEPTION = "reception"
    SALES_AGENT = "sales_agent"


class RoleResolutionError(Exception):
    """Raised at start-up when a required role is missing from the roles table."""


@dataclass(frozen=True)
class Claims:
    """The authenticated actor for the current operation."""
    user_id: int
    role_id: int


@dataclass(frozen=True)
class RoleConfig:
    reception_id: int
    sales_agent_id: int

    def role_of(self, role_id: int) -> UserRole | None:
        """Map a numeric role id to a known role; unknown ids map to None."""
        if role_id == self.reception_id:
            return UserRole.RECEPTION
        if role_id == self.sales_agent_id:
            return UserRole.SALES_AGENT
        return None

    def is_sales_agent(self, actor: Claims) -> bool:
        return self.role_of(actor.role_id) is UserRole.SALES_AGENT


async def resolve_role_config(session: AsyncSession) -> RoleConfig:
    """Look up both role ids by name. Fails loudly if either is missing."""
    user_repo = UserRepository(session)

    reception_id = await user_repo.get_role_id_by_name(settings.RECEPTION_ROLE_NAME)
    if reception_id is None:
        raise RoleResolutionError(f"Role '{settings.RECEPTION_ROLE_NAME}' not found")

    sales_agent_id = await user_repo.get_role_id_by_name(settings.SALES_AGENT_ROLE_NAME)
    if sales_agent_id is None:
        raise RoleResolutionError(f"Role '{settings.SALES_AGENT_ROLE_NAME}' not found")

    config = RoleConfig(reception_id=reception_id, sales_agent_id=sales_agent_id)
    logger.info(
        "role configuration resolved",
        reception_role_id=config.reception_id,
        sales_agent_role_id=config.sales_agent_id,
    )
    return config
