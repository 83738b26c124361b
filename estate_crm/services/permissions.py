"""
PermissionGuard - role based access decisions for every entity.

Reception has full managerial access. A Sales Agent reads lists (filtered to
their own records by the caller), reads and updates the leads, deals and
tasks assigned to them, and is denied everything else. Unknown roles are
denied.
"""
import enum
from typing import Optional

from estate_crm.core.logging import get_logger
from estate_crm.core.roles import Claims, RoleConfig, UserRole
from estate_crm.services.errors import ForbiddenError

logger = get_logger(__name__)


class Action(str, enum.Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class ResourceKind(str, enum.Enum):
    CONTACT = "contact"
    PROPERTY = "property"
    LEAD = "lead"
    DEAL = "deal"
    TASK = "task"
    USER = "user"
    REPORT = "report"


# Sales Agent capabilities. The value says whether the resource owner must be
# the actor; for READ an absent owner means a list the caller already filtered.
_OWNED = "owned"
_OWNED_OR_LIST = "owned_or_list"
_ALWAYS = "always"

SALES_AGENT_CAPABILITIES: dict[tuple[Action, ResourceKind], str] = {
    (Action.READ, ResourceKind.CONTACT): _OWNED_OR_LIST,
    (Action.READ, ResourceKind.LEAD): _OWNED_OR_LIST,
    (Action.READ, ResourceKind.DEAL): _OWNED_OR_LIST,
    (Action.READ, ResourceKind.TASK): _OWNED_OR_LIST,
    (Action.READ, ResourceKind.PROPERTY): _ALWAYS,
    (Action.READ, ResourceKind.REPORT): _OWNED,
    (Action.CREATE, ResourceKind.DEAL): _OWNED,
    (Action.UPDATE, ResourceKind.DEAL): _OWNED,
    (Action.UPDATE, ResourceKind.TASK): _OWNED,
}


class PermissionGuard:
    def __init__(self, roles: RoleConfig):
        self.roles = roles

    def authorize(
        self,
        actor: Claims,
        action: Action,
        resource: ResourceKind,
        owner_user_id: Optional[int] = None,
    ) -> bool:
        """Pure decision: may ``actor`` perform ``action`` on ``resource``?"""
        role = self.roles.role_of(actor.role_id)

        if role is UserRole.RECEPTION:
            return True

        if role is UserRole.SALES_AGENT:
            rule = SALES_AGENT_CAPABILITIES.get((action, resource))
            if rule == _ALWAYS:
                return True
            if rule == _OWNED_OR_LIST:
                return owner_user_id is None or owner_user_id == actor.user_id
            if rule == _OWNED:
                return owner_user_id is not None and owner_user_id == actor.user_id
            return False

        return False

    def ensure(
        self,
        actor: Claims,
        action: Action,
        resource: ResourceKind,
        owner_user_id: Optional[int] = None,
    ) -> None:
        """Raise ForbiddenError when ``authorize`` says no."""
        if not self.authorize(actor, action, resource, owner_user_id):
            logger.warning(
                "permission denied",
                user_id=actor.user_id,
                role_id=actor.role_id,
                action=action.value,
                resource=resource.value,
                owner_user_id=owner_user_id,
            )
            raise ForbiddenError(
                f"{action.value} on {resource.value} not permitted",
                user_id=actor.user_id,
                role_id=actor.role_id,
                owner_user_id=owner_user_id,
            )
