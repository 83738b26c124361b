"""
UserService - accounts and the current user.
"""
from estate_crm.core.logging import get_logger
from estate_crm.core.roles import Claims, RoleConfig
from estate_crm.core.security import get_password_hash, verify_password
from estate_crm.models.user import User
from estate_crm.repositories.user_repo import UserRepository
from estate_crm.schemas.user import UserCreate
from estate_crm.services.errors import (
    BusinessRuleViolation,
    NotFoundError,
    ValidationError,
    translate_store_errors,
)
from estate_crm.services.permissions import Action, PermissionGuard, ResourceKind

logger = get_logger(__name__)


class UserService:
    def __init__(self, user_repo: UserRepository, guard: PermissionGuard, roles: RoleConfig):
        self.repo = user_repo
        self.guard = guard
        self.roles = roles

    async def authenticate(self, username: str, password: str) -> User | None:
        """Return the user when the password matches, else None."""
        with translate_store_errors("user lookup"):
            user = await self.repo.get_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("login failed", username=username)
            return None
        return user

    async def get_me(self, actor: Claims) -> User:
        with translate_store_errors("user lookup", user_id=actor.user_id):
            user = await self.repo.get_by_id(actor.user_id)
        if user is None:
            raise NotFoundError(f"User {actor.user_id} not found", user_id=actor.user_id)
        return user

    async def get_users(self, actor: Claims) -> list[User]:
        self.guard.ensure(actor, Action.READ, ResourceKind.USER)
        with translate_store_errors("user listing"):
            return await self.repo.get_all()

    async def get_user(self, actor: Claims, user_id: int) -> User:
        self.guard.ensure(actor, Action.READ, ResourceKind.USER, user_id)
        with translate_store_errors("user lookup", user_id=user_id):
            user = await self.repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", user_id=user_id)
        return user

    async def create_user(self, actor: Claims, data: UserCreate) -> User:
        self.guard.ensure(actor, Action.CREATE, ResourceKind.USER)
        if self.roles.role_of(data.role_id) is None:
            raise ValidationError(f"invalid role_id: {data.role_id}", field="role_id", value=data.role_id)

        with translate_store_errors("user write"):
            if await self.repo.get_by_username(data.username) is not None:
                raise BusinessRuleViolation("username already taken", username=data.username)
            if await self.repo.get_by_email(data.email) is not None:
                raise BusinessRuleViolation("email already registered", email=data.email)
            user = await self.repo.create(
                User(
                    username=data.username,
                    email=data.email,
                    password_hash=get_password_hash(data.password),
                    role_id=data.role_id,
                )
            )
        logger.info("user created", user_id=user.id, role_id=user.role_id, created_by=actor.user_id)
        return user
