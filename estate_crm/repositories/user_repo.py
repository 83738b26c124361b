"""
User Repository - database operations for users and roles.
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.models.user import Role, User


class UserRepository:
    """Repository for User model operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_all(self) -> list[User]:
        """Get all users."""
        result = await self.session.execute(select(User).order_by(User.username))
        return list(result.scalars().all())

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        result = await self.session.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.username == username)
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.email == email)
        )
        return result.scalar_one_or_none()

    async def exists(self, user_id: int) -> bool:
        result = await self.session.execute(select(User.id).where(User.id == user_id))
        return result.scalar_one_or_none() is not None

    async def get_by_role(self, role_id: int) -> list[User]:
        """Get every user holding the given role, ordered by username."""
        result = await self.session.execute(
            select(User).where(User.role_id == role_id).order_by(User.username)
        )
        return list(result.scalars().all())

    async def get_role_id_by_name(self, role_name: str) -> Optional[int]:
        result = await self.session.execute(
            select(Role.id).where(Role.role_name == role_name)
        )
        return result.scalar_one_or_none()

    async def create(self, user: User) -> User:
        """Create a new user."""
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

