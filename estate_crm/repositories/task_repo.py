"""
Task Repository - Data Access Layer for Task model.
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.models.task import Task


class TaskRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, task: Task) -> Task:
        self.db.add(task)
        await self.db.flush()
        await self.db.refresh(task)
        return task

    async def get_by_id(self, task_id: int) -> Optional[Task]:
        result = await self.db.execute(select(Task).where(Task.id == task_id))
        return result.scalar_one_or_none()

    async def get_all(
        self,
        assigned_to_id: Optional[int] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> list[Task]:
        stmt = select(Task)
        if assigned_to_id is not None:
            stmt = stmt.where(Task.assigned_to_id == assigned_to_id)
        stmt = stmt.order_by(Task.due_date.asc()).offset(offset).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def save(self, task: Task) -> Task:
        await self.db.flush()
        await self.db.refresh(task)
        return task

    async def delete(self, task: Task) -> None:
        await self.db.delete(task)
        await self.db.flush()
