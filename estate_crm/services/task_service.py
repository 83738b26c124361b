"""
TaskService - follow-up tasks. Reception creates and deletes them; an agent
reads and updates the tasks assigned to them.
"""
from datetime import datetime, UTC

from estate_crm.core.logging import get_logger
from estate_crm.core.roles import Claims, RoleConfig
from estate_crm.models.task import Task
from estate_crm.repositories.task_repo import TaskRepository
from estate_crm.repositories.user_repo import UserRepository
from estate_crm.schemas.task import TaskCreate, TaskUpdate
from estate_crm.services.errors import NotFoundError, ValidationError, translate_store_errors
from estate_crm.services.permissions import Action, PermissionGuard, ResourceKind

logger = get_logger(__name__)


def _ensure_not_past(due_date: datetime) -> None:
    # Naive datetimes are taken as UTC
    due = due_date if due_date.tzinfo else due_date.replace(tzinfo=UTC)
    if due < datetime.now(UTC):
        raise ValidationError("due date cannot be in the past", due_date=due_date.isoformat())


class TaskService:
    def __init__(
        self,
        task_repo: TaskRepository,
        user_repo: UserRepository,
        guard: PermissionGuard,
        roles: RoleConfig,
    ):
        self.repo = task_repo
        self.user_repo = user_repo
        self.guard = guard
        self.roles = roles

    async def create_task(self, actor: Claims, data: TaskCreate) -> Task:
        self.guard.ensure(actor, Action.CREATE, ResourceKind.TASK)
        _ensure_not_past(data.due_date)
        with translate_store_errors("task write"):
            if data.assigned_to_id <= 0 or not await self.user_repo.exists(data.assigned_to_id):
                raise ValidationError(
                    f"invalid assigned_to_id: {data.assigned_to_id}",
                    field="assigned_to_id",
                    value=data.assigned_to_id,
                )
            task = await self.repo.create(Task(**data.model_dump(), created_by=actor.user_id))
        logger.info("task created", task_id=task.id, assigned_to_id=task.assigned_to_id)
        return task

    async def get_tasks(self, actor: Claims, offset: int = 0, limit: int = 50) -> list[Task]:
        self.guard.ensure(actor, Action.READ, ResourceKind.TASK)
        assigned_to_id = actor.user_id if self.roles.is_sales_agent(actor) else None
        with translate_store_errors("task listing"):
            return await self.repo.get_all(assigned_to_id=assigned_to_id, offset=offset, limit=limit)

    async def get_task(self, actor: Claims, task_id: int) -> Task:
        task = await self._load(task_id)
        self.guard.ensure(actor, Action.READ, ResourceKind.TASK, task.assigned_to_id)
        return task

    async def update_task(self, actor: Claims, task_id: int, data: TaskUpdate) -> Task:
        task = await self._load(task_id)
        self.guard.ensure(actor, Action.UPDATE, ResourceKind.TASK, task.assigned_to_id)

        changes = data.model_dump(exclude_unset=True)
        if changes.get("due_date") is not None:
            _ensure_not_past(changes["due_date"])
        for field, value in changes.items():
            if value is None and field in ("task_name", "due_date", "status"):
                continue
            setattr(task, field, value)

        with translate_store_errors("task write", task_id=task_id):
            task = await self.repo.save(task)
        logger.info("task updated", task_id=task_id, status=task.status.value)
        return task

    async def delete_task(self, actor: Claims, task_id: int) -> None:
        task = await self._load(task_id)
        self.guard.ensure(actor, Action.DELETE, ResourceKind.TASK, task.assigned_to_id)
        with translate_store_errors("task delete", task_id=task_id):
            await self.repo.delete(task)
        logger.info("task deleted", task_id=task_id)

    async def _load(self, task_id: int) -> Task:
        with translate_store_errors("task lookup", task_id=task_id):
            task = await self.repo.get_by_id(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found", task_id=task_id)
        return task
