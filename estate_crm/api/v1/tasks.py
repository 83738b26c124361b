"""
Task API endpoints.
"""
from fastapi import APIRouter, Depends, Query
from starlette import status

from estate_crm.core.deps import CurrentActor, get_task_service
from estate_crm.schemas.task import TaskCreate, TaskResponse, TaskUpdate
from estate_crm.services.task_service import TaskService

router = APIRouter()


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(data: TaskCreate, actor: CurrentActor, svc: TaskService = Depends(get_task_service)):
    return await svc.create_task(actor, data)


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    actor: CurrentActor,
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=50, ge=1, le=200, description="Items per page"),
    svc: TaskService = Depends(get_task_service),
):
    return await svc.get_tasks(actor, offset=(page - 1) * page_size, limit=page_size)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: int, actor: CurrentActor, svc: TaskService = Depends(get_task_service)):
    return await svc.get_task(actor, task_id)


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    data: TaskUpdate,
    actor: CurrentActor,
    svc: TaskService = Depends(get_task_service),
):
    return await svc.update_task(actor, task_id, data)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: int, actor: CurrentActor, svc: TaskService = Depends(get_task_service)):
    await svc.delete_task(actor, task_id)
