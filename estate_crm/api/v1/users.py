"""
User endpoints.
"""
from fastapi import APIRouter, Depends
from starlette import status

from estate_crm.core.deps import CurrentActor, get_user_service
from estate_crm.schemas.user import UserCreate, UserResponse
from estate_crm.services.user_service import UserService

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def read_me(actor: CurrentActor, svc: UserService = Depends(get_user_service)):
    return await svc.get_me(actor)


@router.get("", response_model=list[UserResponse])
async def list_users(actor: CurrentActor, svc: UserService = Depends(get_user_service)):
    return await svc.get_users(actor)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(data: UserCreate, actor: CurrentActor, svc: UserService = Depends(get_user_service)):
    return await svc.create_user(actor, data)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, actor: CurrentActor, svc: UserService = Depends(get_user_service)):
    return await svc.get_user(actor, user_id)
