"""
Authentication endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException
from starlette import status

from estate_crm.core.deps import get_user_service
from estate_crm.core.security import create_access_token
from estate_crm.schemas.auth import LoginRequest, Token
from estate_crm.services.user_service import UserService

router = APIRouter()


@router.post("/login", response_model=Token)
async def login(data: LoginRequest, svc: UserService = Depends(get_user_service)):
    """Exchange a username and password for a bearer token."""
    user = await svc.authenticate(data.username, data.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Token(access_token=create_access_token(user.id, user.role_id))
