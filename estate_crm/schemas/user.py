"""
Pydantic schemas for User API.
"""
from datetime import datetime

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=64)
    email: str = Field(..., max_length=128)
    password: str = Field(..., min_length=8, max_length=128)
    role_id: int


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    role_id: int
    created_at: datetime

    model_config = {"from_attributes": True}
