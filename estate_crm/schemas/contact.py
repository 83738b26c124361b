"""
Pydantic schemas for Contact API.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ContactCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=128)
    last_name: Optional[str] = Field(None, max_length=128)
    primary_phone: str = Field(..., min_length=3, max_length=64)
    email: Optional[str] = Field(None, max_length=128)
    city: Optional[str] = Field(None, max_length=128)
    contact_source: Optional[str] = Field(None, max_length=64)


class ContactUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=128)
    last_name: Optional[str] = Field(None, max_length=128)
    primary_phone: Optional[str] = Field(None, min_length=3, max_length=64)
    email: Optional[str] = Field(None, max_length=128)
    city: Optional[str] = Field(None, max_length=128)
    contact_source: Optional[str] = Field(None, max_length=64)


class ContactResponse(BaseModel):
    id: int
    first_name: str
    last_name: Optional[str]
    primary_phone: str
    email: Optional[str]
    city: Optional[str]
    contact_source: Optional[str]
    created_by: Optional[int]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
