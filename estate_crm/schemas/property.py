"""
Pydantic schemas for Property API.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from estate_crm.models.property import PropertyStatus


class PropertyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=256)
    unit_no: Optional[str] = Field(None, max_length=32)
    size_sqft: Optional[Decimal] = Field(None, ge=0)
    price: Decimal = Field(..., gt=0)


class PropertyUpdate(BaseModel):
    """Editable details. Status only changes through the deal lifecycle."""
    unit_no: Optional[str] = Field(None, max_length=32)
    size_sqft: Optional[Decimal] = Field(None, ge=0)


class PropertyResponse(BaseModel):
    id: int
    name: str
    unit_no: Optional[str]
    size_sqft: Optional[Decimal]
    price: Decimal
    status: PropertyStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
