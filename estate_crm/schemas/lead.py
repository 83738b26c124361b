"""
Pydantic schemas for Lead API.

Ids are plain integers here: positivity and existence are business rules
checked by the lead lifecycle, in a fixed order.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ──────────────────────────────────────────────
# Request Schemas
# ──────────────────────────────────────────────

class LeadCreate(BaseModel):
    contact_id: int
    source_id: int
    status_id: int
    assigned_to_id: int
    property_id: Optional[int] = None
    notes: Optional[str] = Field(None, max_length=2048)


class LeadUpdate(BaseModel):
    source_id: Optional[int] = None
    status_id: Optional[int] = None
    assigned_to_id: Optional[int] = None
    property_id: Optional[int] = None
    notes: Optional[str] = Field(None, max_length=2048)


# ──────────────────────────────────────────────
# Response Schemas
# ──────────────────────────────────────────────

class LeadResponse(BaseModel):
    id: int
    contact_id: int
    property_id: Optional[int]
    source_id: int
    status_id: int
    assigned_to_id: int
    is_open: bool
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
