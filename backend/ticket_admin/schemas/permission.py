"""Pydantic schemas for permissions and grants."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class PermissionCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100, pattern=r"^[A-Z][A-Z0-9_]*$")
    description: str = Field(min_length=1, max_length=500)


class PermissionOut(BaseModel):
    id: str
    name: str
    description: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class GrantRequest(BaseModel):
    permission_id: str


class GrantOut(BaseModel):
    user_id: str
    permission_id: str
    permission_name: str
    granted_by_id: Optional[str] = None
    granted_at: Optional[datetime] = None
