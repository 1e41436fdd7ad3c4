"""Pydantic schemas for users, authentication and role management."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from ticket_admin.services.authorization import Role


class RegisterRequest(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=8, max_length=128)
    requested_permissions: list[str] = []


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8, max_length=128)


class UserIdRequest(BaseModel):
    user_id: str


class PermissionBrief(BaseModel):
    id: str
    name: str
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class UserOut(BaseModel):
    id: str
    email: str
    name: str
    role: Role
    is_active: bool
    promoted_at: Optional[datetime] = None
    promoted_by_id: Optional[str] = None
    created_at: datetime
    permissions: list[PermissionBrief] = []

    model_config = {"from_attributes": True}


class RegisterOut(BaseModel):
    user: UserOut
    requested_permissions: list[str] = []


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
