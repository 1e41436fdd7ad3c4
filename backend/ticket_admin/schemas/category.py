"""Pydantic schemas for categories and subcategories."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, ValidationInfo, field_validator


def _check_required(value, info: ValidationInfo):
    if value is None:
        raise ValueError(f"{info.field_name} cannot be null")
    return value


class CategoryCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    image: Optional[str] = Field(default=None, max_length=500)

    @field_validator("image")
    @classmethod
    def image_is_url(cls, value: Optional[str]) -> Optional[str]:
        if value and not value.startswith(("http://", "https://")):
            raise ValueError("Invalid image URL")
        return value


class CategoryUpdate(CategoryCreate):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    is_active: Optional[bool] = None

    @field_validator("name", "is_active")
    @classmethod
    def not_null(cls, value, info: ValidationInfo):
        return _check_required(value, info)


class SubCategoryCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)


class SubCategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    is_active: Optional[bool] = None

    @field_validator("name", "is_active")
    @classmethod
    def not_null(cls, value, info: ValidationInfo):
        return _check_required(value, info)


class SubCategoryOut(BaseModel):
    id: str
    category_id: str
    name: str
    description: Optional[str] = None
    is_active: bool
    created_by_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SubCategoryBrief(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class CategoryOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    is_active: bool
    created_by_id: Optional[str] = None
    updated_by_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    subcategories: list[SubCategoryBrief] = []

    model_config = {"from_attributes": True}


CategoryOut.model_rebuild()
