"""Схемы справочника категорий."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from backend.modules.assets.models import CategoryType


class AssetNameIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=500)


class AssetNameOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    description: Optional[str] = None
    is_active: bool


class CategoryBase(BaseModel):
    description: Optional[str] = Field(None, max_length=500)
    parent_id: Optional[UUID] = None
    depreciation_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    lifespan_years: Optional[int] = Field(None, ge=0)


class CategoryCreate(CategoryBase):
    name: str = Field(..., min_length=1, max_length=100)
    category_type: CategoryType
    category_code: Optional[str] = Field(None, max_length=20)  # пусто: из названия
    asset_names: List[AssetNameIn] = []


class CategoryUpdate(CategoryBase):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category_type: Optional[CategoryType] = None
    is_active: Optional[bool] = None


class CategoryOut(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    category_type: CategoryType
    category_code: str
    is_active: bool
    asset_names: List[AssetNameOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryInventoryOut(BaseModel):
    id: UUID
    name: str
    category_type: CategoryType
    total_items: int
    total_value: Decimal


class CategoryStatsOut(BaseModel):
    total: int
    active: int
    inactive: int
    major: int
    minor: int
    with_inventory: int
