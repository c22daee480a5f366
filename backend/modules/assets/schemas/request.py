"""
Схемы для заявок на выдачу актива
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from backend.modules.assets.models import RequestPriority, ReviewStatus


class AssetRequestBase(BaseModel):
    item_type: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(1, ge=1)
    purpose: str = Field(..., min_length=1, max_length=500)
    justification: str = Field(..., min_length=1, max_length=1000)
    priority: RequestPriority = RequestPriority.MEDIUM
    department: Optional[str] = None
    project: Optional[str] = None
    estimated_cost: Optional[Decimal] = Field(None, ge=0)
    expected_return_date: Optional[date] = None


class AssetRequestCreate(AssetRequestBase):
    pass


class AssetRequestUpdate(BaseModel):
    item_type: Optional[str] = Field(None, min_length=1, max_length=255)
    quantity: Optional[int] = Field(None, ge=1)
    purpose: Optional[str] = Field(None, min_length=1, max_length=500)
    justification: Optional[str] = Field(None, min_length=1, max_length=1000)
    priority: Optional[RequestPriority] = None
    department: Optional[str] = None
    project: Optional[str] = None
    estimated_cost: Optional[Decimal] = Field(None, ge=0)
    expected_return_date: Optional[date] = None


class ApproveRequest(BaseModel):
    remarks: Optional[str] = Field(None, max_length=500)
    # Если не указан: сервер подберёт свободную единицу по item_type
    inventory_item_id: Optional[UUID] = None
    approved_quantity: Optional[int] = Field(None, ge=1)
    expected_return_date: Optional[date] = None


class RejectRequest(BaseModel):
    rejection_reason: Optional[str] = None


class AssetRequestOut(AssetRequestBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_id: UUID
    status: ReviewStatus
    submitted_at: Optional[datetime] = None
    reviewed_by_id: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    remarks: Optional[str] = None
    rejection_reason: Optional[str] = None
    approved_quantity: Optional[int] = None
    inventory_item_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Дополнительные поля из JOIN
    employee_name: Optional[str] = None
    employee_email: Optional[str] = None
    reviewer_name: Optional[str] = None
    inventory_item_unique_id: Optional[str] = None
    inventory_item_name: Optional[str] = None


class RequestStatsOut(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
