"""
Схемы для заявок на возврат актива
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from backend.modules.assets.models import AssetCondition, ReviewStatus


class ReturnRequestCreate(BaseModel):
    inventory_item_id: UUID
    asset_name: Optional[str] = None  # по умолчанию: название единицы учёта
    return_reason: str = Field(..., min_length=1)
    condition_on_return: AssetCondition = AssetCondition.GOOD
    notes: Optional[str] = None


class ApproveReturn(BaseModel):
    remarks: Optional[str] = None


class RejectReturn(BaseModel):
    rejection_reason: Optional[str] = None


class ReturnRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_id: UUID
    inventory_item_id: Optional[UUID] = None
    asset_name: str
    return_reason: str
    condition_on_return: AssetCondition
    notes: Optional[str] = None
    status: ReviewStatus
    requested_at: Optional[datetime] = None
    reviewed_by_id: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    approval_remarks: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    employee_name: Optional[str] = None
    reviewer_name: Optional[str] = None
    inventory_item_unique_id: Optional[str] = None
