"""Схемы журнала движения единиц учёта."""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from backend.modules.assets.models import AssetCondition, TransactionType


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    inventory_item_id: UUID
    transaction_type: TransactionType
    quantity: int
    previous_quantity: int
    new_quantity: int
    issued_to_id: Optional[UUID] = None
    performed_by_id: Optional[UUID] = None
    request_id: Optional[UUID] = None
    return_request_id: Optional[UUID] = None
    purpose: Optional[str] = None
    notes: Optional[str] = None
    condition: Optional[AssetCondition] = None
    expected_return_date: Optional[date] = None
    actual_return_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    item_unique_id: Optional[str] = None
    item_name: Optional[str] = None
    issued_to_name: Optional[str] = None
    performed_by_name: Optional[str] = None
