"""Схемы для единиц учёта (inventory items)."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from backend.modules.assets.models import (
    AssetCondition,
    CategoryType,
    DepreciationMethod,
    InventoryStatus,
)


class Attachment(BaseModel):
    name: str
    url: str


class InventoryItemBase(BaseModel):
    product_serial_number: Optional[str] = None
    financial_year: Optional[str] = None  # 2024-25
    category_type: CategoryType = CategoryType.MAJOR
    specification: Optional[str] = None
    make_model: Optional[str] = None
    description: Optional[str] = None
    invoice_number: Optional[str] = None
    purchase_order_number: Optional[str] = None
    date_of_invoice: Optional[date] = None
    date_of_entry: Optional[date] = None
    depreciation_method: Optional[DepreciationMethod] = DepreciationMethod.WRITTEN_DOWN_VALUE
    useful_life_years: Optional[int] = Field(None, ge=1)
    salvage_value: Optional[Decimal] = Field(None, ge=0)
    annual_management_charge: Optional[Decimal] = Field(None, ge=0)
    warranty_information: Optional[str] = None
    maintenance_schedule: Optional[str] = None
    condition: AssetCondition = AssetCondition.EXCELLENT
    unit_of_measurement: str = "Pieces"
    minimum_stock_level: int = Field(0, ge=0)
    attachments: Optional[List[Attachment]] = None


class InventoryItemCreate(InventoryItemBase):
    # Обязательность проверяется сервисом, чтобы bulk-загрузка
    # могла вернуть ошибку по конкретной строке
    unique_id: Optional[str] = None  # пусто или AUTO: номер назначит сервер
    asset_category: Optional[str] = None
    asset_name: Optional[str] = None
    vendor_name: Optional[str] = None
    rate_inclusive_tax: Optional[Decimal] = None
    location: Optional[str] = None


class InventoryItemUpdate(BaseModel):
    unique_id: Optional[str] = None
    product_serial_number: Optional[str] = None
    financial_year: Optional[str] = None
    category_type: Optional[CategoryType] = None
    asset_category: Optional[str] = None
    asset_name: Optional[str] = None
    specification: Optional[str] = None
    make_model: Optional[str] = None
    description: Optional[str] = None
    vendor_name: Optional[str] = None
    invoice_number: Optional[str] = None
    purchase_order_number: Optional[str] = None
    date_of_invoice: Optional[date] = None
    date_of_entry: Optional[date] = None
    rate_inclusive_tax: Optional[Decimal] = None
    depreciation_method: Optional[DepreciationMethod] = None
    useful_life_years: Optional[int] = Field(None, ge=1)
    salvage_value: Optional[Decimal] = Field(None, ge=0)
    annual_management_charge: Optional[Decimal] = Field(None, ge=0)
    warranty_information: Optional[str] = None
    maintenance_schedule: Optional[str] = None
    location: Optional[str] = None
    status: Optional[InventoryStatus] = None
    condition: Optional[AssetCondition] = None
    unit_of_measurement: Optional[str] = None
    minimum_stock_level: Optional[int] = Field(None, ge=0)
    attachments: Optional[List[Attachment]] = None
    # Только вместе со status=issued
    issued_to_id: Optional[UUID] = None
    expected_return_date: Optional[date] = None


class InventoryItemOut(InventoryItemBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    unique_id: str
    asset_category: str
    asset_name: str
    vendor_name: str
    rate_inclusive_tax: Decimal
    location: str
    quantity_per_item: int
    total_cost: Decimal
    status: InventoryStatus
    balance_quantity_in_stock: int
    stock_status: str
    issued_to_id: Optional[UUID] = None
    issued_by_id: Optional[UUID] = None
    date_of_issue: Optional[datetime] = None
    expected_return_date: Optional[date] = None
    created_by_id: Optional[UUID] = None
    last_modified_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Имена пользователей подставляются при чтении
    issued_to: Optional[str] = None
    issued_by: Optional[str] = None


class RowError(BaseModel):
    row: int
    message: str


class BulkCreateResult(BaseModel):
    created: int
    failed: int
    items: List[InventoryItemOut]
    errors: List[RowError]


class BulkUpdateRequest(BaseModel):
    items: List[UUID] = Field(..., min_length=1)
    updates: InventoryItemUpdate


class ItemError(BaseModel):
    item_id: UUID
    message: str


class BulkUpdateResult(BaseModel):
    updated: int
    failed: int
    items: List[InventoryItemOut]
    errors: List[ItemError]


class SerialPreviewOut(BaseModel):
    current_sequence: int
    next_serial: int
    next_serial_formatted: str


class UidPreviewOut(BaseModel):
    next_serial: int
    unique_ids: List[str]


class UidValidateRequest(BaseModel):
    unique_id: Optional[str] = None


class UidValidateOut(BaseModel):
    valid: bool
    auto: bool
    errors: List[str]


class IssueItemRequest(BaseModel):
    issued_to_id: UUID
    expected_return_date: Optional[date] = None
    purpose: Optional[str] = None
    notes: Optional[str] = None


class ReturnItemRequest(BaseModel):
    condition: Optional[AssetCondition] = None
    notes: Optional[str] = None


class StatusStats(BaseModel):
    status: InventoryStatus
    count: int
    total_value: Decimal


class InventoryStatsOut(BaseModel):
    total_items: int
    total_value: Decimal
    low_stock_count: int
    by_status: List[StatusStats]


class DepreciationYear(BaseModel):
    year: int
    opening_value: Decimal
    depreciation: Decimal
    closing_value: Decimal


class DepreciationOut(BaseModel):
    item_id: UUID
    method: DepreciationMethod
    cost: Decimal
    salvage_value: Decimal
    useful_life_years: int
    age_years: int
    current_book_value: Decimal
    accumulated_depreciation: Decimal
    schedule: List[DepreciationYear]
