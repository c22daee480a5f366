"""
Модели модуля учёта активов
"""

import enum
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from backend.core.database import Base


class InventoryStatus(str, enum.Enum):
    AVAILABLE = "available"
    ISSUED = "issued"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"


class AssetCondition(str, enum.Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    DAMAGED = "damaged"


class CategoryType(str, enum.Enum):
    MAJOR = "major"
    MINOR = "minor"


class DepreciationMethod(str, enum.Enum):
    STRAIGHT_LINE = "straight-line"
    WRITTEN_DOWN_VALUE = "written-down-value"


class LocationType(str, enum.Enum):
    STORAGE = "storage"
    OFFICE = "office"
    LAB = "lab"
    WORKSHOP = "workshop"
    WAREHOUSE = "warehouse"
    OTHER = "other"


class ReviewStatus(str, enum.Enum):
    """Статус заявки на выдачу и заявки на возврат"""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RequestPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TransactionType(str, enum.Enum):
    PURCHASE = "purchase"
    ISSUE = "issue"
    RETURN = "return"
    ADJUSTMENT = "adjustment"
    DISPOSAL = "disposal"
    MAINTENANCE = "maintenance"


def _enum_column(enum_cls, **kwargs) -> Column:
    # В БД храним значения ("available"), а не имена членов (AVAILABLE)
    return Column(
        Enum(
            enum_cls,
            native_enum=False,
            length=32,
            values_callable=lambda e: [m.value for m in e],
        ),
        **kwargs,
    )


class SerialCounter(Base):
    """Глобальный счётчик серийных номеров (одна строка id='global')"""

    __tablename__ = "serial_counters"

    id = Column(String(32), primary_key=True, default="global")
    value = Column(Integer, default=0, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class InventoryItem(Base):
    """Единица учёта, один физический актив"""

    __tablename__ = "inventory_items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    unique_id = Column(String(255), unique=True, nullable=False)
    product_serial_number = Column(String(255), unique=True, nullable=True)
    financial_year = Column(String(7), nullable=True)  # 2024-25

    # Классификация
    category_type = _enum_column(CategoryType, default=CategoryType.MAJOR, nullable=False)
    asset_category = Column(String(255), nullable=False)
    asset_name = Column(String(255), nullable=False)
    specification = Column(Text, nullable=True)
    make_model = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)

    # Закупка и финансы
    vendor_name = Column(String(255), nullable=False)
    invoice_number = Column(String(255), nullable=True)
    purchase_order_number = Column(String(255), nullable=True)
    date_of_invoice = Column(Date, nullable=True)
    date_of_entry = Column(Date, nullable=True)
    rate_inclusive_tax = Column(Numeric(12, 2), nullable=False)
    quantity_per_item = Column(Integer, default=1, nullable=False)
    total_cost = Column(Numeric(12, 2), nullable=False)
    depreciation_method = _enum_column(
        DepreciationMethod, default=DepreciationMethod.WRITTEN_DOWN_VALUE, nullable=True
    )
    useful_life_years = Column(Integer, nullable=True)
    salvage_value = Column(Numeric(12, 2), default=0, nullable=True)
    annual_management_charge = Column(Numeric(12, 2), nullable=True)
    warranty_information = Column(Text, nullable=True)
    maintenance_schedule = Column(Text, nullable=True)

    # Размещение и состояние
    location = Column(String(255), nullable=False)
    status = _enum_column(InventoryStatus, default=InventoryStatus.AVAILABLE, nullable=False)
    condition = _enum_column(AssetCondition, default=AssetCondition.EXCELLENT, nullable=False)
    unit_of_measurement = Column(String(50), default="Pieces", nullable=False)
    balance_quantity_in_stock = Column(Integer, default=1, nullable=False)
    minimum_stock_level = Column(Integer, default=0, nullable=False)

    # Выдача: заполнено только при status=issued
    issued_to_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    issued_by_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    date_of_issue = Column(DateTime(timezone=True), nullable=True)
    expected_return_date = Column(Date, nullable=True)

    # [{"name": ..., "url": ...}]: файлы загружаются отдельно
    attachments = Column(JSON, nullable=True)

    created_by_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    last_modified_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    issued_to_user = relationship("User", foreign_keys=[issued_to_id])
    issued_by_user = relationship("User", foreign_keys=[issued_by_id])
    created_by_user = relationship("User", foreign_keys=[created_by_id])

    __table_args__ = (
        Index("ix_inventory_items_status", "status"),
        Index("ix_inventory_items_asset_category", "asset_category"),
        Index("ix_inventory_items_location", "location"),
        Index("ix_inventory_items_issued_to_id", "issued_to_id"),
    )

    @property
    def stock_status(self) -> str:
        if self.balance_quantity_in_stock <= 0:
            return "out_of_stock"
        if self.balance_quantity_in_stock <= self.minimum_stock_level:
            return "low_stock"
        return "in_stock"


class AssetRequest(Base):
    """Заявка сотрудника на выдачу актива"""

    __tablename__ = "asset_requests"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    employee_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    item_type = Column(String(255), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    purpose = Column(String(500), nullable=False)
    justification = Column(String(1000), nullable=False)
    priority = _enum_column(RequestPriority, default=RequestPriority.MEDIUM, nullable=False)
    department = Column(String(255), nullable=True)
    project = Column(String(255), nullable=True)
    estimated_cost = Column(Numeric(12, 2), nullable=True)
    expected_return_date = Column(Date, nullable=True)

    status = _enum_column(ReviewStatus, default=ReviewStatus.PENDING, nullable=False)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now())

    # Рассмотрение
    reviewed_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    remarks = Column(String(500), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    approved_quantity = Column(Integer, nullable=True)

    # Единица проставляется при одобрении
    inventory_item_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("inventory_items.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    employee = relationship("User", foreign_keys=[employee_id])
    reviewed_by = relationship("User", foreign_keys=[reviewed_by_id])
    inventory_item = relationship("InventoryItem", foreign_keys=[inventory_item_id])

    __table_args__ = (
        Index("ix_asset_requests_employee_id", "employee_id"),
        Index("ix_asset_requests_status", "status"),
        Index("ix_asset_requests_submitted_at", "submitted_at"),
        Index("ix_asset_requests_inventory_item_id", "inventory_item_id"),
    )


class ReturnRequest(Base):
    """Заявка сотрудника на возврат выданного актива"""

    __tablename__ = "return_requests"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    employee_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    # NULL только после удаления единицы учёта (история сохраняется)
    inventory_item_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("inventory_items.id", ondelete="SET NULL"),
        nullable=True,
    )
    asset_name = Column(String(255), nullable=False)
    return_reason = Column(Text, nullable=False)
    condition_on_return = _enum_column(
        AssetCondition, default=AssetCondition.GOOD, nullable=False
    )
    notes = Column(Text, nullable=True)

    status = _enum_column(ReviewStatus, default=ReviewStatus.PENDING, nullable=False)
    requested_at = Column(DateTime(timezone=True), server_default=func.now())

    reviewed_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    approval_remarks = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    employee = relationship("User", foreign_keys=[employee_id])
    reviewed_by = relationship("User", foreign_keys=[reviewed_by_id])
    inventory_item = relationship("InventoryItem", foreign_keys=[inventory_item_id])

    __table_args__ = (
        Index("ix_return_requests_employee_id", "employee_id"),
        Index("ix_return_requests_status", "status"),
        Index("ix_return_requests_requested_at", "requested_at"),
        # Не более одной pending-заявки на возврат для единицы учёта
        Index(
            "uq_return_requests_pending_item",
            "inventory_item_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )


class InventoryTransaction(Base):
    """Журнал движения единиц учёта (поступление, выдача, возврат...)"""

    __tablename__ = "inventory_transactions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    inventory_item_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("inventory_items.id", ondelete="CASCADE"),
        nullable=False,
    )
    transaction_type = _enum_column(TransactionType, nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    previous_quantity = Column(Integer, nullable=False)
    new_quantity = Column(Integer, nullable=False)

    issued_to_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    performed_by_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    request_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("asset_requests.id", ondelete="SET NULL"),
        nullable=True,
    )
    return_request_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("return_requests.id", ondelete="SET NULL"),
        nullable=True,
    )

    purpose = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    condition = _enum_column(AssetCondition, nullable=True)
    expected_return_date = Column(Date, nullable=True)
    actual_return_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    inventory_item = relationship("InventoryItem", foreign_keys=[inventory_item_id])
    issued_to_user = relationship("User", foreign_keys=[issued_to_id])
    performed_by_user = relationship("User", foreign_keys=[performed_by_id])

    __table_args__ = (
        Index("ix_inventory_transactions_item", "inventory_item_id"),
        Index("ix_inventory_transactions_type", "transaction_type"),
        Index("ix_inventory_transactions_created_at", "created_at"),
    )


class Category(Base):
    """
    Справочник категорий активов (major/minor) со списком допустимых
    названий активов. Единица учёта хранит название категории строкой.
    """

    __tablename__ = "asset_categories"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(100), unique=True, nullable=False)
    category_type = _enum_column(CategoryType, nullable=False)
    description = Column(String(500), nullable=True)
    category_code = Column(String(20), unique=True, nullable=False)
    parent_id = Column(
        Uuid(as_uuid=True), ForeignKey("asset_categories.id", ondelete="SET NULL"), nullable=True
    )
    depreciation_rate = Column(Numeric(5, 2), nullable=True)
    lifespan_years = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_by_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    parent = relationship("Category", remote_side=[id])
    asset_names = relationship(
        "CategoryAssetName",
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="CategoryAssetName.name",
    )

    __table_args__ = (
        Index("ix_asset_categories_type", "category_type"),
        Index("ix_asset_categories_is_active", "is_active"),
    )


class CategoryAssetName(Base):
    """Название актива внутри категории (для выпадающих списков)"""

    __tablename__ = "category_asset_names"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    category_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("asset_categories.id", ondelete="CASCADE"),
        nullable=False,
    )
    name = Column(String(255), nullable=False)
    description = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    category = relationship("Category", back_populates="asset_names")

    __table_args__ = (
        Index("uq_category_asset_names_name", "category_id", "name", unique=True),
    )


class Location(Base):
    """Место хранения. Единица учёта ссылается на него по названию."""

    __tablename__ = "asset_locations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(String(500), nullable=True)
    address = Column(String(200), nullable=True)
    capacity = Column(Integer, default=50, nullable=False)
    location_type = _enum_column(LocationType, default=LocationType.STORAGE, nullable=False)
    floor = Column(String(50), nullable=True)
    building = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    # Не более одного места по умолчанию, следит сервис
    is_default = Column(Boolean, default=False, nullable=False)

    created_by_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    last_modified_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_asset_locations_is_active", "is_active"),
        Index("ix_asset_locations_type", "location_type"),
    )
