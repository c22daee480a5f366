"""Журнал движения единиц учёта."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from backend.modules.assets.models import (
    AssetCondition,
    InventoryItem,
    InventoryTransaction,
    TransactionType,
)
from backend.modules.assets.schemas.transaction import TransactionOut


def log_transaction(
    db: Session,
    item: InventoryItem,
    transaction_type: TransactionType,
    previous_quantity: int,
    performed_by_id: Optional[UUID] = None,
    issued_to_id: Optional[UUID] = None,
    request_id: Optional[UUID] = None,
    return_request_id: Optional[UUID] = None,
    purpose: Optional[str] = None,
    notes: Optional[str] = None,
    condition: Optional[AssetCondition] = None,
    expected_return_date: Optional[date] = None,
    actual_return_date: Optional[datetime] = None,
) -> InventoryTransaction:
    """
    Добавляет запись журнала в текущую транзакцию.

    commit делает вызывающий код вместе с изменением, которое
    записывается в журнал.
    """
    record = InventoryTransaction(
        inventory_item_id=item.id,
        transaction_type=transaction_type,
        quantity=item.quantity_per_item or 1,
        previous_quantity=previous_quantity,
        new_quantity=item.balance_quantity_in_stock,
        issued_to_id=issued_to_id,
        performed_by_id=performed_by_id,
        request_id=request_id,
        return_request_id=return_request_id,
        purpose=purpose,
        notes=notes,
        condition=condition,
        expected_return_date=expected_return_date,
        actual_return_date=actual_return_date,
    )
    db.add(record)
    return record


def list_transactions(
    db: Session,
    item_id: Optional[UUID] = None,
    transaction_type: Optional[TransactionType] = None,
    user_id: Optional[UUID] = None,
    offset: int = 0,
    limit: int = 20,
) -> List[InventoryTransaction]:
    q = select(InventoryTransaction)
    if item_id:
        q = q.where(InventoryTransaction.inventory_item_id == item_id)
    if transaction_type:
        q = q.where(InventoryTransaction.transaction_type == transaction_type)
    if user_id:
        q = q.where(
            or_(
                InventoryTransaction.issued_to_id == user_id,
                InventoryTransaction.performed_by_id == user_id,
            )
        )
    q = q.order_by(InventoryTransaction.created_at.desc()).offset(offset).limit(limit)
    return list(db.scalars(q).all())


def to_out(record: InventoryTransaction) -> TransactionOut:
    out = TransactionOut.model_validate(record)
    if record.inventory_item:
        out.item_unique_id = record.inventory_item.unique_id
        out.item_name = record.inventory_item.asset_name
    if record.issued_to_user:
        out.issued_to_name = record.issued_to_user.full_name
    if record.performed_by_user:
        out.performed_by_name = record.performed_by_user.full_name
    return out
