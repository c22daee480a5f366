"""Сервис единиц учёта: создание, изменение, удаление, выборки, выдача и возврат."""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.modules.assets import identifiers
from backend.modules.assets.exceptions import Conflict, NotFound, ValidationFailed
from backend.modules.assets.models import (
    AssetCondition,
    AssetRequest,
    InventoryItem,
    InventoryStatus,
    InventoryTransaction,
    ReturnRequest,
    ReviewStatus,
    TransactionType,
)
from backend.modules.assets.schemas.inventory import (
    BulkCreateResult,
    BulkUpdateResult,
    InventoryItemCreate,
    InventoryItemOut,
    InventoryItemUpdate,
    InventoryStatsOut,
    IssueItemRequest,
    ItemError,
    ReturnItemRequest,
    RowError,
    StatusStats,
)
from backend.modules.assets.services import locations, serials
from backend.modules.assets.services.transactions import log_transaction
from backend.modules.hr.models.user import User

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = {
    "financial_year": "Financial year is required",
    "asset_category": "Asset category is required",
    "asset_name": "Asset name is required",
    "vendor_name": "Vendor name is required",
    "location": "Location is required",
}

# Колонки NOT NULL, которые можно менять через update: явный null запрещён
NON_NULLABLE_UPDATES = {
    "condition": "Condition cannot be empty",
    "unit_of_measurement": "Unit of measurement cannot be empty",
    "minimum_stock_level": "Minimum stock level cannot be empty",
}


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def to_out(item: InventoryItem) -> InventoryItemOut:
    out = InventoryItemOut.model_validate(item)
    if item.issued_to_user:
        out.issued_to = item.issued_to_user.full_name
    if item.issued_by_user:
        out.issued_by = item.issued_by_user.full_name
    return out


def get_item(db: Session, item_id: UUID) -> InventoryItem:
    item = db.get(InventoryItem, item_id)
    if not item:
        raise NotFound("Inventory item not found")
    return item


def get_user(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise NotFound("Employee not found")
    return user


def validate_new_item(data: InventoryItemCreate) -> List[Dict[str, str]]:
    """Ошибки по полям для новой единицы учёта (пустой список: всё в порядке)."""
    errors = []
    for field, message in REQUIRED_FIELDS.items():
        if not _clean(getattr(data, field)):
            errors.append({"field": field, "message": message})

    if _clean(data.financial_year) and not identifiers.is_valid_financial_year(
        data.financial_year.strip()
    ):
        errors.append(
            {"field": "financial_year", "message": "Financial year must look like YYYY-YY"}
        )
    if _clean(data.asset_name) and identifiers.asset_code(data.asset_name) == "---":
        errors.append(
            {"field": "asset_name", "message": "Asset name must contain at least one letter"}
        )
    if data.rate_inclusive_tax is None or data.rate_inclusive_tax <= 0:
        errors.append(
            {"field": "rate_inclusive_tax", "message": "Rate must be greater than zero"}
        )
    if (
        data.salvage_value is not None
        and data.rate_inclusive_tax is not None
        and data.salvage_value > data.rate_inclusive_tax
    ):
        errors.append(
            {"field": "salvage_value", "message": "Salvage value cannot exceed total cost"}
        )
    return errors


def _unique_id_taken(db: Session, unique_id: str, exclude_id: Optional[UUID] = None) -> bool:
    q = select(InventoryItem.id).where(InventoryItem.unique_id == unique_id)
    if exclude_id:
        q = q.where(InventoryItem.id != exclude_id)
    return db.scalar(q) is not None


def _product_serial_taken(db: Session, serial: str, exclude_id: Optional[UUID] = None) -> bool:
    q = select(InventoryItem.id).where(InventoryItem.product_serial_number == serial)
    if exclude_id:
        q = q.where(InventoryItem.id != exclude_id)
    return db.scalar(q) is not None


def _serial_in_use(db: Session, serial: int) -> bool:
    """Номер уже есть в каком-либо идентификаторе (под любым кодом актива)."""
    suffix = "/" + identifiers.format_serial(serial)
    q = select(InventoryItem.id).where(InventoryItem.unique_id.endswith(suffix)).limit(1)
    return db.scalar(q) is not None


def assign_unique_id(db: Session, data: InventoryItemCreate) -> str:
    """
    Окончательный идентификатор новой единицы.

    Без явного значения (или с маркером AUTO) серийный номер берётся из
    глобального счётчика; явный идентификатор проверяется на формат и
    на дубликат.
    """
    if identifiers.is_auto(data.unique_id):
        while True:
            serial = serials.next_serial(db)
            unique_id = identifiers.compose_unique_id(
                data.financial_year.strip(), data.asset_name, data.location, serial
            )
            # номер мог быть занят идентификатором, введённым вручную
            if not _serial_in_use(db, serial):
                return unique_id
            logger.warning("Serial %s skipped: already used by another item", serial)

    unique_id = data.unique_id.strip().upper()
    problems = identifiers.validate_unique_id(unique_id)
    if problems:
        raise ValidationFailed(
            "Invalid unique ID",
            errors=[{"field": "unique_id", "message": p} for p in problems],
        )
    if _unique_id_taken(db, unique_id):
        raise Conflict(f"uniqueId already exists: {unique_id}. Please use a different unique ID.")
    return unique_id


def _flush(db: Session) -> None:
    try:
        db.flush()
    except IntegrityError as e:
        err = str(e.orig).lower()
        if "product_serial_number" in err:
            raise Conflict("productSerialNumber already exists") from e
        if "unique_id" in err:
            raise Conflict("uniqueId already exists") from e
        raise


def create_item(db: Session, data: InventoryItemCreate, user: User) -> InventoryItem:
    """Создаёт единицу учёта со статусом available. Commit делает вызывающий."""
    errors = validate_new_item(data)
    location_error = locations.assignment_error(db, data.location)
    if location_error:
        errors.append({"field": "location", "message": location_error})
    if errors:
        raise ValidationFailed("Validation failed", errors=errors)

    product_serial = _clean(data.product_serial_number)
    if product_serial and _product_serial_taken(db, product_serial):
        raise Conflict(f"productSerialNumber already exists: {product_serial}")

    unique_id = assign_unique_id(db, data)

    fields = data.model_dump(exclude={"unique_id", "product_serial_number", "attachments"})
    for key in ("financial_year", "asset_category", "asset_name", "vendor_name", "location"):
        fields[key] = fields[key].strip()
    item = InventoryItem(
        **fields,
        unique_id=unique_id,
        product_serial_number=product_serial,
        attachments=[a.model_dump() for a in data.attachments] if data.attachments else None,
        quantity_per_item=1,
        total_cost=data.rate_inclusive_tax * 1,
        status=InventoryStatus.AVAILABLE,
        balance_quantity_in_stock=1,
        created_by_id=user.id,
        last_modified_by=user.full_name,
    )
    db.add(item)
    _flush(db)

    log_transaction(
        db,
        item,
        TransactionType.PURCHASE,
        previous_quantity=0,
        performed_by_id=user.id,
        purpose="Initial Purchase",
        notes="Item added to inventory",
        condition=item.condition,
    )
    logger.info("Inventory item %s created by %s", unique_id, user.email)
    return item


def bulk_create(db: Session, rows: Sequence[Dict[str, Any]], user: User) -> BulkCreateResult:
    """
    Создаёт несколько единиц. Ошибка в строке не прерывает загрузку:
    каждая строка выполняется в своей точке сохранения.
    """
    created: List[InventoryItem] = []
    errors: List[RowError] = []
    for index, row in enumerate(rows, start=1):
        try:
            data = InventoryItemCreate.model_validate(row)
            with db.begin_nested():
                item = create_item(db, data, user)
            created.append(item)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            errors.append(RowError(row=index, message=f"Invalid value for: {fields}"))
        except ValidationFailed as e:
            details = "; ".join(err["message"] for err in e.errors) or e.message
            errors.append(RowError(row=index, message=details))
        except Conflict as e:
            errors.append(RowError(row=index, message=e.message))

    logger.info("Bulk create: %s created, %s failed", len(created), len(errors))
    return BulkCreateResult(
        created=len(created),
        failed=len(errors),
        items=[to_out(i) for i in created],
        errors=errors,
    )


def _clear_issuance(item: InventoryItem) -> None:
    item.issued_to_id = None
    item.issued_by_id = None
    item.date_of_issue = None
    item.expected_return_date = None


def update_item(
    db: Session, item: InventoryItem, data: InventoryItemUpdate, user: User
) -> InventoryItem:
    """
    Частичное обновление.

    Смена места хранения переписывает только сегмент места в unique_id.
    Уход из статуса issued очищает поля выдачи.
    """
    payload = data.model_dump(exclude_unset=True)
    empty = [
        {"field": key, "message": message}
        for key, message in NON_NULLABLE_UPDATES.items()
        if key in payload and payload[key] is None
    ]
    if empty:
        raise ValidationFailed("Validation failed", errors=empty)
    if "unit_of_measurement" in payload:
        if not _clean(payload["unit_of_measurement"]):
            raise ValidationFailed(NON_NULLABLE_UPDATES["unit_of_measurement"])
        payload["unit_of_measurement"] = payload["unit_of_measurement"].strip()

    previous_status = item.status
    previous_quantity = item.balance_quantity_in_stock

    new_unique_id = payload.pop("unique_id", None)
    if new_unique_id and new_unique_id.strip().upper() != item.unique_id:
        if not identifiers.validate_unique_id(item.unique_id):
            raise ValidationFailed("Unique ID cannot be changed once assigned")
        new_unique_id = new_unique_id.strip().upper()
        problems = identifiers.validate_unique_id(new_unique_id)
        if problems:
            raise ValidationFailed(
                "Invalid unique ID",
                errors=[{"field": "unique_id", "message": p} for p in problems],
            )
        if _unique_id_taken(db, new_unique_id, exclude_id=item.id):
            raise Conflict(f"uniqueId already exists: {new_unique_id}")
        item.unique_id = new_unique_id

    for key in ("asset_category", "asset_name", "vendor_name", "location", "financial_year"):
        if key in payload:
            if not _clean(payload[key]):
                raise ValidationFailed(REQUIRED_FIELDS[key])
            payload[key] = payload[key].strip()
    if "financial_year" in payload and not identifiers.is_valid_financial_year(
        payload["financial_year"]
    ):
        raise ValidationFailed("Financial year must look like YYYY-YY")

    if "product_serial_number" in payload:
        product_serial = _clean(payload.pop("product_serial_number"))
        if product_serial and _product_serial_taken(db, product_serial, exclude_id=item.id):
            raise Conflict(f"productSerialNumber already exists: {product_serial}")
        item.product_serial_number = product_serial

    if "rate_inclusive_tax" in payload:
        rate = payload.pop("rate_inclusive_tax")
        if rate is None or rate <= 0:
            raise ValidationFailed("Rate must be greater than zero")
        item.rate_inclusive_tax = rate
        item.total_cost = rate * (item.quantity_per_item or 1)

    if "location" in payload:
        location = payload.pop("location")
        if location != item.location:
            location_error = locations.assignment_error(db, location)
            if location_error:
                raise ValidationFailed(
                    location_error, errors=[{"field": "location", "message": location_error}]
                )
            item.location = location
            item.unique_id = identifiers.replace_location(item.unique_id, location)
            if _unique_id_taken(db, item.unique_id, exclude_id=item.id):
                raise Conflict(f"uniqueId already exists: {item.unique_id}")

    if "attachments" in payload:
        attachments = payload.pop("attachments")
        item.attachments = attachments or None

    new_status = payload.pop("status", None) or item.status
    issued_to_id = payload.pop("issued_to_id", None)
    expected_return_date = payload.pop("expected_return_date", None)

    if new_status == InventoryStatus.ISSUED:
        if issued_to_id:
            item.issued_to_id = get_user(db, issued_to_id).id
        elif not item.issued_to_id:
            raise ValidationFailed("issued_to_id is required when status is issued")
        if previous_status != InventoryStatus.ISSUED:
            item.issued_by_id = user.id
            item.date_of_issue = _now()
        if expected_return_date is not None:
            item.expected_return_date = expected_return_date
    else:
        if issued_to_id or expected_return_date:
            raise ValidationFailed("Issuance fields can only be set together with status issued")
        _clear_issuance(item)

    item.status = new_status
    item.balance_quantity_in_stock = 1 if new_status == InventoryStatus.AVAILABLE else 0

    for key, value in payload.items():
        setattr(item, key, value)

    item.last_modified_by = user.full_name
    _flush(db)

    if previous_status != new_status and InventoryStatus.ISSUED in (previous_status, new_status):
        issuing = new_status == InventoryStatus.ISSUED
        log_transaction(
            db,
            item,
            TransactionType.ISSUE if issuing else TransactionType.RETURN,
            previous_quantity=previous_quantity,
            performed_by_id=user.id,
            issued_to_id=item.issued_to_id if issuing else None,
            notes=f"Status changed from {previous_status.value} to {new_status.value}",
            expected_return_date=item.expected_return_date if issuing else None,
            actual_return_date=None if issuing else _now(),
        )
    elif previous_status != new_status and new_status == InventoryStatus.MAINTENANCE:
        log_transaction(
            db,
            item,
            TransactionType.MAINTENANCE,
            previous_quantity=previous_quantity,
            performed_by_id=user.id,
            notes="Item sent to maintenance",
        )
    elif previous_status != new_status and new_status == InventoryStatus.RETIRED:
        log_transaction(
            db,
            item,
            TransactionType.DISPOSAL,
            previous_quantity=previous_quantity,
            performed_by_id=user.id,
            notes="Item retired",
        )
    return item


def bulk_update(
    db: Session, item_ids: Sequence[UUID], data: InventoryItemUpdate, user: User
) -> BulkUpdateResult:
    updated: List[InventoryItem] = []
    errors: List[ItemError] = []
    for item_id in item_ids:
        try:
            with db.begin_nested():
                item = get_item(db, item_id)
                update_item(db, item, data, user)
            updated.append(item)
        except (ValidationFailed, Conflict, NotFound) as e:
            errors.append(ItemError(item_id=item_id, message=e.message))

    logger.info("Bulk update: %s updated, %s failed", len(updated), len(errors))
    return BulkUpdateResult(
        updated=len(updated),
        failed=len(errors),
        items=[to_out(i) for i in updated],
        errors=errors,
    )


def delete_item(db: Session, item: InventoryItem) -> None:
    """
    Удаляет единицу учёта.

    Запрещено, пока единица выдана или по ней есть pending-заявка на
    возврат. Журнал удаляется, завершённые заявки остаются без ссылки.
    """
    if item.status == InventoryStatus.ISSUED:
        raise Conflict("Cannot delete item that is currently issued")
    pending_returns = db.scalar(
        select(func.count())
        .select_from(ReturnRequest)
        .where(
            ReturnRequest.inventory_item_id == item.id,
            ReturnRequest.status == ReviewStatus.PENDING,
        )
    )
    if pending_returns:
        raise Conflict("Cannot delete item with a pending return request")

    db.execute(
        update(AssetRequest)
        .where(AssetRequest.inventory_item_id == item.id)
        .values(inventory_item_id=None)
        .execution_options(synchronize_session="fetch")
    )
    db.execute(
        update(ReturnRequest)
        .where(ReturnRequest.inventory_item_id == item.id)
        .values(inventory_item_id=None)
        .execution_options(synchronize_session="fetch")
    )
    for record in db.scalars(
        select(InventoryTransaction).where(InventoryTransaction.inventory_item_id == item.id)
    ):
        db.delete(record)
    db.delete(item)
    db.flush()
    logger.info("Inventory item %s deleted", item.unique_id)


# --- Условные переходы: проверка статуса и запись одним UPDATE ---


def mark_issued(
    db: Session,
    item_id: UUID,
    recipient: User,
    issued_by: User,
    expected_return_date: Optional[date] = None,
) -> bool:
    """
    available -> issued одним UPDATE ... WHERE status='available'.

    False, если единицу уже выдали (или она недоступна): из двух
    параллельных одобрений выигрывает только одно.
    """
    result = db.execute(
        update(InventoryItem)
        .where(
            InventoryItem.id == item_id,
            InventoryItem.status == InventoryStatus.AVAILABLE,
        )
        .values(
            status=InventoryStatus.ISSUED,
            issued_to_id=recipient.id,
            issued_by_id=issued_by.id,
            date_of_issue=_now(),
            expected_return_date=expected_return_date,
            balance_quantity_in_stock=0,
            last_modified_by=issued_by.full_name,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def mark_returned(
    db: Session,
    item_id: UUID,
    returned_by: User,
    condition: Optional[AssetCondition] = None,
    holder_id: Optional[UUID] = None,
) -> bool:
    """
    issued -> available одним UPDATE ... WHERE status='issued'.

    С holder_id единица принимается, только если выдана именно ему.
    """
    values: Dict[str, Any] = {
        "status": InventoryStatus.AVAILABLE,
        "issued_to_id": None,
        "issued_by_id": None,
        "date_of_issue": None,
        "expected_return_date": None,
        "balance_quantity_in_stock": 1,
        "last_modified_by": returned_by.full_name,
    }
    if condition is not None:
        values["condition"] = condition
    stmt = update(InventoryItem).where(
        InventoryItem.id == item_id,
        InventoryItem.status == InventoryStatus.ISSUED,
    )
    if holder_id is not None:
        stmt = stmt.where(InventoryItem.issued_to_id == holder_id)
    result = db.execute(
        stmt.values(**values).execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def unavailable_reason(item: InventoryItem) -> str:
    if item.status == InventoryStatus.ISSUED:
        return "Inventory item is already issued"
    return f"Inventory item is not available (status: {item.status.value})"


def issue_item(db: Session, item_id: UUID, data: IssueItemRequest, user: User) -> InventoryItem:
    """Прямая выдача со склада (без заявки)."""
    item = get_item(db, item_id)
    recipient = get_user(db, data.issued_to_id)
    if not mark_issued(db, item.id, recipient, user, data.expected_return_date):
        db.refresh(item)
        raise Conflict(unavailable_reason(item))
    db.refresh(item)
    log_transaction(
        db,
        item,
        TransactionType.ISSUE,
        previous_quantity=1,
        performed_by_id=user.id,
        issued_to_id=recipient.id,
        purpose=data.purpose or "Direct Issue",
        notes=data.notes or "Item issued to employee",
        expected_return_date=data.expected_return_date,
    )
    logger.info("Item %s issued to %s by %s", item.unique_id, recipient.email, user.email)
    return item


def return_item(db: Session, item_id: UUID, data: ReturnItemRequest, user: User) -> InventoryItem:
    """Прямой приём на склад (без заявки на возврат)."""
    item = get_item(db, item_id)
    previous_holder = item.issued_to_id
    if not mark_returned(db, item.id, user, data.condition):
        raise Conflict("Item is not currently issued")
    db.refresh(item)
    log_transaction(
        db,
        item,
        TransactionType.RETURN,
        previous_quantity=0,
        performed_by_id=user.id,
        issued_to_id=previous_holder,
        purpose="Item Return",
        notes=data.notes or "Item returned to inventory",
        condition=data.condition or item.condition,
        actual_return_date=_now(),
    )
    logger.info("Item %s returned by %s", item.unique_id, user.email)
    return item


def find_available_for_type(db: Session, item_type: str) -> List[InventoryItem]:
    """
    Свободные единицы для автоподбора: точное совпадение названия без
    учёта регистра, иначе по совпадению категории.
    """
    wanted = item_type.strip().lower()
    base = select(InventoryItem).where(InventoryItem.status == InventoryStatus.AVAILABLE)
    order = (InventoryItem.created_at, InventoryItem.unique_id)
    by_name = db.scalars(
        base.where(func.lower(InventoryItem.asset_name) == wanted).order_by(*order)
    ).all()
    if by_name:
        return list(by_name)
    return list(
        db.scalars(
            base.where(func.lower(InventoryItem.asset_category) == wanted).order_by(*order)
        ).all()
    )


# --- Выборки ---


def list_items(
    db: Session,
    status: Optional[InventoryStatus] = None,
    category: Optional[str] = None,
    category_type: Optional[str] = None,
    location: Optional[str] = None,
    condition: Optional[AssetCondition] = None,
    stock_status: Optional[str] = None,
    search: Optional[str] = None,
    offset: int = 0,
    limit: int = 20,
) -> List[InventoryItem]:
    q = select(InventoryItem)
    if status:
        q = q.where(InventoryItem.status == status)
    if category:
        q = q.where(InventoryItem.asset_category == category)
    if category_type:
        q = q.where(InventoryItem.category_type == category_type)
    if location:
        q = q.where(InventoryItem.location == location)
    if condition:
        q = q.where(InventoryItem.condition == condition)
    if stock_status == "low":
        q = q.where(InventoryItem.balance_quantity_in_stock <= InventoryItem.minimum_stock_level)
    elif stock_status == "out":
        q = q.where(InventoryItem.balance_quantity_in_stock == 0)
    elif stock_status == "available":
        q = q.where(InventoryItem.balance_quantity_in_stock > 0)
    if search and search.strip():
        s = f"%{search.strip()}%"
        q = q.where(
            or_(
                InventoryItem.unique_id.ilike(s),
                InventoryItem.asset_name.ilike(s),
                InventoryItem.asset_category.ilike(s),
                InventoryItem.vendor_name.ilike(s),
                InventoryItem.product_serial_number.ilike(s),
                InventoryItem.location.ilike(s),
            )
        )
    q = q.order_by(InventoryItem.created_at.desc(), InventoryItem.unique_id.desc())
    return list(db.scalars(q.offset(offset).limit(limit)).all())


def low_stock_items(db: Session) -> List[InventoryItem]:
    return list(
        db.scalars(
            select(InventoryItem)
            .where(
                InventoryItem.status == InventoryStatus.AVAILABLE,
                InventoryItem.balance_quantity_in_stock <= InventoryItem.minimum_stock_level,
            )
            .order_by(InventoryItem.balance_quantity_in_stock)
        ).all()
    )


def items_by_status(db: Session, status: InventoryStatus) -> List[InventoryItem]:
    order = (
        InventoryItem.date_of_issue.desc()
        if status == InventoryStatus.ISSUED
        else InventoryItem.asset_name
    )
    return list(
        db.scalars(select(InventoryItem).where(InventoryItem.status == status).order_by(order)).all()
    )


def items_issued_to(db: Session, user_id: UUID) -> List[InventoryItem]:
    return list(
        db.scalars(
            select(InventoryItem)
            .where(
                InventoryItem.status == InventoryStatus.ISSUED,
                InventoryItem.issued_to_id == user_id,
            )
            .order_by(InventoryItem.asset_name)
        ).all()
    )


def inventory_stats(db: Session) -> InventoryStatsOut:
    rows = db.execute(
        select(
            InventoryItem.status,
            func.count(),
            func.coalesce(func.sum(InventoryItem.total_cost), 0),
        ).group_by(InventoryItem.status)
    ).all()
    by_status = [
        StatusStats(status=status, count=count, total_value=Decimal(str(total)))
        for status, count, total in rows
    ]
    return InventoryStatsOut(
        total_items=sum(s.count for s in by_status),
        total_value=sum((s.total_value for s in by_status), Decimal("0")),
        low_stock_count=len(low_stock_items(db)),
        by_status=by_status,
    )


def available_asset_names(db: Session) -> List[str]:
    """Названия свободных единиц, по которым ещё нет pending/approved заявки."""
    requested = {
        t.strip().lower()
        for t in db.scalars(
            select(AssetRequest.item_type).where(
                AssetRequest.status.in_([ReviewStatus.PENDING, ReviewStatus.APPROVED])
            )
        )
    }
    names = {
        n.strip()
        for n in db.scalars(
            select(InventoryItem.asset_name).where(
                InventoryItem.status == InventoryStatus.AVAILABLE,
                InventoryItem.balance_quantity_in_stock > 0,
            )
        )
        if n and n.strip()
    }
    return sorted(n for n in names if n.lower() not in requested)
