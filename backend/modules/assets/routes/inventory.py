"""Роуты /inventory: единицы учёта, идентификаторы, выдача и возврат со склада."""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from backend.modules.assets import identifiers
from backend.modules.assets.dependencies import (
    Pagination,
    get_current_user,
    get_db,
    require_reviewer,
)
from backend.modules.assets.models import AssetCondition, CategoryType, InventoryStatus
from backend.modules.assets.schemas.inventory import (
    BulkCreateResult,
    BulkUpdateRequest,
    BulkUpdateResult,
    DepreciationOut,
    InventoryItemCreate,
    InventoryItemOut,
    InventoryItemUpdate,
    InventoryStatsOut,
    IssueItemRequest,
    ReturnItemRequest,
    SerialPreviewOut,
    UidPreviewOut,
    UidValidateOut,
    UidValidateRequest,
)
from backend.modules.assets.schemas.transaction import TransactionOut
from backend.modules.assets.services import depreciation, serials, transactions
from backend.modules.assets.services import inventory as service
from backend.modules.hr.models.user import User

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("/", response_model=List[InventoryItemOut])
def list_inventory(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    pagination: Pagination = Depends(),
    status: Optional[InventoryStatus] = Query(None),
    category: Optional[str] = Query(None),
    category_type: Optional[CategoryType] = Query(None),
    location: Optional[str] = Query(None),
    condition: Optional[AssetCondition] = Query(None),
    stock_status: Optional[str] = Query(None, pattern="^(low|out|available)$"),
    search: Optional[str] = Query(None),
) -> List[InventoryItemOut]:
    """Список единиц учёта с фильтрами"""
    items = service.list_items(
        db,
        status=status,
        category=category,
        category_type=category_type,
        location=location,
        condition=condition,
        stock_status=stock_status,
        search=search,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    return [service.to_out(i) for i in items]


@router.get("/next-serial-preview", response_model=SerialPreviewOut)
def next_serial_preview(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> SerialPreviewOut:
    """Следующий серийный номер. Только для показа: номер не резервируется."""
    current = serials.current_sequence(db)
    return SerialPreviewOut(
        current_sequence=current,
        next_serial=current + 1,
        next_serial_formatted=identifiers.format_serial(current + 1),
    )


@router.get("/uid-preview", response_model=UidPreviewOut)
def uid_preview(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    financial_year: Optional[str] = Query(None),
    asset_name: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    count: int = Query(1, ge=1, le=100),
) -> UidPreviewOut:
    """Предварительные идентификаторы для формы добавления (по строке на единицу)"""
    next_serial = serials.peek_next_serial(db)
    return UidPreviewOut(
        next_serial=next_serial,
        unique_ids=identifiers.preview_unique_ids(
            financial_year, asset_name, location, next_serial, count
        ),
    )


@router.post("/uid-validate", response_model=UidValidateOut)
def uid_validate(
    payload: UidValidateRequest,
    user: User = Depends(get_current_user),
) -> UidValidateOut:
    candidate = (payload.unique_id or "").strip()
    if not candidate or candidate.upper() in identifiers.AUTO_MARKERS:
        return UidValidateOut(valid=True, auto=True, errors=[])
    errors = identifiers.validate_unique_id(candidate, allow_auto_serial=True)
    return UidValidateOut(valid=not errors, auto=identifiers.is_auto(candidate), errors=errors)


@router.get("/available", response_model=List[InventoryItemOut])
def available_items(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> List[InventoryItemOut]:
    items = service.items_by_status(db, InventoryStatus.AVAILABLE)
    return [service.to_out(i) for i in items]


@router.get("/available-asset-names", response_model=List[str])
def available_asset_names(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> List[str]:
    """Названия, которые сотрудник может запросить"""
    return service.available_asset_names(db)


@router.get("/my", response_model=List[InventoryItemOut])
def my_items(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> List[InventoryItemOut]:
    """Единицы, выданные текущему пользователю"""
    return [service.to_out(i) for i in service.items_issued_to(db, user.id)]


@router.get("/issued", response_model=List[InventoryItemOut], dependencies=[Depends(require_reviewer)])
def issued_items(db: Session = Depends(get_db)) -> List[InventoryItemOut]:
    items = service.items_by_status(db, InventoryStatus.ISSUED)
    return [service.to_out(i) for i in items]


@router.get("/low-stock", response_model=List[InventoryItemOut], dependencies=[Depends(require_reviewer)])
def low_stock(db: Session = Depends(get_db)) -> List[InventoryItemOut]:
    return [service.to_out(i) for i in service.low_stock_items(db)]


@router.get("/stats", response_model=InventoryStatsOut, dependencies=[Depends(require_reviewer)])
def inventory_stats(db: Session = Depends(get_db)) -> InventoryStatsOut:
    return service.inventory_stats(db)


@router.post("/", response_model=InventoryItemOut, status_code=201)
def create_inventory_item(
    payload: InventoryItemCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> InventoryItemOut:
    """Добавить единицу учёта. Окончательный unique_id назначает сервер."""
    item = service.create_item(db, payload, user)
    db.commit()
    db.refresh(item)
    return service.to_out(item)


@router.post("/bulk", response_model=BulkCreateResult)
def bulk_create_inventory(
    payload: List[dict],
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> BulkCreateResult:
    """Массовая загрузка: ошибки возвращаются по номерам строк, остальные строки сохраняются."""
    result = service.bulk_create(db, payload, user)
    db.commit()
    return result


@router.put("/bulk", response_model=BulkUpdateResult)
def bulk_update_inventory(
    payload: BulkUpdateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> BulkUpdateResult:
    result = service.bulk_update(db, payload.items, payload.updates, user)
    db.commit()
    return result


@router.get("/{item_id}", response_model=InventoryItemOut)
def get_inventory_item(
    item_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> InventoryItemOut:
    return service.to_out(service.get_item(db, item_id))


@router.put("/{item_id}", response_model=InventoryItemOut)
def update_inventory_item(
    item_id: UUID,
    payload: InventoryItemUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> InventoryItemOut:
    """Обновить единицу учёта. Смена места хранения меняет сегмент места в unique_id."""
    item = service.update_item(db, service.get_item(db, item_id), payload, user)
    db.commit()
    db.refresh(item)
    return service.to_out(item)


@router.delete("/{item_id}", status_code=204)
def delete_inventory_item(
    item_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> Response:
    service.delete_item(db, service.get_item(db, item_id))
    db.commit()
    return Response(status_code=204)


@router.post("/{item_id}/issue", response_model=InventoryItemOut)
def issue_inventory_item(
    item_id: UUID,
    payload: IssueItemRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> InventoryItemOut:
    """Выдать единицу со склада без заявки"""
    item = service.issue_item(db, item_id, payload, user)
    db.commit()
    db.refresh(item)
    return service.to_out(item)


@router.post("/{item_id}/return", response_model=InventoryItemOut)
def return_inventory_item(
    item_id: UUID,
    payload: ReturnItemRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> InventoryItemOut:
    """Принять единицу на склад без заявки на возврат"""
    item = service.return_item(db, item_id, payload, user)
    db.commit()
    db.refresh(item)
    return service.to_out(item)


@router.get(
    "/{item_id}/transactions",
    response_model=List[TransactionOut],
    dependencies=[Depends(require_reviewer)],
)
def item_transactions(
    item_id: UUID,
    db: Session = Depends(get_db),
    pagination: Pagination = Depends(),
) -> List[TransactionOut]:
    service.get_item(db, item_id)
    records = transactions.list_transactions(
        db, item_id=item_id, offset=pagination.offset, limit=pagination.limit
    )
    return [transactions.to_out(r) for r in records]


@router.get(
    "/{item_id}/depreciation",
    response_model=DepreciationOut,
    dependencies=[Depends(require_reviewer)],
)
def item_depreciation(item_id: UUID, db: Session = Depends(get_db)) -> DepreciationOut:
    return depreciation.depreciation_for(service.get_item(db, item_id))
