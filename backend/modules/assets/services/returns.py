"""Заявки на возврат выданного актива: pending -> approved | rejected."""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.modules.assets.exceptions import (
    Conflict,
    NotFound,
    PermissionDenied,
    ValidationFailed,
)
from backend.modules.assets.models import (
    InventoryItem,
    InventoryStatus,
    ReturnRequest,
    ReviewStatus,
    TransactionType,
)
from backend.modules.assets.schemas.return_request import (
    ApproveReturn,
    RejectReturn,
    ReturnRequestCreate,
    ReturnRequestOut,
)
from backend.modules.assets.services import inventory as inventory_service
from backend.modules.assets.services.transactions import log_transaction
from backend.modules.hr.models.user import User

logger = logging.getLogger(__name__)

ALREADY_PROCESSED = "Return request already processed"
PENDING_EXISTS = "A pending return request already exists for this item"


def to_out(ret: ReturnRequest) -> ReturnRequestOut:
    out = ReturnRequestOut.model_validate(ret)
    if ret.employee:
        out.employee_name = ret.employee.full_name
    if ret.reviewed_by:
        out.reviewer_name = ret.reviewed_by.full_name
    if ret.inventory_item:
        out.inventory_item_unique_id = ret.inventory_item.unique_id
    return out


def get_return(db: Session, return_id: UUID) -> ReturnRequest:
    ret = db.get(ReturnRequest, return_id)
    if not ret:
        raise NotFound("Return request not found")
    return ret


def get_visible_return(db: Session, return_id: UUID, user: User, is_reviewer: bool) -> ReturnRequest:
    ret = get_return(db, return_id)
    if not is_reviewer and ret.employee_id != user.id:
        raise PermissionDenied("Not allowed to view this return request")
    return ret


def _has_pending_return(db: Session, item_id: UUID) -> bool:
    return (
        db.scalar(
            select(ReturnRequest.id).where(
                ReturnRequest.inventory_item_id == item_id,
                ReturnRequest.status == ReviewStatus.PENDING,
            )
        )
        is not None
    )


def submit_return(db: Session, data: ReturnRequestCreate, user: User) -> ReturnRequest:
    """
    Сотрудник возвращает выданную ему единицу.

    Единица должна быть выдана именно ему, и по ней не должно быть
    другой pending-заявки на возврат (дублирует уникальный индекс).
    """
    reason = data.return_reason.strip()
    if not reason:
        raise ValidationFailed("Return reason is required")

    item = inventory_service.get_item(db, data.inventory_item_id)
    if item.status != InventoryStatus.ISSUED or item.issued_to_id != user.id:
        raise ValidationFailed("This item is not currently issued to you")
    if _has_pending_return(db, item.id):
        raise Conflict(PENDING_EXISTS)

    ret = ReturnRequest(
        employee_id=user.id,
        inventory_item_id=item.id,
        asset_name=_asset_name(data.asset_name, item),
        return_reason=reason,
        condition_on_return=data.condition_on_return,
        notes=data.notes,
        status=ReviewStatus.PENDING,
    )
    db.add(ret)
    try:
        db.flush()
    except IntegrityError as e:
        # параллельная заявка прошла проверку раньше нас
        raise Conflict(PENDING_EXISTS) from e
    logger.info("Return request %s submitted by %s for %s", ret.id, user.email, item.unique_id)
    return ret


def _asset_name(name: Optional[str], item: InventoryItem) -> str:
    if name and name.strip():
        return name.strip()
    return item.asset_name


def delete_return(db: Session, ret: ReturnRequest, user: User) -> None:
    if ret.employee_id != user.id:
        raise PermissionDenied("Only the requester can delete this return request")
    if ret.status != ReviewStatus.PENDING:
        raise ValidationFailed("Only pending return requests can be deleted")
    db.delete(ret)
    db.flush()


def _claim_return(db: Session, ret: ReturnRequest, values: dict) -> None:
    result = db.execute(
        update(ReturnRequest)
        .where(ReturnRequest.id == ret.id, ReturnRequest.status == ReviewStatus.PENDING)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning("Review of return %s refused: already processed", ret.id)
        raise Conflict(ALREADY_PROCESSED)
    db.refresh(ret)


def approve_return(db: Session, ret: ReturnRequest, data: ApproveReturn, reviewer: User) -> ReturnRequest:
    """
    Принимает единицу обратно на склад.

    Переход единицы issued -> available выполняется условным UPDATE;
    если её успели списать или удалить, одобрение отклоняется.
    """
    _claim_return(
        db,
        ret,
        {
            "status": ReviewStatus.APPROVED,
            "reviewed_by_id": reviewer.id,
            "reviewed_at": datetime.now(timezone.utc),
            "approval_remarks": data.remarks,
        },
    )

    if not ret.inventory_item_id:
        raise Conflict("Inventory item no longer exists")
    item = inventory_service.get_item(db, ret.inventory_item_id)
    if not inventory_service.mark_returned(
        db, item.id, reviewer, ret.condition_on_return, holder_id=ret.employee_id
    ):
        logger.warning("Return %s refused: %s is no longer issued", ret.id, item.unique_id)
        raise Conflict("Inventory item is no longer issued to this employee")
    db.refresh(item)

    log_transaction(
        db,
        item,
        TransactionType.RETURN,
        previous_quantity=0,
        performed_by_id=reviewer.id,
        issued_to_id=ret.employee_id,
        return_request_id=ret.id,
        purpose=ret.return_reason,
        notes=data.remarks or ret.notes,
        condition=ret.condition_on_return,
        actual_return_date=datetime.now(timezone.utc),
    )
    db.flush()
    logger.info("Return %s approved by %s: %s available", ret.id, reviewer.email, item.unique_id)
    return ret


def reject_return(db: Session, ret: ReturnRequest, data: RejectReturn, reviewer: User) -> ReturnRequest:
    reason = (data.rejection_reason or "").strip()
    if not reason:
        raise ValidationFailed("Rejection reason is required")
    _claim_return(
        db,
        ret,
        {
            "status": ReviewStatus.REJECTED,
            "reviewed_by_id": reviewer.id,
            "reviewed_at": datetime.now(timezone.utc),
            "rejection_reason": reason,
        },
    )
    logger.info("Return %s rejected by %s", ret.id, reviewer.email)
    return ret


def list_returns(
    db: Session,
    employee_id: Optional[UUID] = None,
    status: Optional[ReviewStatus] = None,
    offset: int = 0,
    limit: int = 20,
) -> List[ReturnRequest]:
    q = select(ReturnRequest)
    if employee_id:
        q = q.where(ReturnRequest.employee_id == employee_id)
    if status:
        q = q.where(ReturnRequest.status == status)
    q = q.order_by(ReturnRequest.requested_at.desc()).offset(offset).limit(limit)
    return list(db.scalars(q).all())


def pending_returns(db: Session) -> List[ReturnRequest]:
    return list(
        db.scalars(
            select(ReturnRequest)
            .where(ReturnRequest.status == ReviewStatus.PENDING)
            .order_by(ReturnRequest.requested_at.asc())
        ).all()
    )
