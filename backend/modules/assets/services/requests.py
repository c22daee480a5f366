"""
Заявки сотрудников на выдачу актива.

pending -> approved | rejected, оба конечные. Одобрение связывает
заявку с конкретной единицей учёта и выдаёт её сотруднику.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from backend.core.config import settings
from backend.modules.assets.exceptions import (
    Conflict,
    InsufficientStock,
    NotFound,
    PermissionDenied,
    ValidationFailed,
)
from backend.modules.assets.models import (
    AssetRequest,
    InventoryItem,
    RequestPriority,
    ReviewStatus,
    TransactionType,
)
from backend.modules.assets.schemas.request import (
    ApproveRequest,
    AssetRequestCreate,
    AssetRequestOut,
    AssetRequestUpdate,
    RejectRequest,
    RequestStatsOut,
)
from backend.modules.assets.services import inventory as inventory_service
from backend.modules.assets.services.transactions import log_transaction
from backend.modules.hr.models.user import User

logger = logging.getLogger(__name__)

ALREADY_PROCESSED = "Request already processed"


def to_out(req: AssetRequest) -> AssetRequestOut:
    out = AssetRequestOut.model_validate(req)
    if req.employee:
        out.employee_name = req.employee.full_name
        out.employee_email = req.employee.email
    if req.reviewed_by:
        out.reviewer_name = req.reviewed_by.full_name
    if req.inventory_item:
        out.inventory_item_unique_id = req.inventory_item.unique_id
        out.inventory_item_name = req.inventory_item.asset_name
    return out


def get_request(db: Session, request_id: UUID) -> AssetRequest:
    req = db.get(AssetRequest, request_id)
    if not req:
        raise NotFound("Request not found")
    return req


def get_visible_request(db: Session, request_id: UUID, user: User, is_reviewer: bool) -> AssetRequest:
    """Сотрудник видит только свои заявки."""
    req = get_request(db, request_id)
    if not is_reviewer and req.employee_id != user.id:
        raise PermissionDenied("Not allowed to view this request")
    return req


def submit_request(db: Session, data: AssetRequestCreate, user: User) -> AssetRequest:
    payload = data.model_dump()
    payload["item_type"] = payload["item_type"].strip()
    if not payload["item_type"]:
        raise ValidationFailed("Item type is required")
    if not payload.get("department"):
        payload["department"] = user.department
    req = AssetRequest(**payload, employee_id=user.id, status=ReviewStatus.PENDING)
    db.add(req)
    db.flush()
    logger.info("Request %s submitted by %s for %s", req.id, user.email, req.item_type)
    return req


def _own_pending(req: AssetRequest, user: User) -> None:
    if req.employee_id != user.id:
        raise PermissionDenied("Only the requester can change this request")
    if req.status != ReviewStatus.PENDING:
        raise ValidationFailed("Only pending requests can be changed")


def update_request(db: Session, req: AssetRequest, data: AssetRequestUpdate, user: User) -> AssetRequest:
    _own_pending(req, user)
    for key, value in data.model_dump(exclude_unset=True).items():
        if value is None and key in ("item_type", "quantity", "purpose", "justification", "priority"):
            continue
        setattr(req, key, value.strip() if key == "item_type" else value)
    db.flush()
    return req


def delete_request(db: Session, req: AssetRequest, user: User) -> None:
    _own_pending(req, user)
    db.delete(req)
    db.flush()
    logger.info("Request %s deleted by %s", req.id, user.email)


def _claim_request(db: Session, req: AssetRequest, values: dict) -> None:
    """
    pending -> (approved|rejected) одним UPDATE ... WHERE status='pending'.

    Повторное рассмотрение уже закрытой заявки ничего не меняет.
    """
    result = db.execute(
        update(AssetRequest)
        .where(AssetRequest.id == req.id, AssetRequest.status == ReviewStatus.PENDING)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning("Review of request %s refused: already processed", req.id)
        raise Conflict(ALREADY_PROCESSED)
    db.refresh(req)


def _allocate_item(
    db: Session, req: AssetRequest, employee: User, reviewer: User, data: ApproveRequest
) -> InventoryItem:
    """Выбирает единицу и переводит её в issued условным UPDATE."""
    expected_return_date = data.expected_return_date or req.expected_return_date

    if data.inventory_item_id:
        item = inventory_service.get_item(db, data.inventory_item_id)
        if not inventory_service.mark_issued(db, item.id, employee, reviewer, expected_return_date):
            db.refresh(item)
            logger.warning("Approval of %s refused: %s", req.id, item.unique_id)
            raise Conflict(inventory_service.unavailable_reason(item))
        return item

    candidates = inventory_service.find_available_for_type(db, req.item_type)
    for item in candidates:
        # кандидата мог забрать параллельный запрос, пробуем следующего
        if inventory_service.mark_issued(db, item.id, employee, reviewer, expected_return_date):
            return item
    logger.warning("Approval of %s refused: no available %s", req.id, req.item_type)
    raise InsufficientStock(f"Insufficient stock: no available item matches '{req.item_type}'")


def approve_request(db: Session, req: AssetRequest, data: ApproveRequest, reviewer: User) -> AssetRequest:
    """
    Одобряет заявку и выдаёт единицу сотруднику.

    Статус заявки, выдача единицы и запись журнала попадают в одну
    транзакцию; при любой ошибке вызывающий откатывает её целиком.
    """
    approved_quantity = data.approved_quantity or req.quantity
    if approved_quantity > req.quantity:
        raise ValidationFailed("Approved quantity cannot exceed requested quantity")

    _claim_request(
        db,
        req,
        {
            "status": ReviewStatus.APPROVED,
            "reviewed_by_id": reviewer.id,
            "reviewed_at": datetime.now(timezone.utc),
            "remarks": data.remarks,
            "approved_quantity": approved_quantity,
        },
    )

    employee = db.get(User, req.employee_id)
    if not employee:
        raise NotFound("Employee not found")

    item = _allocate_item(db, req, employee, reviewer, data)
    db.refresh(item)
    req.inventory_item_id = item.id
    if data.expected_return_date:
        req.expected_return_date = data.expected_return_date

    log_transaction(
        db,
        item,
        TransactionType.ISSUE,
        previous_quantity=1,
        performed_by_id=reviewer.id,
        issued_to_id=employee.id,
        request_id=req.id,
        purpose=req.purpose,
        notes=data.remarks or f"Issued against request for {req.item_type}",
        expected_return_date=item.expected_return_date,
    )
    db.flush()
    db.refresh(req)
    logger.info(
        "Request %s approved by %s: %s issued to %s",
        req.id,
        reviewer.email,
        item.unique_id,
        employee.email,
    )
    return req


def reject_request(db: Session, req: AssetRequest, data: RejectRequest, reviewer: User) -> AssetRequest:
    reason = (data.rejection_reason or "").strip() or None
    _claim_request(
        db,
        req,
        {
            "status": ReviewStatus.REJECTED,
            "reviewed_by_id": reviewer.id,
            "reviewed_at": datetime.now(timezone.utc),
            "rejection_reason": reason,
            "remarks": reason,
        },
    )
    db.refresh(req)
    logger.info("Request %s rejected by %s", req.id, reviewer.email)
    return req


def list_requests(
    db: Session,
    employee_id: Optional[UUID] = None,
    status: Optional[ReviewStatus] = None,
    priority: Optional[RequestPriority] = None,
    department: Optional[str] = None,
    search: Optional[str] = None,
    offset: int = 0,
    limit: int = 20,
) -> List[AssetRequest]:
    q = select(AssetRequest)
    if employee_id:
        q = q.where(AssetRequest.employee_id == employee_id)
    if status:
        q = q.where(AssetRequest.status == status)
    if priority:
        q = q.where(AssetRequest.priority == priority)
    if department:
        q = q.where(AssetRequest.department == department)
    if search and search.strip():
        s = f"%{search.strip()}%"
        q = q.where(
            or_(
                AssetRequest.item_type.ilike(s),
                AssetRequest.purpose.ilike(s),
                AssetRequest.justification.ilike(s),
            )
        )
    q = q.order_by(AssetRequest.submitted_at.desc()).offset(offset).limit(limit)
    return list(db.scalars(q).all())


def pending_requests(db: Session) -> List[AssetRequest]:
    """Очередь на рассмотрение: старые заявки первыми."""
    return list(
        db.scalars(
            select(AssetRequest)
            .where(AssetRequest.status == ReviewStatus.PENDING)
            .order_by(AssetRequest.submitted_at.asc())
        ).all()
    )


def overdue_requests(db: Session, now: Optional[datetime] = None) -> List[AssetRequest]:
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=settings.overdue_request_days)
    return list(
        db.scalars(
            select(AssetRequest)
            .where(
                AssetRequest.status == ReviewStatus.PENDING,
                AssetRequest.submitted_at < cutoff,
            )
            .order_by(AssetRequest.submitted_at.asc())
        ).all()
    )


def request_stats(db: Session, employee_id: Optional[UUID] = None) -> RequestStatsOut:
    q = select(AssetRequest.status, func.count()).group_by(AssetRequest.status)
    if employee_id:
        q = q.where(AssetRequest.employee_id == employee_id)
    counts = {status: count for status, count in db.execute(q).all()}
    return RequestStatsOut(
        total=sum(counts.values()),
        pending=counts.get(ReviewStatus.PENDING, 0),
        approved=counts.get(ReviewStatus.APPROVED, 0),
        rejected=counts.get(ReviewStatus.REJECTED, 0),
    )
