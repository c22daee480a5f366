"""Роуты /requests: заявки сотрудников на выдачу актива."""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from backend.modules.assets.dependencies import (
    Pagination,
    get_current_user,
    get_db,
    is_reviewer,
    require_reviewer,
)
from backend.modules.assets.models import RequestPriority, ReviewStatus
from backend.modules.assets.schemas.request import (
    ApproveRequest,
    AssetRequestCreate,
    AssetRequestOut,
    AssetRequestUpdate,
    RejectRequest,
    RequestStatsOut,
)
from backend.modules.assets.services import requests as service
from backend.modules.hr.models.user import User

router = APIRouter(prefix="/requests", tags=["requests"])


@router.get("/", response_model=List[AssetRequestOut])
def list_requests(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    pagination: Pagination = Depends(),
    status: Optional[ReviewStatus] = Query(None),
    priority: Optional[RequestPriority] = Query(None),
    department: Optional[str] = Query(None),
    employee_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None),
) -> List[AssetRequestOut]:
    """Список заявок. Employee видит только свои."""
    if not is_reviewer(user):
        employee_id = user.id
    reqs = service.list_requests(
        db,
        employee_id=employee_id,
        status=status,
        priority=priority,
        department=department,
        search=search,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    return [service.to_out(r) for r in reqs]


@router.get("/my", response_model=List[AssetRequestOut])
def my_requests(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    pagination: Pagination = Depends(),
    status: Optional[ReviewStatus] = Query(None),
) -> List[AssetRequestOut]:
    reqs = service.list_requests(
        db,
        employee_id=user.id,
        status=status,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    return [service.to_out(r) for r in reqs]


@router.get("/pending", response_model=List[AssetRequestOut], dependencies=[Depends(require_reviewer)])
def pending_requests(db: Session = Depends(get_db)) -> List[AssetRequestOut]:
    return [service.to_out(r) for r in service.pending_requests(db)]


@router.get("/overdue", response_model=List[AssetRequestOut], dependencies=[Depends(require_reviewer)])
def overdue_requests(db: Session = Depends(get_db)) -> List[AssetRequestOut]:
    """Pending-заявки старше overdue_request_days"""
    return [service.to_out(r) for r in service.overdue_requests(db)]


@router.get("/stats", response_model=RequestStatsOut)
def request_stats(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> RequestStatsOut:
    return service.request_stats(db, employee_id=None if is_reviewer(user) else user.id)


@router.post("/", response_model=AssetRequestOut, status_code=201)
def submit_request(
    payload: AssetRequestCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> AssetRequestOut:
    """Подать заявку. Склад не меняется до одобрения."""
    req = service.submit_request(db, payload, user)
    db.commit()
    db.refresh(req)
    return service.to_out(req)


@router.get("/{request_id}", response_model=AssetRequestOut)
def get_request(
    request_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> AssetRequestOut:
    return service.to_out(service.get_visible_request(db, request_id, user, is_reviewer(user)))


@router.put("/{request_id}", response_model=AssetRequestOut)
def update_request(
    request_id: UUID,
    payload: AssetRequestUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> AssetRequestOut:
    """Автор может менять заявку, пока она pending"""
    req = service.update_request(db, service.get_request(db, request_id), payload, user)
    db.commit()
    db.refresh(req)
    return service.to_out(req)


@router.delete("/{request_id}", status_code=204)
def delete_request(
    request_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Response:
    service.delete_request(db, service.get_request(db, request_id), user)
    db.commit()
    return Response(status_code=204)


@router.put("/{request_id}/approve", response_model=AssetRequestOut)
def approve_request(
    request_id: UUID,
    payload: ApproveRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> AssetRequestOut:
    """
    Одобрить заявку и выдать единицу.
    Без inventory_item_id подбирается первая свободная единица с таким названием.
    """
    req = service.approve_request(db, service.get_request(db, request_id), payload, user)
    db.commit()
    db.refresh(req)
    return service.to_out(req)


@router.put("/{request_id}/reject", response_model=AssetRequestOut)
def reject_request(
    request_id: UUID,
    payload: RejectRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> AssetRequestOut:
    req = service.reject_request(db, service.get_request(db, request_id), payload, user)
    db.commit()
    db.refresh(req)
    return service.to_out(req)
