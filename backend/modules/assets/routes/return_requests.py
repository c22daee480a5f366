"""Роуты /return-requests: заявки на возврат выданного актива."""
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
from backend.modules.assets.models import ReviewStatus
from backend.modules.assets.schemas.return_request import (
    ApproveReturn,
    RejectReturn,
    ReturnRequestCreate,
    ReturnRequestOut,
)
from backend.modules.assets.services import returns as service
from backend.modules.hr.models.user import User

router = APIRouter(prefix="/return-requests", tags=["return-requests"])


@router.get("/", response_model=List[ReturnRequestOut])
def list_return_requests(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    pagination: Pagination = Depends(),
    status: Optional[ReviewStatus] = Query(None),
    employee_id: Optional[UUID] = Query(None),
) -> List[ReturnRequestOut]:
    if not is_reviewer(user):
        employee_id = user.id
    rets = service.list_returns(
        db,
        employee_id=employee_id,
        status=status,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    return [service.to_out(r) for r in rets]


@router.get("/my", response_model=List[ReturnRequestOut])
def my_return_requests(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    pagination: Pagination = Depends(),
) -> List[ReturnRequestOut]:
    rets = service.list_returns(
        db, employee_id=user.id, offset=pagination.offset, limit=pagination.limit
    )
    return [service.to_out(r) for r in rets]


@router.get("/pending", response_model=List[ReturnRequestOut], dependencies=[Depends(require_reviewer)])
def pending_return_requests(db: Session = Depends(get_db)) -> List[ReturnRequestOut]:
    return [service.to_out(r) for r in service.pending_returns(db)]


@router.post("/", response_model=ReturnRequestOut, status_code=201)
def submit_return_request(
    payload: ReturnRequestCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> ReturnRequestOut:
    """Вернуть выданную единицу. Одна pending-заявка на единицу."""
    ret = service.submit_return(db, payload, user)
    db.commit()
    db.refresh(ret)
    return service.to_out(ret)


@router.get("/{return_id}", response_model=ReturnRequestOut)
def get_return_request(
    return_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> ReturnRequestOut:
    return service.to_out(service.get_visible_return(db, return_id, user, is_reviewer(user)))


@router.delete("/{return_id}", status_code=204)
def delete_return_request(
    return_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Response:
    service.delete_return(db, service.get_return(db, return_id), user)
    db.commit()
    return Response(status_code=204)


@router.put("/{return_id}/approve", response_model=ReturnRequestOut)
def approve_return_request(
    return_id: UUID,
    payload: ApproveReturn,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> ReturnRequestOut:
    """Принять единицу: она снова available, поля выдачи очищаются"""
    ret = service.approve_return(db, service.get_return(db, return_id), payload, user)
    db.commit()
    db.refresh(ret)
    return service.to_out(ret)


@router.put("/{return_id}/reject", response_model=ReturnRequestOut)
def reject_return_request(
    return_id: UUID,
    payload: RejectReturn,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> ReturnRequestOut:
    ret = service.reject_return(db, service.get_return(db, return_id), payload, user)
    db.commit()
    db.refresh(ret)
    return service.to_out(ret)
