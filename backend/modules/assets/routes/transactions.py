"""Роуты /transactions: журнал движения единиц учёта (только для склада)."""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.modules.assets.dependencies import Pagination, get_db, require_reviewer
from backend.modules.assets.models import TransactionType
from backend.modules.assets.schemas.transaction import TransactionOut
from backend.modules.assets.services import transactions as service

router = APIRouter(
    prefix="/transactions",
    tags=["transactions"],
    dependencies=[Depends(require_reviewer)],
)


@router.get("/", response_model=List[TransactionOut])
def list_transactions(
    db: Session = Depends(get_db),
    pagination: Pagination = Depends(),
    item_id: Optional[UUID] = Query(None),
    type: Optional[TransactionType] = Query(None),
    user_id: Optional[UUID] = Query(None),
) -> List[TransactionOut]:
    records = service.list_transactions(
        db,
        item_id=item_id,
        transaction_type=type,
        user_id=user_id,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    return [service.to_out(r) for r in records]


@router.get("/audit-trail", response_model=List[TransactionOut])
def audit_trail(
    db: Session = Depends(get_db),
    limit: int = Query(50, ge=1, le=500),
) -> List[TransactionOut]:
    """Последние движения по всем единицам, новые первыми"""
    return [service.to_out(r) for r in service.list_transactions(db, limit=limit)]
