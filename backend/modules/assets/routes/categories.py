"""Роуты /categories: справочник категорий и названий активов."""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from backend.modules.assets.dependencies import (
    Pagination,
    get_current_user,
    get_db,
    require_asset_roles,
    require_reviewer,
)
from backend.modules.assets.models import CategoryType
from backend.modules.assets.schemas.category import (
    AssetNameIn,
    CategoryCreate,
    CategoryInventoryOut,
    CategoryOut,
    CategoryStatsOut,
    CategoryUpdate,
)
from backend.modules.assets.services import categories as service
from backend.modules.hr.models.user import User

router = APIRouter(prefix="/categories", tags=["categories"])

require_admin = require_asset_roles(("admin",))


@router.get("/", response_model=List[CategoryOut])
def list_categories(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    pagination: Pagination = Depends(),
    type: Optional[CategoryType] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
) -> List[CategoryOut]:
    return service.list_categories(
        db,
        category_type=type,
        is_active=is_active,
        search=search,
        offset=pagination.offset,
        limit=pagination.limit,
    )


@router.get("/active", response_model=List[CategoryOut])
def active_categories(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    type: Optional[CategoryType] = Query(None),
) -> List[CategoryOut]:
    """Активные категории для выпадающих списков"""
    return service.active_categories(db, type)


@router.get("/with-inventory", response_model=List[CategoryInventoryOut])
def categories_with_inventory(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> List[CategoryInventoryOut]:
    return service.categories_with_inventory(db)


@router.get("/stats", response_model=CategoryStatsOut)
def category_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> CategoryStatsOut:
    return service.category_stats(db)


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(
    category_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> CategoryOut:
    return service.get_category(db, category_id)


@router.get("/{category_id}/asset-names", response_model=List[str])
def category_asset_names(
    category_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> List[str]:
    return service.active_asset_names(service.get_category(db, category_id))


@router.post("/", response_model=CategoryOut, status_code=201)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> CategoryOut:
    category = service.create_category(db, payload, user)
    db.commit()
    db.refresh(category)
    return category


@router.put("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: UUID,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> CategoryOut:
    category = service.update_category(db, service.get_category(db, category_id), payload)
    db.commit()
    db.refresh(category)
    return category


@router.delete("/{category_id}", status_code=204)
def delete_category(
    category_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
) -> Response:
    service.delete_category(db, service.get_category(db, category_id))
    db.commit()
    return Response(status_code=204)


@router.post("/{category_id}/asset-names", response_model=CategoryOut)
def add_asset_name(
    category_id: UUID,
    payload: AssetNameIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> CategoryOut:
    category = service.add_asset_name(db, service.get_category(db, category_id), payload)
    db.commit()
    db.refresh(category)
    return category


@router.delete("/{category_id}/asset-names/{name}", response_model=CategoryOut)
def remove_asset_name(
    category_id: UUID,
    name: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> CategoryOut:
    category = service.remove_asset_name(db, service.get_category(db, category_id), name)
    db.commit()
    db.refresh(category)
    return category


@router.put("/{category_id}/asset-names/{name}/toggle", response_model=CategoryOut)
def toggle_asset_name(
    category_id: UUID,
    name: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> CategoryOut:
    category = service.toggle_asset_name(db, service.get_category(db, category_id), name)
    db.commit()
    db.refresh(category)
    return category
