"""Справочник категорий и названий активов внутри категории."""

import logging
import re
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from backend.modules.assets.exceptions import Conflict, NotFound, ValidationFailed
from backend.modules.assets.models import (
    Category,
    CategoryAssetName,
    CategoryType,
    InventoryItem,
)
from backend.modules.assets.schemas.category import (
    AssetNameIn,
    CategoryCreate,
    CategoryInventoryOut,
    CategoryStatsOut,
    CategoryUpdate,
)
from backend.modules.hr.models.user import User

logger = logging.getLogger(__name__)


def category_code(name: str) -> str:
    """Код по умолчанию: буквы и цифры названия, не длиннее 10 символов."""
    return re.sub(r"[^A-Za-z0-9]", "", name)[:10].upper()


def get_category(db: Session, category_id: UUID) -> Category:
    category = db.get(Category, category_id)
    if not category:
        raise NotFound("Category not found")
    return category


def _name_taken(db: Session, name: str, exclude_id: Optional[UUID] = None) -> bool:
    q = select(Category.id).where(func.lower(Category.name) == name.lower())
    if exclude_id:
        q = q.where(Category.id != exclude_id)
    return db.scalar(q) is not None


def _code_taken(db: Session, code: str, exclude_id: Optional[UUID] = None) -> bool:
    q = select(Category.id).where(Category.category_code == code)
    if exclude_id:
        q = q.where(Category.id != exclude_id)
    return db.scalar(q) is not None


def _item_count(db: Session, name: str) -> int:
    return db.scalar(
        select(func.count())
        .select_from(InventoryItem)
        .where(func.lower(InventoryItem.asset_category) == name.lower())
    ) or 0


def list_categories(
    db: Session,
    category_type: Optional[CategoryType] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    offset: int = 0,
    limit: int = 20,
) -> List[Category]:
    q = select(Category)
    if category_type:
        q = q.where(Category.category_type == category_type)
    if is_active is not None:
        q = q.where(Category.is_active == is_active)
    if search and search.strip():
        s = f"%{search.strip()}%"
        q = q.where(or_(Category.name.ilike(s), Category.description.ilike(s)))
    return list(db.scalars(q.order_by(Category.name).offset(offset).limit(limit)).all())


def active_categories(db: Session, category_type: Optional[CategoryType] = None) -> List[Category]:
    q = select(Category).where(Category.is_active.is_(True))
    if category_type:
        q = q.where(Category.category_type == category_type)
    return list(db.scalars(q.order_by(Category.name)).all())


def create_category(db: Session, data: CategoryCreate, user: User) -> Category:
    name = data.name.strip()
    if not name:
        raise ValidationFailed("Category name is required")
    if _name_taken(db, name):
        raise Conflict("Category already exists with this name")
    code = (data.category_code or "").strip().upper() or category_code(name)
    if _code_taken(db, code):
        raise Conflict(f"Category code already exists: {code}")
    if data.parent_id:
        get_category(db, data.parent_id)

    category = Category(
        name=name,
        category_type=data.category_type,
        description=data.description,
        category_code=code,
        parent_id=data.parent_id,
        depreciation_rate=data.depreciation_rate,
        lifespan_years=data.lifespan_years,
        created_by_id=user.id,
    )
    for asset in data.asset_names:
        _append_asset_name(category, asset)
    db.add(category)
    db.flush()
    logger.info("Category %s created by %s", name, user.email)
    return category


def update_category(db: Session, category: Category, data: CategoryUpdate) -> Category:
    payload = data.model_dump(exclude_unset=True)
    if "name" in payload:
        name = (payload.pop("name") or "").strip()
        if not name:
            raise ValidationFailed("Category name is required")
        if name != category.name:
            if _name_taken(db, name, exclude_id=category.id):
                raise Conflict("Category already exists with this name")
            if _item_count(db, category.name):
                raise Conflict("Cannot rename category that has inventory items")
            category.name = name
    if "parent_id" in payload:
        parent_id = payload.pop("parent_id")
        if parent_id == category.id:
            raise ValidationFailed("Category cannot be its own parent")
        if parent_id:
            get_category(db, parent_id)
        category.parent_id = parent_id
    for key, value in payload.items():
        if value is None and key in ("category_type", "is_active"):
            continue
        setattr(category, key, value)
    db.flush()
    return category


def delete_category(db: Session, category: Category) -> None:
    children = db.scalar(
        select(func.count()).select_from(Category).where(Category.parent_id == category.id)
    )
    if children:
        raise Conflict("Cannot delete category that has subcategories")
    if _item_count(db, category.name):
        raise Conflict("Cannot delete category that has inventory items")
    db.delete(category)
    db.flush()
    logger.info("Category %s deleted", category.name)


# --- Названия активов внутри категории ---


def _find_asset_name(category: Category, name: str) -> Optional[CategoryAssetName]:
    wanted = name.strip().lower()
    return next((a for a in category.asset_names if a.name.lower() == wanted), None)


def _append_asset_name(category: Category, asset: AssetNameIn) -> None:
    name = asset.name.strip()
    if name and _find_asset_name(category, name) is None:
        category.asset_names.append(
            CategoryAssetName(name=name, description=asset.description, is_active=True)
        )


def add_asset_name(db: Session, category: Category, asset: AssetNameIn) -> Category:
    """Добавляет название; повтор без учёта регистра ничего не меняет."""
    _append_asset_name(category, asset)
    db.flush()
    return category


def remove_asset_name(db: Session, category: Category, name: str) -> Category:
    asset = _find_asset_name(category, name)
    if asset is None:
        raise NotFound("Asset name not found")
    category.asset_names.remove(asset)
    db.flush()
    return category


def toggle_asset_name(db: Session, category: Category, name: str) -> Category:
    asset = _find_asset_name(category, name)
    if asset is None:
        raise NotFound("Asset name not found")
    asset.is_active = not asset.is_active
    db.flush()
    return category


def active_asset_names(category: Category) -> List[str]:
    return [a.name for a in category.asset_names if a.is_active]


# --- Сводки ---


def categories_with_inventory(db: Session) -> List[CategoryInventoryOut]:
    """Активные категории, у которых есть единицы учёта, с их количеством и стоимостью."""
    rows = db.execute(
        select(
            Category,
            func.count(InventoryItem.id),
            func.coalesce(func.sum(InventoryItem.total_cost), 0),
        )
        .join(InventoryItem, func.lower(InventoryItem.asset_category) == func.lower(Category.name))
        .where(Category.is_active.is_(True))
        .group_by(Category.id)
        .order_by(Category.name)
    ).all()
    return [
        CategoryInventoryOut(
            id=category.id,
            name=category.name,
            category_type=category.category_type,
            total_items=count,
            total_value=Decimal(str(total)),
        )
        for category, count, total in rows
    ]


def category_stats(db: Session) -> CategoryStatsOut:
    rows = db.execute(
        select(Category.category_type, Category.is_active, func.count()).group_by(
            Category.category_type, Category.is_active
        )
    ).all()
    total = sum(count for _, _, count in rows)
    active = sum(count for _, is_active, count in rows if is_active)
    return CategoryStatsOut(
        total=total,
        active=active,
        inactive=total - active,
        major=sum(c for t, a, c in rows if a and t == CategoryType.MAJOR),
        minor=sum(c for t, a, c in rows if a and t == CategoryType.MINOR),
        with_inventory=len(categories_with_inventory(db)),
    )
