"""
Справочник мест хранения.

Единица учёта хранит место названием (оно же входит в unique_id), поэтому
заполненность места считается по единицам с тем же названием без учёта
регистра. Пока справочник пуст, место в единице учёта не проверяется.
"""

import logging
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from backend.modules.assets.exceptions import Conflict, NotFound, ValidationFailed
from backend.modules.assets.models import InventoryItem, Location, LocationType
from backend.modules.assets.schemas.location import (
    LocationCreate,
    LocationOut,
    LocationStatsOut,
    LocationUpdate,
)
from backend.modules.hr.models.user import User

logger = logging.getLogger(__name__)


def get_location(db: Session, location_id: UUID) -> Location:
    location = db.get(Location, location_id)
    if not location:
        raise NotFound("Location not found")
    return location


def find_by_name(db: Session, name: str) -> Optional[Location]:
    return db.scalar(select(Location).where(func.lower(Location.name) == name.strip().lower()))


def occupancy(db: Session, names: List[str]) -> Dict[str, int]:
    """Число единиц учёта по названию места (ключи в нижнем регистре)."""
    if not names:
        return {}
    lowered = [n.lower() for n in names]
    rows = db.execute(
        select(func.lower(InventoryItem.location), func.count())
        .where(func.lower(InventoryItem.location).in_(lowered))
        .group_by(func.lower(InventoryItem.location))
    ).all()
    return {name: count for name, count in rows}


def availability_status(percentage: int) -> str:
    if percentage >= 90:
        return "Full"
    if percentage >= 75:
        return "Nearly Full"
    if percentage >= 50:
        return "Moderate"
    if percentage >= 25:
        return "Available"
    return "Empty"


def to_out(location: Location, current: int) -> LocationOut:
    out = LocationOut.model_validate(location)
    percentage = round(current * 100 / location.capacity) if location.capacity else 0
    out.current_occupancy = current
    out.available_capacity = max(0, location.capacity - current)
    out.occupancy_percentage = percentage
    out.availability_status = availability_status(percentage)
    parts = [location.building, f"Floor {location.floor}" if location.floor else None, location.address]
    out.full_address = ", ".join(p for p in parts if p) or "Address not specified"
    return out


def to_out_list(db: Session, locations: List[Location]) -> List[LocationOut]:
    counts = occupancy(db, [loc.name for loc in locations])
    return [to_out(loc, counts.get(loc.name.lower(), 0)) for loc in locations]


def assignment_error(db: Session, name: Optional[str]) -> Optional[str]:
    """
    Причина, по которой единицу нельзя поместить в это место, или None.

    Неизвестное название допустимо только пока справочник мест пуст.
    """
    if not name or not name.strip():
        return None
    location = find_by_name(db, name)
    if location is None:
        has_locations = db.scalar(select(Location.id).limit(1)) is not None
        return f"Invalid location: {name.strip()}" if has_locations else None
    if not location.is_active:
        return "Cannot assign item to inactive location"
    return None


def list_locations(
    db: Session,
    location_type: Optional[LocationType] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    offset: int = 0,
    limit: int = 20,
) -> List[Location]:
    q = select(Location)
    if location_type:
        q = q.where(Location.location_type == location_type)
    if is_active is not None:
        q = q.where(Location.is_active == is_active)
    if search and search.strip():
        s = f"%{search.strip()}%"
        q = q.where(
            or_(
                Location.name.ilike(s),
                Location.description.ilike(s),
                Location.building.ilike(s),
                Location.address.ilike(s),
            )
        )
    return list(db.scalars(q.order_by(Location.name).offset(offset).limit(limit)).all())


def active_locations(db: Session) -> List[Location]:
    return list(
        db.scalars(select(Location).where(Location.is_active.is_(True)).order_by(Location.name)).all()
    )


def default_location(db: Session) -> Location:
    location = db.scalar(
        select(Location).where(Location.is_default.is_(True), Location.is_active.is_(True))
    )
    if not location:
        raise NotFound("No default location configured")
    return location


def _clear_default(db: Session, keep_id: UUID) -> None:
    db.execute(
        update(Location)
        .where(Location.id != keep_id, Location.is_default.is_(True))
        .values(is_default=False)
        .execution_options(synchronize_session="fetch")
    )


def create_location(db: Session, data: LocationCreate, user: User) -> Location:
    name = data.name.strip()
    if not name:
        raise ValidationFailed("Location name is required")
    if find_by_name(db, name):
        raise Conflict("Location with this name already exists")
    location = Location(
        **data.model_dump(exclude={"name"}),
        name=name,
        is_active=True,
        created_by_id=user.id,
        last_modified_by=user.full_name,
    )
    db.add(location)
    db.flush()
    if location.is_default:
        _clear_default(db, location.id)
    logger.info("Location %s created by %s", name, user.email)
    return location


def update_location(db: Session, location: Location, data: LocationUpdate, user: User) -> Location:
    """Переименование запрещено, пока в месте есть единицы учёта: название входит в их unique_id."""
    payload = data.model_dump(exclude_unset=True)
    if "name" in payload:
        name = (payload.pop("name") or "").strip()
        if not name:
            raise ValidationFailed("Location name is required")
        if name != location.name:
            existing = find_by_name(db, name)
            if existing and existing.id != location.id:
                raise Conflict("Location with this name already exists")
            if name.lower() != location.name.lower() and occupancy(db, [location.name]):
                raise Conflict("Cannot rename location that has inventory items")
            location.name = name
    for key in ("capacity", "location_type"):
        if key in payload and payload[key] is None:
            payload.pop(key)
    for key, value in payload.items():
        setattr(location, key, value)
    location.last_modified_by = user.full_name
    db.flush()
    return location


def delete_location(db: Session, location: Location) -> None:
    assigned = occupancy(db, [location.name]).get(location.name.lower(), 0)
    if assigned:
        raise Conflict(
            f"Cannot delete location. {assigned} inventory items are currently assigned "
            "to this location. Please reassign them first."
        )
    if location.is_default:
        raise ValidationFailed("Cannot delete the default location")
    db.delete(location)
    db.flush()
    logger.info("Location %s deleted", location.name)


def toggle_status(db: Session, location: Location, user: User) -> Location:
    if location.is_default and location.is_active:
        raise ValidationFailed("Cannot deactivate the default location")
    location.is_active = not location.is_active
    location.last_modified_by = user.full_name
    db.flush()
    logger.info(
        "Location %s %s by %s",
        location.name,
        "activated" if location.is_active else "deactivated",
        user.email,
    )
    return location


def set_default(db: Session, location: Location, user: User) -> Location:
    if not location.is_active:
        raise ValidationFailed("Cannot set inactive location as default")
    _clear_default(db, location.id)
    location.is_default = True
    location.last_modified_by = user.full_name
    db.flush()
    return location


def location_stats(db: Session) -> LocationStatsOut:
    locations = list(db.scalars(select(Location)).all())
    counts = occupancy(db, [loc.name for loc in locations])
    total_capacity = sum(loc.capacity for loc in locations)
    total_occupancy = sum(counts.values())
    active = sum(1 for loc in locations if loc.is_active)
    return LocationStatsOut(
        total_locations=len(locations),
        active_locations=active,
        inactive_locations=len(locations) - active,
        total_capacity=total_capacity,
        total_occupancy=total_occupancy,
        available_capacity=max(0, total_capacity - total_occupancy),
        utilization_percentage=(
            round(total_occupancy * 100 / total_capacity, 2) if total_capacity else 0.0
        ),
    )
