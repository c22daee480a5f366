"""Роуты /locations: справочник мест хранения с заполненностью."""
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
from backend.modules.assets.models import LocationType
from backend.modules.assets.schemas.location import (
    LocationCreate,
    LocationOut,
    LocationStatsOut,
    LocationUpdate,
)
from backend.modules.assets.services import locations as service
from backend.modules.hr.models.user import User

router = APIRouter(prefix="/locations", tags=["locations"])

require_admin = require_asset_roles(("admin",))


@router.get("/", response_model=List[LocationOut])
def list_locations(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    pagination: Pagination = Depends(),
    type: Optional[LocationType] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
) -> List[LocationOut]:
    locations = service.list_locations(
        db,
        location_type=type,
        is_active=is_active,
        search=search,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    return service.to_out_list(db, locations)


@router.get("/active", response_model=List[LocationOut])
def active_locations(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> List[LocationOut]:
    return service.to_out_list(db, service.active_locations(db))


@router.get("/default", response_model=LocationOut)
def default_location(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> LocationOut:
    return service.to_out_list(db, [service.default_location(db)])[0]


@router.get("/stats", response_model=LocationStatsOut)
def location_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> LocationStatsOut:
    return service.location_stats(db)


@router.get("/{location_id}", response_model=LocationOut)
def get_location(
    location_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> LocationOut:
    return service.to_out_list(db, [service.get_location(db, location_id)])[0]


@router.post("/", response_model=LocationOut, status_code=201)
def create_location(
    payload: LocationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> LocationOut:
    location = service.create_location(db, payload, user)
    db.commit()
    db.refresh(location)
    return service.to_out(location, 0)


@router.put("/{location_id}", response_model=LocationOut)
def update_location(
    location_id: UUID,
    payload: LocationUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> LocationOut:
    location = service.update_location(db, service.get_location(db, location_id), payload, user)
    db.commit()
    db.refresh(location)
    return service.to_out_list(db, [location])[0]


@router.patch("/{location_id}/toggle-status", response_model=LocationOut)
def toggle_location_status(
    location_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_reviewer),
) -> LocationOut:
    location = service.toggle_status(db, service.get_location(db, location_id), user)
    db.commit()
    db.refresh(location)
    return service.to_out_list(db, [location])[0]


@router.patch("/{location_id}/set-default", response_model=LocationOut)
def set_default_location(
    location_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
) -> LocationOut:
    location = service.set_default(db, service.get_location(db, location_id), user)
    db.commit()
    db.refresh(location)
    return service.to_out_list(db, [location])[0]


@router.delete("/{location_id}", status_code=204)
def delete_location(
    location_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
) -> Response:
    service.delete_location(db, service.get_location(db, location_id))
    db.commit()
    return Response(status_code=204)
