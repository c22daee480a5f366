"""Схемы справочника мест хранения."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from backend.modules.assets.models import LocationType


class LocationBase(BaseModel):
    description: Optional[str] = Field(None, max_length=500)
    address: Optional[str] = Field(None, max_length=200)
    floor: Optional[str] = Field(None, max_length=50)
    building: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


class LocationCreate(LocationBase):
    name: str = Field(..., min_length=1, max_length=100)
    capacity: int = Field(50, ge=1, le=10000)
    location_type: LocationType = LocationType.STORAGE
    is_default: bool = False


class LocationUpdate(LocationBase):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    capacity: Optional[int] = Field(None, ge=1, le=10000)
    location_type: Optional[LocationType] = None


class LocationOut(LocationBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    capacity: int
    location_type: LocationType
    is_active: bool
    is_default: bool
    last_modified_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Считается по единицам учёта при чтении
    current_occupancy: int = 0
    available_capacity: int = 0
    occupancy_percentage: int = 0
    availability_status: str = "Empty"
    full_address: str = ""


class LocationStatsOut(BaseModel):
    total_locations: int
    active_locations: int
    inactive_locations: int
    total_capacity: int
    total_occupancy: int
    available_capacity: int
    utilization_percentage: float
