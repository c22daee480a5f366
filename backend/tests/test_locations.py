"""
Тесты справочника мест хранения и проверки места у единиц учёта
"""
import pytest
from conftest import auth_headers, item_data, item_payload

from backend.modules.assets.exceptions import Conflict, NotFound, ValidationFailed
from backend.modules.assets.models import LocationType
from backend.modules.assets.schemas.inventory import InventoryItemUpdate
from backend.modules.assets.schemas.location import LocationCreate, LocationUpdate
from backend.modules.assets.services import inventory
from backend.modules.assets.services import locations as service


def _create(db, user, name="Storage Room A", **kwargs):
    location = service.create_location(db, LocationCreate(name=name, **kwargs), user)
    db.commit()
    return location


def test_create_and_duplicate_name(db, manager):
    location = _create(db, manager, capacity=10, building="Main", floor="2")
    assert location.is_active
    assert location.location_type == LocationType.STORAGE
    assert location.last_modified_by == "Sam Stock"

    with pytest.raises(Conflict):
        service.create_location(db, LocationCreate(name="storage room a"), manager)


def test_occupancy_is_counted_from_items(db, manager):
    location = _create(db, manager, capacity=4, building="Main", floor="2", address="1 Lab Road")
    for _ in range(3):
        inventory.create_item(db, item_data(location="storage room a"), manager)
    db.commit()

    out = service.to_out_list(db, [location])[0]
    assert out.current_occupancy == 3
    assert out.available_capacity == 1
    assert out.occupancy_percentage == 75
    assert out.availability_status == "Nearly Full"
    assert out.full_address == "Main, Floor 2, 1 Lab Road"


def test_empty_location_output(db, manager):
    out = service.to_out_list(db, [_create(db, manager)])[0]
    assert out.current_occupancy == 0
    assert out.availability_status == "Empty"
    assert out.full_address == "Address not specified"


def test_items_require_known_active_location(db, manager):
    # пока справочник пуст, место не проверяется
    inventory.create_item(db, item_data(location="Anywhere"), manager)
    db.commit()

    store = _create(db, manager, name="Store")
    with pytest.raises(ValidationFailed) as exc:
        inventory.create_item(db, item_data(location="Basement"), manager)
    assert exc.value.errors == [{"field": "location", "message": "Invalid location: Basement"}]

    service.toggle_status(db, store, manager)
    db.commit()
    with pytest.raises(ValidationFailed) as exc:
        inventory.create_item(db, item_data(location="Store"), manager)
    assert exc.value.errors[0]["message"] == "Cannot assign item to inactive location"


def test_item_cannot_move_to_inactive_location(db, manager):
    _create(db, manager, name="Store")
    closed = _create(db, manager, name="Closed Wing")
    item = inventory.create_item(db, item_data(location="Store"), manager)
    service.toggle_status(db, closed, manager)
    db.commit()

    with pytest.raises(ValidationFailed):
        inventory.update_item(db, item, InventoryItemUpdate(location="Closed Wing"), manager)
    db.rollback()
    db.refresh(item)
    assert item.location == "Store"
    assert "/STORE/" in item.unique_id


def test_default_location_rules(db, manager):
    first = _create(db, manager, name="Store", is_default=True)
    second = _create(db, manager, name="Lab", location_type=LocationType.LAB)

    assert service.default_location(db).id == first.id
    with pytest.raises(ValidationFailed):
        service.toggle_status(db, first, manager)
    with pytest.raises(ValidationFailed):
        service.delete_location(db, first)

    service.set_default(db, second, manager)
    db.commit()
    db.refresh(first)
    assert not first.is_default
    assert service.default_location(db).id == second.id

    service.toggle_status(db, first, manager)
    db.commit()
    with pytest.raises(ValidationFailed):
        service.set_default(db, first, manager)


def test_no_default_location(db, manager):
    _create(db, manager)
    with pytest.raises(NotFound):
        service.default_location(db)


def test_delete_and_rename_blocked_while_items_assigned(db, manager):
    location = _create(db, manager, name="Store")
    inventory.create_item(db, item_data(location="Store"), manager)
    db.commit()

    with pytest.raises(Conflict) as exc:
        service.delete_location(db, location)
    assert "1 inventory items are currently assigned" in exc.value.message
    with pytest.raises(Conflict):
        service.update_location(db, location, LocationUpdate(name="Vault"), manager)

    updated = service.update_location(db, location, LocationUpdate(capacity=80, notes="Shelf B"), manager)
    assert updated.capacity == 80
    assert updated.notes == "Shelf B"


def test_stats_and_search(db, manager):
    _create(db, manager, name="Store", capacity=10)
    lab = _create(db, manager, name="Lab", capacity=30, location_type=LocationType.LAB, building="Annex")
    service.toggle_status(db, lab, manager)
    inventory.create_item(db, item_data(location="Store"), manager)
    db.commit()

    stats = service.location_stats(db)
    assert (stats.total_locations, stats.active_locations, stats.inactive_locations) == (2, 1, 1)
    assert stats.total_capacity == 40
    assert stats.total_occupancy == 1
    assert stats.utilization_percentage == 2.5

    assert [loc.name for loc in service.list_locations(db, search="annex")] == ["Lab"]
    assert [loc.name for loc in service.active_locations(db)] == ["Store"]


def test_location_routes(client, db, manager, employee, admin):
    body = {"name": "Store", "capacity": 5}
    assert client.post("/api/v1/locations/", json=body, headers=auth_headers(employee)).status_code == 403

    r = client.post("/api/v1/locations/", json=body, headers=auth_headers(manager))
    assert r.status_code == 201, r.text
    location_id = r.json()["id"]

    r = client.post("/api/v1/inventory/", json=item_payload(location="Store"), headers=auth_headers(manager))
    assert r.status_code == 201, r.text
    r = client.post("/api/v1/inventory/", json=item_payload(location="Attic"), headers=auth_headers(manager))
    assert r.status_code == 400
    assert r.json()["errors"] == [{"field": "location", "message": "Invalid location: Attic"}]

    r = client.get(f"/api/v1/locations/{location_id}", headers=auth_headers(employee))
    assert r.json()["current_occupancy"] == 1
    assert r.json()["occupancy_percentage"] == 20

    r = client.patch(f"/api/v1/locations/{location_id}/set-default", headers=auth_headers(manager))
    assert r.status_code == 403
    r = client.patch(f"/api/v1/locations/{location_id}/set-default", headers=auth_headers(admin))
    assert r.json()["is_default"] is True
