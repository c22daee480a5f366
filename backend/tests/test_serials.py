"""
Тесты глобального счётчика серийных номеров
"""
from conftest import item_data

from backend.modules.assets import identifiers
from backend.modules.assets.models import SerialCounter
from backend.modules.assets.services import inventory, serials


def test_next_serial_creates_counter_and_increments(db):
    assert db.get(SerialCounter, serials.COUNTER_ID) is None
    assert serials.next_serial(db) == 1
    assert serials.next_serial(db) == 2
    db.commit()
    assert serials.current_sequence(db) == 2


def test_peek_does_not_reserve(db):
    serials.next_serial(db)
    db.commit()
    assert serials.peek_next_serial(db) == 2
    assert serials.peek_next_serial(db) == 2
    assert serials.next_serial(db) == 2


def test_rolled_back_creation_does_not_consume_serial(db):
    serials.ensure_counter(db)
    db.commit()
    serials.next_serial(db)
    db.rollback()
    assert serials.next_serial(db) == 1


def test_counter_seeded_from_existing_items(db, manager):
    inventory.create_item(db, item_data(), manager)
    inventory.create_item(db, item_data(), manager)
    db.commit()

    db.query(SerialCounter).delete()
    db.commit()

    counter = serials.ensure_counter(db)
    assert counter.value == 2
    assert serials.next_serial(db) == 3


def test_created_items_get_distinct_serials(db, manager):
    uids = [inventory.create_item(db, item_data(), manager).unique_id for _ in range(5)]
    db.commit()
    assert len(set(uids)) == 5
    assert [identifiers.serial_of(u) for u in uids] == [1, 2, 3, 4, 5]
    assert uids[0] == "IHUB/2024-25/LAP/STORAGE ROOM A/001"


def test_server_serial_wins_over_stale_preview(db, manager):
    preview = identifiers.preview_unique_ids(
        "2024-25", "Laptop", "Storage Room A", serials.peek_next_serial(db)
    )[0]
    assert preview.endswith("/001")

    # другое создание успело раньше
    inventory.create_item(db, item_data(asset_name="Chair"), manager)
    item = inventory.create_item(db, item_data(), manager)
    db.commit()
    assert item.unique_id == "IHUB/2024-25/LAP/STORAGE ROOM A/002"
    assert item.unique_id != preview


def test_counter_catches_up_with_manual_ids(db, manager):
    inventory.create_item(db, item_data(), manager)
    inventory.create_item(db, item_data(unique_id="IHUB/2024-25/LAP/STORAGE ROOM A/002"), manager)
    inventory.create_item(db, item_data(unique_id="IHUB/2024-25/LAP/STORAGE ROOM A/003"), manager)
    db.commit()

    assert serials.peek_next_serial(db) == 4
    item = inventory.create_item(db, item_data(asset_name="Mouse"), manager)
    db.commit()

    assert item.unique_id == "IHUB/2024-25/MOU/STORAGE ROOM A/004"
    assert serials.current_sequence(db) == 4


def test_next_serial_never_lags_item_count(db, manager):
    serials.ensure_counter(db)
    db.commit()
    for n in (2, 3):
        inventory.create_item(
            db, item_data(unique_id=f"IHUB/2024-25/LAP/STORAGE ROOM A/00{n}"), manager
        )
    db.commit()
    assert serials.next_serial(db) == 3
