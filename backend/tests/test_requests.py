"""
Тесты заявок на выдачу: переходы состояний и выдача единицы
"""
from datetime import date, datetime, timedelta, timezone

import pytest
from conftest import item_data

from backend.modules.assets.exceptions import (
    Conflict,
    InsufficientStock,
    PermissionDenied,
    ValidationFailed,
)
from backend.modules.assets.models import (
    InventoryStatus,
    InventoryTransaction,
    ReviewStatus,
    TransactionType,
)
from backend.modules.assets.schemas.request import (
    ApproveRequest,
    AssetRequestCreate,
    AssetRequestUpdate,
    RejectRequest,
)
from backend.modules.assets.services import inventory
from backend.modules.assets.services import requests as service


def _submit(db, user, item_type="Laptop", quantity=1):
    req = service.submit_request(
        db,
        AssetRequestCreate(
            item_type=item_type,
            quantity=quantity,
            purpose="Project work",
            justification="Current machine is broken",
        ),
        user,
    )
    db.commit()
    return req


def test_submit_creates_pending_request_without_stock_effect(db, manager, employee):
    item = inventory.create_item(db, item_data(), manager)
    db.commit()

    req = _submit(db, employee)
    assert req.status == ReviewStatus.PENDING
    assert req.employee_id == employee.id
    assert req.department == "Research"
    assert req.inventory_item_id is None

    db.refresh(item)
    assert item.status == InventoryStatus.AVAILABLE


def test_approve_with_explicit_item(db, manager, employee):
    item = inventory.create_item(db, item_data(), manager)
    db.commit()
    req = _submit(db, employee)

    service.approve_request(
        db,
        req,
        ApproveRequest(
            inventory_item_id=item.id,
            remarks="Approved for Q3",
            expected_return_date=date(2030, 6, 30),
        ),
        manager,
    )
    db.commit()

    assert req.status == ReviewStatus.APPROVED
    assert req.inventory_item_id == item.id
    assert req.reviewed_by_id == manager.id
    assert req.reviewed_at is not None
    assert req.remarks == "Approved for Q3"
    assert req.approved_quantity == 1

    db.refresh(item)
    assert item.status == InventoryStatus.ISSUED
    assert item.issued_to_id == employee.id
    assert inventory.to_out(item).issued_to == "Emma Employee"
    assert item.date_of_issue is not None
    assert item.expected_return_date == date(2030, 6, 30)

    issue = (
        db.query(InventoryTransaction)
        .filter(InventoryTransaction.transaction_type == TransactionType.ISSUE)
        .one()
    )
    assert issue.request_id == req.id
    assert issue.issued_to_id == employee.id
    assert issue.performed_by_id == manager.id

    out = service.to_out(req)
    assert out.employee_name == "Emma Employee"
    assert out.reviewer_name == manager.full_name
    assert out.inventory_item_unique_id == item.unique_id


def test_auto_allocation_matches_name_case_insensitively(db, manager, employee):
    inventory.create_item(db, item_data(asset_name="Monitor"), manager)
    laptop = inventory.create_item(db, item_data(asset_name="Laptop"), manager)
    db.commit()
    req = _submit(db, employee, item_type="  LAPTOP ")

    service.approve_request(db, req, ApproveRequest(), manager)
    db.commit()
    assert req.inventory_item_id == laptop.id


def test_auto_allocation_skips_issued_units(db, manager, employee, other_employee):
    first = inventory.create_item(db, item_data(), manager)
    second = inventory.create_item(db, item_data(), manager)
    db.commit()

    r1 = _submit(db, employee)
    r2 = _submit(db, other_employee)
    service.approve_request(db, r1, ApproveRequest(), manager)
    service.approve_request(db, r2, ApproveRequest(), manager)
    db.commit()

    assert {r1.inventory_item_id, r2.inventory_item_id} == {first.id, second.id}


def test_no_matching_stock_is_insufficient(db, manager, employee):
    inventory.create_item(db, item_data(asset_name="Monitor"), manager)
    db.commit()
    req = _submit(db, employee, item_type="Projector")

    with pytest.raises(InsufficientStock):
        service.approve_request(db, req, ApproveRequest(), manager)
    db.rollback()

    db.refresh(req)
    assert req.status == ReviewStatus.PENDING


def test_second_approval_of_same_item_is_already_issued(db, manager, employee, other_employee):
    item = inventory.create_item(db, item_data(), manager)
    db.commit()
    r1 = _submit(db, employee)
    r2 = _submit(db, other_employee)

    service.approve_request(db, r1, ApproveRequest(inventory_item_id=item.id), manager)
    db.commit()

    with pytest.raises(Conflict) as exc:
        service.approve_request(db, r2, ApproveRequest(inventory_item_id=item.id), manager)
    assert "already issued" in exc.value.message
    db.rollback()

    db.refresh(r2)
    db.refresh(item)
    assert r2.status == ReviewStatus.PENDING
    assert item.issued_to_id == employee.id


def test_terminal_requests_cannot_be_reviewed_again(db, manager, employee):
    inventory.create_item(db, item_data(), manager)
    inventory.create_item(db, item_data(), manager)
    db.commit()
    approved = _submit(db, employee)
    rejected = _submit(db, employee)
    service.approve_request(db, approved, ApproveRequest(), manager)
    service.reject_request(db, rejected, RejectRequest(rejection_reason="Budget"), manager)
    db.commit()

    for req in (approved, rejected):
        for action in (
            lambda r: service.approve_request(db, r, ApproveRequest(), manager),
            lambda r: service.reject_request(db, r, RejectRequest(), manager),
        ):
            with pytest.raises(Conflict) as exc:
                action(req)
            assert exc.value.message == "Request already processed"
            db.rollback()

    db.refresh(rejected)
    assert rejected.status == ReviewStatus.REJECTED
    assert rejected.rejection_reason == "Budget"
    # второе одобрение не выдало ещё одну единицу
    assert len(inventory.items_by_status(db, InventoryStatus.AVAILABLE)) == 1


def test_reject_has_no_inventory_effect(db, manager, employee):
    item = inventory.create_item(db, item_data(), manager)
    db.commit()
    req = _submit(db, employee)
    service.reject_request(db, req, RejectRequest(rejection_reason="Not justified"), manager)
    db.commit()

    assert req.status == ReviewStatus.REJECTED
    assert req.reviewed_by_id == manager.id
    db.refresh(item)
    assert item.status == InventoryStatus.AVAILABLE


def test_approved_quantity_cannot_exceed_requested(db, manager, employee):
    req = _submit(db, employee, quantity=2)
    with pytest.raises(ValidationFailed):
        service.approve_request(db, req, ApproveRequest(approved_quantity=3), manager)


def test_owner_edits_and_deletes_only_pending(db, manager, employee, other_employee):
    req = _submit(db, employee)

    with pytest.raises(PermissionDenied):
        service.update_request(db, req, AssetRequestUpdate(quantity=2), other_employee)

    service.update_request(db, req, AssetRequestUpdate(quantity=2, item_type=" Tablet "), employee)
    db.commit()
    assert req.quantity == 2
    assert req.item_type == "Tablet"

    service.reject_request(db, req, RejectRequest(), manager)
    db.commit()
    with pytest.raises(ValidationFailed):
        service.delete_request(db, req, employee)


def test_queries_and_stats(db, manager, employee, other_employee):
    inventory.create_item(db, item_data(), manager)
    db.commit()
    mine = _submit(db, employee)
    _submit(db, employee, item_type="Monitor")
    theirs = _submit(db, other_employee, item_type="Chair")
    service.approve_request(db, mine, ApproveRequest(), manager)
    db.commit()

    assert len(service.list_requests(db, employee_id=employee.id)) == 2
    assert [r.id for r in service.list_requests(db, search="chair")] == [theirs.id]
    assert len(service.pending_requests(db)) == 2

    stats = service.request_stats(db)
    assert (stats.total, stats.pending, stats.approved, stats.rejected) == (3, 2, 1, 0)
    own = service.request_stats(db, employee_id=employee.id)
    assert (own.total, own.pending, own.approved) == (2, 1, 1)


def test_overdue_requests(db, employee):
    old = _submit(db, employee)
    _submit(db, employee, item_type="Monitor")
    old.submitted_at = datetime.now(timezone.utc) - timedelta(days=30)
    db.commit()

    assert [r.id for r in service.overdue_requests(db)] == [old.id]
