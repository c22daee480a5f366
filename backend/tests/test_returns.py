"""
Тесты заявок на возврат
"""
import pytest
from sqlalchemy.exc import IntegrityError
from conftest import item_data

from backend.modules.assets.exceptions import (
    Conflict,
    PermissionDenied,
    ValidationFailed,
)
from backend.modules.assets.models import (
    AssetCondition,
    InventoryStatus,
    InventoryTransaction,
    ReturnRequest,
    ReviewStatus,
    TransactionType,
)
from backend.modules.assets.schemas.inventory import (
    InventoryItemUpdate,
    IssueItemRequest,
    ReturnItemRequest,
)
from backend.modules.assets.schemas.return_request import (
    ApproveReturn,
    RejectReturn,
    ReturnRequestCreate,
)
from backend.modules.assets.services import inventory
from backend.modules.assets.services import returns as service


@pytest.fixture
def issued_item(db, manager, employee):
    item = inventory.create_item(db, item_data(), manager)
    inventory.issue_item(db, item.id, IssueItemRequest(issued_to_id=employee.id), manager)
    db.commit()
    return item


def _submit(db, user, item, **kwargs):
    data = {"inventory_item_id": item.id, "return_reason": "Project finished"}
    data.update(kwargs)
    ret = service.submit_return(db, ReturnRequestCreate(**data), user)
    db.commit()
    return ret


def test_submit_return_for_own_item(db, employee, issued_item):
    ret = _submit(db, employee, issued_item, condition_on_return=AssetCondition.FAIR)
    assert ret.status == ReviewStatus.PENDING
    assert ret.asset_name == "Laptop"
    assert ret.condition_on_return == AssetCondition.FAIR

    db.refresh(issued_item)
    assert issued_item.status == InventoryStatus.ISSUED


def test_cannot_return_item_issued_to_someone_else(db, other_employee, issued_item):
    with pytest.raises(ValidationFailed):
        _submit(db, other_employee, issued_item)


def test_cannot_return_item_in_stock(db, manager, employee):
    item = inventory.create_item(db, item_data(), manager)
    db.commit()
    with pytest.raises(ValidationFailed):
        _submit(db, employee, item)


def test_second_pending_return_is_rejected(db, employee, issued_item):
    _submit(db, employee, issued_item)
    with pytest.raises(Conflict) as exc:
        _submit(db, employee, issued_item)
    assert "pending return request already exists" in exc.value.message
    db.rollback()
    assert db.query(ReturnRequest).count() == 1


def test_pending_uniqueness_is_enforced_by_index(db, employee, issued_item):
    db.add(
        ReturnRequest(
            employee_id=employee.id,
            inventory_item_id=issued_item.id,
            asset_name="Laptop",
            return_reason="First",
            status=ReviewStatus.PENDING,
        )
    )
    db.commit()
    db.add(
        ReturnRequest(
            employee_id=employee.id,
            inventory_item_id=issued_item.id,
            asset_name="Laptop",
            return_reason="Second",
            status=ReviewStatus.PENDING,
        )
    )
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_approve_return_restores_item(db, manager, employee, issued_item):
    ret = _submit(db, employee, issued_item, condition_on_return=AssetCondition.POOR)
    service.approve_return(db, ret, ApproveReturn(remarks="Checked"), manager)
    db.commit()

    assert ret.status == ReviewStatus.APPROVED
    assert ret.reviewed_by_id == manager.id
    assert ret.approval_remarks == "Checked"

    db.refresh(issued_item)
    assert issued_item.status == InventoryStatus.AVAILABLE
    assert issued_item.issued_to_id is None
    assert issued_item.date_of_issue is None
    assert issued_item.condition == AssetCondition.POOR
    assert issued_item.balance_quantity_in_stock == 1

    record = (
        db.query(InventoryTransaction)
        .filter(InventoryTransaction.transaction_type == TransactionType.RETURN)
        .one()
    )
    assert record.return_request_id == ret.id
    assert record.condition == AssetCondition.POOR
    assert record.actual_return_date is not None

    # в ответе виден идентификатор возвращённой единицы
    assert service.to_out(ret).inventory_item_unique_id == issued_item.unique_id


def test_approve_fails_when_item_was_retired_meanwhile(db, manager, employee, issued_item):
    ret = _submit(db, employee, issued_item)
    inventory.update_item(
        db, issued_item, InventoryItemUpdate(status=InventoryStatus.RETIRED), manager
    )
    db.commit()

    with pytest.raises(Conflict):
        service.approve_return(db, ret, ApproveReturn(), manager)
    db.rollback()
    db.refresh(ret)
    assert ret.status == ReviewStatus.PENDING


def test_reject_requires_reason_and_keeps_item_issued(db, manager, employee, issued_item):
    ret = _submit(db, employee, issued_item)
    with pytest.raises(ValidationFailed):
        service.reject_return(db, ret, RejectReturn(rejection_reason="  "), manager)

    service.reject_return(db, ret, RejectReturn(rejection_reason="Charger missing"), manager)
    db.commit()
    assert ret.status == ReviewStatus.REJECTED
    assert ret.rejection_reason == "Charger missing"
    db.refresh(issued_item)
    assert issued_item.status == InventoryStatus.ISSUED

    # после отклонения сотрудник может подать заявку снова
    again = _submit(db, employee, issued_item)
    assert again.status == ReviewStatus.PENDING


def test_terminal_returns_cannot_be_reviewed_again(db, manager, employee, issued_item):
    ret = _submit(db, employee, issued_item)
    service.approve_return(db, ret, ApproveReturn(), manager)
    db.commit()

    with pytest.raises(Conflict) as exc:
        service.approve_return(db, ret, ApproveReturn(), manager)
    assert exc.value.message == "Return request already processed"
    db.rollback()
    with pytest.raises(Conflict):
        service.reject_return(db, ret, RejectReturn(rejection_reason="Late"), manager)
    db.rollback()


def test_delete_only_own_pending(db, manager, employee, other_employee, issued_item):
    ret = _submit(db, employee, issued_item)
    with pytest.raises(PermissionDenied):
        service.delete_return(db, ret, other_employee)
    service.delete_return(db, ret, employee)
    db.commit()
    assert db.query(ReturnRequest).count() == 0


def test_lists(db, manager, employee, issued_item):
    ret = _submit(db, employee, issued_item)
    assert [r.id for r in service.pending_returns(db)] == [ret.id]
    assert [r.id for r in service.list_returns(db, employee_id=employee.id)] == [ret.id]
    assert service.list_returns(db, status=ReviewStatus.APPROVED) == []


def test_approve_fails_when_item_now_held_by_someone_else(
    db, manager, employee, other_employee, issued_item
):
    ret = _submit(db, employee, issued_item)
    # единицу приняли напрямую и выдали другому сотруднику
    inventory.return_item(db, issued_item.id, ReturnItemRequest(), manager)
    inventory.issue_item(
        db, issued_item.id, IssueItemRequest(issued_to_id=other_employee.id), manager
    )
    db.commit()

    with pytest.raises(Conflict):
        service.approve_return(db, ret, ApproveReturn(), manager)
    db.rollback()

    db.refresh(issued_item)
    assert issued_item.status == InventoryStatus.ISSUED
    assert issued_item.issued_to_id == other_employee.id
    db.refresh(ret)
    assert ret.status == ReviewStatus.PENDING


def test_mark_returned_checks_holder(db, manager, employee, other_employee, issued_item):
    assert not inventory.mark_returned(db, issued_item.id, manager, holder_id=other_employee.id)
    db.refresh(issued_item)
    assert issued_item.status == InventoryStatus.ISSUED

    assert inventory.mark_returned(db, issued_item.id, manager, holder_id=employee.id)
    db.refresh(issued_item)
    assert issued_item.status == InventoryStatus.AVAILABLE
