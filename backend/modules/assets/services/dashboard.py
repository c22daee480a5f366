"""Сводка для главной страницы склада: счётчики, группировки и последние движения."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backend.modules.assets.models import (
    AssetRequest,
    Category,
    InventoryItem,
    InventoryStatus,
    InventoryTransaction,
    Location,
    ReturnRequest,
    ReviewStatus,
)
from backend.modules.assets.schemas.dashboard import DashboardStatsOut, GroupStats, TotalsOut
from backend.modules.assets.services import inventory, transactions
from backend.modules.hr.models.user import User

RECENT_DAYS = 7
RECENT_LIMIT = 10
TOP_CATEGORIES = 5


def _count(db: Session, model) -> int:
    return db.scalar(select(func.count()).select_from(model)) or 0


def _value(key) -> str:
    return getattr(key, "value", key)


def dashboard_stats(db: Session, today: Optional[date] = None) -> DashboardStatsOut:
    today = today or date.today()

    totals = TotalsOut(
        users=_count(db, User),
        inventory_items=_count(db, InventoryItem),
        requests=_count(db, AssetRequest),
        return_requests=_count(db, ReturnRequest),
        categories=_count(db, Category),
        locations=_count(db, Location),
        transactions=_count(db, InventoryTransaction),
    )

    stats = inventory.inventory_stats(db)
    by_status = [
        GroupStats(key=_value(s.status), count=s.count, total_value=s.total_value)
        for s in stats.by_status
    ]

    requests_by_status = {
        _value(status): count
        for status, count in db.execute(
            select(AssetRequest.status, func.count()).group_by(AssetRequest.status)
        ).all()
    }
    transactions_by_type = {
        _value(kind): count
        for kind, count in db.execute(
            select(InventoryTransaction.transaction_type, func.count()).group_by(
                InventoryTransaction.transaction_type
            )
        ).all()
    }

    pending_returns = db.scalar(
        select(func.count())
        .select_from(ReturnRequest)
        .where(ReturnRequest.status == ReviewStatus.PENDING)
    ) or 0
    overdue = db.scalar(
        select(func.count())
        .select_from(InventoryItem)
        .where(
            InventoryItem.status == InventoryStatus.ISSUED,
            InventoryItem.expected_return_date.is_not(None),
            InventoryItem.expected_return_date < today,
        )
    ) or 0

    top = db.execute(
        select(
            InventoryItem.asset_category,
            func.count(),
            func.coalesce(func.sum(InventoryItem.total_cost), 0),
        )
        .group_by(InventoryItem.asset_category)
        .order_by(func.count().desc(), InventoryItem.asset_category)
        .limit(TOP_CATEGORIES)
    ).all()

    since = datetime.now(timezone.utc) - timedelta(days=RECENT_DAYS)
    recent = db.scalars(
        select(InventoryTransaction)
        .where(InventoryTransaction.created_at >= since)
        .order_by(InventoryTransaction.created_at.desc())
        .limit(RECENT_LIMIT)
    ).all()

    return DashboardStatsOut(
        totals=totals,
        inventory_by_status=by_status,
        requests_by_status=requests_by_status,
        transactions_by_type=transactions_by_type,
        total_inventory_value=stats.total_value,
        low_stock_items=stats.low_stock_count,
        pending_requests=requests_by_status.get(ReviewStatus.PENDING.value, 0),
        pending_returns=pending_returns,
        overdue_issues=overdue,
        top_categories=[
            GroupStats(key=name, count=count, total_value=Decimal(str(total)))
            for name, count, total in top
        ],
        recent_activity=[transactions.to_out(r) for r in recent],
    )
