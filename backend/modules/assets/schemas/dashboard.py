"""Схемы сводки для главной страницы склада."""

from decimal import Decimal
from typing import Dict, List

from pydantic import BaseModel

from backend.modules.assets.schemas.transaction import TransactionOut


class TotalsOut(BaseModel):
    users: int
    inventory_items: int
    requests: int
    return_requests: int
    categories: int
    locations: int
    transactions: int


class GroupStats(BaseModel):
    key: str
    count: int
    total_value: Decimal = Decimal("0")


class DashboardStatsOut(BaseModel):
    totals: TotalsOut
    inventory_by_status: List[GroupStats]
    requests_by_status: Dict[str, int]
    transactions_by_type: Dict[str, int]
    total_inventory_value: Decimal
    low_stock_items: int
    pending_requests: int
    pending_returns: int
    overdue_issues: int
    top_categories: List[GroupStats]
    recent_activity: List[TransactionOut]
