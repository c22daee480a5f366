"""Подроуты модуля учёта активов (inventory, requests, return-requests, transactions и справочники)."""
from . import categories, dashboard, inventory, locations, requests, return_requests, transactions

__all__ = [
    "categories",
    "dashboard",
    "inventory",
    "locations",
    "requests",
    "return_requests",
    "transactions",
]
