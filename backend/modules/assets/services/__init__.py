"""Сервисы модуля учёта активов."""

from . import (
    categories,
    dashboard,
    depreciation,
    inventory,
    locations,
    requests,
    returns,
    serials,
    transactions,
)
from .transactions import log_transaction

__all__ = [
    "categories",
    "dashboard",
    "depreciation",
    "inventory",
    "locations",
    "requests",
    "returns",
    "serials",
    "transactions",
    "log_transaction",
]
