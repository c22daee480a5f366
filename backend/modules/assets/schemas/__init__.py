"""Схемы модуля учёта активов."""
from .inventory import (
    BulkCreateResult,
    BulkUpdateRequest,
    BulkUpdateResult,
    DepreciationOut,
    InventoryItemCreate,
    InventoryItemOut,
    InventoryItemUpdate,
    InventoryStatsOut,
    IssueItemRequest,
    ReturnItemRequest,
    SerialPreviewOut,
    UidPreviewOut,
    UidValidateOut,
    UidValidateRequest,
)
from .request import (
    ApproveRequest,
    AssetRequestCreate,
    AssetRequestOut,
    AssetRequestUpdate,
    RejectRequest,
    RequestStatsOut,
)
from .return_request import ApproveReturn, RejectReturn, ReturnRequestCreate, ReturnRequestOut
from .category import (
    AssetNameIn,
    AssetNameOut,
    CategoryCreate,
    CategoryInventoryOut,
    CategoryOut,
    CategoryStatsOut,
    CategoryUpdate,
)
from .dashboard import DashboardStatsOut, GroupStats, TotalsOut
from .location import LocationCreate, LocationOut, LocationStatsOut, LocationUpdate
from .transaction import TransactionOut

__all__ = [
    "BulkCreateResult",
    "BulkUpdateRequest",
    "BulkUpdateResult",
    "DepreciationOut",
    "InventoryItemCreate",
    "InventoryItemOut",
    "InventoryItemUpdate",
    "InventoryStatsOut",
    "IssueItemRequest",
    "ReturnItemRequest",
    "SerialPreviewOut",
    "UidPreviewOut",
    "UidValidateOut",
    "UidValidateRequest",
    "ApproveRequest",
    "AssetRequestCreate",
    "AssetRequestOut",
    "AssetRequestUpdate",
    "RejectRequest",
    "RequestStatsOut",
    "ApproveReturn",
    "RejectReturn",
    "ReturnRequestCreate",
    "ReturnRequestOut",
    "TransactionOut",
    "AssetNameIn",
    "AssetNameOut",
    "CategoryCreate",
    "CategoryInventoryOut",
    "CategoryOut",
    "CategoryStatsOut",
    "CategoryUpdate",
    "DashboardStatsOut",
    "GroupStats",
    "TotalsOut",
    "LocationCreate",
    "LocationOut",
    "LocationStatsOut",
    "LocationUpdate",
]
