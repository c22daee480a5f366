"""
API роуты модуля учёта активов.
Префикс: /api/v1. Подроуты: /inventory, /requests, /return-requests, /transactions,
/categories, /locations, /dashboard.
"""

from fastapi import APIRouter

from backend.core.config import settings

from .routes import (
    categories,
    dashboard,
    inventory,
    locations,
    requests,
    return_requests,
    transactions,
)

router = APIRouter(prefix=settings.api_v1_prefix)

router.include_router(inventory.router)
router.include_router(requests.router)
router.include_router(return_requests.router)
router.include_router(transactions.router)
router.include_router(categories.router)
router.include_router(locations.router)
router.include_router(dashboard.router)


@router.get("/assets")
async def assets_module_info():
    """Информация о модуле учёта активов"""
    return {
        "module": "assets",
        "name": "IHUB Asset Lifecycle",
        "version": "1.0.0",
        "status": "active",
    }
