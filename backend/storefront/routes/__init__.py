"""
Route aggregator — mounts API routers under the /api prefix.

Health is exported separately for main.py to mount at root.
Version: 1.0.0
"""
from fastapi import APIRouter

from storefront.routes.health import router as health_router
from storefront.routes.product_import import router as product_import_router

api_router = APIRouter(prefix="/api")

api_router.include_router(product_import_router)

__all__ = ["api_router", "health_router"]
