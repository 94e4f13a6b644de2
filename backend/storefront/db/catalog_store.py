"""
Catalog store — products, product_images, product_variants, categories.

Version: 1.0.0
"""

import logging
from typing import Any, Dict, List

from storefront.core.exceptions import StoreError
from storefront.db.base_store import BaseStore

logger = logging.getLogger("catalog_store")

PRODUCTS_TABLE = "products"
IMAGES_TABLE = "product_images"
VARIANTS_TABLE = "product_variants"
CATEGORIES_TABLE = "categories"


class CatalogStore(BaseStore):
    """Reads and writes for the storefront catalog tables."""

    # -- Lookups -----------------------------------------------------------

    async def list_active_categories(self) -> List[Dict[str, Any]]:
        """Return id/name for every category with status 'active'."""
        return await self._select(CATEGORIES_TABLE, "id,name", {"status": "active"})

    async def list_product_names(self) -> List[Dict[str, Any]]:
        """Return id/name for every product."""
        return await self._select(PRODUCTS_TABLE, "id,name")

    async def slug_exists(self, slug: str) -> bool:
        rows = await self._select(PRODUCTS_TABLE, "id", {"slug": slug}, limit=1)
        return bool(rows)

    # -- Products ----------------------------------------------------------

    async def insert_product(self, payload: Dict[str, Any]) -> str:
        """Insert one product and return its id."""
        rows = await self._insert(PRODUCTS_TABLE, [payload])
        if not rows or not rows[0].get("id"):
            raise StoreError(PRODUCTS_TABLE, "insert returned no id")
        product_id = str(rows[0]["id"])
        logger.info("product inserted id=%s slug=%s", product_id, payload.get("slug"))
        return product_id

    async def update_product(self, product_id: str, payload: Dict[str, Any]) -> None:
        await self._update(PRODUCTS_TABLE, {"id": product_id}, payload)
        logger.info("product updated id=%s fields=%s", product_id, sorted(payload))

    async def delete_product(self, product_id: str) -> None:
        await self._delete(PRODUCTS_TABLE, {"id": product_id})
        logger.info("product deleted id=%s", product_id)

    # -- Images ------------------------------------------------------------

    async def delete_product_images(self, product_id: str) -> None:
        await self._delete(IMAGES_TABLE, {"product_id": product_id})

    async def max_image_position(self, product_id: str) -> int:
        """Highest image position for a product, -1 when it has none."""
        rows = await self._select(IMAGES_TABLE, "position", {"product_id": product_id})
        positions = [row["position"] for row in rows if row.get("position") is not None]
        return max(positions) if positions else -1

    async def insert_product_images(self, rows: List[Dict[str, Any]]) -> None:
        await self._insert(IMAGES_TABLE, rows)

    # -- Variants ----------------------------------------------------------

    async def delete_product_variants(self, product_id: str) -> None:
        await self._delete(VARIANTS_TABLE, {"product_id": product_id})

    async def insert_product_variants(self, rows: List[Dict[str, Any]]) -> int:
        """Insert variants and return how many were written."""
        if not rows:
            return 0
        await self._insert(VARIANTS_TABLE, rows)
        return len(rows)
