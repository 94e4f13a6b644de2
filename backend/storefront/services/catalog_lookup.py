"""
Catalog lookup service — category and existing-product tables for one run.

Both reads are best-effort: a failed query is captured as an ignored
LookupResult and the run continues with an empty table (no category
resolves, every product looks new).
Version: 1.0.0
"""
import logging
from typing import Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from storefront.core.exceptions import StoreError
from storefront.db.catalog_store import CatalogStore

T = TypeVar("T")


def normalize_name(name: Optional[str]) -> str:
    return (name or "").strip().lower()


class LookupResult(BaseModel, Generic[T]):
    """A fallible read: value is always usable, ignored carries the swallowed failure."""
    value: T
    ignored: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.ignored is not None


class CatalogLookup(BaseModel):
    categories_by_name: Dict[str, str] = Field(default_factory=dict)
    product_ids_by_name: Dict[str, str] = Field(default_factory=dict)
    ignored_failures: list[str] = Field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.ignored_failures)

    def category_id(self, category: Optional[str]) -> Optional[str]:
        return self.categories_by_name.get(normalize_name(category))

    def existing_product_id(self, name: str) -> Optional[str]:
        return self.product_ids_by_name.get(normalize_name(name))


class CatalogLookupService:
    def __init__(self, catalog_store: CatalogStore) -> None:
        self._catalog_store = catalog_store
        self._logger = logging.getLogger("catalog_lookup")

    async def load_categories(self) -> LookupResult[Dict[str, str]]:
        try:
            rows = await self._catalog_store.list_active_categories()
        except StoreError as exc:
            self._logger.warning("category lookup degraded to empty detail=%s", exc)
            return LookupResult[Dict[str, str]](value={}, ignored=str(exc))
        return LookupResult[Dict[str, str]](value=_index_by_name(rows))

    async def load_products(self) -> LookupResult[Dict[str, str]]:
        try:
            rows = await self._catalog_store.list_product_names()
        except StoreError as exc:
            self._logger.warning("product lookup degraded to empty detail=%s", exc)
            return LookupResult[Dict[str, str]](value={}, ignored=str(exc))
        return LookupResult[Dict[str, str]](value=_index_by_name(rows))

    async def build(self) -> CatalogLookup:
        categories = await self.load_categories()
        products = await self.load_products()
        lookup = CatalogLookup(
            categories_by_name=categories.value,
            product_ids_by_name=products.value,
            ignored_failures=[
                failure for failure in (categories.ignored, products.ignored) if failure
            ],
        )
        self._logger.info(
            "catalog lookup built categories=%s products=%s degraded=%s",
            len(lookup.categories_by_name),
            len(lookup.product_ids_by_name),
            lookup.degraded,
        )
        return lookup


def _index_by_name(rows) -> Dict[str, str]:
    index: Dict[str, str] = {}
    for row in rows:
        key = normalize_name(row.get("name"))
        if key and row.get("id") is not None:
            index.setdefault(key, str(row["id"]))
    return index
