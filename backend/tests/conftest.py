"""
Pytest configuration and shared fixtures for storefront tests.

Provides mocked Supabase clients, in-memory catalog / image stores that
behave like the real ones, and helpers for building import bundles.
Version: 1.0.0
"""
import io
import zipfile
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from storefront.core.exceptions import StoreError
from storefront.services.catalog_lookup import CatalogLookupService
from storefront.services.image_upload_service import ImageUploadService
from storefront.services.import_pipeline import ImportPipeline
from storefront.services.product_reconciler import ProductReconciler
from storefront.utils.code_generator import SequenceCodeGenerator


# ---------------------------------------------------------------------------
# Bundles
# ---------------------------------------------------------------------------

def build_zip(entries: Dict[str, bytes | str]) -> bytes:
    """ZIP archive bytes with entries written in the given order."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# In-memory stores
# ---------------------------------------------------------------------------

class InMemoryCatalogStore:
    """
    Async stand-in for CatalogStore backed by plain lists.

    fail_on: method names that raise StoreError when called.
    fail_lookups: make list_* reads raise StoreError.
    """

    def __init__(self, categories: Optional[List[Dict[str, Any]]] = None) -> None:
        self.categories = categories or []
        self.products: List[Dict[str, Any]] = []
        self.images: List[Dict[str, Any]] = []
        self.variants: List[Dict[str, Any]] = []
        self.fail_on: set = set()
        self.fail_lookups = False
        self.calls: List[str] = []
        self._next_id = 1

    def _check(self, method: str) -> None:
        self.calls.append(method)
        if method in self.fail_on:
            raise StoreError("products", f"{method} rejected")

    async def list_active_categories(self):
        if self.fail_lookups:
            raise StoreError("categories", "select failed")
        return [c for c in self.categories if c.get("status", "active") == "active"]

    async def list_product_names(self):
        if self.fail_lookups:
            raise StoreError("products", "select failed")
        return [{"id": p["id"], "name": p["name"]} for p in self.products]

    async def slug_exists(self, slug: str) -> bool:
        self.calls.append("slug_exists")
        return any(p["slug"] == slug for p in self.products)

    async def insert_product(self, payload):
        self._check("insert_product")
        product_id = f"prod-{self._next_id}"
        self._next_id += 1
        self.products.append({"id": product_id, **payload})
        return product_id

    async def update_product(self, product_id, payload):
        self._check("update_product")
        for product in self.products:
            if product["id"] == product_id:
                product.update(payload)

    async def delete_product(self, product_id):
        self._check("delete_product")
        self.products = [p for p in self.products if p["id"] != product_id]

    async def delete_product_images(self, product_id):
        self._check("delete_product_images")
        self.images = [i for i in self.images if i["product_id"] != product_id]

    async def max_image_position(self, product_id):
        positions = [i["position"] for i in self.images if i["product_id"] == product_id]
        return max(positions) if positions else -1

    async def insert_product_images(self, rows):
        self._check("insert_product_images")
        self.images.extend(rows)

    async def delete_product_variants(self, product_id):
        self._check("delete_product_variants")
        self.variants = [v for v in self.variants if v["product_id"] != product_id]

    async def insert_product_variants(self, rows):
        self._check("insert_product_variants")
        self.variants.extend(rows)
        return len(rows)

    def product_named(self, name: str) -> Dict[str, Any]:
        return next(p for p in self.products if p["name"] == name)


class InMemoryImageStore:
    """Async stand-in for ImageStore recording uploaded object paths."""

    def __init__(self) -> None:
        self.uploads: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self.fail_paths: set = set()

    async def upload_image(self, object_path: str, data: bytes, content_type: str) -> str:
        if object_path in self.fail_paths:
            raise StoreError("storage:products", "upload rejected")
        self.uploads[object_path] = data
        self.content_types[object_path] = content_type
        return f"https://cdn.test/{object_path}"


@pytest.fixture
def catalog_store():
    return InMemoryCatalogStore(
        categories=[
            {"id": "cat-fashion", "name": "Fashion", "status": "active"},
            {"id": "cat-home", "name": " Home ", "status": "active"},
        ]
    )


@pytest.fixture
def image_store():
    return InMemoryImageStore()


@pytest.fixture
def code_generator():
    return SequenceCodeGenerator(f"SLI-TEST-{n:04d}" for n in range(1, 10_000))


@pytest.fixture
def reconciler(catalog_store, code_generator):
    return ProductReconciler(catalog_store=catalog_store, code_generator=code_generator)


@pytest.fixture
def pipeline(catalog_store, image_store, reconciler):
    """ImportPipeline wired to in-memory stores with a fixed upload prefix."""
    return ImportPipeline(
        lookup_service=CatalogLookupService(catalog_store=catalog_store),
        image_uploader=ImageUploadService(image_store=image_store),
        reconciler=reconciler,
        prefix_factory=lambda: "imports/1700000000000",
    )


async def collect_events(pipeline: ImportPipeline, upload, update_existing: bool = False):
    return [event async for event in pipeline.stream(upload, update_existing)]


# ---------------------------------------------------------------------------
# Supabase (mocked)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_supabase_client():
    """Mocked SupabaseClient with a chainable table builder."""
    client = MagicMock()
    mock_table = MagicMock()
    mock_table.select.return_value = mock_table
    mock_table.insert.return_value = mock_table
    mock_table.update.return_value = mock_table
    mock_table.delete.return_value = mock_table
    mock_table.eq.return_value = mock_table
    mock_table.limit.return_value = mock_table
    mock_table.execute.return_value = MagicMock(data=[])
    client.client.table.return_value = mock_table
    client.storage_bucket = "products"
    client.storage_public_url = "https://test.supabase.co/storage/v1/object/public/products"
    return client


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

@pytest.fixture
def staff_user():
    return {"user_id": "user-1", "email": "staff@test.com", "role": "staff"}


@pytest.fixture
def mock_audit_store():
    store = MagicMock()
    store.record = AsyncMock(return_value=True)
    return store


# ---------------------------------------------------------------------------
# Helper fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def make_zip():
    """Factory: entries dict → ZIP bytes."""
    return build_zip


@pytest.fixture
def run_import(pipeline):
    """Run the shared pipeline to completion and return every event."""
    async def _run(upload, update_existing: bool = False):
        return await collect_events(pipeline, upload, update_existing)
    return _run
