"""
Unit tests for CatalogStore — catalog table operations used by the import.

Tests cover:
- Active category and product name lookups
- insert_product returns the new id and rejects empty responses
- max_image_position defaults to -1
- insert_product_variants counts written rows and skips empty input
Version: 1.0.0
"""
import pytest
from unittest.mock import MagicMock

from storefront.core.exceptions import StoreError
from storefront.db.catalog_store import CatalogStore


pytestmark = pytest.mark.unit


@pytest.fixture
def store(mock_supabase_client):
    return CatalogStore(supabase_client=mock_supabase_client)


@pytest.fixture
def mock_table(mock_supabase_client):
    return mock_supabase_client.client.table.return_value


class TestLookups:

    @pytest.mark.asyncio
    async def test_list_active_categories_filters_status(self, store, mock_table):
        mock_table.execute.return_value = MagicMock(data=[{"id": "c1", "name": "Fashion"}])

        rows = await store.list_active_categories()

        store._client.table.assert_called_with("categories")
        mock_table.select.assert_called_once_with("id,name")
        mock_table.eq.assert_called_once_with("status", "active")
        assert rows == [{"id": "c1", "name": "Fashion"}]

    @pytest.mark.asyncio
    async def test_slug_exists(self, store, mock_table):
        mock_table.execute.return_value = MagicMock(data=[{"id": "p1"}])
        assert await store.slug_exists("lamp") is True

        mock_table.execute.return_value = MagicMock(data=[])
        assert await store.slug_exists("lamp-1") is False


class TestProducts:

    @pytest.mark.asyncio
    async def test_insert_product_returns_id(self, store, mock_table):
        mock_table.execute.return_value = MagicMock(data=[{"id": 42}])

        assert await store.insert_product({"name": "Lamp", "slug": "lamp"}) == "42"

    @pytest.mark.asyncio
    async def test_insert_product_without_id_raises(self, store, mock_table):
        mock_table.execute.return_value = MagicMock(data=[])

        with pytest.raises(StoreError, match="insert returned no id"):
            await store.insert_product({"name": "Lamp"})

    @pytest.mark.asyncio
    async def test_update_product_filters_by_id(self, store, mock_table):
        await store.update_product("p1", {"price": 5})

        mock_table.update.assert_called_once_with({"price": 5})
        mock_table.eq.assert_called_once_with("id", "p1")


class TestImagesAndVariants:

    @pytest.mark.asyncio
    async def test_max_image_position_without_images(self, store, mock_table):
        mock_table.execute.return_value = MagicMock(data=[])

        assert await store.max_image_position("p1") == -1

    @pytest.mark.asyncio
    async def test_max_image_position(self, store, mock_table):
        mock_table.execute.return_value = MagicMock(
            data=[{"position": 0}, {"position": 3}, {"position": None}]
        )

        assert await store.max_image_position("p1") == 3

    @pytest.mark.asyncio
    async def test_insert_variants_returns_count(self, store, mock_table):
        rows = [{"product_id": "p1", "name": "S"}, {"product_id": "p1", "name": "M"}]

        assert await store.insert_product_variants(rows) == 2
        store._client.table.assert_called_with("product_variants")

    @pytest.mark.asyncio
    async def test_insert_variants_empty(self, store, mock_table):
        assert await store.insert_product_variants([]) == 0
        mock_table.insert.assert_not_called()
