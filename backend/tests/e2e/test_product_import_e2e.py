"""
End-to-end tests for the product import pipeline.

Runs whole imports (extract -> validate -> upload -> reconcile) against
in-memory catalog and storage stores and checks what ends up persisted
alongside the events a client would see.
Version: 1.0.0
"""
import pytest

from storefront.core.exceptions import StoreError
from storefront.services.catalog_lookup import CatalogLookupService
from storefront.services.image_upload_service import ImageUploadService
from storefront.services.import_pipeline import ImportPipeline, ImportUpload


def _products(events):
    return [e.data for e in events if e.event == "product"]


def _complete(events):
    assert events[-1].event == "complete"
    return events[-1].data


@pytest.mark.e2e
class TestImportScenarios:

    @pytest.mark.asyncio
    async def test_single_minimal_row(self, run_import, catalog_store):
        events = await run_import(ImportUpload(csv_text="name,price\nTest Lamp,20\n"))

        assert [(p["row"], p["status"]) for p in _products(events)] == [(2, "success")]
        product = catalog_store.product_named("Test Lamp")
        assert product["quantity"] == 0
        assert product["status"] == "draft"
        assert product["featured"] is False
        assert product["moq"] == 1
        assert product["compare_at_price"] is None
        assert catalog_store.variants == []
        assert catalog_store.images == []

    @pytest.mark.asyncio
    async def test_shared_name_becomes_variant_product(self, run_import, catalog_store):
        csv_text = (
            "name,price,variant_color,variant_size,variant_stock\n"
            "Shirt,30,Black,S,10\n"
            "Shirt,30,Black,M,15\n"
        )

        events = await run_import(ImportUpload(csv_text=csv_text))

        assert _complete(events)["summary"]["productsCreated"] == 1
        assert _complete(events)["summary"]["variantsCreated"] == 2
        assert catalog_store.product_named("Shirt")["quantity"] == 25
        assert [v["option1"] for v in catalog_store.variants] == ["S", "M"]
        assert all(v["metadata"] == {"color_hex": "#000000"} for v in catalog_store.variants)

    @pytest.mark.asyncio
    async def test_compare_at_not_above_price(self, run_import, catalog_store):
        csv_text = "name,price,compare_at_price\nLamp,20,20\n"

        events = await run_import(ImportUpload(csv_text=csv_text))

        errors = _complete(events)["errors"]
        assert [(e["row"], e["field"]) for e in errors] == [(2, "compare_at_price")]
        assert catalog_store.product_named("Lamp")["compare_at_price"] is None

    @pytest.mark.asyncio
    async def test_oversized_archive_has_no_product_events(
        self, make_zip, catalog_store, image_store, reconciler
    ):
        pipeline = ImportPipeline(
            lookup_service=CatalogLookupService(catalog_store),
            image_uploader=ImageUploadService(image_store),
            reconciler=reconciler,
            max_extracted_bytes=2048,
        )
        archive = make_zip(
            {"products.csv": "name,price\nLamp,20\n", "images/big.jpg": b"\x00" * 8192}
        )

        events = [e async for e in pipeline.stream(ImportUpload(zip_bytes=archive), False)]

        assert _products(events) == []
        assert events[-1].event == "error"
        assert "exceed maximum allowed size" in events[-1].data["message"]

    @pytest.mark.asyncio
    async def test_missing_image_reported_row_still_imported(
        self, run_import, make_zip, catalog_store
    ):
        archive = make_zip({"products.csv": "name,price,images\nLamp,20,missing.jpg\n"})

        events = await run_import(ImportUpload(zip_bytes=archive))

        errors = _complete(events)["errors"]
        assert [(e["row"], e["field"]) for e in errors] == [(2, "images")]
        assert errors[0]["message"] == "Image 'missing.jpg' not found in archive"
        assert catalog_store.product_named("Lamp")
        assert catalog_store.images == []


@pytest.mark.e2e
class TestImportProperties:

    @pytest.mark.asyncio
    async def test_rerun_without_update_skips_every_row(self, run_import, catalog_store):
        csv_text = "name,price,variant_size\nTee,10,S\nTee,10,M\nMug,5,\n"

        await run_import(ImportUpload(csv_text=csv_text))
        second = await run_import(ImportUpload(csv_text=csv_text))

        assert len(catalog_store.products) == 2
        assert [(p["row"], p["status"]) for p in _products(second)] == [
            (2, "skipped"), (3, "skipped"), (4, "skipped")
        ]
        summary = _complete(second)["summary"]
        assert summary["skipped"] == 2
        assert summary["productsCreated"] == 0

    @pytest.mark.asyncio
    async def test_rerun_with_update_keeps_identity(self, run_import, catalog_store):
        await run_import(ImportUpload(csv_text="name,price\nLamp,20\n"))
        original = dict(catalog_store.product_named("Lamp"))

        events = await run_import(ImportUpload(csv_text="name,price\nlamp,25\n"), True)

        updated = catalog_store.product_named("Lamp")
        assert _complete(events)["summary"]["productsUpdated"] == 1
        assert len(catalog_store.products) == 1
        assert updated["price"] == 25
        assert updated["slug"] == original["slug"]
        assert updated["sku"] == original["sku"]

    @pytest.mark.asyncio
    async def test_unreferenced_images_never_uploaded(self, run_import, make_zip, image_store):
        archive = make_zip(
            {
                "products.csv": "name,price,images\nLamp,20,lamp.jpg\nChair,abc,chair.jpg\n",
                "images/lamp.jpg": b"l",
                "images/chair.jpg": b"c",
                "images/extra.jpg": b"e",
            }
        )

        events = await run_import(ImportUpload(zip_bytes=archive))

        assert list(image_store.uploads) == ["imports/1700000000000/lamp.jpg"]
        assert _complete(events)["summary"]["imagesUploaded"] == 1

    @pytest.mark.asyncio
    async def test_compare_at_always_above_price(self, run_import, catalog_store):
        csv_text = (
            "name,price,compare_at_price\n"
            "A,10,15\n"
            "B,10,5\n"
            "C,10,\n"
            "D,,30\n"
        )

        await run_import(ImportUpload(csv_text=csv_text))

        for product in catalog_store.products:
            if product["compare_at_price"] is not None:
                assert product["compare_at_price"] > product["price"]
        assert {p["name"] for p in catalog_store.products} == {"A", "B", "C"}

    @pytest.mark.asyncio
    async def test_grouping_ignores_case_and_whitespace(self, run_import, catalog_store):
        csv_text = (
            "name,price,variant_size,variant_stock\n"
            "Hoodie,40,S,1\n"
            " HOODIE ,40,M,2\n"
            "Cap,15,,\n"
            "hoodie,40,L,3\n"
        )

        events = await run_import(ImportUpload(csv_text=csv_text))

        assert _complete(events)["summary"]["productsCreated"] == 2
        assert catalog_store.product_named("Hoodie")["quantity"] == 6
        assert sorted(v["option1"] for v in catalog_store.variants) == ["L", "M", "S"]

    @pytest.mark.asyncio
    async def test_unknown_category_warning(self, run_import, catalog_store):
        events = await run_import(
            ImportUpload(csv_text="name,price,category\nLamp,20,Garden\nRug,30,home\n")
        )

        complete = _complete(events)
        assert [(w["row"], w["field"]) for w in complete["warnings"]] == [(2, "category")]
        assert complete["summary"]["warnings"] == 1
        assert catalog_store.product_named("Lamp")["category_id"] is None
        assert catalog_store.product_named("Rug")["category_id"] == "cat-home"

    @pytest.mark.asyncio
    async def test_store_failure_isolated_and_compensated(self, run_import, catalog_store):
        original_insert = catalog_store.insert_product_variants

        async def failing_variants(rows):
            if rows and rows[0]["name"] == "XL":
                raise StoreError("product_variants", "insert rejected")
            return await original_insert(rows)

        catalog_store.insert_product_variants = failing_variants
        csv_text = "name,price,variant_size\nBig Tee,20,XL\nMug,5,\n"

        events = await run_import(ImportUpload(csv_text=csv_text))

        statuses = [(p["row"], p["status"]) for p in _products(events)]
        assert statuses == [(2, "error"), (3, "success")]
        assert [p["name"] for p in catalog_store.products] == ["Mug"]
        summary = _complete(events)["summary"]
        assert summary["errors"] == 1
        assert summary["productsCreated"] == 1

    @pytest.mark.asyncio
    async def test_degraded_lookup_still_completes(self, run_import, catalog_store):
        catalog_store.fail_lookups = True

        events = await run_import(ImportUpload(csv_text="name,price,category\nLamp,20,Fashion\n"))

        complete = _complete(events)
        assert complete["summary"]["productsCreated"] == 1
        assert [w["field"] for w in complete["warnings"]] == ["category"]
