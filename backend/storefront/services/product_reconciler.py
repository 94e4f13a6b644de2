"""
Product reconciler — turns validated rows into products, images and variants.

Rows are grouped by normalized product name; each group becomes one
product that is created, updated (update mode) or skipped (name already
in the catalog). A failing group is reported and the next one proceeds.
Version: 1.0.0
"""
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from storefront.core.constants.product_import import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    DEFAULT_VARIANT_NAME,
    PRESET_COLOR_HEX,
)
from storefront.core.exceptions import StoreError
from storefront.db.catalog_store import CatalogStore
from storefront.schemas.product_import import (
    ImportRow,
    ProductOutcome,
    ReconcileResult,
    ValidationIssue,
)
from storefront.services.catalog_lookup import CatalogLookup, normalize_name
from storefront.utils.code_generator import CodeGenerator, TimestampCodeGenerator
from storefront.utils.text_utils import sanitize_html, slugify

OutcomeCallback = Callable[[ProductOutcome], Awaitable[None]]

# Fields an update may overwrite; slug and sku stay as first created.
MUTABLE_PRODUCT_FIELDS = (
    "description",
    "price",
    "compare_at_price",
    "quantity",
    "moq",
    "status",
    "featured",
    "seo_title",
    "seo_description",
    "tags",
    "category_id",
    "metadata",
)


def group_rows(rows: List[ImportRow]) -> List[List[ImportRow]]:
    """Group rows by trimmed, case-folded name in first-appearance order."""
    groups: Dict[str, List[ImportRow]] = {}
    for row in rows:
        key = normalize_name(row.name) or f"row-{row.row_index}"
        groups.setdefault(key, []).append(row)
    return list(groups.values())


def resolve_color_hex(color: Optional[str], explicit_hex: Optional[str]) -> Optional[str]:
    if explicit_hex and explicit_hex.strip():
        return explicit_hex.strip()
    if not color or not color.strip():
        return None
    return PRESET_COLOR_HEX.get(color.strip().lower())


def build_variant(product_id: str, row: ImportRow) -> Dict[str, Any]:
    size = (row.variant_size or "").strip() or None
    color = (row.variant_color or "").strip() or None
    color_hex = resolve_color_hex(row.variant_color, row.variant_color_hex)
    return {
        "product_id": product_id,
        "name": size or color or DEFAULT_VARIANT_NAME,
        "sku": None,
        "price": row.variant_price if row.variant_price is not None else row.price,
        "quantity": row.variant_stock or 0,
        "option1": size,
        "option2": color,
        "metadata": {"color_hex": color_hex} if color_hex else {},
    }


class ProductReconciler:
    def __init__(
        self,
        catalog_store: CatalogStore,
        code_generator: Optional[CodeGenerator] = None,
    ) -> None:
        self._catalog_store = catalog_store
        self._code_generator = code_generator or TimestampCodeGenerator()
        self._logger = logging.getLogger("product_reconciler")

    async def reconcile(
        self,
        rows: List[ImportRow],
        image_urls: Dict[str, str],
        lookup: CatalogLookup,
        update_existing: bool,
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> ReconcileResult:
        result = ReconcileResult()

        async def emit(outcome: ProductOutcome) -> None:
            if on_outcome is not None:
                await on_outcome(outcome)

        for group in group_rows(rows):
            first = group[0]
            existing_id = lookup.existing_product_id(first.name)

            if existing_id and not update_existing:
                result.skipped += 1
                for row in group:
                    await emit(ProductOutcome(row=row.row_index, name=row.name, status="skipped"))
                continue

            category_id = lookup.category_id(first.category)
            if first.category and category_id is None:
                result.warnings.append(
                    ValidationIssue(
                        row=first.row_index,
                        field="category",
                        message=f"Category '{first.category}' not found. Product created without category.",
                    )
                )

            try:
                outcome, variants = await self._write_group(
                    group, image_urls, category_id, existing_id, update_existing
                )
            except StoreError as exc:
                self._logger.warning(
                    "product group failed row=%s name=%s detail=%s",
                    first.row_index,
                    first.name,
                    exc,
                )
                result.errors += 1
                await emit(
                    ProductOutcome(
                        row=first.row_index, name=first.name, status="error", error=str(exc)
                    )
                )
                continue

            if outcome.status == "created":
                result.created += 1
            else:
                result.updated += 1
            result.variants += variants
            await emit(outcome)

        self._logger.info(
            "reconcile finished created=%s updated=%s variants=%s errors=%s skipped=%s",
            result.created,
            result.updated,
            result.variants,
            result.errors,
            result.skipped,
        )
        return result

    async def _write_group(
        self,
        group: List[ImportRow],
        image_urls: Dict[str, str],
        category_id: Optional[str],
        existing_id: Optional[str],
        update_existing: bool,
    ) -> tuple[ProductOutcome, int]:
        first = group[0]
        variant_bearing = any(row.is_variant_bearing for row in group)
        payload = self._product_payload(first, group, category_id, variant_bearing)

        if existing_id and update_existing:
            await self._catalog_store.update_product(
                existing_id, {field: payload[field] for field in MUTABLE_PRODUCT_FIELDS}
            )
            product_id = existing_id
            status = "updated"
        else:
            payload["slug"] = await self._unique_slug(first.name)
            payload["sku"] = self._code_generator.next()
            product_id = await self._catalog_store.insert_product(payload)
            status = "created"

        try:
            await self._attach_images(product_id, first, image_urls, update_existing)
            variants = 0
            if variant_bearing:
                variants = await self._write_variants(product_id, group, update_existing)
        except StoreError:
            if status == "created":
                await self._discard_product(product_id)
            raise

        return ProductOutcome(
            row=first.row_index, name=first.name, status=status, product_id=product_id
        ), variants

    def _product_payload(
        self,
        first: ImportRow,
        group: List[ImportRow],
        category_id: Optional[str],
        variant_bearing: bool,
    ) -> Dict[str, Any]:
        if variant_bearing:
            quantity = sum(row.variant_stock or 0 for row in group)
        else:
            quantity = first.quantity or 0

        return {
            "name": first.name,
            "description": sanitize_html(first.description) if first.description else None,
            "price": first.price,
            "compare_at_price": first.compare_at_price,
            "quantity": quantity,
            "moq": max(1, first.moq),
            "status": first.status,
            "featured": first.featured,
            "seo_title": first.seo_title,
            "seo_description": first.seo_description,
            "tags": first.tags or None,
            "category_id": category_id,
            "metadata": {
                "low_stock_threshold": (
                    first.low_stock_threshold
                    if first.low_stock_threshold is not None
                    else DEFAULT_LOW_STOCK_THRESHOLD
                ),
                "preorder_shipping": (first.preorder_shipping or "").strip() or None,
            },
        }

    async def _unique_slug(self, name: str) -> str:
        # One query per collision; fine for import-sized batches.
        base = slugify(name)
        slug = base
        suffix = 1
        while await self._catalog_store.slug_exists(slug):
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    async def _attach_images(
        self,
        product_id: str,
        first: ImportRow,
        image_urls: Dict[str, str],
        update_existing: bool,
    ) -> None:
        urls = []
        for filename in first.images:
            url = image_urls.get(filename) or image_urls.get(filename.strip().lower())
            if url:
                urls.append(url)
        if not urls:
            return

        if update_existing:
            start = await self._catalog_store.max_image_position(product_id) + 1
        else:
            await self._catalog_store.delete_product_images(product_id)
            start = 0

        await self._catalog_store.insert_product_images(
            [
                {
                    "product_id": product_id,
                    "url": url,
                    "position": start + offset,
                    "alt_text": first.name,
                }
                for offset, url in enumerate(urls)
            ]
        )

    async def _write_variants(
        self, product_id: str, group: List[ImportRow], update_existing: bool
    ) -> int:
        if not update_existing:
            await self._catalog_store.delete_product_variants(product_id)
        variants = [build_variant(product_id, row) for row in group if row.has_variant_data]
        return await self._catalog_store.insert_product_variants(variants)

    async def _discard_product(self, product_id: str) -> None:
        """Remove a product created earlier in a group that then failed."""
        try:
            await self._catalog_store.delete_product_variants(product_id)
            await self._catalog_store.delete_product_images(product_id)
            await self._catalog_store.delete_product(product_id)
        except StoreError as exc:
            self._logger.error(
                "could not remove partially imported product id=%s detail=%s", product_id, exc
            )
