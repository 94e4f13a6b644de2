"""
Import pipeline — runs one product import and streams its progress.

Phases, strictly forward:
    extracting → validating → uploading_images → creating_products → complete

The pipeline runs in a producer task that pushes ImportEvents onto a
queue as they happen; stream() yields them to the transport. Exactly one
terminal event (complete or error) ends every run. If the consumer goes
away the producer is cancelled; writes already made are kept.
Version: 1.0.0
"""
import asyncio
import logging
import time
from contextlib import suppress
from typing import AsyncIterator, Awaitable, Callable, Dict, Optional

from pydantic import BaseModel, Field

from storefront.core.exceptions import ImportAbortError
from storefront.schemas.product_import import (
    ImageProgress,
    ImportEvent,
    ParseResult,
    ProductOutcome,
    RunSummary,
)
from storefront.services.catalog_lookup import CatalogLookupService
from storefront.services.image_upload_service import (
    ImageUploadService,
    collect_referenced_image_names,
    run_prefix,
)
from storefront.services.product_reconciler import ProductReconciler
from storefront.utils.csv_parser import parse_csv
from storefront.utils.zip_extractor import DEFAULT_MAX_TOTAL_BYTES, extract_from_zip

Emit = Callable[[ImportEvent], Awaitable[None]]

UNEXPECTED_FAILURE_MESSAGE = "Import failed unexpectedly. Please try again."


class ImportUpload(BaseModel):
    """What the caller sent: either a ZIP archive or CSV text plus images."""
    zip_bytes: Optional[bytes] = None
    csv_text: Optional[str] = None
    images: Dict[str, bytes] = Field(default_factory=dict)

    @property
    def is_zip(self) -> bool:
        return self.zip_bytes is not None


class ImportPipeline:
    def __init__(
        self,
        lookup_service: CatalogLookupService,
        image_uploader: ImageUploadService,
        reconciler: ProductReconciler,
        max_extracted_bytes: int = DEFAULT_MAX_TOTAL_BYTES,
        prefix_factory: Callable[[], str] = run_prefix,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._lookup_service = lookup_service
        self._image_uploader = image_uploader
        self._reconciler = reconciler
        self._max_extracted_bytes = max_extracted_bytes
        self._prefix_factory = prefix_factory
        self._clock = clock
        self._logger = logging.getLogger("import_pipeline")

    async def stream(
        self, upload: ImportUpload, update_existing: bool
    ) -> AsyncIterator[ImportEvent]:
        """Yield events for one run as soon as each is produced."""
        queue: "asyncio.Queue[Optional[ImportEvent]]" = asyncio.Queue()
        producer = asyncio.create_task(self._produce(upload, update_existing, queue))
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield event
            await producer
        finally:
            if not producer.done():
                self._logger.info("import stream consumer left, cancelling run")
                producer.cancel()
                with suppress(asyncio.CancelledError):
                    await producer

    async def _produce(
        self,
        upload: ImportUpload,
        update_existing: bool,
        queue: "asyncio.Queue[Optional[ImportEvent]]",
    ) -> None:
        terminal_sent = False

        async def emit(event: ImportEvent) -> None:
            nonlocal terminal_sent
            terminal_sent = terminal_sent or event.is_terminal
            await queue.put(event)

        try:
            await self.run(upload, update_existing, emit)
        except Exception:
            self._logger.exception("import run crashed")
            if not terminal_sent:
                await emit(ImportEvent.failure(UNEXPECTED_FAILURE_MESSAGE))
        finally:
            queue.put_nowait(None)

    async def run(self, upload: ImportUpload, update_existing: bool, emit: Emit) -> None:
        """Execute every phase, reporting through emit."""
        started = self._clock()

        # -- extracting ----------------------------------------------------
        if upload.is_zip:
            await emit(ImportEvent.progress("extracting", 0, 1, "Extracting files..."))
            try:
                extracted = await asyncio.to_thread(
                    extract_from_zip, upload.zip_bytes, self._max_extracted_bytes
                )
            except ImportAbortError as exc:
                self._logger.warning("import aborted during extraction detail=%s", exc)
                await emit(ImportEvent.failure(str(exc)))
                return
            csv_text, images = extracted.csv_text, extracted.images
        else:
            await emit(ImportEvent.progress("extracting", 0, 1, "Reading CSV..."))
            if upload.csv_text is None:
                await emit(ImportEvent.failure("CSV file is required"))
                return
            csv_text, images = upload.csv_text, upload.images

        # -- validating ----------------------------------------------------
        await emit(ImportEvent.progress("validating", 0, 1, "Validating CSV..."))
        parsed: ParseResult = await asyncio.to_thread(parse_csv, csv_text, images.keys())

        for issue in parsed.errors:
            await emit(
                ImportEvent.product(
                    ProductOutcome(row=issue.row, name="", status="error", error=issue.message)
                )
            )

        if not parsed.rows:
            summary = RunSummary(
                total_rows=parsed.total_rows,
                errors=len(parsed.errors),
                warnings=len(parsed.warnings),
                duration_ms=self._elapsed_ms(started),
            )
            self._logger.info(
                "import finished without valid rows total=%s errors=%s",
                parsed.total_rows,
                len(parsed.errors),
            )
            await emit(ImportEvent.complete(summary, parsed.errors, parsed.warnings))
            return

        lookup = await self._lookup_service.build()

        # -- uploading_images ----------------------------------------------
        referenced = collect_referenced_image_names(parsed.rows)
        await emit(
            ImportEvent.progress("uploading_images", 0, len(referenced), "Uploading images...")
        )

        async def on_image(progress: ImageProgress) -> None:
            await emit(
                ImportEvent.progress(
                    "uploading_images", progress.current, progress.total, progress.message
                )
            )

        uploads = await self._image_uploader.upload_images(
            images, referenced, self._prefix_factory(), on_image
        )

        # -- creating_products ---------------------------------------------
        await emit(
            ImportEvent.progress(
                "creating_products", 0, len(parsed.rows), "Creating products..."
            )
        )

        async def on_outcome(outcome: ProductOutcome) -> None:
            await emit(ImportEvent.product(outcome))

        reconciled = await self._reconciler.reconcile(
            parsed.rows, uploads.url_map, lookup, update_existing, on_outcome
        )

        warnings = parsed.warnings + reconciled.warnings
        summary = RunSummary(
            total_rows=parsed.total_rows,
            products_created=reconciled.created,
            products_updated=reconciled.updated,
            variants_created=reconciled.variants,
            images_uploaded=uploads.uploaded,
            errors=len(parsed.errors) + reconciled.errors,
            warnings=len(warnings),
            skipped=reconciled.skipped,
            duration_ms=self._elapsed_ms(started),
        )
        self._logger.info(
            "import finished total=%s created=%s updated=%s variants=%s images=%s errors=%s skipped=%s",
            summary.total_rows,
            summary.products_created,
            summary.products_updated,
            summary.variants_created,
            summary.images_uploaded,
            summary.errors,
            summary.skipped,
        )
        await emit(ImportEvent.complete(summary, parsed.errors, warnings))

    def _elapsed_ms(self, started: float) -> int:
        return int((self._clock() - started) * 1000)
