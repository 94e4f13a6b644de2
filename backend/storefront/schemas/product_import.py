"""
Product import schemas — rows, issues, outcomes and stream events.

Defines the in-memory models passed between the import stages and the
event payloads written to the progress stream.
Version: 1.0.0
"""
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


ImportPhase = Literal["extracting", "validating", "uploading_images", "creating_products"]
OutcomeStatus = Literal["created", "updated", "skipped", "error"]


# ---------------------------------------------------------------------------
# Rows & validation
# ---------------------------------------------------------------------------

class ImportRow(BaseModel):
    """
    One validated CSV data line.

    row_index matches the source line number (the header is line 1),
    so the first data row is 2.
    """
    row_index: int
    name: str
    price: float
    description: Optional[str] = None
    category: Optional[str] = None
    compare_at_price: Optional[float] = None
    quantity: int = 0
    moq: int = 1
    status: str = "draft"
    featured: bool = False
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    low_stock_threshold: Optional[int] = None
    preorder_shipping: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    variant_color: Optional[str] = None
    variant_color_hex: Optional[str] = None
    variant_size: Optional[str] = None
    variant_price: Optional[float] = None
    variant_stock: Optional[int] = None

    @property
    def has_variant_data(self) -> bool:
        """True when the row describes a variant (a colour hex alone does not)."""
        return any(
            value is not None
            for value in (
                self.variant_color,
                self.variant_size,
                self.variant_price,
                self.variant_stock,
            )
        )

    @property
    def is_variant_bearing(self) -> bool:
        """True when the row makes its product a variant product."""
        return bool(
            self.variant_color
            or self.variant_size
            or self.variant_price is not None
            or (self.variant_stock or 0) > 0
        )


class ValidationIssue(BaseModel):
    row: int
    field: str
    message: str


class ParseResult(BaseModel):
    rows: List[ImportRow] = Field(default_factory=list)
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)
    total_rows: int = 0


# ---------------------------------------------------------------------------
# Stage results
# ---------------------------------------------------------------------------

class ExtractedImport(BaseModel):
    """CSV text plus image bytes keyed by lower-cased file name."""
    csv_text: str
    csv_filename: Optional[str] = None
    images: Dict[str, bytes] = Field(default_factory=dict)


class ImageProgress(BaseModel):
    current: int
    total: int
    message: str


class ImageUploadResult(BaseModel):
    url_map: Dict[str, str] = Field(default_factory=dict)
    uploaded: int = 0
    failures: List[str] = Field(default_factory=list)


class ProductOutcome(BaseModel):
    """Result of reconciling one CSV row's product group."""
    row: int
    name: str
    status: OutcomeStatus
    product_id: Optional[str] = None
    error: Optional[str] = None


class ReconcileResult(BaseModel):
    created: int = 0
    updated: int = 0
    variants: int = 0
    errors: int = 0
    skipped: int = 0
    warnings: List[ValidationIssue] = Field(default_factory=list)


class RunSummary(BaseModel):
    total_rows: int = 0
    products_created: int = 0
    products_updated: int = 0
    variants_created: int = 0
    images_uploaded: int = 0
    errors: int = 0
    warnings: int = 0
    skipped: int = 0
    duration_ms: int = 0

    @property
    def duration(self) -> str:
        return f"{round(self.duration_ms / 1000)}s"

    def to_wire(self) -> Dict[str, Any]:
        """camelCase payload consumed by the admin console."""
        return {
            "totalRows": self.total_rows,
            "productsCreated": self.products_created,
            "productsUpdated": self.products_updated,
            "variantsCreated": self.variants_created,
            "imagesUploaded": self.images_uploaded,
            "errors": self.errors,
            "warnings": self.warnings,
            "skipped": self.skipped,
            "duration": self.duration,
            "durationMs": self.duration_ms,
        }


# ---------------------------------------------------------------------------
# Stream events
# ---------------------------------------------------------------------------

class ImportEvent(BaseModel):
    """One event on the progress stream: `event` is the SSE event name."""
    event: Literal["progress", "product", "complete", "error"]
    data: Dict[str, Any]

    @property
    def is_terminal(self) -> bool:
        return self.event in ("complete", "error")

    @classmethod
    def progress(cls, phase: ImportPhase, current: int, total: int, message: str) -> "ImportEvent":
        return cls(
            event="progress",
            data={"phase": phase, "current": current, "total": total, "message": message},
        )

    @classmethod
    def product(cls, outcome: ProductOutcome) -> "ImportEvent":
        wire_status = {
            "created": "success",
            "updated": "success",
            "skipped": "skipped",
            "error": "error",
        }[outcome.status]
        data: Dict[str, Any] = {
            "row": outcome.row,
            "name": outcome.name,
            "status": wire_status,
        }
        if outcome.status == "skipped":
            data["skipped"] = True
        if outcome.product_id:
            data["product_id"] = outcome.product_id
        if outcome.error:
            data["error"] = outcome.error
        return cls(event="product", data=data)

    @classmethod
    def complete(
        cls,
        summary: RunSummary,
        errors: List[ValidationIssue],
        warnings: List[ValidationIssue],
    ) -> "ImportEvent":
        return cls(
            event="complete",
            data={
                "summary": summary.to_wire(),
                "errors": [issue.model_dump() for issue in errors],
                "warnings": [issue.model_dump() for issue in warnings],
            },
        )

    @classmethod
    def failure(cls, message: str) -> "ImportEvent":
        return cls(event="error", data={"message": message})
