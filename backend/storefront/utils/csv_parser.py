"""
CSV parser — reads the product import sheet into validated ImportRows.

Responsibilities:
  • Header normalization (trim, lower-case, whitespace runs → "_")
  • Fail-fast checks: required columns present, at least one data row
  • Per-row field validation with errors reported against the source line
  • Defaulting / nulling of invalid optional fields

parse_csv is a pure function of (csv_text, image_keys): the same input
always yields the same rows, errors and warnings.
Version: 1.0.0
"""
import csv
import io
import math
import re
from typing import Dict, Iterable, List, Optional

from storefront.core.constants.product_import import (
    DEFAULT_MOQ,
    DEFAULT_STATUS,
    FALSE_TOKENS,
    MAX_DESCRIPTION_LENGTH,
    PRODUCT_STATUSES,
    REQUIRED_COLUMNS,
    TRUE_TOKENS,
)
from storefront.schemas.product_import import ImportRow, ParseResult, ValidationIssue

HEX_COLOR_RE = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_header(header: str) -> str:
    return _WHITESPACE_RE.sub("_", header.strip().lower())


def parse_number(raw: str) -> Optional[float]:
    """Parse a decimal, tolerating thousands separators. Blank or junk → None."""
    text = (raw or "").strip().replace(",", "")
    if not text or "_" in text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_integer(raw: str) -> Optional[int]:
    value = parse_number(raw)
    if value is None:
        return None
    return math.floor(value)


def split_list(raw: str, separator: str) -> List[str]:
    """Split on separator, trim each item and drop blanks. Order and duplicates kept."""
    if not raw:
        return []
    return [item.strip() for item in raw.split(separator) if item.strip()]


class _RowReader:
    """Column access by normalized header name for one raw CSV record."""

    def __init__(self, columns: Dict[str, int], record: List[str]) -> None:
        self._columns = columns
        self._record = record

    def get(self, key: str) -> str:
        index = self._columns.get(key)
        if index is None or index >= len(self._record):
            return ""
        value = self._record[index]
        return value.strip() if value is not None else ""


def _is_blank(record: List[str]) -> bool:
    return all(not (cell or "").strip() for cell in record)


def parse_csv(csv_text: str, image_keys: Iterable[str]) -> ParseResult:
    """
    Parse and validate the import CSV.

    Args:
        csv_text: Decoded CSV body (BOM already stripped or not)
        image_keys: Available image file names; matched case-insensitively

    Returns:
        ParseResult with only the rows whose name and price are valid.
        total_rows counts every non-blank data line.
    """
    text = (csv_text or "").lstrip("\ufeff")
    # A single field can be as long as the whole upload.
    csv.field_size_limit(max(csv.field_size_limit(), len(text) + 1))
    try:
        records = [record for record in csv.reader(io.StringIO(text)) if not _is_blank(record)]
    except csv.Error as exc:
        return ParseResult(
            errors=[ValidationIssue(row=0, field="csv", message=f"CSV file could not be read: {exc}")]
        )

    if not records:
        return ParseResult(errors=[_empty_file_issue()])

    headers = [normalize_header(h) for h in records[0]]
    columns: Dict[str, int] = {}
    for index, header in enumerate(headers):
        columns[header] = index

    for column in REQUIRED_COLUMNS:
        if column not in columns:
            return ParseResult(
                errors=[
                    ValidationIssue(
                        row=1, field=column, message=f"Missing required column: {column}"
                    )
                ]
            )

    data_records = records[1:]
    if not data_records:
        return ParseResult(errors=[_empty_file_issue()])

    known_images = {key.strip().lower() for key in image_keys}
    result = ParseResult(total_rows=len(data_records))
    for offset, record in enumerate(data_records):
        row = _validate_row(offset + 2, _RowReader(columns, record), known_images, result.errors)
        if row is not None:
            result.rows.append(row)
    return result


def _empty_file_issue() -> ValidationIssue:
    return ValidationIssue(
        row=0, field="csv", message="CSV file is empty or contains only headers."
    )


def _validate_row(
    row_num: int,
    reader: _RowReader,
    known_images: set,
    errors: List[ValidationIssue],
) -> Optional[ImportRow]:
    """Validate one record; append issues to errors. None when name/price fail."""

    def error(field: str, message: str) -> None:
        errors.append(ValidationIssue(row=row_num, field=field, message=message))

    blocked = False

    name = reader.get("name")
    if not name:
        error("name", "Name is required")
        blocked = True

    price = parse_number(reader.get("price"))
    if price is None or price < 0:
        error("price", "Price must be a valid positive number")
        blocked = True
        price = None

    compare_at_price = parse_number(reader.get("compare_at_price"))
    if compare_at_price is not None and (price is None or compare_at_price <= price):
        error("compare_at_price", "Compare at price must be higher than price")
        compare_at_price = None

    quantity = parse_integer(reader.get("quantity"))
    if quantity is not None and quantity < 0:
        error("quantity", "Quantity must be a non-negative integer")
        quantity = None

    moq_raw = reader.get("moq")
    moq = DEFAULT_MOQ
    if moq_raw:
        moq_value = parse_number(moq_raw)
        if moq_value is None or not moq_value.is_integer() or moq_value < 1:
            error("moq", "MOQ must be a positive integer (>= 1)")
        else:
            moq = int(moq_value)

    status_raw = reader.get("status").lower()
    status = DEFAULT_STATUS
    if status_raw:
        if status_raw in PRODUCT_STATUSES:
            status = status_raw
        else:
            error("status", "Status must be one of: Active, Draft, Archived")

    featured_raw = reader.get("featured").lower()
    featured = featured_raw in TRUE_TOKENS
    if featured_raw and featured_raw not in TRUE_TOKENS | FALSE_TOKENS:
        error("featured", "Featured must be true or false")

    low_stock_threshold = parse_integer(reader.get("low_stock_threshold"))
    if low_stock_threshold is not None and low_stock_threshold < 0:
        error("low_stock_threshold", "Low stock threshold must be a non-negative integer")
        low_stock_threshold = None

    variant_color_hex = reader.get("variant_color_hex") or None
    if variant_color_hex and not HEX_COLOR_RE.match(variant_color_hex):
        error("variant_color_hex", "Variant color hex must be a valid hex color (e.g. #000000)")
        variant_color_hex = None

    variant_stock = parse_integer(reader.get("variant_stock"))
    if variant_stock is not None and variant_stock < 0:
        error("variant_stock", "Variant stock must be a non-negative integer")
        variant_stock = None

    images: List[str] = []
    for filename in split_list(reader.get("images"), ";"):
        if filename.lower() in known_images:
            images.append(filename)
        else:
            error("images", f"Image '{filename}' not found in archive")

    if blocked:
        return None

    description = reader.get("description") or None
    if description and len(description) > MAX_DESCRIPTION_LENGTH:
        description = description[:MAX_DESCRIPTION_LENGTH]

    return ImportRow(
        row_index=row_num,
        name=name,
        price=price,
        description=description,
        category=reader.get("category") or None,
        compare_at_price=compare_at_price,
        quantity=quantity if quantity is not None else 0,
        moq=moq,
        status=status,
        featured=featured,
        seo_title=reader.get("seo_title") or None,
        seo_description=reader.get("seo_description") or None,
        tags=split_list(reader.get("keywords"), ","),
        low_stock_threshold=low_stock_threshold,
        preorder_shipping=reader.get("preorder_shipping") or None,
        images=images,
        variant_color=reader.get("variant_color") or None,
        variant_color_hex=variant_color_hex,
        variant_size=reader.get("variant_size") or None,
        variant_price=parse_number(reader.get("variant_price")),
        variant_stock=variant_stock,
    )
