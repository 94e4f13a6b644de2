"""
Constants package — re-exports from domain-specific modules.

Usage:
    from storefront.core.constants.product_import import PRODUCT_STATUSES
    # or:
    from storefront.core.constants import product_import
Version: 1.0.0
"""

from storefront.core.constants import product_import
from storefront.core.constants.product_import import (
    ALLOWED_IMAGE_EXTENSIONS,
    CSV_COLUMNS,
    DEFAULT_LOW_STOCK_THRESHOLD,
    IMAGE_CONTENT_TYPES,
    PRESET_COLOR_HEX,
    PRODUCT_STATUSES,
    REQUIRED_COLUMNS,
)

__all__ = [
    "product_import",
    "ALLOWED_IMAGE_EXTENSIONS",
    "CSV_COLUMNS",
    "DEFAULT_LOW_STOCK_THRESHOLD",
    "IMAGE_CONTENT_TYPES",
    "PRESET_COLOR_HEX",
    "PRODUCT_STATUSES",
    "REQUIRED_COLUMNS",
]
