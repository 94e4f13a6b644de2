"""
Text utilities — slugs, storage keys and description sanitizing.

Helpers shared by the image uploader and the product reconciler.
Version: 1.0.0
"""

import re

import nh3

_SLUG_RE = re.compile(r"[^a-z0-9]+")
_WHITESPACE_RE = re.compile(r"\s+")
_STORAGE_UNSAFE_RE = re.compile(r"[^a-z0-9._-]")

FALLBACK_SLUG = "product"


def slugify(name: str) -> str:
    """
    URL-safe slug from a product name.

    - lowercase
    - runs of anything outside a-z0-9 → single hyphen
    - trim leading/trailing hyphens
    - "product" when nothing is left
    """
    slug = _SLUG_RE.sub("-", (name or "").lower()).strip("-")
    return slug or FALLBACK_SLUG


def storage_key(filename: str) -> str:
    """Object-storage safe file name: lower-case, spaces → '-', only [a-z0-9._-]."""
    key = _WHITESPACE_RE.sub("-", filename.strip().lower())
    return _STORAGE_UNSAFE_RE.sub("", key)


def sanitize_html(html: str) -> str:
    """
    Allow-list clean of merchant-supplied description HTML.

    Formatting tags survive; script and style bodies, event handler
    attributes and unsafe URL schemes such as javascript: are removed.
    """
    return nh3.clean(html).strip()
