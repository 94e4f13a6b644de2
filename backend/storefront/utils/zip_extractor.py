"""
ZIP extractor — pulls the product CSV and image files out of an import archive.

Expected layout: products.csv at (or near) the root plus an images/ folder.
Cumulative decompressed size is enforced entry by entry while reading, so
a zip bomb aborts before it is fully inflated.
Version: 1.0.0
"""
import io
import logging
import zipfile
from pathlib import PurePosixPath
from typing import Optional

from storefront.core.constants.product_import import ALLOWED_IMAGE_EXTENSIONS
from storefront.core.exceptions import ArchiveError, SizeExceededError
from storefront.schemas.product_import import ExtractedImport

logger = logging.getLogger("zip_extractor")

DEFAULT_MAX_TOTAL_BYTES = 1024 * 1024 * 1024
PRIMARY_CSV_NAME = "products.csv"
READ_CHUNK_BYTES = 64 * 1024

IGNORED_PREFIXES = ("__macosx/",)


def _sanitize_path(path: str) -> Optional[str]:
    """Normalize separators; reject absolute and parent-relative paths."""
    path = path.replace("\\", "/").strip("/")
    if not path:
        return None
    if ":" in path.split("/")[0]:
        return None
    if ".." in path.split("/"):
        return None
    return path


def _is_ignored(path: str) -> bool:
    lowered = path.lower()
    if lowered.startswith(IGNORED_PREFIXES):
        return True
    return PurePosixPath(path).name.startswith("._")


class _SizeBudget:
    """Running total of decompressed bytes for one archive."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.used = 0

    def charge(self, num_bytes: int) -> None:
        self.used += num_bytes
        if self.used > self.limit:
            raise SizeExceededError(self.limit)


def _read_entry(archive: zipfile.ZipFile, info: zipfile.ZipInfo, budget: _SizeBudget) -> bytes:
    # Declared sizes can lie, so actual inflated bytes are charged as they stream.
    buffer = bytearray()
    with archive.open(info) as handle:
        while True:
            chunk = handle.read(READ_CHUNK_BYTES)
            if not chunk:
                break
            budget.charge(len(chunk))
            buffer.extend(chunk)
    return bytes(buffer)


def extract_from_zip(
    data: bytes, max_total_bytes: int = DEFAULT_MAX_TOTAL_BYTES
) -> ExtractedImport:
    """
    Extract the CSV text and referenced-image candidates from a ZIP buffer.

    - products.csv (any folder, case-insensitive) wins over other CSVs;
      otherwise the first CSV in archive listing order is used
    - images are keyed by lower-cased, trimmed basename; first one wins
    - any other entry is ignored

    Raises:
        ArchiveError: unreadable archive or no CSV entry
        SizeExceededError: decompressed total above max_total_bytes
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as exc:
        raise ArchiveError(f"Could not read ZIP archive: {exc}") from exc

    budget = _SizeBudget(max_total_bytes)
    csv_entries: list[tuple[str, bytes]] = []
    images: dict[str, bytes] = {}
    ignored = 0

    with archive:
        for info in archive.infolist():
            if info.is_dir():
                continue

            path = _sanitize_path(info.filename)
            if path is None or _is_ignored(path):
                ignored += 1
                continue

            name = PurePosixPath(path).name
            ext = PurePosixPath(name).suffix.lower()
            is_csv = ext == ".csv"
            is_image = ext in ALLOWED_IMAGE_EXTENSIONS
            if not is_csv and not is_image:
                ignored += 1
                continue

            # Declared size first: refuses an obvious bomb without inflating it.
            if budget.used + info.file_size > budget.limit:
                raise SizeExceededError(budget.limit)

            key = name.strip().lower()
            if is_image and key in images:
                budget.charge(info.file_size)
                continue

            try:
                content = _read_entry(archive, info, budget)
            except (zipfile.BadZipFile, RuntimeError, EOFError, OSError) as exc:
                raise ArchiveError(f"Could not read '{path}' from ZIP archive: {exc}") from exc

            if is_csv:
                csv_entries.append((name, content))
            else:
                images[key] = content

    if not csv_entries:
        raise ArchiveError("No CSV file found in the ZIP archive.")

    csv_name, csv_bytes = next(
        (entry for entry in csv_entries if entry[0].lower() == PRIMARY_CSV_NAME),
        csv_entries[0],
    )

    logger.info(
        "zip extracted csv=%s images=%s ignored=%s bytes=%s",
        csv_name,
        len(images),
        ignored,
        budget.used,
    )
    return ExtractedImport(
        csv_text=decode_csv_bytes(csv_bytes),
        csv_filename=csv_name,
        images=images,
    )


def decode_csv_bytes(raw: bytes) -> str:
    """UTF-8 with BOM stripped; undecodable bytes become U+FFFD."""
    return raw.decode("utf-8-sig", errors="replace")
