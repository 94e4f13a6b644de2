"""
Image upload service — uploads the images that valid rows actually reference.

Version: 1.0.0
"""
import logging
import time
from pathlib import PurePosixPath
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from storefront.core.constants.product_import import (
    IMAGE_CONTENT_TYPES,
    IMPORT_PATH_PREFIX,
)
from storefront.core.exceptions import StoreError
from storefront.db.image_store import ImageStore
from storefront.schemas.product_import import ImageProgress, ImageUploadResult, ImportRow
from storefront.utils.text_utils import storage_key

ProgressCallback = Callable[[ImageProgress], Awaitable[None]]

DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024


def collect_referenced_image_names(rows: Iterable[ImportRow]) -> List[str]:
    """Lower-cased image names in first-reference order, without duplicates."""
    seen: Dict[str, None] = {}
    for row in rows:
        for filename in row.images:
            key = filename.strip().lower()
            if key:
                seen.setdefault(key, None)
    return list(seen)


def run_prefix(now_ms: Optional[int] = None) -> str:
    """Storage folder for one import run, e.g. imports/1718000000000."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{IMPORT_PATH_PREFIX}/{stamp}"


class ImageUploadService:
    def __init__(
        self,
        image_store: ImageStore,
        max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
    ) -> None:
        self._image_store = image_store
        self._max_image_bytes = max_image_bytes
        self._logger = logging.getLogger("image_upload_service")

    async def upload_images(
        self,
        images: Dict[str, bytes],
        referenced: Iterable[str],
        prefix: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ImageUploadResult:
        """
        Upload referenced ∩ available images under prefix.

        Oversized or unsupported files and storage failures are reported
        through on_progress and recorded in failures; the loop always
        continues with the next file.
        """
        to_upload = [name for name in referenced if name in images]
        total = len(to_upload)
        result = ImageUploadResult()

        for current, filename in enumerate(to_upload, start=1):
            message = await self._upload_one(filename, images[filename], prefix, result)
            if on_progress is not None:
                await on_progress(ImageProgress(current=current, total=total, message=message))

        self._logger.info(
            "image upload finished prefix=%s uploaded=%s failed=%s skipped_unreferenced=%s",
            prefix,
            result.uploaded,
            len(result.failures),
            len(images) - total,
        )
        return result

    async def _upload_one(
        self, filename: str, data: bytes, prefix: str, result: ImageUploadResult
    ) -> str:
        if len(data) > self._max_image_bytes:
            result.failures.append(filename)
            return f"Skipped {filename}: exceeds {self._max_image_bytes // (1024 * 1024)}MB"

        content_type = IMAGE_CONTENT_TYPES.get(PurePosixPath(filename).suffix.lower())
        if content_type is None:
            result.failures.append(filename)
            return f"Skipped {filename}: unsupported format"

        object_path = f"{prefix}/{storage_key(filename)}"
        try:
            url = await self._image_store.upload_image(object_path, data, content_type)
        except StoreError as exc:
            self._logger.warning("image upload failed file=%s detail=%s", filename, exc)
            result.failures.append(filename)
            return f"Failed {filename}: {exc}"

        result.url_map[filename.strip().lower()] = url
        result.url_map[filename] = url
        result.uploaded += 1
        return f"Uploaded {filename}"
