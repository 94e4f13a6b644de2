"""
Image store — Supabase storage upload and URL generation.

Version: 1.0.0
"""

import logging

from storefront.core.exceptions import StoreError
from storefront.db.base_store import BaseStore

logger = logging.getLogger("image_store")


class ImageStore(BaseStore):
    """Upload product images to Supabase Storage."""

    def public_url(self, object_path: str) -> str:
        return f"{self._public_url}/{object_path}"

    async def upload_image(self, object_path: str, data: bytes, content_type: str) -> str:
        """
        Upload bytes to object_path, overwriting any existing object.

        Returns:
            Public URL of the stored object.
        """
        try:
            logger.info(
                "supabase storage upload bucket=%s path=%s size=%s",
                self._bucket,
                object_path,
                len(data),
            )
            self._client.storage.from_(self._bucket).upload(
                path=object_path,
                file=data,
                file_options={"content-type": content_type, "upsert": "true"},
            )
        except Exception as exc:
            logger.info("image upload error path=%s detail=%s", object_path, str(exc))
            raise StoreError(f"storage:{self._bucket}", str(exc)) from exc

        return self.public_url(object_path)
