"""
Base store — shared Supabase client access for all stores.

All domain-specific stores inherit from this class to get
standardised insert / select / update / delete primitives that
translate PostgREST failures into StoreError.
Version: 1.0.0
"""

import logging
from typing import Any, Dict, List

from postgrest.exceptions import APIError

from storefront.core.config import settings
from storefront.core.exceptions import StoreError
from storefront.clients.supabase_client import SupabaseClient

logger = logging.getLogger("base_store")


class BaseStore:
    """Base class for all Supabase stores providing shared CRUD operations."""

    def __init__(self, supabase_client: SupabaseClient | None = None) -> None:
        self._supabase_client = supabase_client or SupabaseClient(settings)

    @property
    def _client(self):
        """Get the Supabase client instance."""
        return self._supabase_client.client

    @property
    def _bucket(self) -> str:
        return self._supabase_client.storage_bucket

    @property
    def _public_url(self) -> str:
        return self._supabase_client.storage_public_url

    async def _insert(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Insert rows into a table and return the stored representation."""
        if not rows:
            return []
        try:
            response = self._client.table(table).insert(rows).execute()
            return response.data or []
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", table, str(e))
            raise StoreError(table, f"insert failed: {e.message or e}") from e

    async def _select(
        self,
        table: str,
        columns: str = "*",
        filters: Dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        """Select rows from a table with optional equality filters."""
        try:
            query = self._client.table(table).select(columns)
            if filters:
                for key, value in filters.items():
                    query = query.eq(key, value)
            if limit is not None:
                query = query.limit(limit)
            response = query.execute()
            return response.data or []
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", table, str(e))
            raise StoreError(table, f"select failed: {e.message or e}") from e

    async def _update(
        self, table: str, filters: Dict[str, Any], payload: Dict[str, Any]
    ) -> None:
        """Update rows in a table matching the filters."""
        try:
            query = self._client.table(table).update(payload)
            for key, value in filters.items():
                query = query.eq(key, value)
            query.execute()
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", table, str(e))
            raise StoreError(table, f"update failed: {e.message or e}") from e

    async def _delete(self, table: str, filters: Dict[str, Any]) -> None:
        """Delete rows in a table matching the filters."""
        try:
            query = self._client.table(table).delete()
            for key, value in filters.items():
                query = query.eq(key, value)
            query.execute()
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", table, str(e))
            raise StoreError(table, f"delete failed: {e.message or e}") from e
