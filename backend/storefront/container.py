"""
Lazy DI container — singleton access to clients, stores, and services.

Import individual getters to avoid circular imports.
Version: 1.0.0
"""

from functools import lru_cache

from storefront.core.config import settings
from storefront.clients.supabase_client import SupabaseClient
from storefront.db.audit_store import AuditStore
from storefront.db.catalog_store import CatalogStore
from storefront.db.image_store import ImageStore
from storefront.db.profile_store import ProfileStore
from storefront.services.catalog_lookup import CatalogLookupService
from storefront.services.image_upload_service import ImageUploadService
from storefront.services.import_pipeline import ImportPipeline
from storefront.services.product_reconciler import ProductReconciler
from storefront.utils.rate_limiter import get_import_rate_limiter


# -- Clients ---------------------------------------------------------------

@lru_cache(maxsize=1)
def get_supabase_client():
    return SupabaseClient(settings)


# -- DB Stores -------------------------------------------------------------

@lru_cache(maxsize=1)
def get_catalog_store():
    return CatalogStore(get_supabase_client())


@lru_cache(maxsize=1)
def get_image_store():
    return ImageStore(get_supabase_client())


@lru_cache(maxsize=1)
def get_audit_store():
    return AuditStore(get_supabase_client())


@lru_cache(maxsize=1)
def get_profile_store():
    return ProfileStore(get_supabase_client())


# -- Import Services -------------------------------------------------------

@lru_cache(maxsize=1)
def get_catalog_lookup_service():
    return CatalogLookupService(catalog_store=get_catalog_store())


@lru_cache(maxsize=1)
def get_image_upload_service():
    return ImageUploadService(
        image_store=get_image_store(),
        max_image_bytes=settings.import_max_image_bytes,
    )


@lru_cache(maxsize=1)
def get_product_reconciler():
    return ProductReconciler(catalog_store=get_catalog_store())


@lru_cache(maxsize=1)
def get_import_pipeline():
    return ImportPipeline(
        lookup_service=get_catalog_lookup_service(),
        image_uploader=get_image_upload_service(),
        reconciler=get_product_reconciler(),
        max_extracted_bytes=settings.import_max_extracted_bytes,
    )


def get_rate_limiter():
    return get_import_rate_limiter()
