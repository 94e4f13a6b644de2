import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from storefront.core.config import settings
from storefront.core.middleware import apply_cors
from storefront.routes import api_router, health_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan event handler.

    On startup:
    - Check the import rate limiter can reach Redis (non-fatal)
    """
    logger.info("=== Storefront API Starting ===")

    try:
        from storefront.utils.rate_limiter import get_import_rate_limiter
        if get_import_rate_limiter().ping():
            logger.info("Import rate limiter connected to Redis")
        else:
            logger.warning("Import rate limiter cannot reach Redis, imports will not be throttled")
    except Exception as e:
        logger.warning(f"Rate limiter initialization failed: {e}")

    logger.info("=== Storefront API Ready ===")

    yield

    logger.info("=== Storefront API Shutting Down ===")


app = FastAPI(title="Storefront Backend", lifespan=lifespan)
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(levelname)s:%(name)s:%(message)s",
)

apply_cors(app)

app.include_router(health_router)
app.include_router(api_router)
