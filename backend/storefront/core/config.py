import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel


load_dotenv()

MIB = 1024 * 1024


class Settings(BaseModel):
    # Supabase
    supabase_url: str | None = os.getenv("SUPABASE_URL")
    supabase_service_role_key: str | None = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    supabase_storage_bucket: str = os.getenv("SUPABASE_STORAGE_BUCKET", "products")

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Product import ceilings (bytes)
    import_max_zip_bytes: int = int(os.getenv("IMPORT_MAX_ZIP_BYTES", str(500 * MIB)))
    import_max_csv_bytes: int = int(os.getenv("IMPORT_MAX_CSV_BYTES", str(10 * MIB)))
    import_max_image_bytes: int = int(os.getenv("IMPORT_MAX_IMAGE_BYTES", str(10 * MIB)))
    import_max_extracted_bytes: int = int(
        os.getenv("IMPORT_MAX_EXTRACTED_BYTES", str(1024 * MIB))
    )

    # Import cooldown per caller: at most N runs per window
    import_rate_limit_max: int = int(os.getenv("IMPORT_RATE_LIMIT_MAX", "5"))
    import_rate_limit_window_seconds: int = int(
        os.getenv("IMPORT_RATE_LIMIT_WINDOW_SECONDS", "3600")
    )

    # HTTP
    cors_allow_origins: list[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
        if origin.strip()
    ]
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def storage_public_url(self) -> str:
        """Base URL for public objects in the configured bucket."""
        base = (self.supabase_url or "").rstrip("/")
        return f"{base}/storage/v1/object/public/{self.supabase_storage_bucket}"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = Settings()
