"""
Custom exception hierarchy for the storefront backend.

Exceptions are categorized as:
- ImportAbortError: the upload cannot be read at all, the import run
  stops with a single terminal error
- StoreError: a catalog or storage call was rejected, callers decide
  whether it is fatal for the current product group
- AuthenticationError / RateLimitError: request admission failures,
  translated to HTTP responses by the routes
"""


class StorefrontException(Exception):
    """Base exception for the storefront backend."""
    pass


# ============================================
# IMPORT ABORTS - end the run before any product work
# ============================================
class ImportAbortError(StorefrontException):
    """
    Base class for failures that prevent any row, file or product
    context from being established.
    """
    pass


class ArchiveError(ImportAbortError):
    """The archive is unreadable or carries no CSV entry."""
    pass


class SizeExceededError(ImportAbortError):
    """
    Cumulative decompressed size crossed the configured ceiling.

    Raised while entries are still being read, so the oversized archive
    is never fully materialized.
    """
    def __init__(self, limit_bytes: int, message: str | None = None):
        self.limit_bytes = limit_bytes
        super().__init__(
            message
            or f"ZIP contents exceed maximum allowed size ({_format_size(limit_bytes)}). Aborting."
        )


class UploadRejectedError(ImportAbortError):
    """
    An uploaded part is missing or over its size ceiling.

    Checked before streaming starts and answered with HTTP 400.
    """
    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


# ============================================
# STORE ERRORS - catalog / blob storage rejected a call
# ============================================
class StoreError(StorefrontException):
    """Supabase table or storage call failed."""
    def __init__(self, table: str, message: str):
        self.table = table
        super().__init__(f"{table}: {message}")


# ============================================
# ADMISSION ERRORS
# ============================================
class AuthenticationError(StorefrontException):
    """Credential missing, invalid or expired."""
    pass


class RateLimitError(StorefrontException):
    """
    Caller exceeded the import cooldown.

    Should retry after the specified delay.
    """
    def __init__(self, identity: str, retry_after: int = 60):
        self.identity = identity
        self.retry_after = retry_after
        super().__init__(f"{identity} rate limited. Retry after {retry_after}s")


def _format_size(num_bytes: int) -> str:
    gib = 1024 ** 3
    mib = 1024 ** 2
    if num_bytes >= gib and num_bytes % gib == 0:
        return f"{num_bytes // gib}GB"
    return f"{num_bytes // mib}MB"
