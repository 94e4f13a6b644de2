"""
CORS middleware — configures allowed origins, methods, and headers.

Middleware configuration for the FastAPI application.
Version: 1.0.0
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.core.config import settings


def apply_cors(app: FastAPI) -> None:
    """Apply CORS middleware using CORS_ALLOW_ORIGINS (default "*")."""
    origins = settings.cors_allow_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
