"""
PDF Service Configuration Module

Centralized configuration management with Pydantic validation.
All environment variables are validated at startup to catch misconfigurations early.
"""

import os
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


# Environment variables set by hosted platforms that need the serverless Chromium profile
SERVERLESS_ENV_MARKERS = ("RENDER", "VERCEL", "AWS_LAMBDA_FUNCTION_NAME")


class PDFServiceSettings(BaseSettings):
    """
    PDF service configuration with validation.

    All settings can be overridden via environment variables.
    """

    # === Security ===
    pdf_service_api_key: Optional[str] = Field(
        default=None,
        description="Shared API key expected in the X-API-Key header (unset = auth disabled)"
    )

    # === Concurrency & Limits ===
    max_concurrent_pdfs: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum concurrent PDF renders (1-50)"
    )
    pdf_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Rasterization time budget in seconds"
    )
    rate_limit_window_seconds: int = Field(
        default=60,
        ge=1,
        description="Rate limit window length in seconds"
    )
    rate_limit_max_requests: int = Field(
        default=10,
        ge=1,
        description="Maximum /render requests per client per window"
    )

    # === Browser ===
    playwright_headless: bool = Field(
        default=True,
        description="Run Chromium headless"
    )
    serverless: bool = Field(
        default=False,
        description="Force the serverless Chromium argument profile"
    )

    # === Server ===
    port: int = Field(default=3000, ge=1, le=65535)

    @field_validator("pdf_service_api_key")
    @classmethod
    def blank_key_means_unset(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty PDF_SERVICE_API_KEY as not configured."""
        if v is not None and not v.strip():
            return None
        return v

    @property
    def auth_required(self) -> bool:
        """Auth is only enforced when an API key is configured."""
        return self.pdf_service_api_key is not None

    @property
    def is_serverless(self) -> bool:
        """Check if running on a serverless/hosted platform."""
        return self.serverless or any(os.getenv(marker) for marker in SERVERLESS_ENV_MARKERS)

    def validate_production_config(self) -> List[str]:
        """
        Validate configuration is suitable for deployment.

        Returns list of warning messages.
        """
        issues = []
        if not self.auth_required:
            issues.append("WARNING: PDF_SERVICE_API_KEY not set. Service is unsecured!")
        return issues

    class Config:
        env_prefix = ""  # No prefix, use exact env var names
        case_sensitive = False  # PDF_SERVICE_API_KEY = pdf_service_api_key


@lru_cache()
def get_settings() -> PDFServiceSettings:
    """
    Get cached settings instance.

    Settings are loaded once and cached for performance.
    """
    return PDFServiceSettings()
