"""
Authentication Module

Checks the shared API key sent in the X-API-Key header.
When PDF_SERVICE_API_KEY is not configured every request is allowed
(development mode).
"""

import logging
import secrets
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

from .config import get_settings


logger = logging.getLogger(__name__)
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: Optional[str] = Security(api_key_header)) -> Optional[str]:
    """
    Verify the X-API-Key header.

    Returns:
        The API key (None when auth is disabled)

    Raises:
        HTTPException: 401 if the key is missing, 403 if it is wrong
    """
    settings = get_settings()
    if not settings.auth_required:
        return api_key

    if not api_key:
        raise HTTPException(
            status_code=401,
            detail={
                "error": "Unauthorized",
                "message": "Missing API key. Please provide X-API-Key header.",
            }
        )

    if not secrets.compare_digest(api_key, settings.pdf_service_api_key):
        logger.warning("Rejected request with invalid API key")
        raise HTTPException(
            status_code=403,
            detail={
                "error": "Forbidden",
                "message": "Invalid API key.",
            }
        )

    return api_key
