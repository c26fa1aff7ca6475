"""
Resume PDF Service - FastAPI application.

Provides the endpoint that turns the resume HTML shown in the preview into
a PDF, either as fixed-size pages with section-aware page breaks or as one
continuous page, using Playwright/Chromium.
"""

import asyncio
import logging
from datetime import datetime
from io import BytesIO
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Security
from fastapi.responses import StreamingResponse

from . import __version__
from .auth import api_key_header, verify_api_key
from .config import get_settings
from .errors import InputError, RenderTimeoutError
from .models import HealthResponse, RenderRequest
from .orchestrator import generate_pdf
from .rate_limit import FixedWindowRateLimiter, RateLimitResult

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(
    title="Resume PDF Service",
    version=__version__,
    description="Renders previewed resume HTML to paginated PDF using Playwright/Chromium"
)

# Semaphore for concurrency limiting
_pdf_semaphore = asyncio.Semaphore(settings.max_concurrent_pdfs)

_rate_limiter = FixedWindowRateLimiter(
    max_requests=settings.rate_limit_max_requests,
    window_seconds=settings.rate_limit_window_seconds,
)

# Playwright readiness state
_playwright_ready = False
_playwright_error: Optional[str] = None


# ============================================================================
# Startup Event - Validate Configuration and Playwright
# ============================================================================

@app.on_event("startup")
async def validate_playwright_on_startup():
    """
    Validate Playwright/Chromium is properly installed on startup.

    The service won't report as healthy if Playwright can't actually
    generate PDFs.
    """
    global _playwright_ready, _playwright_error

    for issue in settings.validate_production_config():
        logger.warning(issue)

    logger.info("PDF Service starting - validating Playwright installation...")

    try:
        from playwright.async_api import async_playwright

        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=settings.playwright_headless)
            page = await browser.new_page()
            await page.set_content("<html><body><h1>Test</h1></body></html>")
            test_pdf = await page.pdf(format="A4")
            await browser.close()

        if len(test_pdf) > 0:
            _playwright_ready = True
            _playwright_error = None
            logger.info(f"Playwright validation successful - generated {len(test_pdf)} byte test PDF")
        else:
            _playwright_error = "Test PDF generation returned empty result"
            logger.error(f"Playwright validation failed: {_playwright_error}")

    except Exception as e:
        _playwright_error = str(e)
        logger.error(f"Playwright validation failed: {_playwright_error}")
        logger.error("PDF generation will not work until this is resolved.")


# ============================================================================
# Dependencies
# ============================================================================

async def enforce_rate_limit(
    request: Request,
    api_key: Optional[str] = Security(api_key_header),
) -> RateLimitResult:
    """Reject clients that exceeded their request budget with HTTP 429."""
    client_id = api_key or (request.client.host if request.client else None) or "unknown"
    result = _rate_limiter.check(client_id)
    if not result.allowed:
        logger.warning(f"Rate limit exceeded for client {client_id[:8]}")
        raise HTTPException(
            status_code=429,
            detail={
                "error": "Rate limit exceeded",
                "message": (
                    f"Too many requests. Maximum {_rate_limiter.max_requests} requests "
                    f"per {_rate_limiter.window_seconds} seconds."
                ),
                "retryAfter": result.retry_after,
            },
            headers={"Retry-After": str(result.retry_after)},
        )
    return result


# ============================================================================
# Health Check Endpoint
# ============================================================================

@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint for container orchestration.

    Returns HTTP 503 if Playwright validation failed on startup.
    """
    active_renders = settings.max_concurrent_pdfs - _pdf_semaphore._value

    if not _playwright_ready:
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "service": "resume-pdf-service",
                "timestamp": datetime.utcnow().isoformat(),
                "active_renders": active_renders,
                "max_concurrent": settings.max_concurrent_pdfs,
                "playwright_ready": False,
                "playwright_error": _playwright_error,
                "message": "PDF service is unhealthy - Playwright/Chromium not available"
            }
        )

    return HealthResponse(
        timestamp=datetime.utcnow(),
        active_renders=active_renders,
        max_concurrent=settings.max_concurrent_pdfs,
    )


# ============================================================================
# PDF Generation Endpoint
# ============================================================================

@app.post("/render", dependencies=[Depends(verify_api_key)])
async def render(
    request: RenderRequest,
    rate_limit: RateLimitResult = Depends(enforce_rate_limit),
):
    """
    Render previewed resume HTML to PDF.

    Args:
        request: HTML plus the preview's view mode and page size

    Returns:
        StreamingResponse with PDF binary data

    Raises:
        HTTPException: 400 for missing HTML, 500 for rendering failures, 503 for overload
    """
    logger.info(
        f"Received request: hasHtml={bool(request.html)} "
        f"htmlLength={len(request.html or '')} templateId={request.templateId} "
        f"previewViewMode={request.previewViewMode} previewPageSize={request.previewPageSize}"
    )

    # Validate input before acquiring any rendering resources
    if not request.html or not request.html.strip():
        logger.error("Missing HTML field in request body")
        raise HTTPException(
            status_code=400,
            detail={
                "error": "Missing required field: html",
                "message": 'The request body must include an "html" field with the HTML content to convert to PDF.',
            }
        )

    # Check capacity
    if _pdf_semaphore._value <= 0:
        logger.warning("PDF service overloaded, rejecting request")
        raise HTTPException(
            status_code=503,
            detail={
                "error": "Service overloaded",
                "message": "Too many concurrent PDF operations.",
            }
        )

    async with _pdf_semaphore:
        try:
            pdf_bytes = await generate_pdf(
                request.html,
                view_mode=request.previewViewMode,
                page_size=request.previewPageSize,
                template_id=request.templateId,
                settings=settings,
            )
        except InputError as e:
            raise HTTPException(
                status_code=400,
                detail={"error": "Invalid request", "message": str(e)}
            )
        except RenderTimeoutError as e:
            logger.error(f"PDF rendering timed out: {e}")
            raise HTTPException(
                status_code=500,
                detail={"error": "Failed to generate PDF", "message": str(e)}
            )
        except Exception as e:
            logger.exception(f"Error generating PDF: {e}")
            raise HTTPException(
                status_code=500,
                detail={"error": "Failed to generate PDF", "message": str(e)}
            )

    return StreamingResponse(
        BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={
            "Content-Disposition": 'attachment; filename="resume.pdf"',
            "X-RateLimit-Remaining": str(rate_limit.remaining),
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
