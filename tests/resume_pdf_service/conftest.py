"""
Pytest fixtures for resume PDF service tests.
"""

import os

# IMPORTANT: Set environment variables BEFORE any imports from resume_pdf_service
# so PDFServiceSettings is configured correctly when first loaded.
os.environ["PDF_SERVICE_API_KEY"] = "test-api-key-1234"
os.environ["MAX_CONCURRENT_PDFS"] = "2"
os.environ["RATE_LIMIT_MAX_REQUESTS"] = "3"
os.environ["RATE_LIMIT_WINDOW_SECONDS"] = "60"
os.environ.pop("RENDER", None)
os.environ.pop("VERCEL", None)
os.environ.pop("AWS_LAMBDA_FUNCTION_NAME", None)

import pytest
from fastapi.testclient import TestClient

from helpers.fake_surface import FakeSurface, build_resume, raleway_fonts


@pytest.fixture
def make_surface():
    """Factory for a FakeSurface holding a resume with the given section heights."""
    def _make(section_heights=(), header_height=None, fonts=None, **kwargs):
        resume_kwargs = {
            key: kwargs.pop(key)
            for key in ("items_per_section", "item_kind", "section_margins", "names")
            if key in kwargs
        }
        body = build_resume(section_heights, header_height=header_height, **resume_kwargs)
        return FakeSurface(
            body=body,
            fonts=raleway_fonts() if fonts is None else fonts,
            **kwargs,
        )
    return _make


@pytest.fixture
def client():
    """Test client with Playwright marked as ready and a fresh rate limit."""
    import resume_pdf_service.app as app_module
    app_module._playwright_ready = True
    app_module._playwright_error = None
    app_module._rate_limiter.reset()
    return TestClient(app_module.app)


@pytest.fixture
def client_playwright_unavailable():
    """Test client with Playwright marked as unavailable."""
    import resume_pdf_service.app as app_module
    app_module._playwright_ready = False
    app_module._playwright_error = "Test: Playwright not available"
    app_module._rate_limiter.reset()
    return TestClient(app_module.app)


@pytest.fixture
def auth_headers():
    return {"X-API-Key": "test-api-key-1234"}
