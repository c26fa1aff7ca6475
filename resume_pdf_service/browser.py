"""
Browser lifecycle for one render.

Each request gets its own Chromium process and page; nothing is shared
between requests. Teardown is best-effort: failures while closing are
logged and never mask the error that ended the render.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from .config import PDFServiceSettings, get_settings
from .errors import SurfaceAcquisitionError
from .surface import PlaywrightSurface

logger = logging.getLogger(__name__)

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
]

# Hosted platforms run Chromium without a GPU and in a single process
SERVERLESS_CHROMIUM_ARGS = CHROMIUM_ARGS + [
    "--single-process",
    "--disable-gpu",
    "--disable-web-security",
    "--hide-scrollbars",
]


def chromium_args(settings: PDFServiceSettings) -> list:
    return list(SERVERLESS_CHROMIUM_ARGS if settings.is_serverless else CHROMIUM_ARGS)


@asynccontextmanager
async def open_surface(settings: Optional[PDFServiceSettings] = None) -> AsyncIterator[PlaywrightSurface]:
    """
    Launch Chromium, open a page and yield it as a RenderingSurface.

    Raises:
        SurfaceAcquisitionError: If the browser or page cannot be created
    """
    settings = settings or get_settings()

    # Import here to avoid loading Playwright on startup
    from playwright.async_api import async_playwright

    async with async_playwright() as p:
        browser = None
        surface = None
        try:
            try:
                args = chromium_args(settings)
                logger.info(f"Launching Chromium (serverless={settings.is_serverless})")
                browser = await p.chromium.launch(headless=settings.playwright_headless, args=args)
                page = await browser.new_page()
            except Exception as e:
                raise SurfaceAcquisitionError(f"Failed to launch browser: {e}") from e

            surface = PlaywrightSurface(page)
            yield surface
        finally:
            if surface is not None:
                try:
                    await surface.close()
                except Exception as e:
                    logger.error(f"Error closing page: {e}")
            if browser is not None:
                try:
                    await browser.close()
                except Exception as e:
                    logger.error(f"Error closing browser: {e}")
