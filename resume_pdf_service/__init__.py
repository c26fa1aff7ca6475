"""
Resume PDF Service - Converts previewed resume HTML into paginated PDFs.

Measures the rendered resume inside headless Chromium (via Playwright),
plans page breaks between resume sections, and rasterizes the result to
either fixed-size pages or one continuous page.
"""

__version__ = "0.1.0"
