"""
Page geometry and unit conversion.

All layout math happens in CSS pixels at 96dpi (3.779 px per millimetre);
only the final canvas handed to the rasterizer is expressed in millimetres.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Tuple

logger = logging.getLogger(__name__)

PX_PER_MM = 3.779

# Total margin budget in mm (10mm per side)
PAGE_MARGIN_TOTAL_MM = 20.0
PAGE_MARGIN_SIDE_MM = PAGE_MARGIN_TOTAL_MM / 2

DEFAULT_PAGE_SIZE = "A4"

# (width, height) in millimetres
PAGE_SIZES: Dict[str, Tuple[float, float]] = {
    "A4": (210.0, 297.0),
    "US Letter": (215.9, 279.4),
}


def px_to_mm(px: float) -> float:
    """Convert CSS pixels to millimetres at 96dpi."""
    return px / PX_PER_MM


def mm_to_px(mm: float) -> float:
    """Convert millimetres to CSS pixels at 96dpi."""
    return mm * PX_PER_MM


@dataclass(frozen=True)
class PageGeometry:
    """
    Read-only page configuration for one request.

    usable_height_px is the vertical budget available to resume sections
    on a single page. usable_width_px is used to size the browser viewport
    so text wraps the way it did in the preview.
    """
    page_size: str
    page_width_mm: float
    page_height_mm: float
    margin_mm: float = PAGE_MARGIN_TOTAL_MM

    @property
    def usable_height_px(self) -> float:
        return mm_to_px(self.page_height_mm - self.margin_mm)

    @property
    def usable_width_px(self) -> float:
        # The preview subtracts the margin budget twice horizontally
        return mm_to_px(self.page_width_mm - self.margin_mm * 2)

    @property
    def viewport(self) -> Dict[str, int]:
        return {
            "width": round(self.usable_width_px),
            "height": round(self.usable_height_px),
        }


def get_page_geometry(page_size: str) -> PageGeometry:
    """
    Build the PageGeometry for a named page size.

    Unknown sizes fall back to A4, matching what the preview shows.
    """
    if page_size not in PAGE_SIZES:
        logger.warning(f"Unknown page size '{page_size}', falling back to {DEFAULT_PAGE_SIZE}")
        page_size = DEFAULT_PAGE_SIZE

    width_mm, height_mm = PAGE_SIZES[page_size]
    return PageGeometry(
        page_size=page_size,
        page_width_mm=width_mm,
        page_height_mm=height_mm,
    )
