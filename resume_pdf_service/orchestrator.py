"""
Pagination orchestrator.

Sequences one render: font gate -> layout flush -> measure -> (plan page
breaks | resolve continuous height) -> rasterize. Fonts must be settled
before anything is measured, so the gate always runs first.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .browser import open_surface
from .config import PDFServiceSettings, get_settings
from .errors import InputError, RenderTimeoutError
from .fonts import wait_for_fonts
from .geometry import DEFAULT_PAGE_SIZE, PAGE_MARGIN_SIDE_MM, PageGeometry, get_page_geometry, px_to_mm
from .measurer import find_container, find_sections, flush_structure, measure_layout
from .models import VIEW_MODE_PAGE, FontStatus, PageBreakPlan
from .planner import apply_page_breaks, plan_page_breaks
from .resolver import measure_content_height
from .surface import RenderingSurface

logger = logging.getLogger(__name__)

# Extra settle time around the final layout flush (ms)
PRE_MEASURE_SETTLE_MS = 200
POST_FLUSH_SETTLE_MS = 100

PDF_MARGINS = {
    side: f"{PAGE_MARGIN_SIDE_MM:g}mm" for side in ("top", "right", "bottom", "left")
}


@dataclass
class PaginationResult:
    """What the pipeline decided before rasterizing."""
    pdf_options: Dict[str, Any]
    font_status: FontStatus
    page_break_plan: Optional[PageBreakPlan] = None
    content_height_px: Optional[float] = None


def build_paged_pdf_options(geometry: PageGeometry) -> Dict[str, Any]:
    options: Dict[str, Any] = {
        "print_background": True,
        "margin": dict(PDF_MARGINS),
        "prefer_css_page_size": True,
    }
    if geometry.page_size == "A4":
        options["format"] = "A4"
    else:
        options["width"] = f"{geometry.page_width_mm}mm"
        options["height"] = f"{geometry.page_height_mm}mm"
    return options


def build_continuous_pdf_options(geometry: PageGeometry, height_mm: float) -> Dict[str, Any]:
    return {
        "width": f"{geometry.page_width_mm}mm",
        "height": f"{height_mm}mm",
        "print_background": True,
        "margin": dict(PDF_MARGINS),
        "prefer_css_page_size": False,
    }


async def paginate(
    surface: RenderingSurface,
    geometry: PageGeometry,
    view_mode: str,
) -> PaginationResult:
    """
    Measure the loaded document and prepare it for rasterization.

    In page mode this mutates the document (break-before styling on
    sections). Anything other than 'page' is treated as continuous.
    """
    font_status = await wait_for_fonts(surface)
    logger.info(f"Font loading status: {font_status}")

    await surface.wait(PRE_MEASURE_SETTLE_MS)
    await flush_structure(surface)

    if view_mode == VIEW_MODE_PAGE:
        await surface.wait(POST_FLUSH_SETTLE_MS)

        plan = None
        layout = await measure_layout(surface, geometry)
        if layout is not None:
            plan = plan_page_breaks(layout.sections, layout.header_height, geometry.usable_height_px)
            container = await find_container(surface)
            sections = await find_sections(surface, container) if container is not None else []
            applied = await apply_page_breaks(surface, sections, plan)
            logger.info(f"Applied {applied} page break(s), {plan.page_count} page(s) planned")

        return PaginationResult(
            pdf_options=build_paged_pdf_options(geometry),
            font_status=font_status,
            page_break_plan=plan,
        )

    logger.info("Measuring content height for continuous mode...")
    height_px = await measure_content_height(surface)
    height_mm = px_to_mm(height_px)
    logger.info(
        f"Continuous mode PDF options: contentHeightPx={height_px} heightMm={height_mm:.2f} "
        f"pageWidth={geometry.page_width_mm} pageSize={geometry.page_size}"
    )
    return PaginationResult(
        pdf_options=build_continuous_pdf_options(geometry, height_mm),
        font_status=font_status,
        content_height_px=height_px,
    )


async def rasterize(surface: RenderingSurface, options: Dict[str, Any], timeout_seconds: float) -> bytes:
    """
    Render the PDF within a fixed time budget.

    Raises:
        RenderTimeoutError: If the budget is exceeded (never retried)
    """
    try:
        return await asyncio.wait_for(surface.pdf(options), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        raise RenderTimeoutError(timeout_seconds)


async def render_loaded_document(
    surface: RenderingSurface,
    geometry: PageGeometry,
    view_mode: str,
    timeout_seconds: float,
) -> bytes:
    result = await paginate(surface, geometry, view_mode)
    return await rasterize(surface, result.pdf_options, timeout_seconds)


async def generate_pdf(
    html: Optional[str],
    view_mode: Optional[str] = None,
    page_size: Optional[str] = None,
    template_id: Optional[str] = None,
    settings: Optional[PDFServiceSettings] = None,
) -> bytes:
    """
    Render resume HTML to PDF bytes.

    Args:
        html: Complete HTML document of the resume
        view_mode: 'page' (default) or 'continuous'
        page_size: 'A4' (default) or 'US Letter'
        template_id: Opaque template identifier, logged only
        settings: Service settings (defaults to environment)

    Returns:
        PDF bytes

    Raises:
        InputError: If html is missing, before any browser is launched
        SurfaceAcquisitionError: If the browser cannot be launched
        RenderTimeoutError: If rasterization exceeds the budget
    """
    if not html or not html.strip():
        raise InputError("Missing required field: html")

    settings = settings or get_settings()
    view_mode = view_mode or VIEW_MODE_PAGE
    geometry = get_page_geometry(page_size or DEFAULT_PAGE_SIZE)

    logger.info(
        f"Starting PDF generation (templateId={template_id}, viewMode={view_mode}, "
        f"pageSize={geometry.page_size}, htmlLength={len(html)})"
    )

    async with open_surface(settings) as surface:
        # Viewport must match the printable width before load so text wraps as in the preview
        logger.info(f"Setting viewport size: {geometry.viewport}")
        await surface.set_viewport(**geometry.viewport)
        await surface.load_html(html)
        pdf_bytes = await render_loaded_document(
            surface, geometry, view_mode, settings.pdf_timeout_seconds
        )

    logger.info(f"PDF generated successfully ({len(pdf_bytes)} bytes)")
    return pdf_bytes
