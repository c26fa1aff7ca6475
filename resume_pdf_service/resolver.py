"""
Continuous height resolver.

Continuous mode renders the whole resume onto one page sized to its
content. Engines can under-report height depending on overflow/clipping,
and under-estimating truncates the resume while over-estimating only adds
blank space, so the resolver takes the maximum of several redundant
signals and pads the result.
"""

import logging

from .geometry import px_to_mm
from .measurer import find_container
from .models import DocumentMetrics
from .surface import RenderingSurface

logger = logging.getLogger(__name__)

CONTENT_HEIGHT_PADDING_PX = 150


def resolve_content_height_px(metrics: DocumentMetrics) -> float:
    """
    Reduce document metrics to one padded canvas height in pixels.

    The container wins as a whole when it reports any positive height;
    otherwise the body/documentElement signals are used.
    """
    container = metrics.container
    if container is not None and container.max_height > 0:
        height = container.max_height
        logger.info(f"Using resume-container height: {height}")
    else:
        height = max(
            metrics.body_scroll_height,
            metrics.body_offset_height,
            metrics.document_scroll_height,
            metrics.document_offset_height,
        )
        logger.info(f"Using body/documentElement height (fallback): {height}")

    return height + CONTENT_HEIGHT_PADDING_PX


def resolve_content_height_mm(metrics: DocumentMetrics) -> float:
    return px_to_mm(resolve_content_height_px(metrics))


async def read_document_metrics(surface: RenderingSurface) -> DocumentMetrics:
    """Collect container and body/documentElement heights after a reflow."""
    container = await find_container(surface)
    container_box = None
    if container is not None:
        await surface.flush([container.handle])
        container_box = await surface.measure(container.handle, container.unit_id)

    body, document = await surface.measure_document()
    return DocumentMetrics(
        container=container_box,
        body_scroll_height=body.scroll_height,
        body_offset_height=body.offset_height,
        document_scroll_height=document.scroll_height,
        document_offset_height=document.offset_height,
    )


async def measure_content_height(surface: RenderingSurface) -> float:
    """Measure the rendered document and return the padded height in pixels."""
    metrics = await read_document_metrics(surface)
    logger.info(f"Height measurements: {metrics}")
    return resolve_content_height_px(metrics)
