"""
Structural measurer.

Reads the settled heights of the resume container, its sections and the
entries inside each section. Layout engines apply font metrics, image
decodes and reflows asynchronously across frames, so a single read right
after content injection is unreliable: every height goes through a fixed
flush-and-delay sequence followed by a bounded poll-until-stable read.

Selector contract (produced by the preview's HTML templates):

    .resume-container            whole resume
      .resume-header             name/contact block, always on page 1
      .resume-section            one per section, with an <h2> heading
        .experience-item | .education-item | .project-item
        | .certificate-item | .skill-item
"""

import logging
from typing import Any, List, Optional

from tenacity import AsyncRetrying, retry_if_result, stop_after_attempt, wait_fixed

from .geometry import PageGeometry
from .models import (
    ROLE_CONTAINER,
    ROLE_HEADER,
    ROLE_ITEM,
    ROLE_SECTION,
    LayoutMeasurement,
    Measurement,
    SectionMeasurement,
    StructuralUnit,
)
from .surface import RenderingSurface

logger = logging.getLogger(__name__)

CONTAINER_SELECTOR = ".resume-container"
HEADER_SELECTOR = ".resume-header"
SECTION_SELECTOR = ".resume-section"
SECTION_HEADING_SELECTOR = "h2"

# Item kinds in priority order. Items are concatenated kind by kind, not in
# visual order; they are only measured for diagnostics.
ITEM_SELECTORS = (
    ".experience-item",
    ".education-item",
    ".project-item",
    ".certificate-item",
    ".skill-item",
)

# Settle protocol timings (ms)
SETTLE_FLUSH_PASSES = 3
SETTLE_PASS_DELAY_MS = 20
SETTLE_STABILIZE_MS = 50
ITEM_SETTLE_DELAYS_MS = (10, 5)

# Poll-until-stable read budget
STABLE_READ_ATTEMPTS = 3
STABLE_READ_BACKOFF_MS = 5


def _engine_sleep(surface: RenderingSurface):
    async def sleep(seconds: float) -> None:
        await surface.wait(seconds * 1000)
    return sleep


async def read_settled(surface: RenderingSurface, element: Any, unit_id: str) -> Measurement:
    """
    Measure element until two consecutive reads agree.

    Gives up after STABLE_READ_ATTEMPTS reads and returns the last one.
    Surface errors propagate.
    """
    reads: List[Measurement] = []

    async def read():
        measurement = await surface.measure(element, unit_id)
        stable = bool(reads) and reads[-1] == measurement
        reads.append(measurement)
        return measurement, stable

    retrying = AsyncRetrying(
        stop=stop_after_attempt(STABLE_READ_ATTEMPTS),
        wait=wait_fixed(STABLE_READ_BACKOFF_MS / 1000),
        retry=retry_if_result(lambda outcome: not outcome[1]),
        retry_error_callback=lambda state: state.outcome.result(),
        sleep=_engine_sleep(surface),
    )
    measurement, stable = await retrying(read)
    if not stable:
        logger.debug(f"{unit_id} height still moving after {len(reads)} reads, using last")
    return measurement


async def find_container(surface: RenderingSurface) -> Optional[StructuralUnit]:
    handle = await surface.query(CONTAINER_SELECTOR)
    if handle is None:
        return None
    return StructuralUnit(role=ROLE_CONTAINER, unit_id="container", index=0, handle=handle)


async def find_sections(surface: RenderingSurface, container: StructuralUnit) -> List[StructuralUnit]:
    """Sections of the container in document order."""
    handles = await surface.query_all(SECTION_SELECTOR, container.handle)
    return [
        StructuralUnit(role=ROLE_SECTION, unit_id=f"section[{i}]", index=i, handle=h)
        for i, h in enumerate(handles)
    ]


async def find_items(surface: RenderingSurface, section: StructuralUnit) -> List[StructuralUnit]:
    """Items of a section, grouped by kind in ITEM_SELECTORS order."""
    handles = []
    for selector in ITEM_SELECTORS:
        handles.extend(await surface.query_all(selector, section.handle))
    return [
        StructuralUnit(role=ROLE_ITEM, unit_id=f"{section.unit_id}.item[{i}]", index=i, handle=h)
        for i, h in enumerate(handles)
    ]


async def flush_structure(surface: RenderingSurface) -> None:
    """Force one layout pass over the container, every section and every item."""
    container = await find_container(surface)
    if container is None:
        await surface.flush()
        return

    handles = [container.handle]
    for section in await find_sections(surface, container):
        handles.append(section.handle)
        handles.extend(item.handle for item in await find_items(surface, section))
    await surface.flush(handles)


async def _settle_items(surface: RenderingSurface, items: List[StructuralUnit]) -> None:
    handles = [item.handle for item in items]
    for pass_no in range(SETTLE_FLUSH_PASSES):
        await surface.flush(handles)
        if pass_no < SETTLE_FLUSH_PASSES - 1:
            await surface.wait(SETTLE_PASS_DELAY_MS)
    await surface.wait(SETTLE_STABILIZE_MS)


async def _measure_item(surface: RenderingSurface, item: StructuralUnit) -> float:
    for delay_ms in ITEM_SETTLE_DELAYS_MS:
        await surface.flush([item.handle])
        await surface.wait(delay_ms)
    await surface.flush([item.handle])
    return (await read_settled(surface, item.handle, item.unit_id)).height


async def measure_section(surface: RenderingSurface, section: StructuralUnit) -> SectionMeasurement:
    """
    Measure one section after settling its items.

    The section's total height includes its vertical margins, which
    scrollHeight/offsetHeight do not report but which do take up page space.
    """
    items = await find_items(surface, section)
    await _settle_items(surface, items)

    item_heights = []
    for item in items:
        item_heights.append(await _measure_item(surface, item))

    heading = await surface.query(SECTION_HEADING_SELECTOR, section.handle)
    heading_height = 0.0
    name = ""
    if heading is not None:
        heading_height = (await surface.measure(heading, f"{section.unit_id}.heading")).height
        name = (await surface.text_content(heading)).strip()

    box = await read_settled(surface, section.handle, section.unit_id)

    return SectionMeasurement(
        index=section.index,
        name=name or f"Section {section.index + 1}",
        total_section_height=box.outer_height,
        header_height=heading_height,
        item_heights=item_heights,
        item_count=len(items),
    )


async def measure_layout(
    surface: RenderingSurface,
    geometry: PageGeometry,
) -> Optional[LayoutMeasurement]:
    """
    Measure the resume structure for page-break planning.

    Args:
        surface: Rendering surface with fonts already settled
        geometry: Page geometry of the request

    Returns:
        LayoutMeasurement, or None when there is no resume container
        (callers fall back to whole-document metrics)
    """
    container = await find_container(surface)
    if container is None:
        logger.info(f"No {CONTAINER_SELECTOR} found, skipping structural measurement")
        return None

    sections = []
    for section in await find_sections(surface, container):
        sections.append(await measure_section(surface, section))

    header_height = 0.0
    header = await surface.query(HEADER_SELECTOR, container.handle)
    if header is not None:
        header_height = (await read_settled(surface, header, ROLE_HEADER)).height

    container_box = await surface.measure(container.handle, container.unit_id)

    layout = LayoutMeasurement(
        page_height_px=geometry.usable_height_px,
        page_width_px=geometry.usable_width_px,
        header_height=header_height,
        sections=sections,
        total_content_height=container_box.height,
    )

    logger.info(
        f"Page measurements: pageHeight={layout.page_height_px:.1f}px "
        f"pageWidth={layout.page_width_px:.1f}px headerHeight={layout.header_height:.1f}px "
        f"totalContentHeight={layout.total_content_height:.1f}px sections={len(sections)}"
    )
    return layout
