"""
Page-break planner.

Greedy first-fit over resume sections in document order: no lookahead,
no reordering, no splitting. A section that would overflow the current
page starts a new one; a section taller than a whole page simply overflows
its own page.

Planning is pure (plan_page_breaks) and applying the plan to the rendered
document is a separate step (apply_page_breaks).
"""

import logging
from typing import Dict, List, Sequence

from .models import PageBreakDecision, PageBreakPlan, SectionMeasurement, StructuralUnit
from .surface import RenderingSurface

logger = logging.getLogger(__name__)

PAGE_BREAK_STYLES: Dict[str, str] = {
    "pageBreakBefore": "always",
    "breakBefore": "page",
}


def plan_page_breaks(
    sections: Sequence[SectionMeasurement],
    header_height: float,
    usable_height_px: float,
) -> PageBreakPlan:
    """
    Decide which sections start a new page.

    Args:
        sections: Section measurements in document order
        header_height: Height of the resume header, charged to page 1
        usable_height_px: Vertical budget of one page

    Returns:
        PageBreakPlan with one decision per section
    """
    plan = PageBreakPlan(usable_height_px=usable_height_px)
    current_height = header_height

    for section in sections:
        section_height = section.total_section_height
        test_height = current_height + section_height
        break_before = False

        if test_height <= usable_height_px and section.item_count > 0:
            # Fits on the current page
            current_height = test_height
        elif test_height > usable_height_px and current_height > 0:
            # Overflows a page that already has content
            break_before = True
            logger.info(
                f"Page break before section \"{section.name}\" "
                f"({current_height:.1f} + {section_height:.1f} = {test_height:.1f} > {usable_height_px:.1f})"
            )
            current_height = section_height
        else:
            # Empty page (never emit a blank leading page), or a fitting section with no items
            current_height = test_height

        plan.decisions.append(PageBreakDecision(
            section_index=section.index,
            section_name=section.name,
            break_before=break_before,
            page_height_after=current_height,
        ))

    return plan


async def apply_page_breaks(
    surface: RenderingSurface,
    section_units: List[StructuralUnit],
    plan: PageBreakPlan,
) -> int:
    """
    Write break-before styling onto sections flagged by the plan.

    Decisions and units are paired by position; extras on either side are ignored.

    Returns:
        Number of breaks applied
    """
    applied = 0
    for decision, unit in zip(plan.decisions, section_units):
        if decision.break_before:
            await surface.set_style(unit.handle, PAGE_BREAK_STYLES)
            applied += 1
    return applied
