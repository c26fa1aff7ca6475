"""
Data models for the PDF service.

HTTP request/response bodies are Pydantic models; the measurement and
planning types passed between pipeline stages are plain dataclasses.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


VIEW_MODE_PAGE = "page"

# Structural unit roles
ROLE_CONTAINER = "container"
ROLE_SECTION = "section"
ROLE_ITEM = "item"
ROLE_HEADER = "header"


# ============================================================================
# Request/Response Models
# ============================================================================

class RenderRequest(BaseModel):
    """Resume HTML to PDF request, as sent by the preview frontend."""
    html: Optional[str] = Field(None, description="Full HTML document of the rendered resume")
    templateId: Optional[str] = Field(None, description="Template identifier (passthrough, logged only)")
    previewViewMode: Optional[str] = Field(None, description="'page' or 'continuous' (default 'page')")
    previewPageSize: Optional[str] = Field(None, description="'A4' or 'US Letter' (default 'A4')")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    service: str = "resume-pdf-service"
    timestamp: datetime
    active_renders: int
    max_concurrent: int
    playwright_ready: bool = True
    playwright_error: Optional[str] = None


# ============================================================================
# Pipeline Types
# ============================================================================

@dataclass(frozen=True)
class StructuralUnit:
    """A named region of the rendered resume plus its engine handle."""
    role: str
    unit_id: str
    index: int
    handle: Any = field(compare=False, repr=False)


@dataclass(frozen=True)
class Measurement:
    """
    Snapshot of one unit's rendered box at a point in time.

    The three height metrics can disagree (sub-pixel rounding, clipped
    overflow), so consumers take the maximum, never an average.
    """
    unit_id: str
    scroll_height: float = 0.0
    offset_height: float = 0.0
    bounding_rect_height: float = 0.0
    margin_top: float = 0.0
    margin_bottom: float = 0.0

    @property
    def height(self) -> float:
        """max(scrollHeight, offsetHeight)."""
        return max(self.scroll_height, self.offset_height)

    @property
    def max_height(self) -> float:
        """max(scrollHeight, offsetHeight, boundingRectHeight)."""
        return max(self.scroll_height, self.offset_height, self.bounding_rect_height)

    @property
    def outer_height(self) -> float:
        """Height including vertical margins."""
        return self.height + self.margin_top + self.margin_bottom


@dataclass(frozen=True)
class FontFace:
    """One entry of the engine's font registry."""
    family: str
    weight: str
    status: str


@dataclass
class FontStatus:
    """Outcome of the font readiness gate."""
    fonts_ready: bool = False
    required_loaded: bool = False
    loaded_weights: List[int] = field(default_factory=list)
    loaded_fonts: List[str] = field(default_factory=list)
    applied_family: str = ""


@dataclass(frozen=True)
class DocumentMetrics:
    """Whole-document height signals used by continuous mode."""
    container: Optional[Measurement]
    body_scroll_height: float = 0.0
    body_offset_height: float = 0.0
    document_scroll_height: float = 0.0
    document_offset_height: float = 0.0


@dataclass
class SectionMeasurement:
    """Settled heights for one resume section."""
    index: int
    name: str
    total_section_height: float
    header_height: float = 0.0
    item_heights: List[float] = field(default_factory=list)
    item_count: int = 0


@dataclass
class LayoutMeasurement:
    """Settled heights for the whole resume container."""
    page_height_px: float
    page_width_px: float
    header_height: float
    sections: List[SectionMeasurement] = field(default_factory=list)
    total_content_height: float = 0.0


@dataclass(frozen=True)
class PageBreakDecision:
    """Whether a section starts a new page, and the page height after placing it."""
    section_index: int
    section_name: str
    break_before: bool
    page_height_after: float


@dataclass
class PageBreakPlan:
    """Ordered break decisions, one per section."""
    usable_height_px: float
    decisions: List[PageBreakDecision] = field(default_factory=list)

    @property
    def breaks(self) -> List[bool]:
        return [d.break_before for d in self.decisions]

    @property
    def break_indices(self) -> List[int]:
        return [d.section_index for d in self.decisions if d.break_before]

    @property
    def page_count(self) -> int:
        return 1 + len(self.break_indices)
