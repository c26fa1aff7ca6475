"""
Rendering Surface capability.

The pagination pipeline never talks to a browser directly. Everything it
needs from the engine (selector queries, box metrics, computed styles,
style mutation, font registry, layout flushes, delays and rasterization)
goes through RenderingSurface, so the algorithms can be exercised against
an in-memory surface in tests and against Playwright in production.

Element handles are opaque to the pipeline: whatever query()/query_all()
return is passed back verbatim to measure()/set_style()/etc.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .models import FontFace, Measurement


class RenderingSurface(ABC):
    """Live, queryable rendering of one HTML document."""

    @abstractmethod
    async def set_viewport(self, width: int, height: int) -> None:
        """Resize the viewport. Must be called before load_html()."""

    @abstractmethod
    async def load_html(self, html: str) -> None:
        """Replace the document and wait for the network to go idle."""

    @abstractmethod
    async def query(self, selector: str, scope: Any = None) -> Optional[Any]:
        """Return the first element matching selector, or None."""

    @abstractmethod
    async def query_all(self, selector: str, scope: Any = None) -> List[Any]:
        """Return all elements matching selector in document order."""

    @abstractmethod
    async def measure(self, element: Any, unit_id: str) -> Measurement:
        """Read scroll/offset/bounding-rect heights and vertical margins."""

    @abstractmethod
    async def measure_document(self) -> Tuple[Measurement, Measurement]:
        """Measure (body, documentElement) after forcing a reflow."""

    @abstractmethod
    async def flush(self, elements: Sequence[Any] = ()) -> None:
        """Force a synchronous layout by reading metrics of elements (and body)."""

    @abstractmethod
    async def wait(self, ms: float) -> None:
        """Wait a fixed delay in the engine's timeline."""

    @abstractmethod
    async def text_content(self, element: Any) -> str:
        """Return element text, empty string when there is none."""

    @abstractmethod
    async def set_style(self, element: Any, styles: Dict[str, str]) -> None:
        """Assign inline style properties (camelCase names)."""

    @abstractmethod
    async def fonts_ready(self) -> bool:
        """Await the engine's fonts-ready signal. False if unsupported."""

    @abstractmethod
    async def loaded_fonts(self) -> List[FontFace]:
        """Enumerate the font registry."""

    @abstractmethod
    async def create_font_probe(self, font_family: str) -> Any:
        """Append a hidden text element using font_family and return it."""

    @abstractmethod
    async def computed_style(self, element: Any, prop: str) -> str:
        """Return the computed value of a CSS property (kebab-case name)."""

    @abstractmethod
    async def remove(self, element: Any) -> None:
        """Detach element from the document."""

    @abstractmethod
    async def pdf(self, options: Dict[str, Any]) -> bytes:
        """Rasterize the current document to PDF bytes."""

    @abstractmethod
    async def close(self) -> None:
        """Release the rendering context."""


# ============================================================================
# Playwright implementation
# ============================================================================

_MEASURE_JS = """
el => {
    const rect = el.getBoundingClientRect();
    const style = window.getComputedStyle(el);
    return {
        scrollHeight: el.scrollHeight,
        offsetHeight: el.offsetHeight,
        boundingRectHeight: rect.height,
        marginTop: parseFloat(style.marginTop) || 0,
        marginBottom: parseFloat(style.marginBottom) || 0,
    };
}
"""

_MEASURE_DOCUMENT_JS = """
() => {
    const body = document.body;
    const html = document.documentElement;
    void body.offsetHeight;
    void html.offsetHeight;
    return {
        body: {scrollHeight: body.scrollHeight, offsetHeight: body.offsetHeight,
               boundingRectHeight: body.getBoundingClientRect().height},
        html: {scrollHeight: html.scrollHeight, offsetHeight: html.offsetHeight,
               boundingRectHeight: html.getBoundingClientRect().height},
    };
}
"""

_FLUSH_JS = """
els => {
    for (const el of els) {
        void el.offsetHeight;
        void el.scrollHeight;
        void el.getBoundingClientRect();
    }
    void document.body.offsetHeight;
}
"""

_FONTS_READY_JS = """
async () => {
    if (document.fonts && document.fonts.ready) {
        await document.fonts.ready;
        return true;
    }
    return false;
}
"""

_LOADED_FONTS_JS = """
() => {
    const fonts = [];
    if (document.fonts && document.fonts.forEach) {
        document.fonts.forEach(font => {
            fonts.push({family: font.family, weight: String(font.weight), status: font.status});
        });
    }
    return fonts;
}
"""

_FONT_PROBE_JS = """
family => {
    const el = document.createElement('div');
    el.style.fontFamily = family;
    el.style.position = 'absolute';
    el.style.visibility = 'hidden';
    el.textContent = 'Test';
    document.body.appendChild(el);
    return el;
}
"""


def measurement_from_metrics(unit_id: str, metrics: Dict[str, Any]) -> Measurement:
    """Build a Measurement from the dict returned by the measuring script."""
    return Measurement(
        unit_id=unit_id,
        scroll_height=float(metrics.get("scrollHeight") or 0),
        offset_height=float(metrics.get("offsetHeight") or 0),
        bounding_rect_height=float(metrics.get("boundingRectHeight") or 0),
        margin_top=float(metrics.get("marginTop") or 0),
        margin_bottom=float(metrics.get("marginBottom") or 0),
    )


class PlaywrightSurface(RenderingSurface):
    """RenderingSurface backed by a Playwright async Page."""

    def __init__(self, page):
        self.page = page

    async def set_viewport(self, width: int, height: int) -> None:
        await self.page.set_viewport_size({"width": width, "height": height})

    async def load_html(self, html: str) -> None:
        await self.page.set_content(html, wait_until="networkidle")

    async def query(self, selector: str, scope: Any = None) -> Optional[Any]:
        return await (scope or self.page).query_selector(selector)

    async def query_all(self, selector: str, scope: Any = None) -> List[Any]:
        return await (scope or self.page).query_selector_all(selector)

    async def measure(self, element: Any, unit_id: str) -> Measurement:
        metrics = await element.evaluate(_MEASURE_JS)
        return measurement_from_metrics(unit_id, metrics)

    async def measure_document(self) -> Tuple[Measurement, Measurement]:
        metrics = await self.page.evaluate(_MEASURE_DOCUMENT_JS)
        return (
            measurement_from_metrics("body", metrics["body"]),
            measurement_from_metrics("documentElement", metrics["html"]),
        )

    async def flush(self, elements: Sequence[Any] = ()) -> None:
        await self.page.evaluate(_FLUSH_JS, list(elements))

    async def wait(self, ms: float) -> None:
        await self.page.wait_for_timeout(ms)

    async def text_content(self, element: Any) -> str:
        return (await element.text_content()) or ""

    async def set_style(self, element: Any, styles: Dict[str, str]) -> None:
        await element.evaluate("(el, styles) => Object.assign(el.style, styles)", styles)

    async def fonts_ready(self) -> bool:
        return bool(await self.page.evaluate(_FONTS_READY_JS))

    async def loaded_fonts(self) -> List[FontFace]:
        entries = await self.page.evaluate(_LOADED_FONTS_JS)
        return [
            FontFace(family=e.get("family", ""), weight=e.get("weight", ""), status=e.get("status", ""))
            for e in entries
        ]

    async def create_font_probe(self, font_family: str) -> Any:
        return await self.page.evaluate_handle(_FONT_PROBE_JS, font_family)

    async def computed_style(self, element: Any, prop: str) -> str:
        return await element.evaluate(
            "(el, prop) => window.getComputedStyle(el).getPropertyValue(prop)", prop
        )

    async def remove(self, element: Any) -> None:
        await element.evaluate("el => el.remove()")
        await element.dispose()

    async def pdf(self, options: Dict[str, Any]) -> bytes:
        return await self.page.pdf(**options)

    async def close(self) -> None:
        await self.page.close()
