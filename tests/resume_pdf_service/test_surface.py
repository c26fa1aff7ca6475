"""
Unit tests for the Playwright-backed rendering surface.
"""

import pytest
from unittest.mock import AsyncMock

from resume_pdf_service.models import FontFace, Measurement
from resume_pdf_service.surface import PlaywrightSurface, measurement_from_metrics


@pytest.fixture
def page():
    return AsyncMock()


@pytest.fixture
def surface(page):
    return PlaywrightSurface(page)


class TestMeasurementFromMetrics:
    """Tests for measurement_from_metrics."""

    def test_converts_all_fields(self):
        m = measurement_from_metrics("section[0]", {
            "scrollHeight": 410,
            "offsetHeight": 400,
            "boundingRectHeight": 400.5,
            "marginTop": 8,
            "marginBottom": 12,
        })
        assert m == Measurement("section[0]", 410.0, 400.0, 400.5, 8.0, 12.0)
        assert m.height == 410
        assert m.outer_height == 430

    def test_missing_and_null_fields_are_zero(self):
        m = measurement_from_metrics("x", {"scrollHeight": None})
        assert m.max_height == 0


class TestPlaywrightSurface:
    """Tests for PlaywrightSurface."""

    @pytest.mark.asyncio
    async def test_load_html_waits_for_network_idle(self, surface, page):
        await surface.load_html("<h1>Resume</h1>")
        page.set_content.assert_awaited_once_with("<h1>Resume</h1>", wait_until="networkidle")

    @pytest.mark.asyncio
    async def test_set_viewport(self, surface, page):
        await surface.set_viewport(642, 1047)
        page.set_viewport_size.assert_awaited_once_with({"width": 642, "height": 1047})

    @pytest.mark.asyncio
    async def test_query_scoped_to_element(self, surface, page):
        scope = AsyncMock()
        await surface.query_all(".experience-item", scope)
        scope.query_selector_all.assert_awaited_once_with(".experience-item")
        page.query_selector_all.assert_not_called()

    @pytest.mark.asyncio
    async def test_query_defaults_to_page(self, surface, page):
        page.query_selector = AsyncMock(return_value=None)
        assert await surface.query(".resume-container") is None
        page.query_selector.assert_awaited_once_with(".resume-container")

    @pytest.mark.asyncio
    async def test_measure_evaluates_on_element(self, surface):
        element = AsyncMock()
        element.evaluate = AsyncMock(return_value={"scrollHeight": 300, "offsetHeight": 298})

        m = await surface.measure(element, "section[1]")

        assert m.unit_id == "section[1]"
        assert m.height == 300

    @pytest.mark.asyncio
    async def test_measure_document(self, surface, page):
        page.evaluate = AsyncMock(return_value={
            "body": {"scrollHeight": 900, "offsetHeight": 880},
            "html": {"scrollHeight": 905, "offsetHeight": 870},
        })

        body, html = await surface.measure_document()

        assert body.scroll_height == 900
        assert html.unit_id == "documentElement"
        assert html.scroll_height == 905

    @pytest.mark.asyncio
    async def test_wait_uses_engine_timeout(self, surface, page):
        await surface.wait(50)
        page.wait_for_timeout.assert_awaited_once_with(50)

    @pytest.mark.asyncio
    async def test_flush_passes_elements(self, surface, page):
        a, b = AsyncMock(), AsyncMock()
        await surface.flush((a, b))
        args = page.evaluate.await_args.args
        assert args[1] == [a, b]

    @pytest.mark.asyncio
    async def test_set_style(self, surface):
        element = AsyncMock()
        await surface.set_style(element, {"breakBefore": "page"})
        assert element.evaluate.await_args.args[1] == {"breakBefore": "page"}

    @pytest.mark.asyncio
    async def test_text_content_none_is_empty(self, surface):
        element = AsyncMock()
        element.text_content = AsyncMock(return_value=None)
        assert await surface.text_content(element) == ""

    @pytest.mark.asyncio
    async def test_loaded_fonts(self, surface, page):
        page.evaluate = AsyncMock(return_value=[
            {"family": "Raleway", "weight": "700", "status": "loaded"},
        ])
        assert await surface.loaded_fonts() == [FontFace("Raleway", "700", "loaded")]

    @pytest.mark.asyncio
    async def test_fonts_ready(self, surface, page):
        page.evaluate = AsyncMock(return_value=True)
        assert await surface.fonts_ready() is True

    @pytest.mark.asyncio
    async def test_remove_disposes_handle(self, surface):
        element = AsyncMock()
        await surface.remove(element)
        element.evaluate.assert_awaited_once()
        element.dispose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_pdf_forwards_options(self, surface, page):
        page.pdf = AsyncMock(return_value=b"%PDF")
        options = {"format": "A4", "prefer_css_page_size": True}

        assert await surface.pdf(options) == b"%PDF"
        page.pdf.assert_awaited_once_with(format="A4", prefer_css_page_size=True)
