"""
Unit tests for the font readiness gate.
"""

import asyncio
import logging

import pytest
from unittest.mock import AsyncMock, patch

from helpers.fake_surface import FakeSurface, raleway_fonts
from resume_pdf_service.fonts import (
    FONT_PROBE_SETTLE_MS,
    FONT_RETRY_GRACE_MS,
    loaded_weights,
    parse_font_weight,
    wait_for_fonts,
)
from resume_pdf_service.models import FontFace


class TestParseFontWeight:
    """Tests for parse_font_weight."""

    @pytest.mark.parametrize("raw,expected", [
        ("400", 400),
        ("700", 700),
        ("100 900", 100),
        ("bold", 400),
        ("", 400),
        ("normal", 400),
    ])
    def test_parse(self, raw, expected):
        assert parse_font_weight(raw) == expected


class TestLoadedWeights:
    """Tests for loaded_weights."""

    def test_ignores_other_families_and_unloaded_faces(self):
        fonts = [
            FontFace(family="Raleway", weight="400", status="loaded"),
            FontFace(family="Raleway", weight="700", status="unloaded"),
            FontFace(family="Inter", weight="500", status="loaded"),
        ]
        assert loaded_weights(fonts, "Raleway") == [400]

    def test_accepts_quoted_family_names(self):
        fonts = [FontFace(family='"Raleway"', weight="500", status="loaded")]
        assert loaded_weights(fonts, "Raleway") == [500]

    def test_deduplicates_weights(self):
        fonts = raleway_fonts((400, 400, 700))
        assert loaded_weights(fonts, "Raleway") == [400, 700]


class TestWaitForFonts:
    """Tests for wait_for_fonts."""

    @pytest.mark.asyncio
    async def test_all_weights_loaded_skips_grace_period(self):
        surface = FakeSurface(fonts=raleway_fonts())

        status = await wait_for_fonts(surface)

        assert status.fonts_ready is True
        assert status.required_loaded is True
        assert status.loaded_weights == [400, 500, 700]
        assert surface.waits == [FONT_PROBE_SETTLE_MS]
        assert surface.registry_checks == 1

    @pytest.mark.asyncio
    async def test_rechecks_once_after_grace_period(self):
        surface = FakeSurface(
            fonts=raleway_fonts((400, 500)),
            late_fonts=raleway_fonts((700,)),
        )

        status = await wait_for_fonts(surface)

        assert surface.waits[0] == FONT_RETRY_GRACE_MS
        assert surface.registry_checks == 2
        assert status.required_loaded is True

    @pytest.mark.asyncio
    async def test_incomplete_fonts_do_not_fail(self):
        surface = FakeSurface(fonts=raleway_fonts((400, 500)))

        status = await wait_for_fonts(surface)

        assert status.required_loaded is False
        assert status.loaded_weights == [400, 500]
        assert surface.registry_checks == 2

    @pytest.mark.asyncio
    async def test_no_fonts_at_all(self):
        surface = FakeSurface(fonts=[], fonts_ready_supported=False)

        status = await wait_for_fonts(surface)

        assert status.fonts_ready is False
        assert status.required_loaded is False
        assert status.loaded_weights == []

    @pytest.mark.asyncio
    async def test_probe_is_removed(self):
        surface = FakeSurface(fonts=raleway_fonts())

        await wait_for_fonts(surface)

        assert surface.body.children == []
        names = surface.event_names()
        assert names.index("create_font_probe") < names.index("remove")
        assert names[-1] == "flush"

    @pytest.mark.asyncio
    async def test_probe_reports_applied_family(self):
        surface = FakeSurface(fonts=raleway_fonts(), applied_font_family='Raleway, sans-serif')

        status = await wait_for_fonts(surface)

        assert status.applied_family == "Raleway, sans-serif"

    @pytest.mark.asyncio
    async def test_fallback_font_logs_warning(self, caplog):
        surface = FakeSurface(fonts=raleway_fonts(), applied_font_family="sans-serif")

        with caplog.at_level(logging.WARNING, logger="resume_pdf_service.fonts"):
            status = await wait_for_fonts(surface)

        assert status.applied_family == "sans-serif"
        assert "falling back to system font" in caplog.text

    @pytest.mark.asyncio
    async def test_registry_errors_are_not_raised(self):
        surface = FakeSurface(fonts=raleway_fonts())
        surface.loaded_fonts = AsyncMock(side_effect=RuntimeError("Execution context was destroyed"))

        status = await wait_for_fonts(surface)

        assert status.required_loaded is False
        assert status.applied_family == "Raleway, sans-serif"

    @pytest.mark.asyncio
    async def test_probe_errors_are_not_raised(self):
        surface = FakeSurface(fonts=raleway_fonts())
        surface.computed_style = AsyncMock(side_effect=RuntimeError("detached"))

        status = await wait_for_fonts(surface)

        assert status.applied_family == ""
        assert surface.body.children == []

    @pytest.mark.asyncio
    async def test_stalled_fonts_ready_signal_is_bounded(self, caplog):
        surface = FakeSurface(fonts=raleway_fonts(weights=(400,)))

        async def never_ready():
            await asyncio.sleep(3600)
            return True

        surface.fonts_ready = never_ready

        with patch("resume_pdf_service.fonts.FONT_READY_TIMEOUT_MS", 10):
            with caplog.at_level(logging.WARNING):
                status = await asyncio.wait_for(wait_for_fonts(surface), timeout=3)

        assert status.fonts_ready is False
        assert status.required_loaded is False
        assert surface.registry_checks == 2
        assert FONT_RETRY_GRACE_MS in surface.waits
        assert FONT_PROBE_SETTLE_MS in surface.waits
        assert status.applied_family == "Raleway, sans-serif"
        assert "Fonts not ready after 10ms" in caplog.text
