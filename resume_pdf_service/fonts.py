"""
Font readiness gate.

Resume templates are styled with Raleway; text measured before the web
font is applied wraps differently and every height downstream is wrong.
This gate must run before any measurement. It never fails a request: if
the font cannot be confirmed we log and continue with whatever metrics the
engine falls back to.
"""

import asyncio
import logging
import re
from typing import Iterable, List, Sequence

from .models import FontFace, FontStatus
from .surface import RenderingSurface

logger = logging.getLogger(__name__)

REQUIRED_FONT_FAMILY = "Raleway"
REQUIRED_FONT_WEIGHTS = (400, 500, 700)

# Grace period before the single re-check of the font registry
FONT_RETRY_GRACE_MS = 1000
# Delay between appending the probe element and reading its computed font
FONT_PROBE_SETTLE_MS = 500
# Upper bound on each wait for the engine's fonts-ready signal
FONT_READY_TIMEOUT_MS = 5000

DEFAULT_FONT_WEIGHT = 400


def parse_font_weight(weight: str) -> int:
    """
    Parse a FontFace weight descriptor the way parseInt() would.

    "700" -> 700, "100 900" (variable range) -> 100, "bold"/"" -> 400.
    """
    match = re.match(r"\s*(\d+)", str(weight))
    if not match:
        return DEFAULT_FONT_WEIGHT
    return int(match.group(1)) or DEFAULT_FONT_WEIGHT


def _normalize_family(family: str) -> str:
    return family.strip().strip("'\"")


def loaded_weights(fonts: Iterable[FontFace], family: str) -> List[int]:
    """Distinct weights of family whose faces report status 'loaded'."""
    weights = []
    for font in fonts:
        if _normalize_family(font.family) == family and font.status == "loaded":
            weight = parse_font_weight(font.weight)
            if weight not in weights:
                weights.append(weight)
    return weights


def has_required_weights(weights: Sequence[int], required: Sequence[int]) -> bool:
    return bool(weights) and all(w in weights for w in required)


async def _await_fonts_ready(surface: RenderingSurface) -> bool:
    """Await the fonts-ready signal for at most FONT_READY_TIMEOUT_MS; False on timeout."""
    try:
        return await asyncio.wait_for(surface.fonts_ready(), timeout=FONT_READY_TIMEOUT_MS / 1000)
    except asyncio.TimeoutError:
        logger.warning(f"Fonts not ready after {FONT_READY_TIMEOUT_MS}ms, continuing")
        return False


async def _check_registry(surface: RenderingSurface, status: FontStatus, family: str) -> None:
    fonts = await surface.loaded_fonts()
    status.loaded_fonts = [f"{f.family} {f.weight}" for f in fonts if f.status == "loaded"]
    status.loaded_weights = loaded_weights(fonts, family)


async def probe_applied_family(surface: RenderingSurface, family: str) -> str:
    """
    Return the font-family the engine actually applies to a probe element.

    The probe is always removed before returning.
    """
    probe = None
    try:
        probe = await surface.create_font_probe(f"'{family}', sans-serif")
        await surface.flush([probe])
        await surface.wait(FONT_PROBE_SETTLE_MS)
        return await surface.computed_style(probe, "font-family")
    except Exception as e:
        logger.warning(f"Font probe failed: {e}")
        return ""
    finally:
        if probe is not None:
            try:
                await surface.remove(probe)
                await surface.flush()
            except Exception as e:
                logger.warning(f"Failed to remove font probe: {e}")


async def wait_for_fonts(
    surface: RenderingSurface,
    family: str = REQUIRED_FONT_FAMILY,
    required_weights: Sequence[int] = REQUIRED_FONT_WEIGHTS,
) -> FontStatus:
    """
    Block until the required font weights are loaded, or the bounded waits end.

    Args:
        surface: Rendering surface with the resume already loaded
        family: Font family the template depends on
        required_weights: Weights that must report 'loaded'

    Returns:
        FontStatus describing what was observed (never raises)
    """
    status = FontStatus()

    try:
        status.fonts_ready = await _await_fonts_ready(surface)
        await _check_registry(surface, status, family)
        status.required_loaded = has_required_weights(status.loaded_weights, required_weights)

        if not status.required_loaded:
            logger.info(
                f"{family} weights {status.loaded_weights} loaded, waiting "
                f"{FONT_RETRY_GRACE_MS}ms for {list(required_weights)}"
            )
            await surface.wait(FONT_RETRY_GRACE_MS)
            status.fonts_ready = await _await_fonts_ready(surface)
            await _check_registry(surface, status, family)
            status.required_loaded = has_required_weights(status.loaded_weights, required_weights)
    except Exception as e:
        logger.warning(f"Font registry check failed, continuing with fallback metrics: {e}")

    status.applied_family = await probe_applied_family(surface, family)
    if family not in status.applied_family:
        logger.warning(f"{family} font may not be loaded, falling back to system font")

    return status
