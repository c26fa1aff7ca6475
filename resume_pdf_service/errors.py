"""
Error taxonomy for the PDF pipeline.

Missing structure and incomplete fonts are deliberately absent here:
both degrade to a fallback path instead of failing the request.
"""


class PDFServiceError(Exception):
    """Base class for all pipeline failures."""


class InputError(PDFServiceError):
    """Raised when the request cannot be rendered (e.g. no HTML)."""


class RenderTimeoutError(PDFServiceError):
    """Raised when rasterization exceeds its time budget."""

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"PDF generation timeout after {timeout_seconds:g}s")


class SurfaceAcquisitionError(PDFServiceError):
    """Raised when the browser or page could not be created."""
