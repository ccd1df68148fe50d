from __future__ import annotations


class EngineError(Exception):
    """Base class for every failure of a patch-fill apply call."""

    user_message = "Operation failed, try another image or region."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.user_message)


class InvalidRegionError(EngineError, ValueError):
    """Region is degenerate after normalization, out of bounds, or missing."""

    user_message = "Select a larger region to process."


class RenderSurfaceUnavailableError(EngineError):
    """The pixel buffer cannot be used as a drawing surface."""


class EncodingError(EngineError):
    """Encoding or decoding of the image bytes failed."""

    user_message = "Failed to export image."
