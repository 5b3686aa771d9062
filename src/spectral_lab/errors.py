"""Exceptions raised by the analysis components."""

__all__ = [
    'SpectralLabError',
    'DimensionError',
    'DimensionMismatch',
    'RenderSurfaceError',
]


class SpectralLabError(ValueError):
    """Base class for all errors raised by spectral_lab."""


class DimensionError(SpectralLabError):
    """Raster dimensions unusable for the requested transform (e.g. non power of two)."""


class DimensionMismatch(SpectralLabError):
    """Array or region shape does not match what the operation expects."""


class RenderSurfaceError(SpectralLabError):
    """A drawable surface could not be acquired for a visualization."""
