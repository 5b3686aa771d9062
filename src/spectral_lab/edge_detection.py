"""Edge detection strategies: full Canny pipeline and Sobel thresholding.

Both return an edge raster with the same dimensions as the input, where
R = G = B = edge intensity (0 or 255) and alpha is opaque.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
from pydantic import Field
from pydantic.dataclasses import dataclass as pydantic_dataclass
from scipy import ndimage

from spectral_lab.config import EdgeParams
from spectral_lab.constants import (
    CANNY_GAUSSIAN_SIGMA,
    DEFAULT_HIGH_THRESHOLD,
    DEFAULT_LOW_THRESHOLD,
    DEFAULT_SOBEL_EDGE_THRESHOLD,
    STRONG_EDGE,
    WEAK_EDGE,
)
from spectral_lab.gradients import SobelGradientStrategy
from spectral_lab.preprocessing import GrayscaleConverter, RasterImage

logger = logging.getLogger(__name__)

__all__ = [
    'EdgeDetectionStrategy',
    'CannyEdgeStrategy',
    'SobelEdgeStrategy',
    'create_edge_detector',
    'gaussian_kernel',
    'gaussian_blur',
    'non_maximum_suppression',
    'hysteresis_threshold',
    'edge_map_to_raster',
]

# 8-connectivity structuring element for hysteresis tracking
_EIGHT_CONNECTED = np.ones((3, 3), dtype=bool)


def gaussian_kernel(sigma: float) -> np.ndarray:
    """Unnormalized 2D Gaussian of radius ceil(3 * sigma)."""
    radius = int(math.ceil(sigma * 3))
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    yy, xx = np.meshgrid(offsets, offsets, indexing="ij")
    return np.exp(-(xx**2 + yy**2) / (2 * sigma * sigma))


def gaussian_blur(field: np.ndarray, sigma: float = CANNY_GAUSSIAN_SIGMA) -> np.ndarray:
    """
    Full 2D Gaussian blur with clamped borders.

    Out-of-range neighbours take the value of the nearest edge pixel, and
    the result is divided by the weight sum actually applied.
    """
    kernel = gaussian_kernel(sigma)
    return ndimage.correlate(field.astype(np.float64, copy=False), kernel / kernel.sum(), mode="nearest")


def non_maximum_suppression(magnitude: np.ndarray, gx: np.ndarray, gy: np.ndarray) -> np.ndarray:
    """
    Thin a gradient magnitude map to ridges along the gradient direction.

    The direction (mod 180 degrees) is quantized into four sectors:
    horizontal (< 22.5 or >= 157.5), '\\' diagonal, vertical and '/'
    diagonal, and each pixel is compared with its two neighbours across
    the edge. A pixel survives when it is not smaller than its predecessor
    and strictly greater than its successor along that direction; the
    asymmetric tie-break keeps exactly one pixel across a plateau of two.
    The outer ring is always suppressed.

    Args:
        magnitude: Gradient magnitude (H, W)
        gx: Horizontal gradient (H, W)
        gy: Vertical gradient (H, W)

    Returns:
        Suppressed magnitude map (H, W)
    """
    h, w = magnitude.shape
    result = np.zeros_like(magnitude, dtype=np.float64)
    if h < 3 or w < 3:
        return result

    angle = np.degrees(np.arctan2(gy, gx)) % 180.0

    center = magnitude[1:-1, 1:-1]
    a = angle[1:-1, 1:-1]

    def shifted(dy: int, dx: int) -> np.ndarray:
        return magnitude[1 + dy:h - 1 + dy, 1 + dx:w - 1 + dx]

    horizontal = (a < 22.5) | (a >= 157.5)
    diagonal_down = (a >= 22.5) & (a < 67.5)
    vertical = (a >= 67.5) & (a < 112.5)
    diagonal_up = (a >= 112.5) & (a < 157.5)

    # (predecessor, successor) across the edge; y grows downwards, so a
    # 45 degree gradient points towards (y + 1, x + 1)
    sectors = [horizontal, diagonal_down, vertical, diagonal_up]
    before = np.select(sectors, [shifted(0, -1), shifted(-1, -1), shifted(-1, 0), shifted(1, -1)])
    after = np.select(sectors, [shifted(0, 1), shifted(1, 1), shifted(1, 0), shifted(-1, 1)])

    keep = (center > 0) & (center >= before) & (center > after)
    result[1:-1, 1:-1] = np.where(keep, center, 0.0)
    return result


def hysteresis_threshold(magnitude: np.ndarray, low: float, high: float) -> np.ndarray:
    """
    Double threshold followed by 8-connected hysteresis tracking.

    Pixels >= high are strong (1), pixels >= low are weak (0.5). Weak
    pixels connected to a strong pixel through other weak/strong pixels
    are promoted to 1; the rest are cleared.

    Returns:
        Edge map (H, W) with values 0 or 1
    """
    strong = magnitude >= high
    candidate = strong | (magnitude >= low)

    graded = np.where(strong, STRONG_EDGE, np.where(candidate, WEAK_EDGE, 0.0))

    labels, num_components = ndimage.label(candidate, structure=_EIGHT_CONNECTED)
    if num_components == 0:
        return np.zeros_like(graded)

    seeded = np.zeros(num_components + 1, dtype=bool)
    seeded[np.unique(labels[strong])] = True
    seeded[0] = False

    edges = np.where(seeded[labels], STRONG_EDGE, 0.0)

    logger.debug(
        f"Hysteresis: {int(strong.sum())} strong, {int((graded == WEAK_EDGE).sum())} weak, "
        f"{int(edges.sum())} final edge pixels"
    )

    return edges


def edge_map_to_raster(edges: np.ndarray) -> RasterImage:
    """Replicate a 0..1 edge map into an opaque RGBA raster scaled to 0..255."""
    value = np.clip(np.rint(edges * 255), 0, 255).astype(np.uint8)
    alpha = np.full(value.shape, 255, dtype=np.uint8)
    return RasterImage(np.stack([value, value, value, alpha], axis=-1))


class EdgeDetectionStrategy(ABC):
    """Produces an edge raster from an RGBA raster.

    Thresholds configured at construction are defaults; ``params`` passed to
    detect_edges override them for that call only.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def detect_edges(self, image: RasterImage, params: Optional[EdgeParams] = None) -> RasterImage:
        """
        Detect edges.

        Args:
            image: Input raster
            params: Per-call thresholds

        Returns:
            Edge raster (same dimensions), R = G = B = edge intensity
        """


@pydantic_dataclass(frozen=True)
class CannyEdgeStrategy(EdgeDetectionStrategy):
    """Gaussian blur, Sobel gradients, non-maximum suppression, hysteresis."""

    low_threshold: float = Field(default=DEFAULT_LOW_THRESHOLD, ge=0.0)
    high_threshold: float = Field(default=DEFAULT_HIGH_THRESHOLD, ge=0.0)
    sigma: float = Field(default=CANNY_GAUSSIAN_SIGMA, gt=0.0)
    converter: GrayscaleConverter = Field(default_factory=GrayscaleConverter)
    gradient: SobelGradientStrategy = Field(default_factory=SobelGradientStrategy)

    @property
    def name(self) -> str:
        return "Canny"

    def detect_edge_map(self, image: RasterImage, params: Optional[EdgeParams] = None) -> np.ndarray:
        """Run the Canny pipeline and return the 0/1 edge map (H, W)."""
        low = params.low_threshold if params is not None else self.low_threshold
        high = params.high_threshold if params is not None else self.high_threshold

        grayscale = self.converter.convert(image)
        blurred = gaussian_blur(grayscale, self.sigma)
        gradients = self.gradient.compute_gradients(blurred)
        suppressed = non_maximum_suppression(gradients.magnitude, gradients.gx, gradients.gy)

        logger.debug(f"Canny thresholds: low={low}, high={high}, sigma={self.sigma}")

        return hysteresis_threshold(suppressed, low, high)

    def detect_edges(self, image: RasterImage, params: Optional[EdgeParams] = None) -> RasterImage:
        return edge_map_to_raster(self.detect_edge_map(image, params))


@pydantic_dataclass(frozen=True)
class SobelEdgeStrategy(EdgeDetectionStrategy):
    """Binary threshold on Sobel magnitude (strictly greater than threshold)."""

    threshold: float = Field(default=DEFAULT_SOBEL_EDGE_THRESHOLD, ge=0.0)
    converter: GrayscaleConverter = Field(default_factory=GrayscaleConverter)
    gradient: SobelGradientStrategy = Field(default_factory=SobelGradientStrategy)

    @property
    def name(self) -> str:
        return "Sobel"

    def detect_edges(self, image: RasterImage, params: Optional[EdgeParams] = None) -> RasterImage:
        threshold = self.threshold
        if params is not None and params.threshold is not None:
            threshold = params.threshold

        grayscale = self.converter.convert(image)
        magnitude = self.gradient.compute_gradients(grayscale).magnitude
        edges = (magnitude > threshold).astype(np.float64)

        logger.debug(f"Sobel edges: threshold={threshold}, {int(edges.sum())} edge pixels")

        return edge_map_to_raster(edges)


def create_edge_detector(
    method: str,
    low_threshold: float = DEFAULT_LOW_THRESHOLD,
    high_threshold: float = DEFAULT_HIGH_THRESHOLD,
    threshold: float = DEFAULT_SOBEL_EDGE_THRESHOLD,
) -> EdgeDetectionStrategy:
    """
    Build an edge detection strategy from its key.

    Args:
        method: 'canny' or 'sobel' (case-insensitive)
        low_threshold: Canny weak-edge threshold
        high_threshold: Canny strong-edge threshold
        threshold: Sobel binary threshold

    Returns:
        Configured EdgeDetectionStrategy; unknown keys yield Canny
    """
    key = method.strip().lower()
    if key == "canny":
        return CannyEdgeStrategy(low_threshold=low_threshold, high_threshold=high_threshold)
    elif key == "sobel":
        return SobelEdgeStrategy(threshold=threshold)
    else:
        logger.warning(f"Unknown edge detector '{method}', falling back to Canny")
        return CannyEdgeStrategy(low_threshold=low_threshold, high_threshold=high_threshold)
