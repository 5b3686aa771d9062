"""Gradient direction ("phase") analysis with circular statistics.

Angles are never averaged as scalars: smoothing, coherence and the mean
direction all accumulate (cos, sin) vectors so 359 and 1 degrees agree.
"""

import logging
import math
from typing import List, Optional

import numpy as np
from scipy import ndimage

from spectral_lab.colormaps import hsv_to_rgb8
from spectral_lab.config import AngleUnit, PhaseOptions
from spectral_lab.constants import (
    ARROW_LENGTH_MAGNITUDE_DIVISOR,
    ARROW_LENGTH_STEP_FRACTION,
    DOMINANT_DIRECTION_MIN_FRACTION,
    MAX_DOMINANT_DIRECTIONS,
    PHASE_ALPHA_GAIN,
    PHASE_HISTOGRAM_BINS,
    PHASE_SMOOTHING_KERNEL,
)
from spectral_lab.errors import DimensionMismatch
from spectral_lab.gradients import GradientStrategy
from spectral_lab.preprocessing import GrayscaleConverter, RasterImage
from spectral_lab.rendering import (
    acquire_surface,
    draw_arrow,
    open_canvas,
    surface_from_array,
    surface_to_array,
)
from spectral_lab.results import DominantDirection, PhaseResult, PhaseStatistics

logger = logging.getLogger(__name__)

__all__ = [
    'PhaseCalculator',
    'compute_phase_statistics',
    'find_dominant_directions',
    'circular_coherence',
    'circular_mean',
    'smooth_phase_map',
]


def _full_turn(angle_unit: AngleUnit) -> float:
    return 360.0 if angle_unit == "degrees" else 2 * math.pi


def _to_radians(angles: np.ndarray, angle_unit: AngleUnit) -> np.ndarray:
    return np.deg2rad(angles) if angle_unit == "degrees" else angles


def _from_radians(angles: np.ndarray, angle_unit: AngleUnit) -> np.ndarray:
    """Convert radians to the requested unit, normalized to [0, full turn)."""
    converted = np.rad2deg(angles) if angle_unit == "degrees" else angles
    full = _full_turn(angle_unit)
    converted = np.where(converted < 0, converted + full, converted)
    # atan2 of -0.0 style inputs can land exactly on the full turn
    return np.where(converted >= full, converted - full, converted)


def smooth_phase_map(
    phase_map: np.ndarray, magnitude_map: np.ndarray, angle_unit: AngleUnit = "degrees"
) -> np.ndarray:
    """
    Circular 3x3 weighted smoothing of a phase map.

    Each pixel with nonzero magnitude is replaced by the direction of the
    kernel-weighted sum of unit vectors of its neighbours that also have
    nonzero magnitude. Pixels with zero magnitude are left untouched.

    Args:
        phase_map: Angles (H, W) in ``angle_unit``
        magnitude_map: Magnitudes (H, W); zero marks pixels to ignore
        angle_unit: 'degrees' or 'radians'

    Returns:
        Smoothed phase map (H, W)
    """
    if phase_map.shape != magnitude_map.shape:
        raise DimensionMismatch(
            f"Phase map {phase_map.shape} and magnitude map {magnitude_map.shape} differ in shape"
        )

    valid = magnitude_map > 0
    radians = _to_radians(phase_map, angle_unit)
    cos = np.where(valid, np.cos(radians), 0.0)
    sin = np.where(valid, np.sin(radians), 0.0)

    sum_cos = ndimage.correlate(cos, PHASE_SMOOTHING_KERNEL, mode="constant", cval=0.0)
    sum_sin = ndimage.correlate(sin, PHASE_SMOOTHING_KERNEL, mode="constant", cval=0.0)

    smoothed = _from_radians(np.arctan2(sum_sin, sum_cos), angle_unit)
    return np.where(valid, smoothed, phase_map)


def find_dominant_directions(
    distribution: np.ndarray, bin_size: float
) -> List[DominantDirection]:
    """
    Find peaks of a circular weighted histogram.

    A bin is dominant when it is strictly greater than both circular
    neighbours and holds more than 5% of the total weight.

    Returns:
        Up to three DominantDirection entries, strongest first
    """
    total_weight = float(distribution.sum())
    if total_weight <= 0:
        return []

    previous = np.roll(distribution, 1)
    following = np.roll(distribution, -1)
    is_peak = (
        (distribution > previous)
        & (distribution > following)
        & (distribution > total_weight * DOMINANT_DIRECTION_MIN_FRACTION)
    )

    directions = [
        DominantDirection(
            angle=i * bin_size + bin_size / 2,
            percentage=float(distribution[i]) / total_weight * 100,
            strength=float(distribution[i]),
        )
        for i in np.flatnonzero(is_peak)
    ]
    directions.sort(key=lambda d: d.strength, reverse=True)
    return directions[:MAX_DOMINANT_DIRECTIONS]


def _weighted_resultant(angles: np.ndarray, weights: np.ndarray, angle_unit: AngleUnit):
    radians = _to_radians(angles, angle_unit)
    return (
        float(np.sum(weights * np.cos(radians))),
        float(np.sum(weights * np.sin(radians))),
        float(np.sum(weights)),
    )


def circular_coherence(angles: np.ndarray, weights: np.ndarray, angle_unit: AngleUnit) -> float:
    """Length of the weighted mean unit vector: 0 scattered, 1 aligned."""
    if angles.size == 0:
        return 0.0
    sum_cos, sum_sin, total = _weighted_resultant(angles, weights, angle_unit)
    if total == 0:
        return 0.0
    return math.hypot(sum_cos, sum_sin) / total


def circular_mean(angles: np.ndarray, weights: np.ndarray, angle_unit: AngleUnit) -> float:
    """Weighted circular mean in [0, full turn)."""
    if angles.size == 0:
        return 0.0
    sum_cos, sum_sin, total = _weighted_resultant(angles, weights, angle_unit)
    if total == 0:
        return 0.0
    return float(_from_radians(np.array(math.atan2(sum_sin, sum_cos)), angle_unit))


def compute_phase_statistics(
    phase_map: np.ndarray, magnitude_map: np.ndarray, angle_unit: AngleUnit = "degrees"
) -> PhaseStatistics:
    """
    Directional statistics of a phase map, weighted by magnitude.

    Args:
        phase_map: Angles (H, W) in ``angle_unit``, within [0, full turn)
        magnitude_map: Weights (H, W); only nonzero entries participate
        angle_unit: 'degrees' or 'radians'

    Returns:
        PhaseStatistics with a 36-bin weighted histogram, up to three
        dominant directions, coherence and circular mean
    """
    if phase_map.shape != magnitude_map.shape:
        raise DimensionMismatch(
            f"Phase map {phase_map.shape} and magnitude map {magnitude_map.shape} differ in shape"
        )

    bin_size = _full_turn(angle_unit) / PHASE_HISTOGRAM_BINS

    mask = magnitude_map > 0
    angles = phase_map[mask]
    weights = magnitude_map[mask]

    bins = np.floor(angles / bin_size).astype(np.int64) % PHASE_HISTOGRAM_BINS
    distribution = np.bincount(bins, weights=weights, minlength=PHASE_HISTOGRAM_BINS)

    dominant = find_dominant_directions(distribution, bin_size)
    coherence = circular_coherence(angles, weights, angle_unit)
    average = circular_mean(angles, weights, angle_unit)

    logger.debug(
        f"Phase statistics: {angles.size} weighted angles, coherence={coherence:.4f}, "
        f"mean={average:.3f} {angle_unit}, {len(dominant)} dominant directions"
    )

    return PhaseStatistics(
        dominant_directions=dominant,
        coherence=coherence,
        average_phase=average,
        phase_distribution=distribution.tolist(),
    )


class PhaseCalculator:
    """Analyzes gradient directions produced by an injected gradient strategy."""

    def __init__(self, strategy: GradientStrategy, converter: Optional[GrayscaleConverter] = None):
        self.strategy = strategy
        self.converter = converter or GrayscaleConverter()

    def calculate_phase(
        self, image: RasterImage, options: Optional[PhaseOptions] = None
    ) -> PhaseResult:
        """
        Compute the per-pixel gradient direction and its statistics.

        Pixels whose magnitude is below ``magnitude_threshold`` get angle 0
        and magnitude 0 and are excluded from smoothing and statistics.

        Args:
            image: Input raster
            options: Unit, threshold, smoothing and statistics settings

        Returns:
            PhaseResult with angles in the requested unit
        """
        options = options or PhaseOptions()
        unit = options.angle_unit

        grayscale = self.converter.convert(image)
        gradients = self.strategy.compute_gradients(grayscale)

        keep = gradients.magnitude >= options.magnitude_threshold
        angles = _from_radians(np.arctan2(gradients.gy, gradients.gx), unit)
        phase_map = np.where(keep, angles, 0.0)
        magnitude_map = np.where(keep, gradients.magnitude, 0.0)

        if options.smoothing:
            phase_map = smooth_phase_map(phase_map, magnitude_map, unit)

        if options.generate_statistics:
            statistics = compute_phase_statistics(phase_map, magnitude_map, unit)
        else:
            statistics = PhaseStatistics(
                dominant_directions=[], coherence=0.0, average_phase=0.0, phase_distribution=[]
            )

        logger.info(
            f"{self.strategy.name} phase: {int(np.count_nonzero(magnitude_map))} pixels above "
            f"threshold {options.magnitude_threshold}, coherence={statistics.coherence:.4f}"
        )

        return PhaseResult(
            phase_map=phase_map,
            magnitude_map=magnitude_map,
            angle_unit=unit,
            statistics=statistics,
        )

    def create_visualization(
        self,
        result: PhaseResult,
        overlay_mode: str = "color",
        arrow_density: int = 20,
        saturation: float = 0.8,
        brightness: float = 0.9,
    ) -> np.ndarray:
        """
        Render a phase map.

        'color' maps angle to hue with alpha proportional to magnitude,
        'arrows' draws direction arrows on a regular grid, 'both' overlays
        arrows on the colored map.

        Args:
            result: Output of calculate_phase
            overlay_mode: 'color', 'arrows' or 'both'
            arrow_density: Arrows per short side; grid spacing is
                min(width, height) // arrow_density
            saturation: HSV saturation of the color layer
            brightness: HSV value of the color layer

        Returns:
            RGBA array (H, W, 4), uint8
        """
        height, width = result.phase_map.shape

        if overlay_mode in ("color", "both"):
            rgba = self._render_color(result, saturation, brightness)
        else:
            rgba = np.zeros((height, width, 4), dtype=np.uint8)

        if overlay_mode in ("arrows", "both"):
            surface = surface_from_array(rgba) if overlay_mode == "both" else acquire_surface(width, height)
            self._render_arrows(surface, result, arrow_density)
            rgba = surface_to_array(surface)

        return rgba

    def _render_color(self, result: PhaseResult, saturation: float, brightness: float) -> np.ndarray:
        full = _full_turn(result.angle_unit)
        hue = result.phase_map / full * 360.0
        valid = result.magnitude_map > 0

        rgba = np.zeros(result.phase_map.shape + (4,), dtype=np.uint8)
        rgba[..., :3] = np.where(valid[..., None], hsv_to_rgb8(hue, saturation, brightness), 0)
        alpha = np.clip(result.magnitude_map * PHASE_ALPHA_GAIN, 0, 255)
        rgba[..., 3] = np.where(valid, alpha, 0).astype(np.uint8)
        return rgba

    def _render_arrows(self, surface, result: PhaseResult, density: int) -> None:
        height, width = result.phase_map.shape
        step = max(1, min(width, height) // max(1, density))
        canvas = open_canvas(surface)

        count = 0
        for y in range(step, height - step, step):
            for x in range(step, width - step, step):
                magnitude = result.magnitude_map[y, x]
                if magnitude <= 0:
                    continue
                angle = float(_to_radians(result.phase_map[y, x], result.angle_unit))
                length = min(step * ARROW_LENGTH_STEP_FRACTION, magnitude / ARROW_LENGTH_MAGNITUDE_DIVISOR)
                draw_arrow(canvas, x, y, angle, length)
                count += 1

        logger.debug(f"Drew {count} direction arrows with grid spacing {step}")
