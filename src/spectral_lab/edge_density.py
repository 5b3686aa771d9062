"""Regional edge density analysis.

An injected edge detector runs once over the whole raster; a square window
then slides over the edge raster and each window reports one value of the
density grid.
"""

import logging
import math
from typing import List, Optional, Tuple

import numpy as np

from spectral_lab.colormaps import apply_colormap
from spectral_lab.config import EdgeDensityOptions, HeatmapMode
from spectral_lab.constants import (
    DENSITY_HISTOGRAM_BINS,
    HEATMAP_EMPTY_ALPHA,
    HEATMAP_UPSCALE,
    HOTSPOT_FRACTION,
)
from spectral_lab.edge_detection import EdgeDetectionStrategy
from spectral_lab.errors import DimensionMismatch
from spectral_lab.gradients import GradientStrategy, SobelGradientStrategy
from spectral_lab.preprocessing import GrayscaleConverter, RasterImage
from spectral_lab.rendering import draw_hotspot, open_canvas, surface_from_array, surface_to_array
from spectral_lab.results import (
    EdgeDensityResult,
    EdgeDensityStatistics,
    Hotspot,
    RegionCenter,
)

logger = logging.getLogger(__name__)

__all__ = [
    'EdgeDensityAnalyzer',
    'region_step',
    'region_grid',
    'compute_density_statistics',
    'orientation_coherence',
]


def region_step(region_size: int, overlap_ratio: float) -> int:
    """Window stride: round(region_size * (1 - overlap)), at least 1."""
    return max(1, int(math.floor(region_size * (1 - overlap_ratio) + 0.5)))


def region_grid(length: int, region_size: int, step: int) -> List[Tuple[int, int]]:
    """
    Window extents along one axis.

    The last window is clamped to end at ``length``, so it may overlap its
    predecessor more than the nominal ratio.

    Returns:
        List of (start, end) pairs
    """
    if region_size > length:
        raise DimensionMismatch(
            f"Region size {region_size} exceeds image dimension {length}"
        )
    count = int(math.ceil((length - region_size) / step)) + 1
    extents = []
    for i in range(count):
        start = min(i * step, length - region_size)
        extents.append((start, start + region_size))
    return extents


def orientation_coherence(gx: np.ndarray, gy: np.ndarray, weights: np.ndarray) -> float:
    """
    Magnitude-weighted orientation coherence in [0, 1].

    Directions are doubled before accumulation so opposite gradients
    (a dark-to-light and a light-to-dark side of the same line) agree.
    """
    total = float(weights.sum())
    if total <= 0:
        return 0.0
    theta = 2.0 * np.arctan2(gy, gx)
    sum_cos = float(np.sum(weights * np.cos(theta)))
    sum_sin = float(np.sum(weights * np.sin(theta)))
    return min(1.0, math.hypot(sum_cos, sum_sin) / total)


def compute_density_statistics(
    density_map: np.ndarray, region_centers: List[RegionCenter]
) -> EdgeDensityStatistics:
    """
    Statistics over regions with nonzero density.

    Args:
        density_map: Grid values (grid_height, grid_width)
        region_centers: Regions in row-major grid order

    Returns:
        EdgeDensityStatistics; all zeros with empty lists when no region
        has a nonzero value
    """
    values = density_map[density_map > 0]
    if values.size == 0:
        logger.debug("No region contains edges, density statistics are empty")
        return EdgeDensityStatistics(
            mean_density=0.0,
            max_density=0.0,
            min_density=0.0,
            variance=0.0,
            distribution=[],
            hotspots=[],
        )

    mean_density = float(values.mean())
    max_density = float(values.max())
    min_density = float(values.min())
    variance = float(np.mean((values - mean_density) ** 2))

    bin_size = max_density / DENSITY_HISTOGRAM_BINS
    bins = np.minimum(np.floor(values / bin_size).astype(np.int64), DENSITY_HISTOGRAM_BINS - 1)
    distribution = np.bincount(bins, minlength=DENSITY_HISTOGRAM_BINS)

    # Stable sort keeps grid order among equal densities
    ranked = sorted(
        (r for r in region_centers if r.density > 0),
        key=lambda r: r.density,
        reverse=True,
    )
    hotspot_count = max(1, int(len(ranked) * HOTSPOT_FRACTION))
    hotspots = [Hotspot(x=r.x, y=r.y, density=r.density) for r in ranked[:hotspot_count]]

    return EdgeDensityStatistics(
        mean_density=mean_density,
        max_density=max_density,
        min_density=min_density,
        variance=variance,
        distribution=distribution.tolist(),
        hotspots=hotspots,
    )


class EdgeDensityAnalyzer:
    """
    Measures how edges are distributed across an image.

    Args:
        strategy: Edge detector run once per analysis
        gradient_strategy: Source of gradient directions for the
            'direction' heatmap mode (Sobel by default)
        converter: Grayscale converter for the direction mode
    """

    def __init__(
        self,
        strategy: EdgeDetectionStrategy,
        gradient_strategy: Optional[GradientStrategy] = None,
        converter: Optional[GrayscaleConverter] = None,
    ):
        self.strategy = strategy
        self.gradient_strategy = gradient_strategy or SobelGradientStrategy()
        self.converter = converter or GrayscaleConverter()

    def analyze_edge_density(
        self, image: RasterImage, options: Optional[EdgeDensityOptions] = None
    ) -> EdgeDensityResult:
        """
        Build the regional density grid.

        Per region, density is the fraction of edge pixels and strength the
        mean edge intensity among them. The heatmap mode decides which value
        lands in the grid: 'density' the fraction, 'strength' strength / 255,
        'direction' the orientation coherence at the region's edge pixels.

        Args:
            image: Input raster
            options: Region size, overlap, thresholds and heatmap mode

        Returns:
            EdgeDensityResult

        Raises:
            DimensionMismatch: If the region size exceeds an image dimension
        """
        options = options or EdgeDensityOptions()
        mode: HeatmapMode = options.heatmap_mode
        region_size = options.region_size

        step = region_step(region_size, options.overlap_ratio)
        columns = region_grid(image.width, region_size, step)
        rows = region_grid(image.height, region_size, step)

        edge_raster = self.strategy.detect_edges(image, options.edge_params)
        # Red channel carries the edge intensity
        edges = edge_raster.pixels[:, :, 0].astype(np.float64)

        if mode == "direction":
            gradients = self.gradient_strategy.compute_gradients(self.converter.convert(image))

        density_map = np.zeros((len(rows), len(columns)), dtype=np.float64)
        region_centers = []

        for gy, (y0, y1) in enumerate(rows):
            for gx, (x0, x1) in enumerate(columns):
                window = edges[y0:y1, x0:x1]
                edge_mask = window > 0
                edge_count = int(np.count_nonzero(edge_mask))
                total = window.size

                density = edge_count / total
                strength = float(window[edge_mask].mean()) if edge_count > 0 else 0.0

                if mode == "strength":
                    value = strength / 255.0
                elif mode == "direction":
                    value = orientation_coherence(
                        gradients.gx[y0:y1, x0:x1][edge_mask],
                        gradients.gy[y0:y1, x0:x1][edge_mask],
                        gradients.magnitude[y0:y1, x0:x1][edge_mask],
                    )
                else:
                    value = density

                density_map[gy, gx] = value
                region_centers.append(
                    RegionCenter(
                        x=x0 + (x1 - x0) / 2,
                        y=y0 + (y1 - y0) / 2,
                        density=value,
                        strength=strength,
                        pixel_count=total,
                    )
                )

        statistics = compute_density_statistics(density_map, region_centers)

        logger.info(
            f"{self.strategy.name} edge density ({mode}): {len(columns)}x{len(rows)} regions "
            f"of {region_size}px, step {step}, mean={statistics.mean_density:.4f}, "
            f"{len(statistics.hotspots)} hotspots"
        )

        return EdgeDensityResult(
            density_map=density_map,
            region_centers=region_centers,
            region_size=region_size,
            step=step,
            image_width=image.width,
            image_height=image.height,
            heatmap_mode=mode,
            statistics=statistics,
        )

    def create_visualization(
        self,
        result: EdgeDensityResult,
        colormap: str = "hot",
        show_hotspots: bool = True,
    ) -> np.ndarray:
        """
        Render the density grid as an upscaled heatmap.

        Each grid cell becomes a 10x10 block colored by value / max value.
        Empty cells are semi-transparent. Hotspots are ringed and numbered
        from 1 in descending density order.

        Args:
            result: Output of analyze_edge_density
            colormap: Colormap name
            show_hotspots: Draw hotspot annotations

        Returns:
            RGBA array (grid_height * 10, grid_width * 10, 4), uint8
        """
        density = result.density_map
        max_density = result.statistics.max_density
        normalized = density / max_density if max_density > 0 else np.zeros_like(density)

        cells = np.zeros(density.shape + (4,), dtype=np.uint8)
        cells[..., :3] = apply_colormap(normalized, colormap, fallback="hot", reverse_cool=True)
        cells[..., 3] = np.where(density > 0, 255, HEATMAP_EMPTY_ALPHA)

        rgba = np.repeat(np.repeat(cells, HEATMAP_UPSCALE, axis=0), HEATMAP_UPSCALE, axis=1)

        if not show_hotspots or not result.statistics.hotspots:
            return rgba

        canvas_height, canvas_width = rgba.shape[:2]
        surface = surface_from_array(rgba)
        canvas = open_canvas(surface)
        for index, hotspot in enumerate(result.statistics.hotspots, start=1):
            x = hotspot.x / result.image_width * canvas_width
            y = hotspot.y / result.image_height * canvas_height
            draw_hotspot(canvas, x, y, index)

        return surface_to_array(surface)
