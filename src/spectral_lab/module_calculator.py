"""Gradient magnitude ("module") analysis."""

import logging
from typing import Optional

import numpy as np

from spectral_lab.colormaps import apply_colormap
from spectral_lab.config import ModuleOptions
from spectral_lab.constants import MODULE_HISTOGRAM_BINS, MODULE_PERCENTILES, NORMALIZED_RANGE
from spectral_lab.gradients import GradientStrategy
from spectral_lab.preprocessing import GrayscaleConverter, RasterImage
from spectral_lab.results import ModuleResult, ModuleStatistics

logger = logging.getLogger(__name__)

__all__ = ['ModuleCalculator', 'generate_module_statistics']


def generate_module_statistics(magnitude: np.ndarray) -> ModuleStatistics:
    """
    Build the 256-bucket histogram and nearest-rank percentiles.

    Only nonzero entries are counted. Bucket index is floor(value), with
    everything above 255 landing in the last bucket.

    Args:
        magnitude: Magnitude map of any shape

    Returns:
        ModuleStatistics; percentiles are empty when no value is nonzero
    """
    values = magnitude[magnitude > 0]

    buckets = np.minimum(np.floor(values).astype(np.int64), MODULE_HISTOGRAM_BINS - 1)
    histogram = np.bincount(buckets, minlength=MODULE_HISTOGRAM_BINS)

    percentiles = {}
    if values.size > 0:
        sorted_values = np.sort(values)
        n = sorted_values.size
        for p in MODULE_PERCENTILES:
            index = int(np.floor(p / 100 * (n - 1)))
            percentiles[p] = float(sorted_values[index])

    return ModuleStatistics(
        histogram=histogram.tolist(),
        bins=list(range(MODULE_HISTOGRAM_BINS)),
        percentiles=percentiles,
    )


class ModuleCalculator:
    """
    Analyzes gradient magnitudes produced by an injected gradient strategy.

    The pipeline is grayscale -> gradients -> threshold -> statistics over
    nonzero values -> optional 0-255 rescale -> optional histogram.
    """

    def __init__(self, strategy: GradientStrategy, converter: Optional[GrayscaleConverter] = None):
        self.strategy = strategy
        self.converter = converter or GrayscaleConverter()

    def calculate_module(
        self, image: RasterImage, options: Optional[ModuleOptions] = None
    ) -> ModuleResult:
        """
        Compute the magnitude map and its statistics.

        Args:
            image: Input raster
            options: Threshold/normalize/histogram settings (defaults if None)

        Returns:
            ModuleResult. min/max/average are taken over nonzero thresholded
            magnitudes, before rescaling; all are 0 when nothing survives.
        """
        options = options or ModuleOptions()

        grayscale = self.converter.convert(image)
        gradients = self.strategy.compute_gradients(grayscale)
        magnitude = gradients.magnitude

        thresholded = np.where(magnitude >= options.threshold, magnitude, 0.0)

        nonzero = thresholded[thresholded > 0]
        if nonzero.size == 0:
            logger.debug("No magnitude above threshold, statistics collapse to zero")
            min_magnitude = 0.0
            max_magnitude = 0.0
            average_magnitude = 0.0
        else:
            min_magnitude = float(nonzero.min())
            max_magnitude = float(nonzero.max())
            average_magnitude = float(nonzero.mean())

        if options.normalize and max_magnitude > 0:
            final_magnitude = thresholded / max_magnitude * NORMALIZED_RANGE
        else:
            final_magnitude = thresholded

        if options.generate_histogram:
            statistics = generate_module_statistics(final_magnitude)
        else:
            statistics = ModuleStatistics(histogram=[], bins=[], percentiles={})

        logger.info(
            f"{self.strategy.name} module: min={min_magnitude:.3f}, max={max_magnitude:.3f}, "
            f"mean={average_magnitude:.3f}, nonzero={nonzero.size}/{magnitude.size}"
        )

        return ModuleResult(
            magnitude_map=final_magnitude,
            min_magnitude=min_magnitude,
            max_magnitude=max_magnitude,
            average_magnitude=average_magnitude,
            statistics=statistics,
            strategy_name=self.strategy.name,
        )

    def create_visualization(self, result: ModuleResult, colormap: str = "jet") -> np.ndarray:
        """
        Colorize a magnitude map.

        Zero-magnitude pixels are fully transparent, all others opaque.

        Args:
            result: Output of calculate_module
            colormap: 'jet', 'hot', 'cool' or any other supported name

        Returns:
            RGBA array (H, W, 4), uint8
        """
        magnitude = result.magnitude_map
        rgba = np.zeros(magnitude.shape + (4,), dtype=np.uint8)
        rgba[..., :3] = apply_colormap(magnitude / NORMALIZED_RANGE, colormap, reverse_cool=True)
        rgba[..., 3] = np.where(magnitude > 0, 255, 0)
        return rgba
