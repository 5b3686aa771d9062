"""Tests for gradient magnitude analysis."""

import numpy as np
import pytest

from spectral_lab.config import ModuleOptions
from spectral_lab.gradients import SobelGradientStrategy
from spectral_lab.module_calculator import ModuleCalculator, generate_module_statistics
from spectral_lab.preprocessing import RasterImage


def step_raster(height=16, width=16, left=0, right=200):
    gray = np.full((height, width), left, dtype=np.uint8)
    gray[:, width // 2:] = right
    return RasterImage.from_array(gray)


def test_uniform_image_statistics_are_zero():
    """Test that a uniform image reports min = max = average = 0."""
    raster = RasterImage.from_array(np.full((12, 12), 90, dtype=np.uint8))
    result = ModuleCalculator(SobelGradientStrategy()).calculate_module(raster)

    assert result.min_magnitude == 0
    assert result.max_magnitude == 0
    assert result.average_magnitude == 0
    assert np.all(result.magnitude_map == 0)
    assert result.statistics.percentiles == {}
    assert sum(result.statistics.histogram) == 0


def test_step_edge_normalized_to_255():
    """Test normalization of the magnitude map to 0-255."""
    result = ModuleCalculator(SobelGradientStrategy()).calculate_module(step_raster())

    assert result.max_magnitude == pytest.approx(800.0)
    assert result.magnitude_map.max() == pytest.approx(255.0)
    assert result.strategy_name == "Sobel"
    assert (result.width, result.height) == (16, 16)


def test_normalize_disabled_keeps_raw_values():
    """Test that raw magnitudes are kept without normalization."""
    options = ModuleOptions(normalize=False)
    result = ModuleCalculator(SobelGradientStrategy()).calculate_module(step_raster(), options)

    assert result.magnitude_map.max() == pytest.approx(800.0)


def test_threshold_zeroes_weak_magnitudes():
    """Test that magnitudes below the threshold are cleared."""
    # Left half 0, right half 10: Sobel gives 40 next to the boundary
    options = ModuleOptions(threshold=50, normalize=False)
    result = ModuleCalculator(SobelGradientStrategy()).calculate_module(step_raster(right=10), options)

    assert np.all(result.magnitude_map == 0)
    assert result.max_magnitude == 0


def test_zero_max_normalization_is_noop():
    """Test that normalization with max 0 returns the thresholded map unchanged."""
    raster = RasterImage.from_array(np.full((8, 8), 10, dtype=np.uint8))
    result = ModuleCalculator(SobelGradientStrategy()).calculate_module(raster, ModuleOptions(normalize=True))

    np.testing.assert_array_equal(result.magnitude_map, np.zeros((8, 8)))


def test_statistics_are_over_nonzero_values():
    """Test that min and average ignore zero pixels."""
    result = ModuleCalculator(SobelGradientStrategy()).calculate_module(
        step_raster(), ModuleOptions(normalize=False)
    )

    assert result.min_magnitude == pytest.approx(800.0)
    assert result.average_magnitude == pytest.approx(800.0)


def test_histogram_disabled():
    """Test that histogram generation can be skipped."""
    result = ModuleCalculator(SobelGradientStrategy()).calculate_module(
        step_raster(), ModuleOptions(generate_histogram=False)
    )

    assert result.statistics.histogram == []
    assert result.statistics.percentiles == {}


def test_generate_module_statistics_buckets_and_percentiles():
    """Test histogram bucketing and nearest-rank percentiles."""
    magnitude = np.array([0.0, 1.5, 2.0, 300.0, 10.0])

    stats = generate_module_statistics(magnitude)

    assert len(stats.histogram) == 256
    assert stats.bins == list(range(256))
    assert stats.histogram[1] == 1
    assert stats.histogram[2] == 1
    assert stats.histogram[10] == 1
    assert stats.histogram[255] == 1  # clipped into the last bucket
    assert sum(stats.histogram) == 4
    # sorted nonzero: [1.5, 2, 10, 300], index floor(p/100 * 3)
    assert stats.percentiles[5] == 1.5
    assert stats.percentiles[50] == 2.0
    assert stats.percentiles[75] == 10.0
    assert stats.percentiles[95] == 10.0


def test_visualization_alpha_follows_magnitude():
    """Test that zero pixels are transparent and others opaque."""
    calculator = ModuleCalculator(SobelGradientStrategy())
    result = calculator.calculate_module(step_raster())

    rgba = calculator.create_visualization(result, "hot")

    assert rgba.shape == (16, 16, 4)
    assert rgba.dtype == np.uint8
    assert rgba[5, 7, 3] == 255
    assert rgba[5, 2, 3] == 0
    # hot at 1.0 is white
    assert tuple(rgba[5, 7, :3]) == (255, 255, 255)


def test_visualization_cool_runs_magenta_to_cyan():
    """Test the cool palette used for magnitude maps."""
    calculator = ModuleCalculator(SobelGradientStrategy())
    result = calculator.calculate_module(step_raster())

    rgba = calculator.create_visualization(result, "cool")

    assert tuple(rgba[5, 7, :3]) == (0, 255, 255)
