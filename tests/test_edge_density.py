"""Tests for regional edge density analysis."""

import numpy as np
import pytest

from spectral_lab.config import EdgeDensityOptions
from spectral_lab.edge_density import (
    EdgeDensityAnalyzer,
    compute_density_statistics,
    orientation_coherence,
    region_grid,
    region_step,
)
from spectral_lab.edge_detection import EdgeDetectionStrategy, SobelEdgeStrategy, edge_map_to_raster
from spectral_lab.errors import DimensionMismatch
from spectral_lab.preprocessing import RasterImage
from spectral_lab.results import RegionCenter


class FixedEdges(EdgeDetectionStrategy):
    """Returns a predefined edge map and records the params it received."""

    def __init__(self, edges):
        self.edges = edges
        self.calls = []

    @property
    def name(self):
        return "Fixed"

    def detect_edges(self, image, params=None):
        self.calls.append(params)
        return edge_map_to_raster(self.edges)


def blank_raster(height=64, width=64):
    return RasterImage.from_array(np.zeros((height, width), dtype=np.uint8))


def test_region_step_rounding():
    """Test stride rounding and the minimum of one pixel."""
    assert region_step(32, 0.5) == 16
    assert region_step(10, 0.25) == 8  # 7.5 rounds up
    assert region_step(1, 0.9) == 1


def test_region_grid_clamps_last_window():
    """Test that the last window is pulled back inside the image."""
    assert region_grid(40, 16, 16) == [(0, 16), (16, 32), (24, 40)]
    assert region_grid(16, 16, 8) == [(0, 16)]


def test_region_larger_than_image():
    """Test error handling when the window does not fit."""
    with pytest.raises(DimensionMismatch, match="exceeds image dimension"):
        region_grid(10, 16, 8)


def test_exact_tiling_covers_image():
    """Test that non-overlapping regions dividing the image tile it exactly."""
    analyzer = EdgeDensityAnalyzer(FixedEdges(np.zeros((64, 64))))
    result = analyzer.analyze_edge_density(
        blank_raster(), EdgeDensityOptions(region_size=16, overlap_ratio=0.0)
    )

    assert (result.grid_width, result.grid_height) == (4, 4)
    assert result.step == 16
    assert sum(r.pixel_count for r in result.region_centers) == 64 * 64
    assert result.region_centers[0][:2] == (8.0, 8.0)
    assert result.region_centers[-1][:2] == (56.0, 56.0)


def test_density_and_strength_modes():
    """Test occupancy fraction and normalized strength per region."""
    edges = np.zeros((32, 32))
    edges[:16, :16] = 1.0
    edges[16:, 16:][::2] = 1.0  # half of the bottom-right region

    density = EdgeDensityAnalyzer(FixedEdges(edges)).analyze_edge_density(
        blank_raster(32, 32), EdgeDensityOptions(region_size=16, overlap_ratio=0.0)
    )
    strength = EdgeDensityAnalyzer(FixedEdges(edges)).analyze_edge_density(
        blank_raster(32, 32),
        EdgeDensityOptions(region_size=16, overlap_ratio=0.0, heatmap_mode="strength"),
    )

    np.testing.assert_allclose(density.density_map, [[1.0, 0.0], [0.0, 0.5]])
    np.testing.assert_allclose(strength.density_map, [[1.0, 0.0], [0.0, 1.0]])
    assert density.region_centers[0].strength == 255.0
    assert density.heatmap_mode == "density"


def test_edge_params_passed_to_detector():
    """Test that thresholds from the options reach the detector."""
    detector = FixedEdges(np.zeros((32, 32)))
    EdgeDensityAnalyzer(detector).analyze_edge_density(
        blank_raster(32, 32), EdgeDensityOptions(low_threshold=10, high_threshold=20)
    )

    assert detector.calls[0].low_threshold == 10
    assert detector.calls[0].high_threshold == 20


def test_direction_mode_reports_orientation_coherence():
    """Test that aligned edge directions give coherence 1 and empty regions 0."""
    gray = np.zeros((32, 48), dtype=np.uint8)
    gray[:, 16:] = 200
    result = EdgeDensityAnalyzer(SobelEdgeStrategy()).analyze_edge_density(
        RasterImage.from_array(gray),
        EdgeDensityOptions(region_size=16, overlap_ratio=0.0, heatmap_mode="direction"),
    )

    assert result.density_map.shape == (2, 3)
    np.testing.assert_allclose(result.density_map[:, :2], 1.0, atol=1e-9)
    np.testing.assert_allclose(result.density_map[:, 2], 0.0)


def test_orientation_coherence_opposite_directions_agree():
    """Test that gradients 180 degrees apart count as the same orientation."""
    gx = np.array([1.0, -1.0])
    gy = np.array([0.0, 0.0])

    assert orientation_coherence(gx, gy, np.ones(2)) == pytest.approx(1.0)
    assert orientation_coherence(np.array([1.0, 0.0]), np.array([0.0, 1.0]), np.ones(2)) == pytest.approx(0.0, abs=1e-12)
    assert orientation_coherence(gx, gy, np.zeros(2)) == 0.0


def test_statistics_over_nonzero_regions():
    """Test mean, extremes, population variance, histogram and hotspots."""
    density_map = np.array([[1.0, 0.5], [0.0, 0.0]])
    centers = [
        RegionCenter(x=8, y=8, density=1.0, strength=255, pixel_count=256),
        RegionCenter(x=24, y=8, density=0.5, strength=255, pixel_count=256),
        RegionCenter(x=8, y=24, density=0.0, strength=0, pixel_count=256),
        RegionCenter(x=24, y=24, density=0.0, strength=0, pixel_count=256),
    ]

    stats = compute_density_statistics(density_map, centers)

    assert stats.mean_density == pytest.approx(0.75)
    assert stats.max_density == 1.0
    assert stats.min_density == 0.5
    assert stats.variance == pytest.approx(0.0625)
    assert len(stats.distribution) == 20
    assert sum(stats.distribution) == 2
    assert stats.distribution[19] == 1
    assert len(stats.hotspots) == 1
    assert stats.hotspots[0] == (8, 8, 1.0)


def test_hotspots_are_top_ten_percent():
    """Test hotspot count floor(n * 0.1) among nonzero regions."""
    values = np.linspace(0.05, 1.0, 20).reshape(4, 5)
    centers = [
        RegionCenter(x=i, y=0, density=v, strength=255, pixel_count=1)
        for i, v in enumerate(values.ravel())
    ]

    stats = compute_density_statistics(values, centers)

    assert [h.x for h in stats.hotspots] == [19, 18]


def test_empty_image_statistics():
    """Test that an edgeless image reports zeros and empty lists."""
    result = EdgeDensityAnalyzer(FixedEdges(np.zeros((32, 32)))).analyze_edge_density(blank_raster(32, 32))

    assert result.statistics.mean_density == 0
    assert result.statistics.distribution == []
    assert result.statistics.hotspots == []


def test_visualization_upscales_grid():
    """Test 10x upscaling and alpha for empty regions."""
    edges = np.zeros((32, 32))
    edges[:16, :16] = 1.0
    analyzer = EdgeDensityAnalyzer(FixedEdges(edges))
    result = analyzer.analyze_edge_density(
        blank_raster(32, 32), EdgeDensityOptions(region_size=16, overlap_ratio=0.0)
    )

    rgba = analyzer.create_visualization(result, show_hotspots=False)

    assert rgba.shape == (20, 20, 4)
    assert rgba[0, 0, 3] == 255
    assert rgba[15, 15, 3] == 50
    # hot at 1.0 is white, at 0.0 black
    assert tuple(rgba[5, 5, :3]) == (255, 255, 255)
    assert tuple(rgba[15, 15, :3]) == (0, 0, 0)


def test_visualization_draws_hotspot_rings():
    """Test that hotspot annotations change the heatmap."""
    edges = np.zeros((64, 64))
    edges[16:48, 16:48] = 1.0
    analyzer = EdgeDensityAnalyzer(FixedEdges(edges))
    result = analyzer.analyze_edge_density(
        blank_raster(), EdgeDensityOptions(region_size=16, overlap_ratio=0.0)
    )

    plain = analyzer.create_visualization(result, show_hotspots=False)
    annotated = analyzer.create_visualization(result, show_hotspots=True)

    assert plain.shape == annotated.shape == (40, 40, 4)
    assert not np.array_equal(plain, annotated)


def test_visualization_cool_and_unknown_colormap():
    """Test the cool palette and the hot fallback for unknown names."""
    edges = np.zeros((32, 32))
    edges[:16, :16] = 1.0
    analyzer = EdgeDensityAnalyzer(FixedEdges(edges))
    result = analyzer.analyze_edge_density(
        blank_raster(32, 32), EdgeDensityOptions(region_size=16, overlap_ratio=0.0)
    )

    cool = analyzer.create_visualization(result, colormap="cool", show_hotspots=False)
    unknown = analyzer.create_visualization(result, colormap="no-such-map", show_hotspots=False)

    assert tuple(cool[5, 5, :3]) == (0, 255, 255)
    assert tuple(cool[15, 15, :3]) == (255, 0, 255)
    np.testing.assert_array_equal(unknown, analyzer.create_visualization(result, show_hotspots=False))
