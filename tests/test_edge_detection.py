"""Tests for edge detection strategies."""

import numpy as np
import pytest
from scipy import ndimage

from spectral_lab.config import EdgeParams
from spectral_lab.edge_detection import (
    CannyEdgeStrategy,
    SobelEdgeStrategy,
    create_edge_detector,
    edge_map_to_raster,
    gaussian_blur,
    gaussian_kernel,
    hysteresis_threshold,
    non_maximum_suppression,
)
from spectral_lab.preprocessing import GrayscaleConverter, RasterImage


def step_raster(size=32, left=0, right=200):
    gray = np.full((size, size), left, dtype=np.uint8)
    gray[:, size // 2:] = right
    return RasterImage.from_array(gray)


def test_gaussian_kernel_radius():
    """Test kernel size 2 * ceil(3 * sigma) + 1."""
    kernel = gaussian_kernel(1.4)

    assert kernel.shape == (11, 11)
    assert kernel[5, 5] == 1.0
    np.testing.assert_allclose(kernel, kernel.T)


def test_gaussian_blur_preserves_constant_field():
    """Test that clamped borders with weight normalization keep constants."""
    field = np.full((7, 9), 42.0)

    np.testing.assert_allclose(gaussian_blur(field), 42.0)


def test_canny_step_edge_single_pixel_line():
    """Test that a step edge gives a connected one-pixel-wide line."""
    raster = step_raster()
    edges = CannyEdgeStrategy().detect_edges(raster)

    assert edges.shape == raster.shape
    values = edges.pixels[..., 0]
    assert set(np.unique(values)) <= {0, 255}
    np.testing.assert_array_equal(edges.pixels[..., 0], edges.pixels[..., 1])
    np.testing.assert_array_equal(edges.pixels[..., 0], edges.pixels[..., 2])
    assert np.all(edges.pixels[..., 3] == 255)

    columns = []
    for row in range(1, 31):
        hits = np.flatnonzero(values[row])
        assert len(hits) == 1
        assert hits[0] in (15, 16)
        columns.append(hits[0])
    # consecutive rows stay 8-connected
    assert np.all(np.abs(np.diff(columns)) <= 1)


def diagonal_raster(falling: bool, size=32):
    yy, xx = np.mgrid[:size, :size]
    mask = xx + yy >= size if falling else xx >= yy
    return RasterImage.from_array(np.where(mask, 200, 0).astype(np.uint8))


# Window clear of the blur and Sobel footprint at the image border
INTERIOR = slice(6, 26)


def test_canny_falling_diagonal_edge():
    """Test that a 45 degree step edge gives a thin connected line."""
    edges = CannyEdgeStrategy().detect_edge_map(diagonal_raster(falling=True))[INTERIOR, INTERIOR]

    ys, xs = np.nonzero(edges)
    # boundary between x + y = 31 and x + y = 32 in image coordinates
    assert set((ys + xs).tolist()) == {19, 20}
    # exactly one pixel along every line in the gradient direction
    for offset in range(-12, 13):
        assert np.diagonal(edges, offset).sum() == 1
    assert ndimage.label(edges, structure=np.ones((3, 3)))[1] == 1


def test_canny_rising_diagonal_edge():
    """Test that a 135 degree step edge gives a thin connected line."""
    edges = CannyEdgeStrategy().detect_edge_map(diagonal_raster(falling=False))[INTERIOR, INTERIOR]

    ys, xs = np.nonzero(edges)
    assert set((xs - ys).tolist()) == {-1, 0}
    for offset in range(-12, 13):
        assert np.diagonal(np.fliplr(edges), offset).sum() == 1
    assert ndimage.label(edges, structure=np.ones((3, 3)))[1] == 1


def test_non_maximum_suppression_diagonal_ridge():
    """Test that a diagonal gradient is compared across the ridge."""
    yy, xx = np.mgrid[:7, :7]
    magnitude = np.maximum(0.0, 5.0 - np.abs(xx + yy - 6))
    ones = np.ones_like(magnitude)

    suppressed = non_maximum_suppression(magnitude, ones, ones)

    ys, xs = np.nonzero(suppressed)
    # diagonal neighbours sit two apart in x + y, so the ridge and the
    # upper of its shoulders are kept; the rest of the slope is not
    assert set((ys + xs).tolist()) == {6, 7}
    assert all(suppressed[y, 6 - y] == 5.0 for y in range(1, 6))


def test_canny_high_low_threshold_clears_everything():
    """Test that a low threshold above every magnitude yields no edges."""
    params = EdgeParams(low_threshold=10000, high_threshold=20000)
    edges = CannyEdgeStrategy().detect_edges(step_raster(), params)

    assert np.all(edges.pixels[..., 0] == 0)


def test_canny_uniform_image_has_no_edges():
    """Test that a uniform image has no edges."""
    raster = RasterImage.from_array(np.full((16, 16), 120, dtype=np.uint8))

    assert CannyEdgeStrategy().detect_edge_map(raster).sum() == 0


def test_non_maximum_suppression_thins_ridge():
    """Test that only the ridge survives along a horizontal gradient."""
    magnitude = np.tile(np.array([0.0, 1.0, 3.0, 5.0, 3.0, 1.0, 0.0]), (5, 1))
    gx = np.ones_like(magnitude)
    gy = np.zeros_like(magnitude)

    suppressed = non_maximum_suppression(magnitude, gx, gy)

    assert np.flatnonzero(suppressed[2]).tolist() == [3]
    assert np.all(suppressed[0] == 0)
    assert np.all(suppressed[-1] == 0)


def test_non_maximum_suppression_plateau_keeps_one():
    """Test that a two-pixel plateau keeps a single pixel."""
    magnitude = np.tile(np.array([0.0, 2.0, 4.0, 4.0, 2.0, 0.0]), (3, 1))
    suppressed = non_maximum_suppression(magnitude, np.ones_like(magnitude), np.zeros_like(magnitude))

    assert np.flatnonzero(suppressed[1]).tolist() == [3]


def test_hysteresis_promotes_connected_weak_pixels():
    """Test 8-connected promotion and removal of isolated weak pixels."""
    magnitude = np.zeros((6, 6))
    magnitude[1, 1] = 200  # strong
    magnitude[2, 2] = 60  # weak, diagonal neighbour
    magnitude[3, 3] = 60  # weak, chained
    magnitude[5, 0] = 60  # weak, isolated

    edges = hysteresis_threshold(magnitude, 50, 150)

    assert edges[1, 1] == 1
    assert edges[2, 2] == 1
    assert edges[3, 3] == 1
    assert edges[5, 0] == 0
    assert edges.sum() == 3


def test_hysteresis_without_strong_pixels():
    """Test that weak-only maps are cleared."""
    magnitude = np.full((4, 4), 60.0)

    assert hysteresis_threshold(magnitude, 50, 150).sum() == 0


def test_sobel_edge_threshold():
    """Test strict binary thresholding of Sobel magnitude."""
    edges = SobelEdgeStrategy().detect_edges(step_raster())
    values = edges.pixels[..., 0]

    assert np.all(values[5, 15:17] == 255)
    assert np.all(values[5, :15] == 0)


def test_sobel_edge_params_override_threshold():
    """Test that a per-call threshold overrides the configured one."""
    edges = SobelEdgeStrategy(threshold=10).detect_edges(step_raster(), EdgeParams(threshold=1000))

    assert np.all(edges.pixels[..., 0] == 0)


def test_edge_map_to_raster():
    """Test replication of the edge map across channels."""
    raster = edge_map_to_raster(np.array([[0.0, 1.0]]))

    assert raster.pixels.tolist() == [[[0, 0, 0, 255], [255, 255, 255, 255]]]


def test_factory_keys_and_fallback():
    """Test factory dispatch and Canny fallback."""
    assert create_edge_detector("Sobel").name == "Sobel"
    canny = create_edge_detector("canny", low_threshold=20, high_threshold=40)
    assert canny.name == "Canny"
    assert (canny.low_threshold, canny.high_threshold) == (20, 40)
    assert create_edge_detector("roberts").name == "Canny"


def test_strategy_rejects_negative_threshold():
    """Test strategy configuration validation."""
    with pytest.raises(ValueError):
        CannyEdgeStrategy(low_threshold=-1)


def test_strategies_use_injected_converter():
    """Test that a configured grayscale converter feeds the detectors."""
    blind = GrayscaleConverter(weights=(0.0, 0.0, 0.0))

    assert CannyEdgeStrategy(converter=blind).detect_edge_map(step_raster()).sum() == 0
    assert np.all(SobelEdgeStrategy(converter=blind).detect_edges(step_raster()).pixels[..., 0] == 0)
