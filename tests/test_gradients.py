"""Tests for gradient strategies."""

import numpy as np
import pytest

from spectral_lab.gradients import (
    LaplacianGradientStrategy,
    ScharrGradientStrategy,
    SobelGradientStrategy,
    correlate3x3,
    create_gradient_strategy,
)


def vertical_step(height=16, width=16, left=0.0, right=200.0):
    field = np.full((height, width), left)
    field[:, width // 2:] = right
    return field


def test_uniform_field_has_zero_gradient():
    """Test that a constant field produces zero magnitude everywhere."""
    field = np.full((10, 12), 87.0)
    for strategy in (SobelGradientStrategy(), ScharrGradientStrategy(), LaplacianGradientStrategy()):
        gradients = strategy.compute_gradients(field)
        assert gradients.shape == (10, 12)
        assert np.all(gradients.magnitude == 0)


def test_sobel_vertical_step_gx_dominates():
    """Test that a vertical step edge gives horizontal gradients only."""
    gradients = SobelGradientStrategy().compute_gradients(vertical_step())

    assert np.abs(gradients.gx).max() > 0
    np.testing.assert_allclose(gradients.gy, 0.0)
    # Sobel response on a step of 200: 4 * 200 at both columns next to the boundary
    assert gradients.gx[5, 7] == pytest.approx(800.0)
    assert gradients.gx[5, 8] == pytest.approx(800.0)
    assert gradients.gx[5, 3] == 0


def test_scharr_normalized_by_32():
    """Test Scharr magnitude scaling."""
    gradients = ScharrGradientStrategy().compute_gradients(vertical_step())

    np.testing.assert_allclose(gradients.gy, 0.0)
    assert gradients.gx[5, 7] == pytest.approx(16 * 200.0 / 32.0)


def test_laplacian_has_no_direction():
    """Test that Laplacian reports |response| with zero gx and gy."""
    gradients = LaplacianGradientStrategy().compute_gradients(vertical_step())

    assert np.all(gradients.gx == 0)
    assert np.all(gradients.gy == 0)
    assert gradients.magnitude[5, 7] == pytest.approx(200.0)
    assert gradients.magnitude[5, 8] == pytest.approx(200.0)


def test_zero_border_policy_clears_outer_ring():
    """Test that the outer ring stays zero by default."""
    field = np.random.default_rng(0).uniform(0, 255, (9, 9))
    gradients = SobelGradientStrategy().compute_gradients(field)

    for border in (gradients.magnitude[0], gradients.magnitude[-1], gradients.magnitude[:, 0], gradients.magnitude[:, -1]):
        assert np.all(border == 0)


def test_replicate_border_policy_populates_ring():
    """Test that replicate padding computes gradients on the outer ring."""
    gradients = SobelGradientStrategy(border_policy="replicate").compute_gradients(vertical_step())

    assert gradients.magnitude[0, 7] == pytest.approx(800.0)


def test_correlate3x3_matches_manual_interior():
    """Test correlation orientation against a hand-computed value."""
    field = np.arange(25, dtype=np.float64).reshape(5, 5)
    kernel = np.zeros((3, 3))
    kernel[1, 2] = 1.0  # picks the right-hand neighbour

    result = correlate3x3(field, kernel)

    assert result[2, 2] == field[2, 3]


def test_factory_keys_and_fallback():
    """Test factory dispatch and Sobel fallback for unknown keys."""
    assert create_gradient_strategy("SCHARR").name == "Scharr"
    assert create_gradient_strategy("laplacian").name == "Laplacian"
    assert create_gradient_strategy("sobel", kernel_size=5).kernel_size == 5
    assert create_gradient_strategy("prewitt").name == "Sobel"


def test_sobel_rejects_invalid_kernel_size():
    """Test strategy configuration validation."""
    with pytest.raises(ValueError):
        SobelGradientStrategy(kernel_size=0)
