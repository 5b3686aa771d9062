"""Tests for option models."""

import pytest
from pydantic import ValidationError

from spectral_lab.config import (
    EdgeDensityOptions,
    FFTOptions,
    GradientOptions,
    ModuleOptions,
    PhaseOptions,
)


def test_defaults():
    """Test default option values."""
    assert GradientOptions().method == "sobel"
    assert ModuleOptions().normalize is True
    assert PhaseOptions().magnitude_threshold == 10
    assert EdgeDensityOptions().region_size == 32
    assert FFTOptions().center_dc is True
    assert FFTOptions().cutoff_frequency == 0.3


def test_camel_case_parameters():
    """Test validation of pipeline editor parameter dictionaries."""
    options = EdgeDensityOptions.model_validate(
        {"edgeDetector": "Sobel", "overlapRatio": 0.25, "heatmapMode": "strength", "unknown": 1}
    )

    assert options.edge_detector == "sobel"
    assert options.overlap_ratio == 0.25
    assert options.heatmap_mode == "strength"


def test_special_aliases():
    """Test the gradientMethod and centerDC keys."""
    assert GradientOptions.model_validate({"gradientMethod": "Scharr"}).method == "scharr"
    assert FFTOptions.model_validate({"centerDC": False}).center_dc is False


def test_snake_case_names_accepted():
    """Test population by field name."""
    assert ModuleOptions(generate_histogram=False).generate_histogram is False


def test_overlap_ratio_range():
    """Test that overlap above 0.9 is rejected."""
    with pytest.raises(ValidationError):
        EdgeDensityOptions(overlap_ratio=0.95)


def test_negative_threshold_rejected():
    """Test threshold lower bound."""
    with pytest.raises(ValidationError):
        ModuleOptions(threshold=-1)


def test_even_kernel_size_rejected():
    """Test kernel size parity validation."""
    with pytest.raises(ValidationError, match="Kernel size must be odd"):
        GradientOptions(kernel_size=4)


def test_unknown_enum_value_rejected():
    """Test literal validation."""
    with pytest.raises(ValidationError):
        FFTOptions(window_function="bartlett")
    with pytest.raises(ValidationError):
        PhaseOptions(angle_unit="gradians")


def test_options_are_frozen():
    """Test immutability of validated options."""
    options = ModuleOptions()
    with pytest.raises(ValidationError):
        options.threshold = 5


def test_edge_params_from_density_options():
    """Test derivation of per-call detector thresholds."""
    params = EdgeDensityOptions(low_threshold=20, high_threshold=80).edge_params

    assert (params.low_threshold, params.high_threshold, params.threshold) == (20, 80, None)


def test_density_options_forward_sobel_threshold():
    """Test that the Sobel threshold key reaches the per-call parameters."""
    options = EdgeDensityOptions.model_validate({"edgeDetector": "sobel", "threshold": 10})

    assert options.edge_params.threshold == 10
