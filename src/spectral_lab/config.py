"""Validated option models for each analysis component.

Field names are snake_case; every field also accepts the camelCase key the
pipeline editor uses in its parameter dictionaries, so a node's parameters
can be validated directly with ``model_validate``.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from spectral_lab.constants import (
    DEFAULT_HIGH_THRESHOLD,
    DEFAULT_LOW_THRESHOLD,
    MAX_DOMINANT_FREQUENCIES,
)

__all__ = [
    'GradientOptions',
    'ModuleOptions',
    'PhaseOptions',
    'EdgeParams',
    'EdgeDensityOptions',
    'FFTOptions',
]

AngleUnit = Literal["degrees", "radians"]
BorderPolicy = Literal["zero", "replicate", "reflect"]
HeatmapMode = Literal["density", "strength", "direction"]
PhaseOverlayMode = Literal["color", "arrows", "both"]
FFTVisualizationMode = Literal["magnitude", "phase", "both", "spectrum"]
FilterType = Literal["none", "lowpass", "highpass", "bandpass", "notch"]
WindowFunction = Literal["none", "hanning", "hamming", "blackman", "kaiser"]


class _Options(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class GradientOptions(_Options):
    """Gradient strategy selection. Unknown methods fall back to Sobel."""

    method: str = Field(default="sobel", alias="gradientMethod")
    kernel_size: int = Field(default=3, ge=1, le=31)
    border_policy: BorderPolicy = "zero"

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("kernel_size")
    @classmethod
    def validate_kernel_size(cls, v: int) -> int:
        """Ensure kernel size is odd."""
        if v % 2 == 0:
            raise ValueError("Kernel size must be odd")
        return v


class ModuleOptions(_Options):
    threshold: float = Field(default=0.0, ge=0.0)
    normalize: bool = True
    generate_histogram: bool = True
    colormap: str = "jet"


class PhaseOptions(_Options):
    angle_unit: AngleUnit = "degrees"
    magnitude_threshold: float = Field(default=10.0, ge=0.0)
    smoothing: bool = False
    generate_statistics: bool = True
    visualization_mode: PhaseOverlayMode = "color"
    arrow_density: int = Field(default=20, ge=1)
    saturation: float = Field(default=0.8, ge=0.0, le=1.0)
    brightness: float = Field(default=0.9, ge=0.0, le=1.0)


class EdgeParams(_Options):
    """Per-call thresholds handed to an edge detection strategy.

    ``threshold`` only applies to the Sobel-threshold detector; when left
    unset the detector's configured threshold is used.
    """

    low_threshold: float = Field(default=DEFAULT_LOW_THRESHOLD, ge=0.0)
    high_threshold: float = Field(default=DEFAULT_HIGH_THRESHOLD, ge=0.0)
    threshold: Optional[float] = Field(default=None, ge=0.0)


class EdgeDensityOptions(_Options):
    edge_detector: str = "canny"
    low_threshold: float = Field(default=DEFAULT_LOW_THRESHOLD, ge=0.0)
    high_threshold: float = Field(default=DEFAULT_HIGH_THRESHOLD, ge=0.0)
    threshold: Optional[float] = Field(default=None, ge=0.0)
    region_size: int = Field(default=32, ge=1)
    overlap_ratio: float = Field(default=0.5, ge=0.0, le=0.9)
    heatmap_mode: HeatmapMode = "density"
    colormap: str = "hot"
    show_hotspots: bool = True

    @field_validator("edge_detector")
    @classmethod
    def normalize_detector(cls, v: str) -> str:
        return v.strip().lower()

    @property
    def edge_params(self) -> EdgeParams:
        return EdgeParams(
            low_threshold=self.low_threshold,
            high_threshold=self.high_threshold,
            threshold=self.threshold,
        )


class FFTOptions(_Options):
    visualization_mode: FFTVisualizationMode = "magnitude"
    log_scale: bool = True
    center_dc: bool = Field(default=True, alias="centerDC")
    normalize: bool = True
    colormap: str = "jet"
    filter_type: FilterType = "none"
    cutoff_frequency: float = Field(default=0.3, gt=0.0, le=0.5)
    filter_order: int = Field(default=2, ge=1, le=10)
    bandwidth: float = Field(default=0.1, gt=0.0, le=0.5)
    window_function: WindowFunction = "none"
    show_radial_profile: bool = False
    pad_to_power_of_two: bool = False
    peak_count: int = Field(default=MAX_DOMINANT_FREQUENCIES, ge=1)
