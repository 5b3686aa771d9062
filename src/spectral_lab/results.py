"""Result types returned by the analysis components."""

from typing import Dict, List, NamedTuple, Optional, Tuple

import numpy as np

__all__ = [
    'GradientField',
    'ModuleStatistics',
    'ModuleResult',
    'DominantDirection',
    'PhaseStatistics',
    'PhaseResult',
    'RegionCenter',
    'Hotspot',
    'EdgeDensityStatistics',
    'EdgeDensityResult',
    'EnergyDistribution',
    'DominantFrequency',
    'FFTStatistics',
    'FFTResult',
]


class GradientField(NamedTuple):
    """Per-pixel gradient vectors. All arrays are (H, W)."""

    gx: np.ndarray
    gy: np.ndarray
    magnitude: np.ndarray

    @property
    def shape(self) -> Tuple[int, int]:
        return self.magnitude.shape


class ModuleStatistics(NamedTuple):
    """Histogram and percentiles of nonzero magnitudes."""

    histogram: List[int]  # 256 buckets, empty when not generated
    bins: List[int]
    percentiles: Dict[int, float]  # {5: ..., 25: ..., 50: ..., 75: ..., 95: ...}


class ModuleResult(NamedTuple):
    """Gradient magnitude analysis."""

    magnitude_map: np.ndarray  # Post-threshold, optionally rescaled to 0-255
    min_magnitude: float
    max_magnitude: float
    average_magnitude: float  # Over nonzero entries only
    statistics: ModuleStatistics
    strategy_name: str

    @property
    def width(self) -> int:
        return self.magnitude_map.shape[1]

    @property
    def height(self) -> int:
        return self.magnitude_map.shape[0]


class DominantDirection(NamedTuple):
    """A peak of the weighted angular histogram."""

    angle: float  # Bin centre, in the result's angle unit
    percentage: float  # Share of total weighted energy
    strength: float  # Raw weighted bin total


class PhaseStatistics(NamedTuple):
    """Directional statistics of a phase map."""

    dominant_directions: List[DominantDirection]
    coherence: float  # 0 = scattered, 1 = perfectly aligned
    average_phase: float  # Weighted circular mean
    phase_distribution: List[float]  # 36 magnitude-weighted buckets


class PhaseResult(NamedTuple):
    """Gradient direction analysis."""

    phase_map: np.ndarray
    magnitude_map: np.ndarray
    angle_unit: str
    statistics: PhaseStatistics

    @property
    def width(self) -> int:
        return self.phase_map.shape[1]

    @property
    def height(self) -> int:
        return self.phase_map.shape[0]


class RegionCenter(NamedTuple):
    """One analysis window of the edge density grid."""

    x: float  # Centre in image pixel coordinates
    y: float
    density: float  # Value reported by the selected heatmap mode
    strength: float  # Mean edge intensity among edge pixels (0-255)
    pixel_count: int


class Hotspot(NamedTuple):
    x: float
    y: float
    density: float


class EdgeDensityStatistics(NamedTuple):
    """Statistics over nonzero-density regions."""

    mean_density: float
    max_density: float
    min_density: float
    variance: float  # Population variance
    distribution: List[int]  # 20 buckets, empty when no region has edges
    hotspots: List[Hotspot]


class EdgeDensityResult(NamedTuple):
    """Regional edge density grid."""

    density_map: np.ndarray  # (grid_height, grid_width)
    region_centers: List[RegionCenter]  # Row-major over the grid
    region_size: int
    step: int
    image_width: int
    image_height: int
    heatmap_mode: str
    statistics: EdgeDensityStatistics

    @property
    def grid_width(self) -> int:
        return self.density_map.shape[1]

    @property
    def grid_height(self) -> int:
        return self.density_map.shape[0]


class EnergyDistribution(NamedTuple):
    """Mean squared magnitude per radial frequency band."""

    low_freq: float  # Normalized radius <= 0.25
    mid_freq: float  # <= 0.75
    high_freq: float  # > 0.75


class DominantFrequency(NamedTuple):
    """A local maximum of the magnitude spectrum."""

    x: int
    y: int
    magnitude: float
    frequency: float  # Radius from centre normalized by half-dimensions


class FFTStatistics(NamedTuple):
    max_magnitude: float
    min_magnitude: float
    mean_magnitude: float
    energy_distribution: EnergyDistribution
    dominant_frequencies: List[DominantFrequency]


class FFTResult(NamedTuple):
    """Frequency-domain analysis of a raster."""

    real_part: np.ndarray  # Unshifted spectrum, (H, W)
    imaginary_part: np.ndarray
    magnitude_spectrum: np.ndarray  # Shifted when centered is True
    phase_spectrum: np.ndarray
    dc_component: complex
    statistics: FFTStatistics
    centered: bool
    original_shape: Tuple[int, int]  # (H, W) before any power-of-two padding
    filtered_image: Optional[np.ndarray] = None

    @property
    def width(self) -> int:
        return self.magnitude_spectrum.shape[1]

    @property
    def height(self) -> int:
        return self.magnitude_spectrum.shape[0]
