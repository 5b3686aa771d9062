"""Spectral Lab - gradient, edge and frequency-domain image inspection"""

__version__ = "0.1.0"

from .config import (
    EdgeDensityOptions,
    EdgeParams,
    FFTOptions,
    GradientOptions,
    ModuleOptions,
    PhaseOptions,
)
from .edge_density import EdgeDensityAnalyzer
from .edge_detection import CannyEdgeStrategy, EdgeDetectionStrategy, SobelEdgeStrategy, create_edge_detector
from .errors import DimensionError, DimensionMismatch, RenderSurfaceError, SpectralLabError
from .fourier import FourierTransformAnalyzer
from .gradients import (
    GradientStrategy,
    LaplacianGradientStrategy,
    ScharrGradientStrategy,
    SobelGradientStrategy,
    create_gradient_strategy,
)
from .inspection import InspectionOutput, InspectionRunner
from .module_calculator import ModuleCalculator
from .phase_calculator import PhaseCalculator
from .preprocessing import GrayscaleConverter, RasterImage

__all__ = [
    "RasterImage",
    "GrayscaleConverter",
    "GradientStrategy",
    "SobelGradientStrategy",
    "ScharrGradientStrategy",
    "LaplacianGradientStrategy",
    "create_gradient_strategy",
    "ModuleCalculator",
    "PhaseCalculator",
    "EdgeDetectionStrategy",
    "CannyEdgeStrategy",
    "SobelEdgeStrategy",
    "create_edge_detector",
    "EdgeDensityAnalyzer",
    "FourierTransformAnalyzer",
    "InspectionRunner",
    "InspectionOutput",
    "GradientOptions",
    "ModuleOptions",
    "PhaseOptions",
    "EdgeParams",
    "EdgeDensityOptions",
    "FFTOptions",
    "SpectralLabError",
    "DimensionError",
    "DimensionMismatch",
    "RenderSurfaceError",
]
