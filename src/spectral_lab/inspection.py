"""Inspection runner: dispatches an inspection node's type and parameters.

Parameter dictionaries use the pipeline editor's camelCase keys (snake_case
works as well) and are validated by the option models in ``config``.
Components are built fresh for every run.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional

import numpy as np

from spectral_lab.config import (
    EdgeDensityOptions,
    FFTOptions,
    GradientOptions,
    ModuleOptions,
    PhaseOptions,
)
from spectral_lab.edge_density import EdgeDensityAnalyzer
from spectral_lab.edge_detection import create_edge_detector
from spectral_lab.fourier import FourierTransformAnalyzer
from spectral_lab.gradients import create_gradient_strategy
from spectral_lab.module_calculator import ModuleCalculator
from spectral_lab.phase_calculator import PhaseCalculator
from spectral_lab.preprocessing import RasterImage

logger = logging.getLogger(__name__)

__all__ = ['InspectionRunner', 'InspectionOutput', 'INSPECTION_TYPES']

INSPECTION_TYPES = ("moduleCalculator", "phaseCalculator", "edgeDensity", "fourierTransform")


class InspectionOutput(NamedTuple):
    """Result and rendered visualization of one inspection."""

    inspection_type: str
    result: Any
    visualization: Optional[np.ndarray]


class InspectionRunner:
    """
    Runs inspections by type key.

    Args:
        render: Build the visualization alongside the result
    """

    def __init__(self, render: bool = True):
        self.render = render
        self._handlers: Dict[str, Callable[[RasterImage, Mapping[str, Any]], InspectionOutput]] = {
            "moduleCalculator": self._run_module,
            "phaseCalculator": self._run_phase,
            "edgeDensity": self._run_edge_density,
            "fourierTransform": self._run_fourier,
        }

    def run(
        self,
        inspection_type: str,
        image: RasterImage,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> InspectionOutput:
        """
        Run a single inspection.

        Args:
            inspection_type: One of INSPECTION_TYPES
            image: Input raster
            parameters: Node parameters (camelCase or snake_case keys)

        Returns:
            InspectionOutput

        Raises:
            ValueError: For an unsupported inspection type
            pydantic.ValidationError: For out-of-range parameters
        """
        handler = self._handlers.get(inspection_type)
        if handler is None:
            raise ValueError(f"Unsupported inspection type: {inspection_type}")

        logger.debug(f"Running {inspection_type} on {image.width}x{image.height} raster")
        return handler(image, dict(parameters or {}))

    def run_batch(
        self,
        inspection_type: str,
        images: Iterable[RasterImage],
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> List[InspectionOutput]:
        """Run the same inspection over several rasters, in order."""
        outputs = [self.run(inspection_type, image, parameters) for image in images]
        logger.info(f"Completed {len(outputs)} {inspection_type} inspections")
        return outputs

    def _run_module(self, image: RasterImage, parameters: Mapping[str, Any]) -> InspectionOutput:
        gradient = GradientOptions.model_validate(parameters)
        options = ModuleOptions.model_validate(parameters)
        calculator = ModuleCalculator(
            create_gradient_strategy(gradient.method, gradient.kernel_size, gradient.border_policy)
        )
        result = calculator.calculate_module(image, options)
        visualization = calculator.create_visualization(result, options.colormap) if self.render else None
        return InspectionOutput("moduleCalculator", result, visualization)

    def _run_phase(self, image: RasterImage, parameters: Mapping[str, Any]) -> InspectionOutput:
        gradient = GradientOptions.model_validate(parameters)
        options = PhaseOptions.model_validate(parameters)
        calculator = PhaseCalculator(
            create_gradient_strategy(gradient.method, gradient.kernel_size, gradient.border_policy)
        )
        result = calculator.calculate_phase(image, options)
        visualization = None
        if self.render:
            visualization = calculator.create_visualization(
                result,
                overlay_mode=options.visualization_mode,
                arrow_density=options.arrow_density,
                saturation=options.saturation,
                brightness=options.brightness,
            )
        return InspectionOutput("phaseCalculator", result, visualization)

    def _run_edge_density(self, image: RasterImage, parameters: Mapping[str, Any]) -> InspectionOutput:
        options = EdgeDensityOptions.model_validate(parameters)
        thresholds = {"low_threshold": options.low_threshold, "high_threshold": options.high_threshold}
        if options.threshold is not None:
            thresholds["threshold"] = options.threshold
        detector = create_edge_detector(options.edge_detector, **thresholds)
        analyzer = EdgeDensityAnalyzer(detector)
        result = analyzer.analyze_edge_density(image, options)
        visualization = None
        if self.render:
            visualization = analyzer.create_visualization(
                result, colormap=options.colormap, show_hotspots=options.show_hotspots
            )
        return InspectionOutput("edgeDensity", result, visualization)

    def _run_fourier(self, image: RasterImage, parameters: Mapping[str, Any]) -> InspectionOutput:
        options = FFTOptions.model_validate(parameters)
        analyzer = FourierTransformAnalyzer()
        result = analyzer.analyze(image, options)
        visualization = analyzer.create_visualization(result, options) if self.render else None
        return InspectionOutput("fourierTransform", result, visualization)
