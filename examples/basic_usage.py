"""Basic usage example: run every analyzer on synthetic rasters."""

import logging

import numpy as np

from spectral_lab.config import EdgeDensityOptions, FFTOptions, ModuleOptions, PhaseOptions
from spectral_lab.edge_density import EdgeDensityAnalyzer
from spectral_lab.edge_detection import create_edge_detector
from spectral_lab.fourier import FourierTransformAnalyzer
from spectral_lab.gradients import create_gradient_strategy
from spectral_lab.module_calculator import ModuleCalculator
from spectral_lab.phase_calculator import PhaseCalculator
from spectral_lab.preprocessing import RasterImage

# Configure logging
logging.basicConfig(level=logging.INFO)


def make_test_rasters():
    """Vertical step edge and a diagonal stripe pattern, both 128x128."""
    step = np.zeros((128, 128), dtype=np.uint8)
    step[:, 64:] = 200

    yy, xx = np.mgrid[:128, :128]
    stripes = (127.5 + 127.5 * np.sin(2 * np.pi * (xx + yy) / 16)).astype(np.uint8)

    return {
        "step": RasterImage.from_array(step),
        "stripes": RasterImage.from_array(stripes),
    }


def analyze_gradients(name, raster):
    """Print magnitude and direction summaries."""
    strategy = create_gradient_strategy("sobel")

    module = ModuleCalculator(strategy).calculate_module(raster, ModuleOptions(normalize=False))
    print(f"\n[{name}] Gradient magnitude")
    print(f"  min={module.min_magnitude:.2f}  max={module.max_magnitude:.2f}  mean={module.average_magnitude:.2f}")
    print(f"  percentiles: {module.statistics.percentiles}")

    phase = PhaseCalculator(strategy).calculate_phase(raster, PhaseOptions(smoothing=True))
    print(f"[{name}] Gradient direction")
    print(f"  coherence={phase.statistics.coherence:.3f}  mean={phase.statistics.average_phase:.1f} deg")
    for i, direction in enumerate(phase.statistics.dominant_directions, 1):
        print(f"  {i}. {direction.angle:6.1f} deg  {direction.percentage:5.1f}%")


def analyze_edges(name, raster):
    """Print edge density summary."""
    options = EdgeDensityOptions(region_size=32, overlap_ratio=0.5)
    analyzer = EdgeDensityAnalyzer(create_edge_detector(options.edge_detector))
    result = analyzer.analyze_edge_density(raster, options)

    stats = result.statistics
    print(f"[{name}] Edge density ({result.grid_width}x{result.grid_height} regions)")
    print(f"  mean={stats.mean_density:.4f}  max={stats.max_density:.4f}  variance={stats.variance:.6f}")
    for i, hotspot in enumerate(stats.hotspots, 1):
        print(f"  hotspot {i}: ({hotspot.x:.0f}, {hotspot.y:.0f}) density={hotspot.density:.3f}")


def analyze_spectrum(name, raster):
    """Print spectral summary."""
    result = FourierTransformAnalyzer().analyze(raster, FFTOptions(window_function="hanning"))

    energy = result.statistics.energy_distribution
    print(f"[{name}] Spectrum")
    print(f"  energy low={energy.low_freq:.3e}  mid={energy.mid_freq:.3e}  high={energy.high_freq:.3e}")
    print(f"  Top 3 peaks:")
    for i, peak in enumerate(result.statistics.dominant_frequencies[:3], 1):
        print(f"  {i}. ({peak.x}, {peak.y}) magnitude={peak.magnitude:.1f} frequency={peak.frequency:.3f}")


if __name__ == "__main__":
    print("=" * 60)
    print("Spectral Lab - Basic Usage Example")
    print("=" * 60)

    for name, raster in make_test_rasters().items():
        analyze_gradients(name, raster)
        analyze_edges(name, raster)
        analyze_spectrum(name, raster)
