"""Shared constants for gradient, edge and spectral analysis."""

import numpy as np

# Grayscale conversion (ITU-R BT.601 luma weights)
LUMA_WEIGHTS = (0.299, 0.587, 0.114)

# Gradient kernels (applied as correlation, row = y offset, column = x offset)
SOBEL_X = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], dtype=np.float64)
SOBEL_Y = SOBEL_X.T.copy()
SCHARR_X = np.array([[-3, 0, 3], [-10, 0, 10], [-3, 0, 3]], dtype=np.float64)
SCHARR_Y = SCHARR_X.T.copy()
SCHARR_NORMALIZATION = 32.0
LAPLACIAN = np.array([[0, -1, 0], [-1, 4, -1], [0, -1, 0]], dtype=np.float64)

# Module calculator
MODULE_HISTOGRAM_BINS = 256
MODULE_PERCENTILES = (5, 25, 50, 75, 95)
NORMALIZED_RANGE = 255.0

# Phase calculator
PHASE_HISTOGRAM_BINS = 36  # 10-degree bins
DOMINANT_DIRECTION_MIN_FRACTION = 0.05  # Bin must exceed 5% of total weight
MAX_DOMINANT_DIRECTIONS = 3
PHASE_SMOOTHING_KERNEL = np.array([[1, 2, 1], [2, 4, 2], [1, 2, 1]], dtype=np.float64)
PHASE_ALPHA_GAIN = 2.0  # Alpha = magnitude * gain, clamped to 255
ARROW_LENGTH_STEP_FRACTION = 0.8
ARROW_LENGTH_MAGNITUDE_DIVISOR = 10.0
ARROW_HEAD_FRACTION = 0.3
ARROW_HEAD_ANGLE = 0.5  # radians

# Canny edge detection
CANNY_GAUSSIAN_SIGMA = 1.4
DEFAULT_LOW_THRESHOLD = 50.0
DEFAULT_HIGH_THRESHOLD = 150.0
DEFAULT_SOBEL_EDGE_THRESHOLD = 100.0
STRONG_EDGE = 1.0
WEAK_EDGE = 0.5

# Edge density
DENSITY_HISTOGRAM_BINS = 20
HOTSPOT_FRACTION = 0.1  # Top 10% of regions by density
HEATMAP_UPSCALE = 10
HEATMAP_EMPTY_ALPHA = 50
HOTSPOT_RING_RADIUS = 8
HOTSPOT_LABEL_OFFSET = 10

# Fourier analysis
KAISER_BETA = 8.0
BESSEL_MAX_TERMS = 50
BESSEL_TERM_TOLERANCE = 1e-12
BLACKMAN_COEFFICIENTS = (0.42659, 0.49656, 0.076849)  # Exact Blackman
LOW_FREQ_LIMIT = 0.25  # Normalized radius
MID_FREQ_LIMIT = 0.75
MAX_DOMINANT_FREQUENCIES = 10
RADIAL_PROFILE_MARGIN = 50
RADIAL_PROFILE_HEIGHT = 50
SPECTRUM_EXTRA_HEIGHT = 100
