"""Frequency-domain analysis with a radix-2 2D FFT.

Transforms run row-wise then column-wise over power-of-two dimensions.
Spectra are produced in standard FFT layout (DC at [0, 0]) and optionally
shifted so the zero frequency sits at (H // 2, W // 2).
"""

import logging
import math
from typing import List, Optional, Tuple

import numpy as np
from scipy import signal
from scipy.ndimage import maximum_filter

from spectral_lab.colormaps import apply_colormap
from spectral_lab.config import FFTOptions, FilterType, WindowFunction
from spectral_lab.constants import (
    BESSEL_MAX_TERMS,
    BESSEL_TERM_TOLERANCE,
    BLACKMAN_COEFFICIENTS,
    KAISER_BETA,
    LOW_FREQ_LIMIT,
    MAX_DOMINANT_FREQUENCIES,
    MID_FREQ_LIMIT,
    RADIAL_PROFILE_HEIGHT,
    RADIAL_PROFILE_MARGIN,
    SPECTRUM_EXTRA_HEIGHT,
)
from spectral_lab.errors import DimensionError, DimensionMismatch
from spectral_lab.preprocessing import GrayscaleConverter, RasterImage, pad_to_power_of_two
from spectral_lab.rendering import (
    acquire_surface,
    draw_label,
    draw_profile_strip,
    open_canvas,
    surface_from_array,
    surface_to_array,
)
from spectral_lab.results import (
    DominantFrequency,
    EnergyDistribution,
    FFTResult,
    FFTStatistics,
)

logger = logging.getLogger(__name__)

__all__ = [
    'FourierTransformAnalyzer',
    'is_power_of_two',
    'modified_bessel_i0',
    'window_1d',
    'apply_window',
    'fft_radix2',
    'ifft_radix2',
    'fft2_radix2',
    'ifft2_radix2',
    'fft_shift',
    'ifft_shift',
    'butterworth_transfer',
    'compute_energy_distribution',
    'find_dominant_frequencies',
    'compute_radial_profile',
]


def is_power_of_two(n: int) -> bool:
    return n >= 1 and (n & (n - 1)) == 0


def modified_bessel_i0(x):
    """
    Modified Bessel function of the first kind, order 0.

    Power series sum_k ((x/2)^k / k!)^2, truncated after 50 terms or once
    every term falls below 1e-12.

    Args:
        x: Scalar or array

    Returns:
        I0(x) with the same shape as ``x``
    """
    x = np.asarray(x, dtype=np.float64)
    quarter_x2 = (x / 2) ** 2
    total = np.ones_like(x)
    term = np.ones_like(x)
    for k in range(1, BESSEL_MAX_TERMS):
        term = term * quarter_x2 / (k * k)
        total = total + term
        if np.all(term < BESSEL_TERM_TOLERANCE):
            break
    return total


def _kaiser(n: int, beta: float) -> np.ndarray:
    alpha = (n - 1) / 2
    ratio = (np.arange(n, dtype=np.float64) - alpha) / alpha
    arg = beta * np.sqrt(np.clip(1.0 - ratio**2, 0.0, None))
    return modified_bessel_i0(arg) / modified_bessel_i0(beta)


def window_1d(name: WindowFunction, n: int) -> np.ndarray:
    """
    Symmetric 1D window of length n.

    Args:
        name: 'none', 'hanning', 'hamming', 'blackman' or 'kaiser' (beta 8)
        n: Window length

    Returns:
        Window values (n,)
    """
    if n < 1:
        raise DimensionError(f"Window length must be positive, got {n}")
    if name == "none" or n == 1:
        return np.ones(n, dtype=np.float64)
    if name == "hanning":
        return signal.windows.hann(n, sym=True)
    if name == "hamming":
        return signal.windows.hamming(n, sym=True)
    if name == "blackman":
        return signal.windows.general_cosine(n, BLACKMAN_COEFFICIENTS, sym=True)
    if name == "kaiser":
        return _kaiser(n, KAISER_BETA)
    raise ValueError(f"Unknown window function: {name}")


def apply_window(field: np.ndarray, name: WindowFunction) -> np.ndarray:
    """Multiply a 2D field by the separable window w(x) * w(y)."""
    if name == "none":
        return field
    h, w = field.shape
    logger.debug(f"Applying {name} window to {field.shape} field")
    return field * np.outer(window_1d(name, h), window_1d(name, w))


def _bit_reversal_indices(n: int) -> np.ndarray:
    bits = n.bit_length() - 1
    indices = np.arange(n)
    reversed_indices = np.zeros(n, dtype=np.int64)
    for _ in range(bits):
        reversed_indices = (reversed_indices << 1) | (indices & 1)
        indices = indices >> 1
    return reversed_indices


def fft_radix2(data: np.ndarray, axis: int = -1) -> np.ndarray:
    """
    Iterative radix-2 Cooley-Tukey FFT along one axis.

    All 1D transforms along ``axis`` are computed together: the input is
    permuted into bit-reversed order, then butterflies are applied stage by
    stage for sub-transform sizes 2, 4, ..., n.

    Args:
        data: Real or complex array
        axis: Axis to transform; its length must be a power of two

    Returns:
        Complex spectrum with the same shape as ``data``

    Raises:
        DimensionError: If the axis length is not a power of two
    """
    a = np.moveaxis(np.asarray(data, dtype=np.complex128), axis, -1)
    n = a.shape[-1]
    if not is_power_of_two(n):
        raise DimensionError(f"FFT length must be a power of two, got {n}")

    a = a[..., _bit_reversal_indices(n)]
    batch_shape = a.shape[:-1]

    size = 2
    while size <= n:
        half = size // 2
        twiddle = np.exp(-2j * np.pi * np.arange(half) / size)
        blocks = a.reshape(batch_shape + (n // size, size))
        even = blocks[..., :half]
        odd = blocks[..., half:] * twiddle
        a = np.concatenate([even + odd, even - odd], axis=-1).reshape(batch_shape + (n,))
        size *= 2

    return np.moveaxis(a, -1, axis)


def ifft_radix2(spectrum: np.ndarray, axis: int = -1) -> np.ndarray:
    """Inverse of fft_radix2, scaled by 1/n."""
    n = spectrum.shape[axis]
    return np.conj(fft_radix2(np.conj(spectrum), axis=axis)) / n


def fft2_radix2(field: np.ndarray) -> np.ndarray:
    """Separable 2D FFT: every row first, then every column."""
    if field.ndim != 2:
        raise DimensionMismatch(f"Expected 2D array, got {field.ndim}D array with shape {field.shape}")
    return fft_radix2(fft_radix2(field, axis=1), axis=0)


def ifft2_radix2(spectrum: np.ndarray) -> np.ndarray:
    if spectrum.ndim != 2:
        raise DimensionMismatch(
            f"Expected 2D array, got {spectrum.ndim}D array with shape {spectrum.shape}"
        )
    return ifft_radix2(ifft_radix2(spectrum, axis=1), axis=0)


def fft_shift(data: np.ndarray) -> np.ndarray:
    """Move the zero frequency to (H // 2, W // 2) by rolling each axis half its length."""
    return np.fft.fftshift(data)


def ifft_shift(data: np.ndarray) -> np.ndarray:
    return np.fft.ifftshift(data)


def _radial_frequency(shape: Tuple[int, int]) -> np.ndarray:
    """Distance from DC in cycles/pixel for an unshifted spectrum layout."""
    h, w = shape
    fy = np.fft.fftfreq(h)[:, None]
    fx = np.fft.fftfreq(w)[None, :]
    return np.sqrt(fx**2 + fy**2)


def butterworth_transfer(
    shape: Tuple[int, int],
    filter_type: FilterType,
    cutoff: float,
    order: int,
    bandwidth: float = 0.1,
) -> np.ndarray:
    """
    Radial Butterworth transfer function in unshifted spectrum layout.

    Frequencies are in cycles/pixel (0 at DC, 0.5 at Nyquist).

    Args:
        shape: Spectrum shape (H, W)
        filter_type: 'none', 'lowpass', 'highpass', 'bandpass' or 'notch'
        cutoff: Cutoff (or band centre) frequency D0
        order: Filter order n
        bandwidth: Band width W for 'bandpass' and 'notch'

    Returns:
        Real gain (H, W) in [0, 1]
    """
    if filter_type == "none":
        return np.ones(shape, dtype=np.float64)

    d = _radial_frequency(shape)

    if filter_type in ("lowpass", "highpass"):
        lowpass = 1.0 / (1.0 + (d / cutoff) ** (2 * order))
        return lowpass if filter_type == "lowpass" else 1.0 - lowpass

    if filter_type in ("notch", "bandpass"):
        distance = d**2 - cutoff**2
        with np.errstate(divide="ignore", invalid="ignore"):
            ratio = np.abs(d * bandwidth / distance)
            reject = 1.0 / (1.0 + ratio ** (2 * order))
        # The band centre itself is fully rejected
        reject = np.where(distance == 0, 0.0, reject)
        return reject if filter_type == "notch" else 1.0 - reject

    raise ValueError(f"Unknown filter type: {filter_type}")


def _centre_and_radius(shape: Tuple[int, int]) -> Tuple[int, int, int]:
    h, w = shape
    cx, cy = w // 2, h // 2
    return cx, cy, min(cx, cy)


def compute_energy_distribution(magnitude: np.ndarray) -> EnergyDistribution:
    """
    Mean squared magnitude per radial band around (W // 2, H // 2).

    Radius is normalized by min(W // 2, H // 2); low <= 0.25 < mid <= 0.75
    < high. Empty bands report 0.
    """
    cx, cy, max_radius = _centre_and_radius(magnitude.shape)
    h, w = magnitude.shape
    yy, xx = np.ogrid[:h, :w]
    radius = np.sqrt((xx - cx) ** 2 + (yy - cy) ** 2) / (max_radius or 1)
    energy = magnitude**2

    low = radius <= LOW_FREQ_LIMIT
    mid = ~low & (radius <= MID_FREQ_LIMIT)
    high = radius > MID_FREQ_LIMIT

    def band_mean(mask: np.ndarray) -> float:
        count = int(mask.sum())
        return float(energy[mask].sum() / count) if count else 0.0

    return EnergyDistribution(
        low_freq=band_mean(low),
        mid_freq=band_mean(mid),
        high_freq=band_mean(high),
    )


# 3x3 neighbourhood without its centre
_RING_FOOTPRINT = np.array([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=bool)


def find_dominant_frequencies(
    magnitude: np.ndarray, count: int = MAX_DOMINANT_FREQUENCIES
) -> List[DominantFrequency]:
    """
    Strict local maxima of a magnitude spectrum.

    Only interior pixels strictly greater than all 8 neighbours qualify.
    Frequency is the distance from the grid centre with each axis
    normalized by its half-dimension.

    Args:
        magnitude: Magnitude spectrum (H, W)
        count: Maximum number of peaks returned

    Returns:
        Peaks sorted by descending magnitude; ties keep row-major order
    """
    h, w = magnitude.shape
    if h < 3 or w < 3:
        return []

    neighbour_max = maximum_filter(
        magnitude, footprint=_RING_FOOTPRINT, mode="constant", cval=-np.inf
    )
    is_peak = magnitude > neighbour_max
    is_peak[0, :] = False
    is_peak[-1, :] = False
    is_peak[:, 0] = False
    is_peak[:, -1] = False

    ys, xs = np.nonzero(is_peak)
    values = magnitude[ys, xs]
    order = np.argsort(-values, kind="stable")[:count]

    half_w, half_h = w / 2, h / 2
    peaks = []
    for i in order:
        x, y = int(xs[i]), int(ys[i])
        fx = (x - half_w) / half_w
        fy = (y - half_h) / half_h
        peaks.append(
            DominantFrequency(x=x, y=y, magnitude=float(values[i]), frequency=math.hypot(fx, fy))
        )
    return peaks


def compute_radial_profile(magnitude: np.ndarray) -> np.ndarray:
    """
    Mean magnitude per integer radius around (W // 2, H // 2).

    Returns:
        Profile of length min(W // 2, H // 2)
    """
    cx, cy, max_radius = _centre_and_radius(magnitude.shape)
    if max_radius == 0:
        return np.zeros(0, dtype=np.float64)

    h, w = magnitude.shape
    yy, xx = np.ogrid[:h, :w]
    radius = np.floor(np.sqrt((xx - cx) ** 2 + (yy - cy) ** 2)).astype(np.int64)
    inside = radius < max_radius

    sums = np.bincount(radius[inside], weights=magnitude[inside], minlength=max_radius)
    counts = np.bincount(radius[inside], minlength=max_radius)
    return np.divide(sums, counts, out=np.zeros(max_radius), where=counts > 0)


class FourierTransformAnalyzer:
    """2D spectral analysis of rasters."""

    def __init__(self, converter: Optional[GrayscaleConverter] = None):
        self.converter = converter or GrayscaleConverter()

    def analyze(self, image: RasterImage, options: Optional[FFTOptions] = None) -> FFTResult:
        """
        Compute the spectrum of a raster and its statistics.

        Pipeline: grayscale -> window -> (pad) -> FFT -> (filter) ->
        magnitude/phase -> (shift) -> statistics. Statistics are taken on
        the magnitude spectrum as returned, i.e. after centering.

        Args:
            image: Input raster
            options: Windowing, filtering, centering and padding settings

        Returns:
            FFTResult; real/imaginary parts and dc_component are in the
            unshifted layout

        Raises:
            DimensionError: If a dimension is not a power of two and padding
                is disabled
        """
        options = options or FFTOptions()

        grayscale = self.converter.convert(image)
        original_shape = grayscale.shape
        h, w = original_shape

        if not (is_power_of_two(h) and is_power_of_two(w)):
            if not options.pad_to_power_of_two:
                raise DimensionError(
                    f"FFT requires power-of-two dimensions, got {w}x{h}; "
                    f"enable pad_to_power_of_two to zero-pad"
                )

        windowed = apply_window(grayscale, options.window_function)
        if options.pad_to_power_of_two:
            windowed, _ = pad_to_power_of_two(windowed)

        logger.debug(f"Computing radix-2 FFT of {windowed.shape} field")
        spectrum = fft2_radix2(windowed)

        filtered_image = None
        if options.filter_type != "none":
            transfer = butterworth_transfer(
                spectrum.shape,
                options.filter_type,
                options.cutoff_frequency,
                options.filter_order,
                options.bandwidth,
            )
            spectrum = spectrum * transfer
            filtered_image = ifft2_radix2(spectrum).real[:h, :w]
            logger.debug(
                f"Applied {options.filter_type} filter: cutoff={options.cutoff_frequency}, "
                f"order={options.filter_order}"
            )

        magnitude = np.abs(spectrum)
        phase = np.angle(spectrum)
        if options.center_dc:
            magnitude = fft_shift(magnitude)
            phase = fft_shift(phase)

        statistics = FFTStatistics(
            max_magnitude=float(magnitude.max()),
            min_magnitude=float(magnitude.min()),
            mean_magnitude=float(magnitude.mean()),
            energy_distribution=compute_energy_distribution(magnitude),
            dominant_frequencies=find_dominant_frequencies(magnitude, options.peak_count),
        )

        logger.info(
            f"FFT {magnitude.shape[1]}x{magnitude.shape[0]}: max={statistics.max_magnitude:.3f}, "
            f"mean={statistics.mean_magnitude:.3f}, "
            f"{len(statistics.dominant_frequencies)} dominant frequencies"
        )

        return FFTResult(
            real_part=spectrum.real.copy(),
            imaginary_part=spectrum.imag.copy(),
            magnitude_spectrum=magnitude,
            phase_spectrum=phase,
            dc_component=complex(spectrum[0, 0]),
            statistics=statistics,
            centered=options.center_dc,
            original_shape=original_shape,
            filtered_image=filtered_image,
        )

    def create_visualization(
        self, result: FFTResult, options: Optional[FFTOptions] = None
    ) -> np.ndarray:
        """
        Render spectra.

        Modes: 'magnitude' and 'phase' (W x H), 'both' side by side
        (2W x H, labelled), 'spectrum' magnitude with 100 extra rows below
        for the optional radial profile strip.

        Returns:
            RGBA array, uint8
        """
        options = options or FFTOptions()
        mode = options.visualization_mode
        width, height = result.width, result.height

        if mode == "magnitude":
            return self._render_magnitude(result.magnitude_spectrum, options)
        if mode == "phase":
            return self._render_phase(result.phase_spectrum, options.colormap)
        if mode == "both":
            combined = np.concatenate(
                [
                    self._render_magnitude(result.magnitude_spectrum, options),
                    self._render_phase(result.phase_spectrum, options.colormap),
                ],
                axis=1,
            )
            surface = surface_from_array(combined)
            canvas = open_canvas(surface)
            draw_label(canvas, (10, 10), "Magnitude")
            draw_label(canvas, (width + 10, 10), "Phase")
            return surface_to_array(surface)
        if mode == "spectrum":
            surface = acquire_surface(width, height + SPECTRUM_EXTRA_HEIGHT)
            surface.paste(surface_from_array(self._render_magnitude(result.magnitude_spectrum, options)), (0, 0))
            if options.show_radial_profile:
                profile = compute_radial_profile(result.magnitude_spectrum)
                draw_profile_strip(
                    open_canvas(surface),
                    profile.tolist(),
                    width,
                    height + RADIAL_PROFILE_MARGIN,
                    RADIAL_PROFILE_HEIGHT,
                )
            return surface_to_array(surface)

        raise ValueError(f"Unknown visualization mode: {mode}")

    def _render_magnitude(self, magnitude: np.ndarray, options: FFTOptions) -> np.ndarray:
        processed = np.log1p(magnitude) if options.log_scale else magnitude
        min_value = float(processed.min())
        max_value = float(processed.max())

        if options.normalize:
            value_range = max_value - min_value
            normalized = (processed - min_value) / (value_range if value_range > 0 else 1.0)
        else:
            normalized = np.minimum(1.0, processed / (max_value or 1.0))

        return self._colorize(normalized, options.colormap)

    def _render_phase(self, phase: np.ndarray, colormap: str) -> np.ndarray:
        return self._colorize((phase + np.pi) / (2 * np.pi), colormap)

    @staticmethod
    def _colorize(values: np.ndarray, colormap: str) -> np.ndarray:
        rgba = np.full(values.shape + (4,), 255, dtype=np.uint8)
        rgba[..., :3] = apply_colormap(values, colormap)
        return rgba
