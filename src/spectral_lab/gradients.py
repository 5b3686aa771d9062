"""Gradient computation strategies (Sobel, Scharr, Laplacian).

Each strategy correlates fixed 3x3 kernels over a grayscale field and
returns a :class:`GradientField`. With the default ``zero`` border policy
the outermost one-pixel ring is left at zero, since the kernels need a full
neighbourhood. ``replicate`` and ``reflect`` pad the field first so the ring
is populated as well.
"""

import logging
from abc import ABC, abstractmethod
from typing import Literal

import numpy as np
from pydantic import Field
from pydantic.dataclasses import dataclass as pydantic_dataclass
from scipy import ndimage

from spectral_lab.constants import (
    LAPLACIAN,
    SCHARR_NORMALIZATION,
    SCHARR_X,
    SCHARR_Y,
    SOBEL_X,
    SOBEL_Y,
)
from spectral_lab.errors import DimensionMismatch
from spectral_lab.results import GradientField

logger = logging.getLogger(__name__)

__all__ = [
    'GradientStrategy',
    'SobelGradientStrategy',
    'ScharrGradientStrategy',
    'LaplacianGradientStrategy',
    'create_gradient_strategy',
    'correlate3x3',
]

BorderPolicy = Literal["zero", "replicate", "reflect"]

# scipy.ndimage boundary modes for each border policy
_NDIMAGE_MODES = {
    "zero": "nearest",  # Interior values never touch the boundary; the ring is cleared afterwards
    "replicate": "nearest",
    "reflect": "mirror",
}


def correlate3x3(field: np.ndarray, kernel: np.ndarray, border_policy: str = "zero") -> np.ndarray:
    """
    Correlate a 3x3 kernel over a 2D field.

    Args:
        field: Grayscale field (H, W)
        kernel: 3x3 kernel, indexed [dy + 1, dx + 1]
        border_policy: 'zero' leaves the outer ring at 0, 'replicate' and
            'reflect' extend the field before correlating

    Returns:
        Correlated field (H, W), float64
    """
    if field.ndim != 2:
        raise DimensionMismatch(f"Expected 2D array, got {field.ndim}D array with shape {field.shape}")

    mode = _NDIMAGE_MODES[border_policy]
    result = ndimage.correlate(field.astype(np.float64, copy=False), kernel, mode=mode)

    if border_policy == "zero":
        result[0, :] = 0.0
        result[-1, :] = 0.0
        result[:, 0] = 0.0
        result[:, -1] = 0.0

    return result


class GradientStrategy(ABC):
    """Computes a gradient vector field from a grayscale field.

    Strategies only hold configuration and can be shared between calls.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def compute_gradients(self, grayscale: np.ndarray) -> GradientField:
        """
        Compute the gradient field of a grayscale image.

        Args:
            grayscale: Luminance field (H, W)

        Returns:
            GradientField with gx, gy and magnitude arrays (H, W)
        """


@pydantic_dataclass(frozen=True)
class SobelGradientStrategy(GradientStrategy):
    """Sobel operator. ``kernel_size`` is recorded but only 3x3 is applied."""

    kernel_size: int = Field(default=3, ge=1, le=31)
    border_policy: BorderPolicy = "zero"

    @property
    def name(self) -> str:
        return "Sobel"

    def compute_gradients(self, grayscale: np.ndarray) -> GradientField:
        if self.kernel_size != 3:
            logger.debug(f"Sobel kernel size {self.kernel_size} requested, applying 3x3")
        gx = correlate3x3(grayscale, SOBEL_X, self.border_policy)
        gy = correlate3x3(grayscale, SOBEL_Y, self.border_policy)
        magnitude = np.hypot(gx, gy)
        return GradientField(gx=gx, gy=gy, magnitude=magnitude)


@pydantic_dataclass(frozen=True)
class ScharrGradientStrategy(GradientStrategy):
    """Scharr operator, normalized by 32."""

    border_policy: BorderPolicy = "zero"

    @property
    def name(self) -> str:
        return "Scharr"

    def compute_gradients(self, grayscale: np.ndarray) -> GradientField:
        gx = correlate3x3(grayscale, SCHARR_X, self.border_policy) / SCHARR_NORMALIZATION
        gy = correlate3x3(grayscale, SCHARR_Y, self.border_policy) / SCHARR_NORMALIZATION
        magnitude = np.hypot(gx, gy)
        return GradientField(gx=gx, gy=gy, magnitude=magnitude)


@pydantic_dataclass(frozen=True)
class LaplacianGradientStrategy(GradientStrategy):
    """Laplacian response. Has no directional components, so gx = gy = 0."""

    border_policy: BorderPolicy = "zero"

    @property
    def name(self) -> str:
        return "Laplacian"

    def compute_gradients(self, grayscale: np.ndarray) -> GradientField:
        response = correlate3x3(grayscale, LAPLACIAN, self.border_policy)
        zeros = np.zeros_like(response)
        return GradientField(gx=zeros, gy=zeros.copy(), magnitude=np.abs(response))


def create_gradient_strategy(
    method: str, kernel_size: int = 3, border_policy: BorderPolicy = "zero"
) -> GradientStrategy:
    """
    Build a gradient strategy from its key.

    Args:
        method: 'sobel', 'scharr' or 'laplacian' (case-insensitive)
        kernel_size: Advisory kernel size for Sobel
        border_policy: Border handling for the 3x3 kernels

    Returns:
        Configured GradientStrategy; unknown keys yield Sobel
    """
    key = method.strip().lower()
    if key == "sobel":
        return SobelGradientStrategy(kernel_size=kernel_size, border_policy=border_policy)
    elif key == "scharr":
        return ScharrGradientStrategy(border_policy=border_policy)
    elif key == "laplacian":
        return LaplacianGradientStrategy(border_policy=border_policy)
    else:
        logger.warning(f"Unknown gradient method '{method}', falling back to Sobel")
        return SobelGradientStrategy(kernel_size=kernel_size, border_policy=border_policy)
