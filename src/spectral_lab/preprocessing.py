"""Raster model and grayscale conversion shared by every analyzer."""

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from PIL import Image
from pydantic import Field, field_validator
from pydantic.dataclasses import dataclass as pydantic_dataclass

from spectral_lab.constants import LUMA_WEIGHTS
from spectral_lab.errors import DimensionError, DimensionMismatch

logger = logging.getLogger(__name__)

__all__ = ['RasterImage', 'GrayscaleConverter', 'next_power_of_two', 'pad_to_power_of_two']


@dataclass(frozen=True, eq=False)
class RasterImage:
    """RGBA raster supplied by the pipeline editor.

    ``pixels`` is an (H, W, 4) uint8 array. Use :meth:`from_array` or
    :meth:`from_pil` to build one from other layouts.
    """

    pixels: np.ndarray

    def __post_init__(self):
        pixels = self.pixels
        if not isinstance(pixels, np.ndarray):
            raise DimensionMismatch(f"Expected numpy array, got {type(pixels).__name__}")
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise DimensionMismatch(f"Expected (H, W, 4) RGBA array, got shape {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise DimensionError(f"Raster is empty: shape {pixels.shape}")
        if pixels.dtype != np.uint8:
            logger.warning(f"Converting raster from {pixels.dtype} to uint8")
            pixels = np.clip(pixels, 0, 255).astype(np.uint8)
        pixels = pixels.copy()
        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def shape(self) -> Tuple[int, int]:
        """(height, width) of the raster."""
        return self.pixels.shape[0], self.pixels.shape[1]

    @classmethod
    def from_array(cls, array: np.ndarray) -> "RasterImage":
        """
        Build a raster from a grayscale, RGB or RGBA array.

        Args:
            array: (H, W), (H, W, 3) or (H, W, 4) array with values in [0, 255]

        Returns:
            RasterImage with an opaque alpha channel when none was supplied

        Raises:
            DimensionMismatch: If the array layout is not one of the above
        """
        array = np.asarray(array)
        if array.ndim == 2:
            rgb = np.repeat(array[:, :, None], 3, axis=2)
            alpha = np.full(array.shape + (1,), 255, dtype=array.dtype)
            array = np.concatenate([rgb, alpha], axis=2)
        elif array.ndim == 3 and array.shape[2] == 3:
            alpha = np.full(array.shape[:2] + (1,), 255, dtype=array.dtype)
            array = np.concatenate([array, alpha], axis=2)
        elif not (array.ndim == 3 and array.shape[2] == 4):
            raise DimensionMismatch(
                f"Expected (H, W), (H, W, 3) or (H, W, 4) array, got shape {array.shape}"
            )
        return cls(np.clip(array, 0, 255).astype(np.uint8))

    @classmethod
    def from_pil(cls, image: Image.Image) -> "RasterImage":
        """Build a raster from a PIL image of any mode."""
        if image.mode != "RGBA":
            logger.debug(f"Converting PIL image from {image.mode} to RGBA")
            image = image.convert("RGBA")
        return cls(np.array(image, dtype=np.uint8))

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.array(self.pixels))


@pydantic_dataclass
class GrayscaleConverter:
    """Converts RGBA rasters to luminance fields."""

    weights: Tuple[float, float, float] = Field(default=LUMA_WEIGHTS)

    @field_validator("weights")
    @classmethod
    def validate_weights(cls, v: Tuple[float, float, float]) -> Tuple[float, float, float]:
        """Ensure weights are non-negative."""
        if any(w < 0 for w in v):
            raise ValueError("Luminance weights must be non-negative")
        return v

    def convert(self, image: RasterImage) -> np.ndarray:
        """
        Compute the luminance field of a raster.

        Args:
            image: RGBA raster

        Returns:
            Grayscale field (H, W), float64 in [0, 255]
        """
        rgb = image.pixels[:, :, :3].astype(np.float64)
        wr, wg, wb = self.weights
        return wr * rgb[:, :, 0] + wg * rgb[:, :, 1] + wb * rgb[:, :, 2]


def next_power_of_two(n: int) -> int:
    """Smallest power of two that is >= n (n >= 1)."""
    if n < 1:
        raise DimensionError(f"Dimension must be positive, got {n}")
    return 1 << (n - 1).bit_length()


def pad_to_power_of_two(field: np.ndarray) -> Tuple[np.ndarray, Tuple[int, int]]:
    """
    Zero-pad a 2D field on the bottom and right to power-of-two dimensions.

    The origin stays at (0, 0) so the spectrum of the original content is
    not phase shifted.

    Args:
        field: Input field (H, W)

    Returns:
        Tuple of (padded_field, original_shape)
    """
    if field.ndim != 2:
        raise DimensionMismatch(f"Expected 2D array, got {field.ndim}D array with shape {field.shape}")

    original_shape = field.shape
    h, w = original_shape
    target_h = next_power_of_two(h)
    target_w = next_power_of_two(w)

    if (target_h, target_w) == original_shape:
        return field, original_shape

    padded = np.pad(
        field,
        ((0, target_h - h), (0, target_w - w)),
        mode="constant",
        constant_values=0.0,
    )

    logger.debug(f"Padded field from {original_shape} to {padded.shape}")

    return padded, original_shape
