"""Colormaps for turning normalized scalar fields into RGB."""

import logging
from typing import Callable, Dict

import matplotlib
import numpy as np
from matplotlib.colors import hsv_to_rgb

logger = logging.getLogger(__name__)

__all__ = ['apply_colormap', 'hsv_to_rgb8', 'available_colormaps']


def _jet(v: np.ndarray) -> np.ndarray:
    r = np.clip(1.5 - np.abs(4 * v - 3), 0.0, 1.0)
    g = np.clip(1.5 - np.abs(4 * v - 2), 0.0, 1.0)
    b = np.clip(1.5 - np.abs(4 * v - 1), 0.0, 1.0)
    return np.stack([r, g, b], axis=-1)


def _hot(v: np.ndarray) -> np.ndarray:
    r = np.clip(v * 3, 0.0, 1.0)
    g = np.clip((v - 1 / 3) * 3, 0.0, 1.0)
    b = np.clip((v - 2 / 3) * 3, 0.0, 1.0)
    return np.stack([r, g, b], axis=-1)


def _cool(v: np.ndarray) -> np.ndarray:
    return np.stack([v, 1 - v, np.ones_like(v)], axis=-1)


def _gray(v: np.ndarray) -> np.ndarray:
    return np.stack([v, v, v], axis=-1)


def _hsv(v: np.ndarray) -> np.ndarray:
    ones = np.ones_like(v)
    return hsv_to_rgb(np.stack([v % 1.0, ones, ones], axis=-1))


_BUILTIN: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "jet": _jet,
    "hot": _hot,
    "cool": _cool,
    "gray": _gray,
    "hsv": _hsv,
}


def available_colormaps() -> list[str]:
    return sorted(_BUILTIN)


def apply_colormap(
    values: np.ndarray,
    name: str = "jet",
    fallback: str = "jet",
    reverse_cool: bool = False,
) -> np.ndarray:
    """
    Map values in [0, 1] to RGB colors.

    jet, hot, cool, gray and hsv are computed directly; any other name known
    to matplotlib's colormap registry (e.g. 'viridis') is looked up there.
    Unknown names fall back to ``fallback``.

    Args:
        values: Array of any shape, clamped to [0, 1]
        name: Colormap name
        fallback: Built-in colormap used for unknown names
        reverse_cool: Run 'cool' from magenta at 0 to cyan at 1, as the
            gradient magnitude and edge density maps do

    Returns:
        uint8 array of shape values.shape + (3,)
    """
    v = np.clip(np.asarray(values, dtype=np.float64), 0.0, 1.0)
    key = name.lower()

    if key == "cool" and reverse_cool:
        rgb = _cool(1.0 - v)
    elif key in _BUILTIN:
        rgb = _BUILTIN[key](v)
    elif key in matplotlib.colormaps:
        rgb = matplotlib.colormaps[key](v)[..., :3]
    else:
        logger.warning(f"Unknown colormap '{name}', falling back to {fallback}")
        rgb = _BUILTIN[fallback](v)

    return np.rint(rgb * 255).astype(np.uint8)


def hsv_to_rgb8(hue_degrees: np.ndarray, saturation: float, value: float) -> np.ndarray:
    """
    Convert hue angles with fixed saturation/brightness to RGB.

    Args:
        hue_degrees: Hue per element, degrees (wrapped to [0, 360))
        saturation: Saturation in [0, 1]
        value: Brightness in [0, 1]

    Returns:
        uint8 array of shape hue_degrees.shape + (3,)
    """
    h = np.mod(np.asarray(hue_degrees, dtype=np.float64), 360.0) / 360.0
    hsv = np.stack(
        [h, np.full_like(h, saturation), np.full_like(h, value)],
        axis=-1,
    )
    return np.rint(hsv_to_rgb(hsv) * 255).astype(np.uint8)
