"""Render surfaces and overlay drawing for visualizations.

Visualizations are built as (H, W, 4) uint8 RGBA arrays. Overlays that need
line or text drawing go through a PIL surface.
"""

import logging
import math
from typing import Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from spectral_lab.constants import (
    ARROW_HEAD_ANGLE,
    ARROW_HEAD_FRACTION,
    HOTSPOT_LABEL_OFFSET,
    HOTSPOT_RING_RADIUS,
)
from spectral_lab.errors import DimensionMismatch, RenderSurfaceError

logger = logging.getLogger(__name__)

__all__ = [
    'acquire_surface',
    'surface_from_array',
    'surface_to_array',
    'open_canvas',
    'draw_arrow',
    'draw_hotspot',
    'draw_label',
    'draw_profile_strip',
]

Color = Tuple[int, int, int, int]

WHITE: Color = (255, 255, 255, 255)
LABEL_WHITE: Color = (255, 255, 255, 204)
YELLOW: Color = (255, 255, 0, 255)
PROFILE_BACKGROUND: Color = (0, 0, 0, 178)


def acquire_surface(width: int, height: int, background: Color = (0, 0, 0, 0)) -> Image.Image:
    """
    Create a blank RGBA surface.

    Raises:
        RenderSurfaceError: If the size is not positive or the backend fails
    """
    if width <= 0 or height <= 0:
        raise RenderSurfaceError(f"Cannot create render surface of size {width}x{height}")
    try:
        return Image.new("RGBA", (int(width), int(height)), background)
    except (ValueError, MemoryError) as e:
        raise RenderSurfaceError(f"Failed to create {width}x{height} render surface: {e}") from e


def surface_from_array(pixels: np.ndarray) -> Image.Image:
    """Wrap an (H, W, 4) uint8 array as a drawable surface."""
    if pixels.ndim != 3 or pixels.shape[2] != 4:
        raise DimensionMismatch(f"Expected (H, W, 4) RGBA array, got shape {pixels.shape}")
    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise RenderSurfaceError(f"Cannot create render surface of shape {pixels.shape}")
    return Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))


def surface_to_array(surface: Image.Image) -> np.ndarray:
    if surface.mode != "RGBA":
        surface = surface.convert("RGBA")
    return np.array(surface, dtype=np.uint8)


def open_canvas(surface: Image.Image) -> ImageDraw.ImageDraw:
    """Get a blending draw context for a surface."""
    try:
        return ImageDraw.Draw(surface, "RGBA")
    except (ValueError, AttributeError) as e:
        raise RenderSurfaceError(f"Could not get drawing context: {e}") from e


def draw_arrow(
    canvas: ImageDraw.ImageDraw,
    x: float,
    y: float,
    angle: float,
    length: float,
    color: Color = WHITE,
) -> None:
    """Draw a direction arrow centred on (x, y); ``angle`` in radians."""
    dx = math.cos(angle) * length
    dy = math.sin(angle) * length
    tip = (x + dx / 2, y + dy / 2)
    canvas.line([(x - dx / 2, y - dy / 2), tip], fill=color, width=1)

    head_length = length * ARROW_HEAD_FRACTION
    for side in (-ARROW_HEAD_ANGLE, ARROW_HEAD_ANGLE):
        canvas.line(
            [
                tip,
                (
                    tip[0] - head_length * math.cos(angle + side),
                    tip[1] - head_length * math.sin(angle + side),
                ),
            ],
            fill=color,
            width=1,
        )


def draw_hotspot(canvas: ImageDraw.ImageDraw, x: float, y: float, index: int) -> None:
    """Draw a ring with a 1-based index label."""
    r = HOTSPOT_RING_RADIUS
    canvas.ellipse([x - r, y - r, x + r, y + r], outline=WHITE, width=2)
    draw_label(
        canvas,
        (x + HOTSPOT_LABEL_OFFSET, y - HOTSPOT_LABEL_OFFSET - 10),
        f"{index}",
        LABEL_WHITE,
    )


def draw_label(
    canvas: ImageDraw.ImageDraw,
    position: Tuple[float, float],
    text: str,
    color: Color = WHITE,
) -> None:
    canvas.text(position, text, fill=color, font=ImageFont.load_default())


def draw_profile_strip(
    canvas: ImageDraw.ImageDraw,
    profile: Sequence[float],
    canvas_width: int,
    start_y: int,
    strip_height: int,
) -> None:
    """
    Draw a 1D profile as a polyline over a translucent strip.

    Args:
        canvas: Draw context of the target surface
        profile: Values to plot, index = radius
        canvas_width: Width the profile is stretched across
        start_y: Top of the strip
        strip_height: Height of the strip
    """
    canvas.rectangle(
        [0, start_y, canvas_width, start_y + strip_height],
        fill=PROFILE_BACKGROUND,
    )

    n = len(profile)
    if n > 0:
        max_value = max(profile)
        max_value = max_value if max_value > 0 else 1.0
        points = [
            (
                (i / n) * canvas_width,
                start_y + strip_height - (value / max_value) * strip_height,
            )
            for i, value in enumerate(profile)
        ]
        if len(points) == 1:
            points.append(points[0])
        canvas.line(points, fill=YELLOW, width=2)

    draw_label(canvas, (10, start_y + 3), "Radial Frequency Profile")
