"""Render context setup: backing-store sizing, scale transform, geometry.

Every render starts here. The surface is resized to the physical pixel size
for the requested density scale (which clears it), the transform is reset to
a pure uniform scale so all passes draw in logical units, and the disc
geometry is derived from the logical size.

Usage:
    from src.fusion_renderer.context import setup_render_context

    rc = setup_render_context(surface, scale=2.0)
    # surface is now 1440×1440 physical, rc.size == 720, rc.radius == 259.2
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from .surface import Surface

logger = logging.getLogger(__name__)

CANVAS_SIZE = 720
DISC_RADIUS_FRACTION = 0.36
MIN_DEVICE_SCALE = 1.0
MAX_DEVICE_SCALE = 2.0


@dataclass(frozen=True)
class RenderContext:
    """Shared, read-only inputs of one render.

    Attributes
    ----------
    surface : Surface
        Drawing target, already sized and scaled
    size : float
        Logical edge length of the square artwork
    center : float
        size / 2 (disc center on both axes)
    radius : float
        Disc radius, DISC_RADIUS_FRACTION × size
    """
    surface: Surface
    size: float
    center: float
    radius: float

    @classmethod
    def from_size(cls, surface: Surface, size: float = CANVAS_SIZE) -> 'RenderContext':
        return cls(
            surface=surface,
            size=size,
            center=size / 2,
            radius=size * DISC_RADIUS_FRACTION,
        )


def clamp_device_scale(scale: Optional[float]) -> float:
    """Clamp a pixel-density scale to [1, 2].

    None, NaN and non-positive values fall back to 1.
    """
    if scale is None:
        return MIN_DEVICE_SCALE
    scale = float(scale)
    if math.isnan(scale) or scale <= 0:
        return MIN_DEVICE_SCALE
    return min(max(scale, MIN_DEVICE_SCALE), MAX_DEVICE_SCALE)


def reset_transform(surface: Surface, scale: float) -> None:
    """Set the transform to exactly scale(scale, scale), discarding the old one."""
    surface.reset_transform()
    surface.scale(scale, scale)


def setup_render_context(
    surface: Optional[Surface],
    scale: Optional[float] = 1.0,
    size: int = CANVAS_SIZE
) -> Optional[RenderContext]:
    """Prepare a surface for a fresh render.

    Parameters
    ----------
    surface : Surface or None
        Drawing target; None aborts the render
    scale : float, optional
        Pixel-density scale, clamped to [1, 2]
    size : int
        Logical edge length, default 720

    Returns
    -------
    RenderContext or None
        None when no surface is available

    Raises
    ------
    SurfaceError
        If the backing buffer cannot be allocated
    """
    if surface is None:
        logger.debug("No drawing surface available; render skipped")
        return None

    scale = clamp_device_scale(scale)
    physical = int(round(size * scale))
    surface.resize(physical, physical)
    surface.display_size = (size, size)
    reset_transform(surface, scale)
    logger.debug(f"Render context: logical {size}px, scale {scale:g}, physical {physical}px")
    return RenderContext.from_size(surface, size)
