"""Numpy-backed 2D raster surface with canvas-style drawing state.

Implements the subset of the 2D canvas model the artwork needs:
    - State stack: transform, clip, fill/stroke styles, line width/cap, font,
      text alignment (save/restore, or the saved() context manager)
    - Affine transforms: set/reset/translate/scale/rotate
    - Paths: move_to/line_to/arc/ellipse/close_path, fill, stroke, clip
    - Rectangles (fill_rect) and text (fill_text)
    - Solid colors and linear/radial gradients as paint
    - PNG export through Pillow

Architecture:
    - Pixels are premultiplied RGBA float32, shape (H, W, 4), starting fully
      transparent
    - Path points are mapped to device space when added, so a later
      transform change does not move an already built path
    - Geometry → coverage (raster/text modules) → source-over compositing:
        dst = src·cov + dst·(1 - src_a·cov)
      with coverage multiplied by the active clip mask
    - All work happens inside the geometry's region of interest

Invariants:
    - Deterministic: same drawing calls ⇒ identical pixels
    - Invalid drawing calls fail fast with ValueError/TypeError
    - Operations on an unallocated surface raise SurfaceError

Usage:
    from src.fusion_renderer.surface import Surface

    surface = Surface(720, 720)
    with surface.saved():
        surface.translate(360, 360)
        surface.fill_style = "#1b2233"
        surface.begin_path()
        surface.arc(0, 0, 100, 0, 2 * math.pi)
        surface.fill()
    png_bytes = surface.encode_png()
"""

import dataclasses
import io
import logging
import math
from contextlib import contextmanager
from typing import List, Optional, Tuple

import numpy as np
from PIL import Image

from src.utils import color as color_utils, geometry
from . import raster, text as text_raster
from .paint import Gradient, LinearGradient, Paint, RadialGradient, resolve_paint

logger = logging.getLogger(__name__)

MAX_DIMENSION = 16384
LINE_CAPS = ('butt', 'round', 'square')
DEFAULT_FONT = '10px sans-serif'


class SurfaceError(RuntimeError):
    """Backing buffer cannot be allocated or is not allocated."""


@dataclasses.dataclass
class DrawState:
    """One entry of the save/restore stack."""
    transform: np.ndarray = dataclasses.field(default_factory=geometry.identity)
    clip: Optional[np.ndarray] = None
    fill_style: Paint = '#000000'
    stroke_style: Paint = '#000000'
    line_width: float = 1.0
    line_cap: str = 'butt'
    font: str = DEFAULT_FONT
    text_align: str = 'start'

    def copy(self) -> 'DrawState':
        # Clip masks are never mutated in place, so sharing them is safe
        return dataclasses.replace(self, transform=self.transform.copy())


class _Subpath:
    __slots__ = ('points', 'closed')

    def __init__(self, start: np.ndarray):
        self.points: List[np.ndarray] = [start.reshape(1, 2)]
        self.closed = False

    def vertices(self) -> np.ndarray:
        return np.concatenate(self.points, axis=0)


def _check_finite(*values: float) -> None:
    for v in values:
        if not math.isfinite(v):
            raise ValueError(f"Coordinates must be finite, got {values}")


def _check_style(value) -> Paint:
    if isinstance(value, Gradient):
        return value
    if isinstance(value, str):
        color_utils.parse_color(value)
        return value
    raise TypeError(f"Style must be a color string or gradient, got {type(value).__name__}")


class Surface:
    """Drawing surface with a canvas-like API.

    Parameters
    ----------
    width, height : int
        Backing size in physical pixels; 0 leaves the surface unallocated
        until resize() is called

    Attributes
    ----------
    display_size : tuple of int or None
        Logical (CSS-pixel) size the backing buffer is displayed at
    """

    def __init__(self, width: int = 0, height: int = 0):
        self._pixels: Optional[np.ndarray] = None
        self._state = DrawState()
        self._stack: List[DrawState] = []
        self._path: List[_Subpath] = []
        self.display_size: Optional[Tuple[int, int]] = None
        if width or height:
            self.resize(width, height)

    # ------------------------------------------------------------------
    # Backing buffer
    # ------------------------------------------------------------------

    @property
    def width(self) -> int:
        return 0 if self._pixels is None else self._pixels.shape[1]

    @property
    def height(self) -> int:
        return 0 if self._pixels is None else self._pixels.shape[0]

    @property
    def allocated(self) -> bool:
        return self._pixels is not None

    @property
    def pixels(self) -> np.ndarray:
        """Premultiplied RGBA buffer (H, W, 4), float32 (live view)."""
        return self._require_pixels()

    def resize(self, width: int, height: int) -> None:
        """Reallocate the backing buffer.

        The buffer is cleared to transparent and the drawing state, state
        stack and current path are reset, as when a canvas is resized.

        Raises
        ------
        SurfaceError
            If the size is not a positive integer ≤ MAX_DIMENSION or the
            buffer cannot be allocated
        """
        if isinstance(width, bool) or isinstance(height, bool):
            raise SurfaceError(f"Surface size must be integers, got {width!r}x{height!r}")
        try:
            w, h = int(width), int(height)
        except (TypeError, ValueError, OverflowError) as e:
            raise SurfaceError(f"Surface size must be integers, got {width!r}x{height!r}") from e
        if w != width or h != height:
            raise SurfaceError(f"Surface size must be integers, got {width!r}x{height!r}")
        if not (0 < w <= MAX_DIMENSION and 0 < h <= MAX_DIMENSION):
            raise SurfaceError(
                f"Surface size {w}x{h} out of range; each side must be in [1, {MAX_DIMENSION}]"
            )
        try:
            pixels = np.zeros((h, w, 4), dtype=np.float32)
        except MemoryError as e:
            raise SurfaceError(f"Cannot allocate {w}x{h} surface: {e}") from e

        self._pixels = pixels
        self._state = DrawState()
        self._stack = []
        self._path = []
        logger.debug(f"Surface allocated: {w}x{h}")

    def clear(self) -> None:
        """Reset every pixel to transparent (state untouched)."""
        self._require_pixels()[...] = 0.0

    def _require_pixels(self) -> np.ndarray:
        if self._pixels is None:
            raise SurfaceError("Surface has no backing buffer; call resize() first")
        return self._pixels

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def fill_style(self) -> Paint:
        return self._state.fill_style

    @fill_style.setter
    def fill_style(self, value: Paint) -> None:
        self._state.fill_style = _check_style(value)

    @property
    def stroke_style(self) -> Paint:
        return self._state.stroke_style

    @stroke_style.setter
    def stroke_style(self, value: Paint) -> None:
        self._state.stroke_style = _check_style(value)

    @property
    def line_width(self) -> float:
        return self._state.line_width

    @line_width.setter
    def line_width(self, value: float) -> None:
        value = float(value)
        if not math.isfinite(value) or value <= 0:
            raise ValueError(f"line_width must be positive and finite, got {value}")
        self._state.line_width = value

    @property
    def line_cap(self) -> str:
        return self._state.line_cap

    @line_cap.setter
    def line_cap(self, value: str) -> None:
        if value not in LINE_CAPS:
            raise ValueError(f"Unknown line cap {value!r}, expected one of {LINE_CAPS}")
        self._state.line_cap = value

    @property
    def font(self) -> str:
        return self._state.font

    @font.setter
    def font(self, value: str) -> None:
        text_raster.parse_font(value)
        self._state.font = value

    @property
    def text_align(self) -> str:
        return self._state.text_align

    @text_align.setter
    def text_align(self, value: str) -> None:
        if value not in text_raster.TEXT_ALIGNS:
            raise ValueError(f"Unknown text alignment {value!r}, expected one of {text_raster.TEXT_ALIGNS}")
        self._state.text_align = value

    @property
    def clip_mask(self) -> Optional[np.ndarray]:
        """Active clip coverage (H, W) or None when unclipped."""
        return self._state.clip

    @property
    def save_depth(self) -> int:
        return len(self._stack)

    def save(self) -> None:
        """Push a copy of the current drawing state."""
        self._stack.append(self._state.copy())

    def restore(self) -> None:
        """Pop the most recently saved drawing state.

        Raises
        ------
        ValueError
            If there is no saved state
        """
        if not self._stack:
            raise ValueError("restore() called without a matching save()")
        self._state = self._stack.pop()

    @contextmanager
    def saved(self):
        """Scope a block of drawing in save()/restore()."""
        self.save()
        try:
            yield self
        finally:
            self.restore()

    # ------------------------------------------------------------------
    # Transforms
    # ------------------------------------------------------------------

    def get_transform(self) -> np.ndarray:
        return self._state.transform.copy()

    def set_transform(self, a: float, b: float, c: float, d: float, e: float, f: float) -> None:
        """Replace the transform with [[a, c, e], [b, d, f], [0, 0, 1]]."""
        _check_finite(a, b, c, d, e, f)
        m = geometry.identity()
        m[0, 0], m[0, 1], m[0, 2] = a, c, e
        m[1, 0], m[1, 1], m[1, 2] = b, d, f
        self._state.transform = m

    def reset_transform(self) -> None:
        self._state.transform = geometry.identity()

    def translate(self, tx: float, ty: float) -> None:
        _check_finite(tx, ty)
        self._state.transform = self._state.transform @ geometry.translation(tx, ty)

    def scale(self, sx: float, sy: float) -> None:
        _check_finite(sx, sy)
        self._state.transform = self._state.transform @ geometry.scaling(sx, sy)

    def rotate(self, theta: float) -> None:
        _check_finite(theta)
        self._state.transform = self._state.transform @ geometry.rotation(theta)

    def _to_device(self, pts: np.ndarray) -> np.ndarray:
        return geometry.apply(self._state.transform, pts)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def begin_path(self) -> None:
        self._path = []

    def move_to(self, x: float, y: float) -> None:
        _check_finite(x, y)
        self._path.append(_Subpath(self._to_device(np.array([[x, y]]))[0]))

    def line_to(self, x: float, y: float) -> None:
        _check_finite(x, y)
        if not self._path:
            self.move_to(x, y)
            return
        self._current_subpath().points.append(self._to_device(np.array([[x, y]])))

    def arc(
        self,
        x: float,
        y: float,
        radius: float,
        start: float,
        end: float,
        anticlockwise: bool = False
    ) -> None:
        """Add a circular arc; a line joins it to the current point."""
        self.ellipse(x, y, radius, radius, 0.0, start, end, anticlockwise)

    def ellipse(
        self,
        x: float,
        y: float,
        rx: float,
        ry: float,
        rotation: float,
        start: float,
        end: float,
        anticlockwise: bool = False
    ) -> None:
        """Add an elliptical arc; a line joins it to the current point.

        Raises
        ------
        ValueError
            If a radius is negative or a parameter is not finite
        """
        _check_finite(x, y, rx, ry, rotation, start, end)
        pts_user = geometry.flatten_ellipse(
            x, y, rx, ry, rotation, start, end, anticlockwise,
            px_scale=geometry.max_scale(self._state.transform)
        )
        pts = self._to_device(pts_user)
        if self._path:
            self._current_subpath().points.append(pts)
        else:
            sub = _Subpath(pts[0])
            sub.points.append(pts[1:])
            self._path.append(sub)

    def close_path(self) -> None:
        """Close the current subpath; drawing continues from its start."""
        if not self._path:
            return
        sub = self._path[-1]
        sub.closed = True
        self._path.append(_Subpath(sub.points[0][0].copy()))

    def _current_subpath(self) -> _Subpath:
        sub = self._path[-1]
        if sub.closed:
            sub = _Subpath(sub.points[0][0].copy())
            self._path.append(sub)
        return sub

    def _polygons(self) -> List[np.ndarray]:
        return [v for v in (s.vertices() for s in self._path) if len(v) >= 3]

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def fill(self) -> None:
        """Fill the current path (subpaths implicitly closed)."""
        pixels = self._require_pixels()
        cov = raster.fill_coverage(self._polygons(), pixels.shape[1], pixels.shape[0])
        self._composite(cov, self._state.fill_style)

    def stroke(self) -> None:
        """Stroke the current path with the current line width and style."""
        pixels = self._require_pixels()
        lines = [(s.vertices(), s.closed) for s in self._path]
        width = self._state.line_width * geometry.uniform_scale(self._state.transform)
        cov = raster.stroke_coverage(
            lines, width, pixels.shape[1], pixels.shape[0], cap=self._state.line_cap
        )
        self._composite(cov, self._state.stroke_style)

    def fill_rect(self, x: float, y: float, w: float, h: float) -> None:
        """Fill a rectangle without touching the current path."""
        _check_finite(x, y, w, h)
        pixels = self._require_pixels()
        corners = np.array([[x, y], [x + w, y], [x + w, y + h], [x, y + h]], dtype=np.float64)
        cov = raster.fill_coverage([self._to_device(corners)], pixels.shape[1], pixels.shape[0])
        self._composite(cov, self._state.fill_style)

    def clip(self) -> None:
        """Intersect the clip region with the current path."""
        pixels = self._require_pixels()
        h, w = pixels.shape[:2]
        mask = np.zeros((h, w), dtype=np.float32)
        cov = raster.fill_coverage(self._polygons(), w, h)
        if cov is not None:
            mask[cov.y0:cov.y1, cov.x0:cov.x1] = cov.mask
        if self._state.clip is not None:
            mask *= self._state.clip
        self._state.clip = mask

    def fill_text(self, text: str, x: float, y: float) -> None:
        """Draw a string with the current font, alignment and fill style."""
        pixels = self._require_pixels()
        cov = text_raster.text_coverage(
            text, self._state.font, self._state.text_align, x, y,
            self._state.transform, pixels.shape[1], pixels.shape[0]
        )
        self._composite(cov, self._state.fill_style)

    def create_linear_gradient(self, x0: float, y0: float, x1: float, y1: float) -> LinearGradient:
        _check_finite(x0, y0, x1, y1)
        return LinearGradient(x0, y0, x1, y1)

    def create_radial_gradient(
        self,
        x0: float,
        y0: float,
        r0: float,
        x1: float,
        y1: float,
        r1: float
    ) -> RadialGradient:
        _check_finite(x0, y0, r0, x1, y1, r1)
        return RadialGradient(x0, y0, r0, x1, y1, r1)

    def _composite(self, cov: Optional[raster.Coverage], style: Paint) -> None:
        if cov is None:
            return
        transform = self._state.transform
        if abs(np.linalg.det(transform[:2, :2])) < 1e-12:
            # Non-invertible transform draws nothing
            return

        mask = cov.mask
        if self._state.clip is not None:
            mask = mask * self._state.clip[cov.y0:cov.y1, cov.x0:cov.x1]
            if not mask.any():
                return

        ys, xs = np.ogrid[cov.y0:cov.y1, cov.x0:cov.x1]
        src = resolve_paint(style, np.linalg.inv(transform), xs + 0.5, ys + 0.5)
        src_cov = (src * mask[..., None]).astype(np.float32)

        region = self._pixels[cov.y0:cov.y1, cov.x0:cov.x1]
        region *= 1.0 - src_cov[..., 3:4]
        region += src_cov

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_rgb_array(self) -> np.ndarray:
        """RGB uint8 image (H, W, 3), composited over black.

        For opaque pixels this equals the un-premultiplied color.
        """
        return color_utils.to_uint8(self._require_pixels()[..., :3])

    def to_rgba_array(self) -> np.ndarray:
        """Straight (un-premultiplied) RGBA uint8 image (H, W, 4)."""
        return color_utils.to_uint8(color_utils.unpremultiply(self._require_pixels()))

    def encode_png(self, mode: str = 'RGB') -> bytes:
        """Encode the backing buffer as PNG bytes.

        Parameters
        ----------
        mode : str
            'RGB' (default) or 'RGBA'

        Returns
        -------
        bytes
            PNG file contents (identical for identical pixels)
        """
        if mode == 'RGB':
            arr = self.to_rgb_array()
        elif mode == 'RGBA':
            arr = self.to_rgba_array()
        else:
            raise ValueError(f"PNG mode must be 'RGB' or 'RGBA', got {mode!r}")
        buf = io.BytesIO()
        Image.fromarray(arr).save(buf, format='PNG', compress_level=6)
        return buf.getvalue()
