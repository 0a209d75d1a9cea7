"""Paint sources: solid colors and linear/radial gradients.

A paint source answers one question: what premultiplied RGBA color lands on
each device pixel of a region of interest. Solid colors return a constant
(4,) vector; gradients are evaluated per pixel.

Gradient semantics follow the 2D canvas model:
    - Geometry is given in user space and interpreted through the transform
      that is current when the fill happens (not when the gradient is made)
    - Color stops are sorted by offset (stable for equal offsets) and
      interpolated in premultiplied space
    - Positions beyond the first/last stop take the end stop's color
    - Radial gradients use the two-circle definition: the color for a pixel
      comes from the largest ω with the pixel on circle(ω) and r(ω) ≥ 0;
      pixels on no such circle stay transparent

Invariants:
    - Evaluation happens at device pixel centers (x + 0.5, y + 0.5)
    - float64 for the geometry solve, float32 for the returned colors
"""

import math
from typing import List, Tuple, Union

import numpy as np

from src.utils import color as color_utils


class Gradient:
    """Base class holding color stops."""

    def __init__(self):
        self._stops: List[Tuple[float, np.ndarray]] = []

    def add_color_stop(self, offset: float, color: str) -> None:
        """Add a color stop.

        Parameters
        ----------
        offset : float
            Position along the gradient, in [0, 1]
        color : str
            CSS color string

        Raises
        ------
        ValueError
            If offset is outside [0, 1] or color cannot be parsed
        """
        offset = float(offset)
        if not (0.0 <= offset <= 1.0) or math.isnan(offset):
            raise ValueError(f"Color stop offset must be in [0, 1], got {offset}")
        premul = color_utils.premultiply(color_utils.parse_color(color))
        self._stops.append((offset, premul))
        self._stops.sort(key=lambda s: s[0])

    @property
    def stops(self) -> List[Tuple[float, np.ndarray]]:
        return list(self._stops)

    def colors_at(self, t: np.ndarray) -> np.ndarray:
        """Interpolate premultiplied colors at gradient positions.

        Parameters
        ----------
        t : np.ndarray
            Gradient positions, any shape (values outside [0, 1] are padded)

        Returns
        -------
        np.ndarray
            Premultiplied RGBA, shape t.shape + (4,), float32
        """
        if not self._stops:
            return np.zeros(t.shape + (4,), dtype=np.float32)
        offsets = np.array([s[0] for s in self._stops], dtype=np.float64)
        values = np.stack([s[1] for s in self._stops], axis=0)
        out = np.empty(t.shape + (4,), dtype=np.float32)
        for ch in range(4):
            out[..., ch] = np.interp(t, offsets, values[:, ch])
        return out

    def positions(self, ux: np.ndarray, uy: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Gradient position and validity mask for user-space points."""
        raise NotImplementedError

    def evaluate(self, inverse: np.ndarray, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        """Premultiplied colors at device pixel centers.

        Parameters
        ----------
        inverse : np.ndarray
            Device → user affine matrix, shape (3, 3)
        xs, ys : np.ndarray
            Device pixel centers, broadcastable grids

        Returns
        -------
        np.ndarray
            Premultiplied RGBA, shape grid + (4,)
        """
        ux = inverse[0, 0] * xs + inverse[0, 1] * ys + inverse[0, 2]
        uy = inverse[1, 0] * xs + inverse[1, 1] * ys + inverse[1, 2]
        t, valid = self.positions(ux, uy)
        colors = self.colors_at(np.where(valid, t, 0.0))
        if not np.all(valid):
            colors[~valid] = 0.0
        return colors


class LinearGradient(Gradient):
    """Gradient along the line (x0, y0) → (x1, y1)."""

    def __init__(self, x0: float, y0: float, x1: float, y1: float):
        super().__init__()
        self.p0 = (float(x0), float(y0))
        self.p1 = (float(x1), float(y1))

    def positions(self, ux, uy):
        dx = self.p1[0] - self.p0[0]
        dy = self.p1[1] - self.p0[1]
        length_sq = dx * dx + dy * dy
        if length_sq == 0.0:
            # Degenerate gradient paints nothing
            return np.zeros_like(ux), np.zeros(np.shape(ux), dtype=bool)
        t = ((ux - self.p0[0]) * dx + (uy - self.p0[1]) * dy) / length_sq
        return t, np.ones(np.shape(t), dtype=bool)


class RadialGradient(Gradient):
    """Two-circle gradient from (x0, y0, r0) to (x1, y1, r1)."""

    def __init__(self, x0: float, y0: float, r0: float, x1: float, y1: float, r1: float):
        super().__init__()
        if r0 < 0 or r1 < 0:
            raise ValueError(f"Radial gradient radii must be non-negative, got r0={r0}, r1={r1}")
        self.c0 = (float(x0), float(y0), float(r0))
        self.c1 = (float(x1), float(y1), float(r1))

    def positions(self, ux, uy):
        x0, y0, r0 = self.c0
        x1, y1, r1 = self.c1
        cdx, cdy, dr = x1 - x0, y1 - y0, r1 - r0
        pdx = ux - x0
        pdy = uy - y0

        # |p - c(w)| = r(w)  →  a w² - 2 b w + c = 0
        a = cdx * cdx + cdy * cdy - dr * dr
        b = pdx * cdx + pdy * cdy + r0 * dr
        c = pdx * pdx + pdy * pdy - r0 * r0

        if x0 == x1 and y0 == y1 and r0 == r1:
            return np.zeros_like(pdx), np.zeros(np.shape(pdx), dtype=bool)

        if abs(a) < 1e-12:
            with np.errstate(divide='ignore', invalid='ignore'):
                w = c / (2.0 * b)
            valid = (b != 0) & (r0 + w * dr >= 0)
            return np.where(valid, w, 0.0), valid

        disc = b * b - a * c
        has_root = disc >= 0
        sq = np.sqrt(np.where(has_root, disc, 0.0))
        w_hi = (b + sq) / a
        w_lo = (b - sq) / a
        # Order the roots so w_big >= w_small regardless of the sign of a
        w_big = np.maximum(w_hi, w_lo)
        w_small = np.minimum(w_hi, w_lo)
        big_ok = r0 + w_big * dr >= 0
        small_ok = r0 + w_small * dr >= 0
        w = np.where(big_ok, w_big, w_small)
        valid = has_root & (big_ok | small_ok)
        return np.where(valid, w, 0.0), valid


Paint = Union[str, Gradient]


def solid_rgba(style: str) -> np.ndarray:
    """Premultiplied (4,) color for a CSS color string."""
    return color_utils.premultiply(color_utils.parse_color(style))


def resolve_paint(style: Paint, inverse: np.ndarray, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """Premultiplied source colors for a region.

    Returns a (4,) vector for solid colors (broadcasts in compositing) or a
    per-pixel (h, w, 4) array for gradients.
    """
    if isinstance(style, Gradient):
        return style.evaluate(inverse, xs, ys)
    if isinstance(style, str):
        return solid_rgba(style)
    raise TypeError(f"Unsupported paint style: {type(style).__name__}")
