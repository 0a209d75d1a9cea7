"""Affine transforms and curve flattening for the raster surface.

Provides:
    - 3×3 affine matrices: identity, translation, scaling, rotation
    - Point mapping through an affine matrix
    - Uniform scale factor of a transform (for stroke widths and font sizes)
    - Arc and ellipse flattening to polylines with bounded chord error

Used by:
    - Surface: path building (points are mapped to device space on insertion)
    - Raster: polygon/polyline coverage in device pixels
    - Text: warping glyph masks into device space

Conventions:
    - Image frame: top-left origin, +X right, +Y down
    - Positive angles sweep clockwise on screen (canvas convention)
    - Matrices act on column vectors [x, y, 1]^T
"""

import math

import numpy as np

TWO_PI = 2.0 * math.pi


def identity() -> np.ndarray:
    """Return the 3×3 identity transform (float64)."""
    return np.eye(3, dtype=np.float64)


def translation(tx: float, ty: float) -> np.ndarray:
    """Return a translation matrix."""
    m = identity()
    m[0, 2] = tx
    m[1, 2] = ty
    return m


def scaling(sx: float, sy: float) -> np.ndarray:
    """Return a scaling matrix."""
    m = identity()
    m[0, 0] = sx
    m[1, 1] = sy
    return m


def rotation(theta: float) -> np.ndarray:
    """Return a rotation matrix (radians, clockwise on screen for theta > 0)."""
    c, s = math.cos(theta), math.sin(theta)
    m = identity()
    m[0, 0], m[0, 1] = c, -s
    m[1, 0], m[1, 1] = s, c
    return m


def apply(m: np.ndarray, pts: np.ndarray) -> np.ndarray:
    """Map points through an affine matrix.

    Parameters
    ----------
    m : np.ndarray
        Affine matrix, shape (3, 3)
    pts : np.ndarray
        Points, shape (N, 2)

    Returns
    -------
    np.ndarray
        Mapped points, shape (N, 2), float64
    """
    pts = np.asarray(pts, dtype=np.float64).reshape(-1, 2)
    return pts @ m[:2, :2].T + m[:2, 2]


def uniform_scale(m: np.ndarray) -> float:
    """Geometric-mean scale factor of a transform: sqrt(|det|).

    Exact for similarity transforms (translate/rotate/uniform scale), which
    is every transform under which the surface strokes lines or sets text.
    """
    return math.sqrt(abs(float(np.linalg.det(m[:2, :2]))))


def max_scale(m: np.ndarray) -> float:
    """Largest singular value of the linear part (worst-case stretch)."""
    return float(np.linalg.norm(m[:2, :2], ord=2))


def arc_sweep(start: float, end: float, anticlockwise: bool = False) -> float:
    """Signed sweep angle for an arc, following canvas rules.

    A clockwise arc whose angular span reaches 2π draws a full circle;
    otherwise the span is reduced modulo 2π. Anticlockwise arcs mirror this
    with a negative sweep.

    Examples
    --------
    >>> arc_sweep(-math.pi / 2, math.pi / 2)          # right half
    3.141592653589793
    >>> arc_sweep(-math.pi / 2, math.pi / 2, True)    # left half
    -3.141592653589793
    """
    if not anticlockwise:
        span = end - start
        if span >= TWO_PI:
            return TWO_PI
        return span % TWO_PI
    span = start - end
    if span >= TWO_PI:
        return -TWO_PI
    return -(span % TWO_PI)


def segment_count(radius_px: float, sweep: float, tolerance_px: float = 0.1) -> int:
    """Number of chords needed to keep flattening error under tolerance.

    Parameters
    ----------
    radius_px : float
        Curve radius in device pixels
    sweep : float
        Absolute sweep angle (radians)
    tolerance_px : float
        Maximum sagitta (chord-to-arc distance) in device pixels

    Returns
    -------
    int
        Segment count, at least 1 (at least 4 for a full turn)
    """
    sweep = abs(sweep)
    if sweep == 0.0 or radius_px <= tolerance_px:
        return 1 if sweep < TWO_PI else 4
    step = 2.0 * math.acos(1.0 - tolerance_px / radius_px)
    n = int(math.ceil(sweep / step))
    return max(n, 4 if sweep >= TWO_PI else 1)


def flatten_ellipse(
    cx: float,
    cy: float,
    rx: float,
    ry: float,
    rot: float,
    start: float,
    end: float,
    anticlockwise: bool = False,
    px_scale: float = 1.0,
    tolerance_px: float = 0.1
) -> np.ndarray:
    """Flatten an elliptical arc to a polyline (user space).

    Parameters
    ----------
    cx, cy : float
        Ellipse center
    rx, ry : float
        Radii (non-negative)
    rot : float
        Ellipse rotation (radians)
    start, end : float
        Start and end angles on the unrotated ellipse (radians)
    anticlockwise : bool
        Sweep direction, default clockwise
    px_scale : float
        Device pixels per user unit, used to size the chord budget
    tolerance_px : float
        Chord error budget in device pixels

    Returns
    -------
    np.ndarray
        Polyline vertices, shape (N, 2), N ≥ 2, including both endpoints
    """
    if rx < 0 or ry < 0:
        raise ValueError(f"Ellipse radii must be non-negative, got rx={rx}, ry={ry}")

    sweep = arc_sweep(start, end, anticlockwise)
    n = segment_count(max(rx, ry) * px_scale, sweep, tolerance_px)
    t = start + sweep * np.linspace(0.0, 1.0, n + 1)

    x = rx * np.cos(t)
    y = ry * np.sin(t)
    c, s = math.cos(rot), math.sin(rot)
    pts = np.stack([cx + c * x - s * y, cy + s * x + c * y], axis=1)
    return pts
