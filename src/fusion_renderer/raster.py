"""Anti-aliased coverage rasterization with OpenCV.

Turns device-space geometry into fractional pixel coverage in [0, 1]:
    - Polygons: cv2.fillPoly on a supersampled region of interest
    - Polylines: cv2.polylines (thick, round joins) on the same grid, with
      butt and square ends cut from the round ones
    - Downsampling: cv2.resize with INTER_AREA (box average per pixel)

Architecture:
    - Compute the ROI from the geometry bounding box (+ stroke margin),
      clamped to the surface; empty ROI → nothing to draw
    - Map device points into the ROI's supersampled grid, where sub-pixel j
      has its center at device coordinate x0 + (j + 0.5) / SUPERSAMPLE
    - Encode sub-pixel positions in fixed point (SHIFT fractional bits)
    - Rasterize each subpath separately and union by maximum

Invariants:
    - Deterministic: integer rasterization + fixed-point vertex encoding
    - Coverage arrays are float32, shape (y1 - y0, x1 - x0)
    - Subpath union equals the nonzero fill for the non-self-intersecting
      outlines the artwork uses
"""

import math
from typing import List, NamedTuple, Optional, Sequence

import cv2
import numpy as np

SUPERSAMPLE = 4
SHIFT = 4
_FIXED = float(1 << SHIFT)


class Coverage(NamedTuple):
    """Coverage mask for a region of interest.

    Attributes
    ----------
    mask : np.ndarray
        Coverage in [0, 1], float32, shape (y1 - y0, x1 - x0)
    y0, y1, x0, x1 : int
        ROI bounds in device pixels (half-open)
    """
    mask: np.ndarray
    y0: int
    y1: int
    x0: int
    x1: int


def _roi(
    shapes: Sequence[np.ndarray],
    margin: float,
    width: int,
    height: int
) -> Optional[tuple]:
    pts = np.concatenate([np.asarray(s, dtype=np.float64).reshape(-1, 2) for s in shapes], axis=0)
    if not np.all(np.isfinite(pts)):
        raise ValueError("Path contains non-finite coordinates")
    x_min, y_min = pts.min(axis=0) - margin
    x_max, y_max = pts.max(axis=0) + margin
    x0 = max(0, int(math.floor(x_min)))
    y0 = max(0, int(math.floor(y_min)))
    x1 = min(width, int(math.ceil(x_max)) + 1)
    y1 = min(height, int(math.ceil(y_max)) + 1)
    if x1 <= x0 or y1 <= y0:
        return None
    return x0, y0, x1, y1


def _to_fixed(pts: np.ndarray, x0: int, y0: int) -> np.ndarray:
    """Device coords → fixed-point supersampled ROI coords (int32)."""
    pts = np.asarray(pts, dtype=np.float64).reshape(-1, 2)
    local = (pts - np.array([x0, y0], dtype=np.float64)) * SUPERSAMPLE - 0.5
    return np.rint(local * _FIXED).astype(np.int32).reshape(-1, 1, 2)


def _downsample(hi_res: np.ndarray, w: int, h: int) -> np.ndarray:
    cov = cv2.resize(hi_res.astype(np.float32), (w, h), interpolation=cv2.INTER_AREA)
    return np.clip(cov * (1.0 / 255.0), 0.0, 1.0)


def fill_coverage(
    polygons: List[np.ndarray],
    width: int,
    height: int
) -> Optional[Coverage]:
    """Rasterize closed polygons to coverage.

    Parameters
    ----------
    polygons : list of np.ndarray
        Device-space outlines, each shape (N, 2), N ≥ 3 (implicitly closed)
    width, height : int
        Surface size in device pixels

    Returns
    -------
    Coverage or None
        None when nothing intersects the surface
    """
    polygons = [np.asarray(p, dtype=np.float64) for p in polygons if len(p) >= 3]
    if not polygons:
        return None
    roi = _roi(polygons, 1.0, width, height)
    if roi is None:
        return None
    x0, y0, x1, y1 = roi
    w, h = x1 - x0, y1 - y0

    hi_res = np.zeros((h * SUPERSAMPLE, w * SUPERSAMPLE), dtype=np.uint8)
    for poly in polygons:
        layer = np.zeros_like(hi_res)
        cv2.fillPoly(layer, [_to_fixed(poly, x0, y0)], 255, lineType=cv2.LINE_8, shift=SHIFT)
        np.maximum(hi_res, layer, out=hi_res)

    mask = _downsample(hi_res, w, h)
    if not mask.any():
        return None
    return Coverage(mask, y0, y1, x0, x1)


def _end_directions(pts: np.ndarray) -> Optional[tuple]:
    """Unit tangents leaving the first point and arriving at the last one."""
    steps = np.diff(pts, axis=0)
    lengths = np.hypot(steps[:, 0], steps[:, 1])
    moving = np.flatnonzero(lengths > 1e-9)
    if len(moving) == 0:
        return None
    first, last = moving[0], moving[-1]
    return steps[first] / lengths[first], steps[last] / lengths[last]


def _cap_box(end: np.ndarray, outward: np.ndarray, reach: float) -> np.ndarray:
    """Square of side 2*reach lying beyond end, one edge through end."""
    normal = np.array([-outward[1], outward[0]])
    return np.array([
        end + normal * reach,
        end + normal * reach + outward * reach,
        end - normal * reach + outward * reach,
        end - normal * reach,
    ])


def _draw_polyline(
    layer: np.ndarray,
    pts: np.ndarray,
    closed: bool,
    cap: str,
    half: float,
    thickness: int,
    x0: int,
    y0: int
) -> None:
    if not closed and np.allclose(pts[0], pts[-1]) and len(pts) > 2:
        closed = True
    if closed or cap == "round":
        cv2.polylines(layer, [_to_fixed(pts, x0, y0)], closed, 255,
                      thickness=thickness, lineType=cv2.LINE_8, shift=SHIFT)
        return

    directions = _end_directions(pts)
    if directions is None:
        # Zero-length subpath: nothing for butt, an axis-aligned square otherwise.
        if cap == "square":
            box = _cap_box(pts[0] - np.array([half, 0.0]), np.array([1.0, 0.0]), half)
            cv2.fillPoly(layer, [_to_fixed(box, x0, y0)], 255, lineType=cv2.LINE_8, shift=SHIFT)
        return
    d_start, d_end = directions
    pts = pts.copy()
    if cap == "square":
        pts[0] -= d_start * half
        pts[-1] += d_end * half
    cv2.polylines(layer, [_to_fixed(pts, x0, y0)], False, 255,
                  thickness=thickness, lineType=cv2.LINE_8, shift=SHIFT)
    # Cut the round ends OpenCV draws back to flat ends.
    reach = half + 1.0
    for end, outward in ((pts[0], -d_start), (pts[-1], d_end)):
        cv2.fillPoly(layer, [_to_fixed(_cap_box(end, outward, reach), x0, y0)], 0,
                     lineType=cv2.LINE_8, shift=SHIFT)


def stroke_coverage(
    polylines: List[tuple],
    line_width: float,
    width: int,
    height: int,
    cap: str = "round"
) -> Optional[Coverage]:
    """Rasterize polylines with a given device line width.

    Parameters
    ----------
    polylines : list of (np.ndarray, bool)
        (points (N, 2) in device space, closed flag); N ≥ 2
    line_width : float
        Device-space line width (> 0)
    width, height : int
        Surface size in device pixels
    cap : str
        End style of open polylines: "butt", "round" or "square"

    Returns
    -------
    Coverage or None
        None when nothing intersects the surface

    Notes
    -----
    Joins are always round. Butt and square ends are cut from OpenCV's round
    ends, so each polyline is rasterized on its own layer and the layers are
    unioned. Width resolution is one supersampled pixel (1 / SUPERSAMPLE
    device px).
    """
    if cap not in ("butt", "round", "square"):
        raise ValueError(f"Unknown line cap {cap!r}")
    if line_width <= 0 or not math.isfinite(line_width):
        return None
    polylines = [(np.asarray(p, dtype=np.float64), closed) for p, closed in polylines if len(p) >= 2]
    if not polylines:
        return None
    half = 0.5 * line_width
    # Square cap corners reach half * sqrt(2) past an end point.
    roi = _roi([p for p, _ in polylines], half * 1.5 + 1.0, width, height)
    if roi is None:
        return None
    x0, y0, x1, y1 = roi
    w, h = x1 - x0, y1 - y0

    thickness = max(1, int(round(line_width * SUPERSAMPLE)))
    hi_res = np.zeros((h * SUPERSAMPLE, w * SUPERSAMPLE), dtype=np.uint8)
    if cap == "round":
        for pts, closed in polylines:
            _draw_polyline(hi_res, pts, closed, cap, half, thickness, x0, y0)
    else:
        layer = np.empty_like(hi_res)
        for pts, closed in polylines:
            layer.fill(0)
            _draw_polyline(layer, pts, closed, cap, half, thickness, x0, y0)
            np.maximum(hi_res, layer, out=hi_res)

    mask = _downsample(hi_res, w, h)
    if not mask.any():
        return None
    return Coverage(mask, y0, y1, x0, x1)
