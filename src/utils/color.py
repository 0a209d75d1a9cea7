"""CSS color parsing and alpha conversions.

Provides:
    - parse_color(): CSS color strings → straight RGBA floats in [0, 1]
    - premultiply() / unpremultiply(): straight ↔ premultiplied alpha
    - to_uint8(): float [0, 1] → uint8 [0, 255] with round-half-even

Supported color syntax:
    - Hex: "#rgb", "#rgba", "#rrggbb", "#rrggbbaa"
    - Functional: "rgb(r, g, b)", "rgba(r, g, b, a)" with 0-255 channels
      (or percentages) and alpha in [0, 1]
    - Keywords: "transparent", "black", "white"

Invariants:
    - Surface pixels are premultiplied RGBA float32
    - Colors handed around as Python tuples are straight (not premultiplied)
    - All values clamped to [0, 1] after parsing
"""

import re
from functools import lru_cache
from typing import Tuple

import numpy as np

RGBA = Tuple[float, float, float, float]

_KEYWORDS = {
    'transparent': (0.0, 0.0, 0.0, 0.0),
    'black': (0.0, 0.0, 0.0, 1.0),
    'white': (1.0, 1.0, 1.0, 1.0),
}

_FUNC_RE = re.compile(r'^rgba?\(\s*([^)]*)\)$')


def _parse_channel(token: str) -> float:
    token = token.strip()
    if token.endswith('%'):
        return float(token[:-1]) / 100.0
    return float(token) / 255.0


def _parse_alpha(token: str) -> float:
    token = token.strip()
    if token.endswith('%'):
        return float(token[:-1]) / 100.0
    return float(token)


@lru_cache(maxsize=256)
def parse_color(spec: str) -> RGBA:
    """Parse a CSS color string.

    Parameters
    ----------
    spec : str
        Color string, e.g. "#1b2233" or "rgba(255, 255, 255, 0.12)"

    Returns
    -------
    tuple of float
        Straight (r, g, b, a), each in [0, 1]

    Raises
    ------
    ValueError
        If the string is not a supported color

    Examples
    --------
    >>> parse_color("#ff0000")
    (1.0, 0.0, 0.0, 1.0)
    >>> parse_color("rgba(0, 0, 0, 0.5)")
    (0.0, 0.0, 0.0, 0.5)
    """
    if not isinstance(spec, str):
        raise ValueError(f"Color must be a string, got {type(spec).__name__}")
    s = spec.strip().lower()

    if s in _KEYWORDS:
        return _KEYWORDS[s]

    if s.startswith('#'):
        digits = s[1:]
        if len(digits) in (3, 4):
            digits = ''.join(ch * 2 for ch in digits)
        if len(digits) not in (6, 8) or not re.fullmatch(r'[0-9a-f]+', digits):
            raise ValueError(f"Invalid hex color: {spec!r}")
        vals = [int(digits[i:i + 2], 16) / 255.0 for i in range(0, len(digits), 2)]
        if len(vals) == 3:
            vals.append(1.0)
        return tuple(vals)

    m = _FUNC_RE.match(s)
    if m:
        parts = [p for p in m.group(1).split(',')]
        if len(parts) not in (3, 4):
            raise ValueError(f"Expected 3 or 4 components in {spec!r}, got {len(parts)}")
        try:
            r, g, b = (_parse_channel(p) for p in parts[:3])
            a = _parse_alpha(parts[3]) if len(parts) == 4 else 1.0
        except ValueError as e:
            raise ValueError(f"Invalid color component in {spec!r}: {e}") from e
        return tuple(min(1.0, max(0.0, v)) for v in (r, g, b, a))

    raise ValueError(f"Unsupported color syntax: {spec!r}")


def premultiply(rgba: RGBA) -> np.ndarray:
    """Straight RGBA tuple → premultiplied float32 array, shape (4,)."""
    r, g, b, a = rgba
    return np.array([r * a, g * a, b * a, a], dtype=np.float32)


def unpremultiply(img: np.ndarray) -> np.ndarray:
    """Premultiplied RGBA image → straight RGBA image.

    Parameters
    ----------
    img : np.ndarray
        Premultiplied RGBA, shape (..., 4)

    Returns
    -------
    np.ndarray
        Straight RGBA, same shape; fully transparent pixels become (0,0,0,0)
    """
    alpha = img[..., 3:4]
    safe = np.where(alpha > 0, alpha, 1.0)
    rgb = np.where(alpha > 0, img[..., :3] / safe, 0.0)
    return np.concatenate([np.clip(rgb, 0.0, 1.0), alpha], axis=-1)


def to_uint8(img: np.ndarray) -> np.ndarray:
    """Convert float [0, 1] image to uint8 [0, 255] (rounded, clamped)."""
    return np.clip(np.rint(np.asarray(img, dtype=np.float32) * 255.0), 0, 255).astype(np.uint8)

