"""Text rasterization: CSS font shorthand → Pillow glyph mask → device space.

Pipeline for one fill_text call:
    1. parse_font(): "<weight> <size>px <family stack>" → ParsedFont
    2. resolve_font(): walk the family stack trying known font files through
       ImageFont.truetype, degrade to a generic sans-serif, and finally to
       Pillow's built-in default font
    3. Render the string into an 8-bit mask at device resolution (font size
       multiplied by the transform's uniform scale) with an alphabetic
       baseline anchor chosen from the text alignment
    4. Warp the mask into device space with cv2.warpAffine, restricted to the
       bounding box of the warped mask

Font files are looked up by file name; Pillow searches the platform font
directories (XDG data dirs on Linux, /Library/Fonts on macOS, the Windows
fonts dir) when a bare name is given. Resolution results are cached per
(families, weight, size).
"""

import logging
import math
import re
from functools import lru_cache
from typing import NamedTuple, Optional, Tuple

import cv2
import numpy as np
from PIL import Image, ImageDraw, ImageFont

from src.utils import geometry
from .raster import Coverage

logger = logging.getLogger(__name__)

TEXT_ALIGNS = ('left', 'center', 'right', 'start', 'end')
MASK_PADDING = 2

# Pillow anchors: horizontal (l/m/r) + alphabetic baseline (s)
_ANCHORS = {
    'left': 'ls',
    'start': 'ls',
    'center': 'ms',
    'right': 'rs',
    'end': 'rs',
}

_FONT_RE = re.compile(r'^\s*(?:(normal|bold|\d{3})\s+)?(\d+(?:\.\d+)?)px\s+(.+)$')

# family (lowercase) → (regular candidates, bold candidates)
FONT_CANDIDATES = {
    'futura': (
        ['Futura.ttc', 'Futura-Medium.ttf', 'futura.ttf'],
        ['Futura-Bold.ttf', 'Futura.ttc'],
    ),
    'avenir': (
        ['Avenir.ttc', 'Avenir Next.ttc', 'AvenirNext-Regular.ttf'],
        ['AvenirNext-Bold.ttf', 'Avenir Next.ttc', 'Avenir.ttc'],
    ),
    'inter': (
        ['Inter-Regular.ttf', 'Inter.ttf', 'Inter-Medium.ttf'],
        ['Inter-Bold.ttf', 'Inter-SemiBold.ttf'],
    ),
    'sans-serif': (
        ['DejaVuSans.ttf', 'LiberationSans-Regular.ttf', 'Arial.ttf', 'Helvetica.ttc'],
        ['DejaVuSans-Bold.ttf', 'LiberationSans-Bold.ttf', 'Arial Bold.ttf', 'Helvetica.ttc'],
    ),
}

GENERIC_FAMILY = 'sans-serif'
BOLD_THRESHOLD = 600


class ParsedFont(NamedTuple):
    """CSS font shorthand, parsed."""
    weight: int
    size: float
    families: Tuple[str, ...]


@lru_cache(maxsize=64)
def parse_font(spec: str) -> ParsedFont:
    """Parse a CSS font shorthand such as ``'600 46.7px "Futura", sans-serif'``.

    Raises
    ------
    ValueError
        If the string has no ``<size>px <family>`` part or the weight is
        outside [1, 1000]
    """
    m = _FONT_RE.match(spec)
    if not m:
        raise ValueError(f"Unsupported font shorthand: {spec!r} (expected '<weight> <size>px <families>')")
    weight_token, size_token, family_token = m.groups()

    if weight_token is None or weight_token == 'normal':
        weight = 400
    elif weight_token == 'bold':
        weight = 700
    else:
        weight = int(weight_token)
    if not (1 <= weight <= 1000):
        raise ValueError(f"Font weight must be in [1, 1000], got {weight} in {spec!r}")

    families = tuple(
        f.strip().strip('"\'').strip()
        for f in family_token.split(',')
        if f.strip().strip('"\'').strip()
    )
    if not families:
        raise ValueError(f"Font shorthand has no family: {spec!r}")
    return ParsedFont(weight, float(size_token), families)


def _candidate_files(family: str, bold: bool):
    key = family.lower()
    if key in FONT_CANDIDATES:
        regular, heavy = FONT_CANDIDATES[key]
        return (heavy + regular) if bold else regular
    # Unknown family: try its name as a file
    return [f"{family}.ttf", f"{family}.ttc", f"{family}.otf"]


@lru_cache(maxsize=64)
def resolve_font(families: Tuple[str, ...], weight: int, size: float):
    """Load the first available font along a family stack.

    Parameters
    ----------
    families : tuple of str
        Family stack in preference order
    weight : int
        CSS weight; ≥ 600 prefers bold faces
    size : float
        Size in device pixels

    Returns
    -------
    ImageFont.FreeTypeFont or ImageFont.ImageFont
        Resolved font (Pillow's default font as the last resort)
    """
    size = max(1.0, float(size))
    bold = weight >= BOLD_THRESHOLD
    stack = list(families)
    if GENERIC_FAMILY not in (f.lower() for f in stack):
        stack.append(GENERIC_FAMILY)

    for family in stack:
        for filename in _candidate_files(family, bold):
            try:
                font = ImageFont.truetype(filename, size)
            except OSError:
                continue
            logger.debug(f"Font {family!r} (weight {weight}) → {filename} @ {size:.2f}px")
            return font

    logger.warning(f"No font file found for {families}; using Pillow's default font")
    return ImageFont.load_default(size=size)


def anchor_for(align: str) -> str:
    """Pillow anchor for a canvas text alignment."""
    try:
        return _ANCHORS[align]
    except KeyError:
        raise ValueError(f"Unknown text alignment {align!r}, expected one of {TEXT_ALIGNS}") from None


def render_mask(text: str, font, align: str) -> Tuple[np.ndarray, Tuple[float, float]]:
    """Rasterize a string into an 8-bit mask.

    Returns
    -------
    mask : np.ndarray
        uint8 glyph coverage, shape (h, w)
    origin : (float, float)
        Position of the text anchor (alignment point on the baseline) in
        mask coordinates
    """
    anchor = anchor_for(align)
    if isinstance(font, ImageFont.FreeTypeFont):
        left, top, right, bottom = font.getbbox(text, anchor=anchor)
        origin = (MASK_PADDING - left, MASK_PADDING - top)
        w = int(math.ceil(right - left)) + 2 * MASK_PADDING
        h = int(math.ceil(bottom - top)) + 2 * MASK_PADDING
        img = Image.new('L', (max(w, 1), max(h, 1)), 0)
        ImageDraw.Draw(img).text(origin, text, font=font, fill=255, anchor=anchor)
        return np.asarray(img, dtype=np.uint8), (float(origin[0]), float(origin[1]))

    # Bitmap fonts only support top-left anchoring; treat the bottom edge as
    # the baseline
    left, top, right, bottom = font.getbbox(text)
    width = right - left
    w = int(width) + 2 * MASK_PADDING
    h = int(bottom - top) + 2 * MASK_PADDING
    img = Image.new('L', (max(w, 1), max(h, 1)), 0)
    ImageDraw.Draw(img).text((MASK_PADDING - left, MASK_PADDING - top), text, font=font, fill=255)
    shift = {'l': 0.0, 'm': 0.5, 'r': 1.0}[anchor[0]] * width
    return np.asarray(img, dtype=np.uint8), (MASK_PADDING + shift, float(MASK_PADDING + bottom - top))


def text_coverage(
    text: str,
    font_spec: str,
    align: str,
    x: float,
    y: float,
    transform: np.ndarray,
    width: int,
    height: int
) -> Optional[Coverage]:
    """Device-space coverage of a filled string.

    Parameters
    ----------
    text : str
        String to draw (empty → None)
    font_spec : str
        CSS font shorthand
    align : str
        Text alignment relative to x
    x, y : float
        Anchor point in user space; y is the alphabetic baseline
    transform : np.ndarray
        Current user → device affine, shape (3, 3)
    width, height : int
        Surface size in device pixels

    Returns
    -------
    Coverage or None
        None when the text is empty, degenerate or off-surface
    """
    if not text:
        return None
    if not (math.isfinite(x) and math.isfinite(y)):
        raise ValueError(f"Text position must be finite, got ({x}, {y})")
    parsed = parse_font(font_spec)
    s = geometry.uniform_scale(transform)
    if s <= 0 or parsed.size <= 0:
        return None

    font = resolve_font(parsed.families, parsed.weight, parsed.size * s)
    mask, origin = render_mask(text, font, align)
    if not mask.any():
        return None

    # Mask pixel index i ↦ device pixel index k:
    #   k + 0.5 = T + (L / s) · (i + 0.5 - origin)
    lin = transform[:2, :2] / s
    anchor_dev = geometry.apply(transform, np.array([[x, y]]))[0]
    offset = lin @ (0.5 - np.asarray(origin)) + anchor_dev - 0.5

    mh, mw = mask.shape
    corners = np.array([[0, 0], [mw, 0], [0, mh], [mw, mh]], dtype=np.float64) - 0.5
    dev = corners @ lin.T + offset
    x0 = max(0, int(math.floor(dev[:, 0].min())) - 1)
    y0 = max(0, int(math.floor(dev[:, 1].min())) - 1)
    x1 = min(width, int(math.ceil(dev[:, 0].max())) + 2)
    y1 = min(height, int(math.ceil(dev[:, 1].max())) + 2)
    if x1 <= x0 or y1 <= y0:
        return None

    affine = np.hstack([lin, (offset - np.array([x0, y0]))[:, None]]).astype(np.float64)
    warped = cv2.warpAffine(
        mask, affine, (x1 - x0, y1 - y0),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=0
    )
    cov = warped.astype(np.float32) * (1.0 / 255.0)
    if not cov.any():
        return None
    return Coverage(cov, y0, y1, x0, x1)
