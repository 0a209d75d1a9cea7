"""Drawing passes for the vinyl/cookie fusion artwork.

Each pass paints one layer onto the shared RenderContext surface, in this
order (painter's algorithm, source-over):

    1. paint_background          radial vignette + 120 star speckles
    2. paint_shadow              squashed soft shadow under the disc
    3. paint_vinyl_half          left half: grooves, sticker, spindle, ticks
    4. paint_cookie_half         right half: speckles, ridges, cream inset,
                                 then crumbs outside the disc (unclipped)
    5. paint_specular_highlight  rotated soft ellipse across the disc
    6. paint_label_text          label strings on both halves

Randomized layout (speckles, glints, crumbs) is computed by pure helpers
returning plain tuples, each from a fresh SeededRandom, so layouts can be
checked without rasterizing anything.

Invariants:
    - Every pass leaves the surface state as it found it (save/restore)
    - All coordinates are logical units; the context transform handles density
"""

import math
from typing import List, NamedTuple

from .context import RenderContext
from .rng import BACKGROUND_SEED, COOKIE_SPECKLE_SEED, CRUMB_SEED, EMBOSS_SEED, SeededRandom

TWO_PI = 2.0 * math.pi
HALF_PI = 0.5 * math.pi

BACKGROUND_SPECKLES = 120
COOKIE_SPECKLES = 80
EMBOSS_GLINTS = 40
CRUMB_COUNT = 50
GROOVE_MAX = 16
TICK_COUNT = 22
RIDGE_COUNT = 32
CREAM_RINGS = 3

LEFT_LABEL_FONTS = '"Futura", "Avenir", "Inter", sans-serif'
RIGHT_LABEL_FONTS = '"Avenir", "Inter", sans-serif'


class Dot(NamedTuple):
    """Filled circle in logical units."""
    x: float
    y: float
    radius: float
    alpha: float


class Crumb(NamedTuple):
    """Crumb placement: position, half-length, rotation, squash and peak opacity."""
    x: float
    y: float
    size: float
    rotation: float
    squash: float
    alpha: float


class Segment(NamedTuple):
    x0: float
    y0: float
    x1: float
    y1: float


# ============================================================================
# LAYOUT
# ============================================================================

def background_speckles(size: float) -> List[Dot]:
    """Star speckles across the whole frame (stream 0xDECAFBAD)."""
    rand = SeededRandom(BACKGROUND_SEED)
    dots = []
    for _ in range(BACKGROUND_SPECKLES):
        x = rand() * size
        y = rand() * size
        r = rand() * 2.2 + 0.4
        alpha = 0.08 + rand() * 0.08
        dots.append(Dot(x, y, r, alpha))
    return dots


def cookie_speckles(center: float, radius: float) -> List[Dot]:
    """Cream speckles inside the right half (stream 0x0DDC0FF3)."""
    rand = SeededRandom(COOKIE_SPECKLE_SEED)
    dots = []
    for _ in range(COOKIE_SPECKLES):
        angle = rand() * math.pi - HALF_PI
        distance = radius * (0.2 + rand() * 0.7)
        r = 2.2 + rand() * 1.6
        alpha = 0.1 + rand() * 0.1
        dots.append(Dot(center + math.cos(angle) * distance, center + math.sin(angle) * distance, r, alpha))
    return dots


def cream_geometry(center: float, radius: float):
    """Cream inset center (x, y) and radius."""
    return center + radius * 0.25, center, radius * 0.52


def emboss_glints(center: float, radius: float) -> List[Dot]:
    """Highlight speckles inside the cream inset (stream 0xABCDDCBA)."""
    rand = SeededRandom(EMBOSS_SEED)
    cx, cy, cream = cream_geometry(center, radius)
    dots = []
    for _ in range(EMBOSS_GLINTS):
        angle = rand() * TWO_PI
        distance = cream * (0.3 + rand() * 0.7)
        r = 2 + rand() * 2
        dots.append(Dot(cx + math.cos(angle) * distance, cy + math.sin(angle) * distance, r, 0.22))
    return dots


def crumbs(center: float, radius: float) -> List[Crumb]:
    """Crumbs in a band just outside the right half (stream 0xFEEDFACE)."""
    rand = SeededRandom(CRUMB_SEED)
    out = []
    for _ in range(CRUMB_COUNT):
        angle = rand() * math.pi - HALF_PI
        distance = radius * (1.0 + rand() * 0.25)
        size = 2 + rand() * 4
        rotation = rand() * math.pi
        squash = 0.6 + rand() * 0.4
        alpha = 0.15 + rand() * 0.15
        out.append(Crumb(
            center + math.cos(angle) * distance,
            center + math.sin(angle) * distance,
            size, rotation, squash, alpha
        ))
    return out


def groove_radii(radius: float) -> List[float]:
    """Groove ring radii, outermost first, stopping below 20% of the radius."""
    radii = []
    for i in range(GROOVE_MAX):
        groove = radius * (1 - i * 0.05)
        if groove < radius * 0.2:
            break
        radii.append(groove)
    return radii


def tick_angles() -> List[float]:
    return [(-HALF_PI + math.pi * (i + 0.5) / TICK_COUNT) * 1.05 for i in range(TICK_COUNT)]


def ridge_angles() -> List[float]:
    return [(-HALF_PI + math.pi * i / RIDGE_COUNT) * 0.98 for i in range(RIDGE_COUNT)]


def radial_segment(center: float, angle: float, r_from: float, r_to: float) -> Segment:
    c, s = math.cos(angle), math.sin(angle)
    return Segment(center + c * r_from, center + s * r_from, center + c * r_to, center + s * r_to)


# ============================================================================
# PASSES
# ============================================================================

def paint_background(rc: RenderContext) -> None:
    """Radial vignette over the full frame plus white speckles."""
    surface, size, center = rc.surface, rc.size, rc.center
    with surface.saved():
        gradient = surface.create_radial_gradient(center, center, size * 0.15, center, center, size * 0.6)
        gradient.add_color_stop(0, "#1b2233")
        gradient.add_color_stop(1, "#05070d")
        surface.fill_style = gradient
        surface.fill_rect(0, 0, size, size)

        for dot in background_speckles(size):
            surface.begin_path()
            surface.fill_style = f"rgba(255, 255, 255, {dot.alpha})"
            surface.arc(dot.x, dot.y, dot.radius, 0, TWO_PI)
            surface.fill()


def paint_shadow(rc: RenderContext) -> None:
    """Soft elliptical shadow below the disc."""
    surface, center, radius = rc.surface, rc.center, rc.radius
    with surface.saved():
        surface.translate(center, center + radius * 0.35)
        surface.scale(1, 0.3)
        gradient = surface.create_radial_gradient(0, 0, radius * 0.1, 0, 0, radius * 1.1)
        gradient.add_color_stop(0, "rgba(8, 12, 18, 0.4)")
        gradient.add_color_stop(1, "rgba(8, 12, 18, 0)")
        surface.fill_style = gradient
        surface.begin_path()
        surface.arc(0, 0, radius * 1.25, 0, TWO_PI)
        surface.fill()


def _half_disc(rc: RenderContext, anticlockwise: bool) -> None:
    surface, center, radius = rc.surface, rc.center, rc.radius
    surface.begin_path()
    surface.move_to(center, center - radius)
    surface.arc(center, center, radius, -HALF_PI, HALF_PI, anticlockwise)
    surface.close_path()


def paint_vinyl_half(rc: RenderContext) -> None:
    """Left half: record body, grooves, sticker, spindle hole and ticks, clipped."""
    surface, center, radius = rc.surface, rc.center, rc.radius
    with surface.saved():
        body = surface.create_linear_gradient(center - radius, 0, center, 0)
        body.add_color_stop(0, "#080a10")
        body.add_color_stop(0.45, "#0d1018")
        body.add_color_stop(1, "#1c2436")
        _half_disc(rc, anticlockwise=True)
        surface.clip()
        surface.fill_style = body
        surface.fill()

        surface.line_width = 1.3
        surface.line_cap = "round"
        for i, groove in enumerate(groove_radii(radius)):
            surface.begin_path()
            surface.arc(center, center, groove, -HALF_PI, HALF_PI, True)
            surface.stroke_style = f"rgba(60, 82, 120, {0.25 - i * 0.01})"
            surface.stroke()

        sticker = radius * 0.36
        label_x = center - radius * 0.35
        sticker_gradient = surface.create_radial_gradient(
            center - radius * 0.4, center - sticker * 0.3, sticker * 0.2,
            center - radius * 0.45, center, sticker * 1.4
        )
        sticker_gradient.add_color_stop(0, "#f4f4f4")
        sticker_gradient.add_color_stop(1, "#d1d5db")
        surface.begin_path()
        surface.arc(label_x, center, sticker, 0, TWO_PI)
        surface.fill_style = sticker_gradient
        surface.fill()

        surface.begin_path()
        surface.fill_style = "#2b3140"
        surface.arc(label_x, center, radius * 0.08, 0, TWO_PI)
        surface.fill()

        inner = radius * 0.55
        length = radius * 0.15
        surface.stroke_style = "rgba(160, 180, 220, 0.35)"
        surface.line_width = 1
        for angle in tick_angles():
            seg = radial_segment(center, angle, inner, inner - length)
            surface.begin_path()
            surface.move_to(seg.x0, seg.y0)
            surface.line_to(seg.x1, seg.y1)
            surface.stroke()


def paint_crumbs(rc: RenderContext) -> None:
    """Crumbs scattered just outside the disc edge, drawn without a clip."""
    surface = rc.surface
    for crumb in crumbs(rc.center, rc.radius):
        with surface.saved():
            surface.translate(crumb.x, crumb.y)
            surface.rotate(crumb.rotation)
            surface.scale(1, crumb.squash)
            gradient = surface.create_linear_gradient(-crumb.size, 0, crumb.size, 0)
            gradient.add_color_stop(0, "rgba(255, 255, 255, 0)")
            gradient.add_color_stop(0.5, f"rgba(248, 205, 140, {crumb.alpha})")
            gradient.add_color_stop(1, "rgba(255, 255, 255, 0)")
            surface.fill_style = gradient
            surface.begin_path()
            surface.arc(0, 0, crumb.size, 0, TWO_PI)
            surface.fill()


def paint_cookie_half(rc: RenderContext) -> None:
    """Right half: clipped cookie surface, then unclipped crumbs."""
    surface, center, radius = rc.surface, rc.center, rc.radius
    with surface.saved():
        _half_disc(rc, anticlockwise=False)
        surface.clip()

        body = surface.create_linear_gradient(center, 0, center + radius, 0)
        body.add_color_stop(0, "#2d1408")
        body.add_color_stop(0.4, "#3a1d10")
        body.add_color_stop(1, "#1b0904")
        surface.fill_style = body
        surface.fill()

        for dot in cookie_speckles(center, radius):
            surface.begin_path()
            surface.fill_style = f"rgba(255, 248, 230, {dot.alpha})"
            surface.arc(dot.x, dot.y, dot.radius, 0, TWO_PI)
            surface.fill()

        surface.stroke_style = "rgba(255, 255, 255, 0.12)"
        surface.line_width = 2.6
        for angle in ridge_angles():
            seg = radial_segment(center, angle, radius * 0.72, radius * 0.98)
            surface.begin_path()
            surface.move_to(seg.x0, seg.y0)
            surface.line_to(seg.x1, seg.y1)
            surface.stroke()

        cx, cy, cream = cream_geometry(center, radius)
        cream_gradient = surface.create_radial_gradient(
            center + radius * 0.28, center - radius * 0.22, cream * 0.35,
            center + radius * 0.15, center, cream * 1.2
        )
        cream_gradient.add_color_stop(0, "#ffffff")
        cream_gradient.add_color_stop(1, "#f5f0e6")
        surface.begin_path()
        surface.arc(cx, cy, cream, 0, TWO_PI)
        surface.fill_style = cream_gradient
        surface.fill()

        surface.line_width = 1.4
        surface.stroke_style = "rgba(35, 18, 11, 0.7)"
        for i in range(CREAM_RINGS):
            surface.begin_path()
            surface.arc(cx, cy, cream * (0.45 + i * 0.15), 0, TWO_PI)
            surface.stroke()

        surface.fill_style = "rgba(255, 240, 220, 0.22)"
        for dot in emboss_glints(center, radius):
            surface.begin_path()
            surface.arc(dot.x, dot.y, dot.radius, 0, TWO_PI)
            surface.fill()

    paint_crumbs(rc)


def paint_specular_highlight(rc: RenderContext) -> None:
    """Rotated soft sheen ellipse over the disc."""
    surface, center, radius = rc.surface, rc.center, rc.radius
    with surface.saved():
        surface.translate(center, center)
        surface.rotate(-math.pi / 8)
        gradient = surface.create_linear_gradient(-radius, -radius, radius, radius)
        gradient.add_color_stop(0, "rgba(255, 255, 255, 0)")
        gradient.add_color_stop(0.45, "rgba(255, 255, 255, 0.04)")
        gradient.add_color_stop(0.55, "rgba(255, 255, 255, 0.12)")
        gradient.add_color_stop(0.75, "rgba(255, 255, 255, 0.02)")
        gradient.add_color_stop(1, "rgba(255, 255, 255, 0)")
        surface.fill_style = gradient
        surface.begin_path()
        surface.ellipse(0, 0, radius * 1.05, radius * 0.6, 0, 0, TWO_PI)
        surface.fill()


def paint_label_text(rc: RenderContext) -> None:
    """Vertical sticker label on the vinyl, centered title on the cream."""
    surface, center, radius = rc.surface, rc.center, rc.radius
    with surface.saved():
        surface.translate(center - radius * 0.35, center)
        surface.rotate(-HALF_PI)
        surface.fill_style = "#1f2937"
        surface.text_align = "center"
        surface.font = f"500 {radius * 0.12}px {LEFT_LABEL_FONTS}"
        surface.fill_text("SIDE O", 0, radius * 0.05)
        surface.font = f"600 {radius * 0.18}px {LEFT_LABEL_FONTS}"
        surface.fill_text("O•VINYL", 0, radius * -0.18)

    with surface.saved():
        surface.translate(center + radius * 0.25, center)
        surface.fill_style = "rgba(255, 248, 230, 0.85)"
        surface.text_align = "center"
        surface.font = f"700 {radius * 0.12}px {RIGHT_LABEL_FONTS}"
        surface.fill_text("OREO", 0, -radius * 0.05)
        surface.font = f"500 {radius * 0.09}px {RIGHT_LABEL_FONTS}"
        surface.fill_text("CRÈME EDITION", 0, radius * 0.1)
