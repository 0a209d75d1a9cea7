"""Tests for the artwork drawing passes.

Test suites:
1. Layout helpers (counts, documented ranges, determinism)
2. Groove loop boundary (16 rings at radius 259.2)
3. Per-pass rendering (coverage lands where each pass says it does)
4. Scoping (every pass restores transform, clip and stack depth)
5. Half B regions (clipped cookie body vs. unclipped crumbs)

Fixtures:
- rc: fresh 720×720 render context at scale 1
"""

import math

import numpy as np
import pytest

from src.fusion_renderer import passes
from src.fusion_renderer.context import setup_render_context
from src.fusion_renderer.surface import Surface

CENTER = 360.0
RADIUS = 259.2


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def rc():
    """Fresh 720×720 render context at scale 1 (transparent surface)."""
    return setup_render_context(Surface(), 1.0)


def alpha(rc) -> np.ndarray:
    return rc.surface.pixels[..., 3]


def distance_map(size: int = 720) -> np.ndarray:
    ys, xs = np.mgrid[0:size, 0:size]
    return np.hypot(xs + 0.5 - CENTER, ys + 0.5 - CENTER)


# ============================================================================
# LAYOUT HELPERS
# ============================================================================

def test_background_speckles_ranges():
    dots = passes.background_speckles(720)
    assert len(dots) == 120
    for d in dots:
        assert 0 <= d.x < 720 and 0 <= d.y < 720
        assert 0.4 <= d.radius <= 2.6
        assert 0.08 <= d.alpha <= 0.16


def test_cookie_speckles_ranges():
    dots = passes.cookie_speckles(CENTER, RADIUS)
    assert len(dots) == 80
    for d in dots:
        dist = math.hypot(d.x - CENTER, d.y - CENTER)
        assert 0.2 * RADIUS - 1e-9 <= dist <= 0.9 * RADIUS + 1e-9
        assert d.x >= CENTER - 1e-9
        assert 2.2 <= d.radius <= 3.8
        assert 0.1 <= d.alpha <= 0.2


def test_emboss_glints_inside_cream():
    cx, cy, cream = passes.cream_geometry(CENTER, RADIUS)
    assert cx == pytest.approx(CENTER + 0.25 * RADIUS)
    assert cream == pytest.approx(0.52 * RADIUS)
    dots = passes.emboss_glints(CENTER, RADIUS)
    assert len(dots) == 40
    for d in dots:
        dist = math.hypot(d.x - cx, d.y - cy)
        assert 0.3 * cream - 1e-9 <= dist <= cream + 1e-9
        assert 2 <= d.radius <= 4
        assert d.alpha == 0.22


def test_crumbs_ranges():
    crumbs = passes.crumbs(CENTER, RADIUS)
    assert len(crumbs) == 50
    for c in crumbs:
        dist = math.hypot(c.x - CENTER, c.y - CENTER)
        assert RADIUS - 1e-9 <= dist <= 1.25 * RADIUS + 1e-9
        assert c.x >= CENTER - 1e-9
        assert 2 <= c.size <= 6
        assert 0 <= c.rotation < math.pi
        assert 0.6 <= c.squash <= 1.0
        assert 0.15 <= c.alpha <= 0.30


def test_layouts_are_deterministic():
    assert passes.background_speckles(720) == passes.background_speckles(720)
    assert passes.cookie_speckles(CENTER, RADIUS) == passes.cookie_speckles(CENTER, RADIUS)
    assert passes.emboss_glints(CENTER, RADIUS) == passes.emboss_glints(CENTER, RADIUS)
    assert passes.crumbs(CENTER, RADIUS) == passes.crumbs(CENTER, RADIUS)


def test_layouts_do_not_share_streams():
    # Consuming one layer never shifts another
    passes.crumbs(CENTER, RADIUS)
    first = passes.cookie_speckles(CENTER, RADIUS)
    passes.background_speckles(720)
    assert passes.cookie_speckles(CENTER, RADIUS) == first


def test_tick_angles():
    angles = passes.tick_angles()
    assert len(angles) == 22
    assert all(b > a for a, b in zip(angles, angles[1:]))
    assert angles[0] == pytest.approx((-math.pi / 2 + math.pi * 0.5 / 22) * 1.05)


def test_ridge_angles():
    angles = passes.ridge_angles()
    assert len(angles) == 32
    assert angles[0] == pytest.approx(-math.pi / 2 * 0.98)
    assert all(abs(a) <= math.pi / 2 for a in angles)


def test_radial_segment():
    seg = passes.radial_segment(100, 0.0, 10, 30)
    assert seg == pytest.approx((110, 100, 130, 100))


# ============================================================================
# GROOVE BOUNDARY
# ============================================================================

def test_groove_count_at_default_radius():
    radii = passes.groove_radii(RADIUS)
    assert len(radii) == 16
    assert radii[0] == pytest.approx(RADIUS)
    assert radii[-1] == pytest.approx(0.25 * RADIUS)
    assert all(r >= 0.2 * RADIUS for r in radii)


def test_groove_radii_decrease_by_five_percent():
    radii = passes.groove_radii(100.0)
    assert np.allclose(np.diff(radii), -5.0)


# ============================================================================
# PER-PASS RENDERING
# ============================================================================

def test_background_covers_frame(rc):
    passes.paint_background(rc)
    a = alpha(rc)
    assert a.min() > 0.999
    rgb = rc.surface.pixels[..., :3]
    # Vignette: center brighter than corners
    assert rgb[360, 360].sum() > rgb[5, 5].sum()


def test_shadow_sits_below_center(rc):
    passes.paint_shadow(rc)
    a = alpha(rc)
    ys, _ = np.nonzero(a > 0.01)
    assert ys.mean() > CENTER
    assert a.max() <= 0.41


def test_vinyl_half_confined_to_left_half(rc):
    passes.paint_vinyl_half(rc)
    a = alpha(rc)
    dist = distance_map()
    assert a[360, 360 - 100] == pytest.approx(1.0, abs=1e-4)
    assert a[:, 362:].max() == 0.0
    assert a[dist > RADIUS + 2].max() == 0.0


def test_vinyl_sticker_is_light(rc):
    passes.paint_vinyl_half(rc)
    x = int(CENTER - 0.35 * RADIUS)
    sticker_px = rc.surface.pixels[360, x - 40, :3]
    body_px = rc.surface.pixels[360, 20 + int(CENTER - RADIUS), :3]
    assert sticker_px.mean() > 0.7
    assert body_px.mean() < 0.3


def test_cookie_body_confined_to_right_half(rc):
    passes.paint_cookie_half(rc)
    a = alpha(rc)
    dist = distance_map()
    assert a[360, 360 + 100] == pytest.approx(1.0, abs=1e-4)
    xs = np.arange(720)[None, :].repeat(720, axis=0)
    assert a[(dist < RADIUS - 2) & (xs < 358)].max() == 0.0
    # Only crumbs beyond the rim
    beyond = a[dist > 1.25 * RADIUS + 8]
    assert beyond.max() == 0.0


def test_cookie_crumbs_escape_clip(rc):
    passes.paint_cookie_half(rc)
    a = alpha(rc)
    dist = distance_map()
    outside = a[dist > RADIUS + 2]
    assert (outside > 0.01).sum() > 50


def test_crumbs_alone_stay_in_band(rc):
    passes.paint_crumbs(rc)
    a = alpha(rc)
    dist = distance_map()
    inked = a > 0.005
    assert inked.any()
    assert dist[inked].min() > RADIUS - 8
    assert dist[inked].max() < 1.25 * RADIUS + 8


def test_highlight_is_faint(rc):
    passes.paint_specular_highlight(rc)
    a = alpha(rc)
    assert 0.05 < a.max() <= 0.125
    dist = distance_map()
    assert a[dist > 1.06 * RADIUS].max() == 0.0


def test_labels_on_both_halves(rc):
    passes.paint_label_text(rc)
    a = alpha(rc)
    left = a[:, :300]
    right = a[:, 310:]
    assert left.sum() > 100
    assert right.sum() > 100
    # Left label is vertical: taller than wide
    ys, xs = np.nonzero(left > 0.1)
    assert (ys.max() - ys.min()) > (xs.max() - xs.min())
    # Right label is horizontal: wider than tall
    ys, xs = np.nonzero(right > 0.1)
    assert (xs.max() - xs.min()) > (ys.max() - ys.min())


# ============================================================================
# SCOPING
# ============================================================================

@pytest.mark.parametrize("paint", [
    passes.paint_background,
    passes.paint_shadow,
    passes.paint_vinyl_half,
    passes.paint_cookie_half,
    passes.paint_crumbs,
    passes.paint_specular_highlight,
    passes.paint_label_text,
])
def test_pass_restores_state(rc, paint):
    surface = rc.surface
    before_transform = surface.get_transform()
    before_fill = surface.fill_style
    paint(rc)
    assert surface.save_depth == 0
    assert surface.clip_mask is None
    assert surface.fill_style == before_fill
    np.testing.assert_array_equal(surface.get_transform(), before_transform)
