"""Tests for gradient paints and color resolution.

Test suites:
1. Color stops (validation, ordering, premultiplied interpolation, padding)
2. Linear gradient positions
3. Radial gradient (two-circle) positions
4. Evaluation through a device → user transform
5. resolve_paint dispatch
"""

import numpy as np
import pytest

from src.fusion_renderer.paint import LinearGradient, RadialGradient, resolve_paint, solid_rgba
from src.utils import geometry


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def black_to_white():
    """Horizontal linear gradient over x ∈ [0, 10]."""
    g = LinearGradient(0, 0, 10, 0)
    g.add_color_stop(0, "#000000")
    g.add_color_stop(1, "#ffffff")
    return g


# ============================================================================
# COLOR STOPS
# ============================================================================

@pytest.mark.parametrize("offset", [-0.1, 1.5, float("nan")])
def test_stop_offset_out_of_range(offset):
    with pytest.raises(ValueError, match="offset"):
        LinearGradient(0, 0, 1, 0).add_color_stop(offset, "#fff")


def test_stop_bad_color():
    with pytest.raises(ValueError):
        LinearGradient(0, 0, 1, 0).add_color_stop(0.5, "not-a-color")


def test_stops_sorted_by_offset():
    g = LinearGradient(0, 0, 1, 0)
    g.add_color_stop(1, "#ffffff")
    g.add_color_stop(0, "#000000")
    g.add_color_stop(0.5, "#ff0000")
    assert [s[0] for s in g.stops] == [0.0, 0.5, 1.0]


def test_equal_offsets_keep_insertion_order():
    g = LinearGradient(0, 0, 1, 0)
    g.add_color_stop(0.5, "#ff0000")
    g.add_color_stop(0.5, "#0000ff")
    np.testing.assert_allclose(g.stops[0][1], [1, 0, 0, 1])
    np.testing.assert_allclose(g.stops[1][1], [0, 0, 1, 1])


def test_interpolation_is_premultiplied():
    g = LinearGradient(0, 0, 1, 0)
    g.add_color_stop(0, "rgba(255, 0, 0, 0)")
    g.add_color_stop(1, "rgba(255, 0, 0, 1)")
    mid = g.colors_at(np.array([0.5]))[0]
    np.testing.assert_allclose(mid, [0.5, 0.0, 0.0, 0.5], atol=1e-6)


def test_positions_outside_range_are_padded(black_to_white):
    colors = black_to_white.colors_at(np.array([-3.0, 4.0]))
    np.testing.assert_allclose(colors[0], [0, 0, 0, 1])
    np.testing.assert_allclose(colors[1], [1, 1, 1, 1])


def test_no_stops_is_transparent():
    colors = LinearGradient(0, 0, 1, 0).colors_at(np.array([0.2, 0.8]))
    assert not colors.any()


# ============================================================================
# LINEAR
# ============================================================================

def test_linear_projection():
    g = LinearGradient(0, 0, 10, 10)
    t, valid = g.positions(np.array([0.0, 5.0, 10.0, 10.0]), np.array([0.0, 5.0, 10.0, 0.0]))
    np.testing.assert_allclose(t, [0.0, 0.5, 1.0, 0.5])
    assert valid.all()


def test_linear_degenerate_paints_nothing():
    g = LinearGradient(3, 3, 3, 3)
    g.add_color_stop(0, "#fff")
    colors = g.evaluate(geometry.identity(), np.array([[0.5, 1.5]]), np.array([[0.5], [1.5]]))
    assert not colors.any()


# ============================================================================
# RADIAL
# ============================================================================

def test_radial_concentric_distance():
    g = RadialGradient(0, 0, 0, 0, 0, 10)
    t, valid = g.positions(np.array([5.0, 0.0, 20.0]), np.array([0.0, 10.0, 0.0]))
    assert valid.all()
    np.testing.assert_allclose(t, [0.5, 1.0, 2.0], atol=1e-9)


def test_radial_inner_radius_offsets_start():
    g = RadialGradient(0, 0, 5, 0, 0, 15)
    t, valid = g.positions(np.array([5.0, 10.0, 15.0]), np.array([0.0, 0.0, 0.0]))
    np.testing.assert_allclose(t, [0.0, 0.5, 1.0], atol=1e-9)


def test_radial_offset_focus():
    # Inner circle off-center: the point at the outer circle's edge maps to t=1
    g = RadialGradient(2, 0, 0, 0, 0, 10)
    t, valid = g.positions(np.array([-10.0, 10.0]), np.array([0.0, 0.0]))
    assert valid.all()
    np.testing.assert_allclose(t, [1.0, 1.0], atol=1e-9)


def test_radial_cone_outside_is_invalid():
    # Equal radii, separated centers: points far off the tube are unpainted
    g = RadialGradient(0, 0, 5, 20, 0, 5)
    _, valid = g.positions(np.array([10.0]), np.array([20.0]))
    assert not valid[0]


def test_radial_identical_circles_paint_nothing():
    g = RadialGradient(1, 1, 3, 1, 1, 3)
    _, valid = g.positions(np.array([1.0, 4.0]), np.array([1.0, 1.0]))
    assert not valid.any()


def test_radial_negative_radius():
    with pytest.raises(ValueError, match="non-negative"):
        RadialGradient(0, 0, -1, 0, 0, 5)


# ============================================================================
# EVALUATION
# ============================================================================

def test_evaluate_uses_inverse_transform(black_to_white):
    # User space shifted right by 10 device px
    inverse = np.linalg.inv(geometry.translation(10, 0))
    xs = np.array([[10.5, 15.0, 19.5]])
    ys = np.array([[0.5]])
    colors = black_to_white.evaluate(inverse, xs, ys)
    np.testing.assert_allclose(colors[0, :, 0], [0.05, 0.5, 0.95], atol=1e-6)


def test_evaluate_shape(black_to_white):
    ys, xs = np.ogrid[0:4, 0:6]
    colors = black_to_white.evaluate(geometry.identity(), xs + 0.5, ys + 0.5)
    assert colors.shape == (4, 6, 4)
    assert colors.dtype == np.float32


# ============================================================================
# RESOLVE
# ============================================================================

def test_resolve_solid_color():
    src = resolve_paint("rgba(0, 0, 255, 0.5)", geometry.identity(), np.zeros((1, 1)), np.zeros((1, 1)))
    np.testing.assert_allclose(src, [0, 0, 0.5, 0.5])
    np.testing.assert_allclose(solid_rgba("#fff"), [1, 1, 1, 1])


def test_resolve_rejects_unknown_style():
    with pytest.raises(TypeError, match="Unsupported paint"):
        resolve_paint(42, geometry.identity(), np.zeros((1, 1)), np.zeros((1, 1)))
