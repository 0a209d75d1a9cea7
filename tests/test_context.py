"""Tests for render context setup.

Test suites:
1. Device scale clamping
2. Surface sizing and transform reset (idempotency)
3. RenderContext geometry
4. Missing surface
"""

import dataclasses
import logging
import math

import numpy as np
import pytest

from src.fusion_renderer.context import (
    CANVAS_SIZE,
    RenderContext,
    clamp_device_scale,
    reset_transform,
    setup_render_context,
)
from src.fusion_renderer.surface import Surface


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def surface():
    """Unallocated surface."""
    return Surface()


# ============================================================================
# SCALE CLAMPING
# ============================================================================

@pytest.mark.parametrize("raw, expected", [
    (1.0, 1.0),
    (1.5, 1.5),
    (2.0, 2.0),
    (3.0, 2.0),
    (0.5, 1.0),
    (0.0, 1.0),
    (-2.0, 1.0),
    (None, 1.0),
    (float("nan"), 1.0),
    (float("inf"), 2.0),
])
def test_clamp_device_scale(raw, expected):
    assert clamp_device_scale(raw) == expected


# ============================================================================
# SETUP
# ============================================================================

def test_setup_scale_one(surface):
    rc = setup_render_context(surface, 1.0)
    assert (surface.width, surface.height) == (720, 720)
    assert surface.display_size == (720, 720)
    assert rc.size == CANVAS_SIZE
    np.testing.assert_allclose(surface.get_transform(), np.eye(3))


def test_setup_scale_two(surface):
    setup_render_context(surface, 2.0)
    assert (surface.width, surface.height) == (1440, 1440)
    assert surface.display_size == (720, 720)
    np.testing.assert_allclose(surface.get_transform(), np.diag([2.0, 2.0, 1.0]))


def test_setup_fractional_scale_rounds(surface):
    setup_render_context(surface, 1.25)
    assert surface.width == 900


def test_setup_clears_previous_pixels(surface):
    setup_render_context(surface, 1.0)
    surface.fill_style = "#ff0000"
    surface.fill_rect(0, 0, 100, 100)
    setup_render_context(surface, 1.0)
    assert not surface.pixels.any()


def test_setup_is_idempotent(surface):
    setup_render_context(surface, 2.0)
    once = surface.get_transform()
    setup_render_context(surface, 2.0)
    np.testing.assert_array_equal(surface.get_transform(), once)


def test_reset_transform_does_not_accumulate(surface):
    surface.resize(10, 10)
    surface.translate(5, 7)
    surface.rotate(0.3)
    reset_transform(surface, 2.0)
    reset_transform(surface, 2.0)
    np.testing.assert_allclose(surface.get_transform(), np.diag([2.0, 2.0, 1.0]))


def test_setup_clamps_scale(surface):
    setup_render_context(surface, 4.0)
    assert surface.width == 1440


# ============================================================================
# GEOMETRY
# ============================================================================

@pytest.mark.parametrize("size", [100, 512, 720, 1000])
def test_context_geometry(size):
    rc = RenderContext.from_size(Surface(), size)
    assert rc.center == size / 2
    assert math.isclose(rc.radius, 0.36 * size)


def test_context_is_frozen():
    rc = RenderContext.from_size(Surface(), 720)
    with pytest.raises(dataclasses.FrozenInstanceError):
        rc.radius = 10


def test_default_radius():
    rc = setup_render_context(Surface(), 1.0)
    assert math.isclose(rc.radius, 259.2)
    assert rc.center == 360


# ============================================================================
# MISSING SURFACE
# ============================================================================

def test_missing_surface_aborts_silently(caplog):
    with caplog.at_level(logging.DEBUG, logger="src.fusion_renderer.context"):
        assert setup_render_context(None, 2.0) is None
    assert any("No drawing surface" in r.message for r in caplog.records)
