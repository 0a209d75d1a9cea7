"""Procedural renderer for the vinyl/cookie fusion artwork.

Provides:
    - Surface: numpy-backed canvas-style drawing surface (surface)
    - Linear/radial gradient paints (paint)
    - Anti-aliased coverage rasterization with OpenCV (raster)
    - Font shorthand parsing and glyph rasterization with Pillow (text)
    - Seeded 32-bit random streams, one per texture layer (rng)
    - Render context setup and disc geometry (context)
    - The six drawing passes (passes)
    - One-shot pipeline and host session with PNG download (pipeline)

Invariants:
    - Deterministic: identical inputs ⇒ byte-identical PNG
    - Passes run strictly in PASSES order with source-over compositing
    - Every pass restores the surface state it changes

Usage:
    from src.fusion_renderer import ArtworkSession, Surface

    session = ArtworkSession()
    session.mount(Surface(), scale=1.0)
    session.download("outputs/artwork")
"""

from .context import CANVAS_SIZE, RenderContext, clamp_device_scale, reset_transform, setup_render_context
from .paint import LinearGradient, RadialGradient
from .pipeline import OUTPUT_FILENAME, PASSES, ArtworkSession, render_artwork
from .rng import SeededRandom
from .surface import Surface, SurfaceError

__all__ = [
    'ArtworkSession',
    'CANVAS_SIZE',
    'LinearGradient',
    'OUTPUT_FILENAME',
    'PASSES',
    'RadialGradient',
    'RenderContext',
    'SeededRandom',
    'Surface',
    'SurfaceError',
    'clamp_device_scale',
    'render_artwork',
    'reset_transform',
    'setup_render_context',
]
