"""Vinyl/cookie fusion artwork: deterministic procedural 2D rendering.

This package renders one fixed illustration, a disc split into a "vinyl"
half and a "cookie" half, onto a numpy-backed raster surface and exports it
as a PNG.

Architecture layers (strict one-way dependency):
    scripts/ → src/fusion_renderer/ → src/utils/

Key invariants:
    - Same seeds ⇒ pixel-identical output on every run
    - Logical size 720×720; physical size 720 × device scale (scale in [1, 2])
    - Passes draw in logical units; only setup knows about device pixels
    - YAML-only configs
"""

__version__ = "1.0.0"
