"""Support code shared by the renderer, the CLI and the tests.

Modules:
    color           CSS color strings → RGBA floats, alpha conversions
    geometry        3×3 affine helpers, arc/ellipse flattening
    fs              atomic PNG/YAML writes, YAML loading
    hashing         SHA-256 digests for provenance and determinism checks
    profiler        per-pass wall-clock timing
    logging_config  root logger setup with contextual fields
    validators      pydantic schema of the render run config

Nothing here imports from src.fusion_renderer or scripts.
"""

from . import color, fs, geometry, hashing, logging_config, profiler, validators
from .logging_config import log_context, push_context, setup_logging

__all__ = [
    'color',
    'fs',
    'geometry',
    'hashing',
    'logging_config',
    'profiler',
    'validators',
    'log_context',
    'push_context',
    'setup_logging',
]
