#!/usr/bin/env python3
"""Render the vinyl/cookie fusion artwork to a PNG.

Runs the full pipeline once at the requested pixel density, writes the PNG
and a small metadata file next to it.

Usage:
    # Defaults (720×720, outputs/artwork/vinyl-oreo-fusion.png)
    python scripts/render_artwork.py

    # High-density render (1440×1440 physical)
    python scripts/render_artwork.py --scale 2 --output_dir outputs/retina

    # From a run config
    python scripts/render_artwork.py --config configs/render_run.v1.yaml

Outputs:
    - vinyl-oreo-fusion.png: rendered artwork (RGB)
    - render_metadata.yaml: sizes, scale, PNG digest, pass timings

Exit codes:
    0 on success, 1 on failure
"""

import argparse
import logging
import sys
import time
from pathlib import Path
# Add project root to path for direct script execution
sys.path.insert(0, str(Path(__file__).parent.parent))

from src import __version__
from src.fusion_renderer.pipeline import PASSES, ArtworkSession
from src.fusion_renderer.surface import Surface, SurfaceError
from src.utils import fs, hashing, validators
from src.utils.logging_config import install_excepthook, push_context, setup_logging
from src.utils.profiler import PassTimings

logger = logging.getLogger(__name__)

METADATA_FILENAME = "render_metadata.yaml"


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the vinyl/cookie fusion artwork to PNG",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Run config YAML (render_run.v1 schema); defaults are used if omitted'
    )
    parser.add_argument(
        '--output_dir',
        type=str,
        default=None,
        help='Output directory (overrides the config)'
    )
    parser.add_argument(
        '--scale',
        type=float,
        default=None,
        help='Pixel-density scale in [1, 2] (overrides the config)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--json_logs',
        action='store_true',
        help='Write JSON-lines logs (to the configured log file or <output_dir>/render.log)'
    )
    return parser.parse_args(argv)


def build_metadata(
    session: ArtworkSession,
    png_bytes: bytes,
    run_cfg: validators.RunConfigV1,
    timings: PassTimings,
    elapsed: float
) -> dict:
    """Provenance record written next to the PNG."""
    surface = session.surface
    return {
        'version': __version__,
        'filename': session.filename,
        'logical_size': [session.size, session.size],
        'physical_size': [surface.width, surface.height],
        'device_scale': session.scale,
        'png_sha256': hashing.sha256_bytes(png_bytes),
        'png_bytes': len(png_bytes),
        'config_hash': hashing.hash_dict(run_cfg.model_dump(by_alias=True)),
        'passes': [name for name, _ in PASSES],
        'timings_ms': timings.as_ms(),
        'total_ms': round(elapsed * 1000.0, 3),
        'timestamp': time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime()),
    }


def main(argv=None) -> int:
    """CLI entrypoint."""
    args = parse_args(argv)

    try:
        run_cfg = validators.load_run_config(args.config) if args.config else validators.default_run_config()
        overrides = {}
        if args.output_dir is not None:
            overrides['output_dir'] = args.output_dir
        if args.scale is not None:
            overrides['device_scale'] = args.scale
        if overrides:
            run_cfg = validators.RunConfigV1(**{**run_cfg.model_dump(by_alias=True), **overrides})
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    output_dir = Path(run_cfg.output_dir)
    log_cfg = run_cfg.logging
    log_file = log_cfg.log_file
    if args.json_logs and not log_file:
        log_file = str(output_dir / "render.log")
    if log_file:
        fs.ensure_dir(Path(log_file).parent)
    setup_logging(
        log_level="DEBUG" if args.verbose else log_cfg.log_level,
        log_file=log_file,
        json=args.json_logs or log_cfg.json_format,
        color=log_cfg.color,
        context={"app": "render"}
    )
    install_excepthook()
    push_context(scale=run_cfg.device_scale)

    start = time.perf_counter()
    try:
        with ArtworkSession(filename=run_cfg.filename) as session:
            session.mount(Surface(), scale=run_cfg.device_scale)
            png_bytes = session.export_png()
            path = session.download(output_dir)
            elapsed = time.perf_counter() - start
            metadata = build_metadata(session, png_bytes, run_cfg, session.last_timings, elapsed)
        fs.atomic_yaml_dump(metadata, output_dir / METADATA_FILENAME)
    except (SurfaceError, RuntimeError, OSError) as e:
        logger.error(f"Render failed: {e}")
        return 1

    logger.info(f"Wrote {path} and {METADATA_FILENAME} in {elapsed:.2f} s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
