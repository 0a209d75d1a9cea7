"""Tests for the render CLI (scripts/render_artwork.py).

Test suites:
1. Argument parsing
2. Successful runs (PNG + metadata, config file, JSON logs)
3. Failures (missing config, invalid overrides) return exit code 1

Fixtures:
- restore_logging: puts the root logger back after main() reconfigures it
"""

import json
import logging
import sys
from pathlib import Path

import pytest
import yaml

from scripts import render_artwork as cli
from src.utils import hashing
from src.utils.logging_config import pop_context


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def restore_logging():
    """Undo main()'s logging side effects (handlers, level, context, excepthook)."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    excepthook = sys.excepthook
    yield
    sys.excepthook = excepthook
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    pop_context()


def write_config(path: Path, **fields) -> Path:
    data = {
        'schema': 'render_run.v1',
        'output_dir': 'outputs/artwork',
        'filename': 'vinyl-oreo-fusion.png',
        'device_scale': 1.0,
        'logging': {'log_level': 'INFO', 'log_file': None, 'json': False, 'color': False},
    }
    data.update(fields)
    path.write_text(yaml.safe_dump(data))
    return path


# ============================================================================
# ARGUMENTS
# ============================================================================

def test_parse_args_defaults():
    args = cli.parse_args([])
    assert args.config is None
    assert args.output_dir is None
    assert args.scale is None
    assert not args.verbose
    assert not args.json_logs


def test_parse_args_overrides():
    args = cli.parse_args(["--output_dir", "out", "--scale", "2", "-v", "--json_logs"])
    assert args.output_dir == "out"
    assert args.scale == 2.0
    assert args.verbose
    assert args.json_logs


# ============================================================================
# SUCCESSFUL RUNS
# ============================================================================

def test_main_writes_png_and_metadata(tmp_path):
    assert cli.main(["--output_dir", str(tmp_path), "--scale", "1"]) == 0

    png = tmp_path / "vinyl-oreo-fusion.png"
    assert png.exists()
    metadata = yaml.safe_load((tmp_path / cli.METADATA_FILENAME).read_text())
    assert metadata['filename'] == "vinyl-oreo-fusion.png"
    assert metadata['logical_size'] == [720, 720]
    assert metadata['physical_size'] == [720, 720]
    assert metadata['device_scale'] == 1.0
    assert metadata['png_sha256'] == hashing.sha256_file(png)
    assert metadata['png_bytes'] == png.stat().st_size
    assert metadata['passes'] == [
        "background", "shadow", "vinyl_half", "cookie_half", "specular_highlight", "label_text"
    ]
    assert set(metadata['timings_ms']) == set(metadata['passes'])


def test_main_from_config(tmp_path):
    out = tmp_path / "renders"
    cfg = write_config(tmp_path / "run.yaml", output_dir=str(out), filename="custom.png")
    assert cli.main(["--config", str(cfg)]) == 0
    assert (out / "custom.png").exists()
    assert not (out / "vinyl-oreo-fusion.png").exists()


def test_main_json_logs(tmp_path):
    assert cli.main(["--output_dir", str(tmp_path), "--json_logs"]) == 0
    log_file = tmp_path / "render.log"
    assert log_file.exists()
    records = [json.loads(line) for line in log_file.read_text().splitlines() if line.strip()]
    assert records
    assert all(r['app'] == "render" for r in records)
    assert any("Rendered" in r['msg'] for r in records)


# ============================================================================
# FAILURES
# ============================================================================

def test_main_missing_config(tmp_path, capsys):
    assert cli.main(["--config", str(tmp_path / "nope.yaml")]) == 1
    assert "not found" in capsys.readouterr().err


def test_main_scale_out_of_range(tmp_path, capsys):
    assert cli.main(["--output_dir", str(tmp_path), "--scale", "5"]) == 1
    assert "Error" in capsys.readouterr().err
    assert not (tmp_path / "vinyl-oreo-fusion.png").exists()


def test_main_bad_schema(tmp_path):
    cfg = write_config(tmp_path / "run.yaml", schema="render_run.v0")
    assert cli.main(["--config", str(cfg)]) == 1
