"""Filesystem helpers for the render outputs and run configs.

The download step must never leave a truncated PNG behind for a viewer
watching the output directory, so every write goes through a sibling
temporary file that is fsynced and then renamed over the target.

Provides:
    - ensure_dir(): mkdir -p, returning the Path
    - atomic_write_bytes(): temp file in the target directory → fsync → rename
    - atomic_yaml_dump(): YAML text through atomic_write_bytes (order kept)
    - load_yaml(): safe_load with {} for an empty file

Usage:
    from src.utils import fs
    fs.atomic_write_bytes(out_dir / "vinyl-oreo-fusion.png", png_bytes)
    fs.atomic_yaml_dump(metadata, out_dir / "render_metadata.yaml")
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Union

import yaml

PathLike = Union[str, Path]


def ensure_dir(p: PathLike) -> Path:
    """Create a directory (and parents) if needed."""
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_bytes(path: PathLike, data: bytes) -> None:
    """Replace a file's contents in one step.

    Parameters
    ----------
    path : str or Path
        Target file; missing parent directories are created
    data : bytes
        New contents

    Raises
    ------
    RuntimeError
        If writing or renaming fails; the temporary file is removed
    """
    path = Path(path)
    directory = ensure_dir(path.parent)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".part", dir=directory)
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise RuntimeError(f"Could not write {path} atomically: {e}") from e


def atomic_yaml_dump(obj: Any, path: PathLike) -> None:
    """Write obj as block-style YAML, keeping mapping insertion order."""
    text = yaml.safe_dump(obj, default_flow_style=False, sort_keys=False, allow_unicode=True)
    atomic_write_bytes(path, text.encode('utf-8'))


def load_yaml(path: PathLike) -> Dict[str, Any]:
    """Parse a YAML file with safe_load.

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    yaml.YAMLError
        If the file is not valid YAML (message names the file)
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"YAML file not found: {path}")
    try:
        with path.open('r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e
