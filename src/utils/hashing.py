"""SHA-256 digests for render provenance.

The CLI records the digest of the encoded PNG and of the effective run
config in render_metadata.yaml; tests compare digests of repeated renders
to check byte-identical output.

All functions return 64-character lowercase hex strings.
"""

import hashlib
import json
from pathlib import Path
from typing import Union

import numpy as np

CHUNK_SIZE = 1 << 20


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def sha256_file(path: Union[str, Path], chunk_size: int = CHUNK_SIZE) -> str:
    """Digest of a file's contents, read in chunks.

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Cannot hash missing file: {path}")
    digest = hashlib.sha256()
    with path.open('rb') as f:
        for chunk in iter(lambda: f.read(chunk_size), b''):
            digest.update(chunk)
    return digest.hexdigest()


def sha256_array(a: np.ndarray) -> str:
    """Digest of a pixel buffer.

    dtype and shape are mixed in before the raw bytes, so a float32 surface
    and its uint8 export, or two reshapes of one buffer, never collide.
    """
    a = np.ascontiguousarray(a)
    digest = hashlib.sha256(f"{a.dtype.str}:{a.shape}|".encode('utf-8'))
    digest.update(a.data)
    return digest.hexdigest()


def hash_dict(d: dict) -> str:
    """Digest of a JSON-serializable mapping, independent of key order."""
    canonical = json.dumps(d, sort_keys=True, separators=(',', ':'), default=str)
    return sha256_bytes(canonical.encode('utf-8'))
