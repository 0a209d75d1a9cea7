"""Pydantic schema for render_run.v1.yaml.

A run config only tells the CLI host where to put the PNG, which device
pixel density to render at and how to log. Canvas size, seeds, palette and
text are fixed in the renderer and have no config keys.

Usage:
    from src.utils import validators

    run_cfg = validators.load_run_config("configs/render_run.v1.yaml")
    run_cfg = validators.default_run_config()
"""

from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

SCHEMA_ID = "render_run.v1"
DEFAULT_FILENAME = "vinyl-oreo-fusion.png"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ============================================================================
# RENDER RUN SCHEMA V1
# ============================================================================

class LoggingConfig(BaseModel):
    """Keyword arguments forwarded to setup_logging()."""
    model_config = ConfigDict(populate_by_name=True)

    log_level: str = Field("INFO", description="One of LOG_LEVELS, any case")
    log_file: Optional[str] = Field(None, description="Also log to this file")
    json_format: bool = Field(False, alias="json", description="File records as JSON lines")
    color: bool = Field(True, description="Colored console level names")

    @field_validator('log_level')
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level {v!r} is not one of {', '.join(LOG_LEVELS)}")
        return level


class RunConfigV1(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field(SCHEMA_ID, alias="schema")
    output_dir: str = Field("outputs/artwork", description="PNG and metadata land here")
    filename: str = Field(DEFAULT_FILENAME, description="Name of the downloaded PNG")
    device_scale: float = Field(1.0, ge=1.0, le=2.0, description="Device pixel density")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator('schema_version')
    @classmethod
    def expected_schema(cls, v: str) -> str:
        if v != SCHEMA_ID:
            raise ValueError(f"Expected schema '{SCHEMA_ID}', got '{v}'")
        return v

    @field_validator('filename')
    @classmethod
    def bare_png_name(cls, v: str) -> str:
        if Path(v).suffix.lower() != '.png':
            raise ValueError(f"filename {v!r} needs a .png extension")
        if Path(v).name != v:
            raise ValueError(f"filename {v!r} must be a bare name without directories")
        return v


def default_run_config() -> RunConfigV1:
    return RunConfigV1()


def load_run_config(path: Union[str, Path]) -> RunConfigV1:
    """Read and validate a run config.

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    ValueError
        If the YAML is malformed, is not a mapping, or fails validation;
        the message names the file
    """
    from . import fs

    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Run config not found: {path}")
    try:
        data = fs.load_yaml(path)
    except yaml.YAMLError as e:
        raise ValueError(str(e)) from e
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level, got {type(data).__name__}")
    try:
        return RunConfigV1(**data)
    except ValidationError as e:
        raise ValueError(f"{path}: invalid run config\n{e}") from e
