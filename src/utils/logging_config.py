"""Logging setup shared by the CLI, the render session and tests.

Every module logs through ``logging.getLogger(__name__)``; only entrypoints
call setup_logging(). Records carry contextual fields (app, scale, render
number) held in a ContextVar, so nested code never has to thread them
through call signatures.

Line formats:
    human: 2026-10-19T09:12:44.031Z | INFO     | app=render scale=2 | Rendered 1440x1440
    json:  {"t": "2026-10-19T09:12:44.031+00:00", "lvl": "INFO", "name": "...",
            "pid": 4242, "msg": "Rendered 1440x1440", "app": "render", "scale": 2.0}

Calling setup_logging() again replaces the handlers it installed earlier;
handlers added by anyone else (pytest's capture, for instance) are left
alone.

Usage:
    from src.utils.logging_config import setup_logging, push_context

    setup_logging(log_level="DEBUG", log_file="outputs/render.log", json=True,
                  context={"app": "render"})
    push_context(scale=2.0)
"""

import contextvars
import json as json_lib
import logging
import logging.handlers
import os
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

FORMAT_MODES = ("human", "json")

_fields: contextvars.ContextVar = contextvars.ContextVar('log_fields', default={})
_installed: List[logging.Handler] = []


class ContextFormatter(logging.Formatter):
    """Single-line formatter that appends the current context fields."""

    LEVEL_COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, fmt_mode: str = "human", use_color: bool = False):
        super().__init__()
        if fmt_mode not in FORMAT_MODES:
            raise ValueError(f"Unknown format mode {fmt_mode!r}; expected one of {FORMAT_MODES}")
        self.fmt_mode = fmt_mode
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        when = datetime.fromtimestamp(record.created, tz=timezone.utc)
        fields = _fields.get()
        if self.fmt_mode == "json":
            return self._json_line(record, when, fields)
        return self._human_line(record, when, fields)

    def _json_line(self, record: logging.LogRecord, when: datetime, fields: dict) -> str:
        payload = {
            't': when.isoformat(timespec='milliseconds'),
            'lvl': record.levelname,
            'name': record.name,
            'pid': os.getpid(),
            'msg': record.getMessage(),
            **fields,
        }
        if record.exc_info:
            payload['exc'] = self.formatException(record.exc_info)
        return json_lib.dumps(payload, default=str)

    def _human_line(self, record: logging.LogRecord, when: datetime, fields: dict) -> str:
        level = f"{record.levelname:<8}"
        if self.use_color:
            level = f"{self.LEVEL_COLORS.get(record.levelname, '')}{level}{self.RESET}"
        stamp = when.strftime('%Y-%m-%dT%H:%M:%S.') + f"{when.microsecond // 1000:03d}Z"

        head = [stamp, level]
        if fields:
            head.append(' '.join(f"{k}={v}" for k, v in fields.items()))
        line = ' | '.join(head) + ' | ' + record.getMessage()
        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


def _file_handler(log_file: str, rotate: Optional[Dict[str, Any]], json: bool) -> logging.Handler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    mode = (rotate or {}).get('mode')
    if mode is None:
        handler = logging.FileHandler(log_file, encoding='utf-8')
    elif mode == 'size':
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=rotate.get('max_bytes', 10_000_000),
            backupCount=rotate.get('backup_count', 3),
            encoding='utf-8'
        )
    elif mode == 'time':
        handler = logging.handlers.TimedRotatingFileHandler(
            log_file,
            when=rotate.get('when', 'D'),
            interval=rotate.get('interval', 1),
            backupCount=rotate.get('backup_count', 7),
            encoding='utf-8'
        )
    else:
        raise ValueError(f"Unknown rotation mode {mode!r}; use 'size' or 'time'")
    handler.setFormatter(ContextFormatter("json" if json else "human"))
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    rotate: Optional[Dict[str, Any]] = None,
    capture_warnings: bool = True,
    quiet_libs: Optional[List[str]] = None,
    context: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Configure the root logger.

    Parameters
    ----------
    log_level : str
        Root level name ("DEBUG" … "CRITICAL")
    log_file : str, optional
        Also log to this file (parents created)
    json : bool
        JSON lines in the file; the console always uses the human format
    color : bool
        Colored level names on the console when stderr is a terminal
    to_stderr : bool
        Attach a console handler
    rotate : dict, optional
        ``{"mode": "size", "max_bytes": ..., "backup_count": ...}`` or
        ``{"mode": "time", "when": "D", "interval": 1, "backup_count": ...}``
    capture_warnings : bool
        Route ``warnings.warn`` through the ``py.warnings`` logger
    quiet_libs : list of str, optional
        Loggers raised to WARNING; defaults to ["PIL"]
    context : dict, optional
        Fields pushed onto the context for every later record

    Returns
    -------
    dict
        ``{"handlers": [...]}``, the handlers installed by this call

    Raises
    ------
    ValueError
        For an unknown level or rotation mode
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    root = logging.getLogger()
    while _installed:
        handler = _installed.pop()
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)

    if to_stderr:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ContextFormatter("human", use_color=color and sys.stderr.isatty()))
        _installed.append(console)
    if log_file:
        _installed.append(_file_handler(log_file, rotate, json))
    for handler in _installed:
        root.addHandler(handler)

    for name in quiet_libs if quiet_libs is not None else ["PIL"]:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.captureWarnings(capture_warnings)
    if context:
        push_context(**context)

    return {'handlers': list(_installed)}


def push_context(**fields) -> None:
    """Add (or overwrite) contextual fields on every later record."""
    _fields.set({**_fields.get(), **fields})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Drop the named fields, or every field when keys is None."""
    if keys is None:
        _fields.set({})
        return
    _fields.set({k: v for k, v in _fields.get().items() if k not in keys})


@contextmanager
def log_context(**fields) -> Iterator[None]:
    """Scope contextual fields to a block, restoring the previous ones after."""
    token = _fields.set({**_fields.get(), **fields})
    try:
        yield
    finally:
        _fields.reset(token)


def install_excepthook() -> None:
    """Log uncaught exceptions at CRITICAL before the interpreter exits.

    KeyboardInterrupt keeps the default hook.
    """
    def hook(exc_type, exc_value, exc_tb):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        logging.getLogger(__name__).critical("Uncaught exception", exc_info=(exc_type, exc_value, exc_tb))

    sys.excepthook = hook
