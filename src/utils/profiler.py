"""Wall-clock timing for render passes.

Provides:
    - timer(): context manager reporting (name, seconds) to a sink
    - PassTimings: ordered sink that collects one duration per pass

The pipeline wraps every pass in timer() with a PassTimings sink; the CLI
copies the collected durations into render_metadata.yaml.
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

Sink = Callable[[str, float], None]


@contextmanager
def timer(name: str, sink: Optional[Sink] = None) -> Iterator[None]:
    """Time the enclosed block.

    The duration is reported even when the block raises. Without a sink it
    is printed as ``"<name>: <seconds> s"``.

    Examples
    --------
    >>> with timer("background"):
    ...     paint_background(rc)
    background: 0.012 s
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if sink is None:
            print(f"{name}: {elapsed:.3f} s")
        else:
            sink(name, elapsed)


class PassTimings:
    """Collects per-pass durations in execution order.

    Parameters
    ----------
    logger : logging.Logger, optional
        If given, every recorded duration is also logged at DEBUG
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._seconds: Dict[str, float] = {}
        self._logger = logger

    def __call__(self, name: str, elapsed: float) -> None:
        self._seconds[name] = elapsed
        if self._logger is not None:
            self._logger.debug(f"Pass {name}: {elapsed * 1000:.1f} ms")

    def __len__(self) -> int:
        return len(self._seconds)

    @property
    def seconds(self) -> Dict[str, float]:
        return dict(self._seconds)

    @property
    def total(self) -> float:
        return sum(self._seconds.values())

    def as_ms(self, ndigits: int = 3) -> Dict[str, float]:
        """Durations in milliseconds, rounded for reports."""
        return {name: round(t * 1000.0, ndigits) for name, t in self._seconds.items()}
