"""Render pipeline and host session.

render_artwork() runs the full one-shot pipeline: context setup followed by
every pass in PASSES order. There is no incremental update; a density change
reruns everything from setup.

ArtworkSession plays the host role around the pipeline:
    - mount(surface, scale): initial render
    - resize(scale): full rerender at the new density (ignored after close)
    - download(directory): writes the PNG once a render has completed
    - close(): releases the surface; later resize notifications are no-ops

Usage:
    from src.fusion_renderer.pipeline import ArtworkSession
    from src.fusion_renderer.surface import Surface

    with ArtworkSession() as session:
        session.mount(Surface(), scale=2.0)
        path = session.download("outputs/artwork")
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from src.utils import fs
from src.utils.logging_config import log_context
from src.utils.profiler import PassTimings, timer
from .context import CANVAS_SIZE, RenderContext, clamp_device_scale, setup_render_context
from .passes import (
    paint_background,
    paint_cookie_half,
    paint_label_text,
    paint_shadow,
    paint_specular_highlight,
    paint_vinyl_half,
)
from .surface import Surface, SurfaceError

logger = logging.getLogger(__name__)

OUTPUT_FILENAME = "vinyl-oreo-fusion.png"

PASSES: Tuple[Tuple[str, Callable[[RenderContext], None]], ...] = (
    ("background", paint_background),
    ("shadow", paint_shadow),
    ("vinyl_half", paint_vinyl_half),
    ("cookie_half", paint_cookie_half),
    ("specular_highlight", paint_specular_highlight),
    ("label_text", paint_label_text),
)


def render_artwork(
    surface: Optional[Surface],
    scale: Optional[float] = 1.0,
    size: int = CANVAS_SIZE,
    timings: Optional[PassTimings] = None
) -> Optional[RenderContext]:
    """Render the artwork onto a surface.

    Parameters
    ----------
    surface : Surface or None
        Drawing target; None aborts silently
    scale : float, optional
        Pixel-density scale, clamped to [1, 2]
    size : int
        Logical edge length, default 720
    timings : PassTimings, optional
        Receives one duration per pass; a fresh recorder logging at DEBUG
        is used when omitted

    Returns
    -------
    RenderContext or None
        Context used for the render, or None when aborted

    Raises
    ------
    SurfaceError
        If the backing buffer cannot be allocated
    """
    rc = setup_render_context(surface, scale, size)
    if rc is None:
        return None

    if timings is None:
        timings = PassTimings(logger)
    for name, paint in PASSES:
        with timer(name, sink=timings):
            paint(rc)
    return rc


class ArtworkSession:
    """Host controller: render triggers, download gate and teardown.

    Parameters
    ----------
    size : int
        Logical edge length, default 720
    filename : str
        Name of the downloaded PNG
    """

    def __init__(self, size: int = CANVAS_SIZE, filename: str = OUTPUT_FILENAME):
        self.size = size
        self.filename = filename
        self._surface: Optional[Surface] = None
        self._scale = 1.0
        self._rendered = False
        self._closed = False
        self._render_count = 0
        self.last_timings = PassTimings()

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def surface(self) -> Optional[Surface]:
        return self._surface

    @property
    def render_count(self) -> int:
        return self._render_count

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def download_enabled(self) -> bool:
        """True once a render has completed (and the session is open)."""
        return self._rendered and not self._closed

    def mount(self, surface: Optional[Surface], scale: Optional[float] = None) -> Optional[RenderContext]:
        """Attach a surface and run the initial render.

        scale=None keeps the current scale (1, or whatever an earlier
        resize() recorded).

        Raises
        ------
        RuntimeError
            If the session is closed
        SurfaceError
            If the backing buffer cannot be allocated
        """
        if self._closed:
            raise RuntimeError("Cannot mount a surface on a closed session")
        self._surface = surface
        if scale is not None:
            self._scale = clamp_device_scale(scale)
        return self._render()

    def resize(self, scale: Optional[float] = None) -> Optional[RenderContext]:
        """Handle a viewport/density change with a full rerender.

        Without a mounted surface the scale is only recorded for the next
        mount. After close() the call is ignored.
        """
        if self._closed:
            logger.debug("Resize ignored: session closed")
            return None
        if scale is not None:
            self._scale = clamp_device_scale(scale)
        if self._surface is None:
            logger.debug(f"Resize before mount: scale {self._scale:g} recorded")
            return None
        return self._render()

    def _render(self) -> Optional[RenderContext]:
        # Closed until this render completes.
        self._rendered = False
        timings = PassTimings(logger)
        with log_context(render=self._render_count + 1):
            try:
                rc = render_artwork(self._surface, self._scale, self.size, timings=timings)
            except SurfaceError as e:
                logger.error(f"Render failed: {e}")
                raise
            except Exception:
                logger.exception("Render failed in a paint pass")
                raise
            if rc is None:
                return None
            self._rendered = True
            self._render_count += 1
            self.last_timings = timings
            logger.info(
                f"Rendered {self._surface.width}x{self._surface.height} "
                f"(logical {self.size}, scale {self._scale:g}) in {timings.total * 1000:.0f} ms"
            )
        return rc

    def export_png(self) -> Optional[bytes]:
        """PNG bytes of the rendered surface, or None while download is disabled."""
        if not self.download_enabled:
            return None
        return self._surface.encode_png()

    def download(self, directory: Union[str, Path]) -> Optional[Path]:
        """Write the PNG into a directory.

        Returns
        -------
        Path or None
            Written file, or None (nothing written) while download is disabled
        """
        data = self.export_png()
        if data is None:
            logger.debug("Download requested before the first render; ignored")
            return None
        path = Path(directory) / self.filename
        fs.atomic_write_bytes(path, data)
        logger.info(f"Saved {path} ({len(data)} bytes)")
        return path

    def close(self) -> None:
        """Release the surface; later resize notifications are ignored."""
        self._closed = True
        self._surface = None

    def __enter__(self) -> 'ArtworkSession':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
