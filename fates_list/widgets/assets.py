"""Process-wide rendering assets and canvas pooling.

The font and logo are loaded once and shared read-only by every render.
They live on a ``RenderContext`` that is built explicitly and passed into
the renderer; ``get_render_context`` keeps one lazily initialised instance
for the whole process.
"""

from __future__ import annotations

import io
import logging
import threading
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from PIL import Image, ImageFont

from fates_list.shared.config import Settings
from fates_list.shared.config import get_settings
from fates_list.widgets import codec
from fates_list.widgets.exceptions import AssetError
from fates_list.widgets.exceptions import WidgetError
from fates_list.widgets.imgtools import fit_image

logger = logging.getLogger(__name__)

CANVAS_SIZE = (640, 480)
LOGO_SIZE = (24, 24)


@dataclass(frozen=True)
class FontAsset:
    """An immutable TrueType/OpenType font.

    Faces are built per pixel size on first use and cached; the raw font
    data never changes after loading.
    """

    data: bytes = field(repr=False)
    name: str = "font"
    _faces: Dict[int, ImageFont.FreeTypeFont] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def face(self, pixel_size: int) -> ImageFont.FreeTypeFont:
        """Get the font face for a pixel size, building it once."""
        face = self._faces.get(pixel_size)
        if face is not None:
            return face

        with self._lock:
            face = self._faces.get(pixel_size)
            if face is None:
                face = ImageFont.truetype(
                    io.BytesIO(self.data),
                    pixel_size,
                    layout_engine=ImageFont.Layout.BASIC
                )
                self._faces[pixel_size] = face
        return face


@dataclass(frozen=True)
class RenderContext:
    """Read-only assets shared by all widget renders."""

    font: FontAsset
    logo: Image.Image = field(repr=False)

    @classmethod
    def load(
        cls,
        font_path: Union[str, Path],
        logo_path: Union[str, Path],
        logo_size: Tuple[int, int] = LOGO_SIZE
    ) -> RenderContext:
        """Load the font and logo from disk.

        The logo is decoded and pre-scaled to ``logo_size`` once here so
        renders never touch the file on disk.

        Raises:
            AssetError: If either file is missing or cannot be parsed
        """
        font_path = Path(font_path)
        logo_path = Path(logo_path)

        try:
            font_data = font_path.read_bytes()
            font = FontAsset(data=font_data, name=font_path.name)
            # Parse eagerly so a corrupt font fails at startup, not mid-render
            font.face(logo_size[1])
        except OSError as e:
            logger.error(f"Could not load widget font {font_path}: {e}")
            raise AssetError("font", str(font_path), str(e)) from e

        try:
            logo = fit_image(codec.decode(logo_path.read_bytes()), *logo_size)
        except (OSError, WidgetError) as e:
            logger.error(f"Could not load widget logo {logo_path}: {e}")
            raise AssetError("logo", str(logo_path), str(e)) from e

        logger.info(f"Loaded widget assets: font={font_path}, logo={logo_path} ({logo.width}x{logo.height})")
        return cls(font=font, logo=logo)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> RenderContext:
        """Load assets from the configured paths."""
        settings = settings or get_settings()
        return cls.load(settings.widget_font_path, settings.widget_logo_path)


# Global instance for easy access
_context: Optional[RenderContext] = None
_context_lock = threading.Lock()


def get_render_context() -> RenderContext:
    """Get or create the process-wide render context.

    Initialisation runs exactly once even when many threads ask at the
    same time; a failure propagates and leaves the context unset.
    """
    global _context
    if _context is None:
        with _context_lock:
            if _context is None:
                _context = RenderContext.from_settings()
    return _context


def reset_render_context() -> None:
    """Drop the process-wide render context (used by tests)."""
    global _context
    with _context_lock:
        _context = None


class CanvasPool:
    """Bounded pool of reusable widget canvases.

    A canvas checked out of the pool belongs to one render until it is
    released. Canvases are cleared on checkout, never on release, so a
    canvas left half drawn by a failed render is still safe to reuse.
    """

    def __init__(self, max_size: int = 4, size: Tuple[int, int] = CANVAS_SIZE):
        """Initialize the pool.

        Args:
            max_size: Maximum number of idle canvases kept around
            size: Canvas dimensions
        """
        self.max_size = max_size
        self.size = size
        self._idle: List[Image.Image] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._idle)

    def checkout(self, color: Tuple[int, int, int, int] = (0, 0, 0, 255)) -> Image.Image:
        """Take a canvas from the pool, fully cleared to ``color``."""
        with self._lock:
            canvas = self._idle.pop() if self._idle else None

        if canvas is None:
            logger.debug(f"Canvas pool empty, allocating {self.size[0]}x{self.size[1]} canvas")
            return Image.new("RGBA", self.size, color)

        canvas.paste(color, (0, 0, canvas.width, canvas.height))
        return canvas

    def release(self, canvas: Image.Image) -> None:
        """Return a canvas to the pool; extras beyond max_size are dropped."""
        if canvas.size != self.size or canvas.mode != "RGBA":
            return

        with self._lock:
            if len(self._idle) < self.max_size:
                self._idle.append(canvas)
