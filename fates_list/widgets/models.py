"""Data models for widget rendering.

Immutable dataclasses passed between the avatar collaborator, the renderer
and the image primitives.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from dataclasses import field
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

from PIL import Image, ImageColor

from fates_list.widgets import codec

if TYPE_CHECKING:
    from fates_list.widgets.assets import FontAsset

logger = logging.getLogger(__name__)

RGBA = Tuple[int, int, int, int]

BLACK: RGBA = (0, 0, 0, 255)
WHITE: RGBA = (255, 255, 255, 255)


@dataclass(frozen=True)
class Label:
    """A positioned, multi-line text drawing instruction.

    ``size`` is in points and converted to pixels with ``dpi``; each line
    advances the cursor by ``size * spacing`` points.
    """

    font: FontAsset
    lines: Sequence[str]
    x: int
    y: int
    size: float = 25.0
    dpi: float = 72.0
    spacing: float = 1.25
    color: RGBA = WHITE

    @property
    def pixel_size(self) -> int:
        """Font size in pixels at the label's DPI."""
        return max(1, round(self.size * self.dpi / 72))


@dataclass(frozen=True)
class WidgetUser:
    """A bot (or user) to draw on a widget.

    The avatar is decoded before the record is built; the renderer treats
    it as read-only.
    """

    id: str
    username: str
    avatar: Image.Image = field(repr=False, compare=False)
    avatar_url: Optional[str] = None
    discriminator: Optional[str] = None
    bot: bool = True

    def __post_init__(self):
        if not str(self.id).strip():
            raise ValueError("WidgetUser id is required")

    @classmethod
    def from_avatar_bytes(
        cls,
        id: str,
        username: str,
        avatar_bytes: bytes,
        **kwargs
    ) -> WidgetUser:
        """Build a user record by decoding raw avatar bytes.

        Raises:
            DecodeError: If the avatar bytes are not a supported image
        """
        return cls(id=id, username=username, avatar=codec.decode(avatar_bytes), **kwargs)


@dataclass(frozen=True)
class WidgetOptions:
    """Per-request rendering options."""

    bgcolor: Optional[str] = None

    def background_color(self) -> RGBA:
        """Resolve the background override, defaulting to black.

        Accepts anything Pillow's colour parser understands ("red",
        "#1e1e2e", "rgb(10, 20, 30)", ...).
        """
        if not self.bgcolor:
            return BLACK

        try:
            color = ImageColor.getcolor(self.bgcolor.strip(), "RGBA")
        except ValueError:
            logger.debug(f"Unrecognized background color {self.bgcolor!r}, using black")
            return BLACK

        return color
