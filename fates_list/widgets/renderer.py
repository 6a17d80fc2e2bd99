"""Widget composition engine.

Builds the fixed-layout Fates List bot card: logo and title in the bottom
left corner, the bot's circular avatar in the middle and its username
underneath.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from PIL import Image

from fates_list.shared.config import Settings
from fates_list.shared.config import get_settings
from fates_list.widgets import codec
from fates_list.widgets.assets import CANVAS_SIZE
from fates_list.widgets.assets import CanvasPool
from fates_list.widgets.assets import RenderContext
from fates_list.widgets.assets import get_render_context
from fates_list.widgets.imgtools import circle_mask
from fates_list.widgets.imgtools import copy_into
from fates_list.widgets.imgtools import draw_label
from fates_list.widgets.imgtools import fit_image
from fates_list.widgets.imgtools import resize
from fates_list.widgets.models import Label
from fates_list.widgets.models import WidgetOptions
from fates_list.widgets.models import WidgetUser

logger = logging.getLogger(__name__)

TITLE = "Fates List"
TITLE_SIZE = 25                 # Size of title and username text, in points
TEXT_INDENT = 10                # Gap between the left canvas edge, the logo and the title
EXTRA_TOP_INDENT = 8            # Extra gap between the logo and the bottom edge
DPI = 72
SPACING = 1.25                  # Line height as a multiple of text size
AVATAR_NORMALIZED_SIZE = 512
AVATAR_SCALE_FACTOR = 4         # 512 / 4 = 128px final avatar


def _centered(outer: int, inner: int) -> int:
    """Offset that centres a span of length ``inner`` inside ``outer``."""
    return outer // 2 - inner // 2


class WidgetRenderer:
    """Renders bot widgets from a shared, read-only ``RenderContext``.

    Each call to ``draw_widget`` owns its canvas for the whole render. By
    default a fresh canvas is allocated per call; when a ``CanvasPool`` is
    supplied, ``render`` borrows canvases from it instead.
    """

    def __init__(self, context: RenderContext, pool: Optional[CanvasPool] = None):
        self.context = context
        self.pool = pool

    def draw_widget(
        self,
        user: WidgetUser,
        options: Optional[WidgetOptions] = None,
        canvas: Optional[Image.Image] = None
    ) -> Image.Image:
        """Compose the widget for a user.

        Args:
            user: Bot whose avatar and username are drawn
            options: Rendering options (background colour override)
            canvas: Canvas to draw on; a new one is allocated if omitted.
                It is always cleared first.

        Returns:
            The finished canvas

        Raises:
            WidgetError: If any drawing step fails. The canvas is then in a
                partially drawn state and must not be returned to callers.
        """
        options = options or WidgetOptions()
        background = options.background_color()

        if canvas is None:
            canvas = Image.new("RGBA", CANVAS_SIZE, background)
        else:
            canvas.paste(background, (0, 0, canvas.width, canvas.height))

        logger.debug(f"Drawing widget for {user.id} ({user.username})")

        logo = self.context.logo
        logo_y = canvas.height - logo.height - TEXT_INDENT - EXTRA_TOP_INDENT
        copy_into(canvas, TEXT_INDENT, logo_y, logo)

        # Nudged up by an eighth of the logo height so the title lines up with the logo's centre
        draw_label(canvas, Label(
            font=self.context.font,
            lines=[TITLE],
            x=TEXT_INDENT + logo.width + TEXT_INDENT,
            y=logo_y - logo.height // 8,
            size=TITLE_SIZE,
            dpi=DPI,
            spacing=SPACING,
        ))

        avatar = fit_image(user.avatar, AVATAR_NORMALIZED_SIZE, AVATAR_NORMALIZED_SIZE)
        avatar = circle_mask(resize(avatar, AVATAR_SCALE_FACTOR), edge_color=background)

        avatar_x = _centered(canvas.width, avatar.width)
        avatar_y = _centered(canvas.height, avatar.height)
        copy_into(canvas, avatar_x, avatar_y, avatar)

        draw_label(canvas, Label(
            font=self.context.font,
            lines=[user.username],
            x=avatar_x,
            y=avatar_y + (avatar.height // 2) * 2,
            size=TITLE_SIZE,
            dpi=DPI,
            spacing=SPACING,
        ))

        return canvas

    def render(
        self,
        user: WidgetUser,
        options: Optional[WidgetOptions] = None,
        fmt: Optional[str] = None,
        *,
        webp_lossless: bool = False,
        webp_quality: int = 90
    ) -> Tuple[bytes, str]:
        """Draw and encode a widget.

        When a pool is attached, the canvas goes back to it only after a
        successful render. A render that raises leaves its canvas half drawn,
        so that canvas is dropped instead of released.

        Args:
            user: Bot to render
            options: Rendering options
            fmt: Requested format; "png" gives PNG, anything else WEBP
            webp_lossless: Use lossless WEBP compression
            webp_quality: Quality for lossy WEBP output

        Returns:
            Tuple of (encoded bytes, content type)
        """
        if self.pool is None:
            image = self.draw_widget(user, options)
            return codec.encode_for_format(
                image, fmt, webp_lossless=webp_lossless, webp_quality=webp_quality
            )

        canvas = self.pool.checkout()
        image = self.draw_widget(user, options, canvas=canvas)
        result = codec.encode_for_format(
            image, fmt, webp_lossless=webp_lossless, webp_quality=webp_quality
        )
        self.pool.release(canvas)
        return result


def create_renderer(settings: Optional[Settings] = None) -> WidgetRenderer:
    """Build a renderer on the process-wide render context.

    A canvas pool is attached when ``widget_canvas_pool_size`` is non-zero.
    """
    settings = settings or get_settings()
    pool = None
    if settings.widget_canvas_pool_size:
        pool = CanvasPool(max_size=settings.widget_canvas_pool_size)
    return WidgetRenderer(get_render_context(), pool=pool)
