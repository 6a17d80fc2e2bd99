"""Tests for the widget composition engine."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest
from PIL import Image

from fates_list.shared.config import override_settings
from fates_list.widgets import codec
from fates_list.widgets.assets import CanvasPool
from fates_list.widgets.assets import FontAsset
from fates_list.widgets.assets import RenderContext
from fates_list.widgets.exceptions import DecodeError
from fates_list.widgets.exceptions import RenderError
from fates_list.widgets.models import BLACK
from fates_list.widgets.models import WidgetOptions
from fates_list.widgets.models import WidgetUser
from fates_list.widgets.renderer import EXTRA_TOP_INDENT
from fates_list.widgets.renderer import TEXT_INDENT
from fates_list.widgets.renderer import WidgetRenderer
from fates_list.widgets.renderer import create_renderer

WIDTH, HEIGHT = 640, 480
LOGO_COLOR = (0, 128, 255, 255)
RED = (255, 0, 0, 255)


def _is_red(pixel) -> bool:
    r, g, b, a = pixel
    return r >= 250 and g <= 5 and b <= 5 and a == 255


@pytest.fixture
def renderer(render_context) -> WidgetRenderer:
    return WidgetRenderer(render_context)


class TestDrawWidget:
    """Test the fixed widget layout."""

    def test_end_to_end_layout(self, renderer, widget_user):
        """Red avatar in the middle, logo bottom left, black corners."""
        image = renderer.draw_widget(widget_user)

        assert image.size == (WIDTH, HEIGHT)
        assert _is_red(image.getpixel((WIDTH // 2, HEIGHT // 2)))

        logo_y = HEIGHT - 24 - TEXT_INDENT - EXTRA_TOP_INDENT
        assert image.getpixel((TEXT_INDENT + 12, logo_y + 12)) == LOGO_COLOR

        for corner in [(0, 0), (WIDTH - 1, 0), (0, HEIGHT - 1), (WIDTH - 1, HEIGHT - 1)]:
            assert image.getpixel(corner) == BLACK

    @pytest.mark.parametrize("bgcolor, expected", [
        (None, BLACK),
        ("#112233", (0x11, 0x22, 0x33, 255)),
    ])
    def test_avatar_is_circular(self, renderer, widget_user, bgcolor, expected):
        """The avatar's bounding square corners keep the background colour."""
        image = renderer.draw_widget(widget_user, WidgetOptions(bgcolor=bgcolor))
        left, top = WIDTH // 2 - 64, HEIGHT // 2 - 64

        assert _is_red(image.getpixel((left + 64, top + 2)))
        for corner in [(left, top), (left + 127, top), (left, top + 127), (left + 127, top + 127)]:
            assert image.getpixel(corner) == expected

    def test_png_has_no_transparent_pixels(self, renderer, widget_user):
        """Encoded widgets are fully opaque around the avatar."""
        data, _ = renderer.render(widget_user, WidgetOptions(bgcolor="#112233"), fmt="png")

        assert codec.decode(data).getchannel("A").getextrema() == (255, 255)

    def test_title_and_username_are_drawn(self, renderer, widget_user):
        image = renderer.draw_widget(widget_user)
        grey = image.convert("L")

        title_box = grey.crop((TEXT_INDENT + 24 + TEXT_INDENT, HEIGHT - 60, 250, HEIGHT))
        username_box = grey.crop((WIDTH // 2 - 64, HEIGHT // 2 + 64, WIDTH // 2 + 100, HEIGHT // 2 + 110))

        assert title_box.getbbox() is not None
        assert username_box.getbbox() is not None

    def test_background_override(self, renderer, widget_user):
        image = renderer.draw_widget(widget_user, WidgetOptions(bgcolor="#112233"))

        assert image.getpixel((0, 0)) == (0x11, 0x22, 0x33, 255)

    def test_unparseable_background_falls_back_to_black(self, renderer, widget_user):
        image = renderer.draw_widget(widget_user, WidgetOptions(bgcolor="not-a-colour"))

        assert image.getpixel((0, 0)) == BLACK

    def test_fresh_canvas_per_render(self, renderer, widget_user):
        first = renderer.draw_widget(widget_user)
        second = renderer.draw_widget(widget_user)

        assert first is not second
        assert first.tobytes() == second.tobytes()

    def test_supplied_canvas_is_fully_cleared(self, renderer, widget_user):
        """Leftover pixels from an earlier render never leak through."""
        dirty = Image.new("RGBA", (WIDTH, HEIGHT), (255, 255, 255, 255))

        image = renderer.draw_widget(widget_user, canvas=dirty)

        assert image is dirty
        assert image.tobytes() == renderer.draw_widget(widget_user).tobytes()

    def test_non_square_avatar(self, renderer):
        user = WidgetUser(id="1", username="wide", avatar=Image.new("RGBA", (900, 300), RED))

        image = renderer.draw_widget(user)

        assert _is_red(image.getpixel((WIDTH // 2, HEIGHT // 2)))

    def test_zero_byte_avatar(self):
        with pytest.raises(DecodeError):
            WidgetUser.from_avatar_bytes("1", "broken", b"")

    def test_font_failure_aborts_render(self, render_context, widget_user):
        context = RenderContext(font=FontAsset(data=b"broken"), logo=render_context.logo)

        with pytest.raises(RenderError):
            WidgetRenderer(context).draw_widget(widget_user)

    def test_assets_are_not_mutated(self, renderer, render_context, widget_user):
        logo_before = render_context.logo.tobytes()
        avatar_before = widget_user.avatar.tobytes()

        renderer.draw_widget(widget_user, WidgetOptions(bgcolor="white"))

        assert render_context.logo.tobytes() == logo_before
        assert widget_user.avatar.tobytes() == avatar_before


class TestRender:
    """Test drawing plus encoding."""

    def test_png(self, renderer, widget_user):
        data, content_type = renderer.render(widget_user, fmt="png")

        assert content_type == "image/png"
        assert _is_red(codec.decode(data).getpixel((WIDTH // 2, HEIGHT // 2)))

    def test_webp_by_default(self, renderer, widget_user):
        data, content_type = renderer.render(widget_user)

        assert content_type == "image/webp"
        assert codec.detect(data) == "webp"
        assert codec.decode(data).size == (WIDTH, HEIGHT)

    def test_pooled_canvas_is_returned(self, render_context, widget_user):
        pool = CanvasPool(max_size=2)
        renderer = WidgetRenderer(render_context, pool=pool)

        renderer.render(widget_user, fmt="png")
        assert len(pool) == 1

        data, _ = renderer.render(widget_user, WidgetOptions(bgcolor="blue"), fmt="png")
        assert len(pool) == 1
        assert codec.decode(data).getpixel((0, 0)) == (0, 0, 255, 255)

    def test_pooled_canvas_dropped_on_failure(self, render_context):
        pool = CanvasPool(max_size=2)
        context = RenderContext(font=FontAsset(data=b"broken"), logo=render_context.logo)
        user = WidgetUser(id="1", username="x", avatar=Image.new("RGBA", (64, 64), RED))

        with pytest.raises(RenderError):
            WidgetRenderer(context, pool=pool).render(user)

        assert len(pool) == 0

    def test_concurrent_renders_are_isolated(self, render_context):
        """Renders sharing one context never see each other's pixels."""
        renderer = WidgetRenderer(render_context)
        colors = [(255, 0, 0, 255), (0, 255, 0, 255), (0, 0, 255, 255), (255, 255, 0, 255)] * 3
        users = [
            WidgetUser(id=str(i), username=f"bot{i}", avatar=Image.new("RGBA", (256, 256), color))
            for i, color in enumerate(colors)
        ]

        with ThreadPoolExecutor(max_workers=4) as executor:
            images = list(executor.map(renderer.draw_widget, users))

        for color, image in zip(colors, images):
            assert image.getpixel((WIDTH // 2, HEIGHT // 2)) == color


class TestCreateRenderer:
    """Test the settings driven factory."""

    def test_without_pool(self, monkeypatch, render_context):
        monkeypatch.setattr(RenderContext, "from_settings", classmethod(lambda cls, settings=None: render_context))

        renderer = create_renderer(override_settings(environment="testing"))

        assert renderer.context is render_context
        assert renderer.pool is None

    def test_with_pool(self, monkeypatch, render_context):
        monkeypatch.setattr(RenderContext, "from_settings", classmethod(lambda cls, settings=None: render_context))

        renderer = create_renderer(override_settings(environment="testing", widget_canvas_pool_size=3))

        assert renderer.pool.max_size == 3
