"""Test configuration and fixtures for the Fates List widget renderer."""

from __future__ import annotations

import io
from typing import Callable, Tuple

import pytest
from PIL import Image

from fates_list.shared.config import RESOURCES_PATH
from fates_list.shared.config import Settings
from fates_list.shared.config import override_settings
from fates_list.widgets.assets import FontAsset
from fates_list.widgets.assets import RenderContext
from fates_list.widgets.assets import reset_render_context
from fates_list.widgets.imgtools import fit_image
from fates_list.widgets.models import WidgetUser

LOGO_COLOR = (0, 128, 255, 255)
RED = (255, 0, 0, 255)
BLACK = (0, 0, 0, 255)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings."""
    return override_settings(
        environment="testing",
        debug=True,
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def font_asset() -> FontAsset:
    """Font shipped with the widget resources."""
    return FontAsset(data=(RESOURCES_PATH / "font.ttf").read_bytes(), name="font.ttf")


@pytest.fixture
def render_context(font_asset) -> RenderContext:
    """Fresh render context with a solid-colour logo for each test."""
    logo = fit_image(Image.new("RGBA", (96, 96), LOGO_COLOR), 24, 24)
    return RenderContext(font=font_asset, logo=logo)


@pytest.fixture
def make_image_bytes() -> Callable[..., bytes]:
    """Factory for solid-colour encoded images."""

    def _make(
        color: Tuple[int, ...] = RED,
        size: Tuple[int, int] = (512, 512),
        fmt: str = "PNG"
    ) -> bytes:
        mode = "RGBA" if fmt in ("PNG", "WEBP") else "RGB"
        image = Image.new(mode, size, color[:len(mode)])
        buffer = io.BytesIO()
        image.save(buffer, format=fmt)
        return buffer.getvalue()

    return _make


@pytest.fixture
def red_avatar_png(make_image_bytes) -> bytes:
    """512x512 opaque red PNG avatar."""
    return make_image_bytes(RED, (512, 512))


@pytest.fixture
def widget_user(red_avatar_png) -> WidgetUser:
    """Bot with a red avatar."""
    return WidgetUser.from_avatar_bytes("123456789", "testbot", red_avatar_png)


@pytest.fixture(autouse=True)
def clean_render_context():
    """Make sure no test leaks the process-wide render context."""
    reset_render_context()
    yield
    reset_render_context()
