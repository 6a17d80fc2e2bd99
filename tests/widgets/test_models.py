"""Tests for widget data models."""

from __future__ import annotations

import pytest
from PIL import Image

from fates_list.widgets.exceptions import DecodeError
from fates_list.widgets.models import BLACK
from fates_list.widgets.models import Label
from fates_list.widgets.models import WidgetOptions
from fates_list.widgets.models import WidgetUser


class TestLabel:
    """Test label defaults and pixel size."""

    def test_defaults(self, font_asset):
        label = Label(font=font_asset, lines=["a"], x=0, y=0)

        assert label.size == 25
        assert label.dpi == 72
        assert label.spacing == 1.25
        assert label.color == (255, 255, 255, 255)
        assert label.pixel_size == 25

    def test_pixel_size_scales_with_dpi(self, font_asset):
        assert Label(font=font_asset, lines=[], x=0, y=0, size=10, dpi=144).pixel_size == 20

    def test_pixel_size_is_at_least_one(self, font_asset):
        assert Label(font=font_asset, lines=[], x=0, y=0, size=0.1).pixel_size == 1


class TestWidgetUser:
    """Test user records."""

    def test_from_avatar_bytes(self, red_avatar_png):
        user = WidgetUser.from_avatar_bytes("42", "fatesbot", red_avatar_png, discriminator="0001")

        assert user.avatar.mode == "RGBA"
        assert user.avatar.size == (512, 512)
        assert user.discriminator == "0001"
        assert user.bot is True

    def test_bad_avatar_bytes(self):
        with pytest.raises(DecodeError):
            WidgetUser.from_avatar_bytes("42", "fatesbot", b"<html>nope</html>")

    def test_id_required(self):
        with pytest.raises(ValueError):
            WidgetUser(id=" ", username="x", avatar=Image.new("RGBA", (1, 1)))

    def test_equality_ignores_avatar(self):
        first = WidgetUser(id="1", username="x", avatar=Image.new("RGBA", (1, 1)))
        second = WidgetUser(id="1", username="x", avatar=Image.new("RGBA", (2, 2)))

        assert first == second


class TestWidgetOptions:
    """Test background colour resolution."""

    @pytest.mark.parametrize("bgcolor", [None, "", "nonsense", "#12"])
    def test_defaults_to_black(self, bgcolor):
        assert WidgetOptions(bgcolor=bgcolor).background_color() == BLACK

    @pytest.mark.parametrize("bgcolor, expected", [
        ("red", (255, 0, 0, 255)),
        ("#112233", (0x11, 0x22, 0x33, 255)),
        (" #11223344 ", (0x11, 0x22, 0x33, 0x44)),
        ("rgb(1, 2, 3)", (1, 2, 3, 255)),
    ])
    def test_parses_colours(self, bgcolor, expected):
        assert WidgetOptions(bgcolor=bgcolor).background_color() == expected
