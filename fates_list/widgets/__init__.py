"""Fates List bot widgets.

This package renders the bot card images served by the widget endpoint:
image primitives, the format codec, the shared asset cache and the
composition engine that ties them together.
"""

from .assets import CanvasPool, RenderContext, get_render_context
from .exceptions import (
    AssetError,
    AvatarFetchError,
    ConversionError,
    DecodeError,
    DimensionError,
    RenderError,
    UnrecognizedFormat,
    WidgetError,
)
from .models import Label, WidgetOptions, WidgetUser
from .renderer import WidgetRenderer, create_renderer

__all__ = [
    "AssetError",
    "AvatarFetchError",
    "CanvasPool",
    "ConversionError",
    "DecodeError",
    "DimensionError",
    "Label",
    "RenderContext",
    "RenderError",
    "UnrecognizedFormat",
    "WidgetError",
    "WidgetOptions",
    "WidgetRenderer",
    "WidgetUser",
    "create_renderer",
    "get_render_context",
]
