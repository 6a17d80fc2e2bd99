"""Widget-specific exceptions for the image rendering pipeline.

This module defines the exception hierarchy raised by the widget renderer,
its image primitives and the format codec. Every failure inside the pipeline
surfaces as one of these types so callers can map them to responses without
inspecting Pillow internals.
"""

from __future__ import annotations

from typing import Any


class WidgetError(Exception):
    """Base exception for all widget rendering errors.

    Carries an error code and context data for logging, mirroring the
    structure of the service layer errors.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None
    ):
        """Initialize widget error.

        Args:
            message: Technical error message for logging
            error_code: Unique error code for categorization
            context: Additional context data for debugging
        """
        super().__init__(message)
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}


class DecodeError(WidgetError):
    """Exception for image bytes that cannot be decoded.

    Raised when avatar or asset bytes are empty, truncated, or in a
    format the codec does not support.
    """


class UnrecognizedFormat(DecodeError):
    """Exception for buffers with no known image signature."""

    def __init__(self, header: bytes = b"", **kwargs):
        """Initialize unrecognized format error.

        Args:
            header: First bytes of the rejected buffer
            **kwargs: Additional arguments passed to parent
        """
        super().__init__(
            "Unrecognized image format" if header else "Empty image buffer",
            error_code="UNRECOGNIZED_FORMAT",
            context={"header": header[:12].hex()},
            **kwargs
        )
        self.header = header[:12]


class DimensionError(WidgetError):
    """Exception for degenerate resize or crop dimensions."""

    def __init__(self, message: str, width: int | None = None, height: int | None = None, **kwargs):
        super().__init__(
            message,
            error_code="INVALID_DIMENSIONS",
            context={"width": width, "height": height},
            **kwargs
        )
        self.width = width
        self.height = height


class ConversionError(WidgetError):
    """Exception for unsupported format conversions.

    Raised when an image is asked to be encoded into a container the
    codec cannot write.
    """

    def __init__(self, source: str | None, target: str, **kwargs):
        """Initialize conversion error.

        Args:
            source: Detected source format, if known
            target: Requested target format
            **kwargs: Additional arguments passed to parent
        """
        super().__init__(
            f"Cannot convert {source or 'image'} to {target}",
            error_code="UNSUPPORTED_CONVERSION",
            context={"source": source, "target": target},
            **kwargs
        )
        self.source = source
        self.target = target


class RenderError(WidgetError):
    """Exception for text layout or drawing failures."""


class AssetError(WidgetError):
    """Exception for font or logo assets that fail to load.

    Asset loading happens once at startup; this error is fatal because no
    widget can be rendered without them.
    """

    def __init__(self, asset: str, path: str, reason: str, **kwargs):
        super().__init__(
            f"Failed to load {asset} from {path}: {reason}",
            error_code="ASSET_LOAD_FAILED",
            context={"asset": asset, "path": path},
            **kwargs
        )
        self.asset = asset
        self.path = path


class AvatarFetchError(WidgetError):
    """Exception for failures fetching bot metadata or avatar bytes.

    Raised by the HTTP collaborator when the upstream API or avatar CDN
    returns an error status, times out, or returns malformed data.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        **kwargs
    ):
        """Initialize avatar fetch error.

        Args:
            message: Error message
            status_code: HTTP status code, when a response was received
            url: URL that was being fetched
            **kwargs: Additional arguments passed to parent
        """
        super().__init__(
            message,
            context={"status_code": status_code, "url": url},
            **kwargs
        )
        self.status_code = status_code
        self.url = url
