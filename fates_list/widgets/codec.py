"""Image format codec adapter built on Pillow.

Detects, decodes, encodes and converts the container formats the widget
service deals with. Avatars arrive as PNG, JPEG, GIF or WEBP; widgets leave
as PNG or WEBP.
"""

from __future__ import annotations

import io
import logging
import struct
from typing import Tuple

from PIL import Image

from fates_list.widgets.exceptions import ConversionError
from fates_list.widgets.exceptions import DecodeError
from fates_list.widgets.exceptions import UnrecognizedFormat

logger = logging.getLogger(__name__)

PNG = "png"
JPEG = "jpeg"
GIF = "gif"
WEBP = "webp"

# Formats we know how to write, mapped to Pillow's save() format names
ENCODABLE_FORMATS = {
    PNG: "PNG",
    WEBP: "WEBP",
    JPEG: "JPEG",
}

CONTENT_TYPES = {
    PNG: "image/png",
    WEBP: "image/webp",
    JPEG: "image/jpeg",
}

_FORMAT_ALIASES = {
    "jpg": JPEG,
}


def _normalize_format(fmt: str) -> str:
    fmt = fmt.strip().lower()
    return _FORMAT_ALIASES.get(fmt, fmt)


def detect(data: bytes) -> str:
    """Identify the container format of an image buffer from its header.

    Only the signature bytes are inspected; pixel data is not decoded.

    Args:
        data: Raw image bytes

    Returns:
        One of "png", "jpeg", "gif" or "webp"

    Raises:
        UnrecognizedFormat: If no known signature matches
    """
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return PNG
    if data.startswith(b"\xff\xd8\xff"):
        return JPEG
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return GIF
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return WEBP
    raise UnrecognizedFormat(bytes(data[:12]))


def decode(data: bytes) -> Image.Image:
    """Decode an image buffer into an RGBA image.

    Animated sources (GIF, animated WEBP) yield their first frame.

    Args:
        data: Raw image bytes

    Returns:
        Fully loaded RGBA image

    Raises:
        UnrecognizedFormat: If the buffer is empty or has no known signature
        DecodeError: If Pillow fails to read the pixel data
    """
    fmt = detect(data)

    try:
        with Image.open(io.BytesIO(data)) as source:
            source.seek(0)
            source.load()
            image = source.convert("RGBA")
    except (OSError, ValueError, SyntaxError, EOFError, struct.error, Image.DecompressionBombError) as e:
        logger.warning(f"Failed to decode {fmt} image ({len(data)} bytes): {e}")
        raise DecodeError(
            f"Could not decode {fmt} image: {e}",
            context={"format": fmt, "size": len(data)}
        ) from e

    logger.debug(f"Decoded {fmt} image {image.width}x{image.height}")
    return image


def encode(
    image: Image.Image,
    fmt: str,
    *,
    lossless: bool = True,
    quality: int = 90
) -> bytes:
    """Encode an image into the requested container format.

    PNG is always lossless. WEBP is lossless by default, in exact mode so
    fully transparent pixels keep their colour values. JPEG has no alpha
    channel, so transparent regions are flattened onto black.

    Args:
        image: Image to encode
        fmt: Target format name ("png", "webp" or "jpeg")
        lossless: Use lossless WEBP compression
        quality: Quality for lossy WEBP and JPEG output

    Returns:
        Encoded image bytes

    Raises:
        ConversionError: If the target format cannot be written
    """
    target = _normalize_format(fmt)
    pil_format = ENCODABLE_FORMATS.get(target)
    if pil_format is None:
        raise ConversionError(None, target)

    buffer = io.BytesIO()
    try:
        if target == PNG:
            image.save(buffer, format=pil_format)
        elif target == WEBP:
            if lossless:
                image.save(buffer, format=pil_format, lossless=True, exact=True, quality=100)
            else:
                image.save(buffer, format=pil_format, quality=quality)
        else:
            rgba = image.convert("RGBA")
            flattened = Image.new("RGB", rgba.size, (0, 0, 0))
            flattened.paste(rgba, mask=rgba.getchannel("A"))
            flattened.save(buffer, format=pil_format, quality=quality)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to encode {image.width}x{image.height} image as {target}: {e}")
        raise ConversionError(image.format.lower() if image.format else None, target) from e

    return buffer.getvalue()


def convert(data: bytes, target: str, *, lossless: bool = True) -> bytes:
    """Re-encode an image buffer into another container format.

    Args:
        data: Raw source image bytes
        target: Target format name
        lossless: Use lossless compression where the target supports it

    Returns:
        Encoded bytes in the target format

    Raises:
        DecodeError: If the source cannot be decoded
        ConversionError: If the source/target pair is unsupported
    """
    source = detect(data)
    normalized = _normalize_format(target)
    if normalized not in ENCODABLE_FORMATS:
        raise ConversionError(source, normalized)

    return encode(decode(data), normalized, lossless=lossless)


def encode_for_format(
    image: Image.Image,
    fmt: str | None,
    *,
    webp_lossless: bool = False,
    webp_quality: int = 90
) -> Tuple[bytes, str]:
    """Encode a rendered widget according to a ``format`` query value.

    "png" selects PNG; every other value, including a missing one, selects
    WEBP.

    Returns:
        Tuple of (encoded bytes, content type)
    """
    if fmt is not None and _normalize_format(fmt) == PNG:
        return encode(image, PNG), CONTENT_TYPES[PNG]

    data = encode(image, WEBP, lossless=webp_lossless, quality=webp_quality)
    return data, CONTENT_TYPES[WEBP]
