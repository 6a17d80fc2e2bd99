"""Image primitives used to compose widgets.

Resizing, circular masking, text labels, straight pasting and colour
keying, implemented with Pillow and numpy. Every function returns a new
image except ``draw_label`` and ``copy_into``, which draw onto the canvas
they are given.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np
from PIL import Image, ImageColor, ImageDraw, ImageOps

from fates_list.widgets import codec
from fates_list.widgets.exceptions import DimensionError
from fates_list.widgets.exceptions import RenderError
from fates_list.widgets.models import Label

logger = logging.getLogger(__name__)

Color = Union[str, Sequence[int]]

TRANSPARENT = (0, 0, 0, 0)

# Colour keying threshold, in summed 16-bit channel units
DEFAULT_COLOR_THRESHOLD = 100


def _to_rgba(color: Color) -> Tuple[int, int, int, int]:
    """Normalize a colour string or RGB(A) tuple to an RGBA tuple."""
    if isinstance(color, str):
        return ImageColor.getcolor(color, "RGBA")

    channels = tuple(int(c) for c in color)
    if len(channels) == 3:
        return channels + (255,)
    if len(channels) == 4:
        return channels
    raise ValueError(f"Expected an RGB or RGBA colour, got {color!r}")


def _check_dimensions(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise DimensionError(
            f"Target dimensions must be positive, got {width}x{height}",
            width=width,
            height=height
        )


def fit_image(image: Image.Image, width: int, height: int) -> Image.Image:
    """Scale and centre-crop an image so it fills exactly width x height.

    The aspect ratio is preserved; whatever overflows the target box is
    cropped equally from both sides.

    Raises:
        DimensionError: If width or height is not positive
    """
    _check_dimensions(width, height)
    return ImageOps.fit(
        image.convert("RGBA"),
        (width, height),
        method=Image.Resampling.LANCZOS,
        centering=(0.5, 0.5)
    )


def resize_and_crop(data: bytes, width: int, height: int) -> Image.Image:
    """Decode an image buffer and fit it to exactly width x height.

    Args:
        data: Raw image bytes in any supported format
        width: Target width in pixels
        height: Target height in pixels

    Returns:
        RGBA image of size (width, height)

    Raises:
        DimensionError: If width or height is not positive
        DecodeError: If the bytes are not a supported image
    """
    _check_dimensions(width, height)
    return fit_image(codec.decode(data), width, height)


def resize(image: Image.Image, factor: int) -> Image.Image:
    """Downscale an image by an integer divisor with bilinear filtering.

    The result is floor(width / factor) x floor(height / factor); a factor
    of 1 returns a copy.

    Raises:
        DimensionError: If factor is below 1 or the result would be empty
    """
    if factor < 1:
        raise DimensionError(f"Resize factor must be at least 1, got {factor}")

    width, height = image.width // factor, image.height // factor
    if width == 0 or height == 0:
        raise DimensionError(
            f"Resize factor {factor} collapses {image.width}x{image.height} image",
            width=width,
            height=height
        )

    if factor == 1:
        return image.copy()

    return image.resize((width, height), Image.Resampling.BILINEAR)


@dataclass(frozen=True)
class CircularMask:
    """Opacity function that is opaque inside a circle, transparent outside.

    Pixel (x, y) is inside iff (x - cx + 0.5)^2 + (y - cy + 0.5)^2 < r^2,
    i.e. the test is made at the pixel centre.
    """

    center: Tuple[int, int]
    radius: int

    def covers(self, x: int, y: int) -> bool:
        cx, cy = self.center
        xpos = x - cx + 0.5
        ypos = y - cy + 0.5
        return xpos * xpos + ypos * ypos < self.radius * self.radius

    def to_image(self, size: Tuple[int, int]) -> Image.Image:
        """Rasterize the mask into an "L" image of the given size."""
        width, height = size
        cx, cy = self.center
        ys, xs = np.ogrid[:height, :width]
        inside = (xs - cx + 0.5) ** 2 + (ys - cy + 0.5) ** 2 < self.radius * self.radius
        return Image.fromarray(np.where(inside, 255, 0).astype(np.uint8))


def circle_mask(image: Image.Image, edge_color: Color = TRANSPARENT) -> Image.Image:
    """Crop an image to its inscribed circle.

    The circle is centred on the image with radius min(width, height) // 2.
    Inside the circle the source is composited over ``edge_color``; outside
    it only ``edge_color`` remains.

    Args:
        image: Source image
        edge_color: Colour outside the circle, transparent by default

    Returns:
        New RGBA image with the same size as the source
    """
    source = image.convert("RGBA")
    width, height = source.size
    _check_dimensions(width, height)

    mask = CircularMask(center=(width // 2, height // 2), radius=min(width, height) // 2)

    base = Image.new("RGBA", source.size, _to_rgba(edge_color))
    composed = base.copy()
    composed.alpha_composite(source)

    return Image.composite(composed, base, mask.to_image(source.size))


def point_to_fixed(points: float, dpi: float) -> int:
    """Convert a length in points to 26.6 fixed point pixels."""
    return int(points * dpi * 64 / 72)


def draw_label(canvas: Image.Image, label: Label) -> Tuple[int, int]:
    """Draw a multi-line label onto a canvas.

    The first baseline sits one font size below ``label.y``; each following
    line advances by ``size * spacing`` points. Glyphs are laid out with
    Pillow's basic layout engine so output does not depend on whether
    libraqm is installed.

    Args:
        canvas: Image to draw onto, modified in place
        label: Text, position, font and colour to draw

    Returns:
        Tuple of (length of the last line drawn, final cursor y rounded up)

    Raises:
        RenderError: If the font face cannot be built or a line fails to draw
    """
    try:
        face = label.font.face(label.pixel_size)
    except (OSError, ValueError) as e:
        raise RenderError(
            f"Could not load font face at {label.pixel_size}px: {e}",
            context={"size": label.size, "dpi": label.dpi}
        ) from e

    draw = ImageDraw.Draw(canvas)

    cursor = (label.y + (point_to_fixed(label.size, label.dpi) >> 6)) << 6
    advance = point_to_fixed(label.size * label.spacing, label.dpi)
    last_line_length = 0

    for line in label.lines:
        try:
            draw.text((label.x, cursor / 64), line, font=face, fill=label.color, anchor="ls")
        except (OSError, ValueError) as e:
            logger.error(f"Failed to draw label line {line!r}: {e}")
            raise RenderError(
                f"Failed to draw text {line!r}: {e}",
                context={"line": line, "x": label.x, "y": cursor >> 6}
            ) from e

        cursor += advance
        last_line_length = len(line)

    return last_line_length, -(-cursor // 64)


def copy_into(canvas: Image.Image, x: int, y: int, image: Image.Image) -> None:
    """Paste an image onto a canvas with straight pixel replacement.

    Source pixels, alpha included, overwrite the destination. Parts of the
    image falling outside the canvas are clipped.
    """
    if image.mode != canvas.mode:
        image = image.convert(canvas.mode)

    canvas.paste(image, (x, y))


def color_distance(c1: Color, c2: Color) -> int:
    """Sum of absolute RGB differences in 16-bit channel units.

    Alpha is ignored, so colours that differ only in opacity are at
    distance 0.
    """
    rgb1 = _to_rgba(c1)[:3]
    rgb2 = _to_rgba(c2)[:3]
    return sum(abs(a * 257 - b * 257) for a, b in zip(rgb1, rgb2))


def replace_color(
    image: Image.Image,
    target: Color,
    replacement: Color,
    threshold: int = DEFAULT_COLOR_THRESHOLD
) -> Image.Image:
    """Replace every pixel close to ``target`` with ``replacement``.

    A pixel is replaced when its ``color_distance`` to the target is below
    ``threshold``. Pixels keep their own alpha unless the replacement is
    given as an RGBA tuple, so an RGB replacement recolours translucent
    pixels without making them opaque. Replacing a colour with itself
    returns an unchanged copy for any threshold.

    Returns:
        New RGBA image; the source is left untouched
    """
    target_rgba = _to_rgba(target)
    replace_alpha = isinstance(replacement, (tuple, list)) and len(replacement) == 4
    replacement_rgba = _to_rgba(replacement)

    result = image.convert("RGBA")

    if target_rgba[:3] == replacement_rgba[:3] and (not replace_alpha or target_rgba == replacement_rgba):
        return result

    pixels = np.array(result, dtype=np.int32)
    distance = np.abs(pixels[..., :3] - np.array(target_rgba[:3], dtype=np.int32)).sum(axis=-1) * 257
    matches = distance < threshold

    pixels[matches, :3] = replacement_rgba[:3]
    if replace_alpha:
        pixels[matches, 3] = replacement_rgba[3]

    return Image.fromarray(pixels.astype(np.uint8))
