"""Layer rasterizer — turns one layer descriptor into an RGBA bitmap.

Every layer is drawn in isolation onto a transparent bitmap of exactly
layer.size. Drawing works in two steps:

  1. Build a coverage mask (uint8, 0 = outside, 255 = inside). Clip shapes
     are drawn at SUPERSAMPLE x resolution and box-filtered down, which
     gives anti-aliased edges. Text coverage comes straight from FreeType.
  2. Build the fill (solid color or vertical gradient) and scale its alpha
     by the coverage.

Bitmaps use straight (non-premultiplied) alpha, which is what Pillow's
alpha_composite and moviepy's ImageClip masks expect.
"""

from typing import Callable

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .common import argb_to_rgba, load_font
from .errors import InvalidLayerGeometry
from .geometry import RECTANGLE, Circle, ClipShape, Rectangle, RoundedRectangle, Size
from .layers import Layer, ShapeLayer, TextLayer


# ── Constants ────────────────────────────────────────────────────

SUPERSAMPLE = 4                  # clip masks are drawn at 4x and box-filtered down

ColorTransform = Callable[[int], int]


def _check_size(size: Size, what: str) -> None:
    if size.width <= 0 or size.height <= 0:
        raise InvalidLayerGeometry(
            f"{what} needs a positive size, got {size.width}x{size.height}"
        )


# ── Coverage masks ───────────────────────────────────────────────


def _draw_rounded_rectangle(
    image: Image.Image,
    radii: tuple[int, int, int, int],
) -> None:
    """Fill a rectangle whose four corners each have their own radius.

    Pillow's rounded_rectangle only takes one radius, so the box is filled
    and each r x r corner square is replaced by the matching quarter disc.
    """
    width, height = image.size
    ImageDraw.Draw(image).rectangle([0, 0, width - 1, height - 1], fill=255)
    tl, tr, br, bl = radii
    corners = [
        (tl, 0, 0),
        (tr, width - tr, 0),
        (br, width - br, height - br),
        (bl, 0, height - bl),
    ]
    for r, x, y in corners:
        if r <= 0:
            continue
        disc = Image.new("L", (2 * r, 2 * r), 0)
        ImageDraw.Draw(disc).ellipse([0, 0, 2 * r - 1, 2 * r - 1], fill=255)
        qx = 0 if x == 0 else r
        qy = 0 if y == 0 else r
        image.paste(disc.crop((qx, qy, qx + r, qy + r)), (x, y))


def clip_coverage(clip_shape: ClipShape, size: Size) -> np.ndarray:
    """Compute the anti-aliased coverage of clip_shape over a size box.

    Returns:
        uint8 array of shape (height, width).

    Raises:
        InvalidLayerGeometry: If the bounding box is not positive.
    """
    _check_size(size, "Clip shape")
    width, height = size.width, size.height

    if isinstance(clip_shape, Rectangle):
        return np.full((height, width), 255, dtype=np.uint8)

    big_w, big_h = width * SUPERSAMPLE, height * SUPERSAMPLE
    big = Image.new("L", (big_w, big_h), 0)
    draw = ImageDraw.Draw(big)

    if isinstance(clip_shape, Circle):
        draw.ellipse([0, 0, big_w - 1, big_h - 1], fill=255)
    elif isinstance(clip_shape, RoundedRectangle):
        clamped = clip_shape.clamped(width, height)
        radii = tuple(round(r * SUPERSAMPLE) for r in clamped.radii)
        _draw_rounded_rectangle(big, radii)
    else:
        raise TypeError(f"Unknown clip shape: {clip_shape!r}")

    mask = big.resize((width, height), Image.Resampling.BOX)
    return np.asarray(mask, dtype=np.uint8)


# ── Fills ────────────────────────────────────────────────────────


def gradient_fill(colors: list[int] | tuple[int, ...], size: Size) -> np.ndarray:
    """Build an RGBA fill: solid for one color, else a top-to-bottom gradient.

    Stops are evenly spaced from y=0 to y=height. Each row samples the
    gradient at its pixel center, interpolating every channel (alpha
    included) linearly and clamping past the first and last stop.

    Returns:
        uint8 array of shape (height, width, 4).
    """
    width, height = size.width, size.height
    stops = np.array([argb_to_rgba(c) for c in colors], dtype=np.float64)

    if len(stops) == 1:
        return np.tile(stops[0].astype(np.uint8), (height, width, 1))

    positions = np.linspace(0.0, 1.0, len(stops))
    t = (np.arange(height, dtype=np.float64) + 0.5) / height
    column = np.stack(
        [np.interp(t, positions, stops[:, ch]) for ch in range(4)], axis=-1,
    )
    column = np.clip(np.rint(column), 0, 255).astype(np.uint8)
    return np.repeat(column[:, np.newaxis, :], width, axis=1)


def apply_coverage(fill: np.ndarray, coverage: np.ndarray) -> Image.Image:
    """Scale the fill's alpha by coverage and wrap the result as an RGBA image."""
    out = np.array(fill, dtype=np.uint8, copy=True)
    alpha = out[:, :, 3].astype(np.uint32) * coverage.astype(np.uint32)
    out[:, :, 3] = ((alpha + 127) // 255).astype(np.uint8)
    return Image.fromarray(out)


# ── Text layout ──────────────────────────────────────────────────


def line_height_for(font: ImageFont.FreeTypeFont | ImageFont.ImageFont) -> int:
    """Natural line advance of a font (ascent + descent)."""
    if hasattr(font, "getmetrics"):
        ascent, descent = font.getmetrics()
        return ascent + descent
    bbox = font.getbbox("Ag")
    return bbox[3] - bbox[1]


def _break_word(word: str, font, max_width: int) -> list[str]:
    """Split a word wider than max_width into chunks that fit (min 1 char each)."""
    chunks = []
    while word and font.getlength(word) > max_width:
        cut = 1
        while cut < len(word) and font.getlength(word[:cut + 1]) <= max_width:
            cut += 1
        chunks.append(word[:cut])
        word = word[cut:]
    if word:
        chunks.append(word)
    return chunks


def wrap_text(text: str, font, max_width: int) -> list[str]:
    """Greedy word wrap of text to max_width pixels.

    Explicit newlines always start a new line. Words wider than the whole
    line are broken between characters.
    """
    lines = []
    for paragraph in text.split("\n"):
        line = ""
        for word in paragraph.split(" "):
            candidate = f"{line} {word}" if line else word
            if font.getlength(candidate) <= max_width:
                line = candidate
                continue
            if line:
                lines.append(line)
            chunks = _break_word(word, font, max_width)
            lines.extend(chunks[:-1])
            line = chunks[-1] if chunks else ""
        lines.append(line)
    return lines


def text_coverage(layer: TextLayer) -> np.ndarray:
    """Lay out the layer's text and return its glyph coverage mask."""
    width, height = layer.size.width, layer.size.height
    font = load_font(layer.font_size)
    advance = line_height_for(font)

    mask = Image.new("L", (width, height), 0)
    draw = ImageDraw.Draw(mask)
    y = 0
    for line in wrap_text(layer.text, font, width):
        if y >= height:
            break
        if line:
            draw.text((0, y), line, fill=255, font=font)
        y += advance
    return np.asarray(mask, dtype=np.uint8)


# ── Layer rendering ──────────────────────────────────────────────


def _identity(color: int) -> int:
    return color


def render_shape_layer(
    layer: ShapeLayer,
    color_transform: ColorTransform | None = None,
    clip_shapes: bool = True,
) -> Image.Image:
    """Rasterize a shape layer: clip to its shape, then fill.

    Args:
        layer: Shape layer, already scaled to output pixels.
        color_transform: Applied to every gradient stop before drawing.
        clip_shapes: If False, every shape is drawn as a plain rectangle.

    Returns:
        RGBA image of exactly layer.size.
    """
    _check_size(layer.size, "ShapeLayer")
    transform = color_transform or _identity
    colors = [transform(c) for c in layer.color_list]
    clip_shape = layer.clip_shape if clip_shapes else RECTANGLE

    coverage = clip_coverage(clip_shape, layer.size)
    fill = gradient_fill(colors, layer.size)
    return apply_coverage(fill, coverage)


def render_text_layer(
    layer: TextLayer,
    color_transform: ColorTransform | None = None,
) -> Image.Image:
    """Rasterize a text layer: wrapped, left-aligned, top-anchored text."""
    _check_size(layer.size, "TextLayer")
    transform = color_transform or _identity
    coverage = text_coverage(layer)
    fill = gradient_fill([transform(layer.color)], layer.size)
    return apply_coverage(fill, coverage)


def render_layer(
    layer: Layer,
    color_transform: ColorTransform | None = None,
    clip_shapes: bool = True,
) -> Image.Image:
    """Rasterize any layer variant."""
    if isinstance(layer, ShapeLayer):
        return render_shape_layer(layer, color_transform, clip_shapes=clip_shapes)
    if isinstance(layer, TextLayer):
        return render_text_layer(layer, color_transform)
    raise TypeError(f"Unknown layer type: {type(layer).__name__}")
