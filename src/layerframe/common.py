"""layerframe.common — shared utilities for layer rendering.

Contains: ARGB color packing and parsing, palette resolution, the alpha
normalizer, path variable resolution, and font loading.
"""

import re
from pathlib import Path

from PIL import ImageFont


# ── Font paths ─────────────────────────────────────────────────────
# Inter preferred for template text, DejaVu Sans as fallback.

FONT_PATHS = [
    Path.home() / ".local/share/fonts/Inter.ttc",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
]


# ── Color utilities ────────────────────────────────────────────────
# Colors are packed 0xAARRGGBB ints. Signed 32-bit values (as exported
# by JVM tooling) are accepted and masked to unsigned.

ALPHA_VISIBILITY_FLOOR = 220
ALPHA_BOOST = 1.5


def argb(a: int, r: int, g: int, b: int) -> int:
    """Pack four 0-255 channels into an ARGB int."""
    return ((a & 0xFF) << 24) | ((r & 0xFF) << 16) | ((g & 0xFF) << 8) | (b & 0xFF)


def argb_components(color: int) -> tuple[int, int, int, int]:
    """Split an ARGB int into (A, R, G, B)."""
    color &= 0xFFFFFFFF
    return ((color >> 24) & 0xFF, (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF)


def argb_to_rgba(color: int) -> tuple[int, int, int, int]:
    """Reorder an ARGB int into the (R, G, B, A) tuple Pillow expects."""
    a, r, g, b = argb_components(color)
    return (r, g, b, a)


def parse_hex_color(hex_str: str) -> int:
    """Convert '#RRGGBB' or '#AARRGGBB' (hash optional) to an ARGB int.

    Six-digit values are fully opaque.
    """
    hex_str = hex_str.lstrip("#")
    if len(hex_str) not in (6, 8) or not all(
        c in "0123456789abcdefABCDEF" for c in hex_str
    ):
        raise ValueError(f"Invalid hex color: '#{hex_str}'")
    if len(hex_str) == 6:
        hex_str = "FF" + hex_str
    return int(hex_str, 16)


def resolve_color(value, palette: dict[str, int]) -> int:
    """Resolve a color reference — palette key, inline hex, or ARGB int.

    Palette keys are tried first. Strings starting with '#' or made of 6/8
    hex chars are parsed as inline hex. Otherwise raises ValueError.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value & 0xFFFFFFFF
    if not isinstance(value, str):
        raise ValueError(f"Unknown color: {value!r}")
    if value in palette:
        return palette[value]
    if value.startswith("#") or (
        len(value) in (6, 8)
        and all(c in "0123456789abcdefABCDEF" for c in value)
    ):
        return parse_hex_color(value)
    raise ValueError(
        f"Unknown color: '{value}'. Not in palette and not a hex value."
    )


def normalize_alpha(color: int) -> int:
    """Boost faint colors so they stay legible once flattened into video.

    Alpha at or above ALPHA_VISIBILITY_FLOOR is left alone. Lower alpha is
    multiplied by ALPHA_BOOST and capped at the floor. RGB is untouched.
    """
    a, r, g, b = argb_components(color)
    if a >= ALPHA_VISIBILITY_FLOOR:
        return color & 0xFFFFFFFF
    boosted = min(int(a * ALPHA_BOOST), ALPHA_VISIBILITY_FLOOR)
    return argb(boosted, r, g, b)


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Font loading ───────────────────────────────────────────────────

def load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load Inter (or fallback) at the given size.

    Inter.ttc is a font collection; index 0 is Regular.
    """
    size = max(1, size)
    for font_path in FONT_PATHS:
        if font_path.exists():
            try:
                return ImageFont.truetype(str(font_path), size=size, index=0)
            except (OSError, IndexError):
                continue
    # Last resort: Pillow's bundled font, scalable since Pillow 10.1.
    return ImageFont.load_default(size=size)
