"""Overlay merger — flatten rendered overlays into one full-frame bitmap.

Some output variants hand the compositor a single texture instead of one
overlay per layer. The merger draws every overlay onto one transparent
canvas at its pixel offset, in order, with standard "over" compositing.
"""

from PIL import Image

from .errors import UnsupportedOverlayKind
from .geometry import Offset, Size
from .pipeline import BitmapOverlay


def _place(bitmap: Image.Image, offset: Offset, canvas_size: Size) -> Image.Image:
    """Position a bitmap on a transparent canvas-sized layer.

    Parts of the bitmap that fall outside the canvas are clipped.
    """
    if bitmap.mode != "RGBA":
        bitmap = bitmap.convert("RGBA")
    if bitmap.size == canvas_size.as_tuple() and offset == Offset.ZERO:
        return bitmap
    placed = Image.new("RGBA", canvas_size.as_tuple(), (0, 0, 0, 0))
    placed.paste(bitmap, (offset.x, offset.y))
    return placed


def merge_overlays(overlays: list, canvas_size: Size) -> BitmapOverlay:
    """Composite overlays back to front into one canvas-sized overlay.

    Args:
        overlays: BitmapOverlay list in paint order (later draws on top).
        canvas_size: Size of the merged bitmap, normally the output frame.

    Returns:
        BitmapOverlay at offset (0, 0) with anchor (0, 0).

    Raises:
        UnsupportedOverlayKind: If any overlay is not a BitmapOverlay. Checked
            before any drawing happens.
    """
    unsupported = [type(o).__name__ for o in overlays if not isinstance(o, BitmapOverlay)]
    if unsupported:
        raise UnsupportedOverlayKind(
            f"Only BitmapOverlay can be merged, found {unsupported}"
        )

    canvas = Image.new("RGBA", canvas_size.as_tuple(), (0, 0, 0, 0))
    for overlay in overlays:
        canvas = Image.alpha_composite(
            canvas, _place(overlay.bitmap, overlay.offset, canvas_size),
        )
    return BitmapOverlay(bitmap=canvas, anchor=(0.0, 0.0), offset=Offset.ZERO)
