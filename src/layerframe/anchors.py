"""Frame anchor calculator — pixel placement to normalized device coordinates.

The compositor positions each overlay by a background-frame anchor in NDC:
x and y both span [-1, 1], x grows to the right and y grows upward. Pixel
offsets grow downward from the top-left, so y is inverted here.
"""

from .geometry import Offset, Size


def calculate_frame_anchor(
    frame_size: Size,
    offset: Offset,
    bitmap_width: int,
    bitmap_height: int,
) -> tuple[float, float]:
    """Compute the NDC anchor that lands a bitmap at offset in the frame.

    An overlay at the frame origin is anchored at (0, 0) directly; every
    other offset goes through the general conversion.

    Args:
        frame_size: Output frame size in pixels.
        offset: Top-left pixel position of the bitmap in the output frame.
        bitmap_width: Rasterized bitmap width in pixels.
        bitmap_height: Rasterized bitmap height in pixels.

    Returns:
        (anchor_x, anchor_y) in normalized device coordinates.
    """
    if offset == Offset.ZERO:
        return 0.0, 0.0

    frame_w = float(frame_size.width)
    frame_h = float(frame_size.height)

    ndc_x = (offset.x / frame_w) * 2 - 1
    ndc_y = 1 - (offset.y / frame_h) * 2

    anchor_x = ndc_x + bitmap_width / frame_w
    anchor_y = ndc_y - bitmap_height / frame_h
    return anchor_x, anchor_y
