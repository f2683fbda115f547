"""Scale adjuster — maps layers authored at a reference frame to a target frame.

Templates are authored against one reference frame size. Rendering to a
different output size uses cover scaling: the composition is scaled by
the larger of the two axis ratios so it always fills the target frame,
and whatever overflows is cropped by the compositor.
"""

from dataclasses import replace

from .errors import InvalidLayerGeometry
from .geometry import Size, round_half_up
from .layers import Layer, LayerCollection, ShapeLayer, TextLayer


def compute_cover_scale(target_frame_size: Size, reference_frame_size: Size) -> float:
    """Return max(target_w / ref_w, target_h / ref_h).

    Raises:
        InvalidLayerGeometry: If a reference dimension is not positive.
    """
    if reference_frame_size.width <= 0 or reference_frame_size.height <= 0:
        raise InvalidLayerGeometry(
            "Reference frame size must be positive, got "
            f"{reference_frame_size.width}x{reference_frame_size.height}"
        )
    return max(
        target_frame_size.width / reference_frame_size.width,
        target_frame_size.height / reference_frame_size.height,
    )


def scale_layer(layer: Layer, scale: float) -> Layer:
    """Scale a layer's offset and size; text also scales its font metrics."""
    if isinstance(layer, ShapeLayer):
        return replace(
            layer,
            offset=layer.offset.scaled(scale),
            size=layer.size.scaled(scale),
        )
    if isinstance(layer, TextLayer):
        return replace(
            layer,
            offset=layer.offset.scaled(scale),
            size=layer.size.scaled(scale),
            line_height=round_half_up(layer.line_height * scale),
            font_size=round_half_up(layer.font_size * scale),
        )
    raise TypeError(f"Unknown layer type: {type(layer).__name__}")


def adjust_layers(
    collection: LayerCollection,
    target_frame_size: Size,
    reference_frame_size: Size,
) -> LayerCollection:
    """Rescale every layer in the collection for the target frame size."""
    scale = compute_cover_scale(target_frame_size, reference_frame_size)
    return LayerCollection(tuple(scale_layer(layer, scale) for layer in collection))
