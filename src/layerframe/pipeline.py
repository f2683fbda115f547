"""Layer-to-overlay pipeline.

Ties the stages together for one render pass:

  layers --(scale adjuster)--> scaled layers
         --(parallel rasterizer)--> bitmaps, in input order
         --(frame anchor calculator)--> BitmapOverlay(bitmap, anchor, offset)

Rendering variants are selected with RenderConfig flags instead of
separate code paths. The defaults enable clip shapes and alpha
normalization.
"""

import threading
from dataclasses import dataclass
from typing import Callable, TypeVar

from PIL import Image

from .anchors import calculate_frame_anchor
from .common import normalize_alpha
from .geometry import Offset, Size
from .layers import Layer, LayerCollection
from .parallel import map_parallel
from .rasterize import render_layer
from .scaling import adjust_layers

T = TypeVar("T")

VALID_RASTER_BACKENDS = {"direct-draw"}


@dataclass(frozen=True)
class RenderConfig:
    """Feature flags for a render pass.

    supports_clip_shape_and_shadow: draw circle / rounded clip shapes. When
        False every shape is a plain rectangle.
    normalize_alpha: boost faint colors (see common.normalize_alpha) before
        drawing.
    raster_backend: only "direct-draw" (Pillow drawing primitives).
    max_workers: thread pool size for rasterization; None = the
        executor default (bounded by CPU count).
    """

    supports_clip_shape_and_shadow: bool = True
    normalize_alpha: bool = True
    raster_backend: str = "direct-draw"
    max_workers: int | None = None

    def __post_init__(self):
        if self.raster_backend not in VALID_RASTER_BACKENDS:
            raise ValueError(
                f"Unknown raster_backend '{self.raster_backend}'. "
                f"Valid: {sorted(VALID_RASTER_BACKENDS)}"
            )
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")


DEFAULT_CONFIG = RenderConfig()


@dataclass(frozen=True)
class BitmapOverlay:
    """A rasterized layer placed in the output frame."""

    bitmap: Image.Image
    anchor: tuple[float, float]
    offset: Offset


def rasterize_layer(layer: Layer, config: RenderConfig = DEFAULT_CONFIG) -> Image.Image:
    """Rasterize one layer honoring the config's feature flags."""
    color_transform = normalize_alpha if config.normalize_alpha else None
    return render_layer(
        layer,
        color_transform=color_transform,
        clip_shapes=config.supports_clip_shape_and_shadow,
    )


def process(
    collection: LayerCollection,
    target_frame_size: Size,
    reference_frame_size: Size,
    block: Callable[[Image.Image, Layer], T],
    config: RenderConfig | None = None,
    cancel_event: threading.Event | None = None,
) -> list[T]:
    """Scale the collection, rasterize every layer in parallel, map with block.

    block receives (bitmap, scaled_layer) and runs on the worker thread.
    Results come back in the collection's order.
    """
    config = config or DEFAULT_CONFIG
    adjusted = adjust_layers(collection, target_frame_size, reference_frame_size)

    def _render(layer: Layer) -> T:
        bitmap = rasterize_layer(layer, config)
        return block(bitmap, layer)

    return map_parallel(
        adjusted, _render,
        max_workers=config.max_workers,
        cancel_event=cancel_event,
    )


def create_bitmap_overlay(
    frame_size: Size,
    offset: Offset,
    bitmap: Image.Image,
) -> BitmapOverlay:
    """Anchor a bitmap for placement at offset within frame_size."""
    anchor = calculate_frame_anchor(frame_size, offset, bitmap.width, bitmap.height)
    return BitmapOverlay(bitmap=bitmap, anchor=anchor, offset=offset)


def adjust_and_rasterize(
    collection: LayerCollection,
    target_frame_size: Size,
    reference_frame_size: Size,
    config: RenderConfig | None = None,
    cancel_event: threading.Event | None = None,
) -> list[BitmapOverlay]:
    """Render a layer collection to anchored overlays for the target frame.

    Args:
        collection: Layers authored against reference_frame_size.
        target_frame_size: Output video frame size.
        reference_frame_size: Frame size the layers were authored against.
        config: Render feature flags. Defaults to DEFAULT_CONFIG.
        cancel_event: Optional cooperative cancel signal.

    Returns:
        One BitmapOverlay per layer, in collection order.

    Raises:
        InvalidLayerGeometry: A layer has a non-positive size after scaling.
        RenderCancelled: cancel_event was set during the pass.
    """
    return process(
        collection, target_frame_size, reference_frame_size,
        lambda bitmap, layer: create_bitmap_overlay(target_frame_size, layer.offset, bitmap),
        config=config,
        cancel_event=cancel_event,
    )


def rasterize(
    collection: LayerCollection,
    config: RenderConfig | None = None,
    cancel_event: threading.Event | None = None,
) -> list[Image.Image]:
    """Rasterize every layer at its authored size (preview path, no anchors)."""
    config = config or DEFAULT_CONFIG
    return map_parallel(
        collection,
        lambda layer: rasterize_layer(layer, config),
        max_workers=config.max_workers,
        cancel_event=cancel_event,
    )
