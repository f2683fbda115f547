"""Layer descriptors — the declarative input of the rendering pipeline.

A template describes a frame as an ordered list of layers. Each layer has
a pixel offset and size within the reference frame, plus its content:

  - ShapeLayer: a clip shape filled with a solid color (one entry in
    color_list) or a top-to-bottom gradient through every entry.
  - TextLayer: left-aligned text wrapped to the layer width.

Layers are immutable. The scale adjuster derives new layers with
dataclasses.replace rather than mutating them.
"""

from dataclasses import dataclass, field

from .geometry import RECTANGLE, ClipShape, Offset, Shadow, Size


@dataclass(frozen=True)
class ShapeLayer:
    offset: Offset
    size: Size
    color_list: tuple[int, ...]
    clip_shape: ClipShape = RECTANGLE
    shadow: Shadow | None = None

    def __post_init__(self):
        colors = tuple(self.color_list)
        if not colors:
            raise ValueError("ShapeLayer needs at least one color in color_list")
        object.__setattr__(self, "color_list", colors)

    @classmethod
    def solid_color(
        cls,
        offset: Offset,
        size: Size,
        color: int,
        clip_shape: ClipShape = RECTANGLE,
        shadow: Shadow | None = None,
    ) -> "ShapeLayer":
        return cls(offset, size, (color,), clip_shape=clip_shape, shadow=shadow)

    @property
    def is_gradient(self) -> bool:
        return len(self.color_list) > 1


@dataclass(frozen=True)
class TextLayer:
    offset: Offset
    size: Size
    text: str
    color: int
    line_height: int
    font_size: int | None = None

    def __post_init__(self):
        # Default glyph size leaves ~30% of the line height as leading.
        if self.font_size is None:
            object.__setattr__(self, "font_size", int(self.line_height / 1.3))


Layer = ShapeLayer | TextLayer


@dataclass(frozen=True)
class LayerCollection:
    """Ordered layers, painted back to front."""

    layers: tuple[Layer, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "layers", tuple(self.layers))

    def __iter__(self):
        return iter(self.layers)

    def __len__(self) -> int:
        return len(self.layers)

    def __getitem__(self, index: int) -> Layer:
        return self.layers[index]
