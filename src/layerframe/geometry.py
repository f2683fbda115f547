"""Geometry primitives for layer descriptors.

All values are in pixels with the origin at the top-left of the frame.
Scaling rounds half up (floor(v + 0.5)) so that scaled geometry matches
what the template authors see at the reference resolution.
"""

import math
from dataclasses import dataclass

from .errors import InvalidLayerGeometry


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 going up."""
    return int(math.floor(value + 0.5))


# ── Offset / Size ────────────────────────────────────────────────


@dataclass(frozen=True)
class Offset:
    x: int
    y: int

    def __add__(self, other: "Offset") -> "Offset":
        return Offset(self.x + other.x, self.y + other.y)

    def scaled(self, scale: float) -> "Offset":
        return Offset(round_half_up(self.x * scale), round_half_up(self.y * scale))


Offset.ZERO = Offset(0, 0)


@dataclass(frozen=True)
class Size:
    width: int
    height: int

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise InvalidLayerGeometry(
                f"Size must not be negative, got {self.width}x{self.height}"
            )

    @classmethod
    def square(cls, size: int) -> "Size":
        return cls(size, size)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def scaled(self, scale: float) -> "Size":
        return Size(round_half_up(self.width * scale), round_half_up(self.height * scale))

    def as_tuple(self) -> tuple[int, int]:
        return (self.width, self.height)


# Portrait 1080p, the frame size the bundled templates are authored against.
FULL_SCREEN = Size(1080, 1920)


# ── Clip shapes ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Circle:
    """Ellipse inscribed in the layer's bounding box."""


@dataclass(frozen=True)
class Rectangle:
    """The full bounding box; no clipping."""


@dataclass(frozen=True)
class RoundedRectangle:
    """Bounding box with an independent radius per corner."""

    top_left: float
    top_right: float
    bottom_right: float
    bottom_left: float

    def __post_init__(self):
        if min(self.radii) < 0:
            raise InvalidLayerGeometry(f"Corner radii must be >= 0, got {self.radii}")

    @classmethod
    def uniform(cls, radius: float) -> "RoundedRectangle":
        return cls(radius, radius, radius, radius)

    @property
    def radii(self) -> tuple[float, float, float, float]:
        return (self.top_left, self.top_right, self.bottom_right, self.bottom_left)

    def clamped(self, width: float, height: float) -> "RoundedRectangle":
        """Limit every radius to half the shorter side of the box."""
        limit = min(width, height) / 2
        return RoundedRectangle(*(min(r, limit) for r in self.radii))


ClipShape = Circle | Rectangle | RoundedRectangle

CIRCLE = Circle()
RECTANGLE = Rectangle()


# ── Shadow ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Shadow:
    """Drop shadow attached to a shape layer.

    Carried through scaling and manifests but not drawn by the rasterizer.
    """

    relative_offset: Offset
    clip_shape: ClipShape
    color: int
    blur_radius: float = 0.0

    def __post_init__(self):
        if self.blur_radius < 0:
            raise InvalidLayerGeometry(
                f"Shadow blur_radius must be >= 0, got {self.blur_radius}"
            )
