"""Exception types raised by the layer rendering pipeline."""


class InvalidLayerGeometry(ValueError):
    """A layer or clip shape has a size or radius that cannot be drawn."""


class UnsupportedOverlayKind(TypeError):
    """An overlay that is not bitmap-backed was passed to the merger."""


class RenderCancelled(RuntimeError):
    """The render batch was cancelled before every layer finished."""


class ExportFailed(RuntimeError):
    """The composition engine reported a failure for an export."""
