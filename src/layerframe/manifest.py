"""Manifest loader for layer templates.

Parses YAML manifests, resolves ${path} variables, resolves palette and
hex colors to ARGB ints, and builds the LayerCollection plus the video and
render settings a render pass needs.

Schema:
  - video: resolution (target frame), reference_resolution (authoring
    frame), fps, optional audio path.
  - render (optional): clip_shapes, normalize_alpha, merged, workers.
  - colors (optional): palette of named '#AARRGGBB' / '#RRGGBB' colors.
  - anchors (optional): named base offsets that layers can build on.
  - layers: list of shape / text layer dicts, painted in list order.
"""

from pathlib import Path

import yaml

from .common import resolve_color, resolve_path_vars
from .geometry import CIRCLE, RECTANGLE, Offset, RoundedRectangle, Shadow, Size
from .layers import LayerCollection, ShapeLayer, TextLayer
from .pipeline import RenderConfig


# ── Valid values ────────────────────────────────────────────────────

VALID_LAYER_TYPES = {"shape", "text"}

VALID_CLIP_SHAPES = {"rectangle", "circle", "rounded_rectangle"}

DEFAULT_FPS = 30


# ── Manifest loading ──────────────────────────────────────────────


def load_manifest(manifest_path: str | Path) -> dict:
    """Load, validate, and normalize a layer template manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Parse video.resolution / reference_resolution as Size.
      3. Parse all colors.* hex strings to ARGB ints.
      4. Resolve ${path} variables in the audio path.
      5. Build each layer, resolving anchors and colors.

    Args:
        manifest_path: Path to the YAML manifest file.

    Returns:
        Dict with "video", "render", "merged", "colors", "layers".

    Raises:
        ValueError: Missing field, unknown layer type or clip shape, bad color.
        FileNotFoundError: Missing manifest file.
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f) or {}

    paths = raw.get("paths", {})
    config = {}

    # Video settings: frame sizes as Size, audio path resolved.
    video = dict(raw.get("video") or {})
    if "resolution" not in video:
        raise ValueError("video: missing required field 'resolution'")
    if "reference_resolution" not in video:
        raise ValueError("video: missing required field 'reference_resolution'")
    video["resolution"] = _parse_size(video["resolution"], "video.resolution")
    video["reference_resolution"] = _parse_size(
        video["reference_resolution"], "video.reference_resolution",
    )
    video["fps"] = int(video.get("fps", DEFAULT_FPS))
    if video.get("audio"):
        video["audio"] = resolve_path_vars(video["audio"], paths)
    else:
        video["audio"] = None
    config["video"] = video

    # Render flags.
    render = raw.get("render") or {}
    try:
        config["render"] = RenderConfig(
            supports_clip_shape_and_shadow=bool(render.get("clip_shapes", True)),
            normalize_alpha=bool(render.get("normalize_alpha", True)),
            max_workers=_parse_workers(render.get("workers")),
        )
    except ValueError as e:
        raise ValueError(f"render: {e}") from e
    config["merged"] = bool(render.get("merged", False))

    # Colors: parse all hex strings to ARGB ints.
    colors = {}
    for key, value in (raw.get("colors") or {}).items():
        colors[key] = resolve_color(value, {})
    config["colors"] = colors

    # Anchors: named base offsets.
    anchors = {
        name: _parse_offset(value, f"anchors.{name}")
        for name, value in (raw.get("anchors") or {}).items()
    }

    layers = []
    for i, layer in enumerate(raw.get("layers") or []):
        layers.append(_build_layer(layer, i, colors, anchors))
    config["layers"] = LayerCollection(tuple(layers))

    return config


# ── Field parsers ─────────────────────────────────────────────────


def _parse_size(value, where: str) -> Size:
    """Parse [w, h] or a single int (square) as a Size."""
    if isinstance(value, int) and not isinstance(value, bool):
        return Size.square(value)
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return Size(int(value[0]), int(value[1]))
    raise ValueError(f"{where}: expected [width, height] or an int, got {value!r}")


def _parse_workers(value) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"workers must be a positive integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"workers must be a positive integer, got {value!r}") from e


def _parse_offset(value, where: str) -> Offset:
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return Offset(int(value[0]), int(value[1]))
    raise ValueError(f"{where}: expected [x, y], got {value!r}")


def _parse_clip(clip, prefix: str):
    """Parse a clip dict: {shape: circle|rectangle|rounded_rectangle, radius|radii}."""
    if clip is None:
        return RECTANGLE
    if isinstance(clip, str):
        clip = {"shape": clip}
    shape = clip.get("shape")
    if shape not in VALID_CLIP_SHAPES:
        raise ValueError(
            f"{prefix}: invalid clip shape '{shape}'. "
            f"Valid: {sorted(VALID_CLIP_SHAPES)}"
        )
    if shape == "rectangle":
        return RECTANGLE
    if shape == "circle":
        return CIRCLE

    if "radii" in clip:
        radii = clip["radii"]
        if not isinstance(radii, list) or len(radii) != 4:
            raise ValueError(f"{prefix}: 'radii' must be a list of 4 numbers [tl, tr, br, bl]")
        return RoundedRectangle(*(float(r) for r in radii))
    if "radius" in clip:
        return RoundedRectangle.uniform(float(clip["radius"]))
    raise ValueError(f"{prefix}: rounded_rectangle needs 'radius' or 'radii'")


def _layer_offset(layer: dict, anchors: dict[str, Offset], prefix: str) -> Offset:
    """Resolve a layer offset, optionally relative to a named anchor."""
    offset = _parse_offset(layer.get("offset", [0, 0]), f"{prefix} offset")
    base = layer.get("base")
    if base is None:
        return offset
    if base not in anchors:
        raise ValueError(f"{prefix}: unknown anchor '{base}'")
    return anchors[base] + offset


def _build_layer(layer: dict, index: int, colors: dict[str, int], anchors: dict[str, Offset]):
    """Validate one layer dict and build its ShapeLayer / TextLayer."""
    layer_type = layer.get("type")
    if layer_type not in VALID_LAYER_TYPES:
        raise ValueError(
            f"Layer {index}: Unknown type '{layer_type}'. "
            f"Valid: {sorted(VALID_LAYER_TYPES)}"
        )
    prefix = f"Layer {index} ({layer_type})"

    if "size" not in layer:
        raise ValueError(f"{prefix}: missing required field 'size'")
    size = _parse_size(layer["size"], f"{prefix} size")
    offset = _layer_offset(layer, anchors, prefix)

    try:
        if layer_type == "shape":
            return _build_shape(layer, prefix, offset, size, colors)
        return _build_text(layer, prefix, offset, size, colors)
    except ValueError as e:
        if str(e).startswith(prefix):
            raise
        raise ValueError(f"{prefix}: {e}") from e


def _build_shape(layer: dict, prefix: str, offset: Offset, size: Size, colors: dict[str, int]):
    refs = layer.get("colors")
    if refs is None and "color" in layer:
        refs = [layer["color"]]
    if not refs:
        raise ValueError(f"{prefix}: missing required field 'colors'")
    if not isinstance(refs, list):
        refs = [refs]
    color_list = tuple(resolve_color(c, colors) for c in refs)

    clip_shape = _parse_clip(layer.get("clip"), prefix)

    shadow = None
    shadow_cfg = layer.get("shadow")
    if shadow_cfg is not None:
        shadow = Shadow(
            relative_offset=_parse_offset(shadow_cfg.get("offset", [0, 0]), f"{prefix} shadow offset"),
            clip_shape=_parse_clip(shadow_cfg.get("clip"), prefix) if "clip" in shadow_cfg else clip_shape,
            color=resolve_color(shadow_cfg.get("color", "#66000000"), colors),
            blur_radius=float(shadow_cfg.get("blur_radius", 0)),
        )

    return ShapeLayer(offset, size, color_list, clip_shape=clip_shape, shadow=shadow)


def _build_text(layer: dict, prefix: str, offset: Offset, size: Size, colors: dict[str, int]):
    for field in ("text", "color", "line_height"):
        if field not in layer:
            raise ValueError(f"{prefix}: missing required field '{field}'")
    font_size = layer.get("font_size")
    return TextLayer(
        offset=offset,
        size=size,
        text=str(layer["text"]),
        color=resolve_color(layer["color"], colors),
        line_height=int(layer["line_height"]),
        font_size=int(font_size) if font_size is not None else None,
    )


def validate_paths(config: dict) -> None:
    """Check that the manifest's audio file exists, if one is set.

    Raises:
        FileNotFoundError: Listing the missing path.
    """
    audio = config["video"].get("audio")
    if audio and not Path(audio).exists():
        raise FileNotFoundError(f"Missing media file:\n  - {audio}")
