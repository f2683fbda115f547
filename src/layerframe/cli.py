"""CLI for layer template rendering.

Reads a YAML template manifest, rasterizes its layers for the output
frame, and exports an mp4 with the manifest's (or --audio) audio track.

Usage:
    # Render one video with one overlay per layer
    layerframe --manifest template.yaml --output /tmp/out.mp4 --audio track.m4a

    # Flatten all layers into a single overlay first
    layerframe --manifest template.yaml --output /tmp/out.mp4 --merged

    # Write both variants (separate-output.mp4, merged-output.mp4) to a directory
    layerframe --manifest template.yaml --output /tmp/renders/ --both

    # Write one PNG per layer, no video
    layerframe --manifest template.yaml --preview /tmp/layers/

    # Validate only (no rendering)
    layerframe --manifest template.yaml --validate
"""

import argparse
import sys
import time
from dataclasses import replace
from pathlib import Path

from .export import create_video, save_bitmaps
from .layers import ShapeLayer
from .manifest import load_manifest, validate_paths
from .merge import merge_overlays
from .pipeline import adjust_and_rasterize


# ── Rendering helpers ─────────────────────────────────────────────


def _describe_layer(index, layer):
    if isinstance(layer, ShapeLayer):
        kind = "gradient" if layer.is_gradient else "shape"
        detail = type(layer.clip_shape).__name__
    else:
        kind = "text"
        detail = repr(layer.text[:30])
    return (
        f"  {index}: {kind:<8} {detail:<18} "
        f"@ ({layer.offset.x}, {layer.offset.y}) "
        f"{layer.size.width}x{layer.size.height}"
    )


def _print_progress(event):
    print(f"  Export progress: {event.percent}%", flush=True)


def _export_one(overlays, config, audio, output_path, merged):
    """Export one video variant; returns the output path or raises."""
    video = config["video"]
    resolution = video["resolution"]
    if merged:
        overlays = [merge_overlays(overlays, resolution)]

    print(f"Writing to: {output_path} ({len(overlays)} overlay(s))", flush=True)
    t0 = time.monotonic()
    result = create_video(
        overlays, audio, resolution, output_path,
        on_progress=_print_progress,
        fps=video["fps"],
    )
    result.raise_if_failed()
    elapsed = time.monotonic() - t0
    print(f"  DONE   {output_path} — {elapsed:.1f}s wall", flush=True)
    return result.output


# ── Main render ───────────────────────────────────────────────────


def render(
    manifest_path: str,
    output_path: str | None = None,
    audio_path: str | None = None,
    merged: bool | None = None,
    both: bool = False,
    preview_dir: str | None = None,
    workers: int | None = None,
) -> None:
    """Load manifest, rasterize layers, and export video(s) or previews.

    Three modes:
      - preview_dir: write one PNG per scaled layer, no video.
      - both: output_path is a directory; writes separate-output.mp4
        and merged-output.mp4.
      - Neither: write one mp4 to output_path, merged if requested.

    Args:
        manifest_path: Path to YAML manifest.
        output_path: Output mp4 path, or directory with both=True.
        audio_path: Audio track; overrides video.audio from the manifest.
        merged: Flatten overlays before export. None = manifest setting.
        both: Export the separate and merged variants.
        preview_dir: Directory for per-layer PNGs.
        workers: Rasterization threads. None = manifest setting.
    """
    config = load_manifest(manifest_path)
    if audio_path:
        config["video"]["audio"] = audio_path
    validate_paths(config)

    video = config["video"]
    resolution = video["resolution"]
    reference = video["reference_resolution"]
    render_config = config["render"]
    if workers is not None:
        render_config = replace(render_config, max_workers=workers)

    layers = config["layers"]
    if not len(layers):
        print("No layers to render.")
        return

    print(
        f"Rendering {len(layers)} layers at {resolution.width}x{resolution.height} "
        f"(authored at {reference.width}x{reference.height})",
        flush=True,
    )
    t0 = time.monotonic()
    overlays = adjust_and_rasterize(layers, resolution, reference, config=render_config)
    print(f"  Rasterized in {time.monotonic() - t0:.2f}s", flush=True)

    # ── Preview mode ─────────────────────────────────────────────
    if preview_dir:
        written = save_bitmaps([o.bitmap for o in overlays], preview_dir)
        for overlay, path in zip(overlays, written):
            ax, ay = overlay.anchor
            print(f"  {path.name}  anchor=({ax:.4f}, {ay:.4f})")
        print(f"\nDone: {len(written)} previews in {preview_dir}/")
        return

    audio = video["audio"]
    if not audio:
        raise ValueError("No audio track: set video.audio in the manifest or pass --audio")

    # ── Both variants ────────────────────────────────────────────
    if both:
        out_dir = Path(output_path)
        out_dir.mkdir(parents=True, exist_ok=True)
        _export_one(overlays, config, audio, out_dir / "separate-output.mp4", merged=False)
        _export_one(overlays, config, audio, out_dir / "merged-output.mp4", merged=True)
        print(f"\nDone: exports in {out_dir}/")
        return

    use_merged = config["merged"] if merged is None else merged
    out = _export_one(overlays, config, audio, output_path, merged=use_merged)
    print(f"\nDone: {out}")


# ── CLI entry point ───────────────────────────────────────────────


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="layerframe",
        description="Render a layer template manifest to overlay bitmaps and mp4.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML manifest file",
    )
    parser.add_argument(
        "--output",
        help="Output mp4 path, or directory for --both",
    )
    parser.add_argument(
        "--audio", default=None,
        help="Audio track (overrides video.audio in the manifest)",
    )
    parser.add_argument(
        "--merged", action="store_true", default=None,
        help="Flatten all layers into one overlay before export",
    )
    parser.add_argument(
        "--both", action="store_true",
        help="Write separate-output.mp4 and merged-output.mp4 to --output directory",
    )
    parser.add_argument(
        "--preview", default=None, metavar="DIR",
        help="Write one PNG per layer to DIR instead of a video",
    )
    parser.add_argument(
        "--workers", type=int, default=None,
        help="Rasterization threads (default: manifest setting, else the executor default)",
    )
    parser.add_argument(
        "--validate", action="store_true",
        help="Validate manifest only — build layers, don't render",
    )
    args = parser.parse_args(args)

    if args.validate:
        config = load_manifest(args.manifest)
        if args.audio:
            config["video"]["audio"] = args.audio
        validate_paths(config)
        layers = config["layers"]
        print(f"Manifest valid: {len(layers)} layers")
        for i, layer in enumerate(layers):
            print(_describe_layer(i, layer))
        return

    if not args.output and not args.preview:
        parser.error("--output is required (unless using --validate or --preview)")

    if args.both and args.merged:
        parser.error("--both and --merged are mutually exclusive")

    try:
        render(
            args.manifest, args.output,
            audio_path=args.audio,
            merged=args.merged,
            both=args.both,
            preview_dir=args.preview,
            workers=args.workers,
        )
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
