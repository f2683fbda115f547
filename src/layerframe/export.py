"""Video export — hand rendered overlays to moviepy with an audio track.

moviepy is the composition engine: this module only builds the timeline
(a black canvas of the output size lasting as long as the audio, with one
ImageClip per overlay at its pixel offset) and reports status:

  - ExportProgress(percent) through the on_progress callback, 0-100 and
    never decreasing.
  - ExportSuccess(output) or ExportFailure(error) as the return value.

Encoding settings match the rest of the project: H.264, CRF 20, yuv420p,
AAC audio.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import numpy as np
from moviepy import AudioFileClip, ColorClip, CompositeVideoClip, ImageClip
from proglog import ProgressBarLogger

from .errors import ExportFailed
from .geometry import Size

DEFAULT_FRAME_RATE = 30


# ── Status events ────────────────────────────────────────────────


@dataclass(frozen=True)
class ExportProgress:
    percent: int


@dataclass(frozen=True)
class ExportSuccess:
    output: Path

    def raise_if_failed(self) -> None:
        pass


@dataclass(frozen=True)
class ExportFailure:
    error: BaseException

    def raise_if_failed(self) -> None:
        raise ExportFailed(f"Export failed: {self.error}") from self.error


# ── Progress reporting ───────────────────────────────────────────


class PercentLogger(ProgressBarLogger):
    """proglog logger that forwards moviepy's frame bar as integer percent.

    Only the video frame bar is tracked. Values are clamped to 0-100 and
    only emitted when they increase.
    """

    FRAME_BAR = "frame_index"

    def __init__(self, on_progress: Callable[[ExportProgress], None]):
        super().__init__()
        self._on_progress = on_progress
        self._last = -1

    def emit(self, percent: int) -> None:
        percent = max(0, min(100, int(percent)))
        if percent > self._last:
            self._last = percent
            self._on_progress(ExportProgress(percent))

    def bars_callback(self, bar, attr, value, old_value=None):
        if bar != self.FRAME_BAR or attr != "index":
            return
        total = self.bars[bar].get("total")
        if total:
            self.emit(100 * (value + 1) // total)


# ── Media probing ────────────────────────────────────────────────


def probe_audio_duration(audio_path: str | Path) -> float:
    """Return the duration in seconds of an audio file.

    Raises:
        ValueError: If the file has no readable duration.
    """
    clip = AudioFileClip(str(audio_path))
    try:
        duration = clip.duration
    finally:
        clip.close()
    if not duration or duration <= 0:
        raise ValueError(f"Failed to extract audio duration from {audio_path}")
    return float(duration)


# ── Export ───────────────────────────────────────────────────────


def _overlay_clip(overlay, duration: float) -> ImageClip:
    """ImageClip for one overlay, positioned at its pixel offset."""
    frame = np.array(overlay.bitmap.convert("RGBA"))
    return (
        ImageClip(frame)
        .with_duration(duration)
        .with_position((overlay.offset.x, overlay.offset.y))
    )


def create_video(
    overlays: list,
    audio_path: str | Path,
    output_size: Size,
    output_path: str | Path,
    on_progress: Callable[[ExportProgress], None] | None = None,
    fps: int = DEFAULT_FRAME_RATE,
) -> ExportSuccess | ExportFailure:
    """Composite overlays over a black canvas for the length of the audio.

    Args:
        overlays: BitmapOverlay list in paint order. Must not be empty.
        audio_path: Audio track; its duration sets the video duration.
        output_size: Output frame size in pixels.
        output_path: Destination mp4 path (parent dirs are created).
        on_progress: Called with ExportProgress events while encoding.
        fps: Output frame rate.

    Returns:
        ExportSuccess with the output path, or ExportFailure with the cause.
        A failed export leaves no partial output file behind.

    Raises:
        ValueError: If overlays is empty.
    """
    if not overlays:
        raise ValueError("Overlays must not be empty")

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    logger = PercentLogger(on_progress) if on_progress else None

    audio = None
    clip = None
    try:
        audio = AudioFileClip(str(audio_path))
        duration = audio.duration
        if not duration or duration <= 0:
            raise ValueError(f"Failed to extract audio duration from {audio_path}")

        canvas = ColorClip(output_size.as_tuple(), color=(0, 0, 0)).with_duration(duration)
        layers = [canvas] + [_overlay_clip(o, duration) for o in overlays]
        clip = (
            CompositeVideoClip(layers, size=output_size.as_tuple())
            .with_duration(duration)
            .with_audio(audio)
        )
        clip.write_videofile(
            str(output_path),
            fps=fps,
            codec="libx264",
            audio_codec="aac",
            preset="medium",
            ffmpeg_params=["-crf", "20", "-pix_fmt", "yuv420p"],
            logger=logger,
        )
    except Exception as e:
        output_path.unlink(missing_ok=True)
        return ExportFailure(e)
    finally:
        if clip is not None:
            clip.close()
        if audio is not None:
            audio.close()

    if logger is not None:
        logger.emit(100)
    return ExportSuccess(output_path)


def save_bitmaps(bitmaps: list, directory: str | Path, prefix: str = "layer") -> list[Path]:
    """Write bitmaps as numbered PNGs (prefix-00.png, ...) for previewing."""
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for i, bitmap in enumerate(bitmaps):
        path = out_dir / f"{prefix}-{i:02d}.png"
        bitmap.save(path)
        written.append(path)
    return written
