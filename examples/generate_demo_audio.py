#!/usr/bin/env python3
"""Generate a short audio track for the layerframe demo manifest.

Creates examples/demo-audio/track.m4a: a quiet two-tone chord, long
enough to see the rendered template in a player.

Usage:
    python examples/generate_demo_audio.py
    # Then render:
    layerframe --manifest examples/revision-card.yaml \
        --output examples/demo-renders/ --both
"""

import numpy as np
from moviepy import AudioClip
from pathlib import Path

OUTPUT_DIR = Path(__file__).resolve().parent / "demo-audio"
DURATION = 4.0
SAMPLE_RATE = 44100
TONES = [220.0, 330.0]   # A3 + E4
VOLUME = 0.1


def _chord(t):
    """Sum of sine tones at time(s) t, same signal on both channels."""
    wave = VOLUME * sum(np.sin(2 * np.pi * f * t) for f in TONES) / len(TONES)
    return np.array([wave, wave]).T.copy(order="C")


def main():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    out = OUTPUT_DIR / "track.m4a"
    if out.exists():
        print(f"  skip {out.name} (exists)")
        return

    clip = AudioClip(_chord, duration=DURATION, fps=SAMPLE_RATE)
    clip.write_audiofile(str(out), fps=SAMPLE_RATE, codec="aac", logger=None)
    print(f"  wrote {out.name} ({DURATION}s)")
    print(f"\nDone. Audio in {OUTPUT_DIR}")


if __name__ == "__main__":
    main()
