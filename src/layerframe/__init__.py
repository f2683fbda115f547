"""layerframe — declarative layer templates rendered as video overlays.

Rasterize shape and text layers into RGBA bitmaps, rescale them from the
frame they were authored against to any output frame, anchor them in
normalized device coordinates, and composite them over an audio track.
"""
