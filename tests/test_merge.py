"""Tests for the overlay merger."""

import numpy as np
import pytest
from PIL import Image

from layerframe.errors import UnsupportedOverlayKind
from layerframe.geometry import Offset, Size
from layerframe.merge import merge_overlays
from layerframe.pipeline import BitmapOverlay


def _overlay(color, size, offset):
    bitmap = Image.new("RGBA", size, color)
    return BitmapOverlay(bitmap=bitmap, anchor=(0.0, 0.0), offset=offset)


class TestMergeOverlays:
    def test_non_overlapping_overlays_are_reproduced(self):
        red = _overlay((255, 0, 0, 255), (10, 10), Offset(0, 0))
        blue = _overlay((0, 0, 255, 255), (20, 10), Offset(50, 50))
        merged = merge_overlays([red, blue], Size(100, 100))
        arr = np.array(merged.bitmap)

        assert merged.bitmap.size == (100, 100)
        assert np.array_equal(arr[0:10, 0:10], np.array(red.bitmap))
        assert np.array_equal(arr[50:60, 50:70], np.array(blue.bitmap))
        # Everything else stays transparent.
        assert arr[:, :, 3].sum() == (10 * 10 + 20 * 10) * 255

    def test_later_overlays_draw_on_top(self):
        bottom = _overlay((255, 0, 0, 255), (10, 10), Offset(0, 0))
        top = _overlay((0, 255, 0, 255), (5, 5), Offset(0, 0))
        arr = np.array(merge_overlays([bottom, top], Size(10, 10)).bitmap)
        assert tuple(arr[0, 0]) == (0, 255, 0, 255)
        assert tuple(arr[9, 9]) == (255, 0, 0, 255)

    def test_translucent_overlay_blends_over_destination(self):
        bottom = _overlay((255, 0, 0, 255), (4, 4), Offset(0, 0))
        top = _overlay((0, 0, 255, 128), (4, 4), Offset(0, 0))
        r, g, b, a = np.array(merge_overlays([bottom, top], Size(4, 4)).bitmap)[0, 0]
        assert a == 255
        assert 100 < r < 155
        assert 100 < b < 155

    def test_offset_outside_canvas_is_clipped(self):
        red = _overlay((255, 0, 0, 255), (10, 10), Offset(-5, -5))
        arr = np.array(merge_overlays([red], Size(20, 20)).bitmap)
        assert (arr[0:5, 0:5, 3] == 255).all()
        assert arr[5:, :, 3].sum() == 0

    def test_result_is_anchored_at_origin(self):
        merged = merge_overlays([_overlay((1, 2, 3, 255), (2, 2), Offset(3, 3))], Size(8, 8))
        assert merged.offset == Offset.ZERO
        assert merged.anchor == (0.0, 0.0)

    def test_non_bitmap_overlay_rejected(self):
        ok = _overlay((255, 0, 0, 255), (10, 10), Offset(0, 0))
        with pytest.raises(UnsupportedOverlayKind, match="Only BitmapOverlay"):
            merge_overlays([ok, object()], Size(10, 10))

    def test_empty_list_gives_transparent_canvas(self):
        merged = merge_overlays([], Size(6, 4))
        assert np.array(merged.bitmap)[:, :, 3].max() == 0
