"""Unit tests for overlay markup counting."""

import io

import numpy as np
from PIL import Image

from app.models.domain import ImageBlob
from app.services.overlay_stats import analyze_overlay, count_markup_pixels


def overlay_png() -> bytes:
    """10x10 transparent canvas: 2 rows green, 3 rows red, 1 row grey, rest transparent."""
    img = Image.new("RGBA", (10, 10), (0, 0, 0, 0))
    for y in range(10):
        for x in range(10):
            if y < 2:
                img.putpixel((x, y), (20, 220, 40, 200))
            elif y < 5:
                img.putpixel((x, y), (230, 30, 30, 200))
            elif y == 5:
                img.putpixel((x, y), (128, 128, 128, 255))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def test_counts_green_and_red():
    stats = analyze_overlay(ImageBlob(filename="o.png", media_type="image/png", data=overlay_png()))
    assert stats == {
        "width": 10,
        "height": 10,
        "total": 100,
        "non_alpha": 60,
        "green_count": 20,
        "red_count": 30,
    }


def test_faint_pixels_are_ignored():
    rgba = np.zeros((1, 2, 4), dtype=np.uint8)
    rgba[0, 0] = (0, 255, 0, 10)
    rgba[0, 1] = (0, 255, 0, 255)
    stats = count_markup_pixels(rgba)
    assert stats["non_alpha"] == 1
    assert stats["green_count"] == 1


def test_undecodable_overlay():
    stats = analyze_overlay(ImageBlob(filename="bad.png", data=b"not an image"))
    assert "error" in stats
