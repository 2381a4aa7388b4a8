"""
Approximate green/red pixel counts for scope overlays.

Used by the debug endpoint and CLI to check that an overlay actually carries
include/exclude markup before paying for a model call. Thresholds match the
stroke colours the overlay editor draws with.
"""
import io
import logging

import numpy as np
from PIL import Image, UnidentifiedImageError

from app.models.domain import ImageBlob

logger = logging.getLogger(__name__)

ALPHA_MIN = 30
CHANNEL_MIN = 140
CHANNEL_MARGIN = 30


def count_markup_pixels(rgba: np.ndarray) -> dict:
    """Counts marked pixels in an (H, W, 4) uint8 array."""
    height, width = rgba.shape[:2]
    pixels = rgba.reshape(-1, 4).astype(np.int16)
    r, g, b, a = pixels[:, 0], pixels[:, 1], pixels[:, 2], pixels[:, 3]

    visible = a >= ALPHA_MIN
    green = visible & (g > CHANNEL_MIN) & (g > r + CHANNEL_MARGIN) & (g > b + CHANNEL_MARGIN)
    red = visible & ~green & (r > CHANNEL_MIN) & (r > g + CHANNEL_MARGIN) & (r > b + CHANNEL_MARGIN)

    return {
        "width": int(width),
        "height": int(height),
        "total": int(width * height),
        "non_alpha": int(visible.sum()),
        "green_count": int(green.sum()),
        "red_count": int(red.sum()),
    }


def analyze_overlay(blob: ImageBlob) -> dict:
    try:
        with Image.open(io.BytesIO(blob.data)) as img:
            rgba = np.asarray(img.convert("RGBA"))
    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"Could not decode overlay {blob.filename}: {e}")
        return {"error": f"Could not decode overlay: {e}"}
    return count_markup_pixels(rgba)
