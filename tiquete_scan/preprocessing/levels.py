"""Grayscale, contrast and brightness as a single levels transform.

Produces the "photocopy" look that separates ink from paper on receipts
shot under uneven lighting, without the hard clipping of a threshold.
"""

import numpy as np

from tiquete_scan.utils.logger import get_logger

from .image_io import ensure_rgba, luma

logger = get_logger(__name__)

_MIDPOINT = 127.5


def apply_levels(
    image: np.ndarray,
    grayscale: bool = True,
    contrast_percent: float = 160.0,
    brightness_percent: float = 110.0,
) -> np.ndarray:
    """Apply grayscale, contrast and brightness in one per-pixel pass.

    Contrast pivots around mid-gray and brightness scales toward white;
    each stage is clipped to [0, 255] before the next, matching the CSS
    ``grayscale() contrast() brightness()`` filter chain. Alpha is kept.

    Args:
        image: Input raster (any shape accepted by ``ensure_rgba``).
        grayscale: Replace RGB with Rec. 709 luma before adjusting.
        contrast_percent: 100 leaves contrast unchanged.
        brightness_percent: 100 leaves brightness unchanged.

    Returns:
        New RGBA uint8 array of the same size.
    """
    rgba = ensure_rgba(image)
    contrast = contrast_percent / 100.0
    brightness = brightness_percent / 100.0

    if grayscale:
        rgb = np.repeat(luma(rgba)[:, :, np.newaxis], 3, axis=2)
    else:
        rgb = rgba[:, :, :3].astype(np.float64)

    rgb = np.clip((rgb - _MIDPOINT) * contrast + _MIDPOINT, 0.0, 255.0)
    rgb = np.clip(rgb * brightness, 0.0, 255.0)

    result = rgba.copy()
    result[:, :, :3] = np.rint(rgb).astype(np.uint8)
    logger.debug(
        "Applied levels (grayscale=%s, contrast=%.0f%%, brightness=%.0f%%)",
        grayscale,
        contrast_percent,
        brightness_percent,
    )
    return result
