"""Ink-based auto-crop that isolates the receipt from its background."""

import numpy as np

from tiquete_scan.utils.logger import get_logger

from .image_io import ensure_rgba, luma

logger = get_logger(__name__)


def estimate_ink_bbox(
    image: np.ndarray,
    stride: int = 15,
    ink_threshold: int = 120,
) -> tuple[int, int, int, int] | None:
    """Estimate the bounding box of dark pixels on a coarse grid.

    Args:
        image: Input raster.
        stride: Sampling step in pixels along both axes.
        ink_threshold: Luma below this value counts as ink.

    Returns:
        Inclusive ``(x0, y0, x1, y1)`` box of the sampled ink pixels, or
        ``None`` if no sample is dark enough.
    """
    rgba = ensure_rgba(image)
    samples = luma(rgba[::stride, ::stride])
    rows, cols = np.nonzero(samples < ink_threshold)
    if rows.size == 0:
        return None
    return (
        int(cols.min()) * stride,
        int(rows.min()) * stride,
        int(cols.max()) * stride,
        int(rows.max()) * stride,
    )


def auto_crop(
    image: np.ndarray,
    stride: int = 15,
    ink_threshold: int = 120,
    margin: int = 50,
    min_size: int = 200,
) -> np.ndarray:
    """Crop an image to its ink region plus a margin.

    The crop is only applied when the expanded region is larger than
    ``min_size`` on both axes; a blank or nearly blank page comes back
    uncropped.

    Args:
        image: Input raster.
        stride: Sampling step for the ink estimate.
        ink_threshold: Luma below this value counts as ink.
        margin: Pixels added around the ink box, clamped to the image.
        min_size: Minimum width and height of an accepted crop.

    Returns:
        New RGBA uint8 array, cropped or the same size as the input.
    """
    rgba = ensure_rgba(image)
    height, width = rgba.shape[:2]
    bbox = estimate_ink_bbox(rgba, stride=stride, ink_threshold=ink_threshold)
    if bbox is None:
        logger.debug("No ink found, skipping auto-crop")
        return rgba

    x0, y0, x1, y1 = bbox
    left = max(0, x0 - margin)
    top = max(0, y0 - margin)
    right = min(width - 1, x1 + margin)
    bottom = min(height - 1, y1 + margin)

    crop_width = right - left + 1
    crop_height = bottom - top + 1
    if crop_width <= min_size or crop_height <= min_size:
        logger.debug(
            "Ink region %dx%d below minimum %d, skipping auto-crop",
            crop_width,
            crop_height,
            min_size,
        )
        return rgba

    logger.debug(
        "Auto-cropped %dx%d to %dx%d at (%d, %d)",
        width,
        height,
        crop_width,
        crop_height,
        left,
        top,
    )
    return rgba[top : bottom + 1, left : right + 1].copy()
