"""Local-mean (Bradley) adaptive thresholding for receipt images.

Each pixel is compared with the mean brightness of a square neighbourhood,
so shadows and uneven lighting across a photographed ticket do not wipe
out whole regions the way a single global threshold would. Box sums come
from an integral image, keeping the cost linear in the pixel count.
"""

import cv2
import numpy as np

from tiquete_scan.utils.logger import get_logger

from .image_io import ensure_rgba, luma

logger = get_logger(__name__)


def window_bounds(length: int, half: int) -> tuple[np.ndarray, np.ndarray]:
    """Return inclusive, clamped window start/end indices along one axis."""
    positions = np.arange(length)
    start = np.clip(positions - half, 0, length - 1)
    end = np.clip(positions + half, 0, length - 1)
    return start, end


def adaptive_threshold(
    image: np.ndarray,
    window_divisor: int = 16,
    sensitivity: float = 0.12,
) -> np.ndarray:
    """Binarize an image against its local mean brightness.

    A pixel turns black when its luma is at most ``(1 - sensitivity)``
    times the mean luma of the ``width // window_divisor`` square window
    centred on it (clamped at the borders), and white otherwise.

    Args:
        image: Input raster.
        window_divisor: Window side is the image width divided by this.
        sensitivity: Fraction below the local mean that counts as ink.

    Returns:
        New RGBA uint8 array whose color channels are 0 or 255 and whose
        alpha is 255.
    """
    rgba = ensure_rgba(image)
    height, width = rgba.shape[:2]
    gray = luma(rgba)

    side = max(1, width // window_divisor)
    half = side // 2
    y0, y1 = window_bounds(height, half)
    x0, x1 = window_bounds(width, half)

    integral = cv2.integral(gray, sdepth=cv2.CV_64F)
    box_sum = (
        integral[np.ix_(y1 + 1, x1 + 1)]
        - integral[np.ix_(y0, x1 + 1)]
        - integral[np.ix_(y1 + 1, x0)]
        + integral[np.ix_(y0, x0)]
    )
    count = np.outer(y1 - y0 + 1, x1 - x0 + 1)

    ink = gray * count <= box_sum * (1.0 - sensitivity)
    binary = np.where(ink, 0, 255).astype(np.uint8)

    result = np.empty_like(rgba)
    result[:, :, :3] = binary[:, :, np.newaxis]
    result[:, :, 3] = 255
    logger.debug(
        "Applied adaptive threshold (window=%d, sensitivity=%.2f, ink=%.1f%%)",
        side,
        sensitivity,
        100.0 * ink.mean(),
    )
    return result
