"""Resizing and rotation of receipt images."""

import cv2
import numpy as np

from tiquete_scan.utils.logger import get_logger

from .image_io import ensure_rgba

logger = get_logger(__name__)


def resize_to_width(image: np.ndarray, target_width: int | None) -> np.ndarray:
    """Downscale an image to ``target_width``, preserving aspect ratio.

    Images already at or below the target width are returned unscaled.

    Args:
        image: Input raster.
        target_width: Maximum output width in pixels; ``None`` disables.

    Returns:
        New RGBA uint8 array.
    """
    rgba = ensure_rgba(image)
    height, width = rgba.shape[:2]
    if target_width is None or width <= target_width:
        return rgba

    scale = target_width / width
    new_height = max(1, int(round(height * scale)))
    result = cv2.resize(rgba, (target_width, new_height), interpolation=cv2.INTER_AREA)
    logger.debug("Resized %dx%d to %dx%d", width, height, target_width, new_height)
    return result


def rotate(image: np.ndarray, degrees: float) -> np.ndarray:
    """Rotate an image clockwise about its center.

    Multiples of 90 degrees are exact and swap width and height at 90 and
    270. Any other angle is resampled bilinearly onto a canvas of the
    original size, leaving uncovered corners transparent.

    Args:
        image: Input raster.
        degrees: Clockwise rotation angle; normalized modulo 360.

    Returns:
        New RGBA uint8 array.
    """
    rgba = ensure_rgba(image)
    angle = float(degrees) % 360.0

    if angle % 90.0 == 0.0:
        quarter_turns = int(angle // 90.0)
        if quarter_turns == 0:
            return rgba
        result = np.ascontiguousarray(np.rot90(rgba, k=-quarter_turns))
        logger.debug("Rotated image by %d degrees", quarter_turns * 90)
        return result

    height, width = rgba.shape[:2]
    center = ((width - 1) / 2.0, (height - 1) / 2.0)
    # OpenCV treats positive angles as counter-clockwise.
    matrix = cv2.getRotationMatrix2D(center, -angle, 1.0)
    result = cv2.warpAffine(
        rgba,
        matrix,
        (width, height),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(0, 0, 0, 0),
    )
    logger.debug("Rotated image by %.2f degrees", angle)
    return result
