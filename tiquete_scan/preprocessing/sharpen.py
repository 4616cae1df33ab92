"""Edge-enhancing convolution for small or blurry receipt print."""

import cv2
import numpy as np

from tiquete_scan.utils.logger import get_logger

from .image_io import ensure_rgba

logger = get_logger(__name__)

SHARPEN_KERNEL = np.array(
    [
        [0, -1, 0],
        [-1, 5, -1],
        [0, -1, 0],
    ],
    dtype=np.float32,
)


def sharpen(image: np.ndarray, kernel: np.ndarray = SHARPEN_KERNEL) -> np.ndarray:
    """Convolve the color channels of an image with a 3x3 kernel.

    Only interior pixels are convolved; the first and last row and column
    keep their input values. The alpha channel of the result is fully
    opaque.

    Args:
        image: Input raster.
        kernel: 3x3 kernel; the default is the classic 4-neighbour sharpen.

    Returns:
        New RGBA uint8 array of the same size.
    """
    rgba = ensure_rgba(image)
    result = rgba.copy()
    result[:, :, 3] = 255

    height, width = rgba.shape[:2]
    if height < 3 or width < 3:
        logger.debug("Image %dx%d has no interior, skipping sharpen", width, height)
        return result

    # filter2D computes correlation; the symmetric kernel makes that a convolution.
    filtered = cv2.filter2D(
        rgba[:, :, :3].astype(np.float32), cv2.CV_32F, kernel
    )
    interior = np.clip(np.rint(filtered[1:-1, 1:-1]), 0, 255).astype(np.uint8)
    result[1:-1, 1:-1, :3] = interior
    logger.debug("Applied sharpen kernel to %dx%d image", width, height)
    return result
