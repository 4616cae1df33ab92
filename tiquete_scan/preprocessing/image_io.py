"""Decoding, validation and encoding of receipt rasters.

Every transform in this package works on ``(height, width, 4)`` uint8
RGBA arrays. Images enter through :func:`load_image` or
:func:`ensure_rgba` and leave as compressed bytes through
:func:`encode_image`, the format handed to the OCR engine.
"""

import io
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from tiquete_scan.utils.logger import get_logger

logger = get_logger(__name__)

# Rec. 709 luma weights, the same ones a CSS grayscale() filter uses.
LUMA_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float64)


class InvalidImageError(ValueError):
    """Raised when the input is empty, undecodable, or not a raster."""


def ensure_rgba(image: np.ndarray) -> np.ndarray:
    """Validate an array and promote it to RGBA uint8.

    Grayscale ``(h, w)`` and RGB ``(h, w, 3)`` arrays are expanded; RGBA
    arrays are returned as a copy. The input is never modified.

    Args:
        image: Candidate raster.

    Returns:
        A new ``(h, w, 4)`` uint8 array.

    Raises:
        InvalidImageError: If the array is empty or has an unsupported shape.
    """
    if not isinstance(image, np.ndarray):
        raise InvalidImageError(f"Expected a numpy array, got {type(image).__name__}")
    if image.ndim not in (2, 3) or image.size == 0:
        raise InvalidImageError(f"Unsupported image shape: {image.shape}")
    if image.shape[0] < 1 or image.shape[1] < 1:
        raise InvalidImageError(f"Image has no pixels: {image.shape}")

    data = np.clip(image, 0, 255).astype(np.uint8)
    if data.ndim == 2:
        rgb = np.repeat(data[:, :, np.newaxis], 3, axis=2)
        alpha = np.full(data.shape, 255, dtype=np.uint8)
        return np.dstack([rgb, alpha])

    channels = data.shape[2]
    if channels == 1:
        return ensure_rgba(data[:, :, 0])
    if channels == 3:
        alpha = np.full(data.shape[:2], 255, dtype=np.uint8)
        return np.dstack([data, alpha])
    if channels == 4:
        return data.copy()
    raise InvalidImageError(f"Unsupported channel count: {channels}")


def load_image(source: Path | str | bytes) -> np.ndarray:
    """Decode an image file or buffer into an RGBA array.

    Args:
        source: Path to an image file, or the raw encoded bytes.

    Returns:
        Decoded ``(h, w, 4)`` uint8 array.

    Raises:
        InvalidImageError: If the source is missing, empty, or not a
            decodable image.
    """
    if isinstance(source, (bytes, bytearray)):
        if not source:
            raise InvalidImageError("Image buffer is empty")
        stream: io.BytesIO | Path = io.BytesIO(bytes(source))
    else:
        stream = Path(source)
        if not stream.is_file():
            raise InvalidImageError(f"Image file not found: {stream}")

    try:
        with Image.open(stream) as img:
            img.load()
            rgba = img.convert("RGBA")
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
    ) as exc:
        raise InvalidImageError(f"Could not decode image: {exc}") from exc

    if rgba.width < 1 or rgba.height < 1:
        raise InvalidImageError("Decoded image has no pixels")

    logger.debug("Loaded image %dx%d", rgba.width, rgba.height)
    return np.array(rgba, dtype=np.uint8)


def encode_image(image: np.ndarray, fmt: str = "JPEG", quality: float = 0.9) -> bytes:
    """Encode an RGBA array into compressed bytes.

    Args:
        image: Raster to encode.
        fmt: Pillow format name, ``"JPEG"`` or ``"PNG"``.
        quality: Lossy quality as a fraction in (0, 1].

    Returns:
        Encoded image bytes.
    """
    rgba = ensure_rgba(image)
    pil_image = Image.fromarray(rgba)
    buf = io.BytesIO()
    if fmt.upper() in ("JPEG", "JPG"):
        # JPEG has no alpha channel.
        pil_image.convert("RGB").save(
            buf, format="JPEG", quality=int(round(quality * 100))
        )
    else:
        pil_image.save(buf, format=fmt.upper())
    return buf.getvalue()


def luma(image: np.ndarray) -> np.ndarray:
    """Return the float64 luma plane of an RGBA (or RGB) array."""
    return image[:, :, :3].astype(np.float64) @ LUMA_WEIGHTS
