"""Shared test fixtures for the receipt scanning test suite."""

import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

RECEIPT_TEXT = (
    "OLEOFLORES S.A.S.\n"
    "NIT 900.123.456-7\n"
    "Fecha: 05/03/2024 Hora 10:32\n"
    "GUIA DE TRANSPORTE VEHICULO 1000082175 CODIGO 884\n"
    "PESO BRUTO: 12.340 KG\n"
    "TARA: 7.750 KG\n"
    "PESO NETO: 4.590 KG\n"
    "Valor Unitario: $1.250 COP\n"
)


def make_png_bytes(image: np.ndarray) -> bytes:
    """Encode an array as PNG bytes."""
    buf = io.BytesIO()
    Image.fromarray(image).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def receipt_text() -> str:
    """OCR text of a typical weighing ticket."""
    return RECEIPT_TEXT


@pytest.fixture
def blank_page() -> np.ndarray:
    """A white RGBA page with no ink."""
    return np.full((300, 400, 4), 255, dtype=np.uint8)


@pytest.fixture
def inked_page() -> np.ndarray:
    """A white 1000x800 RGBA page with a black block of "text"."""
    image = np.full((800, 1000, 4), 255, dtype=np.uint8)
    image[200:501, 300:601, :3] = 0
    return image


@pytest.fixture
def sample_color_image() -> np.ndarray:
    """A small random RGB photo-like image."""
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(60, 80, 3), dtype=np.uint8)


@pytest.fixture
def png_bytes(sample_color_image: np.ndarray) -> bytes:
    """PNG encoding of ``sample_color_image``."""
    return make_png_bytes(sample_color_image)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
