"""Tesseract OCR engine wrapper for receipt images.

Recognizes conditioned receipt images and reports the text together with
a 0-100 confidence score, the pair the field extractor consumes.
"""

import io
import shutil
from dataclasses import dataclass

import numpy as np
import pytesseract
from PIL import Image

from tiquete_scan.utils.config import DEFAULT_CHAR_WHITELIST
from tiquete_scan.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class OCRResult:
    """Text recognized from one receipt image."""

    text: str
    confidence: float
    language: str
    word_count: int


class TesseractEngine:
    """Wrapper around Tesseract OCR for receipt text recognition.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        lang: Default OCR language code, e.g. ``"spa"`` or ``"spa+eng"``.
        psm: Tesseract page segmentation mode.
        char_whitelist: Characters Tesseract may emit.
        preserve_interword_spaces: Keep runs of spaces between words.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        lang: str = "spa",
        psm: int = 3,
        char_whitelist: str = DEFAULT_CHAR_WHITELIST,
        preserve_interword_spaces: bool = True,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.lang = lang
        self.psm = psm
        self.char_whitelist = char_whitelist
        self.preserve_interword_spaces = preserve_interword_spaces

    @staticmethod
    def is_available() -> bool:
        """Return whether a ``tesseract`` binary is on the PATH."""
        return shutil.which("tesseract") is not None

    def _build_config(self) -> str:
        parts = [f"--psm {self.psm}"]
        if self.char_whitelist:
            # Quoted so the whitelist's space survives Tesseract's arg split.
            parts.append(f'-c "tessedit_char_whitelist={self.char_whitelist}"')
        if self.preserve_interword_spaces:
            parts.append("-c preserve_interword_spaces=1")
        return " ".join(parts)

    def recognize(
        self, image: bytes | np.ndarray, lang: str | None = None
    ) -> OCRResult:
        """Recognize the text of a receipt image.

        Args:
            image: Encoded image bytes (as produced by ``encode_image``) or
                a decoded array.
            lang: OCR language code. Defaults to the engine default.

        Returns:
            OCRResult with the full text and the mean word confidence.
        """
        lang = lang or self.lang
        config = self._build_config()

        if isinstance(image, (bytes, bytearray)):
            pil_image = Image.open(io.BytesIO(bytes(image)))
        else:
            pil_image = Image.fromarray(image)

        text = pytesseract.image_to_string(pil_image, lang=lang, config=config)
        data = pytesseract.image_to_data(
            pil_image,
            lang=lang,
            config=config,
            output_type=pytesseract.Output.DICT,
        )

        confidences = [
            float(conf)
            for conf, word in zip(data["conf"], data["text"])
            if float(conf) > 0 and str(word).strip()
        ]
        avg_conf = sum(confidences) / len(confidences) if confidences else 0.0

        logger.info(
            "OCR recognized %d words with average confidence %.1f",
            len(confidences),
            avg_conf,
        )
        return OCRResult(
            text=text,
            confidence=avg_conf,
            language=lang,
            word_count=len(confidences),
        )
