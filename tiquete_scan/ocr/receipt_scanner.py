"""End-to-end scan of one receipt photo.

Decodes the photo, optionally rotates and conditions it, hands the
encoded result to Tesseract and extracts the ticket fields. An
undecodable photo aborts the scan before the OCR engine is invoked.
"""

from dataclasses import dataclass
from pathlib import Path

import numpy as np

from tiquete_scan.extraction.field_extractor import ExtractedReceiptData, FieldExtractor
from tiquete_scan.preprocessing.geometry import rotate
from tiquete_scan.preprocessing.image_io import encode_image, load_image
from tiquete_scan.preprocessing.pipeline import ImageConditioner, QualityMetrics
from tiquete_scan.utils.config import AppConfig
from tiquete_scan.utils.logger import get_logger

from .tesseract_engine import TesseractEngine

logger = get_logger(__name__)


@dataclass
class ScanResult:
    """Outcome of scanning one receipt photo."""

    filename: str
    data: ExtractedReceiptData
    metrics: QualityMetrics | None
    conditioned_image: np.ndarray


class ReceiptScanner:
    """Receipt photo -> extracted fields pipeline.

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or AppConfig()
        self.conditioner = ImageConditioner(self.config.conditioning)
        self.ocr_engine = TesseractEngine(
            tesseract_cmd=self.config.ocr.tesseract_cmd,
            lang=self.config.ocr.lang,
            psm=self.config.ocr.psm,
            char_whitelist=self.config.ocr.char_whitelist,
            preserve_interword_spaces=self.config.ocr.preserve_interword_spaces,
        )
        self.extractor = FieldExtractor(self.config.extraction)

    def scan(
        self,
        source: Path | bytes,
        filename: str | None = None,
        auto_correct: bool = True,
        rotation: float = 0,
    ) -> ScanResult:
        """Scan a receipt from a file path or encoded bytes.

        Args:
            source: Path to an image file, or raw image bytes.
            filename: Display name; defaults to the file name of ``source``.
            auto_correct: Run the conditioning pipeline before OCR.
            rotation: Clockwise rotation applied first, in degrees.

        Returns:
            Extracted data plus the image that was sent to OCR.

        Raises:
            InvalidImageError: If the photo cannot be decoded.
        """
        if filename is None:
            is_path = isinstance(source, (str, Path))
            filename = Path(source).name if is_path else "receipt"
        logger.info("Scanning receipt: %s", filename)

        image = load_image(source)
        if rotation:
            image = rotate(image, rotation)

        metrics = None
        if auto_correct:
            image, metrics = self.conditioner.process(image)

        encoded = encode_image(image, quality=self.config.conditioning.jpeg_quality)
        ocr_result = self.ocr_engine.recognize(encoded)
        data = self.extractor.extract(ocr_result.text, ocr_result.confidence)

        logger.info(
            "Scanned %s: fields=%s confidence=%.1f",
            filename,
            ",".join(data.found_fields()) or "none",
            data.confidence,
        )
        return ScanResult(
            filename=filename,
            data=data,
            metrics=metrics,
            conditioned_image=image,
        )
