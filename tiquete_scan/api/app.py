"""FastAPI application for the receipt scanning API.

Provides REST endpoints to scan a receipt photo, parse already recognized
text, rotate a photo, and check service health. Handlers are plain
``def`` functions so the CPU-bound pixel work runs in the threadpool.
"""

import time
import uuid
from pathlib import Path
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, Query, Response, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from tiquete_scan import __version__
from tiquete_scan.extraction.field_extractor import ExtractedReceiptData, FieldExtractor
from tiquete_scan.extraction.prefill import Empresa, build_draft, load_catalog
from tiquete_scan.ocr.receipt_scanner import ReceiptScanner
from tiquete_scan.ocr.tesseract_engine import TesseractEngine
from tiquete_scan.preprocessing.geometry import rotate
from tiquete_scan.preprocessing.image_io import (
    InvalidImageError,
    encode_image,
    load_image,
)
from tiquete_scan.utils.config import load_config
from tiquete_scan.utils.logger import get_logger

from .schemas import (
    ExtractRequest,
    HealthResponse,
    QualityMetricsResponse,
    ReceiptFieldsResponse,
    ScanResponse,
    TicketDraftResponse,
)

logger = get_logger(__name__)

app = FastAPI(
    title="Tiquete Scan API",
    description="Pre-fill fruit-purchase tickets from photographed receipts",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ALLOWED_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/webp",
    "image/tiff",
    "application/octet-stream",
}

_INVALID_IMAGE_DETAIL = "Could not read the photo, try another one"


def _get_components() -> tuple[ReceiptScanner, list[Empresa]]:
    """Initialize the scanner and the company catalog.

    Returns:
        Tuple of (receipt_scanner, catalog).
    """
    config = load_config()
    catalog: list[Empresa] = []
    if config.catalog_path:
        catalog = load_catalog(Path(config.catalog_path))
    return ReceiptScanner(config), catalog


def _fields_response(data: ExtractedReceiptData) -> ReceiptFieldsResponse:
    return ReceiptFieldsResponse(
        fecha=data.fecha,
        kilogramos=data.kilogramos,
        numero_tiquete=data.numero_tiquete,
        valor_unitario=data.valor_unitario,
        empresa_nombre=data.empresa_nombre,
        raw_text=data.raw_text,
        confidence=data.confidence,
    )


def _check_content_type(file: UploadFile) -> None:
    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )


@app.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return system health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        tesseract_available=TesseractEngine.is_available(),
    )


@app.post("/scan", response_model=ScanResponse)
def scan_receipt(
    file: Annotated[UploadFile, File(...)],
    auto_correct: Annotated[bool, Query()] = True,
    rotation: Annotated[int, Query()] = 0,
    comprador_id: Annotated[str, Query()] = "",
) -> ScanResponse:
    """Scan an uploaded receipt photo and pre-fill the ticket form.

    Args:
        file: Uploaded photo (PNG, JPEG, WebP or TIFF).
        auto_correct: Whether to condition the photo before OCR.
        rotation: Clockwise rotation applied first, in degrees.
        comprador_id: Buyer to pre-select in the draft.

    Returns:
        Extracted fields, the form draft and conditioning metrics.
    """
    start_time = time.time()
    _check_content_type(file)

    try:
        scanner, catalog = _get_components()
        content = file.file.read()
        result = scanner.scan(
            content,
            filename=file.filename or "receipt",
            auto_correct=auto_correct,
            rotation=rotation,
        )
    except InvalidImageError as exc:
        logger.warning("Rejected photo %s: %s", file.filename, exc)
        raise HTTPException(status_code=422, detail=_INVALID_IMAGE_DETAIL) from exc
    except Exception as exc:
        logger.error("Scan failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    draft = build_draft(result.data, catalog, comprador_id=comprador_id)
    quality = None
    if result.metrics is not None:
        quality = QualityMetricsResponse(
            sharpness_before=result.metrics.sharpness_before,
            sharpness_after=result.metrics.sharpness_after,
            contrast_before=result.metrics.contrast_before,
            contrast_after=result.metrics.contrast_after,
        )

    return ScanResponse(
        success=True,
        scan_id=str(uuid.uuid4()),
        filename=result.filename,
        fields=_fields_response(result.data),
        draft=TicketDraftResponse(
            **draft.to_dict(), missing_fields=draft.missing_fields()
        ),
        quality=quality,
        processing_time_ms=(time.time() - start_time) * 1000,
    )


@app.post("/extract", response_model=ReceiptFieldsResponse)
def extract_fields(request: ExtractRequest) -> ReceiptFieldsResponse:
    """Parse OCR text that was recognized elsewhere."""
    config = load_config()
    data = FieldExtractor(config.extraction).extract(request.text, request.confidence)
    return _fields_response(data)


@app.post("/rotate")
def rotate_photo(
    file: Annotated[UploadFile, File(...)],
    degrees: Annotated[int, Query()] = 90,
) -> Response:
    """Rotate an uploaded photo clockwise and return it as JPEG."""
    _check_content_type(file)
    try:
        image = load_image(file.file.read())
    except InvalidImageError as exc:
        raise HTTPException(status_code=422, detail=_INVALID_IMAGE_DETAIL) from exc

    rotated = rotate(image, degrees)
    payload = encode_image(rotated, quality=0.95)
    return Response(content=payload, media_type="image/jpeg")
