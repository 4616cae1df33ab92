"""Pydantic request/response schemas for the FastAPI endpoints."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ReceiptFieldsResponse(BaseModel):
    """Fields extracted from a receipt, keyed like the ticket form."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    fecha: str | None = None
    kilogramos: int | None = None
    numero_tiquete: str | None = None
    valor_unitario: float | None = None
    empresa_nombre: str | None = None
    raw_text: str
    confidence: float


class TicketDraftResponse(BaseModel):
    """Pre-filled ticket form values awaiting confirmation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    fecha: str
    empresa_id: str
    comprador_id: str
    numero_tiquete: str
    kilogramos: str
    valor_unitario: str
    observaciones: str
    missing_fields: list[str]


class QualityMetricsResponse(BaseModel):
    """Image quality before and after conditioning."""

    sharpness_before: float
    sharpness_after: float
    contrast_before: float
    contrast_after: float


class ScanResponse(BaseModel):
    """Response schema for a receipt scan request."""

    success: bool
    scan_id: str
    filename: str
    fields: ReceiptFieldsResponse
    draft: TicketDraftResponse
    quality: QualityMetricsResponse | None = None
    processing_time_ms: float


class ExtractRequest(BaseModel):
    """Already recognized OCR output to parse."""

    text: str
    confidence: float = Field(default=0.0, ge=0, le=100)


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
