"""Receipt field extraction from raw OCR text.

Runs each field's ordered strategies (see :mod:`.strategies`) over the
text and assembles an :class:`ExtractedReceiptData`. Extraction is a pure
function of the text: no clock, no randomness, no state between calls.
Fields that cannot be found are left as ``None``; this is a normal
outcome, never an error.
"""

from collections.abc import Callable
from dataclasses import dataclass

from tiquete_scan.utils.config import ExtractionConfig
from tiquete_scan.utils.logger import get_logger

from .strategies import (
    CompanyMatcher,
    GuideKeywordTicket,
    date_from_lines,
    net_weight_from_lines,
    ticket_internal_code,
    ticket_longest_number,
    unit_price_from_lines,
)

logger = get_logger(__name__)

FieldStrategy = Callable[[str], object | None]

# Attribute name -> key used in JSON payloads and CSV exports.
FIELD_KEYS: dict[str, str] = {
    "fecha": "fecha",
    "kilogramos": "kilogramos",
    "numero_tiquete": "numeroTiquete",
    "valor_unitario": "valorUnitario",
    "empresa_nombre": "empresaNombre",
}


@dataclass(frozen=True)
class ExtractedReceiptData:
    """Best-effort fields read from one receipt scan."""

    raw_text: str
    confidence: float
    fecha: str | None = None
    kilogramos: int | None = None
    numero_tiquete: str | None = None
    valor_unitario: float | None = None
    empresa_nombre: str | None = None

    def found_fields(self) -> list[str]:
        """Names of the fields that were extracted."""
        return [name for name in FIELD_KEYS if getattr(self, name) is not None]

    def to_dict(self) -> dict[str, object]:
        """Return the record keyed by the form's field names."""
        result: dict[str, object] = {
            key: getattr(self, name) for name, key in FIELD_KEYS.items()
        }
        result["rawText"] = self.raw_text
        result["confidence"] = self.confidence
        return result


def _strategy_name(strategy: FieldStrategy) -> str:
    return getattr(strategy, "__name__", type(strategy).__name__)


class FieldExtractor:
    """Heuristic extractor for weighing-ticket fields.

    Args:
        config: Company allow-list and guide keywords. Defaults apply when
            omitted.
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self.config = config or ExtractionConfig()
        self.strategies: dict[str, list[FieldStrategy]] = {
            "empresa_nombre": [CompanyMatcher(self.config.companies)],
            "fecha": [date_from_lines],
            "numero_tiquete": [
                GuideKeywordTicket(
                    self.config.guide_keywords, window=self.config.guide_window
                ),
                ticket_longest_number,
                ticket_internal_code,
            ],
            "kilogramos": [net_weight_from_lines],
            "valor_unitario": [unit_price_from_lines],
        }

    def extract(self, raw_text: str, confidence: float) -> ExtractedReceiptData:
        """Extract receipt fields from OCR output.

        Args:
            raw_text: Full text recognized by the OCR engine.
            confidence: Engine confidence (0-100), passed through unchanged.

        Returns:
            The extracted record; absent fields are ``None``.
        """
        if isinstance(raw_text, (bytes, bytearray)):
            raw_text = bytes(raw_text).decode("utf-8", errors="replace")
        elif raw_text is None:
            raw_text = ""

        values: dict[str, object] = {}
        for field_name, strategies in self.strategies.items():
            for strategy in strategies:
                value = strategy(raw_text)
                if value is not None:
                    logger.debug(
                        "%s=%r via %s", field_name, value, _strategy_name(strategy)
                    )
                    values[field_name] = value
                    break

        data = ExtractedReceiptData(raw_text=raw_text, confidence=confidence, **values)
        logger.info(
            "Extracted %d/%d receipt fields (OCR confidence %.1f)",
            len(values),
            len(self.strategies),
            confidence,
        )
        return data


def extract(
    raw_text: str, confidence: float, config: ExtractionConfig | None = None
) -> ExtractedReceiptData:
    """Extract receipt fields with a one-off :class:`FieldExtractor`."""
    return FieldExtractor(config).extract(raw_text, confidence)
