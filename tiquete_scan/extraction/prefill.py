"""Pre-filling the ticket form from an extracted receipt.

The catalog of companies is read-only here: the company hint found on the
receipt only pre-selects a matching entry, and every value in the draft
is a string the operator confirms or corrects before saving.
"""

import json
import math
from dataclasses import asdict, dataclass
from pathlib import Path

from tiquete_scan.utils.logger import get_logger

from .field_extractor import ExtractedReceiptData

logger = get_logger(__name__)

REQUIRED_FIELDS = (
    "fecha",
    "empresa_id",
    "comprador_id",
    "numero_tiquete",
    "kilogramos",
    "valor_unitario",
)


@dataclass(frozen=True)
class Empresa:
    """A supplier company from the catalog."""

    id: str
    nombre: str
    activo: bool = True


@dataclass
class TicketDraft:
    """Editable values for the ticket form."""

    fecha: str = ""
    empresa_id: str = ""
    comprador_id: str = ""
    numero_tiquete: str = ""
    kilogramos: str = ""
    valor_unitario: str = ""
    observaciones: str = ""

    def missing_fields(self) -> list[str]:
        """Required fields the operator still has to fill in."""
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def load_catalog(path: Path) -> list[Empresa]:
    """Load company catalog entries from a JSON list.

    Args:
        path: JSON file holding objects with ``id``, ``nombre`` and an
            optional ``activo`` flag.

    Returns:
        Catalog entries in file order.
    """
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    catalog = [
        Empresa(
            id=str(item["id"]),
            nombre=str(item["nombre"]),
            activo=bool(item.get("activo", True)),
        )
        for item in raw
    ]
    logger.info("Loaded %d companies from %s", len(catalog), path)
    return catalog


def suggest_empresa(
    empresa_nombre: str | None, catalog: list[Empresa]
) -> Empresa | None:
    """Return the first active catalog entry whose name contains the hint."""
    if not empresa_nombre:
        return None
    hint = empresa_nombre.lower()
    for empresa in catalog:
        if empresa.activo and hint in empresa.nombre.lower():
            return empresa
    return None


def _format_number(value: float | None) -> str:
    if value is None:
        return ""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def build_draft(
    data: ExtractedReceiptData,
    catalog: list[Empresa] | None = None,
    comprador_id: str = "",
) -> TicketDraft:
    """Build the form draft for one scan.

    Args:
        data: Extraction result for the scan.
        catalog: Companies available for pre-selection.
        comprador_id: Buyer to pre-select, if the caller knows it.

    Returns:
        A new draft; ``data`` itself is left untouched.
    """
    empresa = suggest_empresa(data.empresa_nombre, catalog or [])
    return TicketDraft(
        fecha=data.fecha or "",
        empresa_id=empresa.id if empresa else "",
        comprador_id=comprador_id,
        numero_tiquete=data.numero_tiquete or "",
        kilogramos=_format_number(data.kilogramos),
        valor_unitario=_format_number(data.valor_unitario),
        observaciones=(
            f"Escaneado automáticamente ({_round_half_up(data.confidence)}% confianza)"
        ),
    )
